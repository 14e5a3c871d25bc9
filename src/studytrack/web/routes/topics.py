"""Syllabus tree editing: subjects, units and topics."""

from fastapi import APIRouter, HTTPException, status

from studytrack.db.tracker_repository import (
    create_subject,
    create_topic,
    create_unit,
    delete_subject,
    delete_topic,
    rename_subject,
    rename_topic,
    toggle_topic,
)
from studytrack.web.schemas import NameUpdate, TopicResponse

router = APIRouter(prefix="/api", tags=["syllabus-tree"])


def _not_found(kind: str, entity_id: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_404_NOT_FOUND,
        detail=f"{kind.capitalize()} '{entity_id}' not found",
    )


@router.post("/trackers/{tracker_id}/subjects", status_code=status.HTTP_201_CREATED)
async def add_subject(tracker_id: str, body: NameUpdate) -> dict:
    subject = create_subject(tracker_id, body.name)
    return {"id": subject.id, "tracker_id": subject.tracker_id, "name": subject.name}


@router.put("/subjects/{subject_id}", status_code=status.HTTP_204_NO_CONTENT)
async def update_subject(subject_id: str, body: NameUpdate) -> None:
    rename_subject(subject_id, body.name)


@router.delete("/subjects/{subject_id}", status_code=status.HTTP_204_NO_CONTENT)
async def remove_subject(subject_id: str) -> None:
    if not delete_subject(subject_id):
        raise _not_found("subject", subject_id)


@router.post("/subjects/{subject_id}/units", status_code=status.HTTP_201_CREATED)
async def add_unit(subject_id: str, body: NameUpdate) -> dict:
    unit = create_unit(subject_id, body.name)
    return {"id": unit.id, "subject_id": unit.subject_id, "name": unit.name, "order": unit.order}


@router.post(
    "/units/{unit_id}/topics",
    response_model=TopicResponse,
    status_code=status.HTTP_201_CREATED,
)
async def add_topic(unit_id: str, body: NameUpdate) -> TopicResponse:
    return TopicResponse.model_validate(create_topic(unit_id, body.name))


@router.put("/topics/{topic_id}", status_code=status.HTTP_204_NO_CONTENT)
async def update_topic(topic_id: str, body: NameUpdate) -> None:
    rename_topic(topic_id, body.name)


@router.delete("/topics/{topic_id}", status_code=status.HTTP_204_NO_CONTENT)
async def remove_topic(topic_id: str) -> None:
    if not delete_topic(topic_id):
        raise _not_found("topic", topic_id)


@router.post("/topics/{topic_id}/toggle", response_model=TopicResponse)
async def toggle(topic_id: str) -> TopicResponse:
    """Flip a topic's completion flag."""
    topic = toggle_topic(topic_id)
    if topic is None:
        raise _not_found("topic", topic_id)
    return TopicResponse.model_validate(topic)
