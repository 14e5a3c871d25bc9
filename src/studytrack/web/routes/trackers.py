"""Tracker endpoints: creation, dashboard, syllabus export/import."""

from datetime import datetime

import structlog
from fastapi import APIRouter, HTTPException, Query, status
from fastapi.responses import PlainTextResponse

from studytrack.config.app_config import load_app_config
from studytrack.core.dashboard import recompute
from studytrack.core.models import SubjectNode
from studytrack.core.priority import as_local
from studytrack.core.syllabus import SyllabusDocument
from studytrack.db.schedule_repository import load_tracker_snapshot
from studytrack.db.tracker_repository import (
    create_tracker,
    delete_tracker,
    export_syllabus_document,
    export_syllabus_text,
    import_syllabus_document,
    list_trackers,
    require_tracker,
)
from studytrack.web.schemas import (
    DashboardResponse,
    PriorityTestResponse,
    SubjectTreeResponse,
    SyllabusImportRequest,
    TestResponse,
    TopicResponse,
    TrackerCreate,
    TrackerListResponse,
    TrackerProgressResponse,
    TrackerResponse,
    UnitTreeResponse,
)

logger = structlog.get_logger(__name__)

router = APIRouter(prefix="/api/trackers", tags=["trackers"])


def _tree_response(tree: list[SubjectNode]) -> list[SubjectTreeResponse]:
    return [
        SubjectTreeResponse(
            id=s.subject.id,
            name=s.subject.name,
            units=[
                UnitTreeResponse(
                    id=u.unit.id,
                    name=u.unit.name,
                    order=u.unit.order,
                    topics=[TopicResponse.model_validate(t) for t in u.topics],
                )
                for u in s.units
            ],
        )
        for s in tree
    ]


@router.get("", response_model=TrackerListResponse)
async def list_all(semester_id: str | None = None) -> TrackerListResponse:
    """List trackers, optionally filtered by semester."""
    trackers = [TrackerResponse.model_validate(t) for t in list_trackers(semester_id)]
    return TrackerListResponse(trackers=trackers, count=len(trackers))


@router.post("", response_model=TrackerResponse, status_code=status.HTTP_201_CREATED)
async def create(body: TrackerCreate) -> TrackerResponse:
    """Create a tracker from syllabus text."""
    tracker = create_tracker(
        body.semester_id,
        body.name,
        body.syllabus_text,
        description=body.description,
        color=body.color,
    )
    return TrackerResponse.model_validate(tracker)


@router.post("/import", response_model=TrackerResponse, status_code=status.HTTP_201_CREATED)
async def import_document(body: SyllabusImportRequest) -> TrackerResponse:
    """Create a tracker from an exported syllabus document."""
    document = SyllabusDocument.from_dict(body.document)
    return TrackerResponse.model_validate(import_syllabus_document(body.semester_id, document))


@router.get("/{tracker_id}", response_model=TrackerResponse)
async def get(tracker_id: str) -> TrackerResponse:
    return TrackerResponse.model_validate(require_tracker(tracker_id))


@router.delete("/{tracker_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete(tracker_id: str) -> None:
    if not delete_tracker(tracker_id):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Tracker '{tracker_id}' not found",
        )


@router.get("/{tracker_id}/dashboard", response_model=DashboardResponse)
async def dashboard(
    tracker_id: str,
    window_days: int | None = Query(default=None, ge=0),
    now: datetime | None = None,
) -> DashboardResponse:
    """Recompute progress and the priority feed of a tracker.

    `now` defaults to the server clock; clients refreshing a countdown
    simply call this endpoint again.
    """
    tracker = require_tracker(tracker_id)
    if window_days is None:
        window_days = load_app_config().schedule.window_days
    now = as_local(now) if now is not None else datetime.now().astimezone()

    snapshot = load_tracker_snapshot(tracker_id)
    result = recompute(snapshot, now, window_days)

    logger.debug(
        "dashboard_recomputed",
        tracker_id=tracker_id,
        priority_tests=len(result.priority_tests),
    )

    return DashboardResponse(
        tracker=TrackerResponse.model_validate(tracker),
        subjects=_tree_response(snapshot.tree),
        progress=TrackerProgressResponse.model_validate(result.progress.to_dict()),
        all_tests=[TestResponse.model_validate(t.to_dict()) for t in result.all_tests],
        priority_tests=[
            PriorityTestResponse.model_validate(p.to_dict()) for p in result.priority_tests
        ],
        computed_at=result.computed_at,
    )


@router.get("/{tracker_id}/export", response_class=PlainTextResponse)
async def export_text(tracker_id: str) -> str:
    """Export the syllabus as text."""
    return export_syllabus_text(tracker_id)


@router.get("/{tracker_id}/export.json")
async def export_json(tracker_id: str) -> dict:
    """Export the syllabus document as JSON."""
    return export_syllabus_document(tracker_id).to_dict()
