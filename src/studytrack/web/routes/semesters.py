"""Semester endpoints."""

from fastapi import APIRouter, HTTPException, status

from studytrack.db.tracker_repository import (
    create_semester,
    delete_semester,
    get_semester,
    list_semesters,
    list_trackers,
)
from studytrack.web.schemas import (
    SemesterCreate,
    SemesterListResponse,
    SemesterResponse,
    TrackerListResponse,
    TrackerResponse,
)

router = APIRouter(prefix="/api/semesters", tags=["semesters"])


@router.get("", response_model=SemesterListResponse)
async def list_all() -> SemesterListResponse:
    """List semesters, newest first."""
    semesters = [SemesterResponse.model_validate(s) for s in list_semesters()]
    return SemesterListResponse(semesters=semesters, count=len(semesters))


@router.post("", response_model=SemesterResponse, status_code=status.HTTP_201_CREATED)
async def create(body: SemesterCreate) -> SemesterResponse:
    """Create a semester."""
    return SemesterResponse.model_validate(create_semester(body.name))


@router.get("/{semester_id}/trackers", response_model=TrackerListResponse)
async def trackers_of(semester_id: str) -> TrackerListResponse:
    """List the trackers of a semester."""
    if get_semester(semester_id) is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Semester '{semester_id}' not found",
        )

    trackers = [TrackerResponse.model_validate(t) for t in list_trackers(semester_id)]
    return TrackerListResponse(trackers=trackers, count=len(trackers))


@router.delete("/{semester_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete(semester_id: str) -> None:
    """Delete a semester and its trackers."""
    if not delete_semester(semester_id):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Semester '{semester_id}' not found",
        )
