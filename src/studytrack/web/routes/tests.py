"""Test scheduling endpoints."""

from datetime import datetime

from fastapi import APIRouter, HTTPException, status

from studytrack.config.app_config import load_app_config
from studytrack.core.dashboard import describe_test
from studytrack.core.models import coverage_target
from studytrack.core.priority import as_local, normalize_test_time
from studytrack.db.schedule_repository import (
    delete_test,
    fetch_coverage,
    get_test,
    schedule_test,
)
from studytrack.db.tracker_repository import fetch_tracker_tree
from studytrack.web.schemas import (
    CoverageResponse,
    TestCreate,
    TestDetailsResponse,
    TestResponse,
)

router = APIRouter(prefix="/api/tests", tags=["tests"])


@router.post("", response_model=TestResponse, status_code=status.HTTP_201_CREATED)
async def create(body: TestCreate) -> TestResponse:
    """Schedule a test with its coverage."""
    if body.scheduled_date is not None:
        hour = load_app_config().schedule.test_hour
        scheduled_at = normalize_test_time(body.scheduled_date, hour=hour)
    else:
        scheduled_at = body.scheduled_at

    test = schedule_test(
        body.tracker_id,
        body.name,
        body.test_type,
        scheduled_at,
        [coverage_target(c.unit_id, c.topic_id) for c in body.coverage],
    )
    return TestResponse.model_validate(test.to_dict())


@router.get("/{test_id}", response_model=TestDetailsResponse)
async def details(test_id: str, now: datetime | None = None) -> TestDetailsResponse:
    """A test with its resolved coverage and countdown."""
    test = get_test(test_id)
    if test is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Test '{test_id}' not found",
        )

    result = describe_test(
        test,
        fetch_coverage(test_id),
        fetch_tracker_tree(test.tracker_id),
        as_local(now) if now is not None else datetime.now().astimezone(),
    )
    return TestDetailsResponse(
        test=TestResponse.model_validate(test.to_dict()),
        coverage=[CoverageResponse.model_validate(c.to_dict()) for c in result.coverage],
        covered_topics=result.covered_topics,
        days_remaining=result.days_remaining,
        time_remaining=result.time_remaining,
    )


@router.delete("/{test_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete(test_id: str) -> None:
    if not delete_test(test_id):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Test '{test_id}' not found",
        )
