"""Pydantic schemas for the Web API.

Request bodies and response models for semesters, trackers, topics, tests,
the dashboard and the syllabus codec.
"""

from __future__ import annotations

from datetime import date, datetime
from typing import Any

from pydantic import BaseModel, Field, model_validator

from studytrack.core.models import TestType, Urgency


# =============================================================================
# SEMESTER / TRACKER SCHEMAS
# =============================================================================


class SemesterCreate(BaseModel):
    """Request body for creating a semester."""

    name: str = Field(..., min_length=1, max_length=200)


class SemesterResponse(BaseModel):
    id: str
    name: str
    created_at: int
    updated_at: int

    model_config = {"from_attributes": True}


class SemesterListResponse(BaseModel):
    semesters: list[SemesterResponse]
    count: int


class TrackerCreate(BaseModel):
    """Request body for creating a tracker from syllabus text."""

    semester_id: str
    name: str = Field(..., min_length=1, max_length=200)
    syllabus_text: str = Field(..., min_length=1)
    description: str | None = None
    color: str | None = None


class TrackerResponse(BaseModel):
    id: str
    semester_id: str
    name: str
    description: str | None = None
    color: str | None = None
    total_subjects: int
    total_units: int
    total_topics: int
    created_at: int
    updated_at: int

    model_config = {"from_attributes": True}


class TrackerListResponse(BaseModel):
    trackers: list[TrackerResponse]
    count: int


# =============================================================================
# TREE / TOPIC SCHEMAS
# =============================================================================


class TopicResponse(BaseModel):
    id: str
    unit_id: str
    name: str
    completed: bool
    order: int

    model_config = {"from_attributes": True}


class UnitTreeResponse(BaseModel):
    id: str
    name: str
    order: int
    topics: list[TopicResponse]


class SubjectTreeResponse(BaseModel):
    id: str
    name: str
    units: list[UnitTreeResponse]


class NameUpdate(BaseModel):
    """Request body for creating or renaming a subject, unit or topic."""

    name: str = Field(..., min_length=1, max_length=200)


# =============================================================================
# PROGRESS / PRIORITY SCHEMAS
# =============================================================================


class UnitProgressResponse(BaseModel):
    unit_id: str
    unit_name: str
    total_topics: int
    completed_topics: int
    percentage: float


class SubjectProgressResponse(BaseModel):
    subject_id: str
    subject_name: str
    total_topics: int
    completed_topics: int
    percentage: float
    units: list[UnitProgressResponse]


class TrackerProgressResponse(BaseModel):
    tracker_id: str
    total_topics: int
    completed_topics: int
    percentage: float
    subjects: list[SubjectProgressResponse]


class CoverageResponse(BaseModel):
    id: str
    test_id: str
    unit_id: str | None = None
    topic_id: str | None = None


class TestResponse(BaseModel):
    id: str
    tracker_id: str
    name: str
    test_type: TestType
    scheduled_at: datetime
    created_at: int
    updated_at: int


class PriorityTestResponse(BaseModel):
    test: TestResponse
    coverage: list[CoverageResponse]
    days_remaining: int
    time_remaining: str
    covered_topics: list[str]
    urgency: Urgency


class DashboardResponse(BaseModel):
    """Everything a tracker view needs, recomputed for `computed_at`."""

    tracker: TrackerResponse
    subjects: list[SubjectTreeResponse]
    progress: TrackerProgressResponse
    all_tests: list[TestResponse]
    priority_tests: list[PriorityTestResponse]
    computed_at: datetime


# =============================================================================
# TEST SCHEMAS
# =============================================================================


class CoverageInput(BaseModel):
    """One coverage row: exactly one of unit_id / topic_id."""

    unit_id: str | None = None
    topic_id: str | None = None

    @model_validator(mode="after")
    def check_exactly_one(self) -> CoverageInput:
        if bool(self.unit_id) == bool(self.topic_id):
            raise ValueError("exactly one of unit_id or topic_id must be set")
        return self


class TestCreate(BaseModel):
    """Request body for scheduling a test.

    Either `scheduled_date` (held at the configured hour) or an explicit
    `scheduled_at` instant must be given.
    """

    tracker_id: str
    name: str = Field(..., min_length=1, max_length=200)
    test_type: TestType = TestType.CLASS_TEST
    scheduled_date: date | None = None
    scheduled_at: datetime | None = None
    coverage: list[CoverageInput] = Field(default_factory=list)

    @model_validator(mode="after")
    def check_schedule(self) -> TestCreate:
        if self.scheduled_date is None and self.scheduled_at is None:
            raise ValueError("scheduled_date or scheduled_at is required")
        if self.scheduled_date is not None and self.scheduled_at is not None:
            raise ValueError("give either scheduled_date or scheduled_at, not both")
        return self


class TestDetailsResponse(BaseModel):
    test: TestResponse
    coverage: list[CoverageResponse]
    covered_topics: list[str]
    days_remaining: int
    time_remaining: str


# =============================================================================
# SYLLABUS SCHEMAS
# =============================================================================


class SyllabusUnitSchema(BaseModel):
    name: str
    topics: list[str] = Field(default_factory=list)


class SyllabusSubjectSchema(BaseModel):
    name: str
    units: list[SyllabusUnitSchema] = Field(default_factory=list)


class SyllabusText(BaseModel):
    text: str


class SkippedLineResponse(BaseModel):
    line_number: int
    text: str
    reason: str


class SyllabusDecodeResponse(BaseModel):
    subjects: list[SyllabusSubjectSchema]
    skipped: list[SkippedLineResponse]


class SyllabusEncodeRequest(BaseModel):
    subjects: list[SyllabusSubjectSchema]


class SyllabusImportRequest(BaseModel):
    """Request body for importing an exported syllabus document."""

    semester_id: str
    document: dict[str, Any]


# =============================================================================
# HEALTH SCHEMAS
# =============================================================================


class HealthResponse(BaseModel):
    """Health check response."""

    status: str = "ok"
    version: str = "0.1.0"
    timestamp: str
