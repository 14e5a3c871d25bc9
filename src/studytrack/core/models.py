"""Entity and derived-value types for the study tracker.

Base entities mirror the persisted rows. Derived values (progress, priority
feed entries) are rebuilt on every query and never stored.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Union

from studytrack.core.errors import InvalidCoverageError

# =============================================================================
# BASE ENTITIES
# =============================================================================


class TestType(str, Enum):
    """Kind of scheduled test."""

    __test__ = False

    LAB_PRACTICAL = "lab_practical"
    CLASS_TEST = "class_test"
    ISA = "isa"
    ESA = "esa"

    @classmethod
    def parse(cls, value: str) -> TestType:
        """Parse a stored value, falling back to class_test when unknown."""
        try:
            return cls(value)
        except ValueError:
            return cls.CLASS_TEST


@dataclass
class Semester:
    id: str
    name: str
    created_at: int = 0
    updated_at: int = 0


@dataclass
class Tracker:
    """Top-level study plan inside a semester."""

    id: str
    semester_id: str
    name: str
    description: str | None = None
    color: str | None = None
    total_subjects: int = 0
    total_units: int = 0
    total_topics: int = 0
    created_at: int = 0
    updated_at: int = 0


@dataclass
class Subject:
    id: str
    tracker_id: str
    name: str
    created_at: int = 0
    updated_at: int = 0


@dataclass
class Unit:
    id: str
    subject_id: str
    name: str
    order: int = 0
    created_at: int = 0
    updated_at: int = 0


@dataclass
class Topic:
    id: str
    unit_id: str
    name: str
    completed: bool = False
    order: int = 0
    created_at: int = 0
    updated_at: int = 0


@dataclass
class Test:
    """A scheduled test. scheduled_at is the exam instant (20:00 by default)."""

    __test__ = False

    id: str
    tracker_id: str
    name: str
    test_type: TestType
    scheduled_at: datetime
    created_at: int = 0
    updated_at: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "tracker_id": self.tracker_id,
            "name": self.name,
            "test_type": self.test_type.value,
            "scheduled_at": self.scheduled_at.isoformat(),
            "created_at": self.created_at,
            "updated_at": self.updated_at,
        }


# =============================================================================
# COVERAGE
# =============================================================================


@dataclass(frozen=True)
class UnitTarget:
    """Coverage of a whole unit."""

    unit_id: str


@dataclass(frozen=True)
class TopicTarget:
    """Coverage of a single topic."""

    topic_id: str


CoverageTarget = Union[UnitTarget, TopicTarget]


def coverage_target(unit_id: str | None, topic_id: str | None) -> CoverageTarget:
    """Build a coverage target from a nullable (unit_id, topic_id) pair.

    Raises:
        InvalidCoverageError: If both or neither of the ids are set.
    """
    if unit_id and not topic_id:
        return UnitTarget(unit_id)
    if topic_id and not unit_id:
        return TopicTarget(topic_id)
    raise InvalidCoverageError(unit_id, topic_id)


@dataclass
class TestCoverage:
    """Links a test to the unit or topic it examines."""

    __test__ = False

    id: str
    test_id: str
    target: CoverageTarget

    @property
    def unit_id(self) -> str | None:
        return self.target.unit_id if isinstance(self.target, UnitTarget) else None

    @property
    def topic_id(self) -> str | None:
        return self.target.topic_id if isinstance(self.target, TopicTarget) else None

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "test_id": self.test_id,
            "unit_id": self.unit_id,
            "topic_id": self.topic_id,
        }


# =============================================================================
# TREE
# =============================================================================


@dataclass
class UnitNode:
    """A unit with its topics in order."""

    unit: Unit
    topics: list[Topic] = field(default_factory=list)


@dataclass
class SubjectNode:
    """A subject with its units in order."""

    subject: Subject
    units: list[UnitNode] = field(default_factory=list)


TrackerTree = list[SubjectNode]


# =============================================================================
# DERIVED VALUES
# =============================================================================


def percentage(completed: int, total: int) -> float:
    """Completion percentage in [0, 100]; 0.0 for an empty set."""
    if total <= 0:
        return 0.0
    return completed / total * 100.0


@dataclass
class UnitProgress:
    unit_id: str
    unit_name: str
    total_topics: int
    completed_topics: int

    @property
    def percentage(self) -> float:
        return percentage(self.completed_topics, self.total_topics)

    def to_dict(self) -> dict[str, Any]:
        return {
            "unit_id": self.unit_id,
            "unit_name": self.unit_name,
            "total_topics": self.total_topics,
            "completed_topics": self.completed_topics,
            "percentage": self.percentage,
        }


@dataclass
class SubjectProgress:
    subject_id: str
    subject_name: str
    total_topics: int
    completed_topics: int
    units: list[UnitProgress] = field(default_factory=list)

    @property
    def percentage(self) -> float:
        return percentage(self.completed_topics, self.total_topics)

    def to_dict(self) -> dict[str, Any]:
        return {
            "subject_id": self.subject_id,
            "subject_name": self.subject_name,
            "total_topics": self.total_topics,
            "completed_topics": self.completed_topics,
            "percentage": self.percentage,
            "units": [u.to_dict() for u in self.units],
        }


@dataclass
class TrackerProgress:
    tracker_id: str
    total_topics: int = 0
    completed_topics: int = 0
    subjects: list[SubjectProgress] = field(default_factory=list)

    @property
    def percentage(self) -> float:
        return percentage(self.completed_topics, self.total_topics)

    def to_dict(self) -> dict[str, Any]:
        return {
            "tracker_id": self.tracker_id,
            "total_topics": self.total_topics,
            "completed_topics": self.completed_topics,
            "percentage": self.percentage,
            "subjects": [s.to_dict() for s in self.subjects],
        }


class Urgency(str, Enum):
    """Presentation hint for how close a test is."""

    CRITICAL = "critical"
    HIGH = "high"
    ELEVATED = "elevated"
    NORMAL = "normal"


@dataclass
class PriorityTest:
    """An upcoming test inside the alert window."""

    test: Test
    days_remaining: int
    time_remaining: str
    covered_topics: list[str]
    urgency: Urgency
    coverage: list[TestCoverage] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "test": self.test.to_dict(),
            "coverage": [c.to_dict() for c in self.coverage],
            "days_remaining": self.days_remaining,
            "time_remaining": self.time_remaining,
            "covered_topics": list(self.covered_topics),
            "urgency": self.urgency.value,
        }
