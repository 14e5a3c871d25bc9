"""Fixtures for F1 tests - derived-state core."""

from datetime import datetime, timedelta, timezone

import pytest

from studytrack.core.models import (
    Subject,
    SubjectNode,
    Test,
    TestType,
    Topic,
    Unit,
    UnitNode,
)

NOW = datetime(2026, 10, 16, 12, 0, tzinfo=timezone.utc)


def _make_topic(topic_id: str, unit_id: str, name: str, completed: bool = False, order: int = 0) -> Topic:
    return Topic(id=topic_id, unit_id=unit_id, name=name, completed=completed, order=order)


def _make_test(test_id: str, delta: timedelta, name: str | None = None, tracker_id: str = "trk-1") -> Test:
    return Test(
        id=test_id,
        tracker_id=tracker_id,
        name=name or test_id,
        test_type=TestType.CLASS_TEST,
        scheduled_at=NOW + delta,
    )


@pytest.fixture
def now() -> datetime:
    return NOW


@pytest.fixture
def make_test():
    """Factory for tests scheduled a timedelta after NOW."""
    return _make_test


@pytest.fixture
def tree() -> list[SubjectNode]:
    """Math (3 topics, 2 done) and Physics (2 topics, 0 done, one empty unit)."""
    algebra = Unit(id="u-alg", subject_id="s-math", name="Algebra", order=0)
    geometry = Unit(id="u-geo", subject_id="s-math", name="Geometry", order=1)
    mechanics = Unit(id="u-mech", subject_id="s-phys", name="Mechanics", order=0)
    optics = Unit(id="u-opt", subject_id="s-phys", name="Optics", order=1)

    return [
        SubjectNode(
            subject=Subject(id="s-math", tracker_id="trk-1", name="Math"),
            units=[
                UnitNode(
                    unit=algebra,
                    topics=[
                        _make_topic("t-lin", "u-alg", "Linear", completed=True, order=0),
                        _make_topic("t-quad", "u-alg", "Quadratic", order=1),
                    ],
                ),
                UnitNode(
                    unit=geometry,
                    topics=[_make_topic("t-circ", "u-geo", "Circles", completed=True)],
                ),
            ],
        ),
        SubjectNode(
            subject=Subject(id="s-phys", tracker_id="trk-1", name="Physics"),
            units=[
                UnitNode(
                    unit=mechanics,
                    topics=[
                        _make_topic("t-newton", "u-mech", "Newton", order=0),
                        _make_topic("t-forces", "u-mech", "Forces", order=1),
                    ],
                ),
                UnitNode(unit=optics, topics=[]),
            ],
        ),
    ]
