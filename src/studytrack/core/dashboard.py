"""Dashboard recomputation.

`recompute` is the single entry point a presentation layer calls to refresh
a tracker view: it rebuilds progress and the priority feed from a snapshot
of base entities. It holds no state between calls; periodic refresh is
driven by the caller's own timer.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from studytrack.core.coverage import resolve_coverage
from studytrack.core.models import (
    PriorityTest,
    SubjectNode,
    Test,
    TestCoverage,
    TrackerProgress,
)
from studytrack.core.priority import (
    DEFAULT_WINDOW_DAYS,
    days_remaining,
    format_countdown,
    rank_priority_tests,
)
from studytrack.core.progress import compute_progress


@dataclass
class TrackerSnapshot:
    """Base entities of one tracker, as fetched from persistence."""

    tracker_id: str
    tree: list[SubjectNode] = field(default_factory=list)
    tests: list[Test] = field(default_factory=list)
    coverage_by_test: dict[str, list[TestCoverage]] = field(default_factory=dict)


@dataclass
class TrackerDashboard:
    tracker_id: str
    progress: TrackerProgress
    all_tests: list[Test]
    priority_tests: list[PriorityTest]
    computed_at: datetime

    def to_dict(self) -> dict[str, Any]:
        return {
            "tracker_id": self.tracker_id,
            "progress": self.progress.to_dict(),
            "all_tests": [t.to_dict() for t in self.all_tests],
            "priority_tests": [p.to_dict() for p in self.priority_tests],
            "computed_at": self.computed_at.isoformat(),
        }


@dataclass
class TestDetails:
    """A single test with its resolved coverage and countdown."""

    __test__ = False

    test: Test
    coverage: list[TestCoverage]
    covered_topics: list[str]
    days_remaining: int
    time_remaining: str


def recompute(
    snapshot: TrackerSnapshot,
    now: datetime,
    window_days: int = DEFAULT_WINDOW_DAYS,
) -> TrackerDashboard:
    """Rebuild all derived values of a tracker for the instant `now`."""
    return TrackerDashboard(
        tracker_id=snapshot.tracker_id,
        progress=compute_progress(snapshot.tree, tracker_id=snapshot.tracker_id),
        all_tests=sorted(snapshot.tests, key=lambda t: t.scheduled_at),
        priority_tests=rank_priority_tests(
            snapshot.tests,
            now,
            window_days=window_days,
            coverage_by_test=snapshot.coverage_by_test,
            tree=snapshot.tree,
        ),
        computed_at=now,
    )


def describe_test(
    test: Test,
    coverage: list[TestCoverage],
    tree: list[SubjectNode],
    now: datetime,
) -> TestDetails:
    """Details of one test regardless of the alert window."""
    return TestDetails(
        test=test,
        coverage=list(coverage),
        covered_topics=resolve_coverage(coverage, tree),
        days_remaining=days_remaining(test.scheduled_at, now),
        time_remaining=format_countdown(test.scheduled_at, now),
    )
