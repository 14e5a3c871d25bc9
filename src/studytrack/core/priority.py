"""Priority ranking of upcoming tests.

Turns the tests of a tracker into a countdown feed: upcoming tests inside
the alert window, soonest first, each with its remaining time, urgency and
covered topics. Nothing here reads the clock; callers pass `now` and decide
how often to refresh.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from datetime import date, datetime, time, timedelta

from studytrack.core.coverage import TreeIndex, resolve_coverage
from studytrack.core.models import (
    PriorityTest,
    SubjectNode,
    Test,
    TestCoverage,
    Urgency,
)

DEFAULT_WINDOW_DAYS = 7
DEFAULT_TEST_HOUR = 20
PASSED_MESSAGE = "Test has passed"

_ONE_DAY = timedelta(days=1)
_ONE_MINUTE = timedelta(minutes=1)


def normalize_test_time(day: date, hour: int = DEFAULT_TEST_HOUR) -> datetime:
    """Scheduled instant for a test held on `day`, at `hour`:00 local time.

    Returns:
        Timezone-aware datetime in the local timezone.
    """
    if isinstance(day, datetime):
        day = day.date()
    return datetime.combine(day, time(hour=hour)).astimezone()


def as_local(moment: datetime) -> datetime:
    """Attach the local timezone to a naive datetime; aware values pass through."""
    if moment.tzinfo is None:
        return moment.astimezone()
    return moment


def days_remaining(scheduled_at: datetime, now: datetime) -> int:
    """Whole days until the test, floored (negative once it has passed)."""
    return (scheduled_at - now) // _ONE_DAY


def format_countdown(scheduled_at: datetime, now: datetime) -> str:
    """Format the time left as "{d}d {h}h {m}m".

    Components are floor-truncated. Returns "Test has passed" once the
    scheduled instant is reached.
    """
    diff = scheduled_at - now
    if diff <= timedelta(0):
        return PASSED_MESSAGE

    minutes = diff // _ONE_MINUTE
    days, minutes = divmod(minutes, 24 * 60)
    hours, minutes = divmod(minutes, 60)
    return f"{days}d {hours}h {minutes}m"


def classify_urgency(days: int) -> Urgency:
    """Map days remaining to an urgency level."""
    if days <= 1:
        return Urgency.CRITICAL
    if days <= 3:
        return Urgency.HIGH
    if days <= 7:
        return Urgency.ELEVATED
    return Urgency.NORMAL


def is_upcoming(scheduled_at: datetime, now: datetime) -> bool:
    """True while the scheduled instant is still strictly ahead of now."""
    return scheduled_at - now > timedelta(0)


def rank_priority_tests(
    tests: Iterable[Test],
    now: datetime,
    window_days: int = DEFAULT_WINDOW_DAYS,
    coverage_by_test: Mapping[str, list[TestCoverage]] | None = None,
    tree: Iterable[SubjectNode] | None = None,
) -> list[PriorityTest]:
    """Build the priority feed for a tracker.

    A test is included when it is still upcoming and its days remaining is
    at most `window_days` (inclusive). The feed is sorted by scheduled
    instant, ascending.

    Args:
        tests: All tests of the tracker.
        now: Current instant.
        window_days: Size of the alert window in days.
        coverage_by_test: Coverage rows keyed by test id.
        tree: Tracker tree used to resolve coverage into topic names.

    Returns:
        List of PriorityTest entries.
    """
    coverage_by_test = coverage_by_test or {}
    index = TreeIndex(tree or [])

    feed: list[PriorityTest] = []
    for test in tests:
        if not is_upcoming(test.scheduled_at, now):
            continue

        days = days_remaining(test.scheduled_at, now)
        if days > window_days:
            continue

        rows = list(coverage_by_test.get(test.id, []))
        feed.append(
            PriorityTest(
                test=test,
                days_remaining=days,
                time_remaining=format_countdown(test.scheduled_at, now),
                covered_topics=resolve_coverage(rows, index),
                urgency=classify_urgency(days),
                coverage=rows,
            )
        )

    feed.sort(key=lambda p: p.test.scheduled_at)
    return feed
