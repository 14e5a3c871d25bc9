"""Tests for the priority feed and countdown formatting (F1)."""

from datetime import date, datetime, timedelta, timezone

import pytest

from studytrack.core.models import TestCoverage, TopicTarget, UnitTarget, Urgency
from studytrack.core.priority import (
    PASSED_MESSAGE,
    as_local,
    classify_urgency,
    days_remaining,
    format_countdown,
    is_upcoming,
    normalize_test_time,
    rank_priority_tests,
)


class TestFormatCountdown:
    """Tests for format_countdown."""

    def test_days_hours_minutes(self, now):
        scheduled = now + timedelta(days=2, hours=5, minutes=30)
        assert format_countdown(scheduled, now) == "2d 5h 30m"

    def test_truncates_seconds(self, now):
        """Components are floored, never rounded."""
        scheduled = now + timedelta(hours=1, minutes=59, seconds=59)
        assert format_countdown(scheduled, now) == "0d 1h 59m"

    def test_under_a_minute(self, now):
        assert format_countdown(now + timedelta(seconds=59), now) == "0d 0h 0m"

    def test_passed(self, now):
        assert format_countdown(now - timedelta(hours=1), now) == PASSED_MESSAGE

    def test_exactly_now_is_passed(self, now):
        """At the scheduled instant the test counts as passed."""
        assert format_countdown(now, now) == "Test has passed"

    def test_large_day_count(self, now):
        assert format_countdown(now + timedelta(days=120, minutes=1), now) == "120d 0h 1m"

    def test_independent_of_timezone(self, now):
        """Same instants in different zones give the same countdown."""
        ist = timezone(timedelta(hours=5, minutes=30))
        scheduled = now + timedelta(days=1, hours=3)
        assert format_countdown(scheduled.astimezone(ist), now) == "1d 3h 0m"


class TestAsLocal:
    """Tests for as_local."""

    def test_naive_gets_local_zone(self):
        naive = datetime(2026, 10, 16, 12, 0)
        local = as_local(naive)
        assert local.tzinfo is not None
        assert local.replace(tzinfo=None) == naive

    def test_aware_unchanged(self, now):
        assert as_local(now) is now


class TestDaysRemaining:
    """Tests for days_remaining."""

    def test_floors_partial_days(self, now):
        assert days_remaining(now + timedelta(days=1, hours=23), now) == 1

    def test_same_day(self, now):
        assert days_remaining(now + timedelta(hours=3), now) == 0

    def test_negative_when_passed(self, now):
        assert days_remaining(now - timedelta(hours=1), now) == -1


class TestClassifyUrgency:
    """Tests for classify_urgency."""

    @pytest.mark.parametrize(
        ("days", "expected"),
        [
            (0, Urgency.CRITICAL),
            (1, Urgency.CRITICAL),
            (2, Urgency.HIGH),
            (3, Urgency.HIGH),
            (4, Urgency.ELEVATED),
            (7, Urgency.ELEVATED),
            (8, Urgency.NORMAL),
        ],
    )
    def test_levels(self, days, expected):
        assert classify_urgency(days) == expected


class TestNormalizeTestTime:
    """Tests for normalize_test_time."""

    def test_default_hour(self):
        scheduled = normalize_test_time(date(2026, 10, 20))
        assert scheduled.tzinfo is not None
        assert scheduled.date() == date(2026, 10, 20)
        assert (scheduled.hour, scheduled.minute, scheduled.second) == (20, 0, 0)

    def test_custom_hour(self):
        assert normalize_test_time(date(2026, 10, 20), hour=9).hour == 9

    def test_accepts_datetime(self):
        """A datetime is reduced to its date before applying the hour."""
        scheduled = normalize_test_time(datetime(2026, 10, 20, 7, 45))
        assert scheduled.date() == date(2026, 10, 20)
        assert (scheduled.hour, scheduled.minute) == (20, 0)


class TestIsUpcoming:
    def test_future(self, now):
        assert is_upcoming(now + timedelta(minutes=1), now)

    def test_now_is_not_upcoming(self, now):
        assert not is_upcoming(now, now)


class TestRankPriorityTests:
    """Tests for rank_priority_tests."""

    @pytest.fixture
    def tests(self, make_test):
        return [
            make_test("later", timedelta(days=5)),
            make_test("passed", timedelta(hours=-1)),
            make_test("soonest", timedelta(hours=1)),
            make_test("edge", timedelta(days=7, hours=12)),
            make_test("outside", timedelta(days=8)),
            make_test("soon", timedelta(days=2)),
        ]

    def test_filters_and_sorts(self, tests, now):
        """Only upcoming tests in the window, soonest first."""
        feed = rank_priority_tests(tests, now)
        assert [p.test.id for p in feed] == ["soonest", "soon", "later", "edge"]

    def test_window_is_inclusive(self, tests, now):
        """A test exactly window_days away is included."""
        feed = rank_priority_tests(tests, now, window_days=7)
        edge = next(p for p in feed if p.test.id == "edge")
        assert edge.days_remaining == 7

    def test_narrow_window(self, tests, now):
        feed = rank_priority_tests(tests, now, window_days=2)
        assert [p.test.id for p in feed] == ["soonest", "soon"]

    def test_zero_window_keeps_same_day(self, tests, now):
        feed = rank_priority_tests(tests, now, window_days=0)
        assert [p.test.id for p in feed] == ["soonest"]

    def test_excludes_passed(self, tests, now):
        assert all(p.test.id != "passed" for p in rank_priority_tests(tests, now))

    def test_excludes_test_at_now(self, make_test, now):
        assert rank_priority_tests([make_test("now", timedelta(0))], now) == []

    def test_entries_carry_countdown_and_urgency(self, tests, now):
        feed = rank_priority_tests(tests, now)
        soonest = feed[0]
        assert soonest.days_remaining == 0
        assert soonest.time_remaining == "0d 1h 0m"
        assert soonest.urgency == Urgency.CRITICAL
        assert feed[1].urgency == Urgency.HIGH
        assert feed[2].urgency == Urgency.ELEVATED

    def test_invariants(self, tests, now):
        """Every entry is upcoming, inside the window, and sorted."""
        window = 7
        feed = rank_priority_tests(tests, now, window_days=window)
        for entry in feed:
            assert entry.test.scheduled_at > now
            assert 0 <= entry.days_remaining <= window
            assert entry.time_remaining != PASSED_MESSAGE
        instants = [p.test.scheduled_at for p in feed]
        assert instants == sorted(instants)

    def test_covered_topics_resolved(self, make_test, tree, now):
        test = make_test("quiz", timedelta(days=1))
        coverage = {
            "quiz": [
                TestCoverage(id="c1", test_id="quiz", target=TopicTarget("t-circ")),
                TestCoverage(id="c2", test_id="quiz", target=UnitTarget("u-alg")),
            ]
        }
        feed = rank_priority_tests([test], now, coverage_by_test=coverage, tree=tree)
        assert feed[0].covered_topics == ["Circles", "Linear", "Quadratic"]
        assert len(feed[0].coverage) == 2

    def test_without_coverage(self, make_test, now):
        feed = rank_priority_tests([make_test("quiz", timedelta(days=1))], now)
        assert feed[0].covered_topics == []

    def test_empty(self, now):
        assert rank_priority_tests([], now) == []

    def test_feed_shrinks_as_time_passes(self, tests, now):
        """Later `now` never adds tests that already passed."""
        early = {p.test.id for p in rank_priority_tests(tests, now)}
        late = {p.test.id for p in rank_priority_tests(tests, now + timedelta(days=3))}
        assert "soonest" in early and "soonest" not in late
        assert "soon" not in late

    def test_to_dict(self, tests, now):
        data = rank_priority_tests(tests, now)[0].to_dict()
        assert data["test"]["id"] == "soonest"
        assert data["urgency"] == "critical"
        assert data["time_remaining"] == "0d 1h 0m"
