"""Tests for dashboard recomputation (F1)."""

from datetime import timedelta

from studytrack.core.dashboard import TrackerSnapshot, describe_test, recompute
from studytrack.core.models import TestCoverage, TopicTarget, UnitTarget


def _snapshot(tree, make_test):
    tests = [
        make_test("final", timedelta(days=30)),
        make_test("quiz", timedelta(days=1)),
        make_test("old", timedelta(days=-2)),
    ]
    coverage = {
        "quiz": [TestCoverage(id="c1", test_id="quiz", target=UnitTarget("u-geo"))],
        "final": [TestCoverage(id="c2", test_id="final", target=TopicTarget("t-gone"))],
    }
    return TrackerSnapshot(tracker_id="trk-1", tree=tree, tests=tests, coverage_by_test=coverage)


class TestRecompute:
    """Tests for recompute."""

    def test_builds_progress_and_feed(self, tree, make_test, now):
        dashboard = recompute(_snapshot(tree, make_test), now)
        assert dashboard.tracker_id == "trk-1"
        assert dashboard.progress.total_topics == 5
        assert dashboard.progress.completed_topics == 2
        assert [p.test.id for p in dashboard.priority_tests] == ["quiz"]
        assert dashboard.priority_tests[0].covered_topics == ["Circles"]
        assert dashboard.computed_at == now

    def test_all_tests_sorted(self, tree, make_test, now):
        dashboard = recompute(_snapshot(tree, make_test), now)
        assert [t.id for t in dashboard.all_tests] == ["old", "quiz", "final"]

    def test_custom_window(self, tree, make_test, now):
        dashboard = recompute(_snapshot(tree, make_test), now, window_days=30)
        assert [p.test.id for p in dashboard.priority_tests] == ["quiz", "final"]
        assert dashboard.priority_tests[1].covered_topics == []

    def test_deterministic(self, tree, make_test, now):
        """Same snapshot and instant give the same result."""
        snapshot = _snapshot(tree, make_test)
        assert recompute(snapshot, now).to_dict() == recompute(snapshot, now).to_dict()

    def test_later_instant_drops_passed_tests(self, tree, make_test, now):
        dashboard = recompute(_snapshot(tree, make_test), now + timedelta(days=2))
        assert dashboard.priority_tests == []

    def test_does_not_mutate_snapshot(self, tree, make_test, now):
        snapshot = _snapshot(tree, make_test)
        recompute(snapshot, now)
        assert [t.id for t in snapshot.tests] == ["final", "quiz", "old"]

    def test_empty_snapshot(self, now):
        dashboard = recompute(TrackerSnapshot(tracker_id="empty"), now)
        assert dashboard.progress.percentage == 0.0
        assert dashboard.all_tests == []
        assert dashboard.priority_tests == []

    def test_to_dict(self, tree, make_test, now):
        data = recompute(_snapshot(tree, make_test), now).to_dict()
        assert data["progress"]["total_topics"] == 5
        assert data["priority_tests"][0]["test"]["id"] == "quiz"
        assert data["computed_at"] == now.isoformat()


class TestDescribeTest:
    """Tests for describe_test."""

    def test_upcoming(self, tree, make_test, now):
        test = make_test("quiz", timedelta(days=10, hours=2))
        rows = [TestCoverage(id="c", test_id="quiz", target=UnitTarget("u-alg"))]
        details = describe_test(test, rows, tree, now)
        assert details.days_remaining == 10
        assert details.time_remaining == "10d 2h 0m"
        assert details.covered_topics == ["Linear", "Quadratic"]
        assert details.coverage == rows

    def test_passed(self, tree, make_test, now):
        details = describe_test(make_test("old", timedelta(hours=-5)), [], tree, now)
        assert details.time_remaining == "Test has passed"
        assert details.days_remaining < 0
