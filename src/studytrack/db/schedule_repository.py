"""Repository functions for tests and their coverage.

Tests store their scheduled instant as epoch milliseconds; coverage rows
store a nullable (unit_id, topic_id) pair that is converted to a coverage
target on read.
"""

from __future__ import annotations

import sqlite3
import uuid
from datetime import datetime, timezone

import structlog

from studytrack.core.dashboard import TrackerSnapshot
from studytrack.core.errors import NotFoundError, ValidationError
from studytrack.core.models import (
    CoverageTarget,
    Test,
    TestCoverage,
    TestType,
    TopicTarget,
    UnitTarget,
    coverage_target,
)
from studytrack.db.database import get_db, now_ms
from studytrack.db.tracker_repository import fetch_tracker_tree

logger = structlog.get_logger(__name__)


def to_epoch_ms(moment: datetime) -> int:
    """Aware datetime -> epoch millis (naive values are taken as local)."""
    return int(moment.timestamp() * 1000)


def from_epoch_ms(value: int) -> datetime:
    """Epoch millis -> aware datetime in the local timezone."""
    return datetime.fromtimestamp(value / 1000, tz=timezone.utc).astimezone()


def _row_to_test(row: sqlite3.Row) -> Test:
    return Test(
        id=row["id"],
        tracker_id=row["tracker_id"],
        name=row["name"],
        test_type=TestType.parse(row["test_type"]),
        scheduled_at=from_epoch_ms(row["scheduled_date"]),
        created_at=row["created_at"],
        updated_at=row["updated_at"],
    )


def _row_to_coverage(row: sqlite3.Row) -> TestCoverage:
    return TestCoverage(
        id=row["id"],
        test_id=row["test_id"],
        target=coverage_target(row["unit_id"], row["topic_id"]),
    )


def schedule_test(
    tracker_id: str,
    name: str,
    test_type: TestType | str,
    scheduled_at: datetime,
    coverage: list[CoverageTarget] | None = None,
) -> Test:
    """Create a test with its coverage rows.

    Args:
        tracker_id: Tracker the test belongs to.
        name: Test name.
        test_type: TestType or its string value.
        scheduled_at: Exam instant (see normalize_test_time).
        coverage: Units/topics the test examines.

    Raises:
        ValidationError: If the name is blank or the test type is unknown.
        NotFoundError: If the tracker does not exist.
    """
    name = name.strip()
    if not name:
        raise ValidationError("Test name must not be blank")

    if not isinstance(test_type, TestType):
        try:
            test_type = TestType(test_type)
        except ValueError:
            raise ValidationError(f"Invalid test type: {test_type!r}") from None

    now = now_ms()
    test = Test(
        id=str(uuid.uuid4()),
        tracker_id=tracker_id,
        name=name,
        test_type=test_type,
        scheduled_at=scheduled_at,
        created_at=now,
        updated_at=now,
    )
    rows = [
        TestCoverage(id=str(uuid.uuid4()), test_id=test.id, target=target)
        for target in (coverage or [])
    ]

    with get_db() as conn:
        if conn.execute("SELECT 1 FROM trackers WHERE id = ?", (tracker_id,)).fetchone() is None:
            raise NotFoundError("tracker", tracker_id)

        conn.execute(
            "INSERT INTO tests (id, tracker_id, name, test_type, scheduled_date, "
            "created_at, updated_at) VALUES (?, ?, ?, ?, ?, ?, ?)",
            (test.id, tracker_id, name, test_type.value, to_epoch_ms(scheduled_at), now, now),
        )
        conn.executemany(
            "INSERT INTO test_coverage (id, test_id, unit_id, topic_id) VALUES (?, ?, ?, ?)",
            [(r.id, r.test_id, r.unit_id, r.topic_id) for r in rows],
        )

    logger.info(
        "tests.scheduled",
        test_id=test.id,
        tracker_id=tracker_id,
        test_type=test_type.value,
        coverage_rows=len(rows),
    )
    return test


def get_test(test_id: str) -> Test | None:
    with get_db() as conn:
        row = conn.execute("SELECT * FROM tests WHERE id = ?", (test_id,)).fetchone()

    return _row_to_test(row) if row else None


def delete_test(test_id: str) -> bool:
    with get_db() as conn:
        cursor = conn.execute("DELETE FROM tests WHERE id = ?", (test_id,))

    return cursor.rowcount > 0


def fetch_tests(tracker_id: str) -> list[Test]:
    """Tests of a tracker, soonest first."""
    with get_db() as conn:
        rows = conn.execute(
            "SELECT * FROM tests WHERE tracker_id = ? ORDER BY scheduled_date ASC",
            (tracker_id,),
        ).fetchall()

    return [_row_to_test(row) for row in rows]


def fetch_coverage(test_id: str) -> list[TestCoverage]:
    """Coverage rows of one test, in insertion order."""
    with get_db() as conn:
        rows = conn.execute(
            "SELECT * FROM test_coverage WHERE test_id = ? ORDER BY rowid ASC",
            (test_id,),
        ).fetchall()

    return [_row_to_coverage(row) for row in rows]


def fetch_tracker_coverage(tracker_id: str) -> dict[str, list[TestCoverage]]:
    """Coverage rows of every test of a tracker, keyed by test id."""
    with get_db() as conn:
        rows = conn.execute(
            "SELECT c.* FROM test_coverage c JOIN tests t ON c.test_id = t.id "
            "WHERE t.tracker_id = ? ORDER BY c.rowid ASC",
            (tracker_id,),
        ).fetchall()

    coverage: dict[str, list[TestCoverage]] = {}
    for row in rows:
        cov = _row_to_coverage(row)
        coverage.setdefault(cov.test_id, []).append(cov)
    return coverage


def load_tracker_snapshot(tracker_id: str) -> TrackerSnapshot:
    """Fetch everything recompute() needs for one tracker."""
    return TrackerSnapshot(
        tracker_id=tracker_id,
        tree=fetch_tracker_tree(tracker_id),
        tests=fetch_tests(tracker_id),
        coverage_by_test=fetch_tracker_coverage(tracker_id),
    )


def parse_coverage_ids(
    unit_ids: list[str] | None = None,
    topic_ids: list[str] | None = None,
) -> list[CoverageTarget]:
    """Coverage targets from separate unit and topic id lists."""
    targets: list[CoverageTarget] = [UnitTarget(u) for u in (unit_ids or [])]
    targets.extend(TopicTarget(t) for t in (topic_ids or []))
    return targets
