"""Repository functions for semesters, trackers and the syllabus tree.

Provides CRUD for semesters, trackers, subjects, units and topics, the
tracker tree fetch consumed by the computation layer, and syllabus
import/export.
"""

from __future__ import annotations

import sqlite3
import uuid

import structlog

from studytrack.core.errors import EmptySyllabusError, NotFoundError, ValidationError
from studytrack.core.models import (
    Semester,
    Subject,
    SubjectNode,
    Topic,
    Tracker,
    Unit,
    UnitNode,
)
from studytrack.core.syllabus import (
    DELIMITER,
    TOPIC_SEPARATOR,
    SyllabusDocument,
    SyllabusSubject,
    decode_syllabus_report,
    encode_syllabus,
    tree_to_syllabus,
)
from studytrack.db.database import get_db, now_ms

logger = structlog.get_logger(__name__)


def _new_id() -> str:
    return str(uuid.uuid4())


_ID_TABLES = {
    "semester": "semesters",
    "tracker": "trackers",
    "subject": "subjects",
    "unit": "units",
    "topic": "topics",
    "test": "tests",
}


def list_ids(kind: str) -> list[str]:
    """All ids of one entity kind (for prefix resolution)."""
    table = _ID_TABLES[kind]
    with get_db() as conn:
        rows = conn.execute(f"SELECT id FROM {table}").fetchall()

    return [row[0] for row in rows]


def _require_name(name: str, kind: str) -> str:
    cleaned = name.strip()
    if not cleaned:
        raise ValidationError(f"{kind.capitalize()} name must not be blank")
    return cleaned


def _require_tree_name(name: str, kind: str) -> str:
    """Names in the syllabus tree must survive a text export."""
    cleaned = _require_name(name, kind)
    if DELIMITER in cleaned:
        raise ValidationError(f"{kind.capitalize()} name must not contain '{DELIMITER}'")
    if kind == "topic" and TOPIC_SEPARATOR in cleaned:
        raise ValidationError(f"Topic name must not contain '{TOPIC_SEPARATOR}'")
    return cleaned


# =============================================================================


def create_semester(name: str) -> Semester:
    """Create a semester.

    Raises:
        ValidationError: If the name is blank.
    """
    now = now_ms()
    semester = Semester(
        id=_new_id(), name=_require_name(name, "semester"), created_at=now, updated_at=now
    )

    with get_db() as conn:
        conn.execute(
            "INSERT INTO semesters (id, name, created_at, updated_at) VALUES (?, ?, ?, ?)",
            (semester.id, semester.name, semester.created_at, semester.updated_at),
        )

    logger.debug("semesters.inserted", semester_id=semester.id)
    return semester


def list_semesters() -> list[Semester]:
    """All semesters, newest first."""
    with get_db() as conn:
        rows = conn.execute(
            "SELECT * FROM semesters ORDER BY created_at DESC, rowid DESC"
        ).fetchall()

    return [Semester(**dict(row)) for row in rows]


def get_semester(semester_id: str) -> Semester | None:
    with get_db() as conn:
        row = conn.execute(
            "SELECT * FROM semesters WHERE id = ?", (semester_id,)
        ).fetchone()

    return Semester(**dict(row)) if row else None


def delete_semester(semester_id: str) -> bool:
    """Delete a semester and, by cascade, its trackers.

    Returns:
        True if a semester was deleted.
    """
    with get_db() as conn:
        cursor = conn.execute("DELETE FROM semesters WHERE id = ?", (semester_id,))

    deleted = cursor.rowcount > 0
    logger.info("semesters.deleted", semester_id=semester_id, deleted=deleted)
    return deleted


# =============================================================================
# TRACKERS
# =============================================================================


def _row_to_tracker(row: sqlite3.Row) -> Tracker:
    return Tracker(**dict(row))


def _insert_tracker(
    conn: sqlite3.Connection,
    semester_id: str,
    name: str,
    description: str | None,
    color: str | None,
    now: int,
) -> str:
    if conn.execute("SELECT 1 FROM semesters WHERE id = ?", (semester_id,)).fetchone() is None:
        raise NotFoundError("semester", semester_id)

    tracker_id = _new_id()
    conn.execute(
        """
        INSERT INTO trackers (
            id, semester_id, name, description, color,
            total_subjects, total_units, total_topics, created_at, updated_at
        ) VALUES (?, ?, ?, ?, ?, 0, 0, 0, ?, ?)
        """,
        (tracker_id, semester_id, name, description, color, now, now),
    )
    return tracker_id


def _insert_syllabus(
    conn: sqlite3.Connection,
    tracker_id: str,
    subjects: list[SyllabusSubject],
    now: int,
) -> None:
    """Insert a name tree under a tracker, skipping blank names."""
    for subject in subjects:
        subject_name = subject.name.strip()
        if not subject_name:
            continue

        subject_id = _new_id()
        conn.execute(
            "INSERT INTO subjects (id, tracker_id, name, created_at, updated_at) "
            "VALUES (?, ?, ?, ?, ?)",
            (subject_id, tracker_id, subject_name, now, now),
        )

        unit_names = [u for u in subject.units if u.name.strip()]
        for unit_order, unit in enumerate(unit_names):
            unit_id = _new_id()
            conn.execute(
                'INSERT INTO units (id, subject_id, name, "order", created_at, updated_at) '
                "VALUES (?, ?, ?, ?, ?, ?)",
                (unit_id, subject_id, unit.name.strip(), unit_order, now, now),
            )

            topic_names = [t.strip() for t in unit.topics if t.strip()]
            conn.executemany(
                'INSERT INTO topics (id, unit_id, name, completed, "order", created_at, updated_at) '
                "VALUES (?, ?, ?, 0, ?, ?, ?)",
                [
                    (_new_id(), unit_id, topic, topic_order, now, now)
                    for topic_order, topic in enumerate(topic_names)
                ],
            )


def _refresh_statistics(conn: sqlite3.Connection, tracker_id: str, now: int) -> None:
    subject_count = conn.execute(
        "SELECT COUNT(*) FROM subjects WHERE tracker_id = ?", (tracker_id,)
    ).fetchone()[0]
    unit_count = conn.execute(
        "SELECT COUNT(*) FROM units u JOIN subjects s ON u.subject_id = s.id "
        "WHERE s.tracker_id = ?",
        (tracker_id,),
    ).fetchone()[0]
    topic_count = conn.execute(
        "SELECT COUNT(*) FROM topics t JOIN units u ON t.unit_id = u.id "
        "JOIN subjects s ON u.subject_id = s.id WHERE s.tracker_id = ?",
        (tracker_id,),
    ).fetchone()[0]

    conn.execute(
        "UPDATE trackers SET total_subjects = ?, total_units = ?, total_topics = ?, "
        "updated_at = ? WHERE id = ?",
        (subject_count, unit_count, topic_count, now, tracker_id),
    )


def refresh_tracker_statistics(tracker_id: str) -> None:
    """Recount subjects, units and topics of a tracker."""
    with get_db() as conn:
        _refresh_statistics(conn, tracker_id, now_ms())


def _create_tracker_with_subjects(
    semester_id: str,
    name: str,
    subjects: list[SyllabusSubject],
    description: str | None,
    color: str | None,
) -> Tracker:
    now = now_ms()
    with get_db() as conn:
        tracker_id = _insert_tracker(conn, semester_id, name, description, color, now)
        _insert_syllabus(conn, tracker_id, subjects, now)
        _refresh_statistics(conn, tracker_id, now)
        row = conn.execute("SELECT * FROM trackers WHERE id = ?", (tracker_id,)).fetchone()

    tracker = _row_to_tracker(row)
    logger.info(
        "trackers.created",
        tracker_id=tracker.id,
        subjects=tracker.total_subjects,
        units=tracker.total_units,
        topics=tracker.total_topics,
    )
    return tracker


def create_tracker(
    semester_id: str,
    name: str,
    syllabus_text: str,
    description: str | None = None,
    color: str | None = None,
) -> Tracker:
    """Create a tracker and its subjects/units/topics from syllabus text.

    Malformed syllabus lines are skipped.

    Raises:
        ValidationError: If the tracker name is blank.
        EmptySyllabusError: If no line of the syllabus could be used.
        NotFoundError: If the semester does not exist.
    """
    name = _require_name(name, "tracker")
    result = decode_syllabus_report(syllabus_text)
    if not result.subjects:
        raise EmptySyllabusError(skipped=len(result.skipped))

    if result.skipped:
        logger.info("trackers.syllabus_lines_skipped", count=len(result.skipped))

    return _create_tracker_with_subjects(
        semester_id, name, result.subjects, description, color
    )


def import_syllabus_document(semester_id: str, document: SyllabusDocument) -> Tracker:
    """Create a tracker from an exported syllabus document.

    Raises:
        NotFoundError: If the semester does not exist.
    """
    return _create_tracker_with_subjects(
        semester_id,
        _require_name(document.name, "tracker"),
        document.subjects,
        document.description,
        document.color,
    )


def get_tracker(tracker_id: str) -> Tracker | None:
    with get_db() as conn:
        row = conn.execute("SELECT * FROM trackers WHERE id = ?", (tracker_id,)).fetchone()

    return _row_to_tracker(row) if row else None


def require_tracker(tracker_id: str) -> Tracker:
    """Get a tracker or raise NotFoundError."""
    tracker = get_tracker(tracker_id)
    if tracker is None:
        raise NotFoundError("tracker", tracker_id)
    return tracker


def list_trackers(semester_id: str | None = None) -> list[Tracker]:
    """Trackers of a semester (or all), newest first."""
    query = "SELECT * FROM trackers"
    params: tuple[str, ...] = ()
    if semester_id is not None:
        query += " WHERE semester_id = ?"
        params = (semester_id,)
    query += " ORDER BY created_at DESC, rowid DESC"

    with get_db() as conn:
        rows = conn.execute(query, params).fetchall()

    return [_row_to_tracker(row) for row in rows]


def delete_tracker(tracker_id: str) -> bool:
    with get_db() as conn:
        cursor = conn.execute("DELETE FROM trackers WHERE id = ?", (tracker_id,))

    deleted = cursor.rowcount > 0
    logger.info("trackers.deleted", tracker_id=tracker_id, deleted=deleted)
    return deleted


# =============================================================================
# SUBJECTS / UNITS / TOPICS
# =============================================================================


def _tracker_of(conn: sqlite3.Connection, query: str, entity_id: str) -> str | None:
    row = conn.execute(query, (entity_id,)).fetchone()
    return row[0] if row else None


_TRACKER_OF_SUBJECT = "SELECT tracker_id FROM subjects WHERE id = ?"
_TRACKER_OF_UNIT = (
    "SELECT s.tracker_id FROM units u JOIN subjects s ON u.subject_id = s.id WHERE u.id = ?"
)
_TRACKER_OF_TOPIC = (
    "SELECT s.tracker_id FROM topics t JOIN units u ON t.unit_id = u.id "
    "JOIN subjects s ON u.subject_id = s.id WHERE t.id = ?"
)


def create_subject(tracker_id: str, name: str) -> Subject:
    """Add an empty subject to a tracker.

    Raises:
        ValidationError: If the name is blank.
        NotFoundError: If the tracker does not exist.
    """
    name = _require_tree_name(name, "subject")
    now = now_ms()
    subject = Subject(id=_new_id(), tracker_id=tracker_id, name=name, created_at=now, updated_at=now)

    with get_db() as conn:
        if conn.execute("SELECT 1 FROM trackers WHERE id = ?", (tracker_id,)).fetchone() is None:
            raise NotFoundError("tracker", tracker_id)
        conn.execute(
            "INSERT INTO subjects (id, tracker_id, name, created_at, updated_at) "
            "VALUES (?, ?, ?, ?, ?)",
            (subject.id, tracker_id, name, now, now),
        )
        _refresh_statistics(conn, tracker_id, now)

    logger.debug("subjects.inserted", subject_id=subject.id, tracker_id=tracker_id)
    return subject


def rename_subject(subject_id: str, name: str) -> None:
    name = _require_tree_name(name, "subject")
    with get_db() as conn:
        cursor = conn.execute(
            "UPDATE subjects SET name = ?, updated_at = ? WHERE id = ?",
            (name, now_ms(), subject_id),
        )
        if cursor.rowcount == 0:
            raise NotFoundError("subject", subject_id)


def delete_subject(subject_id: str) -> bool:
    """Delete a subject with its units and topics.

    Coverage rows pointing at the removed units/topics are kept.
    """
    with get_db() as conn:
        tracker_id = _tracker_of(conn, _TRACKER_OF_SUBJECT, subject_id)
        if tracker_id is None:
            return False
        conn.execute("DELETE FROM subjects WHERE id = ?", (subject_id,))
        _refresh_statistics(conn, tracker_id, now_ms())

    logger.info("subjects.deleted", subject_id=subject_id)
    return True


def create_unit(subject_id: str, name: str) -> Unit:
    """Append a unit to a subject (order = last + 1)."""
    name = _require_tree_name(name, "unit")
    now = now_ms()

    with get_db() as conn:
        tracker_id = _tracker_of(conn, _TRACKER_OF_SUBJECT, subject_id)
        if tracker_id is None:
            raise NotFoundError("subject", subject_id)
        order = conn.execute(
            'SELECT COALESCE(MAX("order"), -1) + 1 FROM units WHERE subject_id = ?',
            (subject_id,),
        ).fetchone()[0]
        unit = Unit(id=_new_id(), subject_id=subject_id, name=name, order=order,
                    created_at=now, updated_at=now)
        conn.execute(
            'INSERT INTO units (id, subject_id, name, "order", created_at, updated_at) '
            "VALUES (?, ?, ?, ?, ?, ?)",
            (unit.id, subject_id, name, order, now, now),
        )
        _refresh_statistics(conn, tracker_id, now)

    logger.debug("units.inserted", unit_id=unit.id, subject_id=subject_id)
    return unit


def _row_to_topic(row: sqlite3.Row) -> Topic:
    data = dict(row)
    data["completed"] = bool(data["completed"])
    return Topic(**data)


def create_topic(unit_id: str, name: str) -> Topic:
    """Append a topic to a unit (order = last + 1)."""
    name = _require_tree_name(name, "topic")
    now = now_ms()

    with get_db() as conn:
        tracker_id = _tracker_of(conn, _TRACKER_OF_UNIT, unit_id)
        if tracker_id is None:
            raise NotFoundError("unit", unit_id)
        order = conn.execute(
            'SELECT COALESCE(MAX("order"), -1) + 1 FROM topics WHERE unit_id = ?',
            (unit_id,),
        ).fetchone()[0]
        topic = Topic(id=_new_id(), unit_id=unit_id, name=name, completed=False,
                      order=order, created_at=now, updated_at=now)
        conn.execute(
            'INSERT INTO topics (id, unit_id, name, completed, "order", created_at, updated_at) '
            "VALUES (?, ?, ?, 0, ?, ?, ?)",
            (topic.id, unit_id, name, order, now, now),
        )
        _refresh_statistics(conn, tracker_id, now)

    logger.debug("topics.inserted", topic_id=topic.id, unit_id=unit_id)
    return topic


def get_topic(topic_id: str) -> Topic | None:
    with get_db() as conn:
        row = conn.execute("SELECT * FROM topics WHERE id = ?", (topic_id,)).fetchone()

    return _row_to_topic(row) if row else None


def rename_topic(topic_id: str, name: str) -> None:
    name = _require_tree_name(name, "topic")
    with get_db() as conn:
        cursor = conn.execute(
            "UPDATE topics SET name = ?, updated_at = ? WHERE id = ?",
            (name, now_ms(), topic_id),
        )
        if cursor.rowcount == 0:
            raise NotFoundError("topic", topic_id)


def delete_topic(topic_id: str) -> bool:
    with get_db() as conn:
        tracker_id = _tracker_of(conn, _TRACKER_OF_TOPIC, topic_id)
        if tracker_id is None:
            return False
        conn.execute("DELETE FROM topics WHERE id = ?", (topic_id,))
        _refresh_statistics(conn, tracker_id, now_ms())

    logger.info("topics.deleted", topic_id=topic_id)
    return True


def toggle_topic(topic_id: str) -> Topic | None:
    """Flip a topic's completion flag.

    Returns:
        The updated topic, or None if it does not exist.
    """
    now = now_ms()
    with get_db() as conn:
        row = conn.execute("SELECT * FROM topics WHERE id = ?", (topic_id,)).fetchone()
        if row is None:
            return None
        topic = _row_to_topic(row)
        topic.completed = not topic.completed
        topic.updated_at = now
        conn.execute(
            "UPDATE topics SET completed = ?, updated_at = ? WHERE id = ?",
            (int(topic.completed), now, topic_id),
        )

    logger.debug("topics.toggled", topic_id=topic_id, completed=topic.completed)
    return topic


# =============================================================================
# TREE
# =============================================================================


def fetch_tracker_tree(tracker_id: str) -> list[SubjectNode]:
    """Subjects of a tracker with their units and topics, in order."""
    with get_db() as conn:
        subject_rows = conn.execute(
            "SELECT * FROM subjects WHERE tracker_id = ? ORDER BY created_at ASC, rowid ASC",
            (tracker_id,),
        ).fetchall()
        unit_rows = conn.execute(
            'SELECT u.* FROM units u JOIN subjects s ON u.subject_id = s.id '
            'WHERE s.tracker_id = ? ORDER BY u."order" ASC',
            (tracker_id,),
        ).fetchall()
        topic_rows = conn.execute(
            'SELECT t.* FROM topics t JOIN units u ON t.unit_id = u.id '
            'JOIN subjects s ON u.subject_id = s.id '
            'WHERE s.tracker_id = ? ORDER BY t."order" ASC',
            (tracker_id,),
        ).fetchall()

    topics_by_unit: dict[str, list[Topic]] = {}
    for row in topic_rows:
        topic = _row_to_topic(row)
        topics_by_unit.setdefault(topic.unit_id, []).append(topic)

    units_by_subject: dict[str, list[UnitNode]] = {}
    for row in unit_rows:
        unit = Unit(**dict(row))
        units_by_subject.setdefault(unit.subject_id, []).append(
            UnitNode(unit=unit, topics=topics_by_unit.get(unit.id, []))
        )

    return [
        SubjectNode(subject=subject, units=units_by_subject.get(subject.id, []))
        for subject in (Subject(**dict(row)) for row in subject_rows)
    ]


# =============================================================================
# SYLLABUS EXPORT
# =============================================================================


def export_syllabus_text(tracker_id: str) -> str:
    """Tracker tree as syllabus text.

    Raises:
        NotFoundError: If the tracker does not exist.
    """
    require_tracker(tracker_id)
    return encode_syllabus(tree_to_syllabus(fetch_tracker_tree(tracker_id)))


def export_syllabus_document(tracker_id: str) -> SyllabusDocument:
    """Tracker metadata and tree as a syllabus document.

    Raises:
        NotFoundError: If the tracker does not exist.
    """
    tracker = require_tracker(tracker_id)
    return SyllabusDocument(
        name=tracker.name,
        description=tracker.description,
        color=tracker.color,
        subjects=tree_to_syllabus(fetch_tracker_tree(tracker_id)),
    )
