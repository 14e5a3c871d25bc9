"""Derived-state computation layer.

Modules:
- models: entities, coverage targets and derived value types
- progress: unit -> subject -> tracker completion roll-up
- coverage: test coverage rows -> covered topic names
- priority: countdown feed of upcoming tests
- syllabus: syllabus text codec and JSON document
- dashboard: recompute(now) over a tracker snapshot

Everything here is pure: no I/O, no clock reads, no shared state.
"""

from studytrack.core.coverage import resolve_coverage
from studytrack.core.dashboard import TrackerSnapshot, recompute
from studytrack.core.priority import (
    classify_urgency,
    format_countdown,
    rank_priority_tests,
)
from studytrack.core.progress import compute_progress
from studytrack.core.syllabus import decode_syllabus, encode_syllabus

__all__ = [
    "TrackerSnapshot",
    "classify_urgency",
    "compute_progress",
    "decode_syllabus",
    "encode_syllabus",
    "format_countdown",
    "rank_priority_tests",
    "recompute",
    "resolve_coverage",
]
