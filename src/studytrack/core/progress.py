"""Progress aggregation.

Rolls topic completion up through unit -> subject -> tracker. Only counts
matter, so the result does not depend on unit or topic order.
"""

from __future__ import annotations

from studytrack.core.models import (
    SubjectNode,
    SubjectProgress,
    TrackerProgress,
    UnitNode,
    UnitProgress,
)


def compute_unit_progress(node: UnitNode) -> UnitProgress:
    """Count total and completed topics of a single unit."""
    return UnitProgress(
        unit_id=node.unit.id,
        unit_name=node.unit.name,
        total_topics=len(node.topics),
        completed_topics=sum(1 for t in node.topics if t.completed),
    )


def compute_subject_progress(node: SubjectNode) -> SubjectProgress:
    """Sum unit progress into a subject record."""
    units = [compute_unit_progress(u) for u in node.units]
    return SubjectProgress(
        subject_id=node.subject.id,
        subject_name=node.subject.name,
        total_topics=sum(u.total_topics for u in units),
        completed_topics=sum(u.completed_topics for u in units),
        units=units,
    )


def compute_progress(
    tree: list[SubjectNode],
    tracker_id: str = "",
) -> TrackerProgress:
    """Compute hierarchical progress for a tracker tree.

    Args:
        tree: Subjects with their units and topics.
        tracker_id: Tracker the tree belongs to (echoed in the result).

    Returns:
        TrackerProgress with per-subject and per-unit breakdowns. An empty
        tree yields zero counts and a 0.0 percentage.
    """
    subjects = [compute_subject_progress(s) for s in tree]
    return TrackerProgress(
        tracker_id=tracker_id,
        total_topics=sum(s.total_topics for s in subjects),
        completed_topics=sum(s.completed_topics for s in subjects),
        subjects=subjects,
    )
