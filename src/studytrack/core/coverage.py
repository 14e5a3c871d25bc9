"""Test coverage resolution.

Expands a test's coverage rows into the topic names it examines. Coverage
rows are historical references and may outlive the unit or topic they point
at; such rows contribute nothing.
"""

from __future__ import annotations

from collections.abc import Iterable

import structlog

from studytrack.core.errors import DanglingReferenceError
from studytrack.core.models import (
    SubjectNode,
    TestCoverage,
    Topic,
    TopicTarget,
    UnitNode,
    UnitTarget,
)

logger = structlog.get_logger(__name__)


class TreeIndex:
    """Id lookups over a tracker tree."""

    def __init__(self, tree: Iterable[SubjectNode]):
        self.units: dict[str, UnitNode] = {}
        self.topics: dict[str, Topic] = {}
        for subject in tree:
            for unit_node in subject.units:
                self.units[unit_node.unit.id] = unit_node
                for topic in unit_node.topics:
                    self.topics[topic.id] = topic

    def topic_names(self, row: TestCoverage) -> list[str]:
        """Topic names one coverage row stands for.

        Raises:
            DanglingReferenceError: If the referenced unit or topic is gone.
        """
        target = row.target
        if isinstance(target, UnitTarget):
            unit_node = self.units.get(target.unit_id)
            if unit_node is None:
                raise DanglingReferenceError("unit", target.unit_id)
            return [t.name for t in unit_node.topics]
        if isinstance(target, TopicTarget):
            topic = self.topics.get(target.topic_id)
            if topic is None:
                raise DanglingReferenceError("topic", target.topic_id)
            return [topic.name]
        raise TypeError(f"Unknown coverage target: {target!r}")


def resolve_coverage(
    coverage_rows: Iterable[TestCoverage],
    tree: Iterable[SubjectNode] | TreeIndex,
) -> list[str]:
    """Resolve coverage rows to a deduplicated list of topic names.

    Names keep the position of their first occurrence. A unit row expands to
    its topics in unit order.

    Args:
        coverage_rows: Coverage rows of one test.
        tree: Tracker tree, or a prebuilt TreeIndex when resolving many tests.

    Returns:
        Topic names covered by the test.
    """
    index = tree if isinstance(tree, TreeIndex) else TreeIndex(tree)

    seen: set[str] = set()
    names: list[str] = []
    for row in coverage_rows:
        try:
            row_names = index.topic_names(row)
        except DanglingReferenceError as e:
            logger.debug(
                "coverage.dangling",
                coverage_id=row.id,
                test_id=row.test_id,
                kind=e.kind,
                target_id=e.target_id,
            )
            continue

        for name in row_names:
            if name not in seen:
                seen.add(name)
                names.append(name)

    return names
