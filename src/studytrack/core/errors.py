"""Exception hierarchy for the study tracker.

ValidationError and DanglingReferenceError are raised inside the core and
recovered there (skipped line, excluded coverage row). The remaining errors
reach the CLI and web layers, which turn them into messages or HTTP codes.
"""

from __future__ import annotations


class StudyTrackError(Exception):
    """Base error for the study tracker."""


class ValidationError(StudyTrackError):
    """Raised when input violates a structural rule (blank name, bad line)."""


class InvalidCoverageError(ValidationError):
    """Raised when a coverage row names both a unit and a topic, or neither."""

    def __init__(self, unit_id: str | None, topic_id: str | None):
        self.unit_id = unit_id
        self.topic_id = topic_id
        super().__init__(
            "Coverage must reference exactly one of unit_id or topic_id "
            f"(got unit_id={unit_id!r}, topic_id={topic_id!r})"
        )


class EmptySyllabusError(ValidationError):
    """Raised when a syllabus yields no subjects to create."""

    def __init__(self, skipped: int = 0):
        self.skipped = skipped
        message = "No valid entries parsed from syllabus"
        if skipped:
            message += f" ({skipped} malformed line(s) skipped)"
        super().__init__(message)


class DanglingReferenceError(StudyTrackError):
    """Raised when a coverage row points at a unit or topic that is gone."""

    def __init__(self, kind: str, target_id: str):
        self.kind = kind
        self.target_id = target_id
        super().__init__(f"{kind} '{target_id}' no longer exists")


class NotFoundError(StudyTrackError):
    """Raised when a persisted entity does not exist."""

    def __init__(self, kind: str, entity_id: str):
        self.kind = kind
        self.entity_id = entity_id
        super().__init__(f"{kind.capitalize()} '{entity_id}' not found")
