"""Syllabus text codec.

Line format (UTF-8, one unit per line):

    Subject >>> Unit
    Subject >>> Unit >>> topic1, topic2, topic3

Decoding is tolerant: blank lines are ignored and malformed lines are
skipped, never failing the whole document. Lines sharing a subject name are
merged into one subject in order of first appearance; every line creates a
new unit.

Also provides the JSON syllabus document used for file export/import.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

import structlog

from studytrack.core.errors import ValidationError
from studytrack.core.models import SubjectNode

logger = structlog.get_logger(__name__)

DELIMITER = ">>>"
TOPIC_SEPARATOR = ","
DOCUMENT_VERSION = "1.0"


# =============================================================================
# DATA CLASSES
# =============================================================================


@dataclass
class SyllabusUnit:
    name: str
    topics: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {"name": self.name, "topics": list(self.topics)}


@dataclass
class SyllabusSubject:
    name: str
    units: list[SyllabusUnit] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {"name": self.name, "units": [u.to_dict() for u in self.units]}


@dataclass
class SkippedLine:
    """A line the decoder could not use."""

    line_number: int
    text: str
    reason: str


@dataclass
class SyllabusDecodeResult:
    subjects: list[SyllabusSubject]
    skipped: list[SkippedLine] = field(default_factory=list)

    @property
    def total_units(self) -> int:
        return sum(len(s.units) for s in self.subjects)

    @property
    def total_topics(self) -> int:
        return sum(len(u.topics) for s in self.subjects for u in s.units)


# =============================================================================
# ENCODE
# =============================================================================


def encode_syllabus(subjects: list[SyllabusSubject]) -> str:
    """Encode a name tree into syllabus text.

    Subjects and units with blank names are omitted, as are blank topics.
    A unit without topics is written as "Subject >>> Unit".
    """
    lines: list[str] = []
    for subject in subjects:
        subject_name = subject.name.strip()
        if not subject_name:
            continue

        for unit in subject.units:
            unit_name = unit.name.strip()
            if not unit_name:
                continue

            topics = [t.strip() for t in unit.topics if t.strip()]
            line = f"{subject_name} {DELIMITER} {unit_name}"
            if topics:
                line += f" {DELIMITER} " + f"{TOPIC_SEPARATOR} ".join(topics)
            lines.append(line)

    return "\n".join(lines)


def tree_to_syllabus(tree: list[SubjectNode]) -> list[SyllabusSubject]:
    """Project a persisted tracker tree onto its name tree."""
    return [
        SyllabusSubject(
            name=s.subject.name,
            units=[
                SyllabusUnit(name=u.unit.name, topics=[t.name for t in u.topics])
                for u in s.units
            ],
        )
        for s in tree
    ]


# =============================================================================
# DECODE
# =============================================================================


def _parse_line(line: str) -> tuple[str, str, list[str]]:
    """Split one non-blank line into (subject, unit, topics).

    Raises:
        ValidationError: If the line lacks a subject or unit part.
    """
    parts = [p.strip() for p in line.split(DELIMITER)]
    if len(parts) < 2:
        raise ValidationError(
            f"Expected 'Subject {DELIMITER} Unit {DELIMITER} topic1, topic2'"
        )

    subject_name, unit_name = parts[0], parts[1]
    if not subject_name:
        raise ValidationError("Blank subject name")
    if not unit_name:
        raise ValidationError("Blank unit name")

    topics: list[str] = []
    if len(parts) > 2:
        topics = [t.strip() for t in parts[2].split(TOPIC_SEPARATOR) if t.strip()]

    return subject_name, unit_name, topics


def decode_syllabus_report(text: str) -> SyllabusDecodeResult:
    """Decode syllabus text and report the lines that were skipped."""
    subjects: dict[str, SyllabusSubject] = {}
    skipped: list[SkippedLine] = []

    for number, line in enumerate(text.split("\n"), start=1):
        if not line.strip():
            continue

        try:
            subject_name, unit_name, topics = _parse_line(line)
        except ValidationError as e:
            skipped.append(SkippedLine(line_number=number, text=line, reason=str(e)))
            logger.debug("syllabus.line_skipped", line_number=number, reason=str(e))
            continue

        subject = subjects.get(subject_name)
        if subject is None:
            subject = SyllabusSubject(name=subject_name)
            subjects[subject_name] = subject
        subject.units.append(SyllabusUnit(name=unit_name, topics=topics))

    return SyllabusDecodeResult(subjects=list(subjects.values()), skipped=skipped)


def decode_syllabus(text: str) -> list[SyllabusSubject]:
    """Decode syllabus text into a name tree, skipping malformed lines."""
    return decode_syllabus_report(text).subjects


# =============================================================================
# JSON DOCUMENT
# =============================================================================


@dataclass
class SyllabusDocument:
    """Exported tracker: metadata plus its syllabus tree."""

    name: str
    subjects: list[SyllabusSubject] = field(default_factory=list)
    description: str | None = None
    color: str | None = None
    version: str = DOCUMENT_VERSION

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "description": self.description,
            "color": self.color,
            "version": self.version,
            "subjects": [s.to_dict() for s in self.subjects],
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> SyllabusDocument:
        """Build a document from parsed JSON.

        Raises:
            ValidationError: If the tracker name is missing or the subject
                list is malformed.
        """
        if not isinstance(data, dict):
            raise ValidationError("Syllabus document must be a JSON object")

        name = data.get("name")
        if not isinstance(name, str) or not name.strip():
            raise ValidationError("Syllabus document requires a non-blank 'name'")

        raw_subjects = data.get("subjects", [])
        if not isinstance(raw_subjects, list):
            raise ValidationError("'subjects' must be a list")

        subjects = []
        for raw in raw_subjects:
            if not isinstance(raw, dict):
                raise ValidationError("Each subject must be an object")
            units = [
                SyllabusUnit(
                    name=str(u.get("name", "")),
                    topics=[str(t) for t in u.get("topics", [])],
                )
                for u in raw.get("units", [])
                if isinstance(u, dict)
            ]
            subjects.append(SyllabusSubject(name=str(raw.get("name", "")), units=units))

        return cls(
            name=name.strip(),
            subjects=subjects,
            description=data.get("description"),
            color=data.get("color"),
            version=str(data.get("version", DOCUMENT_VERSION)),
        )
