"""Fixtures for F3 tests - CLI."""

import pytest

from studytrack.db.database import init_db
from studytrack.db.tracker_repository import create_semester, create_tracker

SYLLABUS = (
    "Math >>> Algebra >>> Linear, Quadratic\n"
    "Math >>> Geometry >>> Circles\n"
    "Physics >>> Mechanics"
)


@pytest.fixture
def cli_db(isolated_db_path):
    """Initialized database shared by the fixture and the CLI (via env)."""
    init_db(isolated_db_path)
    return isolated_db_path


@pytest.fixture
def semester(cli_db):
    return create_semester("Fall 2026")


@pytest.fixture
def tracker(semester):
    return create_tracker(semester.id, "CS Core", SYLLABUS)


@pytest.fixture
def syllabus_text() -> str:
    return SYLLABUS
