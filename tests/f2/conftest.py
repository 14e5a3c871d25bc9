"""Fixtures for F2 tests - persistence and configuration."""

import pytest

from studytrack.db.database import init_db
from studytrack.db.tracker_repository import create_semester, create_tracker

SYLLABUS = (
    "Math >>> Algebra >>> Linear, Quadratic\n"
    "Math >>> Geometry >>> Circles\n"
    "Physics >>> Mechanics"
)


@pytest.fixture
def db(isolated_db_path):
    """Initialized temporary database."""
    init_db(isolated_db_path)
    return isolated_db_path


@pytest.fixture
def semester(db):
    return create_semester("Fall 2026")


@pytest.fixture
def tracker(semester):
    return create_tracker(semester.id, "CS Core", SYLLABUS, description="core", color="#336699")


@pytest.fixture
def syllabus_text() -> str:
    return SYLLABUS
