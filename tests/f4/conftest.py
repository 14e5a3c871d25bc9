"""Fixtures for F4 tests - Web API."""

import pytest
from fastapi.testclient import TestClient

from studytrack.db.database import init_db
from studytrack.web.api import create_app

SYLLABUS = (
    "Math >>> Algebra >>> Linear, Quadratic\n"
    "Math >>> Geometry >>> Circles\n"
    "Physics >>> Mechanics"
)


@pytest.fixture
def client(isolated_db_path):
    """Test client over a temporary database."""
    init_db(isolated_db_path)
    with TestClient(create_app()) as test_client:
        yield test_client


@pytest.fixture
def semester_id(client) -> str:
    response = client.post("/api/semesters", json={"name": "Fall 2026"})
    assert response.status_code == 201
    return response.json()["id"]


@pytest.fixture
def tracker_id(client, semester_id) -> str:
    response = client.post(
        "/api/trackers",
        json={"semester_id": semester_id, "name": "CS Core", "syllabus_text": SYLLABUS},
    )
    assert response.status_code == 201
    return response.json()["id"]


@pytest.fixture
def syllabus_text() -> str:
    return SYLLABUS
