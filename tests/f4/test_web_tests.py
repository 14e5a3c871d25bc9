"""Tests for test scheduling endpoints and the priority feed (F4)."""

from datetime import datetime

NOW = "2026-10-16T12:00:00+00:00"


def _ids(client, tracker_id):
    subjects = client.get(f"/api/trackers/{tracker_id}/dashboard", params={"now": NOW}).json()["subjects"]
    units = {u["name"]: u["id"] for s in subjects for u in s["units"]}
    topics = {t["name"]: t["id"] for s in subjects for u in s["units"] for t in u["topics"]}
    return units, topics


def _schedule(client, tracker_id, name, scheduled_at, coverage=None, test_type="isa"):
    response = client.post(
        "/api/tests",
        json={
            "tracker_id": tracker_id,
            "name": name,
            "test_type": test_type,
            "scheduled_at": scheduled_at,
            "coverage": coverage or [],
        },
    )
    assert response.status_code == 201, response.text
    return response.json()


class TestCreateTest:
    """Tests for POST /api/tests."""

    def test_scheduled_date_uses_test_hour(self, client, tracker_id):
        response = client.post(
            "/api/tests",
            json={"tracker_id": tracker_id, "name": "Lab", "scheduled_date": "2026-10-20"},
        )
        assert response.status_code == 201, response.text
        data = response.json()
        scheduled = datetime.fromisoformat(data["scheduled_at"].replace("Z", "+00:00"))
        assert (scheduled.year, scheduled.month, scheduled.day) == (2026, 10, 20)
        assert (scheduled.hour, scheduled.minute) == (20, 0)
        assert data["test_type"] == "class_test"

    def test_requires_schedule(self, client, tracker_id):
        response = client.post("/api/tests", json={"tracker_id": tracker_id, "name": "X"})
        assert response.status_code == 422

    def test_rejects_both_schedule_fields(self, client, tracker_id):
        response = client.post(
            "/api/tests",
            json={
                "tracker_id": tracker_id,
                "name": "X",
                "scheduled_date": "2026-10-20",
                "scheduled_at": "2026-10-18T20:00:00+00:00",
            },
        )
        assert response.status_code == 422

    def test_coverage_needs_exactly_one_target(self, client, tracker_id):
        response = client.post(
            "/api/tests",
            json={
                "tracker_id": tracker_id,
                "name": "X",
                "scheduled_at": "2026-10-18T20:00:00+00:00",
                "coverage": [{"unit_id": "u", "topic_id": "t"}],
            },
        )
        assert response.status_code == 422

        response = client.post(
            "/api/tests",
            json={
                "tracker_id": tracker_id,
                "name": "X",
                "scheduled_at": "2026-10-18T20:00:00+00:00",
                "coverage": [{}],
            },
        )
        assert response.status_code == 422

    def test_invalid_type(self, client, tracker_id):
        response = client.post(
            "/api/tests",
            json={
                "tracker_id": tracker_id,
                "name": "X",
                "test_type": "midterm",
                "scheduled_at": "2026-10-18T20:00:00+00:00",
            },
        )
        assert response.status_code == 422

    def test_unknown_tracker(self, client):
        response = client.post(
            "/api/tests",
            json={"tracker_id": "missing", "name": "X", "scheduled_at": "2026-10-18T20:00:00+00:00"},
        )
        assert response.status_code == 404


class TestTestDetails:
    """Tests for GET and DELETE /api/tests/{id}."""

    def test_details(self, client, tracker_id):
        units, topics = _ids(client, tracker_id)
        test = _schedule(
            client,
            tracker_id,
            "ISA 1",
            "2026-10-18T17:30:00+00:00",
            [{"topic_id": topics["Circles"]}, {"unit_id": units["Algebra"]}],
        )
        response = client.get(f"/api/tests/{test['id']}", params={"now": NOW})
        assert response.status_code == 200
        data = response.json()
        assert data["covered_topics"] == ["Circles", "Linear", "Quadratic"]
        assert data["days_remaining"] == 2
        assert data["time_remaining"] == "2d 5h 30m"
        assert len(data["coverage"]) == 2

    def test_passed(self, client, tracker_id):
        test = _schedule(client, tracker_id, "Old", "2026-10-15T20:00:00+00:00")
        data = client.get(f"/api/tests/{test['id']}", params={"now": NOW}).json()
        assert data["time_remaining"] == "Test has passed"

    def test_naive_now_treated_as_local(self, client, tracker_id):
        test = _schedule(client, tracker_id, "Later", "2026-10-18T20:00:00+00:00")
        response = client.get(f"/api/tests/{test['id']}", params={"now": "2026-10-16T12:00:00"})
        assert response.status_code == 200, response.text
        assert response.json()["time_remaining"] != "Test has passed"

    def test_missing(self, client):
        assert client.get("/api/tests/missing").status_code == 404

    def test_delete(self, client, tracker_id):
        test = _schedule(client, tracker_id, "Quiz", "2026-10-18T20:00:00+00:00")
        assert client.delete(f"/api/tests/{test['id']}").status_code == 204
        assert client.delete(f"/api/tests/{test['id']}").status_code == 404


class TestPriorityFeed:
    """Priority feed as returned by the dashboard."""

    def test_feed_filtered_and_sorted(self, client, tracker_id):
        units, _ = _ids(client, tracker_id)
        _schedule(client, tracker_id, "Far", "2026-11-30T20:00:00+00:00")
        _schedule(client, tracker_id, "Week", "2026-10-23T20:00:00+00:00")
        _schedule(
            client, tracker_id, "Soon", "2026-10-17T20:00:00+00:00", [{"unit_id": units["Geometry"]}]
        )
        _schedule(client, tracker_id, "Past", "2026-10-10T20:00:00+00:00")

        data = client.get(
            f"/api/trackers/{tracker_id}/dashboard", params={"now": NOW}
        ).json()

        assert [t["name"] for t in data["all_tests"]] == ["Past", "Soon", "Week", "Far"]
        feed = data["priority_tests"]
        assert [p["test"]["name"] for p in feed] == ["Soon", "Week"]
        assert feed[0]["time_remaining"] == "1d 8h 0m"
        assert feed[0]["urgency"] == "critical"
        assert feed[0]["covered_topics"] == ["Circles"]
        assert feed[1]["days_remaining"] == 7

    def test_window_param(self, client, tracker_id):
        _schedule(client, tracker_id, "Far", "2026-11-30T20:00:00+00:00")
        data = client.get(
            f"/api/trackers/{tracker_id}/dashboard", params={"now": NOW, "window_days": 60}
        ).json()
        assert [p["test"]["name"] for p in data["priority_tests"]] == ["Far"]

    def test_deleted_topic_drops_from_coverage(self, client, tracker_id):
        _, topics = _ids(client, tracker_id)
        _schedule(
            client,
            tracker_id,
            "Quiz",
            "2026-10-17T20:00:00+00:00",
            [{"topic_id": topics["Circles"]}, {"topic_id": topics["Linear"]}],
        )
        client.delete(f"/api/topics/{topics['Circles']}")

        feed = client.get(f"/api/trackers/{tracker_id}/dashboard", params={"now": NOW}).json()[
            "priority_tests"
        ]
        assert feed[0]["covered_topics"] == ["Linear"]
        assert len(feed[0]["coverage"]) == 2
