"""Tests for syllabus codec endpoints (F4)."""


class TestDecode:
    """Tests for POST /api/syllabus/decode."""

    def test_decode(self, client, syllabus_text):
        response = client.post("/api/syllabus/decode", json={"text": syllabus_text + "\nbroken"})
        assert response.status_code == 200
        data = response.json()
        assert [s["name"] for s in data["subjects"]] == ["Math", "Physics"]
        assert data["subjects"][0]["units"][0] == {"name": "Algebra", "topics": ["Linear", "Quadratic"]}
        assert data["skipped"][0]["line_number"] == 4

    def test_decode_empty(self, client):
        data = client.post("/api/syllabus/decode", json={"text": ""}).json()
        assert data == {"subjects": [], "skipped": []}


class TestEncode:
    """Tests for POST /api/syllabus/encode."""

    def test_encode(self, client):
        body = {
            "subjects": [
                {"name": "Math", "units": [{"name": "Algebra", "topics": ["Linear", " "]}]},
                {"name": " ", "units": [{"name": "Ghost"}]},
                {"name": "Physics", "units": [{"name": "Mechanics"}]},
            ]
        }
        response = client.post("/api/syllabus/encode", json=body)
        assert response.status_code == 200
        assert response.text == "Math >>> Algebra >>> Linear\nPhysics >>> Mechanics"
