"""
API tests: routes wired to a SQLite-backed DatabaseService, auth overridden.
"""

import time

import pytest
from fastapi.testclient import TestClient

from app.core.auth import get_current_user
from app.core.config import get_settings
from app.main import app
from app.services.db_service import get_db_service


@pytest.fixture
def client(db_service):
    app.dependency_overrides[get_db_service] = lambda: db_service
    yield TestClient(app)
    app.dependency_overrides.clear()


def login_as(user_id: str, user_type: str, email: str = "user@example.edu"):
    app.dependency_overrides[get_current_user] = lambda: {
        "user_id": user_id, "email": email, "user_type": user_type
    }


class TestPositions:

    def test_list_active_positions(self, client, seeded):
        response = client.get("/api/positions")

        assert response.status_code == 200
        body = response.json()
        assert [p["title"] for p in body] == ["Firmware Intern"]
        assert body[0]["startup_name"] == "Acme Robotics"

    def test_list_positions_store_down(self, client, db_service, monkeypatch):
        def broken(*args, **kwargs):
            raise RuntimeError("down")
        monkeypatch.setattr(db_service, "_rows", broken)

        response = client.get("/api/positions")

        assert response.status_code == 503

    def test_create_position_shows_up_immediately(self, client, seeded):
        assert len(client.get("/api/positions").json()) == 1
        login_as(seeded["owner_id"], "startup")

        response = client.post("/api/positions", json={"title": "Data Intern", "stipend": "15000"})

        assert response.status_code == 201
        titles = sorted(p["title"] for p in client.get("/api/positions").json())
        assert titles == ["Data Intern", "Firmware Intern"]

    def test_create_position_needs_registered_startup(self, client):
        login_as("fresh-owner", "startup")

        response = client.post("/api/positions", json={"title": "Data Intern"})

        assert response.status_code == 404

    def test_students_cannot_create_positions(self, client, seeded):
        login_as(seeded["student_id"], "student")

        response = client.post("/api/positions", json={"title": "Data Intern"})

        assert response.status_code == 403

    def test_close_position(self, client, seeded):
        login_as(seeded["owner_id"], "startup")

        response = client.put(f"/api/positions/{seeded['position_id']}/status", json={"status": "closed"})

        assert response.status_code == 200
        assert client.get("/api/positions").json() == []

    def test_close_someone_elses_position(self, client, seeded):
        login_as("other-owner", "startup")

        response = client.put(f"/api/positions/{seeded['position_id']}/status", json={"status": "closed"})

        assert response.status_code == 404

    def test_invalid_position_status(self, client, seeded):
        login_as(seeded["owner_id"], "startup")

        response = client.put(f"/api/positions/{seeded['position_id']}/status", json={"status": "paused"})

        assert response.status_code == 422

    def test_apply_then_duplicate(self, client, seeded):
        login_as(seeded["student_id"], "student")
        url = f"/api/positions/{seeded['position_id']}/apply"

        first = client.post(url, json={"cover_letter": "Hello"})
        second = client.post(url, json={})

        assert first.status_code == 201
        assert second.status_code == 400
        assert second.json()["detail"] == "You have already applied for this position"


class TestStartups:

    def test_directory(self, client, seeded):
        response = client.get("/api/startups")

        assert response.status_code == 200
        assert [s["name"] for s in response.json()] == ["Acme Robotics"]

    def test_register_and_fetch_own_startup(self, client):
        login_as("owner-5", "startup")

        created = client.post("/api/startups", json={"name": "Delta AI", "website": "https://delta.example"})
        again = client.post("/api/startups", json={"name": "Delta AI"})
        mine = client.get("/api/startups/me")

        assert created.status_code == 201
        assert again.status_code == 400
        assert mine.json()["name"] == "Delta AI"
        assert [s["name"] for s in client.get("/api/startups").json()] == ["Delta AI"]

    def test_first_registration_logs_no_error(self, client, caplog):
        login_as("owner-6", "startup")

        with caplog.at_level("ERROR"):
            response = client.post("/api/startups", json={"name": "Echo Labs"})

        assert response.status_code == 201
        assert not [r for r in caplog.records if r.levelname == "ERROR"]

    def test_register_rejects_bad_url(self, client):
        login_as("owner-5", "startup")

        response = client.post("/api/startups", json={"name": "Delta AI", "website": "delta.example"})

        assert response.status_code == 422

    def test_dashboard_and_accept(self, client, seeded):
        login_as(seeded["student_id"], "student")
        client.post(f"/api/positions/{seeded['position_id']}/apply", json={})

        login_as(seeded["owner_id"], "startup")
        positions = client.get("/api/startups/me/positions").json()
        applications = client.get("/api/startups/me/applications").json()
        assert positions[0]["application_count"] == 1
        assert applications[0]["student_name"] == "Asha Rao"

        response = client.put(
            f"/api/startups/applications/{applications[0]['id']}/status", json={"status": "accepted"}
        )
        assert response.status_code == 200
        assert client.get("/api/startups/me/applications").json()[0]["status"] == "accepted"

        login_as(seeded["student_id"], "student")
        mine = client.get("/api/students/applications").json()
        assert mine[0]["status"] == "accepted"
        assert mine[0]["position"]["startup"]["name"] == "Acme Robotics"


    def test_slow_dashboard_read_times_out(self, client, db_service, seeded, monkeypatch):
        login_as(seeded["owner_id"], "startup")
        monkeypatch.setattr(get_settings(), "fetch_timeout_seconds", 0.05)
        monkeypatch.setattr(db_service, "get_startup_applications", lambda *args, **kwargs: time.sleep(1))

        response = client.get("/api/startups/me/applications")

        assert response.status_code == 504
        assert "timed out" in response.json()["detail"]


class TestStudents:

    def test_profile_roundtrip(self, client):
        login_as("student-9", "student", email="nina@example.edu")

        assert client.get("/api/students/profile").status_code == 404

        saved = client.put("/api/students/profile", json={
            "full_name": "Nina Iyer",
            "bio": "CS sophomore",
            "skills": ["Python", " ", "SQL "],
        })
        assert saved.status_code == 200
        assert saved.json()["email"] == "nina@example.edu"
        assert saved.json()["profile_complete"] is True

        profile = client.get("/api/students/profile").json()
        assert profile["skills"] == ["Python", "SQL"]

    def test_incomplete_profile_cannot_apply(self, client, seeded):
        login_as("student-9", "student")
        client.put("/api/students/profile", json={"full_name": "Nina Iyer"})

        response = client.post(f"/api/positions/{seeded['position_id']}/apply", json={})

        assert response.status_code == 400

    def test_bad_phone_rejected(self, client):
        login_as("student-9", "student")

        response = client.put("/api/students/profile", json={"full_name": "Nina Iyer", "phone_number": "call me"})

        assert response.status_code == 422

    def test_startups_cannot_read_student_routes(self, client, seeded):
        login_as(seeded["owner_id"], "startup")

        assert client.get("/api/students/applications").status_code == 403


def test_health(client):
    response = client.get("/health")

    assert response.status_code == 200
    assert response.json()["database"] == "connected"
