"""Integration tests for the HTTP API using in-memory adapters."""

from datetime import date, timedelta

import pytest
from fastapi.testclient import TestClient
from jose import jwt

from peertutor.application import api
from peertutor.application.config import settings
from peertutor.application.controller import TutoringController, build_controller
from peertutor.infrastructure import (
    LocalNotificationDispatcher,
    LocalSessionRepository,
    LocalUserRepository,
)
from tests.factories import make_student, make_tutor

STUDENT = "student-1"
TUTOR = "tutor-1"
OUTSIDER = "student-9"


def auth(user_id: str, is_tutor: bool = False) -> dict:
    token = jwt.encode({"userId": user_id, "isTutor": is_tutor}, settings.jwt_secret, algorithm=settings.jwt_algorithm)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def controller(monkeypatch):
    controller = TutoringController(
        session_repository=LocalSessionRepository(),
        user_repository=LocalUserRepository([
            make_student(STUDENT),
            make_student(OUTSIDER, "Pat Doe"),
            make_tutor(TUTOR, "Alice Tan", ("Algorithms",), rating=4.5),
            make_tutor("tutor-2", "Bob Lim", ("Java",), rating=4.9),
        ]),
        notification_dispatcher=LocalNotificationDispatcher(),
    )
    monkeypatch.setattr(api, "controller", controller)
    return controller


@pytest.fixture
def client(controller):
    return TestClient(api.app)


def booking_json(tutor_id: str = TUTOR) -> dict:
    return {
        "tutor_id": tutor_id,
        "subject": "Algorithms",
        "topic": "Graphs",
        "date": (date.today() + timedelta(days=3)).isoformat(),
        "time": "2:00 PM",
        "duration_minutes": 60,
        "location": "Library",
    }


def book(client) -> str:
    response = client.post("/sessions", json=booking_json(), headers=auth(STUDENT))
    assert response.status_code == 201
    return response.json()["session"]["id"]


def set_status(client, session_id: str, user_id: str, status: str, **extra):
    return client.put(
        f"/sessions/{session_id}/status",
        json={"status": status, **extra},
        headers=auth(user_id, is_tutor=user_id == TUTOR),
    )


class TestHealth:
    def test_health(self, client):
        response = client.get("/health")

        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "healthy"
        assert body["providers"]["session_repository"] == "LocalSessionRepository"
        assert body["providers"]["recommendation_model"] is None


class TestAuth:
    def test_missing_token(self, client):
        response = client.get("/sessions")
        assert response.status_code == 401

    def test_bad_token(self, client):
        response = client.get("/sessions", headers={"Authorization": "Bearer garbage"})
        assert response.status_code == 401


class TestSessionFlow:
    """End-to-end booking, completion and review."""

    def test_full_round_trip(self, client, controller):
        session_id = book(client)

        assert set_status(client, session_id, TUTOR, "Confirmed").status_code == 200
        response = set_status(client, session_id, TUTOR, "Completed", session_notes="Covered BFS")
        assert response.status_code == 200
        assert response.json()["session"]["session_notes"] == "Covered BFS"

        response = client.post(
            f"/sessions/{session_id}/review",
            json={"rating": 5, "comment": "great"},
            headers=auth(STUDENT),
        )
        assert response.status_code == 200
        assert response.json()["session"]["review"]["rating"] == 5

        tutor = controller.user_repository.get_user(TUTOR)
        assert tutor.tutor_profile.rating == 5.0
        assert tutor.tutor_profile.review_count == 1
        assert tutor.tutor_profile.total_sessions == 1
        assert tutor.tutor_profile.hours_taught == 1.0

        again = client.post(
            f"/sessions/{session_id}/review", json={"rating": 4}, headers=auth(STUDENT)
        )
        assert again.status_code == 409

        past = client.get("/sessions", params={"view": "past"}, headers=auth(STUDENT))
        assert [s["id"] for s in past.json()["sessions"]] == [session_id]

    def test_wrong_party_is_forbidden(self, client):
        session_id = book(client)

        assert set_status(client, session_id, STUDENT, "Confirmed").status_code == 403
        assert client.get(f"/sessions/{session_id}", headers=auth(OUTSIDER)).status_code == 403

    def test_invalid_transition(self, client):
        session_id = book(client)

        response = set_status(client, session_id, TUTOR, "Completed")

        assert response.status_code == 400

    def test_review_before_completion(self, client):
        session_id = book(client)

        response = client.post(f"/sessions/{session_id}/review", json={"rating": 4}, headers=auth(STUDENT))

        assert response.status_code == 400

    def test_rating_out_of_range(self, client):
        session_id = book(client)
        set_status(client, session_id, TUTOR, "Confirmed")
        set_status(client, session_id, TUTOR, "Completed")

        response = client.post(f"/sessions/{session_id}/review", json={"rating": 6}, headers=auth(STUDENT))

        assert response.status_code == 422

    def test_cancel(self, client):
        session_id = book(client)

        response = client.delete(f"/sessions/{session_id}", headers=auth(STUDENT))

        assert response.status_code == 200
        assert response.json()["session"]["status"] == "Cancelled"
        upcoming = client.get("/sessions", params={"view": "upcoming"}, headers=auth(STUDENT))
        assert upcoming.json()["sessions"] == []

    def test_unknown_session(self, client):
        response = client.get("/sessions/does-not-exist", headers=auth(STUDENT))
        assert response.status_code == 404

    def test_tutor_cannot_book_themselves(self, client, controller):
        response = client.post("/sessions", json=booking_json(), headers=auth(TUTOR, is_tutor=True))

        assert response.status_code == 403
        assert controller.session_repository.get_all_sessions() == {}

    def test_tutor_updates_notes(self, client):
        session_id = book(client)
        set_status(client, session_id, TUTOR, "Confirmed")
        set_status(client, session_id, TUTOR, "Completed")

        response = client.put(
            f"/sessions/{session_id}/notes",
            json={"session_notes": "Revise Dijkstra"},
            headers=auth(TUTOR, is_tutor=True),
        )

        assert response.status_code == 200
        assert response.json()["session"]["session_notes"] == "Revise Dijkstra"
        stored = client.get(f"/sessions/{session_id}", headers=auth(STUDENT))
        assert stored.json()["session"]["session_notes"] == "Revise Dijkstra"

    def test_notes_rules(self, client):
        session_id = book(client)

        before_completion = client.put(
            f"/sessions/{session_id}/notes",
            json={"session_notes": "Too early"},
            headers=auth(TUTOR, is_tutor=True),
        )
        by_student = client.put(
            f"/sessions/{session_id}/notes",
            json={"session_notes": "Not mine to write"},
            headers=auth(STUDENT),
        )

        assert before_completion.status_code == 400
        assert by_student.status_code == 403

    def test_status_filter_applies_within_view(self, client):
        pending_id = book(client)
        confirmed_id = book(client)
        set_status(client, confirmed_id, TUTOR, "Confirmed")

        response = client.get(
            "/sessions", params={"view": "upcoming", "status": "Confirmed"}, headers=auth(STUDENT)
        )

        ids = [s["id"] for s in response.json()["sessions"]]
        assert ids == [confirmed_id]
        assert pending_id not in ids

    def test_booking_unknown_tutor(self, client):
        response = client.post(
            "/sessions",
            json={
                "tutor_id": "ghost",
                "subject": "Algorithms",
                "topic": "Graphs",
                "date": date.today().isoformat(),
                "time": "10:00",
                "duration_minutes": 30,
                "location": "Online",
            },
            headers=auth(STUDENT),
        )
        assert response.status_code == 404


class TestNotifications:
    def test_inbox_and_mark_read(self, client):
        session_id = book(client)
        set_status(client, session_id, TUTOR, "Confirmed")

        inbox = client.get("/notifications", headers=auth(STUDENT)).json()["notifications"]
        assert [n["title"] for n in inbox] == ["Request Accepted"]

        response = client.patch(f"/notifications/{inbox[0]['id']}/read", headers=auth(STUDENT))
        assert response.status_code == 200
        assert response.json()["notification"]["read"] is True

        unread = client.get("/notifications", params={"unread_only": True}, headers=auth(STUDENT))
        assert unread.json()["notifications"] == []

    def test_cannot_read_someone_elses_notification(self, client):
        book(client)
        tutor_inbox = client.get("/notifications", headers=auth(TUTOR, is_tutor=True)).json()["notifications"]

        response = client.patch(f"/notifications/{tutor_inbox[0]['id']}/read", headers=auth(STUDENT))

        assert response.status_code == 403


class TestRecommendations:
    def test_tutor_recommendations(self, client):
        response = client.get("/recommendations/tutors", headers=auth(STUDENT))

        assert response.status_code == 200
        data = response.json()["data"]
        assert [r["tutor"]["id"] for r in data["recommendations"]] == ["tutor-2", TUTOR]
        assert data["preferences"]["location"] == "Any"

    def test_unknown_student(self, client):
        response = client.get("/recommendations/tutors", headers=auth("ghost"))
        assert response.status_code == 404

    def test_subjects_and_insights(self, client):
        subjects = client.get("/recommendations/subjects", headers=auth(STUDENT))
        insights = client.get("/recommendations/insights", headers=auth(STUDENT))

        assert subjects.status_code == 200
        assert subjects.json()["data"]["suggestions"] == []
        assert insights.json()["data"]["learning_streak"] == "Getting started"


class TestBuildController:
    def test_local_backend(self):
        controller = build_controller(settings.model_copy(update={"storage_backend": "local"}))
        assert isinstance(controller.session_repository, LocalSessionRepository)
        assert controller.recommendation_model is None

    def test_unknown_backend(self):
        with pytest.raises(ValueError):
            build_controller(settings.model_copy(update={"storage_backend": "sqlite"}))
