"""Tests for session, user and recommendation entities."""

import re
from datetime import date

import pytest
from pydantic import ValidationError

from peertutor.domain.entities import (
    PreferenceProfile,
    PreferencesEcho,
    RecommendationResult,
    RecommendedTutor,
    Review,
    SessionRequest,
    SessionStatus,
    TutoringSession,
    User,
    generate_session_code,
)
from tests.factories import make_session, make_tutor


class TestSessionStatus:
    """Test SessionStatus enum."""

    def test_values(self):
        assert SessionStatus.PENDING.value == "Pending"
        assert SessionStatus.CONFIRMED.value == "Confirmed"
        assert SessionStatus.COMPLETED.value == "Completed"
        assert SessionStatus.CANCELLED.value == "Cancelled"

    def test_terminal_states(self):
        assert SessionStatus.COMPLETED.is_terminal
        assert SessionStatus.CANCELLED.is_terminal
        assert not SessionStatus.PENDING.is_terminal
        assert not SessionStatus.CONFIRMED.is_terminal


class TestTutoringSession:
    """Test TutoringSession entity."""

    def test_defaults(self):
        session = make_session()

        assert session.status == SessionStatus.PENDING
        assert session.review is None
        assert session.session_notes is None
        assert re.fullmatch(r"S\d{4}[A-Z0-9]{4}", session.session_code)

    def test_hours(self):
        assert make_session(duration_minutes=90).hours == 1.5

    def test_is_party(self):
        session = make_session(student_id="s", tutor_id="t")

        assert session.is_party("s")
        assert session.is_party("t")
        assert not session.is_party("someone-else")

    def test_duration_must_be_positive(self):
        with pytest.raises(ValidationError):
            make_session(duration_minutes=0)

    def test_model_copy_leaves_original_unchanged(self):
        session = make_session()
        updated = session.model_copy(update={"status": SessionStatus.CONFIRMED})

        assert session.status == SessionStatus.PENDING
        assert updated.status == SessionStatus.CONFIRMED
        assert updated.id == session.id

    def test_session_codes_differ(self):
        codes = {generate_session_code() for _ in range(20)}
        assert len(codes) > 1


class TestReview:
    """Test Review entity."""

    @pytest.mark.parametrize("rating", [1, 3, 5])
    def test_valid_ratings(self, rating):
        assert Review(rating=rating).rating == rating

    @pytest.mark.parametrize("rating", [0, 6, -1])
    def test_rating_out_of_range(self, rating):
        with pytest.raises(ValidationError):
            Review(rating=rating)


class TestSessionRequest:
    """Test SessionRequest entity."""

    def test_parses_iso_date(self):
        request = SessionRequest(
            tutor_id="tutor-1",
            subject="Python",
            topic="Loops",
            date="2026-03-02",
            time="2:00 PM",
            duration_minutes=60,
            location="Library",
        )
        assert request.date == date(2026, 3, 2)
        assert request.module_code is None

    def test_requires_topic(self):
        with pytest.raises(ValidationError):
            SessionRequest(
                tutor_id="tutor-1",
                subject="Python",
                topic="",
                date="2026-03-02",
                time="2:00 PM",
                duration_minutes=60,
                location="Library",
            )

    def test_copies_into_session(self):
        request = SessionRequest(
            tutor_id="tutor-1",
            subject="Python",
            topic="Loops",
            date="2026-03-02",
            time="14:00",
            duration_minutes=45,
            location="Online",
        )
        session = TutoringSession(student_id="student-1", **request.model_dump())

        assert session.tutor_id == "tutor-1"
        assert session.duration_minutes == 45


class TestUser:
    """Test User entity helpers."""

    def test_rating_and_subject_names(self):
        tutor = make_tutor("t", "Alice", ("Python", "Java"), rating=4.2)

        assert tutor.rating == 4.2
        assert tutor.subject_names == ["Python", "Java"]

    def test_user_without_profile(self):
        user = User(id="u", name="Sam")
        assert user.rating == 0.0
        assert user.subject_names == []


class TestRecommendationEntities:
    """Test recommendation value objects."""

    def test_preferences_echo_from_profile(self):
        profile = PreferenceProfile(
            frequent_subjects=["Python"],
            preferred_location="Library",
            preferred_time_slot="Morning",
        )
        echo = PreferencesEcho.from_profile(profile)

        assert echo.subjects == ["Python"]
        assert echo.location == "Library"
        assert echo.time_slot == "Morning"

    def test_profile_defaults_to_any(self):
        profile = PreferenceProfile()
        assert profile.preferred_location == "Any"
        assert profile.preferred_time_slot == "Any"

    def test_at_most_five_recommendations(self):
        entries = [RecommendedTutor(tutor=make_tutor(f"t{i}", f"Tutor {i}")) for i in range(6)]
        with pytest.raises(ValidationError):
            RecommendationResult(recommendations=entries)

    def test_tutor_ids(self):
        result = RecommendationResult(
            recommendations=[RecommendedTutor(tutor=make_tutor("t1", "A"))]
        )
        assert result.tutor_ids == ["t1"]
