"""Tests for tutor rating aggregation."""

from unittest.mock import patch

import pytest

from peertutor.domain.entities import SessionStatus
from peertutor.domain.errors import NotFoundError
from peertutor.domain.services import (
    RatingAggregator,
    RatingSummary,
    TeachingTotals,
    aggregate_ratings,
    aggregate_totals,
)
from peertutor.infrastructure import LocalSessionRepository, LocalUserRepository
from tests.factories import make_session, make_tutor


class TestAggregateRatings:
    """Test the pure rating average."""

    def test_no_reviews(self):
        assert aggregate_ratings([]) == RatingSummary(rating=0.0, review_count=0)

    def test_mean_is_rounded_to_one_decimal(self):
        sessions = [
            make_session(status=SessionStatus.COMPLETED, rating=r) for r in (5, 4, 4)
        ]
        assert aggregate_ratings(sessions) == RatingSummary(rating=4.3, review_count=3)

    def test_ignores_unreviewed_and_unfinished_sessions(self):
        sessions = [
            make_session(status=SessionStatus.COMPLETED, rating=3),
            make_session(status=SessionStatus.COMPLETED),
            make_session(status=SessionStatus.CONFIRMED),
        ]
        assert aggregate_ratings(sessions) == RatingSummary(rating=3.0, review_count=1)


class TestAggregateTotals:
    """Test the pure teaching totals."""

    def test_counts_completed_sessions_only(self):
        sessions = [
            make_session(status=SessionStatus.COMPLETED, duration_minutes=60),
            make_session(status=SessionStatus.COMPLETED, duration_minutes=45, rating=4),
            make_session(status=SessionStatus.CANCELLED, duration_minutes=90),
            make_session(status=SessionStatus.CONFIRMED),
        ]
        assert aggregate_totals(sessions) == TeachingTotals(total_sessions=2, hours_taught=1.75)

    def test_no_sessions(self):
        assert aggregate_totals([]) == TeachingTotals(total_sessions=0, hours_taught=0.0)


class TestRatingAggregator:
    """Test recomputing a tutor's stored rating."""

    @pytest.mark.asyncio
    async def test_recompute_persists_profile(self):
        sessions = LocalSessionRepository()
        users = LocalUserRepository([make_tutor("tutor-1", "Alice Tan", total_sessions=4)])
        for rating in (5, 3):
            await sessions.save_session(
                make_session(tutor_id="tutor-1", status=SessionStatus.COMPLETED, rating=rating)
            )
        await sessions.save_session(
            make_session(tutor_id="tutor-2", status=SessionStatus.COMPLETED, rating=1)
        )

        profile = await RatingAggregator(sessions, users).recompute("tutor-1")

        assert profile.rating == 4.0
        assert profile.review_count == 2
        assert profile.total_sessions == 4
        assert users.get_user("tutor-1").tutor_profile == profile

    @pytest.mark.asyncio
    async def test_recompute_is_idempotent(self):
        sessions = LocalSessionRepository()
        users = LocalUserRepository([make_tutor("tutor-1", "Alice Tan")])
        await sessions.save_session(
            make_session(tutor_id="tutor-1", status=SessionStatus.COMPLETED, rating=4)
        )
        aggregator = RatingAggregator(sessions, users)

        first = await aggregator.recompute("tutor-1")
        second = await aggregator.recompute("tutor-1")

        assert first == second

    @pytest.mark.asyncio
    async def test_compute_does_not_write(self):
        sessions = LocalSessionRepository()
        users = LocalUserRepository([make_tutor("tutor-1", "Alice Tan", rating=2.0)])
        await sessions.save_session(
            make_session(tutor_id="tutor-1", status=SessionStatus.COMPLETED, rating=5)
        )

        summary = await RatingAggregator(sessions, users).compute("tutor-1")

        assert summary.rating == 5.0
        assert users.get_user("tutor-1").rating == 2.0

    @pytest.mark.asyncio
    async def test_recompute_totals_leaves_rating_alone(self):
        sessions = LocalSessionRepository()
        users = LocalUserRepository([make_tutor("tutor-1", "Alice Tan", rating=4.2, total_sessions=9)])
        await sessions.save_session(
            make_session(tutor_id="tutor-1", status=SessionStatus.COMPLETED, duration_minutes=90)
        )

        profile = await RatingAggregator(sessions, users).recompute_totals("tutor-1")

        assert profile.total_sessions == 1
        assert profile.hours_taught == 1.5
        assert profile.rating == 4.2
        assert users.get_user("tutor-1").tutor_profile == profile

    @pytest.mark.asyncio
    async def test_refresh_repeats_when_sessions_change_underneath(self):
        """A write based on an outdated read is replaced once the newer records are seen."""
        sessions = LocalSessionRepository()
        users = LocalUserRepository([make_tutor("tutor-1", "Alice Tan")])
        first = make_session(tutor_id="tutor-1", status=SessionStatus.COMPLETED, rating=5)
        second = make_session(tutor_id="tutor-1", status=SessionStatus.COMPLETED, rating=3)
        for session in (first, second):
            await sessions.save_session(session)

        with patch.object(
            sessions, "list_sessions_for_tutor", side_effect=[[first], [first, second], [first, second]]
        ) as listing:
            profile = await RatingAggregator(sessions, users).recompute("tutor-1")

        assert listing.await_count == 3
        assert profile.rating == 4.0
        assert profile.review_count == 2
        assert users.get_user("tutor-1").tutor_profile.review_count == 2

    @pytest.mark.asyncio
    async def test_recompute_unknown_tutor(self):
        aggregator = RatingAggregator(LocalSessionRepository(), LocalUserRepository())

        with pytest.raises(NotFoundError):
            await aggregator.recompute("ghost")
