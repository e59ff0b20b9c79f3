"""Tutor rating and teaching-total aggregation."""

import logging
from typing import Awaitable, Callable, Iterable, NamedTuple, Union

from ..entities.tutoring_session import SessionStatus, TutoringSession
from ..entities.user import TutorProfile
from ..interfaces.session_repository import SessionRepository
from ..interfaces.user_repository import UserRepository

logger = logging.getLogger(__name__)


class RatingSummary(NamedTuple):
    rating: float
    review_count: int


class TeachingTotals(NamedTuple):
    total_sessions: int
    hours_taught: float


def aggregate_ratings(sessions: Iterable[TutoringSession]) -> RatingSummary:
    """Average the review ratings of completed sessions.

    Sessions that are not completed or carry no review are ignored. The mean
    is rounded to one decimal place; a tutor without reviews rates 0.0.
    """
    ratings = [
        session.review.rating
        for session in sessions
        if session.status == SessionStatus.COMPLETED and session.review is not None
    ]
    if not ratings:
        return RatingSummary(rating=0.0, review_count=0)
    return RatingSummary(rating=round(sum(ratings) / len(ratings), 1), review_count=len(ratings))


def aggregate_totals(sessions: Iterable[TutoringSession]) -> TeachingTotals:
    """Count completed sessions and the hours they add up to."""
    completed = [session for session in sessions if session.status == SessionStatus.COMPLETED]
    return TeachingTotals(
        total_sessions=len(completed),
        hours_taught=round(sum(session.hours for session in completed), 2),
    )


class RatingAggregator:
    """Rebuilds a tutor's aggregate profile fields from the tutor's sessions.

    Aggregates are never incremented. Each refresh reads the tutor's session
    records, writes only the fields it owns, then reads the records again;
    if they changed in between, the refresh repeats. Whichever writer lands
    last has therefore written values computed from every session write
    that preceded it, across processes as well as within one.
    """

    def __init__(self, session_repository: SessionRepository, user_repository: UserRepository):
        self.session_repository = session_repository
        self.user_repository = user_repository

    async def compute(self, tutor_id: str) -> RatingSummary:
        sessions = await self.session_repository.list_sessions_for_tutor(tutor_id)
        return aggregate_ratings(sessions)

    async def compute_totals(self, tutor_id: str) -> TeachingTotals:
        sessions = await self.session_repository.list_sessions_for_tutor(tutor_id)
        return aggregate_totals(sessions)

    async def recompute(self, tutor_id: str) -> TutorProfile:
        """Recompute and persist ``rating`` and ``review_count`` for a tutor.

        Args:
            tutor_id: The tutor whose aggregate to rebuild.

        Returns:
            TutorProfile: The updated profile.

        Raises:
            NotFoundError: If the tutor does not exist.
        """
        profile = await self._refresh(tutor_id, self.compute)
        logger.info(
            f"Tutor {tutor_id} rating recomputed: {profile.rating} "
            f"from {profile.review_count} reviews"
        )
        return profile

    async def recompute_totals(self, tutor_id: str) -> TutorProfile:
        """Recompute and persist ``total_sessions`` and ``hours_taught``.

        Raises:
            NotFoundError: If the tutor does not exist.
        """
        profile = await self._refresh(tutor_id, self.compute_totals)
        logger.info(
            f"Tutor {tutor_id} totals recomputed: {profile.total_sessions} sessions, "
            f"{profile.hours_taught} hours"
        )
        return profile

    async def _refresh(
        self,
        tutor_id: str,
        summarize: Callable[[str], Awaitable[Union[RatingSummary, TeachingTotals]]],
    ) -> TutorProfile:
        summary = await summarize(tutor_id)
        while True:
            user = self.user_repository.update_tutor_aggregates(tutor_id, **summary._asdict())
            latest = await summarize(tutor_id)
            if latest == summary:
                return user.tutor_profile
            logger.debug(f"Sessions of tutor {tutor_id} changed during refresh; recomputing")
            summary = latest
