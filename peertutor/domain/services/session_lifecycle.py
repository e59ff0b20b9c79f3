"""Session lifecycle service: the booking state machine."""

import logging
from datetime import date, datetime, timedelta
from enum import Enum
from typing import Any, Optional

from ..entities.notification import NotificationSeverity
from ..entities.tutoring_session import (
    Review,
    SessionRequest,
    SessionStatus,
    TutoringSession,
)
from ..errors import (
    AccessDenied,
    AlreadyReviewed,
    InvalidState,
    InvalidTransition,
    NotFoundError,
)
from ..interfaces.notification_dispatcher import NotificationDispatcher
from ..interfaces.session_repository import SessionRepository
from ..interfaces.user_repository import UserRepository
from .rating_aggregator import RatingAggregator

logger = logging.getLogger(__name__)


class Party(str, Enum):
    """Role an actor plays on a given session."""
    STUDENT = "student"
    TUTOR = "tutor"


# (from, to) -> parties allowed to trigger the edge
TRANSITIONS: dict[tuple[SessionStatus, SessionStatus], frozenset[Party]] = {
    (SessionStatus.PENDING, SessionStatus.CONFIRMED): frozenset({Party.TUTOR}),
    (SessionStatus.PENDING, SessionStatus.CANCELLED): frozenset({Party.STUDENT, Party.TUTOR}),
    (SessionStatus.CONFIRMED, SessionStatus.CANCELLED): frozenset({Party.STUDENT, Party.TUTOR}),
    (SessionStatus.CONFIRMED, SessionStatus.COMPLETED): frozenset({Party.TUTOR}),
}


def _next_version(session: TutoringSession) -> datetime:
    """New ``updated_at`` for a write, strictly after the session's current one."""
    return max(datetime.utcnow(), session.updated_at + timedelta(microseconds=1))


class SessionLifecycle:
    """
    Owns the booking state machine for tutoring sessions.

    Every operation validates the actor and the requested edge before
    touching storage, so a rejected call leaves the session unchanged and
    emits nothing. The status write and any tutor aggregate write form one
    unit: if the aggregate write fails the session write is compensated.
    Notifications are dispatched afterwards and are best-effort.

    Session writes are conditional on the version that was read, so of two
    requests racing on one session only the first write lands; the other
    fails with ``ConcurrentUpdate``. Tutor aggregates are rebuilt from
    session records by the rating aggregator rather than incremented.
    """

    def __init__(
        self,
        session_repository: SessionRepository,
        user_repository: UserRepository,
        notification_dispatcher: NotificationDispatcher,
        rating_aggregator: Optional[RatingAggregator] = None,
    ):
        self.session_repository = session_repository
        self.user_repository = user_repository
        self.notifications = notification_dispatcher
        self.rating_aggregator = rating_aggregator or RatingAggregator(
            session_repository, user_repository
        )

    # ===== Public API =====

    async def create_session(self, actor_id: str, request: SessionRequest) -> TutoringSession:
        """
        Book a new session. The actor becomes the student of the session.

        Args:
            actor_id: The requesting student.
            request: Booking details.

        Returns:
            The newly created session in ``Pending`` status.

        Raises:
            NotFoundError: If the tutor does not exist or is not a tutor.
            AccessDenied: If the actor tries to book themselves.
        """
        if actor_id == request.tutor_id:
            raise AccessDenied("Cannot book a session with yourself")
        try:
            tutor = self.user_repository.get_user(request.tutor_id)
        except NotFoundError:
            raise NotFoundError(f"Tutor with id {request.tutor_id} not found")
        if not tutor.is_tutor:
            raise NotFoundError(f"Tutor with id {request.tutor_id} not found")

        session = TutoringSession(
            student_id=actor_id,
            created_by=actor_id,
            **request.model_dump(),
        )
        await self.session_repository.save_session(session)
        logger.info(f"Session {session.session_code} created by {actor_id} with tutor {tutor.id}")

        await self._notify(
            tutor.id,
            "New Booking Request",
            f"You have a new booking request for {session.subject} on "
            f"{session.date.isoformat()} at {session.time}.",
            NotificationSeverity.INFO,
        )
        return session

    async def transition(
        self,
        session_id: str,
        actor_id: str,
        target_status: SessionStatus | str,
        extra: Optional[dict[str, Any]] = None,
    ) -> TutoringSession:
        """
        Move a session along the booking state machine.

        Args:
            session_id: Session to transition.
            actor_id: User invoking the transition.
            target_status: Desired status.
            extra: Optional fields; ``session_notes`` is accepted when
                completing a session.

        Returns:
            The updated session.

        Raises:
            NotFoundError: Unknown session.
            AccessDenied: Actor is not a party, or the wrong party for the edge.
            InvalidTransition: The edge is not part of the state machine.
            ConcurrentUpdate: Another request changed the session first.
        """
        try:
            target = SessionStatus(target_status)
        except ValueError:
            raise InvalidTransition(f"Unknown session status: {target_status}")

        extra = extra or {}
        unknown = set(extra) - {"session_notes"}
        if unknown:
            raise InvalidState(f"Unsupported transition fields: {', '.join(sorted(unknown))}")

        session = await self._load(session_id)
        party = self._party_of(session, actor_id)

        allowed = TRANSITIONS.get((session.status, target))
        if allowed is None:
            raise InvalidTransition(
                f"Cannot move session {session.session_code} from {session.status.value} to {target.value}"
            )
        if party not in allowed:
            raise AccessDenied(
                f"Only the {' or '.join(sorted(p.value for p in allowed))} can move a session "
                f"to {target.value}"
            )
        if extra.get("session_notes") and target != SessionStatus.COMPLETED:
            raise InvalidState("Session notes can only be added when completing a session")

        changes: dict[str, Any] = {"status": target, "updated_at": _next_version(session)}
        if extra.get("session_notes"):
            changes["session_notes"] = extra["session_notes"]
        updated = session.model_copy(update=changes)

        if target == SessionStatus.COMPLETED:
            await self._complete(session, updated)
        else:
            await self.session_repository.update_session(updated, expected_version=session.updated_at)

        logger.info(
            f"Session {updated.session_code}: {session.status.value} -> {target.value} by {party.value}"
        )
        await self._notify_transition(updated, party)
        return updated

    async def cancel(self, session_id: str, actor_id: str) -> TutoringSession:
        """Cancel a pending or confirmed session on behalf of either party."""
        return await self.transition(session_id, actor_id, SessionStatus.CANCELLED)

    async def attach_review(
        self,
        session_id: str,
        actor_id: str,
        rating: int,
        comment: str = "",
    ) -> TutoringSession:
        """
        Attach the student's review to a completed session and refresh the
        tutor's rating.

        Raises:
            NotFoundError: Unknown session.
            AccessDenied: Actor is not the session's student.
            InvalidState: Session is not completed.
            AlreadyReviewed: Session already has a review.
            pydantic.ValidationError: Rating outside 1-5.
            ConcurrentUpdate: Another request changed the session first.
        """
        session = await self._load(session_id)
        if actor_id != session.student_id:
            raise AccessDenied("Only the student can review a session")
        if session.status != SessionStatus.COMPLETED:
            raise InvalidState("Can only review completed sessions")
        if session.review is not None:
            raise AlreadyReviewed(f"Session {session.session_code} has already been reviewed")

        review = Review(rating=rating, comment=comment)
        updated = session.model_copy(update={"review": review, "updated_at": _next_version(session)})
        await self.session_repository.update_session(updated, expected_version=session.updated_at)
        try:
            await self.rating_aggregator.recompute(session.tutor_id)
        except Exception:
            logger.error(
                f"Rating aggregation failed for tutor {session.tutor_id}; "
                f"rolling back review on session {session.session_code}",
                exc_info=True,
            )
            await self._restore(session, updated)
            raise

        logger.info(f"Session {updated.session_code} reviewed with rating {rating}")
        return updated

    async def update_session_notes(self, session_id: str, actor_id: str, notes: str) -> TutoringSession:
        """Let the tutor record notes on a completed session.

        Raises:
            NotFoundError: Unknown session.
            AccessDenied: Actor is not the session's tutor.
            InvalidState: Session is not completed.
        """
        session = await self._load(session_id)
        if actor_id != session.tutor_id:
            raise AccessDenied("Only the tutor can update session notes")
        if session.status != SessionStatus.COMPLETED:
            raise InvalidState("Session notes can only be updated on completed sessions")

        updated = session.model_copy(update={"session_notes": notes, "updated_at": _next_version(session)})
        await self.session_repository.update_session(updated, expected_version=session.updated_at)
        logger.info(f"Session {updated.session_code} notes updated by {actor_id}")
        return updated

    async def get_session(self, session_id: str, actor_id: str) -> TutoringSession:
        """Return a session if the actor is one of its parties."""
        session = await self._load(session_id)
        self._party_of(session, actor_id)
        return session

    async def list_sessions(
        self,
        actor_id: str,
        status: Optional[SessionStatus] = None,
        view: Optional[str] = None,
    ) -> list[TutoringSession]:
        """
        List the actor's sessions as student or tutor.

        Args:
            actor_id: The user whose sessions to list.
            status: Restrict to one status. Combined with ``view``, both
                filters apply.
            view: ``"upcoming"`` for pending/confirmed sessions from today on,
                soonest first; ``"past"`` for completed sessions, newest first.
        """
        sessions = await self.session_repository.list_sessions_for_user(actor_id)

        if view == "upcoming":
            today = date.today()
            sessions = [
                s for s in sessions
                if s.status in (SessionStatus.PENDING, SessionStatus.CONFIRMED) and s.date >= today
            ]
        elif view == "past":
            sessions = [s for s in sessions if s.status == SessionStatus.COMPLETED]
        if status is not None:
            sessions = [s for s in sessions if s.status == status]

        return sorted(sessions, key=lambda s: s.date, reverse=(view == "past"))

    # ===== Internals =====

    async def _complete(self, previous: TutoringSession, updated: TutoringSession) -> None:
        """Persist a completion, then rebuild the tutor's teaching totals."""
        await self.session_repository.update_session(updated, expected_version=previous.updated_at)
        try:
            await self.rating_aggregator.recompute_totals(updated.tutor_id)
        except Exception:
            logger.error(
                f"Failed to update totals for tutor {updated.tutor_id}; "
                f"restoring session {updated.session_code}",
                exc_info=True,
            )
            await self._restore(previous, updated)
            raise

    async def _restore(self, previous: TutoringSession, written: TutoringSession) -> None:
        # New version, so writers still holding ``previous`` conflict.
        restored = previous.model_copy(update={"updated_at": _next_version(written)})
        await self.session_repository.update_session(restored, expected_version=written.updated_at)

    async def _load(self, session_id: str) -> TutoringSession:
        return await self.session_repository.get_session(str(session_id))

    @staticmethod
    def _party_of(session: TutoringSession, actor_id: str) -> Party:
        if actor_id == session.tutor_id:
            return Party.TUTOR
        if actor_id == session.student_id:
            return Party.STUDENT
        raise AccessDenied(f"User {actor_id} is not a party to session {session.session_code}")

    async def _notify_transition(self, session: TutoringSession, party: Party) -> None:
        if session.status == SessionStatus.CONFIRMED:
            await self._notify(
                session.student_id,
                "Request Accepted",
                f"Your {session.subject} session on {session.date.isoformat()} at "
                f"{session.time} has been confirmed.",
                NotificationSeverity.SUCCESS,
            )
        elif session.status == SessionStatus.CANCELLED:
            other = session.tutor_id if party == Party.STUDENT else session.student_id
            await self._notify(
                other,
                "Session Cancelled",
                f"The {session.subject} session on {session.date.isoformat()} at "
                f"{session.time} was cancelled by the {party.value}.",
                NotificationSeverity.WARNING,
            )
        elif session.status == SessionStatus.COMPLETED:
            await self._notify(
                session.student_id,
                "Session Completed",
                f"Your {session.subject} session has been marked as completed. "
                f"Leave a review to help other students.",
                NotificationSeverity.SUCCESS,
            )

    async def _notify(
        self,
        recipient_id: str,
        title: str,
        message: str,
        severity: NotificationSeverity,
    ) -> None:
        try:
            await self.notifications.create(recipient_id, title, message, severity)
        except Exception as e:
            logger.warning(f"Dropped '{title}' notification for {recipient_id}: {e}", exc_info=True)
