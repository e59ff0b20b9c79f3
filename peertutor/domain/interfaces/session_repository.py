"""Session Repository interface."""

from datetime import datetime
from typing import Optional, Protocol, runtime_checkable

from ..entities.tutoring_session import SessionStatus, TutoringSession


@runtime_checkable
class SessionRepository(Protocol):
    """Protocol defining the interface for tutoring session repositories.

    This interface can be implemented by different storage backends
    (in-memory, DynamoDB, etc.) to provide session persistence. Sessions
    are never deleted; cancellation is a status.
    """

    async def save_session(self, session: TutoringSession) -> None:
        """Save a new session to the repository.

        Args:
            session: The session entity to save.
        """
        ...

    async def get_session(self, session_id: str) -> TutoringSession:
        """Retrieve a session by ID from the repository.

        Args:
            session_id: The unique identifier of the session.

        Returns:
            TutoringSession: The session entity.

        Raises:
            NotFoundError: If the session is not found.
        """
        ...

    async def update_session(
        self,
        session: TutoringSession,
        expected_version: Optional[datetime] = None,
    ) -> None:
        """Replace an existing session in the repository.

        Args:
            session: The session entity to update.
            expected_version: When given, the write only happens if the stored
                session's ``updated_at`` still equals this value.

        Raises:
            NotFoundError: If the session is not found.
            ConcurrentUpdate: If the stored session has moved past
                ``expected_version``.
        """
        ...

    async def list_sessions_for_tutor(self, tutor_id: str) -> list[TutoringSession]:
        """List every session taught by a tutor, in no particular order."""
        ...

    async def list_sessions_for_student(
        self,
        student_id: str,
        status: Optional[SessionStatus] = None,
        limit: Optional[int] = None,
    ) -> list[TutoringSession]:
        """List a student's sessions, newest date first.

        Args:
            student_id: The student whose sessions to list.
            status: Only return sessions in this status when given.
            limit: Maximum number of sessions to return.
        """
        ...

    async def list_sessions_for_user(self, user_id: str) -> list[TutoringSession]:
        """List sessions where the user is either the student or the tutor."""
        ...
