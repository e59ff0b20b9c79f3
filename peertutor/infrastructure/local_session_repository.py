"""Local in-memory implementation of Session Repository."""

from datetime import datetime
from typing import Dict, Optional

from ..domain.entities.tutoring_session import SessionStatus, TutoringSession
from ..domain.errors import ConcurrentUpdate, NotFoundError
from ..domain.interfaces.session_repository import SessionRepository


class LocalSessionRepository(SessionRepository):
    """Local in-memory implementation of the Session Repository.

    Stores sessions in a dictionary for testing and development purposes.
    """

    def __init__(self):
        """Initialize the local session repository with an empty dictionary."""
        self._sessions: Dict[str, TutoringSession] = {}

    async def save_session(self, session: TutoringSession) -> None:
        """Save a session to the in-memory dictionary.

        Args:
            session: The session entity to save.
        """
        self._sessions[str(session.id)] = session

    async def get_session(self, session_id: str) -> TutoringSession:
        """Retrieve a session by ID from the in-memory dictionary.

        Raises:
            NotFoundError: If the session is not found.
        """
        if session_id not in self._sessions:
            raise NotFoundError(f"Session with id {session_id} not found")

        return self._sessions[session_id]

    async def update_session(
        self,
        session: TutoringSession,
        expected_version: Optional[datetime] = None,
    ) -> None:
        """Replace an existing session in the in-memory dictionary.

        Raises:
            NotFoundError: If the session is not found.
            ConcurrentUpdate: If the stored version differs from ``expected_version``.
        """
        current = self._sessions.get(str(session.id))
        if current is None:
            raise NotFoundError(f"Session with id {session.id} not found")
        if expected_version is not None and current.updated_at != expected_version:
            raise ConcurrentUpdate(f"Session {session.session_code} was modified by another request")

        self._sessions[str(session.id)] = session

    async def list_sessions_for_tutor(self, tutor_id: str) -> list[TutoringSession]:
        return [s for s in self._sessions.values() if s.tutor_id == tutor_id]

    async def list_sessions_for_student(
        self,
        student_id: str,
        status: Optional[SessionStatus] = None,
        limit: Optional[int] = None,
    ) -> list[TutoringSession]:
        sessions = [
            s for s in self._sessions.values()
            if s.student_id == student_id and (status is None or s.status == status)
        ]
        sessions.sort(key=lambda s: (s.date, s.created_at), reverse=True)
        return sessions[:limit] if limit is not None else sessions

    async def list_sessions_for_user(self, user_id: str) -> list[TutoringSession]:
        return [s for s in self._sessions.values() if s.is_party(user_id)]

    def clear(self) -> None:
        """Clear all sessions from the dictionary."""
        self._sessions.clear()

    def get_all_sessions(self) -> Dict[str, TutoringSession]:
        """Get all sessions.

        Returns:
            Dict[str, TutoringSession]: Dictionary of all sessions.
        """
        return self._sessions.copy()
