"""Local in-memory implementation of UserRepository."""

from typing import Dict, Iterable, Optional

from ..domain.entities.user import TUTOR_AGGREGATE_FIELDS, TutorProfile, User
from ..domain.errors import NotFoundError
from ..domain.interfaces.user_repository import UserRepository


class LocalUserRepository(UserRepository):
    """Local in-memory implementation of the UserRepository protocol.

    Stores users in a dictionary for testing and development purposes.
    """

    def __init__(self, users: Optional[Iterable[User]] = None):
        """Initialize the repository, optionally seeded with users."""
        self._users: Dict[str, User] = {}
        for user in users or []:
            self._users[user.id] = user

    def get_user(self, user_id: str) -> User:
        """Retrieve a user by user ID from the in-memory dictionary.

        Raises:
            NotFoundError: If the user is not found.
        """
        if user_id not in self._users:
            raise NotFoundError(f"User with id {user_id} not found")

        return self._users[user_id]

    def list_tutors(self) -> list[User]:
        return [user for user in self._users.values() if user.is_tutor]

    def save_user(self, user: User) -> None:
        self._users[user.id] = user

    def update_tutor_aggregates(self, user_id: str, **aggregates: float) -> User:
        unknown = set(aggregates) - TUTOR_AGGREGATE_FIELDS
        if unknown:
            raise ValueError(f"Not tutor aggregate fields: {', '.join(sorted(unknown))}")

        user = self.get_user(user_id)
        profile = (user.tutor_profile or TutorProfile()).model_copy(update=aggregates)
        updated = user.model_copy(update={"tutor_profile": profile})
        self._users[user_id] = updated
        return updated

    def clear(self) -> None:
        """Clear all users from the dictionary."""
        self._users.clear()

    def get_all_users(self) -> Dict[str, User]:
        """Get all users.

        Returns:
            Dict[str, User]: Dictionary of all users.
        """
        return self._users.copy()
