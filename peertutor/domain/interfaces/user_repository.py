"""User repository protocol."""

from typing import Protocol, runtime_checkable

from ..entities.user import User


@runtime_checkable
class UserRepository(Protocol):
    """Protocol for user data providers, including the tutor candidate pool."""

    def get_user(self, user_id: str) -> User:
        """Retrieve a user by user ID.

        Args:
            user_id: The unique identifier of the user.

        Returns:
            User: The user entity.

        Raises:
            NotFoundError: If the user is not found.
        """
        ...

    def list_tutors(self) -> list[User]:
        """Return every user flagged as a tutor."""
        ...

    def save_user(self, user: User) -> None:
        """Create or replace a user."""
        ...

    def update_tutor_aggregates(self, user_id: str, **aggregates: float) -> User:
        """Set the named aggregate fields of a user's tutor profile.

        Only the given fields are written, so concurrent writers of other
        profile fields are not overwritten. A missing profile is created
        with defaults first.

        Args:
            user_id: The tutor to update.
            **aggregates: Values keyed by names from ``TUTOR_AGGREGATE_FIELDS``.

        Returns:
            User: The user after the write.

        Raises:
            NotFoundError: If the user is not found.
            ValueError: If a field is not an aggregate field.
        """
        ...
