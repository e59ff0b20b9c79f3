"""Notification dispatcher interface."""

from typing import Protocol, runtime_checkable

from ..entities.notification import Notification, NotificationSeverity


@runtime_checkable
class NotificationDispatcher(Protocol):
    """Protocol for persisting and delivering in-app notifications.

    Delivery is best-effort: callers treat a failure here as non-fatal.
    """

    async def create(
        self,
        recipient_id: str,
        title: str,
        message: str,
        severity: NotificationSeverity = NotificationSeverity.INFO,
    ) -> None:
        """Persist a notification for a user.

        Args:
            recipient_id: The user who should receive the notification.
            title: Short title such as "Request Accepted".
            message: Human readable body.
            severity: Display severity.
        """
        ...


@runtime_checkable
class NotificationInbox(Protocol):
    """Protocol for reading back a user's notifications."""

    async def list_for_user(self, user_id: str, unread_only: bool = False) -> list[Notification]:
        """Return the user's notifications, newest first."""
        ...

    async def mark_as_read(self, notification_id: str, user_id: str) -> Notification:
        """Mark a notification as read.

        Raises:
            NotFoundError: If the notification does not exist.
            AccessDenied: If the notification belongs to another user.
        """
        ...
