"""Local in-memory notification store."""

import logging
from typing import Dict

from ..domain.entities.notification import Notification, NotificationSeverity
from ..domain.errors import AccessDenied, NotFoundError
from ..domain.interfaces.notification_dispatcher import NotificationDispatcher, NotificationInbox

logger = logging.getLogger(__name__)


class LocalNotificationDispatcher(NotificationDispatcher, NotificationInbox):
    """Keeps notifications in memory and serves each user's inbox."""

    def __init__(self):
        self._notifications: Dict[str, Notification] = {}

    async def create(
        self,
        recipient_id: str,
        title: str,
        message: str,
        severity: NotificationSeverity = NotificationSeverity.INFO,
    ) -> None:
        notification = Notification(
            recipient_id=recipient_id,
            title=title,
            message=message,
            severity=severity,
        )
        self._notifications[str(notification.id)] = notification
        logger.debug(f"Notification '{title}' stored for {recipient_id}")

    async def list_for_user(self, user_id: str, unread_only: bool = False) -> list[Notification]:
        """Return a user's notifications, newest first."""
        notifications = [
            n for n in self._notifications.values()
            if n.recipient_id == user_id and not (unread_only and n.read)
        ]
        return sorted(notifications, key=lambda n: n.created_at, reverse=True)

    async def mark_as_read(self, notification_id: str, user_id: str) -> Notification:
        """Mark one of the user's notifications as read.

        Raises:
            NotFoundError: If the notification does not exist.
            AccessDenied: If it belongs to another user.
        """
        notification = self._notifications.get(notification_id)
        if notification is None:
            raise NotFoundError(f"Notification with id {notification_id} not found")
        if notification.recipient_id != user_id:
            raise AccessDenied("Cannot modify another user's notification")

        updated = notification.model_copy(update={"read": True})
        self._notifications[notification_id] = updated
        return updated

    def clear(self) -> None:
        self._notifications.clear()
