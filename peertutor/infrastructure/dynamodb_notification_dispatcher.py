"""DynamoDB-backed notification dispatcher."""

import logging
from datetime import datetime
from typing import Any, Dict

import aioboto3
from boto3.dynamodb.conditions import Attr

from ..domain.entities.notification import Notification, NotificationSeverity
from ..domain.errors import AccessDenied, NotFoundError
from ..domain.interfaces.notification_dispatcher import NotificationDispatcher, NotificationInbox

logger = logging.getLogger(__name__)


class DynamoDBNotificationDispatcher(NotificationDispatcher, NotificationInbox):
    """Persists notifications to a DynamoDB table for the inbox service to deliver."""

    def __init__(self, table_name: str, region_name: str = "us-east-1"):
        self.table_name = table_name
        self.region_name = region_name
        self._session = aioboto3.Session()

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
        async with self._session.resource("dynamodb", region_name=self.region_name) as dynamodb:
            table = await dynamodb.Table(self.table_name)
            await table.put_item(Item={
                "id": str(notification.id),
                "recipient_id": notification.recipient_id,
                "title": notification.title,
                "message": notification.message,
                "severity": notification.severity.value,
                "read": notification.read,
                "created_at": notification.created_at.isoformat(),
            })
        logger.debug(f"Notification {notification.id} stored for {recipient_id}")

    async def list_for_user(self, user_id: str, unread_only: bool = False) -> list[Notification]:
        """Return a user's notifications, newest first."""
        condition = Attr("recipient_id").eq(user_id)
        if unread_only:
            condition = condition & Attr("read").eq(False)

        notifications = []
        async with self._session.resource("dynamodb", region_name=self.region_name) as dynamodb:
            table = await dynamodb.Table(self.table_name)
            kwargs: Dict[str, Any] = {"FilterExpression": condition}
            while True:
                response = await table.scan(**kwargs)
                notifications.extend(self._item_to_notification(i) for i in response.get("Items", []))
                if "LastEvaluatedKey" not in response:
                    break
                kwargs["ExclusiveStartKey"] = response["LastEvaluatedKey"]
        return sorted(notifications, key=lambda n: n.created_at, reverse=True)

    async def mark_as_read(self, notification_id: str, user_id: str) -> Notification:
        """Mark one of the user's notifications as read.

        Raises:
            NotFoundError: If the notification does not exist.
            AccessDenied: If it belongs to another user.
        """
        async with self._session.resource("dynamodb", region_name=self.region_name) as dynamodb:
            table = await dynamodb.Table(self.table_name)
            response = await table.get_item(Key={"id": notification_id})
            if "Item" not in response:
                raise NotFoundError(f"Notification with id {notification_id} not found")
            if response["Item"]["recipient_id"] != user_id:
                raise AccessDenied("Cannot modify another user's notification")

            updated = await table.update_item(
                Key={"id": notification_id},
                UpdateExpression="SET #read = :read",
                ExpressionAttributeNames={"#read": "read"},
                ExpressionAttributeValues={":read": True},
                ReturnValues="ALL_NEW",
            )
            return self._item_to_notification(updated["Attributes"])

    def _item_to_notification(self, item: Dict[str, Any]) -> Notification:
        return Notification(
            id=item["id"],
            recipient_id=item["recipient_id"],
            title=item["title"],
            message=item["message"],
            severity=NotificationSeverity(item.get("severity", "info")),
            read=bool(item.get("read", False)),
            created_at=datetime.fromisoformat(item["created_at"]),
        )
