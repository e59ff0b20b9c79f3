"""Notification entities."""
import uuid
from datetime import datetime
from enum import Enum
from uuid import UUID

from pydantic import BaseModel, Field


class NotificationSeverity(str, Enum):
    """Severity of an in-app notification."""
    INFO = "info"
    SUCCESS = "success"
    WARNING = "warning"
    ERROR = "error"


class Notification(BaseModel):
    """In-app notification delivered to a single user."""

    id: UUID = Field(default_factory=uuid.uuid4)
    recipient_id: str
    title: str
    message: str
    severity: NotificationSeverity = NotificationSeverity.INFO
    read: bool = False
    created_at: datetime = Field(default_factory=datetime.utcnow)
