"""Domain interfaces for the peer tutoring application."""

from .notification_dispatcher import NotificationDispatcher, NotificationInbox
from .recommendation_model import RecommendationModel
from .session_repository import SessionRepository
from .user_repository import UserRepository

__all__ = [
    "NotificationDispatcher",
    "NotificationInbox",
    "RecommendationModel",
    "SessionRepository",
    "UserRepository",
]
