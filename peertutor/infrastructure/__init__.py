"""Infrastructure layer components."""

from .bedrock_recommendation_model import BedrockModelConfig, BedrockRecommendationModel
from .dynamodb_notification_dispatcher import DynamoDBNotificationDispatcher
from .dynamodb_session_repository import DynamoDBSessionRepository
from .dynamodb_user_repository import DynamoDBUserRepository
from .local_notification_dispatcher import LocalNotificationDispatcher
from .local_session_repository import LocalSessionRepository
from .local_user_repository import LocalUserRepository

__all__ = [
    "BedrockModelConfig",
    "BedrockRecommendationModel",
    "DynamoDBNotificationDispatcher",
    "DynamoDBSessionRepository",
    "DynamoDBUserRepository",
    "LocalNotificationDispatcher",
    "LocalSessionRepository",
    "LocalUserRepository",
]
