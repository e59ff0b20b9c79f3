"""Tutoring controller coordinating the lifecycle and recommendation services."""

import logging
from typing import Any, Optional

from ..domain.entities import (
    LearningInsights,
    Notification,
    RecommendationResult,
    SessionRequest,
    SessionStatus,
    SubjectSuggestions,
    TutoringSession,
)
from ..domain.interfaces.notification_dispatcher import NotificationDispatcher, NotificationInbox
from ..domain.interfaces.recommendation_model import RecommendationModel
from ..domain.interfaces.session_repository import SessionRepository
from ..domain.interfaces.user_repository import UserRepository
from ..domain.services import RecommendationEngine, SessionLifecycle
from ..infrastructure import (
    BedrockModelConfig,
    BedrockRecommendationModel,
    DynamoDBNotificationDispatcher,
    DynamoDBSessionRepository,
    DynamoDBUserRepository,
    LocalNotificationDispatcher,
    LocalSessionRepository,
    LocalUserRepository,
)
from .config import Settings

logger = logging.getLogger(__name__)


class TutoringController:
    """
    Controller for coordinating tutoring operations.

    This controller is injected with all necessary providers and handles
    the business logic for each endpoint, keeping the API layer thin.
    """

    def __init__(
        self,
        session_repository: SessionRepository,
        user_repository: UserRepository,
        notification_dispatcher: NotificationDispatcher,
        recommendation_model: Optional[RecommendationModel] = None,
        recommendation_timeout_seconds: float = 10.0,
        recommendation_limit: int = 5,
        recommendation_history_limit: int = 10,
    ):
        """
        Initialize the controller with injected dependencies.

        Args:
            session_repository: Repository for session persistence
            user_repository: Repository for user and tutor profiles
            notification_dispatcher: Dispatcher (and inbox) for notifications
            recommendation_model: Optional generative model for recommendations
            recommendation_timeout_seconds: Deadline for a model call
            recommendation_limit: Maximum number of recommended tutors
            recommendation_history_limit: Completed sessions considered
        """
        self.session_repository = session_repository
        self.user_repository = user_repository
        self.notification_dispatcher = notification_dispatcher
        self.recommendation_model = recommendation_model

        self.lifecycle = SessionLifecycle(
            session_repository=session_repository,
            user_repository=user_repository,
            notification_dispatcher=notification_dispatcher,
        )
        self.recommendations = RecommendationEngine(
            session_repository=session_repository,
            user_repository=user_repository,
            model=recommendation_model,
            timeout_seconds=recommendation_timeout_seconds,
            max_results=recommendation_limit,
            history_limit=recommendation_history_limit,
        )

        logger.info("TutoringController initialized with providers")

    def get_health_status(self) -> dict:
        """
        Get application health status.

        Returns:
            Dict containing health status information
        """
        return {
            "status": "healthy",
            "providers": {
                "session_repository": type(self.session_repository).__name__,
                "user_repository": type(self.user_repository).__name__,
                "notification_dispatcher": type(self.notification_dispatcher).__name__,
                "recommendation_model": type(self.recommendation_model).__name__
                if self.recommendation_model is not None else None,
            },
        }

    # ===== Sessions =====

    async def create_session(self, actor_id: str, request: SessionRequest) -> TutoringSession:
        return await self.lifecycle.create_session(actor_id, request)

    async def list_sessions(
        self,
        actor_id: str,
        status: Optional[SessionStatus] = None,
        view: Optional[str] = None,
    ) -> list[TutoringSession]:
        return await self.lifecycle.list_sessions(actor_id, status=status, view=view)

    async def get_session(self, session_id: str, actor_id: str) -> TutoringSession:
        return await self.lifecycle.get_session(session_id, actor_id)

    async def update_status(
        self,
        session_id: str,
        actor_id: str,
        status: str,
        extra: Optional[dict[str, Any]] = None,
    ) -> TutoringSession:
        return await self.lifecycle.transition(session_id, actor_id, status, extra)

    async def review_session(
        self,
        session_id: str,
        actor_id: str,
        rating: int,
        comment: str = "",
    ) -> TutoringSession:
        return await self.lifecycle.attach_review(session_id, actor_id, rating, comment)

    async def cancel_session(self, session_id: str, actor_id: str) -> TutoringSession:
        return await self.lifecycle.cancel(session_id, actor_id)

    async def update_session_notes(self, session_id: str, actor_id: str, notes: str) -> TutoringSession:
        return await self.lifecycle.update_session_notes(session_id, actor_id, notes)

    # ===== Recommendations =====

    async def recommend_tutors(self, student_id: str) -> RecommendationResult:
        return await self.recommendations.recommend(student_id)

    async def suggest_subjects(self, student_id: str) -> SubjectSuggestions:
        return await self.recommendations.suggest_subjects(student_id)

    async def get_insights(self, student_id: str) -> LearningInsights:
        return await self.recommendations.insights(student_id)

    # ===== Notifications =====

    async def list_notifications(self, user_id: str, unread_only: bool = False) -> list[Notification]:
        """
        List a user's notifications, newest first.

        Raises:
            NotImplementedError: If the configured dispatcher cannot be read back.
        """
        return await self._inbox().list_for_user(user_id, unread_only=unread_only)

    async def mark_notification_read(self, notification_id: str, user_id: str) -> Notification:
        return await self._inbox().mark_as_read(notification_id, user_id)

    def _inbox(self) -> NotificationInbox:
        if not isinstance(self.notification_dispatcher, NotificationInbox):
            raise NotImplementedError(
                f"{type(self.notification_dispatcher).__name__} does not provide an inbox"
            )
        return self.notification_dispatcher


def build_controller(settings: Settings) -> TutoringController:
    """
    Wire a controller from settings.

    ``storage_backend`` selects in-memory ("local") or DynamoDB adapters;
    ``recommendation_model_type`` "bedrock" enables the generative path.
    """
    if settings.storage_backend == "dynamodb":
        session_repository = DynamoDBSessionRepository(
            table_name=settings.sessions_table_name,
            region_name=settings.aws_region,
        )
        user_repository = DynamoDBUserRepository(
            table_name=settings.users_table_name,
            region_name=settings.aws_region,
        )
        notification_dispatcher = DynamoDBNotificationDispatcher(
            table_name=settings.notifications_table_name,
            region_name=settings.aws_region,
        )
    elif settings.storage_backend == "local":
        session_repository = LocalSessionRepository()
        user_repository = LocalUserRepository()
        notification_dispatcher = LocalNotificationDispatcher()
    else:
        raise ValueError(f"Unknown storage backend: {settings.storage_backend}")

    model = None
    if settings.recommendation_model_type == "bedrock":
        model = BedrockRecommendationModel(BedrockModelConfig(
            region=settings.aws_region,
            model_id=settings.bedrock_model_id,
            max_tokens=settings.bedrock_max_tokens,
            temperature=settings.bedrock_temperature,
            top_p=settings.bedrock_top_p,
            aws_access_key_id=settings.aws_access_key_id,
            aws_secret_access_key=settings.aws_secret_access_key,
            aws_session_token=settings.aws_session_token,
        ))
    elif settings.recommendation_model_type != "none":
        raise ValueError(f"Unknown recommendation model type: {settings.recommendation_model_type}")

    logger.info(
        f"Using {settings.storage_backend} storage and "
        f"{settings.recommendation_model_type} recommendation model"
    )
    return TutoringController(
        session_repository=session_repository,
        user_repository=user_repository,
        notification_dispatcher=notification_dispatcher,
        recommendation_model=model,
        recommendation_timeout_seconds=settings.recommendation_timeout_seconds,
        recommendation_limit=settings.recommendation_limit,
        recommendation_history_limit=settings.recommendation_history_limit,
    )
