"""Domain entities for the peer tutoring application."""

from .auth import AuthContext
from .notification import Notification, NotificationSeverity
from .recommendation import (
    LearningInsights,
    PreferenceProfile,
    PreferencesEcho,
    RecommendationResult,
    RecommendedTutor,
    SubjectSuggestions,
    TutorRatingHistory,
)
from .tutoring_session import (
    Review,
    SessionRequest,
    SessionStatus,
    TutoringSession,
    generate_session_code,
)
from .user import TUTOR_AGGREGATE_FIELDS, Availability, TutorProfile, TutorSubject, User

__all__ = [
    # Session entities
    "TutoringSession",
    "SessionRequest",
    "SessionStatus",
    "Review",
    "generate_session_code",
    # User entities
    "User",
    "TutorProfile",
    "TutorSubject",
    "Availability",
    "TUTOR_AGGREGATE_FIELDS",
    "AuthContext",
    # Notification entities
    "Notification",
    "NotificationSeverity",
    # Recommendation entities
    "PreferenceProfile",
    "PreferencesEcho",
    "RecommendationResult",
    "RecommendedTutor",
    "TutorRatingHistory",
    "SubjectSuggestions",
    "LearningInsights",
]
