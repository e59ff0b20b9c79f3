"""Domain services for the peer tutoring application."""

from .preference_analyzer import PreferenceAnalyzer, categorize_time_slot
from .rating_aggregator import (
    RatingAggregator,
    RatingSummary,
    TeachingTotals,
    aggregate_ratings,
    aggregate_totals,
)
from .recommendation_engine import RecommendationEngine
from .response_parser import ResponseParser, names_match
from .session_lifecycle import SessionLifecycle

__all__ = [
    "PreferenceAnalyzer",
    "RatingAggregator",
    "RatingSummary",
    "RecommendationEngine",
    "ResponseParser",
    "SessionLifecycle",
    "TeachingTotals",
    "aggregate_ratings",
    "aggregate_totals",
    "categorize_time_slot",
    "names_match",
]
