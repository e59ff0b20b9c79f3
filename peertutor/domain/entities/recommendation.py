"""Recommendation entities.

These are ephemeral value objects: they are built for a single
recommendation request and never persisted.
"""

from pydantic import BaseModel, Field

from .user import User

ANY = "Any"


class TutorRatingHistory(BaseModel):
    """Ratings a student has previously given to one tutor."""

    tutor_name: str = ""
    ratings: list[int] = Field(default_factory=list)


class PreferenceProfile(BaseModel):
    """Summary of a student's booking patterns derived from completed sessions."""

    frequent_subjects: list[str] = Field(default_factory=list, max_length=3)
    preferred_location: str = ANY
    preferred_time_slot: str = ANY
    tutor_ratings: dict[str, TutorRatingHistory] = Field(default_factory=dict)
    subjects_need_help: list[str] = Field(default_factory=list)
    total_sessions: int = Field(default=0, ge=0)


class PreferencesEcho(BaseModel):
    """The slice of the preference profile returned alongside recommendations."""

    subjects: list[str] = Field(default_factory=list)
    location: str = ANY
    time_slot: str = ANY

    @classmethod
    def from_profile(cls, profile: PreferenceProfile) -> "PreferencesEcho":
        return cls(
            subjects=list(profile.frequent_subjects),
            location=profile.preferred_location,
            time_slot=profile.preferred_time_slot,
        )


class RecommendedTutor(BaseModel):
    """A ranked tutor plus short rationale points."""

    tutor: User
    highlights: list[str] = Field(default_factory=list)


class RecommendationResult(BaseModel):
    """Ranked tutor recommendations for a student."""

    recommendations: list[RecommendedTutor] = Field(default_factory=list, max_length=5)
    reasoning: str = ""
    preferences: PreferencesEcho = Field(default_factory=PreferencesEcho)

    @property
    def tutor_ids(self) -> list[str]:
        return [entry.tutor.id for entry in self.recommendations]


class SubjectSuggestions(BaseModel):
    """Subjects or topics a student could study next."""

    suggestions: list[str] = Field(default_factory=list)
    reasoning: str = ""


class LearningInsights(BaseModel):
    """Lightweight statistics about a student's recent learning."""

    total_sessions: int = 0
    most_studied_subject: str = "None"
    recent_subjects: list[str] = Field(default_factory=list)
    favorite_time: str = "Not available"
    learning_streak: str = "Getting started"
