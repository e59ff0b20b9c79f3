"""User and tutor profile entities for the peer tutoring application."""

from typing import Optional

from pydantic import BaseModel, Field


class TutorSubject(BaseModel):
    """A subject a tutor is qualified to teach."""

    module_code: str
    name: str = Field(min_length=1)
    grade: str = ""
    sessions: int = Field(default=0, ge=0)


class Availability(BaseModel):
    """Weekly availability of a tutor on a given day."""

    day: str
    slots: list[str] = Field(default_factory=list)


# Profile fields derived from session records.
TUTOR_AGGREGATE_FIELDS = frozenset({"rating", "review_count", "total_sessions", "hours_taught"})


class TutorProfile(BaseModel):
    """Tutor-facing profile including aggregate teaching statistics.

    The aggregate fields (``rating``, ``review_count``, ``total_sessions`` and
    ``hours_taught``) are derived from the tutor's sessions and are only ever
    written by the session lifecycle and the rating aggregator.
    """

    rating: float = Field(default=0.0, ge=0, le=5)
    review_count: int = Field(default=0, ge=0)
    total_sessions: int = Field(default=0, ge=0)
    hours_taught: float = Field(default=0.0, ge=0)
    response_rate: float = Field(default=0.0, ge=0)
    reply_time: str = "< 24 hours"
    subjects: list[TutorSubject] = Field(default_factory=list)
    badges: list[str] = Field(default_factory=list)
    availability: list[Availability] = Field(default_factory=list)


class User(BaseModel):
    """Platform user; students and tutors share this entity."""

    id: str = Field(min_length=1)
    name: str = Field(min_length=1, max_length=100)
    email: Optional[str] = None
    year: Optional[str] = None
    course: Optional[str] = None
    is_tutor: bool = False
    subjects_need_help: list[str] = Field(default_factory=list)
    tutor_profile: Optional[TutorProfile] = None

    class Config:
        """Pydantic model configuration."""

        json_schema_extra = {
            "example": {
                "id": "tutor-042",
                "name": "Alice Tan",
                "year": "Year 3",
                "course": "Computer Science",
                "is_tutor": True,
                "tutor_profile": {
                    "rating": 4.8,
                    "review_count": 12,
                    "subjects": [{"module_code": "CS201", "name": "Algorithms", "grade": "A"}],
                },
            }
        }

    @property
    def rating(self) -> float:
        return self.tutor_profile.rating if self.tutor_profile else 0.0

    @property
    def subject_names(self) -> list[str]:
        if not self.tutor_profile:
            return []
        return [subject.name for subject in self.tutor_profile.subjects]
