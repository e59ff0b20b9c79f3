"""Session entities for the peer tutoring application."""
import random
import string
import time
import uuid
from datetime import date as Date, datetime
from enum import Enum
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, Field


class SessionStatus(str, Enum):
    """Booking status of a tutoring session."""
    PENDING = "Pending"
    CONFIRMED = "Confirmed"
    COMPLETED = "Completed"
    CANCELLED = "Cancelled"

    @property
    def is_terminal(self) -> bool:
        return self in (SessionStatus.COMPLETED, SessionStatus.CANCELLED)


def generate_session_code() -> str:
    """Generate a short human-readable session code such as ``S4821K7QZ``."""
    digits = str(int(time.time() * 1000))[-4:]
    suffix = "".join(random.choices(string.ascii_uppercase + string.digits, k=4))
    return f"S{digits}{suffix}"


class Review(BaseModel):
    """Student review attached to a completed session."""

    rating: int = Field(ge=1, le=5)
    comment: str = ""
    reviewed_at: datetime = Field(default_factory=datetime.utcnow)


class SessionRequest(BaseModel):
    """Booking details supplied by a student when requesting a session."""

    tutor_id: str
    subject: str = Field(min_length=1)
    module_code: Optional[str] = None
    topic: str = Field(min_length=1)
    date: Date
    time: str = Field(min_length=1, description="Time-of-day label, e.g. '2:00 PM' or '14:00'")
    duration_minutes: int = Field(gt=0)
    location: str = Field(min_length=1)
    notes: Optional[str] = None


class TutoringSession(BaseModel):
    """A single tutoring booking between a student and a tutor."""

    id: UUID = Field(default_factory=uuid.uuid4)
    session_code: str = Field(default_factory=generate_session_code)
    student_id: str
    tutor_id: str
    subject: str
    module_code: Optional[str] = None
    topic: str
    date: Date
    time: str
    duration_minutes: int = Field(gt=0)
    location: str
    notes: Optional[str] = None
    session_notes: Optional[str] = None
    status: SessionStatus = SessionStatus.PENDING
    review: Optional[Review] = None
    created_by: Optional[str] = None
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)

    class Config:
        """Pydantic model configuration."""

        json_schema_extra = {
            "example": {
                "session_code": "S4821K7QZ",
                "student_id": "student-001",
                "tutor_id": "tutor-042",
                "subject": "Algorithms",
                "topic": "Dynamic programming",
                "date": "2026-03-02",
                "time": "2:00 PM",
                "duration_minutes": 60,
                "location": "Library",
                "status": "Pending",
            }
        }

    @property
    def hours(self) -> float:
        return self.duration_minutes / 60

    def is_party(self, user_id: str) -> bool:
        return user_id in (self.student_id, self.tutor_id)
