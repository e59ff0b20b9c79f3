"""Preference analysis over a student's completed session history."""

import re
from collections import Counter
from typing import Iterable, Mapping, Optional, Sequence

from ..entities.recommendation import (
    ANY,
    LearningInsights,
    PreferenceProfile,
    TutorRatingHistory,
)
from ..entities.tutoring_session import TutoringSession
from ..entities.user import User

HISTORY_LIMIT = 10
TOP_SUBJECTS = 3

MORNING = "Morning"
AFTERNOON = "Afternoon"
EVENING = "Evening"
NIGHT = "Night"

_TIME_PATTERN = re.compile(r"^\s*(\d{1,2})(?::(\d{2}))?\s*([AaPp]\.?[Mm]\.?)?\s*$")


def parse_hour(label: str) -> Optional[int]:
    """Return the 24-hour clock hour of a time label, or None if unparseable.

    Accepts ``"14:00"``, ``"2:00 PM"``, ``"9 am"`` and similar.
    """
    match = _TIME_PATTERN.match(label or "")
    if not match:
        return None
    hour = int(match.group(1))
    meridiem = (match.group(3) or "").replace(".", "").upper()
    if meridiem:
        if not 1 <= hour <= 12:
            return None
        if meridiem == "PM" and hour != 12:
            hour += 12
        elif meridiem == "AM" and hour == 12:
            hour = 0
    elif hour > 23:
        return None
    return hour


def categorize_time_slot(label: str) -> Optional[str]:
    """Map a time label to Morning, Afternoon, Evening or Night."""
    hour = parse_hour(label)
    if hour is None:
        return None
    if 6 <= hour < 12:
        return MORNING
    if 12 <= hour < 17:
        return AFTERNOON
    if 17 <= hour < 21:
        return EVENING
    return NIGHT


def _ranked(values: Iterable[str]) -> list[str]:
    # Counter keeps first-seen order and sorted() is stable, so ties go to
    # the value that appeared first (the most recent session).
    counts = Counter(values)
    return [value for value, _ in sorted(counts.items(), key=lambda item: -item[1])]


class PreferenceAnalyzer:
    """Builds a PreferenceProfile from a student's completed sessions.

    Pure transformation: the caller supplies the history, newest first.
    """

    def __init__(self, history_limit: int = HISTORY_LIMIT):
        self.history_limit = history_limit

    def analyze(
        self,
        sessions: Sequence[TutoringSession],
        student: Optional[User] = None,
        tutor_names: Optional[Mapping[str, str]] = None,
    ) -> PreferenceProfile:
        history = list(sessions)[: self.history_limit]
        tutor_names = tutor_names or {}

        subjects = _ranked(s.subject for s in history if s.subject)[:TOP_SUBJECTS]
        locations = _ranked(s.location for s in history if s.location)
        slots = _ranked(
            slot for slot in (categorize_time_slot(s.time) for s in history) if slot is not None
        )

        tutor_ratings: dict[str, TutorRatingHistory] = {}
        for session in history:
            if session.review is None:
                continue
            entry = tutor_ratings.setdefault(
                session.tutor_id,
                TutorRatingHistory(tutor_name=tutor_names.get(session.tutor_id, "")),
            )
            entry.ratings.append(session.review.rating)

        return PreferenceProfile(
            frequent_subjects=subjects,
            preferred_location=locations[0] if locations else ANY,
            preferred_time_slot=slots[0] if slots else ANY,
            tutor_ratings=tutor_ratings,
            subjects_need_help=list(student.subjects_need_help) if student else [],
            total_sessions=len(history),
        )

    def build_insights(self, sessions: Sequence[TutoringSession]) -> LearningInsights:
        """Summarise recent learning activity for display."""
        history = list(sessions)[: self.history_limit]
        if not history:
            return LearningInsights()

        subjects = _ranked(s.subject for s in history)
        recent_subjects = list(dict.fromkeys(s.subject for s in history[:5]))
        return LearningInsights(
            total_sessions=len(history),
            most_studied_subject=subjects[0],
            recent_subjects=recent_subjects,
            favorite_time=history[0].time or "Not available",
            learning_streak="Active learner",
        )
