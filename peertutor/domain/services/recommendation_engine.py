"""Personalised tutor recommendations backed by a generative model."""

import asyncio
import json
import logging
from typing import Optional, Sequence

from ..entities.recommendation import (
    LearningInsights,
    PreferenceProfile,
    PreferencesEcho,
    RecommendationResult,
    RecommendedTutor,
    SubjectSuggestions,
)
from ..entities.tutoring_session import SessionStatus, TutoringSession
from ..entities.user import User
from ..errors import ExternalServiceDegraded
from ..interfaces.recommendation_model import RecommendationModel
from ..interfaces.session_repository import SessionRepository
from ..interfaces.user_repository import UserRepository
from .preference_analyzer import HISTORY_LIMIT, PreferenceAnalyzer
from .response_parser import RECOMMENDATION_MARKER, REASONING_MARKER, ResponseParser, names_match

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_SECONDS = 10.0
MAX_RECOMMENDATIONS = 5

FALLBACK_NOTE = "(Note: These are rule-based recommendations while the AI service is unavailable.)"
NO_TUTORS_REASONING = "No tutors are available right now."

SUBJECT_PROGRESSIONS: dict[str, list[str]] = {
    "Python": ["Data Structures", "Web Development", "Machine Learning"],
    "Java": ["Object-Oriented Programming", "Data Structures", "Android Development"],
    "Web Development": ["JavaScript", "React", "Full Stack Development"],
    "Database": ["SQL", "NoSQL", "Database Design"],
    "Mathematics": ["Statistics", "Calculus", "Linear Algebra"],
    "Algorithms": ["Data Structures", "Dynamic Programming", "Graph Theory"],
}


def matches_subjects(tutor: User, subjects: Sequence[str]) -> bool:
    """True if any tutor subject and any preferred subject contain one another."""
    return any(
        names_match(tutor_subject, subject)
        for subject in subjects
        for tutor_subject in tutor.subject_names
    )


class RecommendationEngine:
    """
    Ranks candidate tutors for a student.

    The model is optional; without one, or whenever it fails, times out or
    produces nothing usable, a deterministic ranking is returned instead.
    Model failures never reach the caller.
    """

    def __init__(
        self,
        session_repository: SessionRepository,
        user_repository: UserRepository,
        model: Optional[RecommendationModel] = None,
        parser: Optional[ResponseParser] = None,
        analyzer: Optional[PreferenceAnalyzer] = None,
        timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
        max_results: int = MAX_RECOMMENDATIONS,
        history_limit: int = HISTORY_LIMIT,
    ):
        self.session_repository = session_repository
        self.user_repository = user_repository
        self.model = model
        self.parser = parser or ResponseParser()
        self.analyzer = analyzer or PreferenceAnalyzer(history_limit)
        self.timeout_seconds = timeout_seconds
        self.max_results = max_results
        self.history_limit = history_limit

    # ===== Public API =====

    async def recommend(self, student_id: str) -> RecommendationResult:
        """
        Recommend up to ``max_results`` tutors for a student.

        Args:
            student_id: The requesting student.

        Returns:
            RecommendationResult with deduplicated tutors, best first. The list
            is empty when no other tutors exist.

        Raises:
            NotFoundError: If the student does not exist.
        """
        student = self.user_repository.get_user(student_id)
        history = await self._recent_history(student_id)
        candidates = [t for t in self.user_repository.list_tutors() if t.id != student_id]
        profile = self.analyzer.analyze(
            history, student=student, tutor_names={t.id: t.name for t in candidates}
        )
        echo = PreferencesEcho.from_profile(profile)

        if not candidates:
            logger.info(f"No candidate tutors for student {student_id}")
            return RecommendationResult(reasoning=NO_TUTORS_REASONING, preferences=echo)

        if self.model is None:
            return self.fallback_recommendation(profile, candidates)

        try:
            text = await self._generate(self.build_prompt(student, profile, candidates, history))
            return self._from_model_output(text, profile, candidates)
        except ExternalServiceDegraded as e:
            logger.warning(f"Using fallback recommendations for student {student_id}: {e}")
            return self.fallback_recommendation(profile, candidates)

    get_personalized_recommendations = recommend

    def fallback_recommendation(
        self,
        profile: PreferenceProfile,
        candidates: Sequence[User],
    ) -> RecommendationResult:
        """Deterministic ranking: subject matches first, then by rating."""
        recommendations = [
            RecommendedTutor(tutor=tutor, highlights=self._fallback_highlights(tutor, profile))
            for tutor in self.fallback_ranking(profile, candidates)
        ]
        subjects = ", ".join(profile.frequent_subjects) or "your interests"
        lines = [
            f"- **{entry.tutor.name}**: {' | '.join(entry.highlights)}" for entry in recommendations
        ]
        reasoning = (
            f"Based on your recent sessions in {subjects}:\n\n"
            + "\n".join(lines)
            + f"\n\n{FALLBACK_NOTE}"
        )
        return RecommendationResult(
            recommendations=recommendations,
            reasoning=reasoning,
            preferences=PreferencesEcho.from_profile(profile),
        )

    def fallback_ranking(self, profile: PreferenceProfile, candidates: Sequence[User]) -> list[User]:
        matching = [t for t in candidates if matches_subjects(t, profile.frequent_subjects)]
        others = [t for t in candidates if not matches_subjects(t, profile.frequent_subjects)]
        ranked = self._by_rating(matching) + self._by_rating(others)
        return self._dedupe(ranked)[: self.max_results]

    async def suggest_subjects(self, student_id: str) -> SubjectSuggestions:
        """Suggest subjects to study next, from the model or a progression map."""
        student = self.user_repository.get_user(student_id)
        history = await self._recent_history(student_id)

        if self.model is not None:
            try:
                text = await self._generate(self.build_subject_prompt(student, history))
                suggestions = [line.strip() for line in text.splitlines() if line.strip()]
                if suggestions:
                    return SubjectSuggestions(
                        suggestions=suggestions,
                        reasoning="AI-generated suggestions based on your learning journey",
                    )
            except ExternalServiceDegraded as e:
                logger.warning(f"Using fallback subject suggestions for student {student_id}: {e}")

        return self.fallback_subject_suggestions(history)

    def fallback_subject_suggestions(self, history: Sequence[TutoringSession]) -> SubjectSuggestions:
        suggestions: list[str] = []
        for subject in dict.fromkeys(s.subject for s in history):
            for follow_up in SUBJECT_PROGRESSIONS.get(subject, []):
                if follow_up not in suggestions:
                    suggestions.append(follow_up)
        return SubjectSuggestions(
            suggestions=suggestions[: self.max_results],
            reasoning="Suggested based on common learning progressions",
        )

    async def insights(self, student_id: str) -> LearningInsights:
        self.user_repository.get_user(student_id)
        return self.analyzer.build_insights(await self._recent_history(student_id))

    # ===== Prompts =====

    def build_prompt(
        self,
        student: User,
        profile: PreferenceProfile,
        candidates: Sequence[User],
        history: Sequence[TutoringSession],
    ) -> str:
        tutors = [
            {
                "name": t.name,
                "subjects": t.subject_names,
                "rating": t.rating,
                "totalSessions": t.tutor_profile.total_sessions if t.tutor_profile else 0,
                "badges": t.tutor_profile.badges if t.tutor_profile else [],
                "availability": len(t.tutor_profile.availability) if t.tutor_profile else 0,
            }
            for t in candidates
        ]
        recent_subjects = ", ".join(s.subject for s in history) or "None"
        recent_topics = ", ".join(s.topic for s in history) or "None"

        return f"""You recommend peer tutors to students on a university peer tutoring platform.

Student profile:
- Name: {student.name}
- Year: {student.year or 'Not specified'}
- Course: {student.course or 'Not specified'}
- Subjects they need help with: {', '.join(profile.subjects_need_help) or 'Not specified'}

Learning history:
- Completed sessions considered: {profile.total_sessions}
- Most frequent subjects: {', '.join(profile.frequent_subjects) or 'None yet'}
- Recent subjects: {recent_subjects}
- Recent topics: {recent_topics}
- Preferred location: {profile.preferred_location}
- Preferred time slot: {profile.preferred_time_slot}

Available tutors:
{json.dumps(tutors, indent=2)}

Recommend the {self.max_results} tutors who would help this student most. Weigh subject fit with
recent sessions and stated needs, rating and experience, specialisation badges, continuity with
recently studied subjects, and some diversity towards subjects the student wants help with but
has not booked yet.

Answer in exactly this format:
{RECOMMENDATION_MARKER}: [tutor name 1], [tutor name 2], [tutor name 3], [tutor name 4], [tutor name 5]

{REASONING_MARKER}:
- [Tutor Name]: [strength 1] | [strength 2] | [strength 3]

Separate points with '|' and keep each point under 10 words."""

    def build_subject_prompt(self, student: User, history: Sequence[TutoringSession]) -> str:
        return (
            "Suggest 3-5 subjects or topics a student should study next, based on their recent "
            "tutoring sessions.\n\n"
            f"Recent subjects: {', '.join(s.subject for s in history) or 'None'}\n"
            f"Recent topics: {', '.join(s.topic for s in history) or 'None'}\n"
            f"Year: {student.year or 'Not specified'}\n"
            f"Course: {student.course or 'Not specified'}\n\n"
            "Build on what they already know, stay relevant to their course and follow a logical "
            "progression. List one subject per line with a one-sentence reason."
        )

    # ===== Internals =====

    async def _recent_history(self, student_id: str) -> list[TutoringSession]:
        return await self.session_repository.list_sessions_for_student(
            student_id, status=SessionStatus.COMPLETED, limit=self.history_limit
        )

    async def _generate(self, prompt: str) -> str:
        """Call the model, giving up after ``timeout_seconds``.

        A call still running at the deadline is left to finish in the
        background and its result is discarded.

        Raises:
            ExternalServiceDegraded: On timeout, model error or empty output.
        """
        try:
            task = asyncio.ensure_future(self.model.generate(prompt))
        except Exception as e:
            raise ExternalServiceDegraded(f"Model call could not start: {e}") from e

        done, _ = await asyncio.wait({task}, timeout=self.timeout_seconds)
        if not done:
            task.add_done_callback(_discard_result)
            raise ExternalServiceDegraded(f"Model call timed out after {self.timeout_seconds}s")

        try:
            text = task.result()
        except Exception as e:
            raise ExternalServiceDegraded(f"Model call failed: {e}") from e
        if not isinstance(text, str) or not text.strip():
            raise ExternalServiceDegraded("Model returned an empty response")
        return text

    def _from_model_output(
        self,
        text: str,
        profile: PreferenceProfile,
        candidates: Sequence[User],
    ) -> RecommendationResult:
        selected = self.parser.parse(text, candidates)[: self.max_results]
        if not selected:
            raise ExternalServiceDegraded("Model output named no known tutors")

        logger.info(f"Model resolved {len(selected)} tutors")
        if len(selected) < self.max_results:
            chosen = {t.id for t in selected}
            padding = self._by_rating([t for t in candidates if t.id not in chosen])
            selected = self._dedupe(selected + padding)[: self.max_results]

        return RecommendationResult(
            recommendations=[
                RecommendedTutor(tutor=tutor, highlights=self.parser.extract_highlights(text, tutor.name))
                for tutor in selected
            ],
            reasoning=text,
            preferences=PreferencesEcho.from_profile(profile),
        )

    @staticmethod
    def _fallback_highlights(tutor: User, profile: PreferenceProfile) -> list[str]:
        total = tutor.tutor_profile.total_sessions if tutor.tutor_profile else 0
        fit = (
            "Expertise matches your subjects"
            if matches_subjects(tutor, profile.frequent_subjects)
            else "Broadens your subject range"
        )
        return [f"Highly rated ({tutor.rating}★)", fit, f"{total} sessions taught"]

    @staticmethod
    def _by_rating(tutors: Sequence[User]) -> list[User]:
        return sorted(tutors, key=lambda t: t.rating, reverse=True)

    @staticmethod
    def _dedupe(tutors: Sequence[User]) -> list[User]:
        seen: set[str] = set()
        unique = []
        for tutor in tutors:
            if tutor.id not in seen:
                seen.add(tutor.id)
                unique.append(tutor)
        return unique


def _discard_result(task: asyncio.Future) -> None:
    if not task.cancelled() and task.exception() is not None:
        logger.debug(f"Discarded late model failure: {task.exception()}")
