"""Parsing of free-form generative model output into ranked tutors.

The model is asked to answer in this shape::

    RECOMMENDED_TUTORS: [Alice Tan], [Bob Lim], ...

    REASONING:
    - Alice Tan: Strong in algorithms | 4.9 rating | Very responsive

Matching names back to tutors is a best-effort heuristic (bidirectional
substring match). Nothing in this module raises on malformed text.
"""

import logging
import re
from typing import Optional, Sequence

from ..entities.user import User

logger = logging.getLogger(__name__)

RECOMMENDATION_MARKER = "RECOMMENDED_TUTORS"
REASONING_MARKER = "REASONING"
HIGHLIGHT_SEPARATOR = "|"

_MARKER_LINE = re.compile(
    rf"^[\s*_#>]*{RECOMMENDATION_MARKER}[*_]*\s*:[*_]*\s*(.*)$",
    re.IGNORECASE | re.MULTILINE,
)
_REASONING_LINE = re.compile(rf"^[\s*_#>]*{REASONING_MARKER}[*_]*\s*:", re.IGNORECASE)
_BULLET = re.compile(r"^\s*(?:[-*•]|\d+[.)])\s+")
_BRACKETS = re.compile(r"[\[\]]")


def names_match(candidate_name: str, extracted_name: str) -> bool:
    """Case-insensitive bidirectional substring test between two names.

    ``"Alice"`` matches ``"Alice Tan"`` and ``"Dr Alice Tan"`` matches
    ``"Alice Tan"``. Empty names never match.
    """
    candidate = (candidate_name or "").strip().lower()
    extracted = (extracted_name or "").strip().lower()
    if not candidate or not extracted:
        return False
    return extracted in candidate or candidate in extracted


class ResponseParser:
    """Extracts ranked tutor names and per-tutor rationale from model output."""

    def extract_recommended_names(self, text: str) -> list[str]:
        """Return the names listed on the marker line, in order.

        Returns an empty list if the marker line is absent.
        """
        match = _MARKER_LINE.search(text or "")
        if not match:
            logger.debug("Model output has no recommendation marker line")
            return []

        names = []
        for raw in match.group(1).split(","):
            name = _BRACKETS.sub("", raw).strip().strip("*_").strip()
            if name:
                names.append(name)
        return names

    def match_tutors(self, names: Sequence[str], candidates: Sequence[User]) -> list[User]:
        """Resolve extracted names to candidate tutors.

        For each name the first candidate whose name matches is taken; names
        that match nothing, or whose match was already selected, are skipped.
        """
        selected: list[User] = []
        seen: set[str] = set()
        for name in names:
            tutor = next((c for c in candidates if names_match(c.name, name)), None)
            if tutor is None:
                logger.debug(f"No candidate tutor matches '{name}'")
                continue
            if tutor.id in seen:
                continue
            seen.add(tutor.id)
            selected.append(tutor)
        return selected

    def parse(self, text: str, candidates: Sequence[User]) -> list[User]:
        return self.match_tutors(self.extract_recommended_names(text), candidates)

    def extract_reasoning(self, text: str, tutor_name: str) -> Optional[str]:
        """Return the first bullet line of the reasoning block naming the tutor."""
        if not text or not tutor_name:
            return None

        lines = text.splitlines()
        start = next((i + 1 for i, line in enumerate(lines) if _REASONING_LINE.match(line)), 0)
        needle = tutor_name.lower()
        for line in lines[start:]:
            if _BULLET.match(line) and needle in line.lower():
                return line.strip()
        return None

    def extract_highlights(self, text: str, tutor_name: str) -> list[str]:
        """Split a tutor's reasoning bullet into its ``|``-separated points."""
        line = self.extract_reasoning(text, tutor_name)
        if line is None:
            return []

        body = _BULLET.sub("", line, count=1)
        if ":" in body:
            body = body.split(":", 1)[1]
        points = [point.strip().strip("*_").strip() for point in body.split(HIGHLIGHT_SEPARATOR)]
        return [point for point in points if point]
