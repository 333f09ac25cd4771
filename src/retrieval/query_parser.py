"""Query parser: pull a time range and speaker out of a free-text search."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Any

logger = logging.getLogger(__name__)

_NAME = r"[A-Z][a-z]+(?:\s+[A-Z][a-z]+)?"
_CLOCK = r"(\d+)(?::(\d+))?"


@dataclass
class ParsedQuery:
    """A search query with its derived filters."""

    query: str
    speaker: str | None = None
    start_time: float | None = None
    end_time: float | None = None
    search_terms: str = ""

    @property
    def term_words(self) -> list[str]:
        """Lowercased whitespace-split residual terms."""
        return self.search_terms.lower().split()


# Checked in order; the first pattern that matches decides the time range.
_RANGE_PATTERN = re.compile(rf"between\s+{_CLOCK}\s+(?:and|to)\s+{_CLOCK}", re.IGNORECASE)
_AFTER_PATTERN = re.compile(rf"after\s+{_CLOCK}", re.IGNORECASE)
_BEFORE_PATTERN = re.compile(rf"before\s+{_CLOCK}", re.IGNORECASE)
_AROUND_PATTERN = re.compile(rf"around\s+{_CLOCK}", re.IGNORECASE)

AROUND_WINDOW_SECONDS = 60

_SPEAKER_PATTERNS: list[re.Pattern[str]] = [
    re.compile(
        rf"(?:what|when|where|how|why) did ({_NAME}) (?:say|talk|speak|mention|discuss)",
        re.IGNORECASE,
    ),
    re.compile(rf"(?:statements|comments|opinions|thoughts) (?:from|by) ({_NAME})", re.IGNORECASE),
    re.compile(rf"({_NAME})'s (?:statements|comments|opinions|thoughts)", re.IGNORECASE),
    re.compile(rf"when ({_NAME}) (?:spoke|said|mentioned|discussed)", re.IGNORECASE),
]

# Phrases removed from the query before it is used as search terms
_STRIP_PATTERNS: list[re.Pattern[str]] = [
    re.compile(
        r"in\s+(?:sales|psychiatric|standup|interview|product|planning)\s+meetings?",
        re.IGNORECASE,
    ),
    re.compile(r"from\s+yesterday|last\s+(?:week|day|month)|this\s+(?:month|quarter)", re.IGNORECASE),
    re.compile(rf"where\s+{_NAME}\s+(?:speak|said|talk|mention)", re.IGNORECASE),
    re.compile(r"(?:meeting|bot)\s+(?:id|uuid)[\s:]+[a-f0-9-]{8,}", re.IGNORECASE),
    re.compile(r"between\s+\d+(?::\d+)?\s+(?:and|to)\s+\d+(?::\d+)?", re.IGNORECASE),
    re.compile(r"(?:after|before|around)\s+\d+(?::\d+)?", re.IGNORECASE),
    re.compile(
        rf"(?:what|when|where|how|why) did {_NAME} (?:say|talk|speak|mention|discuss)",
        re.IGNORECASE,
    ),
    re.compile(rf"(?:statements|comments|opinions|thoughts) (?:from|by) {_NAME}", re.IGNORECASE),
    re.compile(rf"{_NAME}'s (?:statements|comments|opinions|thoughts)", re.IGNORECASE),
    re.compile(rf"when {_NAME} (?:spoke|said|mentioned|discussed)", re.IGNORECASE),
]


def _clock_seconds(minutes: str, seconds: str | None) -> float:
    return int(minutes) * 60 + (int(seconds) if seconds else 0)


def extract_time_range(query: str) -> tuple[float | None, float | None]:
    """Return ``(start, end)`` seconds implied by the query, either may be None.

    Times are written as minutes with optional seconds, e.g. "after 5" or
    "between 2:30 and 4". "around N" spans one minute either side.
    """
    match = _RANGE_PATTERN.search(query)
    if match:
        return _clock_seconds(match[1], match[2]), _clock_seconds(match[3], match[4])

    match = _AFTER_PATTERN.search(query)
    if match:
        return _clock_seconds(match[1], match[2]), None

    match = _BEFORE_PATTERN.search(query)
    if match:
        return None, _clock_seconds(match[1], match[2])

    match = _AROUND_PATTERN.search(query)
    if match:
        center = _clock_seconds(match[1], match[2])
        return max(0, center - AROUND_WINDOW_SECONDS), center + AROUND_WINDOW_SECONDS

    return None, None


def extract_speaker(query: str) -> str | None:
    """Return the speaker named by phrases like "what did Alice say"."""
    for pattern in _SPEAKER_PATTERNS:
        match = pattern.search(query)
        if match:
            return match.group(1)
    return None


def strip_filter_phrases(query: str) -> str:
    """Remove time, speaker, date and meeting-type phrases from *query*.

    Falls back to the original query when nothing is left.
    """
    residual = query
    for pattern in _STRIP_PATTERNS:
        residual = pattern.sub("", residual)
    residual = residual.strip()
    return residual or query


def _filter_value(filters: dict[str, Any], *keys: str) -> Any:
    for key in keys:
        if filters.get(key) is not None:
            return filters[key]
    return None


def parse_query(query: str, filters: dict[str, Any] | None = None) -> ParsedQuery:
    """Parse a natural-language search query.

    Structured *filters* (``speaker``, ``startTime``/``start_time``,
    ``endTime``/``end_time``) take precedence over values found in the
    query text.

    Args:
        query: The user's search text.
        filters: Optional structured filters.

    Returns:
        A ParsedQuery; ``search_terms`` is never empty for a non-empty query.
    """
    filters = filters or {}

    start_time, end_time = extract_time_range(query)
    speaker = extract_speaker(query)

    filter_speaker = _filter_value(filters, "speaker")
    if filter_speaker:
        speaker = str(filter_speaker)
    filter_start = _filter_value(filters, "startTime", "start_time")
    if filter_start is not None:
        start_time = float(filter_start)
    filter_end = _filter_value(filters, "endTime", "end_time")
    if filter_end is not None:
        end_time = float(filter_end)

    parsed = ParsedQuery(
        query=query,
        speaker=speaker,
        start_time=start_time,
        end_time=end_time,
        search_terms=strip_filter_phrases(query),
    )
    logger.info(
        "Parsed query: speaker=%s time=%s-%s terms=%r",
        parsed.speaker,
        parsed.start_time,
        parsed.end_time,
        parsed.search_terms,
    )
    return parsed
