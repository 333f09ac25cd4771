"""Adaptive tiered search over one meeting's transcript.

Tiers run from most to least specific and the first one that finds
anything wins:

1. speaker + terms: the speaker's segments mentioning any search word
2. speaker: all of the speaker's segments
3. multi-term: segments containing at least half of the distinct words
4. basic: case-insensitive substring match of the whole residual query
5. fallback: the time/speaker-filtered listing, even when empty

Time and speaker filters narrow tiers 1, 2 and 5 only; the term tiers
search the whole transcript.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from enum import StrEnum
from functools import cached_property

from src.analysis_config import SortBy
from src.formatting.transcript import format_time
from src.meetingbaas.models import TranscriptSegment
from src.retrieval.query_parser import ParsedQuery
from src.retrieval.search import chronological, filter_segments, search_transcript

logger = logging.getLogger(__name__)

NO_MATCHES_MESSAGE = "No matching video segments found based on your criteria."
MIN_TERM_LENGTH = 3


class SearchTier(StrEnum):
    """Which stage of the fallback chain produced the results."""

    SPEAKER_TERMS = "speaker_terms"
    SPEAKER = "speaker"
    MULTI_TERM = "multi_term"
    BASIC = "basic"
    FALLBACK = "fallback"


@dataclass
class SearchContext:
    """Inputs shared by every tier; filtered views are computed once."""

    segments: list[TranscriptSegment]
    parsed: ParsedQuery

    @cached_property
    def speaker_filtered(self) -> list[TranscriptSegment]:
        return filter_segments(
            self.segments, self.parsed.start_time, self.parsed.end_time, self.parsed.speaker
        )

    @cached_property
    def significant_terms(self) -> list[str]:
        """Distinct lowercased words of three or more characters."""
        words = [w for w in self.parsed.term_words if len(w) >= MIN_TERM_LENGTH]
        return list(dict.fromkeys(words))


@dataclass
class SearchOutcome:
    """Segments found by the winning tier."""

    tier: SearchTier
    segments: list[TranscriptSegment] = field(default_factory=list)


# -- Tiers -------------------------------------------------------------------


def speaker_terms_tier(ctx: SearchContext) -> list[TranscriptSegment]:
    if not ctx.parsed.speaker or not ctx.parsed.search_terms.strip():
        return []
    words = ctx.parsed.term_words
    return [
        seg for seg in ctx.speaker_filtered if any(w in seg.text.lower() for w in words)
    ]


def speaker_tier(ctx: SearchContext) -> list[TranscriptSegment]:
    if not ctx.parsed.speaker:
        return []
    return ctx.speaker_filtered


def multi_term_tier(ctx: SearchContext) -> list[TranscriptSegment]:
    terms = ctx.significant_terms
    if len(terms) <= 1:
        return []
    threshold = max(1, len(terms) // 2)
    result = []
    for seg in ctx.segments:
        text = seg.text.lower()
        if sum(1 for term in terms if term in text) >= threshold:
            result.append(seg)
    return result


def basic_tier(ctx: SearchContext) -> list[TranscriptSegment]:
    if not ctx.parsed.search_terms.strip():
        return []
    return search_transcript(ctx.segments, ctx.parsed.search_terms)


def fallback_tier(ctx: SearchContext) -> list[TranscriptSegment]:
    return ctx.speaker_filtered


Strategy = Callable[[SearchContext], list[TranscriptSegment]]

TIERS: list[tuple[SearchTier, Strategy]] = [
    (SearchTier.SPEAKER_TERMS, speaker_terms_tier),
    (SearchTier.SPEAKER, speaker_tier),
    (SearchTier.MULTI_TERM, multi_term_tier),
    (SearchTier.BASIC, basic_tier),
    (SearchTier.FALLBACK, fallback_tier),
]


def run_tiers(segments: list[TranscriptSegment], parsed: ParsedQuery) -> SearchOutcome:
    """Return the first tier with results, or the (possibly empty) fallback.

    Segments are searched in start-time order whatever order they arrive in.
    """
    ctx = SearchContext(segments=chronological(segments), parsed=parsed)
    for tier, strategy in TIERS[:-1]:
        found = strategy(ctx)
        if found:
            logger.info("Search tier %s returned %d segments", tier.value, len(found))
            return SearchOutcome(tier=tier, segments=list(found))

    tier, strategy = TIERS[-1]
    found = strategy(ctx)
    logger.info("Falling back to segment listing: %d segments", len(found))
    return SearchOutcome(tier=tier, segments=list(found))


# -- Presentation ------------------------------------------------------------


def headline(outcome: SearchOutcome, parsed: ParsedQuery, meeting_name: str) -> str:
    """One-line summary naming the match count and the meeting."""
    if not outcome.segments:
        return NO_MATCHES_MESSAGE
    count = len(outcome.segments)
    terms = parsed.search_terms
    if outcome.tier is SearchTier.SPEAKER_TERMS:
        return (
            f'Found {count} segments where {parsed.speaker} mentioned "{terms}" '
            f'in meeting "{meeting_name}".'
        )
    if outcome.tier is SearchTier.MULTI_TERM:
        return f'Found {count} segments related to "{terms}" in meeting "{meeting_name}".'
    if outcome.tier is SearchTier.BASIC:
        return f'Found {count} results for "{terms}" in meeting "{meeting_name}".'

    first = format_time(outcome.segments[0].start_time)
    last = format_time(outcome.segments[-1].start_time)
    return f'Found {count} segments from {first} to {last} in meeting "{meeting_name}".'


def order_results(
    segments: list[TranscriptSegment],
    sort_by: SortBy,
    max_results: int,
) -> list[TranscriptSegment]:
    """Sort per *sort_by* then keep the first *max_results* segments.

    ``relevance`` keeps the tier's own order; the other orders are stable.
    """
    if sort_by is SortBy.DATE:
        segments = sorted(segments, key=lambda s: s.start_time)
    elif sort_by is SortBy.SPEAKER:
        segments = sorted(segments, key=lambda s: s.speaker.lower())
    return segments[: max(1, max_results)]
