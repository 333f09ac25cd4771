"""Ranking and time-based de-duplication of key-moment candidates."""

from __future__ import annotations

from src.extraction.models import CandidateSegment, KeyMoment


def deduplicate_by_time(
    candidates: list[CandidateSegment],
    window_seconds: float = 30.0,
) -> list[CandidateSegment]:
    """Greedily keep candidates not within *window_seconds* of a kept one.

    The result depends on input order: earlier candidates always win, so
    callers sort by importance first.
    """
    kept: list[CandidateSegment] = []
    for candidate in candidates:
        if any(abs(candidate.timestamp - k.timestamp) < window_seconds for k in kept):
            continue
        kept.append(candidate)
    return kept


def rank_segments(
    candidates: list[CandidateSegment],
    max_count: int,
    window_seconds: float = 30.0,
) -> list[KeyMoment]:
    """Select up to *max_count* key moments from *candidates*.

    Candidates are stable-sorted by descending importance, de-duplicated,
    re-sorted chronologically and then truncated. Truncation happens after
    the chronological sort, so the earliest surviving moments are kept
    rather than the most important ones.
    """
    by_importance = sorted(candidates, key=lambda c: c.importance, reverse=True)
    deduped = deduplicate_by_time(by_importance, window_seconds)
    chronological = sorted(deduped, key=lambda c: c.timestamp)
    return [KeyMoment.from_candidate(c) for c in chronological[: max(0, max_count)]]
