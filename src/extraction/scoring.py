"""Segment importance scoring and conversational-exchange detection."""

from __future__ import annotations

import re
from typing import Protocol

from src.extraction.chunking import Chunk
from src.extraction.models import UNKNOWN_SPEAKER, CandidateSegment, SegmentType

# Cue phrases match as plain substrings, so "will" also fires inside "willing".
_SUMMARY = re.compile(
    r"summarize|summary|summarizing|conclude|conclusion|in conclusion|to sum up", re.IGNORECASE
)
_DECISION = re.compile(
    r"agree|disagree|consensus|decision|decide|decided|determined", re.IGNORECASE
)
_PROBLEM = re.compile(r"problem|issue|challenge|obstacle|difficulty", re.IGNORECASE)
_SOLUTION = re.compile(r"solution|resolve|solve|approach|strategy|tactic", re.IGNORECASE)

IMPORTANCE_RULES: list[tuple[re.Pattern[str], int]] = [
    (re.compile(r"important|key|critical|essential|significant|main|major", re.IGNORECASE), 3),
    (_SUMMARY, 4),
    (
        re.compile(
            r"need to|have to|must|should|will|going to|plan to|action item", re.IGNORECASE
        ),
        2,
    ),
    (_DECISION, 3),
    (_PROBLEM, 2),
    (_SOLUTION, 2),
    (
        re.compile(
            r"next steps|follow up|get back|circle back|future|next time", re.IGNORECASE
        ),
        3,
    ),
]

# "moving forward" and "plan" only affect the description, not the score.
_NEXT_STEPS_DESCRIPTION = re.compile(
    r"next steps|follow up|moving forward|future|plan", re.IGNORECASE
)

MAX_LENGTH_BONUS = 2
WORDS_PER_LENGTH_POINT = 20

CONVERSATION_SIZE = 3


class ImportanceScorer(Protocol):
    """Anything that turns a chunk into scored content candidates."""

    def score(self, chunk: Chunk) -> list[CandidateSegment]: ...


def importance_score(text: str) -> int:
    """Sum of matched rule weights plus a length bonus of up to two points."""
    total = sum(weight for pattern, weight in IMPORTANCE_RULES if pattern.search(text))
    return total + min(MAX_LENGTH_BONUS, len(text.split()) // WORDS_PER_LENGTH_POINT)


def describe_segment(text: str, importance: int) -> str:
    """Pick a short human label for a scored segment.

    Content cues win over the importance-based fallback, checked in the
    order summary, next steps, decision, problem, solution.
    """
    if _SUMMARY.search(text):
        return "Summary or conclusion"
    if _NEXT_STEPS_DESCRIPTION.search(text):
        return "Discussion about next steps"
    if _DECISION.search(text):
        return "Decision point"
    if _PROBLEM.search(text):
        return "Problem discussion"
    if _SOLUTION.search(text):
        return "Solution discussion"

    if importance > 5:
        return "Highly important discussion"
    if importance > 3:
        return "Important point"
    return "Notable discussion"


class HeuristicImportanceScorer:
    """Weighted keyword scorer; segments scoring zero are dropped."""

    def score(self, chunk: Chunk) -> list[CandidateSegment]:
        candidates: list[CandidateSegment] = []
        for seg in chunk:
            if not seg.text:
                continue
            importance = importance_score(seg.text)
            if importance <= 0:
                continue
            candidates.append(
                CandidateSegment(
                    timestamp=seg.start_time,
                    speaker=seg.speaker or UNKNOWN_SPEAKER,
                    text=seg.text,
                    importance=importance,
                    segment_type=SegmentType.CONTENT,
                    description=describe_segment(seg.text, importance),
                )
            )
        return candidates


_default_scorer = HeuristicImportanceScorer()


def score_important_segments(chunk: Chunk) -> list[CandidateSegment]:
    """Score every segment of *chunk* with the default scorer."""
    return _default_scorer.score(chunk)


def detect_conversational_exchanges(
    chunk: Chunk,
    window_seconds: float = 60.0,
) -> list[CandidateSegment]:
    """Find rapid back-and-forth between speakers.

    A window of three consecutive segments qualifies when it has at least two
    distinct non-empty speakers and its first and third segments start less
    than *window_seconds* apart. A qualifying window yields one candidate at
    its first segment and the scan resumes after it, so windows never overlap.

    Args:
        chunk: Segments in chronological order.
        window_seconds: Maximum first-to-third span of an exchange.

    Returns:
        Conversation candidates, importance ``2 + number of speakers``.
    """
    if len(chunk) < CONVERSATION_SIZE:
        return []

    candidates: list[CandidateSegment] = []
    i = 0
    while i <= len(chunk) - CONVERSATION_SIZE:
        window = chunk[i : i + CONVERSATION_SIZE]
        speakers = {seg.speaker for seg in window if seg.speaker}
        span = window[-1].start_time - window[0].start_time
        if len(speakers) >= 2 and span < window_seconds:
            first = window[0]
            candidates.append(
                CandidateSegment(
                    timestamp=first.start_time,
                    speaker=first.speaker or UNKNOWN_SPEAKER,
                    text=first.text,
                    importance=2 + len(speakers),
                    segment_type=SegmentType.CONVERSATION,
                    description=f"Active discussion with {len(speakers)} participants",
                )
            )
            i += CONVERSATION_SIZE
        else:
            i += 1
    return candidates
