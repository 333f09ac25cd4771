"""Data models for key-moment extraction results."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum

UNKNOWN_SPEAKER = "Unknown speaker"


class SegmentType(StrEnum):
    """Which heuristic produced a candidate."""

    CONTENT = "content"
    CONVERSATION = "conversation"
    STRUCTURAL = "structural"


@dataclass
class CandidateSegment:
    """A transcript position proposed as a key moment."""

    timestamp: float
    speaker: str
    text: str
    importance: int
    segment_type: SegmentType
    description: str


@dataclass
class KeyMoment:
    """A ranked candidate as shown to the user."""

    timestamp: float
    speaker: str
    description: str

    @classmethod
    def from_candidate(cls, candidate: CandidateSegment) -> KeyMoment:
        return cls(
            timestamp=candidate.timestamp,
            speaker=candidate.speaker,
            description=candidate.description,
        )


@dataclass
class KeyMomentsReport:
    """Topics and chronologically ordered key moments of one meeting."""

    topics: list[str] = field(default_factory=list)
    moments: list[KeyMoment] = field(default_factory=list)
