"""Analysis configuration: option enums and the KeyMomentConfig dataclass."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class Granularity(str, Enum):
    """How many topics a key-moments report lists."""

    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class SortBy(str, Enum):
    """Ordering applied to intelligent-search results."""

    RELEVANCE = "relevance"
    DATE = "date"
    SPEAKER = "speaker"


@dataclass(frozen=True)
class KeyMomentConfig:
    """Immutable tuning knobs for key-moment extraction.

    Defaults are five-minute chunks, a 30 second de-duplication window and
    a one minute window for rapid multi-speaker exchanges.
    """

    chunk_duration_seconds: float = 300.0
    dedup_window_seconds: float = 30.0
    conversation_window_seconds: float = 60.0
    max_topics_per_chunk: int = 10
    high_topic_limit: int = 10
    medium_topic_limit: int = 7
    low_topic_limit: int = 5

    def topic_limit(self, granularity: Granularity) -> int:
        if granularity is Granularity.HIGH:
            return self.high_topic_limit
        if granularity is Granularity.MEDIUM:
            return self.medium_topic_limit
        return self.low_topic_limit
