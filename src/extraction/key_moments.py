"""Key-moment extraction pipeline: chunk, detect, score, rank."""

from __future__ import annotations

import logging

from src.analysis_config import Granularity, KeyMomentConfig
from src.extraction.chunking import chunk_segments
from src.extraction.models import CandidateSegment, KeyMomentsReport
from src.extraction.ranking import rank_segments
from src.extraction.scoring import (
    HeuristicImportanceScorer,
    ImportanceScorer,
    detect_conversational_exchanges,
)
from src.extraction.structural import extract_structural_segments
from src.extraction.topics import HeuristicTopicDetector, TopicDetector
from src.meetingbaas.models import TranscriptSegment

logger = logging.getLogger(__name__)


def merge_topics(user_topics: list[str] | None, detected: list[str], limit: int) -> list[str]:
    """User topics first, then detected ones; trimmed, de-duplicated, capped."""
    merged: dict[str, None] = {}
    for topic in [*(user_topics or []), *detected]:
        topic = topic.strip()
        if topic:
            merged.setdefault(topic, None)
    return list(merged)[:limit]


def extract_key_moments(
    segments: list[TranscriptSegment],
    *,
    topics: list[str] | None = None,
    max_moments: int = 5,
    granularity: Granularity = Granularity.MEDIUM,
    auto_detect_topics: bool = True,
    config: KeyMomentConfig | None = None,
    topic_detector: TopicDetector | None = None,
    scorer: ImportanceScorer | None = None,
) -> KeyMomentsReport:
    """Find the topics and key moments of a transcript.

    Args:
        segments: Transcript segments in any order.
        topics: Caller-supplied topics, listed before detected ones.
        max_moments: Maximum number of moments returned.
        granularity: Controls how many topics are listed.
        auto_detect_topics: Run the topic detector on every chunk.
        config: Window sizes and topic limits; defaults to KeyMomentConfig().
        topic_detector: Override for the heuristic topic detector.
        scorer: Override for the heuristic importance scorer.

    Returns:
        A KeyMomentsReport with chronologically ordered moments.
    """
    config = config or KeyMomentConfig()
    topic_detector = topic_detector or HeuristicTopicDetector(config.max_topics_per_chunk)
    scorer = scorer or HeuristicImportanceScorer()

    ordered = sorted(segments, key=lambda s: s.start_time)
    chunks = chunk_segments(ordered, config.chunk_duration_seconds)

    detected: list[str] = []
    candidates: list[CandidateSegment] = []
    for chunk in chunks:
        if auto_detect_topics:
            detected.extend(topic_detector.detect(chunk))
        candidates.extend(scorer.score(chunk))
        candidates.extend(
            detect_conversational_exchanges(chunk, config.conversation_window_seconds)
        )

    candidates.extend(extract_structural_segments(ordered))

    moments = rank_segments(candidates, max_moments, config.dedup_window_seconds)
    report_topics = merge_topics(topics, detected, config.topic_limit(granularity))

    logger.info(
        "Extracted %d key moments and %d topics from %d segments in %d chunks",
        len(moments),
        len(report_topics),
        len(ordered),
        len(chunks),
    )
    return KeyMomentsReport(topics=report_topics, moments=moments)
