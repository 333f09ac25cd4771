"""Meeting start/end candidates, always offered to the ranker."""

from __future__ import annotations

from src.extraction.models import UNKNOWN_SPEAKER, CandidateSegment, SegmentType
from src.meetingbaas.models import TranscriptSegment

START_IMPORTANCE = 5
END_IMPORTANCE = 4


def _structural(seg: TranscriptSegment, importance: int, description: str) -> CandidateSegment:
    return CandidateSegment(
        timestamp=seg.start_time,
        speaker=seg.speaker or UNKNOWN_SPEAKER,
        text=seg.text,
        importance=importance,
        segment_type=SegmentType.STRUCTURAL,
        description=description,
    )


def extract_structural_segments(segments: list[TranscriptSegment]) -> list[CandidateSegment]:
    """Return "Meeting start" and, when distinct, "Meeting conclusion".

    Args:
        segments: The whole transcript, sorted by ``start_time``.
    """
    if not segments:
        return []

    first, last = segments[0], segments[-1]
    result = [_structural(first, START_IMPORTANCE, "Meeting start")]
    if len(segments) > 1 and last.start_time != first.start_time:
        result.append(_structural(last, END_IMPORTANCE, "Meeting conclusion"))
    return result
