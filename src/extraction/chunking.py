"""Time-window chunking of transcript segments."""

from __future__ import annotations

from src.meetingbaas.models import TranscriptSegment

# A chunk is a non-empty run of consecutive segments.
Chunk = list[TranscriptSegment]


def chunk_segments(
    segments: list[TranscriptSegment],
    max_duration: float = 300.0,
) -> list[Chunk]:
    """Greedily group segments into windows of at most *max_duration* seconds.

    The first segment of each chunk is its reference time; a later segment
    joins the chunk while ``start_time - reference <= max_duration``,
    otherwise it opens a new chunk. Input order is preserved and every
    segment lands in exactly one chunk.

    Args:
        segments: Segments, normally sorted by ``start_time``.
        max_duration: Window length in seconds.

    Returns:
        List of non-empty chunks; ``[]`` for empty input.
    """
    chunks: list[Chunk] = []
    current: Chunk = []
    chunk_start = 0.0

    for seg in segments:
        if not current:
            current = [seg]
            chunk_start = seg.start_time
        elif seg.start_time - chunk_start <= max_duration:
            current.append(seg)
        else:
            chunks.append(current)
            current = [seg]
            chunk_start = seg.start_time

    if current:
        chunks.append(current)
    return chunks


def chunk_text(chunk: Chunk) -> str:
    """Concatenate segment texts with single spaces."""
    return " ".join(seg.text for seg in chunk)
