"""Plain-text rendering of times, durations and transcript lines."""

from __future__ import annotations

from src.meetingbaas.models import TranscriptSegment


def format_time(seconds: float) -> str:
    """``MM:SS``, or ``H:MM:SS`` once the time passes an hour."""
    total = max(0, int(seconds))
    hours, rem = divmod(total, 3600)
    minutes, secs = divmod(rem, 60)
    if hours:
        return f"{hours}:{minutes:02d}:{secs:02d}"
    return f"{minutes:02d}:{secs:02d}"


def format_timestamp(seconds: float | None) -> str:
    """Zero-padded ``HH:MM:SS`` used in shareable links."""
    if seconds is None:
        return "00:00:00"
    total = max(0, int(seconds))
    hours, rem = divmod(total, 3600)
    minutes, secs = divmod(rem, 60)
    return f"{hours:02d}:{minutes:02d}:{secs:02d}"


def format_duration(seconds: float) -> str:
    """Human duration such as ``1h 2m 3s``; leading zero units are omitted."""
    total = max(0, int(seconds))
    hours, rem = divmod(total, 3600)
    minutes, secs = divmod(rem, 60)
    if hours:
        return f"{hours}h {minutes}m {secs}s"
    if minutes:
        return f"{minutes}m {secs}s"
    return f"{secs}s"


def format_segment(segment: TranscriptSegment) -> str:
    return f"[{format_time(segment.start_time)}] {segment.speaker}: {segment.text}"


def format_transcript(segments: list[TranscriptSegment]) -> str:
    """All segments as ``[time] speaker: text`` paragraphs."""
    return "\n\n".join(format_segment(seg) for seg in segments)


def timestamped_url(base_url: str, seconds: float) -> str:
    """Append ``?t=<whole seconds>`` to a recording URL."""
    return f"{base_url}?t={int(seconds)}"
