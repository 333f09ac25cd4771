"""Parsers turning raw Meeting BaaS JSON payloads into typed models."""

from __future__ import annotations

from typing import Any

from src.meetingbaas.errors import UpstreamError
from src.meetingbaas.models import BotDetails, MeetingData, TranscriptSegment


def _words_to_text(words: Any) -> str:
    """Join word tokens with single spaces; missing/empty words give ``""``."""
    if not isinstance(words, list):
        return ""
    return " ".join(str(w.get("text", "")) for w in words if isinstance(w, dict)).strip()


def _as_float(value: Any) -> float | None:
    if value is None:
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def parse_transcript_segment(item: dict[str, Any]) -> TranscriptSegment:
    """Parse one entry of ``bot_data.transcripts``.

    The API delivers::

        {"speaker": "Alice", "start_time": 12.3, "end_time": 15.0,
         "words": [{"text": "Hello"}, {"text": "everyone"}]}

    ``end_time`` is optional; a segment without words yields empty text.
    """
    start = _as_float(item.get("start_time"))
    return TranscriptSegment(
        speaker=str(item.get("speaker") or ""),
        start_time=start if start is not None else 0.0,
        text=_words_to_text(item.get("words")),
        end_time=_as_float(item.get("end_time")),
    )


def parse_bot_details(bot: dict[str, Any]) -> BotDetails:
    extra = bot.get("extra")
    return BotDetails(
        name=str(bot.get("bot_name") or ""),
        meeting_url=str(bot.get("meeting_url") or ""),
        created_at=bot.get("created_at"),
        ended_at=bot.get("ended_at"),
        creator_email=bot.get("creator_email"),
        extra=extra if isinstance(extra, dict) else {},
    )


def parse_meeting_data(bot_id: str, payload: Any) -> MeetingData:
    """Parse the ``/bots/meeting_data`` response.

    Expected shape::

        {
          "duration": 1834,
          "mp4": "https://.../recording.mp4?X-Amz-Signature=...",
          "bot_data": {"bot": {...}, "transcripts": [...]}
        }

    Raises:
        UpstreamError: If ``bot_data`` or ``bot_data.bot`` is missing.
    """
    if not isinstance(payload, dict):
        raise UpstreamError(f"Unexpected meeting data payload for bot {bot_id}")

    bot_data = payload.get("bot_data")
    if not isinstance(bot_data, dict) or not isinstance(bot_data.get("bot"), dict):
        raise UpstreamError(f"Could not find meeting data for the provided bot ID: {bot_id}")

    transcripts = bot_data.get("transcripts") or []
    segments = [parse_transcript_segment(t) for t in transcripts if isinstance(t, dict)]

    return MeetingData(
        bot_id=bot_id,
        duration_seconds=_as_float(payload.get("duration")) or 0.0,
        video_url=str(payload.get("mp4") or ""),
        bot=parse_bot_details(bot_data["bot"]),
        transcripts=segments,
        raw=payload,
    )
