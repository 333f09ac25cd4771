"""Data models for Meeting BaaS meeting data."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

# Estimated duration of a segment when the API omits its end time.
DEFAULT_SEGMENT_SECONDS = 5.0


@dataclass
class TranscriptSegment:
    """One transcribed utterance."""

    speaker: str
    start_time: float
    text: str
    end_time: float | None = None

    @property
    def effective_end_time(self) -> float:
        if self.end_time is not None:
            return self.end_time
        return self.start_time + DEFAULT_SEGMENT_SECONDS


@dataclass
class BotDetails:
    """Recording bot attached to a meeting."""

    name: str = ""
    meeting_url: str = ""
    created_at: str | None = None
    ended_at: str | None = None
    creator_email: str | None = None
    extra: dict[str, Any] = field(default_factory=dict)

    @property
    def meeting_type(self) -> str | None:
        value = self.extra.get("meetingType")
        return str(value) if value else None


@dataclass
class MeetingData:
    """Recording, bot details and transcript returned by ``/bots/meeting_data``."""

    bot_id: str
    duration_seconds: float
    video_url: str
    bot: BotDetails
    transcripts: list[TranscriptSegment] = field(default_factory=list)
    raw: dict[str, Any] = field(default_factory=dict, repr=False)

    @property
    def base_video_url(self) -> str:
        """Video URL with any signed query string removed."""
        return self.video_url.split("?")[0]

    @property
    def speakers(self) -> list[str]:
        """Distinct non-empty speaker names in order of first appearance."""
        seen: dict[str, None] = {}
        for seg in self.transcripts:
            name = seg.speaker.strip()
            if name:
                seen.setdefault(name, None)
        return list(seen)
