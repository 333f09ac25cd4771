"""Markdown links to the Meeting BaaS recording viewer."""

from __future__ import annotations

import math
from dataclasses import dataclass

from src.config import get_settings
from src.formatting.transcript import format_timestamp


@dataclass
class LinkSegment:
    """A moment to link to inside a recording."""

    timestamp: float
    description: str
    speaker: str | None = None


def format_meeting_link(bot_id: str, timestamp: float | None = None) -> str:
    """Viewer URL for *bot_id*, optionally starting at *timestamp* seconds."""
    if not bot_id:
        return ""
    link = f"{get_settings().viewer_base_url}/{bot_id}"
    if timestamp is not None:
        return f"{link}?t={math.floor(timestamp)}"
    return link


def create_shareable_link(
    bot_id: str,
    title: str | None = None,
    timestamp: float | None = None,
    speaker_name: str | None = None,
    description: str | None = None,
) -> str:
    """Rich Markdown block pointing at a recording, ready to paste in chat."""
    link = format_meeting_link(bot_id, timestamp)
    if not link:
        return "⚠️ No meeting link could be generated. Please provide a valid bot ID."

    lines = [f"📽️ **Meeting Recording: {title}**" if title else "📽️ **Meeting Recording**"]
    if timestamp is not None:
        lines.append(f"⏱️ Timestamp: {format_timestamp(timestamp)}")
    if speaker_name:
        lines.append(f"🎤 Speaker: {speaker_name}")
    if description:
        lines.append(f"📝 {description}")
    return "\n".join(lines) + f"\n\n🔗 [View Recording]({link})"


def create_meeting_segments_list(bot_id: str, segments: list[LinkSegment]) -> str:
    """Numbered Markdown list of jump links, followed by a full-recording link."""
    if not segments:
        return create_shareable_link(bot_id, title="Full Recording")

    parts = ["## 📽️ Meeting Segments\n"]
    for index, segment in enumerate(segments, 1):
        entry = f"### Segment {index}: {format_timestamp(segment.timestamp)}\n"
        if segment.speaker:
            entry += f"**Speaker**: {segment.speaker}\n"
        entry += f"**Description**: {segment.description}\n"
        entry += f"🔗 [Jump to this moment]({format_meeting_link(bot_id, segment.timestamp)})\n"
        parts.append(entry)

    parts.append(f"\n🔗 [View Full Recording]({format_meeting_link(bot_id)})")
    return "\n".join(parts)
