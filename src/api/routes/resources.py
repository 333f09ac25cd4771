"""MCP resources exposing a meeting's transcript and metadata."""

from __future__ import annotations

import json
import logging

from src.api.deps import AUTH_FAILED_MESSAGE, load_meeting
from src.api.server import mcp
from src.formatting.transcript import format_duration, format_transcript
from src.meetingbaas.auth import resolve_session
from src.meetingbaas.errors import MeetingBaasError

logger = logging.getLogger(__name__)


@mcp.resource(
    "meeting://transcript/{bot_id}",
    name="Meeting Transcript",
    mime_type="text/plain",
)
async def meeting_transcript(bot_id: str) -> str:
    """Full transcript as ``[time] speaker: text`` paragraphs."""
    session = resolve_session()
    if session is None:
        return AUTH_FAILED_MESSAGE
    try:
        meeting = await load_meeting(session, bot_id)
    except MeetingBaasError as exc:
        logger.error("Error retrieving transcript for %s: %s", bot_id, exc)
        return f"Error retrieving transcript: {exc}"
    return format_transcript(meeting.transcripts) or "No transcript available for this meeting."


@mcp.resource(
    "meeting://metadata/{bot_id}",
    name="Meeting Metadata",
    mime_type="application/json",
)
async def meeting_metadata(bot_id: str) -> str:
    """Duration, recording URL, bot details and segment count as JSON."""
    session = resolve_session()
    if session is None:
        return AUTH_FAILED_MESSAGE
    try:
        meeting = await load_meeting(session, bot_id)
    except MeetingBaasError as exc:
        logger.error("Error retrieving metadata for %s: %s", bot_id, exc)
        return f"Error retrieving metadata: {exc}"

    metadata = {
        "duration": meeting.duration_seconds,
        "formattedDuration": format_duration(meeting.duration_seconds),
        "videoUrl": meeting.video_url,
        "bot": {
            "name": meeting.bot.name,
            "meetingUrl": meeting.bot.meeting_url,
            "createdAt": meeting.bot.created_at,
            "endedAt": meeting.bot.ended_at,
        },
        "transcriptSegments": len(meeting.transcripts),
    }
    return json.dumps(metadata, indent=2)
