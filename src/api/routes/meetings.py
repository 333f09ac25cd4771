"""Meeting tools: join, leave, recording details and recent-bot history."""

from __future__ import annotations

import logging
from typing import Any, Literal

from mcp.server.fastmcp import Context
from mcp.server.fastmcp.exceptions import ToolError

from src.api.deps import client_for, guarded, load_meeting, require_session, track_access
from src.api.server import mcp
from src.config import get_settings
from src.formatting.transcript import format_duration
from src.meetingbaas.auth import Session
from src.tracking.recent_bots import dump_records, get_recent_bots_store

logger = logging.getLogger(__name__)

RecordingMode = Literal["speaker_view", "gallery_view", "audio_only"]
SpeechToTextProvider = Literal["Gladia", "Runpod", "Default"]
AudioFrequency = Literal["16khz", "24khz"]


def build_join_payload(
    meeting_url: str,
    bot_name: str,
    bot_image: str | None = None,
    entry_message: str | None = None,
    deduplication_key: str | None = None,
    reserved: bool = False,
    recording_mode: str = "speaker_view",
    start_time: str | None = None,
    noone_joined_timeout: int | None = None,
    waiting_room_timeout: int | None = None,
    speech_to_text_provider: str | None = None,
    speech_to_text_api_key: str | None = None,
    streaming_input_url: str | None = None,
    streaming_output_url: str | None = None,
    streaming_audio_frequency: str | None = None,
    extra: dict[str, Any] | None = None,
) -> dict[str, Any]:
    """Request body for ``POST /bots/``; optional groups are omitted when unset."""
    payload: dict[str, Any] = {
        "meeting_url": meeting_url,
        "bot_name": bot_name,
        "bot_image": bot_image,
        "entry_message": entry_message,
        "deduplication_key": deduplication_key,
        "reserved": reserved,
        "recording_mode": recording_mode,
        "start_time": start_time,
        "extra": extra,
    }
    if noone_joined_timeout or waiting_room_timeout:
        payload["automatic_leave"] = {
            "noone_joined_timeout": noone_joined_timeout,
            "waiting_room_timeout": waiting_room_timeout,
        }
    if speech_to_text_provider:
        payload["speech_to_text"] = {
            "provider": speech_to_text_provider,
            "api_key": speech_to_text_api_key,
        }
    if streaming_input_url or streaming_output_url or streaming_audio_frequency:
        payload["streaming"] = {
            "input": streaming_input_url,
            "output": streaming_output_url,
            "audio_frequency": streaming_audio_frequency,
        }
    return {k: v for k, v in payload.items() if v is not None}


async def _join_meeting(
    session: Session, payload: dict[str, Any], scheduled: bool
) -> str:
    async with client_for(session) as client:
        result = await client.join_meeting(payload)

    message = (
        f'Bot named "{payload["bot_name"]}" joined meeting successfully. '
        f"Bot ID: {result.get('bot_id')}"
    )
    if payload.get("bot_image"):
        message += "\nCustom bot image is being used."
    if payload.get("entry_message"):
        message += "\nThe bot will send an entry message."
    if scheduled:
        message += "\nThe bot is scheduled to join at the specified start time."
    return message


@mcp.tool(
    name="joinMeeting",
    description=(
        "Have a bot join a meeting now or schedule it for the future. Bot name, image, "
        "and entry message will use system defaults if not specified."
    ),
)
async def join_meeting(
    meeting_url: str,
    ctx: Context,
    bot_name: str | None = None,
    bot_image: str | None = None,
    entry_message: str | None = None,
    deduplication_key: str | None = None,
    noone_joined_timeout: int | None = None,
    waiting_room_timeout: int | None = None,
    speech_to_text_provider: SpeechToTextProvider | None = None,
    speech_to_text_api_key: str | None = None,
    streaming_input_url: str | None = None,
    streaming_output_url: str | None = None,
    streaming_audio_frequency: AudioFrequency | None = None,
    reserved: bool = False,
    start_time: str | None = None,
    recording_mode: RecordingMode = "speaker_view",
    extra: dict[str, Any] | None = None,
) -> str:
    """Send a recording bot to *meeting_url*.

    Missing bot settings fall back to the ``MEETING_BOT_*`` environment
    defaults.

    Raises:
        ToolError: If no bot name is available from any source, or
            ``MEETING_BOT_EXTRA`` is not a JSON object.
    """
    settings = get_settings()
    bot_name = bot_name or settings.meeting_bot_name
    if not bot_name:
        logger.info("No bot name available from any source")
        raise ToolError("Please provide a name for the bot that will join the meeting.")

    if extra is None:
        try:
            extra = settings.bot_extra()
        except ValueError as exc:
            raise ToolError(f"Invalid MEETING_BOT_EXTRA setting: {exc}") from exc

    session = require_session(ctx)
    payload = build_join_payload(
        meeting_url=meeting_url,
        bot_name=bot_name,
        bot_image=bot_image if bot_image is not None else (settings.meeting_bot_image or None),
        entry_message=entry_message or settings.meeting_bot_entry_message or None,
        deduplication_key=deduplication_key,
        reserved=reserved,
        recording_mode=recording_mode,
        start_time=start_time,
        noone_joined_timeout=noone_joined_timeout,
        waiting_room_timeout=waiting_room_timeout,
        speech_to_text_provider=speech_to_text_provider,
        speech_to_text_api_key=speech_to_text_api_key,
        streaming_input_url=streaming_input_url,
        streaming_output_url=streaming_output_url,
        streaming_audio_frequency=streaming_audio_frequency,
        extra=extra,
    )
    logger.info("Joining meeting %s as %r", meeting_url, bot_name)
    return await guarded("joining meeting", _join_meeting(session, payload, bool(start_time)))


async def _leave_meeting(session: Session, bot_id: str) -> str:
    async with client_for(session) as client:
        await client.leave_meeting(bot_id)
    return "Bot left the meeting successfully"


@mcp.tool(name="leaveMeeting", description="Have a bot leave an ongoing meeting")
async def leave_meeting(bot_id: str, ctx: Context) -> str:
    session = require_session(ctx)
    logger.info("Leaving meeting with bot %s", bot_id)
    return await guarded("making bot leave", _leave_meeting(session, bot_id))


async def _get_meeting_data(session: Session, bot_id: str) -> str:
    meeting = await load_meeting(session, bot_id)
    track_access(session, bot_id, meeting)
    return (
        f"Meeting recording is available. Duration: {format_duration(meeting.duration_seconds)}. "
        f"Contains {len(meeting.transcripts)} transcript segments.\n\n"
        f"MP4 URL: {meeting.video_url}"
    )


@mcp.tool(name="getMeetingData", description="Get recording and transcript data from a meeting")
async def get_meeting_data(bot_id: str, ctx: Context) -> str:
    session = require_session(ctx)
    logger.info("Getting meeting data for bot %s", bot_id)
    return await guarded("getting meeting data", _get_meeting_data(session, bot_id))


@mcp.tool(
    name="getRecentBots",
    description="List the meeting bots accessed most recently through this server",
)
async def get_recent_bots(limit: int = 5) -> str:
    records = get_recent_bots_store().get_recent_bots(min(max(1, limit), 50))
    if not records:
        return "No recently accessed meetings yet."
    return f"Recently accessed meetings ({len(records)}):\n\n{dump_records(records)}"
