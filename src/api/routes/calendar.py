"""Calendar tools: thin wrappers over the calendar and calendar-event endpoints."""

from __future__ import annotations

import logging
from typing import Any, Literal

from mcp.server.fastmcp import Context

from src.api.deps import client_for, guarded, require_session
from src.api.routes.meetings import RecordingMode, SpeechToTextProvider
from src.api.server import mcp
from src.meetingbaas.auth import Session

logger = logging.getLogger(__name__)

EventStatus = Literal["upcoming", "past", "all"]


def _format_calendar_list(calendars: list[dict[str, Any]]) -> str:
    if not calendars:
        return "No calendars found."
    lines = "\n".join(
        f"- {cal.get('name')} ({cal.get('email')}) [ID: {cal.get('uuid')}]" for cal in calendars
    )
    return f"Found {len(calendars)} calendars:\n\n{lines}"


def _format_event_line(event: dict[str, Any]) -> str:
    bot = " 🤖 Bot scheduled" if event.get("bot_param") else ""
    link = f" Link: {event['meeting_url']}" if event.get("meeting_url") else ""
    return f"- {event.get('name')} [{event.get('start_time')}]{bot}{link} [ID: {event.get('uuid')}]"


def _format_event_details(event: dict[str, Any]) -> str:
    attendees = event.get("attendees") or []
    attendee_lines = (
        "\n".join(f"   - {a.get('name') or 'Unnamed'} ({a.get('email')})" for a in attendees)
        or "   None"
    )
    bot_param = event.get("bot_param")
    if bot_param:
        meeting_type = (bot_param.get("extra") or {}).get("meetingType") or "Not specified"
        bot_details = (
            f"\n   Name: {bot_param.get('bot_name')}"
            f"\n   Recording Mode: {bot_param.get('recording_mode') or 'speaker_view'}"
            f"\n   Meeting Type: {meeting_type}"
        )
    else:
        bot_details = "None"

    lines = [
        "Event Details:",
        f"Title: {event.get('name')}",
        f"Time: {event.get('start_time')} to {event.get('end_time')}",
        f"Meeting URL: {event.get('meeting_url') or 'Not available'}",
        f"Is Organizer: {'Yes' if event.get('is_organizer') else 'No'}",
        f"Is Recurring: {'Yes' if event.get('is_recurring') else 'No'}",
    ]
    if event.get("recurring_event_id"):
        lines.append(f"Recurring Event ID: {event['recurring_event_id']}")
    lines += ["", "Attendees:", attendee_lines, "", "Bot Configuration:", bot_details, ""]
    lines.append(f"Event ID: {event.get('uuid')}")
    return "\n".join(lines)


def _events_of(response: Any) -> tuple[list[dict[str, Any]], str | None]:
    if isinstance(response, dict):
        return response.get("data") or [], response.get("next")
    return list(response or []), None


def _bulk_result(response: Any, verb: str) -> str:
    if isinstance(response, list) and response:
        name = response[0].get("name")
        if len(response) == 1:
            return f'Recording has been {verb} successfully for "{name}".'
        return f'Recording has been {verb} successfully for {len(response)} instances of "{name}".'
    return f"Recording has been {verb} successfully."


# -- Calendars -------------------------------------------------------------------


async def _list_calendars(session: Session) -> str:
    async with client_for(session) as client:
        return _format_calendar_list(await client.list_calendars())


@mcp.tool(name="listCalendars", description="List all calendars integrated with Meeting BaaS")
async def list_calendars(ctx: Context) -> str:
    session = require_session(ctx)
    return await guarded("listing calendars", _list_calendars(session))


async def _get_calendar(session: Session, calendar_id: str) -> str:
    async with client_for(session) as client:
        cal = await client.get_calendar(calendar_id)
    details = [
        "Calendar Details:",
        f"Name: {cal.get('name')}",
        f"Email: {cal.get('email')}",
        f"Platform ID: {cal.get('google_id') or cal.get('microsoft_id')}",
        f"UUID: {cal.get('uuid')}",
    ]
    if cal.get("resource_id"):
        details.append(f"Resource ID: {cal['resource_id']}")
    return "\n".join(details)


@mcp.tool(
    name="getCalendar",
    description="Get detailed information about a specific calendar integration",
)
async def get_calendar(calendar_id: str, ctx: Context) -> str:
    session = require_session(ctx)
    return await guarded("getting calendar", _get_calendar(session, calendar_id))


async def _delete_calendar(session: Session, calendar_id: str) -> str:
    async with client_for(session) as client:
        await client.delete_calendar(calendar_id)
    return (
        "Calendar integration has been successfully removed. "
        "All associated events and scheduled recordings have been deleted."
    )


@mcp.tool(name="deleteCalendar", description="Permanently remove a calendar integration")
async def delete_calendar(calendar_id: str, ctx: Context) -> str:
    session = require_session(ctx)
    logger.info("Deleting calendar %s", calendar_id)
    return await guarded("deleting calendar", _delete_calendar(session, calendar_id))


async def _resync_all(session: Session) -> str:
    async with client_for(session) as client:
        response = await client.resync_all_calendars()
    synced = response.get("synced_calendars") or []
    errors = response.get("errors") or []
    result = f"Calendar sync operation completed.\n\n{len(synced)} calendars synced successfully."
    if errors:
        result += f"\n\n{len(errors)} calendars failed to sync:"
        for calendar_id, reason in errors:
            result += f"\n- Calendar {calendar_id}: {reason}"
    return result


@mcp.tool(name="resyncAllCalendars", description="Force a resync of all connected calendars")
async def resync_all_calendars(ctx: Context) -> str:
    session = require_session(ctx)
    return await guarded("resyncing calendars", _resync_all(session))


# -- Events ----------------------------------------------------------------------


async def _list_upcoming(session: Session, calendar_id: str, status: str, limit: int) -> str:
    async with client_for(session) as client:
        response = await client.list_events(calendar_id, status=status)
    events, next_cursor = _events_of(response)
    if not events:
        return f"No {status} meetings found in this calendar."

    listing = "\n".join(_format_event_line(e) for e in events[:limit])
    result = f"{status.capitalize()} meetings:\n\n{listing}"
    if next_cursor:
        result += f"\n\nMore meetings available. Use 'cursor: {next_cursor}' to see more."
    return result


@mcp.tool(name="listUpcomingMeetings", description="List upcoming meetings from a calendar")
async def list_upcoming_meetings(
    calendar_id: str, ctx: Context, status: EventStatus = "upcoming", limit: int = 20
) -> str:
    session = require_session(ctx)
    return await guarded(
        "listing meetings",
        _list_upcoming(session, calendar_id, status, min(max(1, limit), 100)),
    )


async def _list_events(session: Session, calendar_id: str, filters: dict[str, Any]) -> str:
    async with client_for(session) as client:
        response = await client.list_events(calendar_id, **filters)
    events, next_cursor = _events_of(response)
    if not events:
        return "No events found matching your criteria."

    blocks = []
    for event in events:
        block = f"- {event.get('name')}\n   From: {event.get('start_time')}\n   To: {event.get('end_time')}"
        if event.get("meeting_url"):
            block += f"\n   Link: {event['meeting_url']}"
        attendees = event.get("attendees") or []
        if attendees:
            names = ", ".join(a.get("name") or a.get("email") for a in attendees)
            block += f"\n   Attendees: {names}"
        bot = "🤖 Bot scheduled " if event.get("bot_param") else ""
        block += f"\n   {bot}[ID: {event.get('uuid')}]"
        blocks.append(block)

    result = f"Events ({len(events)}):\n\n" + "\n\n".join(blocks)
    if next_cursor:
        result += f'\n\nMore events available. Use cursor: "{next_cursor}" to see more.'
    return result


@mcp.tool(name="listEvents", description="List calendar events with comprehensive filtering options")
async def list_events(
    calendar_id: str,
    ctx: Context,
    status: EventStatus = "upcoming",
    start_date_gte: str | None = None,
    start_date_lte: str | None = None,
    attendee_email: str | None = None,
    organizer_email: str | None = None,
    updated_at_gte: str | None = None,
    cursor: str | None = None,
) -> str:
    session = require_session(ctx)
    filters = {
        "status": status,
        "start_date_gte": start_date_gte,
        "start_date_lte": start_date_lte,
        "attendee_email": attendee_email,
        "organizer_email": organizer_email,
        "updated_at_gte": updated_at_gte,
        "cursor": cursor,
    }
    return await guarded("listing events", _list_events(session, calendar_id, filters))


async def _get_event(session: Session, event_id: str) -> str:
    async with client_for(session) as client:
        return _format_event_details(await client.get_event(event_id))


@mcp.tool(name="getEvent", description="Get detailed information about a specific calendar event")
async def get_event(event_id: str, ctx: Context) -> str:
    session = require_session(ctx)
    return await guarded("getting event details", _get_event(session, event_id))


async def _schedule(
    session: Session, event_id: str, payload: dict[str, Any], all_occurrences: bool
) -> str:
    async with client_for(session) as client:
        response = await client.schedule_recording(event_id, payload, all_occurrences)
    return _bulk_result(response, "scheduled")


@mcp.tool(
    name="scheduleRecording",
    description="Schedule a bot to record an upcoming meeting from your calendar",
)
async def schedule_recording(
    event_id: str,
    bot_name: str,
    ctx: Context,
    bot_image: str | None = None,
    entry_message: str | None = None,
    recording_mode: RecordingMode = "speaker_view",
    speech_to_text_provider: SpeechToTextProvider | None = None,
    speech_to_text_api_key: str | None = None,
    extra: dict[str, Any] | None = None,
    all_occurrences: bool = False,
) -> str:
    session = require_session(ctx)
    payload: dict[str, Any] = {
        "bot_name": bot_name,
        "extra": extra or {},
        "recording_mode": recording_mode,
    }
    if bot_image:
        payload["bot_image"] = bot_image
    if entry_message:
        payload["enter_message"] = entry_message
    if speech_to_text_provider:
        payload["speech_to_text"] = {"provider": speech_to_text_provider}
        if speech_to_text_api_key:
            payload["speech_to_text"]["api_key"] = speech_to_text_api_key

    logger.info("Scheduling recording for event %s (all=%s)", event_id, all_occurrences)
    return await guarded(
        "scheduling recording", _schedule(session, event_id, payload, all_occurrences)
    )


async def _cancel(session: Session, event_id: str, all_occurrences: bool) -> str:
    async with client_for(session) as client:
        response = await client.cancel_recording(event_id, all_occurrences)
    return _bulk_result(response, "canceled")


@mcp.tool(name="cancelRecording", description="Cancel a previously scheduled recording")
async def cancel_recording(event_id: str, ctx: Context, all_occurrences: bool = False) -> str:
    session = require_session(ctx)
    logger.info("Canceling recording for event %s (all=%s)", event_id, all_occurrences)
    return await guarded("canceling recording", _cancel(session, event_id, all_occurrences))
