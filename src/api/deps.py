"""Shared plumbing for MCP tools: credentials, API access, tracking, errors."""

from __future__ import annotations

import logging
from collections.abc import Awaitable
from typing import TypeVar

from mcp.server.fastmcp import Context
from mcp.server.fastmcp.exceptions import ToolError

from src.meetingbaas.auth import Session, resolve_session
from src.meetingbaas.client import MeetingBaasClient
from src.meetingbaas.errors import MeetingBaasError
from src.meetingbaas.models import MeetingData
from src.tracking.recent_bots import record_bot_access

logger = logging.getLogger(__name__)

T = TypeVar("T")

AUTH_FAILED_MESSAGE = (
    "Authentication failed. Please configure your API key in Claude Desktop settings "
    "or provide it directly."
)

# Recently used bot IDs per API key, for the lifetime of the process
_recent_bot_ids: dict[str, tuple[str, ...]] = {}


def header_api_key(ctx: Context | None) -> str | None:
    """The ``x-api-key`` header of the HTTP request behind *ctx*, if any."""
    if ctx is None:
        return None
    try:
        request = ctx.request_context.request
    except ValueError:
        # stdio transport: no request context
        return None
    headers = getattr(request, "headers", None)
    if headers is None:
        return None
    value = headers.get("x-api-key")
    return value if isinstance(value, str) and value else None


def require_session(ctx: Context | None) -> Session:
    """Resolve credentials for a tool call.

    Raises:
        ToolError: When no API key can be found.
    """
    session = resolve_session(header_api_key(ctx))
    if session is None:
        raise ToolError(AUTH_FAILED_MESSAGE)
    recent = _recent_bot_ids.get(session.api_key, ())
    return Session(api_key=session.api_key, source=session.source, recent_bot_ids=recent)


def client_for(session: Session) -> MeetingBaasClient:
    return MeetingBaasClient(session.api_key)


async def load_meeting(session: Session, bot_id: str) -> MeetingData:
    """Fetch the meeting recorded by *bot_id*."""
    async with client_for(session) as client:
        return await client.fetch_meeting_data(bot_id)


def track_access(session: Session, bot_id: str, meeting: MeetingData | None = None) -> Session:
    """Record *bot_id* as recently used; never raises."""
    updated = record_bot_access(session, bot_id, meeting)
    _recent_bot_ids[session.api_key] = updated.recent_bot_ids
    return updated


async def guarded(action: str, work: Awaitable[T], hint: str = "") -> T | str:
    """Await *work*, turning failures into a user-facing error string.

    ToolError is re-raised so the client sees an error result.
    """
    try:
        return await work
    except ToolError:
        raise
    except MeetingBaasError as exc:
        logger.error("Error %s: %s", action, exc)
        return f"Error {action}: {exc}{hint}"
    except Exception as exc:
        logger.exception("Unexpected error %s", action)
        return f"Error {action}: {exc}{hint}"
