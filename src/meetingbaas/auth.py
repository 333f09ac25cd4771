"""Credential resolution for tool calls.

An API key is looked up, in order, from the ``x-api-key`` request header,
the ``MEETING_BAAS_API_KEY`` setting and finally the Claude Desktop config
file (``mcpServers.meetingbaas.headers["x-api-key"]``).
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from pathlib import Path

from src.config import get_settings

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Session:
    """Authenticated caller context passed to the API client."""

    api_key: str
    source: str
    recent_bot_ids: tuple[str, ...] = ()


def _key_from_desktop_config(path: Path) -> str | None:
    if not path.exists():
        return None
    try:
        config = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as exc:
        logger.error("Error reading Claude Desktop config %s: %s", path, exc)
        return None
    if not isinstance(config, dict):
        logger.error("Claude Desktop config %s is not a JSON object", path)
        return None

    servers = config.get("mcpServers")
    server = servers.get("meetingbaas") if isinstance(servers, dict) else None
    headers = server.get("headers") if isinstance(server, dict) else None
    key = headers.get("x-api-key") if isinstance(headers, dict) else None
    return str(key) if key else None


def resolve_session(header_api_key: str | None = None) -> Session | None:
    """Return a Session for the first credential found, or None.

    Args:
        header_api_key: Value of the ``x-api-key`` header on the incoming
            request, when the transport has one.
    """
    if header_api_key:
        logger.debug("Using API key from request header")
        return Session(api_key=header_api_key, source="session")

    settings = get_settings()
    if settings.meeting_baas_api_key:
        logger.debug("Using API key from environment")
        return Session(api_key=settings.meeting_baas_api_key, source="environment")

    key = _key_from_desktop_config(Path(settings.claude_desktop_config_path).expanduser())
    if key:
        logger.debug("Using API key from Claude Desktop config")
        return Session(api_key=key, source="claude_config")

    logger.error("No API key found in request headers, environment, or Claude Desktop config")
    return None
