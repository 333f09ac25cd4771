from __future__ import annotations

import json
from functools import lru_cache
from pathlib import Path
from typing import Any

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Server settings validated via Pydantic.

    Values are loaded from environment variables and/or a .env file.
    """

    # Meeting BaaS API
    meeting_baas_api_key: str = ""
    meeting_baas_api_url: str = "https://api.meetingbaas.com"
    viewer_base_url: str = "https://meetingbaas.com/viewer"
    request_timeout: float = 30.0

    # Bot defaults used by joinMeeting when the caller omits them
    meeting_bot_name: str = ""
    meeting_bot_image: str = ""
    meeting_bot_entry_message: str = ""
    meeting_bot_extra: str = ""  # JSON object, e.g. '{"meetingType": "standup"}'

    # Local files
    claude_desktop_config_path: str = str(
        Path.home() / "Library" / "Application Support" / "Claude" / "claude_desktop_config.json"
    )
    recent_bots_path: str = "bot-history.json"

    # Server
    server_name: str = "Meeting BaaS MCP"
    server_host: str = "0.0.0.0"
    server_port: int = 7017
    transport: str = "stdio"
    log_level: str = "INFO"

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}

    def bot_extra(self) -> dict[str, Any] | None:
        """Decode ``meeting_bot_extra``; None when unset."""
        if not self.meeting_bot_extra:
            return None
        value = json.loads(self.meeting_bot_extra)
        if not isinstance(value, dict):
            raise ValueError("MEETING_BOT_EXTRA must be a JSON object")
        return value


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return a cached Settings instance.

    Gracefully handles missing .env files (e.g. in CI/testing) by falling
    back to environment variables and defaults.
    """
    try:
        return Settings()
    except Exception:
        # If .env is missing or unreadable, build settings from env vars only.
        return Settings(_env_file=None)  # type: ignore[call-arg]


settings = get_settings()
