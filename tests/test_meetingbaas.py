"""Tests for the Meeting BaaS client layer: parsers, HTTP client and credentials."""

from __future__ import annotations

import asyncio
import json
from pathlib import Path
from typing import Any

import httpx
import pytest

from src.config import Settings
from src.meetingbaas import auth
from src.meetingbaas.auth import Session, resolve_session
from src.meetingbaas.client import API_KEY_HEADER, MeetingBaasClient
from src.meetingbaas.errors import AuthError, MeetingBaasError, UpstreamError
from src.meetingbaas.parsers import (
    parse_bot_details,
    parse_meeting_data,
    parse_transcript_segment,
)

MEETING_PAYLOAD: dict[str, Any] = {
    "duration": 1834,
    "mp4": "https://cdn.example.com/rec.mp4?X-Amz-Signature=abc",
    "bot_data": {
        "bot": {
            "bot_name": "Weekly Sync",
            "meeting_url": "https://meet.google.com/abc-defg-hij",
            "created_at": "2025-03-01T10:00:00Z",
            "extra": {"meetingType": "standup"},
        },
        "transcripts": [
            {
                "speaker": "Alice",
                "start_time": 0,
                "end_time": 4.5,
                "words": [{"text": "Hello"}, {"text": "everyone"}],
            },
            {"speaker": "Bob", "start_time": "12.5", "words": []},
            {"speaker": "Alice", "start_time": 20},
        ],
    },
}


def _client(handler: Any) -> MeetingBaasClient:
    return MeetingBaasClient(
        "test-key",
        base_url="https://api.test",
        transport=httpx.MockTransport(handler),
    )


def _call(handler: Any, method: str, *args: Any, **kwargs: Any) -> Any:
    async def run() -> Any:
        async with _client(handler) as client:
            return await getattr(client, method)(*args, **kwargs)

    return asyncio.run(run())


# ---------------------------------------------------------------------------
# Parser tests
# ---------------------------------------------------------------------------


class TestParseTranscriptSegment:
    def test_joins_words(self) -> None:
        seg = parse_transcript_segment(MEETING_PAYLOAD["bot_data"]["transcripts"][0])
        assert seg.speaker == "Alice"
        assert seg.text == "Hello everyone"
        assert seg.start_time == 0.0
        assert seg.end_time == 4.5

    def test_empty_words_and_numeric_string(self) -> None:
        seg = parse_transcript_segment(MEETING_PAYLOAD["bot_data"]["transcripts"][1])
        assert seg.text == ""
        assert seg.start_time == 12.5
        assert seg.end_time is None
        assert seg.effective_end_time == 17.5

    def test_missing_fields(self) -> None:
        seg = parse_transcript_segment({})
        assert (seg.speaker, seg.start_time, seg.text) == ("", 0.0, "")


class TestParseBotDetails:
    def test_fields(self) -> None:
        bot = parse_bot_details(MEETING_PAYLOAD["bot_data"]["bot"])
        assert bot.name == "Weekly Sync"
        assert bot.meeting_type == "standup"

    def test_non_dict_extra(self) -> None:
        bot = parse_bot_details({"bot_name": "x", "extra": "oops"})
        assert bot.extra == {}
        assert bot.meeting_type is None


class TestParseMeetingData:
    def test_full_payload(self) -> None:
        meeting = parse_meeting_data("bot-1", MEETING_PAYLOAD)
        assert meeting.bot_id == "bot-1"
        assert meeting.duration_seconds == 1834
        assert meeting.base_video_url == "https://cdn.example.com/rec.mp4"
        assert len(meeting.transcripts) == 3
        assert meeting.speakers == ["Alice", "Bob"]

    def test_missing_bot_data(self) -> None:
        with pytest.raises(UpstreamError, match="Could not find meeting data"):
            parse_meeting_data("bot-1", {"duration": 10})

    def test_not_a_dict(self) -> None:
        with pytest.raises(UpstreamError):
            parse_meeting_data("bot-1", ["nope"])


# ---------------------------------------------------------------------------
# HTTP client tests
# ---------------------------------------------------------------------------


class TestMeetingBaasClient:
    def test_requires_api_key(self) -> None:
        with pytest.raises(AuthError):
            MeetingBaasClient("")

    def test_fetch_meeting_data_sends_key(self) -> None:
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json=MEETING_PAYLOAD)

        meeting = _call(handler, "fetch_meeting_data", "bot-1")
        assert meeting.bot.name == "Weekly Sync"
        assert seen[0].headers[API_KEY_HEADER] == "test-key"
        assert seen[0].url.path == "/bots/meeting_data"
        assert seen[0].url.params["bot_id"] == "bot-1"

    def test_auth_failure(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(401, json={"error": "bad key"})

        with pytest.raises(AuthError, match="Authentication failed"):
            _call(handler, "fetch_meeting_data", "bot-1")

    def test_server_error(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(500, text="boom")

        with pytest.raises(UpstreamError) as excinfo:
            _call(handler, "get_calendar", "cal-1")
        assert excinfo.value.status_code == 500
        assert str(excinfo.value) == "API Error: boom"

    def test_transport_error(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("unreachable", request=request)

        with pytest.raises(UpstreamError, match="Request error"):
            _call(handler, "list_calendars")

    def test_invalid_json(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, text="not json")

        with pytest.raises(UpstreamError, match="invalid JSON"):
            _call(handler, "list_calendars")

    def test_empty_body(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(204)

        assert _call(handler, "leave_meeting", "bot-1") == {}

    def test_join_meeting_posts_payload(self) -> None:
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json={"bot_id": "bot-9"})

        result = _call(handler, "join_meeting", {"bot_name": "Rec"})
        assert result == {"bot_id": "bot-9"}
        assert seen[0].method == "POST"
        assert json.loads(seen[0].content) == {"bot_name": "Rec"}

    def test_list_bots_unwraps(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json={"bots": [{"id": "a"}]})

        assert _call(handler, "list_bots") == [{"id": "a"}]

    def test_list_events_drops_none_filters(self) -> None:
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json={"data": []})

        _call(handler, "list_events", "cal-1", status="upcoming", cursor=None)
        params = seen[0].url.params
        assert params["calendar_id"] == "cal-1"
        assert params["status"] == "upcoming"
        assert "cursor" not in params

    def test_schedule_all_occurrences(self) -> None:
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json=[])

        _call(handler, "schedule_recording", "evt-1", {"bot_name": "Rec"}, all_occurrences=True)
        assert seen[0].url.path == "/calendar_events/evt-1/bot"
        assert seen[0].url.params["all_occurrences"] == "true"

    def test_cancel_single_occurrence(self) -> None:
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json=[])

        _call(handler, "cancel_recording", "evt-1")
        assert seen[0].method == "DELETE"
        assert "all_occurrences" not in seen[0].url.params

    def test_errors_share_base_class(self) -> None:
        assert issubclass(AuthError, MeetingBaasError)
        assert issubclass(UpstreamError, MeetingBaasError)


# ---------------------------------------------------------------------------
# Credential resolution tests
# ---------------------------------------------------------------------------


def _settings(tmp_path: Path, api_key: str = "") -> Settings:
    return Settings(  # type: ignore[call-arg]
        _env_file=None,
        meeting_baas_api_key=api_key,
        claude_desktop_config_path=str(tmp_path / "claude_desktop_config.json"),
    )


def _write_desktop_config(tmp_path: Path, key: str) -> None:
    config = {"mcpServers": {"meetingbaas": {"headers": {"x-api-key": key}}}}
    (tmp_path / "claude_desktop_config.json").write_text(json.dumps(config))


class TestResolveSession:
    def test_header_wins(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr(auth, "get_settings", lambda: _settings(tmp_path, "env-key"))
        assert resolve_session("header-key") == Session(api_key="header-key", source="session")

    def test_environment(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        _write_desktop_config(tmp_path, "file-key")
        monkeypatch.setattr(auth, "get_settings", lambda: _settings(tmp_path, "env-key"))
        session = resolve_session()
        assert session is not None
        assert (session.api_key, session.source) == ("env-key", "environment")

    def test_desktop_config(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        _write_desktop_config(tmp_path, "file-key")
        monkeypatch.setattr(auth, "get_settings", lambda: _settings(tmp_path))
        session = resolve_session()
        assert session is not None
        assert (session.api_key, session.source) == ("file-key", "claude_config")

    def test_none_found(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr(auth, "get_settings", lambda: _settings(tmp_path))
        assert resolve_session() is None

    def test_malformed_config(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        (tmp_path / "claude_desktop_config.json").write_text("{not json")
        monkeypatch.setattr(auth, "get_settings", lambda: _settings(tmp_path))
        assert resolve_session() is None

    def test_config_without_key(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        (tmp_path / "claude_desktop_config.json").write_text('{"mcpServers": {}}')
        monkeypatch.setattr(auth, "get_settings", lambda: _settings(tmp_path))
        assert resolve_session() is None

    @pytest.mark.parametrize(
        "content",
        ["[]", '"key"', '{"mcpServers": []}', '{"mcpServers": {"meetingbaas": {"headers": 1}}}'],
    )
    def test_config_with_unexpected_shape(
        self, content: str, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        (tmp_path / "claude_desktop_config.json").write_text(content)
        monkeypatch.setattr(auth, "get_settings", lambda: _settings(tmp_path))
        assert resolve_session() is None

    def test_session_is_immutable(self) -> None:
        session = Session(api_key="k", source="session")
        with pytest.raises(AttributeError):
            session.api_key = "other"  # type: ignore[misc]
