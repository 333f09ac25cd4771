"""Async HTTP client for the Meeting BaaS REST API."""

from __future__ import annotations

import json
import logging
from typing import Any

import httpx

from src.config import settings
from src.meetingbaas.errors import AuthError, UpstreamError
from src.meetingbaas.models import MeetingData
from src.meetingbaas.parsers import parse_meeting_data

logger = logging.getLogger(__name__)

API_KEY_HEADER = "x-meeting-baas-api-key"


class MeetingBaasClient:
    """Thin authenticated wrapper over the Meeting BaaS endpoints.

    Use as an async context manager so the underlying connection pool is
    closed::

        async with MeetingBaasClient(api_key) as client:
            meeting = await client.fetch_meeting_data(bot_id)
    """

    def __init__(
        self,
        api_key: str,
        base_url: str | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        if not api_key:
            raise AuthError("Authentication required: No API key provided")
        self._client = httpx.AsyncClient(
            base_url=base_url or settings.meeting_baas_api_url,
            headers={API_KEY_HEADER: api_key, "Content-Type": "application/json"},
            timeout=timeout or settings.request_timeout,
            transport=transport,
        )

    async def __aenter__(self) -> MeetingBaasClient:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    async def request(
        self,
        method: str,
        endpoint: str,
        params: dict[str, Any] | None = None,
        payload: dict[str, Any] | None = None,
    ) -> Any:
        """Send a request and return the decoded JSON body.

        Raises:
            AuthError: On 401/403.
            UpstreamError: On any other HTTP error status, transport failure
                or undecodable body.
        """
        if params:
            params = {k: v for k, v in params.items() if v is not None}
        try:
            response = await self._client.request(method, endpoint, params=params, json=payload)
        except httpx.HTTPError as exc:
            logger.error("Request %s %s failed: %s", method.upper(), endpoint, exc)
            raise UpstreamError(f"Request error: {exc}") from exc

        if response.status_code in (401, 403):
            raise AuthError("Authentication failed: Invalid API key or insufficient permissions")
        if response.is_error:
            logger.error(
                "API returned %d for %s %s", response.status_code, method.upper(), endpoint
            )
            detail = response.text[:500] or response.reason_phrase
            raise UpstreamError(f"API Error: {detail}", status_code=response.status_code)

        if not response.content:
            return {}
        try:
            return response.json()
        except json.JSONDecodeError as exc:
            raise UpstreamError(f"API returned invalid JSON for {endpoint}") from exc

    # -- Bots ---------------------------------------------------------------

    async def fetch_meeting_data(self, bot_id: str) -> MeetingData:
        """Fetch recording, bot details and transcript for *bot_id*."""
        payload = await self.request("get", "/bots/meeting_data", params={"bot_id": bot_id})
        return parse_meeting_data(bot_id, payload)

    async def join_meeting(self, payload: dict[str, Any]) -> dict[str, Any]:
        return await self.request("post", "/bots/", payload=payload)  # type: ignore[no-any-return]

    async def leave_meeting(self, bot_id: str) -> dict[str, Any]:
        return await self.request("delete", f"/bots/{bot_id}")  # type: ignore[no-any-return]

    async def list_bots(self, limit: int = 100, offset: int = 0) -> list[dict[str, Any]]:
        data = await self.request("get", "/bots/all", params={"limit": limit, "offset": offset})
        if isinstance(data, dict):
            # Some API versions wrap the list
            data = data.get("bots") or data.get("data") or []
        return data  # type: ignore[no-any-return]

    # -- Calendars ----------------------------------------------------------

    async def list_calendars(self) -> list[dict[str, Any]]:
        return await self.request("get", "/calendars/")  # type: ignore[no-any-return]

    async def get_calendar(self, calendar_id: str) -> dict[str, Any]:
        return await self.request("get", f"/calendars/{calendar_id}")  # type: ignore[no-any-return]

    async def delete_calendar(self, calendar_id: str) -> None:
        await self.request("delete", f"/calendars/{calendar_id}")

    async def resync_all_calendars(self) -> dict[str, Any]:
        return await self.request("post", "/calendars/resync_all")  # type: ignore[no-any-return]

    async def list_events(self, calendar_id: str, **filters: Any) -> dict[str, Any]:
        params = {"calendar_id": calendar_id, **filters}
        return await self.request("get", "/calendar_events/", params=params)  # type: ignore[no-any-return]

    async def get_event(self, event_id: str) -> dict[str, Any]:
        return await self.request("get", f"/calendar_events/{event_id}")  # type: ignore[no-any-return]

    async def schedule_recording(
        self, event_id: str, payload: dict[str, Any], all_occurrences: bool = False
    ) -> Any:
        params = {"all_occurrences": "true"} if all_occurrences else None
        return await self.request(
            "post", f"/calendar_events/{event_id}/bot", params=params, payload=payload
        )

    async def cancel_recording(self, event_id: str, all_occurrences: bool = False) -> Any:
        params = {"all_occurrences": "true"} if all_occurrences else None
        return await self.request("delete", f"/calendar_events/{event_id}/bot", params=params)
