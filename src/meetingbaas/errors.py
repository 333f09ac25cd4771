"""Exceptions raised by the Meeting BaaS client layer."""

from __future__ import annotations


class MeetingBaasError(Exception):
    """Base class; ``str(exc)`` is safe to show to the user."""


class AuthError(MeetingBaasError):
    """No usable API key, or the API rejected it (401/403)."""


class UpstreamError(MeetingBaasError):
    """The API call failed or returned data we could not interpret."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code
