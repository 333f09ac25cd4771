"""Pydantic schemas shared by the MCP tools and the HTTP app."""

from __future__ import annotations

from pydantic import BaseModel, Field


class MeetingSegmentInput(BaseModel):
    """A moment to include in a shared segments list."""

    timestamp: float = Field(description="Timestamp in seconds")
    speaker: str | None = Field(default=None, description="Name of the speaker (optional)")
    description: str = Field(description="Brief description of what's happening")


class HealthResponse(BaseModel):
    """Response body for the /health endpoint."""

    status: str
    server: str
    transport: str
