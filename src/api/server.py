"""The FastMCP server instance that tool and resource modules register on."""

from __future__ import annotations

from mcp.server.fastmcp import FastMCP

from src.config import settings

mcp = FastMCP(settings.server_name)


def load_routes() -> FastMCP:
    """Import every route module so its tools and resources are registered."""
    from src.api.routes import calendar, links, meetings, resources, search  # noqa: F401

    return mcp
