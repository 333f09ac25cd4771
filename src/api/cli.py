"""Command-line entry point: ``meetingbaas-mcp``."""

from __future__ import annotations

import argparse
import logging
import sys

import uvicorn

from src.config import settings

TRANSPORTS = ("stdio", "sse", "streamable-http")


class PingFilter(logging.Filter):
    """Drop JSON-RPC ping/pong chatter from the logs."""

    def filter(self, record: logging.LogRecord) -> bool:
        message = record.getMessage()
        return '"method":"ping"' not in message.replace(" ", "") and "PingRequest" not in message


def configure_logging(level: str) -> None:
    # stdout carries the stdio transport, so logs go to stderr
    logging.basicConfig(
        level=level.upper(),
        stream=sys.stderr,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    for handler in logging.getLogger().handlers:
        handler.addFilter(PingFilter())


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="meetingbaas-mcp", description=settings.server_name)
    parser.add_argument("--transport", choices=TRANSPORTS, default=settings.transport)
    parser.add_argument("--host", default=settings.server_host)
    parser.add_argument("--port", type=int, default=settings.server_port)
    parser.add_argument("--log-level", default=settings.log_level)
    return parser


def main(argv: list[str] | None = None) -> None:
    args = build_parser().parse_args(argv)
    configure_logging(args.log_level)
    logger = logging.getLogger(__name__)

    if args.transport == "stdio":
        from src.api.server import load_routes

        logger.info("Starting %s on stdio", settings.server_name)
        load_routes().run("stdio")
        return

    if args.transport == "sse":
        from src.api.server import load_routes

        logger.info("Starting %s (SSE) on %s:%d", settings.server_name, args.host, args.port)
        uvicorn.run(
            load_routes().sse_app(),
            host=args.host,
            port=args.port,
            log_level=args.log_level.lower(),
        )
        return

    from src.api.main import app

    logger.info("Starting %s on http://%s:%d/mcp", settings.server_name, args.host, args.port)
    uvicorn.run(app, host=args.host, port=args.port, log_level=args.log_level.lower())


if __name__ == "__main__":
    main()
