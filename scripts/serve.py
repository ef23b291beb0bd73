#!/usr/bin/env python
"""Run the Converty bridge HTTP server, optionally with the interactive console.

Example usages::

    # HTTP server only
    python -m scripts.serve

    # HTTP server in the background of the terminal menu
    python -m scripts.serve --console
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys

import uvicorn

from converty_bridge.core.config import AppSettings, get_settings
from converty_bridge.core.errors import ConfigError
from converty_bridge.core.logging import configure_logging

EXIT_OK = 0
EXIT_CONFIG_ERROR = 2

logger = logging.getLogger("scripts.serve")


def _build_server(settings: AppSettings, host: str | None, port: int | None) -> uvicorn.Server:
    from converty_bridge.main import app

    config = uvicorn.Config(
        app,
        host=host or settings.host,
        port=port or settings.port,
        log_level=settings.log_level.lower(),
    )
    return uvicorn.Server(config)


async def _serve_with_console(server: uvicorn.Server) -> None:
    from converty_bridge.console import ConsoleApp
    from converty_bridge.dependencies import (
        get_api_client,
        get_order_service,
        get_record_store,
        get_token_service,
    )

    server_task = asyncio.create_task(server.serve())
    # Give uvicorn a moment to bind before the menu takes over the terminal.
    await asyncio.sleep(1)
    console = ConsoleApp(
        get_record_store(),
        get_order_service(get_token_service(), get_api_client()),
    )
    try:
        await console.run()
    finally:
        server.should_exit = True
        await server_task


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        description="Serve the Converty OAuth bridge."
    )
    parser.add_argument(
        "--console",
        action="store_true",
        help="Run the interactive menu alongside the HTTP server.",
    )
    parser.add_argument("--host", default=None, help="Override the bind address.")
    parser.add_argument("--port", type=int, default=None, help="Override the port.")
    args = parser.parse_args(argv)

    try:
        settings = get_settings()
    except ConfigError as exc:
        print(f"Configuration error: {exc.message}", file=sys.stderr)
        return EXIT_CONFIG_ERROR

    configure_logging(settings.log_level)
    server = _build_server(settings, args.host, args.port)
    logger.info("Server starting on %s:%s", server.config.host, server.config.port)

    if args.console:
        asyncio.run(_serve_with_console(server))
    else:
        server.run()
    return EXIT_OK


if __name__ == "__main__":  # pragma: no cover - script entry point
    sys.exit(main())
