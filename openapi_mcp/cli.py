"""
Command-line entrypoint.

    mcp-openapi [--transport stdio|http] [--host H] [--port P] [--store FILE]
                [--nomg] [--token T] [--timeout S] [--log-level LEVEL]
"""

import argparse
import asyncio
import logging
import sys
from pathlib import Path
from typing import List, Optional

from . import __version__
from .base import PersistenceError
from .config import TRANSPORTS, Settings
from .invoker import ApiInvoker
from .registry import ApiRegistry
from .store import Store
from .toolbox import Toolbox

logger = logging.getLogger("openapi_mcp")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="mcp-openapi",
        description="MCP server that exposes registered HTTP APIs as tools",
    )
    parser.add_argument("-t", "--transport", choices=TRANSPORTS,
                        help="Transport to serve on (default: stdio)")
    parser.add_argument("--host", help="Bind address for the http transport (default: 127.0.0.1)")
    parser.add_argument("-p", "--port", type=int, help="Port for the http transport (default: 3000)")
    parser.add_argument("-s", "--store", help="Path to the API store JSON file")
    parser.add_argument("--nomg", action="store_true", default=None,
                        help="Disable management tools (read-only registry)")
    parser.add_argument("--token", help="Bearer token required by the http transport")
    parser.add_argument("--timeout", type=float, help="Outbound request timeout in seconds (default: 30)")
    parser.add_argument("--log-level", help="Logging level (default: INFO)")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser


def load_settings(argv: Optional[List[str]] = None) -> Settings:
    """Environment settings overridden by any flags given on the command line."""
    parser = build_parser()
    args = parser.parse_args(argv)
    settings = Settings.from_env()

    if args.transport is not None:
        settings.transport = args.transport
    if args.host is not None:
        settings.host = args.host
    if args.port is not None:
        settings.port = args.port
    if args.store is not None:
        settings.store_path = Path(args.store).expanduser()
    if args.nomg:
        settings.enable_management = False
    if args.token is not None:
        settings.auth_token = args.token or None
    if args.timeout is not None:
        settings.timeout = args.timeout
    if args.log_level is not None:
        settings.log_level = args.log_level.upper()

    if settings.transport not in TRANSPORTS:
        parser.error(f"invalid transport: {settings.transport}")

    return settings


def configure_logging(level: str) -> None:
    # stdout carries the stdio protocol, so logs go to stderr
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        stream=sys.stderr,
    )


def build_toolbox(settings: Settings) -> Toolbox:
    store = Store.load(settings.store_path)
    registry = ApiRegistry(store)
    invoker = ApiInvoker(timeout=settings.timeout)
    return Toolbox(registry, invoker, enable_management=settings.enable_management)


def main(argv: Optional[List[str]] = None) -> None:
    settings = load_settings(argv)
    configure_logging(settings.log_level)

    try:
        toolbox = build_toolbox(settings)
    except PersistenceError as e:
        logger.error(e.message)
        sys.exit(1)

    logger.info(f"API store: {settings.store_path}")
    if not settings.enable_management:
        logger.info("Management tools disabled (--nomg)")

    if settings.transport == "http":
        import uvicorn

        from .server import create_app

        app = create_app(toolbox, auth_token=settings.auth_token)
        logger.info(f"Starting http transport on {settings.host}:{settings.port}")
        uvicorn.run(app, host=settings.host, port=settings.port, log_level=settings.log_level.lower())
    else:
        from .stdio import run_stdio

        if settings.auth_token:
            logger.warning("--token only applies to the http transport; ignored for stdio")
        asyncio.run(run_stdio(toolbox))


if __name__ == "__main__":
    main()
