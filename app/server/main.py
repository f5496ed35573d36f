"""
Entrypoint for the VV Education API server.

`bootstrap()` resolves configuration, configures logging and returns the
auto-configured FastAPI application without binding a socket, so ASGI
servers, tests and scripts can share it. `main()` is the process entry
point behind the `vveducation` console script: it parses command-line
flags and hands the application to uvicorn.

    vveducation --port 9000 --log-level debug
    python -m app.server.main --config deploy/vveducation.toml
"""

from __future__ import annotations

import argparse
import os
import sys
from typing import Optional, Sequence

import uvicorn
from fastapi import FastAPI

from app.server import create_app
from vvce.config import ServerConfig, load_config
from vvce.exceptions import ConfigError
from vvce.observability.logging import configure_logging, get_logger

logger = get_logger(__name__)

EXIT_CONFIG_ERROR = 2


def bootstrap(config: Optional[ServerConfig] = None) -> FastAPI:
    """
    Return a configured backend application instance.

    Args:
        config: Pre-resolved configuration. Loaded from the environment,
            `vveducation.toml` and defaults when omitted.

    Raises:
        ConfigError: if configuration cannot be resolved
    """

    config = config or load_config()
    configure_logging(
        level=config.log_level,
        format=config.log_format,
        log_file=config.log_file,
    )
    return create_app(config)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="vveducation",
        description="Start the VV Education API server.",
    )
    parser.add_argument("--host", help="Interface to bind (default: 0.0.0.0)")
    parser.add_argument("--port", type=int, help="Port to listen on (default: 8080)")
    parser.add_argument("--config", help="Path to a vveducation.toml file")
    parser.add_argument(
        "--log-level",
        choices=["debug", "info", "warning", "error", "critical"],
        type=str.lower,
        help="Root log level",
    )
    parser.add_argument(
        "--reload",
        action="store_true",
        help="Restart the server when source files change (development only)",
    )
    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Start the application and return a process exit code."""

    args = build_parser().parse_args(argv)

    try:
        config = load_config(
            args.config,
            host=args.host,
            port=args.port,
            log_level=args.log_level,
        )
    except ConfigError as exc:
        configure_logging()
        logger.error("configuration_invalid", error=str(exc))
        return EXIT_CONFIG_ERROR

    if args.reload:
        # the reloader re-imports the app in a child process, so hand the
        # resolved flags over through the environment
        _export_overrides(args)
        configure_logging(level=config.log_level, format=config.log_format)
        logger.info("server_starting", host=config.host, port=config.port, reload=True)
        uvicorn.run(
            "app.server.main:bootstrap",
            factory=True,
            host=config.host,
            port=config.port,
            reload=True,
            log_config=None,
        )
        return 0

    application = bootstrap(config)
    logger.info("server_starting", host=config.host, port=config.port, reload=False)
    uvicorn.run(
        application,
        host=config.host,
        port=config.port,
        log_config=None,
    )
    return 0


def _export_overrides(args: argparse.Namespace) -> None:
    if args.config:
        os.environ["VV_CONFIG_FILE"] = str(args.config)
    if args.host:
        os.environ["VV_HOST"] = args.host
    if args.port:
        os.environ["VV_PORT"] = str(args.port)
    if args.log_level:
        os.environ["VV_LOG_LEVEL"] = args.log_level


if __name__ == "__main__":
    sys.exit(main())
