"""CLI entry point for the catalogsearch server."""

from __future__ import annotations

import argparse
import logging
import os
import sys
from pathlib import Path

from catalogsearch.config.settings import Settings

CONFIG_ENV_VAR = "CATALOGSEARCH_CONFIG_FILE"


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="catalogsearch",
        description="catalogsearch — OpenSearch search backend for a software catalog",
    )
    parser.add_argument("--config", "-c", type=Path, help="Path to YAML configuration file")
    parser.add_argument("--host", help="Server bind address (overrides config)")
    parser.add_argument("--port", "-p", type=int, help="Server port (overrides config)")
    parser.add_argument("--workers", "-w", type=int, help="Number of worker processes")
    parser.add_argument("--reload", action="store_true", help="Enable auto-reload for development")
    parser.add_argument(
        "--log-level",
        choices=["debug", "info", "warning", "error"],
        help="Log level (overrides config)",
    )
    parser.add_argument("--endpoint", action="append", help="OpenSearch node URL; repeat for several nodes")
    parser.add_argument("--index-prefix", help="Prefix of the OpenSearch indices (overrides config)")
    parser.add_argument("--version", action="version", version=f"catalogsearch {_get_version()}")
    return parser


def load_settings(args: argparse.Namespace) -> Settings:
    """Build settings from the config file (if any) and apply CLI overrides.

    Raises:
        FileNotFoundError: If ``--config`` points to a missing file.
    """
    settings = Settings.from_yaml(args.config) if args.config else Settings()

    if args.host:
        settings.server.host = args.host
    if args.port:
        settings.server.port = args.port
    if args.workers:
        settings.server.workers = args.workers
    if args.log_level:
        settings.observability.log_level = args.log_level
    if args.endpoint:
        settings.opensearch.endpoint = args.endpoint
    if args.index_prefix:
        settings.opensearch.index_prefix = args.index_prefix
    return settings


def main(argv: list[str] | None = None) -> None:
    """Main CLI entry point for the catalogsearch server."""
    args = build_parser().parse_args(argv)

    log_level = args.log_level or "info"
    logging.basicConfig(
        level=getattr(logging, log_level.upper()),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )

    try:
        settings = load_settings(args)
    except FileNotFoundError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)

    import uvicorn

    if args.reload or settings.server.workers > 1:
        # Workers build their own app from an import string, so they only see
        # the config file and the environment, not the overrides above.
        if args.config:
            os.environ[CONFIG_ENV_VAR] = str(args.config.resolve())
        uvicorn.run(
            "catalogsearch.api.app:create_app",
            factory=True,
            host=settings.server.host,
            port=settings.server.port,
            workers=1 if args.reload else settings.server.workers,
            reload=args.reload,
            log_level=log_level,
        )
        return

    from catalogsearch.api.app import create_app

    uvicorn.run(
        create_app(settings),
        host=settings.server.host,
        port=settings.server.port,
        log_level=log_level,
    )


def _get_version() -> str:
    from catalogsearch import __version__

    return __version__


if __name__ == "__main__":
    main()
