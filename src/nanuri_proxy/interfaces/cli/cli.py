"""``nanuri-proxy`` console script.

Reads config exactly once (defaults, YAML, env, flags), sets up logging from
it and hands the resulting app to uvicorn.
"""

from __future__ import annotations

import argparse
import os
import sys
from collections.abc import Iterable
from pathlib import Path
from typing import Any

import structlog
import uvicorn

from nanuri_proxy.infrastructure.config import load_config
from nanuri_proxy.infrastructure.logging.setup import configure_logging
from nanuri_proxy.interfaces.app import create_app

log = structlog.get_logger(__name__)

DEFAULT_HOST = "0.0.0.0"
DEFAULT_PORT = 8787


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="nanuri-proxy",
        description="Serve the nanuri KTV search and play-url proxy.",
    )

    listen = parser.add_argument_group("listen address")
    listen.add_argument("--host", help=f"interface to bind; HOST or {DEFAULT_HOST}")
    listen.add_argument(
        "--port", type=int, help=f"TCP port to bind; PORT or {DEFAULT_PORT}"
    )

    sources = parser.add_argument_group("config sources")
    sources.add_argument("--config", type=Path, help="sectioned YAML config file")
    sources.add_argument("--dotenv", type=Path, help=".env file read before env vars")

    overrides = parser.add_argument_group("overrides (beat YAML and env)")
    overrides.add_argument("--environment", choices=["dev", "test", "prod"])
    overrides.add_argument(
        "--debug-dump-dir",
        type=Path,
        help="write debug_search.html / debug_detail.html here",
    )
    overrides.add_argument(
        "--log-level", choices=["DEBUG", "INFO", "WARNING", "ERROR"]
    )
    overrides.add_argument("--log-format", choices=["json", "console"])

    return parser


def _bind_address(args: argparse.Namespace) -> tuple[str, int]:
    host = args.host or os.getenv("HOST") or DEFAULT_HOST
    port = args.port or int(os.getenv("PORT") or DEFAULT_PORT)
    return host, port


def _config_overrides(args: argparse.Namespace) -> dict[str, Any]:
    """Flat load_config() keys for every flag that was given."""
    flags = {
        "environment": args.environment,
        "search_debug_dump_dir": args.debug_dump_dir,
        "log_level": args.log_level,
        "log_format": args.log_format,
    }
    return {key: value for key, value in flags.items() if value is not None}


def start(argv: Iterable[str] | None = None) -> None:
    args = _build_parser().parse_args(
        list(argv) if argv is not None else sys.argv[1:]
    )
    host, port = _bind_address(args)

    config = load_config(
        config_path=args.config,
        dotenv_path=args.dotenv,
        cli_overrides=_config_overrides(args),
    )
    log_config = configure_logging(config)
    log.info(
        "server_starting",
        host=host,
        port=port,
        environment=config.environment,
        portal=config.portal.origin,
    )

    uvicorn.run(create_app(config), host=host, port=port, log_config=log_config)


if __name__ == "__main__":
    start()
