"""Command line entry point: ``python -m logolive`` / ``logolive``."""

from __future__ import annotations

import argparse
import logging
import sys
from typing import Any

from aiohttp import web

from logolive.config import CatchUpPolicy, LogoLiveConfig
from logolive.exceptions import LogoLiveConfigError
from logolive.gateway import create_app
from logolive.service import LogoLiveService


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="logolive",
        description="Poll the logo API and serve its history and live updates.",
    )
    parser.add_argument("--host", help="Bind address (env LOGOLIVE_HOST)")
    parser.add_argument("--port", type=int, help="Listen port (env LOGOLIVE_PORT)")
    parser.add_argument("--upstream-url", help="Logo API URL (env LOGOLIVE_UPSTREAM_URL)")
    parser.add_argument("--poll-interval", type=float, help="Seconds between polls")
    parser.add_argument("--max-backoff", type=float, help="Max seconds between polls while failing")
    parser.add_argument("--history-max-entries", type=int, help="Bound the in-memory history")
    parser.add_argument("--subscriber-queue-size", type=int, help="Live subscriber backlog before disconnect")
    parser.add_argument(
        "--live-catch-up",
        choices=[policy.value for policy in CatchUpPolicy],
        help="What a new live subscriber receives first",
    )
    parser.add_argument(
        "--log-level",
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level",
    )
    return parser


def config_from_args(args: argparse.Namespace) -> LogoLiveConfig:
    overrides: dict[str, Any] = {}
    for field_name in (
        "host",
        "port",
        "upstream_url",
        "poll_interval",
        "max_backoff",
        "history_max_entries",
        "subscriber_queue_size",
        "live_catch_up",
    ):
        value = getattr(args, field_name)
        if field_name == "history_max_entries" and value == 0:
            # 0 means unbounded, as with LOGOLIVE_HISTORY_MAX_ENTRIES
            overrides[field_name] = None
        elif value is not None:
            overrides[field_name] = value
    return LogoLiveConfig.from_env(**overrides)


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        config = config_from_args(args)
    except LogoLiveConfigError as exc:
        print(f"Configuration error: {exc}", file=sys.stderr)
        return 2

    app = create_app(LogoLiveService(config))
    web.run_app(app, host=config.host, port=config.port, print=None)
    return 0


if __name__ == "__main__":
    sys.exit(main())
