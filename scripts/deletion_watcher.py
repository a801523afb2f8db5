#!/usr/bin/env python3
"""Command line entry point for the deletion watcher.

Watches the configured directories, and mails the operator about deleted
files either immediately or as a daily digest. When no config file exists
yet, a default one is written and the program exits so it can be edited.
"""

from __future__ import annotations

import argparse
import signal
import sys
import threading
from pathlib import Path
from typing import Optional

from loguru import logger

from app.utils.config import config_file_path, load_settings, write_default_config
from app.utils.helpers import configure_logging
from domains.deletion_watch.service import DeletionWatchService


def parse_args(argv: Optional[list[str]] = None) -> argparse.Namespace:
    """Parse CLI arguments."""

    parser = argparse.ArgumentParser(
        description="Watch directories for file deletions and notify by email.",
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="JSON config file (default: $WHOREAPEDWHAT_CONFIG or ./config.json).",
    )
    parser.add_argument(
        "--mode",
        choices=["immediate", "digest", "both"],
        default=None,
        help="Override the configured notification mode.",
    )
    parser.add_argument(
        "--init-config",
        action="store_true",
        help="Write a default config file and exit.",
    )
    parser.add_argument(
        "--log-level",
        default=None,
        help="Override the configured log level (DEBUG, INFO, ...).",
    )

    return parser.parse_args(argv)


def main(argv: Optional[list[str]] = None) -> int:
    """Entry point for the CLI script."""

    args = parse_args(argv)
    configure_logging(args.log_level or "INFO")

    config_file = args.config or config_file_path()
    if args.init_config or not config_file.exists():
        write_default_config(config_file)
        logger.warning(f"Default configuration written to {config_file}")
        logger.info("Edit this file with your settings, then restart.")
        return 0 if args.init_config else 1

    try:
        settings = load_settings(config_file)
    except Exception as e:
        logger.error(f"Failed to load configuration {config_file}: {e}")
        return 1

    if args.mode:
        settings = settings.model_copy(update={"notification_mode": args.mode})
    if not args.log_level:
        configure_logging(settings.log_level)

    problems = settings.validate_runtime()
    if problems:
        for problem in problems:
            logger.error(problem)
        return 1

    service = DeletionWatchService.from_settings(settings)
    if service.start() == 0:
        logger.error("No valid directories to monitor.")
        service.stop()
        return 1

    logger.info(f"Notifications sent to: {settings.email_to}")

    stop_event = threading.Event()

    def _signal_handler(signum, frame):  # noqa: D401
        logger.info(f"Received signal {signum}, shutting down.")
        stop_event.set()

    signal.signal(signal.SIGINT, _signal_handler)
    signal.signal(signal.SIGTERM, _signal_handler)

    try:
        while not stop_event.is_set():
            stop_event.wait(10)
    finally:
        service.stop()

    logger.info("Deletion watcher stopped.")
    return 0


if __name__ == "__main__":  # pragma: no cover - CLI bridge
    sys.exit(main())
