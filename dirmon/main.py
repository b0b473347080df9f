#!/usr/bin/env python3
"""
Dirmon - command-line entry point.

Watches one directory and copies every observed version of each changed file
into a shadow directory as ``<sequence>_<file name>``. Runs until interrupted.
"""

from __future__ import annotations

import argparse
import signal
import sys
from pathlib import Path
from typing import Optional

from loguru import logger

from dirmon import __version__
from dirmon.utils.config import ConfigError, load_settings
from domains.change_capture.cancellation import CancellationToken
from domains.change_capture.monitor import DirectoryMonitor

LOG_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | <level>{level: <8}</level> | "
    "<cyan>{name}</cyan>:<cyan>{function}</cyan> - <level>{message}</level>"
)


def configure_logging(level: str = "INFO") -> None:
    """Route loguru output to stderr at ``level``."""
    logger.remove()
    logger.add(sys.stderr, format=LOG_FORMAT, level=level)


def build_parser() -> argparse.ArgumentParser:
    """Create the CLI argument parser."""

    parser = argparse.ArgumentParser(
        prog="dirmon",
        description="Capture every version of files changing in a directory.",
    )
    parser.add_argument(
        "-m",
        "--monitor",
        dest="monitor_dir",
        type=Path,
        help="Path to directory to monitor, e.g. --monitor /path/to/dir",
    )
    parser.add_argument(
        "-s",
        "--shadow",
        dest="shadow_dir",
        type=Path,
        help="Path to directory to receive file change copies, e.g. --shadow /path/to/shadow",
    )
    parser.add_argument(
        "-p",
        "--purge-shadow",
        dest="purge_shadow",
        action="store_true",
        default=None,
        help="Purge existing shadow directory before starting.",
    )
    parser.add_argument(
        "-b",
        "--no-display-binary",
        "--display-binary",
        dest="suppress_binary_display",
        action="store_true",
        default=None,
        help="Try not to print binary contents to the console.",
    )
    parser.add_argument(
        "--pattern",
        dest="file_pattern",
        default=None,
        help="Glob applied to file names (default: *.*, every file).",
    )
    parser.add_argument(
        "--max-pending",
        dest="max_pending",
        type=int,
        default=None,
        help="Drop new snapshots once this many are waiting to be written (default: 0, unbounded).",
    )
    parser.add_argument(
        "--no-drain",
        dest="drain_on_stop",
        action="store_false",
        default=None,
        help="Discard snapshots still queued at shutdown instead of writing them.",
    )
    parser.add_argument(
        "--log-level",
        dest="log_level",
        default=None,
        help="Logging level (DEBUG, INFO, WARNING, ERROR).",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")

    return parser


def install_signal_handlers(token: CancellationToken) -> list[int]:
    """
    Cancel ``token`` on SIGINT/SIGTERM; a second Ctrl+C kills the process.

    Returns:
        List that collects the numbers of received signals
    """
    received: list[int] = []

    def _signal_handler(signum, frame):  # noqa: D401
        received.append(signum)
        token.cancel()
        signal.signal(signal.SIGINT, signal.default_int_handler)

    signal.signal(signal.SIGINT, _signal_handler)
    signal.signal(signal.SIGTERM, _signal_handler)
    return received


def main(argv: Optional[list[str]] = None) -> int:
    """Main entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        settings = load_settings(**vars(args))
    except ConfigError as e:
        parser.print_usage(sys.stderr)
        print(e, file=sys.stderr)
        return 2

    configure_logging(settings.log_level)

    logger.info(f"Dirmon v{__version__}")
    logger.info(f"Monitoring {settings.monitor_dir}")
    logger.info(f"Backup to {settings.shadow_dir}")
    logger.info("Starting.... CTRL+C to stop")

    token = CancellationToken()
    received = install_signal_handlers(token)

    try:
        DirectoryMonitor(settings).run(token)
    except Exception as e:
        logger.exception(f"Dirmon failed: {e}")
        return 1

    if received:
        logger.info(f"Received signal {received[0]}, shutting down.")
    logger.info("Monitoring cancelled, shutting down...")
    return 0


if __name__ == "__main__":  # pragma: no cover - CLI bridge
    sys.exit(main())
