"""Logging helpers for the pageviews CLI.

Log records and the download progress bars share a single rich Console
writing to stderr, so log lines scroll above the live bars and stdout
only carries the command output (e.g. the final summary).
"""

from __future__ import annotations

import logging
import os
import sys

from rich.console import Console
from rich.logging import RichHandler


def _use_color() -> bool:
    if os.getenv("NO_COLOR") is not None:
        return False
    return sys.stderr.isatty()


def make_console() -> Console:
    """Return the stderr Console used for logs and progress bars."""
    return Console(stderr=True, no_color=not _use_color())


def configure_logging(verbose: bool, console: Console | None = None) -> Console:
    """
    Route the pageviews loggers to console and return it.

    Component loggers are named after the component (e.g. `pipeline/ingest`),
    which the handler prints before each message. With verbose, the per-batch
    and per-request DEBUG messages are shown as well.
    """
    if console is None:
        console = make_console()
    handler = RichHandler(
        console=console,
        show_path=False,
        log_time_format="[%Y-%m-%d %H:%M:%S]",
    )
    handler.setFormatter(logging.Formatter("<%(name)s> %(message)s"))
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        handlers=[handler],
        force=True,
    )
    # urllib3 logs every connection at DEBUG
    logging.getLogger("urllib3").setLevel(logging.INFO)
    return console
