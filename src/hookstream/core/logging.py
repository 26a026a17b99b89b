"""Logging setup for the relay process."""

from __future__ import annotations

import logging
import sys

from hookstream.core.settings import settings

DEFAULT_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def configure_logging(level: str | None = None, format_string: str | None = None) -> None:
    """Install a stdout console handler on the root logger.

    Args:
        level: Logging level name; defaults to ``LOG_LEVEL``
        format_string: Custom format string for log messages
    """
    log_level = getattr(logging, (level or settings.log_level).upper(), logging.INFO)
    format_string = format_string or DEFAULT_FORMAT

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(log_level)
    console_handler.setFormatter(logging.Formatter(format_string))

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)
    # Replace only our own handler so repeated startups do not duplicate output.
    root_logger.handlers = [
        handler for handler in root_logger.handlers
        if not getattr(handler, "_hookstream_console", False)
    ]
    console_handler._hookstream_console = True  # type: ignore[attr-defined]
    root_logger.addHandler(console_handler)

    # Per-request client logs are noise at INFO.
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
