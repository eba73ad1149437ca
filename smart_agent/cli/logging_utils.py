"""Logging utilities for CLI."""

import logging
import os
import sys

LOG_LEVEL_ENV = "SMART_AGENT_LOG_LEVEL"


def setup_logging(log_level: str | None = None, log_file: str | None = None) -> None:
    """
    Setup logging with configurable level.

    Priority: argument > SMART_AGENT_LOG_LEVEL env var > default (WARNING)

    Args:
        log_level: Console level name
        log_file: Optional file that receives DEBUG and above
    """
    if log_level is None:
        log_level = os.environ.get(LOG_LEVEL_ENV, "WARNING")

    level = getattr(logging, log_level.upper(), logging.WARNING)

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(level)
    console_handler.setFormatter(logging.Formatter("%(levelname)s: %(message)s"))

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(console_handler)
    root_logger.setLevel(level)

    if log_file:
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(
            logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")
        )
        root_logger.addHandler(file_handler)
        root_logger.setLevel(logging.DEBUG)

    # aiohttp is noisy at DEBUG
    logging.getLogger("aiohttp").setLevel(max(level, logging.INFO))
