"""Logging configuration for klirr."""

import logging
import sys

# Track whether logging has been initialized to prevent double-init
_initialized = False

CONSOLE_FORMAT = "%(levelname)-5s [%(name)-18s] %(message)s"


def setup_logging(level: str = "WARNING", verbose: bool = False) -> None:
    """
    Configure logging for the klirr application.

    Args:
        level: Level name for the klirr namespace, e.g. "INFO"
        verbose: If True, override the level to DEBUG
    """
    global _initialized
    if _initialized:
        return
    _initialized = True

    level_str = "DEBUG" if verbose else level.upper()
    resolved = getattr(logging, level_str, logging.WARNING)

    logger = logging.getLogger("klirr")
    logger.setLevel(resolved)
    logger.handlers.clear()

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(resolved)
    console_handler.setFormatter(logging.Formatter(CONSOLE_FORMAT))
    logger.addHandler(console_handler)

    # Suppress noisy third-party loggers
    for noisy_logger in ("httpx", "httpcore", "fontTools"):
        logging.getLogger(noisy_logger).setLevel(logging.WARNING)


def reset_logging() -> None:
    """Reset logging state for testing purposes."""
    global _initialized
    _initialized = False
    logger = logging.getLogger("klirr")
    logger.handlers.clear()
