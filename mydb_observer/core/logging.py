# Opt-in logging configuration for the mydb_observer package logger.
#
# The library itself only logs through `logging.getLogger(__name__)`; an application that
# wants the observer's diagnostics (every emitted `op`, each update route, sink publishes)
# calls `setup_logging()`. Only the `mydb_observer` logger is configured, never the root.

import logging
import os
import sys
from typing import List, Optional, TextIO
from urllib.parse import urlparse

from mydb_observer.settings import Settings

PACKAGE_LOGGER = "mydb_observer"

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

DEFAULT_LOG_LEVEL = "INFO"

VALID_LOG_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]

# Marks handlers installed by setup_logging so a later call replaces them instead of stacking.
_OWNED_ATTR = "_mydb_observer_owned"


def _get_loki_handler(loki_url: str) -> Optional[logging.Handler]:
    """Build a Loki handler labelled for this library, or None if unavailable.

    Requires the optional `loki` extra (python-logging-loki).
    """
    parsed = urlparse(loki_url)
    if not parsed.scheme or not parsed.netloc:
        logging.getLogger(__name__).warning(f"Invalid Loki URL: {loki_url}")
        return None
    try:
        from logging_loki import LokiHandler
    except ImportError:
        logging.getLogger(__name__).debug("python-logging-loki not available, skipping Loki handler")
        return None
    try:
        return LokiHandler(
            url=f"{loki_url.rstrip('/')}/loki/api/v1/push",
            tags={"library": PACKAGE_LOGGER, "environment": os.getenv("ENVIRONMENT", "development")},
            version="1",
        )
    except Exception as e:
        logging.getLogger(__name__).warning(f"Failed to create Loki handler: {e}")
        return None


def _owned_handlers(package_logger: logging.Logger) -> List[logging.Handler]:
    return [handler for handler in package_logger.handlers if getattr(handler, _OWNED_ATTR, False)]


def setup_logging(level: Optional[str] = None, stream: Optional[TextIO] = None) -> logging.Logger:
    """Route the observer's log records to `stream` (stderr by default) and, if configured, Loki.

    Args:
        level: Level name for the package logger. Defaults to the LOG_LEVEL setting.
        stream: Destination of the console handler.

    Returns:
        The configured `mydb_observer` logger. Calling again reconfigures it in place.
    """
    settings = Settings()
    requested = (level or settings.get_log_level(default=DEFAULT_LOG_LEVEL)).upper()
    level_name = requested if requested in VALID_LOG_LEVELS else DEFAULT_LOG_LEVEL

    package_logger = logging.getLogger(PACKAGE_LOGGER)
    package_logger.setLevel(level_name)
    for handler in _owned_handlers(package_logger):
        package_logger.removeHandler(handler)

    handlers: List[logging.Handler] = [logging.StreamHandler(stream or sys.stderr)]
    loki_url = settings.get_loki_url()
    if loki_url:
        loki_handler = _get_loki_handler(loki_url)
        if loki_handler is not None:
            handlers.append(loki_handler)

    for handler in handlers:
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        setattr(handler, _OWNED_ATTR, True)
        package_logger.addHandler(handler)
    # Records are written by our own handlers; don't repeat them through the application's.
    package_logger.propagate = False

    if requested != level_name:
        package_logger.warning(
            f"Invalid LOG_LEVEL '{requested}', using {DEFAULT_LOG_LEVEL}. Valid levels are: {', '.join(VALID_LOG_LEVELS)}"
        )
    return package_logger


def reset_logging() -> None:
    """Remove the handlers installed by `setup_logging` and hand records back to the application."""
    package_logger = logging.getLogger(PACKAGE_LOGGER)
    for handler in _owned_handlers(package_logger):
        package_logger.removeHandler(handler)
    package_logger.setLevel(logging.NOTSET)
    package_logger.propagate = True
