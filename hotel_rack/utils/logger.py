"""Structured logging utilities."""

from __future__ import annotations

import logging
import sys
from typing import Any, Optional

from hotel_rack.utils.config import get_settings


_LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"
_LOGGER_INITIALIZED = False


def configure_logging(level: Optional[str] = None) -> None:
    """Configure process-wide logging once.

    Rack services, controllers and scripts share one pipe-separated format so
    move and KPI events can be grepped by their ``key=value`` fields.
    """

    global _LOGGER_INITIALIZED
    if _LOGGER_INITIALIZED:
        return

    resolved_level = (level or get_settings().log_level).upper()
    logging.basicConfig(level=resolved_level, format=_LOG_FORMAT, stream=sys.stdout)
    logging.getLogger("hotel_rack").setLevel(resolved_level)
    _LOGGER_INITIALIZED = True


def get_logger(name: str) -> logging.Logger:
    """Return a configured logger for the requested module."""
    configure_logging()
    return logging.getLogger(name)


def format_fields(**fields: Any) -> str:
    """Render ``key=value`` pairs in a stable order for log lines."""
    return " | ".join(f"{key}={fields[key]}" for key in sorted(fields))


def log_event(
    logger: logging.Logger,
    event: str,
    *,
    level: int = logging.INFO,
    **fields: Any,
) -> None:
    """Log ``event`` followed by its structured fields."""
    if not logger.isEnabledFor(level):
        return
    if fields:
        logger.log(level, "%s | %s", event, format_fields(**fields))
    else:
        logger.log(level, "%s", event)
