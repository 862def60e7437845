"""Logging configuration helpers for the tutor backend."""

import logging
from logging import Logger

from bac_tutor.config import get_settings


def configure_logging() -> Logger:
    """Configure basic logging for the application and return the package logger."""
    settings = get_settings()
    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
    )
    # httpx logs every outbound request at INFO
    logging.getLogger("httpx").setLevel(logging.WARNING)
    return logging.getLogger("bac_tutor")
