"""Logging configuration helpers for the engagement engine."""

import logging
from logging import Logger

from engagement_engine.config import LOG_LEVEL


def configure_logging() -> Logger:
    """Configure basic logging for the service and return its root logger."""
    logging.basicConfig(
        level=LOG_LEVEL,
        format="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
    )
    return logging.getLogger("engagement_engine")
