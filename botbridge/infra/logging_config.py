"""Logging setup for the service (standard library logging)."""

from __future__ import annotations

import logging
import sys

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"
ROOT_LOGGER_NAME = "botbridge"


def configure_logging(level: str = "INFO") -> None:
    """Configure root logging once. Safe to call repeatedly."""
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        stream=sys.stdout,
        format=LOG_FORMAT,
    )
    logging.getLogger(ROOT_LOGGER_NAME).setLevel(
        getattr(logging, level.upper(), logging.INFO)
    )

