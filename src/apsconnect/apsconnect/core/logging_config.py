"""Logging setup for the application.

Plain-text formatter on a single stream handler attached to the package
logger; modules log through ``logging.getLogger(__name__)``.
"""
from __future__ import annotations

import logging
import sys

LOGGER_NAME = __name__.rsplit(".", 2)[0]
LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def setup_logging(level: str = "INFO") -> logging.Logger:
    root = logging.getLogger(LOGGER_NAME)
    root.setLevel(getattr(logging, str(level).upper(), logging.INFO))

    if not any(getattr(h, "_apsconnect", False) for h in root.handlers):
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT))
        handler._apsconnect = True  # type: ignore[attr-defined]
        root.addHandler(handler)

    logging.getLogger("mysql.connector").setLevel(logging.WARNING)
    return root
