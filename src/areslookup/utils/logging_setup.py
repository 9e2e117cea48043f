"""Shared logger configuration for the ``areslookup`` package."""

from __future__ import annotations

import logging
import sys
from typing import Final

_LOGGER_NAME: Final = "areslookup"


def setup_logger(level: int | None = None) -> logging.Logger:
    """Return the shared areslookup logger, writing to stderr.

    The level is only changed when *level* is given, so library modules can
    fetch the logger at import time without undoing ``--verbose``.
    """

    logger = logging.getLogger(_LOGGER_NAME)
    if level is not None:
        logger.setLevel(level)
    elif logger.level == logging.NOTSET:
        logger.setLevel(logging.INFO)
    logger.propagate = False

    if not any(isinstance(handler, logging.StreamHandler) for handler in logger.handlers):
        handler = logging.StreamHandler(sys.stderr)
        formatter = logging.Formatter(
            "[%(asctime)s] %(levelname)s - %(message)s",
            "%H:%M:%S",
        )
        handler.setFormatter(formatter)
        logger.addHandler(handler)

    return logger
