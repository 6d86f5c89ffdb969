"""Logging setup shared by the worker and embedding applications."""

from __future__ import annotations

import logging
import sys
from typing import Iterable

DEFAULT_LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


def configure_logging(
    level: int = logging.INFO,
    *,
    handlers: Iterable[logging.Handler] | None = None,
) -> logging.Logger:
    """Configure the ``podlearn`` logger.

    Records go to stderr by default since stdout carries the worker's JSON
    event stream.
    """

    logger = logging.getLogger("podlearn")
    logger.setLevel(level)

    if handlers is None:
        stream_handler = logging.StreamHandler(sys.stderr)
        stream_handler.setFormatter(logging.Formatter(DEFAULT_LOG_FORMAT))
        logger.addHandler(stream_handler)
    else:
        for handler in handlers:
            logger.addHandler(handler)

    logging.getLogger("httpx").setLevel(logging.WARNING)
    return logger
