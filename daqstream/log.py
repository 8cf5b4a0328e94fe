"""Log callbacks used throughout the streaming protocol."""

from __future__ import annotations

import logging
import sys
from typing import Callable

LOGGER_NAME = "openDaqStreaming"

LogCallback = Callable[[int, str], None]
"""Called with a logging level and a message."""


class _StdoutHandler(logging.Handler):
    """Handler that always writes to the current standard output."""

    def emit(self, record: logging.LogRecord) -> None:
        try:
            sys.stdout.write(self.format(record) + "\n")
            sys.stdout.flush()
        except Exception:
            self.handleError(record)


def _logger() -> logging.Logger:
    logger = logging.getLogger(LOGGER_NAME)
    if not any(isinstance(h, _StdoutHandler) for h in logger.handlers):
        handler = _StdoutHandler()
        handler.setFormatter(
            logging.Formatter("[%(asctime)s] [%(name)s] [%(levelname)s] %(message)s")
        )
        logger.addHandler(handler)
        logger.setLevel(logging.INFO)
        logger.propagate = False
    return logger


def log_callback() -> LogCallback:
    """Return a callback that writes to the shared stream logger on standard output."""
    logger = _logger()

    def callback(level: int, message: str) -> None:
        logger.log(level, message, stacklevel=2)

    return callback