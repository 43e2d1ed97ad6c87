"""The `eyelove` logger and its verbosity levels.

-v 1 shows activation, deactivation and one summary per rewrite pass; -v 2
adds every variable and element decision; -v 3 adds the raw computed values
read from the document and colors that failed to parse.
"""

from __future__ import annotations

import logging
import sys
from typing import Any, TextIO

CHANGES_LEVEL = 25  # Between INFO (20) and WARNING (30)
CHECKS_LEVEL = 15  # Between DEBUG (10) and INFO (20)

logging.addLevelName(CHANGES_LEVEL, "CHANGES")
logging.addLevelName(CHECKS_LEVEL, "CHECKS")

VERBOSITY_SILENT = 0
VERBOSITY_CHANGES = 1
VERBOSITY_CHECKS = 2
VERBOSITY_DEBUG = 3

LOGGER_NAME = "eyelove"


class EyeLoveLogger(logging.Logger):
    """Logger with `changes()` and `checks()` alongside the standard methods."""

    def changes(self, msg: str, *args: Any, **kwargs: Any) -> None:
        """State transitions, stylesheet installs and pass summaries."""
        if self.isEnabledFor(CHANGES_LEVEL):
            self._log(CHANGES_LEVEL, msg, args, **kwargs)

    def checks(self, msg: str, *args: Any, **kwargs: Any) -> None:
        """Per-variable and per-element override decisions."""
        if self.isEnabledFor(CHECKS_LEVEL):
            self._log(CHECKS_LEVEL, msg, args, **kwargs)


def get_logger() -> EyeLoveLogger:
    logging.setLoggerClass(EyeLoveLogger)
    logger = logging.getLogger(LOGGER_NAME)
    assert isinstance(logger, EyeLoveLogger)
    return logger


def setup_logger(verbosity: int, stream: TextIO | None = None) -> None:
    """Route eyelove messages to `stream` (stderr by default) at a CLI verbosity.

    Unknown verbosities fall back to errors only.
    """
    logger = get_logger()
    logger.handlers.clear()

    level_map = {
        VERBOSITY_SILENT: logging.ERROR,
        VERBOSITY_CHANGES: CHANGES_LEVEL,
        VERBOSITY_CHECKS: CHECKS_LEVEL,
        VERBOSITY_DEBUG: logging.DEBUG,
    }
    logger.setLevel(level_map.get(verbosity, logging.ERROR))

    handler = logging.StreamHandler(stream if stream is not None else sys.stderr)
    handler.setFormatter(logging.Formatter("%(message)s"))
    logger.addHandler(handler)
    logger.propagate = False


def reset_logger() -> None:
    """Drop handlers and let records propagate again, so `caplog` sees them."""
    logger = get_logger()
    logger.handlers.clear()
    logger.setLevel(logging.ERROR)
    logger.propagate = True


def checks_enabled() -> bool:
    """Guard for building per-element decision messages."""
    return get_logger().isEnabledFor(CHECKS_LEVEL)


def debug_enabled() -> bool:
    """Guard for dumping raw computed values."""
    return get_logger().isEnabledFor(logging.DEBUG)
