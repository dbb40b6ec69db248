# stepweave/logging_utils.py
# Stream logging for the "stepweave" logger tree; level from STEPWEAVE_LOG_LEVEL.

from __future__ import annotations

import logging
import os
import sys
from typing import Optional, Union

LOGGER_NAME = "stepweave"
LEVEL_ENV = "STEPWEAVE_LOG_LEVEL"
LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s"

_HANDLER_ATTR = "_stepweave_handler"


def _resolve_level(level: Optional[Union[str, int]]) -> int:
    if level is None:
        level = os.environ.get(LEVEL_ENV, "WARNING")
    if isinstance(level, int):
        return level
    return getattr(logging, str(level).strip().upper(), logging.WARNING)


def configure_logging(level: Optional[Union[str, int]] = None, stream=None) -> logging.Logger:
    """Attach one stream handler to the package logger.

    Level: the argument, else $STEPWEAVE_LOG_LEVEL, else WARNING. Calling again
    replaces the handler installed by a previous call.
    """
    logger = logging.getLogger(LOGGER_NAME)

    for handler in list(logger.handlers):
        if getattr(handler, _HANDLER_ATTR, False):
            logger.removeHandler(handler)

    handler = logging.StreamHandler(stream=stream or sys.stderr)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    setattr(handler, _HANDLER_ATTR, True)

    logger.addHandler(handler)
    logger.setLevel(_resolve_level(level))
    return logger
