import logging
import sys
from typing import Optional

from commission_engine.core.config import LOG_LEVEL

LOGGER_NAME = "commission_engine"
LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def configure_logging(level: Optional[str] = None) -> logging.Logger:
    """
    Attach one stream handler to the package logger.

    Safe to call more than once: an existing handler is reused and only the
    level is updated.
    """
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel((level or LOG_LEVEL).upper())

    if not any(getattr(h, "_commission_engine", False) for h in logger.handlers):
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        handler._commission_engine = True
        logger.addHandler(handler)

    return logger
