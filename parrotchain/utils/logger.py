"""
Logging setup shared by the service modules.
"""
import logging
from typing import Optional

_DEFAULT_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"


def setup_logger(name: str, level: Optional[str] = None) -> logging.Logger:
    """Return a named logger with a single stream handler attached."""
    logger = logging.getLogger(name)

    if level is None:
        from parrotchain.config import settings

        level = settings.LOG_LEVEL

    logger.setLevel(level.upper())

    if not logger.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(_DEFAULT_FORMAT))
        logger.addHandler(handler)

    return logger
