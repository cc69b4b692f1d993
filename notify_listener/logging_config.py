"""
Centralized logging configuration for the listener.

All modules log through children of the ``notify_listener`` logger:
    logger = logging.getLogger(__name__)

``configure_logging`` attaches the console handler once; calling it again only
adjusts the level.
"""
import logging
import os
from typing import Optional

LOGGER_NAME = 'notify_listener'
LOG_LEVEL_ENV = 'NOTIFY_LISTENER_LOG_LEVEL'
LOG_FORMAT = '[%(asctime)s] [%(levelname)-5s] [%(name)s] %(message)s'
DATE_FORMAT = '%Y-%m-%d %H:%M:%S'


def _resolve_level(level: Optional[str]) -> int:
    name = (level or os.environ.get(LOG_LEVEL_ENV, 'INFO')).upper()
    return getattr(logging, name, logging.INFO)


def configure_logging(level: Optional[str] = None) -> logging.Logger:
    """
    Configure the project logger with a stderr handler.

    Args:
        level: Level name such as 'DEBUG'. Falls back to the
            NOTIFY_LISTENER_LOG_LEVEL environment variable, then INFO.

    Returns:
        The configured project logger.
    """
    logger = logging.getLogger(LOGGER_NAME)
    resolved = _resolve_level(level)
    logger.setLevel(resolved)

    if not any(getattr(h, '_notify_listener', False) for h in logger.handlers):
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT))
        handler._notify_listener = True
        logger.addHandler(handler)

    for handler in logger.handlers:
        handler.setLevel(resolved)

    # Prevent duplicate lines when the root logger is configured too
    logger.propagate = False
    return logger
