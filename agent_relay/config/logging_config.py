"""
Configure logging for the relay.

All modules log through the single LOGGER_NAME logger. configure_logging() attaches a
stdout handler and, where the filesystem allows it, a rotating file handler.
session_logger() wraps that logger so every line of one session carries its
correlation id.
"""

import logging
import os
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional

from agent_relay.config.constants import LOGGER_NAME

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

LOG_FILE = Path(os.getenv("LOG_FILE", "logs/agent_relay.log"))
MAX_LOG_SIZE = 10 * 1024 * 1024  # 10 MB
BACKUP_COUNT = 5

# Libraries that log every frame at DEBUG
NOISY_LOGGERS = ("websockets.client", "websockets.protocol")


def _resolve_level(level: Optional[str]) -> int:
    return getattr(logging, (level or LOG_LEVEL).upper(), logging.INFO)


def configure_logging(level: Optional[str] = None) -> logging.Logger:
    """
    Configure the relay logger with console and file handlers.

    Safe to call more than once; handlers from an earlier call are replaced.

    Args:
        level: Level name overriding the LOG_LEVEL environment variable

    Returns:
        logging.Logger: The configured logger instance
    """
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(_resolve_level(level))

    for handler in logger.handlers[:]:
        logger.removeHandler(handler)
        handler.close()

    formatter = logging.Formatter(LOG_FORMAT)

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    if os.getenv("LOG_TO_FILE", "true").lower() not in ("0", "false", "no"):
        try:
            LOG_FILE.parent.mkdir(parents=True, exist_ok=True)
            file_handler = RotatingFileHandler(
                LOG_FILE, maxBytes=MAX_LOG_SIZE, backupCount=BACKUP_COUNT
            )
            file_handler.setFormatter(formatter)
            logger.addHandler(file_handler)
        except OSError as e:
            logger.warning(f"Could not set up file logging at {LOG_FILE}: {e}")

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(logging.INFO, logger.level))

    logger.propagate = False

    logger.debug(f"Logging configured at {logging.getLevelName(logger.level)}")
    return logger


class SessionLogAdapter(logging.LoggerAdapter):
    """Prefixes each message with the session's correlation id."""

    def process(self, msg, kwargs):
        return f"[{self.extra['session_uuid']}] {msg}", kwargs


def session_logger(session_uuid: Optional[str]) -> SessionLogAdapter:
    return SessionLogAdapter(
        logging.getLogger(LOGGER_NAME), {"session_uuid": session_uuid or "-"}
    )
