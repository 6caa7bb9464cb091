"""
Logging for pathcraft: console output for the CLI, plus rotating text and JSON
logs when a log directory is given. Keyword arguments passed to ``log`` become
fields of the JSON records.
"""

import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any, Optional

from pythonjsonlogger import jsonlogger

from pathcraft.core.constants import LOG_BACKUP_COUNT, MAX_LOG_SIZE_BYTES

LOGGER_NAME = "pathcraft"
CONSOLE_FORMAT = "%(message)s"
TEXT_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
JSON_FORMAT = "%(asctime)s %(name)s %(levelname)s %(message)s"


def _rotating_handler(path: Path, formatter: logging.Formatter) -> RotatingFileHandler:
    handler = RotatingFileHandler(
        path, maxBytes=MAX_LOG_SIZE_BYTES, backupCount=LOG_BACKUP_COUNT, encoding="utf-8"
    )
    handler.setLevel(logging.DEBUG)
    handler.setFormatter(formatter)
    return handler


class Logger:
    """Owns the ``pathcraft`` logger and its handlers."""

    _logger: Optional[logging.Logger] = None

    @classmethod
    def get_logger(cls) -> logging.Logger:
        if cls._logger is None:
            cls._logger = logging.getLogger(LOGGER_NAME)
            cls._logger.setLevel(logging.DEBUG)
        return cls._logger

    @classmethod
    def setup_logging(cls, log_dir: Optional[Path] = None, verbose: bool = False):
        """Replace any installed handlers.

        The console handler is always installed. With ``log_dir``, a readable
        ``master.log`` and a structured ``events.json`` are written there too.
        """
        logger = cls.get_logger()
        for handler in list(logger.handlers):
            cls.remove_handler(handler)

        console = logging.StreamHandler(sys.stdout)
        console.setLevel(logging.DEBUG if verbose else logging.INFO)
        console.setFormatter(logging.Formatter(CONSOLE_FORMAT))
        logger.addHandler(console)

        if log_dir:
            log_dir = Path(log_dir)
            log_dir.mkdir(parents=True, exist_ok=True)
            logger.addHandler(_rotating_handler(log_dir / "master.log", logging.Formatter(TEXT_FORMAT)))
            logger.addHandler(_rotating_handler(log_dir / "events.json", jsonlogger.JsonFormatter(JSON_FORMAT)))

    @classmethod
    def remove_handler(cls, handler: logging.Handler):
        cls.get_logger().removeHandler(handler)
        handler.close()


def log(msg: str, level: str = "info", **extra: Any):
    """Log on the pathcraft logger. ``extra`` keys must not shadow LogRecord attributes."""
    logger = Logger.get_logger()
    getattr(logger, level.lower(), logger.info)(msg, extra=extra)
