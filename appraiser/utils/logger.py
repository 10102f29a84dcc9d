"""Logging configuration for Appraiser."""

import logging
import sys
from pathlib import Path
from typing import IO, Optional

from appraiser.config import get_settings

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# SDK and HTTP client loggers that are noisy at INFO
CHATTY_LIBRARIES = ("httpx", "httpcore", "urllib3", "anthropic", "openai", "google_genai")


def setup_logger(
    name: str = "appraiser",
    log_file: Optional[str] = None,
    log_level: Optional[str] = None,
    stream: Optional[IO[str]] = None,
) -> logging.Logger:
    """Configure the package logger.

    Modules log through ``logging.getLogger(__name__)`` and propagate here,
    so calling this once at startup covers the whole engine. Calling it
    again replaces the handlers.

    Args:
        name: Logger name
        log_file: Log file path. If None, uses config value. Empty string
            disables the file handler.
        log_level: Log level. If None, uses config value.
        stream: Console stream. Defaults to stdout.

    Returns:
        Configured logger instance
    """
    settings = get_settings()
    log_file = settings.log_file if log_file is None else log_file
    level = getattr(logging, (log_level or settings.log_level).upper(), logging.INFO)

    logger = logging.getLogger(name)
    logger.setLevel(level)
    logger.handlers.clear()

    formatter = logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT)

    console_handler = logging.StreamHandler(stream or sys.stdout)
    console_handler.setLevel(max(level, logging.INFO))
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    if log_file:
        Path(log_file).parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file)
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    for library in CHATTY_LIBRARIES:
        logging.getLogger(library).setLevel(max(level, logging.WARNING))

    return logger
