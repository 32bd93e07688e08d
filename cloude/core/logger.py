"""
@file: logger.py
@description:
Unified logging for the Cloude API:
- Color-coded console output per log level
- One consistent line format across every component logger
- Log level taken from settings (LOG_LEVEL)

Components create their own logger with `setup_logger("cloude.<area>")`;
the default `logger` instance is available for quick imports.

@dependencies:
- logging: Standard Python logging module
- colorama: For cross-platform colored terminal text
- cloude.core.config: For the configured log level
"""

import logging
import sys
from typing import Optional, Any

from colorama import init, Fore, Back, Style

from cloude.core.config import settings

# Initialize colorama; strips colour codes when stdout is not a terminal
init(autoreset=True)

DEFAULT_LOG_LEVEL = settings.LOG_LEVEL
LOG_FORMAT = '%(asctime)s | %(levelname)-8s | %(name)s | %(message)s'
DATE_FORMAT = '%Y-%m-%d %H:%M:%S'


class ColoredFormatter(logging.Formatter):
    """
    Formatter that colours the level name and message by severity.
    """

    COLORS = {
        logging.DEBUG: Fore.CYAN,
        logging.INFO: Fore.GREEN,
        logging.WARNING: Fore.YELLOW,
        logging.ERROR: Fore.RED,
        logging.CRITICAL: Fore.WHITE + Back.RED,
    }

    def format(self, record: logging.LogRecord) -> str:
        color = self.COLORS.get(record.levelno, "")

        # Work on a copy so other handlers see the uncoloured record
        record = logging.makeLogRecord(record.__dict__)
        record.levelname = f"{color}{record.levelname}{Style.RESET_ALL}"
        record.msg = f"{color}{record.getMessage()}{Style.RESET_ALL}"
        record.args = None

        return super().format(record)


def get_console_handler() -> logging.StreamHandler:
    """
    Create a stdout handler using the coloured formatter.

    Returns:
        logging.StreamHandler: Configured console handler
    """
    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(ColoredFormatter(LOG_FORMAT, datefmt=DATE_FORMAT))
    return console_handler


def get_logger(name: str, level: Optional[str] = None) -> logging.Logger:
    """
    Get or create a logger with the specified name and level.

    Args:
        name: The logger name, typically a dotted component path
        level: DEBUG, INFO, WARNING, ERROR or CRITICAL; defaults to settings

    Returns:
        logging.Logger: Configured logger instance

    Raises:
        ValueError: If the level name is unknown
    """
    if level is None:
        level = DEFAULT_LOG_LEVEL

    numeric_level = getattr(logging, level.upper(), None)
    if not isinstance(numeric_level, int):
        raise ValueError(f"Invalid log level: {level}")

    logger = logging.getLogger(name)

    # Only add handlers if this logger doesn't have any
    if not logger.handlers:
        logger.setLevel(numeric_level)
        logger.addHandler(get_console_handler())
        logger.propagate = False

    return logger


def setup_logger(name: str = "cloude", level: Optional[str] = None) -> logging.Logger:
    """
    Main entry point for component loggers.
    """
    return get_logger(name, level)


def log_request_details(logger: logging.Logger, request: Any, response_time: float, status_code: int) -> None:
    """
    Log an HTTP request with its status and duration.

    5xx responses are logged as errors, 4xx as warnings, everything else as info.

    Args:
        logger: The logger to use
        request: The request object (expected to have method and url attributes)
        response_time: The time taken to process the request in seconds
        status_code: The HTTP status code of the response
    """
    method = getattr(request, 'method', 'UNKNOWN')
    url = getattr(request, 'url', 'UNKNOWN')
    message = f"{method} {url} completed with status {status_code} in {response_time:.3f}s"

    if status_code >= 500:
        logger.error(message)
    elif status_code >= 400:
        logger.warning(message)
    else:
        logger.info(message)


# Create default application logger
logger = setup_logger()


__all__ = ['setup_logger', 'get_logger', 'logger', 'log_request_details', 'ColoredFormatter']
