"""
Logging configuration for clipnote.

Every module logs under the ``clipnote`` namespace:

- INFO: writes the comment service accepted (comment added or deleted,
  library item saved or deleted) and server startup.
- WARNING: transport failures and rejections from the comment service,
  malformed initialization payloads and invalid configuration values.
- ERROR: player errors and unexpected exceptions from remote calls or
  scheduled callbacks, with tracebacks.
- DEBUG: missing page regions or collaborators, player calls retried on
  the next tick, dropped stale responses.

The HTTP stack (``urllib3`` under requests, ``werkzeug`` under Flask) is
held at WARNING unless verbose output is requested.
"""

import logging
import sys
from typing import Optional

PACKAGE = "clipnote"
NOISY_LOGGERS = ("urllib3", "werkzeug")

# Package logger
logger = logging.getLogger(PACKAGE)


class ColoredFormatter(logging.Formatter):
    """Formatter that colours level names when writing to a terminal."""

    COLORS = {
        logging.DEBUG: "\033[36m",    # Cyan
        logging.INFO: "\033[32m",     # Green
        logging.WARNING: "\033[33m",  # Yellow
        logging.ERROR: "\033[31m",    # Red
        logging.CRITICAL: "\033[35m", # Magenta
    }
    RESET = "\033[0m"

    def __init__(self, fmt: str, datefmt: Optional[str] = None, use_colors: bool = True):
        super().__init__(fmt, datefmt)
        self.use_colors = use_colors

    def format(self, record: logging.LogRecord) -> str:
        if self.use_colors and sys.stderr.isatty():
            color = self.COLORS.get(record.levelno, "")
            record = logging.makeLogRecord(record.__dict__)
            record.levelname = f"{color}{record.levelname}{self.RESET}"
        return super().format(record)


def setup_logging(
    verbose: bool = False,
    quiet: bool = False,
    log_file: Optional[str] = None,
    use_colors: bool = True,
) -> logging.Logger:
    """Configure the ``clipnote`` logger.

    Args:
        verbose: If True, set level to DEBUG
        quiet: If True, set level to ERROR only
        log_file: Optional path to write logs to file
        use_colors: If True, use colored output in terminal

    Returns:
        The configured package logger
    """
    if verbose:
        level = logging.DEBUG
    elif quiet:
        level = logging.ERROR
    else:
        level = logging.INFO

    pkg_logger = logging.getLogger(PACKAGE)
    pkg_logger.setLevel(level)
    pkg_logger.handlers.clear()

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(level)

    console_fmt = "%(levelname)s: %(message)s"
    if verbose:
        console_fmt = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
    console_handler.setFormatter(
        ColoredFormatter(console_fmt, datefmt="%H:%M:%S", use_colors=use_colors)
    )
    pkg_logger.addHandler(console_handler)

    if log_file:
        file_handler = logging.FileHandler(log_file)
        file_handler.setLevel(logging.DEBUG)  # Always log everything to file
        file_handler.setFormatter(
            logging.Formatter(
                "%(asctime)s [%(levelname)s] %(name)s: %(message)s",
                datefmt="%Y-%m-%d %H:%M:%S",
            )
        )
        pkg_logger.addHandler(file_handler)

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.DEBUG if verbose else logging.WARNING)

    pkg_logger.propagate = False
    return pkg_logger


def get_logger(name: str) -> logging.Logger:
    """Get a logger for a specific module.

    Args:
        name: Module name (typically __name__)

    Returns:
        Logger instance under the ``clipnote`` namespace
    """
    return logging.getLogger(f"{PACKAGE}.{name.split('.')[-1]}")
