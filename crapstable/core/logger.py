"""
Logging for the craps table server.

All loggers hang off the ``crapstable`` logger. Console output is colored
text or one JSON object per line; file output is plain text with rotation.
Context passed through ``extra=`` (account id, bet type...) is appended to
text lines and merged into JSON lines.
"""

import json
import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional

ROOT_LOGGER = "crapstable"
TIME_FORMAT = "%Y-%m-%d %H:%M:%S"


class Colors:
    RESET = "\033[0m"
    RED = "\033[91m"
    GREEN = "\033[92m"
    YELLOW = "\033[93m"
    MAGENTA = "\033[95m"
    CYAN = "\033[96m"
    GRAY = "\033[90m"


# Attributes every LogRecord carries; anything else came in through `extra=`.
_RESERVED_RECORD_KEYS = set(
    logging.LogRecord("", 0, "", 0, "", None, None).__dict__
) | {"message", "asctime"}


def record_context(record: logging.LogRecord) -> dict:
    return {k: v for k, v in record.__dict__.items() if k not in _RESERVED_RECORD_KEYS}


def _short_name(record: logging.LogRecord) -> str:
    prefix = ROOT_LOGGER + "."
    return record.name[len(prefix):] if record.name.startswith(prefix) else record.name


class PlainFormatter(logging.Formatter):
    """timestamp | LEVEL | module | message key=value ..."""

    def format_line(self, record, level: str, name: str) -> str:
        timestamp = self.formatTime(record, TIME_FORMAT)
        line = f"{timestamp} | {level} | {name} | {record.getMessage()}"
        context = record_context(record)
        if context:
            line += " " + " ".join(f"{k}={v}" for k, v in context.items())
        if record.exc_info:
            line += "\n" + self.formatException(record.exc_info)
        return line

    def format(self, record):
        return self.format_line(record, f"{record.levelname:<8}", _short_name(record))


class ColoredFormatter(PlainFormatter):
    LEVEL_COLORS = {
        logging.DEBUG: Colors.GRAY,
        logging.INFO: Colors.GREEN,
        logging.WARNING: Colors.YELLOW,
        logging.ERROR: Colors.RED,
        logging.CRITICAL: Colors.MAGENTA,
    }

    def format(self, record):
        color = self.LEVEL_COLORS.get(record.levelno, Colors.RESET)
        level = f"{color}{record.levelname:<8}{Colors.RESET}"
        name = f"{Colors.CYAN}{_short_name(record)}{Colors.RESET}"
        return self.format_line(record, level, name)


class JsonFormatter(logging.Formatter):
    """One JSON object per record, for log shippers."""

    def format(self, record):
        entry = {
            "timestamp": self.formatTime(record, "%Y-%m-%dT%H:%M:%S%z"),
            "level": record.levelname,
            "name": record.name,
            "message": record.getMessage(),
        }
        entry.update(record_context(record))
        if record.exc_info:
            entry["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(entry, default=str)


FORMATTERS = {
    "color": ColoredFormatter,
    "plain": PlainFormatter,
    "json": JsonFormatter,
}


def setup_logger(
    level: str = "INFO",
    formatter: str = "color",
    log_to_file: bool = False,
    log_file_path: Optional[Path] = None,
    max_file_size: int = 5 * 1024 * 1024,  # 5MB
    backup_count: int = 3,
) -> logging.Logger:
    """
    (Re)configure the ``crapstable`` logger. Existing handlers are replaced,
    so this can be called again once settings are known.

    Args:
        level: Log level name (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        formatter: "color", "plain" or "json" for the console
        log_to_file: Also write plain text to ``log_file_path``
        log_file_path: Rotating log file location
        max_file_size: Bytes before the file is rotated
        backup_count: Rotated files to keep
    """
    logger = logging.getLogger(ROOT_LOGGER)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    logger.setLevel(getattr(logging, level.upper(), logging.INFO))
    logger.propagate = False

    console = logging.StreamHandler(sys.stdout)
    console.setFormatter(FORMATTERS.get(formatter, ColoredFormatter)())
    logger.addHandler(console)

    if log_to_file and log_file_path is not None:
        try:
            log_file_path.parent.mkdir(parents=True, exist_ok=True)
            file_handler = RotatingFileHandler(
                log_file_path, maxBytes=max_file_size, backupCount=backup_count
            )
            file_handler.setFormatter(PlainFormatter())
            logger.addHandler(file_handler)
        except OSError as e:
            logger.warning(f"Could not open log file {log_file_path}: {e}")

    return logger


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """
    Logger for a module, e.g. get_logger("craps.table").
    Falls back to console defaults until init_logging() runs.
    """
    root = logging.getLogger(ROOT_LOGGER)
    if not root.handlers:
        setup_logger()
    return root.getChild(name) if name else root


def init_logging(
    level: str = "INFO",
    log_to_file: bool = False,
    formatter: str = "color",
    log_file_path: Optional[Path] = None,
):
    """Apply the configured logging settings. Call once at startup."""
    logger = setup_logger(
        level=level,
        formatter=formatter,
        log_to_file=log_to_file,
        log_file_path=log_file_path,
    )
    logger.info(f"Logging initialized at {level} level")
