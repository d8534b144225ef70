"""
Logging setup for CoverSync.

The entry point calls setup_logging() once; every other module only asks
get_logger(__name__) for its logger.
"""

import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional

if getattr(sys, 'frozen', False):
    ROOT_DIR = Path(sys.argv[0]).parent
else:
    ROOT_DIR = Path(__file__).parent

LOGS_DIR = ROOT_DIR / "logs"

CONSOLE_FORMAT = '%(levelname)s [%(name)s] %(message)s'
FILE_FORMAT = '%(asctime)s %(levelname)s %(threadName)s %(name)s:%(lineno)d - %(message)s'

# Third-party loggers that are only interesting when something breaks
NOISY_LOGGERS = ('PIL', 'urllib3')

_configured = False


def _level(name: str) -> int:
    return logging.getLevelName(name.upper())


def _console_handler(level: str) -> logging.Handler:
    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(_level(level))
    handler.setFormatter(logging.Formatter(CONSOLE_FORMAT))
    return handler


def _file_handler(path: Path, level: str, max_bytes: int, backup_count: int) -> logging.Handler:
    path.parent.mkdir(parents=True, exist_ok=True)
    handler = RotatingFileHandler(path, maxBytes=max_bytes, backupCount=backup_count, encoding='utf-8')
    handler.setLevel(_level(level))
    handler.setFormatter(logging.Formatter(FILE_FORMAT))
    return handler


def setup_logging(
    console_level: str = "INFO",
    file_level: str = "DEBUG",
    console: bool = True,
    log_file: Optional[str] = None,
    log_providers: bool = True,
    max_bytes: int = 1024 * 1024,
    backup_count: int = 10
) -> None:
    """
    Attach a stdout handler and a rotating file handler under logs/ to the root logger.

    Args:
        console_level: Level name for terminal output
        file_level: Level name for the log file
        console: Print log records to the terminal at all
        log_file: File name inside logs/ (default coversync.log)
        log_providers: Let provider request logs through at console_level, else WARNING only
        max_bytes: Size at which the log file rotates
        backup_count: Rotated files to keep
    """
    global _configured
    if _configured:
        return

    handlers = []
    if console:
        handlers.append(_console_handler(console_level))
    log_path = LOGS_DIR / (log_file or "coversync.log")
    file_error = None
    try:
        handlers.append(_file_handler(log_path, file_level, max_bytes, backup_count))
    except OSError as e:
        # Read-only install location, keep the console only
        file_error = e

    root = logging.getLogger()
    root.setLevel(logging.DEBUG)
    root.handlers = handlers

    logging.getLogger('providers').setLevel(_level(console_level) if log_providers else logging.WARNING)
    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    _configured = True
    if file_error is not None:
        root.warning(f"File logging disabled, cannot write {log_path}: {file_error}")
    else:
        root.debug(f"Logging to console at {console_level}, to {log_path} at {file_level}")


def get_logger(name: str) -> logging.Logger:
    """Logger for a module; configuration happens once in setup_logging()."""
    return logging.getLogger(name)
