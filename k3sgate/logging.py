"""Logging configuration for the k3sgate package."""
import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional

from k3sgate.config import Config

# Third-party loggers kept quiet unless debugging
NOISY_LOGGERS = ("urllib3", "kubernetes", "requests")


def setup_logger(
    name: Optional[str] = None,
    level: int = logging.INFO,
    log_file: Optional[str] = None,
) -> logging.Logger:
    """
    Set up a logger with a console handler and, optionally, a rotating log file.

    Args:
        name: The name of the logger (None configures the root logger)
        level: The logging level (default: logging.INFO)
        log_file: Path of a log file to append to as well

    Returns:
        Configured logger instance
    """
    logger = logging.getLogger(name)
    logger.setLevel(level)

    formatter = logging.Formatter(Config.LOG_FORMAT, datefmt='%Y-%m-%d %H:%M:%S')

    # Replace our console handler so it writes to the current stderr
    for existing in [h for h in logger.handlers if getattr(h, "_k3sgate", False)]:
        logger.removeHandler(existing)
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(formatter)
    handler._k3sgate = True
    logger.addHandler(handler)

    if log_file:
        path = Path(log_file).expanduser().absolute()
        if not any(getattr(h, "baseFilename", None) == str(path) for h in logger.handlers):
            path.parent.mkdir(parents=True, exist_ok=True)
            file_handler = RotatingFileHandler(
                filename=path,
                maxBytes=Config.LOG_MAX_SIZE_MB * 1024 * 1024,
                backupCount=Config.LOG_BACKUP_COUNT,
            )
            file_handler.setFormatter(formatter)
            logger.addHandler(file_handler)

    for handler in logger.handlers:
        handler.setLevel(level)

    return logger


def setup_logging(debug_mode: bool = False, log_file: Optional[str] = None) -> logging.Logger:
    """Configure logging for the command line and the API server."""
    if debug_mode:
        level = logging.DEBUG
    else:
        level = getattr(logging, Config.LOG_LEVEL, logging.INFO)
    root = setup_logger(None, level=level, log_file=log_file or Config.LOG_FILE)
    # Disable debug logging for noisy libraries
    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.DEBUG if debug_mode else logging.WARNING)
    return root
