"""
Centralized logging configuration for the typewriter service

Levels in use:
- DEBUG: mode transitions of the engine, scheduler bookkeeping
- VERBOSE: one line per typed or deleted character
- INFO: lifecycle events (start, stop, idle engines, server startup)
- WARNING / ERROR: misbehaving listeners, failed requests

Usage:
    from typewriter.utils.logger import get_logger, setup_logging

    # Setup logging at application start
    setup_logging(level="INFO")  # or "VERBOSE", "DEBUG", "WARNING", "ERROR"

    # In your module
    logger = get_logger(__name__)
    logger.info("Engine started")
    logger.verbose("Typed 'H'")
"""

import logging
import sys
from pathlib import Path
from typing import Literal, Optional

# Between DEBUG (10) and INFO (20)
VERBOSE = 15
logging.addLevelName(VERBOSE, "VERBOSE")


def _verbose(self, message, *args, **kwargs):
    if self.isEnabledFor(VERBOSE):
        self._log(VERBOSE, message, args, **kwargs)


logging.Logger.verbose = _verbose  # type: ignore[attr-defined]

# Color codes for terminal output
COLORS = {
    "DEBUG": "\033[36m",  # Cyan
    "VERBOSE": "\033[34m",  # Blue
    "INFO": "\033[32m",  # Green
    "WARNING": "\033[33m",  # Yellow
    "ERROR": "\033[31m",  # Red
    "CRITICAL": "\033[35m",  # Magenta
    "RESET": "\033[0m",  # Reset
}

LogLevel = Literal["DEBUG", "VERBOSE", "INFO", "WARNING", "ERROR", "CRITICAL"]
LOG_LEVELS = ("DEBUG", "VERBOSE", "INFO", "WARNING", "ERROR", "CRITICAL")


class ColoredFormatter(logging.Formatter):
    """Custom formatter that adds colors to log levels"""

    def format(self, record):
        # Work on a copy so file handlers sharing the record stay uncolored
        record = logging.makeLogRecord(record.__dict__)
        levelname = record.levelname
        if levelname in COLORS:
            record.levelname = f"{COLORS[levelname]}{levelname}{COLORS['RESET']}"

        record.name = f"\033[94m{record.name}\033[0m"  # Blue

        return super().format(record)


def _numeric_level(level: str) -> int:
    if level.upper() == "VERBOSE":
        return VERBOSE
    return getattr(logging, level.upper(), logging.INFO)


def setup_logging(
    level: LogLevel = "INFO",
    log_file: Optional[str] = None,
    enable_colors: bool = True,
    include_timestamp: bool = True,
) -> None:
    """
    Setup logging configuration for the application

    Args:
        level: Logging level (DEBUG, VERBOSE, INFO, WARNING, ERROR, CRITICAL)
        log_file: Optional path to log file. If provided, logs will be written to file
        enable_colors: Whether to enable colored output for console
        include_timestamp: Whether to include timestamp in log messages
    """
    numeric_level = _numeric_level(level)

    if include_timestamp:
        fmt = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
        datefmt = "%Y-%m-%d %H:%M:%S"
    else:
        fmt = "%(levelname)-8s | %(name)s | %(message)s"
        datefmt = None

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(numeric_level)

    if enable_colors and sys.stdout.isatty():
        console_formatter: logging.Formatter = ColoredFormatter(fmt, datefmt=datefmt)
    else:
        console_formatter = logging.Formatter(fmt, datefmt=datefmt)

    console_handler.setFormatter(console_formatter)

    root_logger = logging.getLogger()
    root_logger.setLevel(numeric_level)

    # Remove existing handlers
    root_logger.handlers = []

    root_logger.addHandler(console_handler)

    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)

        file_handler = logging.FileHandler(log_file)
        file_handler.setLevel(numeric_level)

        # File logs don't need colors
        file_handler.setFormatter(logging.Formatter(fmt, datefmt=datefmt))

        root_logger.addHandler(file_handler)

    # Silence noisy libraries
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("asyncio").setLevel(logging.WARNING)

    root_logger.info(f"Logging initialized at {level} level")
    if log_file:
        root_logger.info(f"Logging to file: {log_file}")


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger instance for a module

    Args:
        name: Name of the logger (typically __name__)

    Returns:
        Logger instance
    """
    return logging.getLogger(name)


class LogLevelContext:
    """Context manager to temporarily change logging level"""

    def __init__(self, level: LogLevel):
        self.level = _numeric_level(level)
        self.old_level: Optional[int] = None

    def __enter__(self):
        self.old_level = logging.getLogger().level
        logging.getLogger().setLevel(self.level)
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        logging.getLogger().setLevel(self.old_level)


def set_module_level(module_name: str, level: LogLevel) -> None:
    """
    Set logging level for a specific module

    Args:
        module_name: Name of the module (e.g., 'typewriter.engine.typewriter')
        level: Logging level to set
    """
    logging.getLogger(module_name).setLevel(_numeric_level(level))
