"""Logging utilities for pilreg.

All log output goes to stderr so stdout stays free for the JSON results.
"""

import logging
import sys
from enum import Enum
from typing import Optional


ROOT_LOGGER = "pilreg"


class LogLevel(Enum):
    """Log level enumeration."""
    NONE = "none"
    INFO = "info"
    VERBOSE = "verbose"


# Global flag for verbose mode (controls fetch error visibility)
_verbose_mode = False


class ColoredFormatter(logging.Formatter):
    """Formatter that adds colors and a level marker to log messages."""

    COLORS = {
        logging.DEBUG: "\033[36m",    # Cyan
        logging.INFO: "\033[0m",      # Reset
        logging.WARNING: "\033[33m",  # Yellow
        logging.ERROR: "\033[31m",    # Red
        logging.CRITICAL: "\033[35m", # Magenta
    }
    RESET = "\033[0m"

    MARKERS = {
        logging.DEBUG: "🔍",
        logging.INFO: "ℹ️ ",
        logging.WARNING: "⚠️ ",
        logging.ERROR: "❌",
        logging.CRITICAL: "💥",
    }

    def format(self, record: logging.LogRecord) -> str:
        marker = self.MARKERS.get(record.levelno, "")
        color = self.COLORS.get(record.levelno, self.RESET)
        message = record.getMessage()
        if _verbose_mode:
            message = f"[{record.threadName}] {message}"
        return f"{color}{marker} {message}{self.RESET}"


class PlainFormatter(logging.Formatter):
    """Plain formatter without colors (for non-terminal output)."""

    PREFIXES = {
        logging.DEBUG: "[DEBUG]",
        logging.INFO: "[INFO]",
        logging.WARNING: "[WARN]",
        logging.ERROR: "[ERROR]",
        logging.CRITICAL: "[CRITICAL]",
    }

    def format(self, record: logging.LogRecord) -> str:
        prefix = self.PREFIXES.get(record.levelno, "[LOG]")
        if _verbose_mode:
            return f"{prefix} [{record.threadName}] {record.getMessage()}"
        return f"{prefix} {record.getMessage()}"


def setup_logging(
    level: LogLevel = LogLevel.INFO,
    use_colors: Optional[bool] = None,
) -> None:
    """
    Set up logging configuration.

    Args:
        level: Desired log level
        use_colors: Whether to use colored output (auto-detect if None)
    """
    global _verbose_mode

    if level == LogLevel.NONE:
        log_level = logging.CRITICAL + 1  # Effectively disable logging
        _verbose_mode = False
    elif level == LogLevel.VERBOSE:
        log_level = logging.DEBUG
        _verbose_mode = True
    else:
        log_level = logging.INFO
        _verbose_mode = False

    if use_colors is None:
        use_colors = sys.stderr.isatty()

    root_logger = logging.getLogger(ROOT_LOGGER)
    root_logger.setLevel(log_level)
    root_logger.handlers.clear()
    root_logger.propagate = False

    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(log_level)
    handler.setFormatter(ColoredFormatter() if use_colors else PlainFormatter())
    root_logger.addHandler(handler)


def get_logger(name: str = ROOT_LOGGER) -> logging.Logger:
    """
    Get a logger under the pilreg hierarchy.

    Module names such as ``pilreg_py.core.storage`` are re-rooted to
    ``pilreg.core.storage`` so one handler on the root logger covers them.

    Args:
        name: Logger name

    Returns:
        Logger instance
    """
    if name != ROOT_LOGGER and not name.startswith(ROOT_LOGGER + "."):
        _, _, tail = name.partition(".")
        name = f"{ROOT_LOGGER}.{tail}" if tail else ROOT_LOGGER
    return logging.getLogger(name)


def log_success(self: logging.Logger, message: str, *args, **kwargs) -> None:
    """Log a success message."""
    self.info(f"✅ {message}", *args, **kwargs)


def log_warn_verbose(self: logging.Logger, message: str, *args, **kwargs) -> None:
    """Log a warning only in verbose mode."""
    if _verbose_mode:
        self.warning(message, *args, **kwargs)
    else:
        self.debug(f"[SUPPRESSED WARN] {message}", *args, **kwargs)


logging.Logger.success = log_success
logging.Logger.warn_verbose = log_warn_verbose
