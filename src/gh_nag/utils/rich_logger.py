"""
Rich logging for gh-nag
=======================

Structured logging with rich console output, an optional rotating log file
with timezone-aware timestamps, and masking of token-like environment values.

Module loggers are created with ``get_logger(__name__)`` and propagate to the
``gh_nag`` application logger, which ``setup_logging`` configures once at
startup.
"""

import logging
import logging.handlers
import os
import re
import threading
import uuid
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional, Union

import pytz
from rich.console import Console
from rich.logging import RichHandler

APP_LOGGER_NAME = "gh_nag"
DEFAULT_TIMEZONE = pytz.utc
DEFAULT_LOG_LEVEL = logging.INFO
DEFAULT_LOG_DIR = Path.home() / ".cache" / "gh-nag" / "logs"
MAX_LOG_FILE_SIZE = 10 * 1024 * 1024  # 10 MB
BACKUP_COUNT = 5

# Unique ID for this process, stamped on every file log line
SESSION_ID = str(uuid.uuid4())

SENSITIVE_ENV_PATTERNS = ("TOKEN", "PASSWORD", "SECRET", "KEY")


class TimezoneAwareFormatter(logging.Formatter):
    """Formatter that renders timestamps in a configured timezone."""

    def __init__(self, fmt=None, datefmt=None, style="%", tz=None):
        super().__init__(fmt, datefmt, style)
        self.tz = tz

    def formatTime(self, record, datefmt=None):  # noqa: N802
        dt = datetime.fromtimestamp(record.created, tz=timezone.utc)
        if self.tz:
            dt = dt.astimezone(self.tz)
        return dt.strftime(datefmt) if datefmt else dt.isoformat()


class RichLogger:
    """
    Logger with key=value context and secret masking.

    Only the application logger owns handlers; every other RichLogger
    propagates to it.
    """

    def __init__(
        self,
        name: str = APP_LOGGER_NAME,
        level: Optional[int] = None,
        timezone: pytz.BaseTzInfo = DEFAULT_TIMEZONE,
        log_file: Optional[Union[str, Path]] = None,
        console_output: bool = False,
        file_output: bool = False,
    ):
        """
        Initialize the RichLogger.

        Args:
            name: Logger name (typically module name)
            level: Logging level; None inherits from the parent logger
            timezone: Timezone for file log timestamps
            log_file: Path to log file (default under ~/.cache/gh-nag/logs)
            console_output: Attach a rich console handler
            file_output: Attach a rotating file handler
        """
        self.name = name
        self.timezone = timezone
        self.session_id = SESSION_ID
        self.console_output = console_output
        self.file_output = file_output
        self.log_file: Optional[Path] = None

        self.logger = logging.getLogger(name)
        if level is not None:
            self.logger.setLevel(level)

        if console_output or file_output:
            # Prevent duplicate handlers when reconfigured
            self.logger.handlers.clear()
            if console_output:
                self._setup_console_handler()
            if file_output:
                self._setup_file_handler(log_file)

    def _setup_console_handler(self) -> None:
        """Attach a rich handler writing to stderr."""
        handler = RichHandler(
            console=Console(stderr=True),
            rich_tracebacks=True,
            markup=False,
            show_path=False,
        )
        handler.setFormatter(logging.Formatter("%(message)s"))
        self.logger.addHandler(handler)

    def _setup_file_handler(self, log_file: Optional[Union[str, Path]] = None) -> None:
        """
        Attach a rotating file handler.

        Args:
            log_file: Path to log file. If None, uses ~/.cache/gh-nag/logs/gh-nag.log
        """
        if log_file is None:
            DEFAULT_LOG_DIR.mkdir(parents=True, exist_ok=True)
            log_file = DEFAULT_LOG_DIR / "gh-nag.log"
        self.log_file = Path(log_file).expanduser()
        self.log_file.parent.mkdir(parents=True, exist_ok=True)

        handler = logging.handlers.RotatingFileHandler(
            self.log_file,
            maxBytes=MAX_LOG_FILE_SIZE,
            backupCount=BACKUP_COUNT,
            encoding="utf-8",
        )
        file_format = (
            "%(asctime)s | %(levelname)8s | %(name)s | "
            f"PID:{os.getpid()} | SID:{self.session_id[:8]} | %(message)s"
        )
        handler.setFormatter(TimezoneAwareFormatter(file_format, tz=self.timezone))
        self.logger.addHandler(handler)

    def _mask_sensitive_env_vars(self, text: str) -> str:
        """
        Mask values of token-like environment variables found in text.

        Args:
            text: Text that might contain sensitive information

        Returns:
            Text with sensitive values masked
        """
        for var, value in os.environ.items():
            if value and len(value) > 4 and any(p in var.upper() for p in SENSITIVE_ENV_PATTERNS):
                if value in text:
                    text = re.sub(re.escape(value), value[:4] + "*" * (len(value) - 4), text)
        return text

    def _format_message(self, message: str, **kwargs) -> str:
        if kwargs:
            context = ", ".join(f"{k}={v}" for k, v in kwargs.items())
            message = f"{message} | {context}"
        return self._mask_sensitive_env_vars(message)

    def debug(self, message: str, **kwargs) -> None:
        if self.logger.isEnabledFor(logging.DEBUG):
            self.logger.debug(self._format_message(message, **kwargs))

    def info(self, message: str, **kwargs) -> None:
        if self.logger.isEnabledFor(logging.INFO):
            self.logger.info(self._format_message(message, **kwargs))

    def warning(self, message: str, **kwargs) -> None:
        self.logger.warning(self._format_message(message, **kwargs))

    def error(self, message: str, **kwargs) -> None:
        self.logger.error(self._format_message(message, **kwargs))


_loggers: dict[str, RichLogger] = {}
_logger_lock = threading.Lock()


def get_logger(name: str = APP_LOGGER_NAME) -> RichLogger:
    """
    Get or create a logger instance (thread-safe).

    Args:
        name: Logger name, usually ``__name__``

    Returns:
        RichLogger instance
    """
    if name in _loggers:
        return _loggers[name]

    with _logger_lock:
        if name not in _loggers:
            _loggers[name] = RichLogger(name)
        return _loggers[name]


def setup_logging(
    level: int = DEFAULT_LOG_LEVEL,
    log_file: Optional[Union[str, Path]] = None,
    console_output: bool = True,
    file_output: bool = False,
    timezone: Optional[pytz.BaseTzInfo] = None,
) -> RichLogger:
    """
    Configure the application logger. Call once at startup.

    Args:
        level: Logging level
        log_file: Path to log file (None for default location)
        console_output: Enable rich console output to stderr
        file_output: Enable rotating file output
        timezone: Timezone for file timestamps (default: UTC)

    Returns:
        The configured application logger
    """
    app_logger = RichLogger(
        APP_LOGGER_NAME,
        level=level,
        timezone=timezone or DEFAULT_TIMEZONE,
        log_file=log_file,
        console_output=console_output,
        file_output=file_output,
    )
    with _logger_lock:
        _loggers[APP_LOGGER_NAME] = app_logger
    return app_logger
