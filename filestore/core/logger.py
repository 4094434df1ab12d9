"""Logging module: colourised console output and a single log format for the whole package."""

import json
import logging
import logging.config
import sys
from contextvars import ContextVar
from datetime import datetime
from typing import Optional

from .config import get_settings


class _TZFormatter(logging.Formatter):
    """Formatter that renders timestamps in Settings.timezone.

    Falls back to ISO-8601 with milliseconds when no datefmt is provided.
    """

    def formatTime(self, record: logging.LogRecord, datefmt: str | None = None) -> str:  # noqa: N802
        tz = get_settings().timezone_info
        dt = datetime.fromtimestamp(record.created, tz)
        if datefmt:
            return dt.strftime(datefmt)
        # e.g. 2026-10-18 16:22:32.123+00:00
        return dt.isoformat(sep=" ", timespec="milliseconds")


class ColorFormatter(_TZFormatter):
    """ANSI colour formatter: each level gets its own colour so records are easy to tell apart."""

    RESET = "\033[0m"
    COLORS = {
        logging.DEBUG: "\033[36m",   # Cyan
        logging.INFO: "\033[32m",    # Green
        logging.WARNING: "\033[33m", # Yellow
        logging.ERROR: "\033[31m",   # Red
        logging.CRITICAL: "\033[41m",  # Red background
    }

    def __init__(
        self,
        fmt: str,
        datefmt: Optional[str] = None,
        style: str = "%",
        use_colors: Optional[bool] = None,
    ) -> None:
        super().__init__(fmt=fmt, datefmt=datefmt, style=style)
        if use_colors is None:
            use_colors = sys.stderr.isatty()
        self.use_colors = use_colors

    def format(self, record: logging.LogRecord) -> str:
        message = super().format(record)
        if not self.use_colors:
            return message

        color = self.COLORS.get(record.levelno)
        if not color:
            return message

        return f"{color}{message}{self.RESET}"


class JsonFormatter(_TZFormatter):
    """Structured JSON formatter for logs."""

    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "ts": self.formatTime(record, datefmt=None),
            "logger": record.name,
            "level": record.levelname,
            "msg": record.getMessage(),
            "operation_id": getattr(record, "operation_id", None),
        }
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=False)


_operation_id_ctx: ContextVar[Optional[str]] = ContextVar("operation_id", default=None)


class OperationIdFilter(logging.Filter):
    """Injects the current operation id from contextvars into every LogRecord."""

    def filter(self, record: logging.LogRecord) -> bool:
        setattr(record, "operation_id", _operation_id_ctx.get())
        return True


def setup_logging() -> None:
    """Configure the ``filestore`` logger hierarchy from the current settings."""
    settings = get_settings()
    json_enabled = bool(settings.log_json)
    formatter_name = "json" if json_enabled else "standard"

    handlers: dict = {
        "default": {
            "level": settings.log_level,
            "class": "logging.StreamHandler",
            "formatter": formatter_name,
            "filters": ["operation_id"],
        },
    }
    if settings.log_to_file:
        settings.log_directory.mkdir(parents=True, exist_ok=True)
        handlers["file"] = {
            "level": settings.log_level,
            "class": "logging.handlers.TimedRotatingFileHandler",
            "formatter": formatter_name if json_enabled else "plain",
            "filename": str(settings.log_file_path),
            "when": "midnight",
            "backupCount": 14,
            "encoding": "utf-8",
            "delay": True,
            "filters": ["operation_id"],
        }

    logging_config = {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "standard": {
                "()": "filestore.core.logger.ColorFormatter",
                "format": "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
            },
            "plain": {
                "format": "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
            },
            "json": {
                "()": "filestore.core.logger.JsonFormatter",
            },
        },
        "handlers": handlers,
        "filters": {
            "operation_id": {
                "()": "filestore.core.logger.OperationIdFilter",
            }
        },
        "loggers": {
            "filestore": {
                "handlers": list(handlers),
                "level": settings.log_level,
                "propagate": False,
            },
            "botocore": {
                "level": "WARNING",
            },
        },
    }
    logging.config.dictConfig(logging_config)


logger = logging.getLogger("filestore")


def set_operation_id(operation_id: Optional[str]):
    """Bind ``operation_id`` to the current context; returns the token for ``reset_operation_id``."""
    return _operation_id_ctx.set(operation_id)


def reset_operation_id(token) -> None:
    _operation_id_ctx.reset(token)


def get_operation_id() -> Optional[str]:
    return _operation_id_ctx.get()
