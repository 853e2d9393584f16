"""
Logging setup for BuySoft.

Records carry the current request id and admin id. Structured payloads go
through ``logger.info("...", data={...})``; credential fields in a payload
are masked before they reach any handler.
"""

import json
import logging
import sys
from contextvars import ContextVar
from datetime import UTC, datetime
from typing import Any, Dict, Optional

# Set per request by RequestContextMiddleware and the auth dependencies.
request_id_ctx: ContextVar[Optional[str]] = ContextVar("request_id", default=None)
user_id_ctx: ContextVar[Optional[str]] = ContextVar("user_id", default=None)

REDACTED = "***"
SENSITIVE_KEYS = frozenset({"password", "captcha", "smms_token", "csrf_token", "session_token"})

CONSOLE_FORMAT = "%(asctime)s | %(levelname)-8s | %(request_id)s | %(name)s | %(message)s"


def redact(data: Dict[str, Any]) -> Dict[str, Any]:
    """Copy of a log payload with credential values masked."""
    return {
        key: REDACTED if key.lower() in SENSITIVE_KEYS and value else value
        for key, value in data.items()
    }


class RequestContextFilter(logging.Filter):
    """Stamp request_id / user_id onto every record."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.request_id = request_id_ctx.get() or "-"
        record.user_id = user_id_ctx.get()
        return True


class StructuredFormatter(logging.Formatter):
    """One JSON object per line."""

    def format(self, record: logging.LogRecord) -> str:
        entry: Dict[str, Any] = {
            "timestamp": datetime.now(UTC).isoformat().replace("+00:00", "Z"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        request_id = getattr(record, "request_id", "-")
        if request_id != "-":
            entry["request_id"] = request_id
        if getattr(record, "user_id", None):
            entry["user_id"] = record.user_id
        if getattr(record, "data", None):
            entry["data"] = record.data
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, default=str, ensure_ascii=False)


class ConsoleFormatter(logging.Formatter):
    """Single readable line, with the data payload appended."""

    def __init__(self) -> None:
        super().__init__(CONSOLE_FORMAT, datefmt="%Y-%m-%d %H:%M:%S")

    def formatMessage(self, record: logging.LogRecord) -> str:
        line = super().formatMessage(record)
        data = getattr(record, "data", None)
        return f"{line} | {data}" if data else line


class ContextLogger(logging.LoggerAdapter):
    """Logger adapter accepting a ``data=`` payload."""

    def process(self, msg: str, kwargs: Dict[str, Any]) -> tuple:
        extra = kwargs.get("extra", {})
        if "data" in kwargs:
            extra["data"] = redact(kwargs.pop("data") or {})
        kwargs["extra"] = extra
        return msg, kwargs


_loggers: Dict[str, ContextLogger] = {}


def get_logger(name: str) -> ContextLogger:
    if name not in _loggers:
        _loggers[name] = ContextLogger(logging.getLogger(name), {})
    return _loggers[name]


def setup_logging(
    level: str = "INFO",
    json_output: bool = False,
    log_file: Optional[str] = None,
) -> None:
    """Configure the root logger; the log file is always JSON."""
    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, level.upper()))
    root_logger.handlers.clear()

    context = RequestContextFilter()
    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(StructuredFormatter() if json_output else ConsoleFormatter())
    console_handler.addFilter(context)
    root_logger.addHandler(console_handler)

    if log_file:
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setFormatter(StructuredFormatter())
        file_handler.addFilter(context)
        root_logger.addHandler(file_handler)

    for noisy in ("uvicorn.access", "httpx", "sqlalchemy.engine"):
        logging.getLogger(noisy).setLevel(logging.WARNING)
