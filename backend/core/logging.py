"""
Mailbox Migration Dashboard - Structured Logging
"""
import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from fastapi import Request


# Keyword context promoted to top-level fields; anything else lands under "extra"
CONTEXT_FIELDS = ("session_id", "mailbox_id", "request_id", "action", "duration_ms", "status_code")

TEXT_FORMAT = "%(asctime)s %(levelname)-8s [%(name)s] %(message)s"

# Chatty libraries kept at WARNING
QUIET_LOGGERS = ("uvicorn.access", "httpx", "httpcore", "asyncio")


class JSONFormatter(logging.Formatter):
    """One JSON object per line, carrying migration context fields"""

    def format(self, record: logging.LogRecord) -> str:
        entry: Dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "location": f"{record.module}:{record.funcName}:{record.lineno}",
        }

        for key in CONTEXT_FIELDS:
            value = getattr(record, key, None)
            if value is not None:
                entry[key] = value

        extra = getattr(record, "extra_data", None)
        if extra:
            entry["extra"] = extra

        if record.exc_info:
            exc_type, exc_value, _ = record.exc_info
            entry["exception"] = {
                "type": exc_type.__name__ if exc_type else None,
                "message": str(exc_value) if exc_value else None,
                "traceback": self.formatException(record.exc_info),
            }

        return json.dumps(entry, default=str)


class MigrationLogger:
    """
    Thin wrapper over a stdlib logger.

    Accepts keyword context (session_id=..., mailbox_id=...) on every call;
    `bind` returns a logger that adds fixed context to each record.
    """

    def __init__(self, name: str = "migration", context: Optional[Dict[str, Any]] = None):
        self.logger = logging.getLogger(name)
        self.context = dict(context or {})

    def bind(self, **context) -> "MigrationLogger":
        return MigrationLogger(self.logger.name, {**self.context, **context})

    def _extra(self, kwargs: Dict[str, Any]) -> Dict[str, Any]:
        fields = {**self.context, **kwargs}
        extra = {key: fields.pop(key) for key in CONTEXT_FIELDS if key in fields}
        if fields:
            extra["extra_data"] = fields
        return extra

    def debug(self, message: str, **kwargs):
        self.logger.debug(message, extra=self._extra(kwargs))

    def info(self, message: str, **kwargs):
        self.logger.info(message, extra=self._extra(kwargs))

    def warning(self, message: str, **kwargs):
        self.logger.warning(message, extra=self._extra(kwargs))

    def error(self, message: str, **kwargs):
        self.logger.error(message, extra=self._extra(kwargs))

    def critical(self, message: str, **kwargs):
        self.logger.critical(message, extra=self._extra(kwargs))

    def exception(self, message: str, **kwargs):
        """Log at ERROR with the active exception's traceback"""
        self.logger.exception(message, extra=self._extra(kwargs))


def setup_logging(level: str = "INFO", json_format: bool = True, log_file: Optional[str] = None):
    """
    Configure the root logger.

    Args:
        level: DEBUG, INFO, WARNING, ERROR or CRITICAL
        json_format: JSON lines instead of plain text
        log_file: also write to this file
    """
    numeric_level = getattr(logging, level.upper(), logging.INFO)
    formatter = JSONFormatter() if json_format else logging.Formatter(TEXT_FORMAT)

    handlers = [logging.StreamHandler(sys.stdout)]
    if log_file:
        handlers.append(logging.FileHandler(log_file))

    root = logging.getLogger()
    root.setLevel(numeric_level)
    root.handlers = []
    for handler in handlers:
        handler.setLevel(numeric_level)
        handler.setFormatter(formatter)
        root.addHandler(handler)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def get_logger(name: str = "migration") -> MigrationLogger:
    return MigrationLogger(name)


async def log_request(request: Request, response_status: int, duration_ms: float):
    """Access log line for one API call"""
    get_logger("migration.access").info(
        f"{request.method} {request.url.path} -> {response_status}",
        status_code=response_status,
        duration_ms=round(duration_ms, 2),
        request_id=request.headers.get("X-Request-ID"),
        action=f"api_{request.method.lower()}",
        session_id=request.query_params.get("session_id"),
        client_ip=request.client.host if request.client else None,
    )
