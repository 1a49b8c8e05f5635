"""
Logging setup.

Modules log through ``logging.getLogger("switchyard.<area>")``. This module
installs a handler on the ``switchyard`` logger:

- ``JsonFormatter``: one JSON object per line, for the hosted runtime
- ``LocalFormatter``: readable, colored lines for local runs

Per-request fields (request id, entry point, function name) are bound in a
context variable and copied onto every record by ``RequestContextFilter``.
"""

import json
import logging
import sys
from contextvars import ContextVar, Token
from datetime import datetime, timezone
from typing import Any, Dict, Optional


_request_context: ContextVar[Dict[str, Any]] = ContextVar("switchyard_request_context", default={})

# Attributes every LogRecord has; anything else came in through ``extra=``
_RESERVED = frozenset(vars(logging.LogRecord("", 0, "", 0, "", (), None))) | {"message", "asctime", "context"}

_COLORS = {
    "DEBUG": "\033[2m",
    "INFO": "\033[36m",
    "WARNING": "\033[33m",
    "ERROR": "\033[31m",
    "CRITICAL": "\033[1;31m",
}
_RESET = "\033[0m"


def bind_request_context(**fields: Any) -> Token:
    """Add fields to the current request context; returns a reset token."""
    merged = dict(_request_context.get())
    merged.update({key: value for key, value in fields.items() if value is not None})
    return _request_context.set(merged)


def clear_request_context(token: Optional[Token] = None) -> None:
    if token is not None:
        _request_context.reset(token)
    else:
        _request_context.set({})


def get_request_context() -> Dict[str, Any]:
    return dict(_request_context.get())


class RequestContextFilter(logging.Filter):
    """Attach the bound request context to each record as ``record.context``."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.context = get_request_context()
        return True


def _extras(record: logging.LogRecord) -> Dict[str, Any]:
    return {key: value for key, value in vars(record).items() if key not in _RESERVED}


class JsonFormatter(logging.Formatter):
    """JSON-structured log output."""

    def format(self, record: logging.LogRecord) -> str:
        entry: Dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        entry.update(getattr(record, "context", None) or {})
        entry.update(_extras(record))
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, default=str)


class LocalFormatter(logging.Formatter):
    """Color-coded developer-friendly format."""

    def __init__(self, color: bool = True):
        super().__init__()
        self.color = color

    def format(self, record: logging.LogRecord) -> str:
        timestamp = datetime.fromtimestamp(record.created).strftime("%H:%M:%S")
        level = f"{record.levelname:<7}"
        if self.color:
            level = f"{_COLORS.get(record.levelname, '')}{level}{_RESET}"

        line = f"{timestamp} {level} {record.name}: {record.getMessage()}"

        context = getattr(record, "context", None) or {}
        if context.get("request_id"):
            line += f" [{context['request_id']}]"
        if record.exc_info:
            line += "\n" + self.formatException(record.exc_info)
        return line


def configure_logging(settings: Any = None, *, level: Optional[str] = None, stream: Any = None) -> logging.Logger:
    """
    Install the switchyard handler; safe to call more than once.

    Args:
        settings: ``Settings``; picks the formatter and default level
        level: Explicit level, overrides settings
        stream: Output stream (stderr by default)
    """
    logger = logging.getLogger("switchyard")

    for handler in list(logger.handlers):
        if getattr(handler, "_switchyard", False):
            logger.removeHandler(handler)

    local = bool(settings is not None and settings.is_local)
    handler = logging.StreamHandler(stream or sys.stderr)
    handler._switchyard = True
    handler.addFilter(RequestContextFilter())
    handler.setFormatter(LocalFormatter(color=stream is None) if local else JsonFormatter())
    logger.addHandler(handler)

    chosen = level or (settings.log_level if settings is not None else "WARNING")
    logger.setLevel(logging.getLevelName(chosen.upper()) if isinstance(chosen, str) else chosen)
    logger.propagate = False
    return logger
