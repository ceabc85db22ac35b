"""
Logging for footballviz.

Two output formats, picked by LOG_FORMAT:
- text: rich console handler for interactive CLI use
- json: one JSON object per line for log shipping

Request and room context travel through context variables, so a log line
emitted deep inside the HTTP client or a socket handler still carries the
room it belongs to.

Usage:
    from footballviz.logging import setup_logging, RequestContext

    setup_logging()
    with RequestContext(room_id="chart_12"):
        logger.info("Joined room")
"""

import json
import logging
import sys
import time
import uuid
from contextvars import ContextVar
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from rich.console import Console
from rich.logging import RichHandler

from footballviz.config import settings

request_id_ctx: ContextVar[Optional[str]] = ContextVar("request_id", default=None)
room_id_ctx: ContextVar[Optional[str]] = ContextVar("room_id", default=None)
endpoint_ctx: ContextVar[Optional[str]] = ContextVar("endpoint", default=None)

# Loggers that are too chatty at INFO
QUIET_LOGGERS = ("socketio", "engineio", "httpx", "httpcore")


def _context() -> Dict[str, str]:
    values = {
        "request_id": request_id_ctx.get(),
        "room_id": room_id_ctx.get(),
        "endpoint": endpoint_ctx.get(),
    }
    return {key: value for key, value in values.items() if value}


class JSONFormatter(logging.Formatter):
    """
    One JSON object per record.

    Always present: timestamp (UTC, ISO 8601), level, logger, message,
    environment. Context variables and the whitelisted `extra={}` keys
    below are added when set.
    """

    EXTRA_FIELDS = (
        "exec_ms",
        "status_code",
        "method",
        "endpoint",
        "room_id",
        "game_id",
        "event",
        "user_id",
        "rows",
        "conditions",
        "filters_applied",
        "attempts",
        "error_kind",
        "error_details",
    )

    def format(self, record: logging.LogRecord) -> str:
        entry: Dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "environment": settings.ENVIRONMENT,
        }
        entry.update(_context())
        entry.update(
            {name: getattr(record, name) for name in self.EXTRA_FIELDS if hasattr(record, name)}
        )

        if record.exc_info and record.exc_info[0] is not None:
            entry["error_kind"] = record.exc_info[0].__name__
            entry["traceback"] = self.formatException(record.exc_info)

        return json.dumps(entry, default=str)


def _text_handler() -> logging.Handler:
    handler = RichHandler(
        console=Console(stderr=True),
        show_path=False,
        rich_tracebacks=True,
        markup=False,
        log_time_format="%H:%M:%S",
    )
    handler.setFormatter(logging.Formatter("%(message)s"))
    return handler


def setup_logging(
    level: Optional[str] = None,
    format: Optional[str] = None,
    force: bool = False,
) -> None:
    """
    Configure the root logger from settings.

    Does nothing if the root logger already has handlers, unless force=True.

    Args:
        level: Log level name, defaults to settings.FOOTBALLVIZ_LOG_LEVEL
        format: 'text' or 'json', defaults to settings.LOG_FORMAT
        force: Replace existing handlers
    """
    root = logging.getLogger()
    if root.handlers and not force:
        return

    level_name = (level or settings.FOOTBALLVIZ_LOG_LEVEL).upper()
    numeric_level = logging.getLevelName(level_name)
    if not isinstance(numeric_level, int):
        numeric_level = logging.INFO

    for handler in list(root.handlers):
        root.removeHandler(handler)

    if (format or settings.LOG_FORMAT).lower() == "json":
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(JSONFormatter())
    else:
        handler = _text_handler()

    root.setLevel(numeric_level)
    root.addHandler(handler)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(max(numeric_level, logging.WARNING))


class RequestContext:
    """
    Set request / room / endpoint context for the duration of a block.

    Example:
        with RequestContext(room_id="chart_12"):
            logger.info("Chart updated")  # carries request_id and room_id
    """

    def __init__(
        self,
        request_id: Optional[str] = None,
        room_id: Optional[str] = None,
        endpoint: Optional[str] = None,
    ):
        self.request_id = request_id or uuid.uuid4().hex[:12]
        self.room_id = room_id
        self.endpoint = endpoint
        self._resets = []

    def __enter__(self):
        for var, value in (
            (request_id_ctx, self.request_id),
            (room_id_ctx, self.room_id),
            (endpoint_ctx, self.endpoint),
        ):
            if value:
                self._resets.append((var, var.set(value)))
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        while self._resets:
            var, token = self._resets.pop()
            var.reset(token)


class TimedOperation:
    """
    Time a block and log how long it took.

    Failures are logged at WARNING with the exception type and re-raised.

    Example:
        with TimedOperation("execute query", logger, game_id=12) as op:
            rows = await client.post(...)
        op.exec_ms
    """

    def __init__(self, operation: str, logger: logging.Logger, level: int = logging.DEBUG, **extra):
        self.operation = operation
        self.logger = logger
        self.level = level
        self.extra = extra
        self.exec_ms: Optional[float] = None
        self._started: Optional[float] = None

    def __enter__(self):
        self._started = time.perf_counter()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.exec_ms = (time.perf_counter() - self._started) * 1000
        extra = {**self.extra, "exec_ms": self.exec_ms}
        if exc_type is None:
            self.logger.log(self.level, f"{self.operation} took {self.exec_ms:.1f}ms", extra=extra)
            return
        extra["error_kind"] = exc_type.__name__
        self.logger.warning(f"{self.operation} failed: {exc_val}", extra=extra)


def log_request_start(
    logger: logging.Logger,
    method: str,
    endpoint: str,
    params: Optional[Dict[str, Any]] = None,
) -> None:
    logger.debug(
        f"{method} {endpoint}",
        extra={"method": method, "endpoint": endpoint, "error_details": params},
    )


def log_request_complete(
    logger: logging.Logger,
    method: str,
    endpoint: str,
    status_code: int,
    exec_ms: float,
) -> None:
    """Log a finished HTTP call; 4xx/5xx go out at WARNING."""
    level = logging.WARNING if status_code >= 400 else logging.INFO
    logger.log(
        level,
        f"{method} {endpoint} -> {status_code} ({exec_ms:.0f}ms)",
        extra={
            "method": method,
            "endpoint": endpoint,
            "status_code": status_code,
            "exec_ms": exec_ms,
        },
    )


def log_error(
    logger: logging.Logger,
    error: Exception,
    context: Optional[Dict[str, Any]] = None,
) -> None:
    """Log an exception with its footballviz error code and details, if any."""
    extra: Dict[str, Any] = {"error_kind": getattr(error, "code", type(error).__name__)}
    extra.update(context or {})
    details = getattr(error, "details", None)
    if details:
        extra["error_details"] = details
    status_code = getattr(error, "status_code", None)
    if status_code is not None:
        extra["status_code"] = status_code
    logger.error(f"{type(error).__name__}: {error}", extra=extra)


__all__ = [
    "setup_logging",
    "JSONFormatter",
    "RequestContext",
    "TimedOperation",
    "log_request_start",
    "log_request_complete",
    "log_error",
]
