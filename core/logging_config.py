"""Logging configuration for the image provider."""

from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any, Dict, Mapping, Optional, cast

from flask import current_app, has_app_context


_APPDB_HANDLER_ATTR = "_is_appdb_log_handler"


if TYPE_CHECKING:  # pragma: no cover
    from flask import Flask


def _resolve_flask_app() -> Optional["Flask"]:
    """Return the concrete Flask app when an application context is active."""

    if not has_app_context():
        return None

    getter = getattr(current_app, "_get_current_object", None)
    if callable(getter):
        return cast("Flask", getter())
    return cast("Flask", current_app)


def _create_appdb_db_handler(app: Optional["Flask"] = None) -> logging.Handler:
    """Create a DBLogHandler configured for appdb logging."""

    from core.db_log_handler import DBLogHandler

    handler = DBLogHandler(app=app or _resolve_flask_app())
    handler.setLevel(logging.INFO)
    setattr(handler, _APPDB_HANDLER_ATTR, True)
    return handler


def ensure_appdb_file_logging(logger: logging.Logger, app: Optional["Flask"] = None) -> None:
    """Attach the database-backed appdb log handler to *logger* if missing."""

    from core.db_log_handler import DBLogHandler

    for handler in logger.handlers:
        if getattr(handler, _APPDB_HANDLER_ATTR, False):
            break
        if isinstance(handler, DBLogHandler):
            setattr(handler, _APPDB_HANDLER_ATTR, True)
            break
    else:
        logger.addHandler(_create_appdb_db_handler(app))

    if logger.level == logging.NOTSET:
        logger.setLevel(logging.INFO)


def setup_logging(logger_name: Optional[str] = None) -> logging.Logger:
    """Return the named logger with an INFO floor."""

    logger = logging.getLogger(logger_name) if logger_name else logging.getLogger()
    if logger.level == logging.NOTSET:
        logger.setLevel(logging.INFO)
    return logger


class StructuredLogger:
    """Helper for emitting structured JSON logs."""

    def __init__(self, logger: logging.Logger, defaults: Optional[Mapping[str, Any]] = None):
        self._logger = logger
        self._defaults: Dict[str, Any] = dict(defaults or {})

    @property
    def logger(self) -> logging.Logger:
        return self._logger

    def bind(self, **extra: Any) -> "StructuredLogger":
        """Return a new logger with additional default fields."""

        merged = dict(self._defaults)
        merged.update(extra)
        return StructuredLogger(self._logger, merged)

    def _emit(self, level: int, event: str, **fields: Any) -> None:
        if not self._logger.isEnabledFor(level):
            return
        payload: Dict[str, Any] = {
            "ts": datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
            "event": event,
            "level": logging.getLevelName(level),
        }
        payload.update(self._defaults)
        payload.update(fields)
        message = json.dumps(payload, ensure_ascii=False, default=str)
        self._logger.log(level, message, extra={"event": event})

    def log(self, level: int, event: str, **fields: Any) -> None:
        """Emit a log entry at *level* with structured payload."""

        self._emit(level, event, **fields)

    def debug(self, event: str, **fields: Any) -> None:
        self._emit(logging.DEBUG, event, **fields)

    def info(self, event: str, **fields: Any) -> None:
        self._emit(logging.INFO, event, **fields)

    def warning(self, event: str, **fields: Any) -> None:
        self._emit(logging.WARNING, event, **fields)

    def error(self, event: str, **fields: Any) -> None:
        self._emit(logging.ERROR, event, **fields)


def structured_logger(logger_name: str, **defaults: Any) -> StructuredLogger:
    """Return a :class:`StructuredLogger` bound to *logger_name*."""

    return StructuredLogger(setup_logging(logger_name), defaults)


def log_error(logger: logging.Logger, message: str, event: str, exc_info: bool = True, **extra_attrs):
    """Log an error with an event tag for database storage.

    Args:
        logger: Logger instance to use.
        message: Error message.
        event: Event identifier for categorization.
        exc_info: Whether to include exception information.
        **extra_attrs: Additional attributes to include in log record.
    """
    extra = {
        'event': event,
        **extra_attrs
    }

    logger.error(message, exc_info=exc_info, extra=extra)
