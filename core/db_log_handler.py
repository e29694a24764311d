import json
import logging
from typing import TYPE_CHECKING, Any, Dict, Optional, Set

from flask import has_app_context
from sqlalchemy import insert
from sqlalchemy.engine import Engine

from .db import db

if TYPE_CHECKING:  # pragma: no cover
    from flask import Flask


# Attributes every LogRecord carries; anything else came in through ``extra``.
_RESERVED_ATTRS = frozenset(vars(logging.makeLogRecord({}))) | {"message", "asctime"}


def _extract_extras(record: logging.LogRecord) -> Dict[str, Any]:
    """Return custom attributes attached to *record* for persistence."""

    extras: Dict[str, Any] = {}
    for key, value in record.__dict__.items():
        if key in _RESERVED_ATTRS or key in {"event", "path", "request_id"}:
            continue
        if key.startswith("_"):
            continue
        extras[key] = value
    return extras


class DBLogHandler(logging.Handler):
    """Logging handler that persists logs to the database."""

    def __init__(self, app: Optional["Flask"] = None, *, engine: Optional[Engine] = None) -> None:
        super().__init__()
        self._app = app
        self._engine: Optional[Engine] = engine
        self._ensured_engines: Set[int] = set()

    def bind_to_app(self, app: "Flask") -> None:
        """Rebind this handler to *app* and reset cached engines."""

        self._app = app
        self._engine = None
        self._ensured_engines.clear()

    def _resolve_engine(self) -> Engine:
        if self._engine is not None:
            return self._engine

        if has_app_context():
            engine = db.engine
        elif self._app is not None:
            with self._app.app_context():
                engine = db.engine
        else:
            raise RuntimeError("DBLogHandler requires a Flask application")

        self._engine = engine
        return engine

    def _ensure_table(self, engine: Engine) -> None:
        marker = id(engine)
        if marker in self._ensured_engines:
            return
        from .models.log import Log  # Local import to avoid circular dependencies

        Log.__table__.create(bind=engine, checkfirst=True)
        self._ensured_engines.add(marker)

    def emit(self, record: logging.LogRecord) -> None:
        try:
            self._persist(record)
        except Exception:
            self.handleError(record)

    def _persist(self, record: logging.LogRecord) -> None:
        from .models.log import Log

        trace = None
        if record.exc_info:
            trace = logging.Formatter().formatException(record.exc_info)

        raw_message = record.getMessage()
        try:
            payload = json.loads(raw_message)
        except ValueError:
            payload = {"message": raw_message}
        if not isinstance(payload, dict):
            payload = {"message": payload}

        # Attach metadata for better traceability.
        payload.setdefault("_meta", {})
        payload["_meta"].update(
            {
                "logger": record.name,
                "module": record.module,
                "function": record.funcName,
                "line": record.lineno,
                "level": record.levelname,
            }
        )

        extras = _extract_extras(record)
        if extras:
            payload["_extra"] = extras

        event = getattr(record, "event", None) or record.name or "general"
        event = str(event)[:50]

        path_value = getattr(record, "path", None) or getattr(record, "pathname", None)
        if isinstance(path_value, str):
            path_value = path_value[:255]

        request_id = getattr(record, "request_id", None)
        if request_id is not None:
            request_id = str(request_id)[:36]

        engine = self._resolve_engine()
        self._ensure_table(engine)

        stmt = insert(Log).values(
            level=record.levelname,
            event=event,
            message=json.dumps(payload, ensure_ascii=False, default=str),
            trace=trace,
            path=path_value,
            request_id=request_id,
        )
        with engine.begin() as conn:
            conn.execute(stmt)
