from __future__ import annotations

import contextlib
import contextvars
import json
import logging
import uuid
from datetime import datetime, timezone
from typing import Dict

from flask import g, has_request_context


_LOG_RUN_ID_CTX: contextvars.ContextVar[str] = contextvars.ContextVar("log_run_id", default="")


def _normalize_request_id(value: str | None) -> str:
    return str(value or "").strip() or "n/a"


def new_run_id(prefix: str) -> str:
    return f"{prefix}-{uuid.uuid4().hex[:12]}"


@contextlib.contextmanager
def bind_request_id(request_id: str | None):
    token = _LOG_RUN_ID_CTX.set(_normalize_request_id(request_id))
    try:
        yield _LOG_RUN_ID_CTX.get()
    finally:
        _LOG_RUN_ID_CTX.reset(token)


def current_request_id(default: str | None = None) -> str:
    if has_request_context():
        request_id = str(getattr(g, "request_id", "") or "").strip()
        if request_id:
            return request_id
    request_id = str(_LOG_RUN_ID_CTX.get() or "").strip()
    if request_id:
        return request_id
    return default or "n/a"


_RECORD_ATTRIBUTES = frozenset(logging.makeLogRecord({}).__dict__) | {"message", "asctime"}


class JsonLogFormatter(logging.Formatter):
    """One JSON object per line; every ``extra`` field becomes a top-level key."""

    def format(self, record: logging.LogRecord) -> str:
        payload: Dict[str, object] = {
            "ts": datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
            "level": record.levelname.lower(),
            "logger": record.name,
            "message": record.getMessage(),
        }
        record_request_id = str(getattr(record, "request_id", "") or "").strip()
        payload["request_id"] = record_request_id or current_request_id(default="n/a")

        for key, value in record.__dict__.items():
            if key in _RECORD_ATTRIBUTES or key.startswith("_"):
                continue
            if key in payload:
                continue
            if callable(value):
                continue
            payload[key] = value

        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=True, separators=(",", ":"), default=str)


def configure_json_logging(app) -> None:
    if not bool(app.config.get("LOG_JSON", True)):
        return
    level_name = str(app.config.get("LOG_LEVEL", "INFO")).strip().upper()
    level = getattr(logging, level_name, logging.INFO)

    handler = logging.StreamHandler()
    handler.setFormatter(JsonLogFormatter())

    root_logger = logging.getLogger()
    root_logger.handlers = [handler]
    root_logger.setLevel(level)
    app.logger.handlers = []
    app.logger.propagate = True
