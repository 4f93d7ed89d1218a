"""Structured logging for the site API.

Every record emitted while an HTTP request is being served carries that
request's id (bound by RequestTimingMiddleware), so store, event-bus and mail
log lines can be joined to the access line that caused them.
"""
import logging
import json
import sys
from contextvars import ContextVar
from datetime import datetime, timezone
from typing import Optional

request_id_var: ContextVar[Optional[str]] = ContextVar("request_id", default=None)

# Passed via ``extra`` by the middleware and the stores
EXTRA_FIELDS = ("duration_ms", "http_method", "http_path", "http_status", "request_doc_id")


class RequestContextFilter(logging.Filter):
    """Stamps ``record.request_id`` from the current request context."""

    def filter(self, record):
        if getattr(record, "request_id", None) is None:
            record.request_id = request_id_var.get()
        return True


class JSONFormatter(logging.Formatter):
    def format(self, record):
        log_entry = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        request_id = getattr(record, "request_id", None)
        if request_id:
            log_entry["request_id"] = request_id
        for name in EXTRA_FIELDS:
            if hasattr(record, name):
                log_entry[name] = getattr(record, name)
        if record.levelno >= logging.WARNING:
            log_entry["location"] = f"{record.module}.{record.funcName}:{record.lineno}"
        if record.exc_info:
            log_entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(log_entry, ensure_ascii=False)


class TextFormatter(logging.Formatter):
    def __init__(self):
        super().__init__("%(asctime)s [%(name)s] %(levelname)s %(request_tag)s%(message)s")

    def format(self, record):
        request_id = getattr(record, "request_id", None)
        record.request_tag = f"[{request_id}] " if request_id else ""
        return super().format(record)


def setup_logging(level: str = "INFO", json_output: bool = True):
    root = logging.getLogger()
    root.setLevel(getattr(logging, level.upper(), logging.INFO))

    handler = logging.StreamHandler(sys.stdout)
    handler.addFilter(RequestContextFilter())
    handler.setFormatter(JSONFormatter() if json_output else TextFormatter())
    root.handlers = [handler]

    # uvicorn's access log duplicates the middleware line
    for name in ["uvicorn.access", "pymongo"]:
        logging.getLogger(name).setLevel(logging.WARNING)
