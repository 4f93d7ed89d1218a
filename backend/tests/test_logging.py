"""
test_logging.py - request id binding and log formatting.
"""

import json
import logging

from fastapi import FastAPI
from fastapi.testclient import TestClient

from logging_config import JSONFormatter, RequestContextFilter, TextFormatter, request_id_var
from middleware import MAX_REQUEST_ID_LENGTH, RequestTimingMiddleware


def _record(msg="hello", level=logging.INFO, **extra):
    record = logging.LogRecord("okna-store", level, __file__, 10, msg, (), None)
    for k, v in extra.items():
        setattr(record, k, v)
    return record


# ---------------------------------------------------------------------------
# Formatting
# ---------------------------------------------------------------------------

class TestFormatters:

    def test_filter_stamps_bound_request_id(self):
        token = request_id_var.set("abc123")
        try:
            record = _record()
            assert RequestContextFilter().filter(record) is True
        finally:
            request_id_var.reset(token)
        assert record.request_id == "abc123"

    def test_filter_keeps_explicit_request_id(self):
        record = _record(request_id="explicit")
        RequestContextFilter().filter(record)
        assert record.request_id == "explicit"

    def test_json_line(self):
        record = _record("Request %s created", request_id="abc123", request_doc_id="r1")
        record.args = ("r1",)
        entry = json.loads(JSONFormatter().format(record))
        assert entry["message"] == "Request r1 created"
        assert entry["request_id"] == "abc123"
        assert entry["request_doc_id"] == "r1"
        assert "location" not in entry

    def test_json_warning_has_location_and_keeps_cyrillic(self):
        entry_text = JSONFormatter().format(_record("Заявка", level=logging.WARNING, request_id=None))
        entry = json.loads(entry_text)
        assert "Заявка" in entry_text
        assert "request_id" not in entry
        assert entry["location"].startswith("test_logging.")

    def test_text_line_tags_request(self):
        assert "[abc123] hello" in TextFormatter().format(_record(request_id="abc123"))
        assert "INFO hello" in TextFormatter().format(_record(request_id=None))


# ---------------------------------------------------------------------------
# Middleware
# ---------------------------------------------------------------------------

def _app():
    app = FastAPI()
    app.add_middleware(RequestTimingMiddleware)

    @app.get("/whoami")
    async def whoami():
        return {"request_id": request_id_var.get()}

    return app


class TestMiddleware:

    def test_incoming_id_is_bound_and_echoed(self):
        with TestClient(_app()) as client:
            res = client.get("/whoami", headers={"X-Request-ID": "front-42"})
        assert res.json() == {"request_id": "front-42"}
        assert res.headers["X-Request-ID"] == "front-42"

    def test_fresh_id_when_missing_or_oversized(self):
        with TestClient(_app()) as client:
            plain = client.get("/whoami")
            long = client.get("/whoami", headers={"X-Request-ID": "x" * (MAX_REQUEST_ID_LENGTH + 1)})
        assert plain.json()["request_id"] == plain.headers["X-Request-ID"]
        assert len(plain.headers["X-Request-ID"]) == 32
        assert long.headers["X-Request-ID"] != "x" * (MAX_REQUEST_ID_LENGTH + 1)

    def test_client_error_logged_as_warning(self, caplog):
        with caplog.at_level(logging.INFO, logger="okna-api.access"):
            with TestClient(_app()) as client:
                client.get("/missing")
        [line] = [r for r in caplog.records if r.name == "okna-api.access"]
        assert line.levelno == logging.WARNING
        assert line.http_status == 404
