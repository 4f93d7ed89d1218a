"""Request id binding and access logging."""
import time
import uuid
import logging
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from logging_config import request_id_var

logger = logging.getLogger("okna-api.access")

SKIP_LOG_PATHS = {"/health"}
MAX_REQUEST_ID_LENGTH = 64


def incoming_request_id(request: Request) -> str:
    """Caller-supplied X-Request-ID when it is usable, otherwise a fresh uuid."""
    supplied = request.headers.get("X-Request-ID", "").strip()
    if supplied and len(supplied) <= MAX_REQUEST_ID_LENGTH and supplied.isprintable():
        return supplied
    return uuid.uuid4().hex


class RequestTimingMiddleware(BaseHTTPMiddleware):
    """
    Binds the request id for the duration of the request, tags the response
    with X-Request-ID and X-Process-Time (ms), and writes one access line per
    request. Server errors log at ERROR, client errors at WARNING.
    """

    async def dispatch(self, request: Request, call_next) -> Response:
        request_id = incoming_request_id(request)
        token = request_id_var.set(request_id)
        request.state.request_id = request_id
        start_time = time.perf_counter()
        try:
            response: Response = await call_next(request)
        except Exception:
            logger.exception("%s %s failed", request.method, request.url.path)
            raise
        finally:
            duration_ms = round((time.perf_counter() - start_time) * 1000, 2)
            request_id_var.reset(token)

        response.headers["X-Request-ID"] = request_id
        response.headers["X-Process-Time"] = str(duration_ms)

        if request.url.path not in SKIP_LOG_PATHS:
            status = response.status_code
            level = logging.ERROR if status >= 500 else logging.WARNING if status >= 400 else logging.INFO
            logger.log(
                level,
                "%s %s -> %d",
                request.method,
                request.url.path,
                status,
                extra={
                    "request_id": request_id,
                    "http_method": request.method,
                    "http_path": request.url.path,
                    "http_status": status,
                    "duration_ms": duration_ms,
                },
            )

        return response
