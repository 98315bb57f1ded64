"""Request ID + access log middleware.

Learn: Every request gets an id, either from the incoming X-Request-ID
header or freshly generated. It is bound to structlog's contextvars so
every log line emitted while handling the request carries it, echoed back
in the response header, and logged once more with the status and timing.

For the SSE stream the logged duration is time-to-first-byte: call_next
returns as soon as headers are ready, while the body keeps streaming.
"""

import time
import uuid

import structlog
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

logger = structlog.get_logger()


class RequestIdMiddleware(BaseHTTPMiddleware):
    """Tag each request with an id and log its outcome."""

    async def dispatch(self, request: Request, call_next) -> Response:
        request_id = request.headers.get("X-Request-ID") or uuid.uuid4().hex

        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(request_id=request_id)

        start = time.perf_counter()
        response: Response = await call_next(request)
        response.headers["X-Request-ID"] = request_id

        logger.info(
            "eventcast.request",
            method=request.method,
            path=request.url.path,
            status=response.status_code,
            duration_ms=round((time.perf_counter() - start) * 1000, 1),
        )
        return response
