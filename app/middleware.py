import logging
import time
import uuid
from collections.abc import Callable

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

logger = logging.getLogger(__name__)

# Requests slower than this are logged; tree rewrites on large subtrees are the usual cause
SLOW_REQUEST_MS = 1000.0


class RequestIDMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        # Continue the caller's W3C trace when one is supplied
        incoming = request.headers.get("traceparent", "").split("-")
        if len(incoming) == 4 and len(incoming[1]) == 32:
            trace_id = incoming[1]
        else:
            trace_id = uuid.uuid4().hex
        span_id = uuid.uuid4().hex[:16]

        request.state.trace_id = trace_id
        request.state.span_id = span_id

        response = await call_next(request)
        response.headers["traceparent"] = f"00-{trace_id}-{span_id}-01"
        return response


class TimingMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        start_time = time.perf_counter()

        response = await call_next(request)

        # Use Server-Timing header (RFC 8673)
        process_time_ms = (time.perf_counter() - start_time) * 1000
        response.headers["server-timing"] = f"total;dur={process_time_ms:.2f}"
        if process_time_ms > SLOW_REQUEST_MS:
            logger.warning(f"Slow request {request.method} {request.url.path}: {process_time_ms:.0f}ms")
        return response
