"""
Request context middleware for log correlation.

WHAT: Middleware that assigns every request an ID, makes it available
throughout the request lifecycle, and writes one access log line per request.

WHY: A proposal send touches the database and the ERP in one request. When
the ERP rejects a document, support needs to find every log line for that
request, so each record carries the same request ID that is returned to the
caller in the X-Request-ID header.

HOW: Stores the context in a ContextVar for async-safe access from services,
and exposes a logging.Filter that stamps the ID onto log records.
"""

import logging
import time
import uuid
from contextvars import ContextVar
from dataclasses import dataclass
from typing import Optional, Callable

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response


logger = logging.getLogger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"


@dataclass
class RequestContext:
    """
    Container for request-scoped context data.

    Fields:
    - request_id: Unique identifier for the request (for log correlation)
    - path: Request path
    - method: HTTP method
    """

    request_id: str
    path: str
    method: str


_request_context: ContextVar[Optional[RequestContext]] = ContextVar(
    "request_context", default=None
)


def get_request_context() -> Optional[RequestContext]:
    """
    Get the current request context.

    Returns:
        RequestContext if within a request, None otherwise
    """
    return _request_context.get()


class RequestIdLogFilter(logging.Filter):
    """
    Logging filter that adds ``request_id`` to every record.

    WHY: Lets the log format reference %(request_id)s without every
    logger call having to pass it explicitly. Outside a request the
    value is "-".
    """

    def filter(self, record: logging.LogRecord) -> bool:
        context = _request_context.get()
        record.request_id = context.request_id if context else "-"
        return True


class RequestContextMiddleware(BaseHTTPMiddleware):
    """
    Middleware that captures request context and logs request timing.

    WHY: An upstream proxy may already have assigned an ID; reusing it keeps
    the trace continuous across services. Otherwise a UUID4 is generated.
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = request.headers.get(REQUEST_ID_HEADER) or str(uuid.uuid4())

        context = RequestContext(
            request_id=request_id,
            path=request.url.path,
            method=request.method,
        )
        request.state.context = context
        token = _request_context.set(context)
        started = time.perf_counter()

        try:
            response = await call_next(request)
            response.headers[REQUEST_ID_HEADER] = request_id

            logger.info(
                "%s %s -> %s (%.1f ms)",
                request.method,
                request.url.path,
                response.status_code,
                (time.perf_counter() - started) * 1000,
            )
            return response

        finally:
            _request_context.reset(token)
