"""
Middleware package.

WHY: Middleware provides cross-cutting concerns like request correlation
and access logging that apply to all requests.
"""

from app.middleware.request_context import (
    RequestContextMiddleware,
    RequestIdLogFilter,
    get_request_context,
    RequestContext,
)

__all__ = [
    "RequestContextMiddleware",
    "RequestIdLogFilter",
    "get_request_context",
    "RequestContext",
]
