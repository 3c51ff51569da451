"""
Access logging with a per-request correlation id.

The id comes from an inbound ``X-Request-ID`` header when present, is bound
into the structlog context for the lifetime of the request, and is echoed
back on the response.
"""
import time
import uuid
from typing import Callable, Optional

import structlog
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from ..core.logging import get_logger

logger = get_logger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"
# Query strings on these paths carry OAuth codes and state
UNLOGGED_QUERY_PATHS = frozenset({"/auth/callback"})


def _loggable_query(request: Request) -> Optional[str]:
    if not request.query_params or request.url.path in UNLOGGED_QUERY_PATHS:
        return None
    return str(request.query_params)


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = request.headers.get(REQUEST_ID_HEADER) or uuid.uuid4().hex
        request.state.request_id = request_id
        started = time.perf_counter()

        def elapsed_ms() -> float:
            return round((time.perf_counter() - started) * 1000, 2)

        with structlog.contextvars.bound_contextvars(request_id=request_id):
            logger.info(
                "request.started",
                method=request.method,
                path=request.url.path,
                query_params=_loggable_query(request),
                client=request.client.host if request.client else None,
                user_agent=request.headers.get("user-agent"),
            )
            try:
                response = await call_next(request)
            except Exception as exc:
                logger.error(
                    "request.failed",
                    method=request.method,
                    path=request.url.path,
                    error_type=type(exc).__name__,
                    duration_ms=elapsed_ms(),
                    exc_info=True,
                )
                raise

            logger.info(
                "request.completed",
                method=request.method,
                path=request.url.path,
                status_code=response.status_code,
                duration_ms=elapsed_ms(),
            )
        response.headers[REQUEST_ID_HEADER] = request_id
        return response
