"""
HTTP request logging middleware.

Each request gets a request id (from ``x-request-id`` or freshly minted) bound
into structlog's context, so service logs emitted while handling it carry the
same id.
"""

import time
import uuid

import structlog
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

logger = structlog.stdlib.get_logger("wallet.http")

# Query parameters worth logging; everything else is dropped.
_LOGGED_PARAMS = ("chains", "account")


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Log one line per request with status and latency."""

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        request_id = request.headers.get("x-request-id") or uuid.uuid4().hex[:12]

        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(request_id=request_id, path=request.url.path)

        start = time.perf_counter()
        status_code = 500
        try:
            response = await call_next(request)
            status_code = response.status_code
            response.headers["x-request-id"] = request_id
            return response
        finally:
            elapsed_ms = round((time.perf_counter() - start) * 1000, 1)
            if status_code >= 500:
                log = logger.error
            elif status_code >= 400:
                log = logger.warning
            else:
                log = logger.info
            log(
                "http_request",
                method=request.method,
                status=status_code,
                duration_ms=elapsed_ms,
                params={k: request.query_params[k] for k in _LOGGED_PARAMS if k in request.query_params},
            )
            structlog.contextvars.clear_contextvars()
