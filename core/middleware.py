"""
Request tracing and response hardening for the storefront API
"""
import time
import uuid
import logging
from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint

from core.config import settings

logger = logging.getLogger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"
QUIET_PATHS = {"/health", "/"}


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Tags each request with an id and logs its outcome and duration.

    An id supplied by an upstream proxy is reused so storefront and API logs
    can be correlated.
    """

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        request_id = request.headers.get(REQUEST_ID_HEADER) or uuid.uuid4().hex
        request.state.request_id = request_id

        # Health checks would drown out order traffic at INFO
        log = logger.debug if request.url.path in QUIET_PATHS else logger.info
        started = time.perf_counter()

        try:
            response = await call_next(request)
        except Exception as e:
            elapsed = time.perf_counter() - started
            logger.error(f"[{request_id}] {request.method} {request.url.path} crashed after {elapsed:.3f}s: {str(e)}")
            raise

        elapsed = time.perf_counter() - started
        log(f"[{request_id}] {request.method} {request.url.path} -> {response.status_code} ({elapsed:.3f}s)")

        response.headers[REQUEST_ID_HEADER] = request_id
        response.headers["X-Process-Time"] = f"{elapsed:.3f}"
        return response


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Standard browser hardening headers; HSTS only outside development."""

    HEADERS = {
        "X-Content-Type-Options": "nosniff",
        "X-Frame-Options": "DENY",
        "Referrer-Policy": "strict-origin-when-cross-origin",
    }

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        response = await call_next(request)

        for name, value in self.HEADERS.items():
            response.headers.setdefault(name, value)
        if settings.ENVIRONMENT == "production":
            response.headers["Strict-Transport-Security"] = "max-age=31536000; includeSubDomains"

        return response
