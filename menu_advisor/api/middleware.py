"""
middleware.py

Cross-cutting HTTP concerns:
- Request IDs, request logging and timing
- Security headers on every response
- Rendering errors in the standard error envelope
"""

import time
import logging
from typing import Optional
from uuid import uuid4

from fastapi import Request, status
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response

from menu_advisor.config import IS_PRODUCTION
from menu_advisor.exceptions import InternalServerError, MenuAnalysisError
from menu_advisor.schemas.analyze import ErrorDetail, ErrorResponse

logger = logging.getLogger(__name__)

SECURITY_HEADERS = {
    "X-Frame-Options": "DENY",
    "X-Content-Type-Options": "nosniff",
    "Referrer-Policy": "strict-origin-when-cross-origin",
    "Permissions-Policy": "camera=(), microphone=(), geolocation=()",
}

# API responses are per-request results and must never be cached
API_CACHE_CONTROL = "no-store, max-age=0"


def get_request_id(request: Request) -> Optional[str]:
    return getattr(request.state, "request_id", None)


def error_json_response(
    request: Request,
    status_code: int,
    code: str,
    message: str,
    details: Optional[dict] = None
) -> JSONResponse:
    """Build the standard error envelope."""
    body = ErrorResponse(
        error=ErrorDetail(code=code, message=message, details=details),
        request_id=get_request_id(request)
    )
    return JSONResponse(
        status_code=status_code,
        content=body.model_dump(by_alias=True, exclude_none=True)
    )


# ============================================================================
# Middleware
# ============================================================================


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Assign a request ID, log the request, and time it."""

    async def dispatch(self, request: Request, call_next):
        request_id = uuid4().hex
        request.state.request_id = request_id

        client = request.client.host if request.client else None
        logger.info(f"[{request_id}] {request.method} {request.url.path} from {client}")

        start_time = time.perf_counter()

        try:
            response: Response = await call_next(request)
        except Exception:
            process_time = time.perf_counter() - start_time
            logger.exception(f"[{request_id}] Request failed after {process_time:.4f}s")
            raise

        process_time = time.perf_counter() - start_time
        logger.info(
            f"[{request_id}] Completed {response.status_code} in {process_time:.4f}s"
        )

        response.headers["X-Request-ID"] = request_id
        response.headers["X-Process-Time"] = f"{process_time:.4f}"
        return response


def apply_security_headers(request: Request, response: Response) -> Response:
    for name, value in SECURITY_HEADERS.items():
        response.headers.setdefault(name, value)

    if request.url.path.startswith("/api"):
        response.headers["Cache-Control"] = API_CACHE_CONTROL

    return response


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Add browser hardening headers; disable caching under /api."""

    async def dispatch(self, request: Request, call_next):
        response: Response = await call_next(request)
        return apply_security_headers(request, response)


# ============================================================================
# Error Handlers
# ============================================================================


async def menu_analysis_exception_handler(request: Request, exc: MenuAnalysisError):
    """Render a MenuAnalysisError with its own code and status."""
    log = logger.error if exc.http_status >= 500 else logger.warning
    log(f"[{get_request_id(request)}] {exc.code} on {request.url.path}: {exc.message}")

    return error_json_response(request, status_code=exc.http_status, **exc.to_dict())


async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    """Render framework-level HTTP errors (404, 405, ...) in the same envelope."""
    logger.warning(f"[{get_request_id(request)}] HTTP {exc.status_code} on {request.url.path}: {exc.detail}")

    if exc.status_code == status.HTTP_405_METHOD_NOT_ALLOWED:
        code = "METHOD_NOT_ALLOWED"
    else:
        code = f"HTTP_{exc.status_code}"

    response = error_json_response(
        request,
        status_code=exc.status_code,
        code=code,
        message=str(exc.detail)
    )
    if exc.headers:
        response.headers.update(exc.headers)
    return response


async def unhandled_exception_handler(request: Request, exc: Exception):
    """
    Last-resort handler for errors raised outside a route's own error handling
    (dependency construction, cleanup).

    Starlette calls it outside the other middleware, so the request ID and
    security headers are added here.
    """
    request_id = get_request_id(request)
    logger.error(f"[{request_id}] Unhandled error on {request.url.path}: {exc}", exc_info=exc)

    message = InternalServerError.default_message if IS_PRODUCTION else (str(exc) or "Unknown error")
    response = error_json_response(
        request,
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        code=InternalServerError.code,
        message=message
    )
    if request_id:
        response.headers["X-Request-ID"] = request_id
    return apply_security_headers(request, response)
