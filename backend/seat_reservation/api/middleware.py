"""
Request middleware for logging, timing, and request context.

Every log line emitted while a request is served carries the request ID,
the holder the bearer token names (if any) and the booking idempotency key
(if any), so one checkout can be followed from hold to booking.
"""

import time
import uuid
from typing import Optional

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response
import structlog

from seat_reservation.core.logging import get_logger
from seat_reservation.core.security import decode_access_token
from seat_reservation.domain.errors import MissingHolderError

logger = get_logger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"
IDEMPOTENCY_HEADER = "X-Idempotency-Key"


def request_holder_id(request: Request) -> Optional[str]:
    """Holder named by the bearer token, or None. Never rejects the request."""
    scheme, _, token = request.headers.get("Authorization", "").partition(" ")
    if scheme.lower() != "bearer" or not token:
        return None
    try:
        return decode_access_token(token).get("sub") or None
    except MissingHolderError:
        return None


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """
    Middleware that:
    1. Reuses the caller's X-Request-ID, or assigns a new one
    2. Binds request ID, holder and idempotency key to structlog
    3. Logs status code and duration of every request
    """

    async def dispatch(self, request: Request, call_next) -> Response:
        request_id = request.headers.get(REQUEST_ID_HEADER) or str(uuid.uuid4())[:8]
        start_time = time.perf_counter()

        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(
            request_id=request_id,
            method=request.method,
            path=request.url.path,
        )
        holder_id = request_holder_id(request)
        if holder_id:
            structlog.contextvars.bind_contextvars(holder_id=holder_id)
        idempotency_key = request.headers.get(IDEMPOTENCY_HEADER)
        if idempotency_key:
            structlog.contextvars.bind_contextvars(idempotency_key=idempotency_key)

        try:
            response = await call_next(request)
        except Exception as e:
            duration_ms = round((time.perf_counter() - start_time) * 1000, 2)
            logger.error("request_failed", error=str(e), duration_ms=duration_ms)
            raise

        duration_ms = round((time.perf_counter() - start_time) * 1000, 2)
        log = logger.warning if response.status_code == 409 else logger.info
        log("request_completed", status_code=response.status_code, duration_ms=duration_ms)

        response.headers[REQUEST_ID_HEADER] = request_id
        response.headers["X-Response-Time"] = f"{duration_ms}ms"
        return response
