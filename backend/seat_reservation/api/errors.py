"""Centralized exception handlers for FastAPI."""

from fastapi import Request
from fastapi.responses import JSONResponse

from seat_reservation.core.logging import get_logger
from seat_reservation.domain.errors import DomainError, MissingHolderError, StorageFailureError

logger = get_logger(__name__)


def _error_body(exc: DomainError) -> dict:
    return {"detail": exc.message, "code": exc.code.value}


async def domain_error_handler(request: Request, exc: DomainError) -> JSONResponse:
    """Map domain errors to their HTTP status with a {"detail", "code"} body."""
    logger.warning("domain_error", code=exc.code.value, status_code=exc.status_code, message=exc.message)
    return JSONResponse(status_code=exc.status_code, content=_error_body(exc))


async def missing_holder_handler(request: Request, exc: MissingHolderError) -> JSONResponse:
    logger.info("holder_rejected", message=exc.message)
    return JSONResponse(
        status_code=exc.status_code,
        content=_error_body(exc),
        headers={"WWW-Authenticate": "Bearer"},
    )


async def storage_failure_handler(request: Request, exc: StorageFailureError) -> JSONResponse:
    # The backend detail is logged, never returned to clients
    logger.error("storage_failure", backend=exc.backend, detail=exc.detail)
    return JSONResponse(status_code=exc.status_code, content=_error_body(exc))


# Exception handler mapping
EXCEPTION_HANDLERS = {
    DomainError: domain_error_handler,
    MissingHolderError: missing_holder_handler,
    StorageFailureError: storage_failure_handler,
}


def register_exception_handlers(app):
    for exception_class, handler in EXCEPTION_HANDLERS.items():
        app.add_exception_handler(exception_class, handler)
