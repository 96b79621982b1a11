"""
Domain errors raised by services and rendered by the API layer.

Every error carries a stable `kind` and an HTTP status. Services raise them;
`register_exception_handlers` turns them into `{"error": ..., "kind": ...}`.

Internal details (SQL, stack traces) are logged, never returned.
"""
import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

logger = logging.getLogger(__name__)


class PharmacyError(Exception):
    """Base class for all errors the API reports to clients."""

    kind = "INTERNAL_ERROR"
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message = "An internal error occurred. Please try again later."

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)

    def to_payload(self) -> dict:
        return {"error": self.message, "kind": self.kind}


class UnauthorizedError(PharmacyError):
    kind = "UNAUTHORIZED"
    status_code = status.HTTP_401_UNAUTHORIZED
    default_message = "Authentication required"


class ForbiddenError(PharmacyError):
    kind = "FORBIDDEN"
    status_code = status.HTTP_403_FORBIDDEN
    default_message = "Access denied"


class NotFoundError(PharmacyError):
    kind = "NOT_FOUND"
    status_code = status.HTTP_404_NOT_FOUND
    default_message = "Resource not found"

    @classmethod
    def for_entity(cls, entity: str, key) -> "NotFoundError":
        return cls(f"{entity} {key} not found")


class ConflictError(PharmacyError):
    """Duplicate records, or a delete blocked by dependent rows."""

    kind = "CONFLICT"
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Conflicting resource state"


class InsufficientStockError(PharmacyError):
    kind = "INSUFFICIENT_STOCK"
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Not enough stock"

    def __init__(self, medicine_id: int, available: int | None, requested: int):
        self.medicine_id = medicine_id
        self.available = available
        self.requested = requested
        super().__init__(
            f"Not enough stock for medicine {medicine_id}: "
            f"available {available}, requested {requested}"
        )


class ValidationError(PharmacyError):
    kind = "VALIDATION_ERROR"
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Invalid request"


class InternalError(PharmacyError):
    pass


def _render(exc: PharmacyError) -> JSONResponse:
    headers = None
    if isinstance(exc, UnauthorizedError):
        headers = {"WWW-Authenticate": "Bearer"}
    return JSONResponse(status_code=exc.status_code, content=exc.to_payload(), headers=headers)


async def pharmacy_error_handler(request: Request, exc: PharmacyError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("Internal error on %s %s: %s", request.method, request.url.path, exc.message)
    elif isinstance(exc, (UnauthorizedError, ForbiddenError)):
        logger.warning("%s on %s %s: %s", exc.kind, request.method, request.url.path, exc.message)
    else:
        logger.info("%s on %s %s: %s", exc.kind, request.method, request.url.path, exc.message)
    return _render(exc)


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    parts = []
    for err in exc.errors():
        loc = ".".join(str(p) for p in err.get("loc", ()) if p != "body")
        parts.append(f"{loc}: {err.get('msg')}" if loc else str(err.get("msg")))
    error = ValidationError("; ".join(parts) or None)
    logger.info("Validation failed on %s %s: %s", request.method, request.url.path, error.message)
    return _render(error)


async def database_error_handler(request: Request, exc: SQLAlchemyError) -> JSONResponse:
    logger.error(
        "Database error on %s %s: %s: %s",
        request.method, request.url.path, type(exc).__name__, exc,
        exc_info=exc,
    )
    return _render(InternalError())


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error(
        "Unhandled error on %s %s: %s",
        request.method, request.url.path, type(exc).__name__,
        exc_info=exc,
    )
    return _render(InternalError())


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(PharmacyError, pharmacy_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(SQLAlchemyError, database_error_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)
