"""bondcalc API error handling.

Provides BondcalcHttpError and FastAPI exception handlers producing the
structured error envelope with request_id tracing.

Global exception handlers:
- BondcalcHttpError: Application-specific errors
- FormulaValidationFailure: Rejected configuration commits (422)
- StorageBackendError: Store unavailable (503)
- HTTPException: FastAPI/Starlette HTTP exceptions
- RequestValidationError: Pydantic validation errors
- Exception: Catch-all (fail closed, no stack traces)
"""

import logging
from typing import Any

from fastapi import HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from bondcalc.api.error_model import get_error_code_for_status, make_error_response
from bondcalc.services.rate_config import FormulaValidationFailure
from bondcalc.storage.errors import StorageBackendError

logger = logging.getLogger(__name__)


class BondcalcHttpError(Exception):
    """Application-level HTTP error with structured error envelope.

    Attributes:
        status_code: HTTP status code (e.g., 400, 403, 404).
        code: Machine-readable error code.
        message: Human-readable error message.
        details: Optional dict with additional error context.
    """

    def __init__(
        self,
        status_code: int,
        code: str,
        message: str,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.code = code
        self.message = message
        self.details = details


async def bondcalc_http_error_handler(request: Request, exc: Exception) -> JSONResponse:
    """Exception handler for BondcalcHttpError."""
    assert isinstance(exc, BondcalcHttpError)

    return make_error_response(
        request,
        code=exc.code,
        message=exc.message,
        http_status=exc.status_code,
        details=exc.details,
    )


async def formula_validation_failure_handler(request: Request, exc: Exception) -> JSONResponse:
    """Map a rejected commit to 422, naming the failing formula."""
    assert isinstance(exc, FormulaValidationFailure)

    return make_error_response(
        request,
        code="FORMULA_VALIDATION_FAILED",
        message=str(exc),
        http_status=422,
        details={
            "slot": exc.slot,
            "label": exc.label,
            "errors": [
                {"code": e.code, "message": e.message, "slot": e.path} for e in exc.errors
            ],
        },
    )


async def storage_error_handler(request: Request, exc: Exception) -> JSONResponse:
    """Store failures fail closed with 503."""
    assert isinstance(exc, StorageBackendError)

    logger.error("Storage backend error: %s", exc)
    return make_error_response(
        request,
        code="STORAGE_UNAVAILABLE",
        message="Configuration store is unavailable",
        http_status=503,
    )


async def http_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Map standard HTTP exceptions to the error envelope."""
    assert isinstance(exc, HTTPException)

    code = get_error_code_for_status(exc.status_code)
    message = str(exc.detail) if exc.detail else f"HTTP {exc.status_code}"

    return make_error_response(
        request,
        code=code,
        message=message,
        http_status=exc.status_code,
    )


async def request_validation_error_handler(request: Request, exc: Exception) -> JSONResponse:
    """Map Pydantic validation errors to the error envelope.

    Only field locations and messages are exposed.
    """
    assert isinstance(exc, RequestValidationError)

    safe_details: list[dict[str, Any]] = []
    for error in exc.errors():
        loc = error.get("loc", ())
        safe_loc = [str(part) for part in loc if part not in ("body", "query", "path")]
        safe_details.append(
            {
                "field": ".".join(safe_loc) if safe_loc else "request",
                "message": error.get("msg", "Validation error"),
            }
        )

    return make_error_response(
        request,
        code="REQUEST_VALIDATION_FAILED",
        message="Request validation failed",
        http_status=422,
        details={"errors": safe_details} if safe_details else None,
    )


async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Catch-all handler: 500 with a generic message, exception logged."""
    request_id = getattr(request.state, "request_id", None)

    logger.exception(
        "Unhandled exception: %s",
        type(exc).__name__,
        extra={"request_id": request_id},
    )

    return make_error_response(
        request,
        code="INTERNAL_ERROR",
        message="An internal error occurred",
        http_status=500,
    )
