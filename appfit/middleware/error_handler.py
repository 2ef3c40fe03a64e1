"""Global exception handler for consistent error responses."""

import traceback
from datetime import datetime, timezone
from typing import Union

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import ValidationError as PydanticValidationError
from sqlalchemy.exc import SQLAlchemyError

from appfit.exceptions import BaseAPIException, DatabaseError, PersistenceError
from appfit.schemas.errors import ErrorDetail, ErrorResponse
from appfit.utils.logger import get_logger, get_request_id

log = get_logger(__name__)


def _error_response(
    status_code: int, code: str, message: str, details: dict | None = None
) -> JSONResponse:
    error_response = ErrorResponse(
        error=ErrorDetail(code=code, message=message, details=details or {}),
        request_id=get_request_id(),
        timestamp=datetime.now(timezone.utc),
    )
    return JSONResponse(status_code=status_code, content=error_response.model_dump(mode="json"))


async def base_exception_handler(request: Request, exc: BaseAPIException) -> JSONResponse:
    """Handle custom API exceptions."""
    log_method = log.warning if exc.status_code < 500 else log.error
    log_method(
        "api exception",
        error_code=exc.error_code,
        message=exc.message,
        status_code=exc.status_code,
        details=exc.details,
    )
    return _error_response(exc.status_code, exc.error_code, exc.message, exc.details)


async def validation_exception_handler(
    request: Request, exc: Union[RequestValidationError, PydanticValidationError]
) -> JSONResponse:
    """Handle Pydantic validation errors from request parsing."""
    log.warning("validation error", errors=exc.errors())

    # ctx may hold raw exception instances, which are not JSON serializable
    errors = [{k: v for k, v in e.items() if k != "ctx"} for e in exc.errors()]

    return _error_response(
        status.HTTP_422_UNPROCESSABLE_ENTITY,
        "VALIDATION_ERROR",
        "Request validation failed",
        {"errors": errors},
    )


async def persistence_exception_handler(request: Request, exc: PersistenceError) -> JSONResponse:
    """Handle usage store failures that escaped the quota fail policy."""
    log.error("usage store error", error=exc.message, identity=exc.identity)
    return _error_response(
        status.HTTP_503_SERVICE_UNAVAILABLE,
        "STORAGE_UNAVAILABLE",
        "Usage storage is temporarily unavailable",
    )


async def sqlalchemy_exception_handler(request: Request, exc: SQLAlchemyError) -> JSONResponse:
    """Handle SQLAlchemy database errors."""
    log.error("database error", error=str(exc), traceback=traceback.format_exc())
    db_error = DatabaseError()
    return _error_response(
        status.HTTP_500_INTERNAL_SERVER_ERROR, db_error.error_code, db_error.message
    )


async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Handle unexpected exceptions."""
    log.critical(
        "unhandled exception",
        error_type=type(exc).__name__,
        error=str(exc),
        traceback=traceback.format_exc(),
    )
    return _error_response(
        status.HTTP_500_INTERNAL_SERVER_ERROR,
        "INTERNAL_SERVER_ERROR",
        "An unexpected error occurred",
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Register all exception handlers with FastAPI application."""
    app.add_exception_handler(BaseAPIException, base_exception_handler)  # type: ignore[arg-type]
    app.add_exception_handler(RequestValidationError, validation_exception_handler)  # type: ignore[arg-type]
    app.add_exception_handler(PydanticValidationError, validation_exception_handler)  # type: ignore[arg-type]
    app.add_exception_handler(PersistenceError, persistence_exception_handler)  # type: ignore[arg-type]
    app.add_exception_handler(SQLAlchemyError, sqlalchemy_exception_handler)  # type: ignore[arg-type]
    app.add_exception_handler(Exception, generic_exception_handler)

    log.info("exception handlers registered")
