"""
FastAPI exception handlers for structured error responses.

Converts SomApiException instances (and the framework's own errors) into
``{error_code, message}`` JSON bodies.
"""

from fastapi import Request, status
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException
import logging

from somapi_backend.exceptions.exceptions import (
    SomApiException,
    InvalidParametersException,
    InternalServerException,
    UnauthorizedException,
    ServiceAccessException,
    FunctionNotFoundException,
)
from somapi_backend.settings import settings


logger = logging.getLogger(__name__)


def _include_debug() -> bool:
    # Debug info (file paths, function names) only outside production
    return (
        settings.DEBUG_MODE.lower() in ['dev', 'development', 'local']
        and not settings.DISABLE_API_DEBUG_INFO
    )


def _render(exc: SomApiException, extra_details=None) -> JSONResponse:
    include_debug = _include_debug()
    error_response = exc.to_error_response(include_debug=include_debug)

    response_data = {
        "error_code": error_response.error_code,
        "message": error_response.message,
    }
    if extra_details:
        response_data["details"] = extra_details

    if include_debug and error_response.debug:
        response_data["debug"] = error_response.debug.model_dump(exclude_none=True)

    return JSONResponse(
        status_code=exc.status_code,
        content=response_data,
        headers=exc.headers or {},
    )


async def somapi_exception_handler(request: Request, exc: SomApiException) -> JSONResponse:
    """Handle SomApiException instances."""
    log_error(request, exc)

    details = None
    if isinstance(exc, InvalidParametersException) and exc.context.get("validation_errors"):
        # Clients need the field errors to fix their request
        details = {"validation_errors": exc.context["validation_errors"]}

    return _render(exc, details)


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Handle request validation errors raised by FastAPI before the dispatcher runs."""
    errors = []
    for error in exc.errors():
        field = " -> ".join(str(x) for x in error["loc"][1:])  # Skip 'body' prefix
        errors.append({
            "field": field,
            "message": error["msg"],
            "type": error["type"],
        })

    exception = InvalidParametersException(
        detail="Request validation failed",
        context={"validation_errors": errors},
    )

    logger.warning(
        f"Validation error on {request.method} {request.url.path}",
        extra={"validation_errors": errors},
    )

    return _render(exception, {"validation_errors": errors} if errors else None)


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """Convert plain HTTPExceptions (e.g. unknown routes) to the error format."""
    exception_map = {
        status.HTTP_401_UNAUTHORIZED: UnauthorizedException,
        status.HTTP_403_FORBIDDEN: ServiceAccessException,
        status.HTTP_404_NOT_FOUND: FunctionNotFoundException,
    }

    exception_class = exception_map.get(exc.status_code)
    if exception_class is None:
        return JSONResponse(
            status_code=exc.status_code,
            content={"error_code": "HTTP", "message": str(exc.detail)},
            headers=getattr(exc, "headers", None) or {},
        )

    exception = exception_class(detail=exc.detail if isinstance(exc.detail, str) else None)
    log_error(request, exception)
    return _render(exception)


async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Catch-all: log the full traceback, return a generic 500."""
    logger.error(
        f"Unhandled exception on {request.method} {request.url.path}: {exc}",
        exc_info=exc,
    )
    exception = InternalServerException(context={"exception_type": type(exc).__name__})
    return _render(exception)


def log_error(request: Request, exception: SomApiException) -> None:
    """Log error with structured information."""
    log_data = {
        "error_code": exception.error_code,
        "status_code": exception.status_code,
        "method": request.method,
        "path": request.url.path,
        "user_id": exception.user_id,
        "function": exception.function_name,
        "context": exception.context,
    }

    if exception.status_code >= 500:
        logger.error(f"Server error: {exception.error_code}", extra=log_data)
    else:
        logger.warning(f"Client error: {exception.error_code}", extra=log_data)


def register_exception_handlers(app) -> None:
    """
    Register all exception handlers with the FastAPI app.

    Args:
        app: FastAPI application instance
    """
    app.add_exception_handler(SomApiException, somapi_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(Exception, generic_exception_handler)

    logger.info("Registered custom exception handlers")
