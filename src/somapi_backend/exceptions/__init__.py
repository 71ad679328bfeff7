"""
Error handling package for the SOM API backend.

This package provides:
- Exception classes with error codes
- Error registry management
- FastAPI exception handlers

Usage:
    from somapi_backend.exceptions import (
        InvalidParametersException,
        InsufficientCapabilityException,
        register_exception_handlers,
    )
"""

from somapi_backend.exceptions.exceptions import (
    SomApiException,
    UnauthorizedException,
    InsufficientCapabilityException,
    InvalidContextException,
    ServiceAccessException,
    InvalidParametersException,
    FunctionNotFoundException,
    DatabaseQueryException,
    InternalServerException,
)

from somapi_backend.exceptions.error_registry import (
    load_error_registry,
    get_error_definition,
    get_all_error_codes,
)

from somapi_backend.exceptions.error_handlers import (
    register_exception_handlers,
    somapi_exception_handler,
    validation_exception_handler,
    http_exception_handler,
    generic_exception_handler,
)


__all__ = [
    "SomApiException",
    "UnauthorizedException",
    "InsufficientCapabilityException",
    "InvalidContextException",
    "ServiceAccessException",
    "InvalidParametersException",
    "FunctionNotFoundException",
    "DatabaseQueryException",
    "InternalServerException",

    "load_error_registry",
    "get_error_definition",
    "get_all_error_codes",

    "register_exception_handlers",
    "somapi_exception_handler",
    "validation_exception_handler",
    "http_exception_handler",
    "generic_exception_handler",
]
