"""
Exception classes with error codes and rich metadata.

Every exception raised by the projection functions or the service boundary
maps to one entry of the error registry, so callers always receive a stable
``error_code`` alongside a readable message.
"""

from typing import Any, Dict, Optional
from fastapi import HTTPException, status
import inspect
from datetime import datetime, timezone

from somapi_types.errors import ErrorDebugInfo, ErrorResponse


class SomApiException(HTTPException):
    """
    Base exception class for all SOM API exceptions.

    Provides:
    - Unique error codes from registry
    - Structured error responses
    - Debug information in development mode
    - Context metadata for logging and debugging
    """

    status_code_default = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(
        self,
        error_code: str,
        detail: Any = None,
        headers: Optional[Dict[str, str]] = None,
        context: Optional[Dict[str, Any]] = None,
        user_id: Optional[int] = None,
    ):
        """
        Initialize exception with error code and metadata.

        Args:
            error_code: Error code from error registry (e.g., "AUTHZ_001")
            detail: Additional detail message (overrides registry message if provided)
            headers: HTTP response headers
            context: Additional context for debugging
            user_id: Calling user if available
        """
        self.error_code = error_code
        # HTTPException replaces a missing detail with the status phrase
        self.has_detail = detail is not None
        self.context = context or {}
        self.user_id = user_id

        # Get caller information for debugging
        frame = inspect.currentframe()
        caller_frame = frame.f_back.f_back if frame and frame.f_back else None
        if caller_frame:
            self.function_name = caller_frame.f_code.co_name
            self.file_name = caller_frame.f_code.co_filename
            self.line_number = caller_frame.f_lineno
        else:
            self.function_name = None
            self.file_name = None
            self.line_number = None

        super().__init__(status_code=self.status_code_default, detail=detail, headers=headers)

    def to_error_response(self, include_debug: bool = False) -> ErrorResponse:
        """
        Convert exception to structured ErrorResponse.

        Args:
            include_debug: Whether to include debug information (dev mode only)

        Returns:
            ErrorResponse with error code, message, and optional debug info
        """
        from somapi_backend.exceptions.error_registry import get_error_definition

        error_def = get_error_definition(self.error_code)

        debug_info = None
        if include_debug:
            debug_info = ErrorDebugInfo(
                timestamp=datetime.now(timezone.utc).isoformat(),
                function=self.function_name,
                file=self.file_name,
                line=self.line_number,
                user_id=self.user_id,
                additional_context=self.context,
            )

        message = error_def.message.plain
        details = self.context if self.context else None

        if self.has_detail and self.detail:
            if isinstance(self.detail, str):
                message = self.detail
            elif isinstance(self.detail, dict):
                details = self.detail
                if isinstance(self.detail.get("message"), str):
                    message = self.detail["message"]

        return ErrorResponse(
            error_code=self.error_code,
            message=message,
            details=details,
            severity=error_def.severity,
            category=error_def.category,
            debug=debug_info,
        )


# ============================================================================
# AUTHENTICATION EXCEPTIONS (401)
# ============================================================================


class UnauthorizedException(SomApiException):
    """Missing, unknown or expired web service token - 401"""

    status_code_default = status.HTTP_401_UNAUTHORIZED

    def __init__(self, error_code: str = "AUTH_001", detail: Any = None, **kwargs):
        kwargs.setdefault("headers", {"WWW-Authenticate": "Bearer"})
        super().__init__(error_code=error_code, detail=detail, **kwargs)


# ============================================================================
# AUTHORIZATION EXCEPTIONS (403)
# ============================================================================


class InsufficientCapabilityException(SomApiException):
    """Caller lacks a required capability - 403"""

    status_code_default = status.HTTP_403_FORBIDDEN

    def __init__(
        self,
        error_code: str = "AUTHZ_001",
        detail: Any = None,
        capability: Optional[str] = None,
        **kwargs,
    ):
        if capability:
            kwargs.setdefault("context", {})["capability"] = capability
        self.capability = capability
        super().__init__(error_code=error_code, detail=detail, **kwargs)


class InvalidContextException(SomApiException):
    """Authorization context of a row is missing or cannot be entered - 403"""

    status_code_default = status.HTTP_403_FORBIDDEN

    def __init__(self, error_code: str = "AUTHZ_002", detail: Any = None, **kwargs):
        super().__init__(error_code=error_code, detail=detail, **kwargs)


class ServiceAccessException(SomApiException):
    """Service disabled, function not in service, or caller not allow-listed - 403"""

    status_code_default = status.HTTP_403_FORBIDDEN

    def __init__(self, error_code: str = "AUTHZ_003", detail: Any = None, **kwargs):
        super().__init__(error_code=error_code, detail=detail, **kwargs)


# ============================================================================
# VALIDATION EXCEPTIONS (400)
# ============================================================================


class InvalidParametersException(SomApiException):
    """Malformed operation parameters - 400"""

    status_code_default = status.HTTP_400_BAD_REQUEST

    def __init__(self, error_code: str = "VAL_001", detail: Any = None, **kwargs):
        super().__init__(error_code=error_code, detail=detail, **kwargs)


# ============================================================================
# NOT FOUND EXCEPTIONS (404)
# ============================================================================


class FunctionNotFoundException(SomApiException):
    """Unknown web service function - 404"""

    status_code_default = status.HTTP_404_NOT_FOUND

    def __init__(self, error_code: str = "NF_001", detail: Any = None, **kwargs):
        super().__init__(error_code=error_code, detail=detail, **kwargs)


# ============================================================================
# DATABASE EXCEPTIONS (500)
# ============================================================================


class DatabaseQueryException(SomApiException):
    """Store access failed; the call is aborted and not retried - 500"""

    status_code_default = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, error_code: str = "DB_001", detail: Any = None, **kwargs):
        super().__init__(error_code=error_code, detail=detail, **kwargs)


# ============================================================================
# INTERNAL SERVER EXCEPTIONS (500)
# ============================================================================


class InternalServerException(SomApiException):
    """Unexpected internal error - 500"""

    status_code_default = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, error_code: str = "INT_001", detail: Any = None, **kwargs):
        super().__init__(error_code=error_code, detail=detail, **kwargs)
