"""
Error models for the SOM projection API.

Every exception raised at the service boundary carries a unique error code
that is defined once in the error registry and rendered with these models.
"""

from enum import Enum
from typing import Any, Optional
from pydantic import BaseModel, ConfigDict, Field


class ErrorSeverity(str, Enum):
    """Error severity levels."""
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class ErrorCategory(str, Enum):
    """Error categories for classification."""
    AUTHENTICATION = "authentication"
    AUTHORIZATION = "authorization"
    VALIDATION = "validation"
    NOT_FOUND = "not_found"
    DATABASE = "database"
    INTERNAL = "internal"


class ErrorMessageFormat(BaseModel):
    """Multi-format error message."""
    plain: str = Field(..., description="Plain text error message")
    markdown: Optional[str] = Field(None, description="Markdown formatted message")


class ErrorDefinition(BaseModel):
    """Complete error definition from registry."""
    code: str = Field(..., description="Unique error code (e.g., AUTHZ_001)")
    http_status: int = Field(..., description="HTTP status code")
    category: ErrorCategory = Field(..., description="Error category")
    severity: ErrorSeverity = Field(..., description="Error severity")
    title: str = Field(..., description="Short error title")
    message: ErrorMessageFormat = Field(..., description="Error messages in multiple formats")

    # Developer information
    internal_description: str = Field("", description="Internal description for developers")
    affected_functions: list[str] = Field(default_factory=list, description="Functions that may raise this error")
    common_causes: list[str] = Field(default_factory=list, description="Common causes of this error")

    model_config = ConfigDict(use_enum_values=True)


class ErrorDebugInfo(BaseModel):
    """Debug information included in development mode only."""
    timestamp: str = Field(..., description="Error timestamp (ISO 8601)")
    function: Optional[str] = Field(None, description="Function where error occurred")
    file: Optional[str] = Field(None, description="File where error occurred")
    line: Optional[int] = Field(None, description="Line number where error occurred")
    user_id: Optional[int] = Field(None, description="Calling user, if known")
    additional_context: dict[str, Any] = Field(default_factory=dict, description="Additional context")


class ErrorResponse(BaseModel):
    """Standard error response structure sent to clients."""
    error_code: str = Field(..., description="Unique error code")
    message: str = Field(..., description="Human-readable error message")
    details: Optional[Any] = Field(None, description="Additional error details")
    severity: ErrorSeverity = Field(..., description="Error severity")
    category: ErrorCategory = Field(..., description="Error category")
    debug: Optional[ErrorDebugInfo] = Field(None, description="Debug information (dev mode only)")

    model_config = ConfigDict(use_enum_values=True)
