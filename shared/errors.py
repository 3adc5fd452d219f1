"""
Shared error handling for the CS-Cart catalog access layer.
"""

from typing import Dict, Any, Optional
from pydantic import BaseModel


class ErrorResponse(BaseModel):
    """Standard error response format."""

    code: str
    message: str
    details: Dict[str, Any] = {}


class ShopApiException(Exception):
    """Base exception for catalog access services."""

    def __init__(self, code: str, message: str, details: Optional[Dict[str, Any]] = None):
        self.code = code
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def to_response(self) -> ErrorResponse:
        """Convert to error response."""
        return ErrorResponse(
            code=self.code,
            message=self.message,
            details=self.details
        )


class ConfigurationError(ShopApiException):
    """Required setting is missing or invalid."""

    def __init__(self, message: str = "Invalid configuration", details: Optional[Dict[str, Any]] = None):
        super().__init__("CONFIGURATION_ERROR", message, details)


class ValidationError(ShopApiException):
    """Validation-related errors."""

    def __init__(self, message: str = "Validation failed", details: Optional[Dict[str, Any]] = None):
        super().__init__("VALIDATION_ERROR", message, details)


class UnknownToolError(ShopApiException):
    """Requested tool is not registered."""

    def __init__(self, name: str):
        super().__init__("UNKNOWN_TOOL", f"Unknown tool name: {name}", {"tool": name})


class TransportError(ShopApiException):
    """The backend could not be reached."""

    def __init__(self, resource: str, message: str = "Network error", details: Optional[Dict[str, Any]] = None):
        self.resource = resource
        super().__init__("TRANSPORT_ERROR", f"{resource}: {message}", details)


class BackendError(ShopApiException):
    """The backend answered with a non-success status or an unreadable body."""

    def __init__(
        self,
        resource: str,
        status_code: Optional[int] = None,
        message: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        self.resource = resource
        self.status_code = status_code
        if message is None:
            message = f"Unexpected status {status_code}"
        details = dict(details or {})
        if status_code is not None:
            details.setdefault("status_code", status_code)
        super().__init__("BACKEND_ERROR", f"{resource}: {message}", details)
