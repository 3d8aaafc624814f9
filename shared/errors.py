"""
Shared error handling for the Checklist Access Layer.
"""

from typing import Dict, Any, Optional
from pydantic import BaseModel


class ErrorResponse(BaseModel):
    """Standard error response format."""

    error: str
    code: str
    details: Dict[str, Any] = {}


class AccessLayerException(Exception):
    """Base exception for Access Layer services."""

    status_code: int = 400

    def __init__(self, code: str, message: str, details: Optional[Dict[str, Any]] = None):
        self.code = code
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def to_response(self) -> ErrorResponse:
        """Convert to error response."""
        return ErrorResponse(
            error=self.message,
            code=self.code,
            details=self.details
        )


class InputInvalidError(AccessLayerException):
    """Missing or malformed request fields."""

    status_code = 400

    def __init__(self, message: str = "Invalid input", details: Optional[Dict[str, Any]] = None):
        super().__init__("INPUT_INVALID", message, details)


class CredentialInvalidError(AccessLayerException):
    """Authentication-related errors."""

    status_code = 401

    def __init__(self, message: str = "Invalid token", details: Optional[Dict[str, Any]] = None):
        super().__init__("CREDENTIAL_INVALID", message, details)


class AlreadySetError(AccessLayerException):
    """Trial or premium flag already present on the user record."""

    status_code = 400

    def __init__(self, message: str = "Already set", details: Optional[Dict[str, Any]] = None):
        super().__init__("ALREADY_SET", message, details)


class NotEntitledError(AccessLayerException):
    """Access gate denied a metered action."""

    status_code = 403

    def __init__(self, message: str = "User has no permissions.", details: Optional[Dict[str, Any]] = None):
        super().__init__("NOT_ENTITLED", message, details)


class VerificationUnavailableError(AccessLayerException):
    """Subscription authority unreachable or erroring."""

    status_code = 500

    def __init__(self, message: str = "Failed to fetch subscription status", details: Optional[Dict[str, Any]] = None):
        super().__init__("VERIFICATION_UNAVAILABLE", message, details)


class PersistenceError(AccessLayerException):
    """Identity provider rejected or failed an attribute write."""

    status_code = 500

    def __init__(self, message: str = "Failed to update user metadata", details: Optional[Dict[str, Any]] = None):
        super().__init__("PERSISTENCE_FAILURE", message, details)


class DownstreamError(AccessLayerException):
    """External service errors (AI generation, notifications, identity transport)."""

    status_code = 500

    def __init__(self, service: str, message: str = "External service error", details: Optional[Dict[str, Any]] = None):
        self.service = service
        super().__init__("DOWNSTREAM_FAILURE", message, {"service": service, **(details or {})})
