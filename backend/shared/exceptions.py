"""
Base exception classes for the MuWise backend.

Every provider adapter normalizes its SDK errors into one of these types
before returning to callers, so no provider-specific exception escapes the
data-access layer. Modules define their own exceptions on top of these bases.
"""

from typing import Optional, Any


class MuWiseError(Exception):
    """
    Base exception for all MuWise errors.

    All custom exceptions should inherit from this class.
    """

    status_code: int = 500

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        details: Optional[dict[str, Any]] = None,
    ):
        super().__init__(message)
        self.message = message
        self.code = code or self.__class__.__name__
        self.details = details or {}

    def to_dict(self) -> dict[str, Any]:
        """Convert exception to a dictionary for API responses."""
        return {
            "error": self.code,
            "message": self.message,
            "details": self.details,
        }


class AuthError(MuWiseError):
    """Authentication failed (bad credentials, expired or missing session)."""

    status_code = 401


class NotFoundError(MuWiseError):
    """User, agreement or signer not found."""

    status_code = 404


class ValidationError(MuWiseError):
    """Input validation failed."""

    status_code = 400


class ProviderError(MuWiseError):
    """The backing service itself failed (network, permission, quota)."""

    status_code = 502

    def __init__(
        self,
        message: str,
        service: str,
        code: Optional[str] = None,
        details: Optional[dict[str, Any]] = None,
    ):
        super().__init__(message, code, details)
        self.service = service
        self.details["service"] = service
