"""
Authentication module exceptions.

These exceptions are raised by the session bridge and are turned into
401 responses by the API error handler.
"""

from shared.exceptions import AuthError


class MissingSessionError(AuthError):
    """Raised when a request carries no session cookie."""

    def __init__(self, message: str = "No session found"):
        super().__init__(message, code="MISSING_SESSION")


class InvalidSessionError(AuthError):
    """Raised when a session token cannot be decoded."""

    def __init__(self, message: str = "Invalid or expired session"):
        super().__init__(message, code="INVALID_SESSION")


class ExpiredSessionError(AuthError):
    """Raised when a session token is past its expiry."""

    def __init__(self, message: str = "Session expired"):
        super().__init__(message, code="SESSION_EXPIRED")
