"""
Authentication module.

Bridges the active provider's auth capability to a cookie session.

Public API:
- ISessionService: Interface for session operations
- SessionService: base64 JSON session tokens wrapping a provider token
- SessionData, SessionUser: Decoded session and its subject
- Session exceptions: MissingSessionError, InvalidSessionError, ExpiredSessionError
"""

from .interfaces import ISessionService
from .models import SessionData, SessionUser
from .service import SessionService
from .exceptions import (
    ExpiredSessionError,
    InvalidSessionError,
    MissingSessionError,
)

__all__ = [
    # Interface
    "ISessionService",
    # Implementation
    "SessionService",
    # Models
    "SessionData",
    "SessionUser",
    # Exceptions
    "ExpiredSessionError",
    "InvalidSessionError",
    "MissingSessionError",
]
