"""
Authentication module interface.

Routes and the auth middleware depend on ISessionService, not the concrete
implementation.
"""

from typing import Optional, Protocol, runtime_checkable

from .models import SessionData, SessionUser


@runtime_checkable
class ISessionService(Protocol):
    """Issue and check opaque session tokens."""

    def create_session(self, provider_token: str) -> str:
        """
        Wrap a provider token into a session token.

        Args:
            provider_token: Access or ID token returned by the active provider

        Returns:
            Opaque session token for the session cookie
        """
        ...

    def validate_session(self, session_token: Optional[str]) -> Optional[SessionData]:
        """
        Decode a session token.

        Returns:
            SessionData if the token decodes and has not expired, None otherwise
        """
        ...

    def resolve_user(self, session_token: Optional[str]) -> SessionUser:
        """
        Identify the user behind a session token.

        Raises:
            MissingSessionError, InvalidSessionError, ExpiredSessionError
        """
        ...
