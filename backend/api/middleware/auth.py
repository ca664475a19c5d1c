"""
Session authentication dependencies.

Resolves the caller from the session cookie, or from a bearer header
carrying the same session token for non-browser clients.
"""

from typing import Optional

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from modules.auth.exceptions import MissingSessionError
from modules.auth.interfaces import ISessionService
from modules.auth.models import SessionData, SessionUser
from shared.config import get_settings

from ..dependencies import get_session_service

# Bearer token extractor
bearer_scheme = HTTPBearer(auto_error=False)


def session_token_from(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials],
) -> Optional[str]:
    """Session token from the cookie, falling back to the Authorization header."""
    token = request.cookies.get(get_settings().session_cookie_name)
    if token:
        return token
    if credentials is not None:
        return credentials.credentials
    return None


async def get_current_user(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    sessions: ISessionService = Depends(get_session_service),
) -> SessionUser:
    """
    Dependency that requires a valid session.

    Usage:
        @router.get("/protected")
        async def protected_route(user: SessionUser = Depends(get_current_user)):
            return {"user_id": user.id}

    Raises:
        MissingSessionError, InvalidSessionError, ExpiredSessionError
    """
    token = session_token_from(request, credentials)
    if token is None:
        raise MissingSessionError()
    return sessions.resolve_user(token)


async def get_optional_session(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    sessions: ISessionService = Depends(get_session_service),
) -> Optional[SessionData]:
    """Dependency that returns the caller's own session, or None when there is no valid one."""
    return sessions.validate_session(session_token_from(request, credentials))
