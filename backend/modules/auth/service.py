"""
Session bridge implementation.

A session token is base64-encoded JSON ``{token, issuedAt, expiresAt}``
wrapping whatever token the active provider issued. It is not signed; the
only check is expiry. The user id is read from the provider token's claims
without verifying its signature.
"""

import base64
import binascii
import json
import logging
from datetime import datetime
from typing import Callable, Optional

import jwt
from pydantic import ValidationError as PydanticValidationError

from shared.config import get_settings
from shared.models import utc_now

from .exceptions import ExpiredSessionError, InvalidSessionError, MissingSessionError
from .interfaces import ISessionService
from .models import SessionData, SessionUser

logger = logging.getLogger(__name__)


def _millis(value: datetime) -> int:
    return int(value.timestamp() * 1000)


class SessionService(ISessionService):
    """Issue and check session tokens for the session cookie."""

    def __init__(
        self,
        expires_in: Optional[int] = None,
        clock: Callable[[], datetime] = utc_now,
    ):
        """
        Args:
            expires_in: Session lifetime in seconds, SESSION_EXPIRES_IN by default
            clock: Source of the current time
        """
        self._expires_in = expires_in if expires_in is not None else get_settings().session_expires_in
        self._clock = clock

    @property
    def expires_in(self) -> int:
        return self._expires_in

    def create_session(self, provider_token: str) -> str:
        issued_at = _millis(self._clock())
        session = SessionData(
            token=provider_token,
            issued_at=issued_at,
            expires_at=issued_at + self._expires_in * 1000,
        )
        payload = session.model_dump_json(by_alias=True).encode("utf-8")
        return base64.b64encode(payload).decode("ascii")

    def validate_session(self, session_token: Optional[str]) -> Optional[SessionData]:
        if not session_token:
            return None
        try:
            return self._decode(session_token)
        except (InvalidSessionError, ExpiredSessionError) as e:
            logger.debug("Rejected session token: %s", e.message)
            return None

    def resolve_user(self, session_token: Optional[str]) -> SessionUser:
        if not session_token:
            raise MissingSessionError()
        session = self._decode(session_token)

        try:
            claims = jwt.decode(session.token, options={"verify_signature": False})
        except jwt.PyJWTError as e:
            raise InvalidSessionError(f"Unreadable provider token: {e}") from e

        # Firebase ID tokens carry user_id next to sub
        user_id = claims.get("sub") or claims.get("user_id")
        if not user_id:
            raise InvalidSessionError("Provider token has no subject")
        return SessionUser(id=user_id, email=claims.get("email") or "")

    def _decode(self, session_token: str) -> SessionData:
        try:
            raw = base64.b64decode(session_token.encode("ascii"), validate=True)
            session = SessionData.model_validate(json.loads(raw))
        except (UnicodeError, binascii.Error, ValueError, PydanticValidationError) as e:
            raise InvalidSessionError() from e

        if session.expires_at <= _millis(self._clock()):
            raise ExpiredSessionError()
        return session


# Module-level instance getter
_service_instance: Optional[SessionService] = None


def get_session_service() -> SessionService:
    """Get the session service singleton."""
    global _service_instance
    if _service_instance is None:
        _service_instance = SessionService()
    return _service_instance


def reset_session_service() -> None:
    """Reset the session service singleton (for testing)."""
    global _service_instance
    _service_instance = None
