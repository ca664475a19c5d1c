"""
Authentication module data models.

Request bodies for the auth routes and the decoded session shapes.
"""

from datetime import datetime, timezone
from typing import Any, Optional

from pydantic import BaseModel, EmailStr, Field

from shared.models import CanonicalModel


class SessionData(CanonicalModel):
    """
    Decoded session token.

    Serializes as ``{token, issuedAt, expiresAt}``; both timestamps are
    epoch milliseconds on the wire.
    """

    token: str
    issued_at: int = Field(..., description="Epoch milliseconds")
    expires_at: int = Field(..., description="Epoch milliseconds")

    @property
    def expires_at_datetime(self) -> datetime:
        return datetime.fromtimestamp(self.expires_at / 1000, tz=timezone.utc)


class SessionUser(BaseModel):
    """
    The subject of a session, read from the provider token's claims.

    The claims are not cryptographically verified.
    """

    id: str = Field(..., description="Provider user id")
    email: str = Field(default="", description="Email claim, if present")

    model_config = {"frozen": True}


class CreateSessionRequest(CanonicalModel):
    """Body of POST /api/auth/session."""

    id_token: Optional[str] = None


class SignInRequest(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=1)


class SignUpRequest(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=6)
    name: Optional[str] = None
    metadata: dict[str, Any] = Field(default_factory=dict)
