"""
Canonical domain models shared by every provider adapter.

These are the single cross-provider shapes for users, agreements and
signers. Attributes are snake_case in Python and serialize with camelCase
aliases, which is the shape API clients see regardless of the active
backing service.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


def utc_now() -> datetime:
    """Current time as a timezone-aware UTC datetime."""
    return datetime.now(timezone.utc)


class CanonicalModel(BaseModel):
    """Base for canonical records: camelCase on the wire, snake_case in code."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
    )


class AgreementStatus(str, Enum):
    """Conventional agreement lifecycle. Providers store the status as free text."""

    DRAFT = "draft"
    PENDING = "pending"
    SIGNED = "signed"
    COMPLETED = "completed"


class SignerStatus(str, Enum):
    PENDING = "pending"
    SIGNED = "signed"


CREATOR_ROLE = "Creator"
DEFAULT_SIGNER_ROLE = "signer"


# -----------------------------------------------------------------------------
# User
# -----------------------------------------------------------------------------


class User(CanonicalModel):
    """A user profile, paired with the provider's auth identity."""

    id: str = Field(..., description="Identity assigned by the backing store")
    email: str = Field(..., description="Email address")
    name: str = ""
    profile_picture: str = ""
    phone: str = ""
    company: str = ""
    role: str = "user"
    is_email_verified: bool = False
    last_login: Optional[datetime] = None
    preferences: dict[str, Any] = Field(default_factory=dict)

    # Billing correlation, written by the billing integration
    stripe_customer_id: str = ""
    stripe_price_id: str = ""
    stripe_subscription_id: str = ""
    stripe_subscription_status: str = ""

    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)


class UserCreate(CanonicalModel):
    """Partial user record accepted by create_user."""

    id: Optional[str] = None
    email: Optional[str] = None
    name: Optional[str] = None
    profile_picture: Optional[str] = None
    phone: Optional[str] = None
    company: Optional[str] = None
    role: Optional[str] = None
    is_email_verified: Optional[bool] = None
    last_login: Optional[datetime] = None
    preferences: Optional[dict[str, Any]] = None
    stripe_customer_id: Optional[str] = None
    stripe_price_id: Optional[str] = None
    stripe_subscription_id: Optional[str] = None
    stripe_subscription_status: Optional[str] = None


class UserUpdate(CanonicalModel):
    """Partial user record accepted by update_user. Only set fields are written."""

    email: Optional[str] = None
    name: Optional[str] = None
    profile_picture: Optional[str] = None
    phone: Optional[str] = None
    company: Optional[str] = None
    role: Optional[str] = None
    is_email_verified: Optional[bool] = None
    last_login: Optional[datetime] = None
    preferences: Optional[dict[str, Any]] = None
    stripe_customer_id: Optional[str] = None
    stripe_price_id: Optional[str] = None
    stripe_subscription_id: Optional[str] = None
    stripe_subscription_status: Optional[str] = None


# -----------------------------------------------------------------------------
# Signer
# -----------------------------------------------------------------------------


class Signer(CanonicalModel):
    """A party required to sign an agreement. Only exists inside an agreement."""

    id: str
    user_id: str = ""
    email: str
    name: str = ""
    role: str = DEFAULT_SIGNER_ROLE
    status: str = SignerStatus.PENDING.value
    signed: bool = False
    signed_at: Optional[datetime] = None
    signature_data: Optional[str] = None
    order: int = Field(default=1, ge=1, description="1-based position at insertion time")


class SignerCreate(CanonicalModel):
    """Signer fields supplied by the caller of add_signer."""

    email: str = Field(..., min_length=1)
    user_id: Optional[str] = None
    name: Optional[str] = None
    role: Optional[str] = None


# -----------------------------------------------------------------------------
# Agreement
# -----------------------------------------------------------------------------


class Agreement(CanonicalModel):
    """An agreement document with its embedded, ordered signer list."""

    id: str
    title: str
    song_title: str = ""
    description: str = ""
    publication_date: Optional[datetime] = None
    last_modified: datetime = Field(default_factory=utc_now)
    composers: list[dict[str, Any]] = Field(default_factory=list)
    status: str = AgreementStatus.DRAFT.value
    type: str = ""
    created_by: str
    signers: list[Signer] = Field(default_factory=list)
    signer_emails: list[str] = Field(default_factory=list)
    document_url: str = ""
    metadata: dict[str, Any] = Field(default_factory=dict)
    expires_at: Optional[datetime] = None
    signed_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    pdf_url: str = ""
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)


class AgreementCreate(CanonicalModel):
    """Partial agreement accepted by create_agreement; omitted fields get defaults."""

    title: str = Field(..., min_length=1)
    created_by: str = Field(..., min_length=1)
    song_title: Optional[str] = None
    description: Optional[str] = None
    publication_date: Optional[datetime] = None
    composers: Optional[list[dict[str, Any]]] = None
    status: Optional[str] = None
    type: Optional[str] = None
    signers: Optional[list[Signer]] = None
    signer_emails: Optional[list[str]] = None
    document_url: Optional[str] = None
    metadata: Optional[dict[str, Any]] = None
    expires_at: Optional[datetime] = None
    signed_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    pdf_url: Optional[str] = None


class AgreementUpdate(CanonicalModel):
    """Partial agreement accepted by update_agreement. Only set fields are written."""

    title: Optional[str] = None
    song_title: Optional[str] = None
    description: Optional[str] = None
    publication_date: Optional[datetime] = None
    composers: Optional[list[dict[str, Any]]] = None
    status: Optional[str] = None
    type: Optional[str] = None
    signers: Optional[list[Signer]] = None
    signer_emails: Optional[list[str]] = None
    document_url: Optional[str] = None
    metadata: Optional[dict[str, Any]] = None
    expires_at: Optional[datetime] = None
    signed_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    pdf_url: Optional[str] = None


class AgreementFilters(CanonicalModel):
    """Filters for get_agreements. All filters are ANDed together."""

    status: Optional[str] = None
    type: Optional[str] = None
    date_from: Optional[datetime] = None
    date_to: Optional[datetime] = None
    search: Optional[str] = Field(None, description="Substring of title or description")


class SignatureResult(CanonicalModel):
    """Timestamp recorded by update_signer_signature."""

    signed_at: datetime


# -----------------------------------------------------------------------------
# Results
# -----------------------------------------------------------------------------


@dataclass
class AuthResult:
    """
    Outcome of a sign-in or sign-up.

    Auth operations never raise; a failure is reported through ``error``.
    """

    user: Optional[User] = None
    error: Optional[Exception] = None
    session: Optional[dict[str, Any]] = field(default=None)

    @property
    def ok(self) -> bool:
        return self.error is None and self.user is not None


class ActionResult(BaseModel):
    """Tagged outcome returned by every mutating API action."""

    status: Literal["success", "error"]
    message: str
    data: Optional[Any] = None
