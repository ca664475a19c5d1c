"""Field-mapping helpers shared by the provider adapters.

Both backing stores keep timestamps as ISO-8601 strings and embed signers
as camelCase dictionaries; the per-provider record mappers live in each
adapter module and build on these helpers.
"""

from datetime import datetime, timezone
from typing import Any, Iterable, Optional

from dateutil import parser as date_parser
from pydantic import BaseModel

from shared.models import (
    Agreement,
    AgreementCreate,
    AgreementFilters,
    AgreementStatus,
    AgreementUpdate,
    Signer,
    SignerStatus,
    UserCreate,
)


def to_iso(value: Optional[datetime]) -> Optional[str]:
    """Serialize a datetime as ISO-8601 in UTC."""
    if value is None:
        return None
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).isoformat()


def parse_timestamp(value: Any) -> Optional[datetime]:
    """
    Parse a stored timestamp into an aware UTC datetime.

    Accepts ISO-8601 strings, datetimes (including Firestore timestamps)
    and epoch milliseconds written by the legacy web client. Anything
    unparseable maps to None so callers can apply their default.
    """
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, (int, float)) and not isinstance(value, bool):
        parsed = datetime.fromtimestamp(value / 1000, tz=timezone.utc)
    elif isinstance(value, str):
        try:
            parsed = date_parser.isoparse(value)
        except (ValueError, OverflowError):
            return None
    else:
        return None

    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def resolve_timestamps(
    created: Any,
    updated: Any,
    now: datetime,
) -> tuple[datetime, datetime]:
    """Parse a created/updated pair, defaulting each to the other or to now."""
    created_at = parse_timestamp(created)
    updated_at = parse_timestamp(updated)
    created_at = created_at or updated_at or now
    updated_at = updated_at or created_at
    return created_at, max(created_at, updated_at)


# -----------------------------------------------------------------------------
# Embedded signers
# -----------------------------------------------------------------------------


def signer_from_dict(data: dict[str, Any], position: int) -> Signer:
    """
    Map an embedded signer dictionary to the canonical Signer.

    ``position`` is the 1-based list index, used when the stored entry has
    no order (the creator entry written by older clients).
    """
    signed = bool(data.get("signed", False))
    status = data.get("status") or (
        SignerStatus.SIGNED.value if signed else SignerStatus.PENDING.value
    )
    return Signer(
        id=str(data.get("id") or ""),
        user_id=data.get("userId") or "",
        email=data.get("email") or "",
        name=data.get("name") or "",
        role=data.get("role") or "signer",
        status=status,
        signed=signed,
        signed_at=parse_timestamp(data.get("signedAt")),
        signature_data=data.get("signature") or data.get("signatureData"),
        order=data.get("order") or position,
    )


def signer_to_dict(signer: Signer) -> dict[str, Any]:
    """Map a canonical Signer to the embedded dictionary both stores keep."""
    data: dict[str, Any] = {
        "id": signer.id,
        "userId": signer.user_id,
        "email": signer.email,
        "name": signer.name,
        "role": signer.role,
        "status": signer.status,
        "order": signer.order,
        "signed": signer.signed,
    }
    if signer.signed_at is not None:
        data["signedAt"] = to_iso(signer.signed_at)
    if signer.signature_data is not None:
        data["signature"] = signer.signature_data
    return data


def signers_from_list(raw: Optional[Iterable[dict[str, Any]]]) -> list[Signer]:
    return [signer_from_dict(entry, index) for index, entry in enumerate(raw or [], start=1)]


def signers_to_list(signers: Iterable[Signer]) -> list[dict[str, Any]]:
    return [signer_to_dict(signer) for signer in signers]


def unique_emails(signers: Iterable[Signer]) -> list[str]:
    """Signer emails in list order, each non-empty email once."""
    emails: list[str] = []
    for signer in signers:
        if signer.email and signer.email not in emails:
            emails.append(signer.email)
    return emails


# -----------------------------------------------------------------------------
# Query filtering
# -----------------------------------------------------------------------------


def matches_filters(agreement: Agreement, filters: Optional[AgreementFilters]) -> bool:
    """
    In-memory equivalent of the agreement list query.

    Equality on status and type, inclusive created_at range, and a
    case-insensitive substring search over title or description.
    """
    if filters is None:
        return True
    if filters.status and agreement.status != filters.status:
        return False
    if filters.type and agreement.type != filters.type:
        return False
    if filters.date_from and agreement.created_at < parse_timestamp(filters.date_from):
        return False
    if filters.date_to and agreement.created_at > parse_timestamp(filters.date_to):
        return False
    if filters.search:
        needle = filters.search.lower()
        if needle not in agreement.title.lower() and needle not in agreement.description.lower():
            return False
    return True


def newest_first(agreements: Iterable[Agreement]) -> list[Agreement]:
    return sorted(agreements, key=lambda a: a.created_at, reverse=True)


# -----------------------------------------------------------------------------
# Canonical field sets for writes
# -----------------------------------------------------------------------------


def set_fields(model: BaseModel) -> dict[str, Any]:
    """
    Fields explicitly given on a partial model, keyed by attribute name.

    Values are kept as Python objects (datetimes, Signer models); None
    values are skipped so a partial update never blanks a column.
    """
    return {
        name: getattr(model, name)
        for name in model.model_fields_set
        if getattr(model, name) is not None
    }


def to_native_values(fields: dict[str, Any]) -> dict[str, Any]:
    """Serialize datetimes to ISO-8601 and signers to embedded dicts."""
    native: dict[str, Any] = {}
    for name, value in fields.items():
        if name == "signers":
            native[name] = signers_to_list(value)
        elif isinstance(value, datetime):
            native[name] = to_iso(value)
        else:
            native[name] = value
    return native


def new_user_fields(data: UserCreate, now: datetime) -> dict[str, Any]:
    """Every user field for a new profile, with defaults and write-time stamps."""
    return {
        **set_fields(data),
        "email": data.email or "",
        "role": data.role or "user",
        "is_email_verified": bool(data.is_email_verified),
        "preferences": data.preferences or {},
        "created_at": now,
        "updated_at": now,
    }


def new_agreement_fields(data: AgreementCreate, now: datetime) -> dict[str, Any]:
    """Every agreement field for a new record, with defaults and write-time stamps."""
    signers = data.signers or []
    return {
        "title": data.title,
        "song_title": data.song_title or "",
        "description": data.description or "",
        "publication_date": data.publication_date,
        "last_modified": now,
        "composers": data.composers or [],
        "status": data.status or AgreementStatus.DRAFT.value,
        "type": data.type or "",
        "created_by": data.created_by,
        "signers": signers,
        "signer_emails": (
            data.signer_emails if data.signer_emails is not None else unique_emails(signers)
        ),
        "document_url": data.document_url or "",
        "metadata": data.metadata or {},
        "expires_at": data.expires_at,
        "signed_at": data.signed_at,
        "completed_at": data.completed_at,
        "pdf_url": data.pdf_url or "",
        "created_at": now,
        "updated_at": now,
    }


def agreement_update_fields(data: AgreementUpdate, now: datetime) -> dict[str, Any]:
    """Fields written by update_agreement; always refreshes both modification stamps."""
    fields = set_fields(data)
    if "signers" in fields and "signer_emails" not in fields:
        fields["signer_emails"] = unique_emails(fields["signers"])
    fields["updated_at"] = now
    fields["last_modified"] = now
    return fields


def signer_list_fields(signers: list[Signer], now: datetime) -> dict[str, Any]:
    """Fields written back after a signer-list mutation."""
    return {
        "signers": signers,
        "signer_emails": unique_emails(signers),
        "last_modified": now,
        "updated_at": now,
    }


def record_fields(record: BaseModel) -> dict[str, Any]:
    """All attributes of a canonical record except its id."""
    return {name: getattr(record, name) for name in type(record).model_fields if name != "id"}
