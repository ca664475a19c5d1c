"""Signer-list mutations shared by both adapters.

Signers are embedded in their agreement, so every mutation is a
read-modify-write of the whole list: the adapter reads the agreement,
applies one of these functions to the in-memory list and writes the full
list back. There is no version check, so two concurrent mutations of the
same agreement are last-write-wins on the whole array. Callers that need
stronger guarantees must serialize signer edits per agreement.
"""

import secrets
import string
from datetime import datetime
from typing import Optional

from shared.models import (
    CREATOR_ROLE,
    DEFAULT_SIGNER_ROLE,
    Signer,
    SignerCreate,
    SignerStatus,
    User,
    utc_now,
)

from .exceptions import SignerNotFoundError

_ID_ALPHABET = string.ascii_lowercase + string.digits
_ID_SUFFIX_LENGTH = 9


def generate_signer_id(now: Optional[datetime] = None) -> str:
    """Build a ``signer-<epoch millis>-<random base36 suffix>`` id."""
    millis = int((now or utc_now()).timestamp() * 1000)
    suffix = "".join(secrets.choice(_ID_ALPHABET) for _ in range(_ID_SUFFIX_LENGTH))
    return f"signer-{millis}-{suffix}"


def creator_signer(creator: User) -> Signer:
    """The signer entry synthesized for an agreement's creator."""
    return Signer(
        id=generate_signer_id(),
        user_id=creator.id,
        email=creator.email,
        name=creator.name or "Creator",
        role=CREATOR_ROLE,
        status=SignerStatus.PENDING.value,
        order=1,
    )


def append_signer(signers: list[Signer], signer_data: SignerCreate) -> tuple[list[Signer], Signer]:
    """
    Append a new pending signer.

    The order is ``len(signers) + 1`` at insertion time. Orders are never
    reassigned, so after a removal two entries may share an order value.
    """
    new_signer = Signer(
        id=generate_signer_id(),
        user_id=signer_data.user_id or "",
        email=signer_data.email,
        name=signer_data.name or "",
        role=signer_data.role or DEFAULT_SIGNER_ROLE,
        status=SignerStatus.PENDING.value,
        order=len(signers) + 1,
    )
    return [*signers, new_signer], new_signer


def drop_signer(signers: list[Signer], signer_id: str) -> list[Signer]:
    """Filter out the signer with ``signer_id``; remaining orders are kept as-is."""
    return [signer for signer in signers if signer.id != signer_id]


def apply_signature(
    agreement_id: str,
    signers: list[Signer],
    signer_id: str,
    signature_data: str,
    signed_at: datetime,
) -> list[Signer]:
    """
    Mark one signer as signed.

    Raises:
        SignerNotFoundError: If no signer has ``signer_id``
    """
    for index, signer in enumerate(signers):
        if signer.id == signer_id:
            updated = signer.model_copy(
                update={
                    "signed": True,
                    "signed_at": signed_at,
                    "signature_data": signature_data,
                    "status": SignerStatus.SIGNED.value,
                }
            )
            return [*signers[:index], updated, *signers[index + 1:]]

    raise SignerNotFoundError(agreement_id, signer_id)
