"""
Agreement service implementation.

Business rules around agreements: ownership checks, the Creator signer,
status transitions with the final PDF, duplication and JSON export/import.
Persistence goes through whichever provider the factory selects.
"""

import json
import logging
from typing import Optional

from pydantic import ValidationError as PydanticValidationError

from providers.exceptions import AgreementNotFoundError
from providers.factory import DatabaseClientFactory
from providers.signers import creator_signer, generate_signer_id
from shared.models import (
    Agreement,
    AgreementCreate,
    AgreementFilters,
    AgreementStatus,
    AgreementUpdate,
    SignatureResult,
    Signer,
    SignerCreate,
    SignerStatus,
    utc_now,
)
from modules.users.interfaces import IStorageService

from .exceptions import AgreementAccessDeniedError, CreatorProfileNotFoundError, InvalidImportError
from .interfaces import IAgreementService
from .models import AgreementStats, CreateAgreementRequest, StatusUpdateResult

logger = logging.getLogger(__name__)


def _signer_matches(signer: Signer, user_id: str, user_email: str = "") -> bool:
    """Whether the signer entry belongs to the given user, by id or email."""
    if signer.user_id and signer.user_id == user_id:
        return True
    return bool(user_email) and signer.email.lower() == user_email.lower()


def _fresh_signers(signers: list[Signer]) -> list[Signer]:
    """Copies of ``signers`` with new ids and no signature state."""
    return [
        signer.model_copy(
            update={
                "id": generate_signer_id(),
                "status": SignerStatus.PENDING.value,
                "signed": False,
                "signed_at": None,
                "signature_data": None,
            }
        )
        for signer in signers
    ]


class AgreementService(IAgreementService):
    """Implementation of the agreement service."""

    def __init__(self, factory: DatabaseClientFactory, storage: IStorageService):
        self._factory = factory
        self._storage = storage

    @property
    def _data(self):
        return self._factory.get().data

    # -------------------------------------------------------------------------
    # Creation
    # -------------------------------------------------------------------------

    async def create_agreement(self, creator_id: str, request: CreateAgreementRequest) -> Agreement:
        creator = await self._data.get_user(creator_id)
        if creator is None:
            raise CreatorProfileNotFoundError(creator_id)

        agreement = await self._data.create_agreement(
            AgreementCreate(
                **request.model_dump(exclude_unset=True),
                created_by=creator_id,
                status=AgreementStatus.DRAFT.value,
                signers=[creator_signer(creator)],
            )
        )
        logger.info("User %s created agreement %s", creator_id, agreement.id)
        return agreement

    async def duplicate_agreement(self, agreement_id: str, user_id: str, title: str) -> Agreement:
        original = await self._owned_agreement(agreement_id, user_id)

        copy = await self._data.create_agreement(
            AgreementCreate(
                title=title,
                created_by=user_id,
                song_title=original.song_title,
                description=original.description,
                composers=original.composers,
                type=original.type,
                status=AgreementStatus.DRAFT.value,
                signers=_fresh_signers(original.signers),
                metadata=original.metadata,
                expires_at=original.expires_at,
            )
        )
        logger.info("Duplicated agreement %s as %s", agreement_id, copy.id)
        return copy

    async def import_agreement(self, json_data: str, creator_id: str) -> Agreement:
        try:
            payload = json.loads(json_data)
        except ValueError as e:
            raise InvalidImportError(str(e)) from e
        if not isinstance(payload, dict):
            raise InvalidImportError("expected a JSON object")

        try:
            signers = [Signer.model_validate(entry) for entry in payload.get("signers") or []]
            data = AgreementCreate(
                title=payload.get("title") or "",
                created_by=creator_id,
                description=payload.get("description"),
                type=payload.get("type"),
                signers=signers,
                metadata=payload.get("metadata") or {},
                expires_at=payload.get("expiresAt"),
                status=AgreementStatus.DRAFT.value,
            )
        except PydanticValidationError as e:
            raise InvalidImportError(str(e)) from e

        agreement = await self._data.create_agreement(data)
        logger.info("User %s imported agreement %s", creator_id, agreement.id)
        return agreement

    # -------------------------------------------------------------------------
    # Reads
    # -------------------------------------------------------------------------

    async def get_agreement(self, agreement_id: str, user_id: str, user_email: str = "") -> Agreement:
        agreement = await self._load(agreement_id)
        is_signer = any(_signer_matches(s, user_id, user_email) for s in agreement.signers)
        if agreement.created_by != user_id and not is_signer:
            raise AgreementAccessDeniedError(agreement_id, user_id)
        return agreement

    async def list_agreements(
        self,
        user_id: str,
        filters: Optional[AgreementFilters] = None,
    ) -> list[Agreement]:
        return await self._data.get_agreements(user_id, filters)

    async def search_agreements(self, user_id: str, term: str) -> list[Agreement]:
        return await self._data.get_agreements(user_id, AgreementFilters(search=term))

    async def get_stats(self, user_id: str) -> AgreementStats:
        agreements = await self._data.get_agreements(user_id)
        counts = {status.value: 0 for status in AgreementStatus}
        for agreement in agreements:
            if agreement.status in counts:
                counts[agreement.status] += 1
        return AgreementStats(total=len(agreements), **counts)

    async def export_agreement(self, agreement_id: str, user_id: str) -> str:
        agreement = await self.get_agreement(agreement_id, user_id)
        return agreement.model_dump_json(by_alias=True, indent=2)

    # -------------------------------------------------------------------------
    # Mutations
    # -------------------------------------------------------------------------

    async def update_agreement(
        self,
        agreement_id: str,
        user_id: str,
        update: AgreementUpdate,
    ) -> Agreement:
        await self._owned_agreement(agreement_id, user_id)
        return await self._data.update_agreement(agreement_id, update)

    async def delete_agreement(self, agreement_id: str, user_id: str) -> None:
        await self._owned_agreement(agreement_id, user_id)
        await self._data.delete_agreement(agreement_id)
        logger.info("User %s deleted agreement %s", user_id, agreement_id)

    async def update_status(
        self,
        agreement_id: str,
        user_id: str,
        status: str,
        pdf_base64: Optional[str] = None,
    ) -> StatusUpdateResult:
        await self._owned_agreement(agreement_id, user_id)

        now = utc_now()
        fields: dict = {"status": status}
        if status == AgreementStatus.SIGNED.value:
            fields["signed_at"] = now
        if status == AgreementStatus.COMPLETED.value:
            fields["completed_at"] = now
            if pdf_base64:
                fields["pdf_url"] = await self._storage.upload_agreement_pdf(pdf_base64, agreement_id)

        await self._data.update_agreement(agreement_id, AgreementUpdate(**fields))
        logger.info("Agreement %s moved to status %s", agreement_id, status)
        return StatusUpdateResult(status=status, pdf_url=fields.get("pdf_url"))

    async def add_signer(self, agreement_id: str, user_id: str, signer: SignerCreate) -> Signer:
        await self._owned_agreement(agreement_id, user_id)
        return await self._data.add_signer(agreement_id, signer)

    async def remove_signer(self, agreement_id: str, user_id: str, signer_id: str) -> None:
        await self._owned_agreement(agreement_id, user_id)
        await self._data.remove_signer(agreement_id, signer_id)

    async def sign(
        self,
        agreement_id: str,
        signer_id: str,
        user_id: str,
        user_email: str,
        signature_data: str,
    ) -> SignatureResult:
        agreement = await self._load(agreement_id)
        target = next((s for s in agreement.signers if s.id == signer_id), None)

        if agreement.created_by != user_id and (
            target is None or not _signer_matches(target, user_id, user_email)
        ):
            raise AgreementAccessDeniedError(agreement_id, user_id)

        result = await self._data.update_signer_signature(agreement_id, signer_id, signature_data)
        logger.info("Signer %s signed agreement %s", signer_id, agreement_id)
        return result

    # -------------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------------

    async def _load(self, agreement_id: str) -> Agreement:
        agreement = await self._data.get_agreement(agreement_id)
        if agreement is None:
            raise AgreementNotFoundError(agreement_id)
        return agreement

    async def _owned_agreement(self, agreement_id: str, user_id: str) -> Agreement:
        agreement = await self._load(agreement_id)
        if agreement.created_by != user_id:
            raise AgreementAccessDeniedError(agreement_id, user_id)
        return agreement
