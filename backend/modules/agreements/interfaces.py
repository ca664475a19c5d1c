"""
Agreements module interface.

Routes depend on IAgreementService, not the concrete implementation.
"""

from typing import Optional, Protocol, runtime_checkable

from shared.models import (
    Agreement,
    AgreementFilters,
    AgreementUpdate,
    SignatureResult,
    Signer,
    SignerCreate,
)

from .models import AgreementStats, CreateAgreementRequest, StatusUpdateResult


@runtime_checkable
class IAgreementService(Protocol):
    """
    Interface for agreement operations.

    Methods that take a ``user_id`` enforce access: the owner may do
    anything, a signer may read the agreement and sign their own entry.
    """

    async def create_agreement(self, creator_id: str, request: CreateAgreementRequest) -> Agreement:
        """
        Create a draft agreement whose first signer is the creator.

        Raises:
            CreatorProfileNotFoundError: If the creator has no profile
        """
        ...

    async def get_agreement(self, agreement_id: str, user_id: str, user_email: str = "") -> Agreement: ...

    async def list_agreements(
        self,
        user_id: str,
        filters: Optional[AgreementFilters] = None,
    ) -> list[Agreement]: ...

    async def search_agreements(self, user_id: str, term: str) -> list[Agreement]: ...

    async def get_stats(self, user_id: str) -> AgreementStats: ...

    async def update_agreement(
        self,
        agreement_id: str,
        user_id: str,
        update: AgreementUpdate,
    ) -> Agreement: ...

    async def delete_agreement(self, agreement_id: str, user_id: str) -> None: ...

    async def update_status(
        self,
        agreement_id: str,
        user_id: str,
        status: str,
        pdf_base64: Optional[str] = None,
    ) -> StatusUpdateResult:
        """
        Change the status; a completed agreement's PDF is uploaded first.

        Raises:
            InvalidPdfError: If pdf_base64 is not valid base64
        """
        ...

    async def duplicate_agreement(self, agreement_id: str, user_id: str, title: str) -> Agreement: ...

    async def export_agreement(self, agreement_id: str, user_id: str) -> str: ...

    async def import_agreement(self, json_data: str, creator_id: str) -> Agreement:
        """
        Raises:
            InvalidImportError: If json_data is not an agreement document
        """
        ...

    async def add_signer(self, agreement_id: str, user_id: str, signer: SignerCreate) -> Signer: ...

    async def remove_signer(self, agreement_id: str, user_id: str, signer_id: str) -> None: ...

    async def sign(
        self,
        agreement_id: str,
        signer_id: str,
        user_id: str,
        user_email: str,
        signature_data: str,
    ) -> SignatureResult: ...
