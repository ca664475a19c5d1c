"""
Agreements module.

Agreement lifecycle on top of the active provider: creation with the
Creator signer, listing and search, status changes with the final PDF,
duplication, JSON export/import and the signer workflow.

Public API:
- IAgreementService: Interface for agreement operations
- AgreementService: Implementation over the provider facade
- Request/response models and agreement exceptions
"""

from .interfaces import IAgreementService
from .models import (
    AgreementStats,
    CreateAgreementRequest,
    DuplicateAgreementRequest,
    ImportAgreementRequest,
    SignAgreementRequest,
    StatusUpdateResult,
    UpdateStatusRequest,
)
from .exceptions import (
    AgreementAccessDeniedError,
    CreatorProfileNotFoundError,
    InvalidImportError,
)

__all__ = [
    # Interface
    "IAgreementService",
    # Models
    "AgreementStats",
    "CreateAgreementRequest",
    "DuplicateAgreementRequest",
    "ImportAgreementRequest",
    "SignAgreementRequest",
    "StatusUpdateResult",
    "UpdateStatusRequest",
    # Exceptions
    "AgreementAccessDeniedError",
    "CreatorProfileNotFoundError",
    "InvalidImportError",
]
