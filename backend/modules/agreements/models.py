"""
Agreements module data models.

Request bodies accepted by the agreement routes and the results they
return. Canonical records (Agreement, Signer) live in shared.models.
"""

from datetime import datetime
from typing import Any, Optional

from pydantic import Field

from shared.models import CanonicalModel


class CreateAgreementRequest(CanonicalModel):
    """Fields a user supplies when creating an agreement. The owner comes from the session."""

    title: str = Field(..., min_length=1, description="Agreement title")
    song_title: Optional[str] = None
    description: Optional[str] = None
    publication_date: Optional[datetime] = None
    composers: Optional[list[dict[str, Any]]] = None
    type: Optional[str] = None
    document_url: Optional[str] = None
    metadata: Optional[dict[str, Any]] = None
    expires_at: Optional[datetime] = None


class UpdateStatusRequest(CanonicalModel):
    """Status change, optionally carrying the final PDF as a base64 data URL."""

    status: str = Field(..., min_length=1)
    pdf_base64: Optional[str] = Field(None, description="data:application/pdf;base64,... or bare base64")


class StatusUpdateResult(CanonicalModel):
    status: str
    pdf_url: Optional[str] = None


class DuplicateAgreementRequest(CanonicalModel):
    title: str = Field(..., min_length=1, description="Title of the copy")


class ImportAgreementRequest(CanonicalModel):
    json_data: str = Field(..., description="Agreement JSON as produced by export")


class SignAgreementRequest(CanonicalModel):
    signature_data: str = Field(..., min_length=1, description="Signature image data URL")


class AgreementStats(CanonicalModel):
    """Agreement counts per conventional status for one owner."""

    total: int = 0
    draft: int = 0
    pending: int = 0
    signed: int = 0
    completed: int = 0
