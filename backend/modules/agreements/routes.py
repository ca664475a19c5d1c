"""
Agreement API endpoints.

CRUD, status changes, duplication, JSON export/import and the signer
workflow. Mutations answer with an ActionResult.
"""

from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, Query
from fastapi.responses import Response

from api.dependencies import get_agreement_service
from api.middleware.auth import get_current_user
from modules.auth.models import SessionUser
from shared.models import ActionResult, Agreement, AgreementFilters, AgreementUpdate, SignerCreate

from .interfaces import IAgreementService
from .models import (
    AgreementStats,
    CreateAgreementRequest,
    DuplicateAgreementRequest,
    ImportAgreementRequest,
    SignAgreementRequest,
    UpdateStatusRequest,
)

router = APIRouter()


def _dump(model) -> dict:
    return model.model_dump(by_alias=True, mode="json")


@router.post("", response_model=ActionResult, status_code=201)
async def create_agreement(
    request: CreateAgreementRequest,
    user: SessionUser = Depends(get_current_user),
    service: IAgreementService = Depends(get_agreement_service),
) -> ActionResult:
    """
    Create a draft agreement.

    The creator is added as the first signer with role "Creator".
    """
    agreement = await service.create_agreement(user.id, request)
    return ActionResult(
        status="success",
        message="Agreement created successfully as a draft.",
        data={"agreementId": agreement.id},
    )


@router.get("", response_model=list[Agreement])
async def list_agreements(
    status: Optional[str] = Query(default=None, description="Filter by status"),
    type: Optional[str] = Query(default=None, description="Filter by type"),
    date_from: Optional[datetime] = Query(default=None, alias="dateFrom"),
    date_to: Optional[datetime] = Query(default=None, alias="dateTo"),
    search: Optional[str] = Query(default=None, description="Substring of title or description"),
    user: SessionUser = Depends(get_current_user),
    service: IAgreementService = Depends(get_agreement_service),
) -> list[Agreement]:
    """List the current user's agreements, newest first."""
    filters = AgreementFilters(
        status=status,
        type=type,
        date_from=date_from,
        date_to=date_to,
        search=search,
    )
    return await service.list_agreements(user.id, filters)


@router.get("/stats", response_model=AgreementStats)
async def agreement_stats(
    user: SessionUser = Depends(get_current_user),
    service: IAgreementService = Depends(get_agreement_service),
) -> AgreementStats:
    return await service.get_stats(user.id)


@router.post("/import", response_model=ActionResult, status_code=201)
async def import_agreement(
    request: ImportAgreementRequest,
    user: SessionUser = Depends(get_current_user),
    service: IAgreementService = Depends(get_agreement_service),
) -> ActionResult:
    agreement = await service.import_agreement(request.json_data, user.id)
    return ActionResult(
        status="success",
        message="Agreement imported.",
        data={"agreementId": agreement.id},
    )


@router.get("/{agreement_id}", response_model=Agreement)
async def get_agreement(
    agreement_id: str,
    user: SessionUser = Depends(get_current_user),
    service: IAgreementService = Depends(get_agreement_service),
) -> Agreement:
    return await service.get_agreement(agreement_id, user.id, user.email)


@router.patch("/{agreement_id}", response_model=ActionResult)
async def update_agreement(
    agreement_id: str,
    request: AgreementUpdate,
    user: SessionUser = Depends(get_current_user),
    service: IAgreementService = Depends(get_agreement_service),
) -> ActionResult:
    agreement = await service.update_agreement(agreement_id, user.id, request)
    return ActionResult(status="success", message="Agreement updated.", data=_dump(agreement))


@router.delete("/{agreement_id}", response_model=ActionResult)
async def delete_agreement(
    agreement_id: str,
    user: SessionUser = Depends(get_current_user),
    service: IAgreementService = Depends(get_agreement_service),
) -> ActionResult:
    await service.delete_agreement(agreement_id, user.id)
    return ActionResult(status="success", message="Agreement deleted.")


@router.post("/{agreement_id}/status", response_model=ActionResult)
async def update_status(
    agreement_id: str,
    request: UpdateStatusRequest,
    user: SessionUser = Depends(get_current_user),
    service: IAgreementService = Depends(get_agreement_service),
) -> ActionResult:
    """
    Change an agreement's status.

    When completing, an optional base64 PDF is stored and linked as pdfUrl.
    """
    result = await service.update_status(agreement_id, user.id, request.status, request.pdf_base64)
    return ActionResult(status="success", message="Status updated.", data=_dump(result))


@router.post("/{agreement_id}/duplicate", response_model=ActionResult, status_code=201)
async def duplicate_agreement(
    agreement_id: str,
    request: DuplicateAgreementRequest,
    user: SessionUser = Depends(get_current_user),
    service: IAgreementService = Depends(get_agreement_service),
) -> ActionResult:
    copy = await service.duplicate_agreement(agreement_id, user.id, request.title)
    return ActionResult(
        status="success",
        message="Agreement duplicated.",
        data={"agreementId": copy.id},
    )


@router.get("/{agreement_id}/export")
async def export_agreement(
    agreement_id: str,
    user: SessionUser = Depends(get_current_user),
    service: IAgreementService = Depends(get_agreement_service),
) -> Response:
    """Download the agreement as a JSON document accepted by /import."""
    body = await service.export_agreement(agreement_id, user.id)
    return Response(
        content=body,
        media_type="application/json",
        headers={"Content-Disposition": f'attachment; filename="agreement-{agreement_id}.json"'},
    )


@router.post("/{agreement_id}/signers", response_model=ActionResult, status_code=201)
async def add_signer(
    agreement_id: str,
    request: SignerCreate,
    user: SessionUser = Depends(get_current_user),
    service: IAgreementService = Depends(get_agreement_service),
) -> ActionResult:
    signer = await service.add_signer(agreement_id, user.id, request)
    return ActionResult(status="success", message="Signer added.", data=_dump(signer))


@router.delete("/{agreement_id}/signers/{signer_id}", response_model=ActionResult)
async def remove_signer(
    agreement_id: str,
    signer_id: str,
    user: SessionUser = Depends(get_current_user),
    service: IAgreementService = Depends(get_agreement_service),
) -> ActionResult:
    await service.remove_signer(agreement_id, user.id, signer_id)
    return ActionResult(status="success", message="Signer removed.")


@router.post("/{agreement_id}/signers/{signer_id}/sign", response_model=ActionResult)
async def sign_agreement(
    agreement_id: str,
    signer_id: str,
    request: SignAgreementRequest,
    user: SessionUser = Depends(get_current_user),
    service: IAgreementService = Depends(get_agreement_service),
) -> ActionResult:
    result = await service.sign(agreement_id, signer_id, user.id, user.email, request.signature_data)
    return ActionResult(status="success", message="Agreement signed.", data=_dump(result))
