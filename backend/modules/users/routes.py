"""
User profile endpoints.
"""

from fastapi import APIRouter, Depends, File, UploadFile

from api.dependencies import get_user_service
from api.middleware.auth import get_current_user
from modules.auth.models import SessionUser
from shared.models import ActionResult, User

from .interfaces import IUserService
from .models import UpdateProfileRequest

router = APIRouter()


@router.get("/me", response_model=User)
async def get_current_user_profile(
    user: SessionUser = Depends(get_current_user),
    service: IUserService = Depends(get_user_service),
) -> User:
    """
    Get the current user's profile.

    Requires authentication.
    """
    return await service.get_profile(user.id)


@router.patch("/me", response_model=ActionResult)
async def update_current_user_profile(
    request: UpdateProfileRequest,
    user: SessionUser = Depends(get_current_user),
    service: IUserService = Depends(get_user_service),
) -> ActionResult:
    profile = await service.update_profile(user.id, request)
    return ActionResult(
        status="success",
        message="Profile updated.",
        data=profile.model_dump(by_alias=True, mode="json"),
    )


@router.post("/me/photo", response_model=ActionResult)
async def upload_profile_photo(
    profile_photo: UploadFile = File(..., alias="profilePhoto"),
    user: SessionUser = Depends(get_current_user),
    service: IUserService = Depends(get_user_service),
) -> ActionResult:
    """Store a profile photo and set it as the profile picture."""
    data = await profile_photo.read()
    result = await service.upload_profile_photo(
        user.id,
        profile_photo.filename or "photo",
        data,
        profile_photo.content_type or "application/octet-stream",
    )
    return ActionResult(
        status="success",
        message="Photo uploaded successfully.",
        data=result.model_dump(by_alias=True),
    )
