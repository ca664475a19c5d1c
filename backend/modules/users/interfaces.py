"""
Users module interfaces.
"""

from typing import Optional, Protocol, runtime_checkable

from shared.models import User

from .models import FileUploadResult, UpdateProfileRequest


@runtime_checkable
class IStorageService(Protocol):
    """File storage through the active provider's storage capability."""

    async def upload_agreement_pdf(self, pdf_base64: str, agreement_id: str) -> str:
        """
        Decode a base64 PDF (bare or data URL) and upload it.

        Returns:
            URL of the stored PDF

        Raises:
            InvalidPdfError: If the payload is not valid base64
        """
        ...

    async def upload_profile_photo(
        self,
        user_id: str,
        filename: str,
        data: bytes,
        content_type: str,
    ) -> FileUploadResult: ...

    async def upload_document(
        self,
        folder: str,
        filename: str,
        data: bytes,
        content_type: str,
        path: Optional[str] = None,
    ) -> FileUploadResult: ...

    async def delete_file(self, bucket: str, path: str) -> None: ...

    def get_public_url(self, bucket: str, path: str) -> str: ...

    async def get_signed_url(self, bucket: str, path: str, expires_in: int = 3600) -> str: ...

    async def download_file(self, bucket: str, path: str) -> bytes: ...


@runtime_checkable
class IUserService(Protocol):
    """Profile operations for the signed-in user."""

    async def get_profile(self, user_id: str) -> User:
        """
        Raises:
            ProfileNotFoundError: If no profile exists
        """
        ...

    async def update_profile(self, user_id: str, request: UpdateProfileRequest) -> User: ...

    async def upload_profile_photo(
        self,
        user_id: str,
        filename: str,
        data: bytes,
        content_type: str,
    ) -> FileUploadResult:
        """Store the photo and point the profile picture at it."""
        ...
