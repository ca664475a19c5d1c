"""
Storage service.

Application-level file operations on top of the provider's storage
capability: bucket and path conventions, base64 PDF decoding and upload
options.
"""

import base64
import binascii
import logging
from typing import Optional

from providers.factory import DatabaseClientFactory
from shared.models import utc_now

from .exceptions import EmptyFileError, InvalidPdfError
from .interfaces import IStorageService
from .models import FileUploadResult

logger = logging.getLogger(__name__)

AGREEMENT_PDF_BUCKET = "agreements-pdf"
PROFILE_PHOTO_BUCKET = "profile-photos"
PDF_CONTENT_TYPE = "application/pdf"
DATA_URL_MARKER = ";base64,"


def decode_pdf_base64(pdf_base64: str) -> bytes:
    """
    Decode a PDF given as a data URL or bare base64.

    Raises:
        InvalidPdfError: If nothing decodes to a non-empty payload
    """
    encoded = pdf_base64.split(DATA_URL_MARKER)[-1].strip()
    if not encoded:
        raise InvalidPdfError()
    try:
        data = base64.b64decode(encoded, validate=True)
    except (binascii.Error, ValueError) as e:
        raise InvalidPdfError() from e
    if not data:
        raise InvalidPdfError()
    return data


class StorageService(IStorageService):
    """File storage through whichever provider the factory selects."""

    def __init__(self, factory: DatabaseClientFactory):
        self._factory = factory

    @property
    def _storage(self):
        return self._factory.get().storage

    async def upload_agreement_pdf(self, pdf_base64: str, agreement_id: str) -> str:
        data = decode_pdf_base64(pdf_base64)
        millis = int(utc_now().timestamp() * 1000)
        path = f"{agreement_id}-{millis}.pdf"

        url = await self._storage.upload_file(
            AGREEMENT_PDF_BUCKET,
            path,
            data,
            {"content_type": PDF_CONTENT_TYPE, "upsert": True},
        )
        logger.info("Uploaded PDF for agreement %s (%d bytes)", agreement_id, len(data))
        return url

    async def upload_profile_photo(
        self,
        user_id: str,
        filename: str,
        data: bytes,
        content_type: str,
    ) -> FileUploadResult:
        if not data:
            raise EmptyFileError(filename)
        path = f"{user_id}/{filename}"
        url = await self._storage.upload_file(
            PROFILE_PHOTO_BUCKET,
            path,
            data,
            {"content_type": content_type, "upsert": True},
        )
        return FileUploadResult(download_url=url, bucket=PROFILE_PHOTO_BUCKET, path=path)

    async def upload_document(
        self,
        folder: str,
        filename: str,
        data: bytes,
        content_type: str,
        path: Optional[str] = None,
    ) -> FileUploadResult:
        if not data:
            raise EmptyFileError(filename)
        millis = int(utc_now().timestamp() * 1000)
        path = path or f"{millis}-{filename}"
        url = await self._storage.upload_file(
            folder,
            path,
            data,
            {"content_type": content_type, "upsert": False},
        )
        return FileUploadResult(download_url=url, bucket=folder, path=path)

    async def delete_file(self, bucket: str, path: str) -> None:
        await self._storage.delete_file(bucket, path)

    def get_public_url(self, bucket: str, path: str) -> str:
        return self._storage.get_public_url(bucket, path)

    async def get_signed_url(self, bucket: str, path: str, expires_in: int = 3600) -> str:
        return await self._storage.get_signed_url(bucket, path, expires_in)

    async def download_file(self, bucket: str, path: str) -> bytes:
        return await self._storage.download_file(bucket, path)
