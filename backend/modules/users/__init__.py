"""
Users module.

Profile management and file storage for the signed-in user.

Public API:
- IUserService: Interface for profile operations
- UserService: Profile get/update and profile photo
- StorageService: Agreement PDFs, profile photos and documents
"""

from .interfaces import IStorageService, IUserService
from .models import FileUploadResult, UpdateProfileRequest
from .exceptions import EmptyFileError, InvalidPdfError, ProfileNotFoundError

__all__ = [
    # Interfaces
    "IStorageService",
    "IUserService",
    # Models
    "FileUploadResult",
    "UpdateProfileRequest",
    # Exceptions
    "EmptyFileError",
    "InvalidPdfError",
    "ProfileNotFoundError",
]
