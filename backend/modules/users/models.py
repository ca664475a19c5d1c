"""
Users module data models.
"""

from typing import Any, Optional

from shared.models import CanonicalModel


class UpdateProfileRequest(CanonicalModel):
    """Profile fields a user may change themselves."""

    name: Optional[str] = None
    phone: Optional[str] = None
    company: Optional[str] = None
    profile_picture: Optional[str] = None
    preferences: Optional[dict[str, Any]] = None


class FileUploadResult(CanonicalModel):
    download_url: str
    bucket: str
    path: str
