"""
Users module exceptions.
"""

from shared.exceptions import NotFoundError, ValidationError


class ProfileNotFoundError(NotFoundError):
    """Raised when the signed-in user has no profile record."""

    def __init__(self, user_id: str):
        super().__init__(
            "User profile not found.",
            code="PROFILE_NOT_FOUND",
            details={"user_id": user_id},
        )


class InvalidPdfError(ValidationError):
    """Raised when a PDF payload is not valid base64."""

    def __init__(self, message: str = "Invalid base64 string for PDF upload."):
        super().__init__(message, code="INVALID_PDF")


class EmptyFileError(ValidationError):
    """Raised when an upload carries no bytes."""

    def __init__(self, filename: str):
        super().__init__(
            f"File is empty: {filename}",
            code="EMPTY_FILE",
            details={"filename": filename},
        )
