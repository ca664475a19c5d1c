"""
Agreements module exceptions.
"""

from shared.exceptions import NotFoundError, ValidationError


class AgreementAccessDeniedError(NotFoundError):
    """
    Raised when a user touches an agreement they neither own nor sign.

    Reported as not found so agreement ids cannot be probed.
    """

    def __init__(self, agreement_id: str, user_id: str):
        super().__init__(
            f"Agreement not found: {agreement_id}",
            code="AGREEMENT_NOT_FOUND",
            details={"agreement_id": agreement_id, "user_id": user_id},
        )


class CreatorProfileNotFoundError(NotFoundError):
    """Raised when the creating user has no profile record."""

    def __init__(self, user_id: str):
        super().__init__(
            "Creator profile not found.",
            code="CREATOR_PROFILE_NOT_FOUND",
            details={"user_id": user_id},
        )


class InvalidImportError(ValidationError):
    """Raised when an import payload is not a usable agreement JSON document."""

    def __init__(self, reason: str = ""):
        message = "Invalid JSON data for agreement import"
        super().__init__(
            f"{message}: {reason}" if reason else message,
            code="INVALID_IMPORT",
        )
