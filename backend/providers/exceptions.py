"""
Data-access exceptions raised by the provider adapters.
"""

from shared.exceptions import NotFoundError


class UserNotFoundError(NotFoundError):
    """Raised when a user profile does not exist."""

    def __init__(self, user_id: str):
        super().__init__(
            f"User not found: {user_id}",
            code="USER_NOT_FOUND",
            details={"user_id": user_id},
        )


class AgreementNotFoundError(NotFoundError):
    """Raised when an agreement does not exist."""

    def __init__(self, agreement_id: str):
        super().__init__(
            f"Agreement not found: {agreement_id}",
            code="AGREEMENT_NOT_FOUND",
            details={"agreement_id": agreement_id},
        )


class SignerNotFoundError(NotFoundError):
    """Raised when a signer id is not part of an agreement."""

    def __init__(self, agreement_id: str, signer_id: str):
        super().__init__(
            f"Signer {signer_id} not found in agreement {agreement_id}",
            code="SIGNER_NOT_FOUND",
            details={"agreement_id": agreement_id, "signer_id": signer_id},
        )
