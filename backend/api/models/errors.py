"""
Error response models.

Every failure leaves the API as a terminal ``{status, message, code}`` body.
"""

from typing import Any, Optional

from pydantic import BaseModel, Field


class ErrorResponse(BaseModel):
    """Standard error response format."""

    status: str = "error"
    message: str
    code: Optional[str] = None
    details: dict[str, Any] = Field(default_factory=dict)


class ValidationErrorResponse(BaseModel):
    """Request validation error response format."""

    status: str = "error"
    message: str = "Validation Error"
    code: str = "VALIDATION_ERROR"
    detail: list[dict]
