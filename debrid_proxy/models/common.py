"""
Common response models and utilities.

Generic response envelopes and error schemas shared by every route.

Dependencies: pydantic
System role: Common API response structures
"""

from typing import Any, Generic, TypeVar

from pydantic import BaseModel, Field

T = TypeVar("T")


class SuccessResponse(BaseModel, Generic[T]):
    """Generic success response wrapper."""

    success: bool = True
    value: T


class ErrorResponse(BaseModel):
    """Error response schema."""

    success: bool = False
    error: str = Field(description="Error message")
    details: Any | None = Field(default=None, description="Additional error context")


class MessageResponse(BaseModel):
    """Plain acknowledgement payload."""

    message: str
