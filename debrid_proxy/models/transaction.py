"""
Transaction domain models and schemas.

Dependencies: pydantic
System role: Billing transaction API contracts
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class CreateTransactionRequest(BaseModel):
    """Request schema for recording a transaction."""

    model_config = ConfigDict(extra="ignore")

    user_id: Any = None
    user_email: Any = None
    order_amount: Any = None
    order_date: Any = None
    order_key: Any = Field(None, description="Unique order reference, max 120 chars")
    order_desc: Any = Field(None, description="Order description, max 1000 chars")
    status: Any = None
    currency: Any = None
    payment_method: Any = None
    payment_reference: Any = None
    metadata: Any = None


class UpdateTransactionRequest(CreateTransactionRequest):
    """Partial update; only fields present in the body apply."""

    deleted: Any = None


class TransactionResponse(BaseModel):
    """Response schema for transaction operations."""

    id: str
    user_id: str
    user_email: str
    order_amount: float
    order_date: str
    order_key: str
    order_desc: str
    status: str | None = None
    currency: str | None = None
    payment_method: str | None = None
    payment_reference: str | None = None
    metadata: dict = Field(default_factory=dict)
    deleted: bool
    created_at: str | None = None
    updated_at: str | None = None
