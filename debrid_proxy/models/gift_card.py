"""
Gift card domain models and schemas.

Dependencies: pydantic
System role: Gift card issuance and redemption API contracts
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class CreateGiftCardRequest(BaseModel):
    """Request schema for issuing a gift card."""

    model_config = ConfigDict(extra="ignore")

    storage: Any = Field(None, description="Storage credited on redemption")
    value: Any = Field(None, description="Monetary value of the card")
    metadata: Any = None


class RedeemGiftCardRequest(BaseModel):
    """Request schema for redeeming a card; user_id defaults to the caller."""

    card_number: Any = None
    user_id: Any = None


class UsedBy(BaseModel):
    user_id: str | None = None
    email: str | None = None


class GiftCardResponse(BaseModel):
    """Response schema for gift card operations."""

    id: str | None
    card_number: str
    storage: float
    value: float
    used: bool
    used_by: UsedBy | None = None
    metadata: dict = Field(default_factory=dict)
    created_at: str | None = None
    updated_at: str | None = None


class RedeemRecordResponse(BaseModel):
    id: str
    card_number: str
    storage_allocated: float
    storage_expired_at: str
    redeemed_at: str


class UserStorageSummary(BaseModel):
    id: str
    email: str
    storage_all: float
    storage_used: float
    storage_expired_at: str | None = None


class RedeemResponse(BaseModel):
    """Result of a successful redemption."""

    card: GiftCardResponse
    redeem: RedeemRecordResponse
    user: UserStorageSummary | None = None
