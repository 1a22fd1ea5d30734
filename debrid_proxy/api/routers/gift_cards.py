"""
Gift card API endpoints.

Routes:
- POST /gift-cards - Issue card (admin)
- GET /gift-cards - List cards, optional ?used= filter (admin)
- GET /gift-cards/{card_number} - Get card (admin)
- POST /gift-cards/redeem - Redeem card for the caller (or any user, admin)

Dependencies: debrid_proxy.application.services, debrid_proxy.models
System role: Gift card HTTP API
"""

import logging
from typing import Any

from fastapi import APIRouter, Depends, Query, status

from debrid_proxy.api.deps.dependencies import (
    get_current_user,
    get_gift_card_service,
    require_admin,
)
from debrid_proxy.application.services import GiftCardService
from debrid_proxy.core.validators import parse_bool
from debrid_proxy.models.common import SuccessResponse
from debrid_proxy.models.gift_card import (
    CreateGiftCardRequest,
    GiftCardResponse,
    RedeemGiftCardRequest,
    RedeemResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/gift-cards", tags=["gift-cards"])


@router.post(
    "",
    response_model=SuccessResponse[GiftCardResponse],
    status_code=status.HTTP_201_CREATED,
)
async def create_gift_card(
    request: CreateGiftCardRequest,
    _admin: dict[str, Any] = Depends(require_admin),
    gift_card_service: GiftCardService = Depends(get_gift_card_service),
) -> SuccessResponse[GiftCardResponse]:
    """
    Issue a gift card with a freshly generated number.

    Args:
        request: storage, value and optional metadata
        _admin: Authenticated admin caller
        gift_card_service: Injected GiftCardService

    Returns:
        SuccessResponse[GiftCardResponse]: The unused card
    """
    card = await gift_card_service.create_card(request.model_dump(exclude_unset=True))
    return SuccessResponse(value=card)


@router.get("", response_model=SuccessResponse[list[GiftCardResponse]])
async def list_gift_cards(
    used: str | None = Query(None),
    _admin: dict[str, Any] = Depends(require_admin),
    gift_card_service: GiftCardService = Depends(get_gift_card_service),
) -> SuccessResponse[list[GiftCardResponse]]:
    cards = await gift_card_service.list_cards(used=parse_bool(used, None))
    return SuccessResponse(value=cards)


@router.post("/redeem", response_model=SuccessResponse[RedeemResponse])
async def redeem_gift_card(
    request: RedeemGiftCardRequest,
    current_user: dict[str, Any] = Depends(get_current_user),
    gift_card_service: GiftCardService = Depends(get_gift_card_service),
) -> SuccessResponse[RedeemResponse]:
    """
    Redeem a card and credit the user's storage.

    Raises:
        ValidationError(400): Malformed user_id or card_number
        PermissionDeniedError(403): Non-admin redeeming for another user
        NotFoundError(404): User or card not found
        ConflictError(409): Card already redeemed
    """
    logger.info(
        "Redeem requested",
        extra={"caller_id": str(current_user["_id"]), "for_user": request.user_id},
    )
    result = await gift_card_service.redeem(
        request.model_dump(exclude_unset=True), current_user
    )
    return SuccessResponse(value=result)


@router.get("/{card_number}", response_model=SuccessResponse[GiftCardResponse])
async def get_gift_card(
    card_number: str,
    _admin: dict[str, Any] = Depends(require_admin),
    gift_card_service: GiftCardService = Depends(get_gift_card_service),
) -> SuccessResponse[GiftCardResponse]:
    return SuccessResponse(value=await gift_card_service.get_card(card_number))
