"""
Gift card service orchestrator.

Issues gift cards and redeems them against a user's storage quota. A
redemption claims the card with one atomic update, writes the redeem
ledger entry and credits the user; a failure after the claim releases
the card again.

Dependencies: debrid_proxy.boundary.db.CRUD, secrets (stdlib)
System role: Gift card use case orchestration
"""

import logging
import re
import secrets
import string
from datetime import timedelta
from typing import Any, Mapping

from debrid_proxy.application.services.storage_policy import refresh_storage_if_expired
from debrid_proxy.boundary.db.CRUD import GiftCardCRUD, RedeemCRUD, UserCRUD
from debrid_proxy.core.exceptions import (
    ConflictError,
    DebridProxyException,
    NotFoundError,
    ValidationError,
)
from debrid_proxy.core.permissions import ensure_self_access
from debrid_proxy.core.time_utils import china_now, to_china_iso
from debrid_proxy.core.validators import ensure_object_id, parse_metadata, parse_positive_number
from debrid_proxy.models.gift_card import (
    GiftCardResponse,
    RedeemRecordResponse,
    RedeemResponse,
    UsedBy,
    UserStorageSummary,
)

logger = logging.getLogger(__name__)

CHARSET = string.ascii_uppercase + string.digits
RAW_KEY_LENGTH = 15
SEGMENT_SIZE = 5
MAX_GENERATION_ATTEMPTS = 10
STORAGE_EXTENSION = timedelta(days=30)

_NON_ALPHANUMERIC = re.compile(r"[^0-9A-Za-z]")


def format_card_number(raw: str) -> str:
    """Split a raw 15-character key into dash-separated groups of five."""
    return "-".join(raw[i : i + SEGMENT_SIZE] for i in range(0, len(raw), SEGMENT_SIZE))


def create_card_number() -> str:
    raw = "".join(secrets.choice(CHARSET) for _ in range(RAW_KEY_LENGTH))
    return format_card_number(raw)


def normalize_card_number(value: Any) -> str:
    """
    Canonicalise user input into the stored XXXXX-XXXXX-XXXXX form.

    Separators and case are ignored.

    Raises:
        ValidationError: If missing or not exactly 15 letters/digits
    """
    if not isinstance(value, str) or not value.strip():
        raise ValidationError("card_number is required", field="card_number")

    compact = _NON_ALPHANUMERIC.sub("", value).upper()
    if len(compact) != RAW_KEY_LENGTH:
        raise ValidationError("card_number must be 15 letters or digits", field="card_number")
    return format_card_number(compact)


def to_gift_card_response(doc: Mapping[str, Any]) -> GiftCardResponse:
    used_by = doc.get("used_by")
    return GiftCardResponse(
        id=str(doc["_id"]) if doc.get("_id") else None,
        card_number=doc["card_number"],
        storage=doc["storage"],
        value=doc["value"],
        used=bool(doc.get("used")),
        used_by=(
            UsedBy(
                user_id=str(used_by["user_id"]) if used_by.get("user_id") else None,
                email=used_by.get("email"),
            )
            if used_by
            else None
        ),
        metadata=doc.get("metadata") or {},
        created_at=doc.get("created_at"),
        updated_at=doc.get("updated_at"),
    )


def to_user_summary(doc: Mapping[str, Any]) -> UserStorageSummary:
    return UserStorageSummary(
        id=str(doc["_id"]),
        email=doc["email"],
        storage_all=doc.get("storage_all", 0),
        storage_used=doc.get("storage_used", 0),
        storage_expired_at=doc.get("storage_expired_at"),
    )


class GiftCardService:
    """Gift card service orchestrator."""

    def __init__(self, cards: GiftCardCRUD, redeems: RedeemCRUD, users: UserCRUD) -> None:
        """
        Initialize gift card service.

        Args:
            cards: CRUD for the gift card collection
            redeems: CRUD for the redeem ledger
            users: CRUD for the users collection
        """
        self.cards = cards
        self.redeems = redeems
        self.users = users

    async def generate_unique_card_number(self) -> str:
        """
        Draw card numbers until one is unused.

        Raises:
            DebridProxyException: After MAX_GENERATION_ATTEMPTS collisions
        """
        for _ in range(MAX_GENERATION_ATTEMPTS):
            candidate = create_card_number()
            if not await self.cards.card_number_exists(candidate):
                return candidate

        logger.error(
            "Card number generation exhausted",
            extra={"attempts": MAX_GENERATION_ATTEMPTS},
        )
        raise DebridProxyException("Failed to generate a unique card number")

    async def create_card(self, payload: Mapping[str, Any]) -> GiftCardResponse:
        """
        Issue a new unused card.

        Raises:
            ValidationError: If storage/value are not positive or metadata is not an object
            ConflictError: If the generated number collides on insert
        """
        storage = parse_positive_number(payload.get("storage"), "storage")
        value = parse_positive_number(payload.get("value"), "value")
        metadata = parse_metadata(
            payload.get("metadata"), "metadata must be an object if provided"
        )

        timestamp = to_china_iso()
        document = {
            "card_number": await self.generate_unique_card_number(),
            "storage": storage,
            "value": value,
            "used": False,
            "used_by": None,
            "metadata": metadata,
            "created_at": timestamp,
            "updated_at": timestamp,
        }
        created = await self.cards.create(document)
        logger.info(
            "Gift card issued",
            extra={"card_id": str(created["_id"]), "storage": storage, "value": value},
        )
        return to_gift_card_response(created)

    async def list_cards(self, used: bool | None = None) -> list[GiftCardResponse]:
        docs = await self.cards.list_cards(used=used)
        return [to_gift_card_response(doc) for doc in docs]

    async def get_card(self, card_number: Any) -> GiftCardResponse:
        normalized = normalize_card_number(card_number)
        doc = await self.cards.get_by_card_number(normalized)
        if not doc:
            raise NotFoundError("Gift card not found", {"card_number": normalized})
        return to_gift_card_response(doc)

    async def redeem(self, payload: Mapping[str, Any], current: Mapping[str, Any]) -> RedeemResponse:
        """
        Redeem a card for a user.

        Args:
            payload: card_number and optional user_id (defaults to the caller)
            current: Authenticated caller

        Returns:
            RedeemResponse: Claimed card, ledger entry and the user's new balance

        Raises:
            ValidationError: If user_id or card_number is malformed
            PermissionDeniedError: If a non-admin redeems for someone else
            NotFoundError: If the user or card does not exist
            ConflictError: If the card was already redeemed
        """
        user_id = ensure_object_id(
            payload.get("user_id") or current.get("_id"),
            "user_id must be a valid identifier",
            field="user_id",
        )
        ensure_self_access(user_id, current)
        card_number = normalize_card_number(payload.get("card_number"))

        user = await self.users.get_active_by_id(user_id)
        if not user:
            raise NotFoundError("User not found", {"user_id": str(user_id)})
        user = await refresh_storage_if_expired(self.users, user)

        now_iso = to_china_iso()
        storage_expired_at = to_china_iso(china_now() + STORAGE_EXTENSION)

        card = await self.cards.claim(
            card_number, {"user_id": user_id, "email": user["email"]}, now_iso
        )
        if not card:
            if await self.cards.card_number_exists(card_number):
                raise ConflictError("Gift card has already been redeemed", {"card_number": card_number})
            raise NotFoundError("Gift card not found", {"card_number": card_number})

        redeem = None
        try:
            redeem = await self.redeems.create(
                {
                    "card_number": card_number,
                    "gift_card_id": card["_id"],
                    "user_id": user_id,
                    "user_email": user["email"],
                    "user_snapshot": {
                        "email": user["email"],
                        "storage_all": user.get("storage_all", 0),
                        "storage_used": user.get("storage_used", 0),
                    },
                    "storage_allocated": card["storage"],
                    "storage_expired_at": storage_expired_at,
                    "redeemed_at": now_iso,
                }
            )
            updated_user = await self.users.credit_storage(
                user_id, card["storage"], storage_expired_at, to_china_iso()
            )
            if not updated_user:
                raise NotFoundError("User not found", {"user_id": str(user_id)})
        except Exception:
            logger.error(
                "Redemption failed after claim, releasing card",
                extra={"card_number": card_number, "user_id": str(user_id)},
                exc_info=True,
            )
            if redeem is not None:
                await self.redeems.delete_by_id(redeem["_id"])
            await self.cards.release(card["_id"], to_china_iso())
            raise

        logger.info(
            "Gift card redeemed",
            extra={
                "card_number": card_number,
                "user_id": str(user_id),
                "storage_allocated": card["storage"],
            },
        )
        return RedeemResponse(
            card=to_gift_card_response(card),
            redeem=RedeemRecordResponse(
                id=str(redeem["_id"]),
                card_number=card_number,
                storage_allocated=card["storage"],
                storage_expired_at=storage_expired_at,
                redeemed_at=now_iso,
            ),
            user=to_user_summary(updated_user),
        )
