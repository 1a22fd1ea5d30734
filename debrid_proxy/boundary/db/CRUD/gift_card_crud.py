"""
Gift card CRUD operations.

Includes the atomic claim used by redemption and the redeem ledger.

Dependencies: pymongo, bson
System role: Gift card and redemption persistence
"""

from typing import Any

from bson import ObjectId
from pymongo import DESCENDING, ReturnDocument

from debrid_proxy.boundary.db.CRUD.base_crud import BaseCRUD, Document


class GiftCardCRUD(BaseCRUD):
    """CRUD operations for the gift card collection."""

    duplicate_message = "A gift card with this number already exists"

    async def get_by_card_number(self, card_number: str) -> Document | None:
        return await self.find_one({"card_number": card_number})

    async def card_number_exists(self, card_number: str) -> bool:
        return await self.exists({"card_number": card_number})

    async def list_cards(self, used: bool | None = None) -> list[Document]:
        filter = {} if used is None else {"used": used}
        return await self.find_many(filter, sort=[("created_at", DESCENDING)])

    async def claim(
        self,
        card_number: str,
        used_by: dict[str, Any],
        timestamp: str,
    ) -> Document | None:
        """
        Mark an unused card as used in a single atomic update.

        The filter only matches cards with used == False, so of two
        concurrent claims exactly one receives the card.

        Args:
            card_number: Formatted card number
            used_by: {"user_id": ObjectId, "email": str}
            timestamp: updated_at value

        Returns:
            The claimed card after update, None if missing or already used
        """
        return await self.collection.find_one_and_update(
            {"card_number": card_number, "used": False},
            {"$set": {"used": True, "used_by": used_by, "updated_at": timestamp}},
            return_document=ReturnDocument.AFTER,
        )

    async def release(self, id: ObjectId, timestamp: str) -> Document | None:
        """Undo a claim so the card can be redeemed again."""
        return await self.collection.find_one_and_update(
            {"_id": id, "used": True},
            {"$set": {"used": False, "used_by": None, "updated_at": timestamp}},
            return_document=ReturnDocument.AFTER,
        )


class RedeemCRUD(BaseCRUD):
    """CRUD operations for the user redeem ledger."""
