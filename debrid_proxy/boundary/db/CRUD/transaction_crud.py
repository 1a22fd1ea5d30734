"""
Transaction CRUD operations.

Dependencies: pymongo, bson
System role: Billing transaction persistence
"""

from typing import Any, Mapping

from bson import ObjectId
from pymongo import DESCENDING

from debrid_proxy.boundary.db.CRUD.base_crud import BaseCRUD, Document


class TransactionCRUD(BaseCRUD):
    """CRUD operations for the transactions collection."""

    duplicate_message = "A transaction with this order_key already exists"

    async def list_transactions(self, filter: Mapping[str, Any]) -> list[Document]:
        """List transactions matching a filter, newest first."""
        return await self.find_many(filter, sort=[("created_at", DESCENDING)])

    async def order_key_exists(self, order_key: str, exclude_id: ObjectId | None = None) -> bool:
        filter: dict[str, Any] = {"order_key": order_key}
        if exclude_id is not None:
            filter["_id"] = {"$ne": exclude_id}
        return await self.exists(filter)

    async def soft_delete(self, id: ObjectId, timestamp: str) -> Document | None:
        return await self.update_by_id(id, {"deleted": True, "updated_at": timestamp})
