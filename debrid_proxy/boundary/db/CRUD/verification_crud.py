"""
Email verification CRUD operations.

One pending verification record per user: issuing a new one removes the
previous records for that user.

Dependencies: pymongo, bson
System role: Email verification token persistence
"""

from datetime import datetime
from typing import Any

from bson import ObjectId

from debrid_proxy.boundary.db.CRUD.base_crud import BaseCRUD, Document


class VerificationCRUD(BaseCRUD):
    """CRUD operations for the verify-email collection."""

    async def replace_for_user(
        self,
        user_id: ObjectId,
        email: str,
        token: str,
        expires_at: datetime,
        created_at: datetime,
    ) -> Document:
        """
        Drop any earlier requests for the user and store a new one.

        Returns:
            The inserted verification record
        """
        await self.collection.delete_many({"user_id": user_id})
        record: dict[str, Any] = {
            "user_id": user_id,
            "email": email,
            "token": token,
            "expires_at": expires_at,
            "created_at": created_at,
            "used_at": None,
        }
        return await self.create(record)

    async def get_by_token(self, token: str) -> Document | None:
        return await self.find_one({"token": token})

    async def mark_used(self, id: ObjectId, used_at: datetime) -> Document | None:
        return await self.update_by_id(id, {"used_at": used_at})
