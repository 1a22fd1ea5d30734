"""
User CRUD operations.

Provides user-specific queries on top of BaseCRUD: lookup by email or
password reset token, listing and soft deletion.

Dependencies: pymongo, bson
System role: User account persistence operations
"""

from bson import ObjectId
from pymongo import DESCENDING, ReturnDocument

from debrid_proxy.boundary.db.CRUD.base_crud import BaseCRUD, Document


class UserCRUD(BaseCRUD):
    """CRUD operations for the users collection."""

    duplicate_message = "A user with this email already exists"

    async def get_by_email(self, email: str, include_deleted: bool = True) -> Document | None:
        """
        Retrieve a user by normalised email.

        Args:
            email: Lower-cased email address
            include_deleted: Whether soft-deleted users match
        """
        filter: dict = {"email": email}
        if not include_deleted:
            filter["deleted"] = False
        return await self.find_one(filter)

    async def get_active_by_id(self, id: ObjectId) -> Document | None:
        """Retrieve a user that has not been soft-deleted."""
        return await self.find_one({"_id": id, "deleted": False})

    async def get_by_reset_token(self, token: str) -> Document | None:
        return await self.find_one({"password_reset_token": token, "deleted": False})

    async def list_users(self, include_deleted: bool = False) -> list[Document]:
        """List users newest first, hiding soft-deleted ones by default."""
        filter = {} if include_deleted else {"deleted": False}
        return await self.find_many(filter, sort=[("created_at", DESCENDING)])

    async def email_taken(self, email: str, exclude_id: ObjectId | None = None) -> bool:
        filter: dict = {"email": email}
        if exclude_id is not None:
            filter["_id"] = {"$ne": exclude_id}
        return await self.exists(filter)

    async def soft_delete(self, id: ObjectId, timestamp: str) -> Document | None:
        return await self.update_by_id(id, {"deleted": True, "updated_at": timestamp})

    async def credit_storage(
        self,
        id: ObjectId,
        storage: float,
        storage_expired_at: str,
        timestamp: str,
    ) -> Document | None:
        """
        Add storage to the remaining balance in one atomic update.

        storage_all becomes storage + (storage_all - storage_used) and
        storage_used is reset. The sum is evaluated by the server against
        the stored values, not a prior read.

        Returns:
            Updated user, None if not found
        """
        pipeline = [
            {
                "$set": {
                    "storage_all": {
                        "$add": [
                            storage,
                            {
                                "$subtract": [
                                    {"$ifNull": ["$storage_all", 0]},
                                    {"$ifNull": ["$storage_used", 0]},
                                ]
                            },
                        ]
                    },
                    "storage_used": 0,
                    "storage_expired_at": storage_expired_at,
                    "updated_at": timestamp,
                }
            }
        ]
        return await self.collection.find_one_and_update(
            {"_id": id}, pipeline, return_document=ReturnDocument.AFTER
        )
