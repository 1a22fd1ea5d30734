"""
Base CRUD operations for MongoDB collections.

Provides generic Create, Read, Update, Delete operations that can be
inherited and extended by collection-specific CRUD classes.

Dependencies: pymongo, bson
System role: Foundation for all database CRUD operations
"""

from typing import Any, Mapping, Sequence

from bson import ObjectId
from pymongo import ReturnDocument
from pymongo.asynchronous.collection import AsyncCollection
from pymongo.errors import DuplicateKeyError

from debrid_proxy.core.exceptions import ConflictError

Document = dict[str, Any]
SortSpec = Sequence[tuple[str, int]]


class BaseCRUD:
    """
    Generic base class for CRUD operations on one collection.

    Provides standard database operations that work with any document
    shape. Subclasses add collection-specific queries.

    Attributes:
        collection: The pymongo async collection to operate on
        duplicate_message: Message for ConflictError on unique index violations
    """

    duplicate_message = "Document already exists"

    def __init__(self, collection: AsyncCollection) -> None:
        """
        Initialize CRUD with target collection.

        Args:
            collection: Async collection for database operations
        """
        self.collection = collection

    async def create(self, document: Mapping[str, Any]) -> Document:
        """
        Insert a new document.

        Args:
            document: Field values (without _id)

        Returns:
            Inserted document including its generated _id

        Raises:
            ConflictError: If a unique index rejects the document
        """
        doc = dict(document)
        try:
            result = await self.collection.insert_one(doc)
        except DuplicateKeyError as e:
            raise ConflictError(self.duplicate_message) from e
        doc["_id"] = result.inserted_id
        return doc

    async def get_by_id(self, id: ObjectId) -> Document | None:
        """
        Retrieve a single document by _id.

        Returns:
            Document if found, None otherwise
        """
        return await self.collection.find_one({"_id": id})

    async def find_one(self, filter: Mapping[str, Any]) -> Document | None:
        return await self.collection.find_one(dict(filter))

    async def find_many(
        self,
        filter: Mapping[str, Any] | None = None,
        sort: SortSpec | None = None,
        limit: int | None = None,
        offset: int = 0,
    ) -> list[Document]:
        """
        Retrieve documents matching a filter.

        Args:
            filter: Query filter (all documents if None)
            sort: List of (field, direction) pairs
            limit: Maximum number of documents to return (None for all)
            offset: Number of documents to skip

        Returns:
            List of documents
        """
        cursor = self.collection.find(dict(filter or {}))
        if sort:
            cursor = cursor.sort(list(sort))
        if offset:
            cursor = cursor.skip(offset)
        if limit is not None:
            cursor = cursor.limit(limit)
        return await cursor.to_list(length=None)

    async def update_by_id(
        self,
        id: ObjectId,
        set_fields: Mapping[str, Any] | None = None,
        unset_fields: Sequence[str] | None = None,
        extra_filter: Mapping[str, Any] | None = None,
    ) -> Document | None:
        """
        Atomically update a document and return its new state.

        Args:
            id: Document _id
            set_fields: Fields to $set
            unset_fields: Field names to $unset
            extra_filter: Additional match conditions (compare-and-set)

        Returns:
            Updated document if matched, None otherwise

        Raises:
            ConflictError: If the update violates a unique index
        """
        update: dict[str, Any] = {}
        if set_fields:
            update["$set"] = dict(set_fields)
        if unset_fields:
            update["$unset"] = {field: "" for field in unset_fields}
        if not update:
            return await self.get_by_id(id)

        filter = {"_id": id, **dict(extra_filter or {})}
        try:
            return await self.collection.find_one_and_update(
                filter, update, return_document=ReturnDocument.AFTER
            )
        except DuplicateKeyError as e:
            raise ConflictError(self.duplicate_message) from e

    async def delete_by_id(self, id: ObjectId) -> bool:
        """
        Hard-delete a document.

        Returns:
            True if a document was deleted, False if not found
        """
        result = await self.collection.delete_one({"_id": id})
        return result.deleted_count > 0

    async def exists(self, filter: Mapping[str, Any]) -> bool:
        """Check whether any document matches the filter."""
        return await self.collection.find_one(dict(filter), projection={"_id": 1}) is not None
