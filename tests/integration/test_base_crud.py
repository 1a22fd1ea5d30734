"""
Test suite for BaseCRUD generic database operations.

Tests basic CRUD functionality: create, read (by ID and many), update,
delete, exists. Uses a mocked pymongo collection to verify the issued
queries.

System role: Verification of generic database layer foundation
"""

from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import pytest
from bson import ObjectId
from pymongo import ReturnDocument
from pymongo.errors import DuplicateKeyError

from debrid_proxy.boundary.db.CRUD.base_crud import BaseCRUD
from debrid_proxy.core.exceptions import ConflictError


@pytest.fixture
def mock_collection() -> MagicMock:
    """Provide mock async collection."""
    collection = MagicMock()
    collection.insert_one = AsyncMock()
    collection.find_one = AsyncMock()
    collection.find_one_and_update = AsyncMock()
    collection.delete_one = AsyncMock()
    return collection


@pytest.fixture
def base_crud(mock_collection: MagicMock) -> BaseCRUD:
    """Provide BaseCRUD instance for testing."""
    return BaseCRUD(mock_collection)


@pytest.fixture
def sample_id() -> ObjectId:
    """Provide sample ObjectId for testing."""
    return ObjectId()


class TestBaseCRUDCreate:
    """Test suite for BaseCRUD.create() method."""

    @pytest.mark.asyncio
    async def test_create_should_return_document_with_generated_id(
        self, base_crud: BaseCRUD, mock_collection: MagicMock, sample_id: ObjectId
    ) -> None:
        """Test create inserts a copy and attaches the inserted id."""
        # Arrange
        mock_collection.insert_one.return_value = SimpleNamespace(inserted_id=sample_id)
        payload = {"email": "a@example.com"}

        # Act
        result = await base_crud.create(payload)

        # Assert
        assert result == {"email": "a@example.com", "_id": sample_id}
        assert "_id" not in payload
        mock_collection.insert_one.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_create_should_translate_duplicate_key(
        self, base_crud: BaseCRUD, mock_collection: MagicMock
    ) -> None:
        """Test unique index violations surface as ConflictError."""
        # Arrange
        mock_collection.insert_one.side_effect = DuplicateKeyError("E11000 duplicate key")

        # Act & Assert
        with pytest.raises(ConflictError, match="Document already exists"):
            await base_crud.create({"email": "a@example.com"})


class TestBaseCRUDRead:
    """Test suite for BaseCRUD read methods."""

    @pytest.mark.asyncio
    async def test_get_by_id_should_filter_on_id(
        self, base_crud: BaseCRUD, mock_collection: MagicMock, sample_id: ObjectId
    ) -> None:
        """Test get_by_id queries by _id."""
        # Arrange
        mock_collection.find_one.return_value = {"_id": sample_id}

        # Act
        result = await base_crud.get_by_id(sample_id)

        # Assert
        assert result == {"_id": sample_id}
        mock_collection.find_one.assert_awaited_once_with({"_id": sample_id})

    @pytest.mark.asyncio
    async def test_find_many_should_chain_sort_skip_and_limit(
        self, base_crud: BaseCRUD, mock_collection: MagicMock
    ) -> None:
        """Test cursor modifiers are applied before materialising."""
        # Arrange
        cursor = MagicMock()
        cursor.sort.return_value = cursor
        cursor.skip.return_value = cursor
        cursor.limit.return_value = cursor
        cursor.to_list = AsyncMock(return_value=[{"n": 1}])
        mock_collection.find.return_value = cursor

        # Act
        result = await base_crud.find_many(
            {"deleted": False}, sort=[("created_at", -1)], limit=5, offset=10
        )

        # Assert
        assert result == [{"n": 1}]
        mock_collection.find.assert_called_once_with({"deleted": False})
        cursor.sort.assert_called_once_with([("created_at", -1)])
        cursor.skip.assert_called_once_with(10)
        cursor.limit.assert_called_once_with(5)
        cursor.to_list.assert_awaited_once_with(length=None)

    @pytest.mark.asyncio
    async def test_find_many_without_options_should_not_modify_cursor(
        self, base_crud: BaseCRUD, mock_collection: MagicMock
    ) -> None:
        """Test find_many with defaults queries everything."""
        # Arrange
        cursor = MagicMock()
        cursor.to_list = AsyncMock(return_value=[])
        mock_collection.find.return_value = cursor

        # Act
        await base_crud.find_many()

        # Assert
        mock_collection.find.assert_called_once_with({})
        cursor.sort.assert_not_called()
        cursor.skip.assert_not_called()
        cursor.limit.assert_not_called()

    @pytest.mark.asyncio
    async def test_exists_should_project_id_only(
        self, base_crud: BaseCRUD, mock_collection: MagicMock
    ) -> None:
        """Test exists returns a bool from a projected lookup."""
        # Arrange
        mock_collection.find_one.return_value = None

        # Act
        result = await base_crud.exists({"email": "a@example.com"})

        # Assert
        assert result is False
        mock_collection.find_one.assert_awaited_once_with(
            {"email": "a@example.com"}, projection={"_id": 1}
        )


class TestBaseCRUDUpdate:
    """Test suite for BaseCRUD.update_by_id() method."""

    @pytest.mark.asyncio
    async def test_update_should_combine_set_unset_and_extra_filter(
        self, base_crud: BaseCRUD, mock_collection: MagicMock, sample_id: ObjectId
    ) -> None:
        """Test update builds one atomic find_one_and_update."""
        # Arrange
        mock_collection.find_one_and_update.return_value = {"_id": sample_id, "a": 1}

        # Act
        result = await base_crud.update_by_id(
            sample_id, {"a": 1}, unset_fields=["b"], extra_filter={"used": False}
        )

        # Assert
        assert result == {"_id": sample_id, "a": 1}
        mock_collection.find_one_and_update.assert_awaited_once_with(
            {"_id": sample_id, "used": False},
            {"$set": {"a": 1}, "$unset": {"b": ""}},
            return_document=ReturnDocument.AFTER,
        )

    @pytest.mark.asyncio
    async def test_update_with_nothing_should_return_current_document(
        self, base_crud: BaseCRUD, mock_collection: MagicMock, sample_id: ObjectId
    ) -> None:
        """Test empty update falls back to a plain read."""
        # Arrange
        mock_collection.find_one.return_value = {"_id": sample_id}

        # Act
        result = await base_crud.update_by_id(sample_id)

        # Assert
        assert result == {"_id": sample_id}
        mock_collection.find_one_and_update.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_update_should_translate_duplicate_key(
        self, base_crud: BaseCRUD, mock_collection: MagicMock, sample_id: ObjectId
    ) -> None:
        """Test unique index violations on update surface as ConflictError."""
        # Arrange
        mock_collection.find_one_and_update.side_effect = DuplicateKeyError("E11000")

        # Act & Assert
        with pytest.raises(ConflictError):
            await base_crud.update_by_id(sample_id, {"email": "taken@example.com"})


class TestBaseCRUDDelete:
    """Test suite for BaseCRUD.delete_by_id() method."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize(("deleted_count", "expected"), [(1, True), (0, False)])
    async def test_delete_should_report_whether_document_existed(
        self,
        base_crud: BaseCRUD,
        mock_collection: MagicMock,
        sample_id: ObjectId,
        deleted_count: int,
        expected: bool,
    ) -> None:
        """Test delete returns True only when a document was removed."""
        # Arrange
        mock_collection.delete_one.return_value = SimpleNamespace(deleted_count=deleted_count)

        # Act
        result = await base_crud.delete_by_id(sample_id)

        # Assert
        assert result is expected
        mock_collection.delete_one.assert_awaited_once_with({"_id": sample_id})
