"""
Transaction service orchestrator.

Validates and records billing transactions. Timestamps and order dates
are stored as UTC ISO strings.

Dependencies: debrid_proxy.boundary.db.CRUD, debrid_proxy.core.validators
System role: Transaction use case orchestration
"""

import logging
from typing import Any, Mapping

from bson import ObjectId

from debrid_proxy.boundary.db.CRUD import TransactionCRUD
from debrid_proxy.core.exceptions import ConflictError, NotFoundError, PermissionDeniedError, ValidationError
from debrid_proxy.core.permissions import is_admin
from debrid_proxy.core.time_utils import utc_now_iso
from debrid_proxy.core.validators import (
    ensure_object_id,
    normalize_email,
    parse_bool,
    parse_metadata,
    parse_non_empty_string,
    parse_non_negative_number,
    parse_optional_string,
    parse_required_utc_date,
)
from debrid_proxy.models.transaction import TransactionResponse

logger = logging.getLogger(__name__)

ORDER_KEY_MAX_LENGTH = 120
ORDER_DESC_MAX_LENGTH = 1000

# field -> (default on create, max length)
OPTIONAL_STRING_FIELDS: dict[str, tuple[str | None, int]] = {
    "status": ("pending", 60),
    "currency": ("USD", 10),
    "payment_method": (None, 60),
    "payment_reference": (None, 120),
}


def _object_id(value: Any, field: str) -> ObjectId:
    return ensure_object_id(value, f"{field} must be a valid id", field=field)


def to_transaction_response(doc: Mapping[str, Any]) -> TransactionResponse:
    return TransactionResponse(
        id=str(doc["_id"]),
        user_id=str(doc["user_id"]),
        user_email=doc["user_email"],
        order_amount=doc["order_amount"],
        order_date=doc["order_date"],
        order_key=doc["order_key"],
        order_desc=doc["order_desc"],
        status=doc.get("status"),
        currency=doc.get("currency"),
        payment_method=doc.get("payment_method"),
        payment_reference=doc.get("payment_reference"),
        metadata=doc.get("metadata") or {},
        deleted=bool(doc.get("deleted")),
        created_at=doc.get("created_at"),
        updated_at=doc.get("updated_at"),
    )


def build_transaction_document(payload: Mapping[str, Any]) -> dict[str, Any]:
    """
    Validate a create payload into a new transaction document.

    Raises:
        ValidationError: On the first invalid field
    """
    document: dict[str, Any] = {
        "user_id": _object_id(payload.get("user_id"), "user_id"),
        "user_email": normalize_email(payload.get("user_email"), "user_email"),
        "order_amount": parse_non_negative_number(payload.get("order_amount"), "order_amount"),
        "order_date": parse_required_utc_date(payload.get("order_date"), "order_date"),
        "order_key": parse_non_empty_string(
            payload.get("order_key"), "order_key", max_length=ORDER_KEY_MAX_LENGTH
        ),
        "order_desc": parse_non_empty_string(
            payload.get("order_desc"), "order_desc", max_length=ORDER_DESC_MAX_LENGTH
        ),
    }
    for field, (fallback, max_length) in OPTIONAL_STRING_FIELDS.items():
        document[field] = parse_optional_string(
            payload.get(field), field, fallback=fallback, max_length=max_length
        )

    timestamp = utc_now_iso()
    document.update(
        metadata=parse_metadata(payload.get("metadata")),
        deleted=False,
        created_at=timestamp,
        updated_at=timestamp,
    )
    return document


def build_transaction_updates(payload: Mapping[str, Any]) -> dict[str, Any]:
    """
    Validate a partial update; blank optional strings become null.

    Raises:
        ValidationError: On invalid fields or when nothing is updatable
    """
    updates: dict[str, Any] = {}

    if "user_id" in payload:
        updates["user_id"] = _object_id(payload["user_id"], "user_id")
    if "user_email" in payload:
        updates["user_email"] = normalize_email(payload["user_email"], "user_email")
    if "order_amount" in payload:
        updates["order_amount"] = parse_non_negative_number(payload["order_amount"], "order_amount")
    if "order_date" in payload:
        updates["order_date"] = parse_required_utc_date(payload["order_date"], "order_date")
    if "order_key" in payload:
        updates["order_key"] = parse_non_empty_string(
            payload["order_key"], "order_key", max_length=ORDER_KEY_MAX_LENGTH
        )
    if "order_desc" in payload:
        updates["order_desc"] = parse_non_empty_string(
            payload["order_desc"], "order_desc", max_length=ORDER_DESC_MAX_LENGTH
        )
    for field, (_, max_length) in OPTIONAL_STRING_FIELDS.items():
        if field in payload:
            updates[field] = parse_optional_string(
                payload[field], field, max_length=max_length
            )
    if "metadata" in payload:
        updates["metadata"] = parse_metadata(payload["metadata"])
    if "deleted" in payload:
        updates["deleted"] = parse_bool(payload["deleted"], False)

    if not updates:
        raise ValidationError("No valid fields provided for update")

    updates["updated_at"] = utc_now_iso()
    return updates


class TransactionService:
    """Transaction service orchestrator."""

    def __init__(self, transactions: TransactionCRUD) -> None:
        self.transactions = transactions

    async def list_transactions(
        self,
        current: Mapping[str, Any],
        include_deleted: Any = None,
        user_id: str | None = None,
        user_email: str | None = None,
        order_key: str | None = None,
        status: str | None = None,
    ) -> list[TransactionResponse]:
        """
        List transactions matching the query filters, newest first.

        Non-admin callers only ever see their own transactions.

        Args:
            current: Authenticated caller
            include_deleted: Truthy string/bool to include soft-deleted rows
            user_id: Filter by owner id
            user_email: Filter by owner email
            order_key: Filter by exact order key
            status: Filter by status; blank values are ignored

        Raises:
            ValidationError: If a filter value is malformed
            PermissionDeniedError: If a non-admin filters on another user
        """
        filter: dict[str, Any] = {} if parse_bool(include_deleted, False) else {"deleted": False}

        if user_id:
            filter["user_id"] = _object_id(user_id, "userId")
        if user_email:
            filter["user_email"] = normalize_email(user_email, "userEmail")
        if order_key:
            filter["order_key"] = parse_non_empty_string(
                order_key, "orderKey", max_length=ORDER_KEY_MAX_LENGTH
            )
        if status is not None:
            parsed_status = parse_optional_string(status, "status", max_length=60)
            if parsed_status is not None:
                filter["status"] = parsed_status

        if not is_admin(current):
            if filter.get("user_id", current["_id"]) != current["_id"]:
                raise PermissionDeniedError()
            filter["user_id"] = current["_id"]

        docs = await self.transactions.list_transactions(filter)
        return [to_transaction_response(doc) for doc in docs]

    async def _get_document(self, transaction_id: Any) -> dict[str, Any]:
        oid = _object_id(transaction_id, "id")
        doc = await self.transactions.get_by_id(oid)
        if not doc:
            raise NotFoundError("Transaction not found", {"transaction_id": str(oid)})
        return doc

    async def get_transaction(
        self, transaction_id: Any, current: Mapping[str, Any]
    ) -> TransactionResponse:
        doc = await self._get_document(transaction_id)
        if not is_admin(current) and doc.get("user_id") != current["_id"]:
            raise PermissionDeniedError()
        return to_transaction_response(doc)

    async def create_transaction(self, payload: Mapping[str, Any]) -> TransactionResponse:
        """
        Record a new transaction.

        Raises:
            ValidationError: If the payload is invalid
            ConflictError: If the order_key is already used
        """
        document = build_transaction_document(payload)
        if await self.transactions.order_key_exists(document["order_key"]):
            raise ConflictError(TransactionCRUD.duplicate_message)

        created = await self.transactions.create(document)
        logger.info(
            "Transaction created",
            extra={"transaction_id": str(created["_id"]), "order_key": created["order_key"]},
        )
        return to_transaction_response(created)

    async def update_transaction(
        self, transaction_id: Any, payload: Mapping[str, Any]
    ) -> TransactionResponse:
        current = await self._get_document(transaction_id)
        updates = build_transaction_updates(payload)

        new_key = updates.get("order_key")
        if new_key and new_key != current.get("order_key"):
            if await self.transactions.order_key_exists(new_key, exclude_id=current["_id"]):
                raise ConflictError(TransactionCRUD.duplicate_message)

        updated = await self.transactions.update_by_id(current["_id"], updates)
        if not updated:
            raise NotFoundError("Transaction not found", {"transaction_id": str(current["_id"])})
        logger.info("Transaction updated", extra={"transaction_id": str(current["_id"])})
        return to_transaction_response(updated)

    async def delete_transaction(self, transaction_id: Any) -> TransactionResponse:
        oid = _object_id(transaction_id, "id")
        deleted = await self.transactions.soft_delete(oid, utc_now_iso())
        if not deleted:
            raise NotFoundError("Transaction not found", {"transaction_id": str(oid)})
        logger.info("Transaction soft-deleted", extra={"transaction_id": str(oid)})
        return to_transaction_response(deleted)
