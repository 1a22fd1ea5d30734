"""
Storage quota rules.

A quota whose storage_expired_at has passed is zeroed the next time the
user is read, and persisted so later reads agree.

Dependencies: debrid_proxy.boundary.db.CRUD, debrid_proxy.core.time_utils
System role: Storage expiration shared by user and gift card services
"""

import logging
from datetime import datetime
from typing import Any

from debrid_proxy.boundary.db.CRUD import UserCRUD
from debrid_proxy.core.time_utils import china_now, is_past, to_china_iso

logger = logging.getLogger(__name__)


def apply_storage_expiration(
    doc: dict[str, Any] | None, now: datetime | None = None
) -> tuple[dict[str, Any] | None, bool]:
    """
    Zero out storage fields when the stored quota is already expired.

    Returns:
        tuple: (possibly updated copy of doc, whether it changed)
    """
    if not doc or not doc.get("storage_expired_at"):
        return doc, False

    expired = is_past(doc["storage_expired_at"], now or china_now())
    if not expired:
        return doc, False
    if doc.get("storage_all") == 0 and doc.get("storage_used") == 0:
        return doc, False

    return {**doc, "storage_all": 0, "storage_used": 0}, True


async def refresh_storage_if_expired(
    users: UserCRUD, doc: dict[str, Any] | None
) -> dict[str, Any] | None:
    """Apply expiration and persist it when something changed."""
    updated, expired = apply_storage_expiration(doc)
    if not expired:
        return updated

    timestamp = to_china_iso()
    persisted = await users.update_by_id(
        doc["_id"],
        {"storage_all": 0, "storage_used": 0, "updated_at": timestamp},
    )
    logger.info("Expired storage quota reset", extra={"user_id": str(doc["_id"])})
    return persisted or {**updated, "updated_at": timestamp}
