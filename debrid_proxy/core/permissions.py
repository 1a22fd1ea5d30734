"""
Role checks for authenticated callers.

Dependencies: bson
System role: Authorization rules shared by services and routers
"""

from typing import Any, Mapping

from bson import ObjectId

from debrid_proxy.core.exceptions import AuthenticationError, PermissionDeniedError

ADMIN_ROLE = "admin"
DEFAULT_ROLE = "standard"


def is_admin(user: Mapping[str, Any] | None) -> bool:
    return bool(user) and (user.get("role") or DEFAULT_ROLE) == ADMIN_ROLE


def ensure_admin(user: Mapping[str, Any] | None) -> None:
    if not is_admin(user):
        raise PermissionDeniedError()


def ensure_self_access(requested_user_id: ObjectId, user: Mapping[str, Any] | None) -> None:
    """
    Allow admins, or callers acting on their own user id.

    Raises:
        AuthenticationError: If there is no caller
        PermissionDeniedError: If a non-admin targets another user
    """
    if not user or not user.get("_id"):
        raise AuthenticationError("Invalid token")
    if is_admin(user):
        return
    if user["_id"] != requested_user_id:
        raise PermissionDeniedError()
