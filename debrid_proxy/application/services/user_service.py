"""
User service orchestrator.

Coordinates account lifecycle: bearer authentication, CRUD with role
checks, login, password reset and email-verified registration.

Dependencies: debrid_proxy.boundary.db.CRUD, debrid_proxy.boundary.mail,
    debrid_proxy.core.security
System role: User use case orchestration
"""

import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Mapping

from bson import ObjectId

from debrid_proxy.application.services.storage_policy import refresh_storage_if_expired
from debrid_proxy.boundary.db.CRUD import UserCRUD, VerificationCRUD
from debrid_proxy.boundary.mail.mailersend_client import MailerSendClient
from debrid_proxy.core.exceptions import (
    AuthenticationError,
    ConflictError,
    NotFoundError,
    PermissionDeniedError,
    ValidationError,
)
from debrid_proxy.core.permissions import DEFAULT_ROLE, ensure_self_access, is_admin
from debrid_proxy.core.security import (
    RESET_TOKEN_BYTES,
    VERIFICATION_TOKEN_BYTES,
    TokenIssuer,
    extract_bearer_token,
    generate_hex_token,
    hash_password,
    verify_password,
)
from debrid_proxy.core.time_utils import china_now, is_past, parse_timestamp, to_china_iso
from debrid_proxy.core.validators import (
    enforce_storage_invariant,
    ensure_object_id,
    normalize_email,
    parse_bool,
    parse_non_negative_number,
    parse_nullable_china_date,
    parse_password,
    parse_required_token,
)
from debrid_proxy.models.common import MessageResponse
from debrid_proxy.models.user import AuthResponse, UserResponse

logger = logging.getLogger(__name__)

PASSWORD_RESET_TTL = timedelta(hours=1)
EMAIL_VERIFICATION_TTL = timedelta(hours=24)
DEFAULT_STORAGE_TTL = timedelta(days=7)

SELF_SERVICE_FIELDS = frozenset({"email", "password"})

RESET_REQUESTED_MESSAGE = (
    "If an account exists for the provided email, password reset instructions have been sent."
)
PASSWORD_UPDATED_MESSAGE = "Password updated successfully"
VERIFICATION_SENT_MESSAGE = "Verification email sent"
ALREADY_ACTIVE_MESSAGE = "Email account is already active"


def to_user_response(doc: Mapping[str, Any]) -> UserResponse:
    """Public view of a user document; password and tokens are omitted."""
    return UserResponse(
        id=str(doc["_id"]),
        email=doc["email"],
        email_verified=bool(doc.get("email_verified")),
        email_verified_at=doc.get("email_verified_at"),
        storage_all=doc.get("storage_all", 0),
        storage_used=doc.get("storage_used", 0),
        storage_expired_at=doc.get("storage_expired_at"),
        deleted=bool(doc.get("deleted")),
        role=doc.get("role") or DEFAULT_ROLE,
        created_at=doc.get("created_at"),
        updated_at=doc.get("updated_at"),
        last_login_at=doc.get("last_login_at"),
    )


def build_user_document(payload: Mapping[str, Any]) -> dict[str, Any]:
    """
    Validate a create payload into a new user document.

    Storage defaults to 0/0 and expires seven days from now; the
    password is stored as a bcrypt hash.

    Raises:
        ValidationError: On any invalid field
    """
    email = normalize_email(payload.get("email"))
    password = parse_password(payload.get("password"))
    storage_all = parse_non_negative_number(payload.get("storage_all", 0), "storage_all")
    storage_used = parse_non_negative_number(payload.get("storage_used", 0), "storage_used")
    role = payload.get("role")
    role = role.strip() if isinstance(role, str) and role.strip() else DEFAULT_ROLE

    enforce_storage_invariant(storage_all, storage_used)

    timestamp = to_china_iso()
    email_verified = parse_bool(payload.get("email_verified"), False)
    email_verified_at = None
    if email_verified:
        email_verified_at = (
            parse_nullable_china_date(payload.get("email_verified_at"), "email_verified_at")
            or timestamp
        )

    return {
        "email": email,
        "password": hash_password(password),
        "storage_all": storage_all,
        "storage_used": storage_used,
        "storage_expired_at": to_china_iso(china_now() + DEFAULT_STORAGE_TTL),
        "deleted": parse_bool(payload.get("deleted"), False),
        "role": role,
        "created_at": timestamp,
        "updated_at": timestamp,
        "token": None,
        "last_login_at": None,
        "password_reset_token": None,
        "password_reset_token_expires_at": None,
        "email_verified": email_verified,
        "email_verified_at": email_verified_at,
    }


def build_user_updates(payload: Mapping[str, Any], current: Mapping[str, Any]) -> dict[str, Any]:
    """
    Validate a partial update against the current document.

    Only keys present in the payload are considered. The storage
    invariant is checked on the merged values.

    Raises:
        ValidationError: On invalid fields or when nothing is updatable
    """
    updates: dict[str, Any] = {}
    next_storage_all = current.get("storage_all", 0)
    next_storage_used = current.get("storage_used", 0)

    if "email" in payload:
        updates["email"] = normalize_email(payload["email"])
    if "password" in payload:
        updates["password"] = hash_password(parse_password(payload["password"]))
    if "storage_all" in payload:
        next_storage_all = parse_non_negative_number(payload["storage_all"], "storage_all")
        updates["storage_all"] = next_storage_all
    if "storage_used" in payload:
        next_storage_used = parse_non_negative_number(payload["storage_used"], "storage_used")
        updates["storage_used"] = next_storage_used

    enforce_storage_invariant(next_storage_all, next_storage_used)

    if "storage_expired_at" in payload:
        updates["storage_expired_at"] = parse_nullable_china_date(
            payload["storage_expired_at"], "storage_expired_at"
        )
    if "deleted" in payload:
        updates["deleted"] = parse_bool(payload["deleted"], bool(current.get("deleted")))
    if "role" in payload:
        role = payload["role"]
        if not isinstance(role, str) or not role.strip():
            raise ValidationError("role must be a non-empty string", field="role")
        updates["role"] = role.strip()

    if not updates:
        raise ValidationError("No valid fields provided for update")

    updates["updated_at"] = to_china_iso()
    return updates


class UserService:
    """User service orchestrator."""

    def __init__(
        self,
        users: UserCRUD,
        verifications: VerificationCRUD,
        tokens: TokenIssuer,
        mailer: MailerSendClient,
    ) -> None:
        """
        Initialize user service.

        Args:
            users: CRUD for the users collection
            verifications: CRUD for pending email verifications
            tokens: JWT issuer/verifier
            mailer: Transactional email client
        """
        self.users = users
        self.verifications = verifications
        self.tokens = tokens
        self.mailer = mailer

    async def authenticate(self, authorization: str | None) -> dict[str, Any]:
        """
        Resolve the caller from an Authorization header.

        Returns:
            dict: The active user document

        Raises:
            AuthenticationError: "Invalid token" on any credential failure
        """
        try:
            payload = self.tokens.decode(extract_bearer_token(authorization))
        except AuthenticationError as e:
            raise AuthenticationError("Invalid token") from e

        subject = payload.get("sub")
        if not isinstance(subject, str) or not ObjectId.is_valid(subject):
            raise AuthenticationError("Invalid token")

        user = await self.users.get_active_by_id(ObjectId(subject))
        if not user:
            raise AuthenticationError("Invalid token")
        return user

    async def list_users(
        self, current: Mapping[str, Any], include_deleted: bool = False
    ) -> list[UserResponse]:
        """
        List users visible to the caller.

        Admins see every user; anyone else gets a one-element list with
        their own account.
        """
        if is_admin(current):
            docs = await self.users.list_users(include_deleted=include_deleted)
            return [to_user_response(doc) for doc in docs]

        doc = await self.users.get_by_id(current["_id"])
        if not doc:
            raise NotFoundError("User not found")
        doc = await refresh_storage_if_expired(self.users, doc)
        return [to_user_response(doc)]

    async def get_user(self, user_id: Any, current: Mapping[str, Any]) -> UserResponse:
        oid = ensure_object_id(user_id, "Invalid user id")
        ensure_self_access(oid, current)

        doc = await self.users.get_by_id(oid)
        if not doc:
            raise NotFoundError("User not found", {"user_id": str(oid)})
        doc = await refresh_storage_if_expired(self.users, doc)
        return to_user_response(doc)

    async def _insert_user(self, payload: Mapping[str, Any]) -> dict[str, Any]:
        doc = build_user_document(payload)
        if await self.users.email_taken(doc["email"]):
            raise ConflictError("A user with this email already exists")
        created = await self.users.create(doc)
        logger.info("User created", extra={"user_id": str(created["_id"])})
        return created

    async def create_user(self, payload: Mapping[str, Any]) -> UserResponse:
        """
        Create a user from an admin request.

        Raises:
            ValidationError: If the payload is invalid
            ConflictError: If the email is already registered
        """
        return to_user_response(await self._insert_user(payload))

    async def update_user(
        self,
        user_id: Any,
        payload: Mapping[str, Any],
        current: Mapping[str, Any],
    ) -> UserResponse:
        """
        Apply a partial update.

        Non-admin callers may only change their own email and password.

        Raises:
            PermissionDeniedError: On access to another account or admin-only fields
            ConflictError: If the new email belongs to another user
        """
        oid = ensure_object_id(user_id, "Invalid user id")
        ensure_self_access(oid, current)
        if not is_admin(current) and set(payload) - SELF_SERVICE_FIELDS:
            raise PermissionDeniedError()

        doc = await self.users.get_by_id(oid)
        if not doc:
            raise NotFoundError("User not found", {"user_id": str(oid)})

        updates = build_user_updates(payload, doc)
        new_email = updates.get("email")
        if new_email and new_email != doc.get("email"):
            if await self.users.email_taken(new_email, exclude_id=oid):
                raise ConflictError("A user with this email already exists")

        updated = await self.users.update_by_id(oid, updates)
        if not updated:
            raise NotFoundError("User not found", {"user_id": str(oid)})
        logger.info(
            "User updated",
            extra={"user_id": str(oid), "fields": sorted(k for k in updates if k != "password")},
        )
        return to_user_response(updated)

    async def delete_user(self, user_id: Any, current: Mapping[str, Any]) -> UserResponse:
        oid = ensure_object_id(user_id, "Invalid user id")
        ensure_self_access(oid, current)

        deleted = await self.users.soft_delete(oid, to_china_iso())
        if not deleted:
            raise NotFoundError("User not found", {"user_id": str(oid)})
        logger.info("User soft-deleted", extra={"user_id": str(oid)})
        return to_user_response(deleted)

    async def _record_last_login(self, doc: dict[str, Any]) -> dict[str, Any]:
        timestamp = to_china_iso()
        await self.users.update_by_id(doc["_id"], {"last_login_at": timestamp})
        return {**doc, "last_login_at": timestamp}

    async def _issue_token(self, doc: Mapping[str, Any]) -> str:
        token = self.tokens.issue(str(doc["_id"]), doc["email"])
        if not await self.users.update_by_id(doc["_id"], {"token": token}):
            raise NotFoundError("User not found")
        return token

    async def login(self, email: Any, password: Any) -> AuthResponse:
        """
        Authenticate with email and password and issue a fresh token.

        Raises:
            AuthenticationError: "Invalid email or password" for unknown,
                deleted or mismatched credentials
        """
        normalized = normalize_email(email)
        password = parse_password(password)

        user = await self.users.get_by_email(normalized)
        if not user or user.get("deleted") or not verify_password(password, user.get("password")):
            logger.warning("Login rejected", extra={"email": normalized})
            raise AuthenticationError("Invalid email or password")

        user = await refresh_storage_if_expired(self.users, user)
        user = await self._record_last_login(user)
        token = await self._issue_token(user)
        logger.info("User logged in", extra={"user_id": str(user["_id"])})
        return AuthResponse(user=to_user_response(user), token=token)

    async def request_password_reset(self, email: Any) -> MessageResponse:
        """
        Store a one-hour reset token and email it.

        The response is identical whether or not the account exists.
        """
        normalized = normalize_email(email)
        user = await self.users.get_by_email(normalized, include_deleted=False)

        if user:
            token = generate_hex_token(RESET_TOKEN_BYTES)
            await self.users.update_by_id(
                user["_id"],
                {
                    "password_reset_token": token,
                    "password_reset_token_expires_at": to_china_iso(
                        china_now() + PASSWORD_RESET_TTL
                    ),
                    "updated_at": to_china_iso(),
                },
            )
            await self.mailer.send_password_reset_email(user["email"], token, to_name=user["email"])
            logger.info("Password reset requested", extra={"user_id": str(user["_id"])})

        return MessageResponse(message=RESET_REQUESTED_MESSAGE)

    async def _clear_reset_token(self, user_id: ObjectId) -> None:
        await self.users.update_by_id(
            user_id,
            {"updated_at": to_china_iso()},
            unset_fields=["password_reset_token", "password_reset_token_expires_at"],
        )

    async def confirm_password_reset(self, token: Any, password: Any) -> MessageResponse:
        """
        Replace the password of the account holding a valid reset token.

        Raises:
            ValidationError: If the token is unknown, malformed or expired
        """
        token = parse_required_token(token, "Reset token")
        password = parse_password(password)

        user = await self.users.get_by_reset_token(token)
        if not user:
            raise ValidationError("Invalid or expired reset token", field="token")

        expired = is_past(user.get("password_reset_token_expires_at"))
        if expired is None:
            await self._clear_reset_token(user["_id"])
            raise ValidationError("Invalid or expired reset token", field="token")
        if expired:
            await self._clear_reset_token(user["_id"])
            raise ValidationError("Reset token has expired", field="token")

        await self.users.update_by_id(
            user["_id"],
            {"password": hash_password(password), "updated_at": to_china_iso()},
            unset_fields=["password_reset_token", "password_reset_token_expires_at"],
        )
        logger.info("Password reset completed", extra={"user_id": str(user["_id"])})
        return MessageResponse(message=PASSWORD_UPDATED_MESSAGE)

    async def request_verification(self, email: Any, password: Any) -> MessageResponse:
        """
        Start registration: upsert an unverified account and email a token.

        Raises:
            ConflictError: If a verified account already uses the email
        """
        normalized = normalize_email(email)
        password = parse_password(password)
        credentials = {"email": normalized, "password": password}

        user = await self.users.get_by_email(normalized)
        if user:
            if user.get("email_verified"):
                raise ConflictError("A user with this email already exists")
            updates = build_user_updates(credentials, user)
            updates["email_verified"] = False
            updates["email_verified_at"] = None
            user = await self.users.update_by_id(user["_id"], updates)
            if not user:
                raise NotFoundError("User not found")
        else:
            user = await self._insert_user({**credentials, "email_verified": False})

        token = generate_hex_token(VERIFICATION_TOKEN_BYTES)
        now = datetime.now(timezone.utc)
        await self.verifications.replace_for_user(
            user["_id"], normalized, token, now + EMAIL_VERIFICATION_TTL, now
        )
        await self.mailer.send_verification_email(normalized, token, to_name=normalized)
        logger.info("Verification requested", extra={"user_id": str(user["_id"])})
        return MessageResponse(message=VERIFICATION_SENT_MESSAGE)

    async def register(self, token: Any) -> AuthResponse | MessageResponse:
        """
        Complete registration with a verification token.

        Returns:
            AuthResponse: For a newly verified account
            MessageResponse: If the account was already active

        Raises:
            ValidationError: If the token is unknown, expired or stale
        """
        token = parse_required_token(token, "Verification token")

        record = await self.verifications.get_by_token(token)
        if not record:
            raise ValidationError("Invalid or expired verification token", field="token")

        now = datetime.now(timezone.utc)
        expires_at = parse_timestamp(record.get("expires_at"))
        if expires_at is None or expires_at <= now:
            await self.verifications.delete_by_id(record["_id"])
            raise ValidationError("Invalid or expired verification token", field="token")

        user = await self.users.find_one({"_id": record["user_id"], "email": record["email"]})
        if not user:
            await self.verifications.delete_by_id(record["_id"])
            raise ValidationError("Invalid verification request", field="token")

        if not await self.verifications.mark_used(record["_id"], now):
            raise ValidationError("Invalid or expired verification token", field="token")

        if user.get("email_verified"):
            return MessageResponse(message=ALREADY_ACTIVE_MESSAGE)

        verified = await self.users.update_by_id(
            user["_id"], {"email_verified": True, "email_verified_at": to_china_iso()}
        )
        if not verified:
            raise NotFoundError("User not found")

        verified = await self._record_last_login(verified)
        auth_token = await self._issue_token(verified)
        logger.info("User registered", extra={"user_id": str(verified["_id"])})
        return AuthResponse(user=to_user_response(verified), token=auth_token)
