"""
User domain models and schemas.

Request/response schemas for account, login, password reset and email
verification operations. Request fields are loosely typed; business
rules and their error messages live in debrid_proxy.core.validators.

Dependencies: pydantic
System role: User API contracts
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class CreateUserRequest(BaseModel):
    """Request schema for creating a user."""

    model_config = ConfigDict(extra="ignore")

    email: Any = None
    password: Any = None
    storage_all: Any = Field(None, description="Total storage quota")
    storage_used: Any = Field(None, description="Consumed storage")
    deleted: Any = None
    role: Any = Field(None, description="standard or admin")
    email_verified: Any = None
    email_verified_at: Any = None


class UpdateUserRequest(BaseModel):
    """Request schema for partially updating a user; only sent fields apply."""

    model_config = ConfigDict(extra="ignore")

    email: Any = None
    password: Any = None
    storage_all: Any = None
    storage_used: Any = None
    storage_expired_at: Any = None
    deleted: Any = None
    role: Any = None


class LoginRequest(BaseModel):
    email: Any = None
    password: Any = None


class PasswordResetRequest(BaseModel):
    email: Any = None


class PasswordResetConfirmRequest(BaseModel):
    token: Any = None
    password: Any = None


class VerificationRequest(BaseModel):
    """Registration request; only credentials are accepted on this public route."""

    email: Any = None
    password: Any = None


class RegisterRequest(BaseModel):
    """Completes registration with the emailed verification token."""

    token: Any = None
    verification_token: Any = None


class UserResponse(BaseModel):
    """Public representation of a user; never includes secrets."""

    id: str
    email: str
    email_verified: bool
    email_verified_at: str | None = None
    storage_all: float
    storage_used: float
    storage_expired_at: str | None = None
    deleted: bool
    role: str
    created_at: str | None = None
    updated_at: str | None = None
    last_login_at: str | None = None


class AuthResponse(BaseModel):
    """Login and registration result."""

    user: UserResponse
    token: str
