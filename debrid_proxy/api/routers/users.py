"""
User API endpoints.

Routes:
- GET /users - List users (admin: all; others: self)
- POST /users - Create user (admin)
- GET /users/{id} - Get user (self or admin)
- PUT /users/{id} - Update user (self or admin)
- DELETE /users/{id} - Soft-delete user (self or admin)
- POST /users/login - Email/password login
- POST /users/reset-password/request - Email a reset token
- POST /users/reset-password/confirm - Set a new password
- POST /users/register/request-verification - Start registration
- POST /users/register - Complete registration

Dependencies: debrid_proxy.application.services, debrid_proxy.models
System role: User management HTTP API
"""

import logging
from typing import Any

from fastapi import APIRouter, Depends, Query, Response, status

from debrid_proxy.api.deps.dependencies import get_current_user, get_user_service, require_admin
from debrid_proxy.application.services import UserService
from debrid_proxy.core.validators import parse_bool
from debrid_proxy.models.common import MessageResponse, SuccessResponse
from debrid_proxy.models.user import (
    AuthResponse,
    CreateUserRequest,
    LoginRequest,
    PasswordResetConfirmRequest,
    PasswordResetRequest,
    RegisterRequest,
    UpdateUserRequest,
    UserResponse,
    VerificationRequest,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/users", tags=["users"])


@router.get("", response_model=SuccessResponse[list[UserResponse]])
async def list_users(
    include_deleted: str | None = Query(None, alias="includeDeleted"),
    current_user: dict[str, Any] = Depends(get_current_user),
    user_service: UserService = Depends(get_user_service),
) -> SuccessResponse[list[UserResponse]]:
    """
    List users visible to the caller.

    Args:
        include_deleted: "true"/"1" to include soft-deleted users (admin only)
        current_user: Authenticated caller
        user_service: Injected UserService

    Returns:
        SuccessResponse[list[UserResponse]]: Users, newest first
    """
    users = await user_service.list_users(
        current_user, include_deleted=parse_bool(include_deleted, False)
    )
    return SuccessResponse(value=users)


@router.post("", response_model=SuccessResponse[UserResponse], status_code=status.HTTP_201_CREATED)
async def create_user(
    request: CreateUserRequest,
    _admin: dict[str, Any] = Depends(require_admin),
    user_service: UserService = Depends(get_user_service),
) -> SuccessResponse[UserResponse]:
    user = await user_service.create_user(request.model_dump(exclude_unset=True))
    return SuccessResponse(value=user)


@router.post("/login", response_model=SuccessResponse[AuthResponse])
async def login(
    request: LoginRequest,
    user_service: UserService = Depends(get_user_service),
) -> SuccessResponse[AuthResponse]:
    """
    Exchange email and password for a bearer token.

    Raises:
        AuthenticationError(401): Invalid email or password
    """
    return SuccessResponse(value=await user_service.login(request.email, request.password))


@router.post("/reset-password/request", response_model=SuccessResponse[MessageResponse])
async def request_password_reset(
    request: PasswordResetRequest,
    user_service: UserService = Depends(get_user_service),
) -> SuccessResponse[MessageResponse]:
    return SuccessResponse(value=await user_service.request_password_reset(request.email))


@router.post("/reset-password/confirm", response_model=SuccessResponse[MessageResponse])
async def confirm_password_reset(
    request: PasswordResetConfirmRequest,
    user_service: UserService = Depends(get_user_service),
) -> SuccessResponse[MessageResponse]:
    message = await user_service.confirm_password_reset(request.token, request.password)
    return SuccessResponse(value=message)


@router.post(
    "/register/request-verification",
    response_model=SuccessResponse[MessageResponse],
    status_code=status.HTTP_202_ACCEPTED,
)
async def request_verification(
    request: VerificationRequest,
    user_service: UserService = Depends(get_user_service),
) -> SuccessResponse[MessageResponse]:
    """
    Create or refresh an unverified account and email a verification token.

    Raises:
        ConflictError(409): Email already belongs to a verified account
    """
    message = await user_service.request_verification(request.email, request.password)
    return SuccessResponse(value=message)


@router.post(
    "/register",
    response_model=SuccessResponse[AuthResponse | MessageResponse],
    status_code=status.HTTP_201_CREATED,
)
async def register(
    request: RegisterRequest,
    response: Response,
    user_service: UserService = Depends(get_user_service),
) -> SuccessResponse[AuthResponse | MessageResponse]:
    """
    Complete registration with the emailed token.

    Returns 201 with a token for a newly verified account, 200 with a
    message if the account was already active.
    """
    token = request.token if request.token is not None else request.verification_token
    result = await user_service.register(token)
    if isinstance(result, MessageResponse):
        response.status_code = status.HTTP_200_OK
    return SuccessResponse(value=result)


@router.get("/{user_id}", response_model=SuccessResponse[UserResponse])
async def get_user(
    user_id: str,
    current_user: dict[str, Any] = Depends(get_current_user),
    user_service: UserService = Depends(get_user_service),
) -> SuccessResponse[UserResponse]:
    return SuccessResponse(value=await user_service.get_user(user_id, current_user))


@router.put("/{user_id}", response_model=SuccessResponse[UserResponse])
async def update_user(
    user_id: str,
    request: UpdateUserRequest,
    current_user: dict[str, Any] = Depends(get_current_user),
    user_service: UserService = Depends(get_user_service),
) -> SuccessResponse[UserResponse]:
    """
    Partially update a user; only fields present in the body apply.

    Raises:
        ValidationError(400): Invalid fields or nothing to update
        PermissionDeniedError(403): Other account, or admin-only fields
        NotFoundError(404): User not found
        ConflictError(409): Email already taken
    """
    user = await user_service.update_user(
        user_id, request.model_dump(exclude_unset=True), current_user
    )
    return SuccessResponse(value=user)


@router.delete("/{user_id}", response_model=SuccessResponse[UserResponse])
async def delete_user(
    user_id: str,
    current_user: dict[str, Any] = Depends(get_current_user),
    user_service: UserService = Depends(get_user_service),
) -> SuccessResponse[UserResponse]:
    return SuccessResponse(value=await user_service.delete_user(user_id, current_user))
