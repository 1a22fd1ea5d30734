"""
Transaction API endpoints.

Routes:
- GET /transactions - List transactions (non-admins: own only)
- GET /transactions/{id} - Get transaction (non-admins: own only)
- POST /transactions - Record transaction (admin)
- PUT /transactions/{id} - Update transaction (admin)
- DELETE /transactions/{id} - Soft-delete transaction (admin)

Dependencies: debrid_proxy.application.services, debrid_proxy.models
System role: Billing transaction HTTP API
"""

from typing import Any

from fastapi import APIRouter, Depends, Query, status

from debrid_proxy.api.deps.dependencies import (
    get_current_user,
    get_transaction_service,
    require_admin,
)
from debrid_proxy.application.services import TransactionService
from debrid_proxy.models.common import SuccessResponse
from debrid_proxy.models.transaction import (
    CreateTransactionRequest,
    TransactionResponse,
    UpdateTransactionRequest,
)

router = APIRouter(prefix="/transactions", tags=["transactions"])


@router.get("", response_model=SuccessResponse[list[TransactionResponse]])
async def list_transactions(
    include_deleted: str | None = Query(None, alias="includeDeleted"),
    user_id: str | None = Query(None, alias="userId"),
    user_email: str | None = Query(None, alias="userEmail"),
    order_key: str | None = Query(None, alias="orderKey"),
    status_filter: str | None = Query(None, alias="status"),
    current_user: dict[str, Any] = Depends(get_current_user),
    transaction_service: TransactionService = Depends(get_transaction_service),
) -> SuccessResponse[list[TransactionResponse]]:
    """
    List transactions, newest first.

    Args:
        include_deleted: Include soft-deleted transactions when truthy
        user_id: Filter by owner id
        user_email: Filter by owner email
        order_key: Filter by order key
        status_filter: Filter by status; blank is ignored
        current_user: Authenticated caller
        transaction_service: Injected TransactionService
    """
    transactions = await transaction_service.list_transactions(
        current_user,
        include_deleted=include_deleted,
        user_id=user_id,
        user_email=user_email,
        order_key=order_key,
        status=status_filter,
    )
    return SuccessResponse(value=transactions)


@router.get("/{transaction_id}", response_model=SuccessResponse[TransactionResponse])
async def get_transaction(
    transaction_id: str,
    current_user: dict[str, Any] = Depends(get_current_user),
    transaction_service: TransactionService = Depends(get_transaction_service),
) -> SuccessResponse[TransactionResponse]:
    transaction = await transaction_service.get_transaction(transaction_id, current_user)
    return SuccessResponse(value=transaction)


@router.post(
    "",
    response_model=SuccessResponse[TransactionResponse],
    status_code=status.HTTP_201_CREATED,
)
async def create_transaction(
    request: CreateTransactionRequest,
    _admin: dict[str, Any] = Depends(require_admin),
    transaction_service: TransactionService = Depends(get_transaction_service),
) -> SuccessResponse[TransactionResponse]:
    """
    Record a transaction.

    Raises:
        ValidationError(400): Invalid fields
        ConflictError(409): Duplicate order_key
    """
    transaction = await transaction_service.create_transaction(
        request.model_dump(exclude_unset=True)
    )
    return SuccessResponse(value=transaction)


@router.put("/{transaction_id}", response_model=SuccessResponse[TransactionResponse])
async def update_transaction(
    transaction_id: str,
    request: UpdateTransactionRequest,
    _admin: dict[str, Any] = Depends(require_admin),
    transaction_service: TransactionService = Depends(get_transaction_service),
) -> SuccessResponse[TransactionResponse]:
    transaction = await transaction_service.update_transaction(
        transaction_id, request.model_dump(exclude_unset=True)
    )
    return SuccessResponse(value=transaction)


@router.delete("/{transaction_id}", response_model=SuccessResponse[TransactionResponse])
async def delete_transaction(
    transaction_id: str,
    _admin: dict[str, Any] = Depends(require_admin),
    transaction_service: TransactionService = Depends(get_transaction_service),
) -> SuccessResponse[TransactionResponse]:
    transaction = await transaction_service.delete_transaction(transaction_id)
    return SuccessResponse(value=transaction)
