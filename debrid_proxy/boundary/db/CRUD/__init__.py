"""
CRUD operations for MongoDB collections.

Exports base CRUD class and collection-specific CRUD implementations.
Each instance wraps one collection; services build them from the
database handle and the configured collection names.

Usage:
    from debrid_proxy.boundary.db.CRUD import UserCRUD

    users = UserCRUD(db[settings.database.users_collection])
    user = await users.get_by_email("someone@example.com")
"""

from debrid_proxy.boundary.db.CRUD.base_crud import BaseCRUD
from debrid_proxy.boundary.db.CRUD.gift_card_crud import GiftCardCRUD, RedeemCRUD
from debrid_proxy.boundary.db.CRUD.transaction_crud import TransactionCRUD
from debrid_proxy.boundary.db.CRUD.user_crud import UserCRUD
from debrid_proxy.boundary.db.CRUD.verification_crud import VerificationCRUD

__all__ = [
    "BaseCRUD",
    "GiftCardCRUD",
    "RedeemCRUD",
    "TransactionCRUD",
    "UserCRUD",
    "VerificationCRUD",
]
