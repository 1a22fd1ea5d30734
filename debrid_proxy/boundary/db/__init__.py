"""
Database boundary layer: connection management and CRUD operations.

Exports:
  - get_client(), get_database(), close_client(): Connection management
  - ensure_indexes(), ping(): Startup and health helpers
  - BaseCRUD and collection-specific CRUD classes

Dependencies: pymongo, debrid_proxy.configs
System role: Document store adapter for users, transactions and gift cards
"""

from debrid_proxy.boundary.db.connection import (
    close_client,
    ensure_indexes,
    get_client,
    get_database,
    ping,
)
from debrid_proxy.boundary.db.CRUD import (
    BaseCRUD,
    GiftCardCRUD,
    RedeemCRUD,
    TransactionCRUD,
    UserCRUD,
    VerificationCRUD,
)

__all__ = [
    "close_client",
    "ensure_indexes",
    "get_client",
    "get_database",
    "ping",
    "BaseCRUD",
    "GiftCardCRUD",
    "RedeemCRUD",
    "TransactionCRUD",
    "UserCRUD",
    "VerificationCRUD",
]
