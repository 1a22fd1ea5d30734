"""
Application services.

Exports the services used by the API routers.
"""

from debrid_proxy.application.services.gift_card_service import GiftCardService
from debrid_proxy.application.services.transaction_service import TransactionService
from debrid_proxy.application.services.user_service import UserService

__all__ = ["GiftCardService", "TransactionService", "UserService"]
