"""API routers."""

from .gift_cards import router as gift_cards_router
from .health import router as health_router
from .proxy import register_proxy_routes
from .transactions import router as transactions_router
from .users import router as users_router

__all__ = [
    "gift_cards_router",
    "health_router",
    "register_proxy_routes",
    "transactions_router",
    "users_router",
]
