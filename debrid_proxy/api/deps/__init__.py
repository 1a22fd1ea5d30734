"""API-specific dependencies."""

# Re-export common dependencies
from .dependencies import (
    get_current_user,
    get_gift_card_service,
    get_http_client,
    get_mailer,
    get_proxy_forwarder,
    get_service_cache,
    get_settings_dependency,
    get_token_issuer,
    get_transaction_service,
    get_user_service,
    require_admin,
)

__all__ = [
    "get_current_user",
    "get_gift_card_service",
    "get_http_client",
    "get_mailer",
    "get_proxy_forwarder",
    "get_service_cache",
    "get_settings_dependency",
    "get_token_issuer",
    "get_transaction_service",
    "get_user_service",
    "require_admin",
]
