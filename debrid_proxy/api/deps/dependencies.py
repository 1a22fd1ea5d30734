"""
Dependency injection container.

Factory functions for FastAPI dependencies.

Dependencies: debrid_proxy.configs, debrid_proxy.application, debrid_proxy.boundary
System role: DI container for service injection
"""

from functools import lru_cache
from typing import Any

import httpx
from fastapi import Depends, Header
from pymongo.asynchronous.database import AsyncDatabase

from debrid_proxy.application.services import GiftCardService, TransactionService, UserService
from debrid_proxy.boundary.db import get_database
from debrid_proxy.boundary.db.CRUD import (
    GiftCardCRUD,
    RedeemCRUD,
    TransactionCRUD,
    UserCRUD,
    VerificationCRUD,
)
from debrid_proxy.boundary.mail import MailerSendClient
from debrid_proxy.boundary.upstream import ProxyForwarder
from debrid_proxy.configs import Settings, get_settings
from debrid_proxy.core.permissions import ensure_admin
from debrid_proxy.core.security import TokenIssuer


class ServiceCache:
    """Container for cached shared clients."""

    def __init__(self):
        self._http_client = None

    @property
    def http_client(self) -> httpx.AsyncClient:
        """Get cached HTTP client shared by the proxy and the mailer."""
        if self._http_client is None:
            self._http_client = httpx.AsyncClient(follow_redirects=False)
        return self._http_client

    async def aclose(self) -> None:
        """Close the HTTP client and drop it from the cache."""
        if self._http_client is not None:
            await self._http_client.aclose()
        self.clear()

    def clear(self) -> None:
        """Clear all cached instances."""
        self._http_client = None


# Global service cache
_service_cache = ServiceCache()

def get_service_cache() -> ServiceCache:
    """Get service cache singleton."""
    return _service_cache


@lru_cache
def get_settings_dependency() -> Settings:
    """Get settings singleton."""
    return get_settings()


def get_http_client() -> httpx.AsyncClient:
    return get_service_cache().http_client


def get_proxy_forwarder(
    settings: Settings = Depends(get_settings_dependency),
    client: httpx.AsyncClient = Depends(get_http_client),
) -> ProxyForwarder:
    """
    Get the upstream forwarder.

    Args:
        settings: Application settings (injected via Depends)
        client: Shared HTTP client (injected via Depends)

    Returns:
        ProxyForwarder: Forwarder with the configured default token and timeout
    """
    return ProxyForwarder(
        client,
        default_token=settings.upstream.api_token,
        default_timeout_ms=settings.upstream.api_timeout_ms,
    )


def get_mailer(
    settings: Settings = Depends(get_settings_dependency),
    client: httpx.AsyncClient = Depends(get_http_client),
) -> MailerSendClient:
    return MailerSendClient(settings.mail, client)


def get_token_issuer(settings: Settings = Depends(get_settings_dependency)) -> TokenIssuer:
    return TokenIssuer(settings.auth)


def get_user_service(
    db: AsyncDatabase = Depends(get_database),
    settings: Settings = Depends(get_settings_dependency),
    tokens: TokenIssuer = Depends(get_token_issuer),
    mailer: MailerSendClient = Depends(get_mailer),
) -> UserService:
    """
    Get user service instance.

    Args:
        db: Mongo database handle (injected via Depends)
        settings: Application settings (injected via Depends)
        tokens: JWT issuer (injected via Depends)
        mailer: Email client (injected via Depends)

    Returns:
        UserService: User service instance
    """
    collections = settings.database
    return UserService(
        users=UserCRUD(db[collections.users_collection]),
        verifications=VerificationCRUD(db[collections.verify_email_collection]),
        tokens=tokens,
        mailer=mailer,
    )


def get_transaction_service(
    db: AsyncDatabase = Depends(get_database),
    settings: Settings = Depends(get_settings_dependency),
) -> TransactionService:
    """
    Get transaction service instance.

    Args:
        db: Mongo database handle (injected via Depends)
        settings: Application settings (injected via Depends)

    Returns:
        TransactionService: Transaction service instance
    """
    return TransactionService(TransactionCRUD(db[settings.database.transactions_collection]))


def get_gift_card_service(
    db: AsyncDatabase = Depends(get_database),
    settings: Settings = Depends(get_settings_dependency),
) -> GiftCardService:
    """
    Get gift card service instance.

    Args:
        db: Mongo database handle (injected via Depends)
        settings: Application settings (injected via Depends)

    Returns:
        GiftCardService: Gift card service instance
    """
    collections = settings.database
    return GiftCardService(
        cards=GiftCardCRUD(db[collections.gift_card_collection]),
        redeems=RedeemCRUD(db[collections.user_redeem_collection]),
        users=UserCRUD(db[collections.users_collection]),
    )


async def get_current_user(
    authorization: str | None = Header(None),
    user_service: UserService = Depends(get_user_service),
) -> dict[str, Any]:
    """
    Resolve the authenticated caller from the Authorization header.

    Raises:
        AuthenticationError: "Invalid token" when credentials are missing or invalid
    """
    return await user_service.authenticate(authorization)


async def require_admin(
    current_user: dict[str, Any] = Depends(get_current_user),
) -> dict[str, Any]:
    """Authenticated caller with the admin role, else 403."""
    ensure_admin(current_user)
    return current_user
