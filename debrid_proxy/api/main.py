"""
FastAPI application with assembled routers.

Initializes the FastAPI app with the CRUD routers, the proxy routes built
from the endpoint table, middleware and exception handlers.

Dependencies: fastapi, debrid_proxy.api.routers, debrid_proxy.boundary
System role: API entry point with router assembly
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from pymongo.errors import PyMongoError

from debrid_proxy.api.deps.dependencies import get_service_cache
from debrid_proxy.api.error_handlers import register_exception_handlers
from debrid_proxy.boundary.db import close_client, ensure_indexes, get_database
from debrid_proxy.configs import Settings, get_settings
from debrid_proxy.observability import configure_logging
from debrid_proxy.observability.middleware import CorrelationMiddleware, RequestLoggingMiddleware

from .routers import (
    gift_cards_router,
    health_router,
    register_proxy_routes,
    transactions_router,
    users_router,
)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan context manager.

    Startup configures logging and ensures MongoDB indexes when a URI is
    set; shutdown closes the shared HTTP and Mongo clients.
    """
    settings = get_settings()
    configure_logging(settings.log_level)

    # Startup
    if settings.database.uri:
        try:
            await ensure_indexes(get_database(), settings.database)
        except PyMongoError as e:
            logger.warning(
                "Could not ensure Mongo indexes",
                extra={"error_type": type(e).__name__, "error_msg": str(e)},
            )
    else:
        logger.warning("MONGODB_URI is not set; database routes will fail")

    yield

    # Shutdown
    await get_service_cache().aclose()
    await close_client()
    logger.info("Shared clients closed")


def create_app(settings: Settings | None = None) -> FastAPI:
    """
    Create and configure FastAPI application with routers.

    Args:
        settings: Settings used to build the proxy routes (defaults to get_settings())

    Returns:
        FastAPI: Configured application instance with all routes registered
    """
    settings = settings or get_settings()

    app = FastAPI(
        title="Debrid Proxy API",
        description="Debrid-Link pass-through proxy with accounts, billing and gift cards",
        version="0.1.0",
        lifespan=lifespan,
    )

    # Add CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Add observability middleware
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(CorrelationMiddleware)

    register_exception_handlers(app)

    app.include_router(health_router)
    app.include_router(users_router)
    app.include_router(transactions_router)
    app.include_router(gift_cards_router)
    register_proxy_routes(app, settings)

    return app
