"""
Database connection management.

Provides the shared AsyncMongoClient, database handle, index bootstrap
and the FastAPI dependency for database injection.

Dependencies: pymongo, debrid_proxy.configs
System role: Document store connection lifecycle management
"""

import logging

from pymongo import ASCENDING, AsyncMongoClient
from pymongo.asynchronous.database import AsyncDatabase

from debrid_proxy.configs import get_settings
from debrid_proxy.configs.database import DatabaseSettings
from debrid_proxy.core.exceptions import ConfigurationError

logger = logging.getLogger(__name__)

_client: AsyncMongoClient | None = None


def create_client(db_config: DatabaseSettings) -> AsyncMongoClient:
    """
    Create a MongoDB client for the configured URI.

    The client connects lazily on first operation.

    Raises:
        ConfigurationError: If MONGODB_URI is not set
    """
    if not db_config.uri:
        raise ConfigurationError("Mongo URI is not configured")

    return AsyncMongoClient(
        db_config.uri,
        serverSelectionTimeoutMS=db_config.server_selection_timeout_ms,
        tz_aware=True,
    )


def get_client() -> AsyncMongoClient:
    """Return the process-wide client, creating it on first use."""
    global _client
    if _client is None:
        _client = create_client(get_settings().database)
        logger.info(
            "Mongo client created",
            extra={"db_name": get_settings().database.db_name},
        )
    return _client


async def close_client() -> None:
    """Close the shared client if one was created."""
    global _client
    if _client is not None:
        await _client.close()
        _client = None
        logger.info("Mongo client closed")


def get_database() -> AsyncDatabase:
    """
    FastAPI dependency returning the configured database.

    Usage:
        @router.get("/users")
        async def list_users(db: AsyncDatabase = Depends(get_database)):
            ...
    """
    return get_client()[get_settings().database.db_name]


async def ping(db: AsyncDatabase) -> None:
    """Round-trip to the server; raises on connectivity problems."""
    await db.command("ping")


async def ensure_indexes(db: AsyncDatabase, db_config: DatabaseSettings) -> None:
    """
    Create the indexes the CRUD layer relies on.

    Unique indexes back the email, card number and order key
    uniqueness checks so concurrent inserts cannot both succeed.
    """
    await db[db_config.users_collection].create_index([("email", ASCENDING)], unique=True)
    await db[db_config.gift_card_collection].create_index(
        [("card_number", ASCENDING)], unique=True
    )
    await db[db_config.transactions_collection].create_index(
        [("order_key", ASCENDING)], unique=True
    )
    await db[db_config.verify_email_collection].create_index([("token", ASCENDING)])
    await db[db_config.verify_email_collection].create_index([("user_id", ASCENDING)])
    await db[db_config.user_redeem_collection].create_index([("user_id", ASCENDING)])
    logger.info("Mongo indexes ensured", extra={"db_name": db_config.db_name})
