"""
Database configuration settings.

Manages MongoDB connection parameters and collection names.

Dependencies: pydantic, pydantic_settings
System role: Document store connection configuration
"""

from pydantic import AliasChoices, Field
from pydantic_settings import SettingsConfigDict

from debrid_proxy.configs.base import BaseSettings


class DatabaseSettings(BaseSettings):
    """MongoDB configuration."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="MONGODB_",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )

    uri: str | None = Field(default=None, description="MongoDB connection string")
    db_name: str = Field(
        default="debrid",
        validation_alias=AliasChoices("MONGODB_DB_NAME", "MONGO_DB_NAME"),
        description="Database name",
    )
    server_selection_timeout_ms: int = Field(
        default=5000, description="Server selection timeout in milliseconds"
    )

    users_collection: str = Field(default="users")
    transactions_collection: str = Field(default="transactions")
    gift_card_collection: str = Field(default="gift_card")
    user_redeem_collection: str = Field(default="user_redeem")
    verify_email_collection: str = Field(default="verify_email")
