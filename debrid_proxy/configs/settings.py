"""
Unified application settings.

Aggregates all configuration modules into a single Settings class.
Provides dependency injection factory for FastAPI.

Dependencies: All config modules
System role: Central configuration aggregator for the application
"""

from functools import lru_cache

from pydantic import Field

from debrid_proxy.configs.auth import AuthSettings
from debrid_proxy.configs.base import BaseSettings
from debrid_proxy.configs.database import DatabaseSettings
from debrid_proxy.configs.mail import MailSettings
from debrid_proxy.configs.upstream import UpstreamSettings


class Settings(BaseSettings):
    """Unified application settings aggregating all config modules."""

    upstream: UpstreamSettings = Field(default_factory=UpstreamSettings)
    database: DatabaseSettings = Field(default_factory=DatabaseSettings)
    auth: AuthSettings = Field(default_factory=AuthSettings)
    mail: MailSettings = Field(default_factory=MailSettings)


@lru_cache
def get_settings() -> Settings:
    """
    Get application settings singleton.

    Returns Settings instance, cached for dependency injection.
    Environment variables loaded once at startup.

    Returns:
        Settings: Application settings instance

    Usage:
        from debrid_proxy.configs import get_settings
        settings = get_settings()
    """
    return Settings()
