"""
Upstream API configuration settings.

Base URLs, timeout and default bearer token for the Debrid-Link proxy.

Dependencies: pydantic, pydantic_settings
System role: Proxy forwarder configuration
"""

from pydantic import Field

from debrid_proxy.configs.base import BaseSettings


class UpstreamSettings(BaseSettings):
    """Debrid-Link upstream configuration."""

    api_base_url: str = Field(
        default="https://debrid-link.com/api/v2",
        description="Base URL for the REST API endpoint group",
    )
    oauth_base_url: str = Field(
        default="https://debrid-link.com/api",
        description="Base URL for the OAuth endpoint group",
    )
    api_timeout_ms: int = Field(
        default=15000,
        description="Default upstream request timeout in milliseconds",
    )
    api_token: str = Field(
        default="",
        description="Bearer token injected when the client sends none",
    )
