"""
Authentication configuration settings.

JWT signing secret, algorithm and token lifetime.

Dependencies: pydantic, pydantic_settings
System role: Token issuance configuration
"""

import re
from datetime import timedelta

from pydantic import Field
from pydantic_settings import SettingsConfigDict

from debrid_proxy.configs.base import BaseSettings

_DURATION_PATTERN = re.compile(r"^\s*(\d+)\s*([smhd]?)\s*$", re.IGNORECASE)
_UNIT_SECONDS = {"": 1, "s": 1, "m": 60, "h": 3600, "d": 86400}


class AuthSettings(BaseSettings):
    """JWT configuration."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="JWT_",
        case_sensitive=False,
        extra="ignore",
    )

    secret: str = Field(default="", description="HMAC secret for signing tokens")
    expires_in: str = Field(
        default="7d",
        description="Token lifetime such as 7d, 12h, 30m or plain seconds",
    )
    algorithm: str = Field(default="HS256", description="JWT signing algorithm")

    @property
    def expires_delta(self) -> timedelta | None:
        """
        Parse expires_in into a timedelta.

        Returns:
            timedelta | None: Token lifetime, None when tokens never expire

        Raises:
            ValueError: If expires_in is not a recognised duration
        """
        if not self.expires_in.strip():
            return None
        match = _DURATION_PATTERN.match(self.expires_in)
        if not match:
            raise ValueError(f"Unsupported JWT_EXPIRES_IN value: {self.expires_in!r}")
        amount, unit = match.groups()
        return timedelta(seconds=int(amount) * _UNIT_SECONDS[unit.lower()])
