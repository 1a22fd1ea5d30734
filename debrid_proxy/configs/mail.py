"""
Email configuration settings.

MailerSend credentials, sender identity and the links embedded in
password reset and verification emails.

Dependencies: pydantic, pydantic_settings
System role: Transactional email configuration
"""

from pydantic import AliasChoices, Field
from pydantic_settings import SettingsConfigDict

from debrid_proxy.configs.base import BaseSettings


class MailSettings(BaseSettings):
    """MailerSend configuration."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="MAILERSEND_",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )

    access_token: str = Field(default="", description="MailerSend API token")
    from_email: str = Field(default="", description="Sender address")
    from_name: str = Field(default="Debrid Proxy", description="Sender display name")
    api_url: str = Field(
        default="https://api.mailersend.com/v1/email",
        description="MailerSend email endpoint",
    )
    timeout_ms: int = Field(default=15000, description="Request timeout in milliseconds")

    password_reset_url: str = Field(
        default="",
        validation_alias=AliasChoices("PASSWORD_RESET_URL", "MAILERSEND_PASSWORD_RESET_URL"),
        description="Reset page URL; %token% is substituted or a token query param added",
    )
    email_verification_url: str = Field(
        default="",
        validation_alias=AliasChoices(
            "EMAIL_VERIFICATION_URL", "MAILERSEND_EMAIL_VERIFICATION_URL"
        ),
        description="Verification page URL; same substitution rules as password_reset_url",
    )
