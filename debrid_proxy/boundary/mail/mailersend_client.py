"""
MailerSend client for transactional emails.

Sends password reset and email verification messages through the
MailerSend HTTP API.

Dependencies: httpx
System role: Outbound email boundary for the user service
"""

import logging
from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit

import httpx

from debrid_proxy.configs.mail import MailSettings
from debrid_proxy.core.exceptions import ConfigurationError, EmailDeliveryError

logger = logging.getLogger(__name__)

TOKEN_PLACEHOLDER = "%token%"


def build_token_link(base_url: str, token: str) -> str | None:
    """
    Build the link embedded in an email.

    "%token%" in the URL is replaced by the token; otherwise a token query
    parameter is set. Values that do not parse as absolute URLs get the
    parameter appended verbatim.

    Returns:
        str | None: The link, None when no URL is configured
    """
    if not base_url:
        return None
    if TOKEN_PLACEHOLDER in base_url:
        return base_url.replace(TOKEN_PLACEHOLDER, token)

    parts = urlsplit(base_url)
    if parts.scheme and parts.netloc:
        query = [(k, v) for k, v in parse_qsl(parts.query, keep_blank_values=True) if k != "token"]
        query.append(("token", token))
        return urlunsplit(parts._replace(query=urlencode(query)))

    separator = "&" if "?" in base_url else "?"
    return f"{base_url}{separator}token={token}"


class MailerSendClient:
    """Async client for the MailerSend email endpoint."""

    def __init__(self, settings: MailSettings, client: httpx.AsyncClient) -> None:
        """
        Initialize MailerSend client.

        Args:
            settings: Credentials, sender identity and link templates
            client: Shared async HTTP client
        """
        self._settings = settings
        self._client = client

    def _ensure_configured(self) -> None:
        if not self._settings.access_token:
            raise ConfigurationError("MailerSend access token is not configured")
        if not self._settings.from_email:
            raise ConfigurationError("MailerSend from email is not configured")

    def build_payload(
        self,
        to_email: str,
        subject: str,
        text: str,
        html: str,
        to_name: str | None = None,
    ) -> dict:
        recipient = {"email": to_email}
        if to_name:
            recipient["name"] = to_name
        return {
            "from": {"email": self._settings.from_email, "name": self._settings.from_name},
            "to": [recipient],
            "subject": subject,
            "text": text,
            "html": html,
        }

    async def send_email(
        self,
        to_email: str,
        subject: str,
        text: str,
        html: str,
        to_name: str | None = None,
        failure_message: str = "Unable to send email",
    ) -> None:
        """
        Dispatch one email.

        Raises:
            ConfigurationError: If token or sender is not configured
            EmailDeliveryError: If MailerSend is unreachable or rejects the request
        """
        self._ensure_configured()
        payload = self.build_payload(to_email, subject, text, html, to_name)

        try:
            response = await self._client.post(
                self._settings.api_url,
                json=payload,
                headers={
                    "Authorization": f"Bearer {self._settings.access_token}",
                    "Content-Type": "application/json",
                },
                timeout=self._settings.timeout_ms / 1000,
            )
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            try:
                body = e.response.json()
            except ValueError:
                body = None
            upstream_message = body.get("message") if isinstance(body, dict) else None
            logger.error(
                "MailerSend email error",
                extra={
                    "status_code": e.response.status_code,
                    "upstream_message": upstream_message or "Failed to dispatch MailerSend email",
                },
            )
            raise EmailDeliveryError(
                failure_message, {"status_code": e.response.status_code}
            ) from e
        except httpx.HTTPError as e:
            logger.error(
                "MailerSend email error",
                extra={"error_type": type(e).__name__, "error_msg": str(e)},
            )
            raise EmailDeliveryError(failure_message) from e

        logger.info("Email dispatched", extra={"subject": subject})

    async def send_password_reset_email(
        self, to_email: str, token: str, to_name: str | None = None
    ) -> None:
        """Send reset instructions valid for one hour."""
        link = build_token_link(self._settings.password_reset_url, token)
        subject = "Password reset instructions"

        if link:
            text = (
                "We received a request to reset your password. Use the link below "
                f"within the next hour:\n{link}\n\n"
                f"If you prefer to enter the token manually, use: {token}"
            )
            html = (
                "<p>We received a request to reset your password.</p>"
                f'<p><a href="{link}">Reset your password</a></p>'
                "<p>If the button does not work, use this token within the next hour: "
                f"<strong>{token}</strong></p>"
            )
        else:
            text = (
                "We received a request to reset your password. "
                f"Use the following token within the next hour: {token}"
            )
            html = (
                "<p>We received a request to reset your password.</p>"
                f"<p>Use this token within the next hour: <strong>{token}</strong></p>"
            )

        await self.send_email(
            to_email,
            subject,
            text,
            html,
            to_name=to_name,
            failure_message="Unable to send password reset email",
        )

    async def send_verification_email(
        self, to_email: str, token: str, to_name: str | None = None
    ) -> None:
        """Send an account verification message valid for 24 hours."""
        link = build_token_link(self._settings.email_verification_url, token)
        subject = "Verify your email address"

        if link:
            text = (
                "Thanks for signing up. Confirm your email address within the next "
                f"24 hours using the link below:\n{link}\n\n"
                f"If you prefer to enter the token manually, use: {token}"
            )
            html = (
                "<p>Thanks for signing up.</p>"
                f'<p><a href="{link}">Verify your email address</a></p>'
                "<p>If the button does not work, use this token within the next 24 hours: "
                f"<strong>{token}</strong></p>"
            )
        else:
            text = (
                "Thanks for signing up. Use the following token within the next "
                f"24 hours to verify your email address: {token}"
            )
            html = (
                "<p>Thanks for signing up.</p>"
                f"<p>Use this token within the next 24 hours: <strong>{token}</strong></p>"
            )

        await self.send_email(
            to_email,
            subject,
            text,
            html,
            to_name=to_name,
            failure_message="Unable to send verification email",
        )
