"""Transactional email delivery through MailerSend."""

from debrid_proxy.boundary.mail.mailersend_client import MailerSendClient, build_token_link

__all__ = ["MailerSendClient", "build_token_link"]
