"""Boundary adapters: MongoDB, the upstream Debrid-Link API and MailerSend."""
