"""Transactional email via Resend."""

from __future__ import annotations

import logging
from html import escape

import resend

logger = logging.getLogger(__name__)


class Mailer:
    def __init__(self, api_key: str | None, sender: str):
        self.api_key = api_key
        self.sender = sender

    def send(self, to: str, subject: str, html: str) -> bool:
        """Send one email; delivery problems are logged, never raised."""

        if not self.api_key:
            logger.warning("RESEND_API_KEY is not set; skipping email to %s", to)
            return False
        resend.api_key = self.api_key
        try:
            resend.Emails.send(
                {"from": self.sender, "to": [to], "subject": subject, "html": html}
            )
        except Exception as exc:
            logger.warning("Failed to send email to %s: %s", to, exc)
            return False
        return True

    def send_verification(self, to: str, name: str, verify_url: str) -> bool:
        html = (
            f"<p>Hi {escape(name or 'there')},</p>"
            "<p>Confirm your email address to finish setting up your account.</p>"
            f'<p><a href="{escape(verify_url)}">Verify email</a></p>'
            "<p>This link expires in 24 hours.</p>"
        )
        return self.send(to, "Verify your account", html)
