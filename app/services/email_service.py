"""
Email notification service via SMTP (Gmail-compatible).

Uses Python's built-in smtplib with STARTTLS so it works with any
SMTP provider: Gmail App Passwords, SendGrid, Mailgun, etc.

Gmail setup:
  1. Enable 2-Step Verification on your Google account.
  2. Generate an App Password (Google Account → Security → App Passwords).
  3. Set SMTP_USER=you@gmail.com and SMTP_PASSWORD=<app-password> in .env.
"""

from __future__ import annotations

import smtplib
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from html import escape
from typing import TYPE_CHECKING

from app.core.logging import get_logger

if TYPE_CHECKING:
    from app.core.config import Settings
    from app.models.models import Draft

logger = get_logger(__name__)


class EmailService:
    def __init__(self, settings: Settings) -> None:
        self.settings = settings

    @property
    def is_configured(self) -> bool:
        return bool(self.settings.smtp_user and self.settings.smtp_password)

    def _send(self, msg: MIMEMultipart, recipients: list[str]) -> None:
        """Open SMTP connection, send, close. Raises on failure."""
        s = self.settings
        with smtplib.SMTP(s.smtp_host, s.smtp_port, timeout=30) as smtp:
            smtp.ehlo()
            smtp.starttls()
            smtp.ehlo()
            smtp.login(s.smtp_user, s.smtp_password)
            smtp.sendmail(s.email_from, recipients, msg.as_string())

    def review_url(self, draft_id: int) -> str:
        return f"{self.settings.app_base_url.rstrip('/')}/review/drafts/{draft_id}"

    def build_draft_message(self, draft: Draft, recipients: list[str]) -> MIMEMultipart:
        review_url = self.review_url(draft.id)
        html = f"""
        <div style="font-family: -apple-system, BlinkMacSystemFont, sans-serif;
                    max-width: 600px; margin: 0 auto;">
            <h1>New Draft Generated!</h1>
            <p>A new draft has been created and is ready for your review.</p>
            <ul>
                <li><b>ID:</b> {draft.id}</li>
                <li><b>Title:</b> {escape(draft.title)}</li>
            </ul>
            <p>
                <a href="{review_url}"
                   style="background: #0a66c2; color: white; padding: 12px 32px;
                          border-radius: 6px; text-decoration: none;">
                    Review Draft
                </a>
            </p>
        </div>
        """

        msg = MIMEMultipart("alternative")
        msg["Subject"] = f'New Draft Ready for Review: "{draft.title}"'
        msg["From"] = f'"Automation Blog Bot" <{self.settings.email_from}>'
        msg["To"] = ", ".join(recipients)
        msg.attach(MIMEText(f"Review draft {draft.id}: {review_url}", "plain", "utf-8"))
        msg.attach(MIMEText(html, "html", "utf-8"))
        return msg

    def send_draft_notification(self, draft: Draft) -> bool:
        """Email the review link for a freshly created draft.

        Returns False when SMTP credentials are not configured. Raises on
        delivery failure; callers that must not fail wrap this.
        """
        if not self.is_configured:
            logger.info("draft_notification_skipped", draft_id=draft.id, reason="no SMTP credentials")
            return False

        recipients = self.settings.email_recipients
        msg = self.build_draft_message(draft, recipients)
        try:
            self._send(msg, recipients)
        except Exception as e:
            logger.error("draft_notification_error", draft_id=draft.id, error=str(e))
            raise

        logger.info("draft_notification_sent", draft_id=draft.id, recipients=len(recipients))
        return True
