"""
Email Service

Sends reset password links over SMTP.
"""

import asyncio
import logging
import smtplib
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText

from config.settings import settings
from config.logging_utils import log_success, mask_email

logger = logging.getLogger(__name__)


class EmailService:
    """SMTP sender for account emails."""

    def __init__(
        self,
        smtp_server: str,
        smtp_port: int,
        sender_email: str,
        sender_password: str,
        app_name: str = "LeafGuard"
    ):
        self.smtp_server = smtp_server
        self.smtp_port = smtp_port
        self.sender_email = sender_email
        self.sender_password = sender_password
        self.app_name = app_name

    def is_configured(self) -> bool:
        return bool(self.sender_email and self.sender_password)

    def _build_reset_message(self, recipient: str, reset_url: str) -> MIMEMultipart:
        message = MIMEMultipart()
        message["From"] = self.sender_email
        message["To"] = recipient
        message["Subject"] = f"{self.app_name} - Reset your password"

        body = f"""Hello!

We received a request to reset the password of your {self.app_name} account.

Reset your password: {reset_url}

This link expires in {settings.RESET_TOKEN_EXPIRE_MINUTES} minutes. If you did not request a reset, you can ignore this email.

---
This is an automated message. Please do not reply to this email.
"""
        message.attach(MIMEText(body, "plain"))
        return message

    def _send(self, message: MIMEMultipart) -> None:
        with smtplib.SMTP(self.smtp_server, self.smtp_port, timeout=30) as server:
            server.starttls()
            server.login(self.sender_email, self.sender_password)
            server.send_message(message)

    async def send_reset_link(self, email: str, reset_url: str) -> bool:
        """
        Send a reset password link.

        Args:
            email: Recipient address
            reset_url: Link to the client's reset password page

        Returns:
            bool: True if email sent successfully, False otherwise
        """
        if not self.is_configured():
            logger.error("Email credentials not configured. Set SENDER_EMAIL and SENDER_PASSWORD environment variables.")
            return False

        message = self._build_reset_message(email, reset_url)
        try:
            await asyncio.to_thread(self._send, message)
        except (smtplib.SMTPException, OSError) as e:
            logger.error(f"Failed to send reset link to {mask_email(email)}: {e}")
            return False

        log_success(f"Reset link sent to {mask_email(email)}", prefix="EMAIL")
        return True


def create_email_service() -> EmailService:
    """Build the sender from application settings."""
    return EmailService(
        smtp_server=settings.SMTP_SERVER,
        smtp_port=settings.SMTP_PORT,
        sender_email=settings.SENDER_EMAIL,
        sender_password=settings.SENDER_PASSWORD,
        app_name=settings.APP_NAME
    )
