"""Outgoing mail for password resets."""

import logging
import smtplib
from email.message import EmailMessage
from typing import Optional

from jobboard.core.config import settings
from jobboard.core.errors import AppError

logger = logging.getLogger("mailer")


class Mailer:
    """Sends through SMTP when a relay is configured, otherwise logs the message."""

    def __init__(self, host: Optional[str] = None, port: Optional[int] = None, sender: Optional[str] = None):
        self.host = settings.SMTP_HOST if host is None else host
        self.port = port or settings.SMTP_PORT
        self.sender = sender or settings.SMTP_FROM

    def send_password_reset(self, email: str, link: str) -> None:
        message = EmailMessage()
        message["Subject"] = f"{settings.APP_NAME} password reset"
        message["From"] = self.sender
        message["To"] = email
        message.set_content(
            "We received a request to reset your password.\n\n"
            f"Open this link to choose a new one: {link}\n\n"
            "If you did not ask for this, you can ignore this email."
        )
        self.send(message)

    def send(self, message: EmailMessage) -> None:
        if not self.host:
            logger.info(f"SMTP not configured, mail to {message['To']}:\n{message.get_content()}")
            return

        try:
            with smtplib.SMTP(self.host, self.port, timeout=10) as smtp:
                smtp.send_message(message)
        except (OSError, smtplib.SMTPException) as e:
            logger.error(f"Failed to send '{message['Subject']}' to {message['To']}: {e}")
            raise AppError("unavailable")
        logger.info(f"Sent '{message['Subject']}' to {message['To']}")
