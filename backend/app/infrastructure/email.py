from __future__ import annotations

import asyncio
import logging
import smtplib
from email.message import EmailMessage

from ..config import settings
from ..errors import DependencyFailureError

logger = logging.getLogger("rbac.email")


class SmtpEmailSender:
    """Sends HTML mail through an SMTP relay using STARTTLS."""

    def __init__(
        self,
        *,
        host: str | None = None,
        port: int | None = None,
        username: str | None = None,
        password: str | None = None,
        sender: str | None = None,
        timeout_seconds: float = 10.0,
    ) -> None:
        self._host = host or settings.smtp_host
        self._port = port or settings.smtp_port
        self._username = username or settings.smtp_username
        self._password = password or settings.smtp_password
        self._sender = sender or settings.sender_address
        self._timeout_seconds = timeout_seconds

    def _build_message(self, recipient: str, subject: str, html_body: str) -> EmailMessage:
        message = EmailMessage()
        message["From"] = self._sender
        message["To"] = recipient
        message["Subject"] = subject
        message.set_content("Open this message in an HTML capable mail client.")
        message.add_alternative(html_body, subtype="html")
        return message

    def _deliver(self, message: EmailMessage) -> None:
        with smtplib.SMTP(self._host, self._port, timeout=self._timeout_seconds) as smtp:
            smtp.starttls()
            if self._username and self._password:
                smtp.login(self._username, self._password)
            smtp.send_message(message)

    async def send(self, recipient: str, subject: str, html_body: str) -> None:
        if not self._host:
            raise DependencyFailureError("Email delivery is not configured")
        message = self._build_message(recipient, subject, html_body)
        try:
            await asyncio.to_thread(self._deliver, message)
        except (smtplib.SMTPException, OSError) as exc:
            logger.error("email_delivery_failed subject=%s error=%s", subject, exc)
            raise DependencyFailureError("Email could not be sent") from exc
