from __future__ import annotations

import asyncio
import logging
import os
import smtplib
from abc import ABC, abstractmethod
from email.message import EmailMessage
from typing import Self

from amctrack.base.errors import DispatchFailure
from amctrack.reminder.composer import ReminderMessage

logger = logging.getLogger(__name__)


class MailSender(ABC):
    @abstractmethod
    async def send(self, message: ReminderMessage) -> None:
        """Deliver `message` or raise DispatchFailure."""


class SmtpMailSender(MailSender):
    def __init__(
        self,
        host: str,
        port: int,
        from_address: str,
        username: str | None = None,
        password: str | None = None,
        use_tls: bool = True,
        timeout: float = 10.0,
    ) -> None:
        self._host = host
        self._port = port
        self._from_address = from_address
        self._username = username
        self._password = password
        self._use_tls = use_tls
        self._timeout = timeout

    @classmethod
    def from_env(cls) -> Self:
        username = os.environ.get("AMCTRACK_SMTP_USERNAME") or None
        return cls(
            host=os.environ.get("AMCTRACK_SMTP_HOST", "localhost"),
            port=int(os.environ.get("AMCTRACK_SMTP_PORT", "587")),
            from_address=os.environ.get("AMCTRACK_SMTP_FROM")
            or username
            or "no-reply@localhost",
            username=username,
            password=os.environ.get("AMCTRACK_SMTP_PASSWORD") or None,
            use_tls=os.environ.get("AMCTRACK_SMTP_USE_TLS", "true").lower()
            in ("1", "true", "yes"),
        )

    def build_message(self, message: ReminderMessage) -> EmailMessage:
        msg = EmailMessage()
        msg["Subject"] = message.subject
        msg["From"] = self._from_address
        msg["To"] = ", ".join(message.recipients)
        msg.set_content(message.body)
        return msg

    def _send_sync(self, msg: EmailMessage) -> None:
        with smtplib.SMTP(self._host, self._port, timeout=self._timeout) as smtp:
            if self._use_tls:
                smtp.starttls()
            if self._username and self._password:
                smtp.login(self._username, self._password)
            smtp.send_message(msg)

    async def send(self, message: ReminderMessage) -> None:
        if not message.recipients:
            raise DispatchFailure("Reminder has no recipients")

        msg = self.build_message(message)
        try:
            await asyncio.to_thread(self._send_sync, msg)
        except (smtplib.SMTPException, OSError) as e:
            raise DispatchFailure(
                f"SMTP delivery to {msg['To']} failed: {e}"
            ) from e
        logger.info("AMC reminder sent to %s", msg["To"])


def create_mail_sender() -> MailSender:
    """Create the SMTP sender configured through AMCTRACK_SMTP_* variables."""
    return SmtpMailSender.from_env()
