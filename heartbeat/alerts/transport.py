"""Mail transports — blocking send primitives for alert emails."""

from __future__ import annotations

import abc
import smtplib
import ssl
from email.message import EmailMessage

from heartbeat.core.config import SenderConfig


class MailTransport(abc.ABC):
    """Base class for alert delivery.

    ``send`` blocks; callers run it off the event loop.
    """

    @abc.abstractmethod
    def send(self, message: EmailMessage) -> None:
        """Deliver *message* to the recipients in its To header.

        Raises on any authentication or transport failure.
        """


class SMTPTransport(MailTransport):
    """Delivers alerts through an SMTP relay (STARTTLS, implicit TLS, or plain)."""

    def __init__(self, config: SenderConfig) -> None:
        self._host = config.server
        self._port = config.port
        self._username = config.username
        self._password = config.password.get_secret_value()
        self._security = config.security
        self._timeout = config.timeout_seconds

    def _open(self) -> smtplib.SMTP:
        if self._security == "ssl":
            return smtplib.SMTP_SSL(
                self._host,
                self._port,
                timeout=self._timeout,
                context=ssl.create_default_context(),
            )
        return smtplib.SMTP(self._host, self._port, timeout=self._timeout)

    def send(self, message: EmailMessage) -> None:
        with self._open() as smtp:
            if self._security == "starttls":
                smtp.starttls(context=ssl.create_default_context())
            if self._username and self._password:
                smtp.login(self._username, self._password)
            smtp.send_message(message)
