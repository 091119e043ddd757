"""SMTP submission over implicit TLS or STARTTLS."""

import logging
import smtplib
import ssl
from email.message import EmailMessage
from typing import Callable

from klirr.domain.entities import SmtpServer
from klirr.domain.errors import InvalidSmtpServer, SmtpAuth, SmtpConnect, SmtpSend
from klirr.mail.base import EmailTransport

logger = logging.getLogger("klirr.mail")

IMPLICIT_TLS_PORT = 465
STARTTLS_PORT = 587
SMTP_TIMEOUT = 30.0


class SmtpTransport(EmailTransport):
    """Send through ``smtplib``.

    Port 465 connects with implicit TLS, port 587 upgrades with STARTTLS.
    Both factories are injectable so tests never open a socket.
    """

    def __init__(
        self,
        smtp_ssl_factory: Callable[..., smtplib.SMTP] = smtplib.SMTP_SSL,
        smtp_factory: Callable[..., smtplib.SMTP] = smtplib.SMTP,
        timeout: float = SMTP_TIMEOUT,
    ):
        self.smtp_ssl_factory = smtp_ssl_factory
        self.smtp_factory = smtp_factory
        self.timeout = timeout

    def _connect(self, server: SmtpServer) -> smtplib.SMTP:
        context = ssl.create_default_context()
        if server.port == IMPLICIT_TLS_PORT:
            return self.smtp_ssl_factory(server.host, server.port, context=context, timeout=self.timeout)
        if server.port == STARTTLS_PORT:
            connection = self.smtp_factory(server.host, server.port, timeout=self.timeout)
            try:
                connection.starttls(context=context)
            except (OSError, smtplib.SMTPException):
                connection.close()
                raise
            return connection
        raise InvalidSmtpServer(
            f"Unsupported SMTP port {server.port} for {server.host}, "
            f"use {IMPLICIT_TLS_PORT} (TLS) or {STARTTLS_PORT} (STARTTLS)"
        )

    def send(
        self,
        message: EmailMessage,
        server: SmtpServer,
        username: str,
        app_password: str,
        recipients: list[str],
    ) -> None:
        logger.debug("Connecting to %s:%d", server.host, server.port)
        try:
            connection = self._connect(server)
        except (OSError, smtplib.SMTPException) as e:
            raise SmtpConnect(f"Could not connect to {server.host}:{server.port}: {e}")

        with connection:
            try:
                connection.login(username, app_password)
            except smtplib.SMTPAuthenticationError as e:
                raise SmtpAuth(f"{server.host} rejected the credentials of {username}: {e.smtp_code}")
            except (OSError, smtplib.SMTPException) as e:
                raise SmtpConnect(f"Lost connection to {server.host}:{server.port} during login: {e}")

            try:
                connection.send_message(message, to_addrs=recipients)
            except (OSError, smtplib.SMTPException) as e:
                raise SmtpSend(f"{server.host} did not accept the message: {e}")

        logger.info("Sent '%s' to %d recipient(s)", message["Subject"], len(recipients))
