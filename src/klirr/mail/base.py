"""Abstract email transport interface."""

from abc import ABC, abstractmethod
from email.message import EmailMessage

from klirr.domain.entities import SmtpServer


class EmailTransport(ABC):
    """Delivers a composed message."""

    @abstractmethod
    def send(
        self,
        message: EmailMessage,
        server: SmtpServer,
        username: str,
        app_password: str,
        recipients: list[str],
    ) -> None:
        """Submit ``message`` to ``recipients``.

        Raises:
            SmtpConnect: If the server cannot be reached
            SmtpAuth: If the server rejects the credentials
            SmtpSend: If the server rejects the message
        """
        pass
