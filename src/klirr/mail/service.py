"""Send a rendered invoice with the stored email settings."""

import logging

from klirr.domain.entities import EmailSettings, RenderInput
from klirr.domain.vault import CredentialVault
from klirr.mail.base import EmailTransport
from klirr.mail.compose import compose_message, envelope_recipients, materialize_template
from klirr.render.base import Pdf

logger = logging.getLogger("klirr.mail")


class InvoiceMailer:
    """Service for emailing invoices."""

    def __init__(self, transport: EmailTransport, vault: CredentialVault):
        """Initialize the mailer.

        Args:
            transport: Delivers the composed message
            vault: Opens the sealed app password
        """
        self.transport = transport
        self.vault = vault

    def send(self, settings: EmailSettings, passphrase: str, render_input: RenderInput, pdf: Pdf) -> None:
        """Email ``pdf`` to the configured recipients.

        The template is filled before the password is opened, so template
        mistakes surface without a key derivation.

        Raises:
            EmailTemplateError: Unknown placeholder in the template
            DecryptionFailed: Wrong passphrase
            SmtpConnect, SmtpAuth, SmtpSend: Delivery failures
        """
        subject, body = materialize_template(settings.template, render_input)
        message = compose_message(settings, subject, body, pdf, render_input.output_name)
        app_password = self.vault.open(settings.sealed_password, passphrase)
        logger.info("Emailing invoice %s", render_input.information.identifier)
        self.transport.send(
            message,
            settings.smtp_server,
            settings.sender.email,
            app_password,
            envelope_recipients(settings),
        )
