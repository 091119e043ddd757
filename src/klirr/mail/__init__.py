"""Email delivery for klirr application."""

from klirr.mail.base import EmailTransport
from klirr.mail.service import InvoiceMailer
from klirr.mail.smtp import SmtpTransport

__all__ = ["EmailTransport", "InvoiceMailer", "SmtpTransport"]
