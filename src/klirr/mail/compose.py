"""Subject, body and MIME message for an invoice email."""

import re
from email.message import EmailMessage
from email.utils import formataddr, formatdate, make_msgid

from klirr.domain.entities import EmailAccount, EmailSettings, RenderInput, Template
from klirr.domain.errors import EmailTemplateError
from klirr.render.base import Pdf

_PLACEHOLDER = re.compile(r"<([A-Z][A-Z_]*)>")


def _sanitize_header(value: str) -> str:
    """Strip CR/LF so a header value cannot fold into another header."""
    return " ".join(value.splitlines()).strip()


def _address(account: EmailAccount) -> str:
    return formataddr((account.name, account.email))


def placeholder_values(render_input: RenderInput) -> dict[str, str]:
    return {
        "INV_NO": str(render_input.information.identifier),
        "FROM_CO": render_input.vendor.company_name,
        "TO_CO": render_input.client.company_name,
        "INV_DATE": render_input.information.date.isoformat(),
    }


def _fill(text: str, values: dict[str, str], where: str) -> str:
    def substitute(match: re.Match) -> str:
        name = match.group(1)
        if name not in values:
            known = ", ".join(f"<{key}>" for key in values)
            raise EmailTemplateError(f"Unknown placeholder <{name}> in email {where}. Known: {known}")
        return values[name]

    return _PLACEHOLDER.sub(substitute, text)


def materialize_template(template: Template, render_input: RenderInput) -> tuple[str, str]:
    """Fill the subject and body placeholders for one invoice.

    Raises:
        EmailTemplateError: If a template uses an unknown placeholder
    """
    values = placeholder_values(render_input)
    subject = _fill(template.subject_format, values, "subject")
    body = _fill(template.body_format, values, "body")
    return subject, body


def compose_message(
    settings: EmailSettings,
    subject: str,
    body: str,
    pdf: Pdf,
    attachment_name: str,
) -> EmailMessage:
    """Build the message with the invoice attached.

    BCC recipients are not written to the headers; the transport adds them
    to the envelope.
    """
    sender = settings.sender
    msg = EmailMessage()
    msg["Subject"] = _sanitize_header(subject)
    msg["From"] = _address(sender)
    msg["To"] = ", ".join(_address(account) for account in settings.recipients)
    if settings.cc_recipients:
        msg["Cc"] = ", ".join(_address(account) for account in settings.cc_recipients)
    if settings.reply_to:
        msg["Reply-To"] = _address(settings.reply_to)
    msg["Date"] = formatdate(localtime=True)
    msg["Message-ID"] = make_msgid(domain=sender.email.split("@")[-1])
    msg.set_content(body)
    msg.add_attachment(pdf, maintype="application", subtype="pdf", filename=attachment_name)
    return msg


def envelope_recipients(settings: EmailSettings) -> list[str]:
    """Every address the message is delivered to, BCC included."""
    accounts = (*settings.recipients, *settings.cc_recipients, *settings.bcc_recipients)
    return [account.email for account in accounts]
