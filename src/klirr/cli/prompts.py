"""Interactive prompts for the records edited by ``data`` and ``email``.

Every prompt shows the current (or sample) value as its default, so
pressing enter keeps it.
"""

from __future__ import annotations

from typing import Optional

import click

from klirr.domain.entities import (
    CompanyInformation,
    EmailAccount,
    InvoiceSettings,
    NetTerms,
    PaymentInformation,
    PostalAddress,
    Rate,
    ServiceFees,
    SmtpServer,
    Template,
    TimestampedInvoiceNumber,
)
from klirr.domain.errors import OffsetMonthIsOff, ValidationError, offset_month_is_off
from klirr.domain.money import parse_currency
from klirr.domain.period import parse_year_and_month
from klirr.utils.address_parser import format_email_accounts, parse_email_accounts
from klirr.utils.amount_parser import parse_decimal


def _optional(value: str) -> Optional[str]:
    value = value.strip()
    return value or None


def _text(label: str, default: Optional[str], required: bool = True) -> Optional[str]:
    if required:
        return click.prompt(label, default=default)
    return _optional(click.prompt(f"{label} (blank for none)", default=default or "", show_default=bool(default)))


def _until_valid(ask, convert):
    """Ask again until ``convert`` accepts the answer."""
    while True:
        answer = ask()
        try:
            return convert(answer)
        except ValidationError as e:
            click.echo(f"Error: {e}", err=True)


def prompt_company(title: str, default: CompanyInformation) -> CompanyInformation:
    click.echo(f"\n{title}")
    address = default.postal_address
    return CompanyInformation(
        company_name=_text("Company name", default.company_name),
        contact_person=_text("Contact person", default.contact_person, required=False),
        organisation_number=_text("Organisation number", default.organisation_number),
        vat_number=_text("VAT number", default.vat_number),
        postal_address=PostalAddress(
            street_address_line_1=_text("Street address", address.street_address_line_1),
            street_address_line_2=_text("Street address line 2", address.street_address_line_2, required=False),
            zip=_text("Zip code", address.zip),
            city=_text("City", address.city),
            country=_text("Country", address.country),
        ),
    )


def prompt_payment_info(default: PaymentInformation) -> PaymentInformation:
    click.echo("\nPayment information")
    return PaymentInformation(
        iban=_text("IBAN", default.iban),
        bank_name=_text("Bank name", default.bank_name),
        bic=_text("BIC", default.bic),
        currency=_until_valid(lambda: click.prompt("Invoice currency", default=default.currency), parse_currency),
        terms=_until_valid(lambda: click.prompt("Payment terms", default=str(default.terms)), NetTerms.parse),
    )


def _non_negative(value: str, field_name: str):
    amount = parse_decimal(value, field_name)
    if amount < 0:
        raise ValidationError(f"{field_name.capitalize()} must not be negative, got {amount}")
    return amount


def prompt_service_fees(default: ServiceFees) -> ServiceFees:
    click.echo("\nService fees")
    name = _text("Service name", default.name)
    rate = _until_valid(
        lambda: click.prompt("Rate (monthly, daily or hourly)", default=default.rate.value),
        Rate.parse,
    )
    label = "price per working day" if rate == Rate.DAILY else f"price per {rate.unit}"
    return ServiceFees(
        name=name,
        rate=rate,
        unit_price=_until_valid(
            lambda: click.prompt(label.capitalize(), default=str(default.unit_price)),
            lambda value: _non_negative(value, label),
        ),
        currency=_until_valid(lambda: click.prompt("Service currency", default=default.currency), parse_currency),
    )


def prompt_information(default: InvoiceSettings) -> InvoiceSettings:
    click.echo("\nInvoice information")

    def offset_month_of(value: str):
        month = parse_year_and_month(value)
        if month in default.months_off:
            raise OffsetMonthIsOff(offset_month_is_off(month))
        return month

    offset_month = _until_valid(
        lambda: click.prompt("Month of the last known invoice number (YYYY-MM)", default=str(default.offset.month)),
        offset_month_of,
    )

    offset = _until_valid(
        lambda: click.prompt(f"Invoice number for {offset_month}", default=default.offset.offset, type=int),
        lambda value: TimestampedInvoiceNumber(offset=value, month=offset_month),
    )

    purchase_order = _text("Purchase order", default.purchase_order, required=False)
    footer_text = _text("Footer text", default.footer_text, required=False)

    def with_color(value: str) -> InvoiceSettings:
        return InvoiceSettings(
            offset=offset,
            months_off=default.months_off,
            purchase_order=purchase_order,
            footer_text=footer_text,
            emphasize_color_hex=_optional(value),
        )

    return _until_valid(
        lambda: click.prompt(
            "Emphasize color (#RRGGBB, blank for default)",
            default=default.emphasize_color_hex or "",
            show_default=bool(default.emphasize_color_hex),
        ),
        with_color,
    )


def prompt_account(label: str, default: Optional[EmailAccount]) -> EmailAccount:
    def convert(value: str) -> EmailAccount:
        accounts = parse_email_accounts(value)
        if len(accounts) != 1:
            raise ValidationError(f"Expected exactly one address, got '{value}'")
        return accounts[0]

    return _until_valid(lambda: click.prompt(label, default=str(default) if default else None), convert)


def prompt_optional_account(label: str, default: Optional[EmailAccount]) -> Optional[EmailAccount]:
    def convert(value: str) -> Optional[EmailAccount]:
        accounts = parse_email_accounts(value)
        if len(accounts) > 1:
            raise ValidationError(f"Expected at most one address, got '{value}'")
        return accounts[0] if accounts else None

    return _until_valid(
        lambda: click.prompt(f"{label} (blank for none)", default=str(default) if default else "", show_default=bool(default)),
        convert,
    )


def prompt_accounts(label: str, default: tuple[EmailAccount, ...], required: bool) -> tuple[EmailAccount, ...]:
    def convert(value: str) -> tuple[EmailAccount, ...]:
        accounts = parse_email_accounts(value)
        if required and not accounts:
            raise ValidationError(f"At least one address is required for {label.lower()}")
        return accounts

    suffix = "" if required else " (blank for none)"
    formatted = format_email_accounts(default)
    return _until_valid(
        lambda: click.prompt(f"{label}, comma separated{suffix}", default=formatted, show_default=bool(formatted)),
        convert,
    )


def prompt_smtp_server(default: SmtpServer) -> SmtpServer:
    host = _text("SMTP server", default.host)
    port = click.prompt("SMTP port (465 TLS, 587 STARTTLS)", default=str(default.port), type=click.Choice(["465", "587"]))
    return SmtpServer(host=host, port=int(port))


def prompt_template(default: Template) -> Template:
    click.echo("Placeholders: <INV_NO>, <FROM_CO>, <TO_CO>, <INV_DATE>")
    return Template(
        subject_format=_text("Subject", default.subject_format),
        body_format=_text("Body", default.body_format),
    )


def prompt_app_password() -> str:
    return click.prompt("SMTP app password", hide_input=True)
