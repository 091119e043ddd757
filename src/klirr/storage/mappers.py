"""Mapper functions to convert between domain entities and serialized records.

This layer isolates the conversion logic, so the on-disk shape can change
without touching the domain. Decimals are written as strings, periods as
``YYYY[-MM[-DD]]`` and bytes as lowercase hex.
"""

from datetime import date
from decimal import Decimal
from typing import Any, Callable, Optional, TypeVar

from klirr.domain import entities as domain
from klirr.domain.errors import DeserializeError
from klirr.domain.money import Item, parse_currency, to_decimal
from klirr.domain.period import parse_period, parse_year_and_month

T = TypeVar("T")


def deserialize(type_name: str, parse: Callable[[Any], T], raw: Any) -> T:
    """Run ``parse`` and wrap any failure in DeserializeError."""
    try:
        return parse(raw)
    except (KeyError, TypeError, ValueError, AttributeError) as e:
        cause = f"missing field {e}" if isinstance(e, KeyError) else str(e)
        raise DeserializeError(type_name, cause)


def _optional(raw: dict, key: str) -> Optional[str]:
    value = raw.get(key)
    return None if value in (None, "") else value


def _hex(raw: str) -> bytes:
    return bytes.fromhex(raw)


# Companies


def postal_address_to_dict(address: domain.PostalAddress) -> dict[str, Any]:
    return {
        "street_address_line_1": address.street_address_line_1,
        "street_address_line_2": address.street_address_line_2,
        "zip": address.zip,
        "city": address.city,
        "country": address.country,
    }


def postal_address_from_dict(raw: dict[str, Any]) -> domain.PostalAddress:
    return domain.PostalAddress(
        street_address_line_1=raw["street_address_line_1"],
        street_address_line_2=_optional(raw, "street_address_line_2"),
        zip=raw["zip"],
        city=raw["city"],
        country=raw["country"],
    )


def company_to_dict(company: domain.CompanyInformation) -> dict[str, Any]:
    return {
        "contact_person": company.contact_person,
        "organisation_number": company.organisation_number,
        "company_name": company.company_name,
        "postal_address": postal_address_to_dict(company.postal_address),
        "vat_number": company.vat_number,
    }


def company_from_dict(raw: dict[str, Any]) -> domain.CompanyInformation:
    return domain.CompanyInformation(
        contact_person=_optional(raw, "contact_person"),
        organisation_number=raw["organisation_number"],
        company_name=raw["company_name"],
        postal_address=postal_address_from_dict(raw["postal_address"]),
        vat_number=raw["vat_number"],
    )


# Payment and fees


def payment_info_to_dict(info: domain.PaymentInformation) -> dict[str, Any]:
    return {
        "iban": info.iban,
        "bank_name": info.bank_name,
        "bic": info.bic,
        "currency": info.currency,
        "terms": str(info.terms),
    }


def payment_info_from_dict(raw: dict[str, Any]) -> domain.PaymentInformation:
    return domain.PaymentInformation(
        iban=raw["iban"],
        bank_name=raw["bank_name"],
        bic=raw["bic"],
        currency=parse_currency(raw["currency"]),
        terms=domain.NetTerms.parse(raw["terms"]),
    )


def service_fees_to_dict(fees: domain.ServiceFees) -> dict[str, Any]:
    return {
        "name": fees.name,
        "unit_price": str(fees.unit_price),
        "currency": fees.currency,
        "rate": fees.rate.value,
    }


def service_fees_from_dict(raw: dict[str, Any]) -> domain.ServiceFees:
    return domain.ServiceFees(
        name=raw["name"],
        unit_price=to_decimal(raw["unit_price"], "unit_price"),
        currency=parse_currency(raw["currency"]),
        rate=domain.Rate.parse(raw["rate"]),
    )


# Invoice settings


def information_to_dict(info: domain.InvoiceSettings) -> dict[str, Any]:
    return {
        "offset": {
            "offset": info.offset.offset,
            "month": str(info.offset.month),
        },
        "months_off": [str(month) for month in info.months_off],
        "purchase_order": info.purchase_order,
        "footer_text": info.footer_text,
        "emphasize_color_hex": info.emphasize_color_hex,
    }


def information_from_dict(raw: dict[str, Any]) -> domain.InvoiceSettings:
    offset = raw["offset"]
    return domain.InvoiceSettings(
        offset=domain.TimestampedInvoiceNumber(
            offset=int(offset["offset"]),
            month=parse_year_and_month(offset["month"]),
        ),
        months_off=tuple(parse_year_and_month(m) for m in raw.get("months_off", [])),
        purchase_order=_optional(raw, "purchase_order"),
        footer_text=_optional(raw, "footer_text"),
        emphasize_color_hex=_optional(raw, "emphasize_color_hex"),
    )


# Items


def item_to_dict(item: Item) -> dict[str, Any]:
    return {
        "name": item.name,
        "when": str(item.when),
        "quantity": str(item.quantity),
        "unit_price": str(item.unit_price),
        "currency": item.currency,
    }


def item_from_dict(raw: dict[str, Any]) -> Item:
    return Item(
        name=raw["name"],
        when=parse_period(raw["when"]),
        quantity=to_decimal(raw["quantity"], "quantity"),
        unit_price=to_decimal(raw["unit_price"], "unit_price"),
        currency=parse_currency(raw["currency"]),
    )


def expensed_months_to_dict(expensed: domain.ExpensedMonths) -> dict[str, Any]:
    return {
        str(month): [item_to_dict(item) for item in expensed.items_for(month)]
        for month in expensed.months()
    }


def expensed_months_from_dict(raw: dict[str, Any]) -> domain.ExpensedMonths:
    return domain.ExpensedMonths(
        {
            parse_year_and_month(month): tuple(item_from_dict(item) for item in items)
            for month, items in raw.items()
        }
    )


# Email


def email_account_to_dict(account: domain.EmailAccount) -> dict[str, Any]:
    return {"name": account.name, "email": account.email}


def email_account_from_dict(raw: dict[str, Any]) -> domain.EmailAccount:
    return domain.EmailAccount(name=raw["name"], email=raw["email"])


def encrypted_password_to_dict(sealed: domain.EncryptedAppPassword) -> dict[str, Any]:
    return {
        "ciphertext": sealed.ciphertext.hex(),
        "nonce": sealed.nonce.hex(),
        "salt": sealed.salt.hex(),
        "kdf_iterations": sealed.kdf_iterations,
    }


def encrypted_password_from_dict(raw: dict[str, Any]) -> domain.EncryptedAppPassword:
    return domain.EncryptedAppPassword(
        ciphertext=_hex(raw["ciphertext"]),
        nonce=_hex(raw["nonce"]),
        salt=_hex(raw["salt"]),
        kdf_iterations=int(raw["kdf_iterations"]),
    )


def email_settings_to_dict(settings: domain.EmailSettings) -> dict[str, Any]:
    return {
        "sender": email_account_to_dict(settings.sender),
        "recipients": [email_account_to_dict(a) for a in settings.recipients],
        "cc_recipients": [email_account_to_dict(a) for a in settings.cc_recipients],
        "bcc_recipients": [email_account_to_dict(a) for a in settings.bcc_recipients],
        "reply_to": email_account_to_dict(settings.reply_to) if settings.reply_to else None,
        "smtp_server": {"host": settings.smtp_server.host, "port": settings.smtp_server.port},
        "sealed_password": encrypted_password_to_dict(settings.sealed_password),
        "template": {
            "subject_format": settings.template.subject_format,
            "body_format": settings.template.body_format,
        },
    }


def email_settings_from_dict(raw: dict[str, Any]) -> domain.EmailSettings:
    reply_to = raw.get("reply_to")
    return domain.EmailSettings(
        sender=email_account_from_dict(raw["sender"]),
        recipients=tuple(email_account_from_dict(a) for a in raw["recipients"]),
        cc_recipients=tuple(email_account_from_dict(a) for a in raw.get("cc_recipients", [])),
        bcc_recipients=tuple(email_account_from_dict(a) for a in raw.get("bcc_recipients", [])),
        reply_to=email_account_from_dict(reply_to) if reply_to else None,
        smtp_server=domain.SmtpServer(
            host=raw["smtp_server"]["host"], port=int(raw["smtp_server"]["port"])
        ),
        sealed_password=encrypted_password_from_dict(raw["sealed_password"]),
        template=domain.Template(
            subject_format=raw["template"]["subject_format"],
            body_format=raw["template"]["body_format"],
        ),
    )


# Cached rates


def cached_rates_to_dict(entries: dict[tuple[date, str, str], Decimal]) -> dict[str, Any]:
    result: dict[str, Any] = {}
    for (on, base, target), rate in sorted(entries.items()):
        result.setdefault(on.isoformat(), {}).setdefault(base, {})[target] = str(rate)
    return result


def cached_rates_from_dict(raw: dict[str, Any]) -> dict[tuple[date, str, str], Decimal]:
    entries = {}
    for on, bases in raw.items():
        for base, targets in bases.items():
            for target, rate in targets.items():
                entries[(date.fromisoformat(on), base, target)] = to_decimal(rate, "rate")
    return entries
