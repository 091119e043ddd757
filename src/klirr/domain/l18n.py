"""Localized labels for every static string on the invoice."""

from dataclasses import asdict, dataclass, fields
from enum import Enum
from typing import Any, Optional

from klirr.domain.errors import DeserializeError, ValidationError


class Language(Enum):
    """Supported invoice languages."""

    EN = "en"
    SV = "sv"

    @classmethod
    def parse(cls, code: str) -> "Language":
        try:
            return cls(code.strip().lower())
        except ValueError:
            supported = ", ".join(language.value for language in cls)
            raise ValidationError(f"Unsupported language '{code}'. Supported: {supported}")


@dataclass(frozen=True)
class L18nClientInfo:
    to_company: str
    vat_number: str


@dataclass(frozen=True)
class L18nInvoiceInfo:
    title: str
    purchase_order: str
    invoice_identifier: str
    invoice_date: str
    due_date: str
    client_contact: str
    vendor_contact: str
    terms: str


@dataclass(frozen=True)
class L18nVendorInfo:
    address: str
    bank: str
    iban: str
    bic: str
    organisation_number: str
    vat_number: str


@dataclass(frozen=True)
class L18nLineItems:
    description: str
    when: str
    quantity: str
    unit_price: str
    total_cost: str
    grand_total: str


@dataclass(frozen=True)
class L18n:
    """All labels of one language."""

    language: Language
    client_info: L18nClientInfo
    invoice_info: L18nInvoiceInfo
    vendor_info: L18nVendorInfo
    line_items: L18nLineItems
    month_names: tuple[str, ...]

    def __post_init__(self):
        if len(self.month_names) != 12:
            raise ValidationError(f"Expected 12 month names, got {len(self.month_names)}")

    def month_name(self, month: int) -> str:
        return self.month_names[month - 1]


ENGLISH = L18n(
    language=Language.EN,
    client_info=L18nClientInfo(to_company="To:", vat_number="VAT:"),
    invoice_info=L18nInvoiceInfo(
        title="Invoice",
        purchase_order="Purchase order:",
        invoice_identifier="Invoice no:",
        invoice_date="Invoice date:",
        due_date="Due date:",
        client_contact="For the attention of:",
        vendor_contact="Our reference:",
        terms="Terms:",
    ),
    vendor_info=L18nVendorInfo(
        address="Address",
        bank="Bank",
        iban="IBAN",
        bic="BIC",
        organisation_number="Org. No.",
        vat_number="VAT No.",
    ),
    line_items=L18nLineItems(
        description="Item",
        when="When",
        quantity="Quantity",
        unit_price="Unit price",
        total_cost="Total cost",
        grand_total="Grand Total:",
    ),
    month_names=(
        "January", "February", "March", "April", "May", "June",
        "July", "August", "September", "October", "November", "December",
    ),
)

SWEDISH = L18n(
    language=Language.SV,
    client_info=L18nClientInfo(to_company="Till:", vat_number="Moms:"),
    invoice_info=L18nInvoiceInfo(
        title="Faktura",
        purchase_order="Inköpsorder:",
        invoice_identifier="Fakturanr:",
        invoice_date="Fakturadatum:",
        due_date="Förfallodatum:",
        client_contact="Er referens:",
        vendor_contact="Vår referens:",
        terms="Villkor:",
    ),
    vendor_info=L18nVendorInfo(
        address="Adress",
        bank="Bank",
        iban="IBAN",
        bic="BIC",
        organisation_number="Org. Nr.",
        vat_number="Momsreg. Nr.",
    ),
    line_items=L18nLineItems(
        description="Artikel",
        when="När",
        quantity="Antal",
        unit_price="Enhetspris",
        total_cost="Kostnad",
        grand_total="Totalt:",
    ),
    month_names=(
        "Januari", "Februari", "Mars", "April", "Maj", "Juni",
        "Juli", "Augusti", "September", "Oktober", "November", "December",
    ),
)

EMBEDDED_LOCALES: dict[Language, L18n] = {
    Language.EN: ENGLISH,
    Language.SV: SWEDISH,
}

_SECTIONS = {
    "client_info": L18nClientInfo,
    "invoice_info": L18nInvoiceInfo,
    "vendor_info": L18nVendorInfo,
    "line_items": L18nLineItems,
}


def l18n_to_dict(l18n: L18n) -> dict[str, Any]:
    """Serializable form of a localization."""
    data = asdict(l18n)
    data["language"] = l18n.language.value
    data["month_names"] = list(l18n.month_names)
    return data


def _merge_section(cls, base, override: Any, section: str):
    if not isinstance(override, dict):
        raise DeserializeError("L18n", f"section '{section}' must be an object")
    values = {}
    for f in fields(cls):
        value = override.get(f.name, getattr(base, f.name))
        if not isinstance(value, str):
            raise DeserializeError("L18n", f"'{section}.{f.name}' must be a string")
        values[f.name] = value
    return cls(**values)


def load_l18n(language: Language, overrides: Optional[dict[str, Any]] = None) -> L18n:
    """Return the embedded localization, with ``overrides`` applied on top.

    Keys missing from ``overrides`` fall back to the embedded strings.
    """
    base = EMBEDDED_LOCALES[language]
    if not overrides:
        return base

    sections = {
        name: _merge_section(cls, getattr(base, name), overrides.get(name, {}), name)
        for name, cls in _SECTIONS.items()
    }
    month_names = overrides.get("month_names", base.month_names)
    if not isinstance(month_names, (list, tuple)) or len(month_names) != 12:
        raise DeserializeError("L18n", "'month_names' must be a list of 12 strings")
    return L18n(language=language, month_names=tuple(month_names), **sections)
