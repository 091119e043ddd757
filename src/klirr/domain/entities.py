"""Domain model entities for klirr.

These are pure data classes representing the persisted records and the
derived invoice data, independent of how they are stored on disk. The
storage mappers convert them to and from their serialized form.
"""

import re
from dataclasses import dataclass, field, replace
from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Optional, Union

from klirr.domain.errors import InvalidDay, OffsetMonthIsOff, ValidationError, offset_month_is_off
from klirr.domain.l18n import L18n
from klirr.domain.money import Cost, Item, PricedItem
from klirr.domain.period import YearAndMonth

_HEX_COLOR = re.compile(r"^#[0-9a-fA-F]{6}$")
_NET_TERMS = re.compile(r"^Net (\d+)$")


@dataclass(frozen=True)
class PostalAddress:
    """Postal address of a company."""

    street_address_line_1: str
    zip: str
    city: str
    country: str
    street_address_line_2: Optional[str] = None


@dataclass(frozen=True)
class CompanyInformation:
    """Vendor or client company."""

    company_name: str
    organisation_number: str
    vat_number: str
    postal_address: PostalAddress
    contact_person: Optional[str] = None


@dataclass(frozen=True)
class NetTerms:
    """Payment due a number of days after the invoice date."""

    due_in_days: int = 30

    def __post_init__(self):
        if not 0 <= self.due_in_days <= 65535:
            raise ValidationError(f"Net days must be between 0 and 65535, got {self.due_in_days}")

    @classmethod
    def parse(cls, text: str) -> "NetTerms":
        match = _NET_TERMS.match(text.strip())
        if match is None:
            raise ValidationError(f"Could not parse payment terms '{text}', expected e.g. 'Net 30'")
        return cls(int(match.group(1)))

    def __str__(self) -> str:
        return f"Net {self.due_in_days}"


# Only one kind of payment terms exists today.
PaymentTerms = NetTerms


@dataclass(frozen=True)
class PaymentInformation:
    """Where and in which currency the client pays."""

    iban: str
    bank_name: str
    bic: str
    currency: str
    terms: PaymentTerms = field(default_factory=NetTerms)


@dataclass(frozen=True)
class TimestampedInvoiceNumber:
    """At ``month``, the next invoice number is ``offset``."""

    offset: int
    month: YearAndMonth

    def __post_init__(self):
        if not 0 <= self.offset <= 65535:
            raise ValidationError(f"Invoice number offset must be between 0 and 65535, got {self.offset}")


@dataclass(frozen=True)
class InvoiceSettings:
    """Persisted invoice metadata shared by every invoice."""

    offset: TimestampedInvoiceNumber
    months_off: tuple[YearAndMonth, ...] = ()
    purchase_order: Optional[str] = None
    footer_text: Optional[str] = None
    emphasize_color_hex: Optional[str] = None

    def __post_init__(self):
        object.__setattr__(self, "months_off", tuple(sorted(set(self.months_off))))
        if self.emphasize_color_hex is not None and not _HEX_COLOR.match(self.emphasize_color_hex):
            raise ValidationError(
                f"Emphasize color must look like '#e6007a', got '{self.emphasize_color_hex}'"
            )

    def validate(self) -> None:
        """Check the records hang together.

        Raises:
            OffsetMonthIsOff: If the month of the known invoice number is off
        """
        if self.offset.month in self.months_off:
            raise OffsetMonthIsOff(offset_month_is_off(self.offset.month))

    def with_month_off(self, month: YearAndMonth) -> "InvoiceSettings":
        if month == self.offset.month:
            raise OffsetMonthIsOff(offset_month_is_off(month))
        return replace(self, months_off=self.months_off + (month,))


@dataclass(frozen=True)
class ExpensedMonths:
    """Expense items keyed by the month they are invoiced in.

    Months present here do not consume a services invoice number.
    """

    items_by_month: dict[YearAndMonth, tuple[Item, ...]] = field(default_factory=dict)

    def months(self) -> list[YearAndMonth]:
        return sorted(self.items_by_month)

    def __contains__(self, month: YearAndMonth) -> bool:
        return month in self.items_by_month

    def items_for(self, month: YearAndMonth) -> tuple[Item, ...]:
        return self.items_by_month.get(month, ())

    def with_expenses(self, month: YearAndMonth, items: list[Item]) -> "ExpensedMonths":
        updated = dict(self.items_by_month)
        updated[month] = self.items_for(month) + tuple(items)
        return ExpensedMonths(dict(sorted(updated.items())))


class Rate(Enum):
    """Unit the recurring service is priced in."""

    MONTHLY = "monthly"
    DAILY = "daily"
    HOURLY = "hourly"

    @classmethod
    def parse(cls, text: str) -> "Rate":
        try:
            return cls(text.strip().lower())
        except ValueError:
            supported = ", ".join(rate.value for rate in cls)
            raise ValidationError(f"Unknown rate '{text}'. Supported: {supported}")

    @property
    def unit(self) -> str:
        return {Rate.MONTHLY: "month", Rate.DAILY: "day", Rate.HOURLY: "hour"}[self]


@dataclass(frozen=True)
class TimeOff:
    """Time not worked in the invoiced month, in days or hours."""

    amount: Decimal
    unit: Rate = Rate.DAILY

    def __post_init__(self):
        if self.unit == Rate.MONTHLY:
            raise ValidationError("Time off is counted in days or hours, not months")
        if self.amount < 0:
            raise InvalidDay(f"Time off must not be negative, got {self.amount}")

    @classmethod
    def days(cls, amount: Decimal) -> "TimeOff":
        return cls(Decimal(amount), Rate.DAILY)

    @classmethod
    def hours(cls, amount: Decimal) -> "TimeOff":
        return cls(Decimal(amount), Rate.HOURLY)

    def __str__(self) -> str:
        return f"{self.amount} {self.unit.unit}s"


@dataclass(frozen=True)
class ServiceFees:
    """Price of the recurring service per month, working day or hour."""

    name: str
    unit_price: Decimal
    currency: str
    rate: Rate = Rate.DAILY

    def __post_init__(self):
        if self.unit_price < 0:
            raise ValidationError(f"Service price must not be negative, got {self.unit_price}")


@dataclass(frozen=True)
class Services:
    """Invoice the recurring service, optionally minus time off."""

    time_off: Optional[TimeOff] = None

    is_expenses = False


@dataclass(frozen=True)
class Expenses:
    """Invoice the expenses recorded for the target month."""

    is_expenses = True


InvoicedItems = Union[Services, Expenses]


@dataclass(frozen=True)
class InvoiceIdentifier:
    """Invoice number together with how it is presented.

    An expenses invoice shares its number with the services invoice that
    follows it and is told apart by the ``-E`` suffix.
    """

    number: int
    is_expenses: bool = False

    def __str__(self) -> str:
        return f"{self.number}-E" if self.is_expenses else str(self.number)


@dataclass(frozen=True)
class InvoiceInformation:
    """Fully resolved metadata for a single invoice."""

    identifier: InvoiceIdentifier
    date: date
    due_date: date
    terms: PaymentTerms
    purchase_order: Optional[str] = None
    footer_text: Optional[str] = None
    emphasize_color_hex: Optional[str] = None


@dataclass(frozen=True)
class ExchangeRates:
    """Rates into ``target_currency`` keyed by (date, source currency).

    The rate of the target currency itself is implicitly 1.
    """

    target_currency: str
    rates: dict[tuple[date, str], Decimal] = field(default_factory=dict)

    def rate_for(self, currency: str, on: date) -> Decimal:
        if currency == self.target_currency:
            return Decimal(1)
        try:
            return self.rates[(on, currency)]
        except KeyError:
            raise ValidationError(
                f"No exchange rate {currency}->{self.target_currency} resolved for {on}"
            )


@dataclass(frozen=True)
class DataFromDisk:
    """Every persisted record the pipeline needs."""

    information: InvoiceSettings
    vendor: CompanyInformation
    client: CompanyInformation
    payment_info: PaymentInformation
    service_fees: ServiceFees
    expensed_months: ExpensedMonths = field(default_factory=ExpensedMonths)


@dataclass(frozen=True)
class RenderInput:
    """Complete, currency-consistent input for a document renderer."""

    l18n: L18n
    information: InvoiceInformation
    vendor: CompanyInformation
    client: CompanyInformation
    payment_info: PaymentInformation
    line_items: tuple[PricedItem, ...]
    grand_total: Cost
    output_name: str

    @property
    def currency(self) -> str:
        return self.payment_info.currency

    @property
    def footer(self) -> Optional[str]:
        return self.information.footer_text


class DataSelector(Enum):
    """Subset of the data records addressed by ``data edit``."""

    ALL = "all"
    VENDOR = "vendor"
    CLIENT = "client"
    INFORMATION = "information"
    PAYMENT_INFO = "payment-info"
    SERVICE_FEES = "service-fees"

    def includes(self, target: "DataSelector") -> bool:
        return self is DataSelector.ALL or self is target


@dataclass(frozen=True)
class EmailAccount:
    """Display name and address."""

    name: str
    email: str

    def __post_init__(self):
        local, _, domain = self.email.partition("@")
        if not local or "." not in domain:
            raise ValidationError(f"Invalid email address '{self.email}'")

    def __str__(self) -> str:
        return f"{self.name} <{self.email}>"


@dataclass(frozen=True)
class SmtpServer:
    """SMTP submission host; 465 is implicit TLS, 587 is STARTTLS."""

    host: str = "smtp.gmail.com"
    port: int = 465


@dataclass(frozen=True)
class Template:
    """Subject and body formats with ``<PLACEHOLDER>`` substitutions."""

    subject_format: str = "Invoice <INV_NO> from <FROM_CO>"
    body_format: str = "Please find attached invoice <INV_NO> dated <INV_DATE>."


@dataclass(frozen=True)
class EncryptedAppPassword:
    """AES-256-GCM sealed box plus the parameters needed to open it."""

    ciphertext: bytes
    nonce: bytes
    salt: bytes
    kdf_iterations: int

    NONCE_LENGTH = 12
    SALT_LENGTH = 16

    def __post_init__(self):
        if len(self.nonce) != self.NONCE_LENGTH:
            raise ValidationError(f"Nonce must be {self.NONCE_LENGTH} bytes, got {len(self.nonce)}")
        if len(self.salt) != self.SALT_LENGTH:
            raise ValidationError(f"Salt must be {self.SALT_LENGTH} bytes, got {len(self.salt)}")

    def __repr__(self) -> str:
        return f"EncryptedAppPassword(kdf_iterations={self.kdf_iterations}, ciphertext=<omitted>)"


@dataclass(frozen=True)
class EmailSettings:
    """Everything needed to email an invoice, with the password sealed."""

    sender: EmailAccount
    recipients: tuple[EmailAccount, ...]
    smtp_server: SmtpServer
    sealed_password: EncryptedAppPassword
    template: Template = field(default_factory=Template)
    reply_to: Optional[EmailAccount] = None
    cc_recipients: tuple[EmailAccount, ...] = ()
    bcc_recipients: tuple[EmailAccount, ...] = ()

    def __post_init__(self):
        if not self.recipients:
            raise ValidationError("At least one email recipient is required")


class EmailSettingsSelector(Enum):
    """Subset of the email settings addressed by ``email edit``."""

    ALL = "all"
    APP_PASSWORD = "app-password"
    ENCRYPTION_PASSWORD = "encryption-password"
    TEMPLATE = "template"
    SMTP_SERVER = "smtp-server"
    REPLY_TO = "reply-to"
    SENDER = "sender"
    RECIPIENTS = "recipients"
    CC_RECIPIENTS = "cc-recipients"
    BCC_RECIPIENTS = "bcc-recipients"

    def includes(self, target: "EmailSettingsSelector") -> bool:
        return self is EmailSettingsSelector.ALL or self is target

    @property
    def requires_passphrase(self) -> bool:
        return self in (
            EmailSettingsSelector.ALL,
            EmailSettingsSelector.APP_PASSWORD,
            EmailSettingsSelector.ENCRYPTION_PASSWORD,
        )
