"""Sample records.

Used as the defaults offered by ``data init`` and ``email init``, and as
the data of the sample invoice sent by ``email test``.
"""

from decimal import Decimal

from klirr.domain.entities import (
    CompanyInformation,
    DataFromDisk,
    EmailAccount,
    ExpensedMonths,
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
from klirr.domain.money import Item
from klirr.domain.period import YearAndMonth, YearMonthAndDay

DEFAULT_FOOTER = "Reverse VAT according to chapter 1 2§ first section 4b in the VAT regulation."


def sample_vendor() -> CompanyInformation:
    return CompanyInformation(
        company_name="Lupin et Associés",
        contact_person="Arsène Lupin",
        organisation_number="7418529-3012",
        vat_number="FR74185293012",
        postal_address=PostalAddress(
            street_address_line_1="5 Avenue Henri-Martin",
            street_address_line_2="Appartement 24",
            zip="75116",
            city="Paris",
            country="France",
        ),
    )


def sample_client() -> CompanyInformation:
    return CompanyInformation(
        company_name="Holmes Ltd",
        contact_person="Sherlock Holmes",
        organisation_number="9876543-2101",
        vat_number="GB987654321",
        postal_address=PostalAddress(
            street_address_line_1="221B Baker Street",
            zip="NW1 6XE",
            city="London",
            country="England",
        ),
    )


def sample_payment_info() -> PaymentInformation:
    return PaymentInformation(
        iban="FR76 3000 6000 0112 3456 7890 189",
        bank_name="Banque de Paris",
        bic="BNPAFRPP",
        currency="EUR",
        terms=NetTerms(30),
    )


def sample_service_fees() -> ServiceFees:
    return ServiceFees(
        name="Agreed Consulting Fees",
        unit_price=Decimal("350"),
        currency="EUR",
        rate=Rate.DAILY,
    )


def sample_information() -> InvoiceSettings:
    return InvoiceSettings(
        offset=TimestampedInvoiceNumber(offset=237, month=YearAndMonth(2025, 3)),
        purchase_order="PO-12345",
        footer_text=DEFAULT_FOOTER,
        emphasize_color_hex="#e6007a",
    )


def sample_expensed_months() -> ExpensedMonths:
    month = YearAndMonth(2025, 4)
    return ExpensedMonths(
        {
            month: (
                Item(
                    name="Breakfast",
                    when=YearMonthAndDay(2025, 4, 14),
                    quantity=Decimal("1"),
                    unit_price=Decimal("145"),
                    currency="SEK",
                ),
                Item(
                    name="Coffee",
                    when=YearMonthAndDay(2025, 4, 15),
                    quantity=Decimal("2"),
                    unit_price=Decimal("4.5"),
                    currency="GBP",
                ),
                Item(
                    name="Sandwich",
                    when=YearMonthAndDay(2025, 4, 15),
                    quantity=Decimal("1"),
                    unit_price=Decimal("7"),
                    currency="EUR",
                ),
            )
        }
    )


def sample_data() -> DataFromDisk:
    return DataFromDisk(
        information=sample_information(),
        vendor=sample_vendor(),
        client=sample_client(),
        payment_info=sample_payment_info(),
        service_fees=sample_service_fees(),
        expensed_months=sample_expensed_months(),
    )


def sample_sender() -> EmailAccount:
    return EmailAccount(name="Arsène Lupin", email="arsene.lupin@example.com")


def sample_recipient() -> EmailAccount:
    return EmailAccount(name="Sherlock Holmes", email="sherlock.holmes@example.com")


def sample_smtp_server() -> SmtpServer:
    return SmtpServer()


def sample_template() -> Template:
    return Template()
