"""Invoice pipeline: from persisted records to a complete render input."""

import logging
import re
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Optional

from klirr.domain.calendar import due_date, service_quantity
from klirr.domain.cancellation import CancellationToken
from klirr.domain.entities import (
    CompanyInformation,
    DataFromDisk,
    InvoiceIdentifier,
    InvoiceInformation,
    InvoicedItems,
    RenderInput,
    Services,
)
from klirr.domain.errors import NoExpensesRecorded
from klirr.domain.exchange_rates import FxRateResolver, RateCache, RateFetcher
from klirr.domain.l18n import Language, load_l18n
from klirr.domain.money import Item, PricedItem, grand_total
from klirr.domain.numbering import current_number
from klirr.domain.period import YearAndMonth
from klirr.storage.base import DataStore

logger = logging.getLogger("klirr.pipeline")

INVOICES_DIR = "invoices"

_UNSAFE_FILENAME = re.compile(r"[^\w.-]+")


@dataclass(frozen=True)
class ValidInput:
    """Validated request for one invoice."""

    month: YearAndMonth
    items: InvoicedItems = field(default_factory=Services)
    language: Language = Language.EN
    output_path: Optional[Path] = None


def output_name(information: InvoiceInformation, vendor: CompanyInformation) -> str:
    """File name of the rendered invoice.

    Example: ``2025-05-31_Lupin_et_Associés_invoice_239.pdf``
    """
    vendor_name = _UNSAFE_FILENAME.sub("_", vendor.company_name).strip("_")
    kind = "_expenses" if information.identifier.is_expenses else ""
    return (
        f"{information.date.isoformat()}_{vendor_name}{kind}"
        f"_invoice_{information.identifier.number}.pdf"
    )


def resolve_output_path(data_dir: Path, name: str, out: Optional[Path] = None) -> Path:
    """Explicit ``out`` wins; otherwise an ``invoices`` directory beside the data directory."""
    if out is not None:
        return Path(out)
    return Path(data_dir).resolve().parent / INVOICES_DIR / name


def build_items(data: DataFromDisk, month: YearAndMonth, mode: InvoicedItems) -> list[Item]:
    """Line items of the invoice, priced in their own currencies.

    Raises:
        NoExpensesRecorded: Expenses invoice for a month without expenses
    """
    if mode.is_expenses:
        items = list(data.expensed_months.items_for(month))
        if not items:
            raise NoExpensesRecorded(f"No expenses recorded for {month}")
        return items

    fees = data.service_fees
    return [
        Item(
            name=fees.name,
            when=month,
            quantity=service_quantity(month, fees.rate, mode.time_off),
            unit_price=fees.unit_price,
            currency=fees.currency,
        )
    ]


class InvoicePipeline:
    """Turn a ``ValidInput`` into a ``RenderInput``.

    Steps run in order and the cancellation token is checked between them.
    Nothing is written except the FX rate cache, and only after every rate
    has been resolved.
    """

    def __init__(
        self,
        store: DataStore,
        fetcher: RateFetcher,
        cancellation: Optional[CancellationToken] = None,
        max_retries: int = 3,
        backoff_base: float = 0.25,
        backoff_cap: float = 2.0,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.store = store
        self.fetcher = fetcher
        self.cancellation = cancellation or CancellationToken()
        self.max_retries = max_retries
        self.backoff_base = backoff_base
        self.backoff_cap = backoff_cap
        self.sleep = sleep

    def _checkpoint(self, step: str) -> None:
        self.cancellation.raise_if_cancelled(step)

    def run(self, valid_input: ValidInput) -> RenderInput:
        month = valid_input.month
        mode = valid_input.items
        logger.info(
            "Preparing %s invoice for %s", "expenses" if mode.is_expenses else "services", month
        )

        self._checkpoint("loading data")
        data = self.store.read_data()

        self._checkpoint("numbering")
        identifier = current_number(
            data.information.offset,
            month,
            data.expensed_months,
            mode,
            months_off=data.information.months_off,
        )
        information = self._invoice_information(data, month, identifier)

        self._checkpoint("assembling items")
        items = build_items(data, month, mode)

        self._checkpoint("resolving exchange rates")
        target = data.payment_info.currency
        resolver = FxRateResolver(
            self.fetcher,
            cache=RateCache(self.store.read_cached_rates()),
            max_retries=self.max_retries,
            backoff_base=self.backoff_base,
            backoff_cap=self.backoff_cap,
            sleep=self.sleep,
            cancellation=self.cancellation,
        )
        rates = resolver.resolve(items, target)
        priced = tuple(
            PricedItem.convert(item, rates.rate_for(item.currency, item.when.to_date_end_of_period()))
            for item in items
        )
        if resolver.cache.dirty:
            self.store.write_cached_rates(resolver.cache.entries())

        self._checkpoint("loading localization")
        l18n = load_l18n(valid_input.language, self.store.read_l18n_overrides(valid_input.language))

        total = grand_total(priced)
        logger.info("Invoice %s: %d item(s), total %s %s", identifier, len(priced), total, target)
        return RenderInput(
            l18n=l18n,
            information=information,
            vendor=data.vendor,
            client=data.client,
            payment_info=data.payment_info,
            line_items=priced,
            grand_total=total,
            output_name=output_name(information, data.vendor),
        )

    @staticmethod
    def _invoice_information(
        data: DataFromDisk, month: YearAndMonth, identifier: InvoiceIdentifier
    ) -> InvoiceInformation:
        invoice_date = month.to_date_end_of_period()
        terms = data.payment_info.terms
        return InvoiceInformation(
            identifier=identifier,
            date=invoice_date,
            due_date=due_date(invoice_date, terms.due_in_days),
            terms=terms,
            purchase_order=data.information.purchase_order,
            footer_text=data.information.footer_text,
            emphasize_color_hex=data.information.emphasize_color_hex,
        )
