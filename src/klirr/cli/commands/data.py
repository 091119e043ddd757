"""Data record management commands."""

from dataclasses import replace

import click

from klirr.cli.dependencies import get_store
from klirr.cli.error_handling import handle_domain_error
from klirr.cli.prompts import (
    prompt_company,
    prompt_information,
    prompt_payment_info,
    prompt_service_fees,
)
from klirr.domain.entities import DataFromDisk, DataSelector, ExpensedMonths
from klirr.domain.errors import DomainError
from klirr.domain.period import parse_year_and_month
from klirr.domain.samples import sample_data
from klirr.utils.amount_parser import EXPENSE_ITEM_FORMAT, parse_expense_item


@click.group()
def data_group():
    """Manage vendor, client, payment and invoice data."""
    pass


def _prompt_records(defaults: DataFromDisk, selector: DataSelector) -> DataFromDisk:
    data = defaults
    if selector.includes(DataSelector.VENDOR):
        data = replace(data, vendor=prompt_company("Vendor (you)", data.vendor))
    if selector.includes(DataSelector.CLIENT):
        data = replace(data, client=prompt_company("Client", data.client))
    if selector.includes(DataSelector.INFORMATION):
        data = replace(data, information=prompt_information(data.information))
    if selector.includes(DataSelector.PAYMENT_INFO):
        data = replace(data, payment_info=prompt_payment_info(data.payment_info))
    if selector.includes(DataSelector.SERVICE_FEES):
        data = replace(data, service_fees=prompt_service_fees(data.service_fees))
    return data


@data_group.command("init")
@click.option("--use-defaults", is_flag=True, help="Write the sample data without prompting")
@click.option("--force", is_flag=True, help="Overwrite existing data without asking")
@click.pass_context
def init_data(ctx, use_defaults: bool, force: bool):
    """Create the data records, prompting for every field.

    Examples:
        klirr data init
        klirr --data-dir ~/invoicing/data data init --use-defaults
    """
    store = get_store(ctx)

    if store.data_dir.exists() and any(store.data_dir.glob("*.json")) and not force:
        if not click.confirm(f"Data already exists in {store.data_dir}. Overwrite?"):
            click.echo("Cancelled.")
            return

    defaults = replace(sample_data(), expensed_months=ExpensedMonths())
    data = defaults if use_defaults else _prompt_records(defaults, DataSelector.ALL)

    try:
        store.data_dir.mkdir(parents=True, exist_ok=True)
        store.write_data(data, DataSelector.ALL)
    except OSError as e:
        click.echo(f"Error: Could not create data directory {store.data_dir}: {e}", err=True)
        ctx.exit(2)
    except DomainError as e:
        handle_domain_error(ctx, e)

    click.echo(f"Initialized data in {store.data_dir}")


@data_group.command("validate")
@click.pass_context
def validate_data(ctx):
    """Check that every data record can be read."""
    store = get_store(ctx)
    try:
        data = store.read_data()
        data.information.validate()
    except DomainError as e:
        handle_domain_error(ctx, e)
        return

    info = data.information
    fees = data.service_fees
    click.echo(f"Data in {store.data_dir} is valid")
    click.echo(f"  Vendor: {data.vendor.company_name}")
    click.echo(f"  Client: {data.client.company_name}")
    click.echo(f"  Invoice number {info.offset.offset} at {info.offset.month}")
    click.echo(f"  Currency: {data.payment_info.currency} ({data.payment_info.terms})")
    click.echo(f"  Service: {fees.name}, {fees.unit_price} {fees.currency} per {fees.rate.unit}")
    if info.months_off:
        click.echo(f"  Months off: {', '.join(str(month) for month in info.months_off)}")
    if data.expensed_months.months():
        click.echo(f"  Expensed months: {', '.join(str(month) for month in data.expensed_months.months())}")


@data_group.command("edit")
@click.argument(
    "selector",
    type=click.Choice([selector.value for selector in DataSelector], case_sensitive=False),
    default=DataSelector.ALL.value,
)
@click.pass_context
def edit_data(ctx, selector: str):
    """Edit data records, current values are the defaults.

    SELECTOR is one of all, vendor, client, information, payment-info or
    service-fees.

    Examples:
        klirr data edit client
        klirr data edit payment-info
    """
    store = get_store(ctx)
    chosen = DataSelector(selector.lower())
    try:
        current = store.read_data()
        store.write_data(_prompt_records(current, chosen), chosen)
    except DomainError as e:
        handle_domain_error(ctx, e)
        return
    click.echo(f"Updated {chosen.value} data")


@data_group.command("period-off")
@click.option("--period", required=True, help="Month without any invoice (YYYY-MM)")
@click.pass_context
def period_off(ctx, period: str):
    """Record a month without invoicing, e.g. parental leave.

    The month does not consume an invoice number. The month of the known
    invoice number cannot be recorded as off.

    Examples:
        klirr data period-off --period 2025-07
    """
    store = get_store(ctx)
    try:
        month = parse_year_and_month(period)
        information = store.read_information()
        if month in information.months_off:
            click.echo(f"{month} is already recorded as off")
            return
        store.write_information(information.with_month_off(month))
    except DomainError as e:
        handle_domain_error(ctx, e)
        return
    click.echo(f"Recorded {month} as a month off")


@data_group.command("expenses")
@click.option("--period", required=True, help="Month the expenses are invoiced in (YYYY-MM)")
@click.option(
    "--item",
    "items",
    multiple=True,
    required=True,
    help=f'Expense as "{EXPENSE_ITEM_FORMAT}" (repeatable)',
)
@click.pass_context
def record_expenses(ctx, period: str, items: tuple[str, ...]):
    """Record expenses to invoice for a month.

    Examples:
        klirr data expenses --period 2025-04 --item "Coffee, 4.5, GBP, 2, 2025-04-15"
    """
    store = get_store(ctx)
    try:
        month = parse_year_and_month(period)
        parsed = [parse_expense_item(item) for item in items]
        expensed = store.read_expensed_months()
        store.write_expensed_months(expensed.with_expenses(month, parsed))
    except DomainError as e:
        handle_domain_error(ctx, e)
        return

    click.echo(f"Recorded {len(parsed)} expense(s) for {month}")
    for item in parsed:
        click.echo(f"  {item.name}: {item.quantity} x {item.unit_price} {item.currency} ({item.when})")


def register_commands(cli):
    """Register data commands with main CLI."""
    cli.add_command(data_group, name="data")
