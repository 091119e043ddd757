"""Invoice generation commands."""

from dataclasses import dataclass
from pathlib import Path
from typing import Optional

import click

from klirr.cli.dependencies import (
    get_config,
    get_layout,
    get_mailer,
    get_passphrase,
    get_pipeline,
    get_renderer,
    get_store,
)
from klirr.cli.error_handling import handle_domain_error
from klirr.domain.entities import Expenses, InvoicedItems, RenderInput, Services, TimeOff
from klirr.domain.errors import DomainError
from klirr.domain.l18n import Language
from klirr.domain.pipeline import ValidInput, resolve_output_path
from klirr.render.base import Pdf, save_pdf
from klirr.utils.amount_parser import parse_decimal
from klirr.utils.date_parser import parse_target_month


@dataclass(frozen=True)
class InvoiceOptions:
    """Options shared by every ``invoice`` subcommand."""

    month: str
    out: Optional[Path]
    language: str
    send_email: bool


@click.group()
@click.option(
    "--month",
    default="last",
    show_default=True,
    help="Month to invoice: 'current', 'last' or YYYY-MM",
)
@click.option(
    "--out",
    type=click.Path(dir_okay=False, path_type=Path),
    help="Where to save the PDF (defaults to an 'invoices' directory next to the data directory)",
)
@click.option(
    "--language",
    type=click.Choice([language.value for language in Language], case_sensitive=False),
    default=Language.EN.value,
    show_default=True,
    help="Invoice language",
)
@click.option("--email", "send_email", is_flag=True, help="Email the invoice after saving it")
@click.pass_context
def invoice_group(ctx, month: str, out: Optional[Path], language: str, send_email: bool):
    """Generate a monthly invoice PDF.

    Examples:
        klirr invoice services
        klirr invoice --month 2025-05 services-off --unit days --amount 2
        klirr invoice --month last --email expenses
    """
    ctx.obj["invoice_options"] = InvoiceOptions(month=month, out=out, language=language, send_email=send_email)


def _email_invoice(ctx: click.Context, render_input: RenderInput, pdf: Pdf) -> None:
    settings = get_store(ctx).read_email_settings()
    passphrase = get_passphrase(ctx)
    get_mailer(ctx).send(settings, passphrase, render_input, pdf)
    recipients = ", ".join(account.email for account in settings.recipients)
    click.echo(f"Emailed invoice {render_input.information.identifier} to {recipients}")


def generate_invoice(ctx: click.Context, items: InvoicedItems) -> None:
    """Run the pipeline, render and save the PDF, then optionally email it."""
    options: InvoiceOptions = ctx.obj["invoice_options"]
    store = get_store(ctx)

    try:
        valid_input = ValidInput(
            month=parse_target_month(options.month),
            items=items,
            language=Language.parse(options.language),
            output_path=options.out or get_config(ctx).output_path,
        )
        render_input = get_pipeline(ctx).run(valid_input)
        pdf = get_renderer(ctx).render(render_input, get_layout(ctx))
        path = save_pdf(pdf, resolve_output_path(store.data_dir, render_input.output_name, valid_input.output_path))
        click.echo(f"Saved invoice {render_input.information.identifier} to {path}")
        click.echo(f"  Total: {render_input.grand_total:,.2f} {render_input.currency}")

        if options.send_email:
            _email_invoice(ctx, render_input, pdf)
    except DomainError as e:
        handle_domain_error(ctx, e)


@invoice_group.command("services")
@click.pass_context
def invoice_services(ctx):
    """Invoice the service for the whole month."""
    generate_invoice(ctx, Services())


@invoice_group.command("services-off")
@click.option(
    "--unit",
    type=click.Choice(["hours", "days"], case_sensitive=False),
    required=True,
    help="Unit of --amount",
)
@click.option("--amount", required=True, help="Time off during the month, e.g. 2 or 12.5")
@click.pass_context
def invoice_services_off(ctx, unit: str, amount: str):
    """Invoice the service minus time off.

    The unit must match the rate of the service: days for a daily rate,
    hours for an hourly rate.
    """
    try:
        parsed = parse_decimal(amount, "time off")
        time_off = TimeOff.hours(parsed) if unit.lower() == "hours" else TimeOff.days(parsed)
    except DomainError as e:
        handle_domain_error(ctx, e)
        return
    generate_invoice(ctx, Services(time_off=time_off))


@invoice_group.command("expenses")
@click.pass_context
def invoice_expenses(ctx):
    """Invoice the expenses recorded for the month."""
    generate_invoice(ctx, Expenses())


def register_commands(cli):
    """Register invoice commands with main CLI."""
    cli.add_command(invoice_group, name="invoice")
