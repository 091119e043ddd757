"""Email settings and delivery commands."""

import tempfile
from dataclasses import replace

import click

from klirr.cli.dependencies import (
    get_layout,
    get_mailer,
    get_passphrase,
    get_pipeline,
    get_renderer,
    get_store,
    get_vault,
)
from klirr.cli.error_handling import handle_domain_error
from klirr.cli.prompts import (
    prompt_account,
    prompt_accounts,
    prompt_app_password,
    prompt_optional_account,
    prompt_smtp_server,
    prompt_template,
)
from klirr.domain.entities import EmailSettings, EmailSettingsSelector, ExpensedMonths, Services
from klirr.domain.errors import DomainError
from klirr.domain.period import YearAndMonth
from klirr.domain.pipeline import ValidInput
from klirr.domain.samples import (
    sample_data,
    sample_recipient,
    sample_sender,
    sample_smtp_server,
    sample_template,
)
from klirr.storage.file_store import FileDataStore

NEW_PASSPHRASE_PROMPT = "New encryption password"


@click.group()
def email_group():
    """Manage email settings and send a test email."""
    pass


def _prompt_settings(ctx: click.Context, current: EmailSettings, selector: EmailSettingsSelector) -> EmailSettings:
    settings = current
    if selector.includes(EmailSettingsSelector.SENDER):
        settings = replace(settings, sender=prompt_account("Sender", settings.sender))
    if selector.includes(EmailSettingsSelector.RECIPIENTS):
        settings = replace(settings, recipients=prompt_accounts("Recipients", settings.recipients, required=True))
    if selector.includes(EmailSettingsSelector.CC_RECIPIENTS):
        settings = replace(settings, cc_recipients=prompt_accounts("CC recipients", settings.cc_recipients, required=False))
    if selector.includes(EmailSettingsSelector.BCC_RECIPIENTS):
        settings = replace(settings, bcc_recipients=prompt_accounts("BCC recipients", settings.bcc_recipients, required=False))
    if selector.includes(EmailSettingsSelector.REPLY_TO):
        settings = replace(settings, reply_to=prompt_optional_account("Reply-to", settings.reply_to))
    if selector.includes(EmailSettingsSelector.SMTP_SERVER):
        settings = replace(settings, smtp_server=prompt_smtp_server(settings.smtp_server))
    if selector.includes(EmailSettingsSelector.TEMPLATE):
        settings = replace(settings, template=prompt_template(settings.template))
    if selector.requires_passphrase:
        settings = replace(settings, sealed_password=_reseal(ctx, settings, selector))
    return settings


def _reseal(ctx: click.Context, settings: EmailSettings, selector: EmailSettingsSelector):
    vault = get_vault(ctx)
    old_passphrase = get_passphrase(ctx)
    app_password = vault.open(settings.sealed_password, old_passphrase)
    if selector.includes(EmailSettingsSelector.APP_PASSWORD):
        app_password = prompt_app_password()
    if selector.includes(EmailSettingsSelector.ENCRYPTION_PASSWORD):
        new_passphrase = get_passphrase(ctx, NEW_PASSPHRASE_PROMPT, confirm=True)
    else:
        new_passphrase = old_passphrase
    return vault.seal(app_password, new_passphrase)


@email_group.command("init")
@click.option("--force", is_flag=True, help="Overwrite existing email settings without asking")
@click.pass_context
def init_email(ctx, force: bool):
    """Set up sender, recipients, SMTP server and the sealed app password.

    The app password is encrypted with a passphrase of your choice; the
    passphrase itself is never stored.
    """
    store = get_store(ctx)
    if store.has_email_settings() and not force:
        if not click.confirm("Email settings already exist. Overwrite?"):
            click.echo("Cancelled.")
            return

    try:
        sender = prompt_account("Sender", sample_sender())
        recipients = prompt_accounts("Recipients", (sample_recipient(),), required=True)
        cc_recipients = prompt_accounts("CC recipients", (), required=False)
        bcc_recipients = prompt_accounts("BCC recipients", (), required=False)
        reply_to = prompt_optional_account("Reply-to", None)
        smtp_server = prompt_smtp_server(sample_smtp_server())
        template = prompt_template(sample_template())
        app_password = prompt_app_password()
        passphrase = get_passphrase(ctx, confirm=True)

        settings = EmailSettings(
            sender=sender,
            recipients=recipients,
            cc_recipients=cc_recipients,
            bcc_recipients=bcc_recipients,
            reply_to=reply_to,
            smtp_server=smtp_server,
            template=template,
            sealed_password=get_vault(ctx).seal(app_password, passphrase),
        )
        store.write_email_settings(settings)
    except DomainError as e:
        handle_domain_error(ctx, e)
        return
    click.echo(f"Saved email settings to {store.data_dir}")


@email_group.command("validate")
@click.pass_context
def validate_email(ctx):
    """Check the email settings and that the passphrase opens the app password."""
    store = get_store(ctx)
    try:
        settings = store.read_email_settings()
        get_vault(ctx).open(settings.sealed_password, get_passphrase(ctx))
    except DomainError as e:
        handle_domain_error(ctx, e)
        return

    click.echo("Email settings are valid")
    click.echo(f"  Sender: {settings.sender}")
    click.echo(f"  Recipients: {', '.join(str(a) for a in settings.recipients)}")
    click.echo(f"  SMTP server: {settings.smtp_server.host}:{settings.smtp_server.port}")


@email_group.command("edit")
@click.argument(
    "selector",
    type=click.Choice([selector.value for selector in EmailSettingsSelector], case_sensitive=False),
    default=EmailSettingsSelector.ALL.value,
)
@click.pass_context
def edit_email(ctx, selector: str):
    """Edit email settings, current values are the defaults.

    Only all, app-password and encryption-password ask for the passphrase.

    Examples:
        klirr email edit recipients
        klirr email edit encryption-password
    """
    store = get_store(ctx)
    chosen = EmailSettingsSelector(selector.lower())
    try:
        current = store.read_email_settings()
        store.write_email_settings(_prompt_settings(ctx, current, chosen))
    except DomainError as e:
        handle_domain_error(ctx, e)
        return
    click.echo(f"Updated {chosen.value} email settings")


@email_group.command("test")
@click.pass_context
def test_email(ctx):
    """Render an invoice from the sample data and email it.

    Only services are invoiced, so no exchange rates are fetched.
    """
    store = get_store(ctx)
    try:
        settings = store.read_email_settings()
        with tempfile.TemporaryDirectory(prefix="klirr-sample-") as sample_dir:
            sample_store = FileDataStore(sample_dir)
            sample_store.write_data(replace(sample_data(), expensed_months=ExpensedMonths()))
            render_input = get_pipeline(ctx, sample_store).run(ValidInput(month=YearAndMonth.last(), items=Services()))
        pdf = get_renderer(ctx).render(render_input, get_layout(ctx))
        get_mailer(ctx).send(settings, get_passphrase(ctx), render_input, pdf)
    except DomainError as e:
        handle_domain_error(ctx, e)
        return
    click.echo(f"Sent test email to {', '.join(a.email for a in settings.recipients)}")


def register_commands(cli):
    """Register email commands with main CLI."""
    cli.add_command(email_group, name="email")
