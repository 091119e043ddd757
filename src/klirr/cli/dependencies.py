"""Collaborators of the CLI commands.

Each getter returns the object stored in ``ctx.obj`` under its key when
present, so tests can pass fakes through ``CliRunner.invoke(obj=...)``,
and otherwise builds the production implementation from the config.
"""

from __future__ import annotations

import click

from klirr.config import PipelineConfig
from klirr.domain.cancellation import CancellationToken
from klirr.domain.exchange_rates import FrankfurterRateFetcher, RateFetcher
from klirr.domain.pipeline import InvoicePipeline
from klirr.domain.vault import CredentialVault
from klirr.mail.base import EmailTransport
from klirr.mail.service import InvoiceMailer
from klirr.mail.smtp import SmtpTransport
from klirr.render.base import DocumentRenderer, StaticLayout
from klirr.render.fpdf_renderer import FpdfRenderer
from klirr.storage.base import DataStore


def get_config(ctx: click.Context) -> PipelineConfig:
    return ctx.obj["config"]


def get_store(ctx: click.Context) -> DataStore:
    return ctx.obj["store"]


def get_fetcher(ctx: click.Context) -> RateFetcher:
    if "fetcher" not in ctx.obj:
        config = get_config(ctx)
        ctx.obj["fetcher"] = FrankfurterRateFetcher(base_url=config.fx_base_url, timeout=config.fx_timeout)
    return ctx.obj["fetcher"]


def get_pipeline(ctx: click.Context, store: DataStore | None = None) -> InvoicePipeline:
    config = get_config(ctx)
    return InvoicePipeline(
        store or get_store(ctx),
        get_fetcher(ctx),
        cancellation=ctx.obj.setdefault("cancellation", CancellationToken()),
        max_retries=config.fx_max_retries,
        backoff_base=config.fx_backoff_base,
        backoff_cap=config.fx_backoff_cap,
    )


def get_renderer(ctx: click.Context) -> DocumentRenderer:
    return ctx.obj.setdefault("renderer", FpdfRenderer())


def get_layout(ctx: click.Context) -> StaticLayout:
    return StaticLayout(font_path=get_config(ctx).font_path)


def get_vault(ctx: click.Context) -> CredentialVault:
    return ctx.obj.setdefault("vault", CredentialVault())


def get_transport(ctx: click.Context) -> EmailTransport:
    return ctx.obj.setdefault("transport", SmtpTransport())


def get_mailer(ctx: click.Context) -> InvoiceMailer:
    return InvoiceMailer(get_transport(ctx), get_vault(ctx))


def get_passphrase(ctx: click.Context, prompt: str = "Encryption password", confirm: bool = False) -> str:
    """Passphrase from ``KLIRR_PASSPHRASE`` if it was set, else prompted.

    The environment value is used once; later calls prompt.
    """
    config = get_config(ctx)
    if config.passphrase:
        passphrase, config.passphrase = config.passphrase, None
        return passphrase
    return click.prompt(prompt, hide_input=True, confirmation_prompt=confirm)
