"""Shared pytest fixtures for klirr tests."""

from dataclasses import replace
from datetime import date
from decimal import Decimal

import pytest
from click.testing import CliRunner

from klirr.domain.entities import DataSelector, EmailSettings, Rate
from klirr.domain.errors import FoundNoExchangeRate, no_exchange_rate
from klirr.domain.exchange_rates import RateFetcher
from klirr.domain.samples import (
    sample_data,
    sample_recipient,
    sample_sender,
    sample_smtp_server,
    sample_template,
)
from klirr.domain.vault import CredentialVault
from klirr.logging_setup import reset_logging
from klirr.mail.base import EmailTransport
from klirr.storage.file_store import FileDataStore

PASSPHRASE = "correct horse"
APP_PASSWORD = "app-secret"
FAST_KDF_ITERATIONS = 1_000


def set_service_rate(store: FileDataStore, rate: Rate, unit_price: str) -> None:
    """Reprice the stored service fees."""
    data = store.read_data()
    fees = replace(data.service_fees, rate=rate, unit_price=Decimal(unit_price))
    store.write_data(replace(data, service_fees=fees), DataSelector.SERVICE_FEES)


class FixedRateFetcher(RateFetcher):
    """Rate fetcher answering from a table and recording every call."""

    def __init__(self, rates: dict[tuple[str, str], Decimal] | None = None):
        self.rates = rates or {}
        self.calls: list[tuple[date, str, str]] = []

    def fetch_rate(self, on: date, base: str, target: str) -> Decimal:
        self.calls.append((on, base, target))
        try:
            return self.rates[(base, target)]
        except KeyError:
            raise FoundNoExchangeRate(no_exchange_rate(base, target, on))


class RecordingTransport(EmailTransport):
    """Email transport keeping sent messages in memory."""

    def __init__(self):
        self.sent = []

    def send(self, message, server, username, app_password, recipients):
        self.sent.append(
            {
                "message": message,
                "server": server,
                "username": username,
                "app_password": app_password,
                "recipients": recipients,
            }
        )


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch):
    """Keep the developer's klirr environment out of the tests."""
    for name in ("KLIRR_DATA_DIR", "KLIRR_PASSPHRASE", "KLIRR_LOG_LEVEL", "KLIRR_FONT_PATH"):
        monkeypatch.delenv(name, raising=False)
    yield
    reset_logging()


@pytest.fixture
def data_dir(tmp_path):
    """Data directory populated with the sample records."""
    path = tmp_path / "input" / "data"
    path.mkdir(parents=True)
    FileDataStore(path).write_data(sample_data())
    return path


@pytest.fixture
def store(data_dir):
    """File store over the sample data directory."""
    return FileDataStore(data_dir)


@pytest.fixture
def fetcher():
    """Rates for the currencies used by the sample expenses."""
    return FixedRateFetcher(
        {
            ("SEK", "EUR"): Decimal("0.09"),
            ("GBP", "EUR"): Decimal("1.17"),
        }
    )


@pytest.fixture
def vault():
    """Vault with a low iteration count to keep tests fast."""
    return CredentialVault(kdf_iterations=FAST_KDF_ITERATIONS)


@pytest.fixture
def email_settings(vault):
    """Sample email settings with the app password sealed under PASSPHRASE."""
    return EmailSettings(
        sender=sample_sender(),
        recipients=(sample_recipient(),),
        smtp_server=sample_smtp_server(),
        template=sample_template(),
        sealed_password=vault.seal(APP_PASSWORD, PASSPHRASE),
    )


@pytest.fixture
def transport():
    """In-memory email transport."""
    return RecordingTransport()


@pytest.fixture
def cli_runner():
    """Create a Click CLI runner."""
    return CliRunner()
