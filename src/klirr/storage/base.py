"""Abstract data store interface."""

from abc import ABC, abstractmethod
from datetime import date
from decimal import Decimal
from pathlib import Path
from typing import Any, Optional

# Import entities directly to avoid circular import through domain/__init__.py
from klirr.domain.entities import (
    DataFromDisk,
    DataSelector,
    EmailSettings,
    ExpensedMonths,
    InvoiceSettings,
)
from klirr.domain.l18n import Language


class DataStore(ABC):
    """Abstract record store for klirr."""

    @property
    @abstractmethod
    def data_dir(self) -> Path:
        """Directory holding the records."""
        pass

    @abstractmethod
    def validate_data_dir(self) -> None:
        """Raise InvalidDataDirectory unless the data directory is usable."""
        pass

    # Invoice data
    @abstractmethod
    def read_data(self) -> DataFromDisk:
        """Read every record the pipeline needs."""
        pass

    @abstractmethod
    def write_data(self, data: DataFromDisk, selector: DataSelector = DataSelector.ALL) -> None:
        """Write the records addressed by ``selector``.

        Expensed months are written with ``DataSelector.ALL`` only.
        """
        pass

    @abstractmethod
    def read_information(self) -> InvoiceSettings:
        """Read the invoice settings record."""
        pass

    @abstractmethod
    def write_information(self, information: InvoiceSettings) -> None:
        """Write the invoice settings record."""
        pass

    @abstractmethod
    def read_expensed_months(self) -> ExpensedMonths:
        """Read expensed months; empty when the record does not exist."""
        pass

    @abstractmethod
    def write_expensed_months(self, expensed: ExpensedMonths) -> None:
        """Write the expensed months record."""
        pass

    # Email settings
    @abstractmethod
    def has_email_settings(self) -> bool:
        """Whether email settings have been initialized."""
        pass

    @abstractmethod
    def read_email_settings(self) -> EmailSettings:
        """Read email settings, password still sealed."""
        pass

    @abstractmethod
    def write_email_settings(self, settings: EmailSettings) -> None:
        """Write email settings atomically."""
        pass

    # Caches and overrides
    @abstractmethod
    def read_cached_rates(self) -> dict[tuple[date, str, str], Decimal]:
        """Read cached FX rates; empty when none are cached."""
        pass

    @abstractmethod
    def write_cached_rates(self, entries: dict[tuple[date, str, str], Decimal]) -> None:
        """Replace the cached FX rates."""
        pass

    @abstractmethod
    def read_l18n_overrides(self, language: Language) -> Optional[dict[str, Any]]:
        """Read localization overrides for ``language``, if any."""
        pass
