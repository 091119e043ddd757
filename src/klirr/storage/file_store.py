"""Record-per-file data store.

Each record is one JSON document under the data directory. Writes go to a
temporary file in the same directory which then replaces the target, so a
record is never observed half-written.
"""

import json
import logging
import os
import tempfile
from datetime import date
from decimal import Decimal
from pathlib import Path
from typing import Any, Optional

from klirr.domain.entities import (
    DataFromDisk,
    DataSelector,
    EmailSettings,
    ExpensedMonths,
    InvoiceSettings,
)
from klirr.domain.errors import (
    DeserializeError,
    FileNotFound,
    InvalidDataDirectory,
    SerializeError,
    record_not_found,
)
from klirr.domain.l18n import Language
from klirr.storage import mappers
from klirr.storage.base import DataStore

logger = logging.getLogger("klirr.storage")

SUFFIX = ".json"
VENDOR = "vendor"
CLIENT = "client"
INFORMATION = "information"
PAYMENT_INFO = "payment_info"
SERVICE_FEES = "service_fees"
EXPENSED_MONTHS = "expensed_months"
EMAIL = "email"
CACHED_RATES = "cached_rates"
L18N_DIR = "l18n"


class FileDataStore(DataStore):
    """Data store keeping one JSON file per record."""

    def __init__(self, data_dir: Path | str):
        """Initialize the store.

        Args:
            data_dir: Directory holding the record files
        """
        self._data_dir = Path(data_dir)

    @property
    def data_dir(self) -> Path:
        return self._data_dir

    def path_of(self, name: str) -> Path:
        return self._data_dir / f"{name}{SUFFIX}"

    def validate_data_dir(self) -> None:
        if not self._data_dir.exists():
            raise InvalidDataDirectory(
                f"Data directory '{self._data_dir}' does not exist. Run 'klirr data init' first."
            )
        if not self._data_dir.is_dir():
            raise InvalidDataDirectory(f"Data path '{self._data_dir}' is not a directory")

    # Raw record I/O

    def _read_record(self, path: Path, type_name: str) -> Any:
        if not path.exists():
            raise FileNotFound(record_not_found(type_name, path))
        try:
            with open(path, encoding="utf-8") as f:
                return json.load(f)
        except json.JSONDecodeError as e:
            raise DeserializeError(type_name, f"{path.name}: {e}")
        except OSError as e:
            raise FileNotFound(f"Could not read {type_name} record at '{path}': {e}")

    def _write_record(self, path: Path, payload: Any) -> None:
        try:
            text = json.dumps(payload, indent=2, ensure_ascii=False) + "\n"
        except (TypeError, ValueError) as e:
            raise SerializeError(f"Could not serialize record for '{path.name}': {e}")

        tmp_name = None
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            with tempfile.NamedTemporaryFile(
                "w", encoding="utf-8", dir=path.parent, prefix=f".{path.name}.", suffix=".tmp", delete=False
            ) as tmp:
                tmp_name = tmp.name
                tmp.write(text)
                tmp.flush()
                os.fsync(tmp.fileno())
            os.replace(tmp_name, path)
            tmp_name = None
        except OSError as e:
            raise SerializeError(f"Could not write '{path}': {e}")
        finally:
            if tmp_name is not None and os.path.exists(tmp_name):
                os.unlink(tmp_name)
        logger.debug("Wrote %s", path)

    def _read(self, name: str, type_name: str, parse):
        raw = self._read_record(self.path_of(name), type_name)
        return mappers.deserialize(type_name, parse, raw)

    # Invoice data

    def read_data(self) -> DataFromDisk:
        self.validate_data_dir()
        return DataFromDisk(
            information=self.read_information(),
            vendor=self._read(VENDOR, "vendor", mappers.company_from_dict),
            client=self._read(CLIENT, "client", mappers.company_from_dict),
            payment_info=self._read(PAYMENT_INFO, "payment information", mappers.payment_info_from_dict),
            service_fees=self._read(SERVICE_FEES, "service fees", mappers.service_fees_from_dict),
            expensed_months=self.read_expensed_months(),
        )

    def write_data(self, data: DataFromDisk, selector: DataSelector = DataSelector.ALL) -> None:
        if selector.includes(DataSelector.VENDOR):
            self._write_record(self.path_of(VENDOR), mappers.company_to_dict(data.vendor))
        if selector.includes(DataSelector.CLIENT):
            self._write_record(self.path_of(CLIENT), mappers.company_to_dict(data.client))
        if selector.includes(DataSelector.INFORMATION):
            self.write_information(data.information)
        if selector.includes(DataSelector.PAYMENT_INFO):
            self._write_record(self.path_of(PAYMENT_INFO), mappers.payment_info_to_dict(data.payment_info))
        if selector.includes(DataSelector.SERVICE_FEES):
            self._write_record(self.path_of(SERVICE_FEES), mappers.service_fees_to_dict(data.service_fees))
        if selector is DataSelector.ALL:
            self.write_expensed_months(data.expensed_months)
        logger.info("Saved %s data to %s", selector.value, self._data_dir)

    def read_information(self) -> InvoiceSettings:
        return self._read(INFORMATION, "invoice information", mappers.information_from_dict)

    def write_information(self, information: InvoiceSettings) -> None:
        self._write_record(self.path_of(INFORMATION), mappers.information_to_dict(information))

    def read_expensed_months(self) -> ExpensedMonths:
        if not self.path_of(EXPENSED_MONTHS).exists():
            return ExpensedMonths()
        return self._read(EXPENSED_MONTHS, "expensed months", mappers.expensed_months_from_dict)

    def write_expensed_months(self, expensed: ExpensedMonths) -> None:
        self._write_record(self.path_of(EXPENSED_MONTHS), mappers.expensed_months_to_dict(expensed))

    # Email settings

    def has_email_settings(self) -> bool:
        return self.path_of(EMAIL).exists()

    def read_email_settings(self) -> EmailSettings:
        return self._read(EMAIL, "email settings", mappers.email_settings_from_dict)

    def write_email_settings(self, settings: EmailSettings) -> None:
        self._write_record(self.path_of(EMAIL), mappers.email_settings_to_dict(settings))
        logger.info("Saved email settings to %s", self.path_of(EMAIL))

    # Caches and overrides

    def read_cached_rates(self) -> dict[tuple[date, str, str], Decimal]:
        if not self.path_of(CACHED_RATES).exists():
            return {}
        return self._read(CACHED_RATES, "cached rates", mappers.cached_rates_from_dict)

    def write_cached_rates(self, entries: dict[tuple[date, str, str], Decimal]) -> None:
        self._write_record(self.path_of(CACHED_RATES), mappers.cached_rates_to_dict(entries))

    def read_l18n_overrides(self, language: Language) -> Optional[dict[str, Any]]:
        path = self._data_dir / L18N_DIR / f"{language.value}{SUFFIX}"
        if not path.exists():
            return None
        raw = self._read_record(path, "L18n")
        if not isinstance(raw, dict):
            raise DeserializeError("L18n", f"{path.name} must contain an object")
        return raw
