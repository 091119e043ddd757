"""Configuration loading for klirr."""

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import MutableMapping, Optional

from klirr.domain.exchange_rates import FRANKFURTER_API, REQUEST_TIMEOUT
from klirr.storage.factories import DEFAULT_DATA_DIR

logger = logging.getLogger("klirr.config")

DATA_DIR_ENV = "KLIRR_DATA_DIR"
LOG_LEVEL_ENV = "KLIRR_LOG_LEVEL"
PASSPHRASE_ENV = "KLIRR_PASSPHRASE"
FONT_PATH_ENV = "KLIRR_FONT_PATH"


@dataclass
class PipelineConfig:
    """Every option of an invoice run."""
    data_dir: Path = DEFAULT_DATA_DIR
    output_path: Optional[Path] = None      # explicit PDF path, else derived
    fx_base_url: str = FRANKFURTER_API
    fx_timeout: float = REQUEST_TIMEOUT     # seconds per request
    fx_max_retries: int = 3
    fx_backoff_base: float = 0.25           # seconds, doubled per retry
    fx_backoff_cap: float = 2.0
    log_level: str = "WARNING"
    font_path: Optional[Path] = None        # TrueType font for the PDF
    passphrase: Optional[str] = None        # non-interactive runs only

    def __repr__(self) -> str:
        # Never print the passphrase
        return (
            f"PipelineConfig(data_dir={self.data_dir!r}, "
            f"output_path={self.output_path!r}, fx_base_url={self.fx_base_url!r})"
        )


def load_config(
    data_dir: Optional[str | Path] = None,
    environ: Optional[MutableMapping[str, str]] = None,
) -> PipelineConfig:
    """Build the configuration, reading the environment exactly once.

    ``KLIRR_PASSPHRASE`` is removed from the environment when read, so
    child processes never inherit it.

    Args:
        data_dir: Explicit data directory, wins over ``KLIRR_DATA_DIR``
        environ: Environment to read, defaults to ``os.environ``
    """
    env: MutableMapping[str, str] = os.environ if environ is None else environ

    config = PipelineConfig()
    resolved_dir = data_dir or env.get(DATA_DIR_ENV)
    if resolved_dir:
        config.data_dir = Path(resolved_dir).expanduser()
    if env.get(LOG_LEVEL_ENV):
        config.log_level = env[LOG_LEVEL_ENV].upper()
    if env.get(FONT_PATH_ENV):
        config.font_path = Path(env[FONT_PATH_ENV]).expanduser()

    passphrase = env.pop(PASSPHRASE_ENV, None)
    if passphrase:
        logger.debug("Using passphrase from %s", PASSPHRASE_ENV)
        config.passphrase = passphrase

    return config
