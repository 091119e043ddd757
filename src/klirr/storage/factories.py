"""Data store factory functions."""

from pathlib import Path
from typing import Optional

from klirr.storage.file_store import FileDataStore

DEFAULT_DATA_DIR = Path("input") / "data"


def create_file_store(data_dir: Optional[str | Path] = None) -> FileDataStore:
    """Create a file-backed data store.

    Args:
        data_dir: Directory holding the records. Defaults to ./input/data;
            the CLI resolves KLIRR_DATA_DIR before calling this.

    Returns:
        FileDataStore rooted at the data directory
    """
    if data_dir is None:
        data_dir = DEFAULT_DATA_DIR
    return FileDataStore(Path(data_dir).expanduser())
