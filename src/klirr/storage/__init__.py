"""Storage layer for klirr application."""

from klirr.storage.base import DataStore
from klirr.storage.factories import create_file_store

__all__ = ["DataStore", "create_file_store"]
