"""
Storage Services Package

Provides the abstract document storage interface, local implementations,
and the Google Sheets integration.
"""

from rateease.services.storage.interface import (
    ConnectionError,
    DuplicateError,
    NotFoundError,
    StorageError,
    StorageInterface,
    StoreKey,
)
from rateease.services.storage.json_store import (
    JsonFileStorage,
    MemoryStorage,
)
from rateease.services.storage.google_sheets import (
    GoogleSheetsClient,
    GoogleSheetsSync,
)

__all__ = [
    # Interface
    "StorageInterface",
    "StoreKey",
    # Exceptions
    "ConnectionError",
    "DuplicateError",
    "NotFoundError",
    "StorageError",
    # Implementations
    "JsonFileStorage",
    "MemoryStorage",
    # Google Sheets
    "GoogleSheetsClient",
    "GoogleSheetsSync",
]
