"""
Abstract Storage Interface

DESIGN DECISION: All state is a handful of JSON documents under fixed keys,
the same shape a browser's local storage would hold. The interface is a
tiny key/value contract so that:
1. The JSON-file store can be swapped for something else later
2. Tests can use the in-memory store
3. Repositories stay decoupled from where documents live

There is no schema versioning or migration; repositories validate what
they read with pydantic.
"""

from abc import ABC, abstractmethod
from enum import Enum
from typing import Any, Optional


class StoreKey(str, Enum):
    """The fixed keys under which documents are persisted."""
    PROPERTIES = "properties"
    PROPERTY_HEADERS = "property_headers"
    BOPS = "bops"
    BOP_HEADERS = "bop_headers"
    BILLS = "bills"
    USERS = "users"
    SETTINGS = "settings"
    PERMISSIONS = "permissions"
    ACTIVITY_LOGS = "activity_logs"
    LOGGED_IN_USER = "logged_in_user"


class StorageInterface(ABC):
    """
    Abstract interface for document storage.

    Values are anything ``json.dumps`` accepts.
    """

    @abstractmethod
    def load(self, key: StoreKey, default: Optional[Any] = None) -> Any:
        """
        Read the document stored under ``key``.

        Returns:
            The decoded document, or ``default`` if nothing is stored

        Raises:
            StorageError: If the document exists but cannot be read
        """
        pass

    @abstractmethod
    def save(self, key: StoreKey, value: Any) -> None:
        """
        Replace the document stored under ``key``.

        Raises:
            StorageError: If the write fails (e.g. disk full)
        """
        pass

    @abstractmethod
    def delete(self, key: StoreKey) -> bool:
        """
        Remove the document stored under ``key``.

        Returns:
            True if something was removed
        """
        pass

    @abstractmethod
    def exists(self, key: StoreKey) -> bool:
        pass


class StorageError(Exception):
    """Base exception for storage operations."""
    pass


class NotFoundError(StorageError):
    """Entity not found in storage."""
    pass


class DuplicateError(StorageError):
    """Attempted to insert a duplicate entity."""
    pass


class ConnectionError(StorageError):
    """Could not connect to storage backend."""
    pass
