"""
Property and BOP repositories.

Both hold a list of open-ended records plus the header row of the last
import (which decides column order on screen and in exports).
"""

from datetime import datetime
from typing import Generic, Iterable, Optional, TypeVar

import structlog

from rateease.models.records import Bop, Property, RateRecord
from rateease.services.storage import NotFoundError, StorageInterface, StoreKey

logger = structlog.get_logger(__name__)

RecordT = TypeVar("RecordT", bound=RateRecord)


class RecordRepository(Generic[RecordT]):
    """Shared CRUD for property-shaped records."""

    model: type[RecordT]
    records_key: StoreKey
    headers_key: StoreKey
    default_headers: list[str] = []

    def __init__(self, storage: StorageInterface):
        self._storage = storage

    # -- reads -------------------------------------------------------------

    def list_records(self) -> list[RecordT]:
        raw = self._storage.load(self.records_key, default=[])
        return [self.model.model_validate(item) for item in raw]

    def get(self, record_id: str) -> Optional[RecordT]:
        for record in self.list_records():
            if record.id == record_id:
                return record
        return None

    @property
    def headers(self) -> list[str]:
        stored = self._storage.load(self.headers_key)
        return list(self.default_headers) if stored is None else list(stored)

    def __len__(self) -> int:
        return len(self._storage.load(self.records_key, default=[]))

    # -- writes ------------------------------------------------------------

    def _persist(self, records: Iterable[RecordT], headers: Optional[list[str]] = None) -> None:
        self._storage.save(
            self.records_key,
            [record.model_dump(mode="json") for record in records],
        )
        if headers is not None:
            self._storage.save(self.headers_key, list(headers))

    def set_records(self, records: list[RecordT], headers: list[str]) -> None:
        """Replace every record and the header row (used by imports)."""
        self._persist(records, headers)
        logger.info("records_replaced", kind=self.records_key.value, count=len(records))

    def _unique_id(self, existing: set[str]) -> str:
        candidate = self.model.new_id()
        suffix = 1
        while candidate in existing:
            candidate = f"{self.model.new_id()}-{suffix}"
            suffix += 1
        return candidate

    def add(self, values: dict) -> RecordT:
        """Create a record from column values. Returns the stored record."""
        records = self.list_records()
        data = dict(values)
        data["id"] = self._unique_id({r.id for r in records})
        data.setdefault("created_at", datetime.utcnow())
        record = self.model.model_validate(data)
        records.append(record)
        self._persist(records)
        return record

    def update(self, record: RecordT) -> RecordT:
        """
        Replace a stored record.

        Raises:
            NotFoundError: If no record has this id
        """
        records = self.list_records()
        for index, existing in enumerate(records):
            if existing.id == record.id:
                records[index] = record
                self._persist(records)
                return record
        raise NotFoundError(f"Record not found: {record.id}")

    def delete(self, record_id: str) -> bool:
        records = self.list_records()
        remaining = [r for r in records if r.id != record_id]
        if len(remaining) == len(records):
            return False
        self._persist(remaining)
        return True

    def delete_many(self, record_ids: Iterable[str]) -> int:
        """Delete several records. Returns how many were removed."""
        ids = set(record_ids)
        records = self.list_records()
        remaining = [r for r in records if r.id not in ids]
        removed = len(records) - len(remaining)
        if removed:
            self._persist(remaining)
        return removed

    def delete_all(self) -> None:
        """Remove every record and forget the header row."""
        self._persist([], [])
        logger.info("records_cleared", kind=self.records_key.value)


class PropertyRepository(RecordRepository[Property]):
    model = Property
    records_key = StoreKey.PROPERTIES
    headers_key = StoreKey.PROPERTY_HEADERS
    default_headers = ["Owner Name", "Property No", "Town", "Rateable Value", "Total Payment"]


class BopRepository(RecordRepository[Bop]):
    model = Bop
    records_key = StoreKey.BOPS
    headers_key = StoreKey.BOP_HEADERS
    default_headers = ["Business Name", "Owner Name", "Phone Number", "Town", "Permit Fee", "Payment"]
