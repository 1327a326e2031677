"""
Bill history repository.

Bills are append-only: there is no update or delete.
"""

from typing import Iterable, Optional

import structlog

from rateease.models.billing import Bill
from rateease.services.storage import StorageInterface, StoreKey

logger = structlog.get_logger(__name__)


class BillRepository:
    """Stores printed bills and payment receipts."""

    def __init__(self, storage: StorageInterface):
        self._storage = storage

    def list_bills(self) -> list[Bill]:
        raw = self._storage.load(StoreKey.BILLS, default=[])
        return [Bill.model_validate(item) for item in raw]

    def get(self, bill_id: str) -> Optional[Bill]:
        for bill in self.list_bills():
            if bill.id == bill_id:
                return bill
        return None

    def for_record(self, record_id: str) -> list[Bill]:
        """Every bill ever generated for one property or BOP."""
        return [b for b in self.list_bills() if b.property_id == record_id]

    def add_bills(self, bills: Iterable[Bill]) -> list[Bill]:
        """
        Append bills to the history.

        Raises:
            StorageError: If the history could not be written
        """
        new_bills = list(bills)
        if not new_bills:
            return []
        existing = self._storage.load(StoreKey.BILLS, default=[])
        existing.extend(bill.model_dump(mode="json") for bill in new_bills)
        self._storage.save(StoreKey.BILLS, existing)
        logger.info("bills_recorded", count=len(new_bills))
        return new_bills
