"""
Billing Models

CRITICAL: A Bill is a snapshot. It is created by the print flow (or by a
payment receipt) and is never mutated afterwards. Editing the source
property or BOP must not change what an already printed bill says.
"""

import random
import time
from datetime import datetime
from enum import Enum
from types import MappingProxyType
from typing import Any, Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field, field_serializer, field_validator

from rateease.models.records import Bop, Property, RateRecord


class BillStatus(str, Enum):
    """Payment standing of a property or BOP."""
    PAID = "Paid"
    PENDING = "Pending"      # Partly paid
    OVERDUE = "Overdue"      # Billed, nothing paid
    UNBILLED = "Unbilled"    # Nothing due


class BillType(str, Enum):
    """Kind of record a bill was generated for."""
    PROPERTY = "property"
    BOP = "bop"


def new_bill_id() -> str:
    return f"bill-{int(time.time() * 1000)}-{random.random()}"


def _freeze(value: Any) -> Any:
    if isinstance(value, Mapping):
        return MappingProxyType({key: _freeze(item) for key, item in value.items()})
    if isinstance(value, (list, tuple)):
        return tuple(_freeze(item) for item in value)
    return value


def _thaw(value: Any) -> Any:
    """Plain (and fresh) dicts and lists from a frozen or foreign structure."""
    if isinstance(value, Mapping):
        return {key: _thaw(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [_thaw(item) for item in value]
    return value


class Bill(BaseModel):
    """
    A printed bill (or payment receipt).

    The snapshot is deep-copied on construction so that the caller's
    dictionary can keep changing without affecting the bill, and is held
    read-only (mappings become MappingProxyType, lists become tuples).
    Serializing gives plain dicts and lists back.
    """
    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=new_bill_id)
    property_id: str = Field(
        ...,
        min_length=1,
        description="Id of the property or BOP the bill was generated for"
    )
    property_snapshot: Mapping[str, Any] = Field(
        ...,
        description="Read-only copy of the record at print time"
    )
    generated_at: datetime = Field(default_factory=datetime.utcnow)
    year: int = Field(
        default_factory=lambda: datetime.utcnow().year,
        ge=1900,
        le=9999
    )
    total_amount_due: float
    bill_type: BillType = BillType.PROPERTY
    created_at: Optional[datetime] = None

    @field_validator('property_snapshot', mode='before')
    @classmethod
    def copy_snapshot(cls, v: Any) -> Any:
        if isinstance(v, RateRecord):
            return v.model_dump(mode="json")
        if isinstance(v, Mapping):
            return _thaw(v)
        return v

    @field_validator('property_snapshot')
    @classmethod
    def freeze_snapshot(cls, v: Mapping[str, Any]) -> Mapping[str, Any]:
        return _freeze(v)

    @field_serializer('property_snapshot')
    def dump_snapshot(self, v: Mapping[str, Any]) -> dict[str, Any]:
        return _thaw(v)

    @classmethod
    def from_record(
        cls,
        record: RateRecord,
        total_amount_due: float,
        bill_type: Optional[BillType] = None,
        generated_at: Optional[datetime] = None,
    ) -> "Bill":
        """Snapshot a record into a new bill."""
        generated_at = generated_at or datetime.utcnow()
        if bill_type is None:
            bill_type = BillType.BOP if isinstance(record, Bop) else BillType.PROPERTY
        return cls(
            property_id=record.id,
            property_snapshot=record,
            generated_at=generated_at,
            year=generated_at.year,
            total_amount_due=total_amount_due,
            bill_type=bill_type,
        )

    def snapshot_record(self) -> RateRecord:
        """Rebuild the snapshotted record (a fresh object every call)."""
        model = Bop if self.bill_type == BillType.BOP else Property
        return model.model_validate(_thaw(self.property_snapshot))
