"""
Rate Records

Properties and BOPs are imported from spreadsheets whose column headers
vary from year to year and from clerk to clerk. The models therefore only
fix the handful of fields the application itself owns (id, payments,
created_at); every spreadsheet column is kept as a pydantic "extra" field
under its original header.

DESIGN DECISION: Never rename imported columns. Reading goes through the
header-alias resolver (rateease.core.resolver), writing keeps whatever
header the record already uses.
"""

import time
from datetime import datetime
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field


class PaymentMethod(str, Enum):
    """Channels a payment can arrive through."""
    MTN = "mtn"
    VODAFONE = "vodafone"
    AIRTELTIGO = "airteltigo"
    PAYSTACK = "paystack"
    CASH = "cash"
    BANK = "bank"


class Payment(BaseModel):
    """A single payment made against a property or BOP."""

    id: str = Field(
        ...,
        min_length=1,
        description="Payment reference"
    )
    amount: float = Field(
        ...,
        gt=0,
        description="Amount paid"
    )
    date: datetime = Field(
        default_factory=datetime.utcnow,
        description="When the payment was received"
    )
    method: PaymentMethod = PaymentMethod.CASH


def _millis() -> int:
    return int(time.time() * 1000)


class RateRecord(BaseModel):
    """
    Base for any billable record.

    Spreadsheet columns live in ``model_extra``; ``as_row()`` exposes them
    together with the id, which is what the resolver and exports see.
    """
    model_config = ConfigDict(extra="allow")

    id: str = Field(..., min_length=1)
    payments: list[Payment] = Field(default_factory=list)
    created_at: Optional[datetime] = None

    def as_row(self) -> dict[str, Any]:
        """Return the record as a spreadsheet row: id plus every column."""
        return {"id": self.id, **(self.model_extra or {})}

    @property
    def columns(self) -> list[str]:
        return list((self.model_extra or {}).keys())

    def with_values(self, values: dict[str, Any]) -> "RateRecord":
        """Return a copy with the given columns set (the original is untouched)."""
        data = self.model_dump()
        data.update(values)
        return type(self).model_validate(data)

    def total_paid(self) -> float:
        return sum(payment.amount for payment in self.payments)


class Property(RateRecord):
    """A rateable property."""

    @classmethod
    def new_id(cls) -> str:
        return f"prop-{_millis()}"


class Bop(RateRecord):
    """A business operating permit."""

    @classmethod
    def new_id(cls) -> str:
        return f"bop-{_millis()}"
