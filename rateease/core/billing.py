"""
Bill Amounts and Status Derivation

All amounts are read through the header-alias resolver, so the same code
works whatever the imported spreadsheet called its columns.

Status rules (first match wins):
- nothing due          -> Unbilled
- paid at least due    -> Paid
- paid something       -> Pending
- otherwise            -> Overdue
"""

import math
import re
from typing import Any

from pydantic import BaseModel

from rateease.core.resolver import RecordLike, get_record_value
from rateease.models.billing import BillStatus


_DECIMAL_PATTERN = re.compile(r"[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?", re.ASCII)
_PREFIXED_INTEGER_PATTERN = re.compile(r"0(?:[xX][0-9a-fA-F]+|[oO][0-7]+|[bB][01]+)")


def _parse_numeric_text(text: str) -> float:
    """Parse the numeric literals a spreadsheet cell may hold (decimal, 0x/0o/0b)."""
    if _DECIMAL_PATTERN.fullmatch(text):
        return float(text)
    if _PREFIXED_INTEGER_PATTERN.fullmatch(text):
        return float(int(text, 0))
    return 0.0


def to_number(value: Any) -> float:
    """
    Coerce a spreadsheet cell to a number.

    Numbers pass through, numeric strings are parsed, everything else
    (None, blanks, text, NaN, infinities) becomes 0. Digit separators
    such as "1_000" or "1,000" are not numbers.
    """
    if isinstance(value, bool):
        return float(value)
    if isinstance(value, (int, float)):
        number = float(value)
    elif isinstance(value, str):
        number = _parse_numeric_text(value.strip())
    else:
        return 0.0
    if math.isnan(number) or math.isinf(number):
        return 0.0
    return number


def resolve_number(record: RecordLike, standard_key: str) -> float:
    return to_number(get_record_value(record, standard_key))


class PropertyCharges(BaseModel):
    """Resolved amounts for one property."""

    rateable_value: float = 0.0
    rate_impost: float = 0.0
    sanitation_charged: float = 0.0
    previous_balance: float = 0.0
    total_payment: float = 0.0

    @classmethod
    def from_record(cls, record: RecordLike) -> "PropertyCharges":
        return cls(
            rateable_value=resolve_number(record, "Rateable Value"),
            rate_impost=resolve_number(record, "Rate Impost"),
            sanitation_charged=resolve_number(record, "Sanitation Charged"),
            previous_balance=resolve_number(record, "Previous Balance"),
            total_payment=resolve_number(record, "Total Payment"),
        )

    @property
    def amount_charged(self) -> float:
        return self.rateable_value * self.rate_impost

    @property
    def total_this_year(self) -> float:
        return self.amount_charged + self.sanitation_charged

    @property
    def grand_total_due(self) -> float:
        return self.total_this_year + self.previous_balance

    @property
    def total_amount_due(self) -> float:
        """Balance printed on the bill (negative when overpaid)."""
        return self.grand_total_due - self.total_payment

    @property
    def outstanding(self) -> float:
        return max(self.grand_total_due - self.total_payment, 0.0)

    @property
    def status(self) -> BillStatus:
        return derive_status(self.grand_total_due, self.total_payment)


class BopCharges(BaseModel):
    """Resolved amounts for one business operating permit."""

    permit_fee: float = 0.0
    payment: float = 0.0

    @classmethod
    def from_record(cls, record: RecordLike) -> "BopCharges":
        return cls(
            permit_fee=resolve_number(record, "Permit Fee"),
            payment=resolve_number(record, "Payment"),
        )

    @property
    def total_amount_due(self) -> float:
        return self.permit_fee - self.payment

    @property
    def outstanding(self) -> float:
        return max(self.permit_fee - self.payment, 0.0)

    @property
    def status(self) -> BillStatus:
        return derive_status(self.permit_fee, self.payment)


def derive_status(amount_due: float, amount_paid: float) -> BillStatus:
    if amount_due <= 0:
        return BillStatus.UNBILLED
    if amount_paid >= amount_due:
        return BillStatus.PAID
    if amount_paid > 0:
        return BillStatus.PENDING
    return BillStatus.OVERDUE


def get_bill_status(record: RecordLike) -> BillStatus:
    """Status of a property record."""
    return PropertyCharges.from_record(record).status


def get_bop_bill_status(record: RecordLike) -> BillStatus:
    """Status of a BOP record."""
    return BopCharges.from_record(record).status
