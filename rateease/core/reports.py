"""
Dashboard, defaulter and report aggregations.

Pure functions over lists of records and bills; nothing here touches storage.
"""

from collections import Counter
from typing import Iterable, Optional, Sequence

from pydantic import BaseModel, Field

from rateease.core.billing import BopCharges, PropertyCharges
from rateease.core.resolver import get_record_value
from rateease.models.billing import Bill, BillStatus
from rateease.models.records import Bop, Property, RateRecord

PROPERTY_TYPES = ("Residential", "Commercial", "Industrial")
OTHER_PROPERTY_TYPE = "Other"

DEFAULTER_STATUSES = (BillStatus.OVERDUE, BillStatus.PENDING)


class StatusSlice(BaseModel):
    name: BillStatus
    value: float


class TypeRevenue(BaseModel):
    name: str
    revenue: float


class DashboardSummary(BaseModel):
    """Headline figures for the dashboard."""

    properties_billed: int = 0
    total_revenue: float = 0.0
    total_billed: float = 0.0
    total_outstanding: float = 0.0
    collection_rate: float = Field(
        default=0.0,
        description="Revenue as a percentage of the amount billed"
    )
    amount_pending: float = 0.0
    amount_overdue: float = 0.0
    payment_status: list[StatusSlice] = Field(default_factory=list)
    revenue_by_property_type: list[TypeRevenue] = Field(default_factory=list)


def dashboard_summary(properties: Sequence[Property]) -> DashboardSummary:
    """
    Aggregate revenue, billing and arrears across all properties.

    Untyped properties count toward every total except the per-type
    revenue breakdown.
    """
    if not properties:
        return DashboardSummary()

    total_revenue = 0.0
    total_billed = 0.0
    total_outstanding = 0.0
    amount_pending = 0.0
    amount_overdue = 0.0
    revenue_by_type = {name: 0.0 for name in (*PROPERTY_TYPES, OTHER_PROPERTY_TYPE)}

    for record in properties:
        charges = PropertyCharges.from_record(record)
        payment = charges.total_payment
        total_revenue += payment

        property_type = get_record_value(record, "Property Type")
        if property_type in PROPERTY_TYPES:
            revenue_by_type[property_type] += payment
        elif property_type:
            revenue_by_type[OTHER_PROPERTY_TYPE] += payment

        due = charges.grand_total_due
        if due > 0:
            total_billed += due
            outstanding = due - payment
            if outstanding > 0:
                total_outstanding += outstanding
                if payment > 0:
                    amount_pending += outstanding
                else:
                    amount_overdue += outstanding

    collection_rate = (total_revenue / total_billed) * 100 if total_billed > 0 else 0.0

    slices = [
        StatusSlice(name=BillStatus.PAID, value=total_revenue),
        StatusSlice(name=BillStatus.PENDING, value=amount_pending),
        StatusSlice(name=BillStatus.OVERDUE, value=amount_overdue),
    ]

    return DashboardSummary(
        properties_billed=len(properties),
        total_revenue=total_revenue,
        total_billed=total_billed,
        total_outstanding=total_outstanding,
        collection_rate=collection_rate,
        amount_pending=amount_pending,
        amount_overdue=amount_overdue,
        payment_status=[s for s in slices if s.value > 0.01],
        revenue_by_property_type=[
            TypeRevenue(name=name, revenue=revenue)
            for name, revenue in revenue_by_type.items()
            if revenue > 0
        ],
    )


# =============================================================================
# DEFAULTERS
# =============================================================================

def record_status(record: RateRecord) -> BillStatus:
    if isinstance(record, Bop):
        return BopCharges.from_record(record).status
    return PropertyCharges.from_record(record).status


def record_outstanding(record: RateRecord) -> float:
    if isinstance(record, Bop):
        return BopCharges.from_record(record).outstanding
    return PropertyCharges.from_record(record).outstanding


def filter_by_text(records: Iterable[RateRecord], text: str) -> list[RateRecord]:
    """Keep records where any column value contains ``text`` (case-insensitive)."""
    if not text:
        return list(records)
    needle = text.lower()
    return [
        record for record in records
        if any(needle in str(value).lower() for value in record.as_row().values())
    ]


class DefaulterReport(BaseModel):
    records: list[RateRecord] = Field(default_factory=list)
    total_amount_owed: float = 0.0
    counts_by_town: list[tuple[str, int]] = Field(default_factory=list)

    @property
    def count(self) -> int:
        return len(self.records)


def find_defaulters(
    records: Iterable[RateRecord],
    text_filter: str = "",
) -> DefaulterReport:
    """Records that are Pending or Overdue, with totals per town."""
    defaulters = [r for r in records if record_status(r) in DEFAULTER_STATUSES]
    defaulters = filter_by_text(defaulters, text_filter)

    towns = Counter(
        str(get_record_value(record, "Town") or "Unknown") for record in defaulters
    )

    return DefaulterReport(
        records=defaulters,
        total_amount_owed=sum(record_outstanding(r) for r in defaulters),
        counts_by_town=sorted(towns.items(), key=lambda item: item[1], reverse=True),
    )


# =============================================================================
# PROPERTY REPORT
# =============================================================================

def filter_properties(
    properties: Iterable[Property],
    status: Optional[str] = None,
    property_type: Optional[str] = None,
) -> list[tuple[Property, BillStatus]]:
    """
    Properties with their derived status, filtered by status and type.

    ``None`` or "all" disables a filter. Status comparison ignores case.
    """
    rows = [(p, PropertyCharges.from_record(p).status) for p in properties]
    if status and status.lower() != "all":
        rows = [row for row in rows if row[1].value.lower() == status.lower()]
    if property_type and property_type.lower() != "all":
        rows = [
            row for row in rows
            if get_record_value(row[0], "Property Type") == property_type
        ]
    return rows


# =============================================================================
# BILL HISTORY
# =============================================================================

def bill_years(bills: Iterable[Bill]) -> list[int]:
    """Distinct bill years, newest first."""
    return sorted({bill.year for bill in bills}, reverse=True)


def bills_for_year(bills: Iterable[Bill], year: Optional[int] = None) -> list[Bill]:
    """Bills of one year (all years if None), newest first."""
    selected = [b for b in bills if year is None or b.year == year]
    return sorted(selected, key=lambda b: b.generated_at, reverse=True)
