"""
Revenue Suggestion Engine

DESIGN DECISION: Suggestions are DETERMINISTIC.
Every figure comes from arithmetic over the stored properties, using the
same resolver and charge rules as billing. Nothing is estimated.

Supported suggestions:
- total_revenue: what the assembly would collect if everyone paid this year
- highest_arrears: the ten properties carrying the largest previous balance
- no_sanitation: properties billed no sanitation charge
- rate_increase: effect of raising the rate impost for one property type
"""

from enum import Enum
from typing import Optional, Sequence

from pydantic import BaseModel, Field

from rateease.core.billing import PropertyCharges
from rateease.core.resolver import get_record_value
from rateease.models.records import Property

HIGHEST_ARREARS_LIMIT = 10


class SuggestionType(str, Enum):
    TOTAL_REVENUE = "total_revenue"
    HIGHEST_ARREARS = "highest_arrears"
    NO_SANITATION = "no_sanitation"
    RATE_INCREASE = "rate_increase"


class SuggestionQuery(BaseModel):
    """What the user asked the suggester to compute."""

    suggestion: SuggestionType
    property_type: Optional[str] = None
    increase_percentage: float = Field(default=10.0, ge=0)


class ArrearsEntry(BaseModel):
    record: Property
    arrears: float


class RateIncreaseImpact(BaseModel):
    property_type: str
    increase_percentage: float
    property_count: int
    current_revenue: float
    new_revenue: float

    @property
    def increase_amount(self) -> float:
        return self.new_revenue - self.current_revenue


class SuggestionResult(BaseModel):
    """
    Outcome of one suggestion. Only the fields relevant to the
    suggestion type are populated.
    """

    suggestion: SuggestionType
    total_revenue: Optional[float] = None
    arrears: list[ArrearsEntry] = Field(default_factory=list)
    properties: list[Property] = Field(default_factory=list)
    rate_increase: Optional[RateIncreaseImpact] = None


class QueryExecutionError(Exception):
    """The suggestion could not be computed from the given input."""
    pass


class SuggesterExecutor:
    """
    Runs revenue suggestions over a snapshot of the properties.

    GUARANTEES:
    - Only returns figures derived from the given records
    - Empty lists (never None) when nothing matches
    """

    def __init__(self, properties: Sequence[Property]):
        self._properties = list(properties)

    def execute(self, query: SuggestionQuery) -> SuggestionResult:
        if query.suggestion == SuggestionType.TOTAL_REVENUE:
            return SuggestionResult(
                suggestion=query.suggestion,
                total_revenue=self.total_revenue(),
            )
        elif query.suggestion == SuggestionType.HIGHEST_ARREARS:
            return SuggestionResult(
                suggestion=query.suggestion,
                arrears=self.highest_arrears(),
            )
        elif query.suggestion == SuggestionType.NO_SANITATION:
            return SuggestionResult(
                suggestion=query.suggestion,
                properties=self.no_sanitation(),
            )
        else:
            if not query.property_type:
                raise QueryExecutionError("Choose a property type to model a rate increase.")
            return SuggestionResult(
                suggestion=query.suggestion,
                rate_increase=self.rate_increase(
                    query.property_type, query.increase_percentage
                ),
            )

    def total_revenue(self) -> float:
        """Sum of this year's rate plus sanitation over every property."""
        return sum(
            PropertyCharges.from_record(p).total_this_year for p in self._properties
        )

    def highest_arrears(self, limit: int = HIGHEST_ARREARS_LIMIT) -> list[ArrearsEntry]:
        entries = [
            ArrearsEntry(record=p, arrears=PropertyCharges.from_record(p).previous_balance)
            for p in self._properties
        ]
        entries = [e for e in entries if e.arrears > 0]
        entries.sort(key=lambda e: e.arrears, reverse=True)
        return entries[:limit]

    def no_sanitation(self) -> list[Property]:
        return [
            p for p in self._properties
            if PropertyCharges.from_record(p).sanitation_charged == 0
        ]

    def property_types(self) -> list[str]:
        """Distinct non-empty property types, sorted."""
        types = {get_record_value(p, "Property Type") for p in self._properties}
        return sorted(str(t) for t in types if t)

    def rate_increase(self, property_type: str, percentage: float) -> RateIncreaseImpact:
        relevant = [
            p for p in self._properties
            if get_record_value(p, "Property Type") == property_type
        ]
        current = sum(PropertyCharges.from_record(p).amount_charged for p in relevant)
        return RateIncreaseImpact(
            property_type=property_type,
            increase_percentage=percentage,
            property_count=len(relevant),
            current_revenue=current,
            new_revenue=current * (1 + percentage / 100),
        )
