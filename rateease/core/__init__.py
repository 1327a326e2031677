"""Billing core: value resolution, amounts, status and reports."""

from rateease.core.resolver import (
    STANDARD_ALIASES,
    find_column,
    get_record_value,
    normalize,
    tokenize,
)
from rateease.core.billing import (
    BopCharges,
    PropertyCharges,
    get_bill_status,
    get_bop_bill_status,
    to_number,
)
from rateease.core.reports import (
    DashboardSummary,
    DefaulterReport,
    bill_years,
    bills_for_year,
    dashboard_summary,
    filter_by_text,
    filter_properties,
    find_defaulters,
)

__all__ = [
    "STANDARD_ALIASES",
    "find_column",
    "get_record_value",
    "normalize",
    "tokenize",
    "BopCharges",
    "PropertyCharges",
    "get_bill_status",
    "get_bop_bill_status",
    "to_number",
    "DashboardSummary",
    "DefaulterReport",
    "bill_years",
    "bills_for_year",
    "dashboard_summary",
    "filter_by_text",
    "filter_properties",
    "find_defaulters",
]
