"""
Header-Alias Value Resolver

Spreadsheets exported by different people and in different years use
inconsistent headers ("Owner Name" vs "Name of Owner" vs "Rate Payer").
Rather than forcing a rigid import schema, every read of a record field
goes through ``get_record_value`` which tries, in strict order:

1. Exact match after normalization (case, whitespace and ``. _ -`` ignored)
2. Substring inclusion of normalized alias and key (aliases of 3+ chars)
3. Every alias word appears among the key's words
4. The canonical key itself, looked up verbatim

The first non-blank value wins. Passes 2 and 3 never consider the
reserved ``id`` and ``status`` keys. No match returns None.
"""

import re
from typing import Any, Mapping, Optional, Union

from rateease.models.records import RateRecord

STANDARD_ALIASES: dict[str, list[str]] = {
    "Owner Name": ["Owner Name", "Name of Owner", "Rate Payer", "ownername"],
    "Phone Number": ["Phone Number", "Phone", "Telephone", "phonenumber"],
    "Town": ["Town"],
    "Suburb": ["Suburb"],
    "Property No": ["Property No", "Property Number", "propertyno"],
    "Valuation List No.": [
        "Valuation List No.",
        "Valuation List Number",
        "valuationlistno",
        "Valuation Number",
    ],
    "Account Number": ["Account Number", "Acct No", "accountnumber"],
    "Property Type": ["Property Type", "propertytype"],
    "Rateable Value": ["Rateable Value", "rateablevalue"],
    "Rate Impost": ["Rate Impost", "rateimpost"],
    "Sanitation Charged": ["Sanitation Charged", "Sanitation", "sanitationcharged"],
    "Previous Balance": [
        "Previous Balance",
        "Prev Balance",
        "Arrears",
        "previousbalance",
        "Arrears BF",
    ],
    "Total Payment": ["Total Payment", "Amount Paid", "Payment", "totalpayment"],
}

RESERVED_KEYS = frozenset({"id", "status"})

_STRIP_PATTERN = re.compile(r"[\s._-]")
_TOKEN_PATTERN = re.compile(r"\w+")

RecordLike = Union[Mapping[str, Any], RateRecord, None]


def normalize(value: str) -> str:
    """Lower-case and drop whitespace, dots, underscores and hyphens."""
    return _STRIP_PATTERN.sub("", (value or "").lower())


def tokenize(value: str) -> list[str]:
    """Split into lower-case word tokens."""
    return _TOKEN_PATTERN.findall((value or "").lower())


def is_blank(value: Any) -> bool:
    """None and whitespace-only strings count as missing."""
    return value is None or str(value).strip() == ""


def aliases_for(standard_key: str) -> list[str]:
    return STANDARD_ALIASES.get(standard_key, [standard_key])


def _as_mapping(record: RecordLike) -> Optional[Mapping[str, Any]]:
    if record is None:
        return None
    if isinstance(record, RateRecord):
        return record.as_row()
    return record


def get_record_value(record: RecordLike, standard_key: str) -> Any:
    """
    Resolve ``standard_key`` (e.g. "Owner Name") against a record whose
    column names came from an arbitrary spreadsheet header row.

    Returns the matched value, or None if nothing matched.
    """
    row = _as_mapping(record)
    if not row:
        return None

    key_aliases = aliases_for(standard_key)
    normalized_keys = [(key, normalize(key)) for key in row]

    # Pass 1: exact normalized match
    for alias in key_aliases:
        normalized_alias = normalize(alias)
        for key, normalized_key in normalized_keys:
            if normalized_key == normalized_alias and not is_blank(row[key]):
                return row[key]

    # Pass 2: substring inclusion
    for alias in key_aliases:
        normalized_alias = normalize(alias)
        if len(normalized_alias) < 3:
            continue
        for key, normalized_key in normalized_keys:
            if normalized_key in RESERVED_KEYS:
                continue
            if normalized_alias in normalized_key or normalized_key in normalized_alias:
                if not is_blank(row[key]):
                    return row[key]

    # Pass 3: token match
    for alias in key_aliases:
        alias_tokens = tokenize(alias)
        if not alias_tokens:
            continue
        for key, normalized_key in normalized_keys:
            if normalized_key in RESERVED_KEYS:
                continue
            key_tokens = tokenize(key)
            if not key_tokens:
                continue
            if all(token in key_tokens for token in alias_tokens) and not is_blank(row[key]):
                return row[key]

    # Pass 4: the canonical key itself
    direct = row.get(standard_key)
    if not is_blank(direct):
        return direct

    return None


def find_column(record: RecordLike, standard_key: str) -> Optional[str]:
    """
    Name of the column that holds ``standard_key`` under one of its aliases
    (exact normalized match only, blank values included), or None.

    Writes go through this so an edit lands in the column the spreadsheet
    already has instead of adding a second one.
    """
    row = _as_mapping(record)
    if not row:
        return None

    for alias in aliases_for(standard_key):
        normalized_alias = normalize(alias)
        for key in row:
            normalized_key = normalize(key)
            if normalized_key not in RESERVED_KEYS and normalized_key == normalized_alias:
                return key
    return None
