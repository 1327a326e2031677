"""Revenue suggestion package."""

from rateease.queries.executor import (
    ArrearsEntry,
    QueryExecutionError,
    RateIncreaseImpact,
    SuggesterExecutor,
    SuggestionQuery,
    SuggestionResult,
    SuggestionType,
)

__all__ = [
    "ArrearsEntry",
    "QueryExecutionError",
    "RateIncreaseImpact",
    "SuggesterExecutor",
    "SuggestionQuery",
    "SuggestionResult",
    "SuggestionType",
]
