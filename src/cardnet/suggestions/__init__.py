"""Suggestion aggregation, review and analysis orchestration."""

from cardnet.suggestions.aggregator import (
    ApprovalReport,
    SuggestionAggregator,
    aggregate_results,
    dedupe,
    filter_existing,
    merge,
    rank,
)
from cardnet.suggestions.runner import AnalysisRun, AnalysisRunner

__all__ = [
    "ApprovalReport",
    "SuggestionAggregator",
    "aggregate_results",
    "dedupe",
    "filter_existing",
    "merge",
    "rank",
    "AnalysisRun",
    "AnalysisRunner",
]
