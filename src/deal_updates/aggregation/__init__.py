"""Deduplication, note aggregation, and summary reuse."""

from .engine import deduplicate_deals
from .summaries import (
    SUMMARY_BATCH_SIZE,
    SummaryStats,
    attach_summaries,
    fallback_summary,
)

__all__ = [
    "SUMMARY_BATCH_SIZE",
    "SummaryStats",
    "attach_summaries",
    "deduplicate_deals",
    "fallback_summary",
]
