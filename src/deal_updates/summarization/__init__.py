"""Note summarization collaborators (hosted function, OpenAI) and the cache-aware wrapper."""

from .base import Summarizer, SummaryRequest, SummaryResult
from .cache import CachingSummarizer
from .client import HttpSummarizer, OpenAISummarizer, get_summarizer

__all__ = [
    "CachingSummarizer",
    "HttpSummarizer",
    "OpenAISummarizer",
    "Summarizer",
    "SummaryRequest",
    "SummaryResult",
    "get_summarizer",
]
