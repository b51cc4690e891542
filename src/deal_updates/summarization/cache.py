"""Cache-aware summarizer: never asks the backend twice for the same deal key + notes hash."""

import logging
import sqlite3
from typing import TYPE_CHECKING

from .base import Summarizer, SummaryRequest, SummaryResult

if TYPE_CHECKING:
    from deal_updates.store.summary_cache import SummaryCacheStore

logger = logging.getLogger(__name__)


class CachingSummarizer:
    """Wraps a backend Summarizer with the persistent summary cache."""

    def __init__(self, backend: Summarizer, cache_store: "SummaryCacheStore"):
        self._backend = backend
        self._cache = cache_store
        self.model = backend.model

    def summarize(self, requests: list[SummaryRequest]) -> dict[str, SummaryResult]:
        results: dict[str, SummaryResult] = {}
        misses: list[SummaryRequest] = []
        for req in requests:
            try:
                cached = self._cache.get(req.deal_key, req.notes_hash, self.model)
            except sqlite3.Error as e:
                logger.warning("Summary cache lookup failed for %s: %s", req.deal_key, e)
                cached = None
            if cached:
                results[req.deal_key] = SummaryResult(summary=cached, cached=True)
            else:
                misses.append(req)

        if not misses:
            return results

        try:
            fresh = self._backend.summarize(misses)
        except Exception as e:
            logger.warning(
                "Summary backend failed for %d deals, keeping %d cache hits: %s",
                len(misses), len(results), e,
            )
            return results
        by_key = {r.deal_key: r for r in misses}
        for key, result in fresh.items():
            req = by_key.get(key)
            if req is None or not result.summary:
                continue
            results[key] = result
            try:
                self._cache.put(req.deal_key, req.notes_hash, self.model, result.summary)
            except sqlite3.Error as e:
                logger.warning("Summary cache write failed for %s: %s", key, e)
        return results
