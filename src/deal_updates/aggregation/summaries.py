"""Attach note summaries: reuse unchanged ones, batch the rest, fall back locally."""

import logging
import re
from dataclasses import dataclass
from typing import Optional

from deal_updates.identity import NOTES_SEPARATOR
from deal_updates.models.deal import Deal
from deal_updates.summarization.base import Summarizer, SummaryRequest

logger = logging.getLogger(__name__)

SUMMARY_BATCH_SIZE = 20

_NOTE_PART_CHARS = 150
_SUMMARY_MAX_CHARS = 500
_FIRST_SENTENCE = re.compile(r"^(.+?[.!?])\s", re.DOTALL)


@dataclass
class SummaryStats:
    """How each deal got its summary."""

    reused: int = 0
    generated: int = 0
    cached: int = 0
    fallback: int = 0
    batches: int = 0


def fallback_summary(notes: list[str]) -> str:
    """
    Deterministic local summary: first sentence (or first 150 chars) of each
    distinct note, joined with ' | ', capped at 500 chars.
    """
    parts: list[str] = []
    for note in dict.fromkeys(notes):
        match = _FIRST_SENTENCE.match(note)
        if match and len(match.group(1)) <= _NOTE_PART_CHARS:
            parts.append(match.group(1))
        elif len(note) > _NOTE_PART_CHARS:
            parts.append(note[: _NOTE_PART_CHARS - 3] + "...")
        else:
            parts.append(note)
    summary = " | ".join(parts)
    if len(summary) > _SUMMARY_MAX_CHARS:
        summary = summary[: _SUMMARY_MAX_CHARS - 3] + "..."
    return summary


def _notes_from_canonical(canonical: str) -> list[str]:
    return [n for n in canonical.split(NOTES_SEPARATOR) if n] if canonical else []


def _batches(items: list[Deal], size: int) -> list[list[Deal]]:
    size = max(1, size)
    return [items[i : i + size] for i in range(0, len(items), size)]


def attach_summaries(
    deals: list[Deal],
    *,
    prior: Optional[dict[str, Deal]] = None,
    summarizer: Optional[Summarizer] = None,
    batch_size: int = SUMMARY_BATCH_SIZE,
) -> SummaryStats:
    """
    Set notes_summary and summary_source on each deal (in place).

    A deal whose notes_hash matches the prior snapshot's reuses the stored
    summary without calling the summarizer, unless that summary was a local
    fallback. Others go to the summarizer in batches of batch_size; failures
    and missing entries get the local fallback.
    """
    stats = SummaryStats()
    prior = prior or {}
    pending: list[Deal] = []

    for deal in deals:
        previous = prior.get(deal.deal_key)
        if (
            previous is not None
            and previous.notes_hash
            and previous.notes_hash == deal.notes_hash
            and previous.notes_summary
            and previous.summary_source != "fallback"
        ):
            deal.notes_summary = previous.notes_summary
            deal.summary_source = "reused"
            stats.reused += 1
        elif summarizer is not None and deal.notes_count > 0:
            pending.append(deal)
        else:
            _apply_fallback(deal, stats)

    for batch in _batches(pending, batch_size):
        stats.batches += 1
        requests = [
            SummaryRequest(
                deal_key=d.deal_key,
                notes_hash=d.notes_hash or "",
                notes_canonical=d.notes_canonical,
                deal_name=d.name,
            )
            for d in batch
        ]
        try:
            results = summarizer.summarize(requests)
        except Exception as e:
            logger.warning("Summarization batch of %d failed: %s", len(batch), e)
            results = {}

        for deal in batch:
            result = results.get(deal.deal_key)
            if result is None or not result.summary:
                _apply_fallback(deal, stats)
                continue
            deal.notes_summary = result.summary
            if result.cached:
                deal.summary_source = "cached"
                stats.cached += 1
            else:
                deal.summary_source = "generated"
                stats.generated += 1

    logger.info(
        "Summaries: %d reused, %d generated, %d cached, %d fallback (%d batches)",
        stats.reused, stats.generated, stats.cached, stats.fallback, stats.batches,
    )
    return stats


def _apply_fallback(deal: Deal, stats: SummaryStats) -> None:
    deal.notes_summary = fallback_summary(_notes_from_canonical(deal.notes_canonical))
    deal.summary_source = "fallback"
    stats.fallback += 1
