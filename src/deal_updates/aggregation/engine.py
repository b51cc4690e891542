"""Deduplicate note-event rows into one canonical deal per deal key."""

import logging
from typing import Optional

from deal_updates.identity import canonicalize_notes, make_deal_key, notes_hash
from deal_updates.models.deal import Deal

logger = logging.getLogger(__name__)


def _newer(candidate: Deal, existing: Deal) -> bool:
    """
    True when candidate should replace existing: strictly later modified date,
    or it has a date and existing does not. Ties keep the first row seen.
    """
    if candidate.modified_date and existing.modified_date:
        return candidate.modified_date > existing.modified_date
    return candidate.modified_date is not None and existing.modified_date is None


def deduplicate_deals(deals: list[Deal]) -> list[Deal]:
    """
    Merge rows sharing a deal key into one Deal.

    Scalar fields come from the freshest row. Notes are collected from every
    row with that key, not just the winner, then canonicalized and hashed.
    Output keeps first-seen key order; input deals are not modified.
    """
    winners: dict[str, Deal] = {}
    notes_by_key: dict[str, list[str]] = {}

    for deal in deals:
        key = deal.deal_key or make_deal_key(deal.name, deal.owner)
        notes = notes_by_key.setdefault(key, [])
        if deal.note and deal.note.strip():
            notes.append(deal.note.strip())

        existing: Optional[Deal] = winners.get(key)
        if existing is None or _newer(deal, existing):
            winners[key] = deal

    result: list[Deal] = []
    for key, winner in winners.items():
        canonical, count = canonicalize_notes(notes_by_key.get(key, []))
        result.append(
            winner.model_copy(
                deep=True,
                update={
                    "deal_key": key,
                    "notes_canonical": canonical,
                    "notes_count": count,
                    "notes_hash": notes_hash(canonical),
                },
            )
        )

    logger.info("After deduplication: %d deals from %d rows", len(result), len(deals))
    return result
