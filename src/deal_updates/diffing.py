"""
Snapshot diffing for change tracking.

Classifies every deal of a newer snapshot against a baseline by deal key and
annotates it with human-readable change lines.
"""

import logging
from typing import Iterable

from pydantic import BaseModel, Field

from deal_updates.currency import format_acv_compact, round_half_up
from deal_updates.models.deal import Deal

logger = logging.getLogger(__name__)

NEW = "new"
UPDATED = "updated"
UNCHANGED = "unchanged"


class DiffSummary(BaseModel):
    """Aggregate counts for one diff."""

    new: int = 0
    updated: int = 0
    removed: int = 0
    unchanged: int = 0
    removed_keys: list[str] = Field(default_factory=list)


def describe_changes(old: Deal, new: Deal) -> list[str]:
    """One change line per differing field: stage, rounded ACV, trimmed note."""
    changes: list[str] = []
    if old.stage != new.stage:
        changes.append(f"Stage: {old.stage} → {new.stage}")
    if round_half_up(old.acv) != round_half_up(new.acv):
        changes.append(f"ACV: {format_acv_compact(old.acv)} → {format_acv_compact(new.acv)}")
    if (old.note or "").strip() != (new.note or "").strip():
        changes.append("Note updated")
    return changes


def diff_snapshots(baseline: Iterable[Deal], newer: list[Deal]) -> DiffSummary:
    """
    Annotate newer deals with change_type and changes; count removed baseline keys.

    The newer deals are mutated in place. Baseline deals are only read.
    """
    old_by_key = {d.deal_key: d for d in baseline}
    new_keys = set()
    summary = DiffSummary()

    for deal in newer:
        new_keys.add(deal.deal_key)
        previous = old_by_key.get(deal.deal_key)
        if previous is None:
            deal.change_type = NEW
            deal.changes = []
            summary.new += 1
            continue

        changes = describe_changes(previous, deal)
        deal.changes = changes
        if changes:
            deal.change_type = UPDATED
            summary.updated += 1
        else:
            deal.change_type = UNCHANGED
            summary.unchanged += 1

    summary.removed_keys = sorted(k for k in old_by_key if k not in new_keys)
    summary.removed = len(summary.removed_keys)

    logger.info(
        "Diff: %d new, %d updated, %d removed, %d unchanged",
        summary.new, summary.updated, summary.removed, summary.unchanged,
    )
    return summary
