"""Pipeline orchestration: parse → load → deduplicate → summarize → diff → score."""

import hashlib
import logging
from dataclasses import dataclass
from datetime import date
from pathlib import Path
from typing import Iterable, Optional

from deal_updates.aggregation import SummaryStats, attach_summaries, deduplicate_deals
from deal_updates.diffing import DiffSummary, diff_snapshots
from deal_updates.ingest import ImportStats, load_deals, parse_export
from deal_updates.models.deal import Deal, Snapshot
from deal_updates.models.scoring_config import ScoringConfig
from deal_updates.scoring import score_deals
from deal_updates.summarization import CachingSummarizer, Summarizer

logger = logging.getLogger(__name__)


@dataclass
class ImportResult:
    """Everything one import produces."""

    snapshot: Snapshot
    stats: ImportStats
    summaries: SummaryStats
    diff: Optional[DiffSummary] = None


def default_snapshot_id(text: str, report_date: date) -> str:
    """Stable id for an import: report date plus a digest of the raw export."""
    digest = hashlib.sha256(text.encode("utf-8")).hexdigest()[:12]
    return f"{report_date.isoformat()}-{digest}"


def _report_date(generated: Optional[date], now: Optional[date]) -> date:
    return generated or now or date.today()


def run_import(
    text: str,
    *,
    now: Optional[date] = None,
    snapshot_id: Optional[str] = None,
    prior_deals: Optional[Iterable[Deal]] = None,
    baseline: Optional[Iterable[Deal]] = None,
    summarizer: Optional[Summarizer] = None,
    scoring_config: Optional[ScoringConfig] = None,
) -> ImportResult:
    """
    Run the full import over raw export text.

    now: reference date for day deltas; defaults to the export's generated date,
        then today.
    prior_deals: deals of a previous snapshot whose summaries may be reused.
    baseline: snapshot to diff against; no diff when omitted.
    Raises ImportParseError subclasses for structural failures only.
    """
    parsed = parse_export(text)
    report_date = _report_date(parsed.generated_date, now)
    reference = now or report_date

    loaded = load_deals(parsed, reference)
    deals = deduplicate_deals(loaded.deals)
    loaded.stats.deals = len(deals)

    prior = {d.deal_key: d for d in prior_deals} if prior_deals is not None else None
    summary_stats = attach_summaries(deals, prior=prior, summarizer=summarizer)

    diff = diff_snapshots(baseline, deals) if baseline is not None else None
    score_deals(deals, scoring_config)

    snapshot = Snapshot(
        snapshot_id=snapshot_id or default_snapshot_id(text, report_date),
        generated_date=report_date,
        deals=deals,
    )
    logger.info("Import %s: %d deals", snapshot.snapshot_id, len(deals))
    return ImportResult(snapshot=snapshot, stats=loaded.stats, summaries=summary_stats, diff=diff)


def run_stored_import(
    text: str,
    *,
    db_path: Path,
    now: Optional[date] = None,
    snapshot_id: Optional[str] = None,
    summarizer: Optional[Summarizer] = None,
    scoring_config: Optional[ScoringConfig] = None,
) -> ImportResult:
    """
    Import against a SQLite store: reuse summaries from and diff against the
    latest stored snapshot, route summaries through the cache, then persist.
    """
    from deal_updates.store import SnapshotStore, SummaryCacheStore

    store = SnapshotStore(db_path)
    if summarizer is not None:
        summarizer = CachingSummarizer(summarizer, SummaryCacheStore(db_path))

    if snapshot_id is None:
        # The baseline must not be the snapshot this import is about to replace
        generated = parse_export(text).generated_date
        snapshot_id = default_snapshot_id(text, _report_date(generated, now))

    previous_id = store.latest_snapshot_id(exclude=snapshot_id)
    previous = store.get_deals(previous_id) if previous_id else None

    result = run_import(
        text,
        now=now,
        snapshot_id=snapshot_id,
        prior_deals=previous,
        baseline=previous,
        summarizer=summarizer,
        scoring_config=scoring_config,
    )
    store.save_snapshot(result.snapshot, scoring_config=scoring_config)
    logger.info(
        "Saved snapshot %s (baseline %s)", result.snapshot.snapshot_id, previous_id or "none"
    )
    return result
