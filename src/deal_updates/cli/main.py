"""Main CLI entry point."""

import argparse
import json
import logging
import os
import sys
from datetime import date, datetime
from pathlib import Path
from typing import Optional


def main() -> None:
    """Parse args and dispatch to subcommands."""
    parser = argparse.ArgumentParser(
        prog="deal-updates",
        description="CRM deal export processing: dedupe, diff, and health scoring",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Log progress at INFO (default: DEAL_UPDATES_LOG_LEVEL or WARNING)",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    # ingest
    ingest_parser = subparsers.add_parser("ingest", help="Import a CRM deal export")
    ingest_parser.add_argument("csv", type=Path, help="Path to the exported CSV")
    ingest_parser.add_argument(
        "--now",
        type=str,
        default=None,
        help="Reference date for day counts (YYYY-MM-DD). Default: the export's generated date",
    )
    ingest_parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Path to scoring config YAML",
    )
    ingest_parser.add_argument(
        "--store",
        type=Path,
        default=None,
        metavar="DB_PATH",
        help="Persist to SQLite store and diff against its latest snapshot (e.g. deal_updates.db)",
    )
    ingest_parser.add_argument(
        "--snapshot-id",
        type=str,
        default=None,
        help="Snapshot id (default: report date plus content digest)",
    )
    ingest_parser.add_argument(
        "--output",
        type=Path,
        default=None,
        help="Write snapshot JSON to file (default: stdout)",
    )
    ingest_parser.add_argument(
        "--no-summaries",
        action="store_true",
        help="Skip the summarization service; use local fallback summaries",
    )

    # diff
    diff_parser = subparsers.add_parser("diff", help="Compare two exports")
    diff_parser.add_argument("old", type=Path, help="Baseline export CSV")
    diff_parser.add_argument("new", type=Path, help="Newer export CSV")
    diff_parser.add_argument("--now", type=str, default=None, help="Reference date (YYYY-MM-DD)")

    # store
    store_parser = subparsers.add_parser("store", help="Query the snapshot store")
    store_parser.add_argument(
        "action",
        choices=["list", "show"],
        help="List snapshots or show one snapshot's deals",
    )
    store_parser.add_argument(
        "--db",
        type=Path,
        default=Path("deal_updates.db"),
        help="Path to SQLite database",
    )
    store_parser.add_argument(
        "--snapshot-id",
        type=str,
        default=None,
        help="Snapshot to show (default: latest)",
    )

    # score
    score_parser = subparsers.add_parser("score", help="Rank deals in an export by health score")
    score_parser.add_argument("csv", type=Path, help="Path to the exported CSV")
    score_parser.add_argument("--config", type=Path, default=None, help="Path to scoring config YAML")
    score_parser.add_argument("--now", type=str, default=None, help="Reference date (YYYY-MM-DD)")

    args = parser.parse_args()
    _configure_logging(args.verbose)

    if args.command == "ingest":
        _run_ingest(args)
    elif args.command == "diff":
        _run_diff(args)
    elif args.command == "store":
        _run_store(args)
    elif args.command == "score":
        _run_score(args)
    else:
        parser.print_help()


def _configure_logging(verbose: bool) -> None:
    level_name = "INFO" if verbose else (os.environ.get("DEAL_UPDATES_LOG_LEVEL") or "WARNING")
    logging.basicConfig(
        level=getattr(logging, level_name.upper(), logging.WARNING),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )


def _parse_now(value: Optional[str]) -> Optional[date]:
    if not value:
        return None
    try:
        return datetime.strptime(value, "%Y-%m-%d").date()
    except ValueError:
        raise SystemExit("Invalid --now format. Use YYYY-MM-DD.")


def _read_export(path: Path) -> str:
    try:
        return path.read_text(encoding="utf-8")
    except OSError as e:
        raise SystemExit(f"Could not read {path}: {e}")


def _load_config(path: Optional[Path]):
    from deal_updates.errors import ConfigError
    from deal_updates.models.scoring_config import ScoringConfig

    if path is None:
        return None
    try:
        return ScoringConfig.from_yaml(path)
    except ConfigError as e:
        raise SystemExit(str(e))


def _deal_row(deal) -> dict:
    """Compact per-deal view for diff and score output."""
    health = deal.health
    return {
        "deal_key": deal.deal_key,
        "name": deal.name,
        "owner": deal.owner,
        "stage": deal.stage,
        "acv": deal.acv,
        "health_score": health.score if health else None,
        "health_level": health.level if health else None,
        "change_type": deal.change_type,
        "changes": deal.changes,
    }


def _run_ingest(args: argparse.Namespace) -> None:
    """Run ingest command."""
    from deal_updates.errors import ImportParseError
    from deal_updates.pipeline import run_import, run_stored_import
    from deal_updates.summarization import get_summarizer

    text = _read_export(args.csv)
    now = _parse_now(args.now)
    config = _load_config(args.config)
    summarizer = None if args.no_summaries else get_summarizer()

    try:
        if args.store is not None:
            result = run_stored_import(
                text,
                db_path=args.store,
                now=now,
                snapshot_id=args.snapshot_id,
                summarizer=summarizer,
                scoring_config=config,
            )
        else:
            result = run_import(
                text,
                now=now,
                snapshot_id=args.snapshot_id,
                summarizer=summarizer,
                scoring_config=config,
            )
    except ImportParseError as e:
        raise SystemExit(f"Could not parse import: {e}")

    stats = result.stats
    if args.store is not None:
        diff = result.diff
        diff_text = (
            f", {diff.new} new, {diff.updated} updated, {diff.removed} removed, {diff.unchanged} unchanged"
            if diff is not None
            else ""
        )
        print(
            f"Store: snapshot {result.snapshot.snapshot_id} with {stats.deals} deals{diff_text}",
            file=sys.stderr,
        )

    output = json.dumps(
        {
            "snapshot": result.snapshot.model_dump(mode="json"),
            "stats": {
                "rows_parsed": stats.rows_parsed,
                "dropped_currency": stats.dropped_currency,
                "dropped_invalid": stats.dropped_invalid,
                "rows_valid": stats.rows_valid,
                "deals": stats.deals,
            },
            "diff": result.diff.model_dump(mode="json") if result.diff else None,
        },
        indent=2,
        default=str,
    )

    if args.output:
        args.output.write_text(output, encoding="utf-8")
        print(f"Wrote {stats.deals} deals to {args.output}")
    else:
        print(output)


def _run_diff(args: argparse.Namespace) -> None:
    """Run diff command."""
    from deal_updates.errors import ImportParseError
    from deal_updates.pipeline import run_import

    now = _parse_now(args.now)
    try:
        old = run_import(_read_export(args.old), now=now)
        new = run_import(_read_export(args.new), now=now, baseline=old.snapshot.deals)
    except ImportParseError as e:
        raise SystemExit(f"Could not parse import: {e}")

    diff = new.diff
    output = json.dumps(
        {
            "counts": {
                "new": diff.new,
                "updated": diff.updated,
                "removed": diff.removed,
                "unchanged": diff.unchanged,
            },
            "removed": diff.removed_keys,
            "deals": [_deal_row(d) for d in new.snapshot.deals if d.change_type != "unchanged"],
        },
        indent=2,
        default=str,
    )
    print(output)


def _run_store(args: argparse.Namespace) -> None:
    """Run store command."""
    from deal_updates.store import SnapshotStore

    store = SnapshotStore(args.db)
    if args.action == "list":
        records = store.list_snapshots()
        output = json.dumps(
            [
                {
                    "id": r.id,
                    "generated_date": r.generated_date.isoformat(),
                    "created_at": r.created_at.isoformat(),
                    "deal_count": r.deal_count,
                }
                for r in records
            ],
            indent=2,
        )
        print(output)
    elif args.action == "show":
        snapshot_id = args.snapshot_id or store.latest_snapshot_id()
        snapshot = store.get_snapshot(snapshot_id) if snapshot_id else None
        if snapshot is None:
            print(
                "No snapshot in store. Run ingest first:\n"
                "  deal-updates ingest EXPORT.csv --store deal_updates.db",
                file=sys.stderr,
            )
            raise SystemExit(1)
        print(json.dumps(snapshot.model_dump(mode="json"), indent=2, default=str))


def _run_score(args: argparse.Namespace) -> None:
    """Run score command. Deals are ranked by health score, highest first."""
    from deal_updates.errors import ImportParseError
    from deal_updates.pipeline import run_import

    config = _load_config(args.config)
    try:
        result = run_import(_read_export(args.csv), now=_parse_now(args.now), scoring_config=config)
    except ImportParseError as e:
        raise SystemExit(f"Could not parse import: {e}")

    deals = sorted(
        result.snapshot.deals,
        key=lambda d: (d.health.score if d.health else 0, d.acv),
        reverse=True,
    )
    output = []
    for deal in deals:
        row = _deal_row(deal)
        row["components"] = deal.health.components.model_dump() if deal.health else None
        output.append(row)
    print(json.dumps(output, indent=2, default=str))


if __name__ == "__main__":
    main()
