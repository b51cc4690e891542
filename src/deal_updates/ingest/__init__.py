"""CRM export ingest: tokenize -> locate header -> normalize -> enrich -> validate."""

import logging
from dataclasses import dataclass, field
from datetime import date
from typing import Optional

from deal_updates.errors import NoDataError
from deal_updates.models.deal import Deal
from deal_updates.models.raw import RawRow

from .metadata import ExportLayout, extract_generated_date, locate_header
from .parsers import enrich_row, normalize_row, rows_to_raw, strip_html, validate_deal
from .tokenizer import tokenize

logger = logging.getLogger(__name__)


@dataclass
class ParsedExport:
    """Header-keyed rows plus banner metadata."""

    headers: list[str]
    rows: list[RawRow]
    generated_date: Optional[date]


@dataclass
class ImportStats:
    """Row counts through the ingest stages."""

    rows_parsed: int = 0
    dropped_currency: int = 0
    dropped_invalid: int = 0
    rows_valid: int = 0
    deals: int = 0


@dataclass
class LoadedExport:
    """Validated, enriched rows (one per note event, not yet deduplicated)."""

    deals: list[Deal]
    generated_date: Optional[date]
    stats: ImportStats = field(default_factory=ImportStats)


def parse_export(text: str) -> ParsedExport:
    """Tokenize export text and key data rows by header. Raises ImportParseError subclasses."""
    all_rows = tokenize(text)
    if not all_rows:
        raise NoDataError("No data found in export.")

    layout: ExportLayout = locate_header(all_rows)
    raw_rows = rows_to_raw(layout.headers, all_rows[layout.header_index + 1 :])
    logger.info("Parsed %d data rows (header at row %d)", len(raw_rows), layout.header_index)
    return ParsedExport(headers=layout.headers, rows=raw_rows, generated_date=layout.generated_date)


def load_deals(parsed: ParsedExport, now: date) -> LoadedExport:
    """Normalize, enrich, and validate each row; drops are counted, never raised."""
    stats = ImportStats(rows_parsed=len(parsed.rows))
    deals: list[Deal] = []
    for raw in parsed.rows:
        deal = enrich_row(normalize_row(raw), now)
        if deal is None:
            stats.dropped_currency += 1
            continue
        if not validate_deal(deal):
            stats.dropped_invalid += 1
            continue
        deals.append(deal)
    stats.rows_valid = len(deals)
    logger.info(
        "After processing and validation: %d rows (%d non-CAD, %d invalid)",
        len(deals), stats.dropped_currency, stats.dropped_invalid,
    )
    return LoadedExport(deals=deals, generated_date=parsed.generated_date, stats=stats)


__all__ = [
    "ImportStats",
    "LoadedExport",
    "ParsedExport",
    "enrich_row",
    "extract_generated_date",
    "load_deals",
    "locate_header",
    "normalize_row",
    "parse_export",
    "strip_html",
    "tokenize",
    "validate_deal",
]
