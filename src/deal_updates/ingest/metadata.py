"""Locate the header row and the report-generation date in an export."""

import logging
import re
from dataclasses import dataclass
from datetime import date
from typing import Optional

from deal_updates.errors import HeaderNotFoundError

from .constants import HEADER_SCAN_ROWS, REQUIRED_HEADERS

logger = logging.getLogger(__name__)

GENERATED_BY = re.compile(r"generated\s+by", re.IGNORECASE)

_MONTHS = {
    name: i
    for i, name in enumerate(
        ("jan", "feb", "mar", "apr", "may", "jun", "jul", "aug", "sep", "oct", "nov", "dec"),
        start=1,
    )
}

# (pattern, group order) tried in order; first valid calendar date wins
_DATE_PATTERNS: list[tuple[re.Pattern, str]] = [
    (re.compile(r"(\d{4})-(\d{1,2})-(\d{1,2})"), "ymd"),
    (re.compile(r"(\d{1,2})/(\d{1,2})/(\d{4})"), "mdy"),
    (re.compile(r"([A-Za-z]{3,9})\.?\s+(\d{1,2}),?\s+(\d{4})"), "Mdy"),
    (re.compile(r"(\d{1,2})\s+([A-Za-z]{3,9})\.?,?\s+(\d{4})"), "dMy"),
]


@dataclass
class ExportLayout:
    """Where the header sits and what the banner said."""

    header_index: int
    headers: list[str]
    generated_date: Optional[date]


def _month_number(name: str) -> Optional[int]:
    return _MONTHS.get(name[:3].lower())


def _build_date(year: int, month: Optional[int], day: int) -> Optional[date]:
    if month is None:
        return None
    try:
        return date(year, month, day)
    except ValueError:
        return None


def extract_generated_date(text: str) -> Optional[date]:
    """Pull the first valid date out of a 'Generated by ...' banner line."""
    for pattern, order in _DATE_PATTERNS:
        for m in pattern.finditer(text):
            a, b, c = m.groups()
            if order == "ymd":
                found = _build_date(int(a), int(b), int(c))
            elif order == "mdy":
                found = _build_date(int(c), int(a), int(b))
            elif order == "Mdy":
                found = _build_date(int(c), _month_number(a), int(b))
            else:
                found = _build_date(int(c), _month_number(b), int(a))
            if found:
                return found
    return None


def locate_header(rows: list[list[str]]) -> ExportLayout:
    """
    Scan the first HEADER_SCAN_ROWS rows for the header (a row holding both
    'Deal Owner' and 'Deal Name'). Banner rows before it may carry a
    'Generated by ... <date>' line.
    """
    generated: Optional[date] = None
    for i, row in enumerate(rows[:HEADER_SCAN_ROWS]):
        if all(h in row for h in REQUIRED_HEADERS):
            logger.debug("Found header at row %d: %s", i, row)
            return ExportLayout(header_index=i, headers=row, generated_date=generated)
        if generated is None:
            joined = ",".join(row)
            if GENERATED_BY.search(joined):
                generated = extract_generated_date(joined)
                if generated:
                    logger.debug("Report generated date %s from banner row %d", generated, i)

    raise HeaderNotFoundError(
        'Could not find header row. Looking for "Deal Owner" and "Deal Name" columns.',
        {"rows_scanned": min(len(rows), HEADER_SCAN_ROWS)},
    )
