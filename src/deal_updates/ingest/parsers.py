"""Row normalization, enrichment, and validation for CRM export rows."""

import logging
from datetime import date
from typing import Optional

from lxml import etree
from lxml import html as lxml_html

from deal_updates.currency import parse_acv
from deal_updates.dates import parse_date
from deal_updates.identity import make_deal_key
from deal_updates.models.deal import Deal
from deal_updates.models.raw import RawRow

from .constants import COLUMN_MAPPINGS, MAX_OWNER_LENGTH, MAX_OWNER_TOKENS

logger = logging.getLogger(__name__)


def rows_to_raw(headers: list[str], rows: list[list[str]]) -> list[RawRow]:
    """
    Pair data rows with header names. Entirely blank rows are skipped;
    short rows get empty strings for missing trailing fields.
    """
    expected = len(headers)
    raw_rows: list[RawRow] = []
    for i, values in enumerate(rows):
        if not any(v.strip() for v in values):
            continue
        if len(values) != expected:
            logger.debug(
                "Row %d has %d columns (expected %d): %r",
                i, len(values), expected, values[0] if values else "",
            )
        data: dict[str, str] = {}
        for idx, header in enumerate(headers):
            if header not in data:
                data[header] = values[idx] if idx < len(values) else ""
        raw_rows.append(RawRow(data=data))
    return raw_rows


def normalize_row(raw: RawRow) -> dict[str, str]:
    """Copy known columns into the internal field set; missing columns become ''."""
    return {field: raw.data.get(column) or "" for column, field in COLUMN_MAPPINGS.items()}


def strip_html(value: Optional[str]) -> str:
    """Reduce marked-up note text to its plain text content."""
    if not value:
        return ""
    if "<" not in value and "&" not in value:
        return value
    try:
        fragment = lxml_html.fragment_fromstring(value, create_parent="div")
    except (etree.ParserError, ValueError) as e:
        logger.debug("HTML strip fell back to raw text: %s", e)
        return value
    return fragment.text_content()


def enrich_row(fields: dict[str, str], now: date) -> Optional[Deal]:
    """
    Parse ACV, dates, and note markup. Returns None for rows whose ACV is
    not in the home currency (silently excluded, not an error).
    """
    money = parse_acv(fields["acv"])
    if not money.is_home:
        return None

    deal = Deal(
        owner=fields["owner"],
        name=fields["name"],
        stage=fields["stage"],
        acv=money.value,
        closing_date=parse_date(fields["closing_date"]),
        modified_date=parse_date(fields["modified_date"]),
        note=strip_html(fields["note"]),
        description=strip_html(fields["description"]),
        deal_key=make_deal_key(fields["name"], fields["owner"]),
    )
    return deal.refresh_derived(now)


def validate_deal(deal: Deal) -> bool:
    """
    Owner must look like a name (non-empty, <=100 chars, <=5 words);
    deal name must be non-blank.
    """
    owner = deal.owner or ""
    if not owner.strip() or len(owner) > MAX_OWNER_LENGTH or len(owner.split()) > MAX_OWNER_TOKENS:
        return False
    if not deal.name or not deal.name.strip():
        return False
    return True
