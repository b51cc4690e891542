"""Date parsing, formatting, and day-delta helpers relative to a reference "now"."""

import logging
from datetime import date, datetime
from typing import Optional

import dateparser

logger = logging.getLogger(__name__)

# Days-since value for deals with no modified date
UNKNOWN_DAYS = 999

URGENCY_THRESHOLDS = {
    "fresh": 14,
    "warning": 30,
    "stale": 60,
}
CLOSING_SOON_DAYS = 14

DATE_FORMATS = (
    "%Y-%m-%d %H:%M:%S",
    "%Y-%m-%d %H:%M",
    "%Y-%m-%dT%H:%M:%S",
    "%Y-%m-%d",
    "%Y/%m/%d",
    "%m/%d/%Y %I:%M %p",
    "%m/%d/%Y %H:%M:%S",
    "%m/%d/%Y %H:%M",
    "%m/%d/%Y",
    "%b %d, %Y %I:%M %p",
    "%b %d, %Y %H:%M",
    "%b %d, %Y",
    "%B %d, %Y",
    "%d %b %Y",
    "%d %B %Y",
)

# Absolute dates only; relative phrases ("yesterday") would depend on the wall clock
_DATEPARSER_SETTINGS = {
    "PREFER_DAY_OF_MONTH": "first",
    "RETURN_AS_TIMEZONE_AWARE": False,
    "REQUIRE_PARTS": ["day", "month", "year"],
    "DATE_ORDER": "MDY",
}


def parse_date(value: Optional[str]) -> Optional[date]:
    """Parse a CRM date/datetime string, keeping only the date part."""
    if not value or not value.strip():
        return None
    text = " ".join(value.split())
    for fmt in DATE_FORMATS:
        try:
            return datetime.strptime(text, fmt).date()
        except ValueError:
            continue
    try:
        parsed = dateparser.parse(text, languages=["en"], settings=_DATEPARSER_SETTINGS)
    except (ValueError, TypeError, OverflowError) as e:
        logger.debug("dateparser rejected %r: %s", text, e)
        return None
    return parsed.date() if parsed else None


def format_date(value: Optional[date]) -> str:
    """Human-readable date, e.g. 'Mar 9, 2026'; '-' when unknown."""
    if value is None:
        return "-"
    return f"{value.strftime('%b')} {value.day}, {value.year}"


def days_since(value: Optional[date], now: date) -> int:
    """Whole days from value to now, floored at 0; UNKNOWN_DAYS when value is missing."""
    if value is None:
        return UNKNOWN_DAYS
    return max(0, (now - value).days)


def days_until(value: Optional[date], now: date) -> Optional[int]:
    """Signed whole days from now until value; None when value is missing."""
    if value is None:
        return None
    return (value - now).days


def urgency_level(days: int) -> str:
    """fresh / warning / stale / critical bucket for days since last modification."""
    if days <= URGENCY_THRESHOLDS["fresh"]:
        return "fresh"
    if days <= URGENCY_THRESHOLDS["warning"]:
        return "warning"
    if days <= URGENCY_THRESHOLDS["stale"]:
        return "stale"
    return "critical"


def closing_status(days: Optional[int]) -> Optional[str]:
    """overdue / soon / normal bucket for days until closing."""
    if days is None:
        return None
    if days < 0:
        return "overdue"
    if days <= CLOSING_SOON_DAYS:
        return "soon"
    return "normal"
