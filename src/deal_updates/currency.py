"""Annual contract value parsing with currency detection."""

import math
import re
from dataclasses import dataclass

HOME_CURRENCY = "CAD"

# Leading decimal literal, as far as it parses ("12.3.4" -> "12.3")
_LEADING_NUMBER = re.compile(r"-?(?:\d+(?:\.\d*)?|\.\d+)")
_NON_NUMERIC = re.compile(r"[^0-9.,\-]")
_PARENTHESISED = re.compile(r"\(.*\)")


@dataclass
class ParsedMoney:
    """Result of parsing a monetary string."""

    value: float
    currency: str
    is_home: bool
    raw: str


def detect_currency(text: str) -> str:
    """
    Detect currency by marker, in priority order: USD beats EUR beats CAD.
    No marker at all (bare "$" or a plain number) means home currency.
    """
    upper = text.strip().upper()
    if "USD" in upper or upper.startswith("US$"):
        return "USD"
    if "EUR" in upper or re.sub(r"\s", "", upper).startswith("€"):
        return "EUR"
    if "CAD" in upper or "CA$" in upper or "C$" in upper:
        return "CAD"
    return HOME_CURRENCY


def _disambiguate_commas(numeric: str) -> str:
    """
    One comma after the last dot with <=2 digits following is a decimal
    separator (12.345,67). Otherwise commas are thousand separators.
    """
    if "," not in numeric:
        return numeric
    last_comma = numeric.rfind(",")
    digits_after = len(numeric) - last_comma - 1
    if numeric.count(",") == 1 and digits_after <= 2 and last_comma > numeric.rfind("."):
        return numeric.replace(".", "").replace(",", ".")
    return numeric.replace(",", "")


def _leading_float(numeric: str) -> float:
    match = _LEADING_NUMBER.match(numeric)
    if not match:
        return 0.0
    try:
        return float(match.group())
    except ValueError:
        return 0.0


def parse_acv(value: str | None) -> ParsedMoney:
    """
    Parse an ACV string such as "$1,234", "12.345,67 CAD" or "($500)".
    Unparseable amounts become 0; empty input is a zero home-currency value.
    """
    if not value or not isinstance(value, str) or not value.strip():
        return ParsedMoney(value=0.0, currency=HOME_CURRENCY, is_home=True, raw=value or "")

    currency = detect_currency(value)
    upper = value.strip().upper()
    is_negative = bool(_PARENTHESISED.search(upper))

    numeric = _disambiguate_commas(_NON_NUMERIC.sub("", upper))
    amount = _leading_float(numeric)
    if is_negative and amount > 0:
        amount = -amount

    return ParsedMoney(
        value=amount,
        currency=currency,
        is_home=currency == HOME_CURRENCY,
        raw=value,
    )


def format_acv_compact(value: float) -> str:
    """Thousands shorthand used in change lines: 50000 -> "$50K"."""
    return f"${round_half_up(value / 1000)}K"


def round_half_up(value: float) -> int:
    """Round to nearest integer with .5 going up (same as Math.round)."""
    return math.floor(value + 0.5)
