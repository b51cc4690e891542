"""Unit tests for currency, date, and identity helpers."""

from datetime import date

import pytest

from deal_updates.currency import detect_currency, format_acv_compact, parse_acv, round_half_up
from deal_updates.dates import (
    closing_status,
    days_since,
    days_until,
    format_date,
    parse_date,
    urgency_level,
)
from deal_updates.identity import (
    NOTES_SEPARATOR,
    canonicalize_notes,
    make_deal_key,
    normalize,
    notes_hash,
)


class TestParseAcv:
    """Tests for parse_acv and currency detection."""

    def test_usd_marker_excluded(self) -> None:
        """USD amounts are flagged as foreign."""
        money = parse_acv("1,234.56 USD")
        assert money.currency == "USD"
        assert money.is_home is False

    def test_bare_dollar_is_home(self) -> None:
        """A plain $ with no marker is home currency."""
        money = parse_acv("$1,234")
        assert money.is_home is True
        assert money.value == 1234

    def test_european_format(self) -> None:
        """Dot thousands, comma decimal."""
        assert parse_acv("12.345,67").value == pytest.approx(12345.67)

    def test_multiple_commas_are_thousands(self) -> None:
        assert parse_acv("1,234,567").value == 1234567

    def test_parentheses_negative(self) -> None:
        """Accounting-style negatives."""
        assert parse_acv("($500)").value == -500

    def test_leading_decimal_literal(self) -> None:
        """Only the leading literal counts."""
        assert parse_acv("12.3.4").value == pytest.approx(12.3)

    @pytest.mark.parametrize("value", [None, "", "   ", "n/a"])
    def test_empty_or_unparseable_is_zero(self, value) -> None:
        money = parse_acv(value)
        assert money.value == 0
        assert money.is_home is True

    @pytest.mark.parametrize(
        "text,currency",
        [
            ("US$100", "USD"),
            ("100 usd", "USD"),
            ("€100", "EUR"),
            ("100 EUR", "EUR"),
            ("CA$100", "CAD"),
            ("100 CAD", "CAD"),
            ("100", "CAD"),
        ],
    )
    def test_detect_currency(self, text: str, currency: str) -> None:
        assert detect_currency(text) == currency


class TestRounding:
    """Tests for round_half_up and format_acv_compact."""

    def test_half_goes_up(self) -> None:
        assert round_half_up(2.5) == 3
        assert round_half_up(1.5) == 2
        assert round_half_up(1.49) == 1

    def test_compact_thousands(self) -> None:
        assert format_acv_compact(50000) == "$50K"
        assert format_acv_compact(1500) == "$2K"


class TestParseDate:
    """Tests for parse_date."""

    @pytest.mark.parametrize(
        "text",
        [
            "2026-03-09",
            "2026-03-09 14:00:00",
            "2026-03-09T14:00:00",
            "03/09/2026",
            "03/09/2026 02:30 PM",
            "Mar 9, 2026",
            "March 9, 2026",
            "9 Mar 2026",
        ],
    )
    def test_known_formats(self, text: str) -> None:
        """Explicit formats keep only the date part."""
        assert parse_date(text) == date(2026, 3, 9)

    def test_fallback_parser(self) -> None:
        """Forms outside the explicit list go through dateparser."""
        assert parse_date("March 9th, 2026") == date(2026, 3, 9)

    def test_empty(self) -> None:
        assert parse_date("") is None
        assert parse_date(None) is None


class TestDayDeltas:
    """Tests for days_since, days_until and their tiers."""

    def test_days_since(self) -> None:
        assert days_since(date(2026, 3, 5), date(2026, 3, 15)) == 10

    def test_days_since_future_floors_at_zero(self) -> None:
        assert days_since(date(2026, 3, 20), date(2026, 3, 15)) == 0

    def test_days_since_unknown(self) -> None:
        """Unknown modified date is the 999 sentinel."""
        assert days_since(None, date(2026, 3, 15)) == 999

    def test_days_until_signed(self) -> None:
        now = date(2026, 3, 15)
        assert days_until(date(2026, 3, 10), now) == -5
        assert days_until(date(2026, 3, 25), now) == 10
        assert days_until(None, now) is None

    @pytest.mark.parametrize(
        "days,level",
        [(0, "fresh"), (14, "fresh"), (15, "warning"), (30, "warning"), (31, "stale"), (60, "stale"), (61, "critical")],
    )
    def test_urgency_level(self, days: int, level: str) -> None:
        assert urgency_level(days) == level

    @pytest.mark.parametrize(
        "days,status",
        [(-1, "overdue"), (0, "soon"), (14, "soon"), (15, "normal"), (None, None)],
    )
    def test_closing_status(self, days, status) -> None:
        assert closing_status(days) == status

    def test_format_date(self) -> None:
        assert format_date(date(2026, 3, 9)) == "Mar 9, 2026"
        assert format_date(None) == "-"


class TestIdentity:
    """Tests for deal keys and canonical notes."""

    def test_normalize(self) -> None:
        """Case and whitespace runs do not matter."""
        assert normalize("  Acme \t  Renewal ") == "acme renewal"
        assert normalize(None) == ""

    def test_deal_key(self) -> None:
        assert make_deal_key("Acme  Renewal", " JANE Smith") == "acme renewal||jane smith"

    def test_canonicalize_sorts_and_dedupes(self) -> None:
        """Exact duplicates and blanks are dropped; order is sorted."""
        canonical, count = canonicalize_notes(["b", " a ", "b", "", "  "])
        assert canonical == NOTES_SEPARATOR.join(["a", "b"])
        assert count == 2

    def test_canonical_independent_of_row_order(self) -> None:
        assert canonicalize_notes(["x", "y"]) == canonicalize_notes(["y", "x"])

    def test_notes_hash(self) -> None:
        """SHA-256 hex, stable for equal input, different for different input."""
        h = notes_hash("a")
        assert len(h) == 64
        assert h == notes_hash("a")
        assert h != notes_hash("b")
