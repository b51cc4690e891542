"""Unit tests for deduplication and summary attachment."""

from datetime import date
from unittest.mock import Mock

from deal_updates.aggregation import (
    SUMMARY_BATCH_SIZE,
    attach_summaries,
    deduplicate_deals,
    fallback_summary,
)
from deal_updates.identity import canonicalize_notes, notes_hash
from deal_updates.summarization import SummaryResult
from tests.conftest import _make_deal


def _summarizer(text: str = "Summary", cached: bool = False) -> Mock:
    """Mock summarizer answering every request in a batch."""
    mock = Mock()
    mock.model = "test-model"
    mock.summarize.side_effect = lambda reqs: {
        r.deal_key: SummaryResult(summary=f"{text} {r.deal_key}", cached=cached) for r in reqs
    }
    return mock


class TestDeduplicate:
    """Tests for deduplicate_deals."""

    def test_same_key_merges_to_one(self) -> None:
        """Name/owner differing only by case and spacing are one deal."""
        deals = [
            _make_deal(name="Acme Renewal", note="First call"),
            _make_deal(name="acme  renewal", owner="JANE SMITH", note="Second call"),
        ]
        result = deduplicate_deals(deals)
        assert len(result) == 1
        assert result[0].notes_count == 2
        assert "First call" in result[0].notes_canonical
        assert "Second call" in result[0].notes_canonical

    def test_later_modified_wins_but_notes_union(self) -> None:
        """Scalars come from the later row; the earlier row's note survives."""
        deals = [
            _make_deal(stage="Proposal", acv=40000, modified_date=date(2026, 3, 5), note="Old note"),
            _make_deal(stage="Negotiation", acv=60000, modified_date=date(2026, 3, 12), note="New note"),
        ]
        merged = deduplicate_deals(deals)[0]
        assert merged.stage == "Negotiation"
        assert merged.acv == 60000
        assert merged.days_since == 3
        assert merged.notes_canonical == canonicalize_notes(["Old note", "New note"])[0]

    def test_earlier_row_order_does_not_matter(self) -> None:
        """The later-dated row wins even when it comes first."""
        deals = [
            _make_deal(stage="Negotiation", modified_date=date(2026, 3, 12)),
            _make_deal(stage="Proposal", modified_date=date(2026, 3, 5)),
        ]
        assert deduplicate_deals(deals)[0].stage == "Negotiation"

    def test_dated_row_beats_undated(self) -> None:
        deals = [
            _make_deal(stage="Proposal", modified_date=None),
            _make_deal(stage="Negotiation", modified_date=date(2026, 1, 1)),
        ]
        assert deduplicate_deals(deals)[0].stage == "Negotiation"

    def test_tie_keeps_first(self) -> None:
        """Equal or missing dates keep the first row seen."""
        deals = [
            _make_deal(stage="Proposal", modified_date=None),
            _make_deal(stage="Negotiation", modified_date=None),
        ]
        assert deduplicate_deals(deals)[0].stage == "Proposal"

        deals = [
            _make_deal(stage="Proposal", modified_date=date(2026, 3, 1)),
            _make_deal(stage="Negotiation", modified_date=date(2026, 3, 1)),
        ]
        assert deduplicate_deals(deals)[0].stage == "Proposal"

    def test_hash_and_first_seen_order(self) -> None:
        deals = [
            _make_deal(name="Zeta", note="z"),
            _make_deal(name="Alpha"),
            _make_deal(name="Zeta", note="y"),
        ]
        result = deduplicate_deals(deals)
        assert [d.name for d in result] == ["Zeta", "Alpha"]
        assert result[0].notes_hash == notes_hash(canonicalize_notes(["z", "y"])[0])
        assert result[1].notes_count == 0

    def test_input_not_modified(self) -> None:
        original = _make_deal(note="hello")
        deduplicate_deals([original])
        assert original.notes_canonical == ""
        assert original.notes_hash is None


class TestFallbackSummary:
    """Tests for fallback_summary."""

    def test_first_sentence(self) -> None:
        assert fallback_summary(["Call went well. Next step is legal."]) == "Call went well."

    def test_single_sentence_kept_whole(self) -> None:
        assert fallback_summary(["Budget confirmed."]) == "Budget confirmed."

    def test_long_note_truncated(self) -> None:
        """No short sentence: first 147 chars plus ellipsis."""
        summary = fallback_summary(["x" * 200])
        assert summary == "x" * 147 + "..."

    def test_parts_joined(self) -> None:
        assert fallback_summary(["A one. More.", "B two"]) == "A one. | B two"

    def test_total_capped_at_500(self) -> None:
        summary = fallback_summary([c * 149 for c in "abcde"])
        assert len(summary) == 500
        assert summary.endswith("...")

    def test_empty(self) -> None:
        assert fallback_summary([]) == ""


class TestAttachSummaries:
    """Tests for attach_summaries."""

    def test_unchanged_hash_reuses_prior_summary(self) -> None:
        """Matching hash means no summarizer call."""
        deal = deduplicate_deals([_make_deal(note="Same notes")])[0]
        prior = deal.model_copy(update={"notes_summary": "Stored summary"})
        summarizer = _summarizer()

        stats = attach_summaries([deal], prior={deal.deal_key: prior}, summarizer=summarizer)

        assert deal.notes_summary == "Stored summary"
        assert deal.summary_source == "reused"
        assert stats.reused == 1
        summarizer.summarize.assert_not_called()

    def test_changed_hash_calls_summarizer(self) -> None:
        deal = deduplicate_deals([_make_deal(note="New notes")])[0]
        prior = deal.model_copy(update={"notes_hash": "stale", "notes_summary": "Old"})
        summarizer = _summarizer()

        stats = attach_summaries([deal], prior={deal.deal_key: prior}, summarizer=summarizer)

        assert deal.summary_source == "generated"
        assert deal.notes_summary == f"Summary {deal.deal_key}"
        assert stats.generated == 1

    def test_batches_capped(self) -> None:
        """Requests go out in batches of at most SUMMARY_BATCH_SIZE."""
        deals = deduplicate_deals(
            [_make_deal(name=f"Deal {i}", note=f"note {i}") for i in range(45)]
        )
        summarizer = _summarizer()

        stats = attach_summaries(deals, summarizer=summarizer)

        sizes = [len(c.args[0]) for c in summarizer.summarize.call_args_list]
        assert sizes == [SUMMARY_BATCH_SIZE, SUMMARY_BATCH_SIZE, 5]
        assert stats.batches == 3
        assert stats.generated == 45

    def test_failure_falls_back(self) -> None:
        """A raising summarizer degrades to the local summary."""
        deal = deduplicate_deals([_make_deal(note="Budget confirmed. Legal next.")])[0]
        summarizer = Mock()
        summarizer.summarize.side_effect = RuntimeError("service down")

        stats = attach_summaries([deal], summarizer=summarizer)

        assert deal.summary_source == "fallback"
        assert deal.notes_summary == "Budget confirmed."
        assert stats.fallback == 1

    def test_missing_entry_falls_back(self) -> None:
        deal = deduplicate_deals([_make_deal(note="Quiet week")])[0]
        summarizer = Mock()
        summarizer.summarize.return_value = {}

        attach_summaries([deal], summarizer=summarizer)

        assert deal.summary_source == "fallback"
        assert deal.notes_summary == "Quiet week"

    def test_cached_results_marked(self) -> None:
        deal = deduplicate_deals([_make_deal(note="Cached notes")])[0]
        stats = attach_summaries([deal], summarizer=_summarizer(cached=True))
        assert deal.summary_source == "cached"
        assert stats.cached == 1

    def test_no_summarizer_uses_fallback(self) -> None:
        deal = deduplicate_deals([_make_deal(note="Only local")])[0]
        attach_summaries([deal])
        assert deal.summary_source == "fallback"
        assert deal.notes_summary == "Only local"

    def test_deal_without_notes_not_sent(self) -> None:
        deal = deduplicate_deals([_make_deal()])[0]
        summarizer = _summarizer()
        attach_summaries([deal], summarizer=summarizer)
        summarizer.summarize.assert_not_called()
        assert deal.notes_summary == ""

    def test_prior_fallback_is_retried(self) -> None:
        """A stored local fallback is not reused; the summarizer gets another try."""
        deal = deduplicate_deals([_make_deal(note="Budget confirmed. Legal next.")])[0]
        prior = deal.model_copy(
            update={"notes_summary": "Budget confirmed.", "summary_source": "fallback"}
        )
        summarizer = _summarizer()

        stats = attach_summaries([deal], prior={deal.deal_key: prior}, summarizer=summarizer)

        summarizer.summarize.assert_called_once()
        assert deal.summary_source == "generated"
        assert stats.reused == 0

    def test_requests_carry_deal_name(self) -> None:
        deal = deduplicate_deals([_make_deal(name="Acme Renewal", note="Kickoff booked")])[0]
        summarizer = _summarizer()

        attach_summaries([deal], summarizer=summarizer)

        request = summarizer.summarize.call_args.args[0][0]
        assert request.deal_name == "Acme Renewal"
        assert request.notes_hash == deal.notes_hash
