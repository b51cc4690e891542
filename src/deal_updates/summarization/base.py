"""Summarization collaborator contract."""

from dataclasses import dataclass
from typing import Protocol


@dataclass(frozen=True)
class SummaryRequest:
    """One deal's canonical notes, identified by deal key and content hash."""

    deal_key: str
    notes_hash: str
    notes_canonical: str
    deal_name: str = ""


@dataclass
class SummaryResult:
    """Summary text for one deal; cached=True when served from the summary cache."""

    summary: str
    cached: bool = False


class Summarizer(Protocol):
    """
    Turns a batch of requests into summaries keyed by deal_key.
    Missing keys mean "no summary"; the caller falls back locally.
    """

    model: str

    def summarize(self, requests: list[SummaryRequest]) -> dict[str, SummaryResult]:
        ...
