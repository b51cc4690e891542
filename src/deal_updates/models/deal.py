"""Canonical deal record, health score, and snapshot models."""

from datetime import date
from typing import Optional

from pydantic import BaseModel, Field

from deal_updates.dates import (
    UNKNOWN_DAYS,
    closing_status,
    days_since,
    days_until,
    urgency_level,
)


class HealthComponents(BaseModel):
    """Six component scores, each 0-100."""

    stage_probability: int = 0
    velocity: int = 0
    activity_recency: int = 0
    close_date_integrity: int = 0
    acv: int = 0
    notes_signal: int = 0


class HealthDebug(BaseModel):
    """Values behind the components, for explaining a score."""

    velocity_ratio: Optional[float] = None
    velocity_benchmark: Optional[float] = None
    acv_percentile: Optional[int] = None
    positive_keywords: list[str] = Field(default_factory=list)
    negative_keywords: list[str] = Field(default_factory=list)
    push_signals: list[str] = Field(default_factory=list)


class HealthScore(BaseModel):
    """Composite health score with its components."""

    score: int = Field(..., ge=0, le=100)
    components: HealthComponents
    debug: HealthDebug = Field(default_factory=HealthDebug)

    @property
    def level(self) -> str:
        """good / watch / risk / dead bucket."""
        if self.score >= 80:
            return "good"
        if self.score >= 60:
            return "watch"
        if self.score >= 40:
            return "risk"
        return "dead"


class Deal(BaseModel):
    """One canonical record per deal, merged from repeated note rows."""

    owner: str
    name: str
    stage: str = ""
    acv: float = 0.0
    closing_date: Optional[date] = None
    modified_date: Optional[date] = None
    note: str = ""
    description: str = ""

    # Derived against a reference "now"; see refresh_derived
    days_since: int = UNKNOWN_DAYS
    urgency: str = "critical"
    days_until_closing: Optional[int] = None
    closing_status: Optional[str] = None
    days_in_stage: Optional[int] = Field(
        default=None,
        description="Precise dwell time when a source provides it; otherwise days_since stands in",
    )

    deal_key: str = ""
    notes_canonical: str = ""
    notes_count: int = 0
    notes_hash: Optional[str] = None
    notes_summary: Optional[str] = None
    summary_source: Optional[str] = None  # reused | generated | cached | fallback

    health: Optional[HealthScore] = None

    change_type: Optional[str] = None  # new | updated | unchanged
    changes: list[str] = Field(default_factory=list)

    def refresh_derived(self, now: date) -> "Deal":
        """Recompute day deltas and their tiers against now. Returns self."""
        self.days_since = days_since(self.modified_date, now)
        self.urgency = urgency_level(self.days_since)
        self.days_until_closing = days_until(self.closing_date, now)
        self.closing_status = closing_status(self.days_until_closing)
        return self


class Snapshot(BaseModel):
    """Deduplicated deals captured from one import."""

    snapshot_id: str
    generated_date: date
    deals: list[Deal] = Field(default_factory=list)

    def by_key(self) -> dict[str, Deal]:
        return {d.deal_key: d for d in self.deals}
