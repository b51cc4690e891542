"""Data models for raw rows, deals, snapshots, and scoring config."""

from deal_updates.models.deal import (
    Deal,
    HealthComponents,
    HealthDebug,
    HealthScore,
    Snapshot,
)
from deal_updates.models.raw import RawRow
from deal_updates.models.scoring_config import ScoringConfig, ScoringWeights

__all__ = [
    "Deal",
    "HealthComponents",
    "HealthDebug",
    "HealthScore",
    "RawRow",
    "ScoringConfig",
    "ScoringWeights",
    "Snapshot",
]
