"""Caller-supplied health scoring configuration."""

from pathlib import Path
from typing import Optional

try:
    import yaml
except ModuleNotFoundError as e:
    raise ModuleNotFoundError(
        "PyYAML is required for scoring config loading. Run: poetry install"
    ) from e
from pydantic import BaseModel, Field, ValidationError

from deal_updates.errors import ConfigError

DEFAULT_STAGE_SCORES: dict[str, int] = {
    "discovery": 20,
    "qualification": 35,
    "proposal": 55,
    "negotiation": 75,
    "verbal commit": 90,
}

POSITIVE_KEYWORDS: list[str] = [
    "budget confirmed",
    "legal engaged",
    "exec sponsor",
    "timeline committed",
    "verbal commit",
    "procurement",
]

NEGATIVE_KEYWORDS: list[str] = [
    "no response",
    "circling back",
    "waiting on approval",
    "reviewing internally",
    "pushed",
    "delayed",
    "stalled",
]


class ScoringWeights(BaseModel):
    """Component weights. Intended to sum to 100; normalized by their total when scoring."""

    stage_probability: float = Field(default=25, ge=0)
    velocity: float = Field(default=20, ge=0)
    activity_recency: float = Field(default=15, ge=0)
    close_date_integrity: float = Field(default=10, ge=0)
    acv: float = Field(default=15, ge=0)
    notes_signal: float = Field(default=15, ge=0)

    @property
    def total(self) -> float:
        return sum(self.model_dump().values())


class ScoringConfig(BaseModel):
    """
    Weights, stage map, and keyword lists for one scoring run.
    Every field is optional and falls back to the built-in default independently.
    """

    weights: ScoringWeights = Field(default_factory=ScoringWeights)
    stage_scores: dict[str, float] = Field(default_factory=lambda: dict(DEFAULT_STAGE_SCORES))
    positive_keywords: list[str] = Field(default_factory=lambda: list(POSITIVE_KEYWORDS))
    negative_keywords: list[str] = Field(default_factory=lambda: list(NEGATIVE_KEYWORDS))

    @classmethod
    def from_dict(cls, data: Optional[dict]) -> "ScoringConfig":
        """Build from a nested (scoring: {...}) or flat mapping; null values mean default."""
        data = data or {}
        nested = data.get("scoring", data) or {}
        flat = {k: v for k, v in nested.items() if v is not None and k in cls.model_fields}
        try:
            return cls.model_validate(flat)
        except ValidationError as e:
            raise ConfigError("Invalid scoring config", {"errors": e.errors()}) from e

    @classmethod
    def from_yaml(cls, path: str | Path) -> "ScoringConfig":
        """Load config from YAML file."""
        try:
            data = yaml.safe_load(Path(path).read_text())
        except (OSError, yaml.YAMLError) as e:
            raise ConfigError(f"Could not read scoring config: {e}", {"path": str(path)}) from e
        if data is not None and not isinstance(data, dict):
            raise ConfigError("Scoring config must be a mapping", {"path": str(path)})
        return cls.from_dict(data)
