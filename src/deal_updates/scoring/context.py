"""Dataset-wide scoring context: ACV distribution and per-stage dwell benchmarks."""

from dataclasses import dataclass, field
from statistics import median

from deal_updates.dates import UNKNOWN_DAYS
from deal_updates.identity import normalize
from deal_updates.models.deal import Deal

# Typical days in stage, used until a stage has enough samples of its own
DEFAULT_STAGE_BENCHMARKS: dict[str, float] = {
    "discovery": 14,
    "qualification": 21,
    "proposal": 21,
    "negotiation": 28,
    "verbal commit": 14,
}

MIN_BENCHMARK_SAMPLES = 3


@dataclass
class ScoringContext:
    """Built once per snapshot, then shared by every per-deal score."""

    acv_distribution: list[float] = field(default_factory=list)
    stage_benchmarks: dict[str, float] = field(
        default_factory=lambda: dict(DEFAULT_STAGE_BENCHMARKS)
    )

    def benchmark_for(self, stage: str) -> float | None:
        value = self.stage_benchmarks.get(normalize(stage))
        return value if value and value > 0 else None


def days_in_stage(deal: Deal) -> int:
    """Precise dwell time when supplied; days since last modification otherwise."""
    if deal.days_in_stage is not None:
        return deal.days_in_stage
    return deal.days_since


def build_context(deals: list[Deal]) -> ScoringContext:
    """
    Sorted positive ACVs, and stage benchmarks where each stage with at least
    MIN_BENCHMARK_SAMPLES known dwell times uses its own median.
    """
    acvs = sorted(d.acv for d in deals if d.acv and d.acv > 0)

    samples: dict[str, list[int]] = {}
    for deal in deals:
        stage = normalize(deal.stage)
        dwell = days_in_stage(deal)
        if not stage or dwell >= UNKNOWN_DAYS:
            continue
        samples.setdefault(stage, []).append(dwell)

    benchmarks = dict(DEFAULT_STAGE_BENCHMARKS)
    for stage, values in samples.items():
        if len(values) >= MIN_BENCHMARK_SAMPLES:
            benchmarks[stage] = float(median(values))

    return ScoringContext(acv_distribution=acvs, stage_benchmarks=benchmarks)
