"""Deal health scoring: six weighted components normalized against the snapshot."""

import logging
from typing import Optional

from deal_updates.currency import round_half_up
from deal_updates.models.deal import Deal, HealthComponents, HealthDebug, HealthScore
from deal_updates.models.scoring_config import ScoringConfig

from .components import (
    PUSH_SIGNALS,
    acv_percentile,
    score_activity_recency,
    score_acv,
    score_close_date_integrity,
    score_notes_signal,
    score_stage_probability,
    score_velocity,
    velocity_ratio,
)
from .context import DEFAULT_STAGE_BENCHMARKS, ScoringContext, build_context

logger = logging.getLogger(__name__)


def compute_health_score(
    deal: Deal,
    context: ScoringContext,
    config: Optional[ScoringConfig] = None,
) -> HealthScore:
    """
    Score one deal against a snapshot context.
    Composite is the weight-normalized average of the components, rounded
    half-up; 0 when every weight is 0.
    """
    config = config or ScoringConfig()

    ratio = velocity_ratio(deal, context)
    percentile = acv_percentile(deal.acv, context.acv_distribution)
    close_score, pushes = score_close_date_integrity(deal)
    notes_score, positive, negative = score_notes_signal(
        deal, config.positive_keywords, config.negative_keywords
    )

    components = HealthComponents(
        stage_probability=score_stage_probability(deal.stage, config.stage_scores),
        velocity=score_velocity(ratio),
        activity_recency=score_activity_recency(deal.days_since),
        close_date_integrity=close_score,
        acv=score_acv(percentile),
        notes_signal=notes_score,
    )

    weights = config.weights.model_dump()
    values = components.model_dump()
    total = sum(weights.values())
    if total > 0:
        weighted = sum(weights[name] * values[name] for name in weights) / total
        score = max(0, min(100, round_half_up(weighted)))
    else:
        score = 0

    return HealthScore(
        score=score,
        components=components,
        debug=HealthDebug(
            velocity_ratio=ratio,
            velocity_benchmark=context.benchmark_for(deal.stage),
            acv_percentile=round_half_up(percentile * 100) if percentile is not None else None,
            positive_keywords=positive,
            negative_keywords=negative,
            push_signals=pushes,
        ),
    )


def score_deals(deals: list[Deal], config: Optional[ScoringConfig] = None) -> ScoringContext:
    """Build the context once over all deals, then attach a HealthScore to each (in place)."""
    context = build_context(deals)
    for deal in deals:
        deal.health = compute_health_score(deal, context, config)
    logger.info(
        "Scored %d deals (%d ACV samples, %d stage benchmarks)",
        len(deals), len(context.acv_distribution), len(context.stage_benchmarks),
    )
    return context


__all__ = [
    "DEFAULT_STAGE_BENCHMARKS",
    "PUSH_SIGNALS",
    "ScoringContext",
    "build_context",
    "compute_health_score",
    "score_deals",
]
