"""Component scorers. Each returns an int in [0, 100]."""

from typing import Optional

from deal_updates.dates import UNKNOWN_DAYS
from deal_updates.identity import normalize
from deal_updates.models.deal import Deal
from deal_updates.models.scoring_config import (
    DEFAULT_STAGE_SCORES,
    NEGATIVE_KEYWORDS,
    POSITIVE_KEYWORDS,
)

from .context import ScoringContext, days_in_stage

NEUTRAL_STAGE_SCORE = 35
NEUTRAL_VELOCITY_SCORE = 70
UNKNOWN_RECENCY_SCORE = 40
UNKNOWN_CLOSE_DATE_SCORE = 60
DEFAULT_ACV_SCORE = 40

# Close-date slippage phrases; each distinct match costs PUSH_PENALTY
PUSH_SIGNALS: list[str] = ["pushed", "delayed", "moved out", "rescheduled"]
PUSH_PENALTY = 20
KEYWORD_STEP = 10


def _clamp(value: float, low: int = 0, high: int = 100) -> int:
    return int(max(low, min(high, value)))


def notes_text(deal: Deal) -> str:
    """Lowercased note plus canonical history, the haystack for keyword matching."""
    return f"{deal.note or ''} {deal.notes_canonical or ''}".lower()


def matched_keywords(text: str, keywords: list[str]) -> list[str]:
    """Distinct keywords found as case-insensitive substrings, in list order."""
    found: list[str] = []
    seen: set[str] = set()
    for kw in keywords:
        needle = kw.lower().strip()
        if needle and needle in text and needle not in seen:
            seen.add(needle)
            found.append(kw)
    return found


def score_stage_probability(stage: str, stage_scores: Optional[dict[str, float]] = None) -> int:
    if not (stage or "").strip():
        return NEUTRAL_STAGE_SCORE
    scores = {normalize(k): v for k, v in (stage_scores or DEFAULT_STAGE_SCORES).items()}
    return _clamp(scores.get(normalize(stage), NEUTRAL_STAGE_SCORE))


def velocity_ratio(deal: Deal, context: ScoringContext) -> Optional[float]:
    """Days in stage over the stage benchmark; None when either is unknown."""
    benchmark = context.benchmark_for(deal.stage)
    dwell = days_in_stage(deal)
    if benchmark is None or dwell >= UNKNOWN_DAYS:
        return None
    return dwell / benchmark


def score_velocity(ratio: Optional[float]) -> int:
    if ratio is None:
        return NEUTRAL_VELOCITY_SCORE
    if ratio <= 0.8:
        return 100
    if ratio <= 1.2:
        return 70
    if ratio <= 1.5:
        return 40
    return 10


def score_activity_recency(days_since: Optional[int]) -> int:
    if days_since is None or days_since >= UNKNOWN_DAYS:
        return UNKNOWN_RECENCY_SCORE
    if days_since <= 7:
        return 100
    if days_since <= 14:
        return 70
    if days_since <= 30:
        return 40
    return 10


def score_close_date_integrity(deal: Deal) -> tuple[int, list[str]]:
    """
    Base from days until closing, minus a penalty per push signal in the notes.
    Unknown close date scores 60, below a known close within 30 days (70).
    Returns (score, matched push signals).
    """
    days_until = deal.days_until_closing
    if days_until is None:
        base = UNKNOWN_CLOSE_DATE_SCORE
    elif days_until < 0:
        base = 100 if normalize(deal.stage) == "closed won" else 10
    elif days_until <= 30:
        base = 70
    else:
        base = 100

    pushes = matched_keywords(notes_text(deal), PUSH_SIGNALS)
    return _clamp(base - PUSH_PENALTY * len(pushes), low=10), pushes


def acv_percentile(acv: float, distribution: list[float]) -> Optional[float]:
    """Share of the distribution strictly below acv; None for zero ACV or no data."""
    if not acv or acv <= 0 or not distribution:
        return None
    below = sum(1 for v in distribution if v < acv)
    return below / len(distribution)


def score_acv(percentile: Optional[float]) -> int:
    if percentile is None:
        return DEFAULT_ACV_SCORE
    if percentile >= 0.8:
        return 100
    if percentile >= 0.4:
        return 70
    return 40


def score_notes_signal(
    deal: Deal,
    positive_keywords: Optional[list[str]] = None,
    negative_keywords: Optional[list[str]] = None,
) -> tuple[int, list[str], list[str]]:
    """50, +10 per distinct positive keyword, -10 per distinct negative keyword."""
    text = notes_text(deal)
    positive = matched_keywords(
        text, POSITIVE_KEYWORDS if positive_keywords is None else positive_keywords
    )
    negative = matched_keywords(
        text, NEGATIVE_KEYWORDS if negative_keywords is None else negative_keywords
    )
    score = 50 + KEYWORD_STEP * len(positive) - KEYWORD_STEP * len(negative)
    return _clamp(score), positive, negative
