"""
Scoring Helper Functions and Constants

Contains the threshold penalty model and the small utilities shared by
every module scorer: clamping, weighted combination, score conversion,
risk / recommendation classification and friction ranking.
"""

import math
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional

from src.models import PenaltyFactor, RecommendationFlag, RiskLevel


# ============================================================================
# THRESHOLD PENALTY MODEL
# ============================================================================

@dataclass(frozen=True)
class MetricThreshold:
    """
    A good/bad band for one metric.

    Values at or below ``good`` cost nothing, values at or above ``bad``
    cost the full penalty, and values in between interpolate linearly.
    """
    good: float
    bad: float

    def __post_init__(self):
        if self.good > self.bad:
            raise ValueError(
                f"Invalid threshold: good ({self.good}) must not exceed bad ({self.bad})"
            )


def clamp(value: float, low: float = 0.0, high: float = 1.0) -> float:
    """Clamp value into [low, high]."""
    return max(low, min(high, value))


def penalty(value: Optional[float], good: float, bad: float) -> float:
    """
    Linear penalty of an observed value against a good/bad band.

    Args:
        value: Observed metric value (None means "not measured")
        good: Value at or below which the penalty is 0
        bad: Value at or above which the penalty is 1

    Returns:
        Penalty in [0, 1]
    """
    if value is None:
        return 0.0
    if value <= good:
        return 0.0
    if value >= bad:
        return 1.0
    return clamp((value - good) / (bad - good))


def penalty_for(value: Optional[float], threshold: MetricThreshold) -> float:
    """Penalty of value against a MetricThreshold."""
    return penalty(value, threshold.good, threshold.bad)


def deviation(value: float, low: float, high: float) -> float:
    """
    Distance of value outside the ideal range [low, high].

    Used for signals that are bad both when too small and too large
    (title length, meta description length).
    """
    if value < low:
        return low - value
    if value > high:
        return value - high
    return 0.0


def deficit(value: Optional[float], target: float) -> float:
    """How far value falls short of target (0 when met or unknown)."""
    if value is None:
        return 0.0
    return max(0.0, target - value)


def combine(components: Dict[str, float], weights: Dict[str, float]) -> float:
    """
    Weighted sum of component penalties, clamped to [0, 1].

    Components missing from ``components`` contribute nothing.
    """
    total = sum(weights[name] * clamp(components.get(name, 0.0)) for name in weights)
    return clamp(total)


def round_half_up(value: float) -> int:
    """Round to nearest integer, halves away from zero for positives."""
    return int(math.floor(value + 0.5))


def score_from_penalty(total_penalty: float) -> int:
    """Convert a total penalty into a 0-100 score."""
    return max(0, min(100, round_half_up(100 * (1 - clamp(total_penalty)))))


# ============================================================================
# CLASSIFICATION
# ============================================================================

def recommendation_flag(
    score: int,
    critical_count: int = 0,
    serious_count: int = 0,
) -> RecommendationFlag:
    """
    Decide how urgently a module needs work.

    Args:
        score: Module score (0-100)
        critical_count: Number of critical findings
        serious_count: Number of serious findings

    Returns:
        critical_fixes when score < 50 or anything critical,
        priority_fixes when score < 70 or more than 2 serious findings,
        otherwise minor_fixes.
    """
    if score < 50 or critical_count > 0:
        return RecommendationFlag.CRITICAL_FIXES
    if score < 70 or serious_count > 2:
        return RecommendationFlag.PRIORITY_FIXES
    return RecommendationFlag.MINOR_FIXES


def impact_level(value: float) -> str:
    """Map a 0-1 penalty to a high/medium/low indicator."""
    if value > 0.5:
        return "high"
    if value > 0.2:
        return "medium"
    return "low"


def worst_risk(levels: Iterable[RiskLevel]) -> RiskLevel:
    """Highest risk level in an iterable (LOW when empty)."""
    result = RiskLevel.LOW
    for level in levels:
        if level.rank > result.rank:
            result = level
    return result


def rank_friction(factors: List[PenaltyFactor], limit: int = 5) -> List[PenaltyFactor]:
    """Factors sorted by penalty, largest first, truncated to limit."""
    ranked = sorted(factors, key=lambda f: f.penalty, reverse=True)
    return ranked[:limit]
