"""
Health Score Aggregator

Combines the four module results into one health score.

Formula:
    Weighted = Σ weight × module_score   (weights renormalised over present modules)
    Health   = Weighted                                 if weakest >= 50
             = round(0.6 × Weighted + 0.4 × weakest)    otherwise

The min-dominant correction keeps one critical module from being hidden
by three healthy ones.
"""

import logging
from typing import Dict, Mapping

from src.models import AggregateReport, ModuleResult, RiskLevel

from .helpers import round_half_up, worst_risk

logger = logging.getLogger(__name__)


MODULE_WEIGHTS: Dict[str, float] = {
    "performance": 0.30,
    "seo": 0.25,
    "ux": 0.25,
    "content": 0.20,
}

CRITICAL_MODULE_SCORE = 50
WEAKEST_MODULE_WEIGHT = 0.4


def aggregate(results: Mapping[str, ModuleResult]) -> AggregateReport:
    """
    Build the aggregate report from module results.

    Args:
        results: Module name -> ModuleResult (any subset of the four modules)

    Returns:
        AggregateReport

    Raises:
        ValueError: If no known module result is supplied
    """
    scored = {name: r for name, r in results.items() if name in MODULE_WEIGHTS}
    if not scored:
        raise ValueError("Cannot aggregate without module results")

    weight_total = sum(MODULE_WEIGHTS[name] for name in scored)
    weighted = sum(MODULE_WEIGHTS[name] * r.score for name, r in scored.items()) / weight_total

    module_scores = {name: r.score for name, r in scored.items()}
    weakest = min(module_scores, key=module_scores.get)
    strongest = max(module_scores, key=module_scores.get)
    weakest_score = module_scores[weakest]

    if weakest_score < CRITICAL_MODULE_SCORE:
        health = round_half_up(
            (1 - WEAKEST_MODULE_WEIGHT) * weighted + WEAKEST_MODULE_WEIGHT * weakest_score
        )
        logger.debug(
            f"Weakest module {weakest}={weakest_score} pulls health from "
            f"{weighted:.1f} to {health}"
        )
    else:
        health = round_half_up(weighted)

    risk_domains = sorted(
        (name for name, r in scored.items() if r.risk_level != RiskLevel.LOW),
        key=lambda name: (-scored[name].risk_level.rank, name),
    )

    return AggregateReport(
        health_score=max(0, min(100, health)),
        module_scores=module_scores,
        risk_domains=risk_domains,
        overall_risk=worst_risk(r.risk_level for r in scored.values()),
        weakest_module=weakest,
        strongest_module=strongest,
        weighted_score=round(weighted, 2),
    )
