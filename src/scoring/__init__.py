"""
Scoring Module for the Web Audit Engine

Deterministic, threshold-driven scoring of raw page signals.

1. **Threshold Penalty Model**
   ``penalty(value, good, bad)`` maps any metric onto [0, 1].

2. **Module Scorers** (0-100)
   Performance, SEO, UX and Content. Each combines weighted
   sub-penalties, classifies risk and emits issues and fixes.

3. **Aggregator**
   Weighted health score with a min-dominant correction.

Example Usage:
    from src.scoring import score_ux, UXSignals

    result = score_ux(UXSignals(cta_above_fold=1, dom_node_count=500))
    print(result.score, result.risk_level)
"""

from .helpers import (
    MetricThreshold,
    clamp,
    combine,
    deviation,
    penalty,
    penalty_for,
    rank_friction,
    recommendation_flag,
    round_half_up,
    score_from_penalty,
)
from .signals import (
    AxeViolation,
    ContentSignals,
    PageSignals,
    PerformanceSignals,
    SEOSignals,
    UXSignals,
)
from .performance import score_performance
from .seo import score_seo
from .ux import score_ux
from .content import score_content
from .aggregator import MODULE_WEIGHTS, aggregate

__all__ = [
    # Penalty model
    "MetricThreshold",
    "clamp",
    "combine",
    "deviation",
    "penalty",
    "penalty_for",
    "rank_friction",
    "recommendation_flag",
    "round_half_up",
    "score_from_penalty",
    # Signals
    "AxeViolation",
    "ContentSignals",
    "PageSignals",
    "PerformanceSignals",
    "SEOSignals",
    "UXSignals",
    # Scorers
    "score_performance",
    "score_seo",
    "score_ux",
    "score_content",
    # Aggregation
    "MODULE_WEIGHTS",
    "aggregate",
]
