"""
Competitor Analysis Module

1-vs-N competitor comparison for a stored audit report:
- CompetitorDiscovery: AI discovery of three rivals with industry fallback
- BatchAnalyzer: Parallel reduced-cost audits, at least two must succeed
- ComparativeAnalyzer: AI comparison with rule-based ranking fallback
- CompetitorPipeline: Persisted state machine run as a background job
"""

from .discovery import (
    FALLBACK_BUCKETS,
    CompetitorDiscovery,
    DiscoveredCompetitor,
    DiscoveryResult,
    detect_industry,
    fallback_competitors,
)
from .batch import BatchAnalyzer, BatchResult
from .comparison import ComparativeAnalyzer, fallback_comparison, site_scores
from .pipeline import CompetitorPipeline

__all__ = [
    "FALLBACK_BUCKETS",
    "CompetitorDiscovery",
    "DiscoveredCompetitor",
    "DiscoveryResult",
    "detect_industry",
    "fallback_competitors",
    "BatchAnalyzer",
    "BatchResult",
    "ComparativeAnalyzer",
    "fallback_comparison",
    "site_scores",
    "CompetitorPipeline",
]
