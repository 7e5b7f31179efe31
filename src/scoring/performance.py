"""
Performance Scorer

Scores lab metrics against Core Web Vitals style thresholds.

Components:
    Core Vitals (50%) - LCP, CLS, TBT
    Loading     (25%) - FCP, TTFB
    Payload     (25%) - JavaScript weight, image weight, requests, render-blocking

The Lighthouse performance score and the heuristic estimate are reported
next to the computed score. They are independent inputs and are never
averaged into it.
"""

import logging
from typing import Dict, List, Optional, Tuple

from src.models import (
    Fix,
    Issue,
    ModuleName,
    ModuleResult,
    PenaltyFactor,
    RiskLevel,
    Severity,
)

from .helpers import (
    MetricThreshold,
    combine,
    penalty_for,
    rank_friction,
    recommendation_flag,
    score_from_penalty,
)
from .signals import PerformanceSignals

logger = logging.getLogger(__name__)


THRESHOLDS: Dict[str, MetricThreshold] = {
    "lcp_s": MetricThreshold(good=2.5, bad=4.0),
    "cls": MetricThreshold(good=0.1, bad=0.25),
    "tbt_ms": MetricThreshold(good=200, bad=600),
    "fcp_s": MetricThreshold(good=1.8, bad=3.0),
    "ttfb_s": MetricThreshold(good=0.8, bad=1.8),
    "total_js_kb": MetricThreshold(good=300, bad=1000),
    "total_image_kb": MetricThreshold(good=1000, bad=3000),
    "request_count": MetricThreshold(good=50, bad=150),
    "render_blocking_count": MetricThreshold(good=0, bad=5),
}

# (component, metric, weight inside component)
METRIC_LAYOUT: List[Tuple[str, str, float]] = [
    ("core_vitals", "lcp_s", 0.40),
    ("core_vitals", "cls", 0.30),
    ("core_vitals", "tbt_ms", 0.30),
    ("loading", "fcp_s", 0.50),
    ("loading", "ttfb_s", 0.50),
    ("payload", "total_js_kb", 0.35),
    ("payload", "total_image_kb", 0.25),
    ("payload", "request_count", 0.20),
    ("payload", "render_blocking_count", 0.20),
]

COMPONENT_WEIGHTS = {"core_vitals": 0.50, "loading": 0.25, "payload": 0.25}

CORE_VITALS = ("lcp_s", "cls", "tbt_ms")

METRIC_LABELS = {
    "lcp_s": "Largest Contentful Paint",
    "cls": "Cumulative Layout Shift",
    "tbt_ms": "Total Blocking Time",
    "fcp_s": "First Contentful Paint",
    "ttfb_s": "Time to First Byte",
    "total_js_kb": "JavaScript payload",
    "total_image_kb": "Image payload",
    "request_count": "Request count",
    "render_blocking_count": "Render-blocking resources",
}

# metric -> (fix id, title, description, impact %, effort hours, priority)
METRIC_FIXES = {
    "lcp_s": ("optimize_lcp", "Speed up the largest element",
              "Preload the hero image, serve it in a modern format and remove render-blocking CSS",
              20, 4, 1),
    "cls": ("stabilize_layout", "Reserve space for late content",
            "Set explicit width/height on images, embeds and ad slots",
            12, 2, 1),
    "tbt_ms": ("reduce_main_thread_work", "Reduce main-thread blocking",
               "Split long tasks, defer non-critical scripts and trim third-party tags",
               15, 6, 1),
    "fcp_s": ("improve_first_paint", "Improve first paint",
              "Inline critical CSS and defer the rest",
              8, 3, 2),
    "ttfb_s": ("reduce_server_response", "Reduce server response time",
               "Add caching at the edge and profile slow backend endpoints",
               10, 4, 2),
    "total_js_kb": ("reduce_js_payload", "Reduce JavaScript payload",
                    "Code-split bundles and remove unused dependencies",
                    10, 6, 2),
    "total_image_kb": ("compress_images", "Compress images",
                       "Serve WebP/AVIF and size images to their display dimensions",
                       8, 2, 2),
    "request_count": ("reduce_requests", "Reduce request count",
                      "Bundle small assets and drop unused third-party resources",
                      5, 3, 3),
    "render_blocking_count": ("remove_render_blocking", "Remove render-blocking resources",
                              "Add async/defer to scripts and load non-critical CSS asynchronously",
                              10, 2, 2),
}


def score_performance(signals: PerformanceSignals, mobile: bool = False) -> ModuleResult:
    """
    Score page performance.

    Args:
        signals: Lab metrics for the page
        mobile: Scan mode (reported only, thresholds are shared)

    Returns:
        ModuleResult for the performance module
    """
    components: Dict[str, float] = {name: 0.0 for name in COMPONENT_WEIGHTS}
    factors: List[PenaltyFactor] = []
    metric_penalties: Dict[str, float] = {}
    missing: List[str] = []

    for component, metric, weight in METRIC_LAYOUT:
        value = getattr(signals, metric)
        if value is None:
            missing.append(metric)
            continue
        p = penalty_for(value, THRESHOLDS[metric])
        metric_penalties[metric] = p
        components[component] += weight * p
        if p > 0:
            factors.append(PenaltyFactor(metric, value, p))

    total_penalty = combine(components, COMPONENT_WEIGHTS)
    score = score_from_penalty(total_penalty)
    risk = _risk_level(signals)

    critical_count = sum(1 for m in CORE_VITALS if metric_penalties.get(m, 0) >= 1.0)
    serious_count = sum(1 for p in metric_penalties.values() if 0 < p < 1.0)
    flag = recommendation_flag(score, critical_count, serious_count)

    issues, fixes = _build_issues_and_fixes(signals, metric_penalties)

    if missing:
        logger.debug(f"Performance metrics missing: {', '.join(missing)}")

    return ModuleResult(
        module=ModuleName.PERFORMANCE.value,
        score=score,
        risk_level=risk,
        recommendation_flag=flag,
        factors=sorted(factors, key=lambda f: f.penalty, reverse=True),
        friction_sources=[f.name for f in rank_friction(factors)],
        issues=issues,
        fixes=fixes,
        details={
            "scan_mode": "mobile" if mobile else "desktop",
            "components": {k: round(v, 3) for k, v in components.items()},
            "penalty": round(total_penalty, 3),
            "metrics_missing": missing,
            "lighthouse_score": signals.lighthouse_score,
            "estimated_score": signals.estimated_score,
            "core_web_vitals": {
                "lcp_s": signals.lcp_s,
                "cls": signals.cls,
                "tbt_ms": signals.tbt_ms,
            },
        },
    )


def _risk_level(signals: PerformanceSignals) -> RiskLevel:
    risk = RiskLevel.LOW
    for metric in CORE_VITALS:
        value: Optional[float] = getattr(signals, metric)
        if value is None:
            continue
        threshold = THRESHOLDS[metric]
        if value >= threshold.bad:
            return RiskLevel.HIGH
        if value > threshold.good:
            risk = RiskLevel.MEDIUM
    return risk


def _build_issues_and_fixes(
    signals: PerformanceSignals,
    metric_penalties: Dict[str, float],
) -> Tuple[List[Issue], List[Fix]]:
    issues: List[Issue] = []
    fixes: List[Fix] = []

    ranked = sorted(metric_penalties.items(), key=lambda item: item[1], reverse=True)
    for metric, p in ranked:
        if p <= 0:
            continue
        value = getattr(signals, metric)
        threshold = THRESHOLDS[metric]
        if metric in CORE_VITALS:
            severity = Severity.CRITICAL if p >= 1.0 else Severity.HIGH
        else:
            severity = Severity.HIGH if p >= 1.0 else Severity.MEDIUM

        issue_id = f"perf_{metric}"
        issues.append(Issue(
            id=issue_id,
            severity=severity,
            category="Performance",
            description=(
                f"{METRIC_LABELS[metric]} is {value} "
                f"(good <= {threshold.good}, poor >= {threshold.bad})"
            ),
        ))
        fix_id, title, description, impact, effort, priority = METRIC_FIXES[metric]
        fixes.append(Fix(
            id=fix_id,
            title=title,
            description=description,
            priority=priority,
            impact_pct=impact,
            issue_id=issue_id,
            effort_hours=effort,
        ))

    return issues, fixes
