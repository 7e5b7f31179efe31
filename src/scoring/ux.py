"""
UX / Accessibility Scorer

Turns axe-core violations and usability signals into a 0-100 UX score.

Components (desktop / mobile weights):
    Accessibility (50% / 40%) - violations by impact
    Usability     (30% / 25%) - CTA above the fold, viewport meta, DOM size
    Trust         (20% / 15%) - missing alt text
    Mobile        ( -  / 20%) - touch targets and text size

Formula:
    Accessibility = 0.5 × P(critical) + 0.3 × P(serious) + 0.2 × P(moderate)
    Score = round(100 × (1 - Σ weight × component))
"""

import logging
from typing import Dict, List, Tuple

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
    clamp,
    combine,
    impact_level,
    penalty_for,
    rank_friction,
    recommendation_flag,
    score_from_penalty,
)
from .signals import UXSignals

logger = logging.getLogger(__name__)


# ============================================================================
# THRESHOLD PROFILES
# ============================================================================

DESKTOP_THRESHOLDS: Dict[str, MetricThreshold] = {
    "critical": MetricThreshold(good=0, bad=3),
    "serious": MetricThreshold(good=0, bad=5),
    "moderate": MetricThreshold(good=0, bad=10),
    "dom_nodes": MetricThreshold(good=800, bad=1500),
}

MOBILE_THRESHOLDS: Dict[str, MetricThreshold] = {
    "critical": MetricThreshold(good=0, bad=3),
    "serious": MetricThreshold(good=0, bad=5),
    "moderate": MetricThreshold(good=0, bad=10),
    "dom_nodes": MetricThreshold(good=1200, bad=2500),
    "touch_targets": MetricThreshold(good=0, bad=10),
    "text_too_small": MetricThreshold(good=0, bad=8),
}

CTA_ABOVE_FOLD_MIN = 1

DESKTOP_WEIGHTS = {"accessibility": 0.50, "usability": 0.30, "trust": 0.20}
MOBILE_WEIGHTS = {"accessibility": 0.40, "usability": 0.25, "trust": 0.15, "mobile": 0.20}

# DOM size is only reported as friction once it is clearly a problem
DOM_FACTOR_MIN_PENALTY = 0.3


def score_ux(signals: UXSignals, mobile: bool = False) -> ModuleResult:
    """
    Score UX and accessibility for one page.

    Args:
        signals: Collected UX signals
        mobile: Use the mobile threshold profile and weights

    Returns:
        ModuleResult for the ux module
    """
    thresholds = MOBILE_THRESHOLDS if mobile else DESKTOP_THRESHOLDS
    weights = MOBILE_WEIGHTS if mobile else DESKTOP_WEIGHTS
    counts = signals.count_by_impact()
    factors: List[PenaltyFactor] = []

    # 1. Accessibility
    p_critical = penalty_for(counts["critical"], thresholds["critical"])
    p_serious = penalty_for(counts["serious"], thresholds["serious"])
    p_moderate = penalty_for(counts["moderate"], thresholds["moderate"])
    accessibility = 0.5 * p_critical + 0.3 * p_serious + 0.2 * p_moderate

    if p_critical > 0:
        factors.append(PenaltyFactor("critical_a11y_violations", counts["critical"], p_critical))
    if p_serious > 0:
        factors.append(PenaltyFactor("serious_a11y_violations", counts["serious"], p_serious))
    if p_moderate > 0:
        factors.append(PenaltyFactor("moderate_a11y_violations", counts["moderate"], p_moderate))

    # 2. Usability
    usability, usability_factors = _usability_penalty(signals, thresholds, mobile)
    factors.extend(usability_factors)

    # 3. Trust
    alt_violations = len(signals.alt_text_violations())
    trust = clamp(alt_violations / 10)
    if trust > 0:
        factors.append(PenaltyFactor("missing_alt_text", alt_violations, trust))

    components = {
        "accessibility": accessibility,
        "usability": usability,
        "trust": trust,
    }

    # 4. Mobile
    if mobile:
        p_touch = penalty_for(signals.touch_target_violations, thresholds["touch_targets"])
        p_text = penalty_for(signals.small_text_violations, thresholds["text_too_small"])
        components["mobile"] = 0.5 * p_touch + 0.5 * p_text
        if p_touch > 0:
            factors.append(PenaltyFactor("touch_targets_too_small", signals.touch_target_violations, p_touch))
        if p_text > 0:
            factors.append(PenaltyFactor("text_too_small", signals.small_text_violations, p_text))

    total_penalty = combine(components, weights)
    score = score_from_penalty(total_penalty)
    risk = _risk_level(counts)
    flag = recommendation_flag(score, counts["critical"], counts["serious"])
    friction = rank_friction(factors)

    issues, fixes = _build_issues_and_fixes(signals, mobile)

    logger.debug(
        f"UX score {score} ({'mobile' if mobile else 'desktop'}), "
        f"risk={risk.value}, penalty={total_penalty:.3f}"
    )

    return ModuleResult(
        module=ModuleName.UX.value,
        score=score,
        risk_level=risk,
        recommendation_flag=flag,
        factors=sorted(factors, key=lambda f: f.penalty, reverse=True),
        friction_sources=[f.name for f in friction],
        issues=issues,
        fixes=fixes,
        details={
            "scan_mode": "mobile" if mobile else "desktop",
            "violations_by_impact": counts,
            "trust_impact_indicator": impact_level(trust),
            "components": {k: round(v, 3) for k, v in components.items()},
            "penalty": round(total_penalty, 3),
            "cta_above_fold": signals.cta_above_fold,
            "dom_node_count": signals.dom_node_count,
            "viewport_meta": signals.viewport_meta,
        },
    )


def _usability_penalty(
    signals: UXSignals,
    thresholds: Dict[str, MetricThreshold],
    mobile: bool,
) -> Tuple[float, List[PenaltyFactor]]:
    """Usability sub-penalty: CTA, viewport, DOM size."""
    usability = 0.0
    factors: List[PenaltyFactor] = []

    if signals.cta_above_fold < CTA_ABOVE_FOLD_MIN:
        usability += 0.4
        factors.append(PenaltyFactor("no_cta_above_fold", signals.cta_above_fold, 0.4))

    if not signals.viewport_meta:
        viewport_cost = 0.5 if mobile else 0.3
        usability += viewport_cost
        factors.append(PenaltyFactor("missing_viewport_meta", False, viewport_cost))

    p_dom = penalty_for(signals.dom_node_count, thresholds["dom_nodes"])
    usability += 0.3 * p_dom
    if p_dom > DOM_FACTOR_MIN_PENALTY:
        factors.append(PenaltyFactor("excessive_dom_size", signals.dom_node_count, p_dom))

    return clamp(usability), factors


def _risk_level(counts: Dict[str, int]) -> RiskLevel:
    if counts["critical"] > 0 or counts["serious"] > 2:
        return RiskLevel.HIGH
    if counts["serious"] > 0 or counts["moderate"] > 5:
        return RiskLevel.MEDIUM
    return RiskLevel.LOW


def _build_issues_and_fixes(signals: UXSignals, mobile: bool) -> Tuple[List[Issue], List[Fix]]:
    """Rule-based issues and fixes for the UX module."""
    issues: List[Issue] = []
    fixes: List[Fix] = []

    critical = [v for v in signals.violations if v.impact == "critical"]
    serious = [v for v in signals.violations if v.impact == "serious"]

    for violation in critical:
        issue_id = f"a11y_critical_{violation.id}"
        issues.append(Issue(
            id=issue_id,
            severity=Severity.CRITICAL,
            category="Accessibility",
            description=violation.help or violation.description or violation.id,
        ))
        fixes.append(Fix(
            id=f"fix_{violation.id}",
            title=f"Fix {violation.id}",
            description=violation.description or f"Resolve the {violation.id} violation",
            priority=1,
            impact_pct=15,
            issue_id=issue_id,
            effort_hours=2,
        ))

    for violation in serious[:3]:
        issue_id = f"a11y_serious_{violation.id}"
        issues.append(Issue(
            id=issue_id,
            severity=Severity.HIGH,
            category="Accessibility",
            description=violation.help or violation.description or violation.id,
        ))
        fixes.append(Fix(
            id=f"fix_{violation.id}",
            title=f"Fix {violation.id}",
            description=violation.description or f"Resolve the {violation.id} violation",
            priority=2,
            impact_pct=10,
            issue_id=issue_id,
            effort_hours=1.5,
        ))

    if not signals.viewport_meta:
        issues.append(Issue(
            id="missing_viewport",
            severity=Severity.HIGH,
            category="Mobile Usability",
            description="Page has no viewport meta tag, so mobile browsers render it zoomed out",
        ))
        fixes.append(Fix(
            id="add_viewport",
            title="Add viewport meta tag",
            description='Add <meta name="viewport" content="width=device-width, initial-scale=1">',
            priority=2,
            impact_pct=12,
            issue_id="missing_viewport",
            effort_hours=0.5,
        ))

    if signals.cta_above_fold < CTA_ABOVE_FOLD_MIN:
        issues.append(Issue(
            id="no_cta_above_fold",
            severity=Severity.MEDIUM,
            category="Conversion",
            description="No call-to-action is visible above the fold",
        ))
        fixes.append(Fix(
            id="add_cta_above_fold",
            title="Add a primary CTA above the fold",
            description="Place a clear, high-contrast call-to-action in the first viewport",
            priority=2,
            impact_pct=18,
            issue_id="no_cta_above_fold",
            effort_hours=2,
        ))

    if mobile and signals.touch_target_violations > 0:
        count = signals.touch_target_violations
        issues.append(Issue(
            id="small_touch_targets",
            severity=Severity.HIGH if count > 5 else Severity.MEDIUM,
            category="Mobile Usability",
            description=f"{count} touch targets are smaller than 48x48px",
        ))
        fixes.append(Fix(
            id="enlarge_touch_targets",
            title="Enlarge touch targets",
            description="Make buttons and links at least 48x48px with 8px spacing",
            priority=1,
            impact_pct=15,
            issue_id="small_touch_targets",
            effort_hours=3,
        ))

    if mobile and signals.small_text_violations > 0:
        count = signals.small_text_violations
        issues.append(Issue(
            id="small_text",
            severity=Severity.HIGH if count > 5 else Severity.MEDIUM,
            category="Mobile Usability",
            description=f"{count} text elements are below 12px on mobile",
        ))
        fixes.append(Fix(
            id="increase_font_size",
            title="Increase mobile font size",
            description="Use a base font size of at least 16px for body text",
            priority=2,
            impact_pct=12,
            issue_id="small_text",
            effort_hours=2,
        ))

    return issues, fixes
