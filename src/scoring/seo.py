"""
SEO Scorer

Components:
    Metadata      (40%) - title and meta description length
    Structure     (30%) - H1 usage, image alt coverage, internal linking
    Crawlability  (30%) - indexability, canonical tag, HTTPS
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
    combine,
    deficit,
    deviation,
    impact_level,
    penalty_for,
    rank_friction,
    recommendation_flag,
    score_from_penalty,
)
from .signals import SEOSignals

logger = logging.getLogger(__name__)


TITLE_RANGE = (30, 60)
META_DESCRIPTION_RANGE = (120, 160)
MIN_INTERNAL_LINKS = 10

THRESHOLDS: Dict[str, MetricThreshold] = {
    "title_deviation": MetricThreshold(good=0, bad=30),
    "meta_description_deviation": MetricThreshold(good=0, bad=80),
    "extra_h1": MetricThreshold(good=0, bad=3),
    "missing_alt_ratio": MetricThreshold(good=0, bad=0.5),
    "internal_link_deficit": MetricThreshold(good=0, bad=10),
}

COMPONENT_WEIGHTS = {"metadata": 0.40, "structure": 0.30, "crawlability": 0.30}

NOINDEX_PENALTY = 0.6
NO_CANONICAL_PENALTY = 0.2
NO_HTTPS_PENALTY = 0.2


def score_seo(signals: SEOSignals, mobile: bool = False) -> ModuleResult:
    """
    Score on-page SEO.

    Args:
        signals: On-page SEO signals
        mobile: Scan mode (reported only)

    Returns:
        ModuleResult for the seo module
    """
    factors: List[PenaltyFactor] = []

    # 1. Metadata
    title_dev = deviation(signals.title_length, *TITLE_RANGE)
    p_title = penalty_for(title_dev, THRESHOLDS["title_deviation"])
    meta_dev = deviation(signals.meta_description_length, *META_DESCRIPTION_RANGE)
    p_meta = penalty_for(meta_dev, THRESHOLDS["meta_description_deviation"])
    metadata = 0.5 * p_title + 0.5 * p_meta
    if p_title > 0:
        factors.append(PenaltyFactor("title_length", signals.title_length, p_title))
    if p_meta > 0:
        factors.append(PenaltyFactor("meta_description_length", signals.meta_description_length, p_meta))

    # 2. Structure
    if signals.h1_count == 0:
        p_h1 = 1.0
    else:
        p_h1 = penalty_for(signals.h1_count - 1, THRESHOLDS["extra_h1"])
    alt_ratio = (
        signals.images_missing_alt / signals.image_count if signals.image_count else 0.0
    )
    p_alt = penalty_for(alt_ratio, THRESHOLDS["missing_alt_ratio"])
    p_links = penalty_for(
        deficit(signals.internal_links, MIN_INTERNAL_LINKS), THRESHOLDS["internal_link_deficit"]
    )
    structure = 0.5 * p_h1 + 0.3 * p_alt + 0.2 * p_links
    if p_h1 > 0:
        factors.append(PenaltyFactor("h1_count", signals.h1_count, p_h1))
    if p_alt > 0:
        factors.append(PenaltyFactor("images_missing_alt", signals.images_missing_alt, p_alt))
    if p_links > 0:
        factors.append(PenaltyFactor("internal_links", signals.internal_links, p_links))

    # 3. Crawlability
    crawlability = 0.0
    if not signals.indexable:
        crawlability += NOINDEX_PENALTY
        factors.append(PenaltyFactor("noindex", True, NOINDEX_PENALTY))
    if not signals.canonical_present:
        crawlability += NO_CANONICAL_PENALTY
        factors.append(PenaltyFactor("missing_canonical", False, NO_CANONICAL_PENALTY))
    if not signals.https:
        crawlability += NO_HTTPS_PENALTY
        factors.append(PenaltyFactor("no_https", False, NO_HTTPS_PENALTY))

    components = {"metadata": metadata, "structure": structure, "crawlability": crawlability}
    total_penalty = combine(components, COMPONENT_WEIGHTS)
    score = score_from_penalty(total_penalty)
    risk = _risk_level(signals)

    critical_count = int(not signals.indexable) + int(signals.title_length == 0)
    serious_count = sum(1 for p in (p_title, p_meta, p_h1, p_alt, p_links) if p >= 0.5)
    flag = recommendation_flag(score, critical_count, serious_count)

    issues, fixes = _build_issues_and_fixes(signals)

    return ModuleResult(
        module=ModuleName.SEO.value,
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
            "indexability_status": "indexable" if signals.indexable else "noindex",
            "crawl_health_indicator": _crawl_health(crawlability),
            "metadata_impact": impact_level(metadata),
            "title_length": signals.title_length,
            "meta_description_length": signals.meta_description_length,
            "h1_count": signals.h1_count,
        },
    )


def _crawl_health(crawlability: float) -> str:
    return {"low": "good", "medium": "fair", "high": "poor"}[impact_level(crawlability)]


def _risk_level(signals: SEOSignals) -> RiskLevel:
    if not signals.indexable or signals.title_length == 0:
        return RiskLevel.HIGH
    if (
        signals.meta_description_length == 0
        or signals.h1_count != 1
        or signals.images_missing_alt > 0
    ):
        return RiskLevel.MEDIUM
    return RiskLevel.LOW


def _build_issues_and_fixes(signals: SEOSignals) -> Tuple[List[Issue], List[Fix]]:
    issues: List[Issue] = []
    fixes: List[Fix] = []

    def add(issue: Issue, fix: Fix):
        issues.append(issue)
        fixes.append(fix)

    if not signals.indexable:
        add(
            Issue("noindex", Severity.CRITICAL, "Crawlability",
                  "Page is marked noindex and will not appear in search results"),
            Fix("remove_noindex", "Remove noindex directive",
                "Drop the noindex robots meta tag or X-Robots-Tag header if the page should rank",
                priority=1, impact_pct=25, issue_id="noindex", effort_hours=0.5),
        )

    low, high = TITLE_RANGE
    if signals.title_length == 0:
        add(
            Issue("missing_title", Severity.CRITICAL, "Metadata", "Page has no <title>"),
            Fix("add_title", "Add a descriptive title",
                f"Write a unique title of {low}-{high} characters with the primary keyword first",
                priority=1, impact_pct=15, issue_id="missing_title", effort_hours=0.5),
        )
    elif deviation(signals.title_length, low, high) > 0:
        add(
            Issue("title_length", Severity.MEDIUM, "Metadata",
                  f"Title is {signals.title_length} characters (ideal {low}-{high})"),
            Fix("adjust_title_length", "Adjust title length",
                f"Rewrite the title to {low}-{high} characters",
                priority=3, impact_pct=5, issue_id="title_length", effort_hours=0.5),
        )

    low, high = META_DESCRIPTION_RANGE
    if signals.meta_description_length == 0:
        add(
            Issue("missing_meta_description", Severity.HIGH, "Metadata",
                  "Page has no meta description"),
            Fix("add_meta_description", "Add a meta description",
                f"Write a {low}-{high} character summary that invites the click",
                priority=2, impact_pct=8, issue_id="missing_meta_description", effort_hours=0.5),
        )
    elif deviation(signals.meta_description_length, low, high) > 0:
        add(
            Issue("meta_description_length", Severity.LOW, "Metadata",
                  f"Meta description is {signals.meta_description_length} characters "
                  f"(ideal {low}-{high})"),
            Fix("adjust_meta_description", "Adjust meta description length",
                f"Rewrite the meta description to {low}-{high} characters",
                priority=3, impact_pct=3, issue_id="meta_description_length", effort_hours=0.5),
        )

    if signals.h1_count != 1:
        description = (
            "Page has no H1 heading" if signals.h1_count == 0
            else f"Page has {signals.h1_count} H1 headings"
        )
        add(
            Issue("h1_count", Severity.HIGH if signals.h1_count == 0 else Severity.MEDIUM,
                  "Structure", description),
            Fix("single_h1", "Use exactly one H1",
                "Keep one H1 describing the page topic and demote the rest to H2",
                priority=2, impact_pct=6, issue_id="h1_count", effort_hours=1),
        )

    if signals.images_missing_alt > 0:
        add(
            Issue("images_missing_alt", Severity.MEDIUM, "Structure",
                  f"{signals.images_missing_alt} of {signals.image_count} images lack alt text"),
            Fix("add_alt_text", "Add alt text to images",
                "Describe each meaningful image in its alt attribute",
                priority=2, impact_pct=5, issue_id="images_missing_alt", effort_hours=1),
        )

    if signals.internal_links < MIN_INTERNAL_LINKS:
        add(
            Issue("few_internal_links", Severity.LOW, "Structure",
                  f"Only {signals.internal_links} internal links on the page"),
            Fix("add_internal_links", "Strengthen internal linking",
                "Link to related pages with descriptive anchor text",
                priority=3, impact_pct=4, issue_id="few_internal_links", effort_hours=2),
        )

    if not signals.canonical_present:
        add(
            Issue("missing_canonical", Severity.LOW, "Crawlability",
                  "No canonical URL is declared"),
            Fix("add_canonical", "Declare a canonical URL",
                'Add <link rel="canonical"> pointing at the preferred URL',
                priority=3, impact_pct=3, issue_id="missing_canonical", effort_hours=0.5),
        )

    if not signals.https:
        add(
            Issue("no_https", Severity.HIGH, "Crawlability", "Page is served over plain HTTP"),
            Fix("enable_https", "Serve the page over HTTPS",
                "Install a TLS certificate and redirect HTTP to HTTPS",
                priority=1, impact_pct=10, issue_id="no_https", effort_hours=2),
        )

    return issues, fixes
