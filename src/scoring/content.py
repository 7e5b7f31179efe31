"""
Content Scorer

Components:
    Depth        (40%) - word count below 600
    Readability  (35%) - reading ease, sentence length, passive voice
    Structure    (25%) - headings, complex words, jargon

Readability metrics come from the NLP result when available and are
computed locally otherwise.
"""

import logging
from typing import Any, Dict, List, Optional, Tuple

from src.models import (
    Fix,
    Issue,
    ModuleName,
    ModuleResult,
    PenaltyFactor,
    RiskLevel,
    Severity,
)
from src.nlp.readability import advanced_readability, flesch_reading_ease

from .helpers import (
    MetricThreshold,
    combine,
    deficit,
    penalty_for,
    rank_friction,
    recommendation_flag,
    score_from_penalty,
)
from .signals import ContentSignals

logger = logging.getLogger(__name__)


TARGET_WORD_COUNT = 600
TARGET_READING_EASE = 60
TARGET_HEADINGS = 3

THRESHOLDS: Dict[str, MetricThreshold] = {
    "word_deficit": MetricThreshold(good=0, bad=450),
    "reading_ease_deficit": MetricThreshold(good=0, bad=40),
    "avg_sentence_length": MetricThreshold(good=20, bad=30),
    "passive_voice_ratio": MetricThreshold(good=0.1, bad=0.3),
    "heading_deficit": MetricThreshold(good=0, bad=3),
    "complex_word_ratio": MetricThreshold(good=0.15, bad=0.3),
    "jargon_density": MetricThreshold(good=0.05, bad=0.15),
}

COMPONENT_WEIGHTS = {"depth": 0.40, "readability": 0.35, "structure": 0.25}


def score_content(
    signals: ContentSignals,
    nlp: Optional[Dict[str, Any]] = None,
    mobile: bool = False,
) -> ModuleResult:
    """
    Score content depth and readability.

    Args:
        signals: Content signals from the collector
        nlp: NLP orchestrator result for the page text, if available
        mobile: Scan mode (reported only)

    Returns:
        ModuleResult for the content module
    """
    nlp = nlp or {}
    readability = nlp.get("readability") or advanced_readability(signals.text)
    word_count = signals.word_count or readability.get("word_count", 0)
    reading_ease = signals.flesch_reading_ease
    if reading_ease is None:
        reading_ease = flesch_reading_ease(signals.text)

    measured = {
        "word_deficit": deficit(word_count, TARGET_WORD_COUNT),
        "reading_ease_deficit": deficit(reading_ease, TARGET_READING_EASE),
        "avg_sentence_length": readability.get("avg_sentence_length", 0.0),
        "passive_voice_ratio": readability.get("passive_voice_ratio", 0.0),
        "heading_deficit": deficit(signals.heading_count, TARGET_HEADINGS),
        "complex_word_ratio": readability.get("complex_word_ratio", 0.0),
        "jargon_density": readability.get("jargon_density", 0.0),
    }
    p = {name: penalty_for(value, THRESHOLDS[name]) for name, value in measured.items()}

    components = {
        "depth": p["word_deficit"],
        "readability": (
            0.5 * p["reading_ease_deficit"]
            + 0.25 * p["avg_sentence_length"]
            + 0.25 * p["passive_voice_ratio"]
        ),
        "structure": (
            0.5 * p["heading_deficit"]
            + 0.25 * p["complex_word_ratio"]
            + 0.25 * p["jargon_density"]
        ),
    }

    observed = {
        "word_deficit": word_count,
        "reading_ease_deficit": reading_ease,
        "heading_deficit": signals.heading_count,
    }
    factors = [
        PenaltyFactor(name, observed.get(name, measured[name]), value)
        for name, value in p.items()
        if value > 0
    ]

    total_penalty = combine(components, COMPONENT_WEIGHTS)
    score = score_from_penalty(total_penalty)
    risk = _risk_level(word_count, reading_ease)
    critical_count = 1 if risk == RiskLevel.HIGH else 0
    serious_count = sum(1 for value in p.values() if value >= 0.5)
    flag = recommendation_flag(score, critical_count, serious_count)

    issues, fixes = _build_issues_and_fixes(word_count, reading_ease, signals.heading_count, readability)

    return ModuleResult(
        module=ModuleName.CONTENT.value,
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
            "word_count": word_count,
            "flesch_reading_ease": reading_ease,
            "content_depth_status": content_depth_status(word_count),
            "intent_match_level": intent_match_level(signals.text, signals.keywords),
            "readability": readability,
            "top_keywords": [k.get("keyword") for k in nlp.get("keywords", [])[:5]],
        },
    )


def content_depth_status(word_count: int) -> str:
    if word_count < 300:
        return "thin"
    if word_count < 1000:
        return "adequate"
    return "deep"


def intent_match_level(text: str, keywords: List[str]) -> str:
    """How many of the page's target keywords actually appear in its text."""
    targets = [k.lower() for k in keywords if k and k.strip()][:5]
    if not targets:
        return "unknown"
    lowered = text.lower()
    ratio = sum(1 for k in targets if k in lowered) / len(targets)
    if ratio >= 0.6:
        return "high"
    if ratio >= 0.3:
        return "medium"
    return "low"


def _risk_level(word_count: int, reading_ease: float) -> RiskLevel:
    if word_count < 150 or reading_ease < 30:
        return RiskLevel.HIGH
    if word_count < 300 or reading_ease < 50:
        return RiskLevel.MEDIUM
    return RiskLevel.LOW


def _build_issues_and_fixes(
    word_count: int,
    reading_ease: float,
    heading_count: int,
    readability: Dict[str, Any],
) -> Tuple[List[Issue], List[Fix]]:
    issues: List[Issue] = []
    fixes: List[Fix] = []

    if word_count < TARGET_WORD_COUNT:
        issues.append(Issue(
            id="thin_content",
            severity=Severity.HIGH if word_count < 300 else Severity.MEDIUM,
            category="Content Depth",
            description=f"Page has {word_count} words (target {TARGET_WORD_COUNT}+)",
        ))
        fixes.append(Fix(
            id="expand_content",
            title="Expand the main content",
            description="Cover the topic in more depth: answer common questions, add examples and data",
            priority=1 if word_count < 300 else 2,
            impact_pct=15,
            issue_id="thin_content",
            effort_hours=4,
        ))

    if reading_ease < TARGET_READING_EASE:
        issues.append(Issue(
            id="hard_to_read",
            severity=Severity.MEDIUM,
            category="Readability",
            description=f"Flesch reading ease is {reading_ease} (target {TARGET_READING_EASE}+)",
        ))
        fixes.append(Fix(
            id="simplify_language",
            title="Simplify the language",
            description="Shorten sentences and replace long words with plain alternatives",
            priority=2,
            impact_pct=8,
            issue_id="hard_to_read",
            effort_hours=3,
        ))

    if readability.get("passive_voice_ratio", 0) > THRESHOLDS["passive_voice_ratio"].good:
        issues.append(Issue(
            id="passive_voice",
            severity=Severity.LOW,
            category="Readability",
            description=f"{round(readability['passive_voice_ratio'] * 100)}% of sentences use passive voice",
        ))
        fixes.append(Fix(
            id="use_active_voice",
            title="Prefer active voice",
            description="Rewrite passive sentences so the subject acts",
            priority=3,
            impact_pct=3,
            issue_id="passive_voice",
            effort_hours=1,
        ))

    if heading_count < TARGET_HEADINGS:
        issues.append(Issue(
            id="few_headings",
            severity=Severity.LOW,
            category="Structure",
            description=f"Only {heading_count} headings break up the content",
        ))
        fixes.append(Fix(
            id="add_headings",
            title="Add descriptive subheadings",
            description="Split the content into scannable sections with H2/H3 headings",
            priority=3,
            impact_pct=5,
            issue_id="few_headings",
            effort_hours=1,
        ))

    return issues, fixes
