"""
Test Suite for the Scoring Engine

Tests the threshold penalty model, the four module scorers and the
health score aggregator.
"""

import pytest

from src.models import ModuleResult, RecommendationFlag, RiskLevel
from src.scoring import (
    AxeViolation,
    ContentSignals,
    MetricThreshold,
    PerformanceSignals,
    SEOSignals,
    UXSignals,
    aggregate,
    penalty,
    recommendation_flag,
    round_half_up,
    score_content,
    score_from_penalty,
    score_performance,
    score_seo,
    score_ux,
)
from src.scoring.content import content_depth_status, intent_match_level


def _result(module: str, score: int, risk: RiskLevel = RiskLevel.LOW) -> ModuleResult:
    return ModuleResult(
        module=module,
        score=score,
        risk_level=risk,
        recommendation_flag=recommendation_flag(score),
    )


@pytest.mark.unit
class TestPenaltyModel:
    """Test the linear threshold penalty."""

    def test_at_good_threshold_is_zero(self):
        assert penalty(2.5, 2.5, 4.0) == 0.0

    def test_at_bad_threshold_is_one(self):
        assert penalty(4.0, 2.5, 4.0) == 1.0

    def test_interpolates_linearly(self):
        assert penalty(1.5, 0, 3) == pytest.approx(0.5)

    def test_beyond_band_is_clamped(self):
        assert penalty(-10, 0, 3) == 0.0
        assert penalty(99, 0, 3) == 1.0

    def test_unmeasured_value_costs_nothing(self):
        assert penalty(None, 0, 3) == 0.0

    def test_monotone(self):
        values = [0, 0.5, 1, 1.5, 2, 2.5, 3, 3.5]
        penalties = [penalty(v, 0.5, 3) for v in values]
        assert penalties == sorted(penalties)

    def test_inverted_threshold_rejected(self):
        with pytest.raises(ValueError):
            MetricThreshold(good=5, bad=1)

    def test_score_from_penalty_bounds(self):
        assert score_from_penalty(0) == 100
        assert score_from_penalty(1) == 0
        assert score_from_penalty(2) == 0

    def test_round_half_up(self):
        assert round_half_up(87.5) == 88
        assert round_half_up(66.5) == 67
        assert round_half_up(66.4) == 66


@pytest.mark.unit
class TestRecommendationFlag:
    """Test recommendation flag thresholds."""

    def test_low_score_is_critical(self):
        assert recommendation_flag(49) == RecommendationFlag.CRITICAL_FIXES

    def test_critical_finding_is_critical(self):
        assert recommendation_flag(95, critical_count=1) == RecommendationFlag.CRITICAL_FIXES

    def test_mid_score_is_priority(self):
        assert recommendation_flag(65) == RecommendationFlag.PRIORITY_FIXES

    def test_many_serious_findings_are_priority(self):
        assert recommendation_flag(90, serious_count=3) == RecommendationFlag.PRIORITY_FIXES

    def test_healthy_is_minor(self):
        assert recommendation_flag(85, serious_count=2) == RecommendationFlag.MINOR_FIXES


@pytest.mark.unit
class TestUXScore:
    """Test the UX / accessibility scorer."""

    def test_clean_page_scores_100(self):
        """No violations, viewport present, a CTA and a small DOM."""
        result = score_ux(UXSignals(cta_above_fold=1, dom_node_count=500, viewport_meta=True))

        assert result.score == 100
        assert result.risk_level == RiskLevel.LOW
        assert result.recommendation_flag == RecommendationFlag.MINOR_FIXES
        assert result.friction_sources == []

    def test_one_critical_violation(self):
        signals = UXSignals(
            violations=[AxeViolation(id="button-name", impact="critical", help="Buttons need names")],
            cta_above_fold=2,
            dom_node_count=500,
        )
        result = score_ux(signals)

        # accessibility = 0.5 * (1/3); total = 0.5 * that
        assert result.score == 92
        assert result.risk_level == RiskLevel.HIGH
        assert result.recommendation_flag == RecommendationFlag.CRITICAL_FIXES
        assert result.friction_sources[0] == "critical_a11y_violations"
        assert any(issue.id == "a11y_critical_button-name" for issue in result.issues)

    def test_mobile_missing_viewport(self):
        """Mobile weights usability at 25% and a missing viewport costs 0.5."""
        signals = UXSignals(cta_above_fold=1, dom_node_count=500, viewport_meta=False)
        result = score_ux(signals, mobile=True)

        assert result.score == 88
        assert result.details["scan_mode"] == "mobile"
        assert "missing_viewport_meta" in result.friction_sources
        assert any(issue.id == "missing_viewport" for issue in result.issues)

    def test_desktop_missing_viewport_costs_less(self):
        signals = UXSignals(cta_above_fold=1, dom_node_count=500, viewport_meta=False)
        desktop = score_ux(signals)
        mobile = score_ux(signals, mobile=True)

        assert desktop.score > mobile.score

    def test_missing_alt_text_hits_trust(self):
        signals = UXSignals(
            violations=[AxeViolation(id="image-alt", impact="minor")] * 5,
            cta_above_fold=1,
            dom_node_count=500,
        )
        result = score_ux(signals)

        assert result.details["components"]["trust"] == 0.5
        assert result.details["trust_impact_indicator"] == "medium"

    def test_no_cta_flags_friction(self):
        result = score_ux(UXSignals(cta_above_fold=0, dom_node_count=500))
        assert "no_cta_above_fold" in result.friction_sources

    def test_mobile_touch_targets(self):
        signals = UXSignals(cta_above_fold=1, dom_node_count=500, touch_target_violations=10)
        result = score_ux(signals, mobile=True)

        assert result.details["components"]["mobile"] == 0.5
        assert any(issue.id == "small_touch_targets" for issue in result.issues)

    def test_scores_stay_in_range(self):
        worst = UXSignals(
            violations=[AxeViolation(id=f"rule-{i}", impact=impact)
                        for i, impact in enumerate(["critical"] * 5 + ["serious"] * 8 + ["moderate"] * 12)]
            + [AxeViolation(id="image-alt", impact="critical")] * 12,
            cta_above_fold=0,
            dom_node_count=5000,
            viewport_meta=False,
            touch_target_violations=20,
            small_text_violations=20,
        )
        for mobile in (False, True):
            result = score_ux(worst, mobile=mobile)
            assert 0 <= result.score <= 100


@pytest.mark.unit
class TestPerformanceScore:
    """Test the performance scorer."""

    def test_fast_page_scores_100(self, good_page_signals):
        result = score_performance(good_page_signals.performance)

        assert result.score == 100
        assert result.risk_level == RiskLevel.LOW
        assert result.issues == []

    def test_poor_lcp_is_high_risk(self, good_page_signals):
        signals = good_page_signals.performance
        signals.lcp_s = 4.0
        result = score_performance(signals)

        # core vitals = 0.4 * 1.0, weighted by 0.5
        assert result.score == 80
        assert result.risk_level == RiskLevel.HIGH
        assert result.recommendation_flag == RecommendationFlag.CRITICAL_FIXES
        assert result.friction_sources[0] == "lcp_s"

    def test_missing_metrics_cost_nothing(self):
        result = score_performance(PerformanceSignals())

        assert result.score == 100
        assert len(result.details["metrics_missing"]) == 9

    def test_external_scores_reported_not_blended(self):
        result = score_performance(PerformanceSignals(lighthouse_score=35, estimated_score=90))

        assert result.score == 100
        assert result.details["lighthouse_score"] == 35
        assert result.details["estimated_score"] == 90


@pytest.mark.unit
class TestSEOScore:
    """Test the SEO scorer."""

    def test_optimised_page_scores_100(self, good_page_signals):
        result = score_seo(good_page_signals.seo)

        assert result.score == 100
        assert result.risk_level == RiskLevel.LOW
        assert result.details["indexability_status"] == "indexable"

    def test_noindex_is_high_risk(self, good_page_signals):
        signals = good_page_signals.seo
        signals.indexable = False
        result = score_seo(signals)

        assert result.score == 82
        assert result.risk_level == RiskLevel.HIGH
        assert result.details["indexability_status"] == "noindex"
        assert result.recommendation_flag == RecommendationFlag.CRITICAL_FIXES

    def test_missing_h1_penalised(self, good_page_signals):
        signals = good_page_signals.seo
        signals.h1_count = 0
        result = score_seo(signals)

        assert "h1_count" in result.friction_sources
        assert result.risk_level == RiskLevel.MEDIUM

    def test_empty_page_in_range(self):
        result = score_seo(SEOSignals(indexable=False, https=False))

        assert 0 <= result.score <= 100
        assert result.risk_level == RiskLevel.HIGH


@pytest.mark.unit
class TestContentScore:
    """Test the content scorer."""

    def test_deep_readable_content_is_low_risk(self, good_page_signals):
        result = score_content(good_page_signals.content)

        assert result.risk_level == RiskLevel.LOW
        assert 0 <= result.score <= 100
        assert result.details["content_depth_status"] == "adequate"

    def test_thin_content_is_high_risk(self):
        result = score_content(ContentSignals(text="Short page.", word_count=80, flesch_reading_ease=70))

        assert result.risk_level == RiskLevel.HIGH
        assert result.details["content_depth_status"] == "thin"
        assert "word_deficit" in result.friction_sources

    def test_uses_nlp_keywords(self, good_page_signals):
        nlp = {"keywords": [{"keyword": "widgets", "count": 4, "relevance": 9.1}]}
        result = score_content(good_page_signals.content, nlp=nlp)

        assert result.details["top_keywords"] == ["widgets"]

    def test_depth_status(self):
        assert content_depth_status(100) == "thin"
        assert content_depth_status(500) == "adequate"
        assert content_depth_status(1500) == "deep"

    def test_intent_match(self):
        text = "We sell oak widgets and walnut tables"
        assert intent_match_level(text, ["oak widgets", "walnut tables"]) == "high"
        assert intent_match_level(text, ["chairs", "lamps"]) == "low"
        assert intent_match_level(text, []) == "unknown"


@pytest.mark.unit
class TestAggregator:
    """Test health score aggregation."""

    def test_weighted_average(self):
        results = {
            "performance": _result("performance", 90),
            "seo": _result("seo", 80),
            "ux": _result("ux", 70),
            "content": _result("content", 60),
        }
        report = aggregate(results)

        # 0.30*90 + 0.25*80 + 0.25*70 + 0.20*60 = 76.5
        assert report.health_score == 77
        assert report.weakest_module == "content"
        assert report.strongest_module == "performance"

    def test_weak_module_drags_health_down(self):
        results = {
            "performance": _result("performance", 40, RiskLevel.HIGH),
            "seo": _result("seo", 80),
            "ux": _result("ux", 80, RiskLevel.MEDIUM),
            "content": _result("content", 80),
        }
        report = aggregate(results)

        # weighted 68, then 0.6*68 + 0.4*40
        assert report.health_score == 57
        assert report.overall_risk == RiskLevel.HIGH
        assert report.risk_domains == ["performance", "ux"]

    def test_partial_results_renormalise(self):
        report = aggregate({"seo": _result("seo", 80), "ux": _result("ux", 60)})
        assert report.health_score == 70

    def test_empty_results_rejected(self):
        with pytest.raises(ValueError):
            aggregate({})
