"""
Tests for the AI Module Enhancer and Insight Generator

Both passes must leave scores alone and fall back to the rule-based
output whenever the completion chain has nothing usable.
"""

import json

import pytest

from src.analyzer.client import CompletionClient
from src.analyzer.engine import AuditEngine
from src.analyzer.enhancer import ModuleEnhancer
from src.analyzer.insights import InsightGenerator, failing_metrics
from src.models import MODULE_NAMES, PageInfo, Severity
from src.scoring import aggregate


@pytest.fixture
def module_results(good_page_signals):
    good_page_signals.ux.viewport_meta = False
    good_page_signals.ux.cta_above_fold = 0
    return AuditEngine.score_modules(good_page_signals, MODULE_NAMES)


@pytest.fixture
def page():
    return PageInfo(url="https://example.com", title="Example Widgets")


# ============================================================================
# Module Enhancer
# ============================================================================

@pytest.mark.unit
class TestModuleEnhancer:
    """Test AI issue and fix enrichment."""

    @pytest.mark.asyncio
    async def test_skipped_without_provider(self, mock_only_client, module_results):
        enhanced = await ModuleEnhancer(mock_only_client).enhance("https://example.com", module_results)

        assert all(enhanced[name] is module_results[name] for name in MODULE_NAMES)

    @pytest.mark.asyncio
    async def test_appends_ai_items(self, provider_factory, module_results):
        answer = json.dumps({
            "issues": [{"severity": "HIGH", "category": "ux", "description": "Form labels missing"}],
            "fixes": [{"title": "Label the signup form", "priority": "1", "impact_pct": 12}],
        })
        client = CompletionClient([provider_factory("groq", response=answer)])
        original = module_results["ux"]

        enhanced = await ModuleEnhancer(client).enhance("https://example.com", {"ux": original})
        result = enhanced["ux"]

        assert result is not original
        assert result.score == original.score
        assert result.risk_level == original.risk_level
        assert len(result.issues) == len(original.issues) + 1
        assert result.issues[-1].ai_generated
        assert result.issues[-1].severity == Severity.HIGH
        assert result.fixes[-1].title == "Label the signup form"
        assert result.fixes[-1].priority == 1
        assert result.details["ai_enhanced"] is True
        assert "ai_enhanced" not in original.details

    @pytest.mark.asyncio
    async def test_unparseable_answer_keeps_result(self, provider_factory, module_results):
        client = CompletionClient([provider_factory("groq", response="I cannot help with that.")])
        original = module_results["seo"]

        enhanced = await ModuleEnhancer(client).enhance("https://example.com", {"seo": original})

        assert enhanced["seo"] is original


# ============================================================================
# Insight Generator
# ============================================================================

@pytest.mark.unit
class TestInsightGenerator:
    """Test strategic insight generation."""

    @pytest.mark.asyncio
    async def test_rule_based_without_provider(self, mock_only_client, module_results, page):
        report = aggregate(module_results)

        insights = await InsightGenerator(mock_only_client).generate(page, module_results, report)

        assert insights["source"] == "disabled"
        assert f"{report.health_score}/100" in insights["executive_summary"]
        assert insights["top_priorities"]
        assert {"executive_summary", "top_priorities", "quick_wins", "long_term_goals"} <= set(insights)

    @pytest.mark.asyncio
    async def test_ai_answer_used(self, provider_factory, module_results, page):
        answer = json.dumps({
            "executive_summary": "Solid page, fix the mobile viewport.",
            "top_priorities": [{"title": "Add viewport meta", "module": "ux", "impact": "high", "reason": "Mobile"}],
            "quick_wins": ["Add a CTA above the fold"],
            "long_term_goals": [],
        })
        provider = provider_factory("anthropic", response=f"```json\n{answer}\n```")
        client = CompletionClient([provider])

        insights = await InsightGenerator(client).generate(page, module_results, aggregate(module_results))

        assert insights["source"] == "ai"
        assert insights["quick_wins"] == ["Add a CTA above the fold"]
        assert "Example Widgets" in provider.calls[0]

    @pytest.mark.asyncio
    async def test_missing_keys_fall_back(self, provider_factory, module_results, page):
        client = CompletionClient([provider_factory("groq", response='{"executive_summary": "partial"}')])

        insights = await InsightGenerator(client).generate(page, module_results, aggregate(module_results))

        assert insights["source"] == "fallback"
        assert insights["executive_summary"].startswith("Overall health score")

    def test_failing_metrics(self, good_page_signals):
        good_page_signals.performance.lcp_s = 4.2
        good_page_signals.seo.h1_count = 0
        results = AuditEngine.score_modules(good_page_signals, MODULE_NAMES)

        failing = failing_metrics(results)

        assert "LCP 4.2s (> 2.5s)" in failing
        assert "H1 count 0 (expected 1)" in failing
        assert not any(m.startswith("CLS") for m in failing)
