"""
Tests for Competitor Analysis

Covers discovery (AI and fallback), batch analysis with the minimum
success rule, the rule-based comparison, the comparison state machine
and the end-to-end background pipeline.
"""

import json
from datetime import datetime, timedelta

import pytest

from src.analyzer.client import CompletionClient
from src.analyzer.engine import AuditEngine, AuditOptions
from src.competitor import (
    BatchAnalyzer,
    ComparativeAnalyzer,
    CompetitorDiscovery,
    detect_industry,
    fallback_comparison,
)
from src.competitor.discovery import FALLBACK_REASON
from src.database.models import ComparisonStatus
from src.errors import InsufficientDataError, NotFoundError, StatusTransitionError, ValidationError
from src.nlp.service import NLPService
from src.persistence.jobs import JobStatus
from src.services.container import build_container

from conftest import FakeCollector


def _scores(domain: str, health: int, **modules) -> dict:
    return {"domain": domain, "health": health, **modules}


# ============================================================================
# Discovery
# ============================================================================

@pytest.mark.unit
class TestCompetitorDiscovery:
    """Test AI discovery with industry fallback."""

    @pytest.mark.asyncio
    async def test_ai_competitors_used(self, provider_factory, stored_user_report):
        answer = json.dumps({
            "industry": "home goods",
            "competitors": [
                {"domain": "https://www.rival-one.com/", "reason": "Same catalog"},
                {"domain": "shop.example.com", "reason": "That is the site itself"},
                {"domain": "rival-two.com", "reason": "Same customers"},
                {"domain": "rival-two.com", "reason": "Duplicate"},
                {"domain": "not a domain", "reason": "Garbage"},
            ],
        })
        client = CompletionClient([provider_factory("groq", response=f"Here you go:\n{answer}")])

        result = await CompetitorDiscovery(client).discover(stored_user_report)

        assert result.method == "ai"
        assert result.industry == "home goods"
        assert [c.domain for c in result.competitors] == ["rival-one.com", "rival-two.com"]
        assert all(c.discovery_method == "ai" for c in result.competitors)

    @pytest.mark.asyncio
    async def test_mock_answer_falls_back(self, mock_only_client, stored_user_report):
        result = await CompetitorDiscovery(mock_only_client).discover(stored_user_report)

        assert result.method == "fallback"
        assert result.industry == "ecommerce"
        assert [c.domain for c in result.competitors] == ["amazon.com", "flipkart.com", "myntra.com"]
        assert all(c.reason == FALLBACK_REASON for c in result.competitors)

    @pytest.mark.asyncio
    async def test_single_ai_competitor_is_not_enough(self, provider_factory, stored_user_report):
        answer = json.dumps({"competitors": [{"domain": "rival-one.com", "reason": "x"}]})
        client = CompletionClient([provider_factory("groq", response=answer)])

        result = await CompetitorDiscovery(client).discover(stored_user_report)

        assert result.method == "fallback"

    def test_detect_industry(self):
        assert detect_industry("tastyfood.com") == "food-delivery"
        assert detect_industry("SHOP.example.com") == "ecommerce"
        assert detect_industry("cloudcrm.io") == "saas"
        assert detect_industry("acme.io") == "default"

    @pytest.mark.asyncio
    async def test_fallback_bucket_from_domain_only(self, mock_only_client):
        report = {
            "url": "https://acme.com",
            "page": {
                "url": "https://acme.com",
                "title": "Acme | Home",
                "meta_description": "We keep customers happy",
                "keywords": ["shop", "food"],
            },
        }

        result = await CompetitorDiscovery(mock_only_client).discover(report)

        assert result.method == "fallback"
        assert result.industry == "default"
        assert [c.domain for c in result.competitors] == ["example1.com", "example2.com", "example3.com"]


# ============================================================================
# Batch Analysis
# ============================================================================

@pytest.fixture
def make_engine(good_page_signals, mock_only_client):
    def factory(failing_domains=()):
        collector = FakeCollector(good_page_signals, failing_domains=failing_domains)
        return AuditEngine(collector, mock_only_client, NLPService(client=None))
    return factory


@pytest.mark.unit
class TestBatchAnalyzer:
    """Test the at-least-two-of-three rule."""

    @pytest.mark.asyncio
    async def test_all_succeed(self, make_engine):
        batch = BatchAnalyzer(make_engine())
        result = await batch.analyze(["a.com", "b.com", "c.com", "d.com"])

        assert result.success_count == 3
        assert set(result.reports) == {"https://a.com", "https://b.com", "https://c.com"}
        assert all(r.is_competitor for r in result.reports.values())

    @pytest.mark.asyncio
    async def test_one_failure_tolerated(self, make_engine):
        batch = BatchAnalyzer(make_engine(failing_domains={"b.com"}))
        result = await batch.analyze(["a.com", "b.com", "c.com"])

        assert result.success_count == 2
        assert "https://b.com" in result.failures

    @pytest.mark.asyncio
    async def test_two_failures_raise(self, make_engine):
        batch = BatchAnalyzer(make_engine(failing_domains={"b.com", "c.com"}))

        with pytest.raises(InsufficientDataError) as exc_info:
            await batch.analyze(["a.com", "b.com", "c.com"])

        assert str(exc_info.value) == "Failed to analyze enough competitors (only 1 succeeded)"

    @pytest.mark.asyncio
    async def test_reduced_cost_options(self, good_page_signals, mock_only_client):
        collector = FakeCollector(good_page_signals)
        engine = AuditEngine(collector, mock_only_client, NLPService(client=None))

        await BatchAnalyzer(engine).analyze(["a.com", "b.com"])

        options = [opts for _, opts in collector.calls]
        assert all(o.is_competitor and o.skip_screenshots and o.skip_lighthouse for o in options)

    def test_competitor_options_skip_ai(self):
        options = AuditOptions.competitor()
        assert not options.enhance_with_ai
        assert not options.generate_insights


# ============================================================================
# Comparison
# ============================================================================

@pytest.mark.unit
class TestComparison:
    """Test the rule-based and AI comparison."""

    def test_fallback_ranking(self):
        user = _scores("me.com", 80, performance=70, seo=90, ux=80, content=75)
        competitors = [
            _scores("a.com", 90, performance=95, seo=80, ux=80, content=90),
            _scores("b.com", 70, performance=60, seo=70, ux=82, content=75),
        ]
        result = fallback_comparison(user, competitors)

        assert [r["domain"] for r in result["overall_ranking"]] == ["a.com", "me.com", "b.com"]
        position = result["your_competitive_position"]
        assert position["rank"] == 2
        assert position["percentile"] == "Top 67%"
        assert position["summary"] == "You rank 2 out of 3 websites analyzed"
        assert result["category_comparison"]["seo"]["status"] == "winning"
        assert result["category_comparison"]["content"]["status"] == "losing"
        assert result["category_comparison"]["ux"]["status"] == "neutral"
        assert result["source"] == "fallback"

    def test_ties_keep_user_first(self):
        result = fallback_comparison(_scores("me.com", 80), [_scores("a.com", 80)])
        assert result["your_competitive_position"]["rank"] == 1

    @pytest.mark.asyncio
    async def test_ai_comparison(self, provider_factory, stored_user_report):
        answer = json.dumps({
            "overall_ranking": [{"domain": "shop.example.com", "rank": 1, "score": 79}],
            "your_competitive_position": {"rank": 1, "score": 79, "percentile": "Top 50%", "summary": "Leading"},
        })
        client = CompletionClient([provider_factory("groq", response=answer)])

        result = await ComparativeAnalyzer(client).compare(stored_user_report, [stored_user_report])

        assert result["source"] == "ai"
        assert result["your_competitive_position"]["summary"] == "Leading"
        assert result["strengths"] == []
        assert "performance" in result["category_comparison"]

    @pytest.mark.asyncio
    async def test_unusable_answer_falls_back(self, mock_only_client, stored_user_report):
        result = await ComparativeAnalyzer(mock_only_client).compare(stored_user_report, [stored_user_report])

        assert result["source"] == "fallback"
        assert result["your_competitive_position"]["rank"] == 1


# ============================================================================
# Comparison Repository
# ============================================================================

@pytest.mark.unit
class TestComparisonRepository:
    """Test the persisted state machine."""

    def test_create_sets_expiry(self, container):
        record = container.comparisons.create("report-1", "example.com")

        created = datetime.fromisoformat(record["createdAt"])
        expires = datetime.fromisoformat(record["expiresAt"])
        assert record["status"] == "analyzing"
        assert expires - created == timedelta(days=7)
        assert record["isStale"] is False

    def test_status_never_moves_backwards(self, container):
        record = container.comparisons.create("report-1", "example.com")
        container.comparisons.complete(record["id"], {"source": "fallback"})

        with pytest.raises(StatusTransitionError):
            container.comparisons.fail(record["id"], "late failure")
        with pytest.raises(StatusTransitionError):
            container.comparisons.set_status(record["id"], ComparisonStatus.ANALYZING)
        with pytest.raises(StatusTransitionError):
            container.comparisons.attach_competitors(record["id"], [])

        assert container.comparisons.get(record["id"])["status"] == "completed"

    def test_pending_to_analyzing(self, container):
        record = container.comparisons.create("report-1", "example.com", status=ComparisonStatus.PENDING)
        container.comparisons.set_status(record["id"], ComparisonStatus.ANALYZING)

        assert container.comparisons.get(record["id"])["status"] == "analyzing"

    def test_latest_for_report(self, container):
        container.comparisons.create("report-1", "example.com")
        latest = container.comparisons.create("report-1", "example.com")
        container.comparisons.create("report-2", "other.com")

        assert container.comparisons.latest_for_report("report-1")["id"] == latest["id"]
        assert container.comparisons.latest_for_report("missing") is None

    def test_unknown_comparison(self, container):
        with pytest.raises(NotFoundError):
            container.comparisons.complete("missing", {})


# ============================================================================
# Pipeline
# ============================================================================

@pytest.mark.integration
class TestCompetitorPipeline:
    """Test the background pipeline end to end."""

    def test_start_requires_report_id(self, container):
        with pytest.raises(ValidationError) as exc_info:
            container.competitor_pipeline.start("")
        assert exc_info.value.message == "userReportId is required"

    def test_start_unknown_report(self, container):
        with pytest.raises(NotFoundError) as exc_info:
            container.competitor_pipeline.start("missing")
        assert exc_info.value.message == "User report not found"

    @pytest.mark.asyncio
    async def test_completes_with_fallback_competitors(self, container, stored_user_report):
        pipeline = container.competitor_pipeline
        comparison = pipeline.start(stored_user_report["id"])

        assert comparison["status"] == "analyzing"
        assert comparison["userDomain"] == "shop.example.com"

        job = await pipeline.dispatch(comparison["id"])
        await container.jobs.wait(job.job_id, timeout=5)

        assert job.status == JobStatus.COMPLETED
        record = container.comparisons.get(comparison["id"])
        assert record["status"] == "completed"
        assert [c["domain"] for c in record["competitors"]] == ["amazon.com", "flipkart.com", "myntra.com"]
        assert [c["rank"] for c in record["competitors"]] == [1, 2, 3]
        assert all(c["discovery_method"] == "fallback" for c in record["competitors"])
        assert record["comparison"]["source"] == "fallback"
        assert record["comparison"]["industry"] == "ecommerce"

        stored = container.reports.get(record["competitors"][0]["report_ref"])
        assert stored["is_competitor"] is True

    @pytest.mark.asyncio
    async def test_completes_with_ai_competitors(
        self, test_settings, memory_db, fake_collector, provider_factory, stored_user_report
    ):
        discovery_answer = json.dumps({
            "industry": "home goods",
            "competitors": [
                {"domain": "rival-one.com", "reason": "Fallback choice for budget shoppers"},
                {"domain": "rival-two.com", "reason": "Same catalog"},
                {"domain": "rival-three.com", "reason": "Same customers"},
            ],
        })
        comparison_answer = json.dumps({
            "overall_ranking": [
                {"domain": "shop.example.com", "rank": 1, "score": 79},
                {"domain": "rival-one.com", "rank": 2, "score": 70},
            ],
            "your_competitive_position": {"rank": 1, "score": 79, "percentile": "Top 33%", "summary": "Leading"},
        })
        provider = provider_factory("groq", responses=[discovery_answer, comparison_answer])
        fake_collector.failing_domains = {"rival-two.com"}
        container = build_container(
            settings=test_settings,
            collector=fake_collector,
            completion_client=CompletionClient([provider]),
            database=memory_db,
        )
        pipeline = container.competitor_pipeline
        comparison = pipeline.start(stored_user_report["id"])

        job = await pipeline.dispatch(comparison["id"])
        await container.jobs.wait(job.job_id, timeout=5)

        assert job.status == JobStatus.COMPLETED
        assert len(provider.calls) == 2
        record = container.comparisons.get(comparison["id"])
        assert record["status"] == "completed"
        competitors = record["competitors"]
        # rival-two.com failed its audit and is left out; ranks stay contiguous
        assert [c["domain"] for c in competitors] == ["rival-one.com", "rival-three.com"]
        assert [c["rank"] for c in competitors] == [1, 2]
        assert all(c["discovery_method"] == "ai" for c in competitors)
        assert competitors[0]["reason"] == "Fallback choice for budget shoppers"
        assert record["comparison"]["source"] == "ai"
        assert record["comparison"]["industry"] == "home goods"
        assert record["comparison"]["your_competitive_position"]["summary"] == "Leading"
        assert "https://rival-two.com" in record["comparison"]["failed_competitors"]

    @pytest.mark.asyncio
    async def test_fails_when_too_few_competitors(self, container, fake_collector, stored_user_report):
        fake_collector.failing_domains = {"amazon.com", "flipkart.com"}
        pipeline = container.competitor_pipeline
        comparison = pipeline.start(stored_user_report["id"])

        job = await pipeline.dispatch(comparison["id"])
        await container.jobs.wait(job.job_id, timeout=5)

        assert job.status == JobStatus.FAILED
        record = container.comparisons.get(comparison["id"])
        assert record["status"] == "failed"
        assert record["errorMessage"] == "Failed to analyze enough competitors (only 1 succeeded)"
        assert record["comparison"] is None
