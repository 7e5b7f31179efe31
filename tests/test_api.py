"""
Tests for the HTTP API

Drives the FastAPI app in-process with httpx.AsyncClient over
ASGITransport, using the fake collector and the mock-only completion
client from conftest.
"""

import httpx
import pytest
import pytest_asyncio

from api.analyze import create_app
from src import __version__


@pytest_asyncio.fixture
async def client(container):
    """HTTP client bound to an app wired to the test container."""
    transport = httpx.ASGITransport(app=create_app(container))
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as http:
        yield http


# ============================================================================
# Health
# ============================================================================

@pytest.mark.integration
class TestHealth:
    """Test the liveness endpoint."""

    @pytest.mark.asyncio
    async def test_health(self, client):
        response = await client.get("/api/health")

        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "ok"
        assert body["version"] == __version__
        assert "timestamp" in body


# ============================================================================
# Audits
# ============================================================================

@pytest.mark.integration
class TestAnalyzeEndpoints:
    """Test full and single-module audits."""

    @pytest.mark.asyncio
    async def test_missing_url(self, client):
        response = await client.post("/api/analyze", json={})

        assert response.status_code == 400
        assert response.json() == {"error": "url is required"}

    @pytest.mark.asyncio
    async def test_invalid_url(self, client):
        response = await client.post("/api/analyze", json={"url": "localhost"})

        assert response.status_code == 400
        assert response.json()["error"].startswith("Invalid URL")

    @pytest.mark.asyncio
    async def test_full_audit_is_stored(self, client, container):
        response = await client.post("/api/analyze", json={"url": "example.com"})

        assert response.status_code == 200
        report = response.json()
        assert report["url"] == "https://example.com"
        assert report["scan_mode"] == "desktop"
        assert set(report["modules"]) == {"performance", "seo", "ux", "content"}
        assert 0 <= report["aggregate"]["health_score"] <= 100

        stored = container.reports.get(report["id"])
        assert stored["aggregate"] == report["aggregate"]

    @pytest.mark.asyncio
    async def test_fetch_report_and_module(self, client):
        created = (await client.post("/api/analyze", json={"url": "example.com"})).json()

        whole = await client.get(f"/api/report/{created['id']}")
        assert whole.status_code == 200
        assert whole.json()["modules"] == created["modules"]

        module = await client.get(f"/api/report/{created['id']}/seo")
        assert module.status_code == 200
        assert module.json()["result"] == created["modules"]["seo"]

    @pytest.mark.asyncio
    async def test_unknown_report_module(self, client):
        created = (await client.post("/api/analyze", json={"url": "example.com"})).json()

        response = await client.get(f"/api/report/{created['id']}/accessibility")

        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_missing_report(self, client):
        response = await client.get("/api/report/does-not-exist")

        assert response.status_code == 404
        assert response.json() == {"error": "Report not found"}

    @pytest.mark.asyncio
    async def test_mobile_audit(self, client):
        response = await client.post("/api/analyze/mobile", json={"url": "example.com"})

        assert response.status_code == 200
        assert response.json()["scan_mode"] == "mobile"

    @pytest.mark.asyncio
    async def test_single_module(self, client, container):
        response = await client.post("/api/analyze/seo", json={"url": "example.com"})

        assert response.status_code == 200
        body = response.json()
        assert body["module"] == "seo"
        assert 0 <= body["result"]["score"] <= 100

    @pytest.mark.asyncio
    async def test_unknown_module(self, client):
        response = await client.post("/api/analyze/accessibility", json={"url": "example.com"})

        assert response.status_code == 400
        assert "Unknown module" in response.json()["error"]

    @pytest.mark.asyncio
    async def test_collector_failure_is_502(self, client, fake_collector):
        fake_collector.failing_domains = {"down.example.com"}

        response = await client.post("/api/analyze", json={"url": "down.example.com"})

        assert response.status_code == 502
        assert "down.example.com" in response.json()["error"]


# ============================================================================
# Competitor Analysis
# ============================================================================

@pytest.mark.integration
class TestCompetitorEndpoints:
    """Test starting and polling competitor analysis."""

    @pytest.mark.asyncio
    async def test_missing_report_id(self, client):
        response = await client.post("/api/competitor/analyze-3-1", json={})

        assert response.status_code == 400
        assert response.json() == {"error": "userReportId is required"}

    @pytest.mark.asyncio
    async def test_unknown_report(self, client):
        response = await client.post("/api/competitor/analyze-3-1", json={"userReportId": "missing"})

        assert response.status_code == 404
        assert response.json() == {"error": "User report not found"}

    @pytest.mark.asyncio
    async def test_start_and_poll(self, client, container, stored_user_report):
        response = await client.post(
            "/api/competitor/analyze-3-1",
            json={"userReportId": stored_user_report["id"]},
        )

        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert body["status"] == "analyzing"
        comparison_id = body["comparisonId"]

        await container.jobs.wait(comparison_id, timeout=5)

        polled = await client.get(f"/api/competitor/comparison/{comparison_id}")
        assert polled.status_code == 200
        comparison = polled.json()["comparison"]
        assert comparison["status"] == "completed"
        assert len(comparison["competitors"]) == 3
        assert comparison["comparison"]["your_competitive_position"]["rank"] >= 1

        latest = await client.get(f"/api/competitor/by-report/{stored_user_report['id']}")
        assert latest.status_code == 200
        assert latest.json()["comparison"]["id"] == comparison_id

    @pytest.mark.asyncio
    async def test_unknown_comparison(self, client):
        response = await client.get("/api/competitor/comparison/missing")

        assert response.status_code == 404
        assert response.json() == {"error": "Comparison not found"}

    @pytest.mark.asyncio
    async def test_no_comparison_for_report(self, client):
        response = await client.get("/api/competitor/by-report/missing")

        assert response.status_code == 404
        assert response.json() == {"error": "No comparison found for this report"}
