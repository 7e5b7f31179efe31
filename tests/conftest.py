"""
Pytest Configuration and Shared Fixtures

Provides common fixtures and configuration for all test modules.
"""

import asyncio
import copy
from typing import Dict, Iterable, List, Optional

import pytest
from unittest.mock import AsyncMock, MagicMock

from src.analyzer.client import CompletionClient, CompletionProvider
from src.database.session import Database
from src.integrations.collector import CollectOptions, CollectorError, PageCollector
from src.scoring.signals import (
    ContentSignals,
    PageSignals,
    PerformanceSignals,
    SEOSignals,
    UXSignals,
)
from src.services.container import build_container
from src.utils.config import Settings
from src.utils.urls import extract_domain


# ============================================================================
# Fakes
# ============================================================================

class FakeProvider(CompletionProvider):
    """Completion provider with canned answers, an error or a delay.

    When responses is given, calls are answered from it in order (the last
    answer repeats); otherwise every call gets response.
    """

    def __init__(
        self,
        name: str,
        response: str = "",
        error: Optional[Exception] = None,
        delay: float = 0.0,
        configured: bool = True,
        responses: Optional[List[str]] = None,
    ):
        self.name = name
        self.response = response
        self.responses = list(responses or [])
        self.error = error
        self.delay = delay
        self.configured = configured
        self.calls: List[str] = []

    @property
    def is_configured(self) -> bool:
        return self.configured

    async def complete(self, prompt: str, system_prompt: str) -> str:
        self.calls.append(prompt)
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        if self.responses:
            return self.responses[min(len(self.calls), len(self.responses)) - 1]
        return self.response


class FakeCollector(PageCollector):
    """Returns a copy of template signals for any URL, failing for listed domains."""

    def __init__(self, template: PageSignals, failing_domains: Iterable[str] = ()):
        self.template = template
        self.failing_domains = set(failing_domains)
        self.calls: List[tuple] = []

    async def collect(self, url: str, options: CollectOptions) -> PageSignals:
        self.calls.append((url, options))
        if extract_domain(url) in self.failing_domains:
            raise CollectorError(f"Request error fetching {url}: connection refused", url=url)
        signals = copy.deepcopy(self.template)
        signals.url = url
        signals.final_url = url
        return signals


# ============================================================================
# Signal Fixtures
# ============================================================================

SAMPLE_TEXT = (
    "Our workshop builds handmade widgets for kitchens and offices. "
    "Every handmade widget is sanded by hand and finished with natural oil. "
    "Customers choose handmade widgets because they last for decades. "
    "We ship handmade widgets to every state with free returns. "
    "Read our care guide to keep your widget looking new. "
    "Each order includes a handwritten note from the team."
)


@pytest.fixture
def good_page_signals() -> PageSignals:
    """Signals for a healthy page: every metric inside its good band."""
    return PageSignals(
        url="https://example.com",
        final_url="https://example.com",
        performance=PerformanceSignals(
            lcp_s=1.8,
            cls=0.05,
            tbt_ms=100,
            fcp_s=1.2,
            ttfb_s=0.4,
            total_js_kb=200,
            total_image_kb=500,
            request_count=30,
            render_blocking_count=0,
        ),
        seo=SEOSignals(
            title="Example Widgets | Handmade widgets for every home",
            meta_description=("Handmade widgets built to last. " * 5)[:140],
            h1_count=1,
            image_count=5,
            images_missing_alt=0,
            internal_links=15,
            external_links=3,
            indexable=True,
            canonical_present=True,
            https=True,
        ),
        ux=UXSignals(
            violations=[],
            cta_above_fold=2,
            dom_node_count=500,
            viewport_meta=True,
        ),
        content=ContentSignals(
            text=SAMPLE_TEXT,
            word_count=800,
            heading_count=5,
            flesch_reading_ease=65,
            keywords=["handmade widgets", "handmade"],
        ),
    )


@pytest.fixture
def sample_text() -> str:
    return SAMPLE_TEXT


# ============================================================================
# Provider / Client Fixtures
# ============================================================================

@pytest.fixture
def provider_factory():
    """Factory for fake completion providers."""
    return FakeProvider


@pytest.fixture
def mock_only_client() -> CompletionClient:
    """Completion client with no providers: always answers with the mock."""
    return CompletionClient([], timeout=1.0)


@pytest.fixture
def mock_hf_client():
    """Hugging Face client whose infer() answers per model."""
    responses = {
        "distilbert-base-uncased-finetuned-sst-2-english": [[
            {"label": "POSITIVE", "score": 0.94},
            {"label": "NEGATIVE", "score": 0.06},
        ]],
        "dbmdz/bert-large-cased-finetuned-conll03-english": [
            {"entity_group": "ORG", "word": "Example Widgets", "score": 0.91},
        ],
        "sshleifer/distilbart-cnn-12-6": [{"summary_text": "A workshop sells handmade widgets."}],
        "facebook/bart-large-mnli": {
            "labels": ["E-commerce", "Technology"],
            "scores": [0.82, 0.05],
        },
    }

    async def infer(model, inputs, parameters=None, timeout=None):
        return copy.deepcopy(responses[model])

    client = MagicMock()
    client.infer = AsyncMock(side_effect=infer)
    return client


# ============================================================================
# Persistence / Container Fixtures
# ============================================================================

@pytest.fixture
def test_settings() -> Settings:
    """Settings with every provider disabled."""
    return Settings(
        _env_file=None,
        GROQ_API_KEY="",
        ANTHROPIC_API_KEY="",
        HF_API_KEY="",
        DATABASE_URL="sqlite://",
    )


@pytest.fixture
def memory_db():
    """Fresh in-memory SQLite database."""
    db = Database("sqlite://")
    db.init()
    yield db
    db.dispose()


@pytest.fixture
def fake_collector(good_page_signals) -> FakeCollector:
    return FakeCollector(good_page_signals)


@pytest.fixture
def container(test_settings, memory_db, fake_collector, mock_only_client):
    """Service container wired to fakes and an in-memory database."""
    return build_container(
        settings=test_settings,
        collector=fake_collector,
        completion_client=mock_only_client,
        database=memory_db,
    )


@pytest.fixture
def stored_user_report(container) -> Dict:
    """A stored report for a shop page, as saved by /api/analyze."""
    report = {
        "url": "https://shop.example.com",
        "scan_mode": "desktop",
        "is_competitor": False,
        "modules": {
            "performance": {"score": 80},
            "seo": {"score": 75},
            "ux": {"score": 90},
            "content": {"score": 70},
        },
        "aggregate": {"health_score": 79},
        "page": {"url": "https://shop.example.com", "title": "Example Shop", "meta_description": "", "keywords": []},
    }
    report_id = container.reports.save(report)
    return container.reports.get(report_id)


# ============================================================================
# Pytest Configuration
# ============================================================================

def pytest_configure(config):
    """Configure custom markers."""
    config.addinivalue_line(
        "markers", "slow: marks tests as slow (deselect with '-m \"not slow\"')"
    )
    config.addinivalue_line(
        "markers", "integration: marks tests as integration tests"
    )
    config.addinivalue_line(
        "markers", "unit: marks tests as unit tests"
    )
