"""
Service Container

Builds every long-lived service once from Settings and hands them to the
API and CLI. Tests build a container from fakes instead.
"""

import logging
from dataclasses import dataclass
from typing import Optional

from src.analyzer.client import CompletionClient, build_completion_client
from src.analyzer.engine import AuditEngine
from src.competitor import (
    BatchAnalyzer,
    ComparativeAnalyzer,
    CompetitorDiscovery,
    CompetitorPipeline,
)
from src.database.repository import ComparisonRepository, ReportRepository
from src.database.session import Database
from src.integrations.collector import HttpPageCollector, PageCollector
from src.integrations.huggingface import HuggingFaceClient
from src.nlp.service import NLPService
from src.persistence.cache import TTLCache
from src.persistence.jobs import BackgroundJobRunner
from src.utils.config import Settings, get_settings

logger = logging.getLogger(__name__)


@dataclass
class ServiceContainer:
    """Wired services shared by the API routes."""
    settings: Settings
    database: Database
    reports: ReportRepository
    comparisons: ComparisonRepository
    completion_client: CompletionClient
    nlp_service: NLPService
    collector: PageCollector
    engine: AuditEngine
    jobs: BackgroundJobRunner
    competitor_pipeline: CompetitorPipeline
    hf_client: Optional[HuggingFaceClient] = None

    async def close(self):
        """Stop background jobs and release clients and connections."""
        await self.jobs.shutdown()
        await self.completion_client.close()
        await self.collector.close()
        if self.hf_client is not None:
            await self.hf_client.close()
        self.database.dispose()
        logger.info("Service container closed")


def build_container(
    settings: Optional[Settings] = None,
    collector: Optional[PageCollector] = None,
    completion_client: Optional[CompletionClient] = None,
    database: Optional[Database] = None,
) -> ServiceContainer:
    """
    Build the service graph.

    Args:
        settings: Application settings (cached settings when omitted)
        collector: Page collector override
        completion_client: Completion chain override
        database: Database override (tables are created either way)

    Returns:
        ServiceContainer ready for use
    """
    settings = settings or get_settings()

    hf_client = None
    if settings.HF_API_KEY:
        hf_client = HuggingFaceClient(
            api_key=settings.HF_API_KEY,
            base_url=settings.HF_API_BASE,
            timeout=settings.NLP_LONG_TIMEOUT,
        )
    else:
        logger.warning("HF_API_KEY not set, NLP tasks will use local fallbacks")

    if completion_client is None:
        completion_client = build_completion_client(settings, hf_client)
    if not completion_client.has_live_provider:
        logger.warning("No completion provider configured, AI output will use fallbacks")

    nlp_service = NLPService(
        client=hf_client,
        cache=TTLCache(
            ttl_seconds=settings.NLP_CACHE_TTL_SECONDS,
            max_entries=settings.NLP_CACHE_MAX_ENTRIES,
        ),
        timeout=settings.NLP_TIMEOUT,
        long_timeout=settings.NLP_LONG_TIMEOUT,
    )

    collector = collector or HttpPageCollector(timeout=settings.COLLECTOR_TIMEOUT)

    database = database or Database(settings.DATABASE_URL, echo=settings.SQL_DEBUG)
    database.init()
    reports = ReportRepository(database)
    comparisons = ComparisonRepository(database, ttl_days=settings.COMPARISON_TTL_DAYS)

    engine = AuditEngine(collector, completion_client, nlp_service)
    jobs = BackgroundJobRunner()

    pipeline = CompetitorPipeline(
        reports=reports,
        comparisons=comparisons,
        discovery=CompetitorDiscovery(completion_client, max_competitors=settings.MAX_COMPETITORS),
        batch=BatchAnalyzer(
            engine,
            min_successes=settings.MIN_COMPETITOR_SUCCESSES,
            max_batch_size=settings.MAX_COMPETITORS,
        ),
        analyzer=ComparativeAnalyzer(completion_client),
        jobs=jobs,
    )

    logger.info(
        f"Services ready (providers: {[p.name for p in completion_client.configured_providers] or 'mock'})"
    )

    return ServiceContainer(
        settings=settings,
        database=database,
        reports=reports,
        comparisons=comparisons,
        completion_client=completion_client,
        nlp_service=nlp_service,
        collector=collector,
        engine=engine,
        jobs=jobs,
        competitor_pipeline=pipeline,
        hf_client=hf_client,
    )
