"""
Audit Engine

Orchestrates one audit run:

1. Collect raw page signals
2. Run NLP on the page text (cached by content fingerprint)
3. Score the four modules independently
4. Aggregate into a health score
5. Optionally enhance modules and generate insights with the completion chain

Competitor runs use reduced-cost mode: no screenshots, HTML capture or
Lighthouse, and no AI enhancement or insights.
"""

import logging
import uuid
from dataclasses import dataclass
from datetime import datetime
from typing import Dict, Iterable, Optional

from src.errors import ValidationError
from src.integrations.collector import CollectOptions, PageCollector
from src.models import MODULE_NAMES, AuditReport, ModuleResult, PageInfo
from src.nlp.service import NLPService
from src.scoring import (
    PageSignals,
    aggregate,
    score_content,
    score_performance,
    score_seo,
    score_ux,
)
from src.utils.urls import validate_url

from .client import CompletionClient
from .enhancer import ModuleEnhancer
from .insights import InsightGenerator

logger = logging.getLogger(__name__)


@dataclass
class AuditOptions:
    """Options for one audit run."""
    emulate_mobile: bool = False
    is_competitor: bool = False
    skip_screenshots: bool = False
    skip_html: bool = False
    skip_lighthouse: bool = False
    enhance_with_ai: bool = True
    generate_insights: bool = True

    @classmethod
    def competitor(cls, emulate_mobile: bool = False) -> "AuditOptions":
        """Reduced-cost options for competitor analysis."""
        return cls(
            emulate_mobile=emulate_mobile,
            is_competitor=True,
            skip_screenshots=True,
            skip_html=True,
            skip_lighthouse=True,
            enhance_with_ai=False,
            generate_insights=False,
        )

    @property
    def scan_mode(self) -> str:
        return "mobile" if self.emulate_mobile else "desktop"

    def collect_options(self) -> CollectOptions:
        return CollectOptions(
            emulate_mobile=self.emulate_mobile,
            is_competitor=self.is_competitor,
            skip_screenshots=self.skip_screenshots,
            skip_html=self.skip_html,
            skip_lighthouse=self.skip_lighthouse,
        )


class AuditEngine:
    """
    Runs audits end to end.

    Usage:
        engine = AuditEngine(collector, completion_client, nlp_service)
        report = await engine.run("https://example.com")
    """

    def __init__(
        self,
        collector: PageCollector,
        completion_client: CompletionClient,
        nlp_service: NLPService,
    ):
        self.collector = collector
        self.completion_client = completion_client
        self.nlp_service = nlp_service
        self.enhancer = ModuleEnhancer(completion_client)
        self.insight_generator = InsightGenerator(completion_client)

    async def run(self, url: str, options: Optional[AuditOptions] = None) -> AuditReport:
        """
        Run a full audit.

        Args:
            url: Page URL (https:// is added when missing)
            options: Audit options

        Returns:
            AuditReport with all four modules, aggregate and insights

        Raises:
            ValidationError: Invalid URL
            CollectorError: Page could not be collected
        """
        return await self.run_modules(url, MODULE_NAMES, options)

    async def run_modules(
        self,
        url: str,
        modules: Iterable[str],
        options: Optional[AuditOptions] = None,
    ) -> AuditReport:
        """Run an audit restricted to the given modules."""
        options = options or AuditOptions()
        url = validate_url(url)
        modules = list(modules)
        unknown = [m for m in modules if m not in MODULE_NAMES]
        if unknown:
            raise ValidationError(f"Unknown module: {', '.join(unknown)}")

        started = datetime.utcnow()
        logger.info(f"Starting {options.scan_mode} audit of {url} ({', '.join(modules)})")

        signals = await self.collector.collect(url, options.collect_options())

        nlp: Dict = {}
        if "content" in modules:
            nlp = await self.nlp_service.analyze(signals.content.text)

        results = self.score_modules(signals, modules, options.emulate_mobile, nlp)
        if options.enhance_with_ai:
            results = await self.enhancer.enhance(url, results)

        page = PageInfo(
            url=url,
            title=signals.seo.title,
            meta_description=signals.seo.meta_description,
            keywords=signals.content.keywords
            or [k["keyword"] for k in nlp.get("keywords", [])[:10]],
        )

        report = AuditReport(
            id=str(uuid.uuid4()),
            url=url,
            scan_mode=options.scan_mode,
            modules=results,
            page=page,
            nlp=nlp,
            is_competitor=options.is_competitor,
        )

        if len(results) == len(MODULE_NAMES):
            report.aggregate = aggregate(results)
            if options.generate_insights:
                report.insights = await self.insight_generator.generate(page, results, report.aggregate)

        elapsed = (datetime.utcnow() - started).total_seconds()
        logger.info(
            f"Audit of {url} finished in {elapsed:.1f}s"
            + (f", health {report.health_score}" if report.aggregate else "")
        )
        return report

    async def run_module(
        self,
        url: str,
        module: str,
        options: Optional[AuditOptions] = None,
    ) -> ModuleResult:
        """Run a single module and return its result."""
        report = await self.run_modules(url, [module], options)
        return report.modules[module]

    @staticmethod
    def score_modules(
        signals: PageSignals,
        modules: Iterable[str],
        mobile: bool = False,
        nlp: Optional[Dict] = None,
    ) -> Dict[str, ModuleResult]:
        """Score the requested modules from collected signals."""
        scorers = {
            "performance": lambda: score_performance(signals.performance, mobile=mobile),
            "seo": lambda: score_seo(signals.seo, mobile=mobile),
            "ux": lambda: score_ux(signals.ux, mobile=mobile),
            "content": lambda: score_content(signals.content, nlp=nlp, mobile=mobile),
        }
        return {name: scorers[name]() for name in modules}
