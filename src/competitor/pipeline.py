"""
Competitor Pipeline

Discovery -> batch analysis -> comparative analysis for one user report,
run as a background job after the triggering request has responded.

State machine of the persisted comparison:

    pending -> analyzing -> completed
                         -> failed

The record is created in "analyzing" by start(). The background run
attaches the competitors, then the comparison with status "completed",
or marks the record "failed" on any error.
"""

import logging
from typing import Any, Dict, List

from src.database.repository import ComparisonRepository, ReportRepository
from src.errors import NotFoundError, StatusTransitionError, ValidationError
from src.persistence.jobs import BackgroundJobRunner, Job
from src.utils.urls import extract_domain, normalize_url

from .batch import BatchAnalyzer
from .comparison import ComparativeAnalyzer
from .discovery import CompetitorDiscovery

logger = logging.getLogger(__name__)


class CompetitorPipeline:
    """
    Runs 1-vs-N competitor analysis for stored user reports.

    Usage:
        comparison = pipeline.start(user_report_id)
        job = await pipeline.dispatch(comparison["id"])
    """

    JOB_NAME = "competitor_analysis"

    def __init__(
        self,
        reports: ReportRepository,
        comparisons: ComparisonRepository,
        discovery: CompetitorDiscovery,
        batch: BatchAnalyzer,
        analyzer: ComparativeAnalyzer,
        jobs: BackgroundJobRunner,
    ):
        self.reports = reports
        self.comparisons = comparisons
        self.discovery = discovery
        self.batch = batch
        self.analyzer = analyzer
        self.jobs = jobs

    def start(self, user_report_id: str) -> Dict[str, Any]:
        """
        Validate the request and create the comparison record.

        Args:
            user_report_id: Id of a stored user report

        Returns:
            The new comparison record (status "analyzing")

        Raises:
            ValidationError: user_report_id is missing
            NotFoundError: No report with that id
        """
        if not user_report_id:
            raise ValidationError("userReportId is required")

        report = self.reports.get(user_report_id)
        if report is None:
            raise NotFoundError("User report not found")

        return self.comparisons.create(
            user_report_id=user_report_id,
            user_domain=extract_domain(report["url"]),
        )

    async def dispatch(self, comparison_id: str) -> Job:
        """Submit the background run for a created comparison."""
        return self.jobs.submit(
            self.JOB_NAME,
            self.run,
            comparison_id,
            job_id=comparison_id,
            metadata={"comparison_id": comparison_id},
        )

    async def run(self, comparison_id: str) -> Dict[str, Any]:
        """
        Execute discovery, batch analysis and comparison.

        Any error marks the comparison failed and is re-raised so the job
        records it too.
        """
        try:
            comparison = self.comparisons.get(comparison_id)
            if comparison is None:
                raise NotFoundError("Comparison not found")

            user_report = self.reports.get_or_raise(comparison["userReportId"])

            # 1. Discovery
            discovered = await self.discovery.discover(user_report)

            # 2. Batch analysis (reduced-cost mode)
            batch = await self.batch.analyze([c.domain for c in discovered.competitors])

            competitors: List[Dict[str, Any]] = []
            competitor_reports: List[Dict[str, Any]] = []
            # Discovery order; competitors whose audit failed are left out
            for found in discovered.competitors:
                report = batch.reports.get(normalize_url(found.domain))
                if report is None:
                    continue
                stored = report.to_dict()
                report_ref = self.reports.save(stored)
                competitor_reports.append(stored)

                competitors.append({
                    "domain": found.domain,
                    "report_ref": report_ref,
                    "discovery_method": found.discovery_method,
                    "rank": len(competitors) + 1,
                    "reason": found.reason,
                    "health_score": report.health_score,
                })

            self.comparisons.attach_competitors(comparison_id, competitors)

            # 3. Comparative analysis
            result = await self.analyzer.compare(user_report, competitor_reports)
            result["industry"] = discovered.industry
            result["failed_competitors"] = batch.failures

            # 4. Persist
            self.comparisons.complete(comparison_id, result)
            return result

        except Exception as e:
            logger.exception(f"Competitor analysis {comparison_id} failed: {e}")
            try:
                self.comparisons.fail(comparison_id, str(e))
            except (NotFoundError, StatusTransitionError) as mark_error:
                logger.error(f"Could not mark comparison {comparison_id} failed: {mark_error}")
            raise
