"""
Competitor Batch Analysis

Audits each competitor concurrently in reduced-cost mode. Every audit
settles on its own; the batch only fails when fewer than the minimum
number of audits succeed.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from src.analyzer.engine import AuditEngine, AuditOptions
from src.errors import InsufficientDataError
from src.models import AuditReport
from src.utils.urls import normalize_url

logger = logging.getLogger(__name__)

MAX_BATCH_SIZE = 3
MIN_SUCCESSES = 2


@dataclass
class BatchResult:
    """Outcome of a competitor batch."""
    reports: Dict[str, AuditReport] = field(default_factory=dict)  # url -> report
    failures: Dict[str, str] = field(default_factory=dict)  # url -> error

    @property
    def success_count(self) -> int:
        return len(self.reports)


class BatchAnalyzer:
    """Runs competitor audits in parallel."""

    def __init__(
        self,
        engine: AuditEngine,
        min_successes: int = MIN_SUCCESSES,
        max_batch_size: int = MAX_BATCH_SIZE,
    ):
        self.engine = engine
        self.min_successes = min_successes
        self.max_batch_size = max_batch_size

    async def analyze(self, urls: List[str], options: Optional[AuditOptions] = None) -> BatchResult:
        """
        Audit up to three competitor URLs.

        Args:
            urls: Competitor URLs or bare domains
            options: Audit options (reduced-cost competitor mode by default)

        Returns:
            BatchResult with the successful reports

        Raises:
            InsufficientDataError: Fewer than min_successes audits succeeded
        """
        options = options or AuditOptions.competitor()
        targets = [normalize_url(u) for u in urls[:self.max_batch_size]]
        logger.info(f"Analyzing {len(targets)} competitors: {', '.join(targets)}")

        outcomes = await asyncio.gather(
            *(self.engine.run(url, options) for url in targets),
            return_exceptions=True,
        )

        result = BatchResult()
        for url, outcome in zip(targets, outcomes):
            if isinstance(outcome, Exception):
                logger.warning(f"Competitor analysis failed for {url}: {outcome}")
                result.failures[url] = str(outcome)
            else:
                result.reports[url] = outcome

        if result.success_count < self.min_successes:
            raise InsufficientDataError(
                f"Failed to analyze enough competitors (only {result.success_count} succeeded)"
            )

        logger.info(f"Competitor batch finished: {result.success_count}/{len(targets)} succeeded")
        return result
