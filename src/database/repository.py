"""
Repository Layer - Clean Interface for Data Operations

Stores and retrieves audit reports and competitor comparisons.
Handles all SQLAlchemy complexity internally and returns plain dicts.

The comparison repository enforces the forward-only status machine:
pending -> analyzing -> completed | failed.
"""

import logging
from datetime import datetime
from typing import Any, Dict, List, Optional

from src.errors import NotFoundError, StatusTransitionError
from src.utils.urls import extract_domain

from .models import (
    ALLOWED_TRANSITIONS,
    DEFAULT_COMPARISON_TTL_DAYS,
    AuditReportRecord,
    ComparisonStatus,
    CompetitorComparisonRecord,
)
from .session import Database

logger = logging.getLogger(__name__)


# =============================================================================
# AUDIT REPORTS
# =============================================================================

class ReportRepository:
    """Audit report storage."""

    def __init__(self, db: Database):
        self.db = db

    def save(self, report: Dict[str, Any]) -> str:
        """
        Store an audit report.

        Args:
            report: AuditReport.to_dict() output (an "id" key is honoured)

        Returns:
            Report id
        """
        aggregate = report.get("aggregate") or {}
        with self.db.session() as session:
            record = AuditReportRecord(
                url=report["url"],
                domain=extract_domain(report["url"]),
                scan_mode=report.get("scan_mode", "desktop"),
                is_competitor=bool(report.get("is_competitor")),
                health_score=aggregate.get("health_score"),
                report=report,
            )
            if report.get("id"):
                record.id = report["id"]
            session.add(record)
            session.flush()
            report_id = record.id

        logger.info(f"Stored report {report_id} for {report['url']}")
        return report_id

    def get(self, report_id: str) -> Optional[Dict[str, Any]]:
        with self.db.session() as session:
            record = session.get(AuditReportRecord, report_id)
            return record.to_dict() if record else None

    def get_or_raise(self, report_id: str) -> Dict[str, Any]:
        report = self.get(report_id)
        if report is None:
            raise NotFoundError("Report not found")
        return report


# =============================================================================
# COMPETITOR COMPARISONS
# =============================================================================

class ComparisonRepository:
    """Competitor comparison storage with status enforcement."""

    def __init__(self, db: Database, ttl_days: int = DEFAULT_COMPARISON_TTL_DAYS):
        self.db = db
        self.ttl_days = ttl_days

    def create(
        self,
        user_report_id: str,
        user_domain: str,
        status: ComparisonStatus = ComparisonStatus.ANALYZING,
    ) -> Dict[str, Any]:
        """Create a comparison record; expires_at is created_at + TTL."""
        now = datetime.utcnow()
        with self.db.session() as session:
            record = CompetitorComparisonRecord(
                user_report_id=user_report_id,
                user_domain=user_domain,
                status=status,
                competitors=[],
                created_at=now,
                updated_at=now,
                expires_at=CompetitorComparisonRecord.default_expiry(now, self.ttl_days),
            )
            session.add(record)
            session.flush()
            data = record.to_dict()

        logger.info(f"Created comparison {data['id']} for report {user_report_id} ({status.value})")
        return data

    def get(self, comparison_id: str) -> Optional[Dict[str, Any]]:
        with self.db.session() as session:
            record = session.get(CompetitorComparisonRecord, comparison_id)
            return record.to_dict() if record else None

    def latest_for_report(self, user_report_id: str) -> Optional[Dict[str, Any]]:
        """Most recently created comparison for a user report."""
        with self.db.session() as session:
            record = (
                session.query(CompetitorComparisonRecord)
                .filter(CompetitorComparisonRecord.user_report_id == user_report_id)
                .order_by(CompetitorComparisonRecord.created_at.desc())
                .first()
            )
            return record.to_dict() if record else None

    def attach_competitors(self, comparison_id: str, competitors: List[Dict[str, Any]]):
        """Store discovered and analyzed competitors (status unchanged)."""
        with self.db.session() as session:
            record = self._load(session, comparison_id)
            if record.status in (ComparisonStatus.COMPLETED, ComparisonStatus.FAILED):
                raise StatusTransitionError(
                    f"Comparison {comparison_id} is already {record.status.value}"
                )
            record.competitors = competitors
            record.updated_at = datetime.utcnow()
        logger.info(f"Comparison {comparison_id}: attached {len(competitors)} competitors")

    def complete(self, comparison_id: str, comparison: Dict[str, Any]):
        """Attach the comparison result and mark completed."""
        with self.db.session() as session:
            record = self._load(session, comparison_id)
            self._transition(record, ComparisonStatus.COMPLETED)
            record.comparison = comparison
        logger.info(f"Comparison {comparison_id} completed")

    def fail(self, comparison_id: str, error_message: str):
        """Mark a comparison failed."""
        with self.db.session() as session:
            record = self._load(session, comparison_id)
            self._transition(record, ComparisonStatus.FAILED)
            record.error_message = error_message
        logger.error(f"Comparison {comparison_id} failed: {error_message}")

    def set_status(self, comparison_id: str, status: ComparisonStatus):
        with self.db.session() as session:
            record = self._load(session, comparison_id)
            self._transition(record, status)

    @staticmethod
    def _load(session, comparison_id: str) -> CompetitorComparisonRecord:
        record = session.get(CompetitorComparisonRecord, comparison_id)
        if record is None:
            raise NotFoundError("Comparison not found")
        return record

    @staticmethod
    def _transition(record: CompetitorComparisonRecord, status: ComparisonStatus):
        if status not in ALLOWED_TRANSITIONS[record.status]:
            raise StatusTransitionError(
                f"Cannot move comparison {record.id} from {record.status.value} to {status.value}"
            )
        record.status = status
        record.updated_at = datetime.utcnow()
