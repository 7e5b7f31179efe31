"""
SQLAlchemy Models for the Web Audit Engine

Two tables:
1. audit_reports - one row per engine run (user pages and competitors)
2. competitor_comparisons - one row per 1-vs-N comparison job

Reports and comparison payloads are stored as JSON documents; only the
fields that are queried or drive the state machine get their own columns.
"""

import enum
from datetime import datetime, timedelta
from typing import Any, Dict, Optional
from uuid import uuid4

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    DateTime,
    Enum,
    Index,
    Integer,
    String,
    Text,
)
from sqlalchemy.orm import declarative_base

Base = declarative_base()

DEFAULT_COMPARISON_TTL_DAYS = 7


def _uuid() -> str:
    return str(uuid4())


# =============================================================================
# ENUMS
# =============================================================================

class ComparisonStatus(enum.Enum):
    """Status of a competitor comparison"""
    PENDING = "pending"
    ANALYZING = "analyzing"
    COMPLETED = "completed"
    FAILED = "failed"


# Forward-only state machine
ALLOWED_TRANSITIONS = {
    ComparisonStatus.PENDING: {
        ComparisonStatus.ANALYZING,
        ComparisonStatus.COMPLETED,
        ComparisonStatus.FAILED,
    },
    ComparisonStatus.ANALYZING: {ComparisonStatus.COMPLETED, ComparisonStatus.FAILED},
    ComparisonStatus.COMPLETED: set(),
    ComparisonStatus.FAILED: set(),
}


# =============================================================================
# TABLES
# =============================================================================

class AuditReportRecord(Base):
    """A stored audit report"""
    __tablename__ = "audit_reports"

    id = Column(String(36), primary_key=True, default=_uuid)
    url = Column(Text, nullable=False)
    domain = Column(String(255), index=True)
    scan_mode = Column(String(20), default="desktop")
    is_competitor = Column(Boolean, default=False)
    health_score = Column(Integer, nullable=True)

    # Full AuditReport.to_dict()
    report = Column(JSON, nullable=False)

    created_at = Column(DateTime, default=datetime.utcnow)

    def to_dict(self) -> Dict[str, Any]:
        data = dict(self.report or {})
        data["id"] = self.id
        return data


class CompetitorComparisonRecord(Base):
    """A 1-vs-N competitor comparison and its lifecycle"""
    __tablename__ = "competitor_comparisons"

    id = Column(String(36), primary_key=True, default=_uuid)
    user_report_id = Column(String(36), nullable=False)
    user_domain = Column(String(255))

    status = Column(Enum(ComparisonStatus), default=ComparisonStatus.PENDING, nullable=False)
    competitors = Column(JSON, default=list)
    """
    [
        {"domain": "rival.com", "report_ref": "<audit_reports.id>",
         "discovery_method": "ai", "rank": 1, "reason": "..."}
    ]
    """
    comparison = Column(JSON, nullable=True)
    error_message = Column(Text, nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
    expires_at = Column(DateTime, nullable=False)

    __table_args__ = (
        Index("idx_comparison_report_created", "user_report_id", "created_at"),
    )

    @staticmethod
    def default_expiry(created_at: datetime, ttl_days: int = DEFAULT_COMPARISON_TTL_DAYS) -> datetime:
        return created_at + timedelta(days=ttl_days)

    def is_stale(self, now: Optional[datetime] = None) -> bool:
        """Past expires_at. Stale records are kept, only flagged."""
        return (now or datetime.utcnow()) >= self.expires_at

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "userReportId": self.user_report_id,
            "userDomain": self.user_domain,
            "status": self.status.value,
            "competitors": self.competitors or [],
            "comparison": self.comparison,
            "errorMessage": self.error_message,
            "createdAt": self.created_at.isoformat() if self.created_at else None,
            "updatedAt": self.updated_at.isoformat() if self.updated_at else None,
            "expiresAt": self.expires_at.isoformat() if self.expires_at else None,
            "isStale": self.is_stale(),
        }
