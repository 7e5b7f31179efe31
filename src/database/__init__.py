"""
Web Audit Database Layer

Usage:
    from src.database import Database, ReportRepository, ComparisonRepository

    db = Database(settings.DATABASE_URL)
    db.init()

    reports = ReportRepository(db)
    report_id = reports.save(report.to_dict())
"""

from .models import (
    Base,
    AuditReportRecord,
    CompetitorComparisonRecord,
    ComparisonStatus,
    ALLOWED_TRANSITIONS,
)
from .session import Database, create_db_engine, get_database_url
from .repository import ComparisonRepository, ReportRepository

__all__ = [
    # Models
    "Base",
    "AuditReportRecord",
    "CompetitorComparisonRecord",
    "ComparisonStatus",
    "ALLOWED_TRANSITIONS",
    # Session
    "Database",
    "create_db_engine",
    "get_database_url",
    # Repositories
    "ComparisonRepository",
    "ReportRepository",
]
