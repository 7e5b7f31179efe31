"""
Web Audit - Data Models

Shared data models used across the scoring, AI and competitor layers.
Module results are frozen: an enhancement or a re-run produces a new
object instead of patching the old one.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional


class RiskLevel(str, Enum):
    """Risk classification for a module."""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"

    @property
    def rank(self) -> int:
        return {"low": 0, "medium": 1, "high": 2}[self.value]


class Severity(str, Enum):
    """Issue severity."""
    CRITICAL = "critical"
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class RecommendationFlag(str, Enum):
    """How urgently a module needs work."""
    CRITICAL_FIXES = "critical_fixes"
    PRIORITY_FIXES = "priority_fixes"
    MINOR_FIXES = "minor_fixes"


class ModuleName(str, Enum):
    """The four audit dimensions."""
    PERFORMANCE = "performance"
    SEO = "seo"
    UX = "ux"
    CONTENT = "content"


MODULE_NAMES: List[str] = [m.value for m in ModuleName]


# =============================================================================
# MODULE RESULT BUILDING BLOCKS
# =============================================================================

@dataclass(frozen=True)
class PenaltyFactor:
    """A single contributor to a module penalty."""
    name: str
    observed_value: Any
    penalty: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "observed_value": self.observed_value,
            "penalty": round(self.penalty, 3),
        }


@dataclass(frozen=True)
class Issue:
    """A problem found on the page."""
    id: str
    severity: Severity
    category: str
    description: str
    ai_generated: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "severity": self.severity.value,
            "category": self.category,
            "description": self.description,
            "ai_generated": self.ai_generated,
        }

    @classmethod
    def from_ai(cls, data: Dict[str, Any], index: int, module: str) -> "Issue":
        """Build an issue from a loosely-shaped AI item."""
        try:
            severity = Severity(str(data.get("severity", "medium")).lower())
        except ValueError:
            severity = Severity.MEDIUM
        return cls(
            id=str(data.get("id") or f"ai_{module}_issue_{index}"),
            severity=severity,
            category=str(data.get("category") or module),
            description=str(data.get("description") or data.get("title") or ""),
            ai_generated=True,
        )


@dataclass(frozen=True)
class Fix:
    """A recommended change."""
    id: str
    title: str
    description: str
    priority: int
    impact_pct: float
    issue_id: Optional[str] = None
    effort_hours: Optional[float] = None
    ai_generated: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "priority": self.priority,
            "impact_pct": self.impact_pct,
            "issue_id": self.issue_id,
            "effort_hours": self.effort_hours,
            "ai_generated": self.ai_generated,
        }

    @classmethod
    def from_ai(cls, data: Dict[str, Any], index: int, module: str) -> "Fix":
        """Build a fix from a loosely-shaped AI item."""
        def _number(value: Any, default: float) -> float:
            try:
                return float(value)
            except (TypeError, ValueError):
                return default

        return cls(
            id=str(data.get("id") or f"ai_{module}_fix_{index}"),
            title=str(data.get("title") or "AI recommendation"),
            description=str(data.get("description") or ""),
            priority=int(_number(data.get("priority"), 3)),
            impact_pct=_number(data.get("impact_pct", data.get("impact")), 5.0),
            issue_id=data.get("issue_id"),
            effort_hours=_number(data.get("effort_hours"), 1.0),
            ai_generated=True,
        )


@dataclass(frozen=True)
class ModuleResult:
    """Scored output of one audit module."""
    module: str
    score: int
    risk_level: RiskLevel
    recommendation_flag: RecommendationFlag
    factors: List[PenaltyFactor] = field(default_factory=list)
    friction_sources: List[str] = field(default_factory=list)
    issues: List[Issue] = field(default_factory=list)
    fixes: List[Fix] = field(default_factory=list)
    details: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "module": self.module,
            "score": self.score,
            "risk_level": self.risk_level.value,
            "recommendation_flag": self.recommendation_flag.value,
            "factors": [f.to_dict() for f in self.factors],
            "friction_sources": list(self.friction_sources),
            "issues": [i.to_dict() for i in self.issues],
            "fixes": [f.to_dict() for f in self.fixes],
            "details": dict(self.details),
        }


@dataclass(frozen=True)
class AggregateReport:
    """Cross-module summary derived from the module results."""
    health_score: int
    module_scores: Dict[str, int]
    risk_domains: List[str]
    overall_risk: RiskLevel
    weakest_module: Optional[str] = None
    strongest_module: Optional[str] = None
    weighted_score: Optional[float] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "health_score": self.health_score,
            "module_scores": dict(self.module_scores),
            "risk_domains": list(self.risk_domains),
            "overall_risk": self.overall_risk.value,
            "weakest_module": self.weakest_module,
            "strongest_module": self.strongest_module,
            "weighted_score": self.weighted_score,
        }


# =============================================================================
# REPORTS
# =============================================================================

@dataclass
class PageInfo:
    """Descriptive page metadata used for prompts and discovery."""
    url: str
    title: str = ""
    meta_description: str = ""
    keywords: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "url": self.url,
            "title": self.title,
            "meta_description": self.meta_description,
            "keywords": list(self.keywords),
        }


@dataclass
class AuditReport:
    """Output of one audit engine run."""
    id: str
    url: str
    scan_mode: str
    modules: Dict[str, ModuleResult]
    page: PageInfo
    aggregate: Optional[AggregateReport] = None
    insights: Dict[str, Any] = field(default_factory=dict)
    nlp: Dict[str, Any] = field(default_factory=dict)
    is_competitor: bool = False
    created_at: datetime = field(default_factory=datetime.utcnow)

    @property
    def health_score(self) -> Optional[int]:
        return self.aggregate.health_score if self.aggregate else None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "url": self.url,
            "scan_mode": self.scan_mode,
            "is_competitor": self.is_competitor,
            "modules": {name: result.to_dict() for name, result in self.modules.items()},
            "aggregate": self.aggregate.to_dict() if self.aggregate else None,
            "insights": self.insights,
            "nlp": self.nlp,
            "page": self.page.to_dict(),
            "created_at": self.created_at.isoformat(),
        }
