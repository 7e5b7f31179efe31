"""
Raw Page Signals

Inputs to the module scorers. A page collector fills these from a
headless browser, Lighthouse and axe-core, or from the lightweight HTTP
collector. Every metric is optional: unmeasured values contribute no
penalty and are reported as missing.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional


ALT_TEXT_RULES = ("image-alt", "image-redundant-alt")


@dataclass
class AxeViolation:
    """One accessibility rule violation (axe-core shape)."""
    id: str
    impact: str
    description: str = ""
    help: str = ""
    nodes: int = 1

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "AxeViolation":
        nodes = data.get("nodes", 1)
        return cls(
            id=data.get("id", "unknown"),
            impact=(data.get("impact") or "minor").lower(),
            description=data.get("description", ""),
            help=data.get("help", ""),
            nodes=len(nodes) if isinstance(nodes, list) else int(nodes or 1),
        )


@dataclass
class PerformanceSignals:
    """Lab metrics for the performance module."""
    lcp_s: Optional[float] = None
    cls: Optional[float] = None
    tbt_ms: Optional[float] = None
    fcp_s: Optional[float] = None
    ttfb_s: Optional[float] = None
    total_js_kb: Optional[float] = None
    total_image_kb: Optional[float] = None
    request_count: Optional[int] = None
    render_blocking_count: Optional[int] = None
    # Two independent external scores, reported side by side
    lighthouse_score: Optional[int] = None
    estimated_score: Optional[int] = None


@dataclass
class SEOSignals:
    """On-page SEO signals."""
    title: str = ""
    meta_description: str = ""
    h1_count: int = 0
    image_count: int = 0
    images_missing_alt: int = 0
    internal_links: int = 0
    external_links: int = 0
    indexable: bool = True
    canonical_present: bool = False
    https: bool = True

    @property
    def title_length(self) -> int:
        return len(self.title.strip())

    @property
    def meta_description_length(self) -> int:
        return len(self.meta_description.strip())


@dataclass
class UXSignals:
    """Accessibility and usability signals."""
    violations: List[AxeViolation] = field(default_factory=list)
    cta_above_fold: int = 0
    dom_node_count: Optional[int] = None
    viewport_meta: bool = True
    touch_target_violations: int = 0
    small_text_violations: int = 0

    def count_by_impact(self) -> Dict[str, int]:
        counts = {"critical": 0, "serious": 0, "moderate": 0, "minor": 0}
        for violation in self.violations:
            counts[violation.impact] = counts.get(violation.impact, 0) + 1
        return counts

    def alt_text_violations(self) -> List[AxeViolation]:
        return [v for v in self.violations if v.id in ALT_TEXT_RULES]


@dataclass
class ContentSignals:
    """Content depth and readability signals."""
    text: str = ""
    word_count: int = 0
    heading_count: int = 0
    flesch_reading_ease: Optional[float] = None
    keywords: List[str] = field(default_factory=list)


@dataclass
class PageSignals:
    """Everything a collector produced for one page."""
    url: str
    final_url: str = ""
    performance: PerformanceSignals = field(default_factory=PerformanceSignals)
    seo: SEOSignals = field(default_factory=SEOSignals)
    ux: UXSignals = field(default_factory=UXSignals)
    content: ContentSignals = field(default_factory=ContentSignals)
    html: Optional[str] = None
    screenshot: Optional[bytes] = None
