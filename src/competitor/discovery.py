"""
Competitor Discovery

Asks the completion chain for three direct competitors of a page and
falls back to industry buckets when the answer is unusable.
"""

import logging
import re
from dataclasses import dataclass
from typing import Any, Dict, List

from src.analyzer.client import CompletionClient
from src.output.parser import extract_structured
from src.utils.urls import extract_domain

logger = logging.getLogger(__name__)

MAX_COMPETITORS = 3
MIN_AI_COMPETITORS = 2

FALLBACK_REASON = "Fallback competitor (AI discovery unavailable)"


# =============================================================================
# PROMPTS
# =============================================================================

DISCOVERY_SYSTEM_PROMPT = """You are an expert competitive analyst.
You identify the direct business competitors of a website: companies that sell the same kind of product or service to the same customers.
Answer with a single JSON object and nothing else."""

DISCOVERY_USER_PROMPT = """Identify exactly 3 direct competitors for this website.

## Website
URL: {url}
Domain: {domain}
Title: {title}
Description: {description}
Keywords: {keywords}

Rules:
- Return real, currently operating websites (bare domains, e.g. "example.com")
- Do not return {domain} itself, marketplaces or social networks unless they are true rivals

Return JSON:
{{
  "industry": "short industry label",
  "competitors": [
    {{"domain": "competitor.com", "reason": "why it competes"}}
  ]
}}"""


# =============================================================================
# FALLBACK BUCKETS
# =============================================================================

FALLBACK_BUCKETS: Dict[str, List[str]] = {
    "ecommerce": ["amazon.com", "flipkart.com", "myntra.com"],
    "food-delivery": ["swiggy.com", "zomato.com", "ubereats.com"],
    "furniture": ["urbanladder.com", "pepperfry.com", "ikea.com"],
    "saas": ["salesforce.com", "hubspot.com", "zendesk.com"],
    "default": ["example1.com", "example2.com", "example3.com"],
}

# Checked in order against the domain
INDUSTRY_KEYWORDS = [
    ("food-delivery", ("food", "restaurant")),
    ("ecommerce", ("shop", "store")),
    ("furniture", ("furniture", "home")),
    ("saas", ("app", "cloud", "soft", "saas")),
]


@dataclass
class DiscoveredCompetitor:
    """A competitor found by discovery."""
    domain: str
    reason: str
    discovery_method: str  # "ai" or "fallback"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "domain": self.domain,
            "reason": self.reason,
            "discovery_method": self.discovery_method,
        }


@dataclass
class DiscoveryResult:
    """Outcome of competitor discovery."""
    industry: str
    competitors: List[DiscoveredCompetitor]
    method: str  # "ai" or "fallback"


def detect_industry(domain: str) -> str:
    """Pick a fallback bucket from keywords in the domain."""
    domain = domain.lower()
    for industry, keywords in INDUSTRY_KEYWORDS:
        if any(keyword in domain for keyword in keywords):
            return industry
    return "default"


def fallback_competitors(domain: str) -> DiscoveryResult:
    """Static competitors for the detected industry bucket."""
    industry = detect_industry(domain)
    competitors = [
        DiscoveredCompetitor(domain=d, reason=FALLBACK_REASON, discovery_method="fallback")
        for d in FALLBACK_BUCKETS[industry]
        if d != domain
    ]
    return DiscoveryResult(industry=industry, competitors=competitors[:MAX_COMPETITORS], method="fallback")


def _clean_domain(value: Any) -> str:
    if not isinstance(value, str):
        return ""
    value = value.strip().lower()
    if not value:
        return ""
    domain = extract_domain(value)
    return domain if re.match(r"^[a-z0-9.-]+\.[a-z]{2,}$", domain) else ""


class CompetitorDiscovery:
    """AI-first competitor discovery with industry fallback."""

    def __init__(self, client: CompletionClient, max_competitors: int = MAX_COMPETITORS):
        self.client = client
        self.max_competitors = max_competitors

    async def discover(self, user_report: Dict[str, Any]) -> DiscoveryResult:
        """
        Discover competitors for a stored user report.

        Args:
            user_report: AuditReport.to_dict() of the user's page

        Returns:
            DiscoveryResult with up to three competitors. AI results are
            used when at least two valid domains come back.
        """
        url = user_report.get("url", "")
        domain = extract_domain(url)
        page = user_report.get("page") or {}
        title = page.get("title", "")
        description = page.get("meta_description", "")

        prompt = DISCOVERY_USER_PROMPT.format(
            url=url,
            domain=domain,
            title=title or "(none)",
            description=description or "(none)",
            keywords=", ".join(page.get("keywords", [])[:10]) or "(none)",
        )
        text = await self.client.complete(prompt, DISCOVERY_SYSTEM_PROMPT)
        parsed = extract_structured(text, required_keys=("competitors",))

        competitors: List[DiscoveredCompetitor] = []
        if parsed.success and isinstance(parsed.data.get("competitors"), list):
            seen = {domain}
            for item in parsed.data["competitors"]:
                if not isinstance(item, dict):
                    continue
                candidate = _clean_domain(item.get("domain"))
                if not candidate or candidate in seen:
                    continue
                seen.add(candidate)
                competitors.append(DiscoveredCompetitor(
                    domain=candidate,
                    reason=str(item.get("reason") or "Identified by AI analysis"),
                    discovery_method="ai",
                ))

        if len(competitors) >= MIN_AI_COMPETITORS:
            industry = str(parsed.data.get("industry") or "unknown")
            logger.info(f"AI discovered {len(competitors)} competitors for {domain} ({industry})")
            return DiscoveryResult(
                industry=industry,
                competitors=competitors[:self.max_competitors],
                method="ai",
            )

        result = fallback_competitors(domain)
        logger.warning(
            f"AI discovery for {domain} returned {len(competitors)} usable competitors, "
            f"using {result.industry} fallback"
        )
        return result
