"""
Strategic Insight Generator

Turns the aggregate report into an executive summary and prioritized
actions with one completion call. Falls back to rule-based insights when
no provider is configured or the answer cannot be parsed.
"""

import json
import logging
from typing import Any, Dict, List, Mapping, Optional

from src.models import AggregateReport, ModuleResult, PageInfo
from src.output.parser import extract_structured

from .client import CompletionClient

logger = logging.getLogger(__name__)


INSIGHT_SYSTEM_PROMPT = """You are a senior web performance and growth consultant.
You write short, concrete, prioritized recommendations grounded in the audit data you are given.
Always answer with a single JSON object and nothing else."""

INSIGHT_USER_PROMPT = """Analyze this website audit and produce strategic insights.

## Website: {url}
Title: {title}

## Health Score: {health_score}/100 (overall risk: {overall_risk})

## Module Scores
{module_scores}

## Failing Metrics
{failing_metrics}

## Top Issues
{top_issues}

Return JSON with exactly these keys:
{{
  "executive_summary": "2-3 sentences",
  "top_priorities": [{{"title": "...", "module": "...", "impact": "high|medium|low", "reason": "..."}}],
  "quick_wins": ["..."],
  "long_term_goals": ["..."]
}}"""

REQUIRED_KEYS = ("executive_summary", "top_priorities", "quick_wins", "long_term_goals")


def failing_metrics(modules: Mapping[str, ModuleResult]) -> List[str]:
    """Headline metrics outside their good range."""
    failing = []
    perf = modules.get("performance")
    if perf:
        vitals = perf.details.get("core_web_vitals", {})
        if (vitals.get("lcp_s") or 0) > 2.5:
            failing.append(f"LCP {vitals['lcp_s']}s (> 2.5s)")
        if (vitals.get("cls") or 0) > 0.1:
            failing.append(f"CLS {vitals['cls']} (> 0.1)")
        if (vitals.get("tbt_ms") or 0) > 200:
            failing.append(f"TBT {vitals['tbt_ms']}ms (> 200ms)")
    seo = modules.get("seo")
    if seo and seo.details.get("h1_count", 1) != 1:
        failing.append(f"H1 count {seo.details.get('h1_count')} (expected 1)")
    return failing


class InsightGenerator:
    """Generates strategic insights from an audit."""

    def __init__(self, client: CompletionClient):
        self.client = client

    async def generate(
        self,
        page: PageInfo,
        modules: Mapping[str, ModuleResult],
        aggregate: AggregateReport,
    ) -> Dict[str, Any]:
        """
        Generate insights.

        Args:
            page: Page metadata
            modules: Module results
            aggregate: Aggregate report

        Returns:
            Dict with executive_summary, top_priorities, quick_wins,
            long_term_goals, plus source ("ai", "fallback" or "disabled")
        """
        if not self.client.has_live_provider:
            result = self.fallback_insights(modules, aggregate)
            result["source"] = "disabled"
            return result

        prompt = INSIGHT_USER_PROMPT.format(
            url=page.url,
            title=page.title or "(none)",
            health_score=aggregate.health_score,
            overall_risk=aggregate.overall_risk.value,
            module_scores=json.dumps(aggregate.module_scores, indent=2),
            failing_metrics="\n".join(f"- {m}" for m in failing_metrics(modules)) or "- none",
            top_issues=self._format_top_issues(modules),
        )

        text = await self.client.complete(prompt, INSIGHT_SYSTEM_PROMPT)
        parsed = extract_structured(
            text,
            required_keys=REQUIRED_KEYS,
            fallback=lambda: self.fallback_insights(modules, aggregate),
        )
        result = parsed.data
        result["source"] = "ai" if parsed.success else "fallback"
        if not parsed.success:
            logger.warning(f"Insight generation fell back: {parsed.errors}")
        return result

    @staticmethod
    def _format_top_issues(modules: Mapping[str, ModuleResult], limit: int = 8) -> str:
        severity_rank = {"critical": 0, "high": 1, "medium": 2, "low": 3}
        issues = [
            (name, issue) for name, result in modules.items() for issue in result.issues
        ]
        issues.sort(key=lambda pair: severity_rank[pair[1].severity.value])
        lines = [
            f"- [{issue.severity.value}] {name}: {issue.description}"
            for name, issue in issues[:limit]
        ]
        return "\n".join(lines) or "- none"

    @staticmethod
    def fallback_insights(
        modules: Mapping[str, ModuleResult],
        aggregate: AggregateReport,
    ) -> Dict[str, Any]:
        """Rule-based insights from scores and fixes."""
        weakest: Optional[str] = aggregate.weakest_module
        summary = (
            f"Overall health score is {aggregate.health_score}/100 with "
            f"{aggregate.overall_risk.value} risk."
        )
        if weakest:
            summary += f" The weakest area is {weakest} ({aggregate.module_scores[weakest]}/100)."

        fixes = sorted(
            ((name, fix) for name, result in modules.items() for fix in result.fixes),
            key=lambda pair: (pair[1].priority, -pair[1].impact_pct),
        )
        priorities = [
            {
                "title": fix.title,
                "module": name,
                "impact": "high" if fix.impact_pct >= 15 else "medium" if fix.impact_pct >= 8 else "low",
                "reason": fix.description,
            }
            for name, fix in fixes[:3]
        ]
        quick_wins = [
            fix.title for _, fix in fixes if fix.effort_hours is not None and fix.effort_hours <= 1
        ][:5]

        return {
            "executive_summary": summary,
            "top_priorities": priorities,
            "quick_wins": quick_wins,
            "long_term_goals": [
                f"Raise the {name} score above 80"
                for name, score in sorted(aggregate.module_scores.items(), key=lambda i: i[1])
                if score < 80
            ],
        }
