"""
Comparative Analysis

Compares the user's audit against competitor audits with one completion
call. When the answer is unusable, a rule-based comparison ranks every
site by health score.
"""

import logging
from typing import Any, Dict, List

from src.analyzer.client import CompletionClient
from src.models import MODULE_NAMES
from src.output.parser import extract_structured
from src.scoring.helpers import round_half_up
from src.utils.urls import extract_domain

logger = logging.getLogger(__name__)

REQUIRED_KEYS = ("overall_ranking", "your_competitive_position")

# Category gap (points) treated as a tie
NEUTRAL_MARGIN = 5

COMPARISON_SYSTEM_PROMPT = """You are a competitive intelligence analyst for websites.
You compare audit scores and explain where a site wins, where it loses and what to do next.
Answer with a single JSON object and nothing else."""

COMPARISON_USER_PROMPT = """Compare this website against its competitors.

## Your Website
{user_block}

## Competitors
{competitor_blocks}

Scores are 0-100 (higher is better) for health, performance, seo, ux and content.

Return JSON:
{{
  "overall_ranking": [{{"domain": "...", "rank": 1, "score": 0}}],
  "your_competitive_position": {{"rank": 1, "score": 0, "percentile": "Top N%", "summary": "..."}},
  "category_comparison": {{
    "performance": {{"your_score": 0, "competitor_average": 0, "status": "winning|losing|neutral"}}
  }},
  "strengths": ["..."],
  "weaknesses": ["..."],
  "quick_wins": ["..."],
  "strategic_gaps": ["..."],
  "competitive_opportunities": ["..."]
}}"""


def site_scores(report: Dict[str, Any]) -> Dict[str, Any]:
    """Domain, health score and module scores of a stored report."""
    aggregate = report.get("aggregate") or {}
    modules = report.get("modules") or {}
    scores = {
        name: (modules.get(name) or {}).get("score")
        for name in MODULE_NAMES
    }
    return {
        "domain": extract_domain(report.get("url", "")),
        "health": aggregate.get("health_score", 0) or 0,
        **scores,
    }


def _format_site(scores: Dict[str, Any]) -> str:
    return (
        f"Domain: {scores['domain']}\n"
        f"Health: {scores['health']}\n"
        + "\n".join(f"{name}: {scores.get(name)}" for name in MODULE_NAMES)
    )


def category_comparison(user: Dict[str, Any], competitors: List[Dict[str, Any]]) -> Dict[str, Any]:
    """Per-module user score against the competitor average."""
    categories: Dict[str, Any] = {}
    for name in MODULE_NAMES:
        theirs = [c[name] for c in competitors if c.get(name) is not None]
        mine = user.get(name)
        if mine is None or not theirs:
            continue
        average = round(sum(theirs) / len(theirs), 1)
        if mine > average + NEUTRAL_MARGIN:
            status = "winning"
        elif mine < average - NEUTRAL_MARGIN:
            status = "losing"
        else:
            status = "neutral"
        categories[name] = {"your_score": mine, "competitor_average": average, "status": status}
    return categories


def fallback_comparison(user: Dict[str, Any], competitors: List[Dict[str, Any]]) -> Dict[str, Any]:
    """
    Rule-based comparison.

    Ranks all sites by health score (ties keep the user first), then
    reports the user's rank and "Top N%" percentile.
    """
    sites = [dict(user, is_user=True)] + [dict(c, is_user=False) for c in competitors]
    ranked = sorted(sites, key=lambda s: s["health"], reverse=True)
    total = len(ranked)

    overall_ranking = [
        {"domain": s["domain"], "rank": index + 1, "score": s["health"], "is_user": s["is_user"]}
        for index, s in enumerate(ranked)
    ]
    user_rank = next(entry["rank"] for entry in overall_ranking if entry["is_user"])

    return {
        "overall_ranking": overall_ranking,
        "your_competitive_position": {
            "rank": user_rank,
            "score": user["health"],
            "percentile": f"Top {round_half_up(user_rank / total * 100)}%",
            "summary": f"You rank {user_rank} out of {total} websites analyzed",
        },
        "category_comparison": category_comparison(user, competitors),
        "strengths": ["Analysis completed"],
        "weaknesses": ["Detailed AI analysis unavailable"],
        "quick_wins": ["Review competitor reports for insights"],
        "strategic_gaps": [],
        "competitive_opportunities": [],
        "source": "fallback",
    }


class ComparativeAnalyzer:
    """Builds the 1-vs-N comparison."""

    def __init__(self, client: CompletionClient):
        self.client = client

    async def compare(
        self,
        user_report: Dict[str, Any],
        competitor_reports: List[Dict[str, Any]],
    ) -> Dict[str, Any]:
        """
        Compare a user report against competitor reports.

        Args:
            user_report: Stored report of the user's page
            competitor_reports: Stored competitor reports

        Returns:
            Comparison dict (AI or rule-based; "source" says which)
        """
        user = site_scores(user_report)
        competitors = [site_scores(r) for r in competitor_reports]

        prompt = COMPARISON_USER_PROMPT.format(
            user_block=_format_site(user),
            competitor_blocks="\n\n".join(
                f"### Competitor {i + 1}\n{_format_site(c)}" for i, c in enumerate(competitors)
            ),
        )
        text = await self.client.complete(prompt, COMPARISON_SYSTEM_PROMPT)
        parsed = extract_structured(
            text,
            required_keys=REQUIRED_KEYS,
            fallback=lambda: fallback_comparison(user, competitors),
        )

        if not parsed.success:
            logger.warning(f"Comparison fell back to rule-based ranking: {parsed.errors}")
            return parsed.data

        comparison = parsed.data
        comparison.setdefault("category_comparison", category_comparison(user, competitors))
        for key in ("strengths", "weaknesses", "quick_wins", "strategic_gaps", "competitive_opportunities"):
            comparison.setdefault(key, [])
        comparison["source"] = "ai"
        return comparison
