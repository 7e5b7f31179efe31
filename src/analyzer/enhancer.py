"""
AI Module Enhancer

Asks the completion chain for extra issues and fixes per module and
returns new ModuleResults with the AI items appended. Scores, risk levels
and factors are never changed by the AI pass.
"""

import asyncio
import json
import logging
from dataclasses import replace
from typing import Dict, List, Mapping

from src.models import Fix, Issue, ModuleResult
from src.output.parser import extract_structured

from .client import CompletionClient

logger = logging.getLogger(__name__)

MAX_AI_ITEMS = 3

ENHANCER_SYSTEM_PROMPT = """You are a technical website auditor.
Given automated audit findings for one area of a website, you add the most valuable missing issues and fixes.
Answer with a single JSON object and nothing else."""

ENHANCER_USER_PROMPT = """Website: {url}
Audit area: {module}
Score: {score}/100 (risk: {risk})

Automated findings:
{factors}

Existing issues:
{issues}

Add up to {limit} additional issues and matching fixes that the automated checks missed.
Return JSON:
{{
  "issues": [{{"id": "...", "severity": "critical|high|medium|low", "category": "...", "description": "..."}}],
  "fixes": [{{"id": "...", "title": "...", "description": "...", "priority": 1, "impact_pct": 10, "effort_hours": 2, "issue_id": "..."}}]
}}"""


class ModuleEnhancer:
    """Adds AI-generated issues and fixes to module results."""

    def __init__(self, client: CompletionClient):
        self.client = client

    async def enhance(self, url: str, results: Mapping[str, ModuleResult]) -> Dict[str, ModuleResult]:
        """
        Enhance all modules in parallel.

        Args:
            url: Audited URL
            results: Module name -> ModuleResult

        Returns:
            Module name -> new ModuleResult (unchanged when enhancement fails
            or no provider is configured)
        """
        if not self.client.has_live_provider:
            logger.info("No completion provider configured, skipping AI enhancement")
            return dict(results)

        names = list(results)
        outcomes = await asyncio.gather(
            *(self.enhance_module(url, results[name]) for name in names),
            return_exceptions=True,
        )

        enhanced: Dict[str, ModuleResult] = {}
        for name, outcome in zip(names, outcomes):
            if isinstance(outcome, Exception):
                logger.warning(f"AI enhancement failed for {name}: {outcome}")
                enhanced[name] = results[name]
            else:
                enhanced[name] = outcome
        return enhanced

    async def enhance_module(self, url: str, result: ModuleResult) -> ModuleResult:
        prompt = ENHANCER_USER_PROMPT.format(
            url=url,
            module=result.module,
            score=result.score,
            risk=result.risk_level.value,
            factors=json.dumps([f.to_dict() for f in result.factors[:8]], indent=2),
            issues="\n".join(f"- {i.description}" for i in result.issues[:8]) or "- none",
            limit=MAX_AI_ITEMS,
        )
        text = await self.client.complete(prompt, ENHANCER_SYSTEM_PROMPT)
        parsed = extract_structured(
            text,
            required_keys=("issues", "fixes"),
            fallback={"issues": [], "fixes": []},
        )
        if not parsed.success:
            return result

        issues = self._items(parsed.data.get("issues"), Issue.from_ai, result.module)
        fixes = self._items(parsed.data.get("fixes"), Fix.from_ai, result.module)
        if not issues and not fixes:
            return result

        return replace(
            result,
            issues=list(result.issues) + issues,
            fixes=list(result.fixes) + fixes,
            details={**result.details, "ai_enhanced": True},
        )

    @staticmethod
    def _items(raw, factory, module: str) -> List:
        if not isinstance(raw, list):
            return []
        return [
            factory(item, index, module)
            for index, item in enumerate(raw[:MAX_AI_ITEMS])
            if isinstance(item, dict)
        ]
