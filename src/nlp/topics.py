"""
Topic Classification

Zero-shot topic labels via BART-MNLI with a keyword-pattern fallback.
"""

import asyncio
import logging
import re
from typing import Any, Dict, List, Optional, Sequence

from src.integrations.huggingface import HuggingFaceClient, HuggingFaceError

logger = logging.getLogger(__name__)

MAX_CHARS = 3000
MIN_SCORE = 0.1
MAX_TOPICS = 5

DEFAULT_LABELS = [
    "technology",
    "business",
    "e-commerce",
    "health",
    "finance",
    "education",
    "entertainment",
    "travel",
    "food",
    "real estate",
    "marketing",
    "software",
    "news",
    "sports",
]

TOPIC_PATTERNS: Dict[str, re.Pattern] = {
    "technology": re.compile(r"\b(tech|software|digital|cloud|data|ai|app|platform)\b", re.I),
    "business": re.compile(r"\b(business|company|enterprise|service|solution|client)s?\b", re.I),
    "e-commerce": re.compile(r"\b(shop|cart|buy|order|shipping|product|price|checkout)s?\b", re.I),
    "health": re.compile(r"\b(health|medical|doctor|wellness|care|fitness|patient)s?\b", re.I),
    "finance": re.compile(r"\b(finance|bank|loan|invest|money|payment|insurance)s?\b", re.I),
    "education": re.compile(r"\b(learn|course|school|student|education|training|class)(es|s)?\b", re.I),
    "travel": re.compile(r"\b(travel|hotel|flight|trip|booking|destination|tour)s?\b", re.I),
    "food": re.compile(r"\b(food|restaurant|recipe|menu|delivery|meal|cook)s?\b", re.I),
}


def rule_based_topics(text: str) -> List[Dict[str, Any]]:
    """Score topics by keyword hits: min(0.9, 0.2 + hits × 0.08)."""
    topics = []
    for topic, pattern in TOPIC_PATTERNS.items():
        hits = len(pattern.findall(text))
        if hits:
            topics.append({"topic": topic, "score": round(min(0.9, 0.2 + hits * 0.08), 3)})
    topics.sort(key=lambda t: t["score"], reverse=True)
    return topics[:MAX_TOPICS]


async def classify_topics(
    text: str,
    client: Optional[HuggingFaceClient] = None,
    labels: Sequence[str] = DEFAULT_LABELS,
    timeout: float = 15.0,
) -> List[Dict[str, Any]]:
    """
    Classify text into topics.

    Args:
        text: Page text (truncated to 3000 characters)
        client: Hugging Face client; None uses keyword patterns
        labels: Candidate labels
        timeout: Inference timeout in seconds

    Returns:
        Up to 5 topics with score above 0.1, best first
    """
    if client is None:
        return rule_based_topics(text)

    try:
        data = await asyncio.wait_for(
            client.infer(
                HuggingFaceClient.ZERO_SHOT_MODEL,
                text[:MAX_CHARS],
                parameters={"candidate_labels": list(labels), "multi_label": True},
            ),
            timeout=timeout,
        )
        if isinstance(data, list):
            # Router returns [{"label": ..., "score": ...}, ...]
            pairs = [(item["label"], float(item["score"])) for item in data]
        else:
            pairs = list(zip(data["labels"], map(float, data["scores"])))
        topics = [
            {"topic": label, "score": round(score, 3)}
            for label, score in sorted(pairs, key=lambda p: p[1], reverse=True)
            if score > MIN_SCORE
        ]
        return topics[:MAX_TOPICS]
    except (HuggingFaceError, asyncio.TimeoutError, KeyError, TypeError, ValueError) as e:
        logger.warning(f"Topic classification failed, using keyword patterns: {e}")
        return rule_based_topics(text)
