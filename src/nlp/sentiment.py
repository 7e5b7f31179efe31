"""
Sentiment Analysis

Hosted DistilBERT SST-2 classification with a word-list fallback.
"""

import asyncio
import logging
import re
from typing import Any, Dict, Optional

from src.integrations.huggingface import HuggingFaceClient, HuggingFaceError

logger = logging.getLogger(__name__)

MAX_CHARS = 2000

POSITIVE_WORDS = {
    "good", "great", "excellent", "amazing", "best", "love", "easy", "fast",
    "reliable", "trusted", "quality", "happy", "perfect", "awesome", "secure",
    "innovative", "powerful", "simple", "free", "save", "success",
}

NEGATIVE_WORDS = {
    "bad", "poor", "terrible", "worst", "hate", "slow", "difficult", "broken",
    "expensive", "problem", "error", "fail", "failed", "risk", "complicated",
    "confusing", "unfortunately", "issue", "scam", "spam",
}


def neutral_sentiment() -> Dict[str, Any]:
    return {"label": "NEUTRAL", "score": 0.5, "confidence": 50, "source": "default"}


def rule_based_sentiment(text: str) -> Dict[str, Any]:
    """
    Count positive and negative words.

    Returns:
        Dict with label (POSITIVE/NEGATIVE/NEUTRAL), score in [0, 1]
        and confidence as a percentage
    """
    words = re.findall(r"[a-z']+", text.lower())
    positive = sum(1 for w in words if w in POSITIVE_WORDS)
    negative = sum(1 for w in words if w in NEGATIVE_WORDS)
    total = positive + negative

    if total == 0:
        result = neutral_sentiment()
        result["source"] = "rules"
        return result

    score = positive / total
    if score > 0.6:
        label = "POSITIVE"
    elif score < 0.4:
        label = "NEGATIVE"
    else:
        label = "NEUTRAL"
    confidence = round(abs(score - 0.5) * 200) if label != "NEUTRAL" else 50

    return {
        "label": label,
        "score": round(score, 3),
        "confidence": confidence,
        "source": "rules",
    }


async def analyze_sentiment(
    text: str,
    client: Optional[HuggingFaceClient] = None,
    timeout: float = 10.0,
) -> Dict[str, Any]:
    """
    Classify overall sentiment of text.

    Args:
        text: Page text (truncated to 2000 characters)
        client: Hugging Face client; None uses the word-list fallback
        timeout: Inference timeout in seconds

    Returns:
        Dict with label, score, confidence and source
    """
    if client is None:
        return rule_based_sentiment(text)

    try:
        data = await asyncio.wait_for(
            client.infer(HuggingFaceClient.SENTIMENT_MODEL, text[:MAX_CHARS]),
            timeout=timeout,
        )
        # Response shape: [[{"label": "POSITIVE", "score": 0.99}, ...]]
        candidates = data[0] if data and isinstance(data[0], list) else data
        best = max(candidates, key=lambda c: c["score"])
        return {
            "label": best["label"].upper(),
            "score": round(float(best["score"]), 3),
            "confidence": round(float(best["score"]) * 100),
            "source": "huggingface",
        }
    except (HuggingFaceError, asyncio.TimeoutError, KeyError, IndexError, TypeError, ValueError) as e:
        logger.warning(f"Sentiment inference failed, using rules: {e}")
        return rule_based_sentiment(text)
