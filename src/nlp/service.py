"""
NLP Orchestrator

Runs the AI-backed NLP tasks in parallel, adds local keyword, phrase and
readability analysis, and caches the combined result by a fingerprint of
the text.

Each AI task settles independently: a task that raises is replaced by
its neutral default and the others are kept.
"""

import asyncio
import logging
import re
from datetime import datetime
from typing import Any, Dict, Optional

from src.integrations.huggingface import HuggingFaceClient
from src.persistence.cache import TTLCache

from .entities import extract_entities
from .keywords import extract_keywords, extract_phrases
from .readability import MIN_TEXT_LENGTH, advanced_readability, empty_readability
from .sentiment import analyze_sentiment, neutral_sentiment
from .summarizer import leading_sentences, summarize
from .topics import classify_topics

logger = logging.getLogger(__name__)

FINGERPRINT_CHARS = 200

_WHITESPACE = re.compile(r"\s+")


def fingerprint(text: str) -> str:
    """First 200 characters of text with whitespace collapsed."""
    return _WHITESPACE.sub(" ", text[:FINGERPRINT_CHARS]).strip()


def empty_result() -> Dict[str, Any]:
    """Result for text too short to analyze."""
    return {
        "sentiment": neutral_sentiment(),
        "entities": [],
        "summary": "",
        "topics": [],
        "keywords": [],
        "phrases": [],
        "readability": empty_readability(),
        "analyzed": False,
    }


class NLPService:
    """
    Cached, parallel NLP analysis.

    Usage:
        service = NLPService(hf_client, cache=TTLCache(3600, 50))
        result = await service.analyze(page_text)
    """

    TASK_NAMES = ("sentiment", "entities", "summary", "topics")

    def __init__(
        self,
        client: Optional[HuggingFaceClient] = None,
        cache: Optional[TTLCache] = None,
        timeout: float = 10.0,
        long_timeout: float = 15.0,
    ):
        """
        Initialize NLP service.

        Args:
            client: Hugging Face client; None runs every task on its local fallback
            cache: Result cache (a private 1 h / 50 entry cache when omitted)
            timeout: Timeout for sentiment and NER calls
            long_timeout: Timeout for summarization and topic calls
        """
        self.client = client
        self.cache = cache if cache is not None else TTLCache(ttl_seconds=3600, max_entries=50)
        self.timeout = timeout
        self.long_timeout = long_timeout

    async def analyze(self, text: str) -> Dict[str, Any]:
        """
        Analyze text, serving repeat requests from the cache.

        Args:
            text: Page text

        Returns:
            Dict with sentiment, entities, summary, topics, keywords,
            phrases and readability. A cache hit returns the stored
            object itself.
        """
        if not text or len(text.strip()) < MIN_TEXT_LENGTH:
            return empty_result()

        key = fingerprint(text)
        cached = self.cache.get(key)
        if cached is not None:
            logger.debug(f"NLP cache hit for '{key[:40]}'")
            return cached

        started = datetime.utcnow()
        results = await asyncio.gather(
            analyze_sentiment(text, self.client, timeout=self.timeout),
            extract_entities(text, self.client, timeout=self.timeout),
            summarize(text, self.client, timeout=self.long_timeout),
            classify_topics(text, self.client, timeout=self.long_timeout),
            return_exceptions=True,
        )

        defaults = {
            "sentiment": neutral_sentiment,
            "entities": list,
            "summary": lambda: leading_sentences(text, 2),
            "topics": list,
        }

        result: Dict[str, Any] = {}
        for name, value in zip(self.TASK_NAMES, results):
            if isinstance(value, Exception):
                logger.warning(f"NLP task {name} failed: {value}")
                value = defaults[name]()
            result[name] = value

        result["keywords"] = extract_keywords(text)
        result["phrases"] = extract_phrases(text)
        result["readability"] = advanced_readability(text)
        result["analyzed"] = True

        elapsed = (datetime.utcnow() - started).total_seconds()
        logger.info(f"NLP analysis finished in {elapsed:.2f}s")

        self.cache.set(key, result)
        return result

    def get_stats(self) -> Dict[str, Any]:
        return {
            "hugging_face_enabled": self.client is not None,
            "cache": self.cache.get_stats(),
        }
