"""
Summarization

Hosted DistilBART CNN summaries with an extractive fallback.
"""

import asyncio
import logging
from typing import Optional

from src.integrations.huggingface import HuggingFaceClient, HuggingFaceError

from .readability import split_sentences

logger = logging.getLogger(__name__)

MAX_CHARS = 8000
MIN_WORDS = 50
SHORT_TEXT_CHARS = 300


def leading_sentences(text: str, count: int, min_length: int = 0) -> str:
    """First `count` sentences of text, each longer than min_length."""
    sentences = [s for s in split_sentences(text) if len(s) > min_length]
    if not sentences:
        return text[:SHORT_TEXT_CHARS].strip()
    return ". ".join(sentences[:count]) + "."


def extractive_summary(text: str) -> str:
    """First three substantial sentences."""
    return leading_sentences(text, 3, min_length=20)


async def summarize(
    text: str,
    client: Optional[HuggingFaceClient] = None,
    timeout: float = 15.0,
) -> str:
    """
    Summarize page text.

    Args:
        text: Page text (truncated to 8000 characters)
        client: Hugging Face client; None uses the extractive fallback
        timeout: Inference timeout in seconds

    Returns:
        Summary text. Texts under 50 words are returned as their first
        300 characters without calling any model.
    """
    if len(text.split()) < MIN_WORDS:
        return text[:SHORT_TEXT_CHARS].strip()

    if client is None:
        return extractive_summary(text)

    try:
        data = await asyncio.wait_for(
            client.infer(
                HuggingFaceClient.SUMMARY_MODEL,
                text[:MAX_CHARS],
                parameters={"max_length": 150, "min_length": 40, "do_sample": False},
            ),
            timeout=timeout,
        )
        summary = data[0]["summary_text"].strip()
        if not summary:
            raise ValueError("Empty summary")
        return summary
    except (HuggingFaceError, asyncio.TimeoutError, KeyError, IndexError, TypeError, ValueError) as e:
        logger.warning(f"Summarization failed, using extractive summary: {e}")
        return extractive_summary(text)
