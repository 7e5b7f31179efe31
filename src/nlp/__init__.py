"""
NLP Module

Text analysis for page content.

Components:
- NLPService: Cached orchestrator running the tasks below in parallel
- analyze_sentiment / extract_entities / summarize / classify_topics:
  Hugging Face backed tasks, each with a local fallback
- extract_keywords / extract_phrases: Local keyword relevance
- advanced_readability / flesch_reading_ease: Local readability metrics
"""

from .readability import advanced_readability, count_syllables, flesch_reading_ease
from .keywords import extract_keywords, extract_phrases
from .sentiment import analyze_sentiment
from .entities import extract_entities
from .summarizer import summarize
from .topics import classify_topics
from .service import NLPService, fingerprint

__all__ = [
    "NLPService",
    "fingerprint",
    "analyze_sentiment",
    "extract_entities",
    "summarize",
    "classify_topics",
    "extract_keywords",
    "extract_phrases",
    "advanced_readability",
    "count_syllables",
    "flesch_reading_ease",
]
