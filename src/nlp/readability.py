"""
Readability Metrics

Local, synchronous text statistics: Flesch reading ease and the
"advanced" readability breakdown (sentence length, complex words,
passive voice, jargon, questions, paragraphs).
"""

import re
from typing import Any, Dict, List

MIN_TEXT_LENGTH = 20

PASSIVE_PATTERNS = [
    re.compile(r"\b(is|are|was|were|be|been|being)\s+\w+ed\b", re.IGNORECASE),
    re.compile(r"\b(is|are|was|were|be|been|being)\s+\w+en\b", re.IGNORECASE),
    re.compile(r"\b(has|have|had)\s+been\s+\w+ed\b", re.IGNORECASE),
]

_SENTENCE_SPLIT = re.compile(r"[.!?]+")
_PARAGRAPH_SPLIT = re.compile(r"\n\n+")
_WORD = re.compile(r"[A-Za-z']+")


def split_sentences(text: str) -> List[str]:
    """Split text into non-empty sentences."""
    return [s.strip() for s in _SENTENCE_SPLIT.split(text) if s.strip()]


def words_of(text: str) -> List[str]:
    """Alphabetic words in text."""
    return _WORD.findall(text)


def count_syllables(word: str) -> int:
    """
    Approximate English syllable count.

    Counts vowel groups, drops a trailing silent 'e' and never returns
    less than one for a non-empty word.
    """
    word = word.lower().strip("'")
    if not word:
        return 0
    if len(word) <= 3:
        return 1
    word = re.sub(r"(?:[^laeiouy]es|ed|[^laeiouy]e)$", "", word)
    word = re.sub(r"^y", "", word)
    groups = re.findall(r"[aeiouy]{1,2}", word)
    return max(1, len(groups))


def flesch_reading_ease(text: str) -> float:
    """
    Flesch reading ease (higher is easier, typical web copy 50-70).

    Returns 0.0 for text without sentences or words.
    """
    sentences = split_sentences(text)
    words = words_of(text)
    if not sentences or not words:
        return 0.0
    syllables = sum(count_syllables(w) for w in words)
    score = 206.835 - 1.015 * (len(words) / len(sentences)) - 84.6 * (syllables / len(words))
    return round(max(0.0, min(100.0, score)), 1)


def empty_readability() -> Dict[str, Any]:
    return {
        "avg_sentence_length": 0.0,
        "complex_word_ratio": 0.0,
        "passive_voice_ratio": 0.0,
        "jargon_density": 0.0,
        "question_count": 0,
        "paragraph_count": 0,
        "sentence_count": 0,
        "word_count": 0,
    }


def advanced_readability(text: str) -> Dict[str, Any]:
    """
    Detailed readability breakdown.

    Args:
        text: Page text

    Returns:
        Dict with avg_sentence_length, complex_word_ratio (words of three
        or more syllables), passive_voice_ratio, jargon_density (words
        longer than ten characters), question_count and paragraph_count.
        All zero for text shorter than 20 characters.
    """
    if not text or len(text.strip()) < MIN_TEXT_LENGTH:
        return empty_readability()

    sentences = split_sentences(text)
    words = words_of(text)
    sentence_count = max(1, len(sentences))
    word_count = len(words)

    complex_words = sum(1 for w in words if count_syllables(w) >= 3)
    jargon_words = sum(1 for w in words if len(w) > 10)
    passive_sentences = sum(
        1 for s in sentences if any(p.search(s) for p in PASSIVE_PATTERNS)
    )
    paragraphs = [p for p in _PARAGRAPH_SPLIT.split(text) if p.strip()]

    return {
        "avg_sentence_length": round(word_count / sentence_count, 1),
        "complex_word_ratio": round(complex_words / word_count, 3) if word_count else 0.0,
        "passive_voice_ratio": round(passive_sentences / sentence_count, 3),
        "jargon_density": round(jargon_words / word_count, 3) if word_count else 0.0,
        "question_count": text.count("?"),
        "paragraph_count": len(paragraphs),
        "sentence_count": len(sentences),
        "word_count": word_count,
    }
