"""
Keyword and Phrase Extraction

Local TF-IDF style keyword relevance and repeated bigram phrases.
"""

import math
import re
from collections import Counter
from typing import Any, Dict, List

from .readability import split_sentences

MAX_KEYWORDS = 15
MAX_PHRASES = 10
MIN_PHRASE_COUNT = 2

STOP_WORDS = {
    "the", "and", "for", "are", "but", "not", "you", "all", "any", "can", "had",
    "her", "was", "one", "our", "out", "has", "have", "his", "how", "its", "may",
    "new", "now", "old", "see", "two", "way", "who", "did", "get", "let", "put",
    "say", "she", "too", "use", "that", "with", "this", "from", "they", "will",
    "would", "there", "their", "what", "about", "which", "when", "make", "like",
    "time", "just", "know", "take", "into", "your", "some", "could", "them",
    "than", "then", "look", "only", "come", "over", "also", "back", "after",
    "work", "first", "well", "even", "want", "because", "these", "give", "most",
    "been", "were", "more", "very", "here", "where", "much", "such", "each",
    "other", "should", "those", "does", "being", "while", "both", "same",
}

_TOKEN = re.compile(r"[a-z][a-z0-9'-]*")


def tokenize(text: str) -> List[str]:
    """Lowercase content words: longer than 3 characters, not stop words."""
    return [
        w for w in _TOKEN.findall(text.lower())
        if len(w) > 3 and w not in STOP_WORDS and not w.isdigit()
    ]


def extract_keywords(text: str, limit: int = MAX_KEYWORDS) -> List[Dict[str, Any]]:
    """
    Rank keywords by a blend of TF-IDF and raw frequency.

    Sentences act as documents for the IDF term.
    relevance = round(tfidf × 0.7 + (count / total × 100) × 0.3, 2)

    Returns:
        Keywords as dicts with keyword, count and relevance, best first
    """
    words = tokenize(text)
    if not words:
        return []

    counts = Counter(words)
    total = len(words)
    sentences = [set(tokenize(s)) for s in split_sentences(text)] or [set(words)]
    doc_count = len(sentences)

    keywords = []
    for word, count in counts.items():
        containing = sum(1 for s in sentences if word in s)
        idf = math.log((doc_count + 1) / (containing + 1)) + 1
        tfidf = (count / total) * idf * 100
        relevance = round(tfidf * 0.7 + (count / total * 100) * 0.3, 2)
        keywords.append({"keyword": word, "count": count, "relevance": relevance})

    keywords.sort(key=lambda k: (k["relevance"], k["count"]), reverse=True)
    return keywords[:limit]


def extract_phrases(text: str, limit: int = MAX_PHRASES) -> List[Dict[str, Any]]:
    """
    Bigrams of content words that occur at least twice.

    Bigrams never span a sentence boundary.
    """
    counts: Counter = Counter()
    for sentence in split_sentences(text):
        words = tokenize(sentence)
        counts.update(f"{a} {b}" for a, b in zip(words, words[1:]))

    phrases = [
        {"phrase": phrase, "count": count}
        for phrase, count in counts.most_common()
        if count >= MIN_PHRASE_COUNT
    ]
    return phrases[:limit]
