"""
Named Entity Recognition

Hosted BERT CoNLL-03 NER with a capitalised-phrase fallback.
"""

import asyncio
import logging
import re
from typing import Any, Dict, List, Optional

from src.integrations.huggingface import HuggingFaceClient, HuggingFaceError

logger = logging.getLogger(__name__)

MAX_CHARS = 5000
MAX_ENTITIES = 25
MAX_FALLBACK_ENTITIES = 15

_CAPITALIZED_PHRASE = re.compile(r"\b([A-Z][a-z]+(?:\s+[A-Z][a-z]+)+)\b")


def merge_tokens(tokens: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """
    Merge BIO-tagged tokens into whole entities.

    Handles both raw token output (``entity: "B-ORG"``) and grouped
    output (``entity_group: "ORG"``). WordPiece continuations ("##")
    are glued to the previous token.
    """
    entities: List[Dict[str, Any]] = []
    current: Optional[Dict[str, Any]] = None
    current_scores: List[float] = []

    def flush():
        if current is not None:
            current["score"] = round(sum(current_scores) / len(current_scores), 3)
            entities.append(current)

    for token in tokens:
        word = token.get("word", "")
        score = float(token.get("score", 0.0))

        if "entity_group" in token:
            flush()
            current = {"text": word.replace(" ##", ""), "type": token["entity_group"]}
            current_scores = [score]
            continue

        tag = token.get("entity", "O")
        prefix, _, entity_type = tag.partition("-")
        if not entity_type:
            prefix, entity_type = "B", tag

        if word.startswith("##") and current is not None:
            current["text"] += word[2:]
            current_scores.append(score)
        elif prefix == "I" and current is not None and current["type"] == entity_type:
            current["text"] += f" {word}"
            current_scores.append(score)
        else:
            flush()
            current = {"text": word, "type": entity_type}
            current_scores = [score]

    flush()
    return entities


def dedupe_entities(entities: List[Dict[str, Any]], limit: int = MAX_ENTITIES) -> List[Dict[str, Any]]:
    """Keep the highest-scoring occurrence of each (text, type)."""
    best: Dict[tuple, Dict[str, Any]] = {}
    for entity in entities:
        text = entity["text"].strip()
        if len(text) < 2:
            continue
        key = (text.lower(), entity["type"])
        if key not in best or entity["score"] > best[key]["score"]:
            best[key] = {**entity, "text": text}
    ranked = sorted(best.values(), key=lambda e: e["score"], reverse=True)
    return ranked[:limit]


def rule_based_entities(text: str) -> List[Dict[str, Any]]:
    """Capitalised multi-word phrases as MISC entities."""
    seen = set()
    entities = []
    for match in _CAPITALIZED_PHRASE.finditer(text):
        phrase = match.group(1)
        if phrase.lower() in seen:
            continue
        seen.add(phrase.lower())
        entities.append({"text": phrase, "type": "MISC", "score": 0.5})
        if len(entities) >= MAX_FALLBACK_ENTITIES:
            break
    return entities


async def extract_entities(
    text: str,
    client: Optional[HuggingFaceClient] = None,
    timeout: float = 10.0,
) -> List[Dict[str, Any]]:
    """
    Extract named entities.

    Args:
        text: Page text (truncated to 5000 characters)
        client: Hugging Face client; None uses the regex fallback
        timeout: Inference timeout in seconds

    Returns:
        Up to 25 entities as dicts with text, type and score
    """
    if client is None:
        return rule_based_entities(text)

    try:
        data = await asyncio.wait_for(
            client.infer(HuggingFaceClient.NER_MODEL, text[:MAX_CHARS]),
            timeout=timeout,
        )
        if not isinstance(data, list):
            raise ValueError("Unexpected NER response")
        return dedupe_entities(merge_tokens(data))
    except (HuggingFaceError, asyncio.TimeoutError, KeyError, TypeError, ValueError) as e:
        logger.warning(f"Entity inference failed, using regex fallback: {e}")
        return rule_based_entities(text)
