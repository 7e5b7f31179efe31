"""
External Integrations

- HuggingFaceClient: Hosted inference for NLP tasks and text generation
- PageCollector / HttpPageCollector: Raw page signals for the scorers
"""

from .huggingface import HuggingFaceClient, HuggingFaceError, RetryConfig
from .collector import (
    CollectOptions,
    CollectorError,
    HttpPageCollector,
    PageCollector,
    parse_html,
)

__all__ = [
    "HuggingFaceClient",
    "HuggingFaceError",
    "RetryConfig",
    "CollectOptions",
    "CollectorError",
    "HttpPageCollector",
    "PageCollector",
    "parse_html",
]
