"""
Web Audit - Analysis Engine

Pipeline:
- Collect page signals
- Score performance, SEO, UX and content
- Aggregate into a health score
- Enhance modules and generate insights through the completion chain

The completion chain tries providers in order (Groq, Claude, Hugging Face
by default) and degrades to a static response when all of them fail.
"""

from .client import (
    MOCK_RESPONSE,
    ClaudeProvider,
    CompletionClient,
    CompletionProvider,
    CompletionResult,
    GroqProvider,
    HuggingFaceProvider,
    build_completion_client,
)
from .enhancer import ModuleEnhancer
from .insights import InsightGenerator
from .engine import AuditEngine, AuditOptions

__all__ = [
    # Completion chain
    "MOCK_RESPONSE",
    "ClaudeProvider",
    "CompletionClient",
    "CompletionProvider",
    "CompletionResult",
    "GroqProvider",
    "HuggingFaceProvider",
    "build_completion_client",
    # AI passes
    "ModuleEnhancer",
    "InsightGenerator",
    # Engine
    "AuditEngine",
    "AuditOptions",
]
