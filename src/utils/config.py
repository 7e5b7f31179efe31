"""
Configuration Management

Uses Pydantic Settings for environment-based configuration.
Loads from .env file automatically. Every provider key is optional:
a missing key simply removes that provider from the completion chain.
"""

from typing import List, Optional
from functools import lru_cache
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment."""

    # Groq (primary completion provider, OpenAI-compatible)
    GROQ_API_KEY: Optional[str] = None
    GROQ_MODEL: str = "llama-3.3-70b-versatile"
    GROQ_API_URL: str = "https://api.groq.com/openai/v1/chat/completions"

    # Claude API (secondary completion provider)
    ANTHROPIC_API_KEY: Optional[str] = None
    CLAUDE_MODEL: str = "claude-sonnet-4-20250514"

    # Hugging Face inference (tertiary provider + NLP tasks)
    HF_API_KEY: Optional[str] = None
    HF_API_BASE: str = "https://router.huggingface.co/hf-inference"
    HF_TEXT_MODEL: str = "mistralai/Mistral-7B-Instruct-v0.3"

    # Completion chain
    AI_PROVIDER_ORDER: str = "groq,anthropic,huggingface"
    AI_TEMPERATURE: float = 0.7
    AI_MAX_TOKENS: int = 1024

    # Application Settings
    ENVIRONMENT: str = "development"
    LOG_LEVEL: str = "INFO"
    SERVICE_NAME: str = "webaudit-ai"

    # Database
    DATABASE_URL: Optional[str] = None
    SQL_DEBUG: bool = False

    # NLP cache
    NLP_CACHE_TTL_SECONDS: int = 3600
    NLP_CACHE_MAX_ENTRIES: int = 50

    # Competitor analysis
    MAX_COMPETITORS: int = 3
    MIN_COMPETITOR_SUCCESSES: int = 2
    COMPARISON_TTL_DAYS: int = 7

    # Timeouts (seconds)
    AI_TIMEOUT: float = 15.0
    NLP_TIMEOUT: float = 10.0
    NLP_LONG_TIMEOUT: float = 15.0
    COLLECTOR_TIMEOUT: float = 30.0

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "ignore"  # Ignore extra fields in .env file
        case_sensitive = False  # Allow both UPPERCASE and lowercase

    @property
    def provider_order(self) -> List[str]:
        """Completion providers in the order they should be tried."""
        return [
            name.strip().lower()
            for name in self.AI_PROVIDER_ORDER.split(",")
            if name.strip()
        ]


@lru_cache
def get_settings() -> Settings:
    """Get or create cached settings instance."""
    return Settings()
