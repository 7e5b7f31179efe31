"""
Completion Client for the Analysis Engine

An ordered chain of text-completion providers behind one call.

Each provider is tried in turn under the same timeout. Any failure
(exception, HTTP error, timeout, empty text) moves on to the next
provider. When every provider fails, or none is configured, the client
returns a static mock response instead of raising.
"""

import asyncio
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

import anthropic
import httpx

from src.errors import UpstreamProviderError
from src.integrations.huggingface import HuggingFaceClient, HuggingFaceError

logger = logging.getLogger(__name__)


MOCK_RESPONSE = (
    "AI insights unavailable (Check GROQ_API_KEY). Here is a generic recommendation: "
    "Focus on improving Core Web Vitals and ensuring high-quality, unique content."
)

DEFAULT_SYSTEM_PROMPT = "You are an expert web analysis AI assistant."


@dataclass
class TokenUsage:
    """Track token usage across calls."""
    input_tokens: int = 0
    output_tokens: int = 0

    @property
    def total_tokens(self) -> int:
        return self.input_tokens + self.output_tokens


@dataclass
class CompletionResult:
    """Outcome of one chain call."""
    text: str
    provider: str
    is_mock: bool = False
    attempts: List[str] = field(default_factory=list)
    errors: Dict[str, str] = field(default_factory=dict)


# =============================================================================
# PROVIDERS
# =============================================================================

class CompletionProvider(ABC):
    """A single text-completion backend."""

    name: str = "provider"

    @property
    @abstractmethod
    def is_configured(self) -> bool:
        """Whether credentials for this provider are present."""

    @abstractmethod
    async def complete(self, prompt: str, system_prompt: str) -> str:
        """
        Return completion text.

        Raises:
            UpstreamProviderError: When the provider fails or returns nothing
        """

    async def close(self):
        """Release network resources."""


class GroqProvider(CompletionProvider):
    """Groq chat completions (OpenAI-compatible endpoint)."""

    name = "groq"

    DEFAULT_URL = "https://api.groq.com/openai/v1/chat/completions"
    DEFAULT_MODEL = "llama-3.3-70b-versatile"

    def __init__(
        self,
        api_key: Optional[str],
        model: Optional[str] = None,
        api_url: Optional[str] = None,
        temperature: float = 0.7,
        max_tokens: int = 1024,
        timeout: float = 15.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.api_key = api_key
        self.model = model or self.DEFAULT_MODEL
        self.api_url = api_url or self.DEFAULT_URL
        self.temperature = temperature
        self.max_tokens = max_tokens
        self._client = httpx.AsyncClient(timeout=httpx.Timeout(timeout), transport=transport)

    @property
    def is_configured(self) -> bool:
        return bool(self.api_key)

    async def complete(self, prompt: str, system_prompt: str) -> str:
        payload = {
            "model": self.model,
            "messages": [
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": prompt},
            ],
            "temperature": self.temperature,
            "max_tokens": self.max_tokens,
        }
        try:
            response = await self._client.post(
                self.api_url,
                json=payload,
                headers={"Authorization": f"Bearer {self.api_key}"},
            )
        except httpx.HTTPError as e:
            raise UpstreamProviderError(f"Groq request failed: {e}", provider=self.name)

        if response.status_code >= 400:
            raise UpstreamProviderError(
                f"Groq API error: {response.status_code}", provider=self.name
            )

        try:
            data = response.json()
            content = data["choices"][0]["message"]["content"]
        except (ValueError, KeyError, IndexError, TypeError) as e:
            raise UpstreamProviderError(f"Unexpected Groq response: {e}", provider=self.name)

        return content or ""

    async def close(self):
        await self._client.aclose()


class ClaudeProvider(CompletionProvider):
    """Anthropic Claude via the official SDK."""

    name = "anthropic"

    DEFAULT_MODEL = "claude-sonnet-4-20250514"

    def __init__(
        self,
        api_key: Optional[str],
        model: Optional[str] = None,
        temperature: float = 0.7,
        max_tokens: int = 1024,
    ):
        self.api_key = api_key
        self.model = model or self.DEFAULT_MODEL
        self.temperature = temperature
        self.max_tokens = max_tokens
        self.async_client = anthropic.AsyncAnthropic(api_key=api_key) if api_key else None

        # Track cumulative usage
        self.total_usage = TokenUsage()
        self.call_count = 0

    @property
    def is_configured(self) -> bool:
        return self.async_client is not None

    async def complete(self, prompt: str, system_prompt: str) -> str:
        try:
            response = await self.async_client.messages.create(
                model=self.model,
                max_tokens=self.max_tokens,
                temperature=self.temperature,
                system=system_prompt,
                messages=[{"role": "user", "content": prompt}],
            )
        except anthropic.APIError as e:
            raise UpstreamProviderError(f"Claude API error: {e}", provider=self.name)

        content = ""
        for block in response.content:
            if hasattr(block, "text"):
                content += block.text

        self.total_usage.input_tokens += response.usage.input_tokens
        self.total_usage.output_tokens += response.usage.output_tokens
        self.call_count += 1
        logger.info(
            f"Claude call: {response.usage.input_tokens} in, "
            f"{response.usage.output_tokens} out"
        )
        return content

    async def close(self):
        if self.async_client is not None:
            await self.async_client.close()


class HuggingFaceProvider(CompletionProvider):
    """Hugging Face hosted text generation."""

    name = "huggingface"

    DEFAULT_MODEL = "mistralai/Mistral-7B-Instruct-v0.3"

    def __init__(
        self,
        client: Optional[HuggingFaceClient],
        model: Optional[str] = None,
        temperature: float = 0.7,
        max_new_tokens: int = 800,
    ):
        self.client = client
        self.model = model or self.DEFAULT_MODEL
        self.temperature = temperature
        self.max_new_tokens = max_new_tokens

    @property
    def is_configured(self) -> bool:
        return self.client is not None

    async def complete(self, prompt: str, system_prompt: str) -> str:
        combined = f"{system_prompt}\n\nTask: {prompt}\n\nResponse:"
        try:
            data = await self.client.infer(
                self.model,
                combined,
                parameters={
                    "max_new_tokens": self.max_new_tokens,
                    "temperature": self.temperature,
                    "return_full_text": False,
                },
            )
        except HuggingFaceError as e:
            raise UpstreamProviderError(str(e), provider=self.name)

        if isinstance(data, list) and data and isinstance(data[0], dict):
            return data[0].get("generated_text", "")
        if isinstance(data, dict):
            return data.get("generated_text", "")
        raise UpstreamProviderError("Unexpected Hugging Face response", provider=self.name)


# =============================================================================
# CHAIN
# =============================================================================

class CompletionClient:
    """
    Ordered provider chain with a uniform timeout and a mock fallback.

    Usage:
        client = CompletionClient([GroqProvider(key), ClaudeProvider(key2)])
        text = await client.complete("Summarize ...")
    """

    def __init__(
        self,
        providers: List[CompletionProvider],
        timeout: float = 15.0,
        mock_response: str = MOCK_RESPONSE,
    ):
        """
        Initialize the chain.

        Args:
            providers: Providers in priority order
            timeout: Per-provider timeout in seconds
            mock_response: Text returned when every provider fails
        """
        self.providers = list(providers)
        self.timeout = timeout
        self.mock_response = mock_response
        self.call_count = 0
        self.fallback_count = 0

    @property
    def configured_providers(self) -> List[CompletionProvider]:
        return [p for p in self.providers if p.is_configured]

    @property
    def has_live_provider(self) -> bool:
        """True when at least one provider has credentials."""
        return bool(self.configured_providers)

    async def complete(
        self,
        prompt: str,
        system_prompt: str = DEFAULT_SYSTEM_PROMPT,
    ) -> str:
        """
        Complete a prompt with the first provider that succeeds.

        Args:
            prompt: User prompt
            system_prompt: System prompt

        Returns:
            Completion text, or the mock response when all providers fail
        """
        result = await self.complete_with_meta(prompt, system_prompt)
        return result.text

    async def complete_with_meta(
        self,
        prompt: str,
        system_prompt: str = DEFAULT_SYSTEM_PROMPT,
    ) -> CompletionResult:
        """Like complete(), but reports which provider answered."""
        self.call_count += 1
        attempts: List[str] = []
        errors: Dict[str, str] = {}

        for provider in self.configured_providers:
            attempts.append(provider.name)
            try:
                text = await asyncio.wait_for(
                    provider.complete(prompt, system_prompt),
                    timeout=self.timeout,
                )
            except asyncio.TimeoutError:
                errors[provider.name] = f"timed out after {self.timeout}s"
                logger.warning(f"Provider {provider.name} timed out after {self.timeout}s")
                continue
            except Exception as e:
                errors[provider.name] = str(e)
                logger.warning(f"Provider {provider.name} failed: {e}")
                continue

            if text and text.strip():
                return CompletionResult(
                    text=text,
                    provider=provider.name,
                    attempts=attempts,
                    errors=errors,
                )
            errors[provider.name] = "empty response"
            logger.warning(f"Provider {provider.name} returned an empty response")

        self.fallback_count += 1
        if attempts:
            logger.error(f"All completion providers failed ({', '.join(attempts)}), using mock")
        else:
            logger.info("No completion provider configured, using mock")
        return CompletionResult(
            text=self.mock_response,
            provider="mock",
            is_mock=True,
            attempts=attempts,
            errors=errors,
        )

    async def close(self):
        for provider in self.providers:
            await provider.close()

    def get_usage_summary(self) -> Dict[str, Any]:
        return {
            "total_calls": self.call_count,
            "fallback_calls": self.fallback_count,
            "providers": [p.name for p in self.providers],
            "configured": [p.name for p in self.configured_providers],
        }


def build_completion_client(settings, hf_client: Optional[HuggingFaceClient] = None) -> CompletionClient:
    """
    Build the provider chain from settings.

    Args:
        settings: Application Settings
        hf_client: Shared Hugging Face client (None disables that provider)

    Returns:
        CompletionClient with providers in AI_PROVIDER_ORDER
    """
    factories = {
        "groq": lambda: GroqProvider(
            api_key=settings.GROQ_API_KEY,
            model=settings.GROQ_MODEL,
            api_url=settings.GROQ_API_URL,
            temperature=settings.AI_TEMPERATURE,
            max_tokens=settings.AI_MAX_TOKENS,
            timeout=settings.AI_TIMEOUT,
        ),
        "anthropic": lambda: ClaudeProvider(
            api_key=settings.ANTHROPIC_API_KEY,
            model=settings.CLAUDE_MODEL,
            temperature=settings.AI_TEMPERATURE,
            max_tokens=settings.AI_MAX_TOKENS,
        ),
        "huggingface": lambda: HuggingFaceProvider(
            client=hf_client,
            model=settings.HF_TEXT_MODEL,
            temperature=settings.AI_TEMPERATURE,
        ),
    }

    providers: List[CompletionProvider] = []
    for name in settings.provider_order:
        factory = factories.get(name)
        if factory is None:
            logger.warning(f"Unknown completion provider '{name}' in AI_PROVIDER_ORDER")
            continue
        providers.append(factory())

    return CompletionClient(providers, timeout=settings.AI_TIMEOUT)
