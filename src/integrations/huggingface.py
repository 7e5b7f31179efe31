"""
Hugging Face Inference API Client

Hosted inference for the NLP tasks (sentiment, NER, summarization,
zero-shot topics) and for the text-generation completion provider.

API: https://huggingface.co/docs/api-inference
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional

import httpx

logger = logging.getLogger(__name__)


class HuggingFaceError(Exception):
    """Custom exception for Hugging Face inference errors."""

    def __init__(self, message: str, status_code: int = None, response: Any = None):
        super().__init__(message)
        self.status_code = status_code
        self.response = response


@dataclass
class RetryConfig:
    """Configuration for retry behavior."""

    max_retries: int = 1
    initial_delay: float = 1.0
    max_delay: float = 4.0
    exponential_base: float = 2.0
    retryable_status_codes: tuple = (429, 502, 503, 504)


class HuggingFaceClient:
    """
    Async client for the Hugging Face inference router.

    Usage:
        client = HuggingFaceClient(api_key="hf_...")

        result = await client.infer(
            "distilbert-base-uncased-finetuned-sst-2-english",
            "I love this product",
        )

        await client.close()
    """

    DEFAULT_BASE_URL = "https://router.huggingface.co/hf-inference"

    # Task models
    SENTIMENT_MODEL = "distilbert-base-uncased-finetuned-sst-2-english"
    NER_MODEL = "dbmdz/bert-large-cased-finetuned-conll03-english"
    SUMMARY_MODEL = "sshleifer/distilbart-cnn-12-6"
    ZERO_SHOT_MODEL = "facebook/bart-large-mnli"

    def __init__(
        self,
        api_key: str,
        base_url: Optional[str] = None,
        retry_config: Optional[RetryConfig] = None,
        timeout: float = 15.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Initialize Hugging Face client.

        Args:
            api_key: Hugging Face access token
            base_url: Inference router base URL
            retry_config: Retry configuration (optional)
            timeout: Default request timeout in seconds
            transport: Optional httpx transport (used by tests)
        """
        self.api_key = api_key
        self.base_url = (base_url or self.DEFAULT_BASE_URL).rstrip("/")
        self.retry_config = retry_config or RetryConfig()
        self.timeout = timeout

        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            headers={
                "Authorization": f"Bearer {api_key}",
                "Content-Type": "application/json",
            },
            timeout=httpx.Timeout(timeout),
            transport=transport,
        )
        self._closed = False

    async def infer(
        self,
        model: str,
        inputs: Any,
        parameters: Optional[Dict[str, Any]] = None,
        timeout: Optional[float] = None,
    ) -> Any:
        """
        Run hosted inference for one model.

        Args:
            model: Model id, e.g. "facebook/bart-large-mnli"
            inputs: Model inputs (usually text)
            parameters: Task parameters
            timeout: Per-request timeout override in seconds

        Returns:
            Decoded JSON response

        Raises:
            HuggingFaceError: On HTTP errors, timeouts or model errors
        """
        if self._closed:
            raise HuggingFaceError("Client has been closed")

        payload: Dict[str, Any] = {
            "inputs": inputs,
            "options": {"wait_for_model": True},
        }
        if parameters:
            payload["parameters"] = parameters

        data = await self._request_with_retry(f"/models/{model}", payload, timeout)
        if isinstance(data, dict) and data.get("error"):
            raise HuggingFaceError(f"Model error: {data['error']}", response=data)
        return data

    async def _request_with_retry(
        self,
        path: str,
        payload: Dict[str, Any],
        timeout: Optional[float],
    ) -> Any:
        """Make request with retry logic."""
        config = self.retry_config
        last_exception = None
        request_timeout = httpx.Timeout(timeout or self.timeout)

        for attempt in range(config.max_retries + 1):
            try:
                response = await self._client.post(path, json=payload, timeout=request_timeout)

                if response.status_code >= 400:
                    error = HuggingFaceError(
                        f"API error: {response.status_code}",
                        status_code=response.status_code,
                        response=response.text[:500],
                    )
                    if response.status_code not in config.retryable_status_codes:
                        raise error
                    last_exception = error
                else:
                    return response.json()

            except httpx.TimeoutException as e:
                last_exception = HuggingFaceError(f"Request timed out: {e}")
            except httpx.RequestError as e:
                last_exception = HuggingFaceError(f"Request failed: {e}")
            except ValueError as e:
                raise HuggingFaceError(f"Invalid JSON response: {e}")

            if attempt < config.max_retries:
                delay = min(
                    config.initial_delay * (config.exponential_base**attempt),
                    config.max_delay,
                )
                logger.warning(
                    f"Hugging Face request failed, retrying in {delay:.1f}s "
                    f"(attempt {attempt + 1}/{config.max_retries + 1})"
                )
                await asyncio.sleep(delay)

        raise last_exception

    async def close(self):
        """Close the HTTP client."""
        if not self._closed:
            await self._client.aclose()
            self._closed = True

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()
