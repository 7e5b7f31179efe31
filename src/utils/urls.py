"""
URL helpers shared by the API, the engine and the competitor pipeline.
"""

from urllib.parse import urlparse

from src.errors import ValidationError


def normalize_url(url: str) -> str:
    """Prepend https:// when the URL has no scheme."""
    url = (url or "").strip()
    if not url.startswith("http"):
        url = f"https://{url}"
    return url


def validate_url(url: str) -> str:
    """
    Normalize and validate a user-supplied URL.

    Raises:
        ValidationError: If the URL is empty or has no host
    """
    if not url or not str(url).strip():
        raise ValidationError("URL is required")
    normalized = normalize_url(str(url))
    parsed = urlparse(normalized)
    if parsed.scheme not in ("http", "https") or not parsed.netloc or "." not in parsed.netloc:
        raise ValidationError(f"Invalid URL: {url}")
    return normalized


def extract_domain(url: str) -> str:
    """Bare host of a URL without a leading www."""
    netloc = urlparse(normalize_url(url)).netloc.lower()
    netloc = netloc.split("@")[-1].split(":")[0]
    if netloc.startswith("www."):
        netloc = netloc[4:]
    return netloc
