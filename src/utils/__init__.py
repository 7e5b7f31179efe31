"""Utility modules for the Web Audit Engine."""

from .config import Settings, get_settings
from .urls import extract_domain, normalize_url, validate_url

__all__ = [
    "Settings",
    "get_settings",
    # URLs
    "extract_domain",
    "normalize_url",
    "validate_url",
]
