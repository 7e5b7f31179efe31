"""
Page Collector

Turns a URL into raw page signals for the scorers.

A full deployment plugs in a headless-browser collector that runs
Lighthouse and axe-core. This module defines that interface and ships a
lightweight HTTP collector: one GET request plus regex extraction of
on-page SEO, usability and content signals. Lab performance metrics it
cannot measure stay None and are reported as missing.
"""

import logging
import re
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import List, Optional
from urllib.parse import urlparse

import httpx

from src.scoring.signals import (
    AxeViolation,
    ContentSignals,
    PageSignals,
    PerformanceSignals,
    SEOSignals,
    UXSignals,
)

logger = logging.getLogger(__name__)


class CollectorError(Exception):
    """Custom exception for page collection errors."""

    def __init__(self, message: str, url: str = None, status_code: int = None):
        super().__init__(message)
        self.url = url
        self.status_code = status_code


@dataclass
class CollectOptions:
    """What to collect for one page."""
    emulate_mobile: bool = False
    is_competitor: bool = False
    skip_screenshots: bool = False
    skip_html: bool = False
    skip_lighthouse: bool = False


class PageCollector(ABC):
    """Collects raw signals for one page."""

    @abstractmethod
    async def collect(self, url: str, options: CollectOptions) -> PageSignals:
        """
        Collect signals.

        Raises:
            CollectorError: When the page cannot be fetched
        """

    async def close(self):
        """Release network resources."""


# =============================================================================
# HTML EXTRACTION
# =============================================================================

CTA_WORDS = (
    "buy", "shop", "order", "get started", "start", "sign up", "signup", "subscribe",
    "book", "try", "contact", "download", "register", "join", "request", "demo",
)

ABOVE_FOLD_CHARS = 6000

_TITLE = re.compile(r"<title[^>]*>(.*?)</title>", re.DOTALL | re.IGNORECASE)
_META_DESCRIPTION = re.compile(
    r'<meta[^>]+name=["\']description["\'][^>]*content=["\']([^"\']*)["\']'
    r'|<meta[^>]+content=["\']([^"\']*)["\'][^>]*name=["\']description["\']',
    re.IGNORECASE,
)
_META_KEYWORDS = re.compile(
    r'<meta[^>]+name=["\']keywords["\'][^>]*content=["\']([^"\']*)["\']', re.IGNORECASE
)
_VIEWPORT = re.compile(r'<meta[^>]+name=["\']viewport["\']', re.IGNORECASE)
_ROBOTS_NOINDEX = re.compile(
    r'<meta[^>]+name=["\']robots["\'][^>]*content=["\'][^"\']*noindex', re.IGNORECASE
)
_CANONICAL = re.compile(r'<link[^>]+rel=["\']canonical["\']', re.IGNORECASE)
_H1 = re.compile(r"<h1[\s>]", re.IGNORECASE)
_HEADINGS = re.compile(r"<h[1-6][\s>]", re.IGNORECASE)
_IMG = re.compile(r"<img\b[^>]*>", re.IGNORECASE)
_ALT = re.compile(r'\balt=["\'][^"\']+["\']', re.IGNORECASE)
_LINK = re.compile(r'<a\b[^>]*href=["\']([^"\']+)["\']', re.IGNORECASE)
_TAG = re.compile(r"<[a-zA-Z][^>]*>")
_HEAD = re.compile(r"<head[^>]*>(.*?)</head>", re.DOTALL | re.IGNORECASE)
_SCRIPT_TAG = re.compile(r"<script\b([^>]*)>", re.IGNORECASE)
_STYLESHEET = re.compile(r'<link[^>]+rel=["\']stylesheet["\']', re.IGNORECASE)
_CTA_ELEMENT = re.compile(r"<(a|button)\b[^>]*>(.*?)</\1>", re.DOTALL | re.IGNORECASE)
_PARAGRAPH = re.compile(r"</p>|<br\s*/?>|</h[1-6]>|</li>", re.IGNORECASE)


def extract_text(html: str) -> str:
    """Extract readable text from HTML, keeping paragraph breaks."""
    html = re.sub(r"<script[^>]*>.*?</script>", "", html, flags=re.DOTALL | re.IGNORECASE)
    html = re.sub(r"<style[^>]*>.*?</style>", "", html, flags=re.DOTALL | re.IGNORECASE)
    html = re.sub(r"<noscript[^>]*>.*?</noscript>", "", html, flags=re.DOTALL | re.IGNORECASE)
    html = _PARAGRAPH.sub("\n\n", html)

    text = re.sub(r"<[^>]+>", " ", html)
    text = re.sub(r"[ \t\r\f\v]+", " ", text)
    text = re.sub(r"\s*\n\s*(\n\s*)+", "\n\n", text)
    return text.strip()


def _first_group(match: Optional[re.Match]) -> str:
    if not match:
        return ""
    return next((g for g in match.groups() if g), "").strip()


def count_ctas(html: str) -> int:
    """Links and buttons with call-to-action wording."""
    count = 0
    for _, inner in _CTA_ELEMENT.findall(html):
        label = re.sub(r"<[^>]+>", " ", inner).strip().lower()
        if label and any(word in label for word in CTA_WORDS):
            count += 1
    return count


def parse_html(url: str, html: str, elapsed_s: Optional[float] = None) -> PageSignals:
    """
    Build page signals from raw HTML.

    Args:
        url: Final page URL
        html: Raw HTML
        elapsed_s: Time to response headers, used as TTFB

    Returns:
        PageSignals (Lighthouse-only metrics left as None)
    """
    parsed_url = urlparse(url)
    host = parsed_url.netloc.lower()

    title = re.sub(r"\s+", " ", _first_group(_TITLE.search(html)))
    meta_description = _first_group(_META_DESCRIPTION.search(html))
    keywords = [k.strip() for k in _first_group(_META_KEYWORDS.search(html)).split(",") if k.strip()]

    images = _IMG.findall(html)
    missing_alt = sum(1 for img in images if not _ALT.search(img))

    internal = external = 0
    for href in _LINK.findall(html):
        if href.startswith(("#", "mailto:", "tel:", "javascript:")):
            continue
        link_host = urlparse(href).netloc.lower()
        if not link_host or link_host == host:
            internal += 1
        else:
            external += 1

    head = _first_group(_HEAD.search(html))
    render_blocking = sum(
        1 for attrs in _SCRIPT_TAG.findall(head)
        if "src=" in attrs.lower() and "async" not in attrs.lower() and "defer" not in attrs.lower()
    ) + len(_STYLESHEET.findall(head))

    text = extract_text(html)
    violations: List[AxeViolation] = []
    if missing_alt:
        violations.append(AxeViolation(
            id="image-alt",
            impact="critical",
            description="Images must have alternate text",
            help="Ensure <img> elements have alternate text",
            nodes=missing_alt,
        ))

    return PageSignals(
        url=url,
        final_url=url,
        performance=PerformanceSignals(
            ttfb_s=round(elapsed_s, 3) if elapsed_s is not None else None,
            request_count=len(images) + len(_SCRIPT_TAG.findall(html)) + len(_STYLESHEET.findall(html)) + 1,
            render_blocking_count=render_blocking,
        ),
        seo=SEOSignals(
            title=title,
            meta_description=meta_description,
            h1_count=len(_H1.findall(html)),
            image_count=len(images),
            images_missing_alt=missing_alt,
            internal_links=internal,
            external_links=external,
            indexable=not _ROBOTS_NOINDEX.search(html),
            canonical_present=bool(_CANONICAL.search(html)),
            https=parsed_url.scheme == "https",
        ),
        ux=UXSignals(
            violations=violations,
            cta_above_fold=count_ctas(html[:ABOVE_FOLD_CHARS]),
            dom_node_count=len(_TAG.findall(html)),
            viewport_meta=bool(_VIEWPORT.search(html)),
        ),
        content=ContentSignals(
            text=text,
            word_count=len(text.split()),
            heading_count=len(_HEADINGS.findall(html)),
            keywords=keywords,
        ),
        html=html,
    )


# =============================================================================
# HTTP COLLECTOR
# =============================================================================

class HttpPageCollector(PageCollector):
    """Collects signals with a single HTTP GET."""

    def __init__(self, timeout: float = 30.0, transport: Optional[httpx.AsyncBaseTransport] = None):
        self.timeout = timeout
        self.client = httpx.AsyncClient(
            timeout=timeout,
            follow_redirects=True,
            transport=transport,
            headers={
                "User-Agent": "Mozilla/5.0 (compatible; WebAuditBot/1.0)",
                "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
                "Accept-Language": "en-US,en;q=0.9",
            },
        )

    async def close(self):
        """Close the HTTP client."""
        await self.client.aclose()

    async def collect(self, url: str, options: CollectOptions) -> PageSignals:
        headers = {}
        if options.emulate_mobile:
            headers["User-Agent"] = (
                "Mozilla/5.0 (iPhone; CPU iPhone OS 17_0 like Mac OS X) "
                "AppleWebKit/605.1.15 (KHTML, like Gecko) Mobile/15E148 WebAuditBot/1.0"
            )

        try:
            response = await self.client.get(url, headers=headers)
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise CollectorError(
                f"HTTP error fetching {url}: {e.response.status_code}",
                url=url,
                status_code=e.response.status_code,
            )
        except httpx.RequestError as e:
            raise CollectorError(f"Request error fetching {url}: {e}", url=url)

        elapsed = response.elapsed.total_seconds() if response.elapsed else None
        signals = parse_html(str(response.url), response.text, elapsed_s=elapsed)
        signals.url = url
        if options.skip_html:
            signals.html = None

        logger.info(
            f"Collected {url}: {signals.content.word_count} words, "
            f"{signals.ux.dom_node_count} elements"
        )
        return signals
