"""
Tests for the HTTP Page Collector and HTML Extraction
"""

import httpx
import pytest

from src.analyzer.engine import AuditOptions
from src.integrations.collector import (
    CollectOptions,
    CollectorError,
    HttpPageCollector,
    count_ctas,
    extract_text,
    parse_html,
)


PAGE = """<!doctype html>
<html>
<head>
  <title>Example Widgets | Handmade</title>
  <meta name="description" content="Handmade widgets built to last.">
  <meta name="keywords" content="widgets, handmade">
  <meta name="viewport" content="width=device-width">
  <link rel="canonical" href="https://example.com/">
  <link rel="stylesheet" href="/main.css">
  <script src="/app.js"></script>
  <script src="/analytics.js" async></script>
</head>
<body>
  <h1>Handmade widgets</h1>
  <p>Every widget is sanded by hand.</p>
  <h2>Why us</h2>
  <p>We ship everywhere.</p>
  <img src="/a.png" alt="A widget">
  <img src="/b.png">
  <a href="/about">About</a>
  <a href="https://example.com/shop">Shop now</a>
  <a href="https://partner.org/">Partner</a>
  <a href="#top">Top</a>
  <button>Get started</button>
  <script>var hidden = "not text";</script>
</body>
</html>"""


@pytest.mark.unit
class TestParseHtml:
    """Test signal extraction from raw HTML."""

    def test_seo_signals(self):
        signals = parse_html("https://example.com/", PAGE)

        assert signals.seo.title == "Example Widgets | Handmade"
        assert signals.seo.meta_description == "Handmade widgets built to last."
        assert signals.seo.h1_count == 1
        assert signals.seo.image_count == 2
        assert signals.seo.images_missing_alt == 1
        assert signals.seo.internal_links == 2
        assert signals.seo.external_links == 1
        assert signals.seo.canonical_present
        assert signals.seo.indexable
        assert signals.seo.https

    def test_ux_and_content_signals(self):
        signals = parse_html("https://example.com/", PAGE, elapsed_s=0.4321)

        assert signals.ux.viewport_meta
        assert signals.ux.cta_above_fold == 2
        assert [v.id for v in signals.ux.violations] == ["image-alt"]
        assert signals.content.heading_count == 2
        assert signals.content.keywords == ["widgets", "handmade"]
        assert "not text" not in signals.content.text
        assert signals.performance.ttfb_s == 0.432
        assert signals.performance.render_blocking_count == 2

    def test_noindex(self):
        html = '<html><head><meta name="robots" content="noindex, nofollow"></head></html>'
        assert not parse_html("http://example.com", html).seo.indexable

    def test_extract_text_keeps_paragraphs(self):
        text = extract_text("<p>One</p><p>Two</p><style>p {}</style>")
        assert text == "One\n\nTwo"

    def test_count_ctas(self):
        html = '<a href="/x">Read more</a><a href="/y">Buy now</a><button>Subscribe</button>'
        assert count_ctas(html) == 2


@pytest.mark.unit
class TestHttpPageCollector:
    """Test fetching over httpx."""

    @pytest.mark.asyncio
    async def test_collects_page(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["ua"] = request.headers["User-Agent"]
            return httpx.Response(200, text=PAGE, headers={"Content-Type": "text/html"})

        collector = HttpPageCollector(transport=httpx.MockTransport(handler))
        signals = await collector.collect("https://example.com/", CollectOptions(emulate_mobile=True))
        await collector.close()

        assert signals.url == "https://example.com/"
        assert signals.seo.title == "Example Widgets | Handmade"
        assert signals.html is not None
        assert "iPhone" in seen["ua"]

    @pytest.mark.asyncio
    async def test_competitor_options_drop_html(self):
        transport = httpx.MockTransport(lambda request: httpx.Response(200, text=PAGE))
        collector = HttpPageCollector(transport=transport)

        signals = await collector.collect("https://example.com/", AuditOptions.competitor().collect_options())
        await collector.close()

        assert signals.html is None

    @pytest.mark.asyncio
    async def test_http_error(self):
        transport = httpx.MockTransport(lambda request: httpx.Response(404, text="gone"))
        collector = HttpPageCollector(transport=transport)

        with pytest.raises(CollectorError) as exc_info:
            await collector.collect("https://example.com/missing", CollectOptions())
        await collector.close()

        assert exc_info.value.status_code == 404
        assert exc_info.value.url == "https://example.com/missing"

    @pytest.mark.asyncio
    async def test_connection_error(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        collector = HttpPageCollector(transport=httpx.MockTransport(handler))

        with pytest.raises(CollectorError) as exc_info:
            await collector.collect("https://example.com/", CollectOptions())
        await collector.close()

        assert "connection refused" in str(exc_info.value)
