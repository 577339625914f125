"""Tests for the scrape runner."""
import asyncio
import json
import httpx
import pytest

from shopscrape.export.transform import Exporter
from shopscrape.fetch.client import FetchClient
from shopscrape.fetch.rate_limit import PageThrottle
from shopscrape.jobs.runner import ScrapeRunner
from shopscrape.parse.document import LiveDocument
from shopscrape.parse.models import ScrapeRequest

SHOP_URL = "https://shop.test/shop/"

PAGINATION = '<nav class="woocommerce-pagination"><a class="page-numbers">1</a><a class="page-numbers">3</a></nav>'


def listing_page(*titles: str, pagination: str = "") -> str:
    cards = "".join(
        f'<div class="product"><h3>{t}</h3><span class="price">$5.00</span></div>' for t in titles
    )
    return f'<html><body><div class="products">{cards}</div>{pagination}</body></html>'


def run(document, request, handler=None, exporter=None, progress=None):
    async def scenario():
        client = FetchClient(transport=httpx.MockTransport(handler or (lambda r: httpx.Response(404))))
        async with client:
            runner = ScrapeRunner(
                document,
                client,
                exporter=exporter,
                on_progress=progress.append if progress is not None else None,
                throttle=PageThrottle(0),
                wait_timeout=0.01,
            )
            return await runner.run(request)

    return asyncio.run(scenario())


def test_single_page_csv():
    document = LiveDocument(listing_page("Anchor", "Rope", "Fender"), SHOP_URL)
    result = run(document, ScrapeRequest(format="csv", fields=["title", "price"]))

    assert result.success
    assert result.count == 3
    assert result.pages == 1
    assert result.filename == "products.csv"
    assert result.data.split("\n")[1] == '"Anchor","5.00"'


def test_single_page_ignores_pagination():
    """Without the all-pages option only the live page is scraped."""
    document = LiveDocument(listing_page("Anchor", pagination=PAGINATION), SHOP_URL)
    result = run(document, ScrapeRequest(format="json", fields=["title"]))

    assert result.count == 1
    assert json.loads(result.data) == [{"title": "Anchor"}]


def test_all_pages_with_failed_page():
    """Page 2 fails; pages 1 and 3 are exported and the run succeeds."""

    def handler(request):
        if request.url.path == "/shop/page/2/":
            raise httpx.ConnectError("connection reset", request=request)
        return httpx.Response(200, html=listing_page("Fender"))

    document = LiveDocument(listing_page("Anchor", "Rope", pagination=PAGINATION), SHOP_URL)
    progress = []
    request = ScrapeRequest.model_validate(
        {"format": "json", "scrapeAllPages": True, "fields": ["title", "price"]}
    )
    result = run(document, request, handler=handler, progress=progress)

    assert result.success
    assert result.count == 3
    assert result.pages == 3
    assert [r["title"] for r in json.loads(result.data)] == ["Anchor", "Rope", "Fender"]
    assert [(p.current, p.total) for p in progress] == [(2, 3), (3, 3)]


def test_xlsx_payload_is_bytes():
    document = LiveDocument(listing_page("Anchor"), SHOP_URL)
    result = run(document, ScrapeRequest(format="xlsx"))
    assert result.success
    assert isinstance(result.data, bytes)
    assert result.filename == "products.xlsx"


def test_unsupported_format():
    """An unknown format is a failure result, not an exception."""
    document = LiveDocument(listing_page("Anchor"), SHOP_URL)
    result = run(document, ScrapeRequest(format="xml"))

    assert result.success is False
    assert result.error == "Unsupported format"
    assert result.data is None
    assert result.count is None


def test_unexpected_error_becomes_failure():
    """Any exception inside the run is reported, never raised."""

    class BrokenExporter(Exporter):
        def to_format(self, records, fields, fmt):
            raise RuntimeError("disk full")

    document = LiveDocument(listing_page("Anchor"), SHOP_URL)
    result = run(document, ScrapeRequest(format="csv"), exporter=BrokenExporter())

    assert result.success is False
    assert result.error == "disk full"


def test_zero_records_still_succeeds():
    document = LiveDocument("<html><body><p>Nothing for sale</p></body></html>", SHOP_URL)
    result = run(document, ScrapeRequest(format="csv", fields=["title"]))
    assert result.success
    assert result.count == 0
    assert result.data == "title"
