"""Tests for documents and the wait for dynamic content."""
import asyncio
import pytest

from shopscrape.parse.document import Document, LiveDocument, wait_for_content

EMPTY_APP = "<html><body><div id='app'>Loading...</div></body></html>"
RENDERED = "<html><body><ul class='products'><li class='product'><h2>Anchor</h2></li></ul></body></html>"


def test_document_reparses_after_update():
    """The parser reflects the latest markup."""
    doc = LiveDocument(EMPTY_APP, "https://shop.test/")
    assert not doc.has_content()
    doc.update(RENDERED)
    assert doc.has_content()
    assert doc.parser.css_first("h2").text() == "Anchor"


def test_json_ld_counts_as_content():
    html = '<script type="application/ld+json">{"@type": "Product"}</script>'
    assert Document(html).has_content()


def test_wait_returns_immediately_when_content_present():
    """No subscription is needed when markup is already there."""
    doc = LiveDocument(RENDERED, "https://shop.test/")
    assert asyncio.run(wait_for_content(doc, timeout=0.01)) is True
    assert doc.listener_count == 0


def test_wait_resolves_on_update():
    """The wait ends as soon as product markup appears."""
    doc = LiveDocument(EMPTY_APP, "https://shop.test/")

    async def scenario():
        async def render():
            await asyncio.sleep(0.01)
            doc.update(EMPTY_APP.replace("Loading...", "Still loading"))
            await asyncio.sleep(0.01)
            doc.update(RENDERED)

        task = asyncio.create_task(render())
        found = await wait_for_content(doc, timeout=5.0)
        await task
        return found

    assert asyncio.run(scenario()) is True
    assert doc.listener_count == 0


def test_wait_times_out():
    """The wait gives up at the timeout and unsubscribes."""
    doc = LiveDocument(EMPTY_APP, "https://shop.test/")
    assert asyncio.run(wait_for_content(doc, timeout=0.05)) is False
    assert doc.listener_count == 0


def test_wait_on_static_document():
    """Offline documents cannot change; they are checked once."""
    assert asyncio.run(wait_for_content(Document(EMPTY_APP), timeout=5.0)) is False


def test_failing_listener_does_not_break_update():
    doc = LiveDocument(EMPTY_APP)

    def broken(_):
        raise RuntimeError("listener bug")

    doc.subscribe(broken)
    doc.update(RENDERED)
    assert doc.has_content()
