"""Documents handed to the extractor and the wait for dynamic content."""
import asyncio
import logging
from typing import Callable, Optional

from selectolax.parser import HTMLParser

logger = logging.getLogger(__name__)

# Any of these in the document means product markup has rendered.
CONTENT_MARKERS = (
    ".product, .products, [class*='product-item'], "
    "script[type='application/ld+json']"
)

DEFAULT_WAIT_TIMEOUT = 5.0

ChangeCallback = Callable[["Document"], None]


class Document:
    """HTML text plus the URL it was loaded from, parsed on first use."""

    def __init__(self, html: str, url: str = ""):
        self.url = url
        self._html = html or ""
        self._parser: Optional[HTMLParser] = None

    @property
    def html(self) -> str:
        return self._html

    @property
    def parser(self) -> HTMLParser:
        if self._parser is None:
            self._parser = HTMLParser(self._html)
        return self._parser

    def has_content(self) -> bool:
        """Check whether a product or JSON-LD marker is present."""
        return self.parser.css_first(CONTENT_MARKERS) is not None


class LiveDocument(Document):
    """The page currently open in the host; its markup may still change.

    The host calls ``update`` whenever the page changes (late rendering,
    infinite scroll, ...). Listeners registered with ``subscribe`` are called
    after every update.
    """

    def __init__(self, html: str, url: str = ""):
        super().__init__(html, url)
        self._listeners: list[ChangeCallback] = []

    def subscribe(self, callback: ChangeCallback) -> Callable[[], None]:
        """Register a change listener. Returns the function that removes it."""
        self._listeners.append(callback)

        def unsubscribe() -> None:
            if callback in self._listeners:
                self._listeners.remove(callback)

        return unsubscribe

    @property
    def listener_count(self) -> int:
        return len(self._listeners)

    def update(self, html: str) -> None:
        """Replace the markup and notify listeners."""
        self._html = html or ""
        self._parser = None
        for callback in list(self._listeners):
            try:
                callback(self)
            except Exception as e:
                logger.warning(f"Document change listener failed: {e}")


async def wait_for_content(document: Document, timeout: float = DEFAULT_WAIT_TIMEOUT) -> bool:
    """
    Wait until product markup appears in the document.
    Returns True as soon as a marker is found, False once the timeout expires.
    Static documents are checked once.
    """
    if document.has_content():
        return True
    if not isinstance(document, LiveDocument):
        return False

    found = asyncio.Event()

    def on_change(doc: Document) -> None:
        if not found.is_set() and doc.has_content():
            found.set()

    unsubscribe = document.subscribe(on_change)
    try:
        await asyncio.wait_for(found.wait(), timeout=timeout)
        return True
    except asyncio.TimeoutError:
        logger.info(f"No product markup after {timeout:.1f}s, extracting anyway")
        return False
    finally:
        unsubscribe()
