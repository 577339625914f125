"""Walk a paginated product listing page by page."""
import inspect
import logging
import re
from dataclasses import dataclass, field
from typing import Awaitable, Callable, Optional, Union
from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit

from selectolax.parser import HTMLParser

from shopscrape.config import config
from shopscrape.fetch.client import FetchClient
from shopscrape.fetch.rate_limit import PageThrottle
from shopscrape.jobs.metrics import PageMetrics
from shopscrape.parse.document import Document, LiveDocument, wait_for_content
from shopscrape.parse.extractor import extract_page
from shopscrape.parse.models import ProductRecord, ProgressUpdate
from shopscrape.parse.selectors import Candidate, attr, node_text

logger = logging.getLogger(__name__)

# Fixed politeness delay between page fetches.
PAGE_DELAY_SECONDS = 1.0

PAGE_PARAMS = ("page", "paged", "pg")
PAGE_SEGMENT = re.compile(r"/page/\d+(?=/|$)")
# "1,204" or "1 204"; separators sit between full three-digit groups.
THOUSANDS = re.compile(r"\d{1,3}(?:[,. ]\d{3})+")

PAGINATION_CANDIDATES: list[Candidate] = [
    ("[data-total-pages]", attr("data-total-pages")),
    (".woocommerce-pagination a.page-numbers, .woocommerce-pagination span.page-numbers", node_text),
    ("ul.page-numbers a, ul.page-numbers span", node_text),
    (".pagination a, .pagination span, .pagination li", node_text),
    ("nav[aria-label*='agination'] a, nav[aria-label*='agination'] span", node_text),
]

ProgressCallback = Callable[[ProgressUpdate], Union[None, Awaitable[None]]]


def _page_number(text: str) -> Optional[int]:
    cleaned = " ".join(text.split())
    if THOUSANDS.fullmatch(cleaned):
        cleaned = re.sub(r"\D", "", cleaned)
    if re.fullmatch(r"\d+", cleaned):
        return int(cleaned)
    return None


def detect_total_pages(parser: HTMLParser) -> int:
    """
    Highest page number shown by the first pagination control that has one.
    Returns 1 when the page has no recognizable pagination.
    """
    for selector, read in PAGINATION_CANDIDATES:
        numbers = [
            number
            for number in (_page_number(read(node)) for node in parser.css(selector))
            if number is not None
        ]
        if numbers:
            logger.debug(f"Pagination found via {selector!r}: {max(numbers)} pages")
            return max(max(numbers), 1)
    return 1


def page_url(url: str, page: int) -> str:
    """
    URL of listing page ``page``.
    An existing page query parameter is rewritten, else an existing
    /page/<n> segment, else /page/<n>/ is appended to the path.
    """
    parts = urlsplit(url)
    query = parse_qsl(parts.query, keep_blank_values=True)
    keys = {key for key, _ in query}

    for name in PAGE_PARAMS:
        if name in keys:
            query = [(key, str(page) if key == name else value) for key, value in query]
            return urlunsplit((parts.scheme, parts.netloc, parts.path, urlencode(query), ""))

    path = parts.path
    if PAGE_SEGMENT.search(path):
        path = PAGE_SEGMENT.sub(f"/page/{page}", path, count=1)
    else:
        if not path.endswith("/"):
            path += "/"
        path += f"page/{page}/"
    return urlunsplit((parts.scheme, parts.netloc, path, parts.query, ""))


@dataclass
class PaginationResult:
    records: list[ProductRecord]
    page_count: int
    failed_pages: list[int] = field(default_factory=list)


class PaginationController:
    """Scrapes page 1 from the live document and pages 2..N over HTTP, in order."""

    def __init__(
        self,
        document: LiveDocument,
        fetch_client: FetchClient,
        on_progress: Optional[ProgressCallback] = None,
        throttle: Optional[PageThrottle] = None,
        wait_timeout: Optional[float] = None,
        max_pages: Optional[int] = None,
    ):
        self.document = document
        self.fetch_client = fetch_client
        self.on_progress = on_progress
        self.throttle = throttle or PageThrottle(PAGE_DELAY_SECONDS)
        self.wait_timeout = config.WAIT_TIMEOUT if wait_timeout is None else wait_timeout
        self.max_pages = max_pages or config.MAX_PAGES

    async def _emit(self, current: int, total: int) -> None:
        if self.on_progress is None:
            return
        result = self.on_progress(ProgressUpdate(current=current, total=total))
        if inspect.isawaitable(result):
            await result

    async def scrape_page(self, url: str, fields: list[str]) -> list[ProductRecord]:
        """Fetch one remote page and extract its records."""
        html, final_url = await self.fetch_client.fetch_html(url)
        return extract_page(Document(html, final_url), fields)

    async def scrape_all(self, fields: list[str]) -> PaginationResult:
        await wait_for_content(self.document, self.wait_timeout)
        records = list(extract_page(self.document, fields))
        logger.info(f"Page 1: {len(records)} records")

        total = detect_total_pages(self.document.parser)
        if total <= 1:
            logger.info("No pagination detected, single page")
            return PaginationResult(records=records, page_count=1)
        if total > self.max_pages:
            logger.warning(f"Detected {total} pages, capping at {self.max_pages}")
            total = self.max_pages

        metrics = PageMetrics(total)
        metrics.record_page(len(records))
        failed_pages: list[int] = []
        self.throttle.mark(self.document.url)

        for page in range(2, total + 1):
            url = page_url(self.document.url, page)
            try:
                await self.throttle.acquire(url)
                page_records = await self.scrape_page(url, fields)
                records.extend(page_records)
                metrics.record_page(len(page_records))
            except Exception as e:
                logger.warning(f"Page {page}/{total} failed ({url}): {e}")
                failed_pages.append(page)
                metrics.record_failure()
            metrics.report()
            await self._emit(page, total)

        summary = metrics.get_summary()
        logger.info(
            f"Pagination done: {summary['pages']} pages, {summary['records']} records, "
            f"{summary['failed_pages']} failed"
        )
        return PaginationResult(records=records, page_count=total, failed_pages=failed_pages)
