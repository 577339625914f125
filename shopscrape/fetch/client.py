"""HTTP client for fetching catalog pages."""
import logging
from typing import Optional
import httpx

from shopscrape.config import config
from shopscrape.parse.document import LiveDocument

logger = logging.getLogger(__name__)


class FetchClient:
    """Async HTTP client; one attempt per URL, non-success statuses raise."""

    def __init__(
        self,
        timeout: Optional[float] = None,
        user_agent: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        # Configure connection pool
        limits = httpx.Limits(
            max_connections=10,
            max_keepalive_connections=5,
        )
        self.client = httpx.AsyncClient(
            http2=transport is None,
            timeout=timeout or config.TIMEOUT,
            follow_redirects=True,
            limits=limits,
            headers={
                "User-Agent": user_agent or config.USER_AGENT,
                "Accept": "text/html,application/xhtml+xml;q=0.9,*/*;q=0.8",
            },
            transport=transport,
        )

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.aclose()

    async def aclose(self) -> None:
        await self.client.aclose()

    async def fetch(self, url: str) -> httpx.Response:
        """GET a URL. Raises httpx.HTTPStatusError for non-2xx responses."""
        try:
            response = await self.client.get(url)
            response.raise_for_status()
            return response
        except (httpx.TimeoutException, httpx.NetworkError) as e:
            logger.warning(f"Network error for {url}: {e}")
            raise

    async def fetch_html(self, url: str) -> tuple[str, str]:
        """Fetch a page and return (html, final_url) after redirects."""
        response = await self.fetch(url)
        return response.text, str(response.url)

    async def fetch_document(self, url: str) -> LiveDocument:
        """Load the starting page of a scrape as the live document."""
        html, final_url = await self.fetch_html(url)
        return LiveDocument(html, final_url)
