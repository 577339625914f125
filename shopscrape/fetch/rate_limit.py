"""Fixed spacing between page fetches."""
import asyncio
import logging
import time
from collections import defaultdict
from typing import Dict
from urllib.parse import urlparse

logger = logging.getLogger(__name__)


class PageThrottle:
    """Keeps at least ``min_interval`` seconds between requests to a host."""

    def __init__(self, min_interval: float):
        self.min_interval = max(min_interval, 0.0)
        self._last_request: Dict[str, float] = defaultdict(lambda: 0.0)
        self._locks: Dict[str, asyncio.Lock] = defaultdict(asyncio.Lock)
        self.total_wait = 0.0

    def _get_domain(self, url: str) -> str:
        """Extract domain from URL."""
        parsed = urlparse(url)
        return f"{parsed.scheme}://{parsed.netloc}"

    async def acquire(self, url: str) -> None:
        """Wait if the previous request to this host was too recent."""
        domain = self._get_domain(url)
        async with self._locks[domain]:
            last = self._last_request[domain]
            elapsed = time.monotonic() - last

            if last and elapsed < self.min_interval:
                wait_time = self.min_interval - elapsed
                logger.debug(f"Waiting {wait_time:.2f}s before next page of {domain}")
                self.total_wait += wait_time
                await asyncio.sleep(wait_time)

            self._last_request[domain] = time.monotonic()

    def mark(self, url: str) -> None:
        """Record a request made outside the throttle (the first page)."""
        self._last_request[self._get_domain(url)] = time.monotonic()
