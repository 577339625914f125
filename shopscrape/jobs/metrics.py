"""Progress tracking for multi-page scrapes."""
import time
import logging
from collections import defaultdict
from typing import Dict

logger = logging.getLogger(__name__)


class PageMetrics:
    """Track pages, records and failures and estimate time remaining."""

    def __init__(self, total_pages: int):
        self.total_pages = total_pages
        self.start_time = time.time()
        self.counters: Dict[str, int] = defaultdict(int)

    def increment(self, key: str, amount: int = 1) -> None:
        """Increment a counter."""
        self.counters[key] = self.counters.get(key, 0) + amount

    def record_page(self, records: int) -> None:
        self.increment("pages")
        self.increment("records", records)

    def record_failure(self) -> None:
        self.increment("pages")
        self.increment("failed_pages")

    def get_rate(self) -> float:
        """Pages per second so far."""
        elapsed = time.time() - self.start_time
        pages = self.counters.get("pages", 0)
        if elapsed > 0:
            return pages / elapsed
        return 0.0

    def get_eta(self) -> float:
        """Estimated seconds until the last page is done."""
        rate = self.get_rate()
        if rate <= 0:
            return 0.0
        remaining = self.total_pages - self.counters.get("pages", 0)
        return max(remaining, 0) / rate

    def format_eta(self) -> str:
        eta_seconds = self.get_eta()
        if eta_seconds < 60:
            return f"{eta_seconds:.0f}s"
        elif eta_seconds < 3600:
            return f"{eta_seconds / 60:.1f}m"
        else:
            return f"{eta_seconds / 3600:.1f}h"

    def report(self) -> None:
        """Log current progress."""
        pages = self.counters.get("pages", 0)
        logger.info(
            f"Page {pages}/{self.total_pages} "
            f"({pages * 100 // self.total_pages if self.total_pages > 0 else 0}%) | "
            f"Records: {self.counters.get('records', 0)} | "
            f"Failed pages: {self.counters.get('failed_pages', 0)} | "
            f"ETA: {self.format_eta()}"
        )

    def get_summary(self) -> Dict:
        """Get summary statistics."""
        return {
            "total_pages": self.total_pages,
            "pages": self.counters.get("pages", 0),
            "records": self.counters.get("records", 0),
            "failed_pages": self.counters.get("failed_pages", 0),
            "elapsed_seconds": time.time() - self.start_time,
        }
