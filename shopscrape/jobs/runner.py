"""Run one scrape operation from request to export payload."""
import logging
import time
import uuid
from typing import Optional

from shopscrape.config import config
from shopscrape.errors import ExportError
from shopscrape.export.transform import Exporter, filename_for
from shopscrape.fetch.client import FetchClient
from shopscrape.fetch.rate_limit import PageThrottle
from shopscrape.jobs.pagination import PaginationController, ProgressCallback
from shopscrape.parse.document import LiveDocument, wait_for_content
from shopscrape.parse.extractor import extract_page
from shopscrape.parse.models import ScrapeRequest, ScrapeResult

logger = logging.getLogger(__name__)


class ScrapeRunner:
    """Orchestrates extraction, pagination and export for the host."""

    def __init__(
        self,
        document: LiveDocument,
        fetch_client: FetchClient,
        exporter: Optional[Exporter] = None,
        on_progress: Optional[ProgressCallback] = None,
        throttle: Optional[PageThrottle] = None,
        wait_timeout: Optional[float] = None,
    ):
        self.document = document
        self.fetch_client = fetch_client
        self.exporter = exporter or Exporter(spreadsheet_enabled=config.SPREADSHEET_ENABLED)
        self.on_progress = on_progress
        self.throttle = throttle
        self.wait_timeout = config.WAIT_TIMEOUT if wait_timeout is None else wait_timeout
        self.run_id = str(uuid.uuid4())

    async def run(self, request: ScrapeRequest) -> ScrapeResult:
        """Never raises: every failure comes back as success=False."""
        start = time.time()
        logger.info(
            f"Run {self.run_id}: {self.document.url} format={request.format} "
            f"all_pages={request.scrape_all_pages} fields={','.join(request.fields)}"
        )
        try:
            self.exporter.check_format(request.format)

            if request.scrape_all_pages:
                controller = PaginationController(
                    self.document,
                    self.fetch_client,
                    on_progress=self.on_progress,
                    throttle=self.throttle,
                    wait_timeout=self.wait_timeout,
                )
                result = await controller.scrape_all(request.fields)
                records, pages = result.records, result.page_count
            else:
                await wait_for_content(self.document, self.wait_timeout)
                records, pages = extract_page(self.document, request.fields), 1

            data = self.exporter.to_format(records, request.fields, request.format)
        except ExportError as e:
            logger.error(f"Run {self.run_id} failed: {e}")
            return ScrapeResult(success=False, error=str(e))
        except Exception as e:
            logger.error(f"Run {self.run_id} failed: {e}", exc_info=True)
            return ScrapeResult(success=False, error=str(e) or e.__class__.__name__)

        logger.info(
            f"Run {self.run_id}: {len(records)} records from {pages} page(s) "
            f"in {time.time() - start:.1f}s"
        )
        return ScrapeResult(
            success=True,
            count=len(records),
            data=data,
            pages=pages,
            filename=filename_for(request.format),
        )
