"""FastAPI main application."""
import base64
import logging
from datetime import datetime, timezone
from typing import Optional

from fastapi import Depends, FastAPI, HTTPException
from fastapi.security import APIKeyHeader
from pydantic import BaseModel

from shopscrape.config import config, Config
from shopscrape.fetch.client import FetchClient
from shopscrape.jobs.runner import ScrapeRunner
from shopscrape.logging_conf import setup_logging
from shopscrape.parse.models import ScrapeRequest, ScrapeResult

logger = logging.getLogger(__name__)

app = FastAPI(title="shopscrape API", version="0.1.0")

# API Key security (if configured)
API_KEY_HEADER = APIKeyHeader(name="X-API-KEY", auto_error=False)


def verify_api_key(api_key: Optional[str] = Depends(API_KEY_HEADER)) -> bool:
    """Verify API key if configured."""
    expected_key = config.API_KEY
    if expected_key:
        if not api_key or api_key != expected_key:
            raise HTTPException(status_code=403, detail="Invalid API key")
    return True


class ScrapeResponse(BaseModel):
    """ScrapeResult with binary payloads base64-encoded."""

    success: bool
    count: Optional[int] = None
    data: Optional[str] = None
    encoding: Optional[str] = None
    error: Optional[str] = None
    pages: Optional[int] = None
    filename: Optional[str] = None

    @classmethod
    def from_result(cls, result: ScrapeResult) -> "ScrapeResponse":
        data, encoding = result.data, None
        if isinstance(data, bytes):
            data, encoding = base64.b64encode(data).decode("ascii"), "base64"
        return cls(
            success=result.success,
            count=result.count,
            data=data,
            encoding=encoding,
            error=result.error,
            pages=result.pages,
            filename=result.filename,
        )


def get_fetch_client() -> FetchClient:
    return FetchClient()


@app.get("/health")
async def health():
    """Health check endpoint (no auth required)."""
    return {
        "status": "ok",
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }


@app.post("/scrape", response_model=ScrapeResponse)
async def scrape(
    request: ScrapeRequest,
    _: bool = Depends(verify_api_key),
    client: FetchClient = Depends(get_fetch_client),
):
    """
    Scrape the page at request.url (and its following pages if asked).
    Failures come back as success=false, never as a 5xx.
    """
    if not request.url:
        raise HTTPException(status_code=422, detail="url is required")

    async with client:
        try:
            document = await client.fetch_document(request.url)
        except Exception as e:
            logger.warning(f"Could not load {request.url}: {e}")
            return ScrapeResponse(success=False, error=f"Could not load page: {e}")
        result = await ScrapeRunner(document, client).run(request)

    return ScrapeResponse.from_result(result)


if __name__ == "__main__":
    import uvicorn
    setup_logging()
    Config.validate()
    uvicorn.run(app, host="0.0.0.0", port=8000)
