"""Command line entry point."""
import argparse
import asyncio
import logging
import sys
from pathlib import Path

from shopscrape.config import Config
from shopscrape.export.transform import FORMATS
from shopscrape.fetch.client import FetchClient
from shopscrape.jobs.runner import ScrapeRunner
from shopscrape.logging_conf import setup_logging
from shopscrape.parse.models import FIELDS, ProgressUpdate, ScrapeRequest
from shopscrape.store.exports import default_export_path, save_export

logger = logging.getLogger(__name__)


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(description="Extract products from a shop page")
    parser.add_argument("url", help="Catalog or product page URL")
    parser.add_argument(
        "--format",
        default="csv",
        help=f"Export format: {', '.join(FORMATS)} (default: csv)",
    )
    parser.add_argument(
        "--all-pages",
        action="store_true",
        help="Follow pagination and scrape every listing page",
    )
    parser.add_argument(
        "--fields",
        default=",".join(FIELDS),
        help=f"Comma-separated fields, in column order (default: {','.join(FIELDS)})",
    )
    parser.add_argument(
        "--output",
        type=Path,
        default=None,
        help="Output file (default: data/exports/products.<format>)",
    )
    parser.add_argument(
        "--dev",
        action="store_true",
        help="Verbose logs",
    )
    return parser.parse_args(argv)


def log_progress(update: ProgressUpdate) -> None:
    logger.info(f"Scraped page {update.current}/{update.total}")


async def run(args: argparse.Namespace) -> int:
    """Fetch the start page, scrape, save. Returns the exit code."""
    try:
        request = ScrapeRequest(
            url=args.url,
            format=args.format,
            scrape_all_pages=args.all_pages,
            fields=[f for f in args.fields.split(",") if f.strip()],
        )
    except ValueError as e:
        logger.error(f"Invalid request: {e}")
        return 1

    async with FetchClient() as client:
        try:
            document = await client.fetch_document(args.url)
        except Exception as e:
            logger.error(f"Could not load {args.url}: {e}")
            return 1
        runner = ScrapeRunner(document, client, on_progress=log_progress)
        result = await runner.run(request)

    if not result.success:
        logger.error(f"Scrape failed: {result.error}")
        return 1

    path = args.output or default_export_path(result.filename)
    await save_export(result.data, path)
    logger.info(f"{result.count} products from {result.pages} page(s) written to {path}")
    return 0


def main() -> None:
    """Main entry point."""
    args = parse_args()
    setup_logging("DEBUG" if args.dev else None)

    try:
        Config.validate()
    except ValueError as e:
        logger.error(f"Configuration error: {e}")
        sys.exit(1)

    try:
        sys.exit(asyncio.run(run(args)))
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
        sys.exit(1)


if __name__ == "__main__":
    main()
