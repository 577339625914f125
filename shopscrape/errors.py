"""Exceptions raised by the scraping core."""


class ShopScrapeError(Exception):
    """Base class for shopscrape errors."""


class ExportError(ShopScrapeError):
    """A record list could not be serialized."""


class UnsupportedFormatError(ExportError):
    """Requested export format is not one of csv, xlsx, json."""

    def __init__(self, fmt: str):
        self.format = fmt
        super().__init__("Unsupported format")
