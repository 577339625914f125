"""Data models for scrape requests, results and product records."""
from typing import Any, Optional, Union
from pydantic import BaseModel, Field, field_validator

# Canonical field order; records insert keys in this order.
FIELDS: tuple[str, ...] = (
    "title",
    "description",
    "price",
    "images",
    "stock_status",
    "sku",
    "categories",
    "url",
)

ProductRecord = dict[str, Any]


def normalize_fields(fields: Optional[list[str]]) -> list[str]:
    """Validate a field selection and drop duplicates, keeping caller order."""
    if not fields:
        return list(FIELDS)
    selected: list[str] = []
    for name in fields:
        name = name.strip()
        if name not in FIELDS:
            raise ValueError(f"Unknown field: {name}")
        if name not in selected:
            selected.append(name)
    return selected


def is_populated(value: Any) -> bool:
    """True for a non-empty string or a non-empty list."""
    if isinstance(value, str):
        return bool(value.strip())
    if isinstance(value, (list, tuple)):
        return len(value) > 0
    return value is not None


def has_content(record: ProductRecord) -> bool:
    """A record is worth emitting if at least one field is populated."""
    return any(is_populated(value) for value in record.values())


class ScrapeRequest(BaseModel):
    """Options collected by the host for one scrape operation."""

    url: Optional[str] = Field(default=None, description="Starting page (used by hosts that fetch it)")
    format: str = Field(default="csv", description="csv, xlsx or json")
    scrape_all_pages: bool = Field(default=False, alias="scrapeAllPages")
    fields: list[str] = Field(default_factory=lambda: list(FIELDS))

    class Config:
        populate_by_name = True

    @field_validator("fields")
    @classmethod
    def _check_fields(cls, value: list[str]) -> list[str]:
        return normalize_fields(value)


class ScrapeResult(BaseModel):
    """Structured response handed back to the host; never an exception."""

    success: bool
    count: Optional[int] = None
    data: Optional[Union[str, bytes]] = None
    error: Optional[str] = None
    pages: Optional[int] = None
    filename: Optional[str] = None


class ProgressUpdate(BaseModel):
    """Emitted after each page of a multi-page scrape."""

    current: int
    total: int
