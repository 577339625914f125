"""Extract schema.org Product entities from JSON-LD script blocks."""
import json
import logging
from typing import Any, Iterator
from urllib.parse import urljoin

from selectolax.parser import HTMLParser

from shopscrape.parse.models import FIELDS, ProductRecord
from shopscrape.parse.selectors import availability_label, normalize_price

logger = logging.getLogger(__name__)

JSON_LD_SELECTOR = "script[type='application/ld+json']"


def iter_json_ld(parser: HTMLParser) -> Iterator[Any]:
    """Yield every JSON-LD block that parses; malformed blocks are skipped."""
    for index, script in enumerate(parser.css(JSON_LD_SELECTOR)):
        text = script.text(deep=True, strip=True)
        if not text:
            continue
        try:
            yield json.loads(text)
        except json.JSONDecodeError as e:
            logger.debug(f"Skipping malformed JSON-LD block #{index}: {e}")
            continue


# Keys that hold further entities: @graph containers and ItemList entries.
NESTED_KEYS = ("@graph", "itemListElement", "item")


def _flatten(data: Any) -> Iterator[dict[str, Any]]:
    """Walk lists, @graph containers and ItemList entries down to entity dicts."""
    if isinstance(data, list):
        for item in data:
            yield from _flatten(item)
    elif isinstance(data, dict):
        if "@type" in data:
            yield data
        for key in NESTED_KEYS:
            if isinstance(data.get(key), (list, dict)):
                yield from _flatten(data[key])


def _is_product(entity: dict[str, Any]) -> bool:
    declared = entity.get("@type")
    if isinstance(declared, list):
        return "Product" in declared
    return declared == "Product"


def find_products(parser: HTMLParser) -> list[dict[str, Any]]:
    """All Product entities across the document's JSON-LD blocks."""
    products = []
    for block in iter_json_ld(parser):
        for entity in _flatten(block):
            if _is_product(entity):
                products.append(entity)
    return products


def _first_offer(entity: dict[str, Any]) -> dict[str, Any]:
    offers = entity.get("offers")
    if isinstance(offers, list):
        offers = next((o for o in offers if isinstance(o, dict)), None)
    return offers if isinstance(offers, dict) else {}


def _images(value: Any, base_url: str) -> list[str]:
    if isinstance(value, (str, dict)):
        value = [value]
    if not isinstance(value, list):
        return []
    images: list[str] = []
    for item in value:
        if isinstance(item, dict):
            item = item.get("url") or item.get("contentUrl")
        if isinstance(item, str) and item.strip():
            url = urljoin(base_url, item.strip()) if base_url else item.strip()
            if url not in images:
                images.append(url)
    return images


def _categories(value: Any) -> list[str]:
    if isinstance(value, str):
        value = [value]
    if not isinstance(value, list):
        return []
    return [str(v).strip() for v in value if isinstance(v, (str, int, float)) and str(v).strip()]


def _text(value: Any) -> str:
    if value is None or isinstance(value, (dict, list)):
        return ""
    return str(value).strip()


def _absolute(url: str, base_url: str) -> str:
    return urljoin(base_url, url) if url and base_url else url


def product_to_record(entity: dict[str, Any], fields: list[str], base_url: str = "") -> ProductRecord:
    """Map declared Product properties onto the requested fields."""
    offer = _first_offer(entity)
    values = {
        "title": lambda: _text(entity.get("name")),
        "description": lambda: _text(entity.get("description")),
        "price": lambda: normalize_price(_text(offer.get("price") or offer.get("lowPrice"))),
        "images": lambda: _images(entity.get("image"), base_url),
        "stock_status": lambda: availability_label(_text(offer.get("availability"))),
        "sku": lambda: _text(entity.get("sku")),
        "categories": lambda: _categories(entity.get("category")),
        "url": lambda: _absolute(_text(entity.get("url")), base_url),
    }
    return {name: values[name]() for name in FIELDS if name in fields}
