"""Ordered CSS selector fallbacks for product fields."""
import re
from typing import Callable, Optional, Union
from urllib.parse import urljoin

from selectolax.parser import HTMLParser, Node


Container = Union[HTMLParser, Node]
Reader = Callable[[Node], str]
Candidate = tuple[str, Reader]


def node_text(node: Node) -> str:
    """Visible text of a node with whitespace collapsed."""
    return " ".join(node.text(separator=" ", strip=True).split())


def attr(*names: str) -> Reader:
    """Reader returning the first non-empty attribute among ``names``."""

    def read(node: Node) -> str:
        for name in names:
            value = node.attributes.get(name)
            if value and value.strip():
                return value.strip()
        return ""

    return read


def attr_or_text(*names: str) -> Reader:
    read_attr = attr(*names)

    def read(node: Node) -> str:
        return read_attr(node) or node_text(node)

    return read


def image_source(node: Node) -> str:
    """Image URL, skipping inline placeholders used by lazy loaders."""
    for name in ("src", "data-src", "data-lazy-src", "data-original", "srcset"):
        value = (node.attributes.get(name) or "").strip()
        if not value or value.startswith("data:"):
            continue
        if name == "srcset":
            value = value.split(",")[0].split()[0]
        return value
    return ""


AVAILABILITY_LABELS = {
    "instock": "In stock",
    "outofstock": "Out of stock",
    "soldout": "Out of stock",
    "preorder": "Pre-order",
    "backorder": "On backorder",
    "limitedavailability": "Limited availability",
    "discontinued": "Discontinued",
    "instoreonly": "In store only",
    "onlineonly": "In stock",
}


def availability_label(value: str) -> str:
    """Map a schema.org availability value (URL or bare name) to a label."""
    if not value:
        return ""
    key = value.rstrip("/").rsplit("/", 1)[-1].replace("_", "").replace(" ", "").lower()
    return AVAILABILITY_LABELS.get(key, value.strip())


def stock_reader(node: Node) -> str:
    text = node_text(node)
    if text:
        return text
    return availability_label(attr("content", "href")(node))


def normalize_price(text: str) -> str:
    """Keep digits, dots and commas only; price stays an opaque string."""
    if not text:
        return ""
    return re.sub(r"[^\d.,]", "", text).strip(".,")


# Discounted price selectors come before full price selectors.
PRICE_CANDIDATES: list[Candidate] = [
    (".price ins .amount", node_text),
    (".price ins", node_text),
    (".sale-price", node_text),
    (".special-price .price", node_text),
    (".price .amount", node_text),
    (".price", node_text),
    (".product-price", node_text),
    ("[itemprop='price']", attr_or_text("content")),
    ("[data-price]", attr("data-price")),
]

IMAGE_CANDIDATES: list[Candidate] = [
    (".woocommerce-product-gallery__image img", image_source),
    (".product-gallery img", image_source),
    ("img.wp-post-image", image_source),
    (".product-image img", image_source),
    ("img", image_source),
]

STOCK_CANDIDATES: list[Candidate] = [
    (".stock", stock_reader),
    (".availability", stock_reader),
    ("[itemprop='availability']", stock_reader),
]

SKU_CANDIDATES: list[Candidate] = [
    (".sku", node_text),
    ("[itemprop='sku']", attr_or_text("content")),
    ("[data-product_sku]", attr("data-product_sku")),
    ("[data-sku]", attr("data-sku")),
]

CATEGORY_CANDIDATES: list[Candidate] = [
    (".posted_in a", node_text),
    ("[itemprop='category']", attr_or_text("content")),
    (".woocommerce-breadcrumb a", node_text),
    (".breadcrumb a", node_text),
]

DESCRIPTION_CANDIDATES: list[Candidate] = [
    (".woocommerce-product-details__short-description", node_text),
    (".product-short-description", node_text),
    (".product-description", node_text),
    ("#tab-description", node_text),
    ("[itemprop='description']", attr_or_text("content")),
    ("meta[name='description']", attr("content")),
    ("meta[property='og:description']", attr("content")),
]

DEFAULT_STOCK_STATUS = "In stock"


def first_value(container: Container, candidates: list[Candidate]) -> str:
    """Value of the first candidate that matches and reads non-empty."""
    for selector, read in candidates:
        node = container.css_first(selector)
        if node is None:
            continue
        value = read(node)
        if value:
            return value
    return ""


def all_values(container: Container, candidates: list[Candidate]) -> list[str]:
    """Every non-empty value of the first candidate that yields any."""
    for selector, read in candidates:
        values: list[str] = []
        for node in container.css(selector):
            value = read(node)
            if value and value not in values:
                values.append(value)
        if values:
            return values
    return []


def _resolve_price(container: Container, base_url: str) -> str:
    return normalize_price(first_value(container, PRICE_CANDIDATES))


def _resolve_images(container: Container, base_url: str) -> list[str]:
    images: list[str] = []
    for src in all_values(container, IMAGE_CANDIDATES):
        absolute = urljoin(base_url, src) if base_url else src
        if absolute not in images:
            images.append(absolute)
    return images


def _resolve_stock(container: Container, base_url: str) -> str:
    return first_value(container, STOCK_CANDIDATES)


def _resolve_sku(container: Container, base_url: str) -> str:
    return first_value(container, SKU_CANDIDATES)


def _resolve_categories(container: Container, base_url: str) -> list[str]:
    return all_values(container, CATEGORY_CANDIDATES)


def _resolve_description(container: Container, base_url: str) -> str:
    return first_value(container, DESCRIPTION_CANDIDATES)


RESOLVERS: dict[str, Callable[[Container, str], Union[str, list[str]]]] = {
    "price": _resolve_price,
    "images": _resolve_images,
    "stock_status": _resolve_stock,
    "sku": _resolve_sku,
    "categories": _resolve_categories,
    "description": _resolve_description,
}

FIELD_DEFAULTS = {"stock_status": DEFAULT_STOCK_STATUS}


def resolve(
    container: Container,
    field_kind: str,
    base_url: str = "",
    fallback: Optional[Container] = None,
) -> Union[str, list[str]]:
    """
    Resolve one field inside ``container`` through its selector fallbacks.
    When nothing matches and ``fallback`` is given, the chain runs again
    against it. Misses return the field default: "" for text, [] for lists
    and "In stock" for stock_status.
    """
    try:
        resolver = RESOLVERS[field_kind]
    except KeyError:
        raise ValueError(f"No selector chain for field: {field_kind}") from None
    value = resolver(container, base_url)
    if not value and fallback is not None:
        value = resolver(fallback, base_url)
    return value or FIELD_DEFAULTS.get(field_kind, value)
