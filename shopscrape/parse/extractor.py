"""Turn a catalog or product page into product records."""
import logging
from collections import Counter
from typing import Callable, Optional
from urllib.parse import urljoin

from selectolax.parser import HTMLParser, Node

from shopscrape.parse.document import Document
from shopscrape.parse.models import FIELDS, ProductRecord, has_content
from shopscrape.parse.selectors import (
    PRICE_CANDIDATES,
    Candidate,
    first_value,
    node_text,
    resolve,
)
from shopscrape.parse.structured_data import find_products, product_to_record

logger = logging.getLogger(__name__)

# One outermost detail marker without a listing wrapper means a product page.
DETAIL_MARKERS = "div.product, .single-product, .product-detail, [itemtype*='schema.org/Product']"
LISTING_WRAPPERS = ".products, .product-list, .product-grid"
# Product grids shown alongside a detail page.
RELATED_SECTIONS = ".related, .upsells, .cross-sells, .up-sells"

CONTAINER_FAMILIES = [
    ".product",
    "a.woocommerce-LoopProduct-link, .product-title a, .product-name a",
    "[class*='product-item']",
]

PRICE_ELEMENTS = ", ".join(selector for selector, _ in PRICE_CANDIDATES)
CART_CONTROLS = (
    ".add_to_cart_button, .add-to-cart, .btn-cart, [name='add-to-cart'], "
    "[data-product_id], button[class*='cart']"
)
HEADINGS = "h1, h2, h3, h4, h5, h6"

DETAIL_TITLE_CANDIDATES: list[Candidate] = [
    (".product_title", node_text),
    (".product-title", node_text),
    ("h1.entry-title", node_text),
    ("h1", node_text),
]

CARD_TITLE_CANDIDATES: list[Candidate] = [
    (".woocommerce-loop-product__title", node_text),
    (".product-title", node_text),
    (".product-name", node_text),
    (".product-item-name", node_text),
    (".product-item-link", node_text),
    ("h2", node_text),
    ("h3", node_text),
    ("h4", node_text),
    ("h5", node_text),
    ("h1", node_text),
    ("h6", node_text),
]

RESOLVED_FIELDS = ("description", "price", "images", "stock_status", "sku", "categories")


def _distinct(nodes: list[Node]) -> list[Node]:
    seen: set[int] = set()
    unique = []
    for node in nodes:
        if node.mem_id not in seen:
            seen.add(node.mem_id)
            unique.append(node)
    return unique


def _has_ancestor(node: Node, mem_ids: set[int]) -> bool:
    parent = node.parent
    while parent is not None:
        if parent.mem_id in mem_ids:
            return True
        parent = parent.parent
    return False


def _outermost(nodes: list[Node]) -> list[Node]:
    """Nodes not nested inside another node of the same list."""
    mem_ids = {node.mem_id for node in nodes}
    return [node for node in nodes if not _has_ancestor(node, mem_ids)]


def _outside_related(parser: HTMLParser, selector: str) -> list[Node]:
    """Distinct matches of ``selector`` that are not part of a related-products grid."""
    related = {node.mem_id for node in parser.css(RELATED_SECTIONS)}
    return [
        node
        for node in _distinct(parser.css(selector))
        if node.mem_id not in related and not _has_ancestor(node, related)
    ]


def is_single_product_page(parser: HTMLParser) -> bool:
    """
    One outermost detail marker and no listing wrapper.
    Markers nested in each other (body.single-product around div.product)
    count once; sibling product cards count once each. Related and upsell
    grids are ignored.
    """
    if _outside_related(parser, LISTING_WRAPPERS):
        return False
    return len(_outermost(_outside_related(parser, DETAIL_MARKERS))) == 1


def _detail_title_node(parser: HTMLParser) -> Optional[Node]:
    for selector, read in DETAIL_TITLE_CANDIDATES:
        node = parser.css_first(selector)
        if node is not None and read(node):
            return node
    return None


def detail_scope(parser: HTMLParser) -> Node:
    """Innermost detail marker around the product title, else the outermost marker."""
    markers = _outside_related(parser, DETAIL_MARKERS)
    marker_ids = {node.mem_id for node in markers}
    node = _detail_title_node(parser)
    while node is not None:
        if node.mem_id in marker_ids:
            return node
        node = node.parent
    return _outermost(markers)[0]


def _absolute(url: str, base_url: str) -> str:
    url = (url or "").strip()
    if not url or not base_url:
        return url
    return urljoin(base_url, url)


def _build_record(fields: list[str], getters: dict[str, Callable[[], object]]) -> ProductRecord:
    """Run only the getters whose field was requested, in canonical order."""
    return {name: getters[name]() for name in FIELDS if name in fields}


def _resolved_getters(container, base_url: str, fallback=None) -> dict[str, Callable[[], object]]:
    return {
        name: (lambda name=name: resolve(container, name, base_url, fallback=fallback))
        for name in RESOLVED_FIELDS
    }


def extract_single_product(document: Document, fields: list[str]) -> list[ProductRecord]:
    """
    Extract the one product shown on a detail page.
    Fields resolve inside the detail block first; the whole document is only
    searched for fields the block does not hold (breadcrumbs, meta description).
    """
    parser = document.parser
    getters = _resolved_getters(detail_scope(parser), document.url, fallback=parser)
    getters["title"] = lambda: first_value(parser, DETAIL_TITLE_CANDIDATES)
    getters["url"] = lambda: document.url
    record = _build_record(fields, getters)
    return [record] if has_content(record) else []


def _looks_like_product(container: Node) -> bool:
    return (
        container.css_first(PRICE_ELEMENTS) is not None
        or container.css_first(CART_CONTROLS) is not None
        or container.css_first(HEADINGS) is not None
    )


def _candidate_ancestors(node: Node, candidate_ids: set[int]) -> list[int]:
    ancestors = []
    parent = node.parent
    while parent is not None:
        if parent.mem_id in candidate_ids:
            ancestors.append(parent.mem_id)
        parent = parent.parent
    return ancestors


def find_containers(parser: HTMLParser) -> list[Node]:
    """
    Product card candidates from all selector families, filtered to nodes that
    hold a price, a cart control or a heading.
    A candidate holding two or more other candidates is a list wrapper and is
    dropped; a candidate nested inside a kept card is part of that card.
    """
    candidates = []
    for family in CONTAINER_FAMILIES:
        candidates.extend(parser.css(family))
    candidates = [node for node in _distinct(candidates) if _looks_like_product(node)]

    candidate_ids = {node.mem_id for node in candidates}
    ancestors = {node.mem_id: _candidate_ancestors(node, candidate_ids) for node in candidates}
    inner_count = Counter(a for node_ancestors in ancestors.values() for a in node_ancestors)

    def is_wrapper(mem_id: int) -> bool:
        return inner_count[mem_id] >= 2

    return [
        node
        for node in candidates
        if not is_wrapper(node.mem_id)
        and not any(not is_wrapper(a) for a in ancestors[node.mem_id])
    ]


def _container_url(container: Node, page_url: str) -> str:
    if container.tag == "a" and container.attributes.get("href"):
        return _absolute(container.attributes["href"], page_url)
    link = container.css_first("a[href]")
    if link is not None and link.attributes.get("href"):
        return _absolute(link.attributes["href"], page_url)
    return page_url


def extract_container(container: Node, fields: list[str], page_url: str) -> ProductRecord:
    """Build a record from one product card."""
    getters = _resolved_getters(container, page_url)
    getters["title"] = lambda: first_value(container, CARD_TITLE_CANDIDATES)
    getters["url"] = lambda: _container_url(container, page_url)
    return _build_record(fields, getters)


def extract_listing(document: Document, fields: list[str]) -> list[ProductRecord]:
    """One record per product card on a listing page."""
    records = []
    for container in find_containers(document.parser):
        record = extract_container(container, fields, document.url)
        if has_content(record):
            records.append(record)
    return records


def extract_structured_data(document: Document, fields: list[str]) -> list[ProductRecord]:
    """Records built from JSON-LD Product entities."""
    records = []
    for entity in find_products(document.parser):
        record = product_to_record(entity, fields, document.url)
        if has_content(record):
            records.append(record)
    return records


def extract_page(document: Document, fields: list[str]) -> list[ProductRecord]:
    """
    Extract product records from a document.
    Detail pages give at most one record; listing pages give one per card,
    falling back to JSON-LD metadata when no card is found.
    """
    if is_single_product_page(document.parser):
        logger.debug(f"Single product page: {document.url}")
        return extract_single_product(document, fields)

    records = extract_listing(document, fields)
    if records:
        logger.debug(f"Found {len(records)} product cards on {document.url}")
        return records

    records = extract_structured_data(document, fields)
    if records:
        logger.debug(f"Found {len(records)} JSON-LD products on {document.url}")
    return records
