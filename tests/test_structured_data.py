"""Tests for JSON-LD product extraction."""
import pytest
from selectolax.parser import HTMLParser

from shopscrape.parse.models import FIELDS
from shopscrape.parse.structured_data import find_products, product_to_record


def _ld(payload: str) -> str:
    return f'<script type="application/ld+json">{payload}</script>'


def test_find_products_skips_malformed_blocks():
    """A broken block does not stop the others from being read."""
    html = _ld("{not json") + _ld('{"@type": "Product", "name": "Anchor"}')
    products = find_products(HTMLParser(html))
    assert len(products) == 1
    assert products[0]["name"] == "Anchor"


def test_find_products_filters_type():
    """Only Product entities are kept."""
    html = _ld('{"@type": "Organization", "name": "Boat Shop"}') + _ld('{"@type": "Product", "name": "Rope"}')
    assert [p["name"] for p in find_products(HTMLParser(html))] == ["Rope"]


def test_find_products_graph_and_lists():
    """@graph containers and top-level arrays are walked."""
    html = _ld(
        '{"@context": "https://schema.org", "@graph": ['
        '{"@type": "WebPage", "name": "Shop"},'
        '{"@type": ["Product", "Thing"], "name": "Fender"}]}'
    ) + _ld('[{"@type": "Product", "name": "Cleat"}]')
    names = [p["name"] for p in find_products(HTMLParser(html))]
    assert names == ["Fender", "Cleat"]


def test_find_products_item_list():
    """Products nested in ItemList entries are reached."""
    html = _ld(
        '{"@type": "ItemList", "itemListElement": ['
        '{"@type": "ListItem", "position": 1, "item": {"@type": "Product", "name": "Anchor"}},'
        '{"@type": "ListItem", "position": 2, "item": {"@type": "Product", "name": "Rope"}},'
        '{"@type": "Product", "name": "Chain"}]}'
    )
    names = [p["name"] for p in find_products(HTMLParser(html))]
    assert names == ["Anchor", "Rope", "Chain"]


def test_product_to_record_maps_properties():
    """Declared properties land on the record fields."""
    entity = {
        "@type": "Product",
        "name": "Anchor",
        "description": "Galvanised steel",
        "image": ["/img/anchor.jpg", {"@type": "ImageObject", "url": "/img/anchor-2.jpg"}],
        "sku": "ANC-10",
        "url": "/product/anchor/",
        "category": "Mooring",
        "offers": [{"@type": "Offer", "price": 49.9, "availability": "https://schema.org/InStock"}],
    }
    record = product_to_record(entity, list(FIELDS), "https://shop.test/shop/")
    assert record == {
        "title": "Anchor",
        "description": "Galvanised steel",
        "price": "49.9",
        "images": ["https://shop.test/img/anchor.jpg", "https://shop.test/img/anchor-2.jpg"],
        "stock_status": "In stock",
        "sku": "ANC-10",
        "categories": ["Mooring"],
        "url": "https://shop.test/product/anchor/",
    }


def test_product_to_record_respects_fields():
    """Unrequested fields are not present."""
    record = product_to_record({"@type": "Product", "name": "Anchor", "sku": "A"}, ["title"])
    assert record == {"title": "Anchor"}


def test_product_to_record_low_price():
    """AggregateOffer lowPrice is used when price is absent."""
    entity = {"@type": "Product", "offers": {"@type": "AggregateOffer", "lowPrice": "12.00"}}
    assert product_to_record(entity, ["price"]) == {"price": "12.00"}
