"""Tests for the command line entry point."""
import asyncio
import json
import httpx
import pytest

from shopscrape import main as cli
from shopscrape.config import config
from shopscrape.fetch.client import FetchClient

LISTING = """
<html><body><ul class="products">
    <li class="product"><h2>Anchor</h2><span class="price">$25.00</span></li>
    <li class="product"><h2>Rope</h2><span class="price">$8.00</span></li>
</ul></body></html>
"""


@pytest.fixture
def mock_fetch(monkeypatch):
    def handler(request):
        if request.url.path == "/shop/":
            return httpx.Response(200, html=LISTING)
        return httpx.Response(404)

    monkeypatch.setattr(config, "WAIT_TIMEOUT", 0.01)
    monkeypatch.setattr(cli, "FetchClient", lambda: FetchClient(transport=httpx.MockTransport(handler)))


def test_parse_args_defaults():
    args = cli.parse_args(["https://shop.test/shop/"])
    assert args.format == "csv"
    assert args.all_pages is False
    assert args.fields.split(",")[0] == "title"
    assert args.output is None


def test_run_writes_export(mock_fetch, tmp_path):
    output = tmp_path / "out.json"
    args = cli.parse_args(
        ["https://shop.test/shop/", "--format", "json", "--fields", "title,price", "--output", str(output)]
    )

    assert asyncio.run(cli.run(args)) == 0
    assert json.loads(output.read_text()) == [
        {"title": "Anchor", "price": "25.00"},
        {"title": "Rope", "price": "8.00"},
    ]


def test_run_unsupported_format(mock_fetch, tmp_path):
    args = cli.parse_args(["https://shop.test/shop/", "--format", "xml", "--output", str(tmp_path / "x")])
    assert asyncio.run(cli.run(args)) == 1
    assert not (tmp_path / "x").exists()


def test_run_unknown_field(mock_fetch):
    args = cli.parse_args(["https://shop.test/shop/", "--fields", "title,colour"])
    assert asyncio.run(cli.run(args)) == 1


def test_run_unreachable_page(mock_fetch):
    args = cli.parse_args(["https://shop.test/gone/"])
    assert asyncio.run(cli.run(args)) == 1
