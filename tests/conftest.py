"""Shared fixtures: an in-memory HttpClient standing in for the network."""

import asyncio
from typing import Optional

import pytest
from html2md.conversion import ConversionEngine, parse_html
from html2md.errors import NotFound
from html2md.images import ImageHarvester
from html2md.models.config import ConversionOptions

PAGE_URL = "https://converttest.goatly.net/page/name"
SAME_HOST_IMAGE_URL = "https://converttest.goatly.net/images/img.png"
OTHER_HOST_IMAGE_URL = "https://other.goatly.net/images/img.png"
RELATIVE_IMAGE_URL = "../img.png"
ROOTED_IMAGE_URL = "/static/images/img.png"
MISSING_IMAGE_URL = "/static/images/missing.png"

IMAGES = {
    SAME_HOST_IMAGE_URL: b"\x01",
    OTHER_HOST_IMAGE_URL: b"\x02",
    "https://converttest.goatly.net/img.png": b"\x03",
    "https://converttest.goatly.net/static/images/img.png": b"\x04",
}


class FakeHttpClient:
    """Serves pages and images from dicts; anything else is a 404."""

    def __init__(self, pages: Optional[dict[str, str]] = None, images: Optional[dict[str, bytes]] = None):
        self.pages = dict(pages or {})
        self.images = dict(IMAGES if images is None else images)
        self.text_requests: list[str] = []
        self.byte_requests: list[str] = []

    async def fetch_text(self, url: str) -> str:
        self.text_requests.append(url)
        await asyncio.sleep(0)
        if url not in self.pages:
            raise NotFound(url, 404)
        return self.pages[url]

    async def fetch_bytes(self, url: str) -> bytes:
        self.byte_requests.append(url)
        await asyncio.sleep(0)
        if url not in self.images:
            raise NotFound(url, 404)
        return self.images[url]


@pytest.fixture
def http_client():
    """Fake client with the standard test images and no pages."""
    return FakeHttpClient()


@pytest.fixture
def render(http_client):
    """Convert markup as if it were served at PAGE_URL; returns (markdown, harvester)."""

    async def _render(html: str, options: Optional[ConversionOptions] = None):
        harvester = ImageHarvester(http_client)
        engine = ConversionEngine(options or ConversionOptions(), harvester, PAGE_URL)
        markdown = await engine.convert(parse_html(html))
        return markdown, harvester

    return _render
