"""Batch-wide image resolution with fetch-once deduplication."""

from __future__ import annotations

import asyncio
import logging
import posixpath
from typing import Optional
from urllib.parse import quote, unquote, urljoin, urlparse

from ..errors import FetchFailure
from ..http.protocols import HttpClient
from ..models.results import ReferencedImage

logger = logging.getLogger(__name__)

IMAGE_EXTENSIONS = frozenset({".png", ".jpg", ".jpeg", ".gif", ".bmp", ".svg", ".webp", ".ico", ".tif", ".tiff"})

# Link targets that never refer to a fetchable resource
_PASSTHROUGH_PREFIXES = ("#", "mailto:", "tel:", "javascript:", "data:")


def _host_of(url: str) -> str:
    return urlparse(url).netloc.lower()


def is_same_host(url: str, page_url: str) -> bool:
    host = _host_of(url)
    return bool(host) and host == _host_of(page_url)


def looks_like_image(url: str) -> bool:
    """True if the URL path ends in a known image extension."""
    path = urlparse(url).path
    return posixpath.splitext(path)[1].lower() in IMAGE_EXTENSIONS


def sniff_extension(data: bytes) -> str:
    if data[:8] == b"\x89PNG\r\n\x1a\n":
        return ".png"
    if data[:3] == b"\xff\xd8\xff":
        return ".jpg"
    if data[:6] in (b"GIF87a", b"GIF89a"):
        return ".gif"
    if data[:4] == b"RIFF" and data[8:12] == b"WEBP":
        return ".webp"
    if b"<svg" in data[:512]:
        return ".svg"
    return ".bin"


def local_filename(url: str, data: bytes) -> str:
    """Derive the local file name from the last path segment of ``url``."""
    segment = unquote(urlparse(url).path.rsplit("/", 1)[-1])
    if segment:
        return segment
    return "image" + sniff_extension(data)


def unique_filename(name: str, taken: set[str]) -> str:
    """
    Return ``name``, or ``stem-N.ext`` with the smallest free N, and reserve it.

    Names are compared case-insensitively so the result is also unique on
    case-insensitive file systems.
    """
    stem, ext = posixpath.splitext(name)
    candidate = name
    counter = 0
    while candidate.casefold() in taken:
        counter += 1
        candidate = f"{stem}-{counter}{ext}"
    taken.add(candidate.casefold())
    return candidate


class ImageHarvester:
    """
    Resolves image references for a batch of documents, fetching each once.

    The dedup map holds one task per absolute URL. The lock only guards
    lookup-or-create, so a second document referencing a URL that is still
    downloading awaits the first request instead of issuing another one.
    Failed fetches stay in the map and are not retried.
    Images whose URLs end in the same file name get numbered names.

    Example:
        harvester = ImageHarvester(http_client)
        target = await harvester.resolve_image("../img.png", "https://example.com/docs/page")
        # "img.png"; harvester.images now holds the downloaded bytes
    """

    def __init__(self, http_client: HttpClient) -> None:
        self._client = http_client
        # absolute url -> fetch task (result None when the fetch failed)
        self._tasks: dict[str, asyncio.Task[Optional[ReferencedImage]]] = {}
        self._images: dict[str, ReferencedImage] = {}
        self._filenames: set[str] = set()
        self._lock = asyncio.Lock()
        self._fetch_count = 0

    @property
    def images(self) -> list[ReferencedImage]:
        """Successfully fetched images, in first-registration order."""
        return list(self._images.values())

    @property
    def fetch_count(self) -> int:
        """Number of network fetches issued so far."""
        return self._fetch_count

    async def resolve_image(self, raw: str, page_url: str) -> str:
        """
        Resolve an image reference to the token written into the Markdown.

        Returns:
            The local file name when the image was (or already had been)
            fetched; the absolute URL for images on another host; ``raw``
            unchanged when the fetch failed.
        """
        absolute = urljoin(page_url, raw)

        async with self._lock:
            task = self._tasks.get(absolute)
            if task is None:
                if not is_same_host(absolute, page_url):
                    logger.debug(f"Not fetching image from another host: {absolute}")
                    return absolute
                task = asyncio.ensure_future(self._fetch(absolute))
                self._tasks[absolute] = task

        # Shielded so one document being cancelled does not fail the others waiting on it.
        image = await asyncio.shield(task)
        if image is None:
            return raw
        return quote(image.filename)

    async def resolve_link(self, raw: str, page_url: str) -> str:
        """Resolve a link target; only links to images are harvested."""
        if not raw or raw.lower().startswith(_PASSTHROUGH_PREFIXES):
            return raw
        absolute = urljoin(page_url, raw)
        if looks_like_image(absolute):
            return await self.resolve_image(raw, page_url)
        return absolute

    async def _fetch(self, url: str) -> Optional[ReferencedImage]:
        self._fetch_count += 1
        logger.debug(f"Fetching image {url}")
        try:
            data = await self._client.fetch_bytes(url)
        except FetchFailure as e:
            logger.warning(f"Image not downloaded: {e}")
            return None

        async with self._lock:
            filename = unique_filename(local_filename(url, data), self._filenames)
            image = ReferencedImage(source_url=url, data=data, filename=filename)
            self._images[url] = image
        logger.debug(f"Registered image {url} as {image.filename} ({len(data)} bytes)")
        return image

    async def aclose(self) -> None:
        """Cancel fetches nobody is waiting for any more (batch cancelled or failed)."""
        pending = [task for task in self._tasks.values() if not task.done()]
        for task in pending:
            task.cancel()
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)
