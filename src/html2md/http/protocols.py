"""Protocol definitions for HTTP client abstraction."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol


@dataclass(frozen=True)
class HttpResponse:
    """
    Immutable HTTP response returned by AsyncHttpClient.get.

    Attributes:
        status_code: HTTP status code (200, 404, etc.)
        content: Raw response content as bytes
        content_type: Content-Type header value
        headers: All response headers
        url: Final URL after any redirects
    """

    status_code: int
    content: bytes
    content_type: str
    headers: dict[str, str]
    url: str


class HttpClient(Protocol):
    """
    Fetch collaborator used for pages and images.

    This abstraction allows for:
    - In-memory fakes in tests
    - Different backends (aiohttp, httpx, local files)
    """

    async def fetch_text(self, url: str) -> str:
        """
        Fetch a page and decode it to text.

        Raises:
            NotFound: The server answered with a 4xx status
            TransportError: Network failure or 5xx after retries
        """
        ...

    async def fetch_bytes(self, url: str) -> bytes:
        """
        Fetch a resource as raw bytes.

        Raises:
            NotFound: The server answered with a 4xx status
            TransportError: Network failure or 5xx after retries
        """
        ...
