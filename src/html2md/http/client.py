"""Async HTTP client used to fetch pages and images."""

from __future__ import annotations

import asyncio
import logging
import random
from types import TracebackType

import aiohttp
from charset_normalizer import from_bytes as detect_encoding

from ..errors import NotFound, TransportError
from .protocols import HttpResponse

logger = logging.getLogger(__name__)

DEFAULT_USER_AGENT = "Mozilla/5.0 (compatible; html2md/1.0)"


def charset_of(content_type: str) -> str | None:
    """Return the ``charset=`` parameter of a Content-Type header, if any."""
    for param in content_type.split(";")[1:]:
        key, _, value = param.partition("=")
        if key.strip().lower() == "charset":
            return value.strip().strip("\"'") or None
    return None


def decode_text(content: bytes, content_type: str = "") -> str:
    """
    Decode a page body.

    The declared charset is tried first, then charset-normalizer's best guess,
    then UTF-8 with replacement characters.
    """
    declared = charset_of(content_type)
    if declared:
        try:
            return content.decode(declared)
        except (UnicodeDecodeError, LookupError):
            logger.debug(f"Declared charset {declared!r} does not decode the body")

    guess = detect_encoding(content).best()
    if guess is not None:
        logger.debug(f"Detected encoding: {guess.encoding}")
        return str(guess)

    return content.decode("utf-8", errors="replace")


class AsyncHttpClient:
    """
    HttpClient implementation on top of aiohttp.

    Transient failures (connection errors, timeouts, 429 and 5xx answers) are
    retried with exponential backoff. Bodies larger than ``max_content_size``
    are rejected while streaming.

    Example:
        async with AsyncHttpClient(max_retries=2) as client:
            html = await client.fetch_text("https://example.com/docs/")
            logo = await client.fetch_bytes("https://example.com/logo.png")
    """

    RETRYABLE_STATUS_CODES = frozenset({429, 500, 502, 503, 504})

    RETRYABLE_EXCEPTIONS = (
        aiohttp.ClientError,
        asyncio.TimeoutError,
        ConnectionError,
    )

    def __init__(
        self,
        max_retries: int = 3,
        retry_base_delay: float = 1.0,
        max_content_size: int = 50 * 1024 * 1024,
        user_agent: str | None = None,
        proxy: str | None = None,
        default_timeout: float = 30.0,
    ) -> None:
        """
        Args:
            max_retries: Retries after the first attempt
            retry_base_delay: Backoff base in seconds (doubled per attempt)
            max_content_size: Largest accepted body in bytes
            user_agent: User-Agent header (a html2md default when None)
            proxy: Proxy URL passed to every request
            default_timeout: Total timeout per attempt in seconds
        """
        self._max_retries = max_retries
        self._retry_base_delay = retry_base_delay
        self._max_content_size = max_content_size
        self._user_agent = user_agent or DEFAULT_USER_AGENT
        self._proxy = proxy
        self._timeout = aiohttp.ClientTimeout(total=default_timeout)
        self._session: aiohttp.ClientSession | None = None

    async def __aenter__(self) -> AsyncHttpClient:
        connector = aiohttp.TCPConnector(limit=100, limit_per_host=10, ttl_dns_cache=300)
        self._session = aiohttp.ClientSession(
            connector=connector,
            headers={"User-Agent": self._user_agent},
            timeout=self._timeout,
        )
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        if self._session:
            await self._session.close()
            self._session = None

    def _calculate_retry_delay(self, attempt: int) -> float:
        """Exponential backoff with up to one second of jitter."""
        return self._retry_base_delay * (2**attempt) + random.uniform(0, 1)

    async def _read_body(self, response: aiohttp.ClientResponse) -> bytes:
        declared = response.headers.get("Content-Length")
        if declared and declared.isdigit() and int(declared) > self._max_content_size:
            raise ValueError(f"Content too large: {declared} bytes")

        body = bytearray()
        async for chunk in response.content.iter_chunked(8192):
            body.extend(chunk)
            if len(body) > self._max_content_size:
                raise ValueError(f"Content size limit exceeded: >{self._max_content_size} bytes")
        return bytes(body)

    async def get(self, url: str) -> HttpResponse:
        """
        GET ``url``, retrying transient failures.

        Returns the final response whatever its status; a retryable status
        that persists past the last attempt is returned as well.

        Raises:
            aiohttp.ClientError, asyncio.TimeoutError: Network failure on the last attempt
            ValueError: Body exceeds ``max_content_size``
        """
        if self._session is None:
            raise RuntimeError("Client not initialized. Use 'async with' context manager.")

        attempts = self._max_retries + 1
        for attempt in range(attempts):
            last_attempt = attempt == attempts - 1
            try:
                async with self._session.get(url, proxy=self._proxy, allow_redirects=True) as response:
                    if response.status in self.RETRYABLE_STATUS_CODES and not last_attempt:
                        problem = f"HTTP {response.status}"
                    else:
                        return HttpResponse(
                            status_code=response.status,
                            content=await self._read_body(response),
                            content_type=response.headers.get("Content-Type", ""),
                            headers=dict(response.headers),
                            url=str(response.url),
                        )
            except self.RETRYABLE_EXCEPTIONS as e:
                if last_attempt:
                    logger.error(f"Giving up on {url} after {attempts} attempts: {e}")
                    raise
                problem = str(e) or type(e).__name__

            delay = self._calculate_retry_delay(attempt)
            logger.warning(f"{problem} for {url}, retrying in {delay:.1f}s (attempt {attempt + 1}/{attempts})")
            await asyncio.sleep(delay)

        raise RuntimeError(f"Unexpected error fetching {url}")

    async def _fetch(self, url: str) -> HttpResponse:
        try:
            response = await self.get(url)
        except (*self.RETRYABLE_EXCEPTIONS, ValueError) as e:
            raise TransportError(url, str(e) or type(e).__name__) from e

        status = response.status_code
        if status == 429 or status >= 500:
            raise TransportError(url, f"HTTP {status}")
        if status >= 400:
            raise NotFound(url, status)
        return response

    async def fetch_text(self, url: str) -> str:
        response = await self._fetch(url)
        logger.debug(f"Fetched {url}: {len(response.content)} bytes")
        return decode_text(response.content, response.content_type)

    async def fetch_bytes(self, url: str) -> bytes:
        response = await self._fetch(url)
        return response.content
