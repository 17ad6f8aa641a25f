"""Batch orchestration: fetch pages, convert them, share one image cache."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Sequence
from types import TracebackType
from typing import Optional, Union

from ..conversion import ConversionEngine, FrontMatterExtractor, parse_html
from ..http import AsyncHttpClient, HttpClient
from ..images import ImageHarvester
from ..models.config import ConversionOptions, NetworkConfig
from ..models.results import ConversionResult, ConvertedDocument, DocumentFailure

logger = logging.getLogger(__name__)


class MarkdownConverter:
    """
    Primary API for html2md.

    Converts pages to Markdown. Within one ``convert_batch`` call every
    document shares the same options and image cache, so an image referenced
    by several pages is downloaded once.

    Example:
        options = ConversionOptions(include_tags=["article"])

        async with MarkdownConverter(options) as converter:
            result = await converter.convert_batch([
                "https://example.com/blog/first",
                "https://example.com/blog/second",
            ])

        for document in result.documents:
            print(document.source_url, len(document.markdown))
        for failure in result.failures:
            print(f"Failed: {failure.source_url} - {failure.message}")
    """

    def __init__(
        self,
        options: Optional[ConversionOptions] = None,
        http_client: Optional[HttpClient] = None,
        network: Optional[NetworkConfig] = None,
    ) -> None:
        """
        Initialize the converter.

        Args:
            options: Conversion options (defaults convert the whole body)
            http_client: Fetch collaborator; an AsyncHttpClient is opened
                         for the converter's lifetime when omitted
            network: Client and concurrency settings
        """
        self.options = options or ConversionOptions()
        self.network = network or NetworkConfig()
        self._client: Optional[HttpClient] = http_client
        self._owned_client: Optional[AsyncHttpClient] = None

    async def __aenter__(self) -> MarkdownConverter:
        """Enter async context and open an HTTP client if none was injected."""
        if self._client is None:
            self._owned_client = AsyncHttpClient(
                max_retries=self.network.max_retries,
                user_agent=self.network.user_agent,
                proxy=self.network.proxy,
                default_timeout=float(self.network.timeout),
            )
            await self._owned_client.__aenter__()
            self._client = self._owned_client
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        """Exit async context and close the client this converter opened."""
        if self._owned_client:
            await self._owned_client.__aexit__(exc_type, exc_val, exc_tb)
            self._owned_client = None
            self._client = None

    @property
    def client(self) -> HttpClient:
        if self._client is None:
            raise RuntimeError("Converter not initialized. Use 'async with' context manager.")
        return self._client

    async def convert_html(
        self,
        html: str,
        page_url: str,
        harvester: Optional[ImageHarvester] = None,
    ) -> str:
        """
        Convert markup that has already been fetched.

        Args:
            html: Page markup
            page_url: URL the markup came from (base for relative references)
            harvester: Image cache to share; a fresh one is used if omitted

        Returns:
            Front matter (when configured) followed by the Markdown body

        Raises:
            ParseFailure: Markup or a path expression could not be processed
            DateFormatFailure: A front matter date could not be parsed
        """
        harvester = harvester or ImageHarvester(self.client)
        document = parse_html(html)

        preamble = FrontMatterExtractor(self.options.front_matter).render(document)
        engine = ConversionEngine(self.options, harvester, page_url)
        body = await engine.convert(document)
        return preamble + body

    async def convert(self, page_url: str) -> ConvertedDocument:
        """
        Fetch and convert a single page.

        Raises:
            FetchFailure: The page could not be fetched
            ParseFailure: Markup or a path expression could not be processed
            DateFormatFailure: A front matter date could not be parsed
        """
        return await self._convert_document(page_url, ImageHarvester(self.client))

    async def convert_batch(self, page_urls: Sequence[str]) -> ConversionResult:
        """
        Convert pages concurrently, sharing one image cache.

        A page that fails is reported in ``failures`` without affecting the
        others. Cancelling the caller cancels every in-flight page and image
        fetch; nothing is returned for a cancelled batch.

        Args:
            page_urls: Pages to convert; result documents keep this order

        Returns:
            ConversionResult with documents, distinct images and failures
        """
        harvester = ImageHarvester(self.client)
        semaphore = asyncio.Semaphore(self.network.max_concurrent)

        async def run_one(url: str) -> Union[ConvertedDocument, DocumentFailure]:
            async with semaphore:
                try:
                    return await self._convert_document(url, harvester)
                except Exception as e:
                    logger.error(f"Conversion failed for {url}: {e}")
                    return DocumentFailure(source_url=url, error=e)

        try:
            outcomes = await asyncio.gather(*(run_one(url) for url in page_urls))
        finally:
            await harvester.aclose()

        result = ConversionResult(images=harvester.images)
        for outcome in outcomes:
            if isinstance(outcome, DocumentFailure):
                result.failures.append(outcome)
            else:
                result.documents.append(outcome)

        logger.info(
            f"Converted {len(result.documents)}/{len(page_urls)} page(s), "
            f"{len(result.images)} image(s) from {harvester.fetch_count} fetch(es)"
        )
        return result

    async def _convert_document(self, page_url: str, harvester: ImageHarvester) -> ConvertedDocument:
        logger.debug(f"Fetching page {page_url}")
        html = await self.client.fetch_text(page_url)
        markdown = await self.convert_html(html, page_url, harvester)
        logger.info(f"Converted {page_url} ({len(markdown)} characters)")
        return ConvertedDocument(source_url=page_url, markdown=markdown)


def convert_blocking(
    page_urls: Sequence[str],
    options: Optional[ConversionOptions] = None,
    network: Optional[NetworkConfig] = None,
) -> ConversionResult:
    """
    Synchronous wrapper around MarkdownConverter.convert_batch.

    Example:
        result = convert_blocking(["https://example.com/page"])
        print(result.documents[0].markdown)
    """

    async def _run() -> ConversionResult:
        async with MarkdownConverter(options, network=network) as converter:
            return await converter.convert_batch(page_urls)

    return asyncio.run(_run())
