"""Tests for batch conversion."""

import asyncio
from unittest.mock import patch

import pytest
from conftest import PAGE_URL, FakeHttpClient
from html2md import MarkdownConverter, convert_blocking
from html2md.errors import DateFormatFailure, NotFound
from html2md.models.config import (
    ConversionOptions,
    FrontMatterOptions,
    NetworkConfig,
    PropertyDataType,
    PropertyMatchExpression,
)
from html2md.models.results import ConversionResult


def _page(index: int) -> str:
    return PAGE_URL + ("" if index == 0 else str(index + 1))


class TestConvertBatch:
    """Tests for MarkdownConverter.convert_batch."""

    @pytest.mark.asyncio
    async def test_multiple_documents_share_images(self):
        """Test each distinct image is fetched once across documents."""
        pages = [
            "",
            '<div>An image: <img src="/static/images/img.png" alt="Title" > </div>',
            '<div>Another image: <img src="../img.png" alt="Title" > </div>',
            '<div>A repeated image: <img src="../img.png" alt="Title" > </div>',
        ]
        client = FakeHttpClient(pages={_page(i): html for i, html in enumerate(pages)})

        async with MarkdownConverter(http_client=client) as converter:
            result = await converter.convert_batch([_page(i) for i in range(len(pages))])

        names = {image.source_url: image.filename for image in result.images}
        rooted = names["https://converttest.goatly.net/static/images/img.png"]
        relative = names["https://converttest.goatly.net/img.png"]

        assert result.succeeded
        assert {rooted, relative} == {"img.png", "img-1.png"}
        assert [doc.markdown for doc in result.documents] == [
            "",
            f"An image: ![Title]({rooted})\n\n",
            f"Another image: ![Title]({relative})\n\n",
            f"A repeated image: ![Title]({relative})\n\n",
        ]
        assert {image.source_url for image in result.images} == {
            "https://converttest.goatly.net/static/images/img.png",
            "https://converttest.goatly.net/img.png",
        }
        assert sorted(client.byte_requests) == [
            "https://converttest.goatly.net/img.png",
            "https://converttest.goatly.net/static/images/img.png",
        ]

    @pytest.mark.asyncio
    async def test_documents_keep_input_order(self):
        """Test results follow the order of the input URLs."""
        urls = [_page(i) for i in range(6)]
        client = FakeHttpClient(pages={url: f"<p>{i}</p>" for i, url in enumerate(urls)})
        network = NetworkConfig(max_concurrent=2)

        async with MarkdownConverter(http_client=client, network=network) as converter:
            result = await converter.convert_batch(urls)

        assert [doc.source_url for doc in result.documents] == urls
        assert result.document_for(urls[3]).markdown == "3\n\n"

    @pytest.mark.asyncio
    async def test_failed_page_does_not_stop_batch(self):
        """Test a missing page is reported while others convert."""
        client = FakeHttpClient(pages={_page(0): "<p>ok</p>"})

        async with MarkdownConverter(http_client=client) as converter:
            result = await converter.convert_batch([_page(0), _page(1)])

        assert not result.succeeded
        assert [doc.source_url for doc in result.documents] == [_page(0)]
        assert len(result.failures) == 1
        assert result.failures[0].source_url == _page(1)
        assert isinstance(result.failures[0].error, NotFound)
        assert result.document_for(_page(1)) is None

    @pytest.mark.asyncio
    async def test_bad_date_reported_as_failure(self):
        """Test a front matter date error fails only that document."""
        options = ConversionOptions(
            exclude_tags=["time"],
            front_matter=FrontMatterOptions(
                enabled=True,
                single_value_properties={
                    "Date": PropertyMatchExpression(path="time", data_type=PropertyDataType.DATE),
                },
            )
        )
        client = FakeHttpClient(
            pages={
                _page(0): "<body><time>Doc title</time><p>a</p></body>",
                _page(1): "<body><time>2014-08-07T11:55:08+02:00</time><p>b</p></body>",
            }
        )

        async with MarkdownConverter(options, http_client=client) as converter:
            result = await converter.convert_batch([_page(0), _page(1)])

        assert isinstance(result.failures[0].error, DateFormatFailure)
        assert result.documents[0].markdown == (
            '---\nDate: "2014-08-07T11:55:08.0000000+02:00"\n---\nb\n\n'
        )

    @pytest.mark.asyncio
    async def test_front_matter_with_excluded_heading(self):
        """Test front matter comes from the whole document even if excluded."""
        options = ConversionOptions(
            exclude_tags=["h1"],
            front_matter=FrontMatterOptions(
                enabled=True,
                single_value_properties={"Title": PropertyMatchExpression(path="body > h1")},
            ),
        )
        client = FakeHttpClient(pages={PAGE_URL: "<body><h1>Doc title</h1><p>test</p></body>"})

        async with MarkdownConverter(options, http_client=client) as converter:
            document = await converter.convert(PAGE_URL)

        assert document.markdown == '---\nTitle: "Doc title"\n---\ntest\n\n'

    @pytest.mark.asyncio
    async def test_empty_batch(self):
        """Test an empty batch yields an empty result."""
        async with MarkdownConverter(http_client=FakeHttpClient()) as converter:
            result = await converter.convert_batch([])

        assert result.documents == []
        assert result.images == []
        assert result.succeeded

    @pytest.mark.asyncio
    async def test_cancelled_batch_propagates(self):
        """Test cancelling the caller cancels the batch."""
        started = asyncio.Event()

        class HangingClient(FakeHttpClient):
            async def fetch_text(self, url):
                started.set()
                await asyncio.Event().wait()

        async with MarkdownConverter(http_client=HangingClient()) as converter:
            task = asyncio.ensure_future(converter.convert_batch([PAGE_URL]))
            await started.wait()
            task.cancel()
            with pytest.raises(asyncio.CancelledError):
                await task


class TestConverterLifecycle:
    """Tests for client ownership."""

    def test_client_required(self):
        """Test using the converter outside its context fails clearly."""
        with pytest.raises(RuntimeError):
            _ = MarkdownConverter().client

    @pytest.mark.asyncio
    async def test_injected_client_usable_without_context(self):
        """Test an injected client makes the context manager optional."""
        converter = MarkdownConverter(http_client=FakeHttpClient())
        markdown = await converter.convert_html("<em>x</em>", PAGE_URL)
        assert markdown == "*x*"

    @pytest.mark.asyncio
    async def test_owned_client_opened_and_closed(self):
        """Test the converter opens and closes its own HTTP client."""
        converter = MarkdownConverter()
        async with converter:
            assert converter.client is not None
        with pytest.raises(RuntimeError):
            _ = converter.client

    def test_convert_blocking(self):
        """Test the synchronous wrapper runs a batch."""
        expected = ConversionResult()

        async def fake_batch(self, page_urls):
            return expected

        with patch.object(MarkdownConverter, "convert_batch", fake_batch):
            assert convert_blocking([PAGE_URL]) is expected
