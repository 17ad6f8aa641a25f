"""Recursive HTML tree walk producing Markdown."""

from __future__ import annotations

import logging
from typing import Optional

from bs4 import BeautifulSoup, FeatureNotFound
from bs4.element import NavigableString, PageElement, PreformattedString, Tag

from ..errors import ParseFailure
from ..models.config import ConversionOptions
from .context import ConversionContext
from .emitter import MarkdownBuffer, escape
from .handlers import BLOCK_TAGS, handler_for
from .protocols import LinkResolver
from .visibility import TagVisibilityFilter

logger = logging.getLogger(__name__)

PARSER_FEATURES = "lxml"


def parse_html(html: str) -> BeautifulSoup:
    """
    Parse markup into the node tree walked by ConversionEngine.

    Raises:
        ParseFailure: If the parser cannot build a tree from ``html``
    """
    try:
        return BeautifulSoup(html, PARSER_FEATURES)
    except FeatureNotFound as e:
        raise ParseFailure(f"HTML parser {PARSER_FEATURES!r} is not available") from e
    except (ValueError, TypeError) as e:
        raise ParseFailure(f"Cannot parse HTML: {e}") from e


class ConversionEngine:
    """
    Converts one parsed document to Markdown.

    The walk threads an immutable ConversionContext: each tag handler derives
    the context for its children and the caller's context is untouched when
    the handler returns. The engine only reads the tree; it suspends solely
    when the resolver fetches an image.

    Example:
        engine = ConversionEngine(options, harvester, "https://example.com/page")
        markdown = await engine.convert(parse_html(html))
    """

    def __init__(
        self,
        options: ConversionOptions,
        resolver: LinkResolver,
        page_url: str,
    ) -> None:
        self.options = options
        self.resolver = resolver
        self.page_url = page_url
        self._visibility: Optional[TagVisibilityFilter] = None

    @property
    def visibility(self) -> TagVisibilityFilter:
        if self._visibility is None:
            raise RuntimeError("Visibility rules not built. Use convert() to render a document.")
        return self._visibility

    async def convert(self, document: BeautifulSoup) -> str:
        """Convert ``document`` (its body, or the whole tree if it has none)."""
        self._visibility = TagVisibilityFilter(
            document,
            include=self.options.include_tags,
            exclude=self.options.exclude_tags,
        )

        ctx = ConversionContext.initial()
        if not self._visibility.has_include_rules:
            ctx = ctx.with_rendering_enabled()

        root = document.body or document
        out = MarkdownBuffer()
        await self.render_node(root, ctx, out)

        markdown = out.getvalue()
        logger.debug(f"Rendered {len(markdown)} characters of Markdown for {self.page_url}")
        return markdown

    async def render_node(self, node: PageElement, ctx: ConversionContext, out: MarkdownBuffer) -> None:
        if isinstance(node, NavigableString):
            self._write_text(node, ctx, out)
            return
        if not isinstance(node, Tag):
            return

        if self.visibility.is_excluded(node):
            logger.debug(f"Skipping excluded <{node.name}>")
            return

        if not ctx.rendering_enabled:
            if not self.visibility.is_included(node):
                # Keep walking: an included element may sit further down.
                await self.render_children(node, ctx, out)
                return
            ctx = ctx.with_rendering_enabled()
            out.start_paragraph()

        await handler_for(node.name)(self, node, ctx, out)

    async def render_children(self, node: Tag, ctx: ConversionContext, out: MarkdownBuffer) -> None:
        for child in list(node.children):
            await self.render_node(child, ctx, out)

    async def capture(self, node: Tag, ctx: ConversionContext) -> str:
        """Render the children of ``node`` into a fresh buffer and return the text."""
        inner = MarkdownBuffer()
        await self.render_children(node, ctx, inner)
        return inner.getvalue()

    def _write_text(self, text: NavigableString, ctx: ConversionContext, out: MarkdownBuffer) -> None:
        if not ctx.rendering_enabled or isinstance(text, PreformattedString):
            return

        value = str(text)
        if ctx.emit_decoded_text_verbatim:
            out.write(value.replace("\xa0", " "))
            return

        if not value.strip():
            if text.previous_sibling is None or text.next_sibling is None:
                return
            if "\n" in value:
                # A line break between two inline siblings still separates words.
                if _is_inline(text.previous_sibling) and _is_inline(text.next_sibling):
                    out.write(" ")
                return
        out.write(escape(value))


def _is_inline(node: Optional[PageElement]) -> bool:
    """True for text and tags that flow within a line of the surrounding block."""
    if isinstance(node, Tag):
        return node.name.lower() not in BLOCK_TAGS
    return isinstance(node, NavigableString) and not isinstance(node, PreformattedString)
