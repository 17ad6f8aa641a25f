"""Per-tag Markdown handlers used by ConversionEngine."""

from __future__ import annotations

import logging
from collections.abc import Awaitable
from typing import TYPE_CHECKING, Callable

from bs4.element import Tag

from . import emitter
from .context import UNORDERED_ITEM_PREFIX, ConversionContext
from .emitter import MarkdownBuffer

if TYPE_CHECKING:
    from .engine import ConversionEngine

logger = logging.getLogger(__name__)

# handler(engine, node, ctx, out): writes the node's Markdown into ``out``
TagHandler = Callable[["ConversionEngine", Tag, ConversionContext, MarkdownBuffer], Awaitable[None]]

_SILENT_TAGS = ("head", "script", "style", "noscript", "template", "iframe", "object", "svg")

# Elements whose neighbouring whitespace only separates markup
BLOCK_TAGS = frozenset(
    {
        "address", "article", "aside", "blockquote", "body", "br", "dd", "details", "div", "dl", "dt",
        "fieldset", "figcaption", "figure", "footer", "form", "h1", "h2", "h3", "h4", "h5", "h6",
        "header", "hr", "html", "li", "main", "nav", "ol", "p", "pre", "section", "summary", "table",
        "tbody", "td", "tfoot", "th", "thead", "tr", "ul",
    }
) | frozenset(_SILENT_TAGS)


async def render_transparent(engine: ConversionEngine, node: Tag, ctx: ConversionContext, out: MarkdownBuffer) -> None:
    await engine.render_children(node, ctx, out)


async def render_silent(engine: ConversionEngine, node: Tag, ctx: ConversionContext, out: MarkdownBuffer) -> None:
    return None


def _styled(wrap: Callable[[str], str]) -> TagHandler:
    async def handler(engine: ConversionEngine, node: Tag, ctx: ConversionContext, out: MarkdownBuffer) -> None:
        text = await engine.capture(node, ctx)
        if ctx.emit_markdown_styles and text.strip():
            out.write(wrap(text))
        else:
            out.write(text)

    return handler


def _heading(level: int) -> TagHandler:
    async def handler(engine: ConversionEngine, node: Tag, ctx: ConversionContext, out: MarkdownBuffer) -> None:
        text = (await engine.capture(node, ctx)).strip()
        if not text:
            return
        out.open_block()
        out.write(emitter.heading(level, text))

    return handler


async def render_block(engine: ConversionEngine, node: Tag, ctx: ConversionContext, out: MarkdownBuffer) -> None:
    text = await engine.capture(node, ctx)
    if not text.strip():
        return
    out.start_paragraph()
    out.write(text.rstrip("\n") + "\n\n")


def _list(start: Callable[[ConversionContext], ConversionContext]) -> TagHandler:
    async def handler(engine: ConversionEngine, node: Tag, ctx: ConversionContext, out: MarkdownBuffer) -> None:
        inner = start(ctx)
        if inner.list_depth > 1:
            # Nested lists continue under the parent item without a blank line.
            out.ensure_line_start()
            await engine.render_children(node, inner, out)
            return
        out.open_block()
        await engine.render_children(node, inner, out)
        out.write("\n")

    return handler


async def render_list_item(engine: ConversionEngine, node: Tag, ctx: ConversionContext, out: MarkdownBuffer) -> None:
    prefix = ctx.list_item_prefix or UNORDERED_ITEM_PREFIX
    depth = max(ctx.list_depth, 1)
    text = (await engine.capture(node, ctx)).strip("\n")
    out.ensure_line_start()
    out.write(emitter.list_item(depth, prefix, text))


async def render_preformatted(engine: ConversionEngine, node: Tag, ctx: ConversionContext, out: MarkdownBuffer) -> None:
    text = await engine.capture(node, ctx.start_preformatted_text_block())
    language = emitter.resolve_code_language(
        node.get("class") or [],
        engine.options.code_language_class_map,
        engine.options.default_code_language,
    )
    out.open_block()
    out.write(emitter.fenced_code(text, language))


async def render_inline_code(engine: ConversionEngine, node: Tag, ctx: ConversionContext, out: MarkdownBuffer) -> None:
    text = await engine.capture(node, ctx.start_preformatted_text_block())
    if ctx.emit_markdown_styles and text:
        out.write(f"`{text}`")
    else:
        out.write(text)


async def render_line_break(engine: ConversionEngine, node: Tag, ctx: ConversionContext, out: MarkdownBuffer) -> None:
    out.write("\n")


async def render_rule(engine: ConversionEngine, node: Tag, ctx: ConversionContext, out: MarkdownBuffer) -> None:
    if ctx.emit_markdown_styles:
        out.open_block()
        out.write("---\n\n")


async def render_blockquote(engine: ConversionEngine, node: Tag, ctx: ConversionContext, out: MarkdownBuffer) -> None:
    # Each level prefixes its own captured subtree, so nested quotes compose to "> > ".
    text = await engine.capture(node, ctx)
    if not text.strip():
        return
    out.open_block()
    out.write(emitter.prefix_lines(text, emitter.QUOTE_PREFIX) + "\n\n")


async def render_link(engine: ConversionEngine, node: Tag, ctx: ConversionContext, out: MarkdownBuffer) -> None:
    text = await engine.capture(node, ctx)
    href = node.get("href")
    if href is None or not ctx.emit_markdown_styles:
        out.write(text)
        return
    target = await engine.resolver.resolve_link(str(href).strip(), engine.page_url)
    out.write(emitter.link(text, target))


async def render_image(engine: ConversionEngine, node: Tag, ctx: ConversionContext, out: MarkdownBuffer) -> None:
    src = (node.get("src") or "").strip()
    alt = str(node.get("alt") or "")
    if not ctx.emit_markdown_styles:
        out.write(alt)
        return
    if not src:
        return
    target = await engine.resolver.resolve_image(src, engine.page_url)
    out.write(emitter.image(emitter.escape(alt), target))


async def render_table(engine: ConversionEngine, node: Tag, ctx: ConversionContext, out: MarkdownBuffer) -> None:
    header_rows, body_rows = _table_rows(node)
    if header_rows:
        header, body_rows = header_rows[0], header_rows[1:] + body_rows
    elif body_rows:
        header, body_rows = body_rows[0], body_rows[1:]
    else:
        return

    header_cells = await _render_cells(engine, header, ctx)
    columns = len(header_cells)
    lines = [emitter.table_row(header_cells), emitter.separator_row(columns)]
    for row in body_rows:
        cells = await _render_cells(engine, row, ctx)
        cells.extend([""] * (columns - len(cells)))
        lines.append(emitter.table_row(cells))

    out.open_block()
    out.write("".join(lines) + "\n")


def _table_rows(table: Tag) -> tuple[list[Tag], list[Tag]]:
    """Split rows into header and body; every tbody joins one body, tfoot goes last."""
    header: list[Tag] = []
    body: list[Tag] = []
    footer: list[Tag] = []
    sections = {"thead": header, "tbody": body, "tfoot": footer}

    for child in table.children:
        if not isinstance(child, Tag):
            continue
        if child.name == "tr":
            body.append(child)
        elif child.name in sections:
            sections[child.name].extend(row for row in child.find_all("tr", recursive=False))

    return header, body + footer


async def _render_cells(engine: ConversionEngine, row: Tag, ctx: ConversionContext) -> list[str]:
    cells = []
    for cell in row.find_all(["td", "th"], recursive=False):
        cells.append(emitter.collapse_cell(await engine.capture(cell, ctx)))
    return cells


HANDLERS: dict[str, TagHandler] = {
    "em": _styled(emitter.emphasis),
    "i": _styled(emitter.emphasis),
    "strong": _styled(emitter.strong),
    "b": _styled(emitter.strong),
    "p": render_block,
    "div": render_block,
    "ul": _list(ConversionContext.start_unordered_list),
    "ol": _list(ConversionContext.start_ordered_list),
    "li": render_list_item,
    "pre": render_preformatted,
    "code": render_inline_code,
    "br": render_line_break,
    "hr": render_rule,
    "blockquote": render_blockquote,
    "a": render_link,
    "img": render_image,
    "table": render_table,
}
HANDLERS.update({f"h{level}": _heading(level) for level in range(1, 7)})
HANDLERS.update({name: render_silent for name in _SILENT_TAGS})


def handler_for(tag_name: str) -> TagHandler:
    """Return the handler for ``tag_name``; unknown tags render their children inline."""
    return HANDLERS.get(tag_name.lower(), render_transparent)
