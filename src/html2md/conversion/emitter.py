"""Markdown formatting and escaping rules."""

from __future__ import annotations

import re
from collections.abc import Iterable, Mapping, Sequence
from typing import Optional

# Characters with meaning in Markdown; each gets a single leading backslash.
_MARKDOWN_SPECIAL = re.compile(r"([\\`*_{}\[\]()#+\-.!])")

# Whitespace runs that include a line break (cells must stay on one line)
_CELL_LINE_BREAK = re.compile(r"\s*\n\s*")

LIST_INDENT = "    "
QUOTE_PREFIX = "> "
FENCE = "```"


def escape(text: str) -> str:
    """Backslash-escape Markdown control characters in plain text."""
    return _MARKDOWN_SPECIAL.sub(r"\\\1", text)


def emphasis(text: str) -> str:
    return f"*{text}*"


def strong(text: str) -> str:
    return f"**{text}**"


def heading(level: int, text: str) -> str:
    """Render ``text`` as an ATX heading (without the block's leading newline)."""
    if not 1 <= level <= 6:
        raise ValueError(f"Heading level must be 1-6, got {level}")
    return f"{'#' * level} {text}\n\n"


def list_item(depth: int, prefix: str, text: str) -> str:
    """
    Render one list item, indented 4 spaces per level below the first.

    Continuation lines are aligned under the item text so they stay inside
    the item; lines of a nested list already carry their own indentation.
    """
    indent = LIST_INDENT * max(depth - 1, 0)
    nested = LIST_INDENT * max(depth, 1)
    continuation = indent + " " * (len(prefix) + 1)

    first, *rest = text.rstrip("\n").split("\n")
    lines = [f"{indent}{prefix} {first}"]
    for line in rest:
        if not line or line.startswith(nested):
            lines.append(line)
        else:
            lines.append(continuation + line)
    return "\n".join(lines) + "\n"


def fenced_code(content: str, language: Optional[str] = None) -> str:
    """Render a fenced code block, dropping blank lines around ``content``."""
    opening = f"{FENCE} {language}" if language else FENCE
    body = content.strip("\r\n")
    return f"{opening}\n{body}\n{FENCE}\n"


def resolve_code_language(
    classes: Iterable[str],
    class_map: Mapping[str, str],
    default: Optional[str] = None,
) -> Optional[str]:
    """Pick the fence language: first mapped class token, else ``default``."""
    for token in classes:
        if token in class_map:
            return class_map[token]
    return default


def prefix_lines(text: str, prefix: str) -> str:
    """Prefix every line of ``text``, including a trailing empty line."""
    return "\n".join(prefix + line for line in text.split("\n"))


def collapse_cell(text: str) -> str:
    """Fold line breaks into single spaces and protect pipe characters."""
    return _CELL_LINE_BREAK.sub(" ", text).replace("|", "\\|")


def table_row(cells: Sequence[str]) -> str:
    return "|" + "|".join(cells) + "|\n"


def separator_row(columns: int) -> str:
    return "|" + "-|" * columns + "\n"


def link(text: str, target: str) -> str:
    return f"[{text}]({target})"


def image(alt: str, target: str) -> str:
    return f"![{alt}]({target})"


class MarkdownBuffer:
    """
    Append-only output for one document or one captured subtree.

    Tracks the last two characters written so block constructs can decide how
    many newlines they need without ever producing more than one blank line.
    """

    def __init__(self) -> None:
        self._parts: list[str] = []
        self._tail = ""

    def write(self, text: str) -> None:
        if not text:
            return
        self._parts.append(text)
        self._tail = (self._tail + text)[-2:]

    def getvalue(self) -> str:
        return "".join(self._parts)

    @property
    def is_empty(self) -> bool:
        return not self._parts

    @property
    def at_line_start(self) -> bool:
        return self.is_empty or self._tail.endswith("\n")

    def ensure_line_start(self) -> None:
        if not self.at_line_start:
            self.write("\n")

    def start_paragraph(self) -> None:
        """Separate following text from earlier output by one blank line."""
        if self.is_empty or self._tail == "\n\n":
            return
        self.write("\n" if self._tail.endswith("\n") else "\n\n")

    def open_block(self) -> None:
        """Start a block construct (heading, list, table, quote, fence)."""
        if self.is_empty:
            self.write("\n")
        else:
            self.start_paragraph()
