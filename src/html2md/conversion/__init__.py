"""HTML to Markdown conversion for html2md (tree walk, escaping, front matter)."""

from .context import ConversionContext
from .emitter import MarkdownBuffer, escape
from .engine import ConversionEngine, parse_html
from .frontmatter import FrontMatterExtractor, format_date
from .handlers import HANDLERS, handler_for
from .protocols import LinkResolver
from .visibility import TagVisibilityFilter

__all__ = [
    # Protocols
    "LinkResolver",
    # Implementations
    "ConversionContext",
    "ConversionEngine",
    "FrontMatterExtractor",
    "MarkdownBuffer",
    "TagVisibilityFilter",
    # Helpers
    "HANDLERS",
    "escape",
    "format_date",
    "handler_for",
    "parse_html",
]
