"""Batch orchestration for html2md."""

from .converter import MarkdownConverter, convert_blocking

__all__ = ["MarkdownConverter", "convert_blocking"]
