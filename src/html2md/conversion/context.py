"""Immutable traversal state threaded through the conversion walk."""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Optional

ORDERED_ITEM_PREFIX = "1."
UNORDERED_ITEM_PREFIX = "-"


@dataclass(frozen=True)
class ConversionContext:
    """
    Snapshot of formatting state for one frame of the tree walk.

    Every ``with_*``/``start_*`` method returns a new context; the caller keeps
    its own instance, so leaving a construct is simply returning to the
    parent's context.

    Attributes:
        rendering_enabled: Output is produced for this subtree
        list_depth: Number of enclosing lists
        list_item_prefix: Marker for the next ``<li>`` ("1." or "-")
        emit_markdown_styles: Emphasis/link markup is emitted
        emit_decoded_text_verbatim: Text is written unescaped (inside ``pre``/``code``)
    """

    rendering_enabled: bool = False
    list_depth: int = 0
    list_item_prefix: Optional[str] = None
    emit_markdown_styles: bool = True
    emit_decoded_text_verbatim: bool = False

    @classmethod
    def initial(cls) -> ConversionContext:
        return cls()

    def with_rendering_enabled(self) -> ConversionContext:
        if self.rendering_enabled:
            return self
        return replace(self, rendering_enabled=True)

    def start_preformatted_text_block(self) -> ConversionContext:
        return replace(self, emit_markdown_styles=False, emit_decoded_text_verbatim=True)

    def start_ordered_list(self) -> ConversionContext:
        return replace(self, list_depth=self.list_depth + 1, list_item_prefix=ORDERED_ITEM_PREFIX)

    def start_unordered_list(self) -> ConversionContext:
        return replace(self, list_depth=self.list_depth + 1, list_item_prefix=UNORDERED_ITEM_PREFIX)
