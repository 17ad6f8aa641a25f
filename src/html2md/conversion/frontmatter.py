"""Front matter extraction from configured path expressions."""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Optional

from bs4 import Tag
from dateutil import parser as date_parser
from soupsieve import SelectorSyntaxError

from ..errors import DateFormatFailure, ParseFailure
from ..models.config import FrontMatterOptions, PropertyDataType, PropertyMatchExpression

logger = logging.getLogger(__name__)

DELIMITER = "---"


def format_date(value: datetime) -> str:
    """Render as ``YYYY-MM-DDTHH:MM:SS.fffffff`` plus ``+HH:MM`` when zone-aware."""
    text = f"{value:%Y-%m-%dT%H:%M:%S}.{value.microsecond:06d}0"
    offset = value.utcoffset()
    if offset is not None:
        minutes = int(offset.total_seconds()) // 60
        sign = "-" if minutes < 0 else "+"
        hours, minutes = divmod(abs(minutes), 60)
        text += f"{sign}{hours:02d}:{minutes:02d}"
    return text


def _quote(value: str) -> str:
    safe_value = value.replace("\\", "\\\\").replace('"', '\\"')
    return f'"{safe_value}"'


class FrontMatterExtractor:
    """
    Builds the metadata preamble for a document.

    Each configured property takes the text of the first node its path
    expression matches; properties that match nothing are left out.

    Example:
        extractor = FrontMatterExtractor(options.front_matter)
        preamble = extractor.render(soup)
        # ---
        # Title: "Getting Started"
        # ---
    """

    def __init__(self, options: FrontMatterOptions) -> None:
        self._options = options

    @property
    def enabled(self) -> bool:
        return self._options.enabled and bool(self._options.single_value_properties)

    def extract(self, document: Tag) -> dict[str, str]:
        """
        Evaluate every configured property against ``document``.

        Returns:
            Property name -> rendered value, in configuration order

        Raises:
            DateFormatFailure: A date property matched text that is not a date
            ParseFailure: A path expression is not a valid selector
        """
        values: dict[str, str] = {}
        for name, expression in self._options.single_value_properties.items():
            value = self._evaluate(name, expression, document)
            if value is None:
                logger.debug(f"Front matter property {name!r} matched nothing")
                continue
            values[name] = value
        return values

    def render(self, document: Tag) -> str:
        """Return the ``---`` delimited preamble, or "" when there is nothing to emit."""
        if not self.enabled:
            return ""

        values = self.extract(document)
        if not values:
            return ""

        lines = [DELIMITER]
        lines.extend(f"{name}: {_quote(value)}" for name, value in values.items())
        lines.append(DELIMITER)
        return "\n".join(lines) + "\n"

    def _evaluate(self, name: str, expression: PropertyMatchExpression, document: Tag) -> Optional[str]:
        try:
            node = document.select_one(expression.path)
        except SelectorSyntaxError as e:
            raise ParseFailure(f"Invalid path expression {expression.path!r} for {name!r}: {e}") from e
        if node is None:
            return None

        text = node.get_text().strip()
        if expression.data_type is PropertyDataType.DATE:
            try:
                return format_date(date_parser.parse(text))
            except (ValueError, OverflowError) as e:
                raise DateFormatFailure(name, text) from e
        return text
