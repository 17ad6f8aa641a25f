"""Protocol definitions for collaborators of the conversion engine."""

from typing import Protocol


class LinkResolver(Protocol):
    """
    Maps ``src``/``href`` values to the targets written into the Markdown.

    Implementations may fetch and localise resources (see ImageHarvester).
    """

    async def resolve_image(self, raw: str, page_url: str) -> str:
        """
        Resolve an ``<img src>`` value.

        Args:
            raw: Attribute value exactly as written in the markup
            page_url: URL of the page being converted

        Returns:
            Local file name, or a URL to emit unchanged
        """
        ...

    async def resolve_link(self, raw: str, page_url: str) -> str:
        """
        Resolve an ``<a href>`` value.

        Args:
            raw: Attribute value exactly as written in the markup
            page_url: URL of the page being converted

        Returns:
            Local file name for harvested images, otherwise the absolute URL
        """
        ...
