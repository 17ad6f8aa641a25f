"""Exception types raised by html2md."""

from __future__ import annotations


class Html2mdError(Exception):
    """Base class for all html2md errors."""


class FetchFailure(Html2mdError):
    """A page or image could not be retrieved."""

    def __init__(self, url: str, message: str) -> None:
        self.url = url
        super().__init__(f"{url}: {message}")


class NotFound(FetchFailure):
    """The server answered with a client error (404, 410, ...)."""

    def __init__(self, url: str, status_code: int) -> None:
        self.status_code = status_code
        super().__init__(url, f"HTTP {status_code}")


class TransportError(FetchFailure):
    """Network failure, server error after retries, or oversized response."""


class ParseFailure(Html2mdError):
    """Markup or a configured path expression could not be processed."""


class DateFormatFailure(Html2mdError):
    """A front matter date property did not contain a parsable date."""

    def __init__(self, property_name: str, text: str) -> None:
        self.property_name = property_name
        self.text = text
        super().__init__(f"Front matter property {property_name!r}: cannot parse {text!r} as a date")
