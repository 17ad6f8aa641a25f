"""Result types produced by a conversion run."""

from dataclasses import dataclass, field
from typing import Optional


@dataclass(frozen=True)
class ReferencedImage:
    """
    An image fetched while converting a batch.

    Identity is the absolute source URL: two instances with the same
    ``source_url`` are equal regardless of their payload.

    Attributes:
        source_url: Absolute URL the image was fetched from
        data: Raw image bytes
        filename: Local file name substituted into the Markdown
    """

    source_url: str
    data: bytes = field(compare=False, repr=False)
    filename: str = field(compare=False)


@dataclass(frozen=True)
class ConvertedDocument:
    """Markdown produced for one page."""

    source_url: str
    markdown: str


@dataclass(frozen=True)
class DocumentFailure:
    """A page whose conversion was aborted."""

    source_url: str
    error: Exception

    @property
    def message(self) -> str:
        return str(self.error)


@dataclass
class ConversionResult:
    """
    Outcome of a batch conversion.

    ``documents`` keeps the input URL order (failed pages are left out and
    reported in ``failures``); ``images`` holds each distinct absolute image
    URL once.
    """

    documents: list[ConvertedDocument] = field(default_factory=list)
    images: list[ReferencedImage] = field(default_factory=list)
    failures: list[DocumentFailure] = field(default_factory=list)

    @property
    def succeeded(self) -> bool:
        return not self.failures

    def document_for(self, url: str) -> Optional[ConvertedDocument]:
        """Return the converted document for ``url``, if it succeeded."""
        for document in self.documents:
            if document.source_url == url:
                return document
        return None
