"""
html2md - Convert HTML pages to Markdown, harvesting their images.

Usage:
    from html2md import ConversionOptions, MarkdownConverter

    options = ConversionOptions(include_tags=["article"], default_code_language="python")

    async with MarkdownConverter(options) as converter:
        result = await converter.convert_batch(["https://example.com/post"])

    for image in result.images:
        print(image.filename, len(image.data))
"""

__version__ = "1.0.0"

from .conversion import ConversionContext, ConversionEngine, FrontMatterExtractor, TagVisibilityFilter
from .core import MarkdownConverter, convert_blocking
from .errors import (
    DateFormatFailure,
    FetchFailure,
    Html2mdError,
    NotFound,
    ParseFailure,
    TransportError,
)
from .images import ImageHarvester
from .models import (
    ConversionOptions,
    ConversionResult,
    ConvertedDocument,
    DocumentFailure,
    FrontMatterOptions,
    Html2mdConfig,
    NetworkConfig,
    PropertyDataType,
    PropertyMatchExpression,
    ReferencedImage,
)

__all__ = [
    "__version__",
    # Core
    "MarkdownConverter",
    "convert_blocking",
    # Conversion
    "ConversionContext",
    "ConversionEngine",
    "FrontMatterExtractor",
    "ImageHarvester",
    "TagVisibilityFilter",
    # Config
    "ConversionOptions",
    "FrontMatterOptions",
    "Html2mdConfig",
    "NetworkConfig",
    "PropertyDataType",
    "PropertyMatchExpression",
    # Results
    "ConversionResult",
    "ConvertedDocument",
    "DocumentFailure",
    "ReferencedImage",
    # Errors
    "DateFormatFailure",
    "FetchFailure",
    "Html2mdError",
    "NotFound",
    "ParseFailure",
    "TransportError",
]
