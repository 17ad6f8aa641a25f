"""Configuration and result models for html2md."""

from .config import (
    ConversionOptions,
    FrontMatterOptions,
    Html2mdConfig,
    NetworkConfig,
    PropertyDataType,
    PropertyMatchExpression,
)
from .results import ConversionResult, ConvertedDocument, DocumentFailure, ReferencedImage

__all__ = [
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
]
