"""Image harvesting for html2md."""

from .harvester import ImageHarvester, is_same_host, local_filename, looks_like_image, unique_filename

__all__ = [
    "ImageHarvester",
    "is_same_host",
    "local_filename",
    "looks_like_image",
    "unique_filename",
]
