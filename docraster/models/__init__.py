"""Data models for the rasterization pipeline."""

from .output_document import OutputDocument
from .page_slice import PageImage, PageSlice
from .page_spec import A4, PhysicalPageSpec
from .raster import RasterSurface

__all__ = [
    "A4",
    "OutputDocument",
    "PageImage",
    "PageSlice",
    "PhysicalPageSpec",
    "RasterSurface",
]
