"""Page slice and encoded page image models."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class PageSlice:
    """A horizontal segment of the raster surface that becomes one page.

    Attributes:
        index: Page index (starts at 0)
        source_y: First source row (supersampled pixels)
        source_height: Number of source rows; shorter than a full page only
            on the final page, zero only for empty content
    """

    index: int
    source_y: int
    source_height: int

    def __post_init__(self):
        """Validate slice bounds."""
        if self.index < 0:
            raise ValueError(f"Slice index must be >= 0, got {self.index}")
        if self.source_y < 0:
            raise ValueError(f"source_y must be >= 0, got {self.source_y}")
        if self.source_height < 0:
            raise ValueError(f"source_height must be >= 0, got {self.source_height}")

    @property
    def source_bottom(self) -> int:
        """Exclusive bottom row of the slice."""
        return self.source_y + self.source_height


@dataclass(frozen=True)
class PageImage:
    """An encoded page ready for embedding.

    Attributes:
        slice: The slice this page was cut from
        data: JPEG bytes
        width: Pixel width of the encoded page
        height: Pixel height of the encoded page
    """

    slice: PageSlice
    data: bytes
    width: int
    height: int

    @property
    def page_number(self) -> int:
        """1-based page number."""
        return self.slice.index + 1
