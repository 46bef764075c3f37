"""Raster surface model: the full-content capture before pagination."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from PIL import Image


@dataclass
class RasterSurface:
    """Single tall image of the fully rendered document.

    Attributes:
        image: RGB image, viewport_width_px*supersample wide and
            content_height_px*supersample tall
        viewport_width_px: Layout width in CSS pixels
        content_height_px: Measured content height in CSS pixels
        supersample: Pixel multiplier the image was captured at
    """

    image: Optional[Image.Image]
    viewport_width_px: int
    content_height_px: int
    supersample: int

    def __post_init__(self):
        """Validate that the image matches the declared geometry."""
        if self.image is None:
            raise ValueError("RasterSurface requires an image")
        expected = (
            self.viewport_width_px * self.supersample,
            self.content_height_px * self.supersample,
        )
        if self.image.size != expected:
            raise ValueError(
                f"Raster size mismatch: expected {expected[0]}x{expected[1]}, "
                f"got {self.image.size[0]}x{self.image.size[1]}"
            )
        if self.image.mode != "RGB":
            raise ValueError(f"Raster must be opaque RGB, got mode {self.image.mode}")

    @property
    def width(self) -> int:
        return self.viewport_width_px * self.supersample

    @property
    def height(self) -> int:
        return self.content_height_px * self.supersample

    @property
    def closed(self) -> bool:
        return self.image is None

    def close(self) -> None:
        """Discard the pixel buffer."""
        if self.image is not None:
            self.image.close()
            self.image = None
