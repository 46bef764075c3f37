"""Capture rendered content into one opaque raster surface."""

import io
import logging

from PIL import Image, UnidentifiedImageError

from ..models.raster import RasterSurface
from .errors import CaptureFailed, RenderUnavailable
from .render_host import RenderHost

logger = logging.getLogger(__name__)

BACKGROUND = (255, 255, 255)

# Tall content is read back in bands of this many CSS pixels. Each decoded
# band stays below Pillow's decompression-bomb limit and within
# Chromium's maximum capture size.
CAPTURE_BAND_PX = 4096


def capture(host: RenderHost, width_px: int, height_px: int, supersample: int) -> RasterSurface:
    """Capture the host's content at a fixed supersampling factor.

    The surface is pre-filled white before the capture is composited onto
    it, so transparent content never leaves undefined pixels.

    Args:
        host: Loaded render host
        width_px: Viewport width in CSS pixels
        height_px: Measured content height in CSS pixels (never an estimate)
        supersample: Pixel multiplier

    Returns:
        RasterSurface of exactly width_px*supersample x height_px*supersample

    Raises:
        ValueError: If dimensions are invalid
        RenderUnavailable: If the host has been released
        CaptureFailed: If pixels cannot be read back
    """
    if not isinstance(height_px, int) or height_px < 0:
        raise ValueError(f"height_px must be a measured integer >= 0, got {height_px!r}")
    if width_px <= 0 or supersample < 1:
        raise ValueError(f"Invalid capture geometry: width {width_px}px at {supersample}x")

    size = (width_px * supersample, height_px * supersample)
    surface = Image.new("RGB", size, BACKGROUND)

    if height_px == 0:
        logger.debug("Empty content, returning blank surface")
        return RasterSurface(surface, width_px, 0, supersample)

    if host.released:
        surface.close()
        raise RenderUnavailable("Cannot capture from a released render host")

    for top in range(0, height_px, CAPTURE_BAND_PX):
        band_height = min(CAPTURE_BAND_PX, height_px - top)
        try:
            band = _capture_band(host, width_px, band_height, top)
        except (UnidentifiedImageError, OSError) as e:
            surface.close()
            raise CaptureFailed(
                f"Captured image could not be decoded: {str(e)}", width_px, height_px, supersample
            ) from e
        except RenderUnavailable:
            surface.close()
            raise
        except Exception as e:
            surface.close()
            raise CaptureFailed(f"Capture failed: {str(e)}", width_px, height_px, supersample) from e

        expected = (size[0], band_height * supersample)
        if band.size != expected:
            logger.warning(
                f"Capture band at {top}px returned {band.size[0]}x{band.size[1]} px, "
                f"expected {expected[0]}x{expected[1]} px; placing at top-left without resampling"
            )
        surface.paste(band, (0, top * supersample), band)
        band.close()

    logger.debug(f"Captured raster {size[0]}x{size[1]} px")
    return RasterSurface(surface, width_px, height_px, supersample)


def _capture_band(host: RenderHost, width_px: int, band_height: int, top: int) -> Image.Image:
    png = host.screenshot(width_px, band_height, top)
    with Image.open(io.BytesIO(png)) as shot:
        shot.load()
        return shot.convert("RGBA")
