"""Slice one tall raster surface into fixed-size page images.

Geometry (A4 defaults):
    scale_factor = page_width_mm / viewport_width_px       (mm per CSS px)
    page_count   = max(1, ceil(content_height_px / page_height_px))
    slice i      = rows [i * page_height_px * S, min(next, H))

The page count is computed in integer pixel space. It is the same as
ceil(content_height_mm / page_height_mm) when one page is measured at the
viewport scale (page_height_px * scale_factor = 297.015 mm for A4), which
keeps content exactly one page tall on one page. Float division of
millimetres is not used because 1123 px * 210/794 is slightly above 297 mm
and would add an empty trailing page.

Every page canvas has the full page size; a short final slice is padded
with background. Slices cover the surface exactly once: no gaps, no
overlaps, no duplicated rows.
"""

import io
import logging
from typing import Iterator, List, Optional

from PIL import Image

from ..models.page_slice import PageImage, PageSlice
from ..models.page_spec import PhysicalPageSpec
from ..models.raster import RasterSurface
from .errors import PageLimitExceeded, PaginationError

logger = logging.getLogger(__name__)

BACKGROUND = (255, 255, 255)


def content_height_mm(content_height_px: int, spec: PhysicalPageSpec) -> float:
    """Convert a content height in CSS pixels to millimetres."""
    return content_height_px * spec.scale_factor


def compute_page_count(content_height_px: int, spec: PhysicalPageSpec) -> int:
    """Number of pages needed for content_height_px, rounded up, at least 1.

    Args:
        content_height_px: Measured content height in CSS pixels
        spec: Target page geometry

    Returns:
        Page count >= 1
    """
    if content_height_px < 0:
        raise ValueError(f"content_height_px must be >= 0, got {content_height_px}")
    return max(1, -(-content_height_px // spec.height_px))


def check_page_limit(content_height_px: int, spec: PhysicalPageSpec, max_pages: Optional[int]) -> int:
    """Return the page count, raising PageLimitExceeded if it is over max_pages."""
    page_count = compute_page_count(content_height_px, spec)
    if max_pages is not None and page_count > max_pages:
        raise PageLimitExceeded(
            f"Content height {content_height_px}px needs {page_count} pages, "
            f"limit is {max_pages}"
        )
    return page_count


def plan_slices(surface_height: int, page_count: int, spec: PhysicalPageSpec) -> List[PageSlice]:
    """Plan one slice per page over a surface of surface_height rows.

    Args:
        surface_height: Raster surface height in supersampled pixels
        page_count: Result of compute_page_count for the content
        spec: Target page geometry

    Returns:
        Ordered list of PageSlice, one per page

    Raises:
        PaginationError: If the slices would not cover the surface exactly
    """
    if page_count < 1:
        raise PaginationError(f"page_count must be >= 1, got {page_count}")

    page_height = spec.height_px_at_scale

    if surface_height == 0:
        # Empty content: a single blank page
        if page_count != 1:
            raise PaginationError(f"Empty content must give 1 page, got {page_count}")
        return [PageSlice(index=0, source_y=0, source_height=0)]

    slices = []
    for index in range(page_count):
        source_y = index * page_height
        source_height = min(page_height, surface_height - source_y)
        if source_height <= 0:
            raise PaginationError(
                f"Page {index + 1}/{page_count} starts at row {source_y}, "
                f"past the end of a {surface_height}-row surface"
            )
        slices.append(PageSlice(index=index, source_y=source_y, source_height=source_height))

    covered = sum(s.source_height for s in slices)
    if covered != surface_height:
        raise PaginationError(
            f"Slices cover {covered} rows, surface has {surface_height} "
            f"({page_count} pages of {page_height} rows)"
        )
    return slices


def render_page(surface: RasterSurface, page_slice: PageSlice, spec: PhysicalPageSpec) -> Image.Image:
    """Copy one slice onto a fresh full-size white page canvas.

    The slice is pasted 1:1 at the top-left; nothing is resampled.
    """
    canvas = Image.new("RGB", (spec.width_px_at_scale, spec.height_px_at_scale), BACKGROUND)
    if page_slice.source_height > 0:
        region = surface.image.crop((0, page_slice.source_y, surface.width, page_slice.source_bottom))
        canvas.paste(region, (0, 0))
        region.close()
    return canvas


def encode_page(image: Image.Image, quality: int) -> bytes:
    """Encode a page canvas as JPEG.

    Args:
        image: RGB page canvas
        quality: Pillow quality 1-100

    Returns:
        JPEG bytes
    """
    buffer = io.BytesIO()
    image.save(buffer, format="JPEG", quality=quality, optimize=True)
    return buffer.getvalue()


def paginate(
    surface: RasterSurface,
    spec: PhysicalPageSpec,
    max_pages: Optional[int] = None,
) -> Iterator[PageImage]:
    """Slice a raster surface into encoded, equally sized page images.

    Args:
        surface: Full-content raster at spec.supersample
        spec: Target page geometry
        max_pages: Optional upper bound on the page count

    Yields:
        PageImage objects in page order

    Raises:
        PaginationError: If the surface does not match the page spec
        PageLimitExceeded: If the content needs more than max_pages pages
    """
    if surface.closed:
        raise PaginationError("Raster surface has already been discarded")
    if surface.width != spec.width_px_at_scale or surface.supersample != spec.supersample:
        raise PaginationError(
            f"Raster width {surface.width}px at {surface.supersample}x does not match page "
            f"width {spec.width_px_at_scale}px at {spec.supersample}x"
        )

    page_count = check_page_limit(surface.content_height_px, spec, max_pages)
    slices = plan_slices(surface.height, page_count, spec)
    logger.debug(
        f"Paginating {surface.content_height_px}px "
        f"({content_height_mm(surface.content_height_px, spec):.1f} mm) into {page_count} page(s)"
    )

    quality = spec.jpeg_quality_percent
    for page_slice in slices:
        canvas = render_page(surface, page_slice, spec)
        try:
            data = encode_page(canvas, quality)
        finally:
            canvas.close()
        yield PageImage(
            slice=page_slice,
            data=data,
            width=spec.width_px_at_scale,
            height=spec.height_px_at_scale,
        )
