"""Public entry points: HTML (or a live render host) in, PDF out.

Both entry points share run_pipeline(); they differ only in who owns the
render host. An OWNED host is released as soon as capture is done, on every
exit path. A BORROWED host belongs to the caller and is never released here.
"""

import logging
import re
import time
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Callable, Optional

from ..config import (
    get_app_name,
    get_app_version,
    get_browser_executable,
    get_headless,
    get_max_pages,
    get_readiness_overrides,
)
from ..config.profile_loader import RenderProfile
from ..config.profile_manager import get_profile
from ..models.output_document import OutputDocument
from ..models.page_spec import PhysicalPageSpec
from ..models.raster import RasterSurface
from .errors import RenderUnavailable
from .paginator import check_page_limit, content_height_mm, paginate
from .pdf_assembler import PdfAssembler
from .rasterizer import capture
from .readiness import ReadinessPolicy
from .render_host import HostOwnership, PlaywrightRenderHost, RenderHost, scoped_host

logger = logging.getLogger(__name__)

DEFAULT_FILENAME = "document"
_INVALID_FILENAME_CHARS = re.compile(r'[<>:"/\\|?*\x00-\x1f]')


@dataclass(frozen=True)
class PipelineSettings:
    """Everything one pipeline run needs to know.

    Attributes:
        page: Target page geometry
        readiness: Bounds for the render-ready wait
        page_numbers: Draw an "i / N" footer on every page
        max_pages: Upper bound on the page count
        headless: Run the owned browser headless
        browser_executable: Optional Chromium binary for owned hosts
    """

    page: PhysicalPageSpec = field(default_factory=PhysicalPageSpec)
    readiness: ReadinessPolicy = field(default_factory=ReadinessPolicy)
    page_numbers: bool = False
    max_pages: Optional[int] = None
    headless: bool = True
    browser_executable: Optional[str] = None

    @classmethod
    def from_profile(cls, profile: Optional[RenderProfile] = None) -> 'PipelineSettings':
        """Build settings from a render profile plus environment overrides.

        Args:
            profile: Render profile (active profile if None)
        """
        profile = profile or get_profile()
        readiness = profile.readiness
        overrides = get_readiness_overrides()
        if overrides:
            readiness = replace(readiness, **overrides)
        max_pages = get_max_pages()
        return cls(
            page=profile.page,
            readiness=readiness,
            page_numbers=profile.page_numbers,
            max_pages=max_pages if max_pages is not None else profile.max_pages,
            headless=get_headless(),
            browser_executable=get_browser_executable(),
        )


HostFactory = Callable[[PipelineSettings], RenderHost]


def acquire_playwright_host(settings: PipelineSettings) -> RenderHost:
    """Default host factory: a fresh headless Chromium page per call."""
    return PlaywrightRenderHost.acquire(
        settings.page.width_px,
        viewport_height_px=settings.page.height_px,
        supersample=settings.page.supersample,
        headless=settings.headless,
        executable_path=settings.browser_executable,
    )


def suggest_filename(hint: Optional[str]) -> str:
    """Turn a free-form hint into a safe PDF filename.

    Examples:
        "Devis D-2024-001" -> "Devis D-2024-001.pdf"
        "../quotes/q1.pdf" -> "q1.pdf"
        None               -> "document.pdf"
    """
    name = (hint or "").strip().replace("\\", "/").split("/")[-1]
    if name.lower().endswith(".pdf"):
        name = name[:-4]
    name = _INVALID_FILENAME_CHARS.sub("_", name)
    name = re.sub(r"\s+", " ", name).strip(" .")
    return f"{name or DEFAULT_FILENAME}.pdf"


def run_pipeline(
    host: RenderHost,
    ownership: HostOwnership,
    html: Optional[str] = None,
    filename_hint: Optional[str] = None,
    settings: Optional[PipelineSettings] = None,
) -> OutputDocument:
    """Render, measure, capture, paginate and assemble one document.

    Args:
        host: Render host to capture from
        ownership: OWNED hosts are released after capture, BORROWED never
        html: HTML to load first; None captures what the host already shows
        filename_hint: Free-form name for the output file
        settings: Pipeline settings (from the active profile if None)

    Returns:
        OutputDocument with the finished PDF

    Raises:
        RenderUnavailable: If the host cannot be used
        CaptureFailed: If pixels cannot be read back
        PaginationError: If the content cannot be paginated
        PageAssemblyFailed: If the PDF cannot be built
    """
    settings = settings or PipelineSettings.from_profile()
    spec = settings.page
    start = time.monotonic()

    with scoped_host(host, ownership) as active:
        _check_host_geometry(active, spec)
        if html is not None:
            readiness = active.load(html, settings.readiness)
            logger.debug(
                f"Content ready at {readiness.height}px "
                f"(stable={readiness.stable}, {readiness.waited_ms:.0f} ms)"
            )
        content_height_px = active.measure_height()
        page_count = check_page_limit(content_height_px, spec, settings.max_pages)
        surface = capture(active, spec.width_px, content_height_px, spec.supersample)

    try:
        filename = suggest_filename(filename_hint)
        data = _assemble(surface, settings, title=filename[:-4])
    finally:
        surface.close()

    elapsed = time.monotonic() - start
    height_mm = content_height_mm(content_height_px, spec)
    logger.info(
        f"Generated {filename}: {page_count} page(s) from {content_height_px}px "
        f"({height_mm:.1f} mm) in {elapsed:.2f}s"
    )
    return OutputDocument(
        data=data,
        filename=filename,
        page_count=page_count,
        page_width_px=spec.width_px_at_scale,
        page_height_px=spec.height_px_at_scale,
        content_height_px=content_height_px,
        metadata={
            'content_height_mm': round(height_mm, 3),
            'ownership': ownership.value,
            'elapsed_seconds': round(elapsed, 3),
        },
    )


def generate_from_html(
    html: str,
    filename_hint: Optional[str] = None,
    settings: Optional[PipelineSettings] = None,
    host_factory: Optional[HostFactory] = None,
) -> OutputDocument:
    """Generate a PDF from an HTML string with a render host of our own.

    The host is acquired, loaded, measured, captured and released within
    this call, including when any step fails.
    """
    settings = settings or PipelineSettings.from_profile()
    factory = host_factory or acquire_playwright_host
    host = factory(settings)
    return run_pipeline(host, HostOwnership.OWNED, html=html, filename_hint=filename_hint, settings=settings)


def generate_from_existing_surface(
    host: RenderHost,
    filename_hint: Optional[str] = None,
    settings: Optional[PipelineSettings] = None,
) -> OutputDocument:
    """Generate a PDF from a live render host owned by the caller.

    Only measures, captures, paginates and assembles; the caller's host is
    left open.
    """
    return run_pipeline(host, HostOwnership.BORROWED, filename_hint=filename_hint, settings=settings)


def generate_from_file(
    path,
    filename_hint: Optional[str] = None,
    settings: Optional[PipelineSettings] = None,
    host_factory: Optional[HostFactory] = None,
) -> OutputDocument:
    """Generate a PDF from an HTML file (UTF-8).

    Args:
        path: Path to .html file
        filename_hint: Output name (defaults to the file stem)

    Raises:
        FileNotFoundError: If path does not exist
    """
    html_path = Path(path)
    if not html_path.is_file():
        raise FileNotFoundError(f"HTML file not found: {html_path}")
    html = html_path.read_text(encoding='utf-8')
    return generate_from_html(
        html,
        filename_hint=filename_hint or html_path.stem,
        settings=settings,
        host_factory=host_factory,
    )


def _check_host_geometry(host: RenderHost, spec: PhysicalPageSpec) -> None:
    if host.viewport_width_px != spec.width_px or host.supersample != spec.supersample:
        raise RenderUnavailable(
            f"Render host is {host.viewport_width_px}px at {host.supersample}x, "
            f"pages need {spec.width_px}px at {spec.supersample}x"
        )


def _assemble(surface: RasterSurface, settings: PipelineSettings, title: str) -> bytes:
    assembler = PdfAssembler(
        settings.page,
        title=title,
        creator=f"{get_app_name()} {get_app_version()}",
        page_numbers=settings.page_numbers,
    )
    try:
        for page in paginate(surface, settings.page, max_pages=settings.max_pages):
            assembler.append_page(page)
        return assembler.finalize()
    finally:
        assembler.abort()
