"""docraster - render HTML documents into paginated, pixel-accurate A4 PDFs."""

from .models.output_document import OutputDocument
from .models.page_spec import A4, PhysicalPageSpec
from .pipeline.errors import (
    CaptureFailed,
    DocumentRenderError,
    PageAssemblyFailed,
    PageLimitExceeded,
    PaginationError,
    RenderUnavailable,
)
from .pipeline.orchestration import (
    PipelineSettings,
    generate_from_existing_surface,
    generate_from_file,
    generate_from_html,
    suggest_filename,
)

__all__ = [
    "A4",
    "CaptureFailed",
    "DocumentRenderError",
    "OutputDocument",
    "PageAssemblyFailed",
    "PageLimitExceeded",
    "PaginationError",
    "PhysicalPageSpec",
    "PipelineSettings",
    "RenderUnavailable",
    "generate_from_existing_surface",
    "generate_from_file",
    "generate_from_html",
    "suggest_filename",
]
