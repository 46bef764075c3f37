"""Pipeline stages for HTML rasterization and pagination."""

from .errors import (
    CaptureFailed,
    DocumentRenderError,
    PageAssemblyFailed,
    PageLimitExceeded,
    PaginationError,
    RenderUnavailable,
)

__all__ = [
    "CaptureFailed",
    "DocumentRenderError",
    "PageAssemblyFailed",
    "PageLimitExceeded",
    "PaginationError",
    "RenderUnavailable",
]
