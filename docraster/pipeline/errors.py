"""Exceptions raised by the rasterization pipeline.

All of them are fatal to a single invocation and never retried internally;
the caller decides whether to retry the whole operation.
"""

from typing import Optional


class DocumentRenderError(Exception):
    """Base class for pipeline failures."""
    pass


class RenderUnavailable(DocumentRenderError):
    """Raised when the render host cannot be created or accessed."""
    pass


class CaptureFailed(DocumentRenderError):
    """Raised when rendered content cannot be read back as pixels.

    Carries the attempted dimensions for diagnosis.
    """

    def __init__(
        self,
        message: str,
        width_px: Optional[int] = None,
        height_px: Optional[int] = None,
        supersample: Optional[int] = None,
    ):
        self.width_px = width_px
        self.height_px = height_px
        self.supersample = supersample
        if width_px is not None and height_px is not None and supersample is not None:
            message = (
                f"{message} (attempted {width_px}x{height_px} px at {supersample}x = "
                f"{width_px * supersample}x{height_px * supersample} px)"
            )
        super().__init__(message)


class PaginationError(DocumentRenderError):
    """Raised when slice planning breaks a coverage invariant."""
    pass


class PageLimitExceeded(PaginationError):
    """Raised when content would produce more pages than allowed."""
    pass


class PageAssemblyFailed(DocumentRenderError):
    """Raised when a page cannot be embedded or the PDF cannot be written."""
    pass
