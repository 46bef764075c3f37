"""Output document model returned to the caller."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict


@dataclass
class OutputDocument:
    """A finished multi-page PDF.

    Attributes:
        data: PDF bytes
        filename: Suggested filename (ends with .pdf)
        page_count: Number of pages in the PDF
        page_width_px: Pixel width of every embedded page image
        page_height_px: Pixel height of every embedded page image
        content_height_px: Measured content height in CSS pixels
        metadata: Optional additional metadata (content height in mm, timings)
    """

    data: bytes
    filename: str
    page_count: int
    page_width_px: int
    page_height_px: int
    content_height_px: int
    metadata: Dict[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        """Validate page count and payload."""
        if self.page_count < 1:
            raise ValueError(f"page_count must be >= 1, got {self.page_count}")
        if not self.data:
            raise ValueError("OutputDocument requires PDF data")

    def save(self, directory) -> Path:
        """Write the PDF into directory under its suggested filename.

        Args:
            directory: Target directory (created if needed)

        Returns:
            Path to written file
        """
        target_dir = Path(directory)
        target_dir.mkdir(parents=True, exist_ok=True)
        path = target_dir / self.filename
        path.write_bytes(self.data)
        return path
