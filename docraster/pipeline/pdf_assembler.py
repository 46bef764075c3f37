"""Assemble page images into one multi-page PDF with PyMuPDF."""

import logging
from typing import Optional

import fitz  # pymupdf

from ..models.page_slice import PageImage
from ..models.page_spec import MM_PER_INCH, POINTS_PER_INCH, PhysicalPageSpec
from .errors import PageAssemblyFailed

logger = logging.getLogger(__name__)

# Page-number footer: "3 / 7", centred 10 mm above the bottom edge
FOOTER_FONT = "helv"
FOOTER_FONT_SIZE = 8
FOOTER_COLOR = (120 / 255, 120 / 255, 120 / 255)
FOOTER_MARGIN_MM = 10


def create_document(spec: PhysicalPageSpec) -> fitz.Document:
    """Create a PDF with one blank first page at the page size."""
    doc = fitz.open()
    doc.new_page(width=spec.width_pt, height=spec.height_pt)
    return doc


class PdfAssembler:
    """Builds one PDF from an ordered sequence of page images.

    The first appended image goes on the document's existing first page;
    every later image gets a new page. Each image fills its page edge to
    edge. Any failure closes the document and raises PageAssemblyFailed,
    so a partial PDF is never returned.
    """

    def __init__(
        self,
        spec: PhysicalPageSpec,
        title: Optional[str] = None,
        creator: Optional[str] = None,
        page_numbers: bool = False,
    ):
        self.spec = spec
        self.title = title
        self.creator = creator
        self.page_numbers = page_numbers
        self.pages_used = 0
        self._doc: Optional[fitz.Document] = create_document(spec)

    @property
    def closed(self) -> bool:
        return self._doc is None

    def append_page(self, image: PageImage) -> None:
        """Place image full-bleed on the next page.

        Raises:
            PageAssemblyFailed: If the image cannot be embedded
        """
        doc = self._require_open()
        try:
            if self.pages_used == 0:
                page = doc[0]
            else:
                page = doc.new_page(width=self.spec.width_pt, height=self.spec.height_pt)
            page.insert_image(page.rect, stream=image.data, keep_proportion=False)
        except Exception as e:
            self.abort()
            raise PageAssemblyFailed(
                f"Failed to embed page {image.page_number}: {str(e)}"
            ) from e
        self.pages_used += 1

    def finalize(self) -> bytes:
        """Write the PDF and hand its bytes to the caller.

        Raises:
            PageAssemblyFailed: If no page was appended or saving fails
        """
        doc = self._require_open()
        if self.pages_used == 0:
            self.abort()
            raise PageAssemblyFailed("Cannot finalize a document without pages")
        try:
            if self.page_numbers:
                self._add_page_numbers(doc)
            metadata = {}
            if self.title:
                metadata["title"] = self.title
            if self.creator:
                metadata["creator"] = self.creator
                metadata["producer"] = self.creator
            if metadata:
                doc.set_metadata(metadata)
            data = doc.tobytes(garbage=3, deflate=True)
        except Exception as e:
            self.abort()
            raise PageAssemblyFailed(f"Failed to write PDF: {str(e)}") from e

        doc.close()
        self._doc = None
        logger.debug(f"Assembled PDF with {self.pages_used} page(s), {len(data)} bytes")
        return data

    def abort(self) -> None:
        """Discard the document being built."""
        if self._doc is not None:
            self._doc.close()
            self._doc = None

    def _require_open(self) -> fitz.Document:
        if self._doc is None:
            raise PageAssemblyFailed("Document has already been finalized or aborted")
        return self._doc

    def _add_page_numbers(self, doc: fitz.Document) -> None:
        total = self.pages_used
        baseline = self.spec.height_pt - FOOTER_MARGIN_MM / MM_PER_INCH * POINTS_PER_INCH
        for index in range(total):
            page = doc[index]
            text = f"{index + 1} / {total}"
            text_width = fitz.get_text_length(text, fontname=FOOTER_FONT, fontsize=FOOTER_FONT_SIZE)
            page.insert_text(
                ((self.spec.width_pt - text_width) / 2, baseline),
                text,
                fontname=FOOTER_FONT,
                fontsize=FOOTER_FONT_SIZE,
                color=FOOTER_COLOR,
            )
