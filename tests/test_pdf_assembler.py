"""Unit tests for assembling page images into a PDF."""

import fitz
import pytest
from PIL import Image

from docraster.models.page_slice import PageImage, PageSlice
from docraster.pipeline.errors import PageAssemblyFailed
from docraster.pipeline.paginator import encode_page
from docraster.pipeline.pdf_assembler import PdfAssembler, create_document


def _page_image(index: int, spec, color=(200, 30, 30)) -> PageImage:
    image = Image.new("RGB", (spec.width_px_at_scale, spec.height_px_at_scale), color)
    data = encode_page(image, spec.jpeg_quality_percent)
    return PageImage(
        slice=PageSlice(index=index, source_y=index * spec.height_px_at_scale, source_height=10),
        data=data,
        width=spec.width_px_at_scale,
        height=spec.height_px_at_scale,
    )


def _open(data: bytes) -> fitz.Document:
    return fitz.open(stream=data, filetype="pdf")


def test_create_document_has_one_a4_page(a4):
    doc = create_document(a4)
    try:
        assert doc.page_count == 1
        assert doc[0].rect.width == pytest.approx(595.28, abs=0.01)
        assert doc[0].rect.height == pytest.approx(841.89, abs=0.01)
    finally:
        doc.close()


def test_first_image_uses_existing_page(a4):
    assembler = PdfAssembler(a4)
    assembler.append_page(_page_image(0, a4))
    doc = _open(assembler.finalize())
    try:
        assert doc.page_count == 1
        assert len(doc[0].get_images()) == 1
    finally:
        doc.close()


def test_each_later_image_adds_a_page(a4):
    assembler = PdfAssembler(a4)
    for index in range(3):
        assembler.append_page(_page_image(index, a4))
    doc = _open(assembler.finalize())
    try:
        assert doc.page_count == 3
        for page in doc:
            assert page.rect.width == pytest.approx(a4.width_pt)
            assert page.rect.height == pytest.approx(a4.height_pt)
            images = page.get_images()
            assert len(images) == 1
            info = doc.extract_image(images[0][0])
            assert (info["width"], info["height"]) == (1588, 2246)
    finally:
        doc.close()


def test_image_fills_page_edge_to_edge(a4):
    assembler = PdfAssembler(a4)
    assembler.append_page(_page_image(0, a4))
    doc = _open(assembler.finalize())
    try:
        page = doc[0]
        bbox = page.get_image_rects(page.get_images()[0][0])[0]
        assert bbox.x0 == pytest.approx(0, abs=0.01)
        assert bbox.y0 == pytest.approx(0, abs=0.01)
        assert bbox.x1 == pytest.approx(page.rect.width, abs=0.01)
        assert bbox.y1 == pytest.approx(page.rect.height, abs=0.01)
    finally:
        doc.close()


def test_page_numbers_footer(a4):
    assembler = PdfAssembler(a4, page_numbers=True)
    assembler.append_page(_page_image(0, a4))
    assembler.append_page(_page_image(1, a4))
    doc = _open(assembler.finalize())
    try:
        assert "1 / 2" in doc[0].get_text()
        assert "2 / 2" in doc[1].get_text()
    finally:
        doc.close()


def test_no_text_without_page_numbers(a4):
    assembler = PdfAssembler(a4)
    assembler.append_page(_page_image(0, a4))
    doc = _open(assembler.finalize())
    try:
        assert doc[0].get_text().strip() == ""
    finally:
        doc.close()


def test_metadata(a4):
    assembler = PdfAssembler(a4, title="Devis D-001", creator="docraster 0.1.0")
    assembler.append_page(_page_image(0, a4))
    doc = _open(assembler.finalize())
    try:
        assert doc.metadata["title"] == "Devis D-001"
        assert doc.metadata["creator"] == "docraster 0.1.0"
    finally:
        doc.close()


def test_corrupt_image_is_atomic_failure(a4):
    """A corrupt image aborts the whole document; nothing can be finalized."""
    assembler = PdfAssembler(a4)
    assembler.append_page(_page_image(0, a4))
    broken = PageImage(slice=PageSlice(1, 2246, 10), data=b"\x00garbage", width=1588, height=2246)

    with pytest.raises(PageAssemblyFailed, match="page 2"):
        assembler.append_page(broken)

    assert assembler.closed
    with pytest.raises(PageAssemblyFailed, match="already been finalized or aborted"):
        assembler.finalize()


def test_finalize_without_pages_fails(a4):
    assembler = PdfAssembler(a4)
    with pytest.raises(PageAssemblyFailed, match="without pages"):
        assembler.finalize()
    assert assembler.closed


def test_cannot_append_after_finalize(a4):
    assembler = PdfAssembler(a4)
    assembler.append_page(_page_image(0, a4))
    assembler.finalize()
    with pytest.raises(PageAssemblyFailed):
        assembler.append_page(_page_image(1, a4))
