# SPDX-License-Identifier: Apache-2.0
"""Shared fixtures for pdf-templater tests."""

from __future__ import annotations

from io import BytesIO

import pypdfium2 as pdfium
import pytest

from pdf_templater.core.fonts import FontCatalog
from pdf_templater.core.renderer import DocumentRenderer

LETTER_WIDTH = 612.0
LETTER_HEIGHT = 792.0


def make_pdf(
    width: float = LETTER_WIDTH,
    height: float = LETTER_HEIGHT,
    pages: int = 1,
    origin: tuple[float, float] = (0.0, 0.0),
) -> bytes:
    """Create a blank PDF with ``pages`` pages of the given size.

    ``origin`` moves the lower-left corner of each page's MediaBox.
    """
    pdf = pdfium.PdfDocument.new()
    try:
        for _ in range(pages):
            page = pdf.new_page(width, height)
            if origin != (0.0, 0.0):
                left, bottom = origin
                page.set_mediabox(left, bottom, left + width, bottom + height)
        buffer = BytesIO()
        pdf.save(buffer)
        return buffer.getvalue()
    finally:
        pdf.close()


def page_text(pdf_bytes: bytes) -> str:
    """Extract the text of page 1."""
    pdf = pdfium.PdfDocument(pdf_bytes)
    try:
        page = pdf[0]
        textpage = page.get_textpage()
        return textpage.get_text_range()
    finally:
        pdf.close()


class FakeMetrics:
    """Linear metrics: every character is half the font size wide."""

    def __init__(self, char_width: float = 0.5, height_factor: float = 1.0) -> None:
        self.char_width = char_width
        self.height_factor = height_factor

    def width_of_text_at_size(self, text: str, size: float) -> float:
        return len(text) * size * self.char_width

    def height_at_size(self, size: float) -> float:
        return size * self.height_factor

    def size_at_height(self, height: float) -> float:
        return height / self.height_factor


@pytest.fixture
def template_bytes() -> bytes:
    """US Letter single-page template."""
    return make_pdf()


@pytest.fixture
def font_catalog() -> FontCatalog:
    """Catalog with builtin fonts only."""
    return FontCatalog()


@pytest.fixture
def renderer(font_catalog: FontCatalog) -> DocumentRenderer:
    """Renderer over the builtin-only catalog."""
    return DocumentRenderer(font_catalog)
