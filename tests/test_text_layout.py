# SPDX-License-Identifier: Apache-2.0
"""Tests for TextLayoutEngine."""

from __future__ import annotations

import ctypes

import pypdfium2 as pdfium
import pytest
from conftest import FakeMetrics

from pdf_templater.core.models import Alignment
from pdf_templater.core.text_layout import FontMetrics, PdfiumFontMetrics, TextLayoutEngine


@pytest.fixture
def layout_engine() -> TextLayoutEngine:
    """Create a TextLayoutEngine instance."""
    return TextLayoutEngine(fit_step=0.2)


@pytest.fixture
def metrics() -> FakeMetrics:
    """Metrics where text width is len(text) * size / 2."""
    return FakeMetrics()


@pytest.fixture
def pdf_doc() -> pdfium.PdfDocument:
    """Create a new PDF document for testing."""
    return pdfium.PdfDocument.new()


@pytest.fixture
def helvetica_font(pdf_doc: pdfium.PdfDocument) -> ctypes.c_void_p:
    """Load Helvetica font."""
    return pdfium.raw.FPDFText_LoadStandardFont(pdf_doc.raw, b"Helvetica")


class TestAlignment:
    """Anchor (100, 100) with a text width of 40."""

    @pytest.mark.parametrize(
        "alignment,expected_x",
        [
            (Alignment.LEFT, 100.0),
            (Alignment.CENTER, 80.0),
            (Alignment.RIGHT, 60.0),
        ],
    )
    def test_draw_x(
        self,
        layout_engine: TextLayoutEngine,
        metrics: FakeMetrics,
        alignment: Alignment,
        expected_x: float,
    ) -> None:
        # "abcd" at size 20 is 4 * 20 * 0.5 = 40 wide
        result = layout_engine.layout("abcd", metrics, 100.0, 100.0, 20.0, alignment)
        assert result.draw_x == pytest.approx(expected_x)
        assert result.draw_y == pytest.approx(100.0)
        assert result.box.x == pytest.approx(expected_x)
        assert result.box.w == pytest.approx(40.0)

    def test_drawn_box(self, layout_engine: TextLayoutEngine, metrics: FakeMetrics) -> None:
        result = layout_engine.layout("abcd", metrics, 100.0, 100.0, 20.0)
        assert result.box.y == pytest.approx(100.0)
        assert result.box.h == pytest.approx(20.0)
        assert result.box.right == pytest.approx(140.0)
        assert result.font_size == 20.0
        assert result.fits is True


class TestFitToBox:
    """Shrink-to-fit sizing."""

    def test_text_shrinks_to_box_width(
        self, layout_engine: TextLayoutEngine, metrics: FakeMetrics
    ) -> None:
        text = "abcdef"
        initial = metrics.size_at_height(20.0)
        assert metrics.width_of_text_at_size(text, initial) > 30.0

        result = layout_engine.layout(
            text, metrics, 100.0, 100.0, 12.0, box=(30.0, 20.0), contain=True
        )

        assert result.font_size < initial
        assert result.box.w <= 30.0
        assert result.fits is True

    def test_fitting_text_keeps_box_height_size(
        self, layout_engine: TextLayoutEngine, metrics: FakeMetrics
    ) -> None:
        result = layout_engine.layout("ab", metrics, 0.0, 0.0, 12.0, box=(300.0, 20.0), contain=True)
        assert result.font_size == pytest.approx(20.0)

    def test_explicit_size_without_contain(
        self, layout_engine: TextLayoutEngine, metrics: FakeMetrics
    ) -> None:
        result = layout_engine.layout("abcdef", metrics, 0.0, 0.0, 12.0, box=(30.0, 20.0))
        assert result.font_size == 12.0

    def test_contain_without_box_uses_size(
        self, layout_engine: TextLayoutEngine, metrics: FakeMetrics
    ) -> None:
        result = layout_engine.layout("abcdef", metrics, 0.0, 0.0, 12.0, contain=True)
        assert result.font_size == 12.0

    def test_unfittable_text_keeps_positive_size(self, layout_engine: TextLayoutEngine) -> None:
        class WideMetrics(FakeMetrics):
            def width_of_text_at_size(self, text: str, size: float) -> float:
                return 1000.0

        result = layout_engine.layout(
            "x", WideMetrics(), 50.0, 50.0, 12.0, box=(30.0, 20.0), contain=True
        )

        assert result.font_size == pytest.approx(20.0)
        assert result.font_size > 0
        assert result.fits is False

    def test_fit_step_is_tunable(self, metrics: FakeMetrics) -> None:
        coarse = TextLayoutEngine(fit_step=5.0)
        size, fits = coarse.fit_size("abcdef", metrics, 30.0, 20.0)
        assert size == pytest.approx(10.0)
        assert fits is True

    def test_invalid_fit_step(self) -> None:
        with pytest.raises(ValueError):
            TextLayoutEngine(fit_step=0)


class TestPageBounds:
    """Tests for is_within_page()."""

    @pytest.mark.parametrize(
        "x,y,expected",
        [
            (100.0, 100.0, True),
            (612.0, 792.0, True),
            (700.0, 100.0, False),
            (100.0, 800.0, False),
            (-1.0, 100.0, False),
        ],
    )
    def test_bounds(self, x: float, y: float, expected: bool) -> None:
        assert TextLayoutEngine.is_within_page(x, y, 612.0, 792.0) is expected


class TestPdfiumFontMetrics:
    """Metrics backed by a PDFium standard font."""

    def test_is_font_metrics(self, helvetica_font: ctypes.c_void_p) -> None:
        assert isinstance(PdfiumFontMetrics(helvetica_font), FontMetrics)

    def test_width_empty(self, helvetica_font: ctypes.c_void_p) -> None:
        assert PdfiumFontMetrics(helvetica_font).width_of_text_at_size("", 12.0) == 0.0

    def test_width_proportional(self, helvetica_font: ctypes.c_void_p) -> None:
        font_metrics = PdfiumFontMetrics(helvetica_font)
        width_i = font_metrics.width_of_text_at_size("i", 12.0)
        width_w = font_metrics.width_of_text_at_size("W", 12.0)
        assert width_w > width_i > 0

    def test_width_scales_with_size(self, helvetica_font: ctypes.c_void_p) -> None:
        font_metrics = PdfiumFontMetrics(helvetica_font)
        width_12 = font_metrics.width_of_text_at_size("Hello", 12.0)
        width_24 = font_metrics.width_of_text_at_size("Hello", 24.0)
        assert width_24 == pytest.approx(width_12 * 2, rel=1e-3)

    def test_size_at_height_inverts_height_at_size(self, helvetica_font: ctypes.c_void_p) -> None:
        font_metrics = PdfiumFontMetrics(helvetica_font)
        height = font_metrics.height_at_size(18.0)
        assert height > 0
        assert font_metrics.size_at_height(height) == pytest.approx(18.0, rel=1e-3)

    def test_fit_with_real_font(
        self, layout_engine: TextLayoutEngine, helvetica_font: ctypes.c_void_p
    ) -> None:
        font_metrics = PdfiumFontMetrics(helvetica_font)
        result = layout_engine.layout(
            "A long participant name",
            font_metrics,
            100.0,
            100.0,
            12.0,
            box=(60.0, 20.0),
            contain=True,
        )
        assert result.font_size < font_metrics.size_at_height(20.0)
        assert result.box.w <= 60.0

    @pytest.mark.parametrize(
        "x,y,expected",
        [
            (650.0, 150.0, True),
            (712.0, 892.0, True),
            (50.0, 150.0, False),
            (650.0, 50.0, False),
            (713.0, 150.0, False),
        ],
    )
    def test_offset_origin(self, x: float, y: float, expected: bool) -> None:
        assert TextLayoutEngine.is_within_page(x, y, 612.0, 792.0, 100.0, 100.0) is expected
