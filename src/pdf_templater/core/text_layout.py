# SPDX-License-Identifier: Apache-2.0
"""Text layout engine for placing single-line text at an anchor.

This module provides:
- A font metrics protocol and its PDFium implementation
- Shrink-to-fit font sizing against an explicit box
- Horizontal alignment against the anchor x
- The drawn bounding box used by preview overlays
"""

from __future__ import annotations

import ctypes
from dataclasses import dataclass
from typing import Any, Optional, Protocol, runtime_checkable

import pypdfium2 as pdfium  # type: ignore[import-untyped]

from .models import Alignment, DrawnBox

# Reference size for linear metric queries; large enough to keep precision
METRICS_REFERENCE_SIZE = 1000.0


@runtime_checkable
class FontMetrics(Protocol):
    """Font measurements needed to lay out a line of text."""

    def width_of_text_at_size(self, text: str, size: float) -> float:
        """Advance width of ``text`` in points."""
        ...

    def height_at_size(self, size: float) -> float:
        """Ascent-to-descent height in points."""
        ...

    def size_at_height(self, height: float) -> float:
        """Font size whose height equals ``height``."""
        ...


class PdfiumFontMetrics:
    """Font metrics backed by a loaded PDFium font handle."""

    def __init__(self, font_handle: Any) -> None:
        """Initialize PdfiumFontMetrics.

        Args:
            font_handle: PDFium font handle (FPDF_FONT).
        """
        self._font = font_handle

    @property
    def handle(self) -> Any:
        """Underlying PDFium font handle."""
        return self._font

    def width_of_text_at_size(self, text: str, size: float) -> float:
        """Sum glyph widths of ``text`` using PDFium metrics."""
        if not text:
            return 0.0

        total_width = 0.0
        width_out = ctypes.c_float()
        for char in text:
            result = pdfium.raw.FPDFFont_GetGlyphWidth(
                self._font,
                ord(char),
                ctypes.c_float(size),
                ctypes.byref(width_out),
            )
            if result:
                total_width += width_out.value
        return total_width

    def height_at_size(self, size: float) -> float:
        """Ascent minus descent at ``size``."""
        ascent = ctypes.c_float()
        descent = ctypes.c_float()
        pdfium.raw.FPDFFont_GetAscent(self._font, ctypes.c_float(size), ctypes.byref(ascent))
        pdfium.raw.FPDFFont_GetDescent(self._font, ctypes.c_float(size), ctypes.byref(descent))
        # descent is negative
        return ascent.value - descent.value

    def size_at_height(self, height: float) -> float:
        """Invert :meth:`height_at_size`; metrics scale linearly with size."""
        reference = self.height_at_size(METRICS_REFERENCE_SIZE)
        if reference <= 0:
            return 0.0
        return height * METRICS_REFERENCE_SIZE / reference


@dataclass(frozen=True)
class LayoutResult:
    """Result of laying out one piece of text.

    Attributes:
        draw_x: X to hand to the text draw call.
        draw_y: Baseline Y to hand to the text draw call.
        font_size: Effective font size.
        box: Region occupied by the text.
        fits: False when shrink-to-fit could not satisfy the box width.
    """

    draw_x: float
    draw_y: float
    font_size: float
    box: DrawnBox
    fits: bool = True


class TextLayoutEngine:
    """Computes draw origin, effective size and drawn box for a line of text.

    The same engine instance is used for previews and batch output so both
    produce identical placement.
    """

    def __init__(self, fit_step: float = 0.2) -> None:
        """Initialize TextLayoutEngine.

        Args:
            fit_step: Font size decrement used when shrinking text to fit.
        """
        if fit_step <= 0:
            raise ValueError(f"fit_step must be positive, got {fit_step}")
        self._fit_step = fit_step

    @property
    def fit_step(self) -> float:
        """Font size decrement used by :meth:`fit_size`."""
        return self._fit_step

    def fit_size(
        self,
        text: str,
        metrics: FontMetrics,
        box_width: float,
        box_height: float,
    ) -> tuple[float, bool]:
        """Find the largest font size that keeps ``text`` within the box.

        Starts from the size whose height matches ``box_height`` and steps
        down until the text width fits ``box_width``. When no positive size
        fits, the starting size is returned so the text stays visible.

        Returns:
            Tuple of (font_size, fits).
        """
        initial = metrics.size_at_height(box_height)
        size = initial
        while size > 0 and metrics.width_of_text_at_size(text, size) > box_width:
            size = round(size - self._fit_step, 6)

        if size <= 0:
            return initial, False
        return size, True

    @staticmethod
    def align_x(anchor_x: float, text_width: float, alignment: Alignment) -> float:
        """Draw x for text of ``text_width`` aligned against ``anchor_x``."""
        if alignment is Alignment.CENTER:
            return anchor_x - text_width / 2
        if alignment is Alignment.RIGHT:
            return anchor_x - text_width
        return anchor_x

    @staticmethod
    def is_within_page(
        x: float,
        y: float,
        page_width: float,
        page_height: float,
        origin_x: float = 0.0,
        origin_y: float = 0.0,
    ) -> bool:
        """Check that an anchor lies on the page.

        ``origin_x`` and ``origin_y`` are the lower-left corner of the page's
        MediaBox, which is not always at (0, 0).
        """
        return (
            origin_x <= x <= origin_x + page_width
            and origin_y <= y <= origin_y + page_height
        )

    def layout(
        self,
        text: str,
        metrics: FontMetrics,
        x: float,
        y: float,
        size: float,
        alignment: Alignment = Alignment.LEFT,
        box: Optional[tuple[float, float]] = None,
        contain: bool = False,
    ) -> LayoutResult:
        """Lay out ``text`` anchored at ``(x, y)``.

        Args:
            text: Text to draw.
            metrics: Metrics of the font the text is drawn with.
            x: Anchor x.
            y: Baseline y.
            size: Explicit font size, used unless fitting to a box.
            alignment: Horizontal alignment against ``x``.
            box: Optional ``(width, height)`` of the containing box.
            contain: Fit the font size to ``box`` when both are given.

        Returns:
            LayoutResult with the draw origin and drawn box.
        """
        fits = True
        if contain and box is not None and box[0] and box[1]:
            font_size, fits = self.fit_size(text, metrics, box[0], box[1])
        else:
            font_size = size

        text_width = metrics.width_of_text_at_size(text, font_size)
        draw_x = self.align_x(x, text_width, alignment)
        drawn = DrawnBox(
            x=draw_x,
            y=y,
            w=text_width,
            h=metrics.height_at_size(font_size),
        )
        return LayoutResult(draw_x=draw_x, draw_y=y, font_size=font_size, box=drawn, fits=fits)
