# SPDX-License-Identifier: Apache-2.0
"""Render text substitutions onto page 1 of a PDF template.

The template is loaded fresh for every call, so the caller's bytes are
never modified and each call embeds its own fonts. Substitutions that
cannot be placed are skipped and reported instead of failing the render.
"""

from __future__ import annotations

import ctypes
import logging
from collections.abc import Sequence
from dataclasses import dataclass, field
from io import BytesIO
from typing import Any, Optional, Union

import pypdfium2 as pdfium  # type: ignore[import-untyped]
from PIL import Image

from .coordinates import Size
from .errors import RenderCancelled, TemplateError
from .fonts import EmbeddedFonts, FontCatalog
from .helpers import to_widestring
from .models import DrawnBox, DrawOutcome, SkipReason, TextSubstitution
from .text_layout import LayoutResult, PdfiumFontMetrics, TextLayoutEngine

logger = logging.getLogger(__name__)

TemplateSource = Union[bytes, bytearray, memoryview]


class CancelToken:
    """Cancellation flag owned by a single asynchronous render."""

    def __init__(self) -> None:
        self._cancelled = False

    @property
    def cancelled(self) -> bool:
        """Whether :meth:`cancel` has been called."""
        return self._cancelled

    def cancel(self) -> None:
        """Mark the owning operation as stale."""
        self._cancelled = True

    def raise_if_cancelled(self, stage: str = "render") -> None:
        """Raise RenderCancelled if the token was cancelled."""
        if self._cancelled:
            raise RenderCancelled("Render cancelled", stage=stage)


def _check(cancel: Optional[CancelToken], stage: str = "render") -> None:
    if cancel is not None:
        cancel.raise_if_cancelled(stage)


@dataclass
class RenderResult:
    """Output of one render.

    Attributes:
        pdf_bytes: Serialized document with the text drawn.
        drawn: ``(key, box)`` for every drawn substitution, in input order.
        outcomes: One outcome per input substitution, in input order.
        page_width: Width of page 1 in points.
        page_height: Height of page 1 in points.
    """

    pdf_bytes: bytes
    drawn: list[tuple[str, DrawnBox]] = field(default_factory=list)
    outcomes: list[DrawOutcome] = field(default_factory=list)
    page_width: float = 0.0
    page_height: float = 0.0

    @property
    def drawn_by_key(self) -> dict[str, DrawnBox]:
        """Drawn boxes keyed by variable key."""
        return dict(self.drawn)

    @property
    def skipped(self) -> list[DrawOutcome]:
        """Outcomes of substitutions that were not drawn."""
        return [outcome for outcome in self.outcomes if not outcome.drawn]


def load_template(template_bytes: TemplateSource) -> pdfium.PdfDocument:
    """Open template bytes as a PDFium document.

    Raises:
        TemplateError: If the bytes are not a PDF with at least one page.
    """
    data = bytes(template_bytes)
    try:
        pdf = pdfium.PdfDocument(data)
    except pdfium.PdfiumError as exc:
        raise TemplateError("Template is not a valid PDF", cause=exc) from exc

    if len(pdf) == 0:
        pdf.close()
        raise TemplateError("Template has no pages")
    return pdf


def page_size(template_bytes: TemplateSource) -> Size:
    """Size of page 1 in points.

    Raises:
        TemplateError: If the template cannot be loaded.
    """
    pdf = load_template(template_bytes)
    try:
        page = pdf[0]
        return Size(page.get_width(), page.get_height())
    finally:
        pdf.close()


def viewport_size(page: Size, scale: float) -> Size:
    """Intrinsic pixel size of page 1 rendered at ``scale``."""
    return Size(page.width * scale, page.height * scale)


def render_page_image(pdf_bytes: TemplateSource, scale: float = 1.0) -> Image.Image:
    """Rasterize page 1 for preview display.

    Raises:
        TemplateError: If the document cannot be loaded.
    """
    pdf = load_template(pdf_bytes)
    try:
        bitmap = pdf[0].render(scale=scale)
        return bitmap.to_pil()
    finally:
        pdf.close()


class DocumentRenderer:
    """Draws text substitutions onto page 1 of a template.

    Example:
        >>> renderer = DocumentRenderer(FontCatalog())
        >>> result = await renderer.render(template, [TextSubstitution(var, "Ada")])
        >>> result.drawn_by_key[var.key]
    """

    def __init__(
        self,
        fonts: FontCatalog,
        layout_engine: Optional[TextLayoutEngine] = None,
    ) -> None:
        """Initialize DocumentRenderer.

        Args:
            fonts: Catalog used to resolve font names.
            layout_engine: Layout engine; defaults to a fresh engine.
        """
        self._fonts = fonts
        self._layout = layout_engine or TextLayoutEngine()

    @property
    def fonts(self) -> FontCatalog:
        """Font catalog used by this renderer."""
        return self._fonts

    @property
    def layout_engine(self) -> TextLayoutEngine:
        """Layout engine used by this renderer."""
        return self._layout

    async def render(
        self,
        template_bytes: TemplateSource,
        substitutions: Sequence[TextSubstitution],
        cancel: Optional[CancelToken] = None,
    ) -> RenderResult:
        """Render ``substitutions`` onto a fresh copy of the template.

        Args:
            template_bytes: Template PDF; never modified.
            substitutions: Texts to draw, in drawing order.
            cancel: Optional token checked before starting and after every
                suspension point.

        Returns:
            RenderResult with the new document and the drawn boxes.

        Raises:
            TemplateError: If the template cannot be loaded.
            RenderCancelled: If ``cancel`` was triggered.
        """
        _check(cancel)
        pdf = load_template(template_bytes)
        embedded = EmbeddedFonts(pdf)
        try:
            page = pdf[0]
            width = page.get_width()
            height = page.get_height()
            origin = page.get_mediabox()[:2]

            outcomes: list[DrawOutcome] = []
            for substitution in substitutions:
                outcome = await self._draw_one(
                    pdf, page, embedded, substitution, width, height, origin
                )
                _check(cancel)
                outcomes.append(outcome)

            if any(outcome.drawn for outcome in outcomes):
                page.gen_content()

            buffer = BytesIO()
            pdf.save(buffer)
        finally:
            embedded.clear()
            pdf.close()

        _check(cancel)
        drawn = [(o.key, o.box) for o in outcomes if o.box is not None]
        logger.debug(
            "Rendered %d of %d substitutions onto %.1fx%.1f page",
            len(drawn),
            len(outcomes),
            width,
            height,
        )
        return RenderResult(
            pdf_bytes=buffer.getvalue(),
            drawn=drawn,
            outcomes=outcomes,
            page_width=width,
            page_height=height,
        )

    async def _draw_one(
        self,
        pdf: pdfium.PdfDocument,
        page: pdfium.PdfPage,
        embedded: EmbeddedFonts,
        substitution: TextSubstitution,
        page_width: float,
        page_height: float,
        origin: tuple[float, float] = (0.0, 0.0),
    ) -> DrawOutcome:
        variable = substitution.variable
        text = substitution.text

        if not text:
            return self._skip(substitution, SkipReason.EMPTY_TEXT)

        if not self._layout.is_within_page(
            variable.x, variable.y, page_width, page_height, *origin
        ):
            logger.warning(
                "Invalid position for %r: (%.1f, %.1f) outside %.1fx%.1f page at (%.1f, %.1f)",
                text,
                variable.x,
                variable.y,
                page_width,
                page_height,
                origin[0],
                origin[1],
            )
            return self._skip(substitution, SkipReason.OUT_OF_BOUNDS)

        font_data = await self._fonts.resolve(variable.font)
        metrics = PdfiumFontMetrics(embedded.load(font_data))

        box = (variable.w, variable.h) if variable.has_box else None
        layout = self._layout.layout(
            text,
            metrics,
            x=variable.x,
            y=variable.y,
            size=variable.size,
            alignment=variable.alignment,
            box=box,
            contain=variable.contain,
        )
        if layout.font_size <= 0:
            return self._skip(substitution, SkipReason.INVALID_SIZE)
        if not layout.fits:
            logger.debug("Text %r does not fit its box; drawing at %.2fpt", text, layout.font_size)

        if not self._insert_text(pdf, page, metrics.handle, text, layout, substitution):
            return self._skip(substitution, SkipReason.DRAW_FAILED)

        return DrawOutcome(key=substitution.key, box=layout.box, font_size=layout.font_size)

    @staticmethod
    def _insert_text(
        pdf: pdfium.PdfDocument,
        page: pdfium.PdfPage,
        font_handle: Any,
        text: str,
        layout: LayoutResult,
        substitution: TextSubstitution,
    ) -> bool:
        text_obj = pdfium.raw.FPDFPageObj_CreateTextObj(
            pdf.raw, font_handle, ctypes.c_float(layout.font_size)
        )
        if not text_obj:
            return False

        if not pdfium.raw.FPDFText_SetText(text_obj, to_widestring(text)):
            pdfium.raw.FPDFPageObj_Destroy(text_obj)
            return False

        r, g, b = substitution.variable.color.to_rgb255()
        pdfium.raw.FPDFPageObj_SetFillColor(text_obj, r, g, b, 255)
        pdfium.raw.FPDFPageObj_Transform(
            text_obj,
            ctypes.c_double(1.0),
            ctypes.c_double(0.0),
            ctypes.c_double(0.0),
            ctypes.c_double(1.0),
            ctypes.c_double(layout.draw_x),
            ctypes.c_double(layout.draw_y),
        )
        pdfium.raw.FPDFPage_InsertObject(page.raw, text_obj)
        return True

    @staticmethod
    def _skip(substitution: TextSubstitution, reason: SkipReason) -> DrawOutcome:
        logger.debug("Skipped variable %s: %s", substitution.key, reason.value)
        return DrawOutcome(key=substitution.key, skip_reason=reason)
