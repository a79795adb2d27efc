# SPDX-License-Identifier: Apache-2.0
"""Core coordinate mapping, text layout, fonts and rendering."""

from .coordinates import (
    DragHandle,
    DragSession,
    Point,
    Size,
    ViewRect,
    letterbox,
    overlay_rect,
    rect_to_placement,
    to_document_space,
    to_viewport_space,
)
from .errors import FontLoadError, RenderCancelled, TemplateError, TemplaterError
from .fonts import STANDARD_FONTS, EmbeddedFonts, FontCatalog, FontCatalogConfig, FontData
from .models import (
    Alignment,
    Color,
    DrawnBox,
    DrawOutcome,
    SkipReason,
    TextSubstitution,
    Variable,
    load_variables,
)
from .renderer import CancelToken, DocumentRenderer, RenderResult, render_page_image
from .text_layout import FontMetrics, LayoutResult, PdfiumFontMetrics, TextLayoutEngine
from .variables import VariableSet, VariableUpdateError, new_variable, update_variable

__all__ = [
    "Alignment",
    "CancelToken",
    "Color",
    "DocumentRenderer",
    "DragHandle",
    "DragSession",
    "DrawnBox",
    "DrawOutcome",
    "EmbeddedFonts",
    "FontCatalog",
    "FontCatalogConfig",
    "FontData",
    "FontLoadError",
    "FontMetrics",
    "LayoutResult",
    "PdfiumFontMetrics",
    "Point",
    "RenderCancelled",
    "RenderResult",
    "STANDARD_FONTS",
    "Size",
    "SkipReason",
    "TemplateError",
    "TemplaterError",
    "TextLayoutEngine",
    "TextSubstitution",
    "Variable",
    "VariableSet",
    "VariableUpdateError",
    "ViewRect",
    "letterbox",
    "load_variables",
    "new_variable",
    "overlay_rect",
    "rect_to_placement",
    "render_page_image",
    "to_document_space",
    "to_viewport_space",
    "update_variable",
]
