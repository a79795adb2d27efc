# SPDX-License-Identifier: Apache-2.0
"""Mapping between viewport pixels and PDF user space.

The preview is a raster of page 1 whose intrinsic size is the page size
multiplied by ``scale``. It is laid out inside a display area of a different
aspect ratio, so the drawn image is letterboxed: fitted to one dimension and
centered along the other.

Viewport Y grows downward while document Y grows upward, so both directions
flip the Y axis against the height of the drawn region.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum
from typing import NamedTuple, Optional

from .models import Alignment, DrawnBox, Variable


class Size(NamedTuple):
    """Width and height pair."""

    width: float
    height: float


class Point(NamedTuple):
    """A 2D point."""

    x: float
    y: float


class DrawnRegion(NamedTuple):
    """Placement of the letterboxed image inside the display area."""

    offset_x: float
    offset_y: float
    width: float
    height: float

    def contains(self, x: float, y: float) -> bool:
        """Check a point given relative to the region's top-left corner."""
        return 0 <= x <= self.width and 0 <= y <= self.height


def letterbox(viewport: Size, display: Size) -> Optional[DrawnRegion]:
    """Compute where an aspect-fit viewport lands inside a display area.

    Args:
        viewport: Intrinsic pixel size of the rendered page.
        display: Size of the area the viewport is laid out in.

    Returns:
        The drawn region, or None if either size is degenerate.
    """
    if viewport.width <= 0 or viewport.height <= 0:
        return None
    if display.width <= 0 or display.height <= 0:
        return None

    viewport_aspect = viewport.width / viewport.height
    display_aspect = display.width / display.height

    if viewport_aspect > display_aspect:
        width = display.width
        height = display.width / viewport_aspect
        return DrawnRegion(0.0, (display.height - height) / 2, width, height)

    height = display.height
    width = display.height * viewport_aspect
    return DrawnRegion((display.width - width) / 2, 0.0, width, height)


def to_document_space(
    viewport: Size,
    display: Size,
    point: Point,
    scale: float = 1.0,
    unsafe: bool = False,
) -> Optional[Point]:
    """Convert a display-area pixel position to PDF coordinates.

    Args:
        viewport: Intrinsic pixel size of the rendered page.
        display: Size of the display area.
        point: Position relative to the display area's top-left corner.
        scale: Zoom factor the viewport was rendered at.
        unsafe: Allow points outside the drawn region.

    Returns:
        Document-space point, or None if the point falls outside the drawn
        region (and ``unsafe`` is False) or the geometry is degenerate.
    """
    region = letterbox(viewport, display)
    if region is None or scale <= 0:
        return None

    x = point.x - region.offset_x
    y = point.y - region.offset_y
    if not unsafe and not region.contains(x, y):
        return None

    scale_x = viewport.width / region.width / scale
    scale_y = viewport.height / region.height / scale
    return Point(x * scale_x, (region.height - y) * scale_y)


def to_viewport_space(
    viewport: Size,
    display: Size,
    point: Point,
    scale: float = 1.0,
    unsafe: bool = False,
) -> Optional[Point]:
    """Convert PDF coordinates to a display-area pixel position.

    This is the inverse of :func:`to_document_space`. Overlays for boxes that
    may extend past the visible page (for example while dragging) pass
    ``unsafe=True`` to skip the bounds check.
    """
    region = letterbox(viewport, display)
    if region is None or scale <= 0:
        return None

    x = point.x * scale * region.width / viewport.width
    y = region.height - point.y * scale * region.height / viewport.height
    if not unsafe and not region.contains(x, y):
        return None

    return Point(x + region.offset_x, y + region.offset_y)


@dataclass(frozen=True)
class ViewRect:
    """Axis-aligned rectangle in display-area pixels (top-left origin)."""

    left: float
    top: float
    width: float
    height: float


def _align_offset(width: float, alignment: Alignment) -> float:
    if alignment is Alignment.CENTER:
        return width / 2
    if alignment is Alignment.RIGHT:
        return width
    return 0.0


def overlay_rect(
    variable: Variable,
    drawn: DrawnBox,
    viewport: Size,
    display: Size,
    scale: float = 1.0,
) -> Optional[ViewRect]:
    """Pixel rectangle of the interactive overlay for one variable.

    The explicit box (``w``/``h``) wins over the drawn text box. The
    rectangle is anchored at the variable's x and shifted by its alignment,
    mirroring how the text itself is placed.
    """
    w = variable.w or drawn.w
    h = variable.h or drawn.h
    a = to_viewport_space(viewport, display, Point(variable.x, variable.y), scale, unsafe=True)
    b = to_viewport_space(
        viewport, display, Point(variable.x + w, variable.y + h), scale, unsafe=True
    )
    if a is None or b is None:
        return None

    width = b.x - a.x
    left = a.x - _align_offset(width, variable.alignment)
    return ViewRect(left=left, top=b.y, width=width, height=a.y - b.y)


def rect_to_placement(
    rect: ViewRect,
    alignment: Alignment,
    viewport: Size,
    display: Size,
    scale: float = 1.0,
) -> Optional[tuple[float, float, float, float]]:
    """Convert an edited overlay rectangle back to ``(x, y, w, h)``.

    The returned x is the anchor for ``alignment``, so a centered variable
    keeps its anchor at the middle of the box.

    Returns:
        Placement in document space, or None if a corner left the page.
    """
    a = to_document_space(viewport, display, Point(rect.left, rect.top + rect.height), scale)
    b = to_document_space(viewport, display, Point(rect.left + rect.width, rect.top), scale)
    if a is None or b is None:
        return None

    w = b.x - a.x
    h = b.y - a.y
    return a.x + _align_offset(w, alignment), a.y, w, h


class DragHandle(str, Enum):
    """Part of the overlay grabbed by the pointer."""

    MOVE = "move"
    N = "n"
    NE = "ne"
    E = "e"
    SE = "se"
    S = "s"
    SW = "sw"
    W = "w"
    NW = "nw"


def apply_drag(rect: ViewRect, handle: DragHandle, dx: float, dy: float) -> ViewRect:
    """Rectangle after dragging ``handle`` by ``(dx, dy)`` pixels."""
    if handle is DragHandle.MOVE:
        return replace(rect, left=rect.left + dx, top=rect.top + dy)

    left, top, width, height = rect.left, rect.top, rect.width, rect.height
    name = handle.value
    if "n" in name:
        top += dy
        height -= dy
    if "s" in name:
        height += dy
    if "w" in name:
        left += dx
        width -= dx
    if "e" in name:
        width += dx
    return ViewRect(left=left, top=top, width=width, height=height)


class DragSession:
    """Snapshot state for a single pointer interaction on an overlay."""

    def __init__(
        self,
        key: str,
        handle: DragHandle,
        start: ViewRect,
        pointer_x: float,
        pointer_y: float,
    ) -> None:
        self.key = key
        self.handle = handle
        self.start = start
        self.current = start
        self._pointer = Point(pointer_x, pointer_y)

    def move(self, pointer_x: float, pointer_y: float) -> ViewRect:
        """Update with the latest pointer position."""
        dx = pointer_x - self._pointer.x
        dy = pointer_y - self._pointer.y
        self.current = apply_drag(self.start, self.handle, dx, dy)
        return self.current

    def finish(
        self,
        alignment: Alignment,
        viewport: Size,
        display: Size,
        scale: float = 1.0,
    ) -> Optional[tuple[float, float, float, float]]:
        """End the interaction and return the new document-space placement."""
        return rect_to_placement(self.current, alignment, viewport, display, scale)
