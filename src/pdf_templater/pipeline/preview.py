# SPDX-License-Identifier: Apache-2.0
"""Debounced live preview of variables drawn onto the template.

Edits call :meth:`PreviewSession.schedule`, which waits for a quiet period
before rendering. Every scheduled render owns a :class:`CancelToken`; a newer
edit or template change cancels it, and a cancelled render's result is
dropped instead of being delivered.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Callable, Optional

from PIL import Image

from pdf_templater.core.coordinates import Size, ViewRect, overlay_rect
from pdf_templater.core.errors import RenderCancelled, TemplaterError
from pdf_templater.core.models import DrawnBox, TextSubstitution, Variable
from pdf_templater.core.renderer import (
    CancelToken,
    DocumentRenderer,
    TemplateSource,
    render_page_image,
    viewport_size,
)

logger = logging.getLogger(__name__)

DEFAULT_PLACEHOLDER_LABEL = "Variable {n}"


@dataclass
class PreviewConfig:
    """Preview rendering configuration."""

    # Quiet period before an edit triggers a render (seconds)
    delay: float = 0.25

    # Raster zoom; the viewport's intrinsic size is page size * scale
    scale: float = 1.5

    rasterize: bool = True
    placeholder_label: str = DEFAULT_PLACEHOLDER_LABEL


@dataclass
class PreviewResult:
    """A delivered preview render."""

    pdf_bytes: bytes
    drawn: dict[str, DrawnBox]
    page_size: Size
    scale: float
    image: Optional[Image.Image] = None
    variables: list[Variable] = field(default_factory=list)

    @property
    def viewport(self) -> Size:
        """Intrinsic pixel size of the preview raster."""
        return viewport_size(self.page_size, self.scale)

    def overlays(self, display: Size) -> dict[str, ViewRect]:
        """Overlay rectangles in display pixels, keyed by variable key."""
        rects: dict[str, ViewRect] = {}
        for variable in self.variables:
            drawn = self.drawn.get(variable.key)
            if drawn is None:
                continue
            rect = overlay_rect(variable, drawn, self.viewport, display, self.scale)
            if rect is not None:
                rects[variable.key] = rect
        return rects


def placeholder_substitutions(
    variables: Sequence[Variable],
    label: str = DEFAULT_PLACEHOLDER_LABEL,
) -> list[TextSubstitution]:
    """Sample texts for the active variables.

    ``{n}`` in ``label`` is the 1-based position of the variable among all
    variables, so labels stay stable while others are still unplaced. Other
    braces are kept literally.
    """
    return [
        TextSubstitution(variable=variable, text=label.replace("{n}", str(position)))
        for position, variable in enumerate(variables, start=1)
        if variable.is_active
    ]


class PreviewSession:
    """Keeps a preview in sync with a changing template and variable set."""

    def __init__(
        self,
        renderer: DocumentRenderer,
        on_result: Callable[[PreviewResult], None],
        config: Optional[PreviewConfig] = None,
    ) -> None:
        """Initialize PreviewSession.

        Args:
            renderer: Renderer shared with batch generation.
            on_result: Called with each fresh, non-stale result.
            config: Preview settings.
        """
        self._renderer = renderer
        self._on_result = on_result
        self._config = config or PreviewConfig()
        self._template: Optional[bytes] = None
        self._token: Optional[CancelToken] = None
        self._task: Optional[asyncio.Task[Optional[PreviewResult]]] = None
        self.last_result: Optional[PreviewResult] = None
        self.last_error: Optional[TemplaterError] = None

    @property
    def pending(self) -> bool:
        """Whether a render is scheduled or running."""
        return self._task is not None and not self._task.done()

    def set_template(self, template_bytes: Optional[TemplateSource]) -> None:
        """Replace the template; any scheduled or running render goes stale."""
        self._cancel_current()
        self._template = bytes(template_bytes) if template_bytes is not None else None
        self.last_result = None
        self.last_error = None

    def schedule(self, variables: Sequence[Variable]) -> None:
        """Render after the quiet period unless another edit arrives first."""
        self._start(list(variables), self._config.delay)

    async def render_now(self, variables: Sequence[Variable]) -> Optional[PreviewResult]:
        """Render immediately and wait for the result.

        Returns:
            The result, or None if it went stale or failed.
        """
        task = self._start(list(variables), 0.0)
        return await task

    async def wait(self) -> Optional[PreviewResult]:
        """Wait for the current render, if any."""
        if self._task is None:
            return None
        return await self._task

    async def aclose(self) -> None:
        """Cancel outstanding work."""
        task = self._task
        self._cancel_current()
        if task is not None:
            await asyncio.gather(task, return_exceptions=True)

    def _start(
        self,
        variables: list[Variable],
        delay: float,
    ) -> asyncio.Task[Optional[PreviewResult]]:
        self._cancel_current()
        token = CancelToken()
        self._token = token
        self._task = asyncio.get_running_loop().create_task(self._run(variables, token, delay))
        return self._task

    def _cancel_current(self) -> None:
        if self._token is not None:
            self._token.cancel()
        self._token = None

    async def _run(
        self,
        variables: list[Variable],
        token: CancelToken,
        delay: float,
    ) -> Optional[PreviewResult]:
        if delay > 0:
            await asyncio.sleep(delay)
        if token.cancelled or self._template is None:
            return None

        try:
            substitutions = placeholder_substitutions(variables, self._config.placeholder_label)
            rendered = await self._renderer.render(self._template, substitutions, cancel=token)
            token.raise_if_cancelled()
            image = None
            if self._config.rasterize:
                image = render_page_image(rendered.pdf_bytes, self._config.scale)
                token.raise_if_cancelled()
        except RenderCancelled:
            logger.debug("Discarded stale preview render")
            return None
        except TemplaterError as exc:
            if token.cancelled:
                return None
            logger.error("Preview render failed: %s", exc)
            self.last_error = exc
            return None
        except Exception as exc:
            if token.cancelled:
                return None
            logger.exception("Unexpected preview failure")
            self.last_error = TemplaterError("Preview render failed", cause=exc)
            return None

        result = PreviewResult(
            pdf_bytes=rendered.pdf_bytes,
            drawn=rendered.drawn_by_key,
            page_size=Size(rendered.page_width, rendered.page_height),
            scale=self._config.scale,
            image=image,
            variables=variables,
        )
        self.last_result = result
        self.last_error = None
        self._on_result(result)
        return result
