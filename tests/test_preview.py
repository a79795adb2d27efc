# SPDX-License-Identifier: Apache-2.0
"""Tests for the debounced preview session."""

from __future__ import annotations

import asyncio
from collections.abc import Sequence
from typing import Optional

import pytest

from pdf_templater.core.coordinates import Size
from pdf_templater.core.errors import TemplateError, TemplaterError
from pdf_templater.core.fonts import FontCatalog
from pdf_templater.core.models import TextSubstitution, Variable
from pdf_templater.core.renderer import CancelToken, DocumentRenderer, RenderResult, TemplateSource
from pdf_templater.pipeline import (
    PreviewConfig,
    PreviewResult,
    PreviewSession,
    placeholder_substitutions,
)


class CountingRenderer(DocumentRenderer):
    """Renderer that records calls and can be slowed down."""

    def __init__(self, delay: float = 0.0) -> None:
        super().__init__(FontCatalog())
        self.delay = delay
        self.calls: list[list[str]] = []

    async def render(
        self,
        template_bytes: TemplateSource,
        substitutions: Sequence[TextSubstitution],
        cancel: Optional[CancelToken] = None,
    ) -> RenderResult:
        self.calls.append([sub.text for sub in substitutions])
        if self.delay:
            await asyncio.sleep(self.delay)
        return await super().render(template_bytes, substitutions, cancel)


@pytest.fixture
def placed() -> list[Variable]:
    return [Variable(key="a", x=100.0, y=400.0), Variable(key="b", x=100.0, y=300.0)]


def _session(
    renderer: DocumentRenderer,
    results: list[PreviewResult],
    delay: float = 0.0,
) -> PreviewSession:
    config = PreviewConfig(delay=delay, scale=1.0, rasterize=False)
    return PreviewSession(renderer, results.append, config)


class TestPlaceholders:
    """Tests for placeholder_substitutions()."""

    def test_labels_use_declaration_position(self) -> None:
        variables = [
            Variable(key="a"),
            Variable(key="b", x=10.0, y=10.0),
            Variable(key="c", x=20.0, y=20.0),
        ]
        subs = placeholder_substitutions(variables)
        assert [(s.key, s.text) for s in subs] == [("b", "Variable 2"), ("c", "Variable 3")]

    def test_custom_label(self) -> None:
        subs = placeholder_substitutions([Variable(key="a", x=1.0, y=1.0)], "Field #{n}")
        assert subs[0].text == "Field #1"

    def test_other_braces_are_literal(self) -> None:
        variables = [Variable(key="a", x=1.0, y=1.0), Variable(key="b", x=2.0, y=2.0)]
        subs = placeholder_substitutions(variables, "{name} {n} {}")
        assert [s.text for s in subs] == ["{name} 1 {}", "{name} 2 {}"]


class TestPreviewSession:
    """Tests for PreviewSession."""

    @pytest.mark.asyncio
    async def test_rapid_edits_render_once(
        self, template_bytes: bytes, placed: list[Variable]
    ) -> None:
        renderer = CountingRenderer()
        results: list[PreviewResult] = []
        session = _session(renderer, results, delay=0.05)
        session.set_template(template_bytes)

        session.schedule(placed[:1])
        session.schedule(placed)
        session.schedule(placed)
        assert session.pending
        await session.wait()

        assert len(renderer.calls) == 1
        assert len(results) == 1
        assert set(results[0].drawn) == {"a", "b"}
        assert not session.pending

    @pytest.mark.asyncio
    async def test_stale_render_is_discarded(
        self, template_bytes: bytes, placed: list[Variable]
    ) -> None:
        renderer = CountingRenderer(delay=0.05)
        results: list[PreviewResult] = []
        session = _session(renderer, results)
        session.set_template(template_bytes)

        first = asyncio.create_task(session.render_now(placed[:1]))
        await asyncio.sleep(0.01)
        second = await session.render_now(placed)

        assert await first is None
        assert second is not None
        assert results == [second]
        assert set(second.drawn) == {"a", "b"}

    @pytest.mark.asyncio
    async def test_template_change_discards_pending(
        self, template_bytes: bytes, placed: list[Variable]
    ) -> None:
        results: list[PreviewResult] = []
        session = _session(CountingRenderer(delay=0.05), results)
        session.set_template(template_bytes)

        pending = asyncio.create_task(session.render_now(placed))
        await asyncio.sleep(0.01)
        session.set_template(template_bytes)

        assert await pending is None
        assert results == []
        assert session.last_result is None

    @pytest.mark.asyncio
    async def test_no_template(self, placed: list[Variable]) -> None:
        session = _session(CountingRenderer(), [])
        assert await session.render_now(placed) is None

    @pytest.mark.asyncio
    async def test_invalid_template_sets_error(self, placed: list[Variable]) -> None:
        results: list[PreviewResult] = []
        session = _session(CountingRenderer(), results)
        session.set_template(b"not a pdf")

        assert await session.render_now(placed) is None
        assert isinstance(session.last_error, TemplateError)
        assert results == []

    @pytest.mark.asyncio
    async def test_unexpected_error_is_recorded(
        self, template_bytes: bytes, placed: list[Variable]
    ) -> None:
        class BrokenRenderer(CountingRenderer):
            async def render(
                self,
                template_bytes: TemplateSource,
                substitutions: Sequence[TextSubstitution],
                cancel: Optional[CancelToken] = None,
            ) -> RenderResult:
                raise RuntimeError("renderer exploded")

        results: list[PreviewResult] = []
        session = _session(BrokenRenderer(), results, delay=0.01)
        session.set_template(template_bytes)

        session.schedule(placed)
        assert await session.wait() is None

        assert isinstance(session.last_error, TemplaterError)
        assert isinstance(session.last_error.cause, RuntimeError)
        assert results == []

    @pytest.mark.asyncio
    async def test_aclose_cancels_scheduled(
        self, template_bytes: bytes, placed: list[Variable]
    ) -> None:
        renderer = CountingRenderer()
        session = _session(renderer, [], delay=0.05)
        session.set_template(template_bytes)
        session.schedule(placed)

        await session.aclose()

        assert renderer.calls == []

    @pytest.mark.asyncio
    async def test_rasterized_preview(self, template_bytes: bytes, placed: list[Variable]) -> None:
        config = PreviewConfig(delay=0.0, scale=0.5, rasterize=True)
        session = PreviewSession(CountingRenderer(), lambda result: None, config)
        session.set_template(template_bytes)

        result = await session.render_now(placed)

        assert result is not None
        assert result.image is not None
        assert result.image.width == pytest.approx(306, abs=1)


class TestOverlays:
    """Overlay rectangles computed from a preview result."""

    @pytest.mark.asyncio
    async def test_overlay_at_anchor(self, template_bytes: bytes, placed: list[Variable]) -> None:
        config = PreviewConfig(delay=0.0, scale=1.5, rasterize=False)
        session = PreviewSession(CountingRenderer(), lambda result: None, config)
        session.set_template(template_bytes)

        result = await session.render_now(placed)
        assert result is not None

        overlays = result.overlays(result.viewport)
        assert set(overlays) == {"a", "b"}
        rect = overlays["a"]
        box = result.drawn["a"]
        assert rect.left == pytest.approx(100.0 * 1.5)
        assert rect.width == pytest.approx(box.w * 1.5)
        assert rect.top + rect.height == pytest.approx(result.viewport.height - 400.0 * 1.5)

    def test_missing_drawn_box_has_no_overlay(self) -> None:
        result = PreviewResult(
            pdf_bytes=b"",
            drawn={},
            page_size=Size(612.0, 792.0),
            scale=1.0,
            variables=[Variable(key="a", x=1.0, y=1.0)],
        )
        assert result.overlays(Size(612.0, 792.0)) == {}
