# SPDX-License-Identifier: Apache-2.0
"""Error definitions shared by the rendering core."""

from __future__ import annotations


class TemplaterError(Exception):
    """Base exception for pdf-templater errors."""

    default_stage = "render"

    def __init__(
        self,
        message: str,
        stage: str | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.stage = stage or self.default_stage
        self.cause = cause

    def __str__(self) -> str:
        text = f"[{self.stage}] {self.message}"
        if self.cause is not None:
            text += f" (caused by {type(self.cause).__name__}: {self.cause})"
        return text


class TemplateError(TemplaterError):
    """Template bytes could not be loaded as a PDF document."""

    default_stage = "load"


class RenderCancelled(TemplaterError):
    """A render was cancelled before it completed."""


class FontLoadError(TemplaterError):
    """Font data could not be obtained or parsed."""

    default_stage = "font"
