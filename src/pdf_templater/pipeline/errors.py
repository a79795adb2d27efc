# SPDX-License-Identifier: Apache-2.0
"""Pipeline error definitions."""

from __future__ import annotations

from pdf_templater.core.errors import RenderCancelled, TemplateError, TemplaterError


class PipelineError(TemplaterError):
    """Base exception for pipeline errors."""

    default_stage = "pipeline"


class RowRenderError(PipelineError):
    """A single batch row could not be rendered."""

    default_stage = "render"

    def __init__(
        self,
        message: str,
        row_index: int,
        stage: str | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(message, stage=stage, cause=cause)
        self.row_index = row_index


class PackagingError(PipelineError):
    """Generated documents could not be written to the archive."""

    default_stage = "package"


__all__ = [
    "PackagingError",
    "PipelineError",
    "RenderCancelled",
    "RowRenderError",
    "TemplateError",
    "TemplaterError",
]
