# SPDX-License-Identifier: Apache-2.0
"""Batch generation and live preview pipelines."""

from .batch import (
    BatchConfig,
    BatchPipeline,
    BatchResult,
    GeneratedFile,
    RowFailure,
    build_substitutions,
)
from .errors import PackagingError, PipelineError, RowRenderError
from .filenames import DEFAULT_FILENAME_PATTERN, archive_name, format_filename, slugify
from .preview import PreviewConfig, PreviewResult, PreviewSession, placeholder_substitutions
from .progress import ProgressCallback
from .tabular import parse_rows, read_rows

__all__ = [
    "BatchConfig",
    "BatchPipeline",
    "BatchResult",
    "DEFAULT_FILENAME_PATTERN",
    "GeneratedFile",
    "PackagingError",
    "PipelineError",
    "PreviewConfig",
    "PreviewResult",
    "PreviewSession",
    "ProgressCallback",
    "RowFailure",
    "RowRenderError",
    "archive_name",
    "build_substitutions",
    "format_filename",
    "parse_rows",
    "placeholder_substitutions",
    "read_rows",
    "slugify",
]
