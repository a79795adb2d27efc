# SPDX-License-Identifier: Apache-2.0
"""Bulk generation: one document per data row, packaged as a ZIP archive."""

from __future__ import annotations

import asyncio
import logging
import zipfile
from collections.abc import Sequence
from dataclasses import dataclass, field
from io import BytesIO
from pathlib import Path
from typing import Optional, Union

from pdf_templater.core.models import DrawOutcome, TextSubstitution, Variable
from pdf_templater.core.renderer import DocumentRenderer, TemplateSource
from pdf_templater.pipeline.errors import PackagingError, RowRenderError
from pdf_templater.pipeline.filenames import (
    DEFAULT_FILENAME_PATTERN,
    archive_name,
    format_filename,
    unique_filename,
)
from pdf_templater.pipeline.progress import ProgressCallback

logger = logging.getLogger(__name__)


@dataclass
class BatchConfig:
    """Batch generation configuration."""

    filename_pattern: str = DEFAULT_FILENAME_PATTERN

    # 1 renders rows strictly one after another
    max_workers: int = 1

    # zlib level for the archive (0-9)
    compression_level: int = 6


@dataclass
class GeneratedFile:
    """One successfully rendered row."""

    row_index: int
    filename: str
    pdf_bytes: bytes
    skipped: list[DrawOutcome] = field(default_factory=list)


@dataclass
class RowFailure:
    """A row that could not be rendered."""

    row_index: int
    error: Exception

    @property
    def message(self) -> str:
        """Human readable failure description."""
        return str(self.error)


@dataclass
class BatchResult:
    """Batch generation result.

    The archive holds every generated file in row order, and may be empty
    when every row failed.
    """

    archive_bytes: bytes
    archive_name: str
    files: list[GeneratedFile] = field(default_factory=list)
    failures: list[RowFailure] = field(default_factory=list)

    @property
    def stats(self) -> dict[str, int]:
        """Row counts by outcome."""
        return {
            "rows": len(self.files) + len(self.failures),
            "generated": len(self.files),
            "failed": len(self.failures),
        }

    def save(self, output: Union[Path, str]) -> Path:
        """Write the archive to ``output``.

        A directory target receives the archive under :attr:`archive_name`.
        """
        path = Path(output)
        if path.is_dir():
            path = path / self.archive_name
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(self.archive_bytes)
        return path


def build_substitutions(
    variables: Sequence[Variable],
    row: Sequence[str],
) -> list[TextSubstitution]:
    """Pair each variable with its cell of ``row``.

    Column ``i`` binds to variable ``i``. A variable is included only when
    its cell is non-empty and the variable is placed with a usable size.
    """
    substitutions: list[TextSubstitution] = []
    for position, variable in enumerate(variables):
        if position >= len(row):
            break
        text = row[position]
        if text and variable.is_active:
            substitutions.append(TextSubstitution(variable=variable, text=text))
    return substitutions


class BatchPipeline:
    """Generates one PDF per data row.

    A row that fails to render is logged and recorded in
    :attr:`BatchResult.failures`; the remaining rows still get generated.
    """

    def __init__(
        self,
        renderer: DocumentRenderer,
        config: Optional[BatchConfig] = None,
        progress_callback: Optional[ProgressCallback] = None,
    ) -> None:
        """Initialize BatchPipeline."""
        self._renderer = renderer
        self._config = config or BatchConfig()
        self._progress_callback = progress_callback

    async def generate(
        self,
        template_bytes: TemplateSource,
        variables: Sequence[Variable],
        rows: Sequence[Sequence[str]],
        template_name: Optional[str] = None,
    ) -> BatchResult:
        """Render every row and package the results.

        Args:
            template_bytes: Template PDF.
            variables: Variables in declaration order.
            rows: Cell values per row; blank rows are ignored.
            template_name: Template file name, used to name the archive.

        Returns:
            BatchResult with the archive and per-row outcomes.

        Raises:
            PackagingError: If the archive cannot be written.
        """
        data_rows = [list(row) for row in rows if any(cell.strip() for cell in row)]
        total = len(data_rows)
        results: list[Union[GeneratedFile, RowFailure, None]] = [None] * total
        done = 0

        async def run(position: int) -> None:
            nonlocal done
            results[position] = await self._render_row(
                template_bytes, variables, position + 1, data_rows[position]
            )
            done += 1
            self._notify("render", done, total)

        workers = max(1, int(self._config.max_workers))
        if workers == 1:
            for position in range(total):
                await run(position)
        else:
            semaphore = asyncio.Semaphore(workers)

            async def bounded(position: int) -> None:
                async with semaphore:
                    await run(position)

            await asyncio.gather(*(bounded(position) for position in range(total)))

        files = [item for item in results if isinstance(item, GeneratedFile)]
        failures = [item for item in results if isinstance(item, RowFailure)]

        taken: set[str] = set()
        for generated in files:
            generated.filename = unique_filename(generated.filename, taken)

        name = archive_name(template_name)
        archive = self._package(files)
        self._notify("package", 1, 1, name)

        if failures:
            logger.warning("Generated %d of %d rows; %d failed", len(files), total, len(failures))
        return BatchResult(archive_bytes=archive, archive_name=name, files=files, failures=failures)

    async def _render_row(
        self,
        template_bytes: TemplateSource,
        variables: Sequence[Variable],
        row_index: int,
        row: list[str],
    ) -> Union[GeneratedFile, RowFailure]:
        substitutions = build_substitutions(variables, row)
        try:
            result = await self._renderer.render(template_bytes, substitutions)
        except Exception as exc:
            error = RowRenderError(f"Row {row_index} failed to render", row_index, cause=exc)
            logger.error("%s", error)
            return RowFailure(row_index=row_index, error=error)

        for outcome in result.skipped:
            logger.warning(
                "Row %d: variable %s skipped (%s)",
                row_index,
                outcome.key,
                outcome.skip_reason.value if outcome.skip_reason else "unknown",
            )
        filename = format_filename(self._config.filename_pattern, row_index, row)
        return GeneratedFile(
            row_index=row_index,
            filename=filename,
            pdf_bytes=result.pdf_bytes,
            skipped=result.skipped,
        )

    def _package(self, files: list[GeneratedFile]) -> bytes:
        buffer = BytesIO()
        try:
            with zipfile.ZipFile(
                buffer,
                "w",
                compression=zipfile.ZIP_DEFLATED,
                compresslevel=self._config.compression_level,
            ) as archive:
                for generated in files:
                    archive.writestr(generated.filename, generated.pdf_bytes)
        except (OSError, ValueError, zipfile.LargeZipFile) as exc:
            raise PackagingError("Failed to write archive", cause=exc) from exc
        return buffer.getvalue()

    def _notify(self, stage: str, current: int, total: int, message: str = "") -> None:
        if self._progress_callback is None:
            return
        self._progress_callback(stage, current, total, message)
