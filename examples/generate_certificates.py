#!/usr/bin/env python3
# SPDX-License-Identifier: Apache-2.0
"""Certificate generation example.

Shows the library API end to end: place two variables on a template,
preview them, then generate one certificate per row into a ZIP archive.
Edit the settings below to try other options.

Usage:
    cd examples
    python generate_certificates.py

Environment variables (read from a .env file in the project root):
    PDF_TEMPLATER_FONT_CATALOG: Font catalog JSON (name -> URL or path)
"""

from __future__ import annotations

import asyncio
import os
import sys
from io import BytesIO
from pathlib import Path

import pypdfium2 as pdfium
from dotenv import load_dotenv

from pdf_templater.core import Alignment, Color, DocumentRenderer, FontCatalog, Variable
from pdf_templater.pipeline import (
    BatchConfig,
    BatchPipeline,
    PreviewConfig,
    PreviewSession,
    parse_rows,
)

PROJECT_ROOT = Path(__file__).parent.parent

load_dotenv(PROJECT_ROOT / ".env")


# =============================================================================
# Settings
# =============================================================================

# Template PDF; a blank landscape letter page is generated when missing
TEMPLATE_PDF = Path(__file__).parent / "certificate.pdf"

OUTPUT_DIR = Path(__file__).parent / "outputs"

# Output file names: {index} is the row number, {variable-N} the N-th cell
FILENAME_PATTERN = "{index}-{variable-1}.pdf"

# Rows rendered concurrently
MAX_WORKERS = 2

# Tab-separated rows, as pasted from a spreadsheet
ROWS = """\
Ada Lovelace\tAnalytical Engine Society
Alan Turing\tBletchley Park
José Núñez\tUniversidad de Sevilla
"""

VARIABLES = [
    Variable(key="name", x=396.0, y=330.0, size=36.0, alignment=Alignment.CENTER),
    Variable(
        key="org",
        x=296.0,
        y=260.0,
        w=200.0,
        h=24.0,
        contain=True,
        alignment=Alignment.CENTER,
        color=Color.from_hex("#335577"),
    ),
]


def blank_template() -> bytes:
    """Create a blank landscape US Letter page."""
    pdf = pdfium.PdfDocument.new()
    try:
        pdf.new_page(792, 612)
        buffer = BytesIO()
        pdf.save(buffer)
        return buffer.getvalue()
    finally:
        pdf.close()


def create_catalog() -> FontCatalog:
    """Font catalog from the environment, or builtin fonts only."""
    catalog_path = os.environ.get("PDF_TEMPLATER_FONT_CATALOG")
    if catalog_path and Path(catalog_path).exists():
        return FontCatalog.from_json(catalog_path)
    return FontCatalog()


async def main() -> None:
    """Run preview and batch generation."""
    template = TEMPLATE_PDF.read_bytes() if TEMPLATE_PDF.exists() else blank_template()
    OUTPUT_DIR.mkdir(parents=True, exist_ok=True)

    print("=" * 60)
    print("Certificate Generation Example")
    print("=" * 60)
    print(f"Template:  {TEMPLATE_PDF if TEMPLATE_PDF.exists() else '(blank page)'}")
    print(f"Output:    {OUTPUT_DIR}")
    print(f"Pattern:   {FILENAME_PATTERN}")
    print(f"Workers:   {MAX_WORKERS}")
    print("=" * 60)

    async with create_catalog() as fonts:
        renderer = DocumentRenderer(fonts)

        print("\nRendering preview...")
        session = PreviewSession(
            renderer,
            on_result=lambda result: None,
            config=PreviewConfig(delay=0.0, scale=1.0),
        )
        session.set_template(template)
        preview = await session.render_now(VARIABLES)
        if preview is None:
            print(f"Error: Preview failed: {session.last_error}")
            sys.exit(1)
        preview_path = OUTPUT_DIR / "preview.png"
        if preview.image is not None:
            preview.image.save(preview_path, format="PNG")
            print(f"Preview image: {preview_path}")

        print("\nGenerating certificates...")
        pipeline = BatchPipeline(
            renderer,
            BatchConfig(filename_pattern=FILENAME_PATTERN, max_workers=MAX_WORKERS),
        )
        result = await pipeline.generate(
            template, VARIABLES, parse_rows(ROWS), template_name="certificate.pdf"
        )

    archive_path = result.save(OUTPUT_DIR)

    print("\n" + "=" * 60)
    print("Generation Complete!")
    print("=" * 60)
    print(f"Generated: {result.stats['generated']}")
    print(f"Failed:    {result.stats['failed']}")
    for generated in result.files:
        print(f"  {generated.filename}")
    print(f"Archive:   {archive_path}")
    print(f"Size:      {archive_path.stat().st_size / 1024:.1f} KB")

    print("\nDone!")


if __name__ == "__main__":
    asyncio.run(main())
