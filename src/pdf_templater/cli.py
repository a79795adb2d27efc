# SPDX-License-Identifier: Apache-2.0
"""
PDF Templater - CLI Tool

Fills text variables into a PDF template, either once with sample labels
(preview) or once per row of tab-separated data (generate).

Usage:
    pdf-templater generate <template.pdf> --variables vars.json --data rows.tsv
    pdf-templater preview <template.pdf> --variables vars.json
    pdf-templater fonts

Examples:
    pdf-templater generate cert.pdf -V vars.json -d names.tsv
    pdf-templater generate cert.pdf -V vars.json -d names.tsv -f "{index}-{variable-1}.pdf"
    pdf-templater preview cert.pdf -V vars.json --png preview.png
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import os
import sys
from pathlib import Path
from typing import NoReturn, Optional

from dotenv import load_dotenv

from pdf_templater.core.errors import TemplaterError
from pdf_templater.core.fonts import FontCatalog
from pdf_templater.core.models import load_variables
from pdf_templater.core.renderer import DocumentRenderer
from pdf_templater.pipeline.batch import BatchConfig, BatchPipeline
from pdf_templater.pipeline.filenames import DEFAULT_FILENAME_PATTERN
from pdf_templater.pipeline.preview import PreviewConfig, PreviewResult, PreviewSession
from pdf_templater.pipeline.tabular import read_rows

logger = logging.getLogger(__name__)

# Default output directory
DEFAULT_OUTPUT_DIR = "./output/"

# Environment variable naming a font catalog JSON file
FONT_CATALOG_ENV = "PDF_TEMPLATER_FONT_CATALOG"


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser."""
    parser = argparse.ArgumentParser(
        prog="pdf-templater",
        description="Fill text variables into a PDF template",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Filename pattern tokens:
  {index}        1-based row number
  {variable-N}   value of the N-th variable in the row (filesystem-safe)

Environment Variables:
  PDF_TEMPLATER_FONT_CATALOG   Font catalog JSON (name -> URL or path)
""",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable verbose output",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    common = argparse.ArgumentParser(add_help=False)
    common.add_argument(
        "--fonts",
        type=Path,
        help=f"Font catalog JSON file (or set {FONT_CATALOG_ENV})",
    )

    gen = subparsers.add_parser(
        "generate",
        parents=[common],
        help="Generate one PDF per data row into a ZIP archive",
    )
    gen.add_argument("template", type=Path, help="Template PDF")
    gen.add_argument(
        "-V",
        "--variables",
        type=Path,
        required=True,
        help="Variables JSON file",
    )
    gen.add_argument(
        "-d",
        "--data",
        type=Path,
        required=True,
        help="Tab-separated data, one row per output document",
    )
    gen.add_argument(
        "-f",
        "--filename",
        default=DEFAULT_FILENAME_PATTERN,
        help=f"Output file name pattern (default: {DEFAULT_FILENAME_PATTERN})",
    )
    gen.add_argument(
        "-o",
        "--output",
        type=Path,
        help=f"Archive path or directory (default: {DEFAULT_OUTPUT_DIR})",
    )
    gen.add_argument(
        "-w",
        "--workers",
        type=int,
        default=1,
        help="Rows rendered concurrently (default: 1)",
    )

    prev = subparsers.add_parser(
        "preview",
        parents=[common],
        help="Render sample labels for every placed variable",
    )
    prev.add_argument("template", type=Path, help="Template PDF")
    prev.add_argument(
        "-V",
        "--variables",
        type=Path,
        required=True,
        help="Variables JSON file",
    )
    prev.add_argument(
        "-o",
        "--output",
        type=Path,
        help="Preview PDF path (default: <output>/<template>_preview.pdf)",
    )
    prev.add_argument("--png", type=Path, help="Also write a PNG raster of page 1")
    prev.add_argument(
        "--scale",
        type=float,
        default=1.5,
        help="Raster scale for --png (default: 1.5)",
    )

    subparsers.add_parser("fonts", parents=[common], help="List available font names")
    return parser


def parse_args(argv: Optional[list[str]] = None) -> argparse.Namespace:
    """Parse command line arguments.

    Returns:
        Parsed argument Namespace.
    """
    return build_parser().parse_args(argv)


def create_font_catalog(args: argparse.Namespace) -> FontCatalog:
    """Create the font catalog from --fonts or the environment."""
    catalog_path = args.fonts
    if catalog_path is None:
        env_value = os.environ.get(FONT_CATALOG_ENV, "")
        catalog_path = Path(env_value) if env_value else None

    if catalog_path is None:
        return FontCatalog()
    if not catalog_path.exists():
        logger.warning("Font catalog not found: %s; using builtin fonts only", catalog_path)
        return FontCatalog()
    return FontCatalog.from_json(catalog_path)


def _check_template(path: Path) -> bool:
    if not path.exists():
        print(f"Error: File not found: {path}", file=sys.stderr)
        return False
    if path.suffix.lower() != ".pdf":
        print(f"Error: Not a PDF file: {path}", file=sys.stderr)
        return False
    return True


async def run_generate(args: argparse.Namespace) -> int:
    """Execute batch generation.

    Returns:
        Exit code (0: success, 1: failure).
    """
    template_path: Path = args.template
    if not _check_template(template_path):
        return 1
    for path in (args.variables, args.data):
        if not path.exists():
            print(f"Error: File not found: {path}", file=sys.stderr)
            return 1

    variables = load_variables(args.variables)
    rows = read_rows(args.data)
    output = args.output or Path(DEFAULT_OUTPUT_DIR)
    if args.output is None:
        output.mkdir(parents=True, exist_ok=True)

    print(f"Template: {template_path}")
    print(f"Variables: {len(variables)}")
    print(f"Rows: {len(rows)}")
    print()

    config = BatchConfig(filename_pattern=args.filename, max_workers=args.workers)
    async with create_font_catalog(args) as fonts:
        pipeline = BatchPipeline(DocumentRenderer(fonts), config)
        result = await pipeline.generate(
            template_path.read_bytes(),
            variables,
            rows,
            template_name=template_path.name,
        )

    archive_path = result.save(output)
    print(f"Complete: {archive_path}")
    print(f"  Generated: {len(result.files)}")
    if result.failures:
        print(f"  Failed: {len(result.failures)}")
        for failure in result.failures:
            print(f"    row {failure.row_index}: {failure.message}")
    if result.failures and not result.files:
        return 1
    return 0


async def run_preview(args: argparse.Namespace) -> int:
    """Render a preview with sample labels.

    Returns:
        Exit code (0: success, 1: failure).
    """
    template_path: Path = args.template
    if not _check_template(template_path):
        return 1
    if not args.variables.exists():
        print(f"Error: File not found: {args.variables}", file=sys.stderr)
        return 1

    output: Path = args.output or (
        Path(DEFAULT_OUTPUT_DIR) / f"{template_path.stem}_preview.pdf"
    )
    variables = load_variables(args.variables)
    config = PreviewConfig(delay=0.0, scale=args.scale, rasterize=args.png is not None)

    async with create_font_catalog(args) as fonts:
        session = PreviewSession(DocumentRenderer(fonts), on_result=lambda _: None, config=config)
        session.set_template(template_path.read_bytes())
        result: Optional[PreviewResult] = await session.render_now(variables)

    if result is None:
        message = session.last_error or "preview was not rendered"
        print(f"Error: Preview failed: {message}", file=sys.stderr)
        return 1

    output.parent.mkdir(parents=True, exist_ok=True)
    output.write_bytes(result.pdf_bytes)
    print(f"Preview: {output}")
    if args.png is not None and result.image is not None:
        args.png.parent.mkdir(parents=True, exist_ok=True)
        result.image.save(args.png, format="PNG")
        print(f"  Image: {args.png}")

    for variable in variables:
        box = result.drawn.get(variable.key)
        if box is None:
            print(f"  {variable.key}: not drawn")
        else:
            print(f"  {variable.key}: x={box.x:.1f} y={box.y:.1f} w={box.w:.1f} h={box.h:.1f}")
    return 0


def run_fonts(args: argparse.Namespace) -> int:
    """List font names."""
    for name in create_font_catalog(args).names():
        print(name)
    return 0


async def run(args: argparse.Namespace) -> int:
    """Dispatch the selected command.

    Returns:
        Exit code (0: success, 1: failure).
    """
    try:
        if args.command == "generate":
            return await run_generate(args)
        if args.command == "preview":
            return await run_preview(args)
        return run_fonts(args)
    except (TemplaterError, ValueError, OSError) as e:
        print(f"Error: {e}", file=sys.stderr)
        if args.verbose:
            import traceback

            traceback.print_exc()
        return 1


def main() -> NoReturn:
    """Main entry point."""
    load_dotenv()
    args = parse_args()

    # Configure logging
    log_level = logging.DEBUG if args.verbose else logging.WARNING
    logging.basicConfig(level=log_level, format="%(levelname)s: %(message)s")

    exit_code = asyncio.run(run(args))
    sys.exit(exit_code)


if __name__ == "__main__":
    main()
