# SPDX-License-Identifier: Apache-2.0
"""Parse pasted spreadsheet data into rows of cells.

Rows are separated by newlines and cells by tabs, which is what spreadsheet
applications put on the clipboard.
"""

from __future__ import annotations

from pathlib import Path
from typing import Union


def parse_rows(text: str) -> list[list[str]]:
    """Split tab-separated text into trimmed rows.

    Blank lines are dropped. Empty cells are kept so that column positions
    still line up with variable positions.

    Example:
        >>> parse_rows("Ada Lovelace\\tMath\\n\\nAlan Turing\\tCS\\n")
        [['Ada Lovelace', 'Math'], ['Alan Turing', 'CS']]
    """
    rows: list[list[str]] = []
    for line in text.splitlines():
        if not line.strip():
            continue
        rows.append([cell.strip() for cell in line.split("\t")])
    return rows


def read_rows(path: Union[Path, str]) -> list[list[str]]:
    """Read and parse a UTF-8 tab-separated file."""
    return parse_rows(Path(path).read_text(encoding="utf-8-sig"))
