# SPDX-License-Identifier: Apache-2.0
"""Output file naming for generated documents and archives."""

from __future__ import annotations

import re
import unicodedata
from collections.abc import Sequence
from pathlib import PurePath

DEFAULT_FILENAME_PATTERN = "{variable-1}.pdf"
DEFAULT_ARCHIVE_NAME = "files.zip"

_WHITESPACE_RE = re.compile(r"\s+")
_DISALLOWED_RE = re.compile(r"[^A-Za-z0-9_-]")
_VARIABLE_TOKEN_RE = re.compile(r"\{variable-(\d+)\}")


def slugify(value: str) -> str:
    """Reduce ``value`` to a filesystem-safe form.

    Diacritics are stripped, whitespace runs become a single ``-`` and
    anything outside ``A-Z a-z 0-9 _ -`` is dropped. Case is preserved.

    Example:
        >>> slugify("  José  Núñez ")
        'Jose-Nunez'
    """
    decomposed = unicodedata.normalize("NFD", value.strip())
    stripped = "".join(ch for ch in decomposed if not unicodedata.combining(ch))
    hyphenated = _WHITESPACE_RE.sub("-", stripped)
    return _DISALLOWED_RE.sub("", hyphenated)


def format_filename(pattern: str, index: int, row: Sequence[str]) -> str:
    """Build the output file name for one row.

    Args:
        pattern: Name pattern with ``{index}`` and ``{variable-N}`` tokens.
        index: 1-based row number.
        row: Cell values of the row; ``{variable-N}`` takes cell ``N``
            (1-based) after :func:`slugify`.

    Returns:
        File name ending in ``.pdf``. Falls back to ``<index>.pdf`` when the
        pattern produces nothing usable.
    """

    def _cell(match: re.Match[str]) -> str:
        position = int(match.group(1))
        if 1 <= position <= len(row):
            return slugify(row[position - 1])
        return ""

    name = (pattern or DEFAULT_FILENAME_PATTERN).replace("{index}", str(index))
    name = _VARIABLE_TOKEN_RE.sub(_cell, name)
    # Keep the result inside the archive root
    name = name.replace("/", "-").replace("\\", "-").strip()

    stem = name[:-4] if name.lower().endswith(".pdf") else name
    if not stem.strip(" .-_"):
        return f"{index}.pdf"
    return f"{stem}.pdf"


def unique_filename(name: str, taken: set[str]) -> str:
    """Return ``name`` or a ``-2``, ``-3``... variant not in ``taken``.

    The chosen name is added to ``taken``.
    """
    candidate = name
    if candidate in taken:
        stem, dot, suffix = name.rpartition(".")
        if not dot:
            stem, suffix = name, ""
        counter = 2
        while True:
            candidate = f"{stem}-{counter}.{suffix}" if suffix else f"{stem}-{counter}"
            if candidate not in taken:
                break
            counter += 1
    taken.add(candidate)
    return candidate


def archive_name(template_name: str | None) -> str:
    """Archive file name derived from the template's base name.

    Example:
        >>> archive_name("Certificado de Participación.pdf")
        'Certificado-de-Participacion.zip'
    """
    if not template_name:
        return DEFAULT_ARCHIVE_NAME
    stem = slugify(PurePath(template_name).stem)
    if not stem:
        return DEFAULT_ARCHIVE_NAME
    return f"{stem}.zip"
