# SPDX-License-Identifier: Apache-2.0
"""Font catalog and per-document font embedding.

Two caching layers exist:
- ``FontCatalog`` turns a font name into font data. Remote fonts are
  downloaded on first use and their bytes kept for the catalog's lifetime,
  shared by every render that uses the catalog.
- ``EmbeddedFonts`` turns font data into PDFium font handles for a single
  document. Handles are tied to that document and never shared.
"""

from __future__ import annotations

import asyncio
import ctypes
import io
import json
import logging
import struct
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional, Union

import aiohttp
import pypdfium2 as pdfium  # type: ignore[import-untyped]
from fontTools.ttLib import TTFont, TTLibError  # type: ignore[import-untyped]

from .errors import FontLoadError
from .helpers import to_byte_array
from .models import DEFAULT_FONT

logger = logging.getLogger(__name__)

# Builtin names -> PDF standard 14 base font names
STANDARD_FONTS: dict[str, str] = {
    "Courier": "Courier",
    "CourierBold": "Courier-Bold",
    "CourierBoldOblique": "Courier-BoldOblique",
    "CourierOblique": "Courier-Oblique",
    "Helvetica": "Helvetica",
    "HelveticaBold": "Helvetica-Bold",
    "HelveticaBoldOblique": "Helvetica-BoldOblique",
    "HelveticaOblique": "Helvetica-Oblique",
    "Symbol": "Symbol",
    "TimesRoman": "Times-Roman",
    "TimesRomanBold": "Times-Bold",
    "TimesRomanBoldItalic": "Times-BoldItalic",
    "TimesRomanItalic": "Times-Italic",
    "ZapfDingbats": "ZapfDingbats",
}


@dataclass(frozen=True)
class FontData:
    """Embeddable font: a standard font name or font file bytes.

    Attributes:
        name: Catalog name the data was resolved for.
        standard: Standard 14 base font name, for builtin fonts.
        data: TrueType/OpenType bytes, for catalog fonts.
    """

    name: str
    standard: Optional[str] = None
    data: Optional[bytes] = None

    @property
    def is_standard(self) -> bool:
        """Whether this is one of the standard 14 fonts."""
        return self.standard is not None


DEFAULT_FONT_DATA = FontData(name=DEFAULT_FONT, standard=STANDARD_FONTS[DEFAULT_FONT])


@dataclass
class FontCatalogConfig:
    """Font download settings."""

    timeout: float = 30.0
    user_agent: str = "pdf-templater"
    validate: bool = True


def read_family_name(data: bytes) -> Optional[str]:
    """Return the family name stored in a font file, if readable."""
    try:
        with TTFont(io.BytesIO(data), lazy=True) as font:
            name_table = font["name"]
            family = name_table.getBestFamilyName()
    except (TTLibError, KeyError, OSError, ValueError, AssertionError, struct.error):
        return None
    return str(family) if family else None


def validate_font_data(data: bytes) -> None:
    """Check that ``data`` parses as a TrueType/OpenType font.

    Raises:
        FontLoadError: If the data is not a usable font.
    """
    if not data:
        raise FontLoadError("Empty font data")
    try:
        with TTFont(io.BytesIO(data), lazy=True) as font:
            if "head" not in font or "cmap" not in font:
                raise FontLoadError("Font is missing required tables")
    except (TTLibError, OSError, ValueError, AssertionError, struct.error) as exc:
        raise FontLoadError(f"Unreadable font data: {exc}") from exc


class FontCatalog:
    """Resolves font names to embeddable font data.

    Builtin standard fonts resolve immediately. Other names are looked up
    in the catalog, whose values are URLs or local file paths; the bytes are
    fetched on first use and cached. Unknown names and failed fetches fall
    back to the default font with a warning; a failed fetch is not cached,
    so the next resolve tries again.

    Example:
        >>> async with FontCatalog({"Lobster": "https://.../Lobster.ttf"}) as fonts:
        ...     data = await fonts.resolve("Lobster")
    """

    def __init__(
        self,
        entries: Optional[Mapping[str, str]] = None,
        config: Optional[FontCatalogConfig] = None,
        session: Optional[aiohttp.ClientSession] = None,
    ) -> None:
        """Initialize FontCatalog.

        Args:
            entries: Font name -> URL or file path.
            config: Download settings.
            session: Shared aiohttp session; created lazily when omitted.
        """
        self._entries: dict[str, str] = dict(entries or {})
        self._config = config or FontCatalogConfig()
        self._session = session
        self._owns_session = session is None
        self._data: dict[str, bytes] = {}

    @classmethod
    def from_json(
        cls,
        path: Union[Path, str],
        config: Optional[FontCatalogConfig] = None,
    ) -> FontCatalog:
        """Load catalog entries from a JSON object of name -> source.

        Relative file paths are resolved against the JSON file's directory.
        """
        json_path = Path(path)
        raw = json.loads(json_path.read_text(encoding="utf-8"))
        if not isinstance(raw, dict):
            raise ValueError(f"Font catalog must be a JSON object: {json_path}")

        entries: dict[str, str] = {}
        for name, source in raw.items():
            source = str(source)
            if not _is_url(source) and not Path(source).is_absolute():
                source = str(json_path.parent / source)
            entries[str(name)] = source
        return cls(entries, config=config)

    async def __aenter__(self) -> FontCatalog:
        """Enter async context manager."""
        return self

    async def __aexit__(self, *args: Any) -> None:
        """Exit async context manager."""
        await self.aclose()

    async def aclose(self) -> None:
        """Close the HTTP session if this catalog created it."""
        if self._session is not None and self._owns_session:
            await self._session.close()
            self._session = None

    def names(self) -> list[str]:
        """All known font names, sorted case-insensitively."""
        return sorted(set(STANDARD_FONTS) | set(self._entries), key=str.casefold)

    def __contains__(self, name: object) -> bool:
        return name in STANDARD_FONTS or name in self._entries

    def add(self, name: str, source: str) -> None:
        """Register a font source (URL or path) under ``name``."""
        self._entries[name] = source
        self._data.pop(name, None)

    def add_bytes(self, data: bytes, name: Optional[str] = None) -> str:
        """Register already-loaded font bytes.

        Args:
            data: Font file contents.
            name: Catalog name; defaults to the font's family name.

        Returns:
            The name the font was registered under.

        Raises:
            FontLoadError: If the data is not a font or has no usable name.
        """
        validate_font_data(data)
        font_name = name or read_family_name(data)
        if not font_name:
            raise FontLoadError("Font has no family name; pass one explicitly")
        self._entries.setdefault(font_name, f"<memory:{font_name}>")
        self._data[font_name] = data
        return font_name

    def is_cached(self, name: str) -> bool:
        """Whether font bytes for ``name`` are already available."""
        return name in self._data

    async def resolve(self, name: Optional[str]) -> FontData:
        """Resolve ``name`` to font data, falling back to the default font.

        Never raises for unknown names or failed downloads.
        """
        if not name:
            return DEFAULT_FONT_DATA

        standard = STANDARD_FONTS.get(name)
        if standard is not None:
            return FontData(name=name, standard=standard)

        cached = self._data.get(name)
        if cached is not None:
            return FontData(name=name, data=cached)

        source = self._entries.get(name)
        if source is None:
            logger.warning("Unknown font %r, using %s", name, DEFAULT_FONT)
            return DEFAULT_FONT_DATA

        try:
            data = await self._fetch(source)
            if self._config.validate:
                validate_font_data(data)
        except (aiohttp.ClientError, asyncio.TimeoutError, OSError, FontLoadError) as exc:
            logger.warning("Failed to fetch font %r from %s: %s", name, source, exc)
            return DEFAULT_FONT_DATA

        # Concurrent resolves may both fetch; the first stored copy is kept
        self._data.setdefault(name, data)
        logger.debug("Cached font %r (%d bytes)", name, len(data))
        return FontData(name=name, data=self._data[name])

    async def _fetch(self, source: str) -> bytes:
        if _is_url(source):
            return await self._download(source)
        path = Path(source)
        return await asyncio.to_thread(path.read_bytes)

    async def _download(self, url: str) -> bytes:
        session = await self._ensure_session()
        timeout = aiohttp.ClientTimeout(total=self._config.timeout)
        headers = {"User-Agent": self._config.user_agent}
        async with session.get(url, timeout=timeout, headers=headers) as response:
            if response.status != 200:
                raise FontLoadError(f"HTTP {response.status}")
            return await response.read()

    async def _ensure_session(self) -> aiohttp.ClientSession:
        if self._session is None:
            self._session = aiohttp.ClientSession()
            self._owns_session = True
        return self._session


def _is_url(source: str) -> bool:
    return source.startswith(("http://", "https://"))


class EmbeddedFonts:
    """Font handles loaded into one PDFium document.

    Font buffers are kept alive until :meth:`clear`, which must not be
    called before the document has been saved.
    """

    def __init__(self, pdf: pdfium.PdfDocument) -> None:
        self._pdf = pdf
        self._handles: dict[str, Any] = {}
        self._buffers: dict[str, ctypes.Array[Any]] = {}

    def __len__(self) -> int:
        return len(self._handles)

    def load(self, font: FontData) -> Any:
        """Return a font handle for ``font``, embedding it on first use.

        Falls back to the default standard font if PDFium rejects the data.

        Raises:
            FontLoadError: If not even the default font can be loaded.
        """
        cached = self._handles.get(font.name)
        if cached is not None:
            return cached

        handle = self._load_standard(font.standard) if font.is_standard else self._load_data(font)
        if not handle:
            logger.warning("PDFium could not load font %r, using %s", font.name, DEFAULT_FONT)
            if font.name == DEFAULT_FONT_DATA.name:
                raise FontLoadError("Default font could not be loaded")
            handle = self.load(DEFAULT_FONT_DATA)

        self._handles[font.name] = handle
        return handle

    def _load_standard(self, base_name: Optional[str]) -> Any:
        if base_name is None:
            return None
        return pdfium.raw.FPDFText_LoadStandardFont(self._pdf.raw, base_name.encode("ascii"))

    def _load_data(self, font: FontData) -> Any:
        if not font.data:
            return None
        font_arr = to_byte_array(font.data)
        self._buffers[font.name] = font_arr
        return pdfium.raw.FPDFText_LoadFont(
            self._pdf.raw,
            font_arr,
            ctypes.c_uint(len(font.data)),
            ctypes.c_int(pdfium.raw.FPDF_FONT_TRUETYPE),
            ctypes.c_int(1),  # CID mode for full Unicode support
        )

    def clear(self) -> None:
        """Forget font handles and release their buffers."""
        self._handles.clear()
        self._buffers.clear()
