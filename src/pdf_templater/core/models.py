# SPDX-License-Identifier: Apache-2.0
"""Data models for template variables and rendered text.

Coordinates are in PDF user space (points, origin at the bottom-left of
page 1) unless stated otherwise.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field, replace
from enum import Enum
from pathlib import Path
from typing import Any, Optional, Union

SCHEMA_VERSION = "1.0.0"

DEFAULT_FONT = "Helvetica"
DEFAULT_FONT_SIZE = 24.0


class Alignment(str, Enum):
    """Horizontal alignment of text against its anchor x."""

    LEFT = "left"
    CENTER = "center"
    RIGHT = "right"


class SkipReason(str, Enum):
    """Why a substitution was left out of a rendered document."""

    OUT_OF_BOUNDS = "out_of_bounds"
    EMPTY_TEXT = "empty_text"
    INVALID_SIZE = "invalid_size"
    DRAW_FAILED = "draw_failed"


@dataclass(frozen=True)
class Color:
    """RGB color value.

    Attributes:
        r: Red component (0-1)
        g: Green component (0-1)
        b: Blue component (0-1)
    """

    r: float = 0.0
    g: float = 0.0
    b: float = 0.0

    def __post_init__(self) -> None:
        for name, value in (("r", self.r), ("g", self.g), ("b", self.b)):
            if not 0.0 <= value <= 1.0:
                raise ValueError(f"Color channel {name} out of range: {value}")

    @classmethod
    def from_hex(cls, value: str) -> Color:
        """Create from a ``#rrggbb`` string."""
        text = value.strip().lstrip("#")
        if len(text) == 3:
            text = "".join(ch * 2 for ch in text)
        if len(text) != 6:
            raise ValueError(f"Invalid hex color: {value!r}")
        try:
            r, g, b = (int(text[i : i + 2], 16) for i in (0, 2, 4))
        except ValueError:
            raise ValueError(f"Invalid hex color: {value!r}") from None
        return cls(r / 255, g / 255, b / 255)

    def to_hex(self) -> str:
        """Return the ``#rrggbb`` representation."""
        return "#" + "".join(f"{channel:02x}" for channel in self.to_rgb255())

    def to_rgb255(self) -> tuple[int, int, int]:
        """Return channels scaled to 0-255."""
        return (
            round(self.r * 255),
            round(self.g * 255),
            round(self.b * 255),
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {"r": self.r, "g": self.g, "b": self.b}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Color:
        """Create from dictionary."""
        return cls(
            r=float(data.get("r", 0.0)),
            g=float(data.get("g", 0.0)),
            b=float(data.get("b", 0.0)),
        )


BLACK = Color(0.0, 0.0, 0.0)


@dataclass(frozen=True)
class DrawnBox:
    """Bounding box actually occupied by rendered text.

    Attributes:
        x: Left X coordinate
        y: Baseline Y coordinate (the anchor y)
        w: Text width
        h: Text height at the effective font size
    """

    x: float
    y: float
    w: float
    h: float

    @property
    def right(self) -> float:
        """Right X coordinate."""
        return self.x + self.w

    @property
    def top(self) -> float:
        """Top Y coordinate."""
        return self.y + self.h

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {"x": self.x, "y": self.y, "w": self.w, "h": self.h}


@dataclass(frozen=True)
class Variable:
    """A named, positioned text placeholder on the template.

    Attributes:
        key: Stable identity, unique within a template
        x: Anchor X in PDF space (0 means unplaced)
        y: Anchor Y (baseline) in PDF space (0 means unplaced)
        w: Explicit box width from a resize, if any
        h: Explicit box height from a resize, if any
        font: Font name, resolved through the font catalog
        size: Font size in points (ignored when ``contain`` applies)
        contain: Fit the font size to the box instead of using ``size``
        alignment: Horizontal alignment against ``x``
        color: Text color
    """

    key: str
    x: float = 0.0
    y: float = 0.0
    w: Optional[float] = None
    h: Optional[float] = None
    font: str = DEFAULT_FONT
    size: float = DEFAULT_FONT_SIZE
    contain: bool = False
    alignment: Alignment = Alignment.LEFT
    color: Color = BLACK

    @property
    def has_box(self) -> bool:
        """Whether an explicit box with positive dimensions exists."""
        return bool(self.w and self.h and self.w > 0 and self.h > 0)

    @property
    def fits_to_box(self) -> bool:
        """Whether the font size is derived from the box."""
        return self.contain and self.has_box

    @property
    def is_active(self) -> bool:
        """Whether this variable takes part in rendering."""
        has_size = self.fits_to_box or self.size > 0
        return bool(self.x) and bool(self.y) and has_size

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        result: dict[str, Any] = {
            "key": self.key,
            "x": self.x,
            "y": self.y,
            "font": self.font,
            "size": self.size,
            "contain": self.contain,
            "alignment": self.alignment.value,
            "color": self.color.to_dict(),
        }
        if self.w is not None:
            result["w"] = self.w
        if self.h is not None:
            result["h"] = self.h
        return result

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Variable:
        """Create from dictionary.

        Raises:
            ValueError: If the entry is not an object, has no key, or holds
                a malformed field.
        """
        if not isinstance(data, dict):
            raise ValueError(f"Variable entry must be an object: {data!r}")
        if data.get("key") in (None, ""):
            raise ValueError(f"Variable entry has no key: {data!r}")
        try:
            return cls._from_valid_dict(data)
        except TypeError as exc:
            raise ValueError(f"Malformed variable entry: {data!r}") from exc

    @classmethod
    def _from_valid_dict(cls, data: dict[str, Any]) -> Variable:
        color = data.get("color")
        if isinstance(color, str):
            parsed_color = Color.from_hex(color)
        elif isinstance(color, dict):
            parsed_color = Color.from_dict(color)
        else:
            parsed_color = BLACK
        w = data.get("w")
        h = data.get("h")
        return cls(
            key=str(data["key"]),
            x=float(data.get("x") or 0.0),
            y=float(data.get("y") or 0.0),
            w=float(w) if w is not None else None,
            h=float(h) if h is not None else None,
            font=data.get("font") or DEFAULT_FONT,
            size=float(data.get("size", DEFAULT_FONT_SIZE) or 0.0),
            contain=bool(data.get("contain", False)),
            alignment=Alignment(data.get("alignment", Alignment.LEFT.value)),
            color=parsed_color,
        )


@dataclass(frozen=True)
class TextSubstitution:
    """A variable paired with the concrete text to draw for it."""

    variable: Variable
    text: str

    @property
    def key(self) -> str:
        """Identity key of the underlying variable."""
        return self.variable.key


@dataclass(frozen=True)
class DrawOutcome:
    """Result of drawing one substitution.

    Exactly one of ``box`` and ``skip_reason`` is set.
    """

    key: str
    box: Optional[DrawnBox] = None
    skip_reason: Optional[SkipReason] = None
    font_size: Optional[float] = None

    @property
    def drawn(self) -> bool:
        """Whether the text was committed to the page."""
        return self.box is not None


@dataclass
class VariableFile:
    """On-disk collection of variables for one template."""

    variables: list[Variable] = field(default_factory=list)
    template: Optional[str] = None

    def to_json(self, indent: int = 2) -> str:
        """Export to JSON string."""
        data: dict[str, Any] = {
            "version": SCHEMA_VERSION,
            "variables": [variable.to_dict() for variable in self.variables],
        }
        if self.template is not None:
            data["template"] = self.template
        return json.dumps(data, indent=indent, ensure_ascii=False)

    @classmethod
    def from_json(cls, json_str: str) -> VariableFile:
        """Create from JSON string.

        Accepts either the versioned object format or a bare list of
        variable dictionaries.

        Raises:
            ValueError: If version is unsupported or an entry is malformed
        """
        data = json.loads(json_str)
        if isinstance(data, list):
            return cls(variables=[Variable.from_dict(item) for item in data])
        if not isinstance(data, dict):
            raise ValueError("Variables file must hold an object or a list")
        version = data.get("version", SCHEMA_VERSION)
        if version != SCHEMA_VERSION:
            raise ValueError(
                f"Unsupported schema version: {version} (expected {SCHEMA_VERSION})"
            )
        entries = data.get("variables", [])
        if not isinstance(entries, list):
            raise ValueError("\"variables\" must be a list")
        return cls(
            variables=[Variable.from_dict(item) for item in entries],
            template=data.get("template"),
        )


def load_variables(path: Union[Path, str]) -> list[Variable]:
    """Load variables from a JSON file."""
    return VariableFile.from_json(Path(path).read_text(encoding="utf-8")).variables


def dump_variables(variables: list[Variable], path: Union[Path, str]) -> None:
    """Write variables to a JSON file."""
    output = Path(path)
    output.parent.mkdir(parents=True, exist_ok=True)
    output.write_text(VariableFile(variables=list(variables)).to_json(), encoding="utf-8")


def with_position(variable: Variable, x: float, y: float) -> Variable:
    """Return a copy of ``variable`` anchored at ``(x, y)``."""
    return replace(variable, x=float(x), y=float(y))
