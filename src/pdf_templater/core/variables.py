# SPDX-License-Identifier: Apache-2.0
"""Variable lifecycle: creation, keyed field updates and removal."""

from __future__ import annotations

import logging
import math
import uuid
from collections.abc import Iterator, Sequence
from dataclasses import replace
from typing import Any, Callable, Optional

from .models import Alignment, Color, Variable

logger = logging.getLogger(__name__)


class VariableUpdateError(ValueError):
    """Invalid field name or value in a variable update."""


def new_variable(**overrides: Any) -> Variable:
    """Create a variable with a fresh random key and default settings."""
    overrides.pop("key", None)
    return Variable(key=uuid.uuid4().hex, **overrides)


def _as_float(value: Any) -> float:
    """Parse numeric form input; anything non-numeric becomes 0."""
    if isinstance(value, bool):
        return 0.0
    try:
        number = float(value)
    except (TypeError, ValueError):
        return 0.0
    if math.isnan(number) or math.isinf(number):
        return 0.0
    return number


def _coerce_position(value: Any) -> float:
    return _as_float(value)


def _coerce_dimension(value: Any) -> Optional[float]:
    if value is None:
        return None
    number = _as_float(value)
    if number <= 0:
        return None
    return number


def _coerce_size(value: Any) -> float:
    number = _as_float(value)
    if number < 0:
        raise VariableUpdateError(f"Font size must not be negative: {value!r}")
    return number


def _coerce_font(value: Any) -> str:
    if not isinstance(value, str) or not value.strip():
        raise VariableUpdateError(f"Font name must be a non-empty string: {value!r}")
    return value.strip()


def _coerce_contain(value: Any) -> bool:
    if not isinstance(value, bool):
        raise VariableUpdateError(f"contain must be a boolean: {value!r}")
    return value


def _coerce_alignment(value: Any) -> Alignment:
    try:
        return Alignment(value)
    except ValueError:
        raise VariableUpdateError(f"Unknown alignment: {value!r}") from None


def _coerce_color(value: Any) -> Color:
    if isinstance(value, Color):
        return value
    try:
        if isinstance(value, str):
            return Color.from_hex(value)
        if isinstance(value, dict):
            return Color.from_dict(value)
        if isinstance(value, Sequence) and len(value) == 3:
            r, g, b = (float(channel) for channel in value)
            return Color(r, g, b)
    except (TypeError, ValueError) as exc:
        raise VariableUpdateError(f"Invalid color: {value!r}") from exc
    raise VariableUpdateError(f"Invalid color: {value!r}")


FIELD_COERCERS: dict[str, Callable[[Any], Any]] = {
    "x": _coerce_position,
    "y": _coerce_position,
    "w": _coerce_dimension,
    "h": _coerce_dimension,
    "font": _coerce_font,
    "size": _coerce_size,
    "contain": _coerce_contain,
    "alignment": _coerce_alignment,
    "color": _coerce_color,
}


def update_variable(variable: Variable, field_name: str, value: Any) -> Variable:
    """Return a copy of ``variable`` with one field replaced.

    Args:
        variable: Variable to update.
        field_name: Name of the field to change (``key`` is immutable).
        value: New value, validated and coerced for the field.

    Returns:
        Updated variable.

    Raises:
        VariableUpdateError: If the field is unknown or the value invalid.
    """
    coercer = FIELD_COERCERS.get(field_name)
    if coercer is None:
        raise VariableUpdateError(f"Field cannot be updated: {field_name!r}")
    return replace(variable, **{field_name: coercer(value)})


class VariableSet:
    """Ordered, keyed collection of variables for one template.

    Declaration order matters: column ``i`` of the tabular data binds to the
    ``i``-th variable.
    """

    def __init__(self, variables: Optional[Sequence[Variable]] = None) -> None:
        self._variables: list[Variable] = []
        self._placing: Optional[str] = None
        for variable in variables or ():
            self.add(variable)

    def __iter__(self) -> Iterator[Variable]:
        return iter(list(self._variables))

    def __len__(self) -> int:
        return len(self._variables)

    def __contains__(self, key: object) -> bool:
        return any(variable.key == key for variable in self._variables)

    @property
    def placing(self) -> Optional[str]:
        """Key of the variable currently being placed, if any."""
        return self._placing

    def start_placing(self, key: str) -> None:
        """Select a variable for placement by the next click."""
        self._index(key)
        self._placing = key

    def cancel_placing(self) -> None:
        """Clear the placement selection."""
        self._placing = None

    def add(self, variable: Optional[Variable] = None) -> Variable:
        """Append a variable (a fresh default one when omitted)."""
        if variable is None:
            variable = new_variable()
        if variable.key in self:
            raise VariableUpdateError(f"Duplicate variable key: {variable.key}")
        self._variables.append(variable)
        return variable

    def get(self, key: str) -> Variable:
        """Return the variable with ``key``.

        Raises:
            KeyError: If no such variable exists.
        """
        return self._variables[self._index(key)]

    def update(self, key: str, field_name: str, value: Any) -> Variable:
        """Apply a single field update to the variable with ``key``."""
        index = self._index(key)
        updated = update_variable(self._variables[index], field_name, value)
        self._variables[index] = updated
        return updated

    def remove(self, key: str) -> Variable:
        """Remove a variable and clear any placement selection on it."""
        index = self._index(key)
        removed = self._variables.pop(index)
        if self._placing == key:
            self._placing = None
        return removed

    def place(self, x: float, y: float, key: Optional[str] = None) -> Optional[Variable]:
        """Anchor a variable at a document-space point.

        Uses the current placement selection when ``key`` is omitted and
        ends the selection afterwards.

        Returns:
            The placed variable, or None if nothing was being placed.
        """
        target = key or self._placing
        if target is None:
            return None
        index = self._index(target)
        placed = replace(self._variables[index], x=float(x), y=float(y))
        self._variables[index] = placed
        if self._placing == target:
            self._placing = None
        logger.debug("Placed variable %s at (%.2f, %.2f)", target, x, y)
        return placed

    def apply_move(self, key: str, x: float, y: float, w: float, h: float) -> Variable:
        """Apply the result of an overlay move or resize."""
        index = self._index(key)
        variable = self._variables[index]
        moved = replace(
            variable,
            x=float(x),
            y=float(y),
            w=_coerce_dimension(w),
            h=_coerce_dimension(h),
        )
        self._variables[index] = moved
        return moved

    def active(self) -> list[Variable]:
        """Variables that take part in rendering, in declaration order."""
        return [variable for variable in self._variables if variable.is_active]

    def to_list(self) -> list[Variable]:
        """Snapshot of all variables in declaration order."""
        return list(self._variables)

    def _index(self, key: str) -> int:
        for index, variable in enumerate(self._variables):
            if variable.key == key:
                return index
        raise KeyError(key)
