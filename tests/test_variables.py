# SPDX-License-Identifier: Apache-2.0
"""Tests for variable lifecycle operations."""

from __future__ import annotations

import math
from typing import Any

import pytest

from pdf_templater.core.models import DEFAULT_FONT, DEFAULT_FONT_SIZE, Alignment, Color, Variable
from pdf_templater.core.variables import (
    VariableSet,
    VariableUpdateError,
    new_variable,
    update_variable,
)


class TestNewVariable:
    """Tests for new_variable()."""

    def test_defaults(self) -> None:
        variable = new_variable()
        assert variable.font == DEFAULT_FONT
        assert variable.size == DEFAULT_FONT_SIZE
        assert variable.alignment == Alignment.LEFT
        assert variable.color == Color(0, 0, 0)
        assert variable.contain is False
        assert not variable.is_active

    def test_keys_are_unique(self) -> None:
        keys = {new_variable().key for _ in range(50)}
        assert len(keys) == 50

    def test_key_override_is_ignored(self) -> None:
        assert new_variable(key="fixed").key != "fixed"


class TestUpdateVariable:
    """Tests for update_variable()."""

    @pytest.fixture
    def variable(self) -> Variable:
        return Variable(key="v", x=100.0, y=100.0)

    @pytest.mark.parametrize("value", ["abc", None, math.nan, math.inf, True])
    def test_non_numeric_position_becomes_zero(self, variable: Variable, value: Any) -> None:
        assert update_variable(variable, "x", value).x == 0.0

    def test_numeric_string_position(self, variable: Variable) -> None:
        assert update_variable(variable, "y", "250.5").y == 250.5

    @pytest.mark.parametrize("value", [0, -5, None, "nope"])
    def test_non_positive_dimension_clears_box(self, variable: Variable, value: Any) -> None:
        assert update_variable(variable, "w", value).w is None

    def test_negative_size_rejected(self, variable: Variable) -> None:
        with pytest.raises(VariableUpdateError):
            update_variable(variable, "size", -1)

    def test_zero_size_deactivates(self, variable: Variable) -> None:
        updated = update_variable(variable, "size", 0)
        assert updated.size == 0.0
        assert not updated.is_active

    def test_alignment_from_string(self, variable: Variable) -> None:
        assert update_variable(variable, "alignment", "center").alignment == Alignment.CENTER

    def test_unknown_alignment(self, variable: Variable) -> None:
        with pytest.raises(VariableUpdateError):
            update_variable(variable, "alignment", "justify")

    @pytest.mark.parametrize(
        "value",
        ["#ff0000", {"r": 1.0, "g": 0.0, "b": 0.0}, (1.0, 0.0, 0.0), Color(1.0, 0.0, 0.0)],
    )
    def test_color_forms(self, variable: Variable, value: Any) -> None:
        assert update_variable(variable, "color", value).color == Color(1.0, 0.0, 0.0)

    @pytest.mark.parametrize("value", ["#12", (2.0, 0.0, 0.0), 42])
    def test_invalid_color(self, variable: Variable, value: Any) -> None:
        with pytest.raises(VariableUpdateError):
            update_variable(variable, "color", value)

    def test_contain_must_be_bool(self, variable: Variable) -> None:
        with pytest.raises(VariableUpdateError):
            update_variable(variable, "contain", "yes")

    def test_font_must_be_non_empty(self, variable: Variable) -> None:
        with pytest.raises(VariableUpdateError):
            update_variable(variable, "font", "  ")

    @pytest.mark.parametrize("field_name", ["key", "nonsense"])
    def test_unknown_field(self, variable: Variable, field_name: str) -> None:
        with pytest.raises(VariableUpdateError):
            update_variable(variable, field_name, "x")

    def test_original_is_unchanged(self, variable: Variable) -> None:
        update_variable(variable, "x", 300)
        assert variable.x == 100.0


class TestVariableSet:
    """Tests for VariableSet."""

    def test_add_default(self) -> None:
        variables = VariableSet()
        added = variables.add()
        assert added.key in variables
        assert len(variables) == 1

    def test_duplicate_key(self) -> None:
        variables = VariableSet([Variable(key="a")])
        with pytest.raises(VariableUpdateError):
            variables.add(Variable(key="a"))

    def test_update_leaves_others_untouched(self) -> None:
        variables = VariableSet([Variable(key="a"), Variable(key="b", x=5.0)])
        variables.update("a", "x", 10)
        assert variables.get("a").x == 10.0
        assert variables.get("b").x == 5.0

    def test_update_unknown_key(self) -> None:
        with pytest.raises(KeyError):
            VariableSet().update("missing", "x", 1)

    def test_place_uses_selection(self) -> None:
        variables = VariableSet([Variable(key="a"), Variable(key="b")])
        variables.start_placing("b")

        placed = variables.place(120.0, 340.0)

        assert placed is not None
        assert placed.key == "b"
        assert (placed.x, placed.y) == (120.0, 340.0)
        assert variables.placing is None

    def test_place_without_selection(self) -> None:
        variables = VariableSet([Variable(key="a")])
        assert variables.place(1.0, 1.0) is None

    def test_remove_clears_selection(self) -> None:
        variables = VariableSet([Variable(key="a"), Variable(key="b")])
        variables.start_placing("a")
        variables.remove("a")
        assert variables.placing is None
        assert [v.key for v in variables] == ["b"]

    def test_apply_move(self) -> None:
        variables = VariableSet([Variable(key="a", x=10.0, y=10.0)])
        moved = variables.apply_move("a", 50.0, 60.0, 120.0, 0.0)
        assert (moved.x, moved.y, moved.w, moved.h) == (50.0, 60.0, 120.0, None)

    def test_active_preserves_order(self) -> None:
        variables = VariableSet(
            [
                Variable(key="a", x=10.0, y=10.0),
                Variable(key="b"),
                Variable(key="c", x=20.0, y=20.0),
                Variable(key="d", x=20.0, y=20.0, size=0.0),
                Variable(key="e", x=20.0, y=20.0, size=0.0, w=50.0, h=10.0, contain=True),
            ]
        )
        assert [v.key for v in variables.active()] == ["a", "c", "e"]
