"""Tests for the instruction set: construction checks and translation."""

from __future__ import annotations

import pytest

from nc_core.instructions import (
    Arc,
    CannedCycle,
    Comment,
    CycleDefinition,
    CyclePosition,
    Dwell,
    Linear,
    PositioningMode,
    ProgramStart,
    Rapid,
    ToolChange,
    translate,
)


class TestConstruction:
    def test_rapid_needs_an_axis(self) -> None:
        with pytest.raises(ValueError, match="at least one axis"):
            Rapid()

    def test_linear_extrude_only_is_valid(self) -> None:
        assert Linear(extrude=-2.0, feed=1800).extrude == -2.0

    def test_linear_rejects_unknown_compensation(self) -> None:
        with pytest.raises(ValueError, match="compensation"):
            Linear(x=1, compensation="middle")  # type: ignore[arg-type]

    def test_arc_needs_centre_offset(self) -> None:
        with pytest.raises(ValueError, match="non-zero"):
            Arc(x=1, y=0, i=0, j=0)

    def test_arc_radius(self) -> None:
        assert Arc(x=0, y=0, i=3, j=4).radius == pytest.approx(5)

    def test_negative_dwell(self) -> None:
        with pytest.raises(ValueError):
            Dwell(-1)

    def test_negative_tool(self) -> None:
        with pytest.raises(ValueError):
            ToolChange(-1)

    def test_work_offset_range(self) -> None:
        with pytest.raises(ValueError, match="54..59"):
            PositioningMode(True, 60)

    def test_not_a_fixed_cycle(self) -> None:
        with pytest.raises(ValueError, match="G80"):
            CannedCycle(80, z=-5, r=2, feed=100)

    def test_cycle_definition_needs_params(self) -> None:
        with pytest.raises(ValueError):
            CycleDefinition(200, "DRILLING", ())

    def test_program_number_range(self) -> None:
        with pytest.raises(ValueError, match="1..9999"):
            ProgramStart(0, "x")

    def test_instructions_are_immutable(self) -> None:
        r = Rapid(x=1)
        with pytest.raises(AttributeError):
            r.x = 2  # type: ignore[misc]

    def test_kind(self) -> None:
        assert Comment("x").kind == "Comment"


class TestTranslate:
    def test_shifts_set_axes_only(self) -> None:
        out = translate([Rapid(x=1, y=2), Rapid(z=5), Linear(x=3, z=-1)], 10, 20)
        assert out == [Rapid(x=11, y=22), Rapid(z=5), Linear(x=13, z=-1)]

    def test_arc_centre_offset_is_relative(self) -> None:
        (arc,) = translate([Arc(x=5, y=0, i=-5, j=0)], 10, 10)
        assert (arc.x, arc.y, arc.i, arc.j) == (15, 10, -5, 0)

    def test_cycle_position(self) -> None:
        assert translate([CyclePosition(1, 1)], 2, 3) == [CyclePosition(3, 4)]

    def test_other_instructions_untouched(self) -> None:
        ops = [Comment("A"), ToolChange(1)]
        assert translate(ops, 5, 5) == ops

    def test_zero_shift_returns_copy(self) -> None:
        ops = [Rapid(x=1)]
        out = translate(ops, 0, 0)
        assert out == ops
        assert out is not ops
