"""Tests for the estimation model and program metrics.

Validates:
    - Closed-form time and material figures, floors and rounding
    - Support and objective adjustments go through settings resolution
    - Material density lookup with a warning fallback
    - Instruction-stream metrics: lines, arcs, dwells, fixed cycles, filament
"""

from __future__ import annotations

import logging
import math

import pytest

from nc_core.configs.settings import Goals, ProcessSettings
from nc_core.estimation.materials import DEFAULT_DENSITY, density_for
from nc_core.estimation.metrics import arc_length, measure
from nc_core.estimation.model import estimate, estimate_material, estimate_time
from nc_core.geometry.primitives import Box, Rectangle
from nc_core.instructions.operations import (
    Arc,
    CancelCycle,
    CannedCycle,
    CyclePosition,
    Dwell,
    Linear,
    Rapid,
    ResetExtruder,
)

BIG_BOX = Box(50, 50, 50)


# ---------------------------------------------------------------------------
# Closed-form model
# ---------------------------------------------------------------------------


class TestEstimateTime:
    def test_big_box(self) -> None:
        # (100000 / 3600 + 312500 / 5400) * 1.2
        assert estimate_time(BIG_BOX) == pytest.approx(102.8)

    def test_floor(self) -> None:
        assert estimate_time(Box(20, 20, 20)) == 10.0

    def test_flat_shape_has_no_layers(self) -> None:
        assert estimate_time(Rectangle(100, 100)) == 10.0

    def test_support_adds_time(self) -> None:
        full = ProcessSettings(support_type="full")
        assert estimate_time(BIG_BOX, full) > estimate_time(BIG_BOX)

    def test_speed_objective_is_faster(self) -> None:
        fast = estimate_time(BIG_BOX, goals=Goals(objective="speed"))
        assert fast < estimate_time(BIG_BOX)


class TestEstimateMaterial:
    def test_big_box(self) -> None:
        # shell 12000 + infill 0.2 * 113000, in cm^3, at 1.24 g/cm^3
        assert estimate_material(BIG_BOX) == pytest.approx(42.9)

    def test_floor(self) -> None:
        assert estimate_material(Box(5, 5, 5)) == 1.0

    def test_flat_part_has_no_volume(self) -> None:
        assert estimate_material(Box(width=100, height=40, depth=0)) == 1.0

    def test_scales_linearly_with_infill(self) -> None:
        cube = Box(width=50, height=50, depth=20)
        grams = [
            estimate_material(cube, ProcessSettings(infill_density=d)) for d in (20, 40, 60)
        ]
        # shell 7200 mm^3 plus density * 42800 mm^3
        assert grams == pytest.approx([19.5, 30.2, 40.8])
        assert grams[0] > 1.0
        assert grams[2] - grams[1] == pytest.approx(grams[1] - grams[0], rel=0.02)

    def test_density(self) -> None:
        steel = ProcessSettings(material="Steel")
        assert estimate_material(BIG_BOX, steel) == pytest.approx(271.6)

    def test_support_fraction(self) -> None:
        minimal = ProcessSettings(support_type="minimal")
        # adds 0.15 * 125000 mm^3 of support
        assert estimate_material(BIG_BOX, minimal) == pytest.approx(66.2)

    def test_combined(self) -> None:
        result = estimate(BIG_BOX)
        assert (result.time_minutes, result.material_grams) == (
            estimate_time(BIG_BOX), estimate_material(BIG_BOX),
        )


class TestMaterials:
    def test_known(self) -> None:
        assert density_for("PETG ") == 1.27

    def test_unknown_warns(self, caplog: pytest.LogCaptureFixture) -> None:
        with caplog.at_level(logging.WARNING):
            assert density_for("unobtainium") == DEFAULT_DENSITY
        assert "unobtainium" in caplog.text


# ---------------------------------------------------------------------------
# Instruction metrics
# ---------------------------------------------------------------------------


class TestMeasure:
    def test_linear_at_feed(self) -> None:
        m = measure([Linear(x=30, feed=600)])
        assert m.feed_length == pytest.approx(30)
        assert m.time_minutes == pytest.approx(0.05)

    def test_modal_feed(self) -> None:
        m = measure([Linear(x=10, feed=100), Linear(x=20)])
        assert m.time_minutes == pytest.approx(0.2)

    def test_rapid_rate(self) -> None:
        m = measure([Rapid(x=100)], rapid_feed=1000)
        assert m.travel_length == pytest.approx(100)
        assert m.time_minutes == pytest.approx(0.1)

    def test_rapid_with_own_feed(self) -> None:
        assert measure([Rapid(x=100, feed=500)]).time_minutes == pytest.approx(0.2)

    def test_dwell(self) -> None:
        assert measure([Dwell(30)]).time_minutes == pytest.approx(0.5)

    def test_full_circle(self) -> None:
        arc = Arc(x=10, y=0, i=-10, j=0, clockwise=False)
        assert arc_length((10.0, 0.0, 0.0), arc) == pytest.approx(2 * math.pi * 10)

    def test_quarter_arc(self) -> None:
        arc = Arc(x=0, y=10, i=-10, j=0, clockwise=False)
        assert arc_length((10.0, 0.0, 0.0), arc) == pytest.approx(math.pi * 5)
        cw = Arc(x=0, y=10, i=-10, j=0, clockwise=True)
        assert arc_length((10.0, 0.0, 0.0), cw) == pytest.approx(math.pi * 15)

    def test_helix(self) -> None:
        arc = Arc(x=10, y=0, i=-10, j=0, z=-2)
        assert arc_length((10.0, 0.0, 0.0), arc) == pytest.approx(math.hypot(20 * math.pi, 2))

    def test_fixed_cycle_per_hole(self) -> None:
        cycle = CannedCycle(81, z=-20, r=5, feed=100)
        one = measure([cycle], rapid_feed=5000).time_minutes
        # 25 mm plunge at feed and back at rapid
        assert one == pytest.approx(25 / 100 + 25 / 5000)
        two = measure([cycle, CyclePosition(0, 0), CancelCycle()], rapid_feed=5000)
        assert two.time_minutes == pytest.approx(2 * one)

    def test_position_after_cancel_is_travel_only(self) -> None:
        m = measure([CannedCycle(81, z=-20, r=5, feed=100), CancelCycle(), CyclePosition(0, 0)])
        assert m.feed_length == pytest.approx(25)

    def test_filament_across_resets(self) -> None:
        m = measure([
            Linear(x=10, extrude=1.0, feed=600),
            ResetExtruder(0.0),
            Linear(x=20, extrude=0.5),
        ])
        assert m.filament_length == pytest.approx(1.5)
        expected = 1.5 * math.pi * 0.875 ** 2 / 1000 * 1.24
        assert m.material_grams == pytest.approx(expected)

    def test_retract_only_move_takes_time(self) -> None:
        m = measure([Linear(extrude=-2.0, feed=1800)])
        assert m.time_minutes == pytest.approx(2 / 1800)

    def test_rapid_feed_positive(self) -> None:
        with pytest.raises(ValueError, match="rapid_feed"):
            measure([], rapid_feed=0)
