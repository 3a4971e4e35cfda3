"""Tests for the additive (printer) toolpath synthesizer.

Validates:
    - Layer count is ceil(height / layer_height) per shape family
    - Program frame: heat-up, home, prime, per-layer extruder reset, park
    - Shell and infill passes, pattern alternation and degenerate skips
    - Composite shapes through the default and bounding-box toolpaths
    - Identical inputs give identical text
"""

from __future__ import annotations

import logging

import pytest

from nc_core.configs.settings import Goals, ProcessSettings
from nc_core.errors import InvalidGeometryError, UnsupportedPrimitiveError
from nc_core.geometry.primitives import (
    Box,
    Circle,
    Composite,
    Cone,
    Cylinder,
    Polygon,
    Rectangle,
    Sphere,
)
from nc_core.toolpath.additive import (
    extrusion_per_mm,
    infill_spacing,
    radial_spoke_count,
    synthesize,
)
from nc_core.toolpath.slicing import layer_count, sphere_radius_at


@pytest.fixture()
def cube_program():
    return synthesize(Box(20, 20, 20))


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


class TestHelpers:
    def test_layer_count(self) -> None:
        assert layer_count(20, 0.2) == 100
        assert layer_count(20.1, 0.2) == 101
        assert layer_count(0, 0.2) == 0

    def test_sphere_radius(self) -> None:
        assert sphere_radius_at(10, 10) == pytest.approx(10)
        assert sphere_radius_at(10, 0) == 0
        assert sphere_radius_at(10, 20) == 0

    def test_extrusion_per_mm(self) -> None:
        # 0.4 x 0.2 bead from 1.75 mm filament
        assert extrusion_per_mm(ProcessSettings()) == pytest.approx(0.03326, rel=1e-3)

    def test_infill_spacing(self) -> None:
        s = ProcessSettings(infill_density=20)
        assert infill_spacing(s, 5.0) == pytest.approx(10.0)
        assert infill_spacing(s.with_updates(infill_density=0), 5.0) == float("inf")

    def test_spoke_count(self) -> None:
        assert radial_spoke_count(20) == 8
        assert radial_spoke_count(60) == 24


# ---------------------------------------------------------------------------
# Program frame
# ---------------------------------------------------------------------------


class TestFrame:
    def test_cube_layers(self, cube_program) -> None:
        assert cube_program.layer_count == 100
        assert cube_program.dialect.value == "marlin"

    def test_layers_follow_depth(self) -> None:
        assert synthesize(Box(width=50, height=50, depth=20)).layer_count == 100

    def test_layer_markers(self, cube_program) -> None:
        assert "; LAYER:0 Z:0.200" in cube_program.text
        assert "; LAYER:99 Z:20.000" in cube_program.text
        assert "LAYER:100" not in cube_program.text

    def test_extruder_reset_every_layer(self, cube_program) -> None:
        lines = cube_program.text.splitlines()
        # prime + one per layer + before the final retract
        assert lines.count("G92 E0") == 102

    def test_start_sequence(self, cube_program) -> None:
        lines = cube_program.text.splitlines()
        start = lines.index("M82")
        assert lines[start:start + 8] == [
            "M82", "G21", "G90", "M104 S200", "M140 S60", "M109 S200", "M190 S60", "G28",
        ]

    def test_end_sequence(self, cube_program) -> None:
        lines = cube_program.text.splitlines()
        assert lines[-3:] == ["M104 S0", "M140 S0", "M84"]
        assert "G1 E-2.00000 F1800" in lines

    def test_header_comments(self, cube_program) -> None:
        assert cube_program.text.startswith("; box toolpath\n")
        assert "; Dimensions: 20 x 20 x 20 mm" in cube_program.text

    def test_feeds_in_mm_per_min(self, cube_program) -> None:
        s = ProcessSettings()
        e = 20 * extrusion_per_mm(s)
        assert "G0 X-10.000 Y-10.000 F3000" in cube_program.text
        assert f"G1 X10.000 Y-10.000 E{e:.5f} F3600" in cube_program.text

    def test_idempotent(self) -> None:
        assert synthesize(Box(20, 20, 20)).text == synthesize(Box(20, 20, 20)).text

    def test_metrics(self, cube_program) -> None:
        m = cube_program.metrics
        assert m.time_minutes > 0
        assert m.filament_length > 0
        assert m.material_grams > 0


# ---------------------------------------------------------------------------
# Shells and infill
# ---------------------------------------------------------------------------


class TestPasses:
    def test_cube_passes(self, cube_program) -> None:
        first, second = cube_program.layers[:2]
        assert first.shell_passes == 2
        assert first.infill_passes == 1
        assert (first.pattern, second.pattern) == ("horizontal", "vertical")
        assert cube_program.skipped == ()

    def test_infill_off(self) -> None:
        prog = synthesize(Box(20, 20, 4), ProcessSettings(infill_density=0))
        assert all(layer.infill_passes == 0 for layer in prog.layers)
        assert {layer.pattern for layer in prog.layers} == {"none"}

    def test_grid(self) -> None:
        prog = synthesize(Box(20, 20, 1), ProcessSettings(infill_pattern="grid"))
        assert {layer.pattern for layer in prog.layers} == {"grid"}

    def test_concentric(self) -> None:
        prog = synthesize(Box(20, 20, 1), ProcessSettings(infill_pattern="concentric"))
        assert prog.layers[0].pattern == "concentric"
        assert prog.layers[0].infill_passes == 1

    def test_collapsed_shells_skipped(self) -> None:
        prog = synthesize(Box(1, 1, 1), ProcessSettings(shell_count=3))
        assert prog.layers[0].shell_passes == 2
        assert {s.pass_kind for s in prog.skipped} == {"shell", "infill"}
        assert all(s.value <= 0 for s in prog.skipped)

    def test_cylinder_uses_arcs(self) -> None:
        prog = synthesize(Cylinder(radius=10, height=2))
        assert prog.layer_count == 10
        assert "G2 X10.000 Y0.000 I-10.000 J0.000 E" in prog.text

    def test_sphere_alternates_radial(self) -> None:
        prog = synthesize(Sphere(radius=10))
        assert prog.layer_count == 100
        assert prog.layers[0].pattern == "horizontal"
        assert prog.layers[1].pattern == "radial"

    def test_sphere_apex_layer_empty(self) -> None:
        prog = synthesize(Sphere(radius=10))
        top = prog.layers[-1]
        assert (top.shell_passes, top.infill_passes, top.pattern) == (0, 0, "none")
        assert "; LAYER:99 Z:20.000 empty" in prog.text
        assert any(s.pass_kind == "layer" for s in prog.skipped)

    def test_sphere_small_layers_keep_shells_without_infill(self) -> None:
        prog = synthesize(Sphere(radius=2))
        # radius 0.87 at the first layer, below 3 extrusion widths
        base = prog.layers[0]
        assert (base.shell_passes, base.infill_passes, base.pattern) == (2, 0, "none")
        assert any(
            s.layer == 0 and s.pass_kind == "infill" and "threshold" in s.reason
            for s in prog.skipped
        )
        equator = prog.layers[9]
        assert equator.shell_passes == 2
        assert equator.infill_passes > 0

    def test_sub_resolution_shell_skipped(self) -> None:
        prog = synthesize(Cylinder(radius=0.4004, height=1))
        assert "I0.000 J0.000" not in prog.text
        assert all(layer.shell_passes == 1 for layer in prog.layers)
        tiny = [s for s in prog.skipped if s.pass_kind == "shell"]
        assert len(tiny) == prog.layer_count
        assert all(0 < s.value < 0.001 for s in tiny)

    def test_sub_resolution_ring_skipped(self) -> None:
        settings = ProcessSettings(infill_pattern="concentric")
        prog = synthesize(Cylinder(radius=6.8004, height=0.2), settings)
        assert prog.layers[0].infill_passes == 1
        assert "I0.000 J0.000" not in prog.text
        assert [s.reason for s in prog.skipped] == ["ring below output resolution"]

    def test_cone_narrows(self) -> None:
        prog = synthesize(Cone(radius=10, height=10))
        assert prog.layer_count == 50
        assert prog.layers[-1].pattern == "none"
        assert prog.layers[0].shell_passes == 2

    @pytest.mark.parametrize("shape", [Rectangle(20, 10), Circle(radius=5), Polygon(radius=8)])
    def test_flat_shapes_use_extrusion_height(self, shape) -> None:
        # 5 mm default flat height
        assert synthesize(shape).layer_count == 25


# ---------------------------------------------------------------------------
# Settings resolution
# ---------------------------------------------------------------------------


class TestResolution:
    def test_auto_tune_small_part(self) -> None:
        prog = synthesize(Box(20, 20, 20), goals=Goals(auto_tune=True))
        # under 30 mm: 0.1 mm layers
        assert prog.layer_count == 200

    def test_minimize_height_orientation(self) -> None:
        s = ProcessSettings(print_orientation="minimize_height")
        assert synthesize(Box(10, 40, 20), s).layer_count == 50


# ---------------------------------------------------------------------------
# Composites and failures
# ---------------------------------------------------------------------------


class TestComposite:
    def test_default_envelope(self) -> None:
        prog = synthesize(Composite(label="torus"))
        assert prog.layer_count == 50
        assert "; default toolpath for 'torus'" in prog.text

    def test_children_envelope(self) -> None:
        shape = Composite(label="pair", children=(Box(10, 10, 10), Cylinder(radius=8, height=4)))
        prog = synthesize(shape)
        assert prog.layer_count == 50
        assert "G0 X-8.000 Y-8.000 F3000" in prog.text

    def test_bounding_box_fallback(self, caplog: pytest.LogCaptureFixture) -> None:
        shape = Composite(label="assembly", width=30, height=30, depth=4, children=(Box(),))
        with caplog.at_level(logging.WARNING):
            prog = synthesize(shape)
        assert "degrading to bounding box" in caplog.text
        assert "; printing bounding-box outline only" in prog.text
        assert prog.layer_count == 20
        assert all(layer.shell_passes == 1 and layer.infill_passes == 0 for layer in prog.layers)


class TestFailures:
    def test_zero_dimension(self) -> None:
        with pytest.raises(InvalidGeometryError, match="width"):
            synthesize(Box(0, 10, 10))

    def test_polygon_sides(self) -> None:
        with pytest.raises(InvalidGeometryError, match="sides"):
            synthesize(Polygon(radius=10, sides=2))

    def test_not_a_primitive(self) -> None:
        with pytest.raises(UnsupportedPrimitiveError, match="not a primitive"):
            synthesize("box")
