"""Tests for the cycle template library.

Validates:
    - Every registered cycle renders in both dialects with its defaults
    - Final depth appears in the program (Z word or Q201)
    - Multi-position layout (modal positions / M99 calls / repeated blocks)
    - Thread feeds derived from the pitch table
    - Parameter schema clamping and strict validation
    - Registry lookup and dialect filtering
"""

from __future__ import annotations

import logging
import math

import pytest

from nc_core.cycles import (
    COARSE_PITCH,
    DEFAULT_REGISTRY,
    CycleParameterSchema,
    CycleRegistry,
    generate,
    get_cycle,
    nominal_diameter,
    normalize_positions,
    pitch_for,
)
from nc_core.cycles.drilling import center_depth
from nc_core.cycles.milling import chamfer_depth, plunge_grid, slot_offsets
from nc_core.cycles.schema import checkbox, number, select
from nc_core.cycles.thread_cycles import helix_radius
from nc_core.dialects import Dialect
from nc_core.dialects import numbers as num
from nc_core.errors import (
    InvalidParameterError,
    UnknownCycleError,
    UnsupportedDialectError,
    UnsupportedThreadSizeError,
)
from nc_core.instructions import Arc, Comment, Linear

ALL_IDS = (
    "simple-drilling",
    "deep-drilling",
    "peck-drilling",
    "chip-breaking-drill",
    "center-drilling",
    "boring-cycle",
    "back-boring",
    "tapping-cycle",
    "thread-milling",
    "rectangular-pocket",
    "circular-pocket",
    "circular-island",
    "slot-milling",
    "t-slot-milling",
    "contour-milling",
    "chamfering-cycle",
    "plunge-milling",
)

THREE_HOLES = [(0, 0), (40, 0), (40, 30)]


def _lines(text: str) -> list[str]:
    return text.splitlines()


# ---------------------------------------------------------------------------
# Whole library
# ---------------------------------------------------------------------------


class TestLibrary:
    def test_registered_ids_in_order(self) -> None:
        assert DEFAULT_REGISTRY.ids() == ALL_IDS

    @pytest.mark.parametrize("cycle_id", ALL_IDS)
    @pytest.mark.parametrize("dialect", ["fanuc", "heidenhain"])
    def test_defaults_render(self, cycle_id: str, dialect: str) -> None:
        text = get_cycle(cycle_id).generate(None, dialect)
        assert text.strip()
        assert text.endswith("\n")

    @pytest.mark.parametrize("cycle_id", ALL_IDS)
    def test_final_depth_in_program(self, cycle_id: str) -> None:
        template = get_cycle(cycle_id)
        if template.depth_param is None:
            pytest.skip("cycle has no single final depth")
        params = template.schema.defaults()
        depth = params[template.depth_param]
        if cycle_id == "center-drilling":
            depth = center_depth(params)
        fanuc = template.generate(params, "fanuc")
        heidenhain = template.generate(params, "heidenhain")
        assert f"Z-{num.plain(depth)}" in fanuc
        assert (
            f"Q201=-{num.plain(depth, 4)}" in heidenhain
            or f"Z-{num.plain(depth)}" in heidenhain
        )

    @pytest.mark.parametrize("cycle_id", ALL_IDS)
    def test_fanuc_ends_spindle_stop(self, cycle_id: str) -> None:
        lines = _lines(get_cycle(cycle_id).generate(None, "fanuc"))
        assert lines[-1] == "M5"
        assert lines[-3] == "G00 Z50"

    @pytest.mark.parametrize("cycle_id", ALL_IDS)
    def test_heidenhain_ends_spindle_stop(self, cycle_id: str) -> None:
        lines = _lines(get_cycle(cycle_id).generate(None, "heidenhain"))
        assert lines[-2:] == ["L Z+50 R0 FMAX", "M5"]

    @pytest.mark.parametrize("cycle_id", ALL_IDS)
    def test_estimate_positive(self, cycle_id: str) -> None:
        assert get_cycle(cycle_id).estimate_time(None) > 0

    def test_marlin_not_supported(self) -> None:
        with pytest.raises(UnsupportedDialectError, match="marlin"):
            get_cycle("simple-drilling").generate(None, "marlin")

    def test_unknown_dialect(self) -> None:
        with pytest.raises(ValueError, match="Unknown dialect"):
            get_cycle("simple-drilling").generate(None, "siemens")

    def test_unknown_parameter(self) -> None:
        with pytest.raises(InvalidParameterError, match="bogus"):
            get_cycle("simple-drilling").generate({"bogus": 1}, "fanuc")


# ---------------------------------------------------------------------------
# Program framing and positions
# ---------------------------------------------------------------------------


class TestFraming:
    def test_fanuc_program_number(self) -> None:
        text = generate("simple-drilling", None, "fanuc", program_number=1001)
        assert text.startswith("%\nO1001 (SIMPLE_DRILLING)\n")
        assert text.endswith("M30\n%\n")

    def test_heidenhain_program_number(self) -> None:
        lines = _lines(generate("simple-drilling", None, "heidenhain", program_number=7))
        assert lines[0] == "BEGIN PGM SIMPLE_DRILLING MM"
        assert lines[-1] == "END PGM SIMPLE_DRILLING MM"

    def test_bare_block_without_program_number(self) -> None:
        text = generate("simple-drilling", None, "fanuc")
        assert text.startswith("(SIMPLE DRILLING CYCLE)")
        assert "M30" not in text

    def test_line_numbers(self) -> None:
        lines = _lines(generate("simple-drilling", None, "fanuc", line_numbers=True))
        assert lines[0].startswith("N10 ")
        assert lines[1].startswith("N20 ")


class TestPositions:
    def test_default_is_origin(self) -> None:
        assert normalize_positions("x", None) == ((0.0, 0.0),)
        assert normalize_positions("x", []) == ((0.0, 0.0),)

    def test_coerces_to_float(self) -> None:
        assert normalize_positions("x", [(1, "2")]) == ((1.0, 2.0),)

    @pytest.mark.parametrize("bad", [[(1, "a")], [(1, 2, 3)], [(float("nan"), 0)], [5]])
    def test_malformed(self, bad: list) -> None:
        with pytest.raises(InvalidParameterError, match="positions"):
            normalize_positions("simple-drilling", bad)

    def test_fanuc_fixed_cycle_positions(self) -> None:
        lines = _lines(generate("simple-drilling", None, "fanuc", THREE_HOLES))
        cycle_at = next(i for i, line in enumerate(lines) if "G81" in line)
        assert lines[cycle_at + 1:cycle_at + 4] == ["X40 Y0", "X40 Y30", "G80"]
        assert sum("G81" in line for line in lines) == 1

    def test_heidenhain_calls(self) -> None:
        text = generate("simple-drilling", None, "heidenhain", THREE_HOLES)
        assert text.count("CYCL DEF") == 1
        assert "L X+0 Y+0 R0 FMAX M3\nCYCL CALL" in text
        assert "L X+40 Y+0 R0 FMAX M99" in text
        assert "L X+40 Y+30 R0 FMAX M99" in text

    def test_unrolled_block_repeats(self) -> None:
        ops = get_cycle("rectangular-pocket").instructions(None, "fanuc", [(0, 0), (100, 0)])
        firsts = [o for o in ops if isinstance(o, Comment) and o.text.startswith("PASS 1 ")]
        assert len(firsts) == 2

    def test_more_holes_take_longer(self) -> None:
        t = get_cycle("peck-drilling")
        assert t.estimate_time(None, THREE_HOLES) > t.estimate_time(None)


# ---------------------------------------------------------------------------
# Drilling family
# ---------------------------------------------------------------------------


class TestDrilling:
    def test_simple_g81(self) -> None:
        assert "G99 G81 R5 Z-20 F100" in generate("simple-drilling", None, "fanuc")

    def test_simple_dwell_switches_to_g82(self) -> None:
        text = generate("simple-drilling", {"dwellTime": 0.5}, "fanuc")
        assert "G99 G82 R5 Z-20 P500 F100" in text

    def test_simple_heidenhain(self) -> None:
        text = generate("simple-drilling", None, "heidenhain")
        assert "CYCL DEF 200 DRILLING" in text
        assert "TOOL CALL 1 Z S1000" in text

    def test_fanuc_preamble(self) -> None:
        lines = _lines(generate("simple-drilling", None, "fanuc"))
        assert lines[2:7] == ["G90 G54", "G00 X0 Y0", "G43 Z50 H1", "S1000 M3", "M8"]

    def test_deep_chip_breaking(self) -> None:
        assert "G73 R5 Z-80 Q15 P500" in generate("deep-drilling", None, "fanuc")
        text = generate("deep-drilling", None, "heidenhain")
        assert "CYCL DEF 203 UNIVERSAL DRILLING" in text
        assert "Q213=5 " in text
        assert "Q208=99999" in text

    def test_deep_full_retract(self) -> None:
        assert "G83 R5 Z-80 Q15" in generate("deep-drilling", {"useChipBreaking": False}, "fanuc")
        text = generate("deep-drilling", {"useChipBreaking": False}, "heidenhain")
        assert "CYCL DEF 200 DRILLING" in text

    def test_peck(self) -> None:
        assert "G83 R5 Z-100 Q15 P200" in generate("peck-drilling", None, "fanuc")
        assert "CYCL DEF 205" in generate("peck-drilling", None, "heidenhain")

    def test_chip_breaking(self) -> None:
        assert "G73 R5 Z-50 Q5 F150" in generate("chip-breaking-drill", None, "fanuc")
        text = generate("chip-breaking-drill", {"returnType": "feed"}, "heidenhain")
        assert "Q208=150" in text
        assert "Q213=3 " in text

    def test_center_depth_capped(self) -> None:
        params = get_cycle("center-drilling").schema.defaults()
        assert center_depth(params) == pytest.approx(3)
        assert center_depth({**params, "chamferDiameter": 4}) == pytest.approx(2)

    def test_center_drilling_r_plane(self) -> None:
        assert "G81 R5 Z-3 F150" in generate("center-drilling", None, "fanuc")
        assert "CYCL DEF 240 CENTERING" in generate("center-drilling", None, "heidenhain")

    def test_boring(self) -> None:
        assert "G76 R5 Z-30 Q0.2 P500 F80" in generate("boring-cycle", None, "fanuc")
        assert "CYCL DEF 202 BORING" in generate("boring-cycle", None, "heidenhain")

    def test_back_boring_oriented_entry(self) -> None:
        text = generate("back-boring", None, "fanuc")
        assert text.count("M19") == 2
        # (28 - 20) / 2 + 0.5
        assert "G00 X-4.5 Y0" in text
        assert "G00 Z-35" in text
        assert "G01 Z-20 F100" in text
        assert "CYCL DEF 204 BACK BORING" in generate("back-boring", None, "heidenhain")


# ---------------------------------------------------------------------------
# Threading
# ---------------------------------------------------------------------------


class TestThreadTable:
    def test_pitch_table(self) -> None:
        assert COARSE_PITCH["M3"] == 0.5
        assert COARSE_PITCH["M24"] == 3.0

    def test_lookup_is_case_insensitive(self) -> None:
        assert pitch_for("m10") == 1.5

    def test_unknown_size(self) -> None:
        with pytest.raises(UnsupportedThreadSizeError, match="M7"):
            pitch_for("M7")

    def test_restricted_sizes(self) -> None:
        with pytest.raises(UnsupportedThreadSizeError):
            pitch_for("M20", ("M8", "M10"))

    def test_nominal_diameter(self) -> None:
        assert nominal_diameter("M16") == 16.0


class TestTapping:
    def test_rigid_feed_is_speed_times_pitch(self) -> None:
        text = generate("tapping-cycle", None, "fanuc")
        assert "M29 S500" in text
        # 500 rpm * 1.25 mm
        assert "G99 G84 R5 Z-20 F625" in text

    def test_floating_holder(self) -> None:
        text = generate("tapping-cycle", {"rigidTapping": False}, "fanuc")
        assert "M29" not in text
        assert "S500 M3" in text
        assert "G84 R5 Z-20 P100 F625" in text

    def test_heidenhain(self) -> None:
        text = generate("tapping-cycle", None, "heidenhain")
        assert "CYCL DEF 207 RIGID TAPPING NEW" in text
        assert "Q239=1.25" in text
        text = generate("tapping-cycle", {"rigidTapping": False}, "heidenhain")
        assert "CYCL DEF 206 TAPPING NEW" in text

    def test_size_outside_tapping_table(self) -> None:
        with pytest.raises(UnsupportedThreadSizeError):
            generate("tapping-cycle", {"threadSize": "M20"}, "fanuc")


class TestThreadMilling:
    def test_internal_helix(self) -> None:
        template = get_cycle("thread-milling")
        params = template.schema.defaults()
        assert helix_radius(params) == pytest.approx(4)
        arcs = [o for o in template.instructions(None, "fanuc") if isinstance(o, Arc)]
        # 20 mm at 2 mm pitch
        assert len(arcs) == 10
        assert all(not a.clockwise for a in arcs)
        assert arcs[-1].z == 0
        assert all(a.feed == 2400 for a in arcs)

    def test_external(self) -> None:
        params = {"threadType": "external"}
        defaults = get_cycle("thread-milling").schema.merged(params)
        assert helix_radius(defaults) == pytest.approx(8 - 1.2 + 4)
        assert "G02" in generate("thread-milling", params, "fanuc")
        assert "CYCL DEF 267" in generate("thread-milling", params, "heidenhain")

    def test_oversized_cutter_clamped(self) -> None:
        params = get_cycle("thread-milling").schema.merged({"threadSize": "M6", "toolDiameter": 8})
        assert helix_radius(params) == pytest.approx(0.1)

    @pytest.mark.parametrize("size, thread_depth, tool", [("M16", 10, 4), ("M6", 5, 1)])
    def test_deep_external_thread_keeps_helix(
        self, size: str, thread_depth: float, tool: float, caplog: pytest.LogCaptureFixture,
    ) -> None:
        params = {"threadSize": size, "threadDepth": thread_depth, "toolDiameter": tool,
                  "threadType": "external"}
        with caplog.at_level(logging.WARNING, logger="nc_core.cycles.thread_cycles"):
            ops = get_cycle("thread-milling").instructions(params, "fanuc")
        assert "radius limited" in caplog.text
        arcs = [o for o in ops if isinstance(o, Arc)]
        assert arcs
        assert all(a.radius == pytest.approx(0.1) and a.x == pytest.approx(0.1) for a in arcs)
        assert "I-0.1 J0" in generate("thread-milling", params, "fanuc")

    def test_heidenhain_internal(self) -> None:
        text = generate("thread-milling", None, "heidenhain")
        assert "CYCL DEF 262 THREAD MILLING" in text
        assert "Q335=16" in text


# ---------------------------------------------------------------------------
# Pockets
# ---------------------------------------------------------------------------


class TestPockets:
    def test_rectangular_passes(self) -> None:
        ops = get_cycle("rectangular-pocket").instructions(None, "fanuc")
        passes = [o for o in ops if isinstance(o, Comment) and o.text.startswith("PASS")]
        assert len(passes) == 3

    def test_rectangular_heidenhain(self) -> None:
        text = generate("rectangular-pocket", None, "heidenhain")
        assert "CYCL DEF 251 RECTANGULAR POCKET" in text
        assert "Q218=50" in text
        assert "Q219=80" in text
        assert "Q370=0.8" in text

    def test_rectangular_stays_inside_walls(self) -> None:
        ops = get_cycle("rectangular-pocket").instructions(None, "fanuc")
        xs = [o.x for o in ops if isinstance(o, Linear) and o.x is not None]
        # half width 25 minus tool radius 5 and allowance 0.2
        assert max(xs) == pytest.approx(19.8)
        assert min(xs) == pytest.approx(-19.8)

    def test_rectangular_corner_radius_blends_walls(self) -> None:
        ops = get_cycle("rectangular-pocket").instructions({"cornerRadius": 15}, "fanuc")
        arcs = [o for o in ops if isinstance(o, Arc)]
        # 15 minus tool radius 5 and allowance 0.2, four corners per pass
        assert len(arcs) == 12
        assert all(not a.clockwise and math.hypot(a.i, a.j) == pytest.approx(9.8) for a in arcs)
        hw, hh, rc = 19.8, 34.8, 9.8
        for o in ops:
            if isinstance(o, (Linear, Arc)) and o.x is not None and o.y is not None:
                dx = max(0.0, abs(o.x) - (hw - rc))
                dy = max(0.0, abs(o.y) - (hh - rc))
                assert math.hypot(dx, dy) <= rc + 1e-9
        text = generate("rectangular-pocket", {"cornerRadius": 15}, "fanuc")
        assert "G03 X19.8 Y-25 I0 J9.8" in text

    def test_rectangular_small_corner_radius_stays_square(self) -> None:
        ops = get_cycle("rectangular-pocket").instructions({"cornerRadius": 5}, "fanuc")
        assert not any(isinstance(o, Arc) for o in ops)

    def test_circular_helical_entry(self) -> None:
        ops = get_cycle("circular-pocket").instructions(None, "fanuc")
        helix = [o for o in ops if isinstance(o, Arc) and o.z is not None]
        assert [a.z for a in helix] == [-5, -10, -15]

    def test_circular_straight_entry(self) -> None:
        ops = get_cycle("circular-pocket").instructions({"helicalEntrance": False}, "fanuc")
        assert not [o for o in ops if isinstance(o, Arc) and o.z is not None]

    def test_circular_finish_ring(self) -> None:
        ops = get_cycle("circular-pocket").instructions(None, "fanuc")
        radii = {round(o.radius, 6) for o in ops if isinstance(o, Arc) and o.z is None}
        # (80 - 10) / 2
        assert max(radii) == pytest.approx(35)

    def test_circular_heidenhain(self) -> None:
        assert "CYCL DEF 252 CIRCULAR POCKET" in generate("circular-pocket", None, "heidenhain")

    def test_island_is_climb_cut_outside_in(self) -> None:
        ops = get_cycle("circular-island").instructions(None, "fanuc")
        arcs = [o for o in ops if isinstance(o, Arc)]
        assert all(a.clockwise for a in arcs)
        # Finish pass at island radius + tool radius
        assert arcs[-1].radius == pytest.approx(30)
        assert max(a.radius for a in arcs) == pytest.approx(35)

    def test_island_heidenhain(self) -> None:
        text = generate("circular-island", None, "heidenhain")
        assert "CYCL DEF 257 CIRCULAR STUD" in text
        assert "Q222=60" in text
        assert "Q223=50" in text


# ---------------------------------------------------------------------------
# Milling
# ---------------------------------------------------------------------------


class TestSlot:
    def test_offsets(self) -> None:
        assert slot_offsets(12, 8, 4) == [2, -2]
        assert slot_offsets(8, 8, 4) == [0]
        assert slot_offsets(20, 8, 5) == [6, 1, -4, -6]

    def test_angle_rotates_path(self) -> None:
        text = generate("slot-milling", {"angle": 90, "width": 8}, "fanuc")
        assert "G00 X0 Y-25" in text
        assert "X0 Y25 F600" in text

    def test_heidenhain(self) -> None:
        text = generate("slot-milling", {"angle": 30}, "heidenhain")
        assert "CYCL DEF 253 SLOT MILLING" in text
        assert "Q374=+30" in text

    def test_t_slot_second_tool(self) -> None:
        text = generate("t-slot-milling", None, "fanuc")
        assert "T2 M6" in text
        assert "G43 Z50 H2" in text
        # slot depth 10 + T height 6
        assert "G00 Z-16" in text
        text = generate("t-slot-milling", None, "heidenhain")
        assert "TOOL CALL 2 Z S2500" in text


class TestContour:
    def test_external_right_compensation(self) -> None:
        text = generate("contour-milling", None, "fanuc")
        assert "G42 D1 G01 X0 Y0 F800" in text
        assert "G40 G01 X-5 Y0" in text
        assert "G41" not in text

    def test_internal_left_compensation(self) -> None:
        text = generate("contour-milling", {"contourType": "internal"}, "fanuc")
        assert "G41 D1 G01" in text
        text = generate("contour-milling", {"contourType": "internal"}, "heidenhain")
        assert "RL F800" in text

    def test_heidenhain_spindle_on_retract(self) -> None:
        lines = _lines(generate("contour-milling", None, "heidenhain"))
        assert "L Z+50 R0 FMAX M3" in lines
        assert any(line.endswith("RR F800") for line in lines)

    def test_no_compensation_offsets_path(self) -> None:
        text = generate("contour-milling", {"useToolCompensation": False}, "fanuc")
        assert "G42" not in text
        assert "G01 X-5 Y-5 F800" in text
        assert "G01 X55 Y-5" in text

    def test_passes(self) -> None:
        ops = get_cycle("contour-milling").instructions(None, "fanuc")
        plunges = [o.z for o in ops if isinstance(o, Linear) and o.z is not None]
        assert plunges == [-5, -10]


class TestChamfer:
    def test_depth_from_angle(self) -> None:
        params = get_cycle("chamfering-cycle").schema.defaults()
        assert chamfer_depth(params) == pytest.approx(2)
        assert chamfer_depth({**params, "chamferAngle": 60}) == pytest.approx(
            2 * math.tan(math.radians(30))
        )

    def test_fanuc(self) -> None:
        text = generate("chamfering-cycle", None, "fanuc")
        assert "G01 Z-2 F100" in text
        assert "G42 D1 G01 X0 Y0 F400" in text
        assert "G01 X100 Y0" in text

    def test_heidenhain_path_without_cycle_definition(self) -> None:
        text = generate("chamfering-cycle", None, "heidenhain")
        assert "CYCL DEF" not in text
        assert "CYCL CALL" not in text
        assert "L Z-2 F100" in text


class TestPlunge:
    def test_grid(self) -> None:
        params = get_cycle("plunge-milling").schema.defaults()
        assert plunge_grid(params) == (6, 9)

    def test_grid_minimum(self) -> None:
        params = get_cycle("plunge-milling").schema.merged({"width": 10, "length": 10})
        assert plunge_grid(params) == (1, 1)

    def test_plunge_count(self) -> None:
        ops = get_cycle("plunge-milling").instructions(None, "fanuc")
        plunges = [o for o in ops if isinstance(o, Linear) and o.z is not None and o.z < 0]
        # 6 x 9 grid, 5 levels of 4 mm
        assert len(plunges) == 6 * 9 * 5

    def test_rows_zig_zag(self) -> None:
        ops = get_cycle("plunge-milling").instructions(None, "fanuc")
        xy = [(o.x, o.y) for o in ops if getattr(o, "x", None) is not None and o.kind == "Rapid"]
        # after the preamble rapid to the origin
        row0, row1 = xy[1:7], xy[7:13]
        assert [p[0] for p in row1] == [p[0] for p in reversed(row0)]

    def test_heidenhain(self) -> None:
        text = generate("plunge-milling", None, "heidenhain")
        assert "Q231=6 " in text
        assert "Q232=9 " in text
        assert "Q240=5 " in text


# ---------------------------------------------------------------------------
# Parameter schema
# ---------------------------------------------------------------------------


@pytest.fixture()
def schema() -> CycleParameterSchema:
    return CycleParameterSchema("demo", [
        number("depth", "Depth", 20, 0.1, 100),
        number("count", "Count", 3, 1, 20, integer=True, unit=""),
        select("mode", "Mode", "rapid", ("rapid", "feed")),
        checkbox("coolant", "Coolant", True),
    ])


class TestSchema:
    def test_defaults(self, schema: CycleParameterSchema) -> None:
        assert schema.defaults() == {"depth": 20.0, "count": 3, "mode": "rapid", "coolant": True}

    def test_container(self, schema: CycleParameterSchema) -> None:
        assert len(schema) == 4
        assert "depth" in schema
        assert schema.names == ("depth", "count", "mode", "coolant")
        assert schema["depth"].unit == "mm"

    def test_clamp_bounds(self, schema: CycleParameterSchema) -> None:
        out = schema.clamp({"depth": 5000, "count": 0})
        assert out["depth"] == 100
        assert out["count"] == 1

    def test_clamp_rounds_counts(self, schema: CycleParameterSchema) -> None:
        assert schema.clamp({"count": "3.6"})["count"] == 4

    def test_clamp_coerces_checkbox(self, schema: CycleParameterSchema) -> None:
        assert schema.clamp({"coolant": "off"})["coolant"] is False
        assert schema.clamp({"coolant": 1})["coolant"] is True

    def test_clamp_rejects_text(self, schema: CycleParameterSchema) -> None:
        with pytest.raises(InvalidParameterError) as info:
            schema.clamp({"depth": "deep", "coolant": "maybe"})
        assert set(info.value.problems) == {"depth", "coolant"}

    def test_clamp_rejects_unknown(self, schema: CycleParameterSchema) -> None:
        with pytest.raises(InvalidParameterError, match="unknown parameter"):
            schema.clamp({"speed": 1})

    def test_validate_fills_defaults(self, schema: CycleParameterSchema) -> None:
        assert schema.validate({"depth": 50})["count"] == 3

    def test_validate_bounds(self, schema: CycleParameterSchema) -> None:
        with pytest.raises(InvalidParameterError) as info:
            schema.validate({"depth": -1, "mode": "slow"})
        assert set(info.value.problems) == {"depth", "mode"}

    def test_validate_forbids_extra(self, schema: CycleParameterSchema) -> None:
        with pytest.raises(InvalidParameterError, match="speed"):
            schema.validate({"speed": 1})

    def test_select_default_must_be_option(self) -> None:
        with pytest.raises(ValueError, match="not in options"):
            select("mode", "Mode", "slow", ("rapid", "feed"))

    def test_duplicate_names(self) -> None:
        with pytest.raises(ValueError, match="duplicate"):
            CycleParameterSchema("x", [number("a", "A", 1, 0, 2), number("a", "A", 1, 0, 2)])

    def test_describe(self, schema: CycleParameterSchema) -> None:
        rows = schema.describe()
        assert rows[0] == {"name": "depth", "label": "Depth", "type": "number",
                           "default": 20.0, "min": 0.1, "max": 100, "unit": "mm"}
        assert rows[2]["options"] == ["rapid", "feed"]

    @pytest.mark.parametrize("cycle_id", ALL_IDS)
    def test_library_defaults_validate(self, cycle_id: str) -> None:
        template = get_cycle(cycle_id)
        assert template.schema.validate(None) == template.schema.defaults()


# ---------------------------------------------------------------------------
# Registry
# ---------------------------------------------------------------------------


class TestRegistry:
    def test_unknown_lists_available(self) -> None:
        with pytest.raises(UnknownCycleError, match="Available: simple-drilling"):
            DEFAULT_REGISTRY.get("laser-etch")

    def test_duplicate_ids(self) -> None:
        t = get_cycle("simple-drilling")
        with pytest.raises(ValueError, match="Duplicate"):
            CycleRegistry([t, t])

    def test_for_dialect(self) -> None:
        assert len(DEFAULT_REGISTRY.for_dialect("fanuc")) == len(DEFAULT_REGISTRY)
        assert DEFAULT_REGISTRY.for_dialect(Dialect.MARLIN) == []

    def test_iteration_order(self) -> None:
        assert [t.id for t in DEFAULT_REGISTRY] == list(ALL_IDS)
        assert "tapping-cycle" in DEFAULT_REGISTRY
