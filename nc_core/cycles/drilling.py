"""Hole-making cycles: drilling, pecking, centering and boring."""

from __future__ import annotations

import math

from nc_core.cycles.base import (
    APPROACH_Z,
    SAFETY_DISTANCE,
    CycleTemplate,
    Params,
    Position,
    at_each,
    fanuc_fixed_cycle,
    fanuc_postamble,
    fanuc_preamble,
    fmt,
    heidenhain_calls,
    heidenhain_postamble,
    heidenhain_preamble,
    q,
    surface_and_clearance,
)
from nc_core.cycles.schema import CycleParameterSchema, checkbox, number, select
from nc_core.dialects.emitter import Dialect
from nc_core.instructions.operations import (
    CannedCycle,
    Dwell,
    Instruction,
    Linear,
    Rapid,
    SpindleOn,
    SpindleOrient,
)

# Heidenhain retract feed meaning "rapid"
RAPID_RETRACT_FEED = 99999.0
BACK_BORING_APPROACH_FEED = 500.0
# Extra sideways shift so the boring bar clears the hole wall
BACK_BORING_CLEARANCE = 0.5


def _ms(seconds: float) -> int | None:
    return int(round(seconds * 1000)) if seconds > 0 else None


def _diameter_line(p: Params, key: str = "drillDiameter") -> str:
    return f"DIAMETER: {fmt(p[key])}MM, DEPTH: {fmt(p['depth'])}MM"


# ---------------------------------------------------------------------------
# Simple drilling
# ---------------------------------------------------------------------------


def _simple_fanuc(p: Params, pos: tuple[Position, ...]) -> list[Instruction]:
    dwell = _ms(p["dwellTime"])
    cycle = CannedCycle(
        82 if dwell else 81, z=-p["depth"], r=p["retractHeight"],
        feed=p["feedrate"], p_ms=dwell,
    )
    return [
        *fanuc_preamble("SIMPLE DRILLING CYCLE", [_diameter_line(p)], pos,
                        [SpindleOn(p["spindleSpeed"])]),
        *fanuc_fixed_cycle(cycle, pos),
        *fanuc_postamble(),
    ]


def _simple_heidenhain(p: Params, pos: tuple[Position, ...]) -> list[Instruction]:
    params = [
        q(200, p["retractHeight"], "SAFETY DISTANCE"),
        q(201, -p["depth"], "DEPTH"),
        q(206, p["feedrate"], "FEEDRATE FOR PLUNGING"),
        q(202, p["depth"], "PLUNGING DEPTH"),
        q(210, 0, "DWELL TIME AT TOP"),
        *surface_and_clearance(),
        q(211, p["dwellTime"], "DWELL TIME AT BOTTOM"),
    ]
    return [
        *heidenhain_preamble("SIMPLE DRILLING CYCLE", [_diameter_line(p)], p["spindleSpeed"]),
        *heidenhain_calls(200, "DRILLING", params, pos),
        *heidenhain_postamble(),
    ]


SIMPLE_DRILLING = CycleTemplate(
    id="simple-drilling",
    name="Simple Drilling",
    description="Drill to depth in one feed move, optional dwell at the bottom",
    schema=CycleParameterSchema("simple-drilling", [
        number("drillDiameter", "Drill Diameter", 8, 0.1, 100),
        number("depth", "Depth", 20, 0.1, 1000),
        number("feedrate", "Feedrate", 100, 1, 10000, step=1, unit="mm/min"),
        number("spindleSpeed", "Spindle Speed", 1000, 1, 24000, step=100, unit="RPM"),
        number("retractHeight", "Retract Height", 5, 0.1, 100),
        number("dwellTime", "Dwell Time", 0, 0, 100, unit="s",
               description="Dwell at the bottom (0 for none)"),
    ]),
    builders={Dialect.FANUC: _simple_fanuc, Dialect.HEIDENHAIN: _simple_heidenhain},
)


# ---------------------------------------------------------------------------
# Deep drilling
# ---------------------------------------------------------------------------


def _deep_fanuc(p: Params, pos: tuple[Position, ...]) -> list[Instruction]:
    # G73 breaks chips with a short retract, G83 retracts fully each peck
    cycle = CannedCycle(
        73 if p["useChipBreaking"] else 83,
        z=-p["depth"], r=p["retractHeight"], feed=p["feedrate"],
        q=p["peckDepth"], p_ms=_ms(p["dwellTime"]),
    )
    return [
        *fanuc_preamble("DEEP DRILLING CYCLE", [_diameter_line(p)], pos,
                        [SpindleOn(p["spindleSpeed"])]),
        *fanuc_fixed_cycle(cycle, pos),
        *fanuc_postamble(),
    ]


def _deep_heidenhain(p: Params, pos: tuple[Position, ...]) -> list[Instruction]:
    head = [
        q(200, p["retractHeight"], "SAFETY DISTANCE"),
        q(201, -p["depth"], "DEPTH"),
        q(206, p["feedrate"], "FEEDRATE FOR PLUNGING"),
        q(202, p["peckDepth"], "PLUNGING DEPTH"),
        q(210, 0, "DWELL TIME AT TOP"),
        *surface_and_clearance(),
    ]
    if p["useChipBreaking"]:
        breaks = max(1, math.ceil(p["depth"] / p["peckDepth"]) - 1)
        params = head + [
            q(212, 0, "DECREMENT"),
            q(213, breaks, "NR OF BREAKS"),
            q(205, 1, "MIN. PLUNGING DEPTH"),
            q(211, p["dwellTime"], "DWELL TIME AT BOTTOM"),
            q(208, RAPID_RETRACT_FEED, "RETRACTION FEED RATE"),
            q(256, p["retractDistance"], "DIST FOR CHIP BRKNG"),
        ]
        number_, name = 203, "UNIVERSAL DRILLING"
    else:
        params = head + [q(211, p["dwellTime"], "DWELL TIME AT BOTTOM")]
        number_, name = 200, "DRILLING"
    return [
        *heidenhain_preamble("DEEP DRILLING CYCLE", [_diameter_line(p)], p["spindleSpeed"]),
        *heidenhain_calls(number_, name, params, pos),
        *heidenhain_postamble(),
    ]


DEEP_DRILLING = CycleTemplate(
    id="deep-drilling",
    name="Deep Drilling",
    description="Pecked drilling with chip breaking or full chip evacuation",
    schema=CycleParameterSchema("deep-drilling", [
        number("drillDiameter", "Drill Diameter", 8, 0.1, 100),
        number("depth", "Total Depth", 80, 1, 1000),
        number("peckDepth", "Peck Depth", 15, 0.1, 100),
        number("retractDistance", "Retract Distance", 3, 0.1, 50,
               description="Retract for chip breaking"),
        number("feedrate", "Feedrate", 120, 1, 5000, step=1, unit="mm/min"),
        number("spindleSpeed", "Spindle Speed", 1200, 1, 24000, step=100, unit="RPM"),
        number("dwellTime", "Dwell at Bottom", 0.5, 0, 10, unit="s"),
        checkbox("useChipBreaking", "Use Chip Breaking", True),
        number("retractHeight", "Retract Height", 5, 0.1, 100),
    ]),
    builders={Dialect.FANUC: _deep_fanuc, Dialect.HEIDENHAIN: _deep_heidenhain},
)


# ---------------------------------------------------------------------------
# Peck drilling (full retract)
# ---------------------------------------------------------------------------


def _peck_fanuc(p: Params, pos: tuple[Position, ...]) -> list[Instruction]:
    cycle = CannedCycle(
        83, z=-p["depth"], r=p["retractHeight"], feed=p["feedrate"],
        q=p["peckDepth"], p_ms=_ms(p["dwellTime"]),
    )
    details = [_diameter_line(p) + f", PECK: {fmt(p['peckDepth'])}MM"]
    return [
        *fanuc_preamble("PECK DRILLING CYCLE - FULL RETRACT", details, pos,
                        [SpindleOn(p["spindleSpeed"])]),
        *fanuc_fixed_cycle(cycle, pos),
        *fanuc_postamble(),
    ]


def _peck_heidenhain(p: Params, pos: tuple[Position, ...]) -> list[Instruction]:
    params = [
        q(200, p["retractHeight"], "SAFETY DISTANCE"),
        q(201, -p["depth"], "DEPTH"),
        q(206, p["feedrate"], "FEEDRATE FOR PLUNGING"),
        q(202, p["peckDepth"], "PLUNGING DEPTH"),
        *surface_and_clearance(),
        q(212, 0, "DECREMENT"),
        q(205, 0, "MIN. PLUNGING DEPTH"),
        q(258, 0.2, "UPPER ADV STOP DIST"),
        q(259, 0.2, "LOWER ADV STOP DIST"),
        q(257, 0, "DEPTH FOR CHIP BRKNG"),
        q(256, 0.2, "DIST FOR CHIP BRKNG"),
        q(211, p["dwellTime"], "DWELL TIME AT BOTTOM"),
    ]
    details = [_diameter_line(p) + f", PECK: {fmt(p['peckDepth'])}MM"]
    return [
        *heidenhain_preamble("PECK DRILLING CYCLE - FULL RETRACT", details, p["spindleSpeed"]),
        *heidenhain_calls(205, "UNIVERSAL PECKING", params, pos),
        *heidenhain_postamble(),
    ]


PECK_DRILLING = CycleTemplate(
    id="peck-drilling",
    name="Peck Drilling",
    description="Pecked drilling retracting to the R plane after every peck",
    schema=CycleParameterSchema("peck-drilling", [
        number("drillDiameter", "Drill Diameter", 12, 0.1, 100),
        number("depth", "Total Depth", 100, 1, 1000),
        number("peckDepth", "Peck Depth", 15, 0.1, 100),
        number("retractHeight", "Retract Height", 5, 1, 100),
        number("feedrate", "Feedrate", 120, 1, 5000, step=1, unit="mm/min"),
        number("spindleSpeed", "Spindle Speed", 1000, 1, 24000, step=100, unit="RPM"),
        number("dwellTime", "Dwell Time", 0.2, 0, 10, unit="s"),
    ]),
    builders={Dialect.FANUC: _peck_fanuc, Dialect.HEIDENHAIN: _peck_heidenhain},
)


# ---------------------------------------------------------------------------
# Chip-breaking drilling
# ---------------------------------------------------------------------------


def _chip_fanuc(p: Params, pos: tuple[Position, ...]) -> list[Instruction]:
    cycle = CannedCycle(
        73, z=-p["depth"], r=p["retractHeight"], feed=p["feedrate"], q=p["peckIncrement"],
    )
    details = [
        _diameter_line(p),
        f"CHIP BREAK RETRACT {fmt(p['chipBreakDistance'])}MM",
    ]
    return [
        *fanuc_preamble("CHIP BREAKING DRILLING CYCLE", details, pos,
                        [SpindleOn(p["spindleSpeed"])]),
        *fanuc_fixed_cycle(cycle, pos),
        *fanuc_postamble(),
    ]


def _chip_heidenhain(p: Params, pos: tuple[Position, ...]) -> list[Instruction]:
    retract = RAPID_RETRACT_FEED if p["returnType"] == "rapid" else p["feedrate"]
    params = [
        q(200, p["retractHeight"], "SAFETY DISTANCE"),
        q(201, -p["depth"], "DEPTH"),
        q(206, p["feedrate"], "FEEDRATE FOR PLUNGING"),
        q(202, p["peckIncrement"], "PLUNGING DEPTH"),
        q(210, 0, "DWELL TIME AT TOP"),
        *surface_and_clearance(),
        q(212, 0, "DECREMENT"),
        q(213, p["chipBreakCount"], "NR OF BREAKS"),
        q(205, 1, "MIN. PLUNGING DEPTH"),
        q(211, 0, "DWELL TIME AT BOTTOM"),
        q(208, retract, "RETRACTION FEED RATE"),
        q(256, p["chipBreakDistance"], "DIST FOR CHIP BRKNG"),
    ]
    return [
        *heidenhain_preamble("CHIP BREAKING DRILLING CYCLE", [_diameter_line(p)],
                             p["spindleSpeed"]),
        *heidenhain_calls(203, "UNIVERSAL DRILLING", params, pos),
        *heidenhain_postamble(),
    ]


CHIP_BREAKING_DRILL = CycleTemplate(
    id="chip-breaking-drill",
    name="Chip Breaking Drilling",
    description="High-speed pecking with short chip-breaking retracts",
    schema=CycleParameterSchema("chip-breaking-drill", [
        number("drillDiameter", "Drill Diameter", 10, 0.1, 100),
        number("depth", "Total Depth", 50, 1, 1000),
        number("peckIncrement", "Peck Increment", 5, 0.1, 100),
        number("chipBreakDistance", "Chip Break Distance", 1, 0.1, 10),
        number("feedrate", "Feedrate", 150, 1, 5000, step=1, unit="mm/min"),
        number("spindleSpeed", "Spindle Speed", 1500, 1, 24000, step=100, unit="RPM"),
        select("returnType", "Return Type", "rapid", ("rapid", "feed")),
        number("chipBreakCount", "Chip Breaks Before Retract", 3, 1, 20, unit="",
               integer=True),
        number("retractHeight", "Retract Height", 5, 0.1, 100),
    ]),
    builders={Dialect.FANUC: _chip_fanuc, Dialect.HEIDENHAIN: _chip_heidenhain},
)


# ---------------------------------------------------------------------------
# Center drilling
# ---------------------------------------------------------------------------


def center_depth(p: Params) -> float:
    """Depth reaching ``chamferDiameter`` with the tool's cone, capped at ``depth``."""
    tangent = math.tan(math.radians(p["coneAngle"] / 2.0))
    return min(p["depth"], p["chamferDiameter"] / (2.0 * tangent))


def _center_details(p: Params) -> list[str]:
    return [f"CHAMFER DIAMETER: {fmt(p['chamferDiameter'])}MM, "
            f"DEPTH: {center_depth(p):.2f}MM"]


def _center_fanuc(p: Params, pos: tuple[Position, ...]) -> list[Instruction]:
    dwell = _ms(p["dwellTime"])
    cycle = CannedCycle(
        82 if dwell else 81, z=-center_depth(p), r=APPROACH_Z,
        feed=p["feedrate"], p_ms=dwell,
    )
    return [
        *fanuc_preamble("CENTER DRILLING CYCLE", _center_details(p), pos,
                        [SpindleOn(p["spindleSpeed"])]),
        *fanuc_fixed_cycle(cycle, pos),
        *fanuc_postamble(),
    ]


def _center_heidenhain(p: Params, pos: tuple[Position, ...]) -> list[Instruction]:
    params = [
        q(200, SAFETY_DISTANCE, "SAFETY DISTANCE"),
        q(343, 0, "SELECT DIAM./DEPTH"),
        q(201, -center_depth(p), "DEPTH"),
        q(344, -p["chamferDiameter"], "DIAMETER"),
        q(206, p["feedrate"], "FEEDRATE FOR PLUNGING"),
        q(211, p["dwellTime"], "DWELL TIME AT BOTTOM"),
        *surface_and_clearance(),
    ]
    return [
        *heidenhain_preamble("CENTER DRILLING CYCLE", _center_details(p), p["spindleSpeed"]),
        *heidenhain_calls(240, "CENTERING", params, pos),
        *heidenhain_postamble(),
    ]


CENTER_DRILLING = CycleTemplate(
    id="center-drilling",
    name="Center Drilling",
    description="Spot a hole to a given chamfer diameter",
    schema=CycleParameterSchema("center-drilling", [
        number("toolDiameter", "Tool Diameter", 6, 0.1, 100),
        number("coneAngle", "Cone Angle", 90, 60, 120, step=1, unit="deg"),
        number("depth", "Max Depth", 3, 0.1, 100),
        number("chamferDiameter", "Chamfer Diameter", 10, 0.1, 100),
        number("feedrate", "Feedrate", 150, 1, 5000, step=1, unit="mm/min"),
        number("spindleSpeed", "Spindle Speed", 2000, 1, 24000, step=100, unit="RPM"),
        number("dwellTime", "Dwell Time", 0, 0, 10, unit="s"),
    ]),
    builders={Dialect.FANUC: _center_fanuc, Dialect.HEIDENHAIN: _center_heidenhain},
)


# ---------------------------------------------------------------------------
# Boring
# ---------------------------------------------------------------------------


def _boring_details(p: Params) -> list[str]:
    return [f"DIAMETER: {fmt(p['initialDiameter'])}MM -> {fmt(p['finalDiameter'])}MM, "
            f"DEPTH: {fmt(p['depth'])}MM"]


def _boring_fanuc(p: Params, pos: tuple[Position, ...]) -> list[Instruction]:
    # G76 orients the spindle and shifts the bar off the wall by Q before retracting
    cycle = CannedCycle(
        76, z=-p["depth"], r=p["retractHeight"], feed=p["feedrate"],
        q=p["shiftAmount"], p_ms=_ms(p["dwellTime"]),
    )
    return [
        *fanuc_preamble("BORING CYCLE", _boring_details(p), pos, [SpindleOn(p["spindleSpeed"])]),
        *fanuc_fixed_cycle(cycle, pos),
        *fanuc_postamble(),
    ]


def _boring_heidenhain(p: Params, pos: tuple[Position, ...]) -> list[Instruction]:
    params = [
        q(200, p["retractHeight"], "SAFETY DISTANCE"),
        q(201, -p["depth"], "DEPTH"),
        q(206, p["feedrate"], "FEEDRATE FOR PLUNGING"),
        q(211, p["dwellTime"], "DWELL TIME AT BOTTOM"),
        q(208, p["retractFeed"], "RETRACTION FEED RATE"),
        *surface_and_clearance(),
        q(214, 1, "DISENGAGING DIRECTN"),
        q(336, p["orientationAngle"], "ANGLE OF SPINDLE"),
    ]
    return [
        *heidenhain_preamble("BORING CYCLE", _boring_details(p), p["spindleSpeed"]),
        *heidenhain_calls(202, "BORING", params, pos),
        *heidenhain_postamble(),
    ]


BORING = CycleTemplate(
    id="boring-cycle",
    name="Boring",
    description="Precision boring with oriented stop and tool shift on retract",
    schema=CycleParameterSchema("boring-cycle", [
        number("initialDiameter", "Initial Diameter", 20, 1, 1000),
        number("finalDiameter", "Final Diameter", 22, 1, 1000),
        number("depth", "Depth", 30, 0.1, 1000),
        number("feedrate", "Feedrate", 80, 1, 5000, step=1, unit="mm/min"),
        number("spindleSpeed", "Spindle Speed", 800, 1, 24000, step=10, unit="RPM"),
        number("dwellTime", "Dwell Time", 0.5, 0, 10, unit="s"),
        number("retractFeed", "Retract Feedrate", 150, 1, 5000, step=1, unit="mm/min"),
        number("orientationAngle", "Spindle Orientation", 0, 0, 360, step=1, unit="deg"),
        number("shiftAmount", "Shift Amount", 0.2, 0, 5, step=0.05,
               description="Bar shift away from the wall before retract"),
        number("retractHeight", "Retract Height", 5, 0.1, 100),
    ]),
    builders={Dialect.FANUC: _boring_fanuc, Dialect.HEIDENHAIN: _boring_heidenhain},
)


# ---------------------------------------------------------------------------
# Back boring
# ---------------------------------------------------------------------------


def back_boring_eccentricity(p: Params) -> float:
    """Sideways shift letting the bar pass through the hole."""
    return max(0.0, (p["counterboreDiameter"] - p["holeDiameter"]) / 2.0) + BACK_BORING_CLEARANCE


def _back_details(p: Params) -> list[str]:
    return [f"COUNTERBORE DIAMETER: {fmt(p['counterboreDiameter'])}MM, "
            f"DEPTH: {fmt(p['depth'])}MM"]


def _back_fanuc(p: Params, pos: tuple[Position, ...]) -> list[Instruction]:
    ecc = back_boring_eccentricity(p)
    below = -(p["thickness"] + p["safetyDistance"])
    top_of_cut = -(p["thickness"] - p["depth"])
    block: list[Instruction] = [
        Rapid(x=0.0, y=0.0),
        Rapid(z=p["safetyDistance"]),
        SpindleOrient(),
        Rapid(x=-ecc, y=0.0),
        Rapid(z=below),
        Rapid(x=0.0, y=0.0),
        SpindleOn(p["spindleSpeed"]),
        Linear(z=top_of_cut, feed=p["feedrate"]),
    ]
    if p["dwellTime"] > 0:
        block.append(Dwell(p["dwellTime"]))
    block += [
        Linear(z=below, feed=p["feedrate"]),
        SpindleOrient(),
        Rapid(x=-ecc, y=0.0),
        Rapid(z=p["safetyDistance"]),
        Rapid(x=0.0, y=0.0),
    ]
    return [
        *fanuc_preamble("BACK BORING CYCLE", _back_details(p), pos, [SpindleOn(p["spindleSpeed"])]),
        *at_each(block, pos),
        *fanuc_postamble(),
    ]


def _back_heidenhain(p: Params, pos: tuple[Position, ...]) -> list[Instruction]:
    params = [
        q(200, p["safetyDistance"], "SAFETY DISTANCE"),
        q(249, p["depth"], "DEPTH OF COUNTERBORE"),
        q(250, p["thickness"], "MATERIAL THICKNESS"),
        q(251, back_boring_eccentricity(p), "OFF-CENTER DISTANCE"),
        q(252, p["toolEdgeHeight"], "TOOL EDGE HEIGHT"),
        q(253, BACK_BORING_APPROACH_FEED, "F PRE-POSITIONING"),
        q(254, p["feedrate"], "F COUNTERBORING"),
        q(255, p["dwellTime"], "DWELL TIME"),
        *surface_and_clearance(),
        q(214, 1, "DISENGAGING DIRECTN"),
        q(336, 0, "ANGLE OF SPINDLE"),
    ]
    return [
        *heidenhain_preamble("BACK BORING CYCLE", _back_details(p), p["spindleSpeed"]),
        *heidenhain_calls(204, "BACK BORING", params, pos),
        *heidenhain_postamble(),
    ]


BACK_BORING = CycleTemplate(
    id="back-boring",
    name="Back Boring",
    description="Counterbore the far side of a through hole",
    schema=CycleParameterSchema("back-boring", [
        number("holeDiameter", "Hole Diameter", 20, 1, 1000),
        number("counterboreDiameter", "Counterbore Diameter", 28, 1, 1000),
        number("depth", "Counterbore Depth", 10, 0.1, 1000,
               description="Measured from the bottom face"),
        number("thickness", "Part Thickness", 30, 0.1, 1000),
        number("safetyDistance", "Safety Distance", 5, 0.1, 100),
        number("feedrate", "Feedrate", 100, 1, 5000, step=1, unit="mm/min"),
        number("spindleSpeed", "Spindle Speed", 600, 1, 24000, step=10, unit="RPM"),
        number("dwellTime", "Dwell Time", 0.2, 0, 10, unit="s"),
        number("toolEdgeHeight", "Tool Edge Height", 15, 0, 200,
               description="Distance from the bar tip to the cutting edge"),
    ]),
    builders={Dialect.FANUC: _back_fanuc, Dialect.HEIDENHAIN: _back_heidenhain},
    depth_param=None,
)


DRILLING_CYCLES = (
    SIMPLE_DRILLING,
    DEEP_DRILLING,
    PECK_DRILLING,
    CHIP_BREAKING_DRILL,
    CENTER_DRILLING,
    BORING,
    BACK_BORING,
)
