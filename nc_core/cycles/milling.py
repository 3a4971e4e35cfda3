"""Slot, profile and area milling cycles.

Profiles (contour, chamfer) are squares with one corner on the feature
position and run counter-clockwise, so the cutter sits on the right of the
path for external profiles and on the left for internal ones::

    (0, L) <-------- (W, L)
       |                ^
       v                |
    (0, 0) --------> (W, 0)

With compensation off, the path itself is offset by the tool radius.
"""

from __future__ import annotations

import math

from nc_core.cycles.base import (
    APPROACH_Z,
    CLEARANCE_Z,
    SAFETY_DISTANCE,
    CycleTemplate,
    Params,
    Position,
    at_each,
    fanuc_postamble,
    fanuc_preamble,
    fmt,
    heidenhain_calls,
    heidenhain_postamble,
    heidenhain_preamble,
    pass_depths,
    q,
    surface_and_clearance,
)
from nc_core.cycles.schema import CycleParameterSchema, checkbox, number, select
from nc_core.dialects.emitter import Dialect
from nc_core.instructions.operations import (
    Comment,
    Instruction,
    Linear,
    QParam,
    Rapid,
    SpindleOn,
    SpindleStop,
    ToolChange,
    ToolLengthOffset,
)
from nc_core.toolpath import patterns

CONTOUR_TYPES = ("external", "internal")
CHAMFER_APPROACH = 10.0
CHAMFER_PLUNGE_FEED = 100.0
# Lead-out beyond the stock edge for the T-slot cutter
T_SLOT_CLEARANCE = 2.0
T_SLOT_TOOL = 2


def _side(contour_type: str) -> str:
    return "right" if contour_type == "external" else "left"


# ---------------------------------------------------------------------------
# Slot milling
# ---------------------------------------------------------------------------


def slot_offsets(width: float, tool_diameter: float, stepover: float) -> list[float]:
    """Lateral tool-centre offsets, outermost first.

    A slot no wider than the tool takes one centred pass.
    """
    if width <= tool_diameter:
        return [0.0]
    half = (width - tool_diameter) / 2.0
    passes = math.ceil((width - tool_diameter) / stepover - 1e-9) + 1
    return [max(half - k * stepover, -half) for k in range(passes)]


def _slot_block(
    cycle_id: str,
    *,
    length: float,
    width: float,
    depth: float,
    stepdown: float,
    stepover: float,
    tool_diameter: float,
    feed: float,
    plunge: float,
    angle: float = 0.0,
) -> list[Instruction]:
    block: list[Instruction] = []
    offsets = slot_offsets(width, tool_diameter, stepover)
    for k, d in enumerate(pass_depths(cycle_id, depth, stepdown)):
        block.append(Comment(f"Z PASS {k + 1} - DEPTH: {fmt(d)}MM"))
        for off in offsets:
            sx, sy = patterns.rotate((-length / 2.0, off), angle)
            ex, ey = patterns.rotate((length / 2.0, off), angle)
            block += [
                Rapid(x=sx, y=sy),
                Rapid(z=APPROACH_Z),
                Linear(z=-d, feed=plunge),
                Linear(x=ex, y=ey, feed=feed),
                Rapid(z=APPROACH_Z),
            ]
    return block


def _slot_q(p_len: float, p_width: float, angle: float, feed: float, depth: float,
            stepdown: float, plunge: float) -> list[QParam]:
    return [
        q(215, 0, "MACHINING OPERATION"),
        q(218, p_len, "SLOT LENGTH"),
        q(219, p_width, "SLOT WIDTH"),
        q(368, 0, "ALLOWANCE FOR SIDE"),
        q(374, angle, "ANGLE OF ROTATION", signed=True),
        q(367, 0, "SLOT POSITION"),
        q(207, feed, "FEED RATE FOR MILLING"),
        q(351, 1, "CLIMB OR UP-CUT", signed=True),
        q(201, -depth, "DEPTH"),
        q(202, stepdown, "PLUNGING DEPTH"),
        q(369, 0, "ALLOWANCE FOR FLOOR"),
        q(206, plunge, "FEED RATE FOR PLNGNG"),
        q(338, 0, "INFEED FOR FINISHING"),
        q(200, SAFETY_DISTANCE, "SAFETY DISTANCE"),
        *surface_and_clearance(),
        q(366, 0, "PLUNGING"),
    ]


def _slot_details(p: Params) -> list[str]:
    return [f"DIMENSIONS: {fmt(p['length'])}X{fmt(p['width'])}MM, DEPTH: {fmt(p['depth'])}MM"]


def _slot_fanuc(p: Params, pos: tuple[Position, ...]) -> list[Instruction]:
    block = _slot_block(
        "slot-milling", length=p["length"], width=p["width"], depth=p["depth"],
        stepdown=p["stepdown"], stepover=p["stepover"], tool_diameter=p["toolDiameter"],
        feed=p["feedrate"], plunge=p["plungeRate"], angle=p["angle"],
    )
    return [
        *fanuc_preamble("SLOT MILLING CYCLE", _slot_details(p), pos,
                        [SpindleOn(p["spindleSpeed"])]),
        *at_each(block, pos),
        *fanuc_postamble(),
    ]


def _slot_heidenhain(p: Params, pos: tuple[Position, ...]) -> list[Instruction]:
    params = _slot_q(p["length"], p["width"], p["angle"], p["feedrate"], p["depth"],
                     p["stepdown"], p["plungeRate"])
    return [
        *heidenhain_preamble("SLOT MILLING CYCLE", _slot_details(p), p["spindleSpeed"]),
        *heidenhain_calls(253, "SLOT MILLING", params, pos),
        *heidenhain_postamble(),
    ]


SLOT_MILLING = CycleTemplate(
    id="slot-milling",
    name="Slot Milling",
    description="Straight slot at any angle, in depth and width passes",
    schema=CycleParameterSchema("slot-milling", [
        number("toolDiameter", "Tool Diameter", 8, 0.1, 100),
        number("length", "Slot Length", 50, 1, 1000),
        number("width", "Slot Width", 12, 0.1, 100),
        number("depth", "Depth", 10, 0.1, 1000),
        number("stepdown", "Z Increment", 3, 0.1, 100),
        number("stepover", "Stepover", 4, 0.1, 100),
        number("feedrate", "Feedrate", 600, 1, 10000, step=1, unit="mm/min"),
        number("plungeRate", "Plunge Feedrate", 300, 1, 10000, step=1, unit="mm/min"),
        number("spindleSpeed", "Spindle Speed", 3500, 1, 24000, step=100, unit="RPM"),
        number("angle", "Angle", 0, -360, 360, step=1, unit="deg",
               description="Slot direction relative to +X"),
    ]),
    builders={Dialect.FANUC: _slot_fanuc, Dialect.HEIDENHAIN: _slot_heidenhain},
)


# ---------------------------------------------------------------------------
# T-slot milling
# ---------------------------------------------------------------------------


def _t_slot_stage(p: Params) -> list[Instruction]:
    """Side cut with the T-slot cutter, entering from beyond the slot end."""
    cutter = p["tSlotCutterDiameter"]
    x_out = p["slotLength"] / 2.0 + cutter / 2.0 + T_SLOT_CLEARANCE
    z = -(p["slotDepth"] + p["tSlotDepth"])
    spread = (p["tSlotWidth"] - cutter) / 2.0
    offsets = [spread, -spread] if spread > 0 else [0.0]
    block: list[Instruction] = [Comment("T-SLOT STAGE")]
    for y in offsets:
        block += [
            Rapid(x=-x_out, y=y),
            Rapid(z=APPROACH_Z),
            Rapid(z=z),
            Linear(x=x_out, y=y, feed=p["feedrate"]),
            Rapid(z=APPROACH_Z),
        ]
    return block


def _t_slot_neck(p: Params) -> list[Instruction]:
    return _slot_block(
        "t-slot-milling", length=p["slotLength"], width=p["slotWidth"],
        depth=p["slotDepth"], stepdown=p["stepdown"], stepover=p["toolDiameter"] / 2.0,
        tool_diameter=p["toolDiameter"], feed=p["feedrate"], plunge=p["plungeRate"],
    )


def _t_slot_details(p: Params) -> list[str]:
    return [
        f"SLOT: {fmt(p['slotWidth'])}X{fmt(p['slotDepth'])}MM, "
        f"T: {fmt(p['tSlotWidth'])}X{fmt(p['tSlotDepth'])}MM",
    ]


def _t_slot_fanuc(p: Params, pos: tuple[Position, ...]) -> list[Instruction]:
    return [
        *fanuc_preamble("T-SLOT MILLING CYCLE", _t_slot_details(p), pos,
                        [SpindleOn(p["spindleSpeed"])]),
        *at_each(_t_slot_neck(p), pos),
        Rapid(z=CLEARANCE_Z),
        SpindleStop(),
        ToolChange(T_SLOT_TOOL),
        ToolLengthOffset(CLEARANCE_Z, T_SLOT_TOOL),
        SpindleOn(p["spindleSpeed"]),
        *at_each(_t_slot_stage(p), pos),
        *fanuc_postamble(),
    ]


def _t_slot_heidenhain(p: Params, pos: tuple[Position, ...]) -> list[Instruction]:
    params = _slot_q(p["slotLength"], p["slotWidth"], 0, p["feedrate"], p["slotDepth"],
                     p["stepdown"], p["plungeRate"])
    return [
        *heidenhain_preamble("T-SLOT MILLING CYCLE", _t_slot_details(p), p["spindleSpeed"]),
        *heidenhain_calls(253, "SLOT MILLING", params, pos),
        Rapid(z=CLEARANCE_Z),
        ToolChange(T_SLOT_TOOL, p["spindleSpeed"]),
        Rapid(z=CLEARANCE_Z, aux=3),
        *at_each(_t_slot_stage(p), pos),
        *heidenhain_postamble(),
    ]


T_SLOT_MILLING = CycleTemplate(
    id="t-slot-milling",
    name="T-Slot Milling",
    description="Neck slot with an end mill, then the T undercut with a T-slot cutter",
    schema=CycleParameterSchema("t-slot-milling", [
        number("toolDiameter", "Tool Diameter", 12, 0.1, 100),
        number("slotWidth", "Slot Width", 16, 0.1, 100),
        number("tSlotWidth", "T-Slot Width", 22, 0.1, 200),
        number("slotDepth", "Slot Depth", 10, 0.1, 500),
        number("tSlotDepth", "T-Slot Height", 6, 0.1, 100),
        number("slotLength", "Slot Length", 100, 1, 1000),
        number("feedrate", "Feedrate", 400, 1, 10000, step=1, unit="mm/min"),
        number("plungeRate", "Plunge Feedrate", 200, 1, 10000, step=1, unit="mm/min"),
        number("spindleSpeed", "Spindle Speed", 2500, 1, 24000, step=100, unit="RPM"),
        number("tSlotCutterDiameter", "T-Slot Cutter Diameter", 20, 0.1, 200),
        number("stepdown", "Z Increment", 5, 0.1, 100),
    ]),
    builders={Dialect.FANUC: _t_slot_fanuc, Dialect.HEIDENHAIN: _t_slot_heidenhain},
    depth_param="slotDepth",
)


# ---------------------------------------------------------------------------
# Square profiles
# ---------------------------------------------------------------------------


def _square(width: float, length: float, offset: float) -> list[tuple[float, float]]:
    lo_x, lo_y, hi_x, hi_y = -offset, -offset, width + offset, length + offset
    return [(lo_x, lo_y), (hi_x, lo_y), (hi_x, hi_y), (lo_x, hi_y), (lo_x, lo_y)]


def _profile_pass(
    loop: list[tuple[float, float]],
    *,
    depth: float,
    approach: float,
    plunge: float,
    feed: float,
    side: str | None,
) -> list[Instruction]:
    """Approach along -X, plunge, run the loop, leave the way it came in."""
    x0, y0 = loop[0]
    ops: list[Instruction] = [
        Rapid(x=x0 - approach, y=y0),
        Rapid(z=APPROACH_Z),
        Linear(z=-depth, feed=plunge),
        Linear(x=x0, y=y0, feed=feed, compensation=side),
    ]
    ops.extend(Linear(x=x, y=y) for x, y in loop[1:])
    ops.append(Linear(x=x0 - approach, y=y0, compensation="off" if side else None))
    ops.append(Rapid(z=APPROACH_Z))
    return ops


def _contour_block(p: Params) -> list[Instruction]:
    comp = bool(p["useToolCompensation"])
    external = p["contourType"] == "external"
    offset = 0.0 if comp else (1 if external else -1) * p["toolDiameter"] / 2.0
    loop = _square(p["contourWidth"], p["contourLength"], offset)
    block: list[Instruction] = []
    for k, d in enumerate(pass_depths("contour-milling", p["depth"], p["stepdown"])):
        block.append(Comment(f"PASS {k + 1} - DEPTH: {fmt(d)}MM"))
        block += _profile_pass(
            loop, depth=d, approach=p["approachDistance"], plunge=p["plungeRate"],
            feed=p["feedrate"], side=_side(p["contourType"]) if comp else None,
        )
    return block


def _contour_title(p: Params) -> str:
    return f"CONTOUR MILLING CYCLE {p['contourType'].upper()}"


def _contour_details(p: Params) -> list[str]:
    passes = len(pass_depths("contour-milling", p["depth"], p["stepdown"]))
    return [f"DEPTH: {fmt(p['depth'])}MM, PASSES: {passes}"]


def _contour_fanuc(p: Params, pos: tuple[Position, ...]) -> list[Instruction]:
    return [
        *fanuc_preamble(_contour_title(p), _contour_details(p), pos,
                        [SpindleOn(p["spindleSpeed"])]),
        *at_each(_contour_block(p), pos),
        *fanuc_postamble(),
    ]


def _contour_heidenhain(p: Params, pos: tuple[Position, ...]) -> list[Instruction]:
    return [
        *heidenhain_preamble(_contour_title(p), _contour_details(p), p["spindleSpeed"],
                             start_spindle=True),
        *at_each(_contour_block(p), pos),
        *heidenhain_postamble(),
    ]


CONTOUR_MILLING = CycleTemplate(
    id="contour-milling",
    name="Contour Milling",
    description="Square external or internal profile in depth passes",
    schema=CycleParameterSchema("contour-milling", [
        number("toolDiameter", "Tool Diameter", 10, 0.1, 100),
        select("contourType", "Contour Type", "external", CONTOUR_TYPES),
        number("contourWidth", "Contour Width", 50, 1, 1000),
        number("contourLength", "Contour Length", 50, 1, 1000),
        number("depth", "Depth", 10, 0.1, 1000),
        number("stepdown", "Z Increment", 5, 0.1, 100),
        number("feedrate", "Feedrate", 800, 1, 10000, step=1, unit="mm/min"),
        number("plungeRate", "Plunge Feedrate", 300, 1, 10000, step=1, unit="mm/min"),
        number("spindleSpeed", "Spindle Speed", 3000, 1, 24000, step=100, unit="RPM"),
        number("approachDistance", "Approach Distance", 5, 0, 100),
        checkbox("useToolCompensation", "Use Tool Compensation", True,
                 description="G41/G42 or RL/RR on the profile"),
    ]),
    builders={Dialect.FANUC: _contour_fanuc, Dialect.HEIDENHAIN: _contour_heidenhain},
)


# ---------------------------------------------------------------------------
# Chamfering
# ---------------------------------------------------------------------------


def chamfer_depth(p: Params) -> float:
    """Axial depth giving *chamferWidth* at *chamferAngle* from the axis."""
    return p["chamferWidth"] * math.tan(math.radians(90.0 - p["chamferAngle"]))


def _chamfer_block(p: Params) -> list[Instruction]:
    side = p["contourLength"]
    return _profile_pass(
        _square(side, side, 0.0), depth=chamfer_depth(p), approach=CHAMFER_APPROACH,
        plunge=CHAMFER_PLUNGE_FEED, feed=p["feedrate"], side=_side(p["contourType"]),
    )


def _chamfer_details(p: Params) -> list[str]:
    return [f"WIDTH: {fmt(p['chamferWidth'])}MM, ANGLE: {fmt(p['chamferAngle'])}DEG"]


def _chamfer_fanuc(p: Params, pos: tuple[Position, ...]) -> list[Instruction]:
    return [
        *fanuc_preamble("CHAMFER MILLING CYCLE", _chamfer_details(p), pos,
                        [SpindleOn(p["spindleSpeed"])]),
        *at_each(_chamfer_block(p), pos),
        *fanuc_postamble(),
    ]


def _chamfer_heidenhain(p: Params, pos: tuple[Position, ...]) -> list[Instruction]:
    return [
        *heidenhain_preamble("CHAMFER MILLING CYCLE", _chamfer_details(p), p["spindleSpeed"],
                             start_spindle=True),
        *at_each(_chamfer_block(p), pos),
        *heidenhain_postamble(),
    ]


CHAMFERING = CycleTemplate(
    id="chamfering-cycle",
    name="Chamfering",
    description="Chamfer a square edge with a countersink cutter",
    schema=CycleParameterSchema("chamfering-cycle", [
        number("toolDiameter", "Cutter Diameter", 12, 0.1, 100),
        number("chamferWidth", "Chamfer Width", 2, 0.1, 50),
        number("chamferAngle", "Chamfer Angle", 45, 30, 60, step=1, unit="deg"),
        number("contourLength", "Contour Length", 100, 1, 1000),
        number("feedrate", "Feedrate", 400, 1, 10000, step=1, unit="mm/min"),
        number("spindleSpeed", "Spindle Speed", 3000, 1, 24000, step=100, unit="RPM"),
        select("contourType", "Contour Type", "external", CONTOUR_TYPES),
    ]),
    builders={Dialect.FANUC: _chamfer_fanuc, Dialect.HEIDENHAIN: _chamfer_heidenhain},
    depth_param=None,
)


# ---------------------------------------------------------------------------
# Plunge milling
# ---------------------------------------------------------------------------


def plunge_grid(p: Params) -> tuple[int, int]:
    """Number of plunge columns (X) and rows (Y)."""
    tool = p["toolDiameter"]
    cols = max(1, math.floor((p["width"] - tool) / p["stepover"] + 1e-9) + 1)
    rows = max(1, math.floor((p["length"] - tool) / p["stepover"] + 1e-9) + 1)
    return cols, rows


def _plunge_block(p: Params) -> list[Instruction]:
    cols, rows = plunge_grid(p)
    x0 = -p["width"] / 2.0 + p["toolDiameter"] / 2.0
    y0 = -p["length"] / 2.0 + p["toolDiameter"] / 2.0
    block: list[Instruction] = []
    for k, d in enumerate(pass_depths("plunge-milling", p["depth"], p["stepdown"])):
        block.append(Comment(f"Z LEVEL {k + 1} - DEPTH: {fmt(d)}MM"))
        for row in range(rows):
            y = y0 + row * p["stepover"]
            order = range(cols) if row % 2 == 0 else range(cols - 1, -1, -1)
            for col in order:
                block += [
                    Rapid(x=x0 + col * p["stepover"], y=y),
                    Rapid(z=APPROACH_Z),
                    Linear(z=-d, feed=p["plungeRate"]),
                    Linear(z=APPROACH_Z, feed=p["retractFeed"]),
                ]
    return block


def _plunge_details(p: Params) -> list[str]:
    return [f"AREA: {fmt(p['width'])}X{fmt(p['length'])}MM, DEPTH: {fmt(p['depth'])}MM"]


def _plunge_fanuc(p: Params, pos: tuple[Position, ...]) -> list[Instruction]:
    return [
        *fanuc_preamble("PLUNGE MILLING CYCLE", _plunge_details(p), pos,
                        [SpindleOn(p["spindleSpeed"])]),
        *at_each(_plunge_block(p), pos),
        *fanuc_postamble(),
    ]


def _plunge_heidenhain(p: Params, pos: tuple[Position, ...]) -> list[Instruction]:
    cols, rows = plunge_grid(p)
    levels = len(pass_depths("plunge-milling", p["depth"], p["stepdown"]))
    params = [
        q(200, SAFETY_DISTANCE, "SAFETY DISTANCE"),
        q(201, -p["depth"], "DEPTH"),
        q(227, 0, "STARTING PNT 1ST AXIS", signed=True),
        q(228, 0, "STARTING PNT 2ND AXIS", signed=True),
        q(229, p["width"], "END POINT 1ST AXIS", signed=True),
        q(230, p["length"], "END POINT 2ND AXIS", signed=True),
        q(231, cols, "NUMBER OF COLUMNS"),
        q(232, rows, "NUMBER OF LINES"),
        q(240, levels, "NUMBER OF CUTS"),
        q(253, p["retractFeed"], "F PRE-POSITIONING"),
        q(206, p["plungeRate"], "FEED RATE FOR PLNGNG"),
        *surface_and_clearance(),
    ]
    return [
        *heidenhain_preamble("PLUNGE MILLING CYCLE", _plunge_details(p), p["spindleSpeed"]),
        *heidenhain_calls(241, "SINGLE-LIP D.H.DRLNG", params, pos),
        *heidenhain_postamble(),
    ]


PLUNGE_MILLING = CycleTemplate(
    id="plunge-milling",
    name="Plunge Milling",
    description="Rough an area with a zig-zag grid of axial plunges",
    schema=CycleParameterSchema("plunge-milling", [
        number("toolDiameter", "Tool Diameter", 20, 0.1, 100),
        number("width", "Area Width", 100, 1, 1000, description="Along X"),
        number("length", "Area Length", 150, 1, 1000, description="Along Y"),
        number("depth", "Depth", 20, 0.1, 1000),
        number("stepdown", "Z Increment", 4, 0.1, 100),
        number("stepover", "Stepover", 15, 0.1, 100),
        number("plungeRate", "Plunge Feedrate", 250, 1, 10000, step=1, unit="mm/min"),
        number("retractFeed", "Retract Feedrate", 1000, 1, 20000, step=1, unit="mm/min"),
        number("spindleSpeed", "Spindle Speed", 2000, 1, 24000, step=100, unit="RPM"),
    ]),
    builders={Dialect.FANUC: _plunge_fanuc, Dialect.HEIDENHAIN: _plunge_heidenhain},
)


MILLING_CYCLES = (
    SLOT_MILLING,
    T_SLOT_MILLING,
    CONTOUR_MILLING,
    CHAMFERING,
    PLUNGE_MILLING,
)
