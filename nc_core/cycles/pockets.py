"""Pocketing cycles: rectangular pocket, circular pocket, circular island.

Fanuc has no pocketing canned cycle, so each step-down level is unrolled:
plunge, contour at ``tool radius + finish allowance`` from the wall, clear
the inside.  Heidenhain defines the native cycle (251/252/257) once and
lets the control compute the passes.
"""

from __future__ import annotations

import math

from nc_core.cycles.base import (
    APPROACH_Z,
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
from nc_core.cycles.schema import CycleParameterSchema, checkbox, number
from nc_core.dialects.emitter import Dialect
from nc_core.instructions.operations import (
    Arc,
    Comment,
    Instruction,
    Linear,
    QParam,
    Rapid,
    SpindleOn,
)
from nc_core.toolpath import patterns


def overlap_factor(p: Params) -> float:
    """Heidenhain Q370: stepover as a multiple of the tool radius."""
    return round(p["stepover"] / (p["toolDiameter"] / 2.0), 3)


def _common_q() -> list[QParam]:
    return [
        q(200, SAFETY_DISTANCE, "SAFETY DISTANCE"),
        *surface_and_clearance(),
    ]


# ---------------------------------------------------------------------------
# Rectangular pocket
# ---------------------------------------------------------------------------


def _corner_radius(p: Params, hw: float, hh: float) -> float:
    """Radius of the tool-centre path at the pocket corners.

    Zero when the cutter itself is at least as round as the requested corner.
    """
    inset = p["toolDiameter"] / 2.0 + p["finishAllowance"]
    return max(0.0, min(p["cornerRadius"] - inset, hw, hh))


def _rounded_wall(hw: float, hh: float, rc: float, feed: float) -> list[Instruction]:
    """Counter-clockwise wall pass from ``(-hw + rc, -hh)`` back to itself."""
    corners = [
        ((hw - rc, -hh), (hw, -hh + rc), (0.0, rc)),
        ((hw, hh - rc), (hw - rc, hh), (-rc, 0.0)),
        ((-hw + rc, hh), (-hw, hh - rc), (0.0, -rc)),
        ((-hw, -hh + rc), (-hw + rc, -hh), (rc, 0.0)),
    ]
    wall: list[Instruction] = []
    x, y = -hw + rc, -hh
    for (sx, sy), (ex, ey), (i, j) in corners:
        if (sx, sy) != (x, y):
            wall.append(Linear(x=sx, y=sy, feed=feed))
        wall.append(Arc(x=ex, y=ey, i=i, j=j, clockwise=False, feed=feed))
        x, y = ex, ey
    return wall


def _clip_to_corners(scan: list[patterns.Segment], hw: float, hh: float,
                     rc: float) -> list[patterns.Segment]:
    clipped = []
    for a, b in scan:
        y = a[1]
        band = abs(y) - (hh - rc)
        if band > 0:
            reach = hw - rc + math.sqrt(max(0.0, rc * rc - band * band))
            a, b = (math.copysign(reach, a[0]), y), (math.copysign(reach, b[0]), y)
        clipped.append((a, b))
    return clipped


def _rect_block(p: Params, cycle_id: str) -> list[Instruction]:
    inset = p["toolDiameter"] / 2.0 + p["finishAllowance"]
    hw = max(0.0, p["width"] / 2.0 - inset)
    hh = max(0.0, p["length"] / 2.0 - inset)
    rc = _corner_radius(p, hw, hh)
    scan = patterns.rect_scan(hw, hh, p["stepover"], serpentine=True, covering=True)
    if rc > 0:
        wall = _rounded_wall(hw, hh, rc, p["feedrate"])
        scan = _clip_to_corners(scan, hw, hh, rc)
        start = (-hw + rc, -hh)
    else:
        loop = patterns.rectangle_loop(hw, hh)
        wall = [Linear(x=x, y=y, feed=p["feedrate"]) for x, y in loop[1:]]
        start = loop[0]

    block: list[Instruction] = [Rapid(x=start[0], y=start[1]), Rapid(z=APPROACH_Z)]
    for k, depth in enumerate(pass_depths(cycle_id, p["depth"], p["stepdown"])):
        block.append(Comment(f"PASS {k + 1} - DEPTH: {fmt(depth)}MM"))
        block.append(Linear(z=-depth, feed=p["plungeRate"]))
        block.extend(wall)
        for a, b in scan:
            block.append(Linear(x=a[0], y=a[1], feed=p["feedrate"]))
            block.append(Linear(x=b[0], y=b[1]))
        block.append(Linear(x=start[0], y=start[1]))
    block.append(Rapid(z=APPROACH_Z))
    return block


def _rect_details(p: Params) -> list[str]:
    return [f"DIMENSIONS: {fmt(p['width'])}X{fmt(p['length'])}MM, DEPTH: {fmt(p['depth'])}MM"]


def _rect_fanuc(p: Params, pos: tuple[Position, ...]) -> list[Instruction]:
    return [
        *fanuc_preamble("RECTANGULAR POCKET CYCLE", _rect_details(p), pos,
                        [SpindleOn(p["spindleSpeed"])]),
        *at_each(_rect_block(p, "rectangular-pocket"), pos),
        *fanuc_postamble(),
    ]


def _rect_heidenhain(p: Params, pos: tuple[Position, ...]) -> list[Instruction]:
    params = [
        q(215, 0, "MACHINING OPERATION"),
        q(218, p["width"], "FIRST SIDE LENGTH"),
        q(219, p["length"], "2ND SIDE LENGTH"),
        q(220, p["cornerRadius"], "CORNER RADIUS"),
        q(368, p["finishAllowance"], "ALLOWANCE FOR SIDE"),
        q(224, 0, "ANGLE OF ROTATION", signed=True),
        q(367, 0, "POCKET POSITION"),
        q(207, p["feedrate"], "FEED RATE FOR MILLING"),
        q(351, 1, "CLIMB OR UP-CUT", signed=True),
        q(201, -p["depth"], "DEPTH"),
        q(202, p["stepdown"], "PLUNGING DEPTH"),
        q(369, 0, "ALLOWANCE FOR FLOOR"),
        q(206, p["plungeRate"], "FEED RATE FOR PLNGNG"),
        q(338, 0, "INFEED FOR FINISHING"),
        *_common_q(),
        q(370, overlap_factor(p), "TOOL PATH OVERLAP"),
        q(366, 1, "PLUNGING"),
        q(385, p["feedrate"], "FINISHING FEED RATE"),
    ]
    return [
        *heidenhain_preamble("RECTANGULAR POCKET CYCLE", _rect_details(p), p["spindleSpeed"]),
        *heidenhain_calls(251, "RECTANGULAR POCKET", params, pos),
        *heidenhain_postamble(),
    ]


RECTANGULAR_POCKET = CycleTemplate(
    id="rectangular-pocket",
    name="Rectangular Pocket",
    description="Mill a rectangular pocket in step-down levels",
    schema=CycleParameterSchema("rectangular-pocket", [
        number("toolDiameter", "Tool Diameter", 10, 0.1, 100),
        number("width", "Pocket Width", 50, 1, 1000, description="Along X"),
        number("length", "Pocket Length", 80, 1, 1000, description="Along Y"),
        number("depth", "Depth", 15, 0.1, 1000),
        number("stepdown", "Z Increment", 5, 0.1, 100),
        number("stepover", "Stepover", 4, 0.1, 100),
        number("feedrate", "Feedrate", 800, 1, 10000, step=1, unit="mm/min"),
        number("plungeRate", "Plunge Feedrate", 300, 1, 10000, step=1, unit="mm/min"),
        number("spindleSpeed", "Spindle Speed", 3000, 1, 24000, step=100, unit="RPM"),
        number("cornerRadius", "Corner Radius", 5, 0, 100),
        number("finishAllowance", "Finish Allowance", 0.2, 0, 10, step=0.05),
    ]),
    builders={Dialect.FANUC: _rect_fanuc, Dialect.HEIDENHAIN: _rect_heidenhain},
)


# ---------------------------------------------------------------------------
# Circular pocket
# ---------------------------------------------------------------------------


def _ring(radius: float, feed: float, *, clockwise: bool = False) -> list[Instruction]:
    return [
        Linear(x=radius, y=0.0, feed=feed),
        Arc(x=radius, y=0.0, i=-radius, j=0.0, clockwise=clockwise, feed=feed),
    ]


def _circ_block(p: Params, cycle_id: str) -> list[Instruction]:
    tool_d = p["toolDiameter"]
    feed = p["feedrate"]
    entry_r = tool_d / 4.0
    clear_r = (p["pocketDiameter"] - tool_d) / 2.0 - p["finishAllowance"]
    finish_r = (p["pocketDiameter"] - tool_d) / 2.0
    rings = max(0, math.ceil(clear_r / p["stepover"] - 1e-9)) if clear_r > 0 else 0

    block: list[Instruction] = [Rapid(x=entry_r, y=0.0), Rapid(z=APPROACH_Z)]
    for k, depth in enumerate(pass_depths(cycle_id, p["depth"], p["stepdown"])):
        block.append(Comment(f"PASS {k + 1} - DEPTH: {fmt(depth)}MM"))
        if p["helicalEntrance"]:
            block.append(Arc(x=entry_r, y=0.0, i=-entry_r, j=0.0, clockwise=False,
                             z=-depth, feed=p["plungeRate"]))
        else:
            block.append(Linear(z=-depth, feed=p["plungeRate"]))
        for j in range(rings):
            block.extend(_ring(min((j + 1) * p["stepover"], clear_r), feed))
        block.append(Linear(x=entry_r, y=0.0, feed=feed))
    if finish_r > 0:
        block.append(Comment("SIDE FINISHING"))
        block.extend(_ring(finish_r, feed))
        block.append(Linear(x=0.0, y=0.0, feed=feed))
    block.append(Rapid(z=APPROACH_Z))
    return block


def _circ_details(p: Params) -> list[str]:
    return [f"DIAMETER: {fmt(p['pocketDiameter'])}MM, DEPTH: {fmt(p['depth'])}MM"]


def _circ_fanuc(p: Params, pos: tuple[Position, ...]) -> list[Instruction]:
    return [
        *fanuc_preamble("CIRCULAR POCKET CYCLE", _circ_details(p), pos,
                        [SpindleOn(p["spindleSpeed"])]),
        *at_each(_circ_block(p, "circular-pocket"), pos),
        *fanuc_postamble(),
    ]


def _circ_heidenhain(p: Params, pos: tuple[Position, ...]) -> list[Instruction]:
    params = [
        q(215, 0, "MACHINING OPERATION"),
        q(223, p["pocketDiameter"], "CIRCLE DIAMETER"),
        q(368, p["finishAllowance"], "ALLOWANCE FOR SIDE"),
        q(207, p["feedrate"], "FEED RATE FOR MILLING"),
        q(351, 1, "CLIMB OR UP-CUT", signed=True),
        q(201, -p["depth"], "DEPTH"),
        q(202, p["stepdown"], "PLUNGING DEPTH"),
        q(369, 0, "ALLOWANCE FOR FLOOR"),
        q(206, p["plungeRate"], "FEED RATE FOR PLNGNG"),
        q(338, 0, "INFEED FOR FINISHING"),
        *_common_q(),
        q(370, overlap_factor(p), "TOOL PATH OVERLAP"),
        q(366, 1 if p["helicalEntrance"] else 0, "PLUNGING"),
        q(385, p["feedrate"], "FINISHING FEED RATE"),
    ]
    return [
        *heidenhain_preamble("CIRCULAR POCKET CYCLE", _circ_details(p), p["spindleSpeed"]),
        *heidenhain_calls(252, "CIRCULAR POCKET", params, pos),
        *heidenhain_postamble(),
    ]


CIRCULAR_POCKET = CycleTemplate(
    id="circular-pocket",
    name="Circular Pocket",
    description="Mill a round pocket outward in rings, helical or straight entry",
    schema=CycleParameterSchema("circular-pocket", [
        number("toolDiameter", "Tool Diameter", 10, 0.1, 100),
        number("pocketDiameter", "Pocket Diameter", 80, 1, 1000),
        number("depth", "Depth", 15, 0.1, 1000),
        number("stepdown", "Z Increment", 5, 0.1, 100),
        number("stepover", "Stepover", 4, 0.1, 100),
        number("feedrate", "Feedrate", 800, 1, 10000, step=1, unit="mm/min"),
        number("plungeRate", "Plunge Feedrate", 300, 1, 10000, step=1, unit="mm/min"),
        number("spindleSpeed", "Spindle Speed", 3000, 1, 24000, step=100, unit="RPM"),
        number("finishAllowance", "Finish Allowance", 0.2, 0, 10, step=0.05),
        checkbox("helicalEntrance", "Helical Entrance", True),
    ]),
    builders={Dialect.FANUC: _circ_fanuc, Dialect.HEIDENHAIN: _circ_heidenhain},
)


# ---------------------------------------------------------------------------
# Circular island
# ---------------------------------------------------------------------------


def _island_block(p: Params, cycle_id: str) -> list[Instruction]:
    tool_d = p["toolDiameter"]
    feed = p["feedrate"]
    start_r = (p["stockDiameter"] + tool_d) / 2.0
    rough_r = (p["islandDiameter"] + tool_d) / 2.0 + p["finishAllowance"]
    final_r = (p["islandDiameter"] + tool_d) / 2.0
    radial = max(0.0, start_r - rough_r)
    steps = math.ceil(radial / p["stepover"] - 1e-9) if radial > 0 else 0

    block: list[Instruction] = [Rapid(x=start_r, y=0.0), Rapid(z=APPROACH_Z)]
    for k, depth in enumerate(pass_depths(cycle_id, p["depth"], p["stepdown"])):
        block.append(Comment(f"PASS {k + 1} - DEPTH: {fmt(depth)}MM"))
        block.append(Linear(z=-depth, feed=p["plungeRate"]))
        block.append(Arc(x=start_r, y=0.0, i=-start_r, j=0.0, clockwise=True, feed=feed))
        for j in range(1, steps + 1):
            block.extend(_ring(start_r - min(j * p["stepover"], radial), feed, clockwise=True))
        block.append(Linear(x=start_r, y=0.0, feed=feed))
    block.append(Comment("SIDE FINISHING"))
    block.extend(_ring(final_r, feed, clockwise=True))
    block.append(Linear(x=start_r, y=0.0, feed=feed))
    block.append(Rapid(z=APPROACH_Z))
    return block


def _island_details(p: Params) -> list[str]:
    return [f"ISLAND DIAMETER: {fmt(p['islandDiameter'])}MM, DEPTH: {fmt(p['depth'])}MM"]


def _island_fanuc(p: Params, pos: tuple[Position, ...]) -> list[Instruction]:
    return [
        *fanuc_preamble("CIRCULAR ISLAND CYCLE", _island_details(p), pos,
                        [SpindleOn(p["spindleSpeed"])]),
        *at_each(_island_block(p, "circular-island"), pos),
        *fanuc_postamble(),
    ]


def _island_heidenhain(p: Params, pos: tuple[Position, ...]) -> list[Instruction]:
    params = [
        q(223, p["islandDiameter"], "FINISHED PART DIA."),
        q(222, p["stockDiameter"], "WORKPIECE BLANK DIA."),
        q(368, p["finishAllowance"], "ALLOWANCE FOR SIDE"),
        q(207, p["feedrate"], "FEED RATE FOR MILLING"),
        q(351, 1, "CLIMB OR UP-CUT", signed=True),
        q(201, -p["depth"], "DEPTH"),
        q(202, p["stepdown"], "PLUNGING DEPTH"),
        q(206, p["plungeRate"], "FEED RATE FOR PLNGNG"),
        *_common_q(),
        q(370, overlap_factor(p), "TOOL PATH OVERLAP"),
        q(376, -1, "STARTING ANGLE", signed=True),
    ]
    return [
        *heidenhain_preamble("CIRCULAR ISLAND CYCLE", _island_details(p), p["spindleSpeed"]),
        *heidenhain_calls(257, "CIRCULAR STUD", params, pos),
        *heidenhain_postamble(),
    ]


CIRCULAR_ISLAND = CycleTemplate(
    id="circular-island",
    name="Circular Island",
    description="Mill stock down to a round stud, outside in",
    schema=CycleParameterSchema("circular-island", [
        number("toolDiameter", "Tool Diameter", 10, 0.1, 100),
        number("islandDiameter", "Island Diameter", 50, 1, 1000),
        number("stockDiameter", "Stock Diameter", 60, 1, 1000),
        number("depth", "Depth", 15, 0.1, 1000),
        number("stepdown", "Z Increment", 5, 0.1, 100),
        number("stepover", "Stepover", 4, 0.1, 100),
        number("feedrate", "Feedrate", 800, 1, 10000, step=1, unit="mm/min"),
        number("plungeRate", "Plunge Feedrate", 300, 1, 10000, step=1, unit="mm/min"),
        number("spindleSpeed", "Spindle Speed", 3000, 1, 24000, step=100, unit="RPM"),
        number("finishAllowance", "Finish Allowance", 0.2, 0, 10, step=0.05),
    ]),
    builders={Dialect.FANUC: _island_fanuc, Dialect.HEIDENHAIN: _island_heidenhain},
)


POCKET_CYCLES = (RECTANGULAR_POCKET, CIRCULAR_POCKET, CIRCULAR_ISLAND)
