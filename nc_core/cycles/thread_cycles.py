"""Threading cycles: rigid/floating tapping and helical thread milling.

Both derive the feed from the thread table::

    feed (mm/min) = spindle speed (rpm) * pitch (mm/rev)

so the tool advances exactly one pitch per revolution.  A size outside the
cycle's table raises :class:`~nc_core.errors.UnsupportedThreadSizeError`.
"""

from __future__ import annotations

import logging
import math

from nc_core.cycles.base import (
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
from nc_core.cycles.threads import (
    TAPPING_SIZES,
    THREAD_MILLING_SIZES,
    nominal_diameter,
    pitch_for,
)
from nc_core.dialects.emitter import Dialect
from nc_core.instructions.operations import (
    Arc,
    CannedCycle,
    Instruction,
    Linear,
    Rapid,
    RigidTapMode,
    SpindleOn,
)

logger = logging.getLogger(__name__)

# Floating-holder tapping dwells briefly at the bottom before reversing
FLOATING_TAP_DWELL_MS = 100
THREAD_MILL_APPROACH_FEED = 750.0
# Smallest helix radius emitted when the cutter nearly fills the thread
MIN_HELIX_RADIUS = 0.1


# ---------------------------------------------------------------------------
# Tapping
# ---------------------------------------------------------------------------


def _tap_details(p: Params, pitch: float) -> list[str]:
    return [f"DEPTH: {fmt(p['depth'])}MM, PITCH: {fmt(pitch)}MM"]


def _tap_fanuc(p: Params, pos: tuple[Position, ...]) -> list[Instruction]:
    pitch = pitch_for(p["threadSize"], TAPPING_SIZES)
    feed = p["spindleSpeed"] * pitch
    rigid = bool(p["rigidTapping"])
    spindle: list[Instruction] = (
        [RigidTapMode(p["spindleSpeed"])] if rigid else [SpindleOn(p["spindleSpeed"])]
    )
    cycle = CannedCycle(
        84, z=-p["depth"], r=p["retractHeight"], feed=feed,
        p_ms=None if rigid else FLOATING_TAP_DWELL_MS,
    )
    title = f"TAPPING CYCLE {p['threadSize']}" + (" RIGID" if rigid else "")
    return [
        *fanuc_preamble(title, _tap_details(p, pitch), pos, spindle),
        *fanuc_fixed_cycle(cycle, pos),
        *fanuc_postamble(),
    ]


def _tap_heidenhain(p: Params, pos: tuple[Position, ...]) -> list[Instruction]:
    pitch = pitch_for(p["threadSize"], TAPPING_SIZES)
    if p["rigidTapping"]:
        params = [
            q(200, p["retractHeight"], "SAFETY DISTANCE"),
            q(201, -p["depth"], "DEPTH OF THREAD"),
            q(239, pitch, "PITCH"),
            *surface_and_clearance(),
        ]
        number_, name = 207, "RIGID TAPPING NEW"
    else:
        params = [
            q(200, p["retractHeight"], "SAFETY DISTANCE"),
            q(201, -p["depth"], "DEPTH OF THREAD"),
            q(206, p["spindleSpeed"] * pitch, "FEED RATE FOR PLNGNG"),
            q(211, FLOATING_TAP_DWELL_MS / 1000.0, "DWELL TIME AT BOTTOM"),
            *surface_and_clearance(),
        ]
        number_, name = 206, "TAPPING NEW"
    return [
        *heidenhain_preamble(f"TAPPING CYCLE {p['threadSize']}", _tap_details(p, pitch),
                             p["spindleSpeed"]),
        *heidenhain_calls(number_, name, params, pos),
        *heidenhain_postamble(),
    ]


TAPPING = CycleTemplate(
    id="tapping-cycle",
    name="Tapping",
    description="Tap metric coarse threads, rigid or with a floating holder",
    schema=CycleParameterSchema("tapping-cycle", [
        select("threadSize", "Thread Size", "M8", TAPPING_SIZES),
        number("depth", "Depth", 20, 0.1, 1000),
        number("spindleSpeed", "Spindle Speed", 500, 1, 10000, step=10, unit="RPM"),
        checkbox("rigidTapping", "Rigid Tapping", True,
                 description="Synchronise feed and spindle (M29)"),
        number("retractHeight", "Retract Height", 5, 0.1, 100),
    ]),
    builders={Dialect.FANUC: _tap_fanuc, Dialect.HEIDENHAIN: _tap_heidenhain},
)


# ---------------------------------------------------------------------------
# Thread milling
# ---------------------------------------------------------------------------


def helix_radius(p: Params) -> float:
    """Radius of the cutter-centre helix.

    Internal threads are cut to the major diameter from inside, external
    threads to the minor diameter from outside.
    """
    major = nominal_diameter(p["threadSize"])
    tool_r = p["toolDiameter"] / 2.0
    if p["threadType"] == "external":
        radius = major / 2.0 - p["threadDepth"] + tool_r
    else:
        radius = major / 2.0 - tool_r
    if radius < MIN_HELIX_RADIUS:
        logger.warning(
            "Thread depth %s with cutter D%s leaves no helix for %s %s; "
            "radius limited to %s mm",
            fmt(p["threadDepth"]), fmt(p["toolDiameter"]), p["threadType"],
            p["threadSize"], MIN_HELIX_RADIUS,
        )
    return max(radius, MIN_HELIX_RADIUS)


def _helix(radius: float, depth: float, pitch: float, feed: float,
           clockwise: bool) -> list[Instruction]:
    """Full turns climbing one pitch each from ``-depth`` to the surface."""
    turns = max(1, math.ceil(depth / pitch - 1e-9))
    ops: list[Instruction] = []
    for k in range(turns):
        z = min(-depth + (k + 1) * pitch, 0.0)
        ops.append(Arc(x=radius, y=0.0, i=-radius, j=0.0, clockwise=clockwise, z=z, feed=feed))
    return ops


def _mill_details(p: Params, pitch: float) -> list[str]:
    return [f"{p['threadSize']} {p['threadType'].upper()}, PITCH: {fmt(pitch)}MM, "
            f"DEPTH: {fmt(p['depth'])}MM"]


def _mill_fanuc(p: Params, pos: tuple[Position, ...]) -> list[Instruction]:
    pitch = pitch_for(p["threadSize"], THREAD_MILLING_SIZES)
    feed = p["spindleSpeed"] * pitch
    r = helix_radius(p)
    depth = p["depth"]
    if p["threadType"] == "external":
        outside = r + p["toolDiameter"]
        block: list[Instruction] = [
            Rapid(x=outside, y=0.0),
            Rapid(z=p["retractHeight"]),
            Rapid(z=-depth),
            Linear(x=r, y=0.0, feed=feed),
            *_helix(r, depth, pitch, feed, clockwise=True),
            Linear(x=outside, y=0.0, feed=feed),
            Rapid(z=p["retractHeight"]),
        ]
    else:
        block = [
            Rapid(x=0.0, y=0.0),
            Rapid(z=p["retractHeight"]),
            Linear(z=-depth, feed=THREAD_MILL_APPROACH_FEED),
            Linear(x=r, y=0.0, feed=feed),
            *_helix(r, depth, pitch, feed, clockwise=False),
            Linear(x=0.0, y=0.0, feed=feed),
            Rapid(z=p["retractHeight"]),
        ]
    return [
        *fanuc_preamble("THREAD MILLING CYCLE", _mill_details(p, pitch), pos,
                        [SpindleOn(p["spindleSpeed"])]),
        *at_each(block, pos),
        *fanuc_postamble(),
    ]


def _mill_heidenhain(p: Params, pos: tuple[Position, ...]) -> list[Instruction]:
    pitch = pitch_for(p["threadSize"], THREAD_MILLING_SIZES)
    feed = p["spindleSpeed"] * pitch
    params = [
        q(335, nominal_diameter(p["threadSize"]), "NOMINAL DIAMETER"),
        q(239, pitch, "PITCH"),
        q(201, -p["depth"], "DEPTH OF THREAD"),
        q(355, 0, "THREADS PER STEP"),
        q(253, THREAD_MILL_APPROACH_FEED, "F PRE-POSITIONING"),
        q(351, 1, "CLIMB OR UP-CUT", signed=True),
        q(200, max(p["retractHeight"], SAFETY_DISTANCE), "SAFETY DISTANCE"),
        *surface_and_clearance(),
        q(207, feed, "FEED RATE FOR MILLING"),
    ]
    if p["threadType"] == "external":
        number_, name = 267, "OUTSIDE THREAD MILLING"
    else:
        number_, name = 262, "THREAD MILLING"
    return [
        *heidenhain_preamble("THREAD MILLING CYCLE", _mill_details(p, pitch), p["spindleSpeed"]),
        *heidenhain_calls(number_, name, params, pos),
        *heidenhain_postamble(),
    ]


THREAD_MILLING = CycleTemplate(
    id="thread-milling",
    name="Thread Milling",
    description="Helical interpolation of internal or external metric threads",
    schema=CycleParameterSchema("thread-milling", [
        select("threadSize", "Thread Size", "M16", THREAD_MILLING_SIZES),
        number("threadDepth", "Thread Depth", 1.2, 0.1, 10,
               description="Radial depth of the thread profile"),
        number("depth", "Depth", 20, 0.1, 1000),
        number("toolDiameter", "Tool Diameter", 8, 0.1, 100),
        select("threadType", "Thread Type", "internal", ("internal", "external")),
        number("spindleSpeed", "Spindle Speed", 1200, 1, 24000, step=100, unit="RPM"),
        number("retractHeight", "Retract Height", 5, 0.1, 100),
    ]),
    builders={Dialect.FANUC: _mill_fanuc, Dialect.HEIDENHAIN: _mill_heidenhain},
)


THREAD_CYCLES = (TAPPING, THREAD_MILLING)
