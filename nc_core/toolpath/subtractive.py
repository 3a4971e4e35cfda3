"""Subtractive toolpath synthesizer -- primitive footprint to a 2.5-D pocket.

The part's footprint is cut as a pocket from the top of the stock (Z=0)
down, one step-down level at a time.  Every level gets a lead-in plunge,
one contour pass offset by ``tool_radius + finish_allowance`` from the
boundary and a zig-zag clearing scan at ``stepover``.

Pocket shape per kind:
    box, rectangle   rectangular pocket (rectangle uses ``cut_depth``)
    cylinder, circle circular pocket (circle uses ``cut_depth``)
    cone             circular pocket narrowing linearly to the apex
    sphere           hemispherical cavity, level radius ``sqrt(r^2 - z^2)``
    polygon          n-gon contour, scan over the inscribed circle

Composites are rejected: an approximate outline is acceptable on a
printer but not as a cut.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Callable

from nc_core.configs.settings import ProcessSettings
from nc_core.dialects.emitter import Dialect, render, supports
from nc_core.errors import (
    InvalidGeometryError,
    UnsupportedInstructionForDialectError,
    UnsupportedPrimitiveError,
)
from nc_core.estimation.metrics import measure
from nc_core.geometry.primitives import (
    Box,
    Circle,
    Composite,
    Cone,
    Cylinder,
    Polygon,
    Primitive,
    Rectangle,
    Sphere,
    require_positive,
)
from nc_core.instructions.operations import (
    Arc,
    Comment,
    Coolant,
    Instruction,
    Linear,
    MetricUnits,
    PositioningMode,
    ProgramEnd,
    ProgramStart,
    Rapid,
    SpindleOn,
    SpindleStop,
    ToolChange,
    ToolLengthOffset,
)
from nc_core.toolpath import patterns
from nc_core.toolpath.program import DegenerateOffsetSkipped, LayerSummary, ToolpathProgram
from nc_core.toolpath.slicing import PolySection, RectSection, RoundSection, Section

logger = logging.getLogger(__name__)

PROGRAM_NUMBER = 1000


def pass_depths(total: float, step: float) -> list[float]:
    """Cumulative depths ``step, 2*step, ...`` ending exactly at *total*.

    Raises
    ------
    ValueError
        If *step* is not positive.
    """
    if step <= 0:
        raise ValueError(f"step must be > 0, got {step}")
    if total <= 0:
        return []
    count = math.ceil(total / step - 1e-9)
    return [min((i + 1) * step, total) for i in range(count)]


def _pocket(primitive: Primitive, settings: ProcessSettings) -> tuple[str, float, Callable[[float], Section]]:
    """(label, total depth, section at a given depth) for *primitive*."""
    cut = settings.cut_depth

    if isinstance(primitive, Box):
        require_positive("box", width=primitive.width, height=primitive.height,
                         depth=primitive.depth)
        rect = RectSection(primitive.width / 2.0, primitive.height / 2.0)
        return "box", primitive.depth, lambda d: rect
    if isinstance(primitive, Rectangle):
        require_positive("rectangle", width=primitive.width, height=primitive.height)
        rect = RectSection(primitive.width / 2.0, primitive.height / 2.0)
        return "rectangle", cut, lambda d: rect
    if isinstance(primitive, Cylinder):
        require_positive("cylinder", radius=primitive.radius, height=primitive.height)
        disc = RoundSection(primitive.radius)
        return "cylinder", primitive.height, lambda d: disc
    if isinstance(primitive, Circle):
        require_positive("circle", radius=primitive.radius)
        disc = RoundSection(primitive.radius)
        return "circle", cut, lambda d: disc
    if isinstance(primitive, Cone):
        require_positive("cone", radius=primitive.radius, height=primitive.height)
        r, h = primitive.radius, primitive.height
        return "cone", h, lambda d: RoundSection(max(0.0, r * (1.0 - d / h)))
    if isinstance(primitive, Sphere):
        require_positive("sphere", radius=primitive.radius)
        r = primitive.radius
        return "sphere", r, lambda d: RoundSection(math.sqrt(max(0.0, r * r - d * d)))
    if isinstance(primitive, Polygon):
        require_positive("polygon", radius=primitive.radius)
        if primitive.sides < 3:
            raise InvalidGeometryError("polygon", "sides", primitive.sides)
        poly = PolySection(primitive.radius, primitive.sides)
        return "polygon", cut, lambda d: poly
    if isinstance(primitive, Composite):
        raise UnsupportedPrimitiveError(primitive.label, "composites cannot be milled")
    raise UnsupportedPrimitiveError(type(primitive).__name__, "not a primitive")


# ---------------------------------------------------------------------------
# One depth level
# ---------------------------------------------------------------------------


def _contour_and_scan(
    section: Section, offset: float, stepover: float,
) -> tuple[list[patterns.Point] | float, list[patterns.Segment], float]:
    """(contour loop or circle radius, clearing scan, remaining size)."""
    if isinstance(section, RectSection):
        hw, hh = section.half_w - offset, section.half_h - offset
        size = min(hw, hh)
        if size <= 0:
            return [], [], size
        scan = patterns.rect_scan(hw, hh, stepover, serpentine=True, covering=True)
        return patterns.rectangle_loop(hw, hh), scan, size
    if isinstance(section, RoundSection):
        size = section.radius - offset
        if size <= 0:
            return [], [], size
        return size, patterns.circle_scan(size, stepover, serpentine=True, covering=True), size
    size = patterns.polygon_offset_radius(section.radius, section.sides, offset)
    if size <= 0:
        return [], [], size
    inscribed = size * math.cos(math.pi / section.sides)
    scan = patterns.circle_scan(inscribed, stepover, serpentine=True, covering=True)
    return patterns.polygon_loop(size, section.sides), scan, size


def _level(
    ops: list[Instruction], index: int, depth: float, section: Section,
    settings: ProcessSettings, skipped: list[DegenerateOffsetSkipped],
) -> LayerSummary:
    offset = settings.tool_radius + settings.finish_allowance
    contour, scan, size = _contour_and_scan(section, offset, settings.stepover)
    if size <= 0:
        record = DegenerateOffsetSkipped(index, "contour", size, "pocket narrower than the tool")
        logger.debug("Level %d (Z-%.3f): %s", index, depth, record.reason)
        skipped.append(record)
        return LayerSummary(index, -depth, 0, 0, "none")

    feed = settings.feed_rate
    ops.append(Comment(f"Level {index + 1} Z-{depth:g}"))
    if isinstance(contour, float):
        start = (contour, 0.0)
    else:
        start = contour[0]
    # Lead-in: position above the contour start, plunge at plunge rate
    ops.append(Rapid(x=start[0], y=start[1]))
    ops.append(Rapid(z=settings.safe_z))
    ops.append(Linear(z=-depth, feed=settings.plunge_rate))
    if isinstance(contour, float):
        ops.append(Arc(x=contour, y=0.0, i=-contour, j=0.0, clockwise=False, feed=feed))
    else:
        ops.extend(Linear(x=p[0], y=p[1], feed=feed) for p in contour[1:])

    for a, b in scan:
        ops.append(Linear(x=a[0], y=a[1], feed=feed))
        ops.append(Linear(x=b[0], y=b[1], feed=feed))
    ops.append(Rapid(z=settings.safe_z))
    return LayerSummary(index, -depth, 1, len(scan), "zigzag")


# ---------------------------------------------------------------------------
# Program frame
# ---------------------------------------------------------------------------


def _preamble(label: str, total: float, settings: ProcessSettings, d: Dialect) -> list[Instruction]:
    info = [
        Comment(f"{label} pocket depth {total:g} mm"),
        Comment(f"Tool D{settings.tool_diameter:g} stepdown {settings.stepdown:g} "
                f"stepover {settings.stepover:g}"),
    ]
    if d is Dialect.HEIDENHAIN:
        return [
            ProgramStart(PROGRAM_NUMBER, label),
            *info,
            ToolChange(settings.tool_number, settings.spindle_speed),
            Rapid(z=settings.clearance_z, aux=3),
        ]
    return [
        ProgramStart(PROGRAM_NUMBER, label),
        *info,
        MetricUnits(),
        PositioningMode(absolute=True, work_offset=54),
        ToolChange(settings.tool_number),
        SpindleOn(settings.spindle_speed),
        ToolLengthOffset(settings.clearance_z, max(1, settings.tool_number)),
        Coolant(True),
    ]


def _postamble(label: str, settings: ProcessSettings, d: Dialect) -> list[Instruction]:
    if d is Dialect.HEIDENHAIN:
        return [Rapid(z=settings.clearance_z), SpindleStop(), ProgramEnd(PROGRAM_NUMBER, label)]
    return [
        Rapid(z=settings.clearance_z),
        Coolant(False),
        SpindleStop(),
        ProgramEnd(PROGRAM_NUMBER, label),
    ]


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def synthesize_milling(
    primitive: Primitive,
    settings: ProcessSettings | None = None,
    dialect: Dialect | str = Dialect.FANUC,
) -> ToolpathProgram:
    """Generate a pocketing program for *primitive*'s footprint.

    Parameters
    ----------
    primitive : Primitive
        Pocket geometry, centred on the XY origin; Z=0 is the stock top.
    settings : ProcessSettings | None
        Milling settings; ``None`` uses the defaults.
    dialect : Dialect | str
        ``fanuc`` or ``heidenhain``.

    Raises
    ------
    InvalidGeometryError
        If a required dimension is missing or non-positive.
    UnsupportedPrimitiveError
        For composites.
    UnsupportedInstructionForDialectError
        For dialects without spindle control (Marlin).
    """
    d = Dialect.parse(dialect)
    if not supports(SpindleStop, d):
        raise UnsupportedInstructionForDialectError("SpindleStop", d.value)
    settings = settings or ProcessSettings()
    label, total, section_at = _pocket(primitive, settings)

    ops = _preamble(label, total, settings, d)
    summaries: list[LayerSummary] = []
    skipped: list[DegenerateOffsetSkipped] = []
    for index, depth in enumerate(pass_depths(total, settings.stepdown)):
        summaries.append(_level(ops, index, depth, section_at(depth), settings, skipped))
    ops.extend(_postamble(label, settings, d))

    text = render(ops, d)
    metrics = measure(ops, rapid_feed=settings.rapid_feed)
    logger.info(
        "Milled %s in %s: %d levels, %d skipped, %.1f min",
        label, d.value, len(summaries), len(skipped), metrics.time_minutes,
    )
    return ToolpathProgram(
        dialect=d,
        instructions=tuple(ops),
        text=text,
        metrics=metrics,
        layers=tuple(summaries),
        skipped=tuple(skipped),
    )
