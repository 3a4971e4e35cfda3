"""Additive toolpath synthesizer -- primitive to layered printer program.

Slices the part into layers, prints ``shell_count`` perimeters per layer
and fills the interior according to the infill pattern.  Output is Marlin
firmware G-code; the same instruction stream is measured for time and
filament so the estimate matches the program byte for byte.

Extrusion convention:
    Absolute extruder mode (``M82``).  The extruder is reset (``G92 E0``)
    at every layer and each move carries the cumulative E value within its
    layer::

        E per mm = (width * layer_height) / (pi * (filament_diameter / 2)^2)

Feed rate convention:
    Settings store printer speeds in **mm/s**; they are converted to the
    ``F`` word (mm/min) here.

Idempotence:
    No timestamps or other run-dependent data are written, so identical
    inputs give identical text.
"""

from __future__ import annotations

import logging
import math

from nc_core.configs.settings import Goals, InfillPattern, ProcessSettings
from nc_core.configs.tuning import resolve
from nc_core.dialects.numbers import COORD_DIGITS
from nc_core.dialects.emitter import Dialect, render
from nc_core.errors import UnsupportedPrimitiveError
from nc_core.estimation.metrics import measure
from nc_core.geometry.primitives import Composite, Primitive, PRIMITIVE_TYPES
from nc_core.geometry.profiler import profile
from nc_core.instructions.operations import (
    Arc,
    Comment,
    DisableMotors,
    ExtruderAbsolute,
    Home,
    Instruction,
    Linear,
    MetricUnits,
    PositioningMode,
    Rapid,
    ResetExtruder,
    SetBedTemperature,
    SetHotendTemperature,
)
from nc_core.toolpath import patterns
from nc_core.toolpath.fallback import plan_composite
from nc_core.toolpath.program import DegenerateOffsetSkipped, LayerSummary, ToolpathProgram
from nc_core.toolpath.slicing import (
    PolySection,
    RectSection,
    RoundSection,
    Section,
    SlicePlan,
    layer_count,
    plan_solid,
)

logger = logging.getLogger(__name__)

PRIME_LENGTH = 5.0
PRIME_FEED = 1800.0
FIRST_LAYER_APPROACH_Z = 0.3
LIFT_Z = 5.0
LIFT_FEED = 5000.0
PRESENT_Y = 200.0
PARK_CLEARANCE = 10.0
# Passes smaller than this round to a point in the output
MIN_PASS_SIZE = 0.5 * 10.0 ** -COORD_DIGITS


def extrusion_per_mm(settings: ProcessSettings) -> float:
    """Filament length per mm of printed path."""
    filament_area = math.pi * (settings.filament_diameter / 2.0) ** 2
    return settings.extrusion_width * settings.layer_height / filament_area


def infill_spacing(settings: ProcessSettings, factor: float) -> float:
    """Distance between infill lines; ``inf`` when infill is off."""
    if settings.infill_density <= 0:
        return math.inf
    return settings.extrusion_width * (100.0 / settings.infill_density) * factor


def radial_spoke_count(infill_density: float) -> int:
    return max(8, math.floor(infill_density / 5.0) * 2)


# ---------------------------------------------------------------------------
# Layer writer
# ---------------------------------------------------------------------------


class _LayerWriter:
    """Accumulates moves and the running E value for the current layer."""

    def __init__(self, settings: ProcessSettings) -> None:
        self.per_mm = extrusion_per_mm(settings)
        self.print_feed = settings.print_speed * 60.0
        self.travel_feed = settings.travel_speed * 60.0
        self.ops: list[Instruction] = []
        self.e = 0.0

    def start_layer(self, index: int, z: float) -> None:
        self.ops.append(Comment(f"LAYER:{index} Z:{z:.3f}"))
        self.ops.append(Rapid(z=z, feed=self.travel_feed))
        self.ops.append(ResetExtruder(0.0))
        self.e = 0.0

    def travel(self, p: patterns.Point) -> None:
        self.ops.append(Rapid(x=p[0], y=p[1], feed=self.travel_feed))

    def extrude_to(self, p: patterns.Point, length: float) -> None:
        self.e += self.per_mm * length
        self.ops.append(Linear(x=p[0], y=p[1], extrude=self.e, feed=self.print_feed))

    def loop(self, points: list[patterns.Point]) -> None:
        """Closed polyline; each segment extrudes its own length."""
        self.travel(points[0])
        for a, b in zip(points, points[1:]):
            self.extrude_to(b, math.dist(a, b))

    def circle(self, radius: float) -> None:
        self.travel((radius, 0.0))
        self.e += self.per_mm * 2.0 * math.pi * radius
        self.ops.append(Arc(
            x=radius, y=0.0, i=-radius, j=0.0, clockwise=True,
            extrude=self.e, feed=self.print_feed,
        ))

    def segments(self, segs: list[patterns.Segment]) -> int:
        for a, b in segs:
            self.travel(a)
            self.extrude_to(b, math.dist(a, b))
        return len(segs)


# ---------------------------------------------------------------------------
# Shells and infill per section family
# ---------------------------------------------------------------------------


def _shells(
    w: _LayerWriter, section: Section, count: int, width: float,
    index: int, skipped: list[DegenerateOffsetSkipped],
) -> int:
    printed = 0
    for s in range(count):
        offset = s * width
        if isinstance(section, RectSection):
            hw, hh = section.half_w - offset, section.half_h - offset
            size = min(hw, hh)
            if size >= MIN_PASS_SIZE:
                w.loop(patterns.rectangle_loop(hw, hh))
        elif isinstance(section, RoundSection):
            size = section.radius - offset
            if size >= MIN_PASS_SIZE:
                w.circle(size)
        else:
            size = patterns.polygon_offset_radius(section.radius, section.sides, offset)
            if size >= MIN_PASS_SIZE:
                w.loop(patterns.polygon_loop(size, section.sides))
        if size < MIN_PASS_SIZE:
            _skip(skipped, index, "shell", size, f"shell {s} offset {offset:.3f} collapses")
            continue
        printed += 1
    return printed


def _inner_radius(section: RoundSection | PolySection, inset: float) -> float:
    if isinstance(section, PolySection):
        # Inscribed circle of the innermost shell
        return section.radius * math.cos(math.pi / section.sides) - inset
    return section.radius - inset


def _infill(
    w: _LayerWriter, section: Section, settings: ProcessSettings, spacing: float,
    shells: int, index: int, skipped: list[DegenerateOffsetSkipped],
) -> tuple[int, str]:
    """Fill the region inside the shells; returns (passes, pattern label)."""
    inset = shells * settings.extrusion_width
    pattern = settings.infill_pattern
    even = index % 2 == 0

    if isinstance(section, RoundSection) and section.radius <= section.min_infill_radius:
        _skip(skipped, index, "infill", section.radius, "layer radius below infill threshold")
        return 0, "none"

    if isinstance(section, RectSection):
        hw, hh = section.half_w - inset, section.half_h - inset
        if min(hw, hh) < MIN_PASS_SIZE:
            _skip(skipped, index, "infill", min(hw, hh), "no room inside shells")
            return 0, "none"
        if pattern is InfillPattern.CONCENTRIC:
            count = 0
            k = 0
            while min(hw - k * spacing, hh - k * spacing) >= MIN_PASS_SIZE:
                w.loop(patterns.rectangle_loop(hw - k * spacing, hh - k * spacing))
                count += 1
                k += 1
            return count, "concentric"
        if pattern is InfillPattern.GRID:
            n = w.segments(patterns.rect_scan(hw, hh, spacing * 2.0, horizontal=True))
            n += w.segments(patterns.rect_scan(hw, hh, spacing * 2.0, horizontal=False))
            return n, "grid"
        segs = patterns.rect_scan(hw, hh, spacing, horizontal=even)
        return w.segments(segs), "horizontal" if even else "vertical"

    radius = _inner_radius(section, inset)
    if radius < MIN_PASS_SIZE:
        _skip(skipped, index, "infill", radius, "no room inside shells")
        return 0, "none"
    if pattern is InfillPattern.CONCENTRIC:
        count = 0
        r = radius
        while r >= MIN_PASS_SIZE:
            w.circle(r)
            count += 1
            r -= spacing
        if r > 0:
            _skip(skipped, index, "infill", r, "ring below output resolution")
        return count, "concentric"
    if pattern is InfillPattern.GRID:
        n = w.segments(patterns.circle_scan(radius, spacing * 2.0, horizontal=True))
        n += w.segments(patterns.circle_scan(radius, spacing * 2.0, horizontal=False))
        return n, "grid"
    if not even and isinstance(section, RoundSection) and section.radial:
        spokes = patterns.radial_spokes(radius, radial_spoke_count(settings.infill_density))
        return w.segments(spokes), "radial"
    segs = patterns.circle_scan(radius, spacing, horizontal=even)
    return w.segments(segs), "horizontal" if even else "vertical"


def _skip(
    skipped: list[DegenerateOffsetSkipped], layer: int, kind: str, value: float, reason: str,
) -> None:
    record = DegenerateOffsetSkipped(layer, kind, value, reason)
    logger.debug("Layer %d: skipped %s pass (%s, value %.4f)", layer, kind, reason, value)
    skipped.append(record)


# ---------------------------------------------------------------------------
# Program frame
# ---------------------------------------------------------------------------


def _header(plan: SlicePlan, settings: ProcessSettings, layers: int, dims: str) -> list[Instruction]:
    ops: list[Instruction] = [
        Comment(f"{plan.label} toolpath"),
        Comment(f"Material: {settings.material}"),
        Comment(f"Dimensions: {dims} mm"),
        Comment(f"Layer height: {settings.layer_height:.3f} mm, layers: {layers}"),
        Comment(
            f"Infill: {settings.infill_density:g}% {settings.infill_pattern.value}, "
            f"shells: {plan.shells if plan.shells is not None else settings.shell_count}, "
            f"support: {settings.support_type.value}"
        ),
    ]
    ops.extend(Comment(note) for note in plan.notes)
    return ops


def _start(settings: ProcessSettings) -> list[Instruction]:
    travel = settings.travel_speed * 60.0
    return [
        ExtruderAbsolute(),
        MetricUnits(),
        PositioningMode(absolute=True),
        SetHotendTemperature(settings.print_temperature),
        SetBedTemperature(settings.bed_temperature),
        SetHotendTemperature(settings.print_temperature, wait=True),
        SetBedTemperature(settings.bed_temperature, wait=True),
        Home(),
        Rapid(z=LIFT_Z, feed=LIFT_FEED),
        Rapid(x=0.0, y=0.0, z=FIRST_LAYER_APPROACH_Z, feed=travel),
        Linear(extrude=PRIME_LENGTH, feed=PRIME_FEED),
        ResetExtruder(0.0),
    ]


def _end(settings: ProcessSettings, top_z: float) -> list[Instruction]:
    travel = settings.travel_speed * 60.0
    return [
        ResetExtruder(0.0),
        Linear(extrude=-settings.retract_length, feed=settings.retract_speed * 60.0),
        Rapid(z=top_z + PARK_CLEARANCE, feed=travel),
        Rapid(x=0.0, y=PRESENT_Y, feed=travel),
        SetHotendTemperature(0.0),
        SetBedTemperature(0.0),
        DisableMotors(),
    ]


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def plan_for(primitive: Primitive, settings: ProcessSettings) -> SlicePlan:
    """Slice plan for any primitive, composites via the default toolpath.

    Raises
    ------
    InvalidGeometryError
        If a solid or flat shape has a non-positive required dimension.
    UnsupportedPrimitiveError
        If *primitive* is not a primitive, or a composite has no usable
        envelope at all.
    """
    if not isinstance(primitive, PRIMITIVE_TYPES):
        raise UnsupportedPrimitiveError(type(primitive).__name__, "not a primitive")
    if isinstance(primitive, Composite):
        return plan_composite(primitive, settings)
    return plan_solid(primitive, settings)


def synthesize(
    primitive: Primitive,
    settings: ProcessSettings | None = None,
    goals: Goals | None = None,
) -> ToolpathProgram:
    """Generate a layered printer program for *primitive*.

    Parameters
    ----------
    primitive : Primitive
        Part geometry, centred on the XY origin, standing on Z=0.
    settings : ProcessSettings | None
        Process settings; ``None`` uses the defaults.
    goals : Goals | None
        Auto-tuning goals applied before slicing.

    Returns
    -------
    ToolpathProgram
        Marlin program text, its instructions, per-layer summaries, skipped
        degenerate passes and measured metrics.

    Raises
    ------
    InvalidGeometryError
        If a required dimension is missing or non-positive.
    UnsupportedPrimitiveError
        If no generator or fallback can handle *primitive*.
    """
    primitive, settings = resolve(primitive, settings, goals)
    plan = plan_for(primitive, settings)

    env = profile(primitive)
    dims = f"{env.width:g} x {env.height:g} x {env.depth:g}"
    n_layers = layer_count(plan.height, settings.layer_height)
    shells = plan.shells if plan.shells is not None else settings.shell_count
    spacing = infill_spacing(settings, plan.infill_factor)
    do_infill = plan.infill and math.isfinite(spacing)

    writer = _LayerWriter(settings)
    summaries: list[LayerSummary] = []
    skipped: list[DegenerateOffsetSkipped] = []

    for index in range(n_layers):
        z = settings.layer_height * (index + 1)
        section = plan.section_at(z)
        if section.size <= 0:
            writer.ops.append(Comment(f"LAYER:{index} Z:{z:.3f} empty"))
            _skip(skipped, index, "layer", section.size, "cross-section vanishes")
            summaries.append(LayerSummary(index, z, 0, 0, "none"))
            continue

        writer.start_layer(index, z)
        shell_passes = _shells(writer, section, shells, settings.extrusion_width, index, skipped)
        infill_passes, label = 0, "none"
        if do_infill:
            infill_passes, label = _infill(
                writer, section, settings, spacing, shells, index, skipped,
            )
        summaries.append(LayerSummary(index, z, shell_passes, infill_passes, label))

    top_z = settings.layer_height * n_layers
    instructions = (
        _header(plan, settings, n_layers, dims)
        + _start(settings)
        + writer.ops
        + _end(settings, top_z)
    )
    text = render(instructions, Dialect.MARLIN)
    metrics = measure(
        instructions,
        rapid_feed=settings.travel_speed * 60.0,
        filament_diameter=settings.filament_diameter,
        material=settings.material,
    )
    logger.info(
        "Synthesized %s: %d layers, %d skipped passes, %.1f min, %.1f g",
        plan.label, n_layers, len(skipped), metrics.time_minutes, metrics.material_grams,
    )
    return ToolpathProgram(
        dialect=Dialect.MARLIN,
        instructions=tuple(instructions),
        text=text,
        metrics=metrics,
        layers=tuple(summaries),
        skipped=tuple(skipped),
    )
