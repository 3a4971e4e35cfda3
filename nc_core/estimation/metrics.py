"""Measure an instruction stream: path lengths, run time, filament.

Walks the instructions once, tracking position, modal feed and extruder
position, so the numbers describe exactly the program that is emitted.
Used by the synthesizers (returned alongside the program text) and by the
cycle library for machining-time estimates.

Fixed cycles are approximated per hole as a feed plunge from the R plane
to the final depth and a rapid retract; pecking and dwell inside the cycle
are not modelled.
"""

from __future__ import annotations

import math
from collections.abc import Iterable
from dataclasses import dataclass

from nc_core.estimation.materials import density_for
from nc_core.instructions.operations import (
    Arc,
    CancelCycle,
    CannedCycle,
    CyclePosition,
    Dwell,
    Instruction,
    Linear,
    Rapid,
    ResetExtruder,
)


@dataclass(frozen=True, slots=True)
class ProgramMetrics:
    """Totals for one program.

    Parameters
    ----------
    time_minutes : float
        Motion time including dwells.
    feed_length : float
        Distance moved at feed (cutting or extruding), mm.
    travel_length : float
        Distance moved at rapid, mm.
    filament_length : float
        Net filament pushed through the nozzle, mm.
    material_grams : float
        Mass of *filament_length*.
    """

    time_minutes: float
    feed_length: float
    travel_length: float
    filament_length: float
    material_grams: float


def arc_length(start: tuple[float, float, float], arc: Arc) -> float:
    """Length of *arc* started at *start*, helix included."""
    x0, y0, z0 = start
    cx, cy = x0 + arc.i, y0 + arc.j
    r = arc.radius
    a0 = math.atan2(y0 - cy, x0 - cx)
    a1 = math.atan2(arc.y - cy, arc.x - cx)
    sweep = (a0 - a1) if arc.clockwise else (a1 - a0)
    sweep %= 2.0 * math.pi
    if math.isclose(sweep, 0.0, abs_tol=1e-9):
        sweep = 2.0 * math.pi
    planar = r * sweep
    dz = 0.0 if arc.z is None else arc.z - z0
    return math.hypot(planar, dz)


class _Tracker:
    def __init__(self, rapid_feed: float) -> None:
        self.rapid_feed = rapid_feed
        self.pos = (0.0, 0.0, 0.0)
        self.feed: float | None = None
        self.e = 0.0
        self.time = 0.0
        self.feed_length = 0.0
        self.travel_length = 0.0
        self.filament = 0.0
        self.cycle: CannedCycle | None = None

    def _target(self, x: float | None, y: float | None, z: float | None) -> tuple[float, float, float]:
        px, py, pz = self.pos
        return (
            px if x is None else x,
            py if y is None else y,
            pz if z is None else z,
        )

    def _feed(self, feed: float | None) -> float:
        if feed is not None:
            self.feed = feed
        return self.feed if self.feed else self.rapid_feed

    def _extrude(self, extrude: float | None) -> float:
        if extrude is None:
            return 0.0
        delta = extrude - self.e
        self.e = extrude
        self.filament += delta
        return abs(delta)

    def rapid(self, ins: Rapid) -> None:
        target = self._target(ins.x, ins.y, ins.z)
        d = math.dist(self.pos, target)
        rate = ins.feed if ins.feed else self.rapid_feed
        self.travel_length += d
        self.time += d / rate
        self.pos = target

    def linear(self, ins: Linear) -> None:
        target = self._target(ins.x, ins.y, ins.z)
        d = math.dist(self.pos, target)
        rate = self._feed(ins.feed)
        de = self._extrude(ins.extrude)
        self.feed_length += d
        # Extruder-only moves (retract/prime) take time too
        self.time += max(d, de) / rate
        self.pos = target

    def arc(self, ins: Arc) -> None:
        d = arc_length(self.pos, ins)
        rate = self._feed(ins.feed)
        self._extrude(ins.extrude)
        self.feed_length += d
        self.time += d / rate
        self.pos = self._target(ins.x, ins.y, ins.z)

    def hole(self, cycle: CannedCycle) -> None:
        plunge = max(0.0, cycle.r - cycle.z)
        self.feed_length += plunge
        self.travel_length += plunge
        self.time += plunge / cycle.feed + plunge / self.rapid_feed

    def move_to_hole(self, ins: CyclePosition) -> None:
        target = (ins.x, ins.y, self.pos[2])
        d = math.dist(self.pos, target)
        self.travel_length += d
        self.time += d / self.rapid_feed
        self.pos = target


def measure(
    instructions: Iterable[Instruction],
    *,
    rapid_feed: float = 5000.0,
    filament_diameter: float = 1.75,
    material: str = "plastic",
) -> ProgramMetrics:
    """Measure an instruction stream.

    Parameters
    ----------
    instructions : Iterable[Instruction]
        Program in execution order.
    rapid_feed : float
        Traverse rate (mm/min) for rapids without their own feed.
    filament_diameter : float
        Used to turn filament length into volume.
    material : str
        Material identifier for the density lookup.

    Returns
    -------
    ProgramMetrics
    """
    if rapid_feed <= 0:
        raise ValueError(f"rapid_feed must be > 0, got {rapid_feed}")

    t = _Tracker(rapid_feed)
    for ins in instructions:
        if isinstance(ins, Rapid):
            t.rapid(ins)
        elif isinstance(ins, Linear):
            t.linear(ins)
        elif isinstance(ins, Arc):
            t.arc(ins)
        elif isinstance(ins, Dwell):
            t.time += ins.seconds / 60.0
        elif isinstance(ins, ResetExtruder):
            t.e = ins.value
        elif isinstance(ins, CannedCycle):
            t.cycle = ins
            t.hole(ins)
        elif isinstance(ins, CyclePosition):
            t.move_to_hole(ins)
            if t.cycle is not None:
                t.hole(t.cycle)
        elif isinstance(ins, CancelCycle):
            t.cycle = None

    filament = max(0.0, t.filament)
    area = math.pi * (filament_diameter / 2.0) ** 2
    grams = filament * area / 1000.0 * density_for(material) if filament else 0.0
    return ProgramMetrics(
        time_minutes=t.time,
        feed_length=t.feed_length,
        travel_length=t.travel_length,
        filament_length=filament,
        material_grams=grams,
    )
