"""Closed-form print time and material estimates.

Quick figures from the envelope alone, without synthesizing a toolpath.
Both estimates go through :func:`nc_core.configs.tuning.resolve` first so
they describe the same settings the synthesizer would use.

Time (minutes)::

    layers     = ceil(size_z / layer_height)
    perimeter  = 2 (size_x + size_y) * shells * layers       at print speed
    infill     = footprint * density / width * layers         at 1.5x speed
    support    = footprint * support_factor / width * layers  at 2x speed
    total      = 1.2 * sum, rounded to 0.1, never below 10

Material (grams)::

    shell   = min(volume, bbox_surface * shells * width)
    infill  = (volume - shell) * density
    support = volume * support_fraction
    grams   = (shell + infill + support) / 1000 * density_factor,
              rounded to 0.1, never below 1
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass

from nc_core.configs.settings import Goals, ProcessSettings, SupportType
from nc_core.configs.tuning import resolve
from nc_core.estimation.materials import density_for
from nc_core.geometry.primitives import Primitive
from nc_core.geometry.profiler import profile

logger = logging.getLogger(__name__)

MIN_PRINT_MINUTES = 10.0
MIN_MATERIAL_GRAMS = 1.0
OVERHEAD_FACTOR = 1.2
INFILL_SPEED_FACTOR = 1.5
SUPPORT_SPEED_FACTOR = 2.0

SUPPORT_TIME_FACTOR = {
    SupportType.NONE: 0.0,
    SupportType.MINIMAL: 0.2,
    SupportType.FULL: 0.4,
}
SUPPORT_MATERIAL_FRACTION = {
    SupportType.NONE: 0.0,
    SupportType.MINIMAL: 0.15,
    SupportType.FULL: 0.3,
}


@dataclass(frozen=True, slots=True)
class EstimationResult:
    time_minutes: float
    material_grams: float


def _layer_count(size_z: float, layer_height: float) -> int:
    if size_z <= 0:
        return 0
    return max(1, math.ceil(size_z / layer_height - 1e-9))


def estimate_time(
    primitive: Primitive,
    settings: ProcessSettings | None = None,
    goals: Goals | None = None,
) -> float:
    """Approximate print time in minutes (at least 10)."""
    primitive, s = resolve(primitive, settings, goals)
    env = profile(primitive)
    layers = _layer_count(env.size_z, s.layer_height)
    speed = s.print_speed * 60.0
    width = s.extrusion_width

    perimeter = 2.0 * (env.size_x + env.size_y) * s.shell_count * layers
    infill = env.footprint_area * (s.infill_density / 100.0) / width * layers
    support = env.footprint_area * SUPPORT_TIME_FACTOR[s.support_type] / width * layers

    minutes = (
        perimeter / speed
        + infill / (speed * INFILL_SPEED_FACTOR)
        + support / (speed * SUPPORT_SPEED_FACTOR)
    ) * OVERHEAD_FACTOR
    return max(MIN_PRINT_MINUTES, round(minutes, 1))


def estimate_material(
    primitive: Primitive,
    settings: ProcessSettings | None = None,
    goals: Goals | None = None,
) -> float:
    """Approximate material mass in grams (at least 1)."""
    primitive, s = resolve(primitive, settings, goals)
    env = profile(primitive)

    shell = min(env.volume, env.surface_area * s.shell_count * s.extrusion_width)
    infill = (env.volume - shell) * (s.infill_density / 100.0)
    support = env.volume * SUPPORT_MATERIAL_FRACTION[s.support_type]
    grams = (shell + infill + support) / 1000.0 * density_for(s.material)
    return max(MIN_MATERIAL_GRAMS, round(grams, 1))


def estimate(
    primitive: Primitive,
    settings: ProcessSettings | None = None,
    goals: Goals | None = None,
) -> EstimationResult:
    """Both estimates for one part."""
    result = EstimationResult(
        time_minutes=estimate_time(primitive, settings, goals),
        material_grams=estimate_material(primitive, settings, goals),
    )
    logger.debug(
        "Estimate for %s: %.1f min, %.1f g",
        primitive.kind.value, result.time_minutes, result.material_grams,
    )
    return result
