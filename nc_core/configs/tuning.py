"""Derive effective settings for one part from its geometry and goals.

The synthesizer and the estimator both go through :func:`resolve`, so a
time/material estimate always describes the toolpath that would actually be
generated for the same inputs.

Auto-tuning rules (``Goals.auto_tune``):
    - layer height from print resolution; ``standard`` adapts to part size
      (<30 mm: 0.1, >150 mm: 0.3, otherwise height/100 within 0.12..0.2)
    - infill raised to 30 % for small volumes, capped at 15 % for large ones
    - at least 2 shells below 10 mm footprint, 3 above 100 mm
    - print speed 40 mm/s for curved solids, 60 for prismatic ones, else 50
    - minimal support for tall parts with overhangs

The objective is applied afterwards, with or without auto-tuning.
"""

from __future__ import annotations

import dataclasses
import logging
from typing import Any

from nc_core.configs.settings import (
    Goals,
    MAX_PRINT_SPEED,
    Objective,
    PrintOrientation,
    PrintResolution,
    ProcessSettings,
    SupportType,
)
from nc_core.geometry.primitives import (
    Box,
    Composite,
    Cone,
    Primitive,
    Rectangle,
    Sphere,
)
from nc_core.geometry.profiler import profile

logger = logging.getLogger(__name__)

SMALL_VOLUME_MM3 = 5_000.0
LARGE_VOLUME_MM3 = 50_000.0
MIN_LAYER_HEIGHT = 0.05


def _auto_tune(primitive: Primitive, settings: ProcessSettings) -> dict[str, Any]:
    env = profile(primitive)
    max_dim = max(env.size_x, env.size_y, env.size_z)
    max_footprint = max(env.size_x, env.size_y)

    if settings.print_resolution is PrintResolution.HIGH:
        layer_height = 0.1
    elif settings.print_resolution is PrintResolution.LOW:
        layer_height = 0.3
    elif max_dim < 30:
        layer_height = 0.1
    elif max_dim > 150:
        layer_height = 0.3
    else:
        layer_height = min(0.2, max(0.12, env.size_z / 100.0))

    infill = settings.infill_density
    if env.volume > LARGE_VOLUME_MM3:
        infill = min(infill, 15.0)
    elif env.volume < SMALL_VOLUME_MM3:
        infill = max(infill, 30.0)

    shells = settings.shell_count
    if max_footprint < 10:
        shells = max(2, shells)
    elif max_footprint > 100:
        shells = max(3, shells)

    if isinstance(primitive, (Sphere, Cone)):
        speed = 40.0
    elif isinstance(primitive, (Box, Rectangle)):
        speed = 60.0
    else:
        speed = 50.0

    support = settings.support_type
    overhangs = isinstance(primitive, (Sphere, Composite))
    if support is SupportType.NONE and overhangs and env.size_z > env.size_x / 2:
        support = SupportType.MINIMAL

    return {
        "layer_height": layer_height,
        "infill_density": infill,
        "shell_count": shells,
        "print_speed": speed,
        "support_type": support,
    }


def _apply_objective(values: dict[str, Any], objective: Objective) -> dict[str, Any]:
    out = dict(values)
    if objective is Objective.SPEED:
        out["layer_height"] = out["layer_height"] * 1.5
        out["infill_density"] = out["infill_density"] * 0.5
        out["print_speed"] = out["print_speed"] * 1.25
    elif objective is Objective.QUALITY:
        out["layer_height"] = out["layer_height"] * 0.5
        out["print_speed"] = out["print_speed"] * 0.75
    elif objective is Objective.STRENGTH:
        out["shell_count"] = min(20, out["shell_count"] + 1)
        out["infill_density"] = max(out["infill_density"], 40.0)
    return out


def _orient(primitive: Primitive, orientation: PrintOrientation) -> Primitive:
    """Lay a box on its largest face (smallest dimension vertical)."""
    if orientation is PrintOrientation.MINIMIZE_HEIGHT and isinstance(primitive, Box):
        x, y, z = sorted((primitive.width, primitive.height, primitive.depth), reverse=True)
        return dataclasses.replace(primitive, width=x, height=y, depth=z)
    return primitive


def resolve(
    primitive: Primitive,
    settings: ProcessSettings | None = None,
    goals: Goals | None = None,
) -> tuple[Primitive, ProcessSettings]:
    """Effective primitive orientation and settings for one part.

    Parameters
    ----------
    primitive : Primitive
        Part geometry.
    settings : ProcessSettings | None
        Base settings; ``None`` uses the model defaults.
    goals : Goals | None
        Optimisation goals; ``None`` takes *settings* verbatim.

    Returns
    -------
    tuple[Primitive, ProcessSettings]
    """
    settings = settings if settings is not None else ProcessSettings()
    goals = goals if goals is not None else Goals()

    primitive = _orient(primitive, settings.print_orientation)

    if not goals.auto_tune and goals.objective is Objective.BALANCED:
        return primitive, settings

    if goals.auto_tune:
        values = _auto_tune(primitive, settings)
    else:
        values = {
            "layer_height": settings.layer_height,
            "infill_density": settings.infill_density,
            "shell_count": settings.shell_count,
            "print_speed": settings.print_speed,
            "support_type": settings.support_type,
        }
    values = _apply_objective(values, goals.objective)

    values["layer_height"] = round(
        min(settings.nozzle_diameter, max(MIN_LAYER_HEIGHT, values["layer_height"])), 3
    )
    values["infill_density"] = round(min(100.0, values["infill_density"]), 1)
    values["print_speed"] = min(MAX_PRINT_SPEED, values["print_speed"])

    tuned = settings.with_updates(**values)
    logger.info(
        "Resolved settings for %s: layer %.3f mm, infill %.0f%%, %d shells, %.0f mm/s, support %s",
        primitive.kind.value, tuned.layer_height, tuned.infill_density,
        tuned.shell_count, tuned.print_speed, tuned.support_type.value,
    )
    return primitive, tuned
