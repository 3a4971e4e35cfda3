"""Default toolpath for shapes without a dedicated generator.

A composite is printed as the box that encloses its children (or its
declared envelope when it has none).  When that envelope cannot be derived
the synthesizer degrades to outlines of the composite's bounding box and
says so in the program, rather than aborting the job.
"""

from __future__ import annotations

import logging

from nc_core.configs.settings import ProcessSettings
from nc_core.errors import InvalidGeometryError, NCError, UnsupportedPrimitiveError
from nc_core.geometry.primitives import Composite
from nc_core.geometry.profiler import Envelope, profile
from nc_core.toolpath.slicing import BOX_INFILL_FACTOR, RectSection, SlicePlan

logger = logging.getLogger(__name__)


def children_envelope(composite: Composite) -> Envelope:
    """Union of the children's envelopes, all centred on the origin.

    Raises
    ------
    InvalidGeometryError
        If a child has no footprint.
    """
    envs = []
    for child in composite.children:
        env = profile(child)
        if env.size_x <= 0 or env.size_y <= 0:
            raise InvalidGeometryError(child.kind.value, "footprint", 0.0)
        envs.append(env)
    x = max(e.size_x for e in envs)
    y = max(e.size_y for e in envs)
    z = max(e.size_z for e in envs)
    return Envelope(x, y, z, sum(e.volume for e in envs), x, y, z)


def default_plan(composite: Composite, settings: ProcessSettings) -> SlicePlan:
    """Slice the composite as its enclosing box, shells and infill included."""
    env = children_envelope(composite) if composite.children else profile(composite)
    height = env.size_z if env.size_z > 0 else settings.flat_extrusion_height
    section = RectSection(env.size_x / 2.0, env.size_y / 2.0)
    return SlicePlan(
        composite.label, height, lambda z: section, BOX_INFILL_FACTOR,
        notes=(f"default toolpath for '{composite.label}'",),
    )


def bounding_box_plan(composite: Composite, reason: str) -> SlicePlan:
    """Single-perimeter outline of the declared bounding box.

    Raises
    ------
    UnsupportedPrimitiveError
        If even the declared bounding box is degenerate.
    """
    env = profile(composite)
    if env.size_x <= 0 or env.size_y <= 0 or env.size_z <= 0:
        raise UnsupportedPrimitiveError(composite.label, f"no usable envelope ({reason})")
    section = RectSection(env.size_x / 2.0, env.size_y / 2.0)
    return SlicePlan(
        composite.label, env.size_z, lambda z: section, BOX_INFILL_FACTOR,
        shells=1, infill=False,
        notes=(
            f"default toolpath for '{composite.label}' failed: {reason}",
            "printing bounding-box outline only",
        ),
    )


def plan_composite(composite: Composite, settings: ProcessSettings) -> SlicePlan:
    """Default plan, degrading to the bounding-box outline on failure."""
    try:
        return default_plan(composite, settings)
    except NCError as exc:
        logger.warning(
            "Default toolpath for '%s' failed (%s); degrading to bounding box",
            composite.label, exc,
        )
        return bounding_box_plan(composite, str(exc))
