"""Slice primitives into per-layer cross-sections.

A :class:`SlicePlan` says how tall the part is and what its cross-section
looks like at a given Z.  The additive synthesizer turns each section into
shells and infill without knowing which primitive produced it.

Sections:
    ``RectSection``   box-like (box, rectangle, composite envelope)
    ``RoundSection``  circular (cylinder, cone, sphere, circle)
    ``PolySection``   regular polygon
"""

from __future__ import annotations

import math
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Union

from nc_core.configs.settings import ProcessSettings
from nc_core.errors import InvalidGeometryError, UnsupportedPrimitiveError
from nc_core.geometry.primitives import (
    Box,
    Circle,
    Cone,
    Cylinder,
    Polygon,
    Primitive,
    Rectangle,
    Sphere,
    require_positive,
)

# Infill spacing multiplier: spacing = width * (100 / density) * factor
BOX_INFILL_FACTOR = 5.0
ROUND_INFILL_FACTOR = 3.0
# Sphere layers narrower than this many extrusion widths get no infill
SPHERE_INFILL_MIN_WIDTHS = 3.0


@dataclass(frozen=True, slots=True)
class RectSection:
    half_w: float
    half_h: float

    @property
    def size(self) -> float:
        return min(self.half_w, self.half_h)


@dataclass(frozen=True, slots=True)
class RoundSection:
    """Circular cross-section.

    Parameters
    ----------
    radius : float
        Outline radius at this layer.
    radial : bool
        Odd layers use radial spokes instead of vertical chords.
    min_infill_radius : float
        Infill is suppressed when ``radius`` does not exceed this.
    """

    radius: float
    radial: bool = False
    min_infill_radius: float = 0.0

    @property
    def size(self) -> float:
        return self.radius


@dataclass(frozen=True, slots=True)
class PolySection:
    radius: float
    sides: int

    @property
    def size(self) -> float:
        return self.radius


Section = Union[RectSection, RoundSection, PolySection]


@dataclass(frozen=True, slots=True)
class SlicePlan:
    """How to slice one part.

    Parameters
    ----------
    label : str
        Shape name used in program comments.
    height : float
        Build height (Z extent).
    section_at : Callable[[float], Section]
        Cross-section at the top of a layer.
    infill_factor : float
        Spacing multiplier for this section family.
    shells : int | None
        Override for the configured shell count.
    infill : bool
        ``False`` prints outlines only.
    notes : tuple[str, ...]
        Diagnostics embedded in the program header.
    """

    label: str
    height: float
    section_at: Callable[[float], Section]
    infill_factor: float
    shells: int | None = None
    infill: bool = True
    notes: tuple[str, ...] = field(default=())


def layer_count(height: float, layer_height: float) -> int:
    """``ceil(height / layer_height)``, tolerant to float noise."""
    if height <= 0:
        return 0
    return max(1, math.ceil(height / layer_height - 1e-9))


def sphere_radius_at(radius: float, z: float) -> float:
    """Radius of the sphere's cross-section at height *z* above its bottom."""
    return math.sqrt(max(0.0, radius * radius - (z - radius) ** 2))


def plan_solid(primitive: Primitive, settings: ProcessSettings) -> SlicePlan:
    """Slice plan for every kind except composites.

    Raises
    ------
    InvalidGeometryError
        If a required dimension is missing or non-positive.
    UnsupportedPrimitiveError
        For composites and non-primitives.
    """
    flat_h = settings.flat_extrusion_height

    if isinstance(primitive, Box):
        require_positive("box", width=primitive.width, height=primitive.height,
                         depth=primitive.depth)
        section = RectSection(primitive.width / 2.0, primitive.height / 2.0)
        return SlicePlan("box", primitive.depth, lambda z: section, BOX_INFILL_FACTOR)

    if isinstance(primitive, Rectangle):
        require_positive("rectangle", width=primitive.width, height=primitive.height)
        section = RectSection(primitive.width / 2.0, primitive.height / 2.0)
        return SlicePlan("rectangle", flat_h, lambda z: section, BOX_INFILL_FACTOR)

    if isinstance(primitive, Cylinder):
        require_positive("cylinder", radius=primitive.radius, height=primitive.height)
        round_section = RoundSection(primitive.radius)
        return SlicePlan("cylinder", primitive.height, lambda z: round_section,
                         ROUND_INFILL_FACTOR)

    if isinstance(primitive, Circle):
        require_positive("circle", radius=primitive.radius)
        round_section = RoundSection(primitive.radius)
        return SlicePlan("circle", flat_h, lambda z: round_section, ROUND_INFILL_FACTOR)

    if isinstance(primitive, Cone):
        require_positive("cone", radius=primitive.radius, height=primitive.height)
        r, h = primitive.radius, primitive.height
        return SlicePlan(
            "cone", h,
            lambda z: RoundSection(max(0.0, r * (1.0 - z / h))),
            ROUND_INFILL_FACTOR,
        )

    if isinstance(primitive, Sphere):
        require_positive("sphere", radius=primitive.radius)
        r = primitive.radius
        threshold = settings.extrusion_width * SPHERE_INFILL_MIN_WIDTHS
        return SlicePlan(
            "sphere", 2.0 * r,
            lambda z: RoundSection(sphere_radius_at(r, z), radial=True,
                                   min_infill_radius=threshold),
            ROUND_INFILL_FACTOR,
        )

    if isinstance(primitive, Polygon):
        require_positive("polygon", radius=primitive.radius)
        if primitive.sides < 3:
            raise InvalidGeometryError("polygon", "sides", primitive.sides)
        poly = PolySection(primitive.radius, primitive.sides)
        return SlicePlan("polygon", flat_h, lambda z: poly, ROUND_INFILL_FACTOR)

    kind = getattr(getattr(primitive, "kind", None), "value", type(primitive).__name__)
    raise UnsupportedPrimitiveError(kind, "no dedicated slicer")
