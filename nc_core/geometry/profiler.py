"""Geometry profiler -- canonical envelope and volume of a primitive.

The envelope is reported twice: in the editor's ``width/height/depth`` terms
(what the user typed) and in the machine frame (``size_x/size_y`` footprint,
``size_z`` build height) which the synthesizers and the estimator consume.

The profiler never raises for a valid primitive.  Missing, negative or
non-finite dimensions are treated as 0 so the result is never NaN and never
negative.
"""

from __future__ import annotations

import math
from dataclasses import dataclass

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
)
from nc_core.errors import UnsupportedPrimitiveError

# Envelope used for composites that declare nothing
DEFAULT_COMPOSITE_SIDE = 50.0
DEFAULT_COMPOSITE_DEPTH = 10.0
# Fill ratio applied to a composite's bounding box volume
COMPOSITE_FILL_RATIO = 0.7


@dataclass(frozen=True, slots=True)
class Envelope:
    """Canonical dimensions of a primitive (mm, mm^3).

    Parameters
    ----------
    width, height, depth : float
        Editor-facing dimensions.
    volume : float
        Solid volume; 0 for flat shapes.
    size_x, size_y, size_z : float
        Machine-frame extents: footprint along X/Y and build height along Z.
    """

    width: float
    height: float
    depth: float
    volume: float
    size_x: float
    size_y: float
    size_z: float

    @property
    def footprint_area(self) -> float:
        return self.size_x * self.size_y

    @property
    def surface_area(self) -> float:
        """Surface of the machine-frame bounding box."""
        x, y, z = self.size_x, self.size_y, self.size_z
        return 2.0 * (x * y + x * z + y * z)


def _dim(value: float | None) -> float:
    """Clamp a raw dimension to a finite, non-negative float."""
    if value is None:
        return 0.0
    try:
        v = float(value)
    except (TypeError, ValueError):
        return 0.0
    if not math.isfinite(v) or v < 0:
        return 0.0
    return v


def _composite_side(declared: float | None, size: float | None, default: float) -> float:
    for candidate in (declared, size):
        v = _dim(candidate)
        if v > 0:
            return v
    return default


def profile(primitive: Primitive) -> Envelope:
    """Compute the envelope and volume of *primitive*.

    Parameters
    ----------
    primitive : Primitive
        Any member of the primitive union.

    Returns
    -------
    Envelope

    Raises
    ------
    UnsupportedPrimitiveError
        Only for objects outside the primitive union.
    """
    if isinstance(primitive, Box):
        w, h, d = _dim(primitive.width), _dim(primitive.height), _dim(primitive.depth)
        return Envelope(w, h, d, w * h * d, w, h, d)

    if isinstance(primitive, Cylinder):
        r, length = _dim(primitive.radius), _dim(primitive.height)
        dia = 2.0 * r
        return Envelope(dia, length, dia, math.pi * r * r * length, dia, dia, length)

    if isinstance(primitive, Sphere):
        r = _dim(primitive.radius)
        dia = 2.0 * r
        vol = 4.0 / 3.0 * math.pi * r ** 3
        return Envelope(dia, dia, dia, vol, dia, dia, dia)

    if isinstance(primitive, Cone):
        r, h = _dim(primitive.radius), _dim(primitive.height)
        dia = 2.0 * r
        return Envelope(dia, h, dia, math.pi * r * r * h / 3.0, dia, dia, h)

    if isinstance(primitive, Rectangle):
        w, h = _dim(primitive.width), _dim(primitive.height)
        return Envelope(w, h, 0.0, 0.0, w, h, 0.0)

    if isinstance(primitive, (Circle, Polygon)):
        dia = 2.0 * _dim(primitive.radius)
        return Envelope(dia, dia, 0.0, 0.0, dia, dia, 0.0)

    if isinstance(primitive, Composite):
        w = _composite_side(primitive.width, primitive.size, DEFAULT_COMPOSITE_SIDE)
        h = _composite_side(primitive.height, primitive.size, DEFAULT_COMPOSITE_SIDE)
        d = _composite_side(primitive.depth, primitive.size, DEFAULT_COMPOSITE_DEPTH)
        return Envelope(w, h, d, w * h * d * COMPOSITE_FILL_RATIO, w, h, d)

    raise UnsupportedPrimitiveError(type(primitive).__name__, "not a primitive")
