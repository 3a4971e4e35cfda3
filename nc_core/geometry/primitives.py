"""Geometric primitives -- the shapes a part can be described with.

Each primitive kind is an immutable, slotted dataclass.  Dimensions are in
**millimetres**.  ``Primitive`` is the closed union of all kinds; anything the
editor produces that does not map to a known kind is carried as a
:class:`Composite` so downstream code can still take its bounding box.

Axis convention for solids: a box spans ``width`` along X, ``height`` along Y
and ``depth`` along Z (build direction).  Round solids stand on their axis:
``height`` of a cylinder or cone is its axial length.
"""

from __future__ import annotations

import math
from collections.abc import Mapping
from dataclasses import dataclass
from enum import Enum
from typing import Any, ClassVar, Union

from nc_core.errors import InvalidGeometryError, UnsupportedPrimitiveError


class ShapeKind(str, Enum):
    """Closed set of primitive kinds."""

    BOX = "box"
    CYLINDER = "cylinder"
    SPHERE = "sphere"
    CONE = "cone"
    RECTANGLE = "rectangle"
    CIRCLE = "circle"
    POLYGON = "polygon"
    COMPOSITE = "composite"


# ---------------------------------------------------------------------------
# Solids
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class Box:
    """Axis-aligned rectangular block."""

    kind: ClassVar[ShapeKind] = ShapeKind.BOX

    width: float = 0.0
    height: float = 0.0
    depth: float = 0.0


@dataclass(frozen=True, slots=True)
class Cylinder:
    """Upright cylinder.

    Parameters
    ----------
    radius : float
        Cross-section radius.
    height : float
        Axial length (build direction).
    """

    kind: ClassVar[ShapeKind] = ShapeKind.CYLINDER

    radius: float = 0.0
    height: float = 0.0


@dataclass(frozen=True, slots=True)
class Sphere:
    kind: ClassVar[ShapeKind] = ShapeKind.SPHERE

    radius: float = 0.0


@dataclass(frozen=True, slots=True)
class Cone:
    """Upright cone, base radius at Z=0 tapering to a point at ``height``."""

    kind: ClassVar[ShapeKind] = ShapeKind.CONE

    radius: float = 0.0
    height: float = 0.0


# ---------------------------------------------------------------------------
# Flat shapes (no depth of their own)
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class Rectangle:
    kind: ClassVar[ShapeKind] = ShapeKind.RECTANGLE

    width: float = 0.0
    height: float = 0.0


@dataclass(frozen=True, slots=True)
class Circle:
    kind: ClassVar[ShapeKind] = ShapeKind.CIRCLE

    radius: float = 0.0


@dataclass(frozen=True, slots=True)
class Polygon:
    """Regular polygon.

    Parameters
    ----------
    radius : float
        Circumradius (centre to vertex).
    sides : int
        Number of sides, at least 3.
    """

    kind: ClassVar[ShapeKind] = ShapeKind.POLYGON

    radius: float = 0.0
    sides: int = 6


# ---------------------------------------------------------------------------
# Anything else
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class Composite:
    """Shape without a dedicated generator.

    Parameters
    ----------
    label : str
        Kind name as supplied by the caller (``"torus"``, ``"text"``...).
    width, height, depth : float | None
        Declared envelope, if any.
    size : float | None
        Uniform size used when a specific dimension is absent.
    children : tuple[Primitive, ...]
        Constituent primitives, used by the default toolpath generator to
        derive an envelope.
    """

    kind: ClassVar[ShapeKind] = ShapeKind.COMPOSITE

    label: str = "composite"
    width: float | None = None
    height: float | None = None
    depth: float | None = None
    size: float | None = None
    children: tuple["Primitive", ...] = ()


Primitive = Union[Box, Cylinder, Sphere, Cone, Rectangle, Circle, Polygon, Composite]
"""Closed sum type of all primitive kinds."""

PRIMITIVE_TYPES: tuple[type, ...] = (
    Box, Cylinder, Sphere, Cone, Rectangle, Circle, Polygon, Composite,
)


# ---------------------------------------------------------------------------
# Construction from caller records
# ---------------------------------------------------------------------------

_KIND_ALIASES: dict[str, str] = {
    "cube": "box",
    "cuboid": "box",
    "rect": "rectangle",
    "square": "rectangle",
}


def _number(data: Mapping[str, Any], key: str, kind: str) -> float | None:
    """Read an optional numeric field; ``None`` when absent."""
    raw = data.get(key)
    if raw is None:
        return None
    if isinstance(raw, bool):
        raise InvalidGeometryError(kind, key, raw)
    try:
        return float(raw)
    except (TypeError, ValueError):
        raise InvalidGeometryError(kind, key, raw) from None


def _radius(data: Mapping[str, Any], kind: str) -> float:
    """Radius, falling back to half a declared diameter."""
    r = _number(data, "radius", kind)
    if r is None:
        d = _number(data, "diameter", kind)
        r = d / 2.0 if d is not None else 0.0
    return r


def primitive_from_dict(data: Mapping[str, Any]) -> Primitive:
    """Build a primitive from a plain mapping.

    Parameters
    ----------
    data : Mapping[str, Any]
        Record with a ``kind`` (or ``type``) key and the kind's dimensions.
        Absent dimensions default to 0.

    Returns
    -------
    Primitive

    Raises
    ------
    UnsupportedPrimitiveError
        If *data* is not a mapping or names no kind.
    InvalidGeometryError
        If a present dimension is not numeric.
    """
    if not isinstance(data, Mapping):
        raise UnsupportedPrimitiveError(
            type(data).__name__, "primitive must be a mapping"
        )
    raw_kind = data.get("kind", data.get("type"))
    if not raw_kind:
        raise UnsupportedPrimitiveError("<missing>", "record has no 'kind'")

    label = str(raw_kind).strip().lower()
    kind = _KIND_ALIASES.get(label, label)

    def num(key: str) -> float:
        value = _number(data, key, kind)
        return 0.0 if value is None else value

    if kind == ShapeKind.BOX.value:
        return Box(width=num("width"), height=num("height"), depth=num("depth"))
    if kind == ShapeKind.CYLINDER.value:
        return Cylinder(radius=_radius(data, kind), height=num("height"))
    if kind == ShapeKind.SPHERE.value:
        return Sphere(radius=_radius(data, kind))
    if kind == ShapeKind.CONE.value:
        return Cone(radius=_radius(data, kind), height=num("height"))
    if kind == ShapeKind.RECTANGLE.value:
        return Rectangle(width=num("width"), height=num("height"))
    if kind == ShapeKind.CIRCLE.value:
        return Circle(radius=_radius(data, kind))
    if kind == ShapeKind.POLYGON.value:
        sides = _number(data, "sides", kind)
        return Polygon(
            radius=_radius(data, kind),
            sides=6 if sides is None else int(sides),
        )

    children = tuple(
        primitive_from_dict(child) for child in data.get("children") or ()
    )
    return Composite(
        label=label,
        width=_number(data, "width", kind),
        height=_number(data, "height", kind),
        depth=_number(data, "depth", kind),
        size=_number(data, "size", kind),
        children=children,
    )


def require_positive(kind: str, **dims: float) -> None:
    """Raise :class:`InvalidGeometryError` for the first non-positive dim."""
    for name, value in dims.items():
        if value is None or not math.isfinite(value) or value <= 0:
            raise InvalidGeometryError(kind, name, value)
