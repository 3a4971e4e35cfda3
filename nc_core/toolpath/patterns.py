"""2-D path patterns shared by the printer and milling toolpaths.

Pure geometry: every function returns points or segments in the XY plane,
centred on the origin, and never emits instructions.  Callers decide feeds,
Z levels and extrusion.

Scan-line placement comes in two flavours:

    centred   lines strictly inside the region, evenly spread around the
              centre (printer infill: never overlaps the perimeters)
    covering  first and last line on the region boundary (milling: no
              uncut ridge along the walls)
"""

from __future__ import annotations

import math

Point = tuple[float, float]
Segment = tuple[Point, Point]


def line_positions(lo: float, hi: float, spacing: float, *, covering: bool = False) -> list[float]:
    """Evenly spaced coordinates across ``[lo, hi]``.

    Parameters
    ----------
    lo, hi : float
        Region bounds; ``hi < lo`` yields an empty list.
    spacing : float
        Maximum distance between neighbouring lines.  Must be > 0.
    covering : bool
        Put the outer lines on the bounds (see module notes).

    Raises
    ------
    ValueError
        If *spacing* is not positive.
    """
    if spacing <= 0:
        raise ValueError(f"spacing must be > 0, got {spacing}")
    extent = hi - lo
    if extent < 0:
        return []
    if extent == 0:
        return [lo]

    if covering:
        count = math.ceil(extent / spacing - 1e-9) + 1
        step = extent / (count - 1)
        return [lo + k * step for k in range(count)]

    count = max(1, math.floor(extent / spacing + 1e-9))
    first = lo + (extent - (count - 1) * spacing) / 2.0
    return [first + k * spacing for k in range(count)]


def _orient(segments: list[Segment], serpentine: bool) -> list[Segment]:
    if not serpentine:
        return segments
    return [seg if k % 2 == 0 else (seg[1], seg[0]) for k, seg in enumerate(segments)]


def rect_scan(
    half_w: float,
    half_h: float,
    spacing: float,
    *,
    horizontal: bool = True,
    serpentine: bool = False,
    covering: bool = False,
) -> list[Segment]:
    """Scan lines filling the rectangle ``[-half_w, half_w] x [-half_h, half_h]``.

    Horizontal lines run along X at constant Y; vertical along Y.
    """
    if half_w < 0 or half_h < 0:
        return []
    segments: list[Segment] = []
    if horizontal:
        for y in line_positions(-half_h, half_h, spacing, covering=covering):
            segments.append(((-half_w, y), (half_w, y)))
    else:
        for x in line_positions(-half_w, half_w, spacing, covering=covering):
            segments.append(((x, -half_h), (x, half_h)))
    return _orient(segments, serpentine)


def circle_scan(
    radius: float,
    spacing: float,
    *,
    horizontal: bool = True,
    serpentine: bool = False,
    covering: bool = False,
) -> list[Segment]:
    """Chords filling a circle of *radius*; zero-length chords are dropped."""
    if radius <= 0:
        return []
    segments: list[Segment] = []
    for p in line_positions(-radius, radius, spacing, covering=covering):
        half = math.sqrt(max(0.0, radius * radius - p * p))
        if half <= 1e-9:
            continue
        if horizontal:
            segments.append(((-half, p), (half, p)))
        else:
            segments.append(((p, -half), (p, half)))
    return _orient(segments, serpentine)


def radial_spokes(radius: float, count: int) -> list[Segment]:
    """*count* spokes from the centre out to *radius*, evenly spread."""
    if radius <= 0 or count <= 0:
        return []
    step = 2.0 * math.pi / count
    return [
        ((0.0, 0.0), (radius * math.cos(k * step), radius * math.sin(k * step)))
        for k in range(count)
    ]


def rectangle_loop(half_w: float, half_h: float) -> list[Point]:
    """Closed counter-clockwise loop starting at the lower-left corner."""
    return [
        (-half_w, -half_h),
        (half_w, -half_h),
        (half_w, half_h),
        (-half_w, half_h),
        (-half_w, -half_h),
    ]


def polygon_loop(circumradius: float, sides: int) -> list[Point]:
    """Closed loop through the vertices of a regular polygon.

    The first vertex sits on +X; the loop runs counter-clockwise.
    """
    if sides < 3:
        raise ValueError(f"polygon needs >= 3 sides, got {sides}")
    step = 2.0 * math.pi / sides
    pts = [
        (circumradius * math.cos(k * step), circumradius * math.sin(k * step))
        for k in range(sides)
    ]
    pts.append(pts[0])
    return pts


def polygon_offset_radius(circumradius: float, sides: int, offset: float) -> float:
    """Circumradius of the polygon whose edges sit *offset* further inside."""
    apothem = circumradius * math.cos(math.pi / sides)
    return (apothem - offset) / math.cos(math.pi / sides)


def path_length(points: list[Point]) -> float:
    return sum(math.dist(a, b) for a, b in zip(points, points[1:]))


def rotate(point: Point, degrees: float) -> Point:
    if degrees == 0:
        return point
    a = math.radians(degrees)
    c, s = math.cos(a), math.sin(a)
    x, y = point
    return (x * c - y * s, x * s + y * c)
