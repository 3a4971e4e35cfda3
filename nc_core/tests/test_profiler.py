"""Tests for primitive construction and the envelope profiler.

Validates:
    - Volume formulas per kind
    - Machine-frame extents (footprint X/Y, build height Z)
    - Degenerate dimensions clamp to 0 instead of producing NaN
    - Record parsing: aliases, unknown kinds, malformed fields
"""

from __future__ import annotations

import math

import pytest

from nc_core.errors import InvalidGeometryError, UnsupportedPrimitiveError
from nc_core.geometry import (
    Box,
    Circle,
    Composite,
    Cone,
    Cylinder,
    Polygon,
    Rectangle,
    Sphere,
    primitive_from_dict,
    profile,
)


# ---------------------------------------------------------------------------
# Volumes and extents
# ---------------------------------------------------------------------------


class TestProfile:
    def test_box(self) -> None:
        env = profile(Box(width=20, height=30, depth=40))
        assert (env.width, env.height, env.depth) == (20, 30, 40)
        assert env.volume == pytest.approx(24000)
        assert (env.size_x, env.size_y, env.size_z) == (20, 30, 40)

    def test_cylinder_height_is_build_axis(self) -> None:
        env = profile(Cylinder(radius=5, height=12))
        assert env.volume == pytest.approx(math.pi * 25 * 12)
        assert (env.size_x, env.size_y, env.size_z) == (10, 10, 12)
        assert env.height == 12

    def test_sphere(self) -> None:
        env = profile(Sphere(radius=3))
        assert env.volume == pytest.approx(4 / 3 * math.pi * 27)
        assert env.size_z == 6

    def test_cone_is_third_of_cylinder(self) -> None:
        cone = profile(Cone(radius=4, height=9)).volume
        cyl = profile(Cylinder(radius=4, height=9)).volume
        assert cone == pytest.approx(cyl / 3)

    @pytest.mark.parametrize("shape", [
        Rectangle(width=10, height=5),
        Circle(radius=4),
        Polygon(radius=4, sides=5),
    ])
    def test_flat_shapes_have_no_volume(self, shape) -> None:
        env = profile(shape)
        assert env.volume == 0
        assert env.size_z == 0
        assert env.depth == 0

    def test_negative_and_nan_dimensions_clamp_to_zero(self) -> None:
        env = profile(Box(width=-5, height=float("nan"), depth=10))
        assert env.width == 0
        assert env.height == 0
        assert env.volume == 0

    def test_composite_defaults(self) -> None:
        env = profile(Composite(label="torus"))
        assert (env.size_x, env.size_y, env.size_z) == (50, 50, 10)
        assert env.volume == pytest.approx(50 * 50 * 10 * 0.7)

    def test_composite_uses_size(self) -> None:
        env = profile(Composite(label="text", size=20))
        assert (env.width, env.height, env.depth) == (20, 20, 20)

    def test_non_primitive_rejected(self) -> None:
        with pytest.raises(UnsupportedPrimitiveError, match="not a primitive"):
            profile("box")  # type: ignore[arg-type]

    def test_surface_area(self) -> None:
        env = profile(Box(width=1, height=2, depth=3))
        assert env.surface_area == pytest.approx(22)
        assert env.footprint_area == pytest.approx(2)


# ---------------------------------------------------------------------------
# Caller records
# ---------------------------------------------------------------------------


class TestPrimitiveFromDict:
    def test_cube_alias(self) -> None:
        shape = primitive_from_dict({"type": "cube", "width": 20, "height": 20, "depth": 20})
        assert shape == Box(20, 20, 20)

    def test_diameter_fallback(self) -> None:
        shape = primitive_from_dict({"kind": "cylinder", "diameter": 10, "height": 5})
        assert shape == Cylinder(radius=5, height=5)

    def test_polygon_default_sides(self) -> None:
        shape = primitive_from_dict({"kind": "polygon", "radius": 10})
        assert isinstance(shape, Polygon)
        assert shape.sides == 6

    def test_unknown_kind_becomes_composite(self) -> None:
        shape = primitive_from_dict({"kind": "Torus", "size": 30})
        assert isinstance(shape, Composite)
        assert shape.label == "torus"
        assert shape.size == 30

    def test_missing_dimension_defaults_to_zero(self) -> None:
        assert primitive_from_dict({"kind": "sphere"}) == Sphere(radius=0.0)

    def test_non_numeric_field(self) -> None:
        with pytest.raises(InvalidGeometryError, match="width"):
            primitive_from_dict({"kind": "box", "width": "wide"})

    def test_bool_is_not_a_dimension(self) -> None:
        with pytest.raises(InvalidGeometryError):
            primitive_from_dict({"kind": "sphere", "radius": True})

    def test_missing_kind(self) -> None:
        with pytest.raises(UnsupportedPrimitiveError):
            primitive_from_dict({"width": 10})

    def test_not_a_mapping(self) -> None:
        with pytest.raises(UnsupportedPrimitiveError):
            primitive_from_dict([1, 2, 3])  # type: ignore[arg-type]
