"""
Geometry module.

Primitive shape records and the profiler that reduces them to a canonical
envelope and volume.
"""

from nc_core.geometry.primitives import (
    Box,
    Circle,
    Composite,
    Cone,
    Cylinder,
    Polygon,
    Primitive,
    Rectangle,
    ShapeKind,
    Sphere,
    primitive_from_dict,
)
from nc_core.geometry.profiler import Envelope, profile

__all__ = [
    "Box",
    "Circle",
    "Composite",
    "Cone",
    "Cylinder",
    "Envelope",
    "Polygon",
    "Primitive",
    "Rectangle",
    "ShapeKind",
    "Sphere",
    "primitive_from_dict",
    "profile",
]
