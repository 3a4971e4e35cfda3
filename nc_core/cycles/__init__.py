"""
Cycle template library.

Parameterised machining cycles (drilling, threading, pocketing, milling)
rendered for Fanuc and Heidenhain controls, plus the registry that looks
them up by id.
"""

from nc_core.cycles.base import CycleTemplate, normalize_positions
from nc_core.cycles.registry import (
    DEFAULT_REGISTRY,
    CycleRegistry,
    generate,
    get_cycle,
)
from nc_core.cycles.schema import CycleParameterSchema, ParameterSpec
from nc_core.cycles.threads import COARSE_PITCH, nominal_diameter, pitch_for

__all__ = [
    "COARSE_PITCH",
    "DEFAULT_REGISTRY",
    "CycleParameterSchema",
    "CycleRegistry",
    "CycleTemplate",
    "ParameterSpec",
    "generate",
    "get_cycle",
    "nominal_diameter",
    "normalize_positions",
    "pitch_for",
]
