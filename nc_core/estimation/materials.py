"""Material density table (g/cm^3)."""

from __future__ import annotations

import logging
from types import MappingProxyType

logger = logging.getLogger(__name__)

DEFAULT_DENSITY = 1.24

DENSITY_FACTORS = MappingProxyType({
    "plastic": 1.24,
    "pla": 1.24,
    "abs": 1.04,
    "petg": 1.27,
    "tpu": 1.21,
    "nylon": 1.14,
    "wood": 0.8,
    "aluminum": 2.7,
    "steel": 7.85,
})


def density_for(material: str) -> float:
    """Density of *material*; unknown names log a warning and use PLA's."""
    key = material.strip().lower()
    try:
        return DENSITY_FACTORS[key]
    except KeyError:
        logger.warning(
            "Unknown material '%s', assuming density %.2f g/cm3", material, DEFAULT_DENSITY
        )
        return DEFAULT_DENSITY
