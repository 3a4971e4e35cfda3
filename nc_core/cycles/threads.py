"""ISO metric coarse thread table."""

from __future__ import annotations

from types import MappingProxyType

from nc_core.errors import UnsupportedThreadSizeError

# Nominal size -> pitch (mm)
COARSE_PITCH = MappingProxyType({
    "M3": 0.5,
    "M4": 0.7,
    "M5": 0.8,
    "M6": 1.0,
    "M8": 1.25,
    "M10": 1.5,
    "M12": 1.75,
    "M14": 2.0,
    "M16": 2.0,
    "M20": 2.5,
    "M24": 3.0,
})

TAPPING_SIZES = ("M3", "M4", "M5", "M6", "M8", "M10", "M12")
THREAD_MILLING_SIZES = ("M6", "M8", "M10", "M12", "M14", "M16", "M20", "M24")


def _normalise(size: object) -> str:
    return str(size).strip().upper()


def pitch_for(size: str, allowed: tuple[str, ...] | None = None) -> float:
    """Pitch of *size*, optionally restricted to *allowed* sizes.

    Raises
    ------
    UnsupportedThreadSizeError
        If the size is not in the table (or not in *allowed*).
    """
    key = _normalise(size)
    available = allowed if allowed is not None else tuple(COARSE_PITCH)
    if key not in available or key not in COARSE_PITCH:
        raise UnsupportedThreadSizeError(str(size), available)
    return COARSE_PITCH[key]


def nominal_diameter(size: str) -> float:
    """``"M16"`` -> 16.0."""
    key = _normalise(size)
    if key not in COARSE_PITCH:
        raise UnsupportedThreadSizeError(str(size), tuple(COARSE_PITCH))
    return float(key[1:])
