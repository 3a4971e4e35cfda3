"""Error taxonomy for NC program generation.

Every failure the core raises derives from :class:`NCError` so callers can
catch the whole family in one place.  Each subclass keeps the context needed
to report the problem (shape kind, field, dialect, cycle id) as attributes
next to the human-readable message.

Degenerate geometry passes (an offset that collapses to nothing) are *not*
errors: see :class:`nc_core.toolpath.program.DegenerateOffsetSkipped`.
"""

from __future__ import annotations

from collections.abc import Iterable


class NCError(Exception):
    """Base class for all nc_core errors."""

    pass


# ---------------------------------------------------------------------------
# Geometry
# ---------------------------------------------------------------------------


class InvalidGeometryError(NCError):
    """A primitive is missing a dimension or carries a non-positive one."""

    def __init__(self, kind: str, field: str, value: object = None) -> None:
        self.kind = kind
        self.field = field
        self.value = value
        detail = "" if value is None else f" (got {value!r})"
        super().__init__(
            f"{kind}: dimension '{field}' must be a positive number{detail}"
        )


class UnsupportedPrimitiveError(NCError):
    """No generator (and no usable fallback) exists for a shape."""

    def __init__(self, kind: str, reason: str = "") -> None:
        self.kind = kind
        self.reason = reason
        msg = f"Unsupported primitive '{kind}'"
        if reason:
            msg += f": {reason}"
        super().__init__(msg)


# ---------------------------------------------------------------------------
# Cycles
# ---------------------------------------------------------------------------


class UnknownCycleError(NCError):
    """Requested cycle id is not registered."""

    def __init__(self, cycle_id: str, available: Iterable[str] = ()) -> None:
        self.cycle_id = cycle_id
        self.available = tuple(available)
        msg = f"Unknown cycle '{cycle_id}'"
        if self.available:
            msg += f". Available: {', '.join(self.available)}"
        super().__init__(msg)


class UnsupportedThreadSizeError(NCError):
    """Thread designation is not in the pitch table."""

    def __init__(self, size: str, available: Iterable[str] = ()) -> None:
        self.size = size
        self.available = tuple(available)
        msg = f"Unsupported thread size '{size}'"
        if self.available:
            msg += f". Supported: {', '.join(self.available)}"
        super().__init__(msg)


class InvalidParameterError(NCError):
    """Cycle parameters failed schema validation."""

    def __init__(self, cycle_id: str, problems: dict[str, str]) -> None:
        self.cycle_id = cycle_id
        self.problems = dict(problems)
        listing = "; ".join(f"{k}: {v}" for k, v in self.problems.items())
        super().__init__(f"Invalid parameters for '{cycle_id}': {listing}")


class UnsupportedDialectError(NCError):
    """A cycle template has no variant for the requested dialect."""

    def __init__(self, cycle_id: str, dialect: str) -> None:
        self.cycle_id = cycle_id
        self.dialect = dialect
        super().__init__(f"Cycle '{cycle_id}' has no {dialect} variant")


# ---------------------------------------------------------------------------
# Emission
# ---------------------------------------------------------------------------


class UnsupportedInstructionForDialectError(NCError):
    """An instruction kind has no mapping in the target dialect."""

    def __init__(self, instruction: str, dialect: str) -> None:
        self.instruction = instruction
        self.dialect = dialect
        super().__init__(
            f"Instruction '{instruction}' cannot be expressed in {dialect}"
        )


class EmissionError(NCError):
    """A value cannot be written as an NC word (NaN, infinity)."""

    pass


# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------


class ConfigError(NCError):
    """Raised when configuration validation fails."""

    pass
