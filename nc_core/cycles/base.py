"""Cycle templates and the building blocks shared by every cycle.

A :class:`CycleTemplate` pairs a parameter schema with one builder per
dialect.  A builder is a pure function ``(params, positions) -> list of
instructions``; the template renders the result with the dialect emitter.

Multi-hole layout:
    Fanuc fixed cycles (``G81``/``G83``/``G84``/``G76``...) are modal: the
    cycle block runs at the first position and every further position is a
    bare ``X.. Y..`` block, cancelled by ``G80``.  Heidenhain defines the
    cycle once (``CYCL DEF``), calls it at the first position with
    ``M3`` + ``CYCL CALL`` and at the rest with ``M99``.  Cycles without a
    native form (unrolled passes) repeat their block shifted to each
    position.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Callable, Iterable, Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any

from nc_core.cycles.schema import CycleParameterSchema
from nc_core.dialects.emitter import Dialect, render
from nc_core.errors import InvalidParameterError, UnsupportedDialectError
from nc_core.estimation.metrics import measure
from nc_core.instructions.operations import (
    CancelCycle,
    CannedCycle,
    Comment,
    Coolant,
    CycleCall,
    CycleDefinition,
    CyclePosition,
    Instruction,
    PositioningMode,
    ProgramEnd,
    ProgramStart,
    QParam,
    Rapid,
    SpindleOn,
    SpindleStop,
    ToolChange,
    ToolLengthOffset,
    translate,
)
from nc_core.toolpath.subtractive import pass_depths as _pass_depths

logger = logging.getLogger(__name__)

Position = tuple[float, float]
Params = Mapping[str, Any]
Builder = Callable[[Params, tuple[Position, ...]], list[Instruction]]

DEFAULT_POSITIONS: tuple[Position, ...] = ((0.0, 0.0),)

# Machine heights shared by the cycles (mm above the work surface)
CLEARANCE_Z = 50.0
APPROACH_Z = 5.0
# Heidenhain Q200 when the cycle has no retract parameter
SAFETY_DISTANCE = 2.0
SURFACE_Z = 0.0


def normalize_positions(
    cycle_id: str, positions: Iterable[Sequence[float]] | None,
) -> tuple[Position, ...]:
    """Validate hole positions; ``None`` or empty means the origin.

    Raises
    ------
    InvalidParameterError
        If a position is not a finite ``(x, y)`` pair.
    """
    if positions is None:
        return DEFAULT_POSITIONS
    out: list[Position] = []
    for k, pos in enumerate(positions):
        try:
            x, y = (float(v) for v in pos)
        except (TypeError, ValueError):
            raise InvalidParameterError(
                cycle_id, {f"positions[{k}]": f"expected (x, y), got {pos!r}"},
            ) from None
        if not (math.isfinite(x) and math.isfinite(y)):
            raise InvalidParameterError(
                cycle_id, {f"positions[{k}]": f"not finite: {pos!r}"},
            )
        out.append((x, y))
    return tuple(out) or DEFAULT_POSITIONS


def pass_depths(cycle_id: str, total: float, step: float) -> list[float]:
    """Per-pass depths for a multi-depth cycle.

    Raises
    ------
    InvalidParameterError
        If *step* is not positive.
    """
    try:
        return _pass_depths(total, step)
    except ValueError as exc:
        raise InvalidParameterError(cycle_id, {"stepdown": str(exc)}) from None


# ---------------------------------------------------------------------------
# Program fragments
# ---------------------------------------------------------------------------


def fanuc_preamble(
    title: str,
    details: Iterable[str],
    positions: tuple[Position, ...],
    spindle: Iterable[Instruction],
    *,
    coolant: bool = True,
) -> list[Instruction]:
    """Header comments, work offset, first position, tool length, spindle."""
    x0, y0 = positions[0]
    ops: list[Instruction] = [Comment(title), *(Comment(d) for d in details)]
    ops += [
        PositioningMode(absolute=True, work_offset=54),
        Rapid(x=x0, y=y0),
        ToolLengthOffset(CLEARANCE_Z, 1),
        *spindle,
    ]
    if coolant:
        ops.append(Coolant(True))
    return ops


def fanuc_postamble(*, coolant: bool = True) -> list[Instruction]:
    ops: list[Instruction] = [Rapid(z=CLEARANCE_Z)]
    if coolant:
        ops.append(Coolant(False))
    ops.append(SpindleStop())
    return ops


def heidenhain_preamble(
    title: str,
    details: Iterable[str],
    spindle_speed: float,
    *,
    tool: int = 1,
    start_spindle: bool = False,
) -> list[Instruction]:
    """Header comments, tool call, retract to clearance.

    With *start_spindle* the retract block carries ``M3``; cycles using
    :func:`heidenhain_calls` start the spindle at the first hole instead.
    """
    return [
        Comment(title),
        *(Comment(d) for d in details),
        ToolChange(tool, spindle_speed),
        Rapid(z=CLEARANCE_Z, aux=3 if start_spindle else None),
    ]


def heidenhain_postamble() -> list[Instruction]:
    return [Rapid(z=CLEARANCE_Z), SpindleStop()]


def fanuc_fixed_cycle(cycle: CannedCycle, positions: tuple[Position, ...]) -> list[Instruction]:
    """Approach, fixed cycle at the first hole, bare positions, ``G80``."""
    ops: list[Instruction] = [Rapid(z=APPROACH_Z), cycle]
    ops.extend(CyclePosition(x, y) for x, y in positions[1:])
    ops.append(CancelCycle())
    return ops


def heidenhain_calls(
    number: int, name: str, params: Iterable[QParam], positions: tuple[Position, ...],
) -> list[Instruction]:
    """``CYCL DEF`` then one call per position."""
    (x0, y0), rest = positions[0], positions[1:]
    ops: list[Instruction] = [
        CycleDefinition(number, name, tuple(params)),
        Rapid(x=x0, y=y0, aux=3),
        CycleCall(),
    ]
    ops.extend(Rapid(x=x, y=y, aux=99) for x, y in rest)
    return ops


def at_each(block: list[Instruction], positions: tuple[Position, ...]) -> list[Instruction]:
    """Repeat *block* (built around the origin) at every position."""
    ops: list[Instruction] = []
    for x, y in positions:
        ops.extend(translate(block, x, y))
    return ops


def q(number: int, value: float, comment: str, *, signed: bool = False) -> QParam:
    return QParam(number, float(value), comment, signed)


def surface_and_clearance() -> list[QParam]:
    """The Q203/Q204 pair every Heidenhain machining cycle takes."""
    return [
        q(203, SURFACE_Z, "SURFACE COORDINATE", signed=True),
        q(204, CLEARANCE_Z, "2ND SAFETY DISTANCE"),
    ]


def fmt(value: float) -> str:
    """Compact number for comments: ``20.0 -> "20"``."""
    return f"{value:g}"


# ---------------------------------------------------------------------------
# Template
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class CycleTemplate:
    """A named machining cycle.

    Parameters
    ----------
    id : str
        Registry key (``"simple-drilling"``...).
    name : str
        Display name.
    description : str
        One-line summary.
    schema : CycleParameterSchema
        Declared parameters.
    builders : Mapping[Dialect, Builder]
        One instruction builder per supported dialect.
    depth_param : str | None
        Parameter holding the final depth, when the cycle has one.
    """

    id: str
    name: str
    description: str
    schema: CycleParameterSchema
    builders: Mapping[Dialect, Builder] = field(repr=False)
    depth_param: str | None = "depth"

    @property
    def dialects(self) -> tuple[Dialect, ...]:
        return tuple(self.builders)

    def supports(self, dialect: Dialect | str) -> bool:
        return Dialect.parse(dialect) in self.builders

    def _builder(self, dialect: Dialect | str) -> tuple[Dialect, Builder]:
        d = Dialect.parse(dialect)
        builder = self.builders.get(d)
        if builder is None:
            raise UnsupportedDialectError(self.id, d.value)
        return d, builder

    def instructions(
        self,
        params: Params | None,
        dialect: Dialect | str,
        positions: Iterable[Sequence[float]] | None = None,
    ) -> list[Instruction]:
        """Instruction list for *params* (missing keys take defaults).

        Values are used as given; clamp or validate them through
        :attr:`schema` first when they come from an untrusted source.

        Raises
        ------
        UnsupportedDialectError
            If the cycle has no variant for *dialect*.
        UnsupportedThreadSizeError
            For thread cycles given a size outside their table.
        InvalidParameterError
            For unknown parameter names or malformed positions.
        """
        _, builder = self._builder(dialect)
        merged = self.schema.merged(params)
        return builder(merged, normalize_positions(self.id, positions))

    def generate(
        self,
        params: Params | None,
        dialect: Dialect | str,
        positions: Iterable[Sequence[float]] | None = None,
        *,
        program_number: int | None = None,
        line_numbers: bool = False,
    ) -> str:
        """Render the cycle as NC text.

        Parameters
        ----------
        params : Mapping | None
            Parameter values keyed by name.
        dialect : Dialect | str
            ``fanuc`` or ``heidenhain``.
        positions : iterable of (x, y) | None
            Hole / feature positions; defaults to the origin.
        program_number : int | None
            Wrap the block in a complete program (``O####`` or
            ``BEGIN PGM``) when given.
        line_numbers : bool
            Prefix blocks with sequence numbers.

        Returns
        -------
        str
            Non-empty program text.
        """
        d, _ = self._builder(dialect)
        ops = self.instructions(params, d, positions)
        if program_number is not None:
            ops = [ProgramStart(program_number, self.id), *ops,
                   ProgramEnd(program_number, self.id)]
        text = render(ops, d, line_numbers=line_numbers)
        logger.debug("Generated %s for %s: %d blocks", self.id, d.value, len(ops))
        return text

    def estimate_time(
        self,
        params: Params | None,
        positions: Iterable[Sequence[float]] | None = None,
        *,
        rapid_feed: float = 5000.0,
    ) -> float:
        """Machining time in minutes, measured on the explicit Fanuc passes."""
        d = Dialect.FANUC if Dialect.FANUC in self.builders else self.dialects[0]
        return measure(self.instructions(params, d, positions), rapid_feed=rapid_feed).time_minutes
