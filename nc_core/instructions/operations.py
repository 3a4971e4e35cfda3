"""Instructions -- the vocabulary between toolpath logic and NC text.

Every action a program can contain is an immutable, slotted dataclass.
Instructions use **semantic** names (``Coolant(on=True)``, not ``M08``),
**millimetre** coordinates in the work frame, and feed rates in **mm/min**
(the unit of the NC ``F`` word).  Printer speeds configured in mm/s are
converted by the synthesizer before they reach an instruction.

Axis fields set to ``None`` are omitted from the emitted block, so a move
only commands the axes it names.

Families
--------
Motion:
    ``Rapid``, ``Linear``, ``Arc``, ``Dwell``
Machine control:
    ``ToolChange``, ``ToolLengthOffset``, ``SpindleOn``, ``SpindleStop``,
    ``SpindleOrient``, ``RigidTapMode``, ``Coolant``, ``PositioningMode``,
    ``MetricUnits``, ``Home``
Cycles:
    ``CannedCycle`` + ``CyclePosition`` + ``CancelCycle`` (address-word
    dialects) and ``CycleDefinition`` + ``CycleCall`` (conversational
    dialects)
Program framing:
    ``Comment``, ``ProgramStart``, ``ProgramEnd``
Printer firmware:
    ``ExtruderAbsolute``, ``ResetExtruder``, ``SetHotendTemperature``,
    ``SetBedTemperature``, ``DisableMotors``

Whether a dialect can express an instruction is decided by the emitter,
not here.
"""

from __future__ import annotations

import dataclasses
from abc import ABC
from collections.abc import Iterable
from dataclasses import dataclass
from typing import Literal

Compensation = Literal["left", "right", "off"]

# ---------------------------------------------------------------------------
# Base class
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class Instruction(ABC):
    """Base class for all instructions."""

    @property
    def kind(self) -> str:
        return type(self).__name__


# ---------------------------------------------------------------------------
# Motion
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class Rapid(Instruction):
    """Positioning move at traverse rate.

    Parameters
    ----------
    x, y, z : float | None
        Target coordinates; ``None`` leaves the axis untouched.
    feed : float | None
        Travel rate (mm/min) for controllers without a native rapid rate.
    aux : int | None
        M-function appended to the block (e.g. ``99`` for a cycle call on
        conversational controls).
    """

    x: float | None = None
    y: float | None = None
    z: float | None = None
    feed: float | None = None
    aux: int | None = None

    def __post_init__(self) -> None:
        if self.x is None and self.y is None and self.z is None:
            raise ValueError("Rapid requires at least one axis")


@dataclass(frozen=True, slots=True)
class Linear(Instruction):
    """Straight feed move.

    Parameters
    ----------
    x, y, z : float | None
        Target coordinates.
    feed : float | None
        Feed rate (mm/min); ``None`` keeps the modal feed.
    extrude : float | None
        Absolute extruder position at the end of the move (printers).
    compensation : ``"left"`` | ``"right"`` | ``"off"`` | None
        Cutter radius compensation switched on this move.
    """

    x: float | None = None
    y: float | None = None
    z: float | None = None
    feed: float | None = None
    extrude: float | None = None
    compensation: Compensation | None = None

    def __post_init__(self) -> None:
        if (
            self.x is None and self.y is None and self.z is None
            and self.extrude is None
        ):
            raise ValueError("Linear requires at least one axis or extrusion")
        if self.compensation not in (None, "left", "right", "off"):
            raise ValueError(
                f"compensation must be 'left', 'right' or 'off', "
                f"got {self.compensation!r}"
            )


@dataclass(frozen=True, slots=True)
class Arc(Instruction):
    """Circular (or helical, with ``z``) move.

    Parameters
    ----------
    x, y : float
        End point.  Equal to the start point for a full circle.
    i, j : float
        Centre offset from the start point.
    clockwise : bool
        Direction seen from +Z.
    z : float | None
        End height for a helix.
    feed : float | None
        Feed rate (mm/min).
    extrude : float | None
        Absolute extruder position at the end of the move.
    """

    x: float
    y: float
    i: float
    j: float
    clockwise: bool = True
    z: float | None = None
    feed: float | None = None
    extrude: float | None = None

    def __post_init__(self) -> None:
        if self.i == 0 and self.j == 0:
            raise ValueError("Arc centre offset must be non-zero")

    @property
    def radius(self) -> float:
        return (self.i ** 2 + self.j ** 2) ** 0.5


@dataclass(frozen=True, slots=True)
class Dwell(Instruction):
    """Pause for *seconds*."""

    seconds: float

    def __post_init__(self) -> None:
        if self.seconds < 0:
            raise ValueError(f"Dwell must be >= 0 s, got {self.seconds}")


# ---------------------------------------------------------------------------
# Machine control
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class ToolChange(Instruction):
    """Select and load a tool.

    Parameters
    ----------
    tool : int
        Tool number (pocket / table entry).
    spindle_speed : float | None
        Speed programmed with the call on controls that take it there.
    """

    tool: int
    spindle_speed: float | None = None

    def __post_init__(self) -> None:
        if self.tool < 0:
            raise ValueError(f"tool number must be >= 0, got {self.tool}")


@dataclass(frozen=True, slots=True)
class ToolLengthOffset(Instruction):
    """Activate tool length offset *register* while moving to *z*."""

    z: float
    register: int = 1


@dataclass(frozen=True, slots=True)
class SpindleOn(Instruction):
    speed: float
    clockwise: bool = True


@dataclass(frozen=True, slots=True)
class SpindleStop(Instruction):
    pass


@dataclass(frozen=True, slots=True)
class SpindleOrient(Instruction):
    """Oriented spindle stop."""

    pass


@dataclass(frozen=True, slots=True)
class RigidTapMode(Instruction):
    """Synchronise spindle and feed axis for rigid tapping."""

    speed: float


@dataclass(frozen=True, slots=True)
class Coolant(Instruction):
    on: bool = True


@dataclass(frozen=True, slots=True)
class PositioningMode(Instruction):
    """Absolute/incremental mode, optionally with a work offset (54-59)."""

    absolute: bool = True
    work_offset: int | None = None

    def __post_init__(self) -> None:
        if self.work_offset is not None and not 54 <= self.work_offset <= 59:
            raise ValueError(
                f"work offset must be in 54..59, got {self.work_offset}"
            )


@dataclass(frozen=True, slots=True)
class MetricUnits(Instruction):
    """Program coordinates are millimetres."""

    pass


@dataclass(frozen=True, slots=True)
class Home(Instruction):
    """Return to machine reference."""

    pass


# ---------------------------------------------------------------------------
# Cycles
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class CannedCycle(Instruction):
    """Address-word fixed cycle (G73/G76/G81/G83/G84...).

    Parameters
    ----------
    code : int
        G-code number of the cycle.
    z : float
        Final depth (absolute).
    r : float
        R plane.
    feed : float
        Feed rate (mm/min).
    q : float | None
        Peck increment or boring shift.
    p_ms : int | None
        Dwell at the bottom in milliseconds.
    return_to_r : bool
        ``True`` retracts to the R plane between holes, ``False`` to the
        initial level.
    """

    code: int
    z: float
    r: float
    feed: float
    q: float | None = None
    p_ms: int | None = None
    return_to_r: bool = True

    def __post_init__(self) -> None:
        if self.code not in (73, 74, 76, 81, 82, 83, 84, 85, 86, 87, 88, 89):
            raise ValueError(f"G{self.code} is not a fixed cycle")


@dataclass(frozen=True, slots=True)
class CyclePosition(Instruction):
    """Run the active fixed cycle at another hole position."""

    x: float
    y: float


@dataclass(frozen=True, slots=True)
class CancelCycle(Instruction):
    pass


@dataclass(frozen=True, slots=True)
class QParam:
    """One parameter line of a conversational cycle definition.

    Parameters
    ----------
    number : int
        Q number.
    value : float
        Parameter value.
    comment : str
        Upper-case label written after the value.
    signed : bool
        Write an explicit sign on positive values (coordinates).
    """

    number: int
    value: float
    comment: str
    signed: bool = False


@dataclass(frozen=True, slots=True)
class CycleDefinition(Instruction):
    """Conversational cycle definition (``CYCL DEF n NAME`` + Q lines)."""

    number: int
    name: str
    params: tuple[QParam, ...]

    def __post_init__(self) -> None:
        if not self.params:
            raise ValueError(f"Cycle {self.number} needs at least one parameter")


@dataclass(frozen=True, slots=True)
class CycleCall(Instruction):
    pass


# ---------------------------------------------------------------------------
# Program framing
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class Comment(Instruction):
    text: str


@dataclass(frozen=True, slots=True)
class ProgramStart(Instruction):
    number: int
    name: str

    def __post_init__(self) -> None:
        if not 1 <= self.number <= 9999:
            raise ValueError(f"program number must be 1..9999, got {self.number}")


@dataclass(frozen=True, slots=True)
class ProgramEnd(Instruction):
    number: int
    name: str


# ---------------------------------------------------------------------------
# Printer firmware
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class ExtruderAbsolute(Instruction):
    pass


@dataclass(frozen=True, slots=True)
class ResetExtruder(Instruction):
    """Redefine the current extruder position (``G92 E``)."""

    value: float = 0.0


@dataclass(frozen=True, slots=True)
class SetHotendTemperature(Instruction):
    celsius: float
    wait: bool = False


@dataclass(frozen=True, slots=True)
class SetBedTemperature(Instruction):
    celsius: float
    wait: bool = False


@dataclass(frozen=True, slots=True)
class DisableMotors(Instruction):
    pass


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def translate(
    instructions: Iterable[Instruction], dx: float, dy: float,
) -> list[Instruction]:
    """Shift every XY coordinate by ``(dx, dy)``.

    Arc centre offsets are relative and stay untouched.  Axes left at
    ``None`` remain ``None``.
    """
    if dx == 0 and dy == 0:
        return list(instructions)
    out: list[Instruction] = []
    for ins in instructions:
        if isinstance(ins, (Rapid, Linear, Arc, CyclePosition)):
            changes: dict[str, float] = {}
            if ins.x is not None:
                changes["x"] = ins.x + dx
            if ins.y is not None:
                changes["y"] = ins.y + dy
            ins = dataclasses.replace(ins, **changes)
        out.append(ins)
    return out
