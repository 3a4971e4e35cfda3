"""Dialect emitter -- instructions to controller-specific NC text.

Each dialect is a lookup table from instruction class to a small formatting
function.  The emitter keeps no state between calls: the same instruction
always renders to the same text, and an instruction kind a dialect cannot
express raises :class:`~nc_core.errors.UnsupportedInstructionForDialectError`
instead of being dropped.

Dialects:
    ``fanuc``      ISO address-word G-code (``G00 X10 Y-5``, ``(COMMENT)``)
    ``heidenhain`` conversational plain-language (``L X+10 Y-5 R0 FMAX``)
    ``marlin``     3D-printer firmware G-code (``G1 X10.000 E0.12345``)

Feed values are written as given (mm/min); conversion from mm/s happens in
the synthesizers.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Callable, Iterable
from enum import Enum
from typing import Any

from nc_core.dialects import numbers as num
from nc_core.errors import UnsupportedInstructionForDialectError
from nc_core.instructions.operations import (
    Arc,
    CancelCycle,
    CannedCycle,
    Comment,
    Coolant,
    CycleCall,
    CycleDefinition,
    CyclePosition,
    DisableMotors,
    Dwell,
    ExtruderAbsolute,
    Home,
    Instruction,
    Linear,
    MetricUnits,
    PositioningMode,
    ProgramEnd,
    ProgramStart,
    Rapid,
    ResetExtruder,
    RigidTapMode,
    SetBedTemperature,
    SetHotendTemperature,
    SpindleOn,
    SpindleOrient,
    SpindleStop,
    ToolChange,
    ToolLengthOffset,
)

logger = logging.getLogger(__name__)


class Dialect(str, Enum):
    """Target controller language."""

    FANUC = "fanuc"
    HEIDENHAIN = "heidenhain"
    MARLIN = "marlin"

    @classmethod
    def parse(cls, value: str | Dialect) -> Dialect:
        """Case-insensitive lookup by name; ``ValueError`` lists options."""
        if isinstance(value, Dialect):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            options = ", ".join(d.value for d in cls)
            raise ValueError(
                f"Unknown dialect {value!r}. Available: {options}"
            ) from None


PROGRAM_EXTENSIONS: dict[Dialect, str] = {
    Dialect.FANUC: ".nc",
    Dialect.HEIDENHAIN: ".h",
    Dialect.MARLIN: ".gcode",
}


def program_extension(dialect: Dialect | str) -> str:
    """File extension conventionally used for *dialect* programs."""
    return PROGRAM_EXTENSIONS[Dialect.parse(dialect)]


# ---------------------------------------------------------------------------
# Shared helpers
# ---------------------------------------------------------------------------


def _unsupported(ins: Instruction, dialect: Dialect, detail: str = "") -> UnsupportedInstructionForDialectError:
    name = ins.kind if not detail else f"{ins.kind}({detail})"
    return UnsupportedInstructionForDialectError(name, dialect.value)


def _axes(fmt: Callable[..., str], **axes: float | None) -> str:
    """Render the named axes that are set, in the order given."""
    return "".join(
        f" {name.upper()}{fmt(value, word=name.upper())}"
        for name, value in axes.items()
        if value is not None
    )


def _program_name(name: str) -> str:
    cleaned = re.sub(r"[^A-Za-z0-9_]+", "_", name.strip()).strip("_").upper()
    return cleaned or "PROGRAM"


# ---------------------------------------------------------------------------
# Fanuc
# ---------------------------------------------------------------------------

_FANUC_COMP = {"left": "G41 D1 ", "right": "G42 D1 ", "off": "G40 "}


def _fanuc_comment(ins: Comment) -> str:
    text = ins.text.upper().replace("(", "[").replace(")", "]")
    return f"({text})"


def _fanuc_rapid(ins: Rapid) -> str:
    aux = f" M{ins.aux}" if ins.aux is not None else ""
    return f"G00{_axes(num.plain, x=ins.x, y=ins.y, z=ins.z)}{aux}"


def _fanuc_linear(ins: Linear) -> str:
    if ins.extrude is not None:
        raise _unsupported(ins, Dialect.FANUC, "extrude")
    comp = _FANUC_COMP[ins.compensation] if ins.compensation else ""
    feed = f" F{num.plain(ins.feed, word='F')}" if ins.feed is not None else ""
    return f"{comp}G01{_axes(num.plain, x=ins.x, y=ins.y, z=ins.z)}{feed}"


def _fanuc_arc(ins: Arc) -> str:
    if ins.extrude is not None:
        raise _unsupported(ins, Dialect.FANUC, "extrude")
    code = "G02" if ins.clockwise else "G03"
    words = _axes(num.plain, x=ins.x, y=ins.y, z=ins.z, i=ins.i, j=ins.j)
    feed = f" F{num.plain(ins.feed, word='F')}" if ins.feed is not None else ""
    return f"{code}{words}{feed}"


def _fanuc_canned(ins: CannedCycle) -> str:
    parts = [
        "G99" if ins.return_to_r else "G98",
        f"G{ins.code}",
        f"R{num.plain(ins.r, word='R')}",
        f"Z{num.plain(ins.z, word='Z')}",
    ]
    if ins.q is not None:
        parts.append(f"Q{num.plain(ins.q, word='Q')}")
    if ins.p_ms is not None:
        parts.append(f"P{ins.p_ms}")
    parts.append(f"F{num.plain(ins.feed, word='F')}")
    return " ".join(parts)


def _fanuc_positioning(ins: PositioningMode) -> str:
    text = "G90" if ins.absolute else "G91"
    if ins.work_offset is not None:
        text += f" G{ins.work_offset}"
    return text


_FANUC: dict[type, Callable[[Any], str]] = {
    Comment: _fanuc_comment,
    ProgramStart: lambda i: f"%\nO{i.number:04d} ({_program_name(i.name)})",
    ProgramEnd: lambda i: "M30\n%",
    MetricUnits: lambda i: "G21",
    PositioningMode: _fanuc_positioning,
    Home: lambda i: "G91 G28 Z0\nG90",
    Rapid: _fanuc_rapid,
    Linear: _fanuc_linear,
    Arc: _fanuc_arc,
    Dwell: lambda i: f"G04 P{num.milliseconds(i.seconds)}",
    ToolChange: lambda i: f"T{i.tool} M6",
    ToolLengthOffset: lambda i: f"G43 Z{num.plain(i.z, word='Z')} H{i.register}",
    SpindleOn: lambda i: f"S{num.plain(i.speed, 0, 'S')} {'M3' if i.clockwise else 'M4'}",
    SpindleStop: lambda i: "M5",
    SpindleOrient: lambda i: "M19",
    RigidTapMode: lambda i: f"M29 S{num.plain(i.speed, 0, 'S')}",
    Coolant: lambda i: "M8" if i.on else "M9",
    CannedCycle: _fanuc_canned,
    CyclePosition: lambda i: f"X{num.plain(i.x, word='X')} Y{num.plain(i.y, word='Y')}",
    CancelCycle: lambda i: "G80",
}


# ---------------------------------------------------------------------------
# Heidenhain
# ---------------------------------------------------------------------------

_HEIDENHAIN_COMP = {"left": " RL", "right": " RR", "off": " R0"}
# Column at which the Q-parameter comment starts
_Q_COMMENT_COL = 14


def _hh_rapid(ins: Rapid) -> str:
    aux = f" M{ins.aux}" if ins.aux is not None else ""
    return f"L{_axes(num.signed, x=ins.x, y=ins.y, z=ins.z)} R0 FMAX{aux}"


def _hh_linear(ins: Linear) -> str:
    if ins.extrude is not None:
        raise _unsupported(ins, Dialect.HEIDENHAIN, "extrude")
    comp = _HEIDENHAIN_COMP[ins.compensation] if ins.compensation else ""
    feed = f" F{num.plain(ins.feed, word='F')}" if ins.feed is not None else ""
    return f"L{_axes(num.signed, x=ins.x, y=ins.y, z=ins.z)}{comp}{feed}"


def _hh_arc(ins: Arc) -> str:
    if ins.extrude is not None:
        raise _unsupported(ins, Dialect.HEIDENHAIN, "extrude")
    # Incremental centre is relative to the last programmed position
    centre = f"CC IX{num.signed(ins.i, word='IX')} IY{num.signed(ins.j, word='IY')}"
    direction = "DR-" if ins.clockwise else "DR+"
    feed = f" F{num.plain(ins.feed, word='F')}" if ins.feed is not None else ""
    end = _axes(num.signed, x=ins.x, y=ins.y, z=ins.z)
    return f"{centre}\nC{end} {direction}{feed}"


def _hh_cycle_definition(ins: CycleDefinition) -> str:
    lines = [f"CYCL DEF {ins.number} {ins.name.upper()}"]
    for q in ins.params:
        fmt = num.signed if q.signed else num.plain
        assign = f"Q{q.number}={fmt(q.value, 4, f'Q{q.number}')}"
        lines.append(f"  {assign:<{_Q_COMMENT_COL}}; {q.comment.upper()}")
    return "\n".join(lines)


def _hh_tool_call(ins: ToolChange) -> str:
    speed = f" S{num.plain(ins.spindle_speed, 0, 'S')}" if ins.spindle_speed is not None else ""
    return f"TOOL CALL {ins.tool} Z{speed}"


def _hh_dwell(ins: Dwell) -> str:
    return (
        "CYCL DEF 9.0 DWELL TIME\n"
        f"CYCL DEF 9.1 DWELL {num.plain(ins.seconds, word='DWELL')}"
    )


_HEIDENHAIN: dict[type, Callable[[Any], str]] = {
    Comment: lambda i: f"; {i.text.upper()}",
    ProgramStart: lambda i: f"BEGIN PGM {_program_name(i.name)} MM",
    ProgramEnd: lambda i: f"END PGM {_program_name(i.name)} MM",
    Rapid: _hh_rapid,
    Linear: _hh_linear,
    Arc: _hh_arc,
    Dwell: _hh_dwell,
    ToolChange: _hh_tool_call,
    SpindleOn: lambda i: (
        f"TOOL CALL S{num.plain(i.speed, 0, 'S')}\n{'M3' if i.clockwise else 'M4'}"
    ),
    SpindleStop: lambda i: "M5",
    Coolant: lambda i: "M8" if i.on else "M9",
    CycleDefinition: _hh_cycle_definition,
    CycleCall: lambda i: "CYCL CALL",
}


# ---------------------------------------------------------------------------
# Marlin
# ---------------------------------------------------------------------------


def _marlin_feed(feed: float | None) -> str:
    return f" F{num.plain(feed, 0, 'F')}" if feed is not None else ""


def _marlin_extrude(extrude: float | None) -> str:
    return f" E{num.fixed(extrude, num.EXTRUDE_DIGITS, 'E')}" if extrude is not None else ""


def _marlin_rapid(ins: Rapid) -> str:
    if ins.aux is not None:
        raise _unsupported(ins, Dialect.MARLIN, "aux")
    return f"G0{_axes(num.fixed, x=ins.x, y=ins.y, z=ins.z)}{_marlin_feed(ins.feed)}"


def _marlin_linear(ins: Linear) -> str:
    if ins.compensation is not None:
        raise _unsupported(ins, Dialect.MARLIN, "compensation")
    axes = _axes(num.fixed, x=ins.x, y=ins.y, z=ins.z)
    return f"G1{axes}{_marlin_extrude(ins.extrude)}{_marlin_feed(ins.feed)}"


def _marlin_arc(ins: Arc) -> str:
    code = "G2" if ins.clockwise else "G3"
    axes = _axes(num.fixed, x=ins.x, y=ins.y, z=ins.z, i=ins.i, j=ins.j)
    return f"{code}{axes}{_marlin_extrude(ins.extrude)}{_marlin_feed(ins.feed)}"


def _marlin_positioning(ins: PositioningMode) -> str:
    text = "G90" if ins.absolute else "G91"
    if ins.work_offset is not None:
        text += f" G{ins.work_offset}"
    return text


_MARLIN: dict[type, Callable[[Any], str]] = {
    Comment: lambda i: f"; {i.text}",
    MetricUnits: lambda i: "G21",
    PositioningMode: _marlin_positioning,
    Home: lambda i: "G28",
    Rapid: _marlin_rapid,
    Linear: _marlin_linear,
    Arc: _marlin_arc,
    Dwell: lambda i: f"G4 P{num.milliseconds(i.seconds)}",
    ToolChange: lambda i: f"T{i.tool}",
    ExtruderAbsolute: lambda i: "M82",
    ResetExtruder: lambda i: f"G92 E{num.plain(i.value, word='E')}",
    SetHotendTemperature: lambda i: f"{'M109' if i.wait else 'M104'} S{num.plain(i.celsius, 0, 'S')}",
    SetBedTemperature: lambda i: f"{'M190' if i.wait else 'M140'} S{num.plain(i.celsius, 0, 'S')}",
    DisableMotors: lambda i: "M84",
}


_TABLES: dict[Dialect, dict[type, Callable[[Any], str]]] = {
    Dialect.FANUC: _FANUC,
    Dialect.HEIDENHAIN: _HEIDENHAIN,
    Dialect.MARLIN: _MARLIN,
}


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def supports(instruction_type: type, dialect: Dialect | str) -> bool:
    """Whether *dialect* has a mapping for *instruction_type*."""
    return instruction_type in _TABLES[Dialect.parse(dialect)]


def emit(instruction: Instruction, dialect: Dialect | str) -> str:
    """Render one instruction as NC text.

    Parameters
    ----------
    instruction : Instruction
        Instruction to render.
    dialect : Dialect | str
        Target controller language.

    Returns
    -------
    str
        One or more lines (no trailing newline).

    Raises
    ------
    UnsupportedInstructionForDialectError
        If the dialect has no mapping for this instruction kind or for one
        of the options it carries.
    EmissionError
        If a coordinate or feed is not finite.
    """
    d = Dialect.parse(dialect)
    handler = _TABLES[d].get(type(instruction))
    if handler is None:
        raise _unsupported(instruction, d)
    return handler(instruction)


def render(
    instructions: Iterable[Instruction],
    dialect: Dialect | str,
    *,
    line_numbers: bool = False,
) -> str:
    """Render a sequence of instructions into program text.

    Parameters
    ----------
    instructions : Iterable[Instruction]
        Instructions in execution order.
    dialect : Dialect | str
        Target controller language.
    line_numbers : bool
        Prefix blocks with sequence numbers (``N10``, ``N20``... for Fanuc,
        ``0``, ``1``... for Heidenhain).  Ignored for Marlin.

    Returns
    -------
    str
        Newline-terminated program text.
    """
    d = Dialect.parse(dialect)
    lines: list[str] = []
    for ins in instructions:
        lines.extend(emit(ins, d).split("\n"))

    if line_numbers and d is not Dialect.MARLIN:
        lines = _number_blocks(lines, d)
    return "\n".join(lines) + "\n"


def _number_blocks(lines: list[str], dialect: Dialect) -> list[str]:
    out: list[str] = []
    counter = 0
    for line in lines:
        # Program delimiters and parameter continuation lines stay bare
        if line == "%" or line.startswith(" "):
            out.append(line)
            continue
        if dialect is Dialect.FANUC:
            counter += 10
            out.append(f"N{counter} {line}")
        else:
            out.append(f"{counter} {line}")
            counter += 1
    return out
