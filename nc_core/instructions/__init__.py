"""
Instruction module.

Dialect-neutral intermediate representation shared by the cycle library,
the toolpath synthesizers and the emitter.
"""

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
    QParam,
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
    translate,
)

__all__ = [
    "Arc",
    "CancelCycle",
    "CannedCycle",
    "Comment",
    "Coolant",
    "CycleCall",
    "CycleDefinition",
    "CyclePosition",
    "DisableMotors",
    "Dwell",
    "ExtruderAbsolute",
    "Home",
    "Instruction",
    "Linear",
    "MetricUnits",
    "PositioningMode",
    "ProgramEnd",
    "ProgramStart",
    "QParam",
    "Rapid",
    "ResetExtruder",
    "RigidTapMode",
    "SetBedTemperature",
    "SetHotendTemperature",
    "SpindleOn",
    "SpindleOrient",
    "SpindleStop",
    "ToolChange",
    "ToolLengthOffset",
    "translate",
]
