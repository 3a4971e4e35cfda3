"""
NC Core Package.

Turns primitive shapes and parameterised machining cycles into controller
programs: layered printer G-code (Marlin), pocketing and cycle programs for
Fanuc and Heidenhain controls, and the time/material estimates that go with
them.

Subpackages:
    geometry: Primitive shapes and the envelope profiler
    instructions: Dialect-neutral instruction set
    dialects: Instruction to NC text emitters
    cycles: Cycle templates, parameter schemas and the registry
    toolpath: Additive and subtractive synthesizers
    estimation: Closed-form estimates and measured program metrics
    configs: Process settings loading and per-part resolution
"""

__version__ = "0.1.0"

__all__ = [
    "geometry",
    "instructions",
    "dialects",
    "cycles",
    "toolpath",
    "estimation",
    "configs",
]
