"""Result types shared by the additive and subtractive synthesizers."""

from __future__ import annotations

from dataclasses import dataclass

from nc_core.dialects.emitter import Dialect
from nc_core.estimation.metrics import ProgramMetrics
from nc_core.instructions.operations import Instruction


@dataclass(frozen=True, slots=True)
class DegenerateOffsetSkipped:
    """A pass that collapsed to nothing and was left out.

    Not an error: recorded on the program and logged at DEBUG.

    Parameters
    ----------
    layer : int
        Layer (or depth level) index.
    pass_kind : str
        ``"layer"``, ``"shell"``, ``"infill"`` or ``"contour"``.
    value : float
        The size that went non-positive (or under its threshold).
    reason : str
        Short explanation.
    """

    layer: int
    pass_kind: str
    value: float
    reason: str


@dataclass(frozen=True, slots=True)
class LayerSummary:
    """What was emitted for one layer or depth level."""

    index: int
    z: float
    shell_passes: int
    infill_passes: int
    pattern: str


@dataclass(frozen=True, slots=True)
class ToolpathProgram:
    """Instructions, rendered text and the metrics of the same pass."""

    dialect: Dialect
    instructions: tuple[Instruction, ...]
    text: str
    metrics: ProgramMetrics
    layers: tuple[LayerSummary, ...] = ()
    skipped: tuple[DegenerateOffsetSkipped, ...] = ()

    @property
    def layer_count(self) -> int:
        return len(self.layers)
