"""Process settings and generation goals.

Validated with pydantic so a bad value fails fast with the offending field,
the expected range and the value received.  Field names are snake_case;
camelCase aliases (``layerHeight``, ``infillDensity``...) are accepted so an
editor's settings record validates as-is.

Units:
    - Geometry: millimetres (mm)
    - Printer speeds: mm/s (converted to ``F`` mm/min by the synthesizer)
    - Milling feeds: mm/min
    - Temperatures: degrees Celsius
"""

from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel

MAX_PRINT_SPEED = 500.0  # mm/s


class InfillPattern(str, Enum):
    """Interior fill strategy.

    ``lines`` alternates scan direction by layer parity, ``grid`` lays both
    directions on every layer, ``concentric`` repeats the outline inward.
    """

    LINES = "lines"
    GRID = "grid"
    CONCENTRIC = "concentric"


class SupportType(str, Enum):
    NONE = "none"
    MINIMAL = "minimal"
    FULL = "full"


class PrintResolution(str, Enum):
    LOW = "low"
    STANDARD = "standard"
    HIGH = "high"


class PrintOrientation(str, Enum):
    """``minimize_height`` lays a box on its largest face."""

    AS_IS = "as_is"
    MINIMIZE_HEIGHT = "minimize_height"


class Objective(str, Enum):
    BALANCED = "balanced"
    SPEED = "speed"
    QUALITY = "quality"
    STRENGTH = "strength"


_MODEL_CONFIG = ConfigDict(
    frozen=True,
    extra="forbid",
    alias_generator=to_camel,
    populate_by_name=True,
)


class ProcessSettings(BaseModel):
    """Everything the synthesizers and the estimator need besides geometry."""

    model_config = _MODEL_CONFIG

    # -- additive ------------------------------------------------------------
    layer_height: float = Field(0.2, gt=0.0, le=2.0, description="Layer height (mm)")
    nozzle_diameter: float = Field(0.4, gt=0.0, le=3.0, description="Nozzle / extrusion width (mm)")
    filament_diameter: float = Field(1.75, gt=0.0, le=5.0, description="Filament diameter (mm)")
    print_speed: float = Field(60.0, gt=0.0, le=MAX_PRINT_SPEED, description="Print speed (mm/s)")
    travel_speed: float = Field(50.0, gt=0.0, le=1000.0, description="Travel speed (mm/s)")
    print_temperature: float = Field(200.0, ge=0.0, le=450.0, description="Hotend (C)")
    bed_temperature: float = Field(60.0, ge=0.0, le=150.0, description="Bed (C)")
    retract_length: float = Field(2.0, ge=0.0, le=20.0, description="Final retraction (mm)")
    retract_speed: float = Field(30.0, gt=0.0, le=200.0, description="Retraction speed (mm/s)")
    flat_extrusion_height: float = Field(
        5.0, gt=0.0, le=500.0,
        description="Height given to flat shapes when printed (mm)",
    )

    # -- strategy ------------------------------------------------------------
    infill_density: float = Field(20.0, ge=0.0, le=100.0, description="Infill (%)")
    infill_pattern: InfillPattern = InfillPattern.LINES
    shell_count: int = Field(2, ge=0, le=20, description="Perimeters per layer")
    support_type: SupportType = SupportType.NONE
    print_resolution: PrintResolution = PrintResolution.STANDARD
    print_orientation: PrintOrientation = PrintOrientation.AS_IS
    material: str = Field("plastic", min_length=1, description="Material identifier")

    # -- milling -------------------------------------------------------------
    tool_diameter: float = Field(6.0, gt=0.0, le=100.0, description="Cutter diameter (mm)")
    tool_number: int = Field(1, ge=0, le=999)
    spindle_speed: float = Field(8000.0, gt=0.0, le=60000.0, description="Spindle (rpm)")
    feed_rate: float = Field(800.0, gt=0.0, le=20000.0, description="Cutting feed (mm/min)")
    plunge_rate: float = Field(300.0, gt=0.0, le=10000.0, description="Plunge feed (mm/min)")
    stepdown: float = Field(2.0, gt=0.0, le=50.0, description="Depth per level (mm)")
    stepover: float = Field(2.4, gt=0.0, le=100.0, description="Scan spacing (mm)")
    finish_allowance: float = Field(0.2, ge=0.0, le=5.0, description="Stock left on walls (mm)")
    cut_depth: float = Field(5.0, gt=0.0, le=200.0, description="Pocket depth for flat shapes (mm)")

    # -- motion --------------------------------------------------------------
    safe_z: float = Field(5.0, gt=0.0, le=200.0, description="Retract plane above stock (mm)")
    clearance_z: float = Field(50.0, gt=0.0, le=500.0, description="Tool change height (mm)")
    rapid_feed: float = Field(5000.0, gt=0.0, le=60000.0, description="Traverse rate for estimates (mm/min)")

    @field_validator("material")
    @classmethod
    def _normalise_material(cls, v: str) -> str:
        return v.strip().lower()

    @model_validator(mode="after")
    def _check_relations(self) -> "ProcessSettings":
        if self.layer_height > self.nozzle_diameter:
            raise ValueError(
                f"layer_height ({self.layer_height}) must not exceed "
                f"nozzle_diameter ({self.nozzle_diameter})"
            )
        if self.stepover > self.tool_diameter:
            raise ValueError(
                f"stepover ({self.stepover}) must not exceed "
                f"tool_diameter ({self.tool_diameter})"
            )
        return self

    @property
    def extrusion_width(self) -> float:
        return self.nozzle_diameter

    @property
    def tool_radius(self) -> float:
        return self.tool_diameter / 2.0

    def with_updates(self, **changes: Any) -> "ProcessSettings":
        """Return a re-validated copy with *changes* applied."""
        return type(self).model_validate({**self.model_dump(), **changes})


class Goals(BaseModel):
    """What the caller wants optimised.

    Parameters
    ----------
    auto_tune : bool
        Derive layer height, infill, shells, speed and support from the
        part's size instead of taking the settings verbatim.
    objective : Objective
        Bias applied on top of auto-tuning.
    """

    model_config = _MODEL_CONFIG

    auto_tune: bool = False
    objective: Objective = Objective.BALANCED
