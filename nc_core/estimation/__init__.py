"""
Estimation module.

Closed-form time/material estimates from the envelope, and exact metrics
measured over an instruction stream.
"""

from nc_core.estimation.materials import DENSITY_FACTORS, density_for
from nc_core.estimation.metrics import ProgramMetrics, measure
from nc_core.estimation.model import (
    EstimationResult,
    estimate,
    estimate_material,
    estimate_time,
)

__all__ = [
    "DENSITY_FACTORS",
    "EstimationResult",
    "ProgramMetrics",
    "density_for",
    "estimate",
    "estimate_material",
    "estimate_time",
    "measure",
]
