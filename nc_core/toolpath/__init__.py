"""
Toolpath synthesis.

Additive (layered printer programs) and subtractive (2.5-D pockets)
synthesizers, the slicing plans they share and the default toolpath used
for shapes without a dedicated generator.
"""

from nc_core.toolpath.additive import extrusion_per_mm, infill_spacing, synthesize
from nc_core.toolpath.program import DegenerateOffsetSkipped, LayerSummary, ToolpathProgram
from nc_core.toolpath.subtractive import pass_depths, synthesize_milling

__all__ = [
    "DegenerateOffsetSkipped",
    "LayerSummary",
    "ToolpathProgram",
    "extrusion_per_mm",
    "infill_spacing",
    "pass_depths",
    "synthesize",
    "synthesize_milling",
]
