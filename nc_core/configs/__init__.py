"""
Configuration module.

Process settings schema, YAML loading and per-part settings resolution.
"""

from nc_core.configs.loader import load_settings, settings_from_mapping
from nc_core.configs.settings import (
    Goals,
    InfillPattern,
    Objective,
    PrintOrientation,
    PrintResolution,
    ProcessSettings,
    SupportType,
)
from nc_core.configs.tuning import resolve

__all__ = [
    "Goals",
    "InfillPattern",
    "Objective",
    "PrintOrientation",
    "PrintResolution",
    "ProcessSettings",
    "SupportType",
    "load_settings",
    "resolve",
    "settings_from_mapping",
]
