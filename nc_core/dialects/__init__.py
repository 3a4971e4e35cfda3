"""
Dialect module.

Renders instructions as Fanuc, Heidenhain or Marlin program text.
"""

from nc_core.dialects.emitter import (
    Dialect,
    emit,
    program_extension,
    render,
    supports,
)

__all__ = ["Dialect", "emit", "program_extension", "render", "supports"]
