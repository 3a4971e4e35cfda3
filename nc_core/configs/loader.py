"""Configuration loader for process settings.

Loads ``process.yaml`` into a validated, frozen :class:`ProcessSettings`.
The YAML groups fields into sections (``printer``, ``strategy``,
``milling``, ``motion``) which are flattened before validation, so each
field name must appear in exactly one section.

Usage::

    from nc_core.configs.loader import load_settings
    settings = load_settings()                      # default path
    settings = load_settings("/shop/process.yaml")  # explicit path
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from nc_core.configs.settings import ProcessSettings
from nc_core.errors import ConfigError
from nc_core.utils.fs import load_yaml

logger = logging.getLogger(__name__)

DEFAULT_SETTINGS_PATH = Path(__file__).parent / "process.yaml"

SECTIONS = ("printer", "strategy", "milling", "motion")


def _describe(exc: ValidationError) -> str:
    """One line per failing field: ``loc: message (got value)``."""
    lines = []
    for err in exc.errors():
        loc = ".".join(str(part) for part in err["loc"]) or "<root>"
        got = err.get("input")
        suffix = "" if isinstance(got, Mapping) else f" (got {got!r})"
        lines.append(f"{loc}: {err['msg']}{suffix}")
    return "; ".join(lines)


def _flatten(data: Mapping[str, Any], source: str) -> dict[str, Any]:
    flat: dict[str, Any] = {}
    for name, section in data.items():
        if name not in SECTIONS:
            raise ConfigError(
                f"Unknown section '{name}' in {source}. "
                f"Expected: {', '.join(SECTIONS)}"
            )
        if section is None:
            continue
        if not isinstance(section, Mapping):
            raise ConfigError(f"Section '{name}' in {source} must be a mapping")
        for key, value in section.items():
            if key in flat:
                raise ConfigError(f"Field '{key}' set twice in {source}")
            flat[key] = value
    return flat


def settings_from_mapping(
    data: Mapping[str, Any], *, source: str = "<mapping>",
) -> ProcessSettings:
    """Validate a flat settings record.

    Parameters
    ----------
    data : Mapping[str, Any]
        Field values by snake_case name or camelCase alias.
    source : str
        Where the record came from, for error messages.

    Raises
    ------
    ConfigError
        If any field is unknown or out of range.
    """
    try:
        return ProcessSettings.model_validate(dict(data))
    except ValidationError as exc:
        raise ConfigError(f"Invalid process settings in {source}: {_describe(exc)}") from exc


def load_settings(path: str | Path | None = None) -> ProcessSettings:
    """Load and validate process settings from YAML.

    Parameters
    ----------
    path : str | Path | None
        Path to a settings file.  ``None`` loads the defaults shipped
        alongside this module.

    Returns
    -------
    ProcessSettings
        Fully validated, frozen settings.

    Raises
    ------
    ConfigError
        If the file is empty, malformed or fails validation.
    FileNotFoundError
        If *path* does not exist.
    """
    path = DEFAULT_SETTINGS_PATH if path is None else Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Configuration file not found: {path}")

    logger.info("Loading process settings from %s", path)

    try:
        data = load_yaml(path)
    except yaml.YAMLError as exc:
        raise ConfigError(str(exc)) from exc

    if data is None:
        raise ConfigError(f"Empty configuration file: {path}")
    if not isinstance(data, Mapping):
        raise ConfigError(f"Top level of {path} must be a mapping")

    return settings_from_mapping(_flatten(data, str(path)), source=str(path))
