"""Tests for process settings, YAML loading and per-part resolution.

Validates:
    - Shipped process.yaml loads into the model defaults
    - camelCase aliases, range checks and cross-field relations
    - Loader errors: unknown sections, duplicate fields, empty files
    - Auto-tuning and objective rules in resolve()
    - Atomic writes and YAML helpers
"""

from __future__ import annotations

from pathlib import Path

import pytest
from pydantic import ValidationError

from nc_core.configs import (
    Goals,
    InfillPattern,
    ProcessSettings,
    SupportType,
    load_settings,
    resolve,
    settings_from_mapping,
)
from nc_core.configs.settings import MAX_PRINT_SPEED
from nc_core.errors import ConfigError
from nc_core.geometry.primitives import Box, Composite, Sphere
from nc_core.toolpath.additive import synthesize
from nc_core.utils.fs import atomic_write_text, load_yaml


def _write(tmp_path: Path, text: str) -> Path:
    path = tmp_path / "process.yaml"
    path.write_text(text, encoding="utf-8")
    return path


# ---------------------------------------------------------------------------
# Settings model
# ---------------------------------------------------------------------------


class TestProcessSettings:
    def test_defaults(self) -> None:
        s = ProcessSettings()
        assert s.layer_height == 0.2
        assert s.infill_pattern is InfillPattern.LINES
        assert s.extrusion_width == s.nozzle_diameter
        assert s.tool_radius == 3.0

    def test_camel_case_aliases(self) -> None:
        s = ProcessSettings.model_validate({"layerHeight": 0.1, "infillDensity": 50})
        assert (s.layer_height, s.infill_density) == (0.1, 50)

    def test_frozen(self) -> None:
        s = ProcessSettings()
        with pytest.raises(ValidationError):
            s.layer_height = 0.3

    def test_material_normalised(self) -> None:
        assert ProcessSettings(material=" PETG ").material == "petg"

    def test_layer_height_exceeds_nozzle(self) -> None:
        with pytest.raises(ValueError, match="nozzle_diameter"):
            ProcessSettings(layer_height=0.5, nozzle_diameter=0.4)

    def test_stepover_exceeds_tool(self) -> None:
        with pytest.raises(ValueError, match="tool_diameter"):
            ProcessSettings(stepover=8, tool_diameter=6)

    def test_with_updates_revalidates(self) -> None:
        s = ProcessSettings()
        assert s.with_updates(shell_count=4).shell_count == 4
        with pytest.raises(ValueError):
            s.with_updates(infill_density=150)


# ---------------------------------------------------------------------------
# Loader
# ---------------------------------------------------------------------------


class TestLoader:
    def test_shipped_defaults(self) -> None:
        assert load_settings() == ProcessSettings()

    def test_sections_flattened(self, tmp_path: Path) -> None:
        path = _write(tmp_path, "printer:\n  layerHeight: 0.12\nmilling:\n  tool_diameter: 10\n")
        s = load_settings(path)
        assert s.layer_height == 0.12
        assert s.tool_diameter == 10

    def test_empty_section_allowed(self, tmp_path: Path) -> None:
        assert load_settings(_write(tmp_path, "printer:\n")) == ProcessSettings()

    def test_unknown_section(self, tmp_path: Path) -> None:
        with pytest.raises(ConfigError, match="Unknown section 'laser'"):
            load_settings(_write(tmp_path, "laser:\n  power: 5\n"))

    def test_field_set_twice(self, tmp_path: Path) -> None:
        text = "printer:\n  material: pla\nstrategy:\n  material: abs\n"
        with pytest.raises(ConfigError, match="set twice"):
            load_settings(_write(tmp_path, text))

    def test_out_of_range_names_field(self, tmp_path: Path) -> None:
        with pytest.raises(ConfigError, match="got 120"):
            load_settings(_write(tmp_path, "strategy:\n  infill_density: 120\n"))

    def test_unknown_field(self, tmp_path: Path) -> None:
        with pytest.raises(ConfigError, match="speed_of_light"):
            load_settings(_write(tmp_path, "motion:\n  speed_of_light: 3\n"))

    def test_empty_file(self, tmp_path: Path) -> None:
        with pytest.raises(ConfigError, match="Empty"):
            load_settings(_write(tmp_path, ""))

    def test_malformed_yaml(self, tmp_path: Path) -> None:
        with pytest.raises(ConfigError):
            load_settings(_write(tmp_path, "printer: [unclosed\n"))

    def test_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(FileNotFoundError):
            load_settings(tmp_path / "nope.yaml")

    def test_from_mapping(self) -> None:
        assert settings_from_mapping({"shellCount": 3}).shell_count == 3
        with pytest.raises(ConfigError, match="<mapping>"):
            settings_from_mapping({"shell_count": -1})


# ---------------------------------------------------------------------------
# Resolution
# ---------------------------------------------------------------------------


class TestResolve:
    def test_verbatim_without_goals(self) -> None:
        s = ProcessSettings()
        shape, out = resolve(Box(10, 10, 10), s)
        assert out is s
        assert shape == Box(10, 10, 10)

    def test_auto_tune_size_rules(self) -> None:
        _, small = resolve(Box(20, 20, 20), goals=Goals(auto_tune=True))
        assert small.layer_height == 0.1
        # 8000 mm^3 sits between the volume thresholds
        assert small.infill_density == 20

        _, large = resolve(Box(200, 200, 200), goals=Goals(auto_tune=True))
        assert large.layer_height == 0.3
        assert large.infill_density == 15
        assert large.shell_count == 3

    def test_auto_tune_mid_size(self) -> None:
        _, s = resolve(Box(100, 100, 15), goals=Goals(auto_tune=True))
        assert s.layer_height == 0.15

    def test_auto_tune_speed_and_support(self) -> None:
        _, s = resolve(Sphere(radius=20), goals=Goals(auto_tune=True))
        assert s.print_speed == 40
        assert s.support_type is SupportType.MINIMAL
        _, c = resolve(Composite(label="torus", size=20), goals=Goals(auto_tune=True))
        assert c.print_speed == 50

    def test_resolution_override(self) -> None:
        base = ProcessSettings(print_resolution="high")
        _, s = resolve(Box(200, 200, 200), base, Goals(auto_tune=True))
        assert s.layer_height == 0.1

    def test_objectives(self) -> None:
        shape = Box(50, 50, 50)
        _, speed = resolve(shape, goals=Goals(objective="speed"))
        assert (speed.layer_height, speed.infill_density, speed.print_speed) == (0.3, 10, 75)
        _, quality = resolve(shape, goals=Goals(objective="quality"))
        assert (quality.layer_height, quality.print_speed) == (0.1, 45)
        _, strength = resolve(shape, goals=Goals(objective="strength"))
        assert (strength.shell_count, strength.infill_density) == (3, 40)

    def test_layer_height_capped_by_nozzle(self) -> None:
        base = ProcessSettings(layer_height=0.3, nozzle_diameter=0.4)
        _, s = resolve(Box(50, 50, 50), base, Goals(objective="speed"))
        assert s.layer_height == 0.4

    def test_speed_objective_capped_at_field_bound(self) -> None:
        base = ProcessSettings(print_speed=450)
        _, s = resolve(Box(50, 50, 50), base, Goals(objective="speed"))
        assert s.print_speed == MAX_PRINT_SPEED
        assert synthesize(Box(10, 10, 1), base, Goals(objective="speed")).layer_count > 0


# ---------------------------------------------------------------------------
# Filesystem helpers
# ---------------------------------------------------------------------------


class TestFs:
    def test_atomic_write_creates_parents(self, tmp_path: Path) -> None:
        target = tmp_path / "out" / "part.nc"
        atomic_write_text(target, "G00 X0\n")
        assert target.read_text() == "G00 X0\n"
        assert not (tmp_path / "out" / "part.nc.tmp").exists()

    def test_atomic_write_overwrites(self, tmp_path: Path) -> None:
        target = tmp_path / "part.nc"
        atomic_write_text(target, "old")
        atomic_write_text(target, "new")
        assert target.read_text() == "new"

    def test_load_yaml(self, tmp_path: Path) -> None:
        path = _write(tmp_path, "a: 1\n")
        assert load_yaml(path) == {"a": 1}

    def test_load_yaml_missing(self, tmp_path: Path) -> None:
        with pytest.raises(FileNotFoundError):
            load_yaml(tmp_path / "missing.yaml")
