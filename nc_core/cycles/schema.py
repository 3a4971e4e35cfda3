"""Cycle parameter schemas.

Each cycle declares an ordered list of :class:`ParameterSpec` entries.  The
schema serves two audiences:

* editors and the CLI, which read names, units, bounds and defaults to
  build a form and :meth:`CycleParameterSchema.clamp` raw input into range;
* callers that want a strict check, which use
  :meth:`CycleParameterSchema.validate` (a pydantic model generated from the
  specs, so bounds errors name the field, the limit and the value).

Parameter names are camelCase, matching the records editors exchange.
"""

from __future__ import annotations

import math
from collections.abc import Iterable, Iterator, Mapping
from dataclasses import dataclass
from functools import cached_property
from typing import Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError, create_model

from nc_core.errors import InvalidParameterError

ParamType = Literal["number", "select", "checkbox"]
ParamValue = Union[float, int, str, bool]

_TRUE = {"true", "1", "yes", "on"}
_FALSE = {"false", "0", "no", "off", ""}


@dataclass(frozen=True, slots=True)
class ParameterSpec:
    """One user-facing cycle parameter.

    Parameters
    ----------
    name : str
        Key in the parameter mapping (camelCase).
    label : str
        Human-readable name.
    type : ``"number"`` | ``"select"`` | ``"checkbox"``
        Value kind.
    default : float | int | str | bool
        Value used when the caller omits the parameter.
    min, max : float | None
        Inclusive bounds for numbers.
    step : float | None
        Editor increment hint; not enforced.
    unit : str
        Display unit (``mm``, ``mm/min``, ``RPM``, ``s``, ``deg``...).
    options : tuple[str, ...]
        Allowed values of a select.
    integer : bool
        Number is a count and is rounded to an int.
    description : str
        Help text.
    """

    name: str
    label: str
    type: ParamType
    default: ParamValue
    min: float | None = None
    max: float | None = None
    step: float | None = None
    unit: str = ""
    options: tuple[str, ...] = ()
    integer: bool = False
    description: str = ""


def number(
    name: str,
    label: str,
    default: float,
    min: float,
    max: float,
    *,
    step: float | None = None,
    unit: str = "mm",
    integer: bool = False,
    description: str = "",
) -> ParameterSpec:
    return ParameterSpec(
        name, label, "number", int(default) if integer else float(default),
        min=min, max=max, step=step if step is not None else (1 if integer else 0.1),
        unit=unit, integer=integer, description=description,
    )


def select(
    name: str, label: str, default: str, options: Iterable[str], *, description: str = "",
) -> ParameterSpec:
    opts = tuple(options)
    if default not in opts:
        raise ValueError(f"default {default!r} of {name} not in options {opts}")
    return ParameterSpec(name, label, "select", default, unit="", options=opts,
                         description=description)


def checkbox(name: str, label: str, default: bool, *, description: str = "") -> ParameterSpec:
    return ParameterSpec(name, label, "checkbox", bool(default), unit="", description=description)


def _as_bool(value: Any) -> bool:
    if isinstance(value, str):
        v = value.strip().lower()
        if v in _TRUE:
            return True
        if v in _FALSE:
            return False
        raise ValueError(f"not a boolean: {value!r}")
    return bool(value)


class CycleParameterSchema:
    """Ordered, immutable collection of parameter specs for one cycle."""

    def __init__(self, cycle_id: str, specs: Iterable[ParameterSpec]) -> None:
        self.cycle_id = cycle_id
        self._specs = tuple(specs)
        names = [s.name for s in self._specs]
        duplicates = {n for n in names if names.count(n) > 1}
        if duplicates:
            raise ValueError(f"{cycle_id}: duplicate parameters {sorted(duplicates)}")
        self._by_name = {s.name: s for s in self._specs}

    def __iter__(self) -> Iterator[ParameterSpec]:
        return iter(self._specs)

    def __len__(self) -> int:
        return len(self._specs)

    def __contains__(self, name: object) -> bool:
        return name in self._by_name

    def __getitem__(self, name: str) -> ParameterSpec:
        return self._by_name[name]

    @property
    def names(self) -> tuple[str, ...]:
        return tuple(self._by_name)

    def defaults(self) -> dict[str, ParamValue]:
        return {s.name: s.default for s in self._specs}

    def _reject_unknown(self, params: Mapping[str, Any]) -> None:
        unknown = [k for k in params if k not in self._by_name]
        if unknown:
            raise InvalidParameterError(
                self.cycle_id, {k: "unknown parameter" for k in unknown},
            )

    def merged(self, params: Mapping[str, Any] | None) -> dict[str, Any]:
        """Defaults overlaid with *params*; values are taken as given.

        Raises
        ------
        InvalidParameterError
            If *params* names a parameter the cycle does not declare.
        """
        params = dict(params or {})
        self._reject_unknown(params)
        return {**self.defaults(), **params}

    def clamp(self, params: Mapping[str, Any] | None) -> dict[str, ParamValue]:
        """Fill in defaults and force every value into its declared range.

        Numbers are clamped to ``[min, max]`` (and rounded when they are
        counts), checkbox values are coerced to ``bool``.  Selects are passed
        through; :meth:`validate` checks them.

        Raises
        ------
        InvalidParameterError
            For unknown keys and for values that cannot be read as the
            declared type.
        """
        merged = self.merged(params)
        problems: dict[str, str] = {}
        out: dict[str, ParamValue] = {}
        for spec in self._specs:
            value = merged[spec.name]
            try:
                if spec.type == "number":
                    if isinstance(value, bool):
                        raise ValueError("expected a number, got a boolean")
                    v = float(value)
                    if not math.isfinite(v):
                        raise ValueError(f"not finite: {value!r}")
                    if spec.min is not None:
                        v = max(spec.min, v)
                    if spec.max is not None:
                        v = min(spec.max, v)
                    out[spec.name] = int(round(v)) if spec.integer else v
                elif spec.type == "checkbox":
                    out[spec.name] = _as_bool(value)
                else:
                    out[spec.name] = str(value)
            except (TypeError, ValueError) as exc:
                problems[spec.name] = str(exc)
        if problems:
            raise InvalidParameterError(self.cycle_id, problems)
        return out

    @cached_property
    def model(self) -> type[BaseModel]:
        """Pydantic model mirroring the specs (built once per schema)."""
        fields: dict[str, Any] = {}
        for spec in self._specs:
            if spec.type == "number":
                annotation: Any = int if spec.integer else float
                fields[spec.name] = (
                    annotation,
                    Field(spec.default, ge=spec.min, le=spec.max, description=spec.description),
                )
            elif spec.type == "select":
                fields[spec.name] = (
                    Literal[spec.options],
                    Field(spec.default, description=spec.description),
                )
            else:
                fields[spec.name] = (bool, Field(spec.default, description=spec.description))
        model_name = "".join(part.title() for part in self.cycle_id.split("-")) + "Params"
        return create_model(
            model_name,
            __config__=ConfigDict(extra="forbid", frozen=True),
            **fields,
        )

    def validate(self, params: Mapping[str, Any] | None) -> dict[str, ParamValue]:
        """Strict check against the declared types, bounds and options.

        Returns
        -------
        dict
            Complete parameter set (defaults filled in).

        Raises
        ------
        InvalidParameterError
            Listing every offending field.
        """
        try:
            validated = self.model.model_validate(dict(params or {}))
        except ValidationError as exc:
            problems = {
                ".".join(str(p) for p in err["loc"]) or "__root__": err["msg"]
                for err in exc.errors()
            }
            raise InvalidParameterError(self.cycle_id, problems) from None
        return validated.model_dump()

    def describe(self) -> list[dict[str, Any]]:
        """Plain records for listing (CLI, editors)."""
        rows = []
        for s in self._specs:
            row: dict[str, Any] = {"name": s.name, "label": s.label, "type": s.type,
                                   "default": s.default}
            if s.type == "number":
                row.update(min=s.min, max=s.max, unit=s.unit)
            if s.options:
                row["options"] = list(s.options)
            rows.append(row)
        return rows
