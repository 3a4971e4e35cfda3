"""Cycle registry: id -> template lookup in declaration order."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Iterator, Mapping, Sequence
from typing import Any

from nc_core.cycles.base import CycleTemplate
from nc_core.cycles.drilling import DRILLING_CYCLES
from nc_core.cycles.milling import MILLING_CYCLES
from nc_core.cycles.pockets import POCKET_CYCLES
from nc_core.cycles.thread_cycles import THREAD_CYCLES
from nc_core.dialects.emitter import Dialect
from nc_core.errors import UnknownCycleError

logger = logging.getLogger(__name__)


class CycleRegistry:
    """Immutable collection of cycle templates keyed by id.

    Raises
    ------
    ValueError
        If two templates share an id.
    """

    def __init__(self, templates: Iterable[CycleTemplate]) -> None:
        self._templates: dict[str, CycleTemplate] = {}
        for template in templates:
            if template.id in self._templates:
                raise ValueError(f"Duplicate cycle id '{template.id}'")
            self._templates[template.id] = template

    def __iter__(self) -> Iterator[CycleTemplate]:
        return iter(self._templates.values())

    def __len__(self) -> int:
        return len(self._templates)

    def __contains__(self, cycle_id: object) -> bool:
        return cycle_id in self._templates

    def get(self, cycle_id: str) -> CycleTemplate:
        """Template registered under *cycle_id*.

        Raises
        ------
        UnknownCycleError
            If no template has that id; the message lists the known ids.
        """
        try:
            return self._templates[cycle_id]
        except KeyError:
            raise UnknownCycleError(cycle_id, self.ids()) from None

    def ids(self) -> tuple[str, ...]:
        return tuple(self._templates)

    def for_dialect(self, dialect: Dialect | str) -> list[CycleTemplate]:
        """Templates that can be generated for *dialect*."""
        d = Dialect.parse(dialect)
        return [t for t in self._templates.values() if t.supports(d)]


DEFAULT_REGISTRY = CycleRegistry(
    (*DRILLING_CYCLES, *THREAD_CYCLES, *POCKET_CYCLES, *MILLING_CYCLES)
)


def get_cycle(cycle_id: str) -> CycleTemplate:
    return DEFAULT_REGISTRY.get(cycle_id)


def generate(
    cycle_id: str,
    params: Mapping[str, Any] | None,
    dialect: Dialect | str,
    positions: Iterable[Sequence[float]] | None = None,
    **kwargs: Any,
) -> str:
    """Look up *cycle_id* in the default registry and render it.

    Keyword arguments are passed to :meth:`CycleTemplate.generate`.
    """
    template = get_cycle(cycle_id)
    logger.info("Generating cycle %s (%s)", cycle_id, Dialect.parse(dialect).value)
    return template.generate(params, dialect, positions, **kwargs)
