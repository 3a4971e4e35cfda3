"""NC program generator CLI.

Subcommands:
    list-cycles   Cycle ids, names and dialects
    cycle         Render one cycle template
    print         Layered printer program (Marlin) for a primitive
    mill          Pocketing program (Fanuc/Heidenhain) for a primitive
    estimate      Closed-form print time and material for a primitive

Shapes are given as an inline YAML/JSON mapping or a path to a YAML file::

    nc-generate print --shape '{kind: box, width: 20, height: 20, depth: 20}'
    nc-generate mill --shape part.yaml --dialect heidenhain --output out/part
    nc-generate cycle simple-drilling --dialect fanuc \\
        --param depth=25 --position 0,0 --position 40,0 --program-number 1001

Programs go to stdout unless --output is given; an output path without a
suffix gets the dialect's extension (.nc, .h, .gcode).  Files are written
atomically.

Exit codes: 0 success, 2 invalid input (unknown cycle, bad parameter,
unsupported shape or dialect).
"""

from __future__ import annotations

import argparse
import logging
import sys
from collections.abc import Sequence
from pathlib import Path
from typing import Any

import yaml

from nc_core.configs import Goals, Objective, load_settings
from nc_core.cycles import DEFAULT_REGISTRY
from nc_core.dialects import Dialect, program_extension
from nc_core.errors import NCError
from nc_core.estimation import estimate
from nc_core.geometry import primitive_from_dict
from nc_core.toolpath import synthesize, synthesize_milling
from nc_core.utils.fs import atomic_write_text, load_yaml
from nc_core.utils.logging_config import push_context, setup_logging

logger = logging.getLogger(__name__)

EXIT_INVALID = 2


# ---------------------------------------------------------------------------
# Argument parsing helpers
# ---------------------------------------------------------------------------


def _scalar(text: str) -> Any:
    """``"25"`` -> 25, ``"true"`` -> True, anything else stays a string."""
    value = yaml.safe_load(text)
    return text if value is None or isinstance(value, (list, dict)) else value


def parse_param(text: str) -> tuple[str, Any]:
    key, sep, value = text.partition("=")
    if not sep or not key.strip():
        raise argparse.ArgumentTypeError(f"expected NAME=VALUE, got {text!r}")
    return key.strip(), _scalar(value.strip())


def parse_position(text: str) -> tuple[float, float]:
    parts = text.split(",")
    if len(parts) != 2:
        raise argparse.ArgumentTypeError(f"expected X,Y, got {text!r}")
    try:
        return float(parts[0]), float(parts[1])
    except ValueError:
        raise argparse.ArgumentTypeError(f"expected X,Y, got {text!r}") from None


def load_shape(source: str) -> Any:
    """Shape record from a YAML file path or an inline YAML/JSON string.

    The record is not checked here; :func:`primitive_from_dict` rejects
    anything that is not a shape mapping.
    """
    path = Path(source)
    return load_yaml(path) if path.is_file() else yaml.safe_load(source)


def _write_program(text: str, output: str | None, dialect: Dialect) -> None:
    if output is None:
        sys.stdout.write(text)
        return
    path = Path(output)
    if not path.suffix:
        path = path.with_suffix(program_extension(dialect))
    atomic_write_text(path, text)
    logger.info("Wrote %s (%d bytes)", path, len(text))


def _goals(args: argparse.Namespace) -> Goals:
    return Goals(auto_tune=args.auto_tune, objective=Objective(args.objective))


# ---------------------------------------------------------------------------
# Subcommands
# ---------------------------------------------------------------------------


def cmd_list_cycles(args: argparse.Namespace) -> int:
    templates = (
        DEFAULT_REGISTRY.for_dialect(args.dialect) if args.dialect else list(DEFAULT_REGISTRY)
    )
    for t in templates:
        dialects = ",".join(d.value for d in t.dialects)
        print(f"{t.id:<22} {t.name:<22} {dialects}")
    return 0


def cmd_cycle(args: argparse.Namespace) -> int:
    template = DEFAULT_REGISTRY.get(args.cycle_id)
    dialect = Dialect.parse(args.dialect)
    push_context(cycle=template.id, dialect=dialect.value)
    params = template.schema.clamp(dict(args.param))
    text = template.generate(
        params, dialect, args.position or None,
        program_number=args.program_number, line_numbers=args.line_numbers,
    )
    _write_program(text, args.output, dialect)
    return 0


def cmd_print(args: argparse.Namespace) -> int:
    primitive = primitive_from_dict(load_shape(args.shape))
    push_context(shape=primitive.kind.value, dialect=Dialect.MARLIN.value)
    program = synthesize(primitive, load_settings(args.config), _goals(args))
    _write_program(program.text, args.output, Dialect.MARLIN)
    return 0


def cmd_mill(args: argparse.Namespace) -> int:
    primitive = primitive_from_dict(load_shape(args.shape))
    dialect = Dialect.parse(args.dialect)
    push_context(shape=primitive.kind.value, dialect=dialect.value)
    program = synthesize_milling(primitive, load_settings(args.config), dialect)
    _write_program(program.text, args.output, dialect)
    return 0


def cmd_estimate(args: argparse.Namespace) -> int:
    primitive = primitive_from_dict(load_shape(args.shape))
    result = estimate(primitive, load_settings(args.config), _goals(args))
    sys.stdout.write(yaml.safe_dump({
        "time_minutes": result.time_minutes,
        "material_grams": result.material_grams,
    }, sort_keys=False))
    return 0


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------


def _add_shape_options(p: argparse.ArgumentParser, *, goals: bool) -> None:
    p.add_argument("--shape", required=True, help="Shape mapping (YAML/JSON) or YAML file path")
    p.add_argument("--config", default=None, help="Process settings YAML (default: bundled)")
    if goals:
        p.add_argument("--auto-tune", action="store_true",
                       help="Derive print settings from the part size")
        p.add_argument("--objective", default=Objective.BALANCED.value,
                       choices=[o.value for o in Objective])


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="nc-generate",
        description="Generate NC programs from machining cycles and primitive shapes",
    )
    parser.add_argument("--log-level", default="WARNING",
                        choices=["DEBUG", "INFO", "WARNING", "ERROR"])
    parser.add_argument("--log-json", action="store_true", help="JSON log lines on stderr")
    sub = parser.add_subparsers(dest="command", required=True)

    p = sub.add_parser("list-cycles", help="List available cycles")
    p.add_argument("--dialect", default=None, help="Only cycles supporting this dialect")
    p.set_defaults(func=cmd_list_cycles)

    p = sub.add_parser("cycle", help="Render a cycle template")
    p.add_argument("cycle_id", help="Cycle id, see list-cycles")
    p.add_argument("--dialect", default=Dialect.FANUC.value)
    p.add_argument("--param", type=parse_param, action="append", default=[],
                   metavar="NAME=VALUE", help="Parameter override (repeatable)")
    p.add_argument("--position", type=parse_position, action="append", default=[],
                   metavar="X,Y", help="Feature position (repeatable)")
    p.add_argument("--program-number", type=int, default=None,
                   help="Wrap in a complete program with this number")
    p.add_argument("--line-numbers", action="store_true", help="Number the blocks")
    p.add_argument("--output", default=None, help="Output file (default: stdout)")
    p.set_defaults(func=cmd_cycle)

    p = sub.add_parser("print", help="Printer program for a shape")
    _add_shape_options(p, goals=True)
    p.add_argument("--output", default=None, help="Output file (default: stdout)")
    p.set_defaults(func=cmd_print)

    p = sub.add_parser("mill", help="Pocketing program for a shape")
    _add_shape_options(p, goals=False)
    p.add_argument("--dialect", default=Dialect.FANUC.value)
    p.add_argument("--output", default=None, help="Output file (default: stdout)")
    p.set_defaults(func=cmd_mill)

    p = sub.add_parser("estimate", help="Print time and material for a shape")
    _add_shape_options(p, goals=True)
    p.set_defaults(func=cmd_estimate)

    return parser


def main(argv: Sequence[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    setup_logging(args.log_level, json=args.log_json, context={"app": "nc-generate"})
    try:
        return args.func(args)
    except (NCError, ValueError) as exc:
        logger.error("%s", exc)
        return EXIT_INVALID


if __name__ == "__main__":
    sys.exit(main())
