"""
dfo-prep Command-Line Interface

Runs the preprocessing pipeline on problems written as JSON and reports what
it did: resolved solver, dimensions, problem types and diagnostics.
"""

import argparse
import json
import sys
import warnings
from typing import Any, Dict, List, Optional

from .contract import ProblemType
from .core.canonical_json import canonical_dumps
from .errors import PreprocessingError
from .logging import configure_logging
from .pipeline import prepare_problem
from .solver import SOLVERS, Invoker
from .toy import resolve_constraint, resolve_objective

_NON_FINITE = {'inf': float('inf'), '-inf': float('-inf'), 'nan': float('nan')}


def _decode_numbers(obj: Any) -> Any:
    """Turn the strings "inf", "-inf" and "nan" back into floats."""
    if isinstance(obj, str) and obj in _NON_FINITE:
        return _NON_FINITE[obj]
    if isinstance(obj, list):
        return [_decode_numbers(v) for v in obj]
    if isinstance(obj, dict):
        return {k: _decode_numbers(v) for k, v in obj.items()}
    return obj


def load_problem(path: str) -> Dict[str, Any]:
    """
    Read a JSON problem file.

    "objective" names a toy objective (or is {"name": ..., "center": [...]}),
    "nonlcon" names a toy constraint. Other fields are passed through.
    """
    with open(path) as f:
        raw = json.load(f)
    if not isinstance(raw, dict):
        raise ValueError(f"{path}: expected a JSON object")

    problem = {}
    for key, value in raw.items():
        if key == 'objective':
            problem[key] = resolve_objective(value)
        elif key == 'nonlcon':
            problem[key] = resolve_constraint(value)
        elif key in ('options', 'solver'):
            problem[key] = value
        else:
            problem[key] = _decode_numbers(value)
    return problem


def _preview(values, limit: int = 5) -> str:
    values = list(values)
    text = ", ".join(f"{v:.6g}" for v in values[:limit])
    return f"[{text}{', ...' if len(values) > limit else ''}]"


def cmd_inspect(args):
    """Run the pipeline on a JSON problem and print the result."""
    try:
        problem = load_problem(args.problem)
    except (OSError, ValueError, KeyError) as e:
        print(f"Error: {e}")
        return 1

    with warnings.catch_warnings():
        # Diagnostics are printed below
        warnings.simplefilter("ignore")
        try:
            canonical, options, info = prepare_problem(problem, args.invoker)
        except PreprocessingError as e:
            print(f"Error [{e.identifier}]: {e}")
            return 1

    print("=" * 60)
    print(f"Problem: {args.problem}")
    print("=" * 60)
    print(f"Invoker: {info.invoker}")
    print(f"Solver: {info.solver if info.solver else '-'}")
    print(f"Dimension: {info.raw_dim} -> {info.refined_dim}")
    print(f"Type: {info.raw_type.value} -> {info.refined_type.value}")
    print(f"Infeasible: {info.infeasible}")
    print(f"All variables fixed: {info.nofreex}")
    if info.nofreex:
        print(f"Constraint violation at fixed point: {info.constrv_fixedx:.6e}")
    print(f"Reduced: {info.reduced}")
    print(f"Scaled: {info.scaled}")
    if info.scaled:
        print(f"Scaling factor: {_preview(info.scaling_factor)}")
    print(f"x0: {_preview(canonical.x0)}")
    print(f"npt={options.npt} maxfun={options.maxfun} "
          f"rhobeg={options.rhobeg:.6g} rhoend={options.rhoend:.6g}")

    print("\n" + "-" * 60)
    print(f"WARNINGS ({len(info.warnings)})")
    print("-" * 60)
    for diagnostic in info.warnings:
        print(f"{diagnostic.warning_id}: {diagnostic.message}")
    print(f"\nFingerprint: {info.fingerprint()}")

    if args.output:
        output_data = {
            'problem': args.problem,
            'info': info.to_canonical(),
            'options': options.to_canonical(),
            'fingerprint': info.fingerprint(),
        }
        with open(args.output, 'w') as f:
            f.write(canonical_dumps(output_data, indent=2))
        print(f"\nResults saved to: {args.output}")

    return 0


def cmd_solvers(args):
    """Print the solver/problem-type compatibility matrix."""
    types = list(ProblemType)
    header = f"{'solver':8} " + " ".join(f"{t.value:>24}" for t in types)
    print(header)
    print("-" * len(header))
    for solver, spec in SOLVERS.items():
        marks = " ".join(f"{('yes' if t <= spec.richest_type else '-'):>24}" for t in types)
        print(f"{solver.value:8} {marks}")
    print()
    for spec in SOLVERS.values():
        print(f"{spec.solver.value:8} {spec.description}")
    return 0


def cmd_version(args):
    """Print version information."""
    from . import __version__
    print(f"dfo-prep {__version__}")
    print("Problem preprocessing for derivative-free optimization")
    return 0


def main(argv: Optional[List[str]] = None):
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        prog='dfo-prep',
        description='dfo-prep - Problem Preprocessing for Derivative-Free Optimization'
    )
    parser.add_argument('--verbose', '-v', action='store_true',
                        help='Log pipeline stages to stderr')
    subparsers = parser.add_subparsers(dest='command', help='Commands')

    # Inspect command
    inspect_parser = subparsers.add_parser('inspect', help='Preprocess a JSON problem')
    inspect_parser.add_argument('problem', help='Problem JSON file')
    inspect_parser.add_argument('--invoker', '-i', default='pdfo',
                                choices=[member.value for member in Invoker],
                                help='Invoker (default: pdfo)')
    inspect_parser.add_argument('--output', '-o', type=str,
                                help='Output JSON file')
    inspect_parser.set_defaults(func=cmd_inspect)

    # Solvers command
    solvers_parser = subparsers.add_parser('solvers', help='Print solver compatibility')
    solvers_parser.set_defaults(func=cmd_solvers)

    # Version command
    ver_parser = subparsers.add_parser('version', help='Print version')
    ver_parser.set_defaults(func=cmd_version)

    args = parser.parse_args(argv)

    if args.verbose:
        configure_logging("DEBUG")

    if args.command is None:
        parser.print_help()
        return 0

    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
