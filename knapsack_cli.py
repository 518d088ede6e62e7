"""
Command line runner: solve every line of an input file.

    knapsack-solve INPUT [--solver NAME] [--compare] [--workers N] [--log-level LEVEL]

Prints one result per input line: the selected labels ("2,7"), "-" when no item
fits, or "ERR" when the line was malformed and discarded.
"""

import argparse
import logging
import sys
from typing import List, Optional

from knapsack_compare import Comparison, compare_solvers
from knapsack_errors import FileFormatError
from knapsack_parser import parse_file
from knapsack_solvers import SOLVERS, solve_many

FALLBACK_SOLVER = "branch_and_bound"


def parse_args(argv: List[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Solve exact-decimal 0/1 knapsack instances, one per line.")
    parser.add_argument("input", help="Path to the input file")
    parser.add_argument(
        "--solver",
        choices=sorted(SOLVERS),
        default="branch_and_bound",
        help="Strategy used for every line",
    )
    parser.add_argument(
        "--compare",
        action="store_true",
        help="Run all strategies per line and check they agree",
    )
    parser.add_argument("--workers", type=int, default=1, help="Lines solved in parallel")
    parser.add_argument(
        "--log-level",
        default="WARNING",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
    )
    return parser.parse_args(argv)


def _render_comparison(comparison: Comparison) -> str:
    parts = []
    for name in sorted(SOLVERS):
        if name in comparison.results:
            parts.append(f"{name}={comparison.results[name]}")
        else:
            parts.append(f"{name}=skipped")
    return f"{comparison.results['brute_force']}  [{' '.join(parts)}]"


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv if argv is not None else sys.argv[1:])
    logging.basicConfig(level=getattr(logging, args.log_level),
                        format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    logger = logging.getLogger(__name__)

    try:
        instances = parse_file(args.input)
    except FileFormatError as exc:
        sys.stderr.write(f"Input error: {exc}\n")
        return 2
    except OSError as exc:
        sys.stderr.write(f"Cannot read {args.input}: {exc}\n")
        return 2

    logger.info("Parsed %d line(s), %d discarded", len(instances), sum(1 for i in instances if i is None))

    if args.compare:
        exit_code = 0
        for inst in instances:
            if inst is None:
                sys.stdout.write("ERR\n")
                continue
            comparison = compare_solvers(inst)
            if not comparison.agrees:
                exit_code = 1
            sys.stdout.write(_render_comparison(comparison) + "\n")
        return exit_code

    results = solve_many(instances, args.solver, workers=max(1, args.workers), fallback=FALLBACK_SOLVER)
    for res in results:
        sys.stdout.write(f"{res}\n")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
