"""
Command line tester.

Usage::

    asv-tester [-e MAX_ERROR] [-v] [--checks NAME ...] [--cost-strategy NAME]
               problem-file [solution-file]

Without a solution file the direct path from the initial to the goal
state is checked, which only runs the pointwise checks.  The exit status
is 0 when every check passes, 1 when any check fails and 2 when a file
cannot be loaded.
"""

from __future__ import annotations

import argparse
import logging
import sys
from typing import List, Optional

from .services.cost import COST_STRATEGIES
from .services.problem_loader import ProblemFormatError, load_problem, load_solution
from .services.reporting import format_report
from .services.settings import settings_from_env
from .services.validation import CHECK_NAMES, ValidationEngine

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_FAILED = 1
EXIT_LOAD_ERROR = 2


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="asv-tester",
        description="Check an ASV solution path against its problem's constraints.",
    )
    parser.add_argument("problem", help="problem file")
    parser.add_argument("solution", nargs="?", help="solution file (omit to test the direct path)")
    parser.add_argument(
        "-e",
        dest="max_error",
        type=float,
        default=None,
        help="maximum error for lenient comparisons (default 1e-5 or $ASV_MAX_ERROR)",
    )
    parser.add_argument(
        "-v", dest="verbose", action="store_true", help="list the file lines of invalid states"
    )
    parser.add_argument(
        "--checks",
        nargs="+",
        type=str.lower,
        choices=CHECK_NAMES,
        metavar="NAME",
        help=f"run only these checks ({', '.join(CHECK_NAMES)})",
    )
    parser.add_argument(
        "--cost-strategy",
        choices=sorted(COST_STRATEGIES),
        default=None,
        help="how the ground-truth path cost is accumulated",
    )
    parser.add_argument(
        "--parallel", action="store_true", help="evaluate the checks on a thread pool"
    )
    parser.add_argument(
        "--log-level",
        default="WARNING",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="logging level for diagnostics written to stderr",
    )
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )

    try:
        settings = settings_from_env().with_epsilon(args.max_error)
        engine = ValidationEngine(settings, args.cost_strategy)
    except ValueError as exc:
        print(f"FAILED: {exc}")
        return EXIT_LOAD_ERROR

    print("Test #0: Loading files")
    try:
        problem = load_problem(args.problem)
    except (OSError, ProblemFormatError) as exc:
        logger.debug("Problem load error: %s", exc)
        print(f"FAILED: Invalid problem file ({exc})")
        return EXIT_LOAD_ERROR
    solution = None
    if args.solution is not None:
        try:
            solution = load_solution(args.solution, problem.asv_count)
        except (OSError, ProblemFormatError) as exc:
            logger.debug("Solution load error: %s", exc)
            print(f"FAILED: Invalid solution file ({exc})")
            return EXIT_LOAD_ERROR
    print("Passed.")

    report = engine.run_all(problem, solution, args.checks, parallel=args.parallel)
    print(format_report(report, verbose=args.verbose))
    return EXIT_OK if report.passed else EXIT_FAILED


if __name__ == "__main__":
    sys.exit(main())
