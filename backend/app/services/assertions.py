"""
Assertion helpers on top of the validation engine.

These let test suites (including solver test suites outside this project)
state "this solution is valid" with one call and get a readable failure
listing every broken check and its offending indices.
"""

from __future__ import annotations

from typing import Iterable, Optional

from .asv_model import ProblemInstance, SolutionInstance
from .settings import ValidationSettings
from .validation import CheckResult, ValidationEngine, ValidationReport


def assert_check_passes(result: CheckResult) -> None:
    """Raise ``AssertionError`` describing ``result`` unless it passed."""
    if result.passed:
        return
    detail = result.error or result.message
    if result.violating_indices:
        detail += f" (indices {list(result.violating_indices)})"
    raise AssertionError(f"{result.name}: {detail}")


def assert_report_passes(report: ValidationReport) -> None:
    failures = []
    for name in report.failed_checks:
        try:
            assert_check_passes(report[name])
        except AssertionError as exc:
            failures.append(str(exc))
    if failures:
        raise AssertionError("Solution failed validation:\n  " + "\n  ".join(failures))


def assert_solution_valid(
    problem: ProblemInstance,
    solution: Optional[SolutionInstance] = None,
    epsilon: Optional[float] = None,
    checks: Optional[Iterable[str]] = None,
    cost_strategy: Optional[str] = None,
) -> ValidationReport:
    """Validate ``solution`` and raise ``AssertionError`` on any failure.

    Returns:
        The passing report, so callers can inspect details such as the
        computed cost.
    """
    engine = ValidationEngine(ValidationSettings().with_epsilon(epsilon), cost_strategy)
    report = engine.run_all(problem, solution, checks)
    assert_report_passes(report)
    return report
