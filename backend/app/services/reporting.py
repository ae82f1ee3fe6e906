"""
Console rendering of validation reports.

The layout mirrors the classic command line tester: a numbered header per
check followed by ``Passed.`` or ``FAILED: <reason>``.  In verbose mode a
failing pointwise or step check also lists the solution file line of
every offending state.  Line 1 of a solution file holds the header, so
path index ``i`` lives on line ``i + 2``.
"""

from __future__ import annotations

from typing import List

from .validation import STEPS_CHECK, CheckResult, ValidationReport

#: Offset between a path index and its line number in the solution file.
SOLUTION_LINE_OFFSET = 2


def format_check(result: CheckResult, test_no: int, verbose: bool = False) -> List[str]:
    """Return the lines describing one check result."""
    lines = [f"Test #{test_no}: {result.title}"]
    if result.passed:
        lines.append("Passed.")
        return lines
    lines.append(f"FAILED: {result.message}")
    if verbose and result.violating_indices:
        if result.name == STEPS_CHECK:
            lines.append("Starting line for each invalid step:")
        else:
            lines.append("Line for each invalid cfg:")
        file_lines = [i + SOLUTION_LINE_OFFSET for i in result.violating_indices]
        lines.append("[" + ", ".join(str(n) for n in file_lines) + "]")
    return lines


def format_report(report: ValidationReport, verbose: bool = False, first_test_no: int = 1) -> str:
    """Render every result of ``report`` as console text."""
    lines: List[str] = []
    for offset, name in enumerate(report):
        lines.extend(format_check(report[name], first_test_no + offset, verbose))
    return "\n".join(lines)
