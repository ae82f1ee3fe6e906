"""
Validation engine for ASV solution paths.

The engine applies the geometric predicates along a path and records, for
each constraint, which path indices violate it.  A failed constraint is an
ordinary result (``CheckResult.passed is False``), not an exception.  The
only exception type that escapes a single check is turned into a failed
result with ``error`` set: ``PreconditionViolation`` covers inputs on
which a check is meaningless, such as an empty path or a path whose
configurations have the wrong number of ASVs.  Every check is isolated, so
a precondition failure in one never prevents the others from running.

Checks are addressed by stable names:

============  ===========================================================
``initial``   first configuration matches the initial state
``goal``      last configuration matches the goal state
``steps``     every consecutive pair is a valid primitive step
``booms``     every boom length is within the allowed range
``convexity`` every configuration forms a convex polygon
``areas``     every configuration encloses the minimum area
``bounds``    every ASV lies within the (lenient) workspace bounds
``collisions`` no boom intersects an obstacle
``cost``      declared cost matches the recomputed cost
============  ===========================================================

``run_all`` follows the batch order of the command line tester: endpoint,
step and cost checks run only for a solution with a declared cost, the
pointwise checks always run (against the direct two-point path when no
solution is given).
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterable, Iterator, List, Mapping, Optional, Sequence, Tuple

from .asv_model import ASVConfig, ProblemInstance, SolutionInstance
from .cost import COST_STRATEGIES, compute_path_cost, default_cost_strategy
from .predicates import (
    collides,
    fits_bounds,
    has_enough_area,
    has_valid_boom_lengths,
    is_convex,
    is_valid_step,
    max_joint_displacement,
)
from .settings import ValidationSettings

logger = logging.getLogger(__name__)

INITIAL_CHECK = "initial"
GOAL_CHECK = "goal"
STEPS_CHECK = "steps"
BOOMS_CHECK = "booms"
CONVEXITY_CHECK = "convexity"
AREAS_CHECK = "areas"
BOUNDS_CHECK = "bounds"
COLLISIONS_CHECK = "collisions"
COST_CHECK = "cost"

#: Checks that need a real solution with a declared cost.
SOLUTION_CHECKS: Tuple[str, ...] = (INITIAL_CHECK, GOAL_CHECK, STEPS_CHECK, COST_CHECK)
#: Checks that are well defined for any path, including the direct path.
POINTWISE_CHECKS: Tuple[str, ...] = (
    BOOMS_CHECK,
    CONVEXITY_CHECK,
    AREAS_CHECK,
    BOUNDS_CHECK,
    COLLISIONS_CHECK,
)
CHECK_NAMES: Tuple[str, ...] = SOLUTION_CHECKS + POINTWISE_CHECKS

CHECK_TITLES: Dict[str, str] = {
    INITIAL_CHECK: "Initial state",
    GOAL_CHECK: "Goal state",
    STEPS_CHECK: "Step sizes",
    BOOMS_CHECK: "Boom lengths",
    CONVEXITY_CHECK: "Convexity",
    AREAS_CHECK: "Areas",
    BOUNDS_CHECK: "Bounds",
    COLLISIONS_CHECK: "Collisions",
    COST_CHECK: "Solution cost",
}


class PreconditionViolation(Exception):
    """Raised when a check cannot be evaluated meaningfully on its input."""


class UnknownCheckError(KeyError):
    """Raised when a check name is not one of ``CHECK_NAMES``."""

    def __init__(self, name: str) -> None:
        super().__init__(name)
        self.name = name

    def __str__(self) -> str:
        return f"Unknown check '{self.name}'. Expected one of: {', '.join(CHECK_NAMES)}"


@dataclass(frozen=True)
class CheckResult:
    """Outcome of a single named check.

    Attributes:
        name: Stable check name.
        passed: Whether the constraint holds over the whole path.
        violating_indices: Ascending path indices that break the constraint.
            For step checks the index of the first state of each bad pair.
        message: Human readable summary.
        details: Check specific values (for example the cost delta).
        error: Set when a precondition prevented the check from running.
    """

    name: str
    passed: bool
    violating_indices: Tuple[int, ...] = ()
    message: str = ""
    details: Dict[str, Any] = field(default_factory=dict)
    error: Optional[str] = None

    @property
    def title(self) -> str:
        return CHECK_TITLES.get(self.name, self.name)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "passed": self.passed,
            "violatingIndices": list(self.violating_indices),
            "message": self.message,
            "details": dict(self.details),
            "error": self.error,
        }


class ValidationReport(Mapping[str, CheckResult]):
    """Ordered, read-only mapping of check name to result."""

    def __init__(self, results: Iterable[CheckResult], epsilon: float) -> None:
        self._results: Dict[str, CheckResult] = {r.name: r for r in results}
        self.epsilon = epsilon

    def __getitem__(self, name: str) -> CheckResult:
        return self._results[name]

    def __iter__(self) -> Iterator[str]:
        return iter(self._results)

    def __len__(self) -> int:
        return len(self._results)

    @property
    def passed(self) -> bool:
        return all(r.passed for r in self._results.values())

    @property
    def failed_checks(self) -> List[str]:
        return [name for name, r in self._results.items() if not r.passed]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "valid": self.passed,
            "epsilon": self.epsilon,
            "results": [r.to_dict() for r in self._results.values()],
        }


def _failed(name: str, indices: Sequence[int], message: str, **details: Any) -> CheckResult:
    return CheckResult(
        name=name,
        passed=False,
        violating_indices=tuple(sorted(set(indices))),
        message=message,
        details=details,
    )


def _passed(name: str, **details: Any) -> CheckResult:
    return CheckResult(name=name, passed=True, message="Passed.", details=details)


class ValidationEngine:
    """Runs the constraint checks for one problem with fixed settings.

    Args:
        settings: Tolerance and limits used by every check.
        cost_strategy: Name of the cost strategy used by the ``cost``
            check; ``None`` selects the configured default.

    Raises:
        ValueError: If ``cost_strategy`` is not registered.
    """

    def __init__(
        self,
        settings: Optional[ValidationSettings] = None,
        cost_strategy: Optional[str] = None,
    ) -> None:
        self.settings = settings or ValidationSettings()
        strategy = (cost_strategy or default_cost_strategy()).strip().lower()
        if strategy not in COST_STRATEGIES:
            raise ValueError(
                f"Unknown cost strategy '{cost_strategy}'. Expected one of {sorted(COST_STRATEGIES)}"
            )
        self.cost_strategy = strategy
        self._checks: Dict[str, Callable[[ProblemInstance, SolutionInstance], CheckResult]] = {
            INITIAL_CHECK: self.check_initial,
            GOAL_CHECK: self.check_goal,
            STEPS_CHECK: self.check_steps,
            BOOMS_CHECK: self.check_booms,
            CONVEXITY_CHECK: self.check_convexity,
            AREAS_CHECK: self.check_areas,
            BOUNDS_CHECK: self.check_bounds,
            COLLISIONS_CHECK: self.check_collisions,
            COST_CHECK: self.check_cost,
        }

    @property
    def epsilon(self) -> float:
        return self.settings.epsilon

    # ------------------------------------------------------------------
    # Preconditions

    @staticmethod
    def _path(problem: ProblemInstance, solution: SolutionInstance) -> Tuple[ASVConfig, ...]:
        path = solution.path
        if not path:
            raise PreconditionViolation("Solution path is empty")
        mismatched = [i for i, cfg in enumerate(path) if cfg.asv_count != problem.asv_count]
        if mismatched:
            raise PreconditionViolation(
                f"{len(mismatched)} state(s) do not have {problem.asv_count} ASVs "
                f"(first at index {mismatched[0]})"
            )
        return path

    # ------------------------------------------------------------------
    # Endpoint checks

    def check_initial(self, problem: ProblemInstance, solution: SolutionInstance) -> CheckResult:
        path = self._path(problem, solution)
        distance = max_joint_displacement(path[0], problem.initial_state)
        if distance <= self.epsilon:
            return _passed(INITIAL_CHECK, distance=distance)
        return _failed(
            INITIAL_CHECK, [0], "Solution path must start at initial state.", distance=distance
        )

    def check_goal(self, problem: ProblemInstance, solution: SolutionInstance) -> CheckResult:
        path = self._path(problem, solution)
        last = len(path) - 1
        distance = max_joint_displacement(path[last], problem.goal_state)
        if distance <= self.epsilon:
            return _passed(GOAL_CHECK, distance=distance)
        return _failed(
            GOAL_CHECK, [last], "Solution path must end at goal state.", distance=distance
        )

    # ------------------------------------------------------------------
    # Path checks

    def check_steps(self, problem: ProblemInstance, solution: SolutionInstance) -> CheckResult:
        path = self._path(problem, solution)
        bad_steps = [
            i - 1
            for i in range(1, len(path))
            if not is_valid_step(path[i - 1], path[i], self.settings)
        ]
        step_count = len(path) - 1
        if not bad_steps:
            return _passed(STEPS_CHECK, steps=step_count)
        return _failed(
            STEPS_CHECK,
            bad_steps,
            f"Distance exceeds {self.settings.max_step:g} for "
            f"{len(bad_steps)} of {step_count} step(s).",
            steps=step_count,
        )

    def _pointwise(
        self,
        name: str,
        path: Sequence[ASVConfig],
        predicate: Callable[[ASVConfig], bool],
        failure: str,
    ) -> CheckResult:
        bad_states = [i for i, cfg in enumerate(path) if not predicate(cfg)]
        if not bad_states:
            return _passed(name, states=len(path))
        return _failed(
            name,
            bad_states,
            failure.format(bad=len(bad_states), total=len(path)),
            states=len(path),
        )

    def check_booms(self, problem: ProblemInstance, solution: SolutionInstance) -> CheckResult:
        return self._pointwise(
            BOOMS_CHECK,
            self._path(problem, solution),
            lambda cfg: has_valid_boom_lengths(cfg, self.settings),
            "Invalid boom length for {bad} of {total} state(s).",
        )

    def check_convexity(self, problem: ProblemInstance, solution: SolutionInstance) -> CheckResult:
        return self._pointwise(
            CONVEXITY_CHECK,
            self._path(problem, solution),
            lambda cfg: is_convex(cfg, self.epsilon),
            "{bad} of {total} state(s) are not convex.",
        )

    def check_areas(self, problem: ProblemInstance, solution: SolutionInstance) -> CheckResult:
        return self._pointwise(
            AREAS_CHECK,
            self._path(problem, solution),
            lambda cfg: has_enough_area(cfg, self.settings),
            "{bad} of {total} state(s) have insufficient area.",
        )

    def check_bounds(self, problem: ProblemInstance, solution: SolutionInstance) -> CheckResult:
        bounds = self.settings.lenient_bounds
        return self._pointwise(
            BOUNDS_CHECK,
            self._path(problem, solution),
            lambda cfg: fits_bounds(cfg, bounds),
            "{bad} of {total} state(s) go out of the workspace bounds.",
        )

    def check_collisions(self, problem: ProblemInstance, solution: SolutionInstance) -> CheckResult:
        obstacles = problem.obstacles
        return self._pointwise(
            COLLISIONS_CHECK,
            self._path(problem, solution),
            lambda cfg: not any(collides(cfg, o, self.epsilon) for o in obstacles),
            "{bad} of {total} state(s) collide with obstacles.",
        )

    def check_cost(self, problem: ProblemInstance, solution: SolutionInstance) -> CheckResult:
        path = self._path(problem, solution)
        if not solution.has_declared_cost:
            raise PreconditionViolation("Solution does not declare a cost")
        declared = float(solution.declared_cost)  # type: ignore[arg-type]
        actual = compute_path_cost(path, self.cost_strategy)
        delta = declared - actual
        details = {
            "declared": declared,
            "computed": actual,
            "delta": delta,
            "strategy": self.cost_strategy,
        }
        if abs(delta) <= self.epsilon:
            return _passed(COST_CHECK, **details)
        return _failed(
            COST_CHECK,
            [],
            f"Incorrect solution cost; was {declared:f} but should be {actual:f}",
            **details,
        )

    # ------------------------------------------------------------------
    # Dispatch

    def run_check(
        self,
        name: str,
        problem: ProblemInstance,
        solution: Optional[SolutionInstance] = None,
    ) -> CheckResult:
        """Run one check by name.

        ``solution`` defaults to the direct two-point path.  A
        ``PreconditionViolation`` is reported as a failed result rather than
        raised.

        Raises:
            UnknownCheckError: If ``name`` is not a known check.
        """
        key = (name or "").strip().lower()
        check = self._checks.get(key)
        if check is None:
            raise UnknownCheckError(name)
        if solution is None:
            solution = problem.direct_solution()
        try:
            result = check(problem, solution)
        except PreconditionViolation as exc:
            logger.warning("Check %s could not run: %s", key, exc)
            return CheckResult(
                name=key,
                passed=False,
                message=f"Check could not run: {exc}",
                error=str(exc),
            )
        logger.debug(
            "Check %s: passed=%s violations=%d", key, result.passed, len(result.violating_indices)
        )
        return result

    def batch_checks(self, solution: Optional[SolutionInstance]) -> Tuple[str, ...]:
        """Return the checks ``run_all`` performs for ``solution``."""
        if solution is not None and solution.has_declared_cost:
            return CHECK_NAMES
        return POINTWISE_CHECKS

    def run_all(
        self,
        problem: ProblemInstance,
        solution: Optional[SolutionInstance] = None,
        checks: Optional[Iterable[str]] = None,
        parallel: bool = False,
    ) -> ValidationReport:
        """Run a batch of checks and collect the results in order.

        Args:
            problem: The problem being solved.
            solution: The claimed solution, or ``None`` for the direct path.
            checks: Explicit check names; ``None`` or an empty selection runs
                ``batch_checks``.
            parallel: Evaluate the checks on a thread pool.

        Raises:
            UnknownCheckError: If an explicit check name is unknown.
        """
        names = [(n or "").strip().lower() for n in checks] if checks is not None else []
        if not names:
            names = list(self.batch_checks(solution))
        else:
            for n in names:
                if n not in self._checks:
                    raise UnknownCheckError(n)
        if solution is None:
            solution = problem.direct_solution()
        logger.info(
            "Validating %d state(s) with %d check(s), epsilon=%g",
            len(solution.path),
            len(names),
            self.epsilon,
        )
        if parallel and len(names) > 1:
            with ThreadPoolExecutor(max_workers=len(names)) as pool:
                results = list(pool.map(lambda n: self.run_check(n, problem, solution), names))
        else:
            results = [self.run_check(n, problem, solution) for n in names]
        return ValidationReport(results, self.epsilon)


def run_check(
    name: str,
    problem: ProblemInstance,
    solution: Optional[SolutionInstance] = None,
    epsilon: Optional[float] = None,
    cost_strategy: Optional[str] = None,
) -> CheckResult:
    """Convenience wrapper building a one-off engine for ``name``."""
    settings = ValidationSettings().with_epsilon(epsilon)
    return ValidationEngine(settings, cost_strategy).run_check(name, problem, solution)


def run_all(
    problem: ProblemInstance,
    solution: Optional[SolutionInstance] = None,
    epsilon: Optional[float] = None,
    checks: Optional[Iterable[str]] = None,
    cost_strategy: Optional[str] = None,
) -> ValidationReport:
    """Convenience wrapper building a one-off engine for a batch run."""
    settings = ValidationSettings().with_epsilon(epsilon)
    return ValidationEngine(settings, cost_strategy).run_all(problem, solution, checks)
