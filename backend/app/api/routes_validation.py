"""
Routes for validating inline problems and solutions.

Clients that already hold the problem and the solution as structured data
post them as JSON to ``/validate`` and receive one result per check.  The
``/checks`` endpoint lists the stable check names and the available cost
strategies so that a front end can build its controls without hard-coding
them.
"""

from __future__ import annotations

import logging
from typing import Iterable, Optional

from fastapi import APIRouter, HTTPException

from .models import ChecksResponse, ValidateRequest, ValidationResponse
from ..services.asv_model import ProblemInstance, SolutionInstance
from ..services.cost import COST_STRATEGIES, default_cost_strategy
from ..services.settings import settings_from_env
from ..services.validation import (
    CHECK_NAMES,
    POINTWISE_CHECKS,
    SOLUTION_CHECKS,
    UnknownCheckError,
    ValidationEngine,
)

logger = logging.getLogger(__name__)

router = APIRouter()


def run_validation(
    problem: ProblemInstance,
    solution: Optional[SolutionInstance],
    epsilon: Optional[float],
    checks: Optional[Iterable[str]],
    cost_strategy: Optional[str],
) -> ValidationResponse:
    """Build an engine for the request options and run the checks.

    Shared by the inline and the stored-problem endpoints.  Option errors
    are mapped onto HTTP status codes: an unknown check is 404 and an
    unknown cost strategy is 400.
    """
    try:
        settings = settings_from_env().with_epsilon(epsilon)
        engine = ValidationEngine(settings, cost_strategy)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    try:
        report = engine.run_all(problem, solution, checks)
    except UnknownCheckError as exc:
        raise HTTPException(status_code=404, detail=str(exc))
    except Exception as exc:
        logger.exception("Validation failed unexpectedly for checks %s", checks)
        raise HTTPException(status_code=500, detail=f"Validation failed: {exc}") from exc
    if not report.passed:
        logger.info("Validation failed checks: %s", ", ".join(report.failed_checks))
    return ValidationResponse.from_report(report)


@router.get("/checks", response_model=ChecksResponse)
async def list_checks() -> ChecksResponse:
    """Return the check names in batch order and the cost strategies."""
    return ChecksResponse(
        checks=list(CHECK_NAMES),
        solutionChecks=list(SOLUTION_CHECKS),
        pointwiseChecks=list(POINTWISE_CHECKS),
        costStrategies=sorted(COST_STRATEGIES),
        defaultCostStrategy=default_cost_strategy(),
    )


@router.post("/validate", response_model=ValidationResponse)
async def validate(body: ValidateRequest) -> ValidationResponse:
    """Validate an inline solution (or the direct path) against a problem.

    Returns:
        ValidationResponse: One result per check with the offending path
        indices.

    Raises:
        HTTPException: 400 if the problem or solution is inconsistent
            (for example the initial state has the wrong ASV count), 404
            for an unknown check name.
    """
    try:
        problem = body.problem.to_problem()
        solution = body.solution.to_solution() if body.solution is not None else None
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    return run_validation(problem, solution, body.epsilon, body.checks, body.costStrategy)
