"""
Ground-truth path cost.

A solution file declares the cost of its path; the tester recomputes it
from the configurations and compares the two.  The accumulation rule is a
grading convention, so it is exposed as a named strategy:

* ``total_distance`` (default) - for every step, the distances moved by
  all ASVs are summed, and the per-step sums are added up.  This is the
  total distance travelled by the whole chain.
* ``max_distance`` - for every step only the ASV that moved furthest is
  counted.
* ``step_count`` - the number of primitive steps in the path.

The default can be changed with the ``ASV_COST_STRATEGY`` environment
variable.  Per-step displacements are computed with numpy over the whole
path at once.
"""

from __future__ import annotations

import logging
import os
from typing import Callable, Dict, Optional, Sequence

import numpy as np

from .asv_model import ASVConfig

logger = logging.getLogger(__name__)

TOTAL_DISTANCE_STRATEGY = "total_distance"
MAX_DISTANCE_STRATEGY = "max_distance"
STEP_COUNT_STRATEGY = "step_count"
DEFAULT_COST_STRATEGY = TOTAL_DISTANCE_STRATEGY

COST_STRATEGY_ENV = "ASV_COST_STRATEGY"


def step_displacements(path: Sequence[ASVConfig]) -> np.ndarray:
    """Return an ``(len(path) - 1, asv_count)`` array of per-ASV step distances.

    Raises:
        ValueError: If the configurations do not all have the same ASV count.
    """
    if len(path) < 2:
        count = path[0].asv_count if path else 0
        return np.zeros((0, count), dtype=float)
    counts = {cfg.asv_count for cfg in path}
    if len(counts) != 1:
        raise ValueError(f"Path mixes configurations with ASV counts {sorted(counts)}")
    coords = np.asarray([cfg.positions for cfg in path], dtype=float)
    deltas = np.diff(coords, axis=0)
    return np.linalg.norm(deltas, axis=2)


def _total_distance(path: Sequence[ASVConfig]) -> float:
    return float(step_displacements(path).sum())


def _max_distance(path: Sequence[ASVConfig]) -> float:
    steps = step_displacements(path)
    if steps.size == 0:
        return 0.0
    return float(steps.max(axis=1).sum())


def _step_count(path: Sequence[ASVConfig]) -> float:
    return float(max(len(path) - 1, 0))


COST_STRATEGIES: Dict[str, Callable[[Sequence[ASVConfig]], float]] = {
    TOTAL_DISTANCE_STRATEGY: _total_distance,
    MAX_DISTANCE_STRATEGY: _max_distance,
    STEP_COUNT_STRATEGY: _step_count,
}


def default_cost_strategy() -> str:
    """Return the strategy named by ``ASV_COST_STRATEGY`` or the built-in default."""
    name = os.environ.get(COST_STRATEGY_ENV, "").strip().lower()
    if not name:
        return DEFAULT_COST_STRATEGY
    if name not in COST_STRATEGIES:
        raise ValueError(
            f"{COST_STRATEGY_ENV}={name!r} is not one of {sorted(COST_STRATEGIES)}"
        )
    return name


def compute_path_cost(path: Sequence[ASVConfig], strategy: Optional[str] = None) -> float:
    """Compute the cost of ``path`` using the named strategy.

    Args:
        path: Ordered configurations of the solution.
        strategy: Name of a registered strategy; ``None`` selects the
            default.

    Raises:
        ValueError: If the strategy is unknown.
    """
    name = (strategy or default_cost_strategy()).strip().lower()
    try:
        fn = COST_STRATEGIES[name]
    except KeyError:
        raise ValueError(
            f"Unknown cost strategy '{strategy}'. Expected one of {sorted(COST_STRATEGIES)}"
        ) from None
    cost = fn(path)
    logger.debug("Path cost via %s over %d states: %.9f", name, len(path), cost)
    return cost
