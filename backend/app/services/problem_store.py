"""
In-memory registry of uploaded problems and their solutions.

The HTTP API lets a client upload a problem file once and then post any
number of solution files against it.  Parsed problems are kept here keyed
by a generated ``problem_id``; each entry owns a dictionary of parsed
solutions keyed by ``solution_id``.

The registry is an ``OrderedDict`` giving least-recently-used eviction:
once more than ``capacity`` problems are stored the oldest one (together
with its solutions) is dropped.  A reentrant lock guards every access so
the store can be shared between request handlers.  The default capacity
can be overridden with the ``ASV_STORE_CAPACITY`` environment variable.

Usage::

    store = ProblemStore()
    problem_id = store.add_problem(problem, filename="3ASV.txt")
    solution_id = store.add_solution(problem_id, solution)
    entry = store.get_problem(problem_id)
"""

from __future__ import annotations

import logging
import os
import uuid
from collections import OrderedDict
from dataclasses import dataclass, field
from threading import RLock
from typing import Dict, Optional

from .asv_model import ProblemInstance, SolutionInstance

logger = logging.getLogger(__name__)

STORE_CAPACITY_ENV = "ASV_STORE_CAPACITY"
DEFAULT_CAPACITY: int = 32


@dataclass
class ProblemEntry:
    """A stored problem plus the solutions uploaded against it."""

    problem_id: str
    filename: str
    problem: ProblemInstance
    solutions: Dict[str, SolutionInstance] = field(default_factory=dict)


def _capacity_from_env() -> int:
    raw = os.environ.get(STORE_CAPACITY_ENV, "").strip()
    if not raw:
        return DEFAULT_CAPACITY
    try:
        capacity = int(raw)
    except ValueError:
        raise ValueError(f"{STORE_CAPACITY_ENV} must be an integer, got {raw!r}") from None
    if capacity < 1:
        raise ValueError(f"{STORE_CAPACITY_ENV} must be at least 1, got {capacity}")
    return capacity


class ProblemStore:
    """Thread-safe LRU registry of problems and solutions."""

    def __init__(self, capacity: Optional[int] = None) -> None:
        self.capacity = capacity if capacity is not None else _capacity_from_env()
        self._entries: "OrderedDict[str, ProblemEntry]" = OrderedDict()
        self._lock = RLock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def add_problem(self, problem: ProblemInstance, filename: str = "") -> str:
        problem_id = uuid.uuid4().hex
        with self._lock:
            self._entries[problem_id] = ProblemEntry(problem_id, filename, problem)
            self._entries.move_to_end(problem_id)
            while len(self._entries) > self.capacity:
                evicted, _ = self._entries.popitem(last=False)
                logger.info("Evicted problem %s from store", evicted)
        logger.info("Stored problem %s (%s)", problem_id, filename or "<inline>")
        return problem_id

    def get_problem(self, problem_id: str) -> Optional[ProblemEntry]:
        """Return the entry for ``problem_id`` and mark it recently used."""
        with self._lock:
            entry = self._entries.get(problem_id)
            if entry is not None:
                self._entries.move_to_end(problem_id)
            return entry

    def add_solution(self, problem_id: str, solution: SolutionInstance) -> str:
        """Attach ``solution`` to a stored problem.

        Raises:
            KeyError: If the problem is not stored.
        """
        solution_id = uuid.uuid4().hex
        with self._lock:
            entry = self.get_problem(problem_id)
            if entry is None:
                raise KeyError(problem_id)
            entry.solutions[solution_id] = solution
        logger.info("Stored solution %s for problem %s", solution_id, problem_id)
        return solution_id

    def get_solution(self, problem_id: str, solution_id: str) -> Optional[SolutionInstance]:
        with self._lock:
            entry = self.get_problem(problem_id)
            if entry is None:
                return None
            return entry.solutions.get(solution_id)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()
