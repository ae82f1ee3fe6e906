"""
Immutable data model shared by the tester, the API and the CLI.

An ``ASVConfig`` is a snapshot of every ASV position in the chain at one
instant.  Obstacles are axis-aligned rectangles in the unit workspace.  A
``ProblemInstance`` bundles the initial and goal configurations with the
obstacle set and a ``SolutionInstance`` carries the claimed path and its
declared cost.

All classes here are frozen dataclasses holding tuples, so the validation
engine can borrow them without copying.  Helpers that conceptually extend a
configuration (for example closing the chain into a ring for orientation
tests) return new tuples instead of appending to the stored positions.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Iterable, Optional, Tuple

Point = Tuple[float, float]
Segment = Tuple[Point, Point]


@dataclass(frozen=True)
class Rect:
    """Axis-aligned rectangle given by its lower-left corner and size.

    A rectangle with non-positive width or height is considered empty and
    contains no points.  ``grow`` with a negative delta shrinks the
    rectangle, which can make it empty.
    """

    x: float
    y: float
    width: float
    height: float

    @property
    def min_x(self) -> float:
        return self.x

    @property
    def min_y(self) -> float:
        return self.y

    @property
    def max_x(self) -> float:
        return self.x + self.width

    @property
    def max_y(self) -> float:
        return self.y + self.height

    @property
    def is_empty(self) -> bool:
        return self.width <= 0.0 or self.height <= 0.0

    def grow(self, delta: float) -> "Rect":
        """Return a copy expanded by ``delta`` on every side."""
        return Rect(
            self.x - delta,
            self.y - delta,
            self.width + 2.0 * delta,
            self.height + 2.0 * delta,
        )

    def contains(self, point: Point) -> bool:
        """Return True if ``point`` lies inside or on the boundary."""
        if self.is_empty:
            return False
        px, py = point
        return self.min_x <= px <= self.max_x and self.min_y <= py <= self.max_y

    @classmethod
    def bounding(cls, points: Iterable[Point]) -> "Rect":
        """Return the smallest rectangle containing every point."""
        xs = []
        ys = []
        for px, py in points:
            xs.append(px)
            ys.append(py)
        if not xs:
            raise ValueError("Cannot bound an empty point set")
        return cls(min(xs), min(ys), max(xs) - min(xs), max(ys) - min(ys))


@dataclass(frozen=True)
class Obstacle:
    """Rectangular obstacle in workspace coordinates."""

    rect: Rect

    def __post_init__(self) -> None:
        if self.rect.width < 0.0 or self.rect.height < 0.0:
            raise ValueError(
                f"Obstacle dimensions must be non-negative, got "
                f"{self.rect.width}x{self.rect.height}"
            )

    @classmethod
    def from_corners(cls, corners: Iterable[Point]) -> "Obstacle":
        return cls(Rect.bounding(corners))


@dataclass(frozen=True)
class ASVConfig:
    """Positions of every ASV in the chain at a single instant.

    Attributes:
        positions: ``(x, y)`` pairs in chain order.  Consecutive pairs are
            joined by booms; the chain itself is open.
    """

    positions: Tuple[Point, ...]

    def __post_init__(self) -> None:
        # Normalise any sequence of pairs into nested tuples of floats.
        normalised = tuple((float(px), float(py)) for px, py in self.positions)
        if len(normalised) < 2:
            raise ValueError(
                f"A configuration needs at least 2 ASVs, got {len(normalised)}"
            )
        for px, py in normalised:
            if not (math.isfinite(px) and math.isfinite(py)):
                raise ValueError(f"Non-finite ASV position ({px}, {py})")
        object.__setattr__(self, "positions", normalised)

    @property
    def asv_count(self) -> int:
        return len(self.positions)

    def _check_compatible(self, other: "ASVConfig") -> None:
        if other.asv_count != self.asv_count:
            raise ValueError(
                f"ASV count mismatch: {self.asv_count} vs {other.asv_count}"
            )

    def distances(self, other: "ASVConfig") -> Tuple[float, ...]:
        """Return the Euclidean distance moved by each ASV."""
        self._check_compatible(other)
        return tuple(
            math.hypot(bx - ax, by - ay)
            for (ax, ay), (bx, by) in zip(self.positions, other.positions)
        )

    def max_distance(self, other: "ASVConfig") -> float:
        """Return the largest distance any single ASV moves."""
        return max(self.distances(other))

    def total_distance(self, other: "ASVConfig") -> float:
        """Return the sum of the distances moved by all ASVs."""
        return math.fsum(self.distances(other))

    def booms(self) -> Tuple[Segment, ...]:
        """Return the boom segments of the open chain."""
        return tuple(zip(self.positions[:-1], self.positions[1:]))

    def ring(self) -> Tuple[Point, ...]:
        """Return the positions followed by the first two positions again.

        Walking consecutive triples of this sequence visits every corner of
        the closed polygon exactly once.
        """
        return self.positions + self.positions[:2]

    def interpolate(self, other: "ASVConfig", t: float) -> "ASVConfig":
        """Linearly blend towards ``other``; ``t=0`` is self, ``t=1`` is other."""
        self._check_compatible(other)
        if not 0.0 <= t <= 1.0:
            raise ValueError(f"Interpolation parameter must be in [0, 1], got {t}")
        return ASVConfig(
            tuple(
                (ax + (bx - ax) * t, ay + (by - ay) * t)
                for (ax, ay), (bx, by) in zip(self.positions, other.positions)
            )
        )


@dataclass(frozen=True)
class ProblemInstance:
    """A planning problem: endpoints and obstacles for a fixed chain size."""

    asv_count: int
    initial_state: ASVConfig
    goal_state: ASVConfig
    obstacles: Tuple[Obstacle, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "obstacles", tuple(self.obstacles))
        for label, state in (("initial", self.initial_state), ("goal", self.goal_state)):
            if state.asv_count != self.asv_count:
                raise ValueError(
                    f"{label} state has {state.asv_count} ASVs, expected {self.asv_count}"
                )

    def direct_solution(self) -> "SolutionInstance":
        """Return the two-point path straight from initial to goal."""
        return SolutionInstance(path=(self.initial_state, self.goal_state))

    def workspace_extent(self, solution: Optional["SolutionInstance"] = None) -> Rect:
        """Bounding rectangle of all states, obstacles and (optionally) a path."""
        points = list(self.initial_state.positions) + list(self.goal_state.positions)
        for obstacle in self.obstacles:
            points.append((obstacle.rect.min_x, obstacle.rect.min_y))
            points.append((obstacle.rect.max_x, obstacle.rect.max_y))
        if solution is not None:
            for cfg in solution.path:
                points.extend(cfg.positions)
        return Rect.bounding(points)


@dataclass(frozen=True)
class SolutionInstance:
    """A claimed path; ``declared_cost`` is None for a synthesised direct path."""

    path: Tuple[ASVConfig, ...]
    declared_cost: Optional[float] = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "path", tuple(self.path))

    @property
    def has_declared_cost(self) -> bool:
        return self.declared_cost is not None
