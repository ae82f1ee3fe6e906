"""
Tests for the immutable configuration, obstacle and problem types.

These cover construction-time validation, the distance helpers used by
the step and endpoint checks, the ring view used by the polygon
predicates and the display interpolation.
"""

from __future__ import annotations

import math
import sys
from pathlib import Path

import pytest

sys.path.append(str(Path(__file__).resolve().parents[1]))

from app.services.asv_model import ASVConfig, Obstacle, ProblemInstance, Rect, SolutionInstance


def test_config_normalises_positions_to_float_tuples() -> None:
    cfg = ASVConfig([[0, 0], [1, 2]])
    assert cfg.positions == ((0.0, 0.0), (1.0, 2.0))
    assert isinstance(cfg.positions, tuple)
    assert cfg.asv_count == 2


@pytest.mark.parametrize(
    "positions",
    [
        [(0.0, 0.0)],
        [(0.0, 0.0), (math.inf, 0.0)],
        [(0.0, math.nan), (0.1, 0.1)],
    ],
)
def test_config_rejects_invalid_positions(positions) -> None:
    with pytest.raises(ValueError):
        ASVConfig(tuple(positions))


def test_distances_and_mismatch() -> None:
    a = ASVConfig(((0.0, 0.0), (0.1, 0.0)))
    b = ASVConfig(((0.003, 0.004), (0.1, 0.001)))
    assert a.distances(b) == pytest.approx((0.005, 0.001))
    assert a.max_distance(b) == pytest.approx(0.005)
    assert a.total_distance(b) == pytest.approx(0.006)
    with pytest.raises(ValueError):
        a.max_distance(ASVConfig(((0.0, 0.0), (0.1, 0.0), (0.2, 0.0))))


def test_ring_view_does_not_mutate_positions() -> None:
    """The ring repeats the first two positions without touching the stored tuple."""
    cfg = ASVConfig(((0.0, 0.0), (1.0, 0.0), (1.0, 1.0)))
    ring = cfg.ring()
    assert ring == ((0.0, 0.0), (1.0, 0.0), (1.0, 1.0), (0.0, 0.0), (1.0, 0.0))
    assert len(cfg.positions) == 3
    # Calling twice gives the same answer, so nothing accumulated.
    assert cfg.ring() == ring


def test_booms_form_open_chain() -> None:
    cfg = ASVConfig(((0.0, 0.0), (1.0, 0.0), (1.0, 1.0)))
    assert cfg.booms() == (((0.0, 0.0), (1.0, 0.0)), ((1.0, 0.0), (1.0, 1.0)))


def test_interpolate_endpoints_and_midpoint() -> None:
    a = ASVConfig(((0.0, 0.0), (0.1, 0.0)))
    b = ASVConfig(((0.2, 0.2), (0.3, 0.2)))
    assert a.interpolate(b, 0.0) == a
    assert a.interpolate(b, 1.0) == b
    mid = a.interpolate(b, 0.5)
    assert mid.positions[0] == pytest.approx((0.1, 0.1))
    with pytest.raises(ValueError):
        a.interpolate(b, 1.5)


def test_rect_grow_and_contains() -> None:
    rect = Rect(0.0, 0.0, 1.0, 1.0)
    grown = rect.grow(0.1)
    assert (grown.min_x, grown.min_y, grown.max_x, grown.max_y) == pytest.approx(
        (-0.1, -0.1, 1.1, 1.1)
    )
    assert rect.contains((1.0, 1.0))
    assert not rect.contains((1.0001, 0.5))
    # Shrinking past zero size empties the rectangle.
    assert rect.grow(-0.6).is_empty
    assert not rect.grow(-0.6).contains((0.5, 0.5))


def test_obstacle_from_corners_uses_bounding_box() -> None:
    obstacle = Obstacle.from_corners([(0.2, 0.3), (0.5, 0.3), (0.5, 0.4), (0.2, 0.4)])
    r = obstacle.rect
    assert (r.x, r.y, r.width, r.height) == pytest.approx((0.2, 0.3, 0.3, 0.1))
    with pytest.raises(ValueError):
        Obstacle(Rect(0.0, 0.0, -1.0, 1.0))


def test_problem_direct_solution_and_extent() -> None:
    initial = ASVConfig(((0.1, 0.1), (0.15, 0.1)))
    goal = ASVConfig(((0.8, 0.8), (0.85, 0.8)))
    problem = ProblemInstance(2, initial, goal, [Obstacle(Rect(0.4, 0.4, 0.1, 0.1))])
    direct = problem.direct_solution()
    assert direct.path == (initial, goal)
    assert direct.declared_cost is None
    assert not direct.has_declared_cost
    extent = problem.workspace_extent()
    assert (extent.min_x, extent.max_x) == pytest.approx((0.1, 0.85))
    # Adding a path that strays further grows the extent.
    stray = SolutionInstance((initial, ASVConfig(((0.0, 0.95), (0.05, 0.95)))), 1.0)
    assert problem.workspace_extent(stray).max_y == pytest.approx(0.95)


def test_problem_rejects_mismatched_states() -> None:
    with pytest.raises(ValueError):
        ProblemInstance(
            3,
            ASVConfig(((0.1, 0.1), (0.15, 0.1))),
            ASVConfig(((0.1, 0.1), (0.15, 0.1), (0.12, 0.15))),
        )
