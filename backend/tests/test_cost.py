"""Tests for the path cost strategies."""

from __future__ import annotations

import sys
from pathlib import Path

import pytest

sys.path.append(str(Path(__file__).resolve().parents[1]))

from app.services.asv_model import ASVConfig
from app.services.cost import (
    COST_STRATEGY_ENV,
    compute_path_cost,
    default_cost_strategy,
    step_displacements,
)


def _path() -> list[ASVConfig]:
    # Step 1 moves the first ASV by 0.0005; step 2 moves both by 0.0003/0.0004.
    return [
        ASVConfig(((0.1, 0.1), (0.16, 0.1))),
        ASVConfig(((0.1005, 0.1), (0.16, 0.1))),
        ASVConfig(((0.1005, 0.1003), (0.16, 0.1004))),
    ]


def test_step_displacements_shape() -> None:
    steps = step_displacements(_path())
    assert steps.shape == (2, 2)
    assert steps[0] == pytest.approx([0.0005, 0.0])
    assert steps[1] == pytest.approx([0.0003, 0.0004])


def test_strategies() -> None:
    path = _path()
    assert compute_path_cost(path, "total_distance") == pytest.approx(0.0012)
    assert compute_path_cost(path, "max_distance") == pytest.approx(0.0009)
    assert compute_path_cost(path, "step_count") == 2.0


def test_single_state_path_costs_nothing() -> None:
    path = _path()[:1]
    assert compute_path_cost(path, "total_distance") == 0.0
    assert compute_path_cost(path, "max_distance") == 0.0
    assert compute_path_cost(path, "step_count") == 0.0


def test_unknown_strategy_rejected() -> None:
    with pytest.raises(ValueError):
        compute_path_cost(_path(), "fuel")


def test_mixed_asv_counts_rejected() -> None:
    path = _path() + [ASVConfig(((0.1, 0.1), (0.16, 0.1), (0.13, 0.15)))]
    with pytest.raises(ValueError):
        step_displacements(path)


def test_default_strategy_from_environment(monkeypatch) -> None:
    monkeypatch.delenv(COST_STRATEGY_ENV, raising=False)
    assert default_cost_strategy() == "total_distance"
    monkeypatch.setenv(COST_STRATEGY_ENV, "STEP_COUNT")
    assert default_cost_strategy() == "step_count"
    assert compute_path_cost(_path()) == 2.0
    monkeypatch.setenv(COST_STRATEGY_ENV, "bogus")
    with pytest.raises(ValueError):
        default_cost_strategy()
