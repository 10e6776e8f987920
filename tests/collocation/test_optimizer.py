import logging

import numpy as np
import pytest

from src.collocation.errors import InfeasibleNodeError
from src.collocation.optimizer import DebtChoiceOptimizer, golden_section_max


def test_golden_section_solves_many_problems_at_once():
    """Each bracket converges to its own maximizer."""
    centers = np.array([0.1, 0.5, 0.93])
    objective = lambda x: -(x - centers) ** 2

    x, f = golden_section_max(objective, np.zeros(3), np.ones(3), tol=1e-10)

    assert np.allclose(x, centers, atol=1e-8)
    assert np.allclose(f, 0.0, atol=1e-12)


def test_golden_section_handles_degenerate_bracket():
    objective = lambda x: -x ** 2

    x, f = golden_section_max(objective, np.array([0.3]), np.array([0.3]))

    assert np.allclose(x, 0.3)


def test_scan_finds_global_maximum_of_non_concave_objective():
    """
    Two peaks: a local one at -0.3 (value 0) and the global one at 0.3
    (value 0.05). Golden section alone over the full bracket can land on
    either; the candidate scan must pick the global peak.
    """
    def objective(x):
        return np.maximum(-10 * (x + 0.3) ** 2, 0.05 - 10 * (x - 0.3) ** 2)

    optimizer = DebtChoiceOptimizer(lower=-0.4, upper=np.full(4, 0.4), search_points=31)
    choice = optimizer.maximize(objective)

    assert np.allclose(choice.b_next, 0.3, atol=1e-6)
    assert np.allclose(choice.value, 0.05, atol=1e-10)
    assert not choice.infeasible.any()


def test_node_specific_upper_bounds_bind():
    """An increasing objective is maximized at each node's own upper bound."""
    upper = np.array([-0.1, 0.0, 0.25])
    optimizer = DebtChoiceOptimizer(lower=-0.4, upper=upper)

    choice = optimizer.maximize(lambda x: x)

    assert np.allclose(choice.b_next, upper)


def test_bracket_reports_infeasible_nodes():
    optimizer = DebtChoiceOptimizer(lower=-0.4, upper=np.array([0.1, -0.5, 0.2, -0.6]))

    with pytest.raises(InfeasibleNodeError) as exc_info:
        optimizer.bracket()

    assert exc_info.value.nodes.tolist() == [1, 3]


def test_infeasible_nodes_are_clamped_and_logged(caplog):
    caplog.set_level(logging.WARNING, logger="src.collocation.optimizer")
    optimizer = DebtChoiceOptimizer(lower=-0.4, upper=np.array([0.1, -0.5]))

    choice = optimizer.maximize(lambda x: -(x - 0.05) ** 2)

    # 1. Feasible node is optimized normally
    assert np.isclose(choice.b_next[0], 0.05, atol=1e-6)

    # 2. Infeasible node sits on the debt floor
    assert choice.b_next[1] == -0.4
    assert choice.infeasible.tolist() == [False, True]

    # 3. Warning emitted
    assert any(r.levelno == logging.WARNING for r in caplog.records)
    assert "clamping to debt floor" in caplog.text


def test_search_points_validation():
    with pytest.raises(ValueError, match="search_points"):
        DebtChoiceOptimizer(lower=0.0, upper=np.ones(2), search_points=2)
