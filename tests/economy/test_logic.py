import numpy as np
import pytest

from src.economy import logic
from src.economy.parameters import EconomicParams


def test_crra_utility_values():
    """u(c) = c^(1-gamma) / (1-gamma)."""
    c = np.array([0.5, 1.0, 2.0])

    assert np.allclose(logic.utility(c, 2.0), [-2.0, -1.0, -0.5])
    assert np.allclose(logic.utility(c, 3.0), c ** -2 / -2)


def test_log_utility_limit():
    c = np.array([0.5, 1.0, 2.0])
    assert np.allclose(logic.utility(c, 1.0), np.log(c))


def test_non_positive_consumption_is_infeasible():
    u = logic.utility(np.array([-0.1, 0.0, 1.0]), 2.0)

    assert np.isneginf(u[0])
    assert np.isneginf(u[1])
    assert np.isfinite(u[2])


def test_utility_is_increasing():
    c = np.linspace(0.1, 3.0, 50)
    assert np.all(np.diff(logic.utility(c, 2.0)) > 0)


def test_consumption_budget_constraint():
    """
    c = y + b - q * b'.
    Borrowing 0.1 at q = 0.9 with no current assets adds 0.09 to income.
    """
    c = logic.consumption(y=1.0, b=0.0, b_next=-0.1, q_next=0.9)
    assert np.isclose(c, 1.09)

    # Repaying 0.2 and saving 0.1 at the risk-free price
    c = logic.consumption(y=1.0, b=-0.2, b_next=0.1, q_next=1 / 1.017)
    assert np.isclose(c, 1.0 - 0.2 - 0.1 / 1.017)


def test_default_endowment_caps_output():
    """h(y) = min(0.969 * mean(y), y)."""
    params = EconomicParams()
    y = np.array([0.8, 1.0, 1.2])

    h = logic.default_endowment(y, params)

    assert np.allclose(h, [0.8, 0.969, 0.969])


def test_default_flow_utility():
    params = EconomicParams()
    y = np.array([0.8, 1.0, 1.2])

    expected = logic.utility(logic.default_endowment(y, params), params.gamma)
    assert np.allclose(logic.default_flow_utility(y, params), expected)
