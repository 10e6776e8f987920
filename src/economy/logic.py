"""
src/economy/logic.py

Pure functions for the sovereign's budget and preferences.

All functions are vectorized over NumPy arrays so the debt-choice optimizer can
evaluate every collocation node in one call.
"""

import numpy as np

from src.economy.parameters import EconomicParams


def utility(c: np.ndarray, gamma: float) -> np.ndarray:
    """
    CRRA period utility.

        u(c) = c^(1-gamma) / (1-gamma)     gamma != 1
        u(c) = log(c)                      gamma == 1

    Non-positive consumption is infeasible and maps to -inf.

    Args:
        c: Consumption levels (any shape).
        gamma: Coefficient of relative risk aversion.

    Returns:
        Utility levels, same shape as c.
    """
    c = np.asarray(c, dtype=float)
    feasible = c > 0
    c_safe = np.where(feasible, c, 1.0)

    if np.isclose(gamma, 1.0):
        u = np.log(c_safe)
    else:
        u = c_safe ** (1.0 - gamma) / (1.0 - gamma)

    return np.where(feasible, u, -np.inf)


def consumption(
    y: np.ndarray,
    b: np.ndarray,
    b_next: np.ndarray,
    q_next: np.ndarray
) -> np.ndarray:
    """
    Resource constraint while the sovereign has market access.

        c = y + b - q(y, b') * b'

    Here b is the asset position (b < 0 is debt), so issuing debt (b' < 0)
    raises current consumption by the proceeds -q * b'.
    """
    return y + b - q_next * b_next


def default_endowment(y_grid: np.ndarray, params: EconomicParams) -> np.ndarray:
    """
    Output while excluded from markets.

        h(y) = min(default_cost * mean(y_grid), y)
    """
    y_grid = np.asarray(y_grid, dtype=float)
    return np.minimum(params.default_cost * np.mean(y_grid), y_grid)


def default_flow_utility(y_grid: np.ndarray, params: EconomicParams) -> np.ndarray:
    """Period utility in default, u(h(y)), constant across iterations."""
    return utility(default_endowment(y_grid, params), params.gamma)
