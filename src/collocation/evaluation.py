"""
src/collocation/evaluation.py

Post-processing of a solved economy on a finer debt grid.

The converged coefficients define value functions at every debt level, so
values, default sets and prices can be read off at any resolution without
further iteration.
"""

from typing import NamedTuple

import numpy as np

from src.collocation.arellano import ArellanoCollocation, CollocationState
from src.collocation.basis import combine


class FineGridSolution(NamedTuple):
    """
    Solution surfaces on a user-supplied debt grid.

    Arrays indexed by (income, debt) have shape (ny, n_fine).

    Attributes:
        b_grid: The fine debt grid. Shape (n_fine,).
        y_grid: Income nodes. Shape (ny,).
        v_repay: Repayment value V_c.
        v_default: Default value V_d. Shape (ny,).
        value: max(V_c, V_d).
        expected_value: E[V(b', y') | y] at b' = b.
        default_states: 1.0 where default beats repayment.
        defprob: Pr(default next period | y, b').
        q: Bond price schedule.
    """
    b_grid: np.ndarray
    y_grid: np.ndarray
    v_repay: np.ndarray
    v_default: np.ndarray
    value: np.ndarray
    expected_value: np.ndarray
    default_states: np.ndarray
    defprob: np.ndarray
    q: np.ndarray


def evaluate_on_grid(
    model: ArellanoCollocation,
    state: CollocationState,
    b_grid: np.ndarray
) -> FineGridSolution:
    """
    Evaluate the solved value, default and price surfaces at `b_grid`.

    Args:
        model: The economy the state was solved for.
        state: Converged (or last) solution state.
        b_grid: Strictly increasing debt values.

    Returns:
        FineGridSolution
    """
    b_grid = np.asarray(b_grid, dtype=float)
    if b_grid.ndim != 1 or b_grid.size < 1:
        raise ValueError("b_grid must be a non-empty 1D array")
    if np.any(np.diff(b_grid) <= 0):
        raise ValueError("b_grid must be strictly increasing")

    grid = model.grid
    ny, n_fine = grid.ny, b_grid.size

    # Same node ordering as the collocation grid: income major, debt fastest
    phi_fine = combine(
        grid.debt_basis.evaluate(np.tile(b_grid, ny)),
        grid.income_basis.evaluate(np.repeat(grid.y_grid, n_fine)),
    )

    v_repay = (phi_fine @ state.omega_c).reshape(ny, n_fine)
    v_default = grid.phi_d @ state.omega_d
    expected_value = (phi_fine @ state.omega_e).reshape(ny, n_fine)

    default_states = (v_default[:, None] > v_repay).astype(float)
    defprob = np.clip(grid.prob_matrix @ default_states, 0.0, 1.0)
    q = (1.0 - defprob) / (1.0 + model.params.r)

    return FineGridSolution(
        b_grid=b_grid,
        y_grid=grid.y_grid,
        v_repay=v_repay,
        v_default=v_default,
        value=np.maximum(v_repay, v_default[:, None]),
        expected_value=expected_value,
        default_states=default_states,
        defprob=defprob,
        q=q,
    )
