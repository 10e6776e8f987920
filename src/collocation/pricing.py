"""
src/collocation/pricing.py

Bond pricing for the collocation solver.

1. update_default_and_price: lenders' zero-profit prices from the current
   repayment and default value functions.
2. PriceInterpolator: evaluates the price schedule, known only at the debt
   nodes, at arbitrary debt choices inside the optimizer.
"""

from typing import NamedTuple

import numpy as np

from src.collocation.basis import FactorizedBasis


class PriceSchedule(NamedTuple):
    """
    Default decisions and bond prices on the (income, debt) grid.

    All arrays have shape (ny, nb).

    Attributes:
        default_states: 1.0 where defaulting beats repaying, else 0.0.
        defprob: Pr(default next period | y, b'), in [0, 1].
        q: Price per unit of face value, in [0, 1/(1+r)].
    """
    default_states: np.ndarray
    defprob: np.ndarray
    q: np.ndarray


def update_default_and_price(
    phi: FactorizedBasis,
    phi_d: FactorizedBasis,
    omega_c: np.ndarray,
    omega_d: np.ndarray,
    prob_matrix: np.ndarray,
    r: float,
    nb: int
) -> PriceSchedule:
    """
    Compute default probabilities and risk-adjusted bond prices.

    The lender is risk neutral and loses everything in default, so

        default(y', b') = 1{ V_d(y') > V_c(b', y') }
        defprob(y, b')  = sum_y' Pi[y, y'] * default(y', b')
        q(y, b')        = (1 - defprob(y, b')) / (1 + r)

    Pure function of its arguments: calling it twice with the same coefficients
    gives identical results.

    Args:
        phi: Combined basis at the collocation nodes.
        phi_d: Income basis at the income nodes.
        omega_c: Repayment value coefficients. Shape (ny * nb,).
        omega_d: Default value coefficients. Shape (ny,).
        prob_matrix: Income transition matrix. Shape (ny, ny).
        r: Risk-free rate.
        nb: Number of debt nodes.

    Returns:
        PriceSchedule with arrays of shape (ny, nb).
    """
    ny = prob_matrix.shape[0]

    v_c = (phi @ omega_c).reshape(ny, nb)
    v_d = phi_d @ omega_d

    default_states = (v_d[:, None] > v_c).astype(float)

    # Rows of Pi sum to one only up to rounding
    defprob = np.clip(prob_matrix @ default_states, 0.0, 1.0)
    q = (1.0 - defprob) / (1.0 + r)

    return PriceSchedule(default_states, defprob, q)


class PriceInterpolator:
    """
    Price schedule interpolant.

    Step (exact node lookup) across income, linear across debt, held flat
    outside [b_grid[0], b_grid[-1]]. Refreshed once per sweep and queried many
    times by the debt-choice optimizer.

    Attributes:
        b_grid: Debt nodes. Shape (nb,).
        y_grid: Income nodes. Shape (ny,).
        q: Current price schedule. Shape (ny, nb).
    """

    def __init__(self, b_grid: np.ndarray, y_grid: np.ndarray, q: np.ndarray):
        self.b_grid = np.asarray(b_grid, dtype=float)
        self.y_grid = np.asarray(y_grid, dtype=float)
        if self.b_grid.size < 2 or np.any(np.diff(self.b_grid) <= 0):
            raise ValueError("b_grid must have at least 2 strictly increasing points")
        self.refresh(q)

    def refresh(self, q: np.ndarray) -> None:
        """Replace the price schedule (one call per sweep)."""
        q = np.asarray(q, dtype=float)
        expected = (self.y_grid.size, self.b_grid.size)
        if q.shape != expected:
            raise ValueError(f"q must have shape {expected}. Got {q.shape}")
        self.q = q

    def __call__(self, iy: np.ndarray, b: np.ndarray) -> np.ndarray:
        """
        Interpolated price at income node `iy` and debt choice `b`.

        Args:
            iy: Income node indices (broadcast against b).
            b: Debt choices.

        Returns:
            Prices with the broadcast shape of (iy, b).
        """
        iy, b = np.broadcast_arrays(np.asarray(iy, dtype=int), np.asarray(b, dtype=float))
        nb = self.b_grid.size

        b_clamped = np.clip(b, self.b_grid[0], self.b_grid[-1])
        idx = np.clip(np.searchsorted(self.b_grid, b_clamped, side="right") - 1, 0, nb - 2)
        left = self.b_grid[idx]
        w = (b_clamped - left) / (self.b_grid[idx + 1] - left)

        return (1.0 - w) * self.q[iy, idx] + w * self.q[iy, idx + 1]
