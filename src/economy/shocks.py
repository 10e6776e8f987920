"""
src/economy/shocks.py

Handles the exogenous income process of the sovereign.
Discretizes the AR(1) log-income process into a finite Markov chain.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Tuple

import numpy as np
import quantecon as qe

from src._defaults import DEFAULT_ROW_SUM_TOL
from src.economy.parameters import ShockParams


def initialize_markov_process(
    shock_params: ShockParams,
    ny: int = 15
) -> Tuple[np.ndarray, np.ndarray]:
    """
    Discretizes the log-income AR(1) process using Tauchen's (or Rouwenhorst's) method.

    Args:
        shock_params (ShockParams): The shock parameters containing rho, eta, mu.
        ny (int): Number of grid points for discretization.

    Returns:
        Tuple[np.ndarray, np.ndarray]:
            - y_grid: 1D array of income levels.
            - prob_matrix: 2D transition probability matrix of shape (ny, ny).
    """
    if ny < 2:
        raise ValueError(f"Discretization needs ny >= 2. Got {ny}")

    # quantecon takes the AR(1) intercept, not the unconditional mean
    intercept = (1.0 - shock_params.rho) * shock_params.mu

    if shock_params.method == "tauchen":
        mc = qe.tauchen(
            n=ny,
            rho=shock_params.rho,
            sigma=shock_params.eta,
            mu=intercept,
            n_std=shock_params.n_std
        )
    else:
        mc = qe.rouwenhorst(
            n=ny,
            rho=shock_params.rho,
            sigma=shock_params.eta,
            mu=intercept
        )

    y_grid = np.exp(mc.state_values)  # Convert log-states to levels
    prob_matrix = np.asarray(mc.P, dtype=float)

    # Ensure strict row normalization (handling potential float precision issues)
    prob_matrix = prob_matrix / prob_matrix.sum(axis=1, keepdims=True)

    return y_grid, prob_matrix


@dataclass(frozen=True, eq=False)
class IncomeProcess:
    """
    Finite Markov chain for income.

    Attributes:
        y_grid: Income levels, strictly increasing and positive. Shape (ny,).
        prob_matrix: Row-stochastic transition matrix, P[i, j] = Pr(y_j | y_i).
            Shape (ny, ny).
    """
    y_grid: np.ndarray
    prob_matrix: np.ndarray

    def __post_init__(self):
        y_grid = np.atleast_1d(np.array(self.y_grid, dtype=float))
        prob_matrix = np.atleast_2d(np.array(self.prob_matrix, dtype=float))
        object.__setattr__(self, "y_grid", y_grid)
        object.__setattr__(self, "prob_matrix", prob_matrix)

        ny = y_grid.shape[0]
        if y_grid.ndim != 1:
            raise ValueError(f"y_grid must be 1D. Got shape {y_grid.shape}")

        if prob_matrix.shape != (ny, ny):
            raise ValueError(
                f"prob_matrix must have shape ({ny}, {ny}). Got {prob_matrix.shape}"
            )

        if np.any(y_grid <= 0):
            raise ValueError("y_grid must contain strictly positive income levels")

        if ny > 1 and np.any(np.diff(y_grid) <= 0):
            raise ValueError("y_grid must be strictly increasing")

        if np.any(prob_matrix < 0) or np.any(prob_matrix > 1):
            raise ValueError("prob_matrix entries must lie in [0, 1]")

        row_err = np.max(np.abs(prob_matrix.sum(axis=1) - 1.0))
        if row_err > DEFAULT_ROW_SUM_TOL:
            raise ValueError(f"prob_matrix rows must sum to 1. Max deviation {row_err:.3e}")

        y_grid.setflags(write=False)
        prob_matrix.setflags(write=False)

    @classmethod
    def from_shock_params(cls, shock_params: ShockParams, ny: int = 15) -> IncomeProcess:
        """Discretize the AR(1) process described by `shock_params`."""
        y_grid, prob_matrix = initialize_markov_process(shock_params, ny)
        return cls(y_grid, prob_matrix)

    @property
    def size(self) -> int:
        return self.y_grid.shape[0]

    def mean(self) -> float:
        """Unweighted mean of the income grid (the Arellano default-cost anchor)."""
        return float(np.mean(self.y_grid))
