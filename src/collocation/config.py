"""
Collocation grid and solver configuration.

This module provides CollocationConfig for the projection solver settings.
Keeps grid discretization and iteration controls separate from economic primitives.
"""

from dataclasses import dataclass, asdict
from typing import Any, Dict, List, Literal, Optional

import numpy as np

from src._defaults import (
    DEFAULT_NY,
    DEFAULT_NB,
    DEFAULT_B_LOW,
    DEFAULT_B_UP,
    DEFAULT_SPLINE_DEGREE,
    DEFAULT_TOL,
    DEFAULT_MAX_ITER,
    DEFAULT_LOG_EVERY,
    DEFAULT_BORROW_BUFFER,
    DEFAULT_SEARCH_POINTS,
    DEFAULT_GOLDEN_TOL,
)
from src.economy.parameters import EconomicParams, ShockParams


@dataclass
class CollocationConfig:
    """
    Numerical settings for the collocation solver.

    These are NOT economic primitives; they control the approximation and the
    fixed-point iteration.

    Attributes:
        ny: Number of income states
        nb: Number of debt nodes (= number of debt basis functions)
        b_low: Debt floor (most negative asset position)
        b_up: Upper end of the asset grid
        debt_basis: Basis family over debt ("linear", "spline", "chebyshev")
        spline_degree: Degree of the B-spline basis (odd)
        tol: Convergence tolerance on coefficient changes
        max_iter: Iteration cap of the fixed-point loop
        borrow_buffer: Margin kept between b' and current income
        search_points: Candidates scanned per node before golden section
        golden_tol: Bracket width at which golden section stops
        log_every: Progress is logged every this many sweeps

    Example:
        config = CollocationConfig(ny=21, nb=31, debt_basis="spline")
        b_grid = config.generate_debt_grid()
    """
    ny: int = DEFAULT_NY
    nb: int = DEFAULT_NB
    b_low: float = DEFAULT_B_LOW
    b_up: float = DEFAULT_B_UP
    debt_basis: Literal["linear", "spline", "chebyshev"] = "linear"
    spline_degree: int = DEFAULT_SPLINE_DEGREE
    tol: float = DEFAULT_TOL
    max_iter: int = DEFAULT_MAX_ITER
    borrow_buffer: float = DEFAULT_BORROW_BUFFER
    search_points: int = DEFAULT_SEARCH_POINTS
    golden_tol: float = DEFAULT_GOLDEN_TOL
    log_every: int = DEFAULT_LOG_EVERY

    def __post_init__(self):
        """Validate grid and solver settings."""
        valid_bases = {"linear", "spline", "chebyshev"}
        if self.debt_basis not in valid_bases:
            raise ValueError(f"Unknown debt_basis: {self.debt_basis}. Valid options: {valid_bases}")

        if self.ny < 1:
            raise ValueError(f"ny must be >= 1. Got {self.ny}")

        if self.nb < 2:
            raise ValueError(f"nb must be >= 2. Got {self.nb}")

        if not self.b_low < self.b_up:
            raise ValueError(f"b_low must be < b_up. Got [{self.b_low}, {self.b_up}]")

        # Re-entry after default happens at zero debt
        if not (self.b_low <= 0.0 <= self.b_up):
            raise ValueError(f"Debt bounds must contain 0. Got [{self.b_low}, {self.b_up}]")

        if self.debt_basis == "spline":
            if self.spline_degree < 1 or self.spline_degree % 2 == 0:
                raise ValueError(f"spline_degree must be a positive odd integer. Got {self.spline_degree}")
            if self.nb < self.spline_degree + 1:
                raise ValueError(
                    f"nb must be >= spline_degree + 1 = {self.spline_degree + 1}. Got {self.nb}"
                )

        if self.tol <= 0:
            raise ValueError(f"tol must be > 0. Got {self.tol}")

        if self.max_iter < 1:
            raise ValueError(f"max_iter must be >= 1. Got {self.max_iter}")

        if self.borrow_buffer < 0:
            raise ValueError(f"borrow_buffer must be >= 0. Got {self.borrow_buffer}")

        if self.search_points < 3:
            raise ValueError(f"search_points must be >= 3. Got {self.search_points}")

        if self.golden_tol <= 0:
            raise ValueError(f"golden_tol must be > 0. Got {self.golden_tol}")

        if self.log_every < 1:
            raise ValueError(f"log_every must be >= 1. Got {self.log_every}")

    @property
    def n_nodes(self) -> int:
        """Number of collocation nodes, ny * nb."""
        return self.ny * self.nb

    def generate_debt_grid(self) -> np.ndarray:
        """
        Generate the evenly spaced debt grid over [b_low, b_up].

        Returns:
            1D array of nb debt points
        """
        return np.linspace(self.b_low, self.b_up, self.nb)

    def summary(
        self,
        params: Optional[EconomicParams] = None,
        shock_params: Optional[ShockParams] = None
    ) -> "pd.DataFrame":
        """
        Return a summary DataFrame of all configuration parameters.

        Args:
            params: Economic parameters to include (defaults if None)
            shock_params: Shock parameters to include (defaults if None)

        Returns:
            pandas DataFrame with columns Group, Parameter, Value
        """
        import pandas as pd

        rows: List[Dict[str, Any]] = []

        for k, v in asdict(params or EconomicParams()).items():
            rows.append({"Group": "Economic", "Parameter": k, "Value": v})

        for k, v in asdict(shock_params or ShockParams()).items():
            rows.append({"Group": "Shock", "Parameter": k, "Value": v})

        for k, v in asdict(self).items():
            rows.append({"Group": "Collocation", "Parameter": k, "Value": v})

        return pd.DataFrame(rows)
