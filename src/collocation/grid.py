"""
src/collocation/grid.py

Builds the collocation grid: debt and income bases, the node table, and the
basis matrices that stay fixed for the life of an economy.
"""

import logging
from dataclasses import dataclass
from typing import Optional

import numpy as np
import scipy.sparse as sp

from src.collocation.basis import (
    Basis,
    FactorizedBasis,
    LinearBasis,
    combine,
    make_debt_basis,
)
from src.collocation.config import CollocationConfig
from src.economy.shocks import IncomeProcess

logger = logging.getLogger(__name__)


@dataclass(frozen=True, eq=False)
class CollocationGrid:
    """
    Fixed collocation structure of the economy.

    Node ordering is income major with debt varying fastest: node
    i = iy * nb + ib sits at (b_grid[ib], y_grid[iy]). Reshaping any node
    vector to (ny, nb) therefore gives the income-by-debt layout of the price
    schedule.

    Attributes:
        debt_basis: 1-D basis over debt.
        income_basis: 1-D basis pinned at the income nodes.
        b_grid: Debt nodes. Shape (nb,).
        y_grid: Income nodes. Shape (ny,).
        prob_matrix: Income transition matrix. Shape (ny, ny).
        nodes: (debt, income) node table. Shape (ny * nb, 2).
        income_rows: Income basis evaluated at every node. Shape (ny * nb, ny).
        phi: Combined basis at the nodes, factorized. Shape (N, N).
        phi_d: Income basis at the income nodes, factorized. Shape (ny, ny).
        phi_zero: Combined basis at (0, y_iy). Shape (ny, N).
        expectation: Pi kron I_nb, maps node values to conditional expectations.
    """
    debt_basis: Basis
    income_basis: Basis
    b_grid: np.ndarray
    y_grid: np.ndarray
    prob_matrix: np.ndarray
    nodes: np.ndarray
    income_rows: sp.csr_matrix
    phi: FactorizedBasis
    phi_d: FactorizedBasis
    phi_zero: sp.csr_matrix
    expectation: sp.csr_matrix

    @property
    def ny(self) -> int:
        return self.y_grid.size

    @property
    def nb(self) -> int:
        return self.b_grid.size

    @property
    def n_nodes(self) -> int:
        return self.nodes.shape[0]

    @classmethod
    def build(cls, config: CollocationConfig, income: IncomeProcess) -> "CollocationGrid":
        """
        Construct bases, nodes and basis matrices.

        Args:
            config: Grid settings. `config.ny` must match the income process.
            income: Discretized income process.

        Returns:
            CollocationGrid

        Raises:
            ValueError: If the income process size disagrees with config.ny.
            SingularMatrixError: If a basis matrix cannot be inverted.
        """
        if income.size != config.ny:
            raise ValueError(
                f"Income process has {income.size} states but config.ny = {config.ny}"
            )

        debt_basis = make_debt_basis(config)
        income_basis = LinearBasis(income.y_grid)

        b_grid = debt_basis.nodes()
        y_grid = income.y_grid
        ny, nb = y_grid.size, b_grid.size

        # --- 1. Node table (income major, debt fastest) ---
        nodes = np.column_stack([np.tile(b_grid, ny), np.repeat(y_grid, nb)])

        # --- 2. Basis matrices at the nodes ---
        income_rows = income_basis.evaluate(nodes[:, 1])
        phi = FactorizedBasis(
            combine(debt_basis.evaluate(nodes[:, 0]), income_rows), name="Phi"
        )
        phi_d = FactorizedBasis(income_basis.evaluate(y_grid), name="Phi_d")

        # --- 3. Repayment value at zero debt, one row per income node ---
        phi_zero = combine(debt_basis.evaluate(np.zeros(ny)), income_basis.evaluate(y_grid))

        # --- 4. Expectation operator over next-period income ---
        expectation = sp.kron(
            sp.csr_matrix(income.prob_matrix), sp.identity(nb, format="csr"), format="csr"
        )

        logger.debug(
            f"Built collocation grid: {debt_basis!r} x {income_basis!r}, "
            f"N={nodes.shape[0]}, nnz(Phi)={phi.matrix.nnz}"
        )

        return cls(
            debt_basis=debt_basis,
            income_basis=income_basis,
            b_grid=b_grid,
            y_grid=y_grid,
            prob_matrix=income.prob_matrix,
            nodes=nodes,
            income_rows=income_rows,
            phi=phi,
            phi_d=phi_d,
            phi_zero=phi_zero,
            expectation=expectation,
        )

    def basis_at(self, b: np.ndarray, income_rows: Optional[sp.spmatrix] = None) -> sp.csr_matrix:
        """
        Combined basis rows at debt values `b`.

        Args:
            b: One debt value per row. Shape (m,).
            income_rows: Income basis rows to pair with `b`. Defaults to the
                income rows of the collocation nodes (requires m = N).
        """
        if income_rows is None:
            income_rows = self.income_rows
        return combine(self.debt_basis.evaluate(b), income_rows)
