"""
src/collocation/basis.py

One-dimensional bases and the combined tensor-product basis.

A value function over (debt, income) is represented as

    V(b, y) = sum_j phi_j(b, y) * omega_j,   phi_j(b, y) = phi^y_{j_y}(y) * phi^b_{j_b}(b)

with the coefficient index j = j_y * n_b + j_b (income major, debt varying fastest).
Every basis evaluates to a scipy.sparse CSR matrix with one row per query point
and one column per basis function.
"""

import logging
from abc import ABC, abstractmethod

import numpy as np
import scipy.sparse as sp
from numpy.polynomial import chebyshev
from scipy.interpolate import BSpline
from scipy.sparse.linalg import splu

from src.collocation.config import CollocationConfig
from src.collocation.errors import SingularMatrixError

logger = logging.getLogger(__name__)


class Basis(ABC):
    """Capability interface shared by every 1-D basis."""

    @property
    @abstractmethod
    def size(self) -> int:
        """Number of basis functions (= number of collocation nodes)."""

    @abstractmethod
    def nodes(self) -> np.ndarray:
        """Collocation nodes at which the basis matrix is square and invertible."""

    @abstractmethod
    def evaluate(self, points: np.ndarray) -> sp.csr_matrix:
        """Basis-function values at `points`. Shape (len(points), size)."""

    def __repr__(self) -> str:
        lo, hi = self.nodes()[[0, -1]]
        return f"{type(self).__name__}(size={self.size}, domain=[{lo:.4g}, {hi:.4g}])"


class LinearBasis(Basis):
    """
    Piecewise-linear hat functions with breakpoints at the nodes.

    Evaluated at its own breakpoints this basis is the identity, so collocation
    pins the function exactly at the nodes. Queries outside the breakpoints are
    extrapolated linearly from the boundary segment. A single breakpoint gives
    the constant function.
    """

    def __init__(self, breaks: np.ndarray):
        breaks = np.asarray(breaks, dtype=float)
        if breaks.ndim != 1 or breaks.size < 1:
            raise ValueError("breaks must be a non-empty 1D array")
        if breaks.size > 1 and np.any(np.diff(breaks) <= 0):
            raise ValueError("breaks must be strictly increasing")
        self.breaks = breaks

    @property
    def size(self) -> int:
        return self.breaks.size

    def nodes(self) -> np.ndarray:
        return self.breaks.copy()

    def evaluate(self, points: np.ndarray) -> sp.csr_matrix:
        x = np.atleast_1d(np.asarray(points, dtype=float))
        m, n = x.size, self.size

        if n == 1:
            return sp.csr_matrix(np.ones((m, 1)))

        idx = np.clip(np.searchsorted(self.breaks, x, side="right") - 1, 0, n - 2)
        left = self.breaks[idx]
        width = self.breaks[idx + 1] - left
        w = (x - left) / width

        rows = np.repeat(np.arange(m), 2)
        cols = np.column_stack([idx, idx + 1]).ravel()
        data = np.column_stack([1.0 - w, w]).ravel()
        return sp.csr_matrix((data, (rows, cols)), shape=(m, n))


class SplineBasis(Basis):
    """
    B-spline basis of odd degree with not-a-knot end conditions.

    The knot vector repeats each endpoint degree + 1 times and drops the
    (degree + 1) / 2 nodes next to each end, leaving exactly one basis function
    per node. Queries are clamped to the node range.
    """

    def __init__(self, breaks: np.ndarray, degree: int = 3):
        breaks = np.asarray(breaks, dtype=float)
        if degree < 1 or degree % 2 == 0:
            raise ValueError(f"degree must be a positive odd integer. Got {degree}")
        if breaks.ndim != 1 or breaks.size < degree + 1:
            raise ValueError(f"Need at least degree + 1 = {degree + 1} breaks. Got {breaks.size}")
        if np.any(np.diff(breaks) <= 0):
            raise ValueError("breaks must be strictly increasing")

        self.breaks = breaks
        self.degree = degree

        drop = (degree + 1) // 2
        self.knots = np.concatenate([
            np.repeat(breaks[0], degree + 1),
            breaks[drop:breaks.size - drop],
            np.repeat(breaks[-1], degree + 1),
        ])

    @property
    def size(self) -> int:
        return self.breaks.size

    def nodes(self) -> np.ndarray:
        return self.breaks.copy()

    def evaluate(self, points: np.ndarray) -> sp.csr_matrix:
        x = np.atleast_1d(np.asarray(points, dtype=float))
        x = np.clip(x, self.breaks[0], self.breaks[-1])
        return sp.csr_matrix(BSpline.design_matrix(x, self.knots, self.degree))


class ChebyshevBasis(Basis):
    """
    Chebyshev polynomials T_0 .. T_{n-1} on [lo, hi], collocated at the
    Chebyshev nodes of the first kind. Dense, but stored as CSR for a uniform
    interface. Queries are clamped to [lo, hi].
    """

    def __init__(self, n: int, lo: float, hi: float):
        if n < 1:
            raise ValueError(f"n must be >= 1. Got {n}")
        if not lo < hi:
            raise ValueError(f"lo must be < hi. Got [{lo}, {hi}]")
        self.n = n
        self.lo = float(lo)
        self.hi = float(hi)

    @property
    def size(self) -> int:
        return self.n

    def nodes(self) -> np.ndarray:
        k = np.arange(1, self.n + 1)
        z = np.sort(np.cos((2 * k - 1) * np.pi / (2 * self.n)))
        # The middle node of an odd-sized set is zero up to rounding
        z[np.abs(z) < 1e-14] = 0.0
        return self.lo + (z + 1.0) * (self.hi - self.lo) / 2.0

    def evaluate(self, points: np.ndarray) -> sp.csr_matrix:
        x = np.atleast_1d(np.asarray(points, dtype=float))
        z = np.clip(2.0 * (x - self.lo) / (self.hi - self.lo) - 1.0, -1.0, 1.0)
        return sp.csr_matrix(chebyshev.chebvander(z, self.n - 1))


def make_debt_basis(config: CollocationConfig) -> Basis:
    """Build the debt basis selected by `config.debt_basis`."""
    if config.debt_basis == "linear":
        return LinearBasis(config.generate_debt_grid())
    elif config.debt_basis == "spline":
        return SplineBasis(config.generate_debt_grid(), degree=config.spline_degree)
    elif config.debt_basis == "chebyshev":
        return ChebyshevBasis(config.nb, config.b_low, config.b_up)
    else:
        raise ValueError(f"Unknown debt_basis: {config.debt_basis}")


def combine(debt_rows: sp.spmatrix, income_rows: sp.spmatrix) -> sp.csr_matrix:
    """
    Row-wise tensor product of a debt-basis matrix and an income-basis matrix.

    Row i of the result is kron(income_rows[i], debt_rows[i]), so column
    j_y * n_b + j_b holds phi^y_{j_y}(y_i) * phi^b_{j_b}(b_i).

    Args:
        debt_rows: Debt basis evaluated at the query debts. Shape (m, n_b).
        income_rows: Income basis evaluated at the query incomes. Shape (m, n_y).

    Returns:
        Combined basis matrix. Shape (m, n_y * n_b).
    """
    debt_rows = sp.csr_matrix(debt_rows)
    income_rows = sp.csr_matrix(income_rows)

    if debt_rows.shape[0] != income_rows.shape[0]:
        raise ValueError(
            f"Row count mismatch: debt {debt_rows.shape[0]} vs income {income_rows.shape[0]}"
        )

    n_b = debt_rows.shape[1]
    n_y = income_rows.shape[1]

    # Expansion matrices: income column j_y -> columns j_y*n_b .. j_y*n_b + n_b - 1,
    # debt column j_b -> columns j_b, n_b + j_b, 2*n_b + j_b, ...
    expand_income = sp.kron(sp.identity(n_y, format="csr"), np.ones((1, n_b)), format="csr")
    expand_debt = sp.kron(np.ones((1, n_y)), sp.identity(n_b, format="csr"), format="csr")

    return sp.csr_matrix((income_rows @ expand_income).multiply(debt_rows @ expand_debt))


class FactorizedBasis:
    """
    A square basis matrix together with its sparse LU factorization.

    The factorization is computed once and reused by every coefficient solve,
    which is what keeps each sweep of the fixed-point loop cheap.
    """

    def __init__(self, matrix: sp.spmatrix, name: str = "basis"):
        matrix = sp.csc_matrix(matrix)
        if matrix.shape[0] != matrix.shape[1]:
            raise SingularMatrixError(f"{name} matrix is not square: {matrix.shape}")

        try:
            self._lu = splu(matrix)
        except RuntimeError as exc:
            raise SingularMatrixError(f"{name} matrix is singular: {exc}") from exc

        self.matrix = sp.csr_matrix(matrix)
        self.name = name
        logger.debug(f"Factorized {name} matrix: shape={matrix.shape}, nnz={matrix.nnz}")

    @property
    def shape(self):
        return self.matrix.shape

    def solve(self, values: np.ndarray) -> np.ndarray:
        """Coefficients omega with matrix @ omega = values."""
        values = np.asarray(values, dtype=float)
        if values.shape[0] != self.matrix.shape[0]:
            raise ValueError(
                f"values length {values.shape[0]} does not match {self.name} matrix {self.matrix.shape}"
            )

        coeffs = self._lu.solve(values)
        if np.all(np.isfinite(values)) and not np.all(np.isfinite(coeffs)):
            raise SingularMatrixError(f"{self.name} matrix is numerically singular")
        return coeffs

    def __matmul__(self, coeffs: np.ndarray) -> np.ndarray:
        return self.matrix @ coeffs


def solve_coefficients(phi: sp.spmatrix, values: np.ndarray) -> np.ndarray:
    """
    Solve the square collocation system phi @ omega = values exactly.

    Raises:
        SingularMatrixError: If phi is not square or not invertible.
    """
    return FactorizedBasis(phi).solve(values)
