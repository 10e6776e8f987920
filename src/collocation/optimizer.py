"""
src/collocation/optimizer.py

Batched one-dimensional maximization of the debt choice at every collocation node.

The objective u(c(b')) + beta * E[V](b', y) is continuous in b' but kinked
wherever the interpolated price schedule is, and need not be concave. Each node
is therefore solved by a coarse candidate scan followed by golden-section
refinement inside the bracket around the best candidate.
"""

import logging
from typing import Callable, NamedTuple, Tuple

import numpy as np

from src._defaults import (
    DEFAULT_GOLDEN_MAX_ITER,
    DEFAULT_GOLDEN_TOL,
    DEFAULT_SEARCH_POINTS,
)
from src.collocation.errors import InfeasibleNodeError

logger = logging.getLogger(__name__)

INV_PHI = (np.sqrt(5.0) - 1.0) / 2.0

Objective = Callable[[np.ndarray], np.ndarray]


def golden_section_max(
    objective: Objective,
    lower: np.ndarray,
    upper: np.ndarray,
    tol: float = DEFAULT_GOLDEN_TOL,
    max_iter: int = DEFAULT_GOLDEN_MAX_ITER
) -> Tuple[np.ndarray, np.ndarray]:
    """
    Golden-section search for the maximum of many scalar functions at once.

    `objective` maps a vector of candidates (one per problem) to a vector of
    values. Each problem keeps its own bracket; all brackets shrink by the
    golden ratio per step, one objective evaluation per step.

    Args:
        objective: Vectorized objective, ndarray (n,) -> ndarray (n,).
        lower: Lower ends of the brackets. Shape (n,).
        upper: Upper ends of the brackets. Shape (n,).
        tol: Stop once every bracket is narrower than this.
        max_iter: Hard cap on the number of steps.

    Returns:
        (x_star, f_star): Maximizers and attained values. Shape (n,) each.
    """
    a = np.asarray(lower, dtype=float).copy()
    b = np.asarray(upper, dtype=float).copy()

    x1 = b - INV_PHI * (b - a)
    x2 = a + INV_PHI * (b - a)
    f1 = objective(x1)
    f2 = objective(x2)

    for _ in range(max_iter):
        if np.max(b - a) <= tol:
            break

        # Maximum lies in [a, x2] when f1 >= f2, else in [x1, b]
        keep_left = f1 >= f2
        b = np.where(keep_left, x2, b)
        a = np.where(keep_left, a, x1)

        new_x1 = np.where(keep_left, b - INV_PHI * (b - a), x2)
        new_x2 = np.where(keep_left, x1, a + INV_PHI * (b - a))

        f_new = objective(np.where(keep_left, new_x1, new_x2))
        f1, f2 = np.where(keep_left, f_new, f2), np.where(keep_left, f1, f_new)
        x1, x2 = new_x1, new_x2

    take_first = f1 >= f2
    return np.where(take_first, x1, x2), np.where(take_first, f1, f2)


class DebtChoice(NamedTuple):
    """
    Optimal debt choice at every node.

    Attributes:
        b_next: Maximizing b'. Shape (N,).
        value: Attained objective. Shape (N,).
        infeasible: True where the bracket was empty and b' was clamped to the floor.
    """
    b_next: np.ndarray
    value: np.ndarray
    infeasible: np.ndarray


class DebtChoiceOptimizer:
    """
    Maximizes the Bellman objective over b' in [lower, upper_i] for every node i.

    Attributes:
        lower: Debt floor shared by all nodes.
        upper: Node-specific upper bounds. Shape (N,).
        search_points: Candidates scanned per node before refinement.
        tol: Golden-section bracket tolerance.
        max_iter: Golden-section iteration cap.
    """

    def __init__(
        self,
        lower: float,
        upper: np.ndarray,
        search_points: int = DEFAULT_SEARCH_POINTS,
        tol: float = DEFAULT_GOLDEN_TOL,
        max_iter: int = DEFAULT_GOLDEN_MAX_ITER
    ):
        if search_points < 3:
            raise ValueError(f"search_points must be >= 3. Got {search_points}")
        self.lower = float(lower)
        self.upper = np.asarray(upper, dtype=float)
        self.search_points = search_points
        self.tol = tol
        self.max_iter = max_iter

    @property
    def n_nodes(self) -> int:
        return self.upper.size

    def bracket(self) -> Tuple[np.ndarray, np.ndarray]:
        """
        Search interval of every node.

        Raises:
            InfeasibleNodeError: If upper < lower at any node.
        """
        lower = np.full(self.n_nodes, self.lower)
        bad = np.flatnonzero(self.upper < lower)
        if bad.size:
            raise InfeasibleNodeError(bad)
        return lower, self.upper.copy()

    def maximize(self, objective: Objective) -> DebtChoice:
        """
        Solve all node problems.

        Nodes with an empty bracket are clamped to the debt floor, logged at
        WARNING, and flagged in the returned `infeasible` mask.

        Args:
            objective: Vectorized objective, ndarray (N,) -> ndarray (N,).

        Returns:
            DebtChoice
        """
        infeasible = np.zeros(self.n_nodes, dtype=bool)
        try:
            lower, upper = self.bracket()
        except InfeasibleNodeError as exc:
            logger.warning(f"{exc}; clamping to debt floor {self.lower:.4g}")
            infeasible[exc.nodes] = True
            lower = np.full(self.n_nodes, self.lower)
            upper = np.where(infeasible, self.lower, self.upper)

        # --- 1. Coarse scan (robust to non-concavity) ---
        s = np.linspace(0.0, 1.0, self.search_points)
        candidates = lower[:, None] + (upper - lower)[:, None] * s[None, :]
        values = np.column_stack([objective(candidates[:, j]) for j in range(self.search_points)])

        rows = np.arange(self.n_nodes)
        k = np.argmax(values, axis=1)
        best_x = candidates[rows, k]
        best_f = values[rows, k]

        # --- 2. Golden section between the neighbours of the best candidate ---
        lo = candidates[rows, np.maximum(k - 1, 0)]
        hi = candidates[rows, np.minimum(k + 1, self.search_points - 1)]
        x_gs, f_gs = golden_section_max(objective, lo, hi, tol=self.tol, max_iter=self.max_iter)

        use_gs = f_gs >= best_f
        return DebtChoice(
            b_next=np.where(use_gs, x_gs, best_x),
            value=np.where(use_gs, f_gs, best_f),
            infeasible=infeasible,
        )
