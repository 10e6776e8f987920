"""
arellano.py

Solves the Arellano (2008) sovereign default model by collocation.

Value functions are weighted sums of basis functions over (debt, income):

    V_c(b, y)  = Phi(b, y)   @ omega_c      repayment value
    V_d(y)     = Phi_d(y)    @ omega_d      default value
    EV(b', y)  = Phi(b', y)  @ omega_e      E[max(V_c, V_d)(b', y') | y]

Each sweep of the fixed-point iteration updates the three coefficient vectors
in a fixed order and then reprices debt:
1. Expectation: omega_e from the old omega_c, omega_d.
2. Default: omega_d from the old omega_c (value at zero debt) and old omega_d.
3. Repayment: per-node debt choice against the NEW omega_e; omega_c.
4. Prices: default sets, default probabilities and q from the new omega_c, omega_d.
Separating the expectation (step 1) from the per-node optimization (step 3) means
the optimizer only ever evaluates a single basis row per candidate.
"""

import dataclasses
import logging
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Tuple

import numpy as np

from src.collocation.config import CollocationConfig
from src.collocation.errors import NumericalDivergenceError
from src.collocation.grid import CollocationGrid
from src.collocation.optimizer import DebtChoice, DebtChoiceOptimizer
from src.collocation.pricing import PriceInterpolator, update_default_and_price
from src.economy.logic import consumption, default_flow_utility, utility
from src.economy.parameters import EconomicParams, ShockParams
from src.economy.shocks import IncomeProcess

logger = logging.getLogger(__name__)


class SolveStatus(str, Enum):
    """Terminal states of the fixed-point iteration."""
    CONVERGED = "converged"
    MAX_ITER = "max_iter"
    DIVERGED = "diverged"


@dataclass
class CollocationState:
    """
    Mutable solution of the economy, owned by a single iteration loop.

    Attributes:
        omega_c: Repayment value coefficients. Shape (N,).
        omega_d: Default value coefficients. Shape (ny,).
        omega_e: Expected continuation value coefficients. Shape (N,).
        q: Bond price schedule. Shape (ny, nb).
        defprob: Pr(default next period | y, b'). Shape (ny, nb).
        default_states: Default indicator on the grid. Shape (ny, nb).
        policy_b: Optimal b' at every node. Shape (N,).
        iteration: Number of completed sweeps.
    """
    omega_c: np.ndarray
    omega_d: np.ndarray
    omega_e: np.ndarray
    q: np.ndarray
    defprob: np.ndarray
    default_states: np.ndarray
    policy_b: np.ndarray
    iteration: int = 0

    def copy(self) -> "CollocationState":
        return dataclasses.replace(
            self,
            **{
                f.name: getattr(self, f.name).copy()
                for f in dataclasses.fields(self)
                if isinstance(getattr(self, f.name), np.ndarray)
            }
        )


@dataclass
class SolveResult:
    """
    Outcome of `ArellanoCollocation.solve`.

    Non-convergence and divergence are reported here, never raised.

    Attributes:
        status: CONVERGED, MAX_ITER (cap reached) or DIVERGED (NaN/Inf detected).
        state: Last finite solution.
        iterations: Sweeps performed.
        distance: Final max coefficient change.
        residuals: Final Euclidean change per coefficient vector ("c", "d", "e").
        history: Per-sweep distances and residuals.
        duration: Wall-clock seconds.
        error: Divergence message, if any.
    """
    status: SolveStatus
    state: CollocationState
    iterations: int
    distance: float
    residuals: Dict[str, float]
    history: List[Dict[str, Any]] = field(default_factory=list)
    duration: float = 0.0
    error: Optional[str] = None

    @property
    def converged(self) -> bool:
        return self.status is SolveStatus.CONVERGED

    @property
    def q(self) -> np.ndarray:
        return self.state.q

    @property
    def defprob(self) -> np.ndarray:
        return self.state.defprob

    def history_frame(self) -> "pd.DataFrame":
        """Per-sweep convergence history as a DataFrame indexed by iteration."""
        import pandas as pd

        return pd.DataFrame(self.history).set_index("iteration")


class ArellanoCollocation:
    """
    Collocation solver for the Arellano (2008) sovereign default model.

    Overview
    --------
    A small open economy receives stochastic income y, trades one-period
    bonds b (b < 0 is debt) at price q(y, b') with risk-neutral lenders, and
    may default. Default excludes the sovereign from markets (re-entry with
    probability theta at zero debt) and lowers income to h(y).

    The model object is fixed after construction: parameters, grids, basis
    matrices and the debt-choice bounds. The solution lives in a
    CollocationState that every stage receives explicitly.

    Attributes:
        params (EconomicParams): Preferences and market parameters.
        shock_params (ShockParams): Income process parameters.
        config (CollocationConfig): Grid and solver settings.
        income (IncomeProcess): Discretized income process.
        grid (CollocationGrid): Bases, nodes and basis matrices.
        ny (int): Number of income states.
        nb (int): Number of debt nodes.
        n_nodes (int): ny * nb.
        default_utility (np.ndarray): u(h(y)) at each income node. Shape (ny,).
        optimizer (DebtChoiceOptimizer): Per-node debt-choice search.
        pricer (PriceInterpolator): Price schedule seen by the optimizer.
    """

    def __init__(
        self,
        params: Optional[EconomicParams] = None,
        shock_params: Optional[ShockParams] = None,
        config: Optional[CollocationConfig] = None,
        income_process: Optional[IncomeProcess] = None
    ):
        """
        Initialize the model, grids and basis matrices.

        Args:
            params: Economic parameters (Arellano calibration if None).
            shock_params: Income process parameters (defaults if None).
            config: Grid and solver settings (defaults if None).
            income_process: Explicit Markov chain for income. If given, it
                replaces the discretization of `shock_params` and sets ny.
        """
        self.params = params or EconomicParams()
        self.shock_params = shock_params or ShockParams()
        config = config or CollocationConfig()

        # --- 1. Income process ---
        if income_process is None:
            income_process = IncomeProcess.from_shock_params(self.shock_params, config.ny)
        elif income_process.size != config.ny:
            logger.info(f"Using ny={income_process.size} from the supplied income process")
            config = dataclasses.replace(config, ny=income_process.size)
        self.config = config
        self.income = income_process

        # --- 2. Bases, nodes, basis matrices ---
        self.grid = CollocationGrid.build(self.config, self.income)
        self.ny = self.grid.ny
        self.nb = self.grid.nb
        self.n_nodes = self.grid.n_nodes

        # --- 3. Iteration-invariant pieces ---
        self.default_utility = default_flow_utility(self.grid.y_grid, self.params)
        self.income_index = np.repeat(np.arange(self.ny), self.nb)

        # b' is capped by current income less a buffer and by the top of the grid
        upper = np.minimum(self.grid.nodes[:, 1] - self.config.borrow_buffer, self.config.b_up)
        self.optimizer = DebtChoiceOptimizer(
            lower=self.config.b_low,
            upper=upper,
            search_points=self.config.search_points,
            tol=self.config.golden_tol,
        )

        # Refreshed with the current price schedule at every sweep
        self.pricer = PriceInterpolator(
            self.grid.b_grid, self.grid.y_grid,
            np.full((self.ny, self.nb), self.params.risk_free_price)
        )

    def __repr__(self) -> str:
        return (
            f"ArellanoCollocation(ny={self.ny}, nb={self.nb}, "
            f"debt_basis={self.config.debt_basis!r}, beta={self.params.beta}, "
            f"gamma={self.params.gamma})"
        )

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    def initial_state(self) -> CollocationState:
        """Zero coefficients and risk-free prices everywhere."""
        shape = (self.ny, self.nb)
        return CollocationState(
            omega_c=np.zeros(self.n_nodes),
            omega_d=np.zeros(self.ny),
            omega_e=np.zeros(self.n_nodes),
            q=np.full(shape, self.params.risk_free_price),
            defprob=np.zeros(shape),
            default_states=np.zeros(shape),
            policy_b=np.zeros(self.n_nodes),
        )

    def repayment_values(self, state: CollocationState) -> np.ndarray:
        """V_c at the collocation nodes. Shape (N,)."""
        return self.grid.phi @ state.omega_c

    def default_values(self, state: CollocationState) -> np.ndarray:
        """V_d at the income nodes. Shape (ny,)."""
        return self.grid.phi_d @ state.omega_d

    def expected_values(self, state: CollocationState) -> np.ndarray:
        """E[V(b', y') | y] at the collocation nodes. Shape (N,)."""
        return self.grid.phi @ state.omega_e

    def values(self, state: CollocationState) -> np.ndarray:
        """max(V_c, V_d) on the grid. Shape (ny, nb)."""
        v_c = self.repayment_values(state).reshape(self.ny, self.nb)
        v_d = self.default_values(state)
        return np.maximum(v_c, v_d[:, None])

    # ------------------------------------------------------------------
    # Stages of one sweep
    # ------------------------------------------------------------------

    def expectation_step(self, state: CollocationState) -> np.ndarray:
        """
        New omega_e from the current omega_c and omega_d.

            rhs_e = (Pi kron I_nb) @ max(Phi omega_c, repeat(Phi_d omega_d, nb))
        """
        v = np.maximum(
            self.repayment_values(state),
            np.repeat(self.default_values(state), self.nb)
        )
        return self.grid.phi.solve(self.grid.expectation @ v)

    def default_step(self, state: CollocationState) -> np.ndarray:
        """
        New omega_d from the current omega_c and omega_d.

            rhs_d = u(h(y)) + beta * Pi @ (theta * V_c(0, y') + (1 - theta) * V_d(y'))
        """
        beta, theta = self.params.beta, self.params.theta

        v_c_zero = self.grid.phi_zero @ state.omega_c
        v_d = self.default_values(state)

        continuation = theta * v_c_zero + (1.0 - theta) * v_d
        rhs = self.default_utility + beta * (self.grid.prob_matrix @ continuation)
        return self.grid.phi_d.solve(rhs)

    def objective(self, omega_e: np.ndarray, q: np.ndarray) -> Callable[[np.ndarray], np.ndarray]:
        """
        Bellman objective of every node as a function of its debt choice.

            f_i(b') = u(y_i + b_i - q(y_i, b') * b') + beta * Phi(b', y_i) @ omega_e

        Args:
            omega_e: Expected continuation value coefficients.
            q: Price schedule to interpolate. Shape (ny, nb).

        Returns:
            Vectorized objective, ndarray (N,) -> ndarray (N,).
        """
        pricer = self.pricer
        pricer.refresh(q)
        b = self.grid.nodes[:, 0]
        y = self.grid.nodes[:, 1]
        beta, gamma = self.params.beta, self.params.gamma

        def evaluate(b_next: np.ndarray) -> np.ndarray:
            q_next = pricer(self.income_index, b_next)
            c = consumption(y, b, b_next, q_next)
            continuation = self.grid.basis_at(b_next) @ omega_e
            return utility(c, gamma) + beta * continuation

        return evaluate

    def repayment_step(
        self, state: CollocationState, omega_e: np.ndarray
    ) -> Tuple[np.ndarray, DebtChoice]:
        """
        New omega_c from the optimal debt choice against `omega_e` and state.q.

        Returns:
            (omega_c, choice)
        """
        choice = self.optimizer.maximize(self.objective(omega_e, state.q))
        return self.grid.phi.solve(choice.value), choice

    def sweep(self, state: CollocationState) -> Tuple[CollocationState, Dict[str, float]]:
        """
        One pass of the fixed-point map. `state` is not modified.

        Returns:
            (new_state, residuals) where residuals holds the Euclidean change of
            each coefficient vector under keys "c", "d" and "e".
        """
        omega_e = self.expectation_step(state)
        omega_d = self.default_step(state)
        omega_c, choice = self.repayment_step(state, omega_e)

        prices = update_default_and_price(
            self.grid.phi, self.grid.phi_d, omega_c, omega_d,
            self.grid.prob_matrix, self.params.r, self.nb
        )

        residuals = {
            "c": float(np.linalg.norm(omega_c - state.omega_c)),
            "d": float(np.linalg.norm(omega_d - state.omega_d)),
            "e": float(np.linalg.norm(omega_e - state.omega_e)),
        }

        new_state = CollocationState(
            omega_c=omega_c,
            omega_d=omega_d,
            omega_e=omega_e,
            q=prices.q,
            defprob=prices.defprob,
            default_states=prices.default_states,
            policy_b=choice.b_next,
            iteration=state.iteration + 1,
        )
        return new_state, residuals

    @staticmethod
    def check_finite(state: CollocationState, residuals: Dict[str, float]) -> None:
        """
        Raises:
            NumericalDivergenceError: If any coefficient, price or residual is NaN/Inf.
        """
        bad = [
            name for name in ("omega_c", "omega_d", "omega_e", "q", "defprob")
            if not np.all(np.isfinite(getattr(state, name)))
        ]
        bad += [f"residual_{k}" for k, v in residuals.items() if not np.isfinite(v)]
        if bad:
            raise NumericalDivergenceError(state.iteration, bad)

    # ------------------------------------------------------------------
    # Fixed-point loop
    # ------------------------------------------------------------------

    def solve(
        self,
        tol: Optional[float] = None,
        max_iter: Optional[int] = None,
        state: Optional[CollocationState] = None
    ) -> SolveResult:
        """
        Iterate sweeps until the coefficients stop changing.

        Convergence: max over (omega_c, omega_d, omega_e) of the Euclidean norm
        of the change in one sweep falls below `tol`.

        Args:
            tol: Convergence tolerance (config.tol if None).
            max_iter: Iteration cap (config.max_iter if None).
            state: Starting point (initial_state() if None). Not modified.

        Returns:
            SolveResult. Check `result.converged`; hitting the cap or detecting
            NaN/Inf is reported through `result.status`, not raised.

        Raises:
            ValueError: If tol <= 0 or max_iter < 1.
        """
        tol = self.config.tol if tol is None else tol
        max_iter = self.config.max_iter if max_iter is None else max_iter

        if tol <= 0:
            raise ValueError(f"tol must be > 0. Got {tol}")
        if max_iter < 1:
            raise ValueError(f"max_iter must be >= 1. Got {max_iter}")

        state = self.initial_state() if state is None else state.copy()

        logger.info(
            f"Starting collocation solver: N={self.n_nodes}, "
            f"basis={self.config.debt_basis}, tol={tol:.1e}, max_iter={max_iter}"
        )
        start_time = time.time()
        history: List[Dict[str, Any]] = []
        residuals: Dict[str, float] = {}
        distance = np.inf

        for it in range(1, max_iter + 1):
            new_state, residuals = self.sweep(state)
            distance = max(residuals.values())
            history.append({"iteration": it, "distance": distance, **residuals})

            try:
                self.check_finite(new_state, residuals)
            except NumericalDivergenceError as exc:
                logger.error(f"Collocation solver diverged: {exc}")
                return SolveResult(
                    status=SolveStatus.DIVERGED,
                    state=state,
                    iterations=it,
                    distance=distance,
                    residuals=residuals,
                    history=history,
                    duration=time.time() - start_time,
                    error=str(exc),
                )

            state = new_state

            if it % self.config.log_every == 0:
                logger.info(
                    f"Iter {it}: distance={distance:.3e} "
                    f"(c={residuals['c']:.2e}, d={residuals['d']:.2e}, e={residuals['e']:.2e})"
                )

            if distance < tol:
                duration = time.time() - start_time
                logger.info(f"Converged in {it} iterations ({duration:.2f}s), distance={distance:.3e}")
                return SolveResult(
                    status=SolveStatus.CONVERGED,
                    state=state,
                    iterations=it,
                    distance=distance,
                    residuals=residuals,
                    history=history,
                    duration=duration,
                )

        duration = time.time() - start_time
        logger.warning(
            f"Reached max_iter={max_iter} without convergence, distance={distance:.3e} "
            f"(c={residuals['c']:.2e}, d={residuals['d']:.2e}, e={residuals['e']:.2e})"
        )
        return SolveResult(
            status=SolveStatus.MAX_ITER,
            state=state,
            iterations=max_iter,
            distance=distance,
            residuals=residuals,
            history=history,
            duration=duration,
        )
