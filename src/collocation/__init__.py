"""
src/collocation/__init__.py

Public API for the collocation solver.
"""

from src.collocation.config import CollocationConfig
from src.collocation.errors import (
    CollocationError,
    SingularMatrixError,
    InfeasibleNodeError,
    NumericalDivergenceError,
)
from src.collocation.basis import (
    Basis,
    LinearBasis,
    SplineBasis,
    ChebyshevBasis,
    FactorizedBasis,
    make_debt_basis,
    combine,
    solve_coefficients,
)
from src.collocation.grid import CollocationGrid
from src.collocation.pricing import (
    PriceSchedule,
    PriceInterpolator,
    update_default_and_price,
)
from src.collocation.optimizer import (
    DebtChoice,
    DebtChoiceOptimizer,
    golden_section_max,
)
from src.collocation.arellano import (
    ArellanoCollocation,
    CollocationState,
    SolveResult,
    SolveStatus,
)
from src.collocation.evaluation import FineGridSolution, evaluate_on_grid
from src.collocation.simulation import (
    run_parameter_sweep,
    summarize_sweep,
    simulate_economy,
)

__all__ = [
    # Config & errors
    "CollocationConfig",
    "CollocationError",
    "SingularMatrixError",
    "InfeasibleNodeError",
    "NumericalDivergenceError",
    # Bases
    "Basis",
    "LinearBasis",
    "SplineBasis",
    "ChebyshevBasis",
    "FactorizedBasis",
    "make_debt_basis",
    "combine",
    "solve_coefficients",
    "CollocationGrid",
    # Pricing
    "PriceSchedule",
    "PriceInterpolator",
    "update_default_and_price",
    # Optimizer
    "DebtChoice",
    "DebtChoiceOptimizer",
    "golden_section_max",
    # Solver
    "ArellanoCollocation",
    "CollocationState",
    "SolveResult",
    "SolveStatus",
    # Post-processing
    "FineGridSolution",
    "evaluate_on_grid",
    "run_parameter_sweep",
    "summarize_sweep",
    "simulate_economy",
]
