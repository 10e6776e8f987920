"""
src/_defaults.py

Centralized default constants for the collocation solver.

This module contains ONLY constants with NO imports to avoid circular dependencies.
Both economy/parameters.py and collocation/config.py import from here to maintain a
single source of truth.

Usage:
    from src._defaults import DEFAULT_TOL, DEFAULT_MAX_ITER
"""

# =============================================================================
# ECONOMIC PRIMITIVES (Arellano 2008 calibration)
# =============================================================================

DEFAULT_BETA = 0.953          # Discount factor
DEFAULT_GAMMA = 2.0           # CRRA risk aversion
DEFAULT_R = 0.017             # Risk-free rate
DEFAULT_THETA = 0.282         # Probability of regaining market access
DEFAULT_DEFAULT_COST = 0.969  # h(y) = min(0.969 * mean(y), y)

# Income process: log(y') = rho * log(y) + eta * eps
DEFAULT_RHO = 0.945
DEFAULT_ETA = 0.025
DEFAULT_N_STD = 3.0


# =============================================================================
# GRID DEFAULTS
# =============================================================================

DEFAULT_NY = 15
DEFAULT_NB = 15
DEFAULT_B_LOW = -0.4
DEFAULT_B_UP = 0.4
DEFAULT_SPLINE_DEGREE = 3


# =============================================================================
# FIXED-POINT / OPTIMIZER DEFAULTS
# =============================================================================

DEFAULT_TOL = 1e-9
DEFAULT_MAX_ITER = 2000
DEFAULT_LOG_EVERY = 50

DEFAULT_BORROW_BUFFER = 1e-4  # Margin below current income for the upper bound on b'
DEFAULT_SEARCH_POINTS = 31    # Candidate scan before the golden-section refinement
DEFAULT_GOLDEN_TOL = 1e-12    # Bracket width at which golden section stops
DEFAULT_GOLDEN_MAX_ITER = 200

# Numerical safety
DEFAULT_ROW_SUM_TOL = 1e-12   # Row-stochastic check on the transition matrix
