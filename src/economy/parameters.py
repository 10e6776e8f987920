"""
Economic parameters for the Arellano (2008) sovereign default model.

This module provides:
- EconomicParams: Preferences, interest rate and default costs
- ShockParams: The AR(1) log-income process

It works in tandem with src.collocation.CollocationConfig (for numerical grid and
solver settings), keeping economic fundamentals separate from the solution method.
"""

from __future__ import annotations
import dataclasses
import logging
from dataclasses import dataclass
from typing import Literal, Optional

from src._defaults import (
    DEFAULT_BETA,
    DEFAULT_GAMMA,
    DEFAULT_R,
    DEFAULT_THETA,
    DEFAULT_DEFAULT_COST,
    DEFAULT_RHO,
    DEFAULT_ETA,
    DEFAULT_N_STD,
)

logger = logging.getLogger(__name__)


def _apply_overrides(cls, base, log_changes: bool, overrides: dict):
    """Validate override keys, log what changes, and return a replaced copy."""
    base = base or cls()

    # 1. Validate keys to prevent typos
    valid_keys = {f.name for f in dataclasses.fields(cls)}
    if unknown := set(overrides) - valid_keys:
        raise ValueError(f"Invalid override keys: {unknown}. Valid: {sorted(valid_keys)}")

    # 2. Log significant changes
    if log_changes:
        changes = [
            f"{k}: {getattr(base, k)} -> {v}"
            for k, v in overrides.items()
            if getattr(base, k) != v
        ]
        if changes:
            logger.info(f"{cls.__name__} overrides: {', '.join(changes)}")

    return dataclasses.replace(base, **overrides)


# =============================================================================
# SHOCK PARAMS
# =============================================================================

@dataclass(frozen=True)
class ShockParams:
    """
    Immutable container for the log-income AR(1) process.

        log(y') = (1 - rho) * mu + rho * log(y) + eta * eps,   eps ~ N(0, 1)

    Attributes:
        rho: Persistence of log income
        eta: Standard deviation of the innovation
        mu: Unconditional mean of log income
        n_std: Width of the Tauchen grid in unconditional standard deviations
        method: Discretization routine ("tauchen" or "rouwenhorst")
    """
    rho: float = DEFAULT_RHO
    eta: float = DEFAULT_ETA
    mu: float = 0.0
    n_std: float = DEFAULT_N_STD
    method: Literal["tauchen", "rouwenhorst"] = "tauchen"

    def __post_init__(self):
        if self.eta <= 0:
            raise ValueError(f"eta must be > 0. Got {self.eta}")

        if not (-1.0 < self.rho < 1.0):
            raise ValueError(f"rho must be in (-1, 1). Got {self.rho}")

        if self.n_std <= 0:
            raise ValueError(f"n_std must be > 0. Got {self.n_std}")

        valid_methods = {"tauchen", "rouwenhorst"}
        if self.method not in valid_methods:
            raise ValueError(f"Unknown method: {self.method}. Valid options: {valid_methods}")

    @classmethod
    def with_overrides(
        cls,
        base: Optional[ShockParams] = None,
        log_changes: bool = True,
        **overrides
    ) -> ShockParams:
        """
        Update ShockParams with strict validation and logging.

        Args:
            base: Existing parameters to update. If None, uses defaults.
            log_changes: Whether to log the differences.
            **overrides: Key-value pairs of parameters to update.

        Returns:
            New ShockParams instance.
        """
        return _apply_overrides(cls, base, log_changes, overrides)


# =============================================================================
# ECONOMIC PARAMS
# =============================================================================

@dataclass(frozen=True)
class EconomicParams:
    """
    Immutable container for the sovereign's preferences and market environment.

    Attributes:
        beta: Discount factor of the government
        gamma: CRRA coefficient of relative risk aversion
        r: Risk-free rate faced by risk-neutral lenders
        theta: Probability of regaining market access after default
        default_cost: Output cap in default as a fraction of mean income,
            h(y) = min(default_cost * mean(y), y)

    Example:
        params = EconomicParams()  # Arellano (2008) calibration
        params = EconomicParams(gamma=3.0)  # Override one field
        params = EconomicParams.with_overrides(gamma=3.0)  # Same, with logging
    """
    beta: float = DEFAULT_BETA
    gamma: float = DEFAULT_GAMMA
    r: float = DEFAULT_R
    theta: float = DEFAULT_THETA
    default_cost: float = DEFAULT_DEFAULT_COST

    def __post_init__(self):
        """Validate parameters immediately after initialization."""
        if not (0.0 < self.beta < 1.0):
            raise ValueError(f"beta must be in (0, 1). Got {self.beta}")

        if self.gamma <= 0:
            raise ValueError(f"gamma must be > 0. Got {self.gamma}")

        if not (0.0 < self.r < 1.0):
            raise ValueError(f"r must be in (0, 1). Got {self.r}")

        if not (0.0 <= self.theta <= 1.0):
            raise ValueError(f"theta must be in [0, 1]. Got {self.theta}")

        if not (0.0 < self.default_cost <= 1.0):
            raise ValueError(f"default_cost must be in (0, 1]. Got {self.default_cost}")

    @classmethod
    def with_overrides(
        cls,
        base: Optional[EconomicParams] = None,
        log_changes: bool = True,
        **overrides
    ) -> EconomicParams:
        """
        Create (or update) EconomicParams with strict validation and logging.

        Args:
            base: Existing parameters to update. If None, uses defaults.
            log_changes: Whether to log the differences.
            **overrides: Key-value pairs of parameters to update.

        Returns:
            New EconomicParams instance.
        """
        return _apply_overrides(cls, base, log_changes, overrides)

    @property
    def risk_free_price(self) -> float:
        """Price of a unit bond that is repaid for sure, 1 / (1 + r)."""
        return 1.0 / (1.0 + self.r)
