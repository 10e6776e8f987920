"""
src/economy/__init__.py

Public API for economic model primitives.
"""

from src.economy.parameters import (
    EconomicParams,
    ShockParams,
)

from src.economy.shocks import (
    IncomeProcess,
    initialize_markov_process,
)

from src.economy.logic import (
    utility,
    consumption,
    default_endowment,
    default_flow_utility,
)

__all__ = [
    # Parameters
    "EconomicParams",
    "ShockParams",
    # Shocks
    "IncomeProcess",
    "initialize_markov_process",
    # Budget & preferences
    "utility",
    "consumption",
    "default_endowment",
    "default_flow_utility",
]
