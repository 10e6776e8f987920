"""
src/utils/

Utility helpers shared by solver runs and experiment scripts.

Modules:
    logging_config: Console/file logging setup for solver progress
"""

from src.utils.logging_config import (
    SolverFormatter,
    setup_logging,
    disable_logging,
    reset_logging,
    get_current_log_level,
)

__all__ = [
    "SolverFormatter",
    "setup_logging",
    "disable_logging",
    "reset_logging",
    "get_current_log_level",
]
