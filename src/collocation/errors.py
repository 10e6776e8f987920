"""
src/collocation/errors.py

Exception types raised by the collocation solver.

Only construction bugs are fatal. Infeasible nodes are recovered inside the
optimizer and numerical divergence is reported through the solver result.
"""

from typing import Sequence

import numpy as np


class CollocationError(Exception):
    """Base class for collocation solver errors."""


class SingularMatrixError(CollocationError):
    """A basis matrix is not square or cannot be inverted."""


class InfeasibleNodeError(CollocationError):
    """
    No feasible debt choice exists at one or more collocation nodes.

    Attributes:
        nodes: Indices of the offending nodes.
    """

    def __init__(self, nodes: Sequence[int], message: str = ""):
        self.nodes = np.asarray(nodes, dtype=int)
        if not message:
            message = (
                f"Empty debt-choice bracket at {self.nodes.size} node(s): "
                f"{self.nodes[:10].tolist()}"
            )
        super().__init__(message)


class NumericalDivergenceError(CollocationError):
    """
    NaN or Inf appeared in the solution after a sweep.

    Attributes:
        iteration: Sweep at which the non-finite values were detected.
        fields: Names of the offending arrays.
    """

    def __init__(self, iteration: int, fields: Sequence[str]):
        self.iteration = iteration
        self.fields = list(fields)
        super().__init__(
            f"Non-finite values in {', '.join(self.fields)} after sweep {iteration}"
        )
