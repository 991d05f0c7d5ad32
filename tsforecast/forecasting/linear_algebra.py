"""
Dense linear system solver used by the AR estimator and the PACF.

Singular systems do not raise: the solver reports a degenerate outcome and
returns a zero vector, so order searches can skip unstable candidates.
"""

from dataclasses import dataclass
from typing import Sequence

import numpy as np

from .contracts import FitStatus

PIVOT_EPSILON = 1e-10


@dataclass(frozen=True)
class LinearSolution:
    """Solution vector together with the solve outcome."""
    values: np.ndarray
    status: FitStatus

    @property
    def is_degenerate(self) -> bool:
        """True when the system was singular and ``values`` is all zero."""
        return self.status == FitStatus.DEGENERATE


def solve(A: Sequence[Sequence[float]], b: Sequence[float]) -> LinearSolution:
    """
    Solve ``A x = b`` by Gauss-Jordan elimination.

    Rows are swapped only when the diagonal pivot magnitude falls below
    ``PIVOT_EPSILON``; if no usable pivot exists in a column the system is
    reported as degenerate.

    Args:
        A: Square coefficient matrix (n x n)
        b: Right-hand side (length n)

    Returns:
        LinearSolution with the solution vector
    """
    rhs = np.array(b, dtype=float)
    n = rhs.shape[0]
    if n == 0:
        return LinearSolution(values=np.zeros(0), status=FitStatus.SUCCESS)

    matrix = np.array(A, dtype=float)
    if matrix.shape != (n, n):
        raise ValueError(f"Expected a {n}x{n} matrix, got shape {matrix.shape}")

    augmented = np.column_stack([matrix, rhs])

    for i in range(n):
        if abs(augmented[i, i]) < PIVOT_EPSILON:
            candidates = np.nonzero(np.abs(augmented[i + 1:, i]) > PIVOT_EPSILON)[0]
            if candidates.size == 0:
                return LinearSolution(values=np.zeros(n), status=FitStatus.DEGENERATE)
            j = i + 1 + int(candidates[0])
            augmented[[i, j]] = augmented[[j, i]]

        augmented[i, i:] /= augmented[i, i]

        for j in range(n):
            if j != i:
                augmented[j, i:] -= augmented[j, i] * augmented[i, i:]

    return LinearSolution(values=augmented[:, n].copy(), status=FitStatus.SUCCESS)
