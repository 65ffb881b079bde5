# Copyright (C) 2025 Brantleigh Bunting
# SPDX-License-Identifier: BUSL-1.1
#
# Use of this software is governed by the Business Source License
# included in the LICENSE file and at <https://mariadb.com/bsl11>

"""
Direct solvers for square linear systems A x = b.

Every strategy exposes ``execute(A, b) -> x`` with A (n, n), b (n,) or
(n, 1) and x (n, 1). Strategies hold no per-call state, so one instance
can be shared across threads (see `batch.run_batch`).
"""

from dataclasses import dataclass
from enum import Enum
from typing import Protocol, runtime_checkable

from .approximator import ExternalApproximator
from .batch import batch_solve
from .elimination import augment, back_substitute, forward_eliminate, rref
from .tensor import Tensor


@runtime_checkable
class Solver(Protocol):
    def execute(self, A: Tensor, b: Tensor) -> Tensor: ...


@dataclass(frozen=True)
class GaussianElimination:
    """
    Forward elimination with partial pivoting, then back-substitution.

    `tol` is the pivot threshold (see `forward_eliminate`). With the
    default 0.0 only exactly singular systems are rejected.
    """

    tol: float = 0.0

    def execute(self, A: Tensor, b: Tensor) -> Tensor:
        Ab = augment(A, b)
        forward_eliminate(Ab, tol=self.tol)
        return back_substitute(Ab, tol=self.tol)


@dataclass(frozen=True)
class GaussJordanElimination:
    """
    Forward elimination, then reduction to RREF; the augmented column is
    the solution. Same O(n^3) cost as Gaussian elimination with a larger
    constant, since it also clears above the diagonal.
    `tol` behaves as in `GaussianElimination`.
    """

    tol: float = 0.0

    def execute(self, A: Tensor, b: Tensor) -> Tensor:
        Ab = augment(A, b)
        forward_eliminate(Ab, tol=self.tol)
        rref(Ab, tol=self.tol)
        return Ab.column(Ab.shape[0])


class SolverKind(Enum):
    GAUSSIAN = "gaussian"
    GAUSS_JORDAN = "gauss_jordan"
    APPROXIMATOR = "approximator"


_SOLVERS = {
    SolverKind.GAUSSIAN: GaussianElimination,
    SolverKind.GAUSS_JORDAN: GaussJordanElimination,
    SolverKind.APPROXIMATOR: ExternalApproximator,
}


def make_solver(kind, **options) -> Solver:
    """
    Build a solver by kind.

    >>> make_solver("gaussian")
    GaussianElimination(tol=0.0)
    """
    return _SOLVERS[SolverKind(kind)](**options)


def gaussian_elimination(A: Tensor, b: Tensor, batching: bool = False) -> Tensor:
    """
    Solve A x = b by Gaussian elimination. With batching, A is (B, n, n),
    b is (B, n) or (B, n, 1) and the result is (B, n, 1).
    """
    solver = GaussianElimination()
    if batching:
        return batch_solve(solver, A, b)
    return solver.execute(A, b)


def gauss_jordan_elimination(A: Tensor, b: Tensor, batching: bool = False) -> Tensor:
    """Gauss-Jordan counterpart of `gaussian_elimination`."""
    solver = GaussJordanElimination()
    if batching:
        return batch_solve(solver, A, b)
    return solver.execute(A, b)
