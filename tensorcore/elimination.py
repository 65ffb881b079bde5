# Copyright (C) 2025 Brantleigh Bunting
# SPDX-License-Identifier: BSL-1.1
#
# Use of this software is governed by the Business Source License
# included in the LICENSE file and at <https://mariadb.com/bsl11>

import logging

import numpy as np

from .exceptions import ShapeMismatchError, SingularMatrixError
from .rows import swap_rows
from .tensor import Tensor

logger = logging.getLogger(__name__)


def _check_augmented(Ab: Tensor, where: str) -> int:
    if Ab.ndim != 2 or Ab.shape[1] != Ab.shape[0] + 1:
        n = Ab.shape[0]
        raise ShapeMismatchError(
            f"{where}(): expected an augmented ({n}, {n + 1}) matrix, got {Ab.shape}",
            expected=(n, n + 1),
            actual=Ab.shape,
        )
    return Ab.shape[0]


def augment(A: Tensor, b: Tensor) -> Tensor:
    """
    Build the n by (n + 1) augmented matrix [A | b].

    Parameters
    ----------
    A : Tensor          (n, n)
        Coefficient matrix.
    b : Tensor          (n,) or (n, 1)
        Right-hand side; a bare vector is promoted to a column first.

    Returns
    -------
    Ab : Tensor         (n, n + 1)
        Freshly allocated; neither A nor b is touched.
    """
    if A.ndim != 2 or A.shape[0] != A.shape[1]:
        raise ShapeMismatchError(
            f"augment(): A must be square, got shape {A.shape}", actual=A.shape
        )
    if b.ndim == 1:
        b = b.add_singleton()
    n = A.shape[0]
    if b.shape != (n, 1):
        raise ShapeMismatchError(
            f"augment(): b must have shape ({n}, 1), got {b.shape}",
            expected=(n, 1),
            actual=b.shape,
        )

    Ab = np.empty((n, n + 1), dtype=np.float64)
    Ab[:, :n] = A.as_matrix()
    Ab[:, n] = b.data
    return Tensor(Ab.reshape(-1), (n, n + 1))


def find_pivot(M: Tensor, k: int) -> int:
    """
    Row index (k or below) holding the largest |M[i, k]|.

    Comparison is strict, so ties go to the lowest row.
    """
    mat = M.as_matrix()
    i_max = k
    max_val = 0.0
    for i in range(k, M.shape[0]):
        v = abs(mat[i, k])
        if v > max_val:
            i_max = i
            max_val = v
    return i_max


def forward_eliminate(Ab: Tensor, tol: float = 0.0) -> Tensor:
    """
    In-place row-echelon reduction of an n by (n + 1) augmented matrix with
    partial pivoting. Afterwards the first n columns are upper-triangular.

    Parameters
    ----------
    Ab : Tensor           (n, n + 1)
        Mutated in place and returned for chaining.
    tol : float
        A pivot with |pivot| <= tol is treated as zero. The default 0.0
        only catches exact zeros, so a matrix that is singular up to
        rounding (e.g. [[1, 2, 3], [4, 5, 6], [7, 8, 9]]) yields a
        meaningless finite answer. Pass a scaled threshold such as
        1e-12 * max|A| to reject those.

    Raises
    ------
    SingularMatrixError : if a column has no usable pivot.
    """
    n = _check_augmented(Ab, "forward_eliminate")
    U = Ab.as_matrix()

    for k in range(n - 1):
        # The computation is more stable if the pivot is the largest
        # magnitude entry in column k at or below row k.
        i_max = find_pivot(Ab, k)
        if abs(U[i_max, k]) <= tol:
            raise SingularMatrixError(
                f"forward_eliminate(): zero pivot in column {k}, no unique solution",
                column=k,
            )
        if i_max != k:
            logger.debug(f"pivot column {k}: swapping rows {k} and {i_max}")
            swap_rows(Ab, k, i_max)

        # Eliminate entries below the pivot, augmented column included
        factors = U[k + 1 :, k] / U[k, k]
        U[k + 1 :, k:] -= factors[:, None] * U[k, k:]

    return Ab


def back_substitute(Ab: Tensor, tol: float = 0.0) -> Tensor:
    """
    Solve the upper-triangular system held in an n by (n + 1) augmented
    matrix, from the last row up.

    Returns
    -------
    x : Tensor      (n, 1)

    Raises
    ------
    SingularMatrixError : on a zero diagonal entry. Forward elimination
        never inspects the last pivot, so this is where a rank deficiency
        in the final column surfaces.
    """
    n = _check_augmented(Ab, "back_substitute")
    U = Ab.as_matrix()
    x = np.zeros(n, dtype=np.float64)

    for i in reversed(range(n)):
        pivot = U[i, i]
        if abs(pivot) <= tol:
            raise SingularMatrixError(
                f"back_substitute(): zero diagonal in row {i}, no unique solution",
                column=i,
            )
        s = U[i, n] - U[i, i + 1 : n] @ x[i + 1 :]
        x[i] = s / pivot

    return Tensor(x, (n, 1))


def rref(Ab: Tensor, tol: float = 0.0) -> Tensor:
    """
    In-place reduction of an upper-triangular augmented matrix to reduced
    row-echelon form. The augmented column then holds the solution.

    Raises
    ------
    SingularMatrixError : if a diagonal entry is zero (|d| <= tol).
    """
    n = _check_augmented(Ab, "rref")
    R = Ab.as_matrix()

    # backward sweep: one pass per pivot, from bottom to top
    for k in reversed(range(n)):
        d = R[k, k]
        if abs(d) <= tol:
            raise SingularMatrixError(
                f"rref(): zero diagonal in column {k}, no unique solution",
                column=k,
            )
        R[k, k:] /= d  # scale pivot row -> 1

        # zero out entries above the pivot
        factors = R[:k, k].copy()
        R[:k, k:] -= factors[:, None] * R[k, k:]

    return Ab
