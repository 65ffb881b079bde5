# Copyright (C) 2025 Brantleigh Bunting
# SPDX-License-Identifier: BUSL-1.1
#
# Use of this software is governed by the Business Source License
# included in the LICENSE file and at <https://mariadb.com/bsl11>

"""
Row primitives on a row-major 2-D Tensor, used by the elimination engine.
"""

from .exceptions import ShapeMismatchError
from .tensor import Tensor


def _check_row(M: Tensor, i: int):
    if not 0 <= i < M.rows:
        raise IndexError(f"row {i} out of range for {M.rows} rows")


def get_row(M: Tensor, i: int) -> Tensor:
    """Return a fresh (1, c) copy of row i."""
    _check_row(M, i)
    c = M.cols
    return Tensor(M.data[i * c : (i + 1) * c].copy(), (1, c))


def set_row(M: Tensor, i: int, row: Tensor) -> None:
    """Overwrite row i of M with the values of `row`."""
    _check_row(M, i)
    c = M.cols
    if row.size != c:
        raise ShapeMismatchError(
            f"set_row(): row has {row.size} values, matrix has {c} columns",
            expected=(1, c),
            actual=row.shape,
        )
    M.data[i * c : (i + 1) * c] = row.data


def swap_rows(M: Tensor, i: int, j: int) -> None:
    """Exchange rows i and j in place. Applying it twice is a no-op."""
    temp = get_row(M, i)
    set_row(M, i, get_row(M, j))
    set_row(M, j, temp)
