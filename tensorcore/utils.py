# Copyright (C) 2025 Brantleigh Bunting
# SPDX-License-Identifier: BSL-1.1
#
# Use of this software is governed by the Business Source License
# included in the LICENSE file and at <https://mariadb.com/bsl11>

from typing import List, Tuple

import numpy as np

EPS: float = 1e-12
DEFAULT_PARALLELISM: int = 4


def partition(n: int, parts: int) -> List[Tuple[int, int]]:
    """
    Split the index range [0, n) into exactly `parts` contiguous chunks.

    Every chunk but the last has n // parts elements; the last one absorbs
    the remainder. When n < parts the leading chunks are empty.
    """
    if parts < 1:
        raise ValueError(f"parts must be >= 1, got {parts}")
    if n < 0:
        raise ValueError(f"n must be >= 0, got {n}")
    size = n // parts
    bounds = []
    for i in range(parts):
        start = i * size
        end = n if i == parts - 1 else start + size
        bounds.append((start, end))
    return bounds


def random_nonsingular_upper(n, low=-100, high=100, seed=None) -> np.ndarray:
    """
    Build a matrix U that is upper-triangular with random entries
    everywhere and put only non-zero values on its diagonal

    Returns
    -------
    Matrix with float64 dtype
    """
    rng = np.random.default_rng(seed)
    U = rng.uniform(low, high, size=(n, n))
    # enforce upper-triangular
    U = np.triu(U)
    # replace any accidental zeros on the diagonal
    diag = rng.uniform(low if low != 0 else 1, high, size=n)
    U[np.diag_indices(n)] = diag
    return np.asarray(U)


def random_dense_system(n, seed=None) -> Tuple[np.ndarray, np.ndarray]:
    """
    Random dense, diagonally dominant n by n system (A, b).

    Diagonal dominance keeps every instance comfortably invertible, which
    is what the solver tests and the regressor training set both want.
    """
    rng = np.random.default_rng(seed)
    A = rng.uniform(-1.0, 1.0, size=(n, n))
    A[np.diag_indices(n)] += n
    b = rng.uniform(-1.0, 1.0, size=n)
    return A, b
