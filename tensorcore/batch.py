# Copyright (C) 2025 Brantleigh Bunting
# SPDX-License-Identifier: BUSL-1.1
#
# Use of this software is governed by the Business Source License
# included in the LICENSE file and at <https://mariadb.com/bsl11>

"""
Run one solver over many independent (A, b) systems.

Each pair is solved on its own worker thread with its own augmented
matrix; results come back in input order whatever order they finish in.
"""

import logging
import os
from concurrent.futures import ThreadPoolExecutor
from typing import Iterable, List, Optional, Tuple, Union

import numpy as np

from .exceptions import ShapeMismatchError, TensorCoreError
from .tensor import Tensor

logger = logging.getLogger(__name__)

Pair = Tuple[Tensor, Tensor]


def run_batch(
    solver,
    pairs: Iterable[Pair],
    max_workers: Optional[int] = None,
    return_exceptions: bool = False,
) -> List[Union[Tensor, TensorCoreError]]:
    """
    Solve every (A, b) in `pairs` with `solver.execute`.

    Parameters
    ----------
    solver : Solver
        Anything with ``execute(A, b) -> Tensor``.
    pairs : iterable of (Tensor, Tensor)
    max_workers : int | None
        Thread pool size. None → min(32, os.cpu_count() or 1).
    return_exceptions : bool
        If False, the first failing pair (in input order) re-raises once
        every pair has finished. If True, a failing pair's slot holds the
        TensorCoreError instead of a solution. Errors that are not
        TensorCoreError always propagate.

    Returns
    -------
    list
        results[i] belongs to pairs[i].
    """
    pairs = list(pairs)
    if not pairs:
        return []

    workers = max_workers or min(32, os.cpu_count() or 1)
    logger.debug(
        f"run_batch({type(solver).__name__}): {len(pairs)} systems on {workers} workers"
    )

    with ThreadPoolExecutor(max_workers=workers) as pool:
        futures = [pool.submit(solver.execute, A, b) for A, b in pairs]
    # pool has joined: every pair is finished before anything is raised

    results: List[Union[Tensor, TensorCoreError]] = []
    for i, fut in enumerate(futures):
        err = fut.exception()
        if err is None:
            results.append(fut.result())
        elif return_exceptions and isinstance(err, TensorCoreError):
            logger.debug(f"run_batch(): system {i} failed: {err}")
            results.append(err)
        else:
            raise err
    return results


def split_stacked(A: Tensor, b: Tensor) -> List[Pair]:
    """
    Split a (B, n, n) coefficient stack and a (B, n) or (B, n, 1)
    right-hand-side stack into B independent (A_i, b_i) pairs.
    """
    if A.ndim != 3:
        raise ShapeMismatchError(
            f"batched A must be 3-D (B, n, n), got shape {A.shape}", actual=A.shape
        )
    B, n = A.shape[0], A.shape[1]
    if (
        b.ndim not in (2, 3)
        or b.shape[:2] != (B, n)
        or (b.ndim == 3 and b.shape[2] != 1)
    ):
        raise ShapeMismatchError(
            f"batched b must be ({B}, {n}) or ({B}, {n}, 1), got {b.shape}",
            expected=(B, n),
            actual=b.shape,
        )
    a_stack = A.to_numpy()
    b_stack = b.to_numpy().reshape(B, -1)
    return [(Tensor(a_stack[i], A.shape[1:]), Tensor(b_stack[i], (n,))) for i in range(B)]


def batch_solve(
    solver, A: Tensor, b: Tensor, max_workers: Optional[int] = None
) -> Tensor:
    """
    Solve a stack of systems and stack the solutions.

    Returns
    -------
    X : Tensor      (B, n, 1)
    """
    solutions = run_batch(solver, split_stacked(A, b), max_workers=max_workers)
    X = np.stack([x.data for x in solutions])
    return Tensor(X.reshape(-1), (X.shape[0], X.shape[1], 1))
