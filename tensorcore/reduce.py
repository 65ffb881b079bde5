# Copyright (C) 2025 Brantleigh Bunting
# SPDX-License-Identifier: BUSL-1.1
#
# Use of this software is governed by the Business Source License
# included in the LICENSE file and at <https://mariadb.com/bsl11>

"""
Fork/join reduction over a tensor's flat buffer.

The buffer is cut into `parallelism` contiguous chunks (see
`utils.partition`), each chunk is handed to `op.apply` on its own worker
thread, and `op.combine` runs once over the ordered partials.

Every worker writes only its own pre-allocated slot, so the result list
needs no lock. The tensor must not be mutated while a reduction runs.
"""

import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Any, List, Optional, Protocol, Sequence, runtime_checkable

from .config import DEFAULT_CONFIG, ReductionConfig
from .tensor import Tensor
from .utils import partition

logger = logging.getLogger(__name__)


@runtime_checkable
class ReduceOperation(Protocol):
    """An operation pluggable into `reduce_all`."""

    def apply(self, tensor: Tensor, start: int, end: int) -> Any:
        """Partial result for data[start:end]. Must accept start == end."""
        ...

    def combine(self, partials: Sequence[Any]) -> float:
        """Fold the ordered partials (one per chunk) into the final value."""
        ...


def reduce_all(
    tensor: Tensor,
    op: ReduceOperation,
    parallelism: Optional[int] = None,
    config: Optional[ReductionConfig] = None,
) -> float:
    """
    Apply `op` to every element of `tensor` using a fan-out/join.

    Parameters
    ----------
    tensor : Tensor
        Read-only for the duration of the call.
    op : ReduceOperation
    parallelism : int | None
        Chunk count; overrides `config.parallelism` when given.
    config : ReductionConfig | None

    Returns
    -------
    Whatever `op.combine` returns.

    Raises
    ------
    Any exception raised by `op.apply`, after all workers have finished.
    """
    cfg = config or DEFAULT_CONFIG
    parts = parallelism if parallelism is not None else cfg.parallelism
    bounds = partition(tensor.size, parts)
    logger.debug(f"reduce_all({type(op).__name__}): chunks {bounds}")

    results: List[Any] = [None] * parts

    def _work(i: int, start: int, end: int):
        results[i] = op.apply(tensor, start, end)

    workers = min(cfg.max_workers or parts, parts)
    with ThreadPoolExecutor(max_workers=workers) as pool:
        futures = [
            pool.submit(_work, i, start, end) for i, (start, end) in enumerate(bounds)
        ]
    # the pool has joined; surface the first failure in chunk order
    for fut in futures:
        fut.result()

    return op.combine(results)
