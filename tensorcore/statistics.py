# Copyright (C) 2025 Brantleigh Bunting
# SPDX-License-Identifier: BUSL-1.1
#
# Use of this software is governed by the Business Source License
# included in the LICENSE file and at <https://mariadb.com/bsl11>

"""
Whole-tensor statistics built on `reduce.reduce_all`.

Mean and variance can combine their chunk partials two ways:

- ``weighting="element"`` (default): partials carry (total, count) so the
  combine step divides by the element count. This is the true mean and the
  population variance for every buffer size.
- ``weighting="chunk"``: each chunk reports its local mean (or its summed
  squared deviations) and the combine step divides by the number of
  chunks P. Exact only when P divides the element count; kept for
  compatibility with results produced that way. An empty chunk contributes
  0.0, so for n < P the result is scaled down accordingly.
"""

import math
from typing import NamedTuple, Optional, Sequence

import numpy as np

from .config import DEFAULT_CONFIG, WEIGHTINGS, ReductionConfig
from .reduce import reduce_all
from .tensor import Tensor


class Moment(NamedTuple):
    total: float
    count: int


def _check_weighting(weighting: str) -> str:
    if weighting not in WEIGHTINGS:
        raise ValueError(f"weighting must be one of {WEIGHTINGS}, got {weighting!r}")
    return weighting


def _chunk_sum(tensor: Tensor, start: int, end: int) -> float:
    # Empty slices sum to 0.0
    return float(np.sum(tensor.data[start:end]))


class SumOperation:
    def apply(self, tensor: Tensor, start: int, end: int) -> float:
        return _chunk_sum(tensor, start, end)

    def combine(self, partials: Sequence[float]) -> float:
        return float(sum(partials))


class MeanOperation:
    def __init__(self, weighting: str = "element"):
        self.weighting = _check_weighting(weighting)

    def apply(self, tensor: Tensor, start: int, end: int):
        total = _chunk_sum(tensor, start, end)
        if self.weighting == "element":
            return Moment(total, end - start)
        # chunk-local mean; an empty chunk is neutral
        return total / (end - start) if end > start else 0.0

    def combine(self, partials) -> float:
        if self.weighting == "element":
            return _moment_ratio(partials)
        return float(sum(partials)) / len(partials)


class VarianceOperation:
    """Second pass of the variance: squared deviations from a known mean."""

    def __init__(self, mean: float, weighting: str = "element"):
        self.mean = mean
        self.weighting = _check_weighting(weighting)

    def apply(self, tensor: Tensor, start: int, end: int):
        diff = tensor.data[start:end] - self.mean
        sq = float(np.dot(diff, diff))
        if self.weighting == "element":
            return Moment(sq, end - start)
        return sq

    def combine(self, partials) -> float:
        if self.weighting == "element":
            return _moment_ratio(partials)
        return float(sum(partials)) / len(partials)


def _moment_ratio(partials: Sequence[Moment]) -> float:
    total = sum(p.total for p in partials)
    count = sum(p.count for p in partials)
    return total / count


def _resolve(weighting, config):
    cfg = config or DEFAULT_CONFIG
    w = weighting or cfg.weighting
    if w != cfg.weighting:
        cfg = ReductionConfig(cfg.parallelism, w, cfg.max_workers)
    return cfg


def sum_all(
    tensor: Tensor,
    parallelism: Optional[int] = None,
    config: Optional[ReductionConfig] = None,
) -> float:
    """Sum of every element."""
    return reduce_all(tensor, SumOperation(), parallelism, config)


def mean_all(
    tensor: Tensor,
    weighting: Optional[str] = None,
    parallelism: Optional[int] = None,
    config: Optional[ReductionConfig] = None,
) -> float:
    """Mean of every element (see module docstring for `weighting`)."""
    cfg = _resolve(weighting, config)
    return reduce_all(tensor, MeanOperation(cfg.weighting), parallelism, cfg)


def var_all(
    tensor: Tensor,
    weighting: Optional[str] = None,
    parallelism: Optional[int] = None,
    config: Optional[ReductionConfig] = None,
) -> float:
    """
    Population variance, two passes: the mean, then the squared deviations
    from it. Both passes use the same weighting.
    """
    cfg = _resolve(weighting, config)
    mean = mean_all(tensor, parallelism=parallelism, config=cfg)
    op = VarianceOperation(mean, cfg.weighting)
    return reduce_all(tensor, op, parallelism, cfg)


def std_all(
    tensor: Tensor,
    weighting: Optional[str] = None,
    parallelism: Optional[int] = None,
    config: Optional[ReductionConfig] = None,
) -> float:
    """Square root of `var_all`."""
    return math.sqrt(var_all(tensor, weighting, parallelism, config))
