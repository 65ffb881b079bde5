# Copyright (C) 2025 Brantleigh Bunting
# SPDX-License-Identifier: BUSL-1.1
#
# Use of this software is governed by the Business Source License
# included in the LICENSE file and at <https://mariadb.com/bsl11>

"""
Dense tensor: a flat float64 buffer plus a shape.

Element (i, j) of a 2-D tensor with shape (r, c) lives at data[i*c + j].
The buffer is the working memory of the elimination routines, so
`as_matrix()` hands out a *view*, not a copy.
"""

import math
from typing import Sequence, Tuple

import numpy as np

from .exceptions import ShapeMismatchError


class Tensor:
    __slots__ = ("data", "shape")

    def __init__(self, data, shape: Sequence[int]):
        shape = tuple(int(s) for s in shape)
        if not shape or any(s < 1 for s in shape):
            raise ShapeMismatchError(
                f"shape must be a non-empty sequence of positive sizes, got {shape}",
                actual=shape,
            )
        buf = np.ascontiguousarray(data, dtype=np.float64).reshape(-1)
        if buf.size != math.prod(shape):
            raise ShapeMismatchError(
                f"buffer holds {buf.size} values but shape {shape} needs "
                f"{math.prod(shape)}",
                expected=(math.prod(shape),),
                actual=(buf.size,),
            )
        self.data: np.ndarray = buf
        self.shape: Tuple[int, ...] = shape

    @classmethod
    def from_array(cls, array) -> "Tensor":
        """Copy any array-like (nested lists, ndarray) into a new Tensor."""
        arr = np.array(array, dtype=np.float64)
        if arr.ndim == 0:
            arr = arr.reshape(1)
        return cls(arr.reshape(-1), arr.shape)

    @classmethod
    def zeros(cls, shape: Sequence[int]) -> "Tensor":
        shape = tuple(shape)
        return cls(np.zeros(math.prod(shape)), shape)

    @property
    def ndim(self) -> int:
        return len(self.shape)

    @property
    def size(self) -> int:
        return self.data.size

    @property
    def rows(self) -> int:
        self._require_2d("rows")
        return self.shape[0]

    @property
    def cols(self) -> int:
        self._require_2d("cols")
        return self.shape[1]

    def copy(self) -> "Tensor":
        return Tensor(self.data.copy(), self.shape)

    def as_matrix(self) -> np.ndarray:
        """2-D view onto the buffer; writes go straight to `data`."""
        self._require_2d("as_matrix")
        return self.data.reshape(self.shape)

    def to_numpy(self) -> np.ndarray:
        return self.data.reshape(self.shape).copy()

    def add_singleton(self) -> "Tensor":
        """Promote a length-n vector to a new (n, 1) column tensor."""
        if self.ndim != 1:
            raise ShapeMismatchError(
                f"add_singleton() expects a 1-D tensor, got shape {self.shape}",
                expected=(self.size,),
                actual=self.shape,
            )
        return Tensor(self.data.copy(), (self.shape[0], 1))

    def column(self, j: int) -> "Tensor":
        """Copy of column j as an (r, 1) tensor."""
        r, c = self.rows, self.cols
        if not -c <= j < c:
            raise IndexError(f"column {j} out of range for {c} columns")
        return Tensor(self.as_matrix()[:, j].copy(), (r, 1))

    def _require_2d(self, what: str):
        if self.ndim != 2:
            raise ShapeMismatchError(
                f"{what} requires a 2-D tensor, got shape {self.shape}",
                actual=self.shape,
            )

    def __repr__(self) -> str:
        return f"Tensor(shape={self.shape}, data={self.data.tolist()})"
