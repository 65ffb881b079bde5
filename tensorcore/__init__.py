# Copyright (C) 2025 Brantleigh Bunting
# SPDX-License-Identifier: BUSL-1.1
#
# Use of this software is governed by the Business Source License
# included in the LICENSE file and at <https://mariadb.com/bsl11>

"""
tensorcore
==========

A small dense-tensor numeric core: whole-tensor statistics computed with a
concurrent map/combine reduction, and direct solvers for square linear
systems built on in-place row elimination.

Public API
~~~~~~~~~~
- Data model
    - `Tensor`
- Statistics
    - `sum_all`, `mean_all`, `var_all`, `std_all`, `reduce_all`
- Linear systems
    - `GaussianElimination`, `GaussJordanElimination`,
      `ExternalApproximator`, `make_solver`,
      `gaussian_elimination`, `gauss_jordan_elimination`,
      `linsys_approximator`
- Batching
    - `run_batch`, `batch_solve`
- Errors
    - `TensorCoreError`, `ShapeMismatchError`, `SingularMatrixError`,
      `ExternalFailureError`

The row primitives and elimination steps live in `tensorcore.rows` and
`tensorcore.elimination`.

Example
-------
>>> import tensorcore as tc
>>> A = tc.Tensor.from_array([[2.0, 1.0], [1.0, 3.0]])
>>> b = tc.Tensor.from_array([3.0, 5.0])
>>> tc.GaussianElimination().execute(A, b).data.round(12).tolist()
[0.8, 1.4]
"""

from importlib.metadata import version as _pkg_version

from .approximator import ExternalApproximator, linsys_approximator, marshal_tensor
from .batch import batch_solve, run_batch
from .config import ReductionConfig
from .exceptions import (
    ExternalFailureError,
    ShapeMismatchError,
    SingularMatrixError,
    TensorCoreError,
)
from .reduce import ReduceOperation, reduce_all
from .solvers import (
    GaussianElimination,
    GaussJordanElimination,
    Solver,
    SolverKind,
    gauss_jordan_elimination,
    gaussian_elimination,
    make_solver,
)
from .statistics import mean_all, std_all, sum_all, var_all
from .tensor import Tensor

__all__ = [
    "Tensor",
    "ReductionConfig",
    "ReduceOperation",
    "reduce_all",
    "sum_all",
    "mean_all",
    "var_all",
    "std_all",
    "Solver",
    "SolverKind",
    "GaussianElimination",
    "GaussJordanElimination",
    "ExternalApproximator",
    "make_solver",
    "gaussian_elimination",
    "gauss_jordan_elimination",
    "linsys_approximator",
    "marshal_tensor",
    "run_batch",
    "batch_solve",
    "TensorCoreError",
    "ShapeMismatchError",
    "SingularMatrixError",
    "ExternalFailureError",
]

# ---------------------------------------------------------------------
# Version string (helps “pip show tensorcore”, Sphinx, etc.)
# ---------------------------------------------------------------------
try:  # installed via pip / build backend
    __version__ = _pkg_version(__name__)
except Exception:  # running from a checkout
    __version__ = "0.0.0.dev0"

# ---------------------------------------------------------------------
# Optional: lightweight default logging config so users see warnings
# only if they deliberately enable them.
# ---------------------------------------------------------------------
import logging as _logging

_logging.getLogger(__name__).addHandler(_logging.NullHandler())
