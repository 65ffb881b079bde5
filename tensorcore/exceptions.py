# Copyright (C) 2025 Brantleigh Bunting
# SPDX-License-Identifier: BUSL-1.1
#
# Use of this software is governed by the Business Source License
# included in the LICENSE file and at <https://mariadb.com/bsl11>

"""
Exception hierarchy for tensorcore.

Everything raised on purpose by the package derives from `TensorCoreError`
so callers (the batch runner in particular) can tell library failures apart
from programming errors. Each concrete error also derives from the closest
builtin, so ``except ValueError`` keeps working for shape problems.
"""

from typing import Optional, Sequence


class TensorCoreError(Exception):
    """Base class for all tensorcore errors."""


class ShapeMismatchError(TensorCoreError, ValueError):
    """
    Row/column dimensions do not agree.

    Attributes
    ----------
    expected : tuple | None
        Shape (or length) the operation needed.
    actual : tuple | None
        Shape (or length) it received.
    """

    def __init__(
        self,
        message: str,
        expected: Optional[Sequence[int]] = None,
        actual: Optional[Sequence[int]] = None,
    ):
        super().__init__(message)
        self.expected = tuple(expected) if expected is not None else None
        self.actual = tuple(actual) if actual is not None else None


class SingularMatrixError(TensorCoreError, ArithmeticError):
    """
    Zero pivot met during elimination: the system has no unique solution.

    Attributes
    ----------
    column : int | None
        Column whose pivot vanished.
    """

    def __init__(self, message: str, column: Optional[int] = None):
        super().__init__(message)
        self.column = column


class ExternalFailureError(TensorCoreError, RuntimeError):
    """
    The external approximator process failed or produced garbage.

    Attributes
    ----------
    returncode : int | None
        Exit status of the process (None if it never finished).
    stderr : str
        Whatever the process wrote to its error stream.
    """

    def __init__(
        self, message: str, returncode: Optional[int] = None, stderr: str = ""
    ):
        super().__init__(message)
        self.returncode = returncode
        self.stderr = stderr
