# Copyright (C) 2025 Brantleigh Bunting
# SPDX-License-Identifier: BUSL-1.1
#
# Use of this software is governed by the Business Source License
# included in the LICENSE file and at <https://mariadb.com/bsl11>

"""
Solver backed by an externally trained regression model.

The model runs in a separate process. The call protocol is five positional
arguments appended to `command`:

    <A data JSON> <A shape JSON> <b data JSON> <b shape JSON> <model name>

and the process answers with n whitespace-separated floats on stdout. Any
other outcome is an ExternalFailureError; nothing is retried.
"""

import json
import logging
import math
import subprocess
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Sequence, Tuple

from .batch import batch_solve
from .exceptions import ExternalFailureError
from .tensor import Tensor

logger = logging.getLogger(__name__)

DEFAULT_MODEL_DIR = Path("Linear_Systems_Regression")


def model_filename(n: int) -> str:
    """File name of the regressor trained for n unknowns."""
    return f"LinSys_Approximator{n}.pt"


def marshal_tensor(tensor: Tensor) -> Tuple[str, str]:
    """Return (data JSON, shape JSON) for `tensor`."""
    return json.dumps(tensor.data.tolist()), json.dumps(list(tensor.shape))


def default_command(model_dir=None) -> List[str]:
    model_dir = Path(model_dir) if model_dir is not None else DEFAULT_MODEL_DIR
    return [
        sys.executable,
        "-m",
        "tensorcore.approximate",
        "solve",
        "--model-dir",
        str(model_dir),
    ]


def _parse_floats(stdout: str, n: int, stderr: str, returncode: int) -> List[float]:
    tokens = stdout.split()
    try:
        values = [float(tok) for tok in tokens]
    except ValueError as e:
        raise ExternalFailureError(
            f"approximator output is not numeric: {e}",
            returncode=returncode,
            stderr=stderr,
        ) from e
    if len(values) != n:
        raise ExternalFailureError(
            f"approximator returned {len(values)} values, expected {n}",
            returncode=returncode,
            stderr=stderr,
        )
    if not all(math.isfinite(v) for v in values):
        raise ExternalFailureError(
            f"approximator returned non-finite values: {values}",
            returncode=returncode,
            stderr=stderr,
        )
    return values


@dataclass(frozen=True)
class ExternalApproximator:
    """
    Parameters
    ----------
    model_name : str
        Identifier passed through to the external process.
    command : sequence of str | None
        Program and leading arguments; None → `default_command(model_dir)`.
    model_dir : str | Path | None
        Only used to build the default command.
    timeout : float | None
        Seconds to wait for the process.
    """

    model_name: str
    command: Optional[Sequence[str]] = None
    model_dir: Optional[str] = None
    timeout: Optional[float] = None

    def execute(self, A: Tensor, b: Tensor) -> Tensor:
        a_data, a_shape = marshal_tensor(A)
        b_data, b_shape = marshal_tensor(b)
        base = list(self.command) if self.command else default_command(self.model_dir)
        argv = base + [a_data, a_shape, b_data, b_shape, self.model_name]
        logger.debug(f"running approximator: {base} (model {self.model_name})")

        try:
            proc = subprocess.run(
                argv, capture_output=True, text=True, timeout=self.timeout
            )
        except subprocess.TimeoutExpired as e:
            raise ExternalFailureError(
                f"approximator timed out after {self.timeout}s",
                stderr=_text(e.stderr),
            ) from e
        except OSError as e:
            raise ExternalFailureError(f"could not start approximator: {e}") from e

        if proc.returncode != 0:
            logger.warning(
                f"approximator exited with status {proc.returncode}: {proc.stderr.strip()}"
            )
            raise ExternalFailureError(
                f"approximator exited with status {proc.returncode} --- "
                f"Stderr: {proc.stderr.strip()}",
                returncode=proc.returncode,
                stderr=proc.stderr,
            )

        n = A.shape[0]
        x = _parse_floats(proc.stdout, n, proc.stderr, proc.returncode)
        return Tensor(x, (n, 1))


def _text(stream) -> str:
    if stream is None:
        return ""
    if isinstance(stream, bytes):
        return stream.decode(errors="replace")
    return stream


def linsys_approximator(
    A: Tensor, b: Tensor, batching: bool = False, model_dir=None
) -> Tensor:
    """
    Solve with the regressor trained for A's number of unknowns. With
    batching, A is (B, n, n) and the result is (B, n, 1).

    The model file must already exist under `model_dir`
    (see ``python -m tensorcore.approximate train``).
    """
    n = A.shape[-1]
    solver = ExternalApproximator(model_filename(n), model_dir=model_dir)
    if batching:
        return batch_solve(solver, A, b)
    return solver.execute(A, b)
