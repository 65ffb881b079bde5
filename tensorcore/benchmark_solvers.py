# Copyright (C) 2025 Brantleigh Bunting
# SPDX-License-Identifier: BSL-1.1
#
# Use of this software is governed by the Business Source License
# included in the LICENSE file and at <https://mariadb.com/bsl11>

"""
Solver benchmark report. Run as a module:

    python -m tensorcore.benchmark_solvers
"""

import platform
import time

import numpy as np
import pandas as pd

from .solvers import GaussianElimination, GaussJordanElimination
from .tensor import Tensor
from .utils import random_dense_system

REPEATS = 5  # best of 5 runs leads to stable numbers
SIZES = [50, 100, 200]


def wall(f, *args, **kwargs):
    t0 = time.perf_counter()
    f(*args, **kwargs)
    return time.perf_counter() - t0


def run_benchmark(sizes=SIZES, repeats=REPEATS, seed=0) -> pd.DataFrame:
    """
    Time both elimination strategies against numpy.linalg.solve.

    Returns a DataFrame with one row per (kernel, size): wall time, time
    relative to NumPy, and residual relative to NumPy.
    """
    records = []
    for n in sizes:
        A_np, b_np = random_dense_system(n, seed=seed + n)
        A, b = Tensor.from_array(A_np), Tensor.from_array(b_np)

        # reference
        t_np = min(wall(np.linalg.solve, A_np, b_np) for _ in range(repeats))
        x_ref = np.linalg.solve(A_np, b_np)
        r_ref = max(np.linalg.norm(A_np @ x_ref - b_np, np.inf), np.finfo(float).tiny)

        for kernel, solver in (
            ("GE", GaussianElimination()),
            ("GJ", GaussJordanElimination()),
        ):
            t = min(wall(solver.execute, A, b) for _ in range(repeats))
            x = solver.execute(A, b).data
            r = np.linalg.norm(A_np @ x - b_np, np.inf)
            records.append((kernel, f"{n}x{n}", t, t / t_np, r / r_ref))

    return pd.DataFrame(
        records,
        columns=["kernel", "size", "sec", "sec/NumPy", "residual/NumPy"],
    )


def main():
    df = run_benchmark()
    print(f"{platform.python_implementation()} {platform.python_version()}")
    print(df.to_markdown(index=False))
    df.to_csv("bench_results.csv", index=False)


if __name__ == "__main__":
    main()
