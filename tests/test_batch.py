# Copyright (C) 2025 Brantleigh Bunting
# SPDX-License-Identifier: BUSL-1.1
#
# Use of this software is governed by the Business Source License
# included in the LICENSE file and at <https://mariadb.com/bsl11>

import threading
import time

import numpy as np
import pytest

from tensorcore.batch import batch_solve, run_batch, split_stacked
from tensorcore.exceptions import ShapeMismatchError, SingularMatrixError
from tensorcore.solvers import GaussianElimination, GaussJordanElimination
from tensorcore.tensor import Tensor
from tensorcore.utils import random_dense_system

TEST_ITERATIONS = 50


def _pair(A, b):
    return Tensor.from_array(A), Tensor.from_array(b)


@pytest.mark.parametrize("solver", [GaussianElimination(), GaussJordanElimination()])
def test_identical_pairs_give_identical_solutions(solver):
    N = TEST_ITERATIONS
    pairs = [_pair([[2.0, 1.0], [1.0, 3.0]], [3.0, 5.0]) for _ in range(N)]

    results = run_batch(solver, pairs, max_workers=8)
    assert len(results) == N
    first = results[0].data.tolist()
    np.testing.assert_allclose(first, [0.8, 1.4])
    assert all(x.data.tolist() == first for x in results)


def test_results_follow_input_order():
    systems = [random_dense_system(2 + i % 5, seed=i) for i in range(TEST_ITERATIONS)]
    pairs = [_pair(A, b) for A, b in systems]

    results = run_batch(GaussianElimination(), pairs, max_workers=4)
    for (A, b), x in zip(systems, results):
        np.testing.assert_allclose(x.data, np.linalg.solve(A, b), rtol=1e-10, atol=1e-12)


def test_order_kept_when_completion_order_differs():
    class SlowFirst:
        """Solves instantly except for system 0, which finishes last."""

        def execute(self, A, b):
            if A.data[0] == 0.0:
                time.sleep(0.05)
            return Tensor(A.data[:1].copy(), (1, 1))

    pairs = [(Tensor([float(i)], (1, 1)), Tensor([1.0], (1,))) for i in range(6)]
    results = run_batch(SlowFirst(), pairs, max_workers=6)
    assert [x.data[0] for x in results] == [0.0, 1.0, 2.0, 3.0, 4.0, 5.0]


def test_pairs_do_not_share_state():
    seen = set()
    lock = threading.Lock()

    class Recording(GaussianElimination):
        def execute(self, A, b):
            with lock:
                seen.add(id(A))
            return super().execute(A, b)

    pairs = [_pair(np.eye(3) * (i + 1), np.ones(3)) for i in range(10)]
    results = run_batch(Recording(), pairs)
    assert len(seen) == 10
    for i, x in enumerate(results):
        np.testing.assert_allclose(x.data, np.full(3, 1.0 / (i + 1)))


def test_singular_pair_aborts_batch():
    pairs = [
        _pair([[2.0, 1.0], [1.0, 3.0]], [3.0, 5.0]),
        _pair([[1.0, 2.0], [1.0, 2.0]], [1.0, 1.0]),
        _pair([[1.0, 0.0], [0.0, 1.0]], [1.0, 1.0]),
    ]
    with pytest.raises(SingularMatrixError):
        run_batch(GaussianElimination(), pairs)


def test_first_failure_by_input_order_is_raised():
    pairs = [
        _pair([[2.0]], [4.0]),
        _pair(np.eye(3), [1.0, 1.0]),
        _pair([[1.0, 2.0], [1.0, 2.0]], [1.0, 1.0]),
    ]
    for _ in range(TEST_ITERATIONS):
        with pytest.raises(ShapeMismatchError):
            run_batch(GaussianElimination(), pairs, max_workers=3)


def test_later_pairs_finish_before_failure_is_raised():
    done = threading.Event()

    class FailFastSlowLast:
        """System 0 fails at once; system 2 is still running when it does."""

        def execute(self, A, b):
            if A.data[0] == 0.0:
                raise SingularMatrixError("zero pivot", column=0)
            if A.data[0] == 2.0:
                time.sleep(0.1)
                done.set()
            return Tensor(A.data[:1].copy(), (1, 1))

    pairs = [(Tensor([float(i)], (1, 1)), Tensor([1.0], (1,))) for i in range(3)]
    with pytest.raises(SingularMatrixError):
        run_batch(FailFastSlowLast(), pairs, max_workers=3)
    assert done.is_set()


def test_return_exceptions_reports_per_pair():
    pairs = [
        _pair([[2.0, 1.0], [1.0, 3.0]], [3.0, 5.0]),
        _pair([[1.0, 2.0], [1.0, 2.0]], [1.0, 1.0]),
        _pair(np.eye(3), [1.0, 1.0]),
        _pair([[1.0, 0.0], [0.0, 1.0]], [1.0, 1.0]),
    ]
    results = run_batch(GaussJordanElimination(), pairs, return_exceptions=True)

    np.testing.assert_allclose(results[0].data, [0.8, 1.4])
    assert isinstance(results[1], SingularMatrixError)
    assert isinstance(results[2], ShapeMismatchError)
    np.testing.assert_allclose(results[3].data, [1.0, 1.0])


def test_non_library_errors_always_propagate():
    class Broken:
        def execute(self, A, b):
            raise KeyError("bug")

    with pytest.raises(KeyError):
        run_batch(Broken(), [_pair([[1.0]], [1.0])], return_exceptions=True)


def test_empty_batch():
    assert run_batch(GaussianElimination(), []) == []


def test_split_stacked():
    A = Tensor.from_array(np.stack([np.eye(2), 2 * np.eye(2), 3 * np.eye(2)]))
    b = Tensor.from_array(np.ones((3, 2, 1)))
    pairs = split_stacked(A, b)
    assert len(pairs) == 3
    assert pairs[1][0].shape == (2, 2)
    assert pairs[1][0].data.tolist() == [2.0, 0.0, 0.0, 2.0]
    assert pairs[2][1].shape == (2,)


@pytest.mark.parametrize(
    "a_shape,b_shape",
    [((2, 2), (2,)), ((3, 2, 2), (2, 2)), ((3, 2, 2), (3, 3)), ((3, 2, 2), (3, 2, 2))],
)
def test_split_stacked_shape_mismatch(a_shape, b_shape):
    with pytest.raises(ShapeMismatchError):
        split_stacked(Tensor.zeros(a_shape), Tensor.zeros(b_shape))


def test_batch_solve_stacks_solutions():
    rng = np.random.default_rng(3)
    B, n = 8, 4
    A = rng.normal(size=(B, n, n)) + 4 * np.eye(n)
    b = rng.normal(size=(B, n))

    X = batch_solve(GaussianElimination(), Tensor.from_array(A), Tensor.from_array(b))
    assert X.shape == (B, n, 1)
    np.testing.assert_allclose(
        X.to_numpy()[..., 0], np.linalg.solve(A, b[..., None])[..., 0], rtol=1e-10, atol=1e-12
    )
