# Copyright (C) 2025 Brantleigh Bunting
# SPDX-License-Identifier: BUSL-1.1
#
# Use of this software is governed by the Business Source License
# included in the LICENSE file and at <https://mariadb.com/bsl11>

import json
import math

import numpy as np
import pytest

torch = pytest.importorskip("torch")

from tensorcore.approximate import (  # noqa: E402
    LinearSystemRegressor,
    TrainConfig,
    load_regressor,
    main,
    make_systems,
    predict,
    train_regressor,
)
from tensorcore.approximator import (  # noqa: E402
    ExternalApproximator,
    linsys_approximator,
    model_filename,
)
from tensorcore.tensor import Tensor  # noqa: E402


@pytest.fixture(scope="module")
def trained(tmp_path_factory):
    model_dir = tmp_path_factory.mktemp("models")
    cfg = TrainConfig(n=2, hidden=16, batch=32, epochs=5, device="cpu")
    path = train_regressor(cfg, model_dir)
    return model_dir, path


def test_make_systems_are_exact():
    A, b, x = make_systems(3, 10, np.random.default_rng(0))
    assert A.shape == (10, 3, 3) and b.shape == (10, 3) and x.shape == (10, 3)
    np.testing.assert_allclose(np.einsum("bij,bj->bi", A, x), b, atol=1e-12)


def test_regressor_shapes():
    model = LinearSystemRegressor(4, hidden=8)
    out = model(torch.zeros(5, 4, 4), torch.zeros(5, 4))
    assert out.shape == (5, 4)


def test_train_saves_loadable_model(trained):
    model_dir, path = trained
    assert path == model_dir / model_filename(2)
    model = load_regressor(path)
    x = predict(model, [2.0, 1.0, 1.0, 3.0], [2, 2], [3.0, 5.0])
    assert len(x) == 2 and all(math.isfinite(v) for v in x)


def test_predict_rejects_wrong_size(trained):
    _, path = trained
    with pytest.raises(ValueError):
        predict(load_regressor(path), [1.0] * 9, [3, 3], [1.0] * 3)


def test_solve_command_prints_solution(trained, capsys):
    model_dir, _ = trained
    status = main(
        [
            "solve",
            json.dumps([2.0, 1.0, 1.0, 3.0]),
            "[2, 2]",
            json.dumps([3.0, 5.0]),
            "[2]",
            model_filename(2),
            "--model-dir",
            str(model_dir),
        ]
    )
    assert status == 0
    values = [float(v) for v in capsys.readouterr().out.split()]
    assert len(values) == 2


def test_solve_command_missing_model(tmp_path, capsys):
    status = main(
        ["solve", "[1.0]", "[1, 1]", "[1.0]", "[1]", "nope.pt", "--model-dir", str(tmp_path)]
    )
    assert status == 1
    assert "solve:" in capsys.readouterr().err


def test_end_to_end_through_subprocess(trained):
    model_dir, _ = trained
    A = Tensor.from_array([[2.0, 1.0], [1.0, 3.0]])
    b = Tensor.from_array([3.0, 5.0])

    x = ExternalApproximator(model_filename(2), model_dir=str(model_dir)).execute(A, b)
    assert x.shape == (2, 1)
    assert np.all(np.isfinite(x.data))

    X = linsys_approximator(
        Tensor.from_array(np.stack([A.to_numpy()] * 3)),
        Tensor.from_array(np.stack([b.data] * 3)),
        batching=True,
        model_dir=str(model_dir),
    )
    assert X.shape == (3, 2, 1)
