#!/usr/bin/env python3
# Copyright (C) 2025 Brantleigh Bunting
# SPDX-License-Identifier: BUSL-1.1
#
# Use of this software is governed by the Business Source License
# included in the LICENSE file and at <https://mariadb.com/bsl11>

"""
Linear-system regressor in **PyTorch**: the process on the far side of
`tensorcore.approximator.ExternalApproximator`.

    python -m tensorcore.approximate train --size 3
    python -m tensorcore.approximate solve A_DATA A_SHAPE B_DATA B_SHAPE MODEL

`solve` prints the n predicted unknowns space-separated on one line.
Needs the `approximator` extra (torch).
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Sequence

import numpy as np
import torch
import torch.nn as nn

from .approximator import DEFAULT_MODEL_DIR, model_filename

logger = logging.getLogger(__name__)


class LinearSystemRegressor(nn.Module):
    """MLP from the flattened [A | b] (n*n + n features) to the n unknowns."""

    def __init__(self, n: int, hidden: int = 128):
        super().__init__()
        self.n = n
        self.hidden = hidden
        self.net = nn.Sequential(
            nn.Linear(n * n + n, hidden),
            nn.ReLU(),
            nn.Linear(hidden, hidden),
            nn.ReLU(),
            nn.Linear(hidden, n),
        )

    def forward(self, A: torch.Tensor, b: torch.Tensor) -> torch.Tensor:
        """A: (B, n, n), b: (B, n) → (B, n)."""
        x = torch.cat([A.reshape(A.shape[0], -1), b.reshape(b.shape[0], -1)], dim=1)
        return self.net(x)


@dataclass
class TrainConfig:
    n: int = 3
    hidden: int = 128
    batch: int = 256
    epochs: int = 2000
    lr: float = 1e-3
    scale: float = 1.0
    seed: int = 42
    device: str = "cuda" if torch.cuda.is_available() else "cpu"


def make_systems(n: int, count: int, rng: np.random.Generator, scale: float = 1.0):
    """
    Random dense, diagonally dominant systems and their exact solutions.

    Returns (A, b, x) with shapes (count, n, n), (count, n), (count, n).
    """
    A = rng.uniform(-scale, scale, size=(count, n, n))
    A += n * scale * np.eye(n)
    b = rng.uniform(-scale, scale, size=(count, n))
    x = np.linalg.solve(A, b[..., None])[..., 0]
    return A, b, x


def train_regressor(cfg: TrainConfig, model_dir: Path = DEFAULT_MODEL_DIR) -> Path:
    """Fit a regressor for cfg.n unknowns and save it as model_filename(n)."""
    device = torch.device(cfg.device)
    torch.manual_seed(cfg.seed)
    rng = np.random.default_rng(cfg.seed)

    model = LinearSystemRegressor(cfg.n, cfg.hidden).to(device)
    opt = torch.optim.Adam(model.parameters(), lr=cfg.lr)
    loss_fn = nn.MSELoss()

    for ep in range(1, cfg.epochs + 1):
        A, b, x = make_systems(cfg.n, cfg.batch, rng, cfg.scale)
        A_t = torch.as_tensor(A, dtype=torch.float32, device=device)
        b_t = torch.as_tensor(b, dtype=torch.float32, device=device)
        x_t = torch.as_tensor(x, dtype=torch.float32, device=device)

        loss = loss_fn(model(A_t, b_t), x_t)
        opt.zero_grad(set_to_none=True)
        loss.backward()
        opt.step()

        if ep % 200 == 0 or ep == 1:
            logger.info(f"epoch {ep:5d}  mse {loss.item():.6f}")

    model_dir = Path(model_dir)
    model_dir.mkdir(parents=True, exist_ok=True)
    path = model_dir / model_filename(cfg.n)
    torch.save(
        {"n": cfg.n, "hidden": cfg.hidden, "state_dict": model.cpu().state_dict()},
        path,
    )
    logger.info(f"saved regressor to {path}")
    return path


def load_regressor(path: Path) -> LinearSystemRegressor:
    ckpt = torch.load(path, map_location="cpu")
    model = LinearSystemRegressor(ckpt["n"], ckpt["hidden"])
    model.load_state_dict(ckpt["state_dict"])
    model.eval()
    return model


def predict(
    model: LinearSystemRegressor,
    a_data: Sequence[float],
    a_shape: Sequence[int],
    b_data: Sequence[float],
) -> list:
    n = a_shape[0]
    if list(a_shape) != [n, n] or n != model.n:
        raise ValueError(f"model expects a ({model.n}, {model.n}) system, got {a_shape}")
    if len(b_data) != n:
        raise ValueError(f"b has {len(b_data)} values, expected {n}")
    A = torch.tensor(a_data, dtype=torch.float32).reshape(1, n, n)
    b = torch.tensor(b_data, dtype=torch.float32).reshape(1, n)
    with torch.no_grad():
        return model(A, b)[0].tolist()


def _cmd_solve(args) -> int:
    model = load_regressor(Path(args.model_dir) / args.model)
    x = predict(
        model,
        json.loads(args.a_data),
        json.loads(args.a_shape),
        json.loads(args.b_data),
    )
    print(" ".join(repr(float(v)) for v in x))
    return 0


def _cmd_train(args) -> int:
    cfg = TrainConfig(
        n=args.size, hidden=args.hidden, epochs=args.epochs, lr=args.lr, scale=args.scale
    )
    train_regressor(cfg, Path(args.model_dir))
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="tensorcore.approximate",
        description="Train or query the linear-system regressor.",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    solve = sub.add_parser("solve", help="Predict x for one system")
    solve.add_argument("a_data", help="JSON list, A flattened row-major")
    solve.add_argument("a_shape", help="JSON list, shape of A")
    solve.add_argument("b_data", help="JSON list, b flattened")
    solve.add_argument("b_shape", help="JSON list, shape of b")
    solve.add_argument("model", help="Model file name inside --model-dir")
    solve.add_argument("--model-dir", default=str(DEFAULT_MODEL_DIR))
    solve.set_defaults(func=_cmd_solve)

    train = sub.add_parser("train", help="Fit and save a regressor")
    train.add_argument("--size", type=int, required=True, help="Number of unknowns")
    train.add_argument("--hidden", type=int, default=128)
    train.add_argument("--epochs", type=int, default=2000)
    train.add_argument("--lr", type=float, default=1e-3)
    train.add_argument("--scale", type=float, default=1.0)
    train.add_argument("--model-dir", default=str(DEFAULT_MODEL_DIR))
    train.set_defaults(func=_cmd_train)
    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    try:
        return args.func(args)
    except (OSError, ValueError, KeyError, RuntimeError) as e:
        print(f"{args.command}: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO, format="%(name)s - %(levelname)s - %(message)s")
    sys.exit(main())
