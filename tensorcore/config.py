# Copyright (C) 2025 Brantleigh Bunting
# SPDX-License-Identifier: BUSL-1.1
#
# Use of this software is governed by the Business Source License
# included in the LICENSE file and at <https://mariadb.com/bsl11>

import os
from dataclasses import dataclass
from typing import Optional

from .utils import DEFAULT_PARALLELISM

WEIGHTINGS = ("element", "chunk")


@dataclass(frozen=True)
class ReductionConfig:
    """
    Knobs for the reduction engine.

    parallelism : int
        Number of chunks the buffer is split into (one task per chunk).
    weighting : {'element', 'chunk'}
        How mean/variance partials are combined. 'element' weighs each
        chunk by its element count (the true statistic); 'chunk' averages
        the per-chunk partials, which is biased whenever the chunks differ
        in size.
    max_workers : int | None
        Thread pool size. None means one thread per chunk.
    """

    parallelism: int = DEFAULT_PARALLELISM
    weighting: str = "element"
    max_workers: Optional[int] = None

    def __post_init__(self):
        if self.parallelism < 1:
            raise ValueError(f"parallelism must be >= 1, got {self.parallelism}")
        if self.weighting not in WEIGHTINGS:
            raise ValueError(
                f"weighting must be one of {WEIGHTINGS}, got {self.weighting!r}"
            )
        if self.max_workers is not None and self.max_workers < 1:
            raise ValueError(f"max_workers must be >= 1, got {self.max_workers}")

    @classmethod
    def from_env(cls, environ=None) -> "ReductionConfig":
        """
        Build a config from TENSORCORE_PARALLELISM, TENSORCORE_WEIGHTING
        and TENSORCORE_MAX_WORKERS, falling back to the defaults.
        """
        env = os.environ if environ is None else environ
        max_workers = env.get("TENSORCORE_MAX_WORKERS")
        return cls(
            parallelism=int(env.get("TENSORCORE_PARALLELISM", DEFAULT_PARALLELISM)),
            weighting=env.get("TENSORCORE_WEIGHTING", "element"),
            max_workers=int(max_workers) if max_workers else None,
        )


DEFAULT_CONFIG = ReductionConfig()
