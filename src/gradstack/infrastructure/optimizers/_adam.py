"""
Adam: per-element adaptive steps from bias-corrected moment estimates.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Tuple

import numpy as np

from ...domain._errors import ConstructionInvariantError
from .._arrays import DTYPE
from ._base import Optimiser


@dataclass(eq=False)
class Adam(Optimiser):
    """
    Adam over a packed parameter vector.

    For gradient ``g`` at step ``t`` (optionally ``g + weight_decay * p``):

        m = beta1 * m + (1 - beta1) * g
        v = beta2 * v + (1 - beta2) * g**2
        p -= learn_rate * (m / (1 - beta1**t)) / (sqrt(v / (1 - beta2**t)) + eps)

    Both moments and ``t`` start over whenever the parameter count changes.
    Weight decay is coupled L2, folded into the gradient before the moments.
    """

    learn_rate: float = 1e-3
    betas: Tuple[float, float] = (0.9, 0.999)
    eps: float = 1e-8
    weight_decay: float = 0.0

    def __init__(
        self,
        learn_rate: float = 1e-3,
        betas: Tuple[float, float] = (0.9, 0.999),
        eps: float = 1e-8,
        weight_decay: float = 0.0,
    ) -> None:
        super().__init__()
        self.learn_rate = float(learn_rate)
        self.betas = (float(betas[0]), float(betas[1]))
        self.eps = float(eps)
        self.weight_decay = float(weight_decay)

        b1, b2 = self.betas
        if self.learn_rate <= 0.0:
            raise ConstructionInvariantError(
                f"learn_rate must be > 0, got {self.learn_rate}"
            )
        if not (0.0 < b1 < 1.0) or not (0.0 < b2 < 1.0):
            raise ConstructionInvariantError(f"betas must be in (0,1), got {self.betas}")
        if self.eps <= 0.0:
            raise ConstructionInvariantError(f"eps must be > 0, got {self.eps}")
        if self.weight_decay < 0.0:
            raise ConstructionInvariantError(
                f"weight_decay must be >= 0, got {self.weight_decay}"
            )

        self._t = 0
        self._m = np.zeros(0, dtype=DTYPE)
        self._v = np.zeros(0, dtype=DTYPE)

    @property
    def step_count(self) -> int:
        return self._t

    def _resize(self, n: int) -> None:
        self._t = 0
        self._m = np.zeros(n, dtype=DTYPE)
        self._v = np.zeros(n, dtype=DTYPE)

    def _step(self, gradient: np.ndarray, parameters: np.ndarray) -> np.ndarray:
        b1, b2 = self.betas
        if self.weight_decay:
            gradient = gradient + self.weight_decay * parameters

        self._t += 1
        self._m = b1 * self._m + (1.0 - b1) * gradient
        self._v = b2 * self._v + (1.0 - b2) * np.square(gradient)

        step = self._m / (1.0 - b1**self._t)
        scale = np.sqrt(self._v / (1.0 - b2**self._t)) + self.eps
        parameters -= self.learn_rate * step / scale
        return parameters
