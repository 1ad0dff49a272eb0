"""
AdaDelta optimizer implementation.

AdaDelta needs no learning rate: each element's step is the ratio of the
running RMS of past updates to the running RMS of past gradients.
"""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np

from ...domain._errors import ConstructionInvariantError
from .._arrays import DTYPE
from ._base import Optimiser


@dataclass(eq=False)
class AdaDelta(Optimiser):
    """
    AdaDelta optimizer.

    Update rule
    -----------
    With ``d = decay`` (the weight given to the newest sample):

        acc_g  <- d * g^2  + (1 - d) * acc_g
        dx      = -sqrt(acc_dx + epsilon) / sqrt(acc_g + epsilon) * g
        acc_dx <- d * dx^2 + (1 - d) * acc_dx
        p      <- p + dx

    Parameters
    ----------
    decay : float, optional
        Weight of the newest squared gradient/update in ``(0, 1]``.
        Defaults to 0.05.
    epsilon : float, optional
        Conditioning constant. Must be positive. Defaults to 1e-6.
    """

    decay: float = 0.05
    epsilon: float = 1e-6

    def __init__(self, decay: float = 0.05, epsilon: float = 1e-6) -> None:
        super().__init__()
        self.decay = float(decay)
        self.epsilon = float(epsilon)

        if not 0.0 < self.decay <= 1.0:
            raise ConstructionInvariantError(f"decay must be in (0, 1], got {self.decay}")
        if self.epsilon <= 0.0:
            raise ConstructionInvariantError(f"epsilon must be > 0, got {self.epsilon}")

        self._acc_grad = np.zeros(0, dtype=DTYPE)
        self._acc_dx = np.zeros(0, dtype=DTYPE)

    def _resize(self, n: int) -> None:
        self._acc_grad = np.zeros(n, dtype=DTYPE)
        self._acc_dx = np.zeros(n, dtype=DTYPE)

    def _step(self, gradient: np.ndarray, parameters: np.ndarray) -> np.ndarray:
        d = self.decay
        eps = self.epsilon

        self._acc_grad *= 1.0 - d
        self._acc_grad += d * gradient * gradient

        dx = -np.sqrt(self._acc_dx + eps) / np.sqrt(self._acc_grad + eps) * gradient

        self._acc_dx *= 1.0 - d
        self._acc_dx += d * dx * dx

        parameters += dx
        return parameters
