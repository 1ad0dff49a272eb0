"""
Stochastic Gradient Descent (SGD) optimizer implementation.

The optimizer works on flat parameter/gradient vectors produced by
`optimise()`. It applies a fixed learning rate, with optional classical
momentum and classical L2 regularization (coupled weight decay).

This module contains only SGD. Other optimizers (e.g., Adam) live in separate
modules under the optimizers package.
"""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np

from ...domain._errors import ConstructionInvariantError
from .._arrays import DTYPE
from ._base import Optimiser


@dataclass(eq=False)
class SGD(Optimiser):
    """
    Stochastic Gradient Descent (SGD) optimizer.

    Update rule
    -----------
    For parameters ``p`` with gradient ``g``:

    - If ``weight_decay > 0`` (classical L2 regularization):
        ``g <- g + weight_decay * p``
    - Velocity and parameter update:
        ``v <- momentum * v - learn_rate * g``
        ``p <- p + v``

    With ``momentum == 0`` this is plain ``p <- p - learn_rate * g``.

    Parameters
    ----------
    learn_rate : float
        Learning rate. Must be positive.
    momentum : float, optional
        Momentum coefficient in ``[0, 1)``. Defaults to 0.0.
    weight_decay : float, optional
        Classical L2 weight decay coefficient (coupled). Must be non-negative.
        Defaults to 0.0.

    Notes
    -----
    The velocity is reset whenever the parameter count changes.
    """

    learn_rate: float
    momentum: float = 0.0
    weight_decay: float = 0.0

    def __init__(
        self,
        learn_rate: float,
        momentum: float = 0.0,
        weight_decay: float = 0.0,
    ) -> None:
        super().__init__()
        self.learn_rate = float(learn_rate)
        self.momentum = float(momentum)
        self.weight_decay = float(weight_decay)

        if self.learn_rate <= 0.0:
            raise ConstructionInvariantError(
                f"learn_rate must be > 0, got {self.learn_rate}"
            )
        if not 0.0 <= self.momentum < 1.0:
            raise ConstructionInvariantError(
                f"momentum must be in [0, 1), got {self.momentum}"
            )
        if self.weight_decay < 0.0:
            raise ConstructionInvariantError(
                f"weight_decay must be >= 0, got {self.weight_decay}"
            )

        self._velocity = np.zeros(0, dtype=DTYPE)

    def _resize(self, n: int) -> None:
        self._velocity = np.zeros(n, dtype=DTYPE)

    def _step(self, gradient: np.ndarray, parameters: np.ndarray) -> np.ndarray:
        g = gradient
        # Classical (coupled) weight decay; decoupled would be AdamW-style.
        if self.weight_decay != 0.0:
            g = g + self.weight_decay * parameters

        if self.momentum == 0.0:
            parameters -= self.learn_rate * g
            return parameters

        self._velocity *= self.momentum
        self._velocity -= self.learn_rate * g
        parameters += self._velocity
        return parameters
