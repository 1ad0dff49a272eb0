"""
Online normalisation layer.

`Normaliser` standardises its input with running per-element statistics:

    y = (x - mean) / sd

Running statistics
------------------
Two accumulators track the input distribution as exponential moving
averages with rate `learn_rate`:

    acc_mean <- acc_mean + learn_rate * (x   - acc_mean)
    acc_ss   <- acc_ss   + learn_rate * (x^2 - acc_ss)

Every `refresh_every` forward passes, `mean` and `sd` are refreshed from them:

    mean = acc_mean
    sd   = sqrt(max(acc_ss - acc_mean^2, min_sd^2))

Accumulators start at ``acc_mean = 0`` and ``acc_ss = 1`` so the layer begins
as the identity (``mean = 0``, ``sd = 1``).

Only `forward` updates the statistics; `calc` uses them as they are.
`backward` treats the statistics as constants: ``dL/dx = g / sd``.
"""

from __future__ import annotations

from typing import Any, Dict

import numpy as np

from ...domain._errors import ConstructionInvariantError
from ..module._serialization_core import register_module
from .._arrays import DTYPE
from .._module import Module


@register_module()
class Normaliser(Module):
    """
    Per-element running standardisation layer.

    Parameters
    ----------
    shape : int or sequence of int
        Input (and output) shape.
    learn_rate : float, default=0.01
        Moving-average rate in ``(0, 1]``.
    refresh_every : int, default=1
        Number of forward passes between refreshes of `mean` / `sd`.
    min_sd : float, default=1e-6
        Lower bound for the refreshed standard deviation.

    Attributes
    ----------
    mean, sd : np.ndarray
        Statistics used to normalise.
    acc_mean, acc_ss : np.ndarray
        Moving averages of the input and of its square.
    steps : np.ndarray
        One-element count of forward passes, driving the refresh schedule.

    Notes
    -----
    The statistics are buffers, not trainable parameters: the layer has a
    parameter count of zero.
    """

    def __init__(
        self,
        shape: Any,
        learn_rate: float = 0.01,
        refresh_every: int = 1,
        min_sd: float = 1e-6,
    ) -> None:
        super().__init__(shape, shape)
        if not 0.0 < float(learn_rate) <= 1.0:
            raise ConstructionInvariantError(
                f"learn_rate must be in (0, 1], got {learn_rate}"
            )
        if int(refresh_every) < 1:
            raise ConstructionInvariantError(
                f"refresh_every must be >= 1, got {refresh_every}"
            )
        if not float(min_sd) > 0.0:
            raise ConstructionInvariantError(f"min_sd must be > 0, got {min_sd}")

        self.learn_rate = float(learn_rate)
        self.refresh_every = int(refresh_every)
        self.min_sd = float(min_sd)

        self.mean = np.zeros(self.input_shape, dtype=DTYPE)
        self.sd = np.ones(self.input_shape, dtype=DTYPE)
        self.acc_mean = np.zeros(self.input_shape, dtype=DTYPE)
        self.acc_ss = np.ones(self.input_shape, dtype=DTYPE)
        # Forward passes since construction; a buffer so the refresh schedule
        # survives a checkpoint.
        self.steps = np.zeros(1, dtype=DTYPE)

    def _state_buffers(self) -> Dict[str, np.ndarray]:
        return {
            "mean": self.mean,
            "sd": self.sd,
            "acc_mean": self.acc_mean,
            "acc_ss": self.acc_ss,
            "steps": self.steps,
        }

    def _refresh(self) -> None:
        self.mean[...] = self.acc_mean
        var = self.acc_ss - self.acc_mean * self.acc_mean
        np.sqrt(np.maximum(var, self.min_sd * self.min_sd), out=self.sd)

    def _calc(self, x: np.ndarray) -> None:
        np.divide(x - self.mean, self.sd, out=self._output)

    def _forward(self, x: np.ndarray) -> None:
        lr = self.learn_rate
        self.acc_mean += lr * (x - self.acc_mean)
        self.acc_ss += lr * (x * x - self.acc_ss)
        self.steps += 1.0
        if int(self.steps[0]) % self.refresh_every == 0:
            self._refresh()
        self._calc(x)

    def _backward(self, x: np.ndarray, g: np.ndarray) -> None:
        np.divide(g, self.sd, out=self._input_grad)

    def get_config(self) -> Dict[str, Any]:
        return {
            "shape": list(self.input_shape),
            "learn_rate": self.learn_rate,
            "refresh_every": self.refresh_every,
            "min_sd": self.min_sd,
        }

    @classmethod
    def from_config(cls, cfg: Dict[str, Any]) -> "Normaliser":
        return cls(
            tuple(cfg["shape"]),
            learn_rate=float(cfg.get("learn_rate", 0.01)),
            refresh_every=int(cfg.get("refresh_every", 1)),
            min_sd=float(cfg.get("min_sd", 1e-6)),
        )
