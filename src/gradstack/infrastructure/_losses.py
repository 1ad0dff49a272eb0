"""
Loss functions for gradstack.

Losses are small stateless objects used by the training helpers and by
`Autoencoder`. Each one exposes:

- `value(output, target) -> float`: the scalar loss for one sample
- `gradient(output, target) -> np.ndarray`: ``dL/d(output)``, same shape as
  `output`

Currently implemented losses:
- SSELoss          : Sum of Squared Errors
- MSELoss          : Mean Squared Error
- CrossEntropyLoss : Categorical cross entropy over probability outputs

Shapes must match exactly; no broadcasting is performed.
"""

from __future__ import annotations

from typing import Any, Tuple

import numpy as np

from ..domain._errors import ShapeMismatchError
from ._arrays import DTYPE


def _pair(output: Any, target: Any) -> Tuple[np.ndarray, np.ndarray]:
    y = np.asarray(output, dtype=DTYPE)
    t = np.asarray(target, dtype=DTYPE)
    if y.shape != t.shape:
        raise ShapeMismatchError(
            "loss output/target shape mismatch", expected=y.shape, actual=t.shape
        )
    return y, t


class Loss:
    """
    Base class for per-sample losses.
    """

    def value(self, output: Any, target: Any) -> float:
        raise NotImplementedError

    def gradient(self, output: Any, target: Any) -> np.ndarray:
        raise NotImplementedError

    def __call__(self, output: Any, target: Any) -> float:
        return self.value(output, target)

    def __repr__(self) -> str:
        return f"{type(self).__name__}()"


class SSELoss(Loss):
    """
    Sum of Squared Errors.

        SSE(y, t) = sum((y - t)^2)
        dSSE/dy   = 2 * (y - t)
    """

    def value(self, output: Any, target: Any) -> float:
        y, t = _pair(output, target)
        diff = y - t
        return float(np.sum(diff * diff))

    def gradient(self, output: Any, target: Any) -> np.ndarray:
        y, t = _pair(output, target)
        return 2.0 * (y - t)


class MSELoss(Loss):
    """
    Mean Squared Error.

        MSE(y, t) = mean((y - t)^2)
        dMSE/dy   = 2 * (y - t) / N

    where N is the number of elements.
    """

    def value(self, output: Any, target: Any) -> float:
        y, t = _pair(output, target)
        diff = y - t
        return float(np.mean(diff * diff))

    def gradient(self, output: Any, target: Any) -> np.ndarray:
        y, t = _pair(output, target)
        return (2.0 / y.size) * (y - t)


class CrossEntropyLoss(Loss):
    """
    Categorical cross entropy between predicted probabilities and a target
    distribution (typically one-hot).

        CE(y, t) = -sum(t * log(y))
        dCE/dy   = -t / y

    Parameters
    ----------
    eps : float, default=1e-12
        Predictions are clipped to ``[eps, 1]`` before the log and the
        division.

    Notes
    -----
    Pair with a `Softmax` output layer. The target is treated as a constant.
    """

    def __init__(self, eps: float = 1e-12) -> None:
        if not float(eps) > 0.0:
            raise ValueError(f"eps must be > 0, got {eps}")
        self.eps = float(eps)

    def value(self, output: Any, target: Any) -> float:
        y, t = _pair(output, target)
        return float(-np.sum(t * np.log(np.clip(y, self.eps, 1.0))))

    def gradient(self, output: Any, target: Any) -> np.ndarray:
        y, t = _pair(output, target)
        return -t / np.clip(y, self.eps, 1.0)

    def __repr__(self) -> str:
        return f"CrossEntropyLoss(eps={self.eps})"
