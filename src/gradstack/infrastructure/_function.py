"""
Elementwise activation math.

Each `Function` here is a stateless pair of NumPy formulas: `forward` maps an
input array to an output array of the same shape, and `backward` applies the
chain rule to an output gradient. The layer modules in `_activations.py` own
the buffers and call into these.

Numerical notes
---------------
- Logistic and softplus are written in terms of `np.logaddexp`, so inputs of
  magnitude 1000 neither overflow nor emit warnings.
- Softmax subtracts the maximum before exponentiating.
"""

from __future__ import annotations

import numpy as np

from ..domain._function import Function


class LogisticFn(Function):
    """
    Logistic sigmoid.

        f(x)  = 1 / (1 + exp(-x))
        f'(x) = f(x) * (1 - f(x))
    """

    @staticmethod
    def forward(x: np.ndarray) -> np.ndarray:
        return np.exp(-np.logaddexp(0.0, -x))

    @staticmethod
    def backward(x: np.ndarray, y: np.ndarray, grad_out: np.ndarray) -> np.ndarray:
        return grad_out * y * (1.0 - y)


class TanhFn(Function):
    """
    Hyperbolic tangent.

        f(x)  = tanh(x)
        f'(x) = 1 - f(x)^2
    """

    @staticmethod
    def forward(x: np.ndarray) -> np.ndarray:
        return np.tanh(x)

    @staticmethod
    def backward(x: np.ndarray, y: np.ndarray, grad_out: np.ndarray) -> np.ndarray:
        return grad_out * (1.0 - y * y)


class SoftplusFn(Function):
    """
    Softplus.

        f(x)  = ln(1 + exp(x))
        f'(x) = logistic(x)
    """

    @staticmethod
    def forward(x: np.ndarray) -> np.ndarray:
        return np.logaddexp(0.0, x)

    @staticmethod
    def backward(x: np.ndarray, y: np.ndarray, grad_out: np.ndarray) -> np.ndarray:
        return grad_out * LogisticFn.forward(x)


class SoftmaxFn(Function):
    """
    Softmax over the whole array.

    Unlike the other functions this is not elementwise independent: every
    output depends on every input. The backward pass is the Jacobian-vector
    product

        dx = y * (g - sum(g * y))

    which avoids building the full Jacobian.
    """

    @staticmethod
    def forward(x: np.ndarray) -> np.ndarray:
        e = np.exp(x - np.max(x))
        return e / np.sum(e)

    @staticmethod
    def backward(x: np.ndarray, y: np.ndarray, grad_out: np.ndarray) -> np.ndarray:
        return y * (grad_out - np.sum(grad_out * y))


class RectifiedLinearFn(Function):
    """
    Rectified linear unit with a configurable negative slope.

        f(x)  = x           if x >= 0
              = negval * x  otherwise
        f'(x) = 1 if x >= 0 else negval
    """

    @staticmethod
    def forward(x: np.ndarray, *, negval: float = 0.0) -> np.ndarray:
        return np.where(x >= 0.0, x, negval * x)

    @staticmethod
    def backward(
        x: np.ndarray, y: np.ndarray, grad_out: np.ndarray, *, negval: float = 0.0
    ) -> np.ndarray:
        return np.where(x >= 0.0, grad_out, negval * grad_out)
