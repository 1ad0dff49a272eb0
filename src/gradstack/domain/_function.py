"""
Differentiable function interface definitions.

This module defines the abstract base class for the stateless math behind the
activation layers. A `Function` knows how to compute its output from an input
and how to turn an output gradient into an input gradient; it owns no
buffers. Layer modules own the buffers and delegate the math here.
"""

from abc import ABC, abstractmethod
from typing import Any

from .types._numpy import NDArrayLike


class Function(ABC):
    """
    Abstract base class for differentiable array functions.

    Subclasses implement both `forward` and `backward` as static methods.
    Hyperparameters (e.g. a negative slope) are passed as keyword arguments
    to both.

    Notes
    -----
    - `backward` receives the forward input *and* output, so functions whose
      derivative is cheapest in terms of the output (logistic, tanh, softmax)
      do not need to recompute it.
    """

    @staticmethod
    @abstractmethod
    def forward(x: NDArrayLike, **kwargs: Any) -> NDArrayLike:
        """
        Compute the function output.

        Parameters
        ----------
        x : NDArrayLike
            Input array.

        Returns
        -------
        NDArrayLike
            Output array with the same shape as `x`.
        """
        ...

    @staticmethod
    @abstractmethod
    def backward(
        x: NDArrayLike, y: NDArrayLike, grad_out: NDArrayLike, **kwargs: Any
    ) -> NDArrayLike:
        """
        Compute the input gradient by the chain rule.

        Parameters
        ----------
        x : NDArrayLike
            Input used in the forward pass.
        y : NDArrayLike
            Output produced by the forward pass.
        grad_out : NDArrayLike
            Gradient of the loss with respect to the output.

        Returns
        -------
        NDArrayLike
            Gradient of the loss with respect to the input.
        """
        ...
