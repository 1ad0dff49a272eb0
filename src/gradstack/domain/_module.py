"""
Module (layer) interface definitions.

This module defines the domain-level interface for neural network modules
(layers) using structural subtyping via `typing.Protocol`.

Any object that implements the required methods is considered a valid module,
independent of inheritance. This is also the seam for alternative backends:
an accelerator-resident implementation only has to satisfy `IModule` for the
layer composition code (stacks, splits, optimisers) to drive it.

Contract summary
----------------
- `calc(x)` evaluates for inference and is idempotent for an unchanged input.
- `forward(x)` prepares training-only state (fresh randomness) and always
  recomputes.
- `backward(x, g)` accumulates parameter gradients and writes the input
  gradient; `x` must be the input of the latest `calc`/`forward`.
- `update_parameters(flat)` writes parameters back in `parameters()` order and
  zeroes every gradient buffer.

Every mutating operation returns the module instance callers must keep using.
"""

from __future__ import annotations

from typing import Any, Protocol, Tuple, runtime_checkable

from .types._numpy import NDArrayLike


@runtime_checkable
class IModule(Protocol):
    """
    Domain-level module (layer) interface.

    A module represents a composable unit of forward/backward computation
    that owns its output and input-gradient buffers and, optionally, a set of
    trainable parameters with matching gradient buffers.

    Notes
    -----
    - This interface is safe to use with `isinstance` checks due to the
      `@runtime_checkable` decorator.
    - Flat parameter and gradient views are concatenated in pre-order
      (a module's own parameters first, then each child in order).
    """

    @property
    def input_shape(self) -> Tuple[int, ...]:
        """
        Shape every input (and the input gradient) must have.
        """
        ...

    @property
    def output_shape(self) -> Tuple[int, ...]:
        """
        Shape of the output (and of every output gradient).
        """
        ...

    def calc(self, x: Any) -> "IModule":
        """
        Evaluate the module for inference.

        Parameters
        ----------
        x : array-like
            Input with shape `input_shape`.

        Returns
        -------
        IModule
            The module holding the computed output.
        """
        ...

    def output(self) -> NDArrayLike:
        """
        Return the output of the most recent `calc` or `forward`.
        """
        ...

    def forward(self, x: Any) -> "IModule":
        """
        Evaluate the module for training.

        Parameters
        ----------
        x : array-like
            Input with shape `input_shape`.

        Returns
        -------
        IModule
            The module holding the computed output and training state.
        """
        ...

    def backward(self, x: Any, output_gradient: Any) -> "IModule":
        """
        Propagate an output gradient back through the module.

        Parameters
        ----------
        x : array-like
            The input used for the most recent `forward`/`calc`.
        output_gradient : array-like
            Gradient of the loss with respect to the output.

        Returns
        -------
        IModule
            The module holding accumulated parameter gradients and the input
            gradient.
        """
        ...

    def input_gradient(self) -> NDArrayLike:
        """
        Return the input gradient computed by the most recent `backward`.
        """
        ...

    def parameters(self) -> NDArrayLike:
        """
        Return all parameters as one flat vector.
        """
        ...

    def gradient(self) -> NDArrayLike:
        """
        Return all accumulated parameter gradients as one flat vector.
        """
        ...

    def parameter_count(self) -> int:
        """
        Return the total number of scalar parameters.
        """
        ...

    def update_parameters(self, parameters: Any) -> "IModule":
        """
        Overwrite parameters from a flat vector and reset gradients.
        """
        ...

    def clone(self) -> "IModule":
        """
        Return a deep copy sharing no mutable state with this module.
        """
        ...
