"""
Trainable parameter interface definitions.

This module defines the domain-level interface for trainable parameters. A
parameter pairs a value buffer with a gradient buffer of identical shape;
backward passes accumulate into the gradient and parameter updates reset it.
"""

from __future__ import annotations

from typing import Any, Protocol, Tuple, runtime_checkable

from .types._numpy import NDArrayLike


@runtime_checkable
class IParameter(Protocol):
    """
    Domain-level interface for trainable parameters.

    Notes
    -----
    - `data` and `grad` always have the same shape.
    - Gradients are accumulated, never overwritten, until `zero_grad()`.
    - Parameters may be frozen via `requires_grad`; frozen parameters ignore
      incoming gradient contributions.
    """

    @property
    def data(self) -> NDArrayLike:
        """
        Return the parameter value buffer.
        """
        ...

    @property
    def grad(self) -> NDArrayLike:
        """
        Return the accumulated gradient buffer.
        """
        ...

    @property
    def shape(self) -> Tuple[int, ...]:
        """
        Return the parameter shape.
        """
        ...

    @property
    def requires_grad(self) -> bool:
        """
        Indicate whether this parameter accumulates gradients.
        """
        ...

    def accumulate_grad(self, g: Any) -> None:
        """
        Add `g` into the gradient buffer.
        """
        ...

    def zero_grad(self) -> None:
        """
        Reset the gradient buffer to zeros.
        """
        ...
