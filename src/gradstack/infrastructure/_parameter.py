"""
Concrete trainable parameter implementation.

This module defines `Parameter`, the infrastructure-level implementation of
the domain contract `IParameter`. A `Parameter` owns two NumPy buffers of the
same shape: the value (`data`) and the accumulated gradient (`grad`).

Design notes
------------
- Buffers are allocated once and mutated in place; `data` and `grad` are
  never rebound, so views handed out by a module stay valid.
- Gradients accumulate across backward passes until `zero_grad()`, which
  `Module.update_parameters` calls after every optimisation step.
- The `requires_grad` flag freezes a parameter without changing module
  structure.
"""

from __future__ import annotations

from typing import Any, Tuple

import numpy as np

from ..domain._errors import ShapeMismatchError
from ..domain._parameter import IParameter
from ._arrays import DTYPE


class Parameter(IParameter):
    """
    Trainable value buffer with a matching gradient buffer.

    Parameters
    ----------
    data : array-like
        Initial value. Copied into a new float64 buffer.
    requires_grad : bool, optional
        Whether this parameter accumulates gradients. Defaults to True.
    """

    def __init__(self, data: Any, *, requires_grad: bool = True) -> None:
        self._data = np.array(data, dtype=DTYPE, copy=True)
        self._grad = np.zeros_like(self._data)
        self._requires_grad = bool(requires_grad)

    @property
    def data(self) -> np.ndarray:
        return self._data

    @property
    def grad(self) -> np.ndarray:
        return self._grad

    @property
    def shape(self) -> Tuple[int, ...]:
        return self._data.shape

    @property
    def size(self) -> int:
        return int(self._data.size)

    @property
    def requires_grad(self) -> bool:
        """
        Indicate whether this parameter should accumulate gradients.
        """
        return self._requires_grad

    @requires_grad.setter
    def requires_grad(self, value: bool) -> None:
        self._requires_grad = bool(value)

    def accumulate_grad(self, g: Any) -> None:
        """
        Add `g` into the gradient buffer.

        Frozen parameters ignore the contribution.

        Raises
        ------
        ShapeMismatchError
            If `g` does not have the parameter's shape.
        """
        if not self._requires_grad:
            return
        g = np.asarray(g, dtype=DTYPE)
        if g.shape != self._data.shape:
            raise ShapeMismatchError(
                "gradient shape mismatch", expected=self._data.shape, actual=g.shape
            )
        self._grad += g

    def zero_grad(self) -> None:
        """
        Reset the accumulated gradient to zeros.
        """
        self._grad.fill(0.0)

    def copy_from(self, value: Any) -> None:
        """
        Overwrite the value buffer in place.

        Raises
        ------
        ShapeMismatchError
            If `value` does not have the parameter's shape.
        """
        value = np.asarray(value, dtype=DTYPE)
        if value.shape != self._data.shape:
            raise ShapeMismatchError(
                "parameter shape mismatch", expected=self._data.shape, actual=value.shape
            )
        self._data[...] = value

    def __repr__(self) -> str:
        return f"Parameter(shape={self.shape}, requires_grad={self._requires_grad})"
