"""
Optimiser base class.

`Optimiser` implements the packing side of the `IOptimizer` contract. It owns
two reusable flat buffers, `packed_params` and `packed_grads`, that
`optimise()` fills from a module tree before every step. When the parameter
count changes, the buffers are recreated and the `_resize` hook lets the
algorithm reset its per-element state.

Concrete algorithms implement a single hook:

- `_step(gradient, parameters) -> np.ndarray`: return the new flat
  parameters; `parameters` is a private copy and may be updated in place.
"""

from __future__ import annotations

from typing import Any

import numpy as np

from ...domain._errors import ShapeMismatchError
from ...domain._optimizers import IOptimizer
from .._arrays import DTYPE


class Optimiser(IOptimizer):
    """
    Base class for flat-vector optimisation algorithms.

    Attributes
    ----------
    packed_params : np.ndarray
        Reusable flat parameter buffer.
    packed_grads : np.ndarray
        Reusable flat gradient buffer.
    """

    def __init__(self) -> None:
        self.packed_params = np.zeros(0, dtype=DTYPE)
        self.packed_grads = np.zeros(0, dtype=DTYPE)
        self._params = np.zeros(0, dtype=DTYPE)

    @property
    def size(self) -> int:
        return int(self.packed_params.size)

    def resize(self, n: int) -> "Optimiser":
        """
        Make the packed buffers hold `n` elements.

        Buffers and algorithm state are only recreated when `n` differs from
        the current size.
        """
        n = int(n)
        if n != self.packed_params.size:
            self.packed_params = np.zeros(n, dtype=DTYPE)
            self.packed_grads = np.zeros(n, dtype=DTYPE)
            self._resize(n)
        return self

    def _resize(self, n: int) -> None:
        pass

    def _step(self, gradient: np.ndarray, parameters: np.ndarray) -> np.ndarray:
        raise NotImplementedError

    def compute_parameters(self, gradient: Any, parameters: Any) -> "Optimiser":
        """
        Compute new parameters from a gradient and the current parameters.

        Raises
        ------
        ShapeMismatchError
            If the two vectors differ in length.
        """
        g = np.asarray(gradient, dtype=DTYPE).ravel()
        p = np.array(parameters, dtype=DTYPE, copy=True).ravel()
        if g.shape != p.shape:
            raise ShapeMismatchError(
                "gradient/parameter length mismatch", expected=p.shape, actual=g.shape
            )
        self.resize(p.size)
        self._params = self._step(g, p)
        return self

    def parameters(self) -> np.ndarray:
        return self._params
