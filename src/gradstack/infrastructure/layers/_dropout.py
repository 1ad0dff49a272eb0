"""
Dropout regularization module for gradstack.

This module implements inverted dropout. `probability` is the probability of
*keeping* an element: during `forward` each element is kept with probability
`p` and scaled by ``1 / p`` so that its expected value is unchanged, and
dropped (set to zero) otherwise. `calc` is the inference path and passes the
input through untouched.

Design notes
------------
- The random draw happens in `_prepare_forward`, from an injectable
  `numpy.random.Generator`, so tests can seed it.
- The scaled mask drawn by the latest `forward` is kept on the module and
  reused by `backward`: elements zeroed in the output have a zero gradient,
  surviving elements get their gradient scaled by ``1 / p``.
- After a `calc`, `backward` treats the layer as the identity.
"""

from __future__ import annotations

from typing import Any, Dict, Optional

import numpy as np

from ...domain._errors import ConstructionInvariantError
from ..module._serialization_core import register_module
from .._arrays import DTYPE
from .._module import Module


class _MaskedNoiseLayer(Module):
    """
    Shared driver for layers that multiply their input by a random mask
    during training and pass it through during inference.

    Subclasses implement `_draw_mask()`.
    """

    def __init__(self, shape: Any, rng: Optional[np.random.Generator] = None) -> None:
        super().__init__(shape, shape)
        self.rng = rng if rng is not None else np.random.default_rng()
        self._mask = np.ones(self.input_shape, dtype=DTYPE)
        self._training_output = False

    @property
    def mask(self) -> np.ndarray:
        """
        The multiplicative mask drawn by the latest `forward`.
        """
        return self._mask

    def _draw_mask(self) -> np.ndarray:
        raise NotImplementedError

    def _after_clone(self, source: Module) -> None:
        self.rng = source.rng.spawn(1)[0]

    def _prepare_forward(self) -> None:
        self._mask[...] = self._draw_mask()

    def _calc(self, x: np.ndarray) -> None:
        self._output[...] = x
        self._training_output = False

    def _forward(self, x: np.ndarray) -> None:
        np.multiply(x, self._mask, out=self._output)
        self._training_output = True

    def _backward(self, x: np.ndarray, g: np.ndarray) -> None:
        if self._training_output:
            np.multiply(g, self._mask, out=self._input_grad)
        else:
            self._input_grad[...] = g


@register_module()
class Dropout(_MaskedNoiseLayer):
    """
    Dropout regularization layer (inverted dropout).

    Behavior
    --------
    - forward:
        y = x * keep / p, where keep ~ Bernoulli(p) per element
    - calc:
        y = x (identity)

    Parameters
    ----------
    shape : int or sequence of int
        Input (and output) shape.
    probability : float
        Keep probability. Must satisfy ``0 < p <= 1``.
    rng : Optional[np.random.Generator], optional
        Random source for the masks.

    Raises
    ------
    ConstructionInvariantError
        If `probability` is outside ``(0, 1]``.
    """

    def __init__(
        self,
        shape: Any,
        probability: float,
        *,
        rng: Optional[np.random.Generator] = None,
    ) -> None:
        p = float(probability)
        if not 0.0 < p <= 1.0:
            raise ConstructionInvariantError(
                f"Dropout keep probability must be in (0, 1], got {probability}"
            )
        super().__init__(shape, rng)
        self.probability = p

    def _draw_mask(self) -> np.ndarray:
        keep = self.rng.random(self.input_shape) < self.probability
        return keep / self.probability

    def get_config(self) -> Dict[str, Any]:
        return {"shape": list(self.input_shape), "probability": self.probability}

    @classmethod
    def from_config(cls, cfg: Dict[str, Any]) -> "Dropout":
        return cls(tuple(cfg["shape"]), float(cfg["probability"]))
