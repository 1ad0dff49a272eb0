"""
Linear (fully-connected) layer implementation.

This module provides the `Linear` layer, an affine projection of a single
input vector:

    y = W @ x + b

Shape conventions
-----------------
- x : (n_inputs,)
- W : (n_outputs, n_inputs)
- b : (n_outputs,)
- y : (n_outputs,)

Backward rule
-------------
For an output gradient g:
- dL/dx  = W^T @ g                (overwritten)
- dL/dW += outer(g, x)            (accumulated)
- dL/db += g                      (accumulated)

Optional L2 max-norm constraint
-------------------------------
With ``l2_max_constraint=c``, every row of W whose L2 norm exceeds c is
rescaled to norm c after each `update_parameters`. Rows are constrained
independently; rows already within the bound are left untouched.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional

import numpy as np

from ..domain._errors import ConstructionInvariantError, ShapeMismatchError
from ._arrays import DTYPE
from ._module import Module
from ._parameter import Parameter
from .module._serialization_core import register_module
from .utils.weight_initializer import WeightInitializer


@dataclass(frozen=True)
class LinearConfig:
    """
    Options for `Linear`.

    Attributes
    ----------
    l2_max_constraint : Optional[float]
        Maximum L2 norm of each weight row after an update. ``None`` disables
        the constraint.
    weight_scale : float
        Multiplier applied to randomly initialised weights. Default 1.0.
    initializer : str
        Registered weight initializer used by `Linear.from_sizes`. Default
        ``"xavier"``.
    """

    l2_max_constraint: Optional[float] = None
    weight_scale: float = 1.0
    initializer: str = "xavier"

    def __post_init__(self) -> None:
        if self.l2_max_constraint is not None and not self.l2_max_constraint > 0.0:
            raise ConstructionInvariantError(
                f"l2_max_constraint must be > 0, got {self.l2_max_constraint}"
            )


def apply_l2_max_constraint(weights: np.ndarray, max_norm: float) -> None:
    """
    Rescale, in place, every row of `weights` whose L2 norm exceeds
    `max_norm` so that its norm becomes exactly `max_norm`.
    """
    norms = np.linalg.norm(weights, axis=1)
    over = norms > max_norm
    if np.any(over):
        weights[over] *= (max_norm / norms[over])[:, None]


@register_module()
class Linear(Module):
    """
    Fully-connected layer performing ``y = W @ x + b``.

    Parameters
    ----------
    weights : array-like
        Weight matrix of shape (n_outputs, n_inputs). Copied.
    bias : array-like
        Bias vector of shape (n_outputs,). Copied.
    l2_max_constraint : Optional[float], optional
        Per-row L2 norm bound enforced after each parameter update.
    config : Optional[LinearConfig], optional
        Full option record; overrides `l2_max_constraint` when given.

    Attributes
    ----------
    weight : Parameter
        Trainable weight matrix.
    bias : Parameter
        Trainable bias vector.

    Raises
    ------
    ShapeMismatchError
        If `weights` is not 2D or its row count differs from the bias length.
    """

    def __init__(
        self,
        weights: Any,
        bias: Any,
        *,
        l2_max_constraint: Optional[float] = None,
        config: Optional[LinearConfig] = None,
    ) -> None:
        w = np.asarray(weights, dtype=DTYPE)
        b = np.asarray(bias, dtype=DTYPE)
        if w.ndim != 2:
            raise ShapeMismatchError(f"Linear weights must be a 2D matrix, got {w.shape}")
        if b.ndim != 1 or b.shape[0] != w.shape[0]:
            raise ShapeMismatchError(
                "Linear bias length must equal the weight row count",
                expected=(w.shape[0],),
                actual=b.shape,
            )

        super().__init__(w.shape[1], w.shape[0])
        self.config = config if config is not None else LinearConfig(
            l2_max_constraint=l2_max_constraint
        )
        self.weight = Parameter(w)
        self.bias = Parameter(b)

    @classmethod
    def from_sizes(
        cls,
        n_inputs: int,
        n_outputs: int,
        *,
        weight_scale: float = 1.0,
        initializer: str = "xavier",
        l2_max_constraint: Optional[float] = None,
        rng: Optional[np.random.Generator] = None,
    ) -> "Linear":
        """
        Build a layer with randomly initialised weights and a zero bias.

        Parameters
        ----------
        n_inputs, n_outputs : int
            Layer sizes. Must be positive.
        weight_scale : float, optional
            Multiplier applied to the initial weights.
        initializer : str, optional
            Name of a registered weight initializer.
        l2_max_constraint : Optional[float], optional
            Per-row L2 norm bound enforced after each update.
        rng : Optional[np.random.Generator], optional
            Random source for the initializer.
        """
        if n_inputs <= 0 or n_outputs <= 0:
            raise ConstructionInvariantError(
                "n_inputs and n_outputs must be positive integers"
            )
        config = LinearConfig(
            l2_max_constraint=l2_max_constraint,
            weight_scale=float(weight_scale),
            initializer=initializer,
        )
        w = np.zeros((int(n_outputs), int(n_inputs)), dtype=DTYPE)
        WeightInitializer(initializer)(w, rng)
        w *= config.weight_scale
        return cls(w, np.zeros(int(n_outputs), dtype=DTYPE), config=config)

    def _calc(self, x: np.ndarray) -> None:
        np.matmul(self.weight.data, x, out=self._output)
        self._output += self.bias.data

    def _backward(self, x: np.ndarray, g: np.ndarray) -> None:
        np.matmul(self.weight.data.T, g, out=self._input_grad)
        self.weight.accumulate_grad(np.outer(g, x))
        self.bias.accumulate_grad(g)

    def _after_parameter_update(self) -> None:
        c = self.config.l2_max_constraint
        if c is not None:
            apply_l2_max_constraint(self.weight.data, c)

    def get_config(self) -> Dict[str, Any]:
        return {
            "n_inputs": int(self.input_size),
            "n_outputs": int(self.output_size),
            "l2_max_constraint": self.config.l2_max_constraint,
            "weight_scale": self.config.weight_scale,
            "initializer": self.config.initializer,
        }

    @classmethod
    def from_config(cls, cfg: Dict[str, Any]) -> "Linear":
        """
        Rebuild a zero-weight layer of the recorded size; weights are loaded
        separately from the checkpoint state.
        """
        n_in = int(cfg["n_inputs"])
        n_out = int(cfg["n_outputs"])
        config = LinearConfig(
            l2_max_constraint=cfg.get("l2_max_constraint"),
            weight_scale=float(cfg.get("weight_scale", 1.0)),
            initializer=str(cfg.get("initializer", "xavier")),
        )
        return cls(np.zeros((n_out, n_in)), np.zeros(n_out), config=config)
