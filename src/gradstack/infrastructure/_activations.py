"""
Module-based activation layers.

This module provides `Module` wrappers around the stateless `Function` math
in `_function.py` (e.g. `LogisticFn`, `RectifiedLinearFn`), plus the affine
`Scale` layer.

Why both Function and Module forms exist
----------------------------------------
- `Function` classes implement the formula and its derivative once, with no
  buffers.
- `Module` classes own the output and input-gradient buffers for a fixed
  shape and plug into stacks, splits and optimisers.

Notes
-----
All activation layers have identical input and output shapes and no
trainable parameters.
"""

from __future__ import annotations

import numbers
from typing import Any, Dict, Optional, Type, Union

import numpy as np

from ..domain._errors import ShapeMismatchError
from ..domain._function import Function
from ..domain.model._shape_config_mixin import ShapeConfigMixin
from ._arrays import DTYPE
from ._function import LogisticFn, RectifiedLinearFn, SoftmaxFn, SoftplusFn, TanhFn
from ._module import Module
from .module._serialization_core import register_module


class _ActivationModule(Module):
    """
    Shared driver for activation layers: output and input gradient come
    straight from `function`.
    """

    function: Type[Function]

    def __init__(self, shape: Any) -> None:
        super().__init__(shape, shape)

    def _fn_kwargs(self) -> Dict[str, Any]:
        return {}

    def _calc(self, x: np.ndarray) -> None:
        self._output[...] = self.function.forward(x, **self._fn_kwargs())

    def _backward(self, x: np.ndarray, g: np.ndarray) -> None:
        self._input_grad[...] = self.function.backward(
            x, self._output, g, **self._fn_kwargs()
        )


@register_module()
class Logistic(ShapeConfigMixin, _ActivationModule):
    """
    Logistic (sigmoid) activation layer: ``1 / (1 + exp(-x))`` elementwise.
    """

    function = LogisticFn


@register_module()
class Tanh(ShapeConfigMixin, _ActivationModule):
    """
    Hyperbolic tangent activation layer.
    """

    function = TanhFn


@register_module()
class Softplus(ShapeConfigMixin, _ActivationModule):
    """
    Softplus activation layer: ``ln(1 + exp(x))`` elementwise.
    """

    function = SoftplusFn


@register_module()
class Softmax(ShapeConfigMixin, _ActivationModule):
    """
    Softmax layer.

    The normalised exponential is computed jointly over every element of the
    input, so the output always sums to 1.
    """

    function = SoftmaxFn


@register_module()
class RectifiedLinear(_ActivationModule):
    """
    Rectified linear layer with a configurable negative slope.

        f(x) = x           if x >= 0
             = negval * x  otherwise

    Parameters
    ----------
    shape : int or sequence of int
        Input (and output) shape.
    negval : float, default=0.0
        Slope applied to negative inputs. ``0.0`` gives the plain ReLU.
    """

    function = RectifiedLinearFn

    def __init__(self, shape: Any, negval: float = 0.0) -> None:
        super().__init__(shape)
        self.negval = float(negval)

    def _fn_kwargs(self) -> Dict[str, Any]:
        return {"negval": self.negval}

    def get_config(self) -> Dict[str, Any]:
        return {"shape": list(self.input_shape), "negval": self.negval}

    @classmethod
    def from_config(cls, cfg: Dict[str, Any]) -> "RectifiedLinear":
        return cls(tuple(cfg["shape"]), negval=float(cfg.get("negval", 0.0)))


ScaleArg = Optional[Union[float, np.ndarray, Any]]


def _normalize_scale_arg(
    value: ScaleArg, shape: tuple, identity: float, what: str
) -> Optional[Union[float, np.ndarray]]:
    """
    Turn a scale factor/constant into ``None`` (identity), a float, or an
    array of exactly `shape`.
    """
    if value is None:
        return None
    if isinstance(value, numbers.Real):
        v = float(value)
        return None if v == identity else v
    arr = np.array(value, dtype=DTYPE, copy=True)
    if arr.ndim == 0:
        v = float(arr)
        return None if v == identity else v
    if arr.shape != shape:
        raise ShapeMismatchError(f"Scale {what} shape mismatch", expected=shape, actual=arr.shape)
    return arr


def _scale_arg_to_config(value: Optional[Union[float, np.ndarray]]) -> Any:
    if value is None or isinstance(value, float):
        return value
    return value.tolist()


@register_module()
class Scale(Module):
    """
    Fixed affine rescaling layer.

        output         = input * factor + constant
        input_gradient = output_gradient * factor

    Parameters
    ----------
    shape : int or sequence of int
        Input (and output) shape.
    factor : float, array-like or None, optional
        Multiplier, either a scalar or one value per element. ``None`` and
        ``1.0`` mean no multiplication.
    constant : float, array-like or None, optional
        Offset, either a scalar or one value per element. ``None`` and ``0.0``
        mean no offset.

    Raises
    ------
    ShapeMismatchError
        If an array factor or constant does not have `shape`.

    Notes
    -----
    `factor` and `constant` are not trainable parameters.
    """

    def __init__(self, shape: Any, factor: ScaleArg = None, constant: ScaleArg = None) -> None:
        super().__init__(shape, shape)
        self.factor = _normalize_scale_arg(factor, self.input_shape, 1.0, "factor")
        self.constant = _normalize_scale_arg(constant, self.input_shape, 0.0, "constant")

    def _calc(self, x: np.ndarray) -> None:
        out = self._output
        out[...] = x
        if self.factor is not None:
            out *= self.factor
        if self.constant is not None:
            out += self.constant

    def _backward(self, x: np.ndarray, g: np.ndarray) -> None:
        self._input_grad[...] = g
        if self.factor is not None:
            self._input_grad *= self.factor

    def get_config(self) -> Dict[str, Any]:
        return {
            "shape": list(self.input_shape),
            "factor": _scale_arg_to_config(self.factor),
            "constant": _scale_arg_to_config(self.constant),
        }

    @classmethod
    def from_config(cls, cfg: Dict[str, Any]) -> "Scale":
        return cls(
            tuple(cfg["shape"]), factor=cfg.get("factor"), constant=cfg.get("constant")
        )
