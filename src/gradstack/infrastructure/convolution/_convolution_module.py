"""
Convolution layer.

`Convolution` applies `num_kernels` learned kernels to every window of a
planar input vector. Each output element is the dot product of one flattened
window (``(channel, ky, kx)`` order) with one kernel row, plus that kernel's
bias. Equivalently, the layer is a `Linear` transform applied to every row of
the im2col patch matrix.

Parameters and gradients
------------------------
- weight : (num_kernels, patch_size)
- bias   : (num_kernels,)

Gradients accumulate across backward calls like every other layer; windows
that overlap on the input sum their contributions into the input gradient.
"""

from __future__ import annotations

from typing import Any, Dict, Optional

import numpy as np

from ...domain._errors import ShapeMismatchError
from ...domain._windowing import ConvolutionConfig
from .._arrays import DTYPE
from .._module import Module
from .._parameter import Parameter
from ..module._serialization_core import register_module
from ..ops.conv2d_cpu import conv2d_backward_cpu, conv2d_forward_cpu
from ..utils.weight_initializer import WeightInitializer


@register_module()
class Convolution(Module):
    """
    2D convolution over a planar input vector.

    Parameters
    ----------
    config : ConvolutionConfig
        Window geometry and kernel count.
    weights : array-like, optional
        Kernel matrix ``(num_kernels, patch_size)``. Randomly initialised when
        omitted.
    bias : array-like, optional
        Bias ``(num_kernels,)``. Zero when omitted.
    weight_scale : float, optional
        Multiplier applied to randomly initialised weights. Default 1.0.
    initializer : str, optional
        Registered weight initializer. Default ``"xavier"``.
    rng : Optional[np.random.Generator], optional
        Random source for the initializer.

    Raises
    ------
    ShapeMismatchError
        If `weights` or `bias` has the wrong shape.

    Notes
    -----
    Input shape is ``(input_width * input_height * num_input_channels,)``;
    output shape is ``(output_width * output_height * num_kernels,)``.
    """

    def __init__(
        self,
        config: ConvolutionConfig,
        weights: Any = None,
        bias: Any = None,
        *,
        weight_scale: float = 1.0,
        initializer: str = "xavier",
        rng: Optional[np.random.Generator] = None,
    ) -> None:
        self.config = config
        super().__init__(config.input_size, config.num_kernels * config.window_count)

        w_shape = (config.num_kernels, config.patch_size)
        if weights is None:
            w = np.zeros(w_shape, dtype=DTYPE)
            WeightInitializer(initializer)(w, rng)
            w *= float(weight_scale)
        else:
            w = np.asarray(weights, dtype=DTYPE)
            if w.shape != w_shape:
                raise ShapeMismatchError(
                    "Convolution weight shape mismatch", expected=w_shape, actual=w.shape
                )

        b = np.zeros(config.num_kernels, dtype=DTYPE) if bias is None else np.asarray(bias, dtype=DTYPE)
        if b.shape != (config.num_kernels,):
            raise ShapeMismatchError(
                "Convolution bias shape mismatch",
                expected=(config.num_kernels,),
                actual=b.shape,
            )

        self.weight_scale = float(weight_scale)
        self.initializer = initializer
        self.weight = Parameter(w)
        self.bias = Parameter(b)

    def _calc(self, x: np.ndarray) -> None:
        self._output[...] = conv2d_forward_cpu(
            x, self.weight.data, self.bias.data, self.config
        )

    def _backward(self, x: np.ndarray, g: np.ndarray) -> None:
        grad_x, grad_w, grad_b = conv2d_backward_cpu(
            x, self.weight.data, g, self.config
        )
        self._input_grad[...] = grad_x
        self.weight.accumulate_grad(grad_w)
        self.bias.accumulate_grad(grad_b)

    def get_config(self) -> Dict[str, Any]:
        return {
            "window": self.config.to_dict(),
            "weight_scale": self.weight_scale,
            "initializer": self.initializer,
        }

    @classmethod
    def from_config(cls, cfg: Dict[str, Any]) -> "Convolution":
        config = ConvolutionConfig.from_dict(cfg["window"])
        return cls(
            config,
            weights=np.zeros((config.num_kernels, config.patch_size)),
            weight_scale=float(cfg.get("weight_scale", 1.0)),
            initializer=str(cfg.get("initializer", "xavier")),
        )
