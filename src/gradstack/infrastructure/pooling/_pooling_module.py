"""
Max pooling layer.

`MaxPooling` reduces each channel of a planar input independently: every
window position produces the maximum of that channel's elements under the
window. The layer has no parameters.

Gradient routing
----------------
The forward pass records, per window and channel, the flat input index of
the winning element (first maximum in ``(ky, kx)`` order on ties). The
backward pass sends each window's full gradient to that index only; an
element that wins several overlapping windows receives the sum.
"""

from __future__ import annotations

from typing import Optional

import numpy as np

from ...domain._errors import ConstructionInvariantError, StatePreconditionError
from ...domain._windowing import ConvolutionConfig
from ...domain.model._window_config_mixin import WindowConfigMixin
from .._module import Module
from ..module._serialization_core import register_module
from ..ops.pool2d_cpu import (
    maxpool2d_backward_cpu,
    maxpool2d_forward_cpu,
    window_index_map,
)


@register_module()
class MaxPooling(WindowConfigMixin, Module):
    """
    Per-channel max pooling over a planar input vector.

    Parameters
    ----------
    config : ConvolutionConfig
        Window geometry. `num_kernels` is ignored; the output has
        `num_input_channels` channels.

    Raises
    ------
    ConstructionInvariantError
        If a padding is not smaller than the kernel along its axis (a window
        could then cover padding only).
    """

    def __init__(self, config: ConvolutionConfig) -> None:
        if config.pad_x >= config.kernel_width or config.pad_y >= config.kernel_height:
            raise ConstructionInvariantError(
                "MaxPooling padding must be smaller than the kernel size"
            )
        self.config = config
        super().__init__(
            config.input_size, config.num_input_channels * config.window_count
        )
        self._index_map = window_index_map(config)
        self._argmax: Optional[np.ndarray] = None

    @property
    def argmax(self) -> np.ndarray:
        """
        Flat input index of each window's maximum, shape
        ``(window_count, num_input_channels)``.
        """
        if self._argmax is None:
            raise StatePreconditionError("no pooling result available")
        return self._argmax

    def _calc(self, x: np.ndarray) -> None:
        y, self._argmax = maxpool2d_forward_cpu(x, self.config, self._index_map)
        self._output[...] = y

    def _backward(self, x: np.ndarray, g: np.ndarray) -> None:
        self._input_grad[...] = maxpool2d_backward_cpu(g, self.argmax, self.config)
