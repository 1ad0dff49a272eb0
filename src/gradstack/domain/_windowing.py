"""
Sliding-window configuration shared by convolution and pooling layers.

`ConvolutionConfig` captures the input geometry, the kernel window, the
zero padding and the stride, and derives the output geometry:

    out_w = floor((input_width  + 2*pad_x - kernel_width)  / stride_x) + 1
    out_h = floor((input_height + 2*pad_y - kernel_height) / stride_y) + 1

Layout
------
Inputs and outputs are flat planar vectors: all of channel 0 (row-major),
then all of channel 1, and so on. A patch is flattened in
`(channel, ky, kx)` order.
"""

from __future__ import annotations

import numbers
from dataclasses import asdict, dataclass, fields
from typing import Any, Dict

from ._errors import ConstructionInvariantError


@dataclass(frozen=True)
class ConvolutionConfig:
    """
    Immutable window geometry for `Convolution` and `MaxPooling`.

    Parameters
    ----------
    input_width, input_height : int
        Spatial size of one input channel.
    num_input_channels : int
        Number of input channels.
    kernel_width, kernel_height : int
        Window size.
    pad_x, pad_y : int, optional
        Padding added on both sides of each spatial axis. Default 0.
    stride_x, stride_y : int, optional
        Window step. Default 1.
    num_kernels : int, optional
        Number of convolution kernels (output channels). Pooling ignores it.
        Default 1.

    Raises
    ------
    ConstructionInvariantError
        If a size or stride is not a positive integer, a padding is negative,
        or the derived output width/height is below 1.
    """

    input_width: int
    input_height: int
    num_input_channels: int
    kernel_width: int
    kernel_height: int
    pad_x: int = 0
    pad_y: int = 0
    stride_x: int = 1
    stride_y: int = 1
    num_kernels: int = 1

    def __post_init__(self) -> None:
        for f in fields(self):
            v = getattr(self, f.name)
            if isinstance(v, bool) or not isinstance(v, numbers.Integral):
                raise ConstructionInvariantError(
                    f"{f.name} must be an integer, got {v!r}"
                )
            v = int(v)
            object.__setattr__(self, f.name, v)
            if f.name in ("pad_x", "pad_y"):
                if v < 0:
                    raise ConstructionInvariantError(f"{f.name} must be >= 0, got {v}")
            elif v <= 0:
                raise ConstructionInvariantError(f"{f.name} must be > 0, got {v}")

        if self.output_width < 1 or self.output_height < 1:
            raise ConstructionInvariantError(
                "Window does not fit the padded input: output size would be "
                f"{self.output_width}x{self.output_height}"
            )

    @property
    def output_width(self) -> int:
        return (
            self.input_width + 2 * self.pad_x - self.kernel_width
        ) // self.stride_x + 1

    @property
    def output_height(self) -> int:
        return (
            self.input_height + 2 * self.pad_y - self.kernel_height
        ) // self.stride_y + 1

    @property
    def window_count(self) -> int:
        """Number of window positions per channel."""
        return self.output_width * self.output_height

    @property
    def patch_size(self) -> int:
        """Number of input elements under one window, across all channels."""
        return self.kernel_width * self.kernel_height * self.num_input_channels

    @property
    def input_size(self) -> int:
        return self.input_width * self.input_height * self.num_input_channels

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "ConvolutionConfig":
        return cls(**{f.name: int(d[f.name]) for f in fields(cls) if f.name in d})
