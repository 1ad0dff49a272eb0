"""
Configuration mixin for sliding-window layers.

This module defines `WindowConfigMixin`, a lightweight mixin that provides
JSON-serializable configuration hooks for layers whose structure is fully
described by a `ConvolutionConfig` (max pooling, and the structural part of
convolution).

Design notes
------------
- Assumes the host class exposes a `config` attribute holding a
  `ConvolutionConfig` and accepts it as its first constructor argument.
- Uses plain Python ints so the result is JSON compatible.
"""

from typing import Any, Dict, Type, TypeVar

from .._windowing import ConvolutionConfig


T = TypeVar("T", bound="WindowConfigMixin")


class WindowConfigMixin:
    """
    Mixin providing JSON serialization hooks for windowed layers.
    """

    def get_config(self) -> Dict[str, Any]:
        """
        Return JSON-serializable configuration for this layer.
        """
        return {"window": self.config.to_dict()}

    @classmethod
    def from_config(cls: Type[T], cfg: Dict[str, Any]) -> T:
        """
        Reconstruct the layer from a JSON configuration dict.
        """
        return cls(ConvolutionConfig.from_dict(cfg["window"]))
