"""
Shape-only configuration mixin.

This module defines `ShapeConfigMixin`, a helper mixin for layers whose
behaviour is fully determined by their class and the shape they operate on
(e.g. logistic, tanh, softmax).

It provides the JSON serialization and deserialization hooks, allowing these
layers to participate in model configuration export and reconstruction
without per-class boilerplate.
"""

from typing import Any, Dict
from typing_extensions import Self


class ShapeConfigMixin:
    """
    Mixin providing configuration hooks for shape-only modules.

    The host class must expose `input_shape` and accept the shape as its
    first constructor argument.
    """

    def get_config(self) -> Dict[str, Any]:
        """
        Return a JSON-serializable configuration dictionary.

        Returns
        -------
        Dict[str, Any]
            `{"shape": [...]}`.
        """
        return {"shape": [int(d) for d in self.input_shape]}

    @classmethod
    def from_config(cls, cfg: Dict[str, Any]) -> Self:
        """
        Reconstruct the module from a configuration dictionary.

        Parameters
        ----------
        cfg : Dict[str, Any]
            Configuration produced by `get_config`.

        Returns
        -------
        ShapeConfigMixin
            A newly constructed instance of the module.
        """
        return cls(tuple(int(d) for d in cfg["shape"]))
