"""
Autoencoder module.

`Autoencoder` pairs an encoder (`up`) with a decoder (`down`) that maps the
encoding back to the input space. The module's output is the encoding; the
decoder exists to shape it.

During `backward`, the decoder's reconstruction error is turned into an extra
gradient on the encoding:

    r      = down(up(x))
    dR/dr  = reconstruction_weight * (r - x)      # R = w/2 * ||r - x||^2
    g_up   = g + down.backward(up(x), dR/dr).input_gradient()

so the encoder is trained both by the downstream gradient `g` and by how well
its encoding can be decoded. Decoder parameters receive only the
reconstruction gradient.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

import numpy as np

from ..domain._errors import ShapeMismatchError
from ._module import Module
from .module._serialization_core import register_module


@register_module()
class Autoencoder(Module):
    """
    Encoder/decoder pair exposing the encoding as its output.

    Parameters
    ----------
    up : Module
        Encoder, ``input_shape -> code shape``.
    down : Module
        Decoder, ``code shape -> input_shape``.
    reconstruction_weight : float, default=1.0
        Scale of the reconstruction gradient.

    Raises
    ------
    ShapeMismatchError
        If ``up.output_shape != down.input_shape`` or
        ``down.output_shape != up.input_shape``.

    Notes
    -----
    Parameters pack as ``up`` followed by ``down``.
    """

    def __init__(
        self, up: Module, down: Module, *, reconstruction_weight: float = 1.0
    ) -> None:
        if tuple(up.output_shape) != tuple(down.input_shape):
            raise ShapeMismatchError(
                "Autoencoder decoder input must match encoder output",
                expected=up.output_shape,
                actual=down.input_shape,
            )
        if tuple(down.output_shape) != tuple(up.input_shape):
            raise ShapeMismatchError(
                "Autoencoder decoder output must match encoder input",
                expected=up.input_shape,
                actual=down.output_shape,
            )
        super().__init__(up.input_shape, up.output_shape)
        self.up = up
        self.down = down
        self.reconstruction_weight = float(reconstruction_weight)

    def reconstruction(self) -> np.ndarray:
        """
        Return the decoder output of the latest calc/forward.
        """
        return self.down.output()

    def reconstruction_error(self, x: Any) -> float:
        """
        Return ``0.5 * ||reconstruction - x||^2`` for the latest pass on `x`.
        """
        diff = self.reconstruction() - np.asarray(x, dtype=np.float64)
        return 0.5 * float(np.dot(diff.ravel(), diff.ravel()))

    def _output_buffer(self) -> np.ndarray:
        return self.up.output()

    def _input_gradient_buffer(self) -> Any:
        return self.up.input_gradient()

    def _calc(self, x: np.ndarray) -> None:
        self.up.calc(x)
        self.down.calc(self.up.output())

    def _forward(self, x: np.ndarray) -> None:
        self.up.forward(x)
        self.down.forward(self.up.output())

    def _backward(self, x: np.ndarray, g: np.ndarray) -> None:
        code = self.up.output()
        recon_grad = self.reconstruction_weight * (self.down.output() - x)
        self.down.backward(code, recon_grad)
        self.up.backward(x, g + self.down.input_gradient())

    def get_config(self) -> Dict[str, Any]:
        return {"reconstruction_weight": self.reconstruction_weight}

    @classmethod
    def from_config(
        cls, cfg: Dict[str, Any], children: Optional[List[Module]] = None
    ) -> "Autoencoder":
        if not children or len(children) != 2:
            raise ValueError("Autoencoder config requires exactly two children")
        up, down = children
        return cls(
            up,
            down,
            reconstruction_weight=float(cfg.get("reconstruction_weight", 1.0)),
        )
