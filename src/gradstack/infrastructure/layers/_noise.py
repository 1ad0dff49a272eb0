"""
Multiplicative Gaussian noise layer.

During `forward`, each element is, with probability `p`, multiplied by a draw
from ``Normal(1, sd)`` and otherwise left unchanged. `calc` passes the input
through. `backward` multiplies the output gradient by the same multiplier
array that the latest `forward` applied.
"""

from __future__ import annotations

from typing import Any, Dict, Optional

import numpy as np

from ...domain._errors import ConstructionInvariantError
from ..module._serialization_core import register_module
from ._dropout import _MaskedNoiseLayer


@register_module()
class GaussianNoise(_MaskedNoiseLayer):
    """
    Training-time multiplicative Gaussian noise.

    Parameters
    ----------
    shape : int or sequence of int
        Input (and output) shape.
    probability : float
        Per-element probability of applying noise, in ``[0, 1]``.
    sd : float
        Standard deviation of the multiplier (mean 1.0). Must be >= 0.
    rng : Optional[np.random.Generator], optional
        Random source for the multipliers.

    Raises
    ------
    ConstructionInvariantError
        If `probability` is outside ``[0, 1]`` or `sd` is negative.
    """

    def __init__(
        self,
        shape: Any,
        probability: float,
        sd: float,
        *,
        rng: Optional[np.random.Generator] = None,
    ) -> None:
        p = float(probability)
        if not 0.0 <= p <= 1.0:
            raise ConstructionInvariantError(
                f"Noise probability must be in [0, 1], got {probability}"
            )
        if not float(sd) >= 0.0:
            raise ConstructionInvariantError(f"sd must be >= 0, got {sd}")
        super().__init__(shape, rng)
        self.probability = p
        self.sd = float(sd)

    def _draw_mask(self) -> np.ndarray:
        hit = self.rng.random(self.input_shape) < self.probability
        noise = self.rng.normal(1.0, self.sd, size=self.input_shape)
        return np.where(hit, noise, 1.0)

    def get_config(self) -> Dict[str, Any]:
        return {
            "shape": list(self.input_shape),
            "probability": self.probability,
            "sd": self.sd,
        }

    @classmethod
    def from_config(cls, cfg: Dict[str, Any]) -> "GaussianNoise":
        return cls(tuple(cfg["shape"]), float(cfg["probability"]), float(cfg["sd"]))
