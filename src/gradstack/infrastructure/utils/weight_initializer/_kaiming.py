"""
Kaiming (He) initialisers, scaled by fan-in only.

- ``kaiming``         : ``N(0, 2 / fan_in)``
- ``kaiming_uniform`` : ``U(-a, a)`` with ``a = sqrt(6 / fan_in)``

These suit weights feeding rectified-linear layers.
"""

import math

import numpy as np

from ._base import WeightInitializer
from ....domain.utils._weight_initialization import fan_in_and_fan_out


def _he_fan(array: np.ndarray) -> float:
    fan_in, _ = fan_in_and_fan_out(tuple(array.shape))
    return float(max(1, fan_in))


@WeightInitializer.register_initializer("kaiming")
def kaiming(array: np.ndarray, rng: np.random.Generator) -> np.ndarray:
    array[...] = rng.normal(0.0, math.sqrt(2.0 / _he_fan(array)), size=array.shape)
    return array


@WeightInitializer.register_initializer("kaiming_uniform")
def kaiming_uniform(array: np.ndarray, rng: np.random.Generator) -> np.ndarray:
    limit = math.sqrt(6.0 / _he_fan(array))
    array[...] = rng.uniform(-limit, limit, size=array.shape)
    return array
