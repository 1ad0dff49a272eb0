"""
Xavier/Glorot initialisers, scaled by the mean of fan-in and fan-out.

- ``xavier``         : ``N(0, 2 / (fan_in + fan_out))``
- ``xavier_uniform`` : ``U(-a, a)`` with ``a = sqrt(6 / (fan_in + fan_out))``

Both keep activation variance roughly constant through logistic and tanh
layers.
"""

import math

import numpy as np

from ._base import WeightInitializer
from ....domain.utils._weight_initialization import fan_in_and_fan_out


def _glorot_fan(array: np.ndarray) -> float:
    fan_in, fan_out = fan_in_and_fan_out(tuple(array.shape))
    return float(max(1, fan_in) + max(1, fan_out))


@WeightInitializer.register_initializer("xavier")
def xavier(array: np.ndarray, rng: np.random.Generator) -> np.ndarray:
    array[...] = rng.normal(0.0, math.sqrt(2.0 / _glorot_fan(array)), size=array.shape)
    return array


@WeightInitializer.register_initializer("xavier_uniform")
def xavier_uniform(array: np.ndarray, rng: np.random.Generator) -> np.ndarray:
    limit = math.sqrt(6.0 / _glorot_fan(array))
    array[...] = rng.uniform(-limit, limit, size=array.shape)
    return array
