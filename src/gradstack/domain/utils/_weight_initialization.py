"""
Weight initialisation contract and fan computation.

gradstack weight matrices are always laid out ``(outputs, inputs)``: a
linear layer stores ``(n_outputs, n_inputs)`` and a convolution stores
``(num_kernels, patch_size)``. Fan-in is therefore the row length and
fan-out the row count.
"""

from abc import ABC, abstractmethod
from typing import Any, Tuple

from ..types._numpy import NDArrayLike


class _WeightInitializer(ABC):
    """
    Name-dispatched initialiser: construct with a registered strategy name,
    then call it on an array to fill that array in place.
    """

    @abstractmethod
    def __call__(self, array: NDArrayLike, *args: Any, **kwargs: Any) -> NDArrayLike:
        ...

    @classmethod
    @abstractmethod
    def available(cls) -> Tuple[str, ...]:
        """
        Names accepted by the constructor.
        """
        ...


def fan_in_and_fan_out(shape: Tuple[int, ...]) -> Tuple[int, int]:
    """
    Return ``(fan_in, fan_out)`` for an ``(outputs, inputs)`` weight shape.

    A vector counts as both its own fan-in and fan-out; trailing dimensions
    beyond the second multiply into the fan-in.
    """
    if not shape:
        return 1, 1
    if len(shape) == 1:
        return int(shape[0]), int(shape[0])
    fan_in = 1
    for d in shape[1:]:
        fan_in *= int(d)
    return fan_in, int(shape[0])
