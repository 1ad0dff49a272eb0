"""
Split combinator.

`Split` feeds the same input to several modules and concatenates their
flattened outputs:

    y = concat(m_1(x).ravel(), m_2(x).ravel(), ...)

Backward slices the output gradient into one piece per member, runs each
member's backward on its piece, and sums the members' input gradients.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional, Sequence, Tuple

import numpy as np

from ...domain._errors import ConstructionInvariantError, ShapeMismatchError
from .._module import Module
from ..module._serialization_core import register_module


@register_module()
class Split(Module):
    """
    Parallel composition of modules sharing one input.

    Parameters
    ----------
    modules : Sequence[Module]
        Members, all with the same `input_shape`. Must be non-empty.

    Raises
    ------
    ConstructionInvariantError
        If `modules` is empty or contains a non-Module.
    ShapeMismatchError
        If members disagree on the input shape.

    Notes
    -----
    The output is one-dimensional with length equal to the sum of the
    members' output sizes.
    """

    def __init__(self, modules: Sequence[Module]) -> None:
        members = list(modules)
        if not members:
            raise ConstructionInvariantError("Split requires at least one module")
        for m in members:
            if not isinstance(m, Module):
                raise ConstructionInvariantError(
                    f"Split expects Module members, got {type(m).__name__}"
                )
        shape = tuple(members[0].input_shape)
        for m in members[1:]:
            if tuple(m.input_shape) != shape:
                raise ShapeMismatchError(
                    "Split members must share an input shape",
                    expected=shape,
                    actual=m.input_shape,
                )

        sizes = [m.output_size for m in members]
        super().__init__(shape, sum(sizes))

        self._layers: List[Module] = []
        for i, m in enumerate(members):
            self.register_module(str(i), m)
            self._layers.append(m)
        self._bounds: List[Tuple[int, int]] = []
        offset = 0
        for n in sizes:
            self._bounds.append((offset, offset + n))
            offset += n

    def __len__(self) -> int:
        return len(self._layers)

    def layers(self) -> Tuple[Module, ...]:
        return tuple(self._layers)

    def _gather(self) -> None:
        for layer, (lo, hi) in zip(self._layers, self._bounds):
            self._output[lo:hi] = layer.output().ravel()

    def _calc(self, x: np.ndarray) -> None:
        for layer in self._layers:
            layer.calc(x)
        self._gather()

    def _forward(self, x: np.ndarray) -> None:
        for layer in self._layers:
            layer.forward(x)
        self._gather()

    def _backward(self, x: np.ndarray, g: np.ndarray) -> None:
        self._input_grad.fill(0.0)
        for layer, (lo, hi) in zip(self._layers, self._bounds):
            piece = g[lo:hi].reshape(layer.output_shape)
            self._input_grad += layer.backward(x, piece).input_gradient()

    def get_config(self) -> Dict[str, Any]:
        return {}

    @classmethod
    def from_config(
        cls, cfg: Dict[str, Any], children: Optional[List[Module]] = None
    ) -> "Split":
        return cls(children or [])
