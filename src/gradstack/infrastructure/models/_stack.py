"""
Stack combinator.

This module defines `Stack`, a container that composes a list of child
modules by threading each output into the next input:

    y = m_n(...m_2(m_1(x)))

Backward runs the chain in reverse, feeding each member the input it saw
during the forward pass and the input gradient of its successor.

Notes
-----
- Members are registered under numeric names ("0", "1", ...) so parameters
  pack in chain order and serialize as ordered children.
- The stack does not copy member outputs: `output()` is the last member's
  output and `input_gradient()` is the first member's input gradient.
"""

from __future__ import annotations

from typing import Any, Dict, Iterator, List, Optional, Sequence, Tuple

import numpy as np

from ...domain._errors import ConstructionInvariantError, ShapeMismatchError
from .._module import Module
from ..module._serialization_core import register_module


@register_module()
class Stack(Module):
    """
    Sequential composition of modules.

    Parameters
    ----------
    modules : Sequence[Module]
        Members in execution order. Must be non-empty.

    Raises
    ------
    ConstructionInvariantError
        If `modules` is empty or contains a non-Module.
    ShapeMismatchError
        If a member's output shape differs from the next member's input
        shape.
    """

    def __init__(self, modules: Sequence[Module]) -> None:
        members = list(modules)
        if not members:
            raise ConstructionInvariantError("Stack requires at least one module")
        for m in members:
            if not isinstance(m, Module):
                raise ConstructionInvariantError(
                    f"Stack expects Module members, got {type(m).__name__}"
                )
        for i, (a, b) in enumerate(zip(members, members[1:])):
            if tuple(a.output_shape) != tuple(b.input_shape):
                raise ShapeMismatchError(
                    f"Stack members {i} and {i + 1} do not connect",
                    expected=a.output_shape,
                    actual=b.input_shape,
                )

        super().__init__(members[0].input_shape, members[-1].output_shape)
        self._layers: List[Module] = []
        for i, m in enumerate(members):
            self.register_module(str(i), m)
            self._layers.append(m)

    def __len__(self) -> int:
        return len(self._layers)

    def __iter__(self) -> Iterator[Module]:
        return iter(self._layers)

    def __getitem__(self, idx: int) -> Module:
        return self._layers[idx]

    def layers(self) -> Tuple[Module, ...]:
        return tuple(self._layers)

    def _output_buffer(self) -> np.ndarray:
        return self._layers[-1].output()

    def _input_gradient_buffer(self) -> Any:
        return self._layers[0].input_gradient()

    def _calc(self, x: np.ndarray) -> None:
        out = x
        for layer in self._layers:
            out = layer.calc(out).output()

    def _forward(self, x: np.ndarray) -> None:
        out = x
        for layer in self._layers:
            out = layer.forward(out).output()

    def _backward(self, x: np.ndarray, g: np.ndarray) -> None:
        # Input of member i is the output of member i - 1 (or x for i == 0).
        inputs = [x] + [layer.output() for layer in self._layers[:-1]]
        grad = g
        for layer, inp in zip(reversed(self._layers), reversed(inputs)):
            grad = layer.backward(inp, grad).input_gradient()

    def summary(self) -> str:
        """
        Generate a lightweight textual summary of the stack.
        """
        lines = [f"{self.__class__.__name__}("]
        for i, layer in enumerate(self._layers):
            lines.append(
                f"  ({i}): {layer.__class__.__name__} "
                f"{layer.input_shape} -> {layer.output_shape}"
            )
        lines.append(")")
        return "\n".join(lines)

    def get_config(self) -> Dict[str, Any]:
        return {}

    @classmethod
    def from_config(
        cls, cfg: Dict[str, Any], children: Optional[List[Module]] = None
    ) -> "Stack":
        return cls(children or [])
