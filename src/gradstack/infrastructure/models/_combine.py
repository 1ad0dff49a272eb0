"""
Function-backed modules: `Combine` (fan-in) and `FunctionModule`.

Both wrap a caller-supplied pure function:

- `Combine` applies ``fn(*inputs)`` to a tuple of direct inputs, or to the
  outputs of member modules that all see the same input.
- `FunctionModule` takes one input array and applies ``fn(x)``.

The function itself has no parameters; a `Combine` with members packs the
members' parameters.

Gradients
---------
If a `gradient_fn` is supplied, backward delegates to it:

- Combine:        ``gradient_fn(inputs, output_gradient) -> one array per input``
- FunctionModule: ``gradient_fn(x, output_gradient) -> array``

Without a `gradient_fn` every input gradient is zero. This fallback keeps the
module usable in inference-only pipelines, but anything upstream of it
receives no training signal; a `RuntimeWarning` is emitted the first time such
a module runs backward.

Neither module can be serialized (the wrapped callables are arbitrary Python
code).
"""

from __future__ import annotations

import numbers
import warnings
from typing import Any, Callable, List, Optional, Sequence, Tuple

import numpy as np

from ...domain._errors import ConstructionInvariantError, ShapeMismatchError
from .._arrays import DTYPE, as_array, as_shape
from .._module import Module


def _zero_gradient_warning(owner: str) -> None:
    warnings.warn(
        f"{owner} has no gradient_fn; its input gradient is zero and upstream "
        "modules receive no training signal.",
        RuntimeWarning,
        stacklevel=4,
    )


def _result_array(value: Any, shape: Tuple[int, ...], what: str) -> np.ndarray:
    arr = np.asarray(value, dtype=DTYPE)
    if arr.shape != shape:
        raise ShapeMismatchError(f"{what} shape mismatch", expected=shape, actual=arr.shape)
    return arr


def _is_shape(value: Any) -> bool:
    if isinstance(value, numbers.Integral) and not isinstance(value, bool):
        return True
    return isinstance(value, (tuple, list))


class Combine(Module):
    """
    Fan-in module applying a pure function to several inputs.

    Two forms are supported:

    - direct inputs, ``Combine(fn, input_shapes)``: the module's input is a
      tuple with one array per shape and ``fn(*inputs)`` is applied to it.
    - sub-module inputs, ``Combine(fn, modules=[a, b, ...])``: every member
      receives the same input array and ``fn(a_out, b_out, ...)`` is applied
      to their outputs. The module then has an ordinary array input and can
      sit inside a `Stack` or `Split`.

    Parameters
    ----------
    fn : Callable[..., array-like]
        Called with one positional argument per input.
    input_shapes : sequence of shapes, optional
        One shape per direct input. Mutually exclusive with `modules`.
    output_shape : shape, optional
        Output shape. Inferred by evaluating `fn` on zero inputs when omitted.
    gradient_fn : Callable, optional
        ``gradient_fn(inputs, output_gradient)`` returning one gradient per
        input of `fn`. With members these gradients are routed into each
        member's backward and the members' input gradients are summed.
    modules : sequence of Module, optional
        Members sharing one input shape. Registered as children ("0", "1",
        ...) so their parameters pack in member order.

    Raises
    ------
    ConstructionInvariantError
        If `fn` is not callable, neither or both of `input_shapes` and
        `modules` are given, or either is empty or malformed.
    ShapeMismatchError
        If members disagree on the input shape.

    Notes
    -----
    In the direct form `input_shape` is a tuple of shape tuples and
    `input_gradient()` returns a tuple of arrays.
    """

    def __init__(
        self,
        fn: Callable[..., Any],
        input_shapes: Optional[Sequence[Any]] = None,
        output_shape: Any = None,
        gradient_fn: Optional[Callable[..., Any]] = None,
        *,
        modules: Optional[Sequence[Module]] = None,
    ) -> None:
        if not callable(fn):
            raise ConstructionInvariantError("Combine fn must be callable")
        if (input_shapes is None) == (modules is None):
            raise ConstructionInvariantError(
                "Combine takes exactly one of input_shapes or modules"
            )

        members: List[Module] = []
        if modules is not None:
            members = list(modules)
            if not members or not all(isinstance(m, Module) for m in members):
                raise ConstructionInvariantError(
                    "Combine modules must be a non-empty sequence of Modules"
                )
            shape = tuple(members[0].input_shape)
            for m in members[1:]:
                if tuple(m.input_shape) != shape:
                    raise ShapeMismatchError(
                        "Combine members must share an input shape",
                        expected=shape,
                        actual=m.input_shape,
                    )
            in_shape: Any = shape
            arg_shapes = [m.output_shape for m in members]
        else:
            if (
                not isinstance(input_shapes, (tuple, list))
                or not input_shapes
                or not all(_is_shape(s) for s in input_shapes)
            ):
                raise ConstructionInvariantError(
                    f"Combine input_shapes must be a collection of shapes, got {input_shapes!r}"
                )
            in_shape = tuple(as_shape(s, "input shape") for s in input_shapes)
            arg_shapes = list(in_shape)

        if output_shape is None:
            output_shape = np.shape(fn(*(np.zeros(s, dtype=DTYPE) for s in arg_shapes)))

        self._direct = modules is None
        super().__init__(in_shape, output_shape)
        self.fn = fn
        self.gradient_fn = gradient_fn
        self._warned = False
        self._members: List[Module] = []
        for i, m in enumerate(members):
            self.register_module(str(i), m)
            self._members.append(m)

    def members(self) -> Tuple[Module, ...]:
        return tuple(self._members)

    def _normalize_input_shape(self, input_shape: Any) -> Any:
        if self._direct:
            return tuple(as_shape(s, "input shape") for s in input_shape)
        return super()._normalize_input_shape(input_shape)

    def _allocate_input_gradient(self) -> Any:
        if self._direct:
            return tuple(np.zeros(s, dtype=DTYPE) for s in self._input_shape)
        return super()._allocate_input_gradient()

    def _check_input(self, x: Any) -> Any:
        if not self._direct:
            return super()._check_input(x)
        if not isinstance(x, (tuple, list)) or len(x) != len(self._input_shape):
            raise ShapeMismatchError(
                f"Combine expects a tuple of {len(self._input_shape)} inputs"
            )
        return tuple(
            as_array(v, s, f"input {i}")
            for i, (v, s) in enumerate(zip(x, self._input_shape))
        )

    @property
    def input_size(self) -> int:
        if self._direct:
            return sum(int(np.prod(s)) for s in self._input_shape)
        return super().input_size

    def _arguments(self, x: Any) -> Tuple[np.ndarray, ...]:
        if self._direct:
            return tuple(x)
        return tuple(m.output() for m in self._members)

    def _calc(self, x: Any) -> None:
        for m in self._members:
            m.calc(x)
        self._apply(x)

    def _forward(self, x: Any) -> None:
        for m in self._members:
            m.forward(x)
        self._apply(x)

    def _apply(self, x: Any) -> None:
        out = self.fn(*self._arguments(x))
        self._output[...] = _result_array(out, self._output_shape, "Combine output")

    def _zero_input_gradient(self) -> None:
        if self._direct:
            for buf in self._input_grad:
                buf.fill(0.0)
        else:
            self._input_grad.fill(0.0)

    def _backward(self, x: Any, g: np.ndarray) -> None:
        if self.gradient_fn is None:
            if not self._warned:
                _zero_gradient_warning("Combine")
                self._warned = True
            self._zero_input_gradient()
            return

        args = self._arguments(x)
        grads = tuple(self.gradient_fn(args, g))
        if len(grads) != len(args):
            raise ShapeMismatchError(
                f"Combine gradient_fn returned {len(grads)} gradients, "
                f"expected {len(args)}"
            )
        grads = tuple(
            _result_array(grad, arg.shape, f"Combine gradient {i}")
            for i, (arg, grad) in enumerate(zip(args, grads))
        )

        if self._direct:
            for buf, grad in zip(self._input_grad, grads):
                buf[...] = grad
            return

        self._input_grad.fill(0.0)
        for m, grad in zip(self._members, grads):
            self._input_grad += m.backward(x, grad).input_gradient()


class FunctionModule(Module):
    """
    Wrap a pure single-input function as a parameterless module.

    Parameters
    ----------
    fn : Callable[[np.ndarray], array-like]
        The function.
    input_shape : shape
        Input shape.
    output_shape : shape, optional
        Output shape. Inferred by evaluating `fn` on a zero input when
        omitted.
    gradient_fn : Callable, optional
        ``gradient_fn(x, output_gradient)`` returning the input gradient.
    """

    def __init__(
        self,
        fn: Callable[[np.ndarray], Any],
        input_shape: Any,
        output_shape: Any = None,
        gradient_fn: Optional[Callable[[np.ndarray, np.ndarray], Any]] = None,
    ) -> None:
        if not callable(fn):
            raise ConstructionInvariantError("FunctionModule fn must be callable")
        in_shape = as_shape(input_shape, "input_shape")
        if output_shape is None:
            output_shape = np.shape(fn(np.zeros(in_shape, dtype=DTYPE)))
        super().__init__(in_shape, output_shape)
        self.fn = fn
        self.gradient_fn = gradient_fn
        self._warned = False

    def _calc(self, x: np.ndarray) -> None:
        self._output[...] = _result_array(
            self.fn(x), self._output_shape, "FunctionModule output"
        )

    def _backward(self, x: np.ndarray, g: np.ndarray) -> None:
        if self.gradient_fn is None:
            if not self._warned:
                _zero_gradient_warning("FunctionModule")
                self._warned = True
            self._input_grad.fill(0.0)
            return
        self._input_grad[...] = _result_array(
            self.gradient_fn(x, g), self._input_shape, "FunctionModule gradient"
        )
