"""
Infrastructure module base class.

This module provides the concrete `Module` implementation that satisfies the
domain-level `IModule` protocol. It implements everything layers share:

- output / input-gradient buffer ownership and read-only exposure
- the calc / forward / backward driver (input validation, idempotent calc,
  state preconditions)
- parameter and submodule registration and pre-order traversal
- flat parameter / gradient packing and `update_parameters`
- deep cloning and the serialization hooks

Concrete layers only implement the numeric hooks:

- `_calc(x)`: write the inference output into `self._output`
- `_forward(x)`: write the training output (defaults to `_calc`)
- `_prepare_forward()`: draw training-only state before `_forward`
- `_backward(x, g)`: accumulate parameter gradients and write
  `self._input_grad`
- `_after_parameter_update()`: enforce constraints after new parameters land
"""

from __future__ import annotations

import copy
from typing import Any, Dict, Iterator, List, Optional, Tuple

import numpy as np

from ..domain._errors import ShapeMismatchError, StatePreconditionError
from ..domain._module import IModule
from ._arrays import DTYPE, as_array, as_shape, concat_flat, readonly, same_input, snapshot
from ._parameter import Parameter


class Module(IModule):
    """
    Infrastructure base class for layers and combinators.

    Parameters
    ----------
    input_shape : int or sequence of int
        Shape every input must have.
    output_shape : int or sequence of int
        Shape of the output.

    Attributes
    ----------
    _parameters : Dict[str, Parameter]
        Parameters registered on this module, in registration order.
    _modules : Dict[str, Module]
        Child modules registered on this module, in registration order.

    Notes
    -----
    - Parameters and submodules are registered implicitly on attribute
      assignment (``self.weight = Parameter(...)``) or explicitly via
      `register_parameter` / `register_module`.
    - Mutating operations return `self`; callers keep using the returned
      module.
    - `backward` trusts that `x` is the input of the latest `calc`/`forward`;
      passing anything else yields meaningless gradients, not an error.
    """

    def __init__(self, input_shape: Any, output_shape: Any) -> None:
        # Use super().__setattr__ to avoid triggering our __setattr__ logic.
        super().__setattr__("_parameters", {})  # type: ignore[assignment]
        super().__setattr__("_modules", {})  # type: ignore[assignment]

        self._input_shape = self._normalize_input_shape(input_shape)
        self._output_shape = as_shape(output_shape, "output_shape")
        self._output = np.zeros(self._output_shape, dtype=DTYPE)
        self._input_grad = self._allocate_input_gradient()
        self._has_output = False
        self._has_input_grad = False
        self._calc_input: Optional[Any] = None

    def __setattr__(self, name: str, value) -> None:
        """
        Intercept attribute assignment to auto-register Parameters and child
        Modules.
        """
        if name in {"_parameters", "_modules"}:
            super().__setattr__(name, value)
            return

        if value is None:
            if hasattr(self, "_parameters") and name in self._parameters:
                self._parameters.pop(name, None)
            if hasattr(self, "_modules") and name in self._modules:
                self._modules.pop(name, None)
            super().__setattr__(name, value)
            return

        if isinstance(value, Parameter):
            self._parameters[name] = value
        elif isinstance(value, Module):
            self._modules[name] = value

        super().__setattr__(name, value)

    def register_parameter(self, name: str, param: Optional[Parameter]) -> None:
        """
        Register a parameter with this module.

        Notes
        -----
        - If `param` is None, nothing is registered.
        - This also sets the attribute so `self.<name>` works.
        """
        if param is None:
            return
        self._parameters[name] = param
        super().__setattr__(name, param)

    def register_module(self, name: str, module: Optional["Module"]) -> None:
        """
        Register a child module with this module.

        Notes
        -----
        - If `module` is None, nothing is registered.
        - This also sets the attribute so `self.<name>` works.
        """
        if module is None:
            return
        self._modules[name] = module
        super().__setattr__(name, module)

    # ------------------------------------------------------------------
    # Shapes
    # ------------------------------------------------------------------
    def _normalize_input_shape(self, input_shape: Any) -> Any:
        return as_shape(input_shape, "input_shape")

    def _allocate_input_gradient(self) -> Any:
        return np.zeros(self._input_shape, dtype=DTYPE)

    def _check_input(self, x: Any) -> Any:
        return as_array(x, self._input_shape, "input")

    @property
    def input_shape(self) -> Tuple[int, ...]:
        return self._input_shape

    @property
    def output_shape(self) -> Tuple[int, ...]:
        return self._output_shape

    @property
    def input_size(self) -> int:
        return int(np.prod(self._input_shape))

    @property
    def output_size(self) -> int:
        return int(np.prod(self._output_shape))

    # ------------------------------------------------------------------
    # Computation driver
    # ------------------------------------------------------------------
    def calc(self, x: Any) -> "Module":
        """
        Evaluate the module for inference.

        Calling `calc` again with an input equal to the previous `calc` input
        is a no-op. `forward` and `update_parameters` invalidate that cache.
        Modules with children never take that shortcut: a child may have
        changed on its own, and each child keeps its own cache.

        Raises
        ------
        ShapeMismatchError
            If `x` does not have `input_shape`.
        """
        x = self._check_input(x)
        if (
            not self._modules
            and self._has_output
            and self._calc_input is not None
            and same_input(self._calc_input, x)
        ):
            return self
        self._calc(x)
        self._has_output = True
        self._calc_input = snapshot(x)
        return self

    def forward(self, x: Any) -> "Module":
        """
        Evaluate the module for training.

        Training-only state (e.g. dropout masks) is prepared first, and the
        output is always recomputed.

        Raises
        ------
        ShapeMismatchError
            If `x` does not have `input_shape`.
        """
        x = self._check_input(x)
        self._prepare_forward()
        self._forward(x)
        self._has_output = True
        self._calc_input = None
        return self

    def backward(self, x: Any, output_gradient: Any) -> "Module":
        """
        Propagate `output_gradient` back through the module.

        Parameter gradients are accumulated; the input gradient is
        overwritten.

        Raises
        ------
        ShapeMismatchError
            If `x` or `output_gradient` has the wrong shape.
        StatePreconditionError
            If neither `calc` nor `forward` has run.
        """
        x = self._check_input(x)
        g = as_array(output_gradient, self._output_shape, "output gradient")
        if not self._has_output:
            raise StatePreconditionError(
                f"{type(self).__name__}.backward requires a prior forward or calc"
            )
        self._backward(x, g)
        self._has_input_grad = True
        return self

    def output(self) -> np.ndarray:
        """
        Return a read-only view of the last computed output.

        Raises
        ------
        StatePreconditionError
            If neither `calc` nor `forward` has run.
        """
        if not self._has_output:
            raise StatePreconditionError("no output available")
        return readonly(self._output_buffer())

    def input_gradient(self) -> Any:
        """
        Return a read-only view of the last computed input gradient.

        Raises
        ------
        StatePreconditionError
            If `backward` has not run.
        """
        if not self._has_input_grad:
            raise StatePreconditionError("no input gradient available")
        buf = self._input_gradient_buffer()
        if isinstance(buf, tuple):
            return tuple(readonly(b) for b in buf)
        return readonly(buf)

    def _output_buffer(self) -> np.ndarray:
        return self._output

    def _input_gradient_buffer(self) -> Any:
        return self._input_grad

    def _calc(self, x: Any) -> None:
        raise NotImplementedError

    def _forward(self, x: Any) -> None:
        self._calc(x)

    def _prepare_forward(self) -> None:
        pass

    def _backward(self, x: Any, g: np.ndarray) -> None:
        raise NotImplementedError

    def _after_parameter_update(self) -> None:
        pass

    def __call__(self, x: Any) -> np.ndarray:
        """
        Evaluate for inference and return the output.
        """
        return self.calc(x).output()

    # ------------------------------------------------------------------
    # Parameters
    # ------------------------------------------------------------------
    def modules(self) -> Iterator["Module"]:
        """
        Iterate over this module and all descendants in pre-order.
        """
        yield self
        for m in self._modules.values():
            yield from m.modules()

    def iter_parameters(self) -> Iterator[Parameter]:
        """
        Iterate over parameters in pre-order: own parameters first, then each
        child in registration order.
        """
        for p in self._parameters.values():
            yield p
        for m in self._modules.values():
            yield from m.iter_parameters()

    def parameter_list(self) -> List[Parameter]:
        return list(self.iter_parameters())

    def named_parameters(self, prefix: str = "") -> Iterator[Tuple[str, Parameter]]:
        """
        Return an iterator over (name, parameter) pairs (recursive).

        Names are dotted paths such as ``"0.weight"`` for a stack member.
        """
        base = prefix + "." if prefix else ""

        for name, p in self._parameters.items():
            yield (f"{base}{name}", p)

        for child_name, child in self._modules.items():
            yield from child.named_parameters(f"{base}{child_name}")

    def _state_buffers(self) -> Dict[str, np.ndarray]:
        """
        Non-trainable arrays that belong in a checkpoint (e.g. running
        statistics). Empty by default.
        """
        return {}

    def named_buffers(self, prefix: str = "") -> Iterator[Tuple[str, np.ndarray]]:
        """
        Return an iterator over (name, buffer) pairs (recursive), named like
        `named_parameters`.
        """
        base = prefix + "." if prefix else ""

        for name, buf in self._state_buffers().items():
            yield (f"{base}{name}", buf)

        for child_name, child in self._modules.items():
            yield from child.named_buffers(f"{base}{child_name}")

    def parameters(self) -> np.ndarray:
        """
        Return all parameter values as one flat vector (pre-order).
        """
        return concat_flat(p.data for p in self.iter_parameters())

    def gradient(self) -> np.ndarray:
        """
        Return all accumulated gradients as one flat vector (pre-order).
        """
        return concat_flat(p.grad for p in self.iter_parameters())

    def parameter_count(self) -> int:
        return sum(p.size for p in self.iter_parameters())

    def zero_grad(self) -> None:
        """
        Reset every gradient buffer in the tree.
        """
        for p in self.iter_parameters():
            p.zero_grad()

    def update_parameters(self, parameters: Any) -> "Module":
        """
        Overwrite all parameters from a flat vector and reset gradients.

        The vector is consumed in the same pre-order used by `parameters()`.
        Afterwards every gradient buffer is zero, every cached `calc` result
        is invalidated, and each module's post-update constraint runs.

        Raises
        ------
        ShapeMismatchError
            If the vector length differs from `parameter_count()`.
        """
        flat = np.asarray(parameters, dtype=DTYPE).ravel()
        params = self.parameter_list()
        total = sum(p.size for p in params)
        if flat.size != total:
            raise ShapeMismatchError(
                "packed parameter length mismatch", expected=(total,), actual=flat.shape
            )

        offset = 0
        for p in params:
            n = p.size
            p.copy_from(flat[offset : offset + n].reshape(p.shape))
            p.zero_grad()
            offset += n

        for m in self.modules():
            m._calc_input = None
            m._after_parameter_update()
        return self

    def clone(self) -> "Module":
        """
        Return a deep copy sharing no mutable state with this module.

        Random sources are not duplicated: each module of the copy gets a
        fresh generator spawned from its original, so a clone draws different
        training masks.
        """
        twin = copy.deepcopy(self)
        for src, dst in zip(self.modules(), twin.modules()):
            dst._after_clone(src)
        return twin

    def _after_clone(self, source: "Module") -> None:
        pass

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(input_shape={self.input_shape}, "
            f"output_shape={self.output_shape})"
        )

    # ------------------------------------------------------------------
    # Serialization hooks (opt-in contract)
    # ------------------------------------------------------------------
    def get_config(self) -> Dict[str, Any]:
        """
        Return a JSON-serializable configuration for this module.

        Subclasses that participate in JSON-based save/load MUST override
        this method.

        Raises
        ------
        NotImplementedError
            If the module does not support JSON serialization.
        """
        raise NotImplementedError(
            f"{self.__class__.__name__} does not implement get_config(). "
            "This module cannot be serialized to JSON."
        )

    @classmethod
    def from_config(
        cls, cfg: Dict[str, Any], children: Optional[List["Module"]] = None
    ) -> "Module":
        """
        Reconstruct a module from a JSON configuration.

        Parameters
        ----------
        cfg : Dict[str, Any]
            Configuration produced by `get_config`.
        children : Optional[List[Module]]
            Already rebuilt child modules, in registration order, for
            container modules.

        Raises
        ------
        NotImplementedError
            If the module does not support JSON deserialization.
        """
        raise NotImplementedError(
            f"{cls.__name__} does not implement from_config(). "
            "This module cannot be deserialized from JSON."
        )
