"""
Domain-level optimiser contracts for gradstack.

This module defines the `IOptimizer` protocol, the minimal interface an
optimisation algorithm must provide to be driven by `optimise()`.

Notes
-----
- Optimisers work on flat vectors. Packing a module tree's parameters and
  gradients into those vectors is the caller's job (see `optimise`), so an
  algorithm never needs to know the module structure.
- `compute_parameters` returns the optimiser to keep using; the updated
  parameters are read back through `parameters()`.
"""

from __future__ import annotations

from typing import Any, Protocol, runtime_checkable

from .types._numpy import NDArrayLike


@runtime_checkable
class IOptimizer(Protocol):
    """
    Optimiser interface contract.

    Required methods
    ----------------
    - `compute_parameters(gradient, parameters)` computes new parameters from
      the (already batch-scaled) gradient and the current parameters, updating
      any internal algorithm state.
    - `parameters()` returns the most recently computed parameters.
    """

    def compute_parameters(self, gradient: Any, parameters: Any) -> "IOptimizer":
        """
        Compute updated parameters.

        Parameters
        ----------
        gradient : array-like
            Flat gradient vector.
        parameters : array-like
            Flat parameter vector of the same length.

        Returns
        -------
        IOptimizer
            The optimiser carrying the new parameters and state.
        """
        ...

    def parameters(self) -> NDArrayLike:
        """
        Return the parameters computed by the last `compute_parameters` call.
        """
        ...
