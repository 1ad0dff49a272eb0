"""
The optimise step: pack a module tree, run the algorithm, unpack.
"""

from __future__ import annotations

from typing import Tuple

from .._module import Module
from ._base import Optimiser


def optimise(
    optimiser: Optimiser, module: Module, batch_count: int = 1
) -> Tuple[Optimiser, Module]:
    """
    Apply one optimisation step to every parameter of `module`.

    1. Pack the module's parameters and gradients into the optimiser's
       reusable buffers (recreated if the parameter count changed).
    2. Divide the gradients by `batch_count`; skipped when it is 0.
    3. Compute new parameters and write them back with `update_parameters`,
       which also zeroes every gradient buffer.

    Parameters
    ----------
    optimiser : Optimiser
        Algorithm to run.
    module : Module
        Root of the module tree. Its gradients are the sums accumulated over
        `batch_count` backward passes.
    batch_count : int, default=1
        Number of samples the gradients were accumulated over.

    Returns
    -------
    tuple[Optimiser, Module]
        The optimiser and module to keep using.
    """
    optimiser = optimiser.resize(module.parameter_count())
    optimiser.packed_params[...] = module.parameters()
    optimiser.packed_grads[...] = module.gradient()
    if batch_count != 0:
        optimiser.packed_grads /= float(batch_count)

    optimiser = optimiser.compute_parameters(
        optimiser.packed_grads, optimiser.packed_params
    )
    module = module.update_parameters(optimiser.parameters())
    return optimiser, module
