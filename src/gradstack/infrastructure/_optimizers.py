"""
Optimizer primitives for gradstack.

Convenience import point for the optimisers under `optimizers/` and the
`optimise` step that drives them.

Design notes
------------
- Optimisers operate on flat vectors only; `optimise` packs a module tree's
  parameters and gradients in the same pre-order used by
  `Module.parameters()` and unpacks the result with `update_parameters`.
- Algorithm state (velocity, moments, accumulators) is per packed element and
  resets when the parameter count changes.
"""

from .optimizers._adadelta import AdaDelta
from .optimizers._adam import Adam
from .optimizers._base import Optimiser
from .optimizers._optimise import optimise
from .optimizers._sgd import SGD

__all__ = ["AdaDelta", "Adam", "Optimiser", "SGD", "optimise"]
