"""
Weight initialiser registry.

Importing this package registers the built-in strategies (``xavier``,
``xavier_uniform``, ``kaiming``, ``kaiming_uniform``, ``zeros``, ``ones``)
with `WeightInitializer`.
"""

from . import _constants, _kaiming, _xavier  # noqa: F401
from ._base import WeightInitializer

__all__ = ["WeightInitializer"]
