"""
Name-based dispatch for weight initialisers.

A strategy is a plain function ``fn(array, rng) -> array`` that fills a
float64 weight matrix in place. Strategies register themselves under a name:

    @WeightInitializer.register_initializer("kaiming")
    def kaiming(array, rng):
        ...

and layers look them up by the name stored in their configuration:

    WeightInitializer(config.initializer)(weights, rng)
"""

from __future__ import annotations

from typing import Callable, ClassVar, Dict, Optional, Tuple, TypeVar

import numpy as np

from ....domain.utils._weight_initialization import _WeightInitializer

InitFn = Callable[[np.ndarray, np.random.Generator], np.ndarray]
F = TypeVar("F", bound=InitFn)


class WeightInitializer(_WeightInitializer):
    """
    Resolve a registered strategy by name and apply it.

    Parameters
    ----------
    initializer_name : str
        Registry key, e.g. ``"xavier"``.

    Raises
    ------
    ValueError
        If no strategy is registered under `initializer_name`.
    """

    INITIALIZERS: ClassVar[Dict[str, InitFn]] = {}

    def __init__(self, initializer_name: str) -> None:
        fn = self.INITIALIZERS.get(initializer_name)
        if fn is None:
            known = ", ".join(self.available()) or "<none>"
            raise ValueError(
                f"Unsupported initializer name: {initializer_name!r}. Available: {known}"
            )
        self.name = initializer_name
        self._fn = fn

    @classmethod
    def register_initializer(cls, name: str, *, overwrite: bool = False) -> Callable[[F], F]:
        """
        Decorator registering a strategy under `name`.

        Re-registering an existing name raises `ValueError` unless
        `overwrite` is True.
        """
        if not isinstance(name, str) or not name:
            raise ValueError("Initializer name must be a non-empty string")

        def decorator(fn: F) -> F:
            if name in cls.INITIALIZERS and not overwrite:
                raise ValueError(f"Initializer already registered: {name!r}")
            cls.INITIALIZERS[name] = fn
            return fn

        return decorator

    @classmethod
    def available(cls) -> Tuple[str, ...]:
        return tuple(sorted(cls.INITIALIZERS))

    def __call__(
        self, array: np.ndarray, rng: Optional[np.random.Generator] = None
    ) -> np.ndarray:
        """
        Fill `array` in place; a fresh default generator is used when `rng`
        is None.
        """
        return self._fn(array, rng if rng is not None else np.random.default_rng())

    def __repr__(self) -> str:
        return f"WeightInitializer({self.name!r})"
