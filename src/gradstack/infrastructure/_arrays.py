"""
NumPy array helpers shared by every module implementation.

All module buffers are `float64` arrays. Inputs are coerced to that dtype and
validated against the shape a module declared; shape violations raise
`ShapeMismatchError` at the call site instead of being broadcast away.
"""

from __future__ import annotations

import numbers
from typing import Any, Iterable, Sequence, Tuple

import numpy as np

from ..domain._errors import ConstructionInvariantError, ShapeMismatchError

DTYPE = np.float64


def as_shape(value: Any, what: str = "shape") -> Tuple[int, ...]:
    """
    Normalize an int or a sequence of ints into a shape tuple.

    Raises
    ------
    ConstructionInvariantError
        If `value` is not a positive int or a non-empty sequence of positive
        ints.
    """
    if isinstance(value, numbers.Integral) and not isinstance(value, bool):
        dims: Sequence[Any] = (value,)
    elif isinstance(value, (tuple, list)):
        dims = value
    else:
        raise ConstructionInvariantError(f"{what} must be a shape, got {value!r}")

    if len(dims) == 0:
        raise ConstructionInvariantError(f"{what} must not be empty")

    out = []
    for d in dims:
        if isinstance(d, bool) or not isinstance(d, numbers.Integral) or d <= 0:
            raise ConstructionInvariantError(
                f"{what} must contain positive integers, got {value!r}"
            )
        out.append(int(d))
    return tuple(out)


def as_array(x: Any, shape: Tuple[int, ...], what: str = "input") -> np.ndarray:
    """
    Coerce `x` to a float64 array and check that it has exactly `shape`.
    """
    arr = np.asarray(x, dtype=DTYPE)
    if arr.shape != tuple(shape):
        raise ShapeMismatchError(
            f"{what} shape mismatch", expected=tuple(shape), actual=arr.shape
        )
    return arr


def readonly(arr: np.ndarray) -> np.ndarray:
    """
    Return a non-writeable view of `arr`.
    """
    view = arr.view()
    view.flags.writeable = False
    return view


def concat_flat(arrays: Iterable[np.ndarray]) -> np.ndarray:
    """
    Concatenate the flattened contents of `arrays`; empty input gives a
    length-0 vector.
    """
    parts = [np.ravel(a) for a in arrays]
    if not parts:
        return np.zeros(0, dtype=DTYPE)
    return np.concatenate(parts).astype(DTYPE, copy=False)


def same_input(a: Any, b: Any) -> bool:
    """
    Exact equality for module inputs (arrays or tuples of arrays).
    """
    if isinstance(a, tuple) or isinstance(b, tuple):
        if not (isinstance(a, tuple) and isinstance(b, tuple)) or len(a) != len(b):
            return False
        return all(same_input(u, v) for u, v in zip(a, b))
    return bool(np.array_equal(a, b))


def snapshot(x: Any) -> Any:
    """
    Copy an input (array or tuple of arrays) so later caller mutation does
    not alias the stored value.
    """
    if isinstance(x, tuple):
        return tuple(snapshot(v) for v in x)
    return np.array(x, dtype=DTYPE, copy=True)
