"""
Domain-level structural typing for NumPy-like arrays and shapes.

This module defines :class:`NDArrayLike`, a backend-agnostic Protocol
describing the subset of ndarray behaviour the module contract relies on,
plus the `Shape` alias used across layer constructors.

Design intent
-------------
- The domain layer does not import NumPy; infrastructure code does.
- Only the operations the core consumes are modelled: shape queries,
  flattening, copying, fill, elementwise arithmetic and matrix multiply.
"""

from __future__ import annotations

from typing import Any, Protocol, Sequence, Tuple, Union, runtime_checkable

Shape = Tuple[int, ...]
ShapeLike = Union[int, Sequence[int]]


@runtime_checkable
class NDArrayLike(Protocol):
    """
    Structural interface for objects that behave like NumPy ndarrays.

    Notes
    -----
    Implementers follow NumPy semantics; whether an operation returns a view
    or a copy is backend-defined.
    """

    @property
    def shape(self) -> Tuple[int, ...]:
        """Shape of the array as a tuple of dimension sizes."""
        ...

    @property
    def size(self) -> int:
        """Total number of elements."""
        ...

    @property
    def dtype(self) -> Any:
        """Element data type."""
        ...

    def reshape(self, *shape: int) -> "NDArrayLike": ...

    def ravel(self) -> "NDArrayLike": ...

    def copy(self) -> "NDArrayLike": ...

    def fill(self, value: Any) -> None: ...

    def __getitem__(self, key: Any) -> Any: ...

    def __setitem__(self, key: Any, value: Any) -> None: ...

    def __add__(self, other: Any) -> "NDArrayLike": ...

    def __mul__(self, other: Any) -> "NDArrayLike": ...

    def __matmul__(self, other: Any) -> "NDArrayLike": ...
