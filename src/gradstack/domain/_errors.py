"""
Contract-violation exceptions for gradstack.

Every failure in the computation core is a programming-contract violation
surfaced synchronously at the call site. None of these errors is transient,
and nothing in the library catches and retries them.

Error kinds
-----------
- `ShapeMismatchError`: an array does not have the shape a module declared
  (input, output gradient, packed parameter vector), or two shapes that must
  agree at construction time do not (weight rows vs. bias length, autoencoder
  up/down shapes, adjacent stack members).
- `StatePreconditionError`: a result was requested before the operation that
  produces it ran (output before calc/forward, input gradient before
  backward).
- `ConstructionInvariantError`: a constructor received arguments that can
  never form a valid module (empty stack, a non-shape where a shape collection
  is required, a convolution window count below one).

The concrete classes also derive from the matching builtin (`ValueError` /
`RuntimeError`) so callers that only know the builtins still catch them.
"""

from __future__ import annotations

from typing import Optional, Tuple


class GradstackError(Exception):
    """
    Base class for all gradstack contract violations.
    """


class ShapeMismatchError(GradstackError, ValueError):
    """
    Raised when an array shape does not match the shape a module requires.

    Attributes
    ----------
    expected : Optional[tuple]
        The required shape, when one applies.
    actual : Optional[tuple]
        The shape that was received, when one applies.
    """

    def __init__(
        self,
        message: str,
        *,
        expected: Optional[Tuple[int, ...]] = None,
        actual: Optional[Tuple[int, ...]] = None,
    ) -> None:
        """
        Initialize the ShapeMismatchError.

        Parameters
        ----------
        message : str
            Human-readable description of what was being checked.
        expected : Optional[tuple], optional
            The required shape.
        actual : Optional[tuple], optional
            The received shape.
        """
        if expected is not None or actual is not None:
            message = f"{message} (expected {expected}, got {actual})"
        super().__init__(message)
        self.expected = expected
        self.actual = actual


class StatePreconditionError(GradstackError, RuntimeError):
    """
    Raised when a module result is requested before it has been computed.
    """


class ConstructionInvariantError(GradstackError, ValueError):
    """
    Raised when constructor arguments cannot form a valid module.
    """
