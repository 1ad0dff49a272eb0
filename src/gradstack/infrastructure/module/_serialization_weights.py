"""
Parameter and state-buffer payloads for JSON checkpoints.

Arrays are keyed by the dotted names from `named_parameters()` /
`named_buffers()` (``"0.weight"``, ``"1.acc_mean"``) and encoded with
`encoding._b64`. Loading writes into the existing arrays of an already
rebuilt module tree, checking every key and shape.
"""

from __future__ import annotations

from typing import Any, Dict, Iterable, Tuple

import numpy as np

from ...domain._errors import ShapeMismatchError
from ..encoding._b64 import ndarray_to_payload, payload_to_ndarray


def _named_arrays(model: Any) -> Iterable[Tuple[str, np.ndarray]]:
    for name, p in model.named_parameters():
        yield str(name), p.data


def extract_state_payload(model: Any) -> Dict[str, Dict[str, Any]]:
    """
    Extract parameter values into JSON payloads keyed by dotted parameter
    name (e.g. ``"0.weight"``).
    """
    return {name: ndarray_to_payload(arr) for name, arr in _named_arrays(model)}


def extract_buffer_payload(model: Any) -> Dict[str, Dict[str, Any]]:
    """
    Extract non-trainable state buffers (running statistics) into JSON
    payloads keyed by dotted buffer name.
    """
    return {str(name): ndarray_to_payload(buf) for name, buf in model.named_buffers()}


def _load_into(target: np.ndarray, key: str, payload: Dict[str, Any]) -> None:
    arr = payload_to_ndarray(payload)
    if tuple(arr.shape) != tuple(target.shape):
        raise ShapeMismatchError(
            f"checkpoint entry '{key}' shape mismatch",
            expected=target.shape,
            actual=arr.shape,
        )
    target[...] = arr


def load_state_payload_(model: Any, payloads: Dict[str, Dict[str, Any]]) -> None:
    """
    In-place load of parameters from JSON payloads.

    Gradients are reset afterwards and cached `calc` results invalidated, as
    with `update_parameters`.

    Raises
    ------
    KeyError
        If a parameter key is missing in the checkpoint.
    ShapeMismatchError
        If a parameter shape does not match.
    """
    for name, p in model.named_parameters():
        key = str(name)
        if key not in payloads:
            raise KeyError(f"Missing parameter in checkpoint: '{key}'")
        _load_into(p.data, key, payloads[key])

    model.update_parameters(model.parameters())


def load_buffer_payload_(model: Any, payloads: Dict[str, Dict[str, Any]]) -> None:
    """
    In-place load of state buffers from JSON payloads.

    Raises
    ------
    KeyError
        If a buffer key is missing in the checkpoint.
    ShapeMismatchError
        If a buffer shape does not match.
    """
    for name, buf in model.named_buffers():
        key = str(name)
        if key not in payloads:
            raise KeyError(f"Missing buffer in checkpoint: '{key}'")
        _load_into(buf, key, payloads[key])
