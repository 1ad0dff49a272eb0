"""
Base64 array payloads for JSON checkpoints.

Every checkpointed array is written as little-endian float64 bytes, base64
encoded, next to its shape:

    {"b64": "AAAAAAAA8D8=", "dtype": "<f8", "shape": [1], "order": "C"}

Reading a payload always yields a fresh, writable float64 array, so loaded
values never alias the decoded byte string.
"""

from __future__ import annotations

import base64
from typing import Any, Dict

import numpy as np

PAYLOAD_DTYPE = "<f8"


def ndarray_to_payload(arr: Any) -> Dict[str, Any]:
    """
    Encode `arr` as a JSON-safe payload dictionary.
    """
    a = np.ascontiguousarray(arr, dtype=PAYLOAD_DTYPE)
    return {
        "b64": base64.b64encode(a.tobytes()).decode("ascii"),
        "dtype": PAYLOAD_DTYPE,
        "shape": [int(d) for d in a.shape],
        "order": "C",
    }


def payload_to_ndarray(payload: Dict[str, Any]) -> np.ndarray:
    """
    Decode a payload produced by `ndarray_to_payload`.

    Raises
    ------
    ValueError
        If the decoded byte count disagrees with the recorded shape.
    """
    raw = base64.b64decode(str(payload["b64"]).encode("ascii"))
    dtype = np.dtype(str(payload.get("dtype", PAYLOAD_DTYPE)))
    shape = tuple(int(d) for d in payload["shape"])

    n_bytes = int(np.prod(shape, dtype=np.int64)) * dtype.itemsize
    if len(raw) != n_bytes:
        raise ValueError(
            f"payload holds {len(raw)} bytes, expected {n_bytes} for {dtype} {shape}"
        )
    return np.frombuffer(raw, dtype=dtype).reshape(shape).astype(np.float64, copy=True)
