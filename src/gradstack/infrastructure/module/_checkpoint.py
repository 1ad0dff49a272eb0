"""
Single-file JSON checkpoints.

A checkpoint stores a module tree's architecture (the `module_to_config`
tree), its parameters and its state buffers, with arrays encoded as base64
float64 payloads:

    {
      "format": "gradstack.json.ckpt.v1",
      "arch": {...},
      "state": {"0.weight": {"b64": "...", "dtype": "<f8", ...}, ...},
      "buffers": {"1.mean": {...}, ...}
    }

Notes
-----
- Avoids pickle and HDF5 dependencies.
- Only modules registered with `@register_module` and implementing
  `get_config` / `from_config` can be saved; `Combine` and `FunctionModule`
  cannot.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, Union

from .. import _builtin_modules  # noqa: F401  (registers built-in types)
from .._module import Module
from ._serialization_core import module_from_config, module_to_config
from ._serialization_weights import (
    extract_buffer_payload,
    extract_state_payload,
    load_buffer_payload_,
    load_state_payload_,
)

CHECKPOINT_FORMAT = "gradstack.json.ckpt.v1"


def module_to_payload(module: Module) -> Dict[str, Any]:
    """
    Build the JSON-serializable checkpoint dictionary for `module`.
    """
    return {
        "format": CHECKPOINT_FORMAT,
        "arch": module_to_config(module),
        "state": extract_state_payload(module),
        "buffers": extract_buffer_payload(module),
    }


def module_from_payload(payload: Dict[str, Any]) -> Module:
    """
    Rebuild a module from a checkpoint dictionary.

    Raises
    ------
    ValueError
        If the checkpoint format is unsupported.
    """
    fmt = payload.get("format")
    if fmt != CHECKPOINT_FORMAT:
        raise ValueError(f"Unsupported checkpoint format: {fmt!r}")

    module = module_from_config(payload["arch"])
    load_state_payload_(module, payload["state"])
    load_buffer_payload_(module, payload.get("buffers") or {})
    return module


def save_json(module: Module, path: Union[str, Path]) -> None:
    """
    Save module architecture, weights and state buffers into one JSON file.

    Parent directories are created as needed.
    """
    p = Path(path)
    p.parent.mkdir(parents=True, exist_ok=True)
    p.write_text(
        json.dumps(module_to_payload(module), indent=2, sort_keys=True),
        encoding="utf-8",
    )


def load_json(path: Union[str, Path]) -> Module:
    """
    Load a module from a JSON checkpoint created by `save_json()`.
    """
    p = Path(path)
    return module_from_payload(json.loads(p.read_text(encoding="utf-8")))
