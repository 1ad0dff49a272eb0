"""
Architecture trees for checkpointing.

Every concrete module class that can be rebuilt from JSON registers itself
with `@register_module()`. A module tree serialises to nested nodes

    {"type": "Linear", "config": {...}, "children": [<node>, ...]}

whose children appear in registration order, matching parameter packing.
"""

from __future__ import annotations

from typing import Any, Callable, Dict, Optional, Tuple, Type

_MODULE_REGISTRY: Dict[str, Type[Any]] = {}


def register_module(name: Optional[str] = None) -> Callable[[Type[Any]], Type[Any]]:
    """
    Class decorator adding a module type to the checkpoint registry under
    `name` (default: the class name).
    """

    def deco(cls: Type[Any]) -> Type[Any]:
        _MODULE_REGISTRY[name or cls.__name__] = cls
        return cls

    return deco


def registered_module_types() -> Tuple[str, ...]:
    return tuple(sorted(_MODULE_REGISTRY))


def _lookup(type_name: str) -> Type[Any]:
    try:
        return _MODULE_REGISTRY[type_name]
    except KeyError:
        raise ValueError(
            f"Module type {type_name!r} is not registered for serialization; "
            f"known types: {', '.join(registered_module_types())}"
        ) from None


def module_to_config(m: Any) -> Dict[str, Any]:
    """
    Describe `m` and its children as a JSON-ready node.

    Raises
    ------
    ValueError
        If any module in the tree has an unregistered type.
    """
    type_name = type(m).__name__
    _lookup(type_name)
    children = [module_to_config(c) for c in getattr(m, "_modules", {}).values()]
    return {"type": type_name, "config": m.get_config(), "children": children}


def module_from_config(node: Dict[str, Any]) -> Any:
    """
    Rebuild a module tree from a node produced by `module_to_config`.

    Children are built first and passed to the parent's `from_config`, since
    containers need their members at construction time.
    """
    cls = _lookup(str(node["type"]))
    cfg = node.get("config") or {}
    children = [module_from_config(c) for c in node.get("children") or []]
    if children:
        return cls.from_config(cfg, children)
    return cls.from_config(cfg)
