"""
MockDB Kernel — Includer

expand(store, matches, "item,item.brand") → matches with pointers replaced
by the records they point to, following each dot-separated path.

Operates only on the matcher's copies. Stored records are never touched.
"""

from __future__ import annotations

import copy
import logging
from typing import Any

from mockdb.kernel.store import Store
from mockdb.kernel.types import is_included_object, is_pointer

logger = logging.getLogger(__name__)


def parse_include(include: str | None) -> list[list[str]]:
    """'a,a.b' → [['a'], ['a', 'b']]"""
    if not include:
        return []
    return [path.strip().split(".") for path in include.split(",") if path.strip()]


def dereference(store: Store, value: Any) -> Any:
    """
    Load the record a Pointer names, tagged as an included Object.
    Returns None for a dangling pointer. Anything that is not a Pointer
    (including an already-included Object) is returned unchanged.
    """
    if not is_pointer(value):
        return value
    class_name = value["className"]
    stored = store.get(class_name, value.get("objectId"))
    if stored is None:
        return None
    fetched = store.strip_masked(class_name, copy.deepcopy(stored))
    return {"__type": "Object", "className": class_name, **fetched}


def _include_path(store: Store, obj: dict[str, Any], path: list[str]) -> None:
    key, remaining = path[0], path[1:]
    target = obj.get(key)
    if target is None:
        return

    if isinstance(target, list):
        expanded = [dereference(store, item) for item in target]
        obj[key] = expanded
        if remaining:
            for item in expanded:
                if is_included_object(item):
                    _include_path(store, item, remaining)
        return

    if not (is_pointer(target) or is_included_object(target)):
        return

    fetched = dereference(store, target)
    if fetched is None:
        del obj[key]
        return
    obj[key] = fetched
    if remaining:
        _include_path(store, fetched, remaining)


def expand(store: Store, matches: list[dict[str, Any]], include: str | None) -> list[dict[str, Any]]:
    """Apply every include path, in order, to every match (in place)."""
    paths = parse_include(include)
    if not paths:
        return matches
    logger.debug("include %s over %d match(es)", include, len(matches))
    for match in matches:
        for path in paths:
            _include_path(store, match, path)
    return matches
