"""
MockDB Kernel — Mutator

Atomic update operators carried in a save payload:

    {"price": {"__op": "Increment", "amount": -5},
     "tags":  {"__op": "AddUnique", "objects": ["new"]}}

extract_ops(draft)     → pulls every op out of the draft (destructive)
apply_ops(draft, ops)  → applies them, all-or-nothing

Relation operators keep the pointer list on the record itself and record the
field in the class's field mask so plain reads never surface it.
"""

from __future__ import annotations

import copy
import logging
from collections.abc import Callable
from typing import Any

from mockdb.kernel.matcher import objects_are_equal
from mockdb.kernel.store import Store
from mockdb.kernel.types import MalformedArrayOpError, MockDBError, UnknownOperatorError, is_op

logger = logging.getLogger(__name__)

RELATION_OPERATORS: frozenset[str] = frozenset({"AddRelation", "RemoveRelation"})


def extract_ops(draft: dict[str, Any]) -> dict[str, dict[str, Any]]:
    """Remove every operator-valued field from `draft` and return them keyed by field."""
    ops = {key: value for key, value in draft.items() if is_op(value)}
    for key in ops:
        del draft[key]
    return ops


def _ensure_array(draft: dict[str, Any], key: str) -> list[Any]:
    current = draft.get(key)
    if current is None:
        draft[key] = []
    elif not isinstance(current, list):
        raise MalformedArrayOpError(key)
    return draft[key]


# ---------------------------------------------------------------------------
# Operators: (draft, key, op) → None, mutating draft
# ---------------------------------------------------------------------------


def _increment(draft: dict[str, Any], key: str, op: dict[str, Any]) -> None:
    current = draft.get(key)
    if current is None:
        current = 0
    if isinstance(current, bool) or not isinstance(current, (int, float)):
        raise MockDBError(f"Can't increment non-numeric field '{key}'")
    draft[key] = current + op.get("amount", 1)


def _add(draft: dict[str, Any], key: str, op: dict[str, Any]) -> None:
    _ensure_array(draft, key).extend(op.get("objects", []))


def _add_unique(draft: dict[str, Any], key: str, op: dict[str, Any]) -> None:
    array = _ensure_array(draft, key)
    for obj in op.get("objects", []):
        if not any(objects_are_equal(existing, obj) for existing in array):
            array.append(obj)


def _remove(draft: dict[str, Any], key: str, op: dict[str, Any]) -> None:
    array = _ensure_array(draft, key)
    for obj in op.get("objects", []):
        array[:] = [item for item in array if not objects_are_equal(item, obj)]


def _delete(draft: dict[str, Any], key: str, op: dict[str, Any]) -> None:
    draft.pop(key, None)


def _batch(draft: dict[str, Any], key: str, op: dict[str, Any]) -> None:
    for nested in op.get("ops", []):
        UPDATE_OPERATORS[nested["__op"]](draft, key, nested)


UPDATE_OPERATORS: dict[str, Callable[[dict[str, Any], str, dict[str, Any]], None]] = {
    "Increment": _increment,
    "Add": _add,
    "AddUnique": _add_unique,
    "Remove": _remove,
    "Delete": _delete,
    "AddRelation": _add,
    "RemoveRelation": _remove,
    "Batch": _batch,
}


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def _operator_names(op: dict[str, Any]) -> list[str]:
    names = [op.get("__op")]
    if op.get("__op") == "Batch":
        for nested in op.get("ops", []):
            names.extend(_operator_names(nested) if isinstance(nested, dict) else [None])
    return names


def apply_ops(draft: dict[str, Any], ops: dict[str, dict[str, Any]]) -> set[str]:
    """
    Apply `ops` to `draft` in place and return the relation fields they touched.

    Every operator name is validated before anything is touched, and the ops
    run against a scratch copy that replaces the draft only once all succeed,
    so a failure leaves the draft exactly as it was. The returned fields go to
    record_relation_fields() once the draft is actually committed.
    """
    if not ops:
        return set()
    logger.debug("apply_ops %s", ops)

    relation_keys: set[str] = set()
    for key, op in ops.items():
        for name in _operator_names(op):
            if not isinstance(name, str) or name not in UPDATE_OPERATORS:
                raise UnknownOperatorError(key, name)
            if name in RELATION_OPERATORS:
                relation_keys.add(key)

    scratch = copy.deepcopy(draft)
    for key, op in ops.items():
        UPDATE_OPERATORS[op["__op"]](scratch, key, op)

    draft.clear()
    draft.update(scratch)
    return relation_keys


def record_relation_fields(store: Store, class_name: str, fields: set[str]) -> None:
    """Hide relation storage fields from every later read of the class."""
    if fields:
        store.mask(class_name).update(fields)
