"""
MockDB Kernel — Matcher

match(store, class_name, where) → list of deep-copied records.

Evaluates a Parse where clause against one class's records:
  - absent or empty clause matches everything
  - $or is checked first and excludes every other top-level key
  - top-level keys are AND'ed; dotted keys descend into nested dicts
  - operator keys ($lt, $in, $regex, ...) apply to the field value
  - non-operator keys inside a constraint dict compare a sub-field

Query helpers: apply_order (the `order` request parameter).
"""

from __future__ import annotations

import copy
import logging
import re
from collections.abc import Callable
from datetime import datetime
from typing import Any

from mockdb.kernel.store import Store
from mockdb.kernel.types import InvalidQueryError, is_date, is_pointer, parse_iso

logger = logging.getLogger(__name__)

QUOTE_RE = re.compile(r"(\\Q|\\E)")

_REGEX_FLAGS: dict[str, int] = {
    "i": re.IGNORECASE,
    "m": re.MULTILINE,
    "s": re.DOTALL,
    "x": re.VERBOSE,
}


# ---------------------------------------------------------------------------
# Value semantics
# ---------------------------------------------------------------------------


def deserialize(value: Any) -> Any:
    """Decode a wire Date into a comparable datetime; everything else passes through."""
    if is_date(value):
        return parse_iso(value["iso"])
    return value


def objects_are_equal(a: Any, b: Any) -> bool:
    """
    Equality independent of representation.

    Equal when:
      - both are None (an absent field reads as None)
      - plain == holds (scalars, deep-equal dicts and lists)
      - one side is a list and the other equals any of its elements
      - both carry the same objectId (Pointer vs Pointer, Pointer vs record)
      - both are dates for the same instant
    """
    if a is None or b is None:
        return a is None and b is None

    a_is_list = isinstance(a, list)
    if a_is_list != isinstance(b, list):
        items, scalar = (a, b) if a_is_list else (b, a)
        return any(objects_are_equal(item, scalar) for item in items)

    if a == b:
        return True

    if isinstance(a, datetime) or isinstance(b, datetime):
        return deserialize(a) == deserialize(b)

    if isinstance(a, dict) and isinstance(b, dict):
        if is_date(a) and is_date(b):
            return deserialize(a) == deserialize(b)
        object_id = a.get("objectId")
        if object_id is not None and object_id == b.get("objectId"):
            return True

    return False


def _is_truthy(value: Any) -> bool:
    # Wire truthiness: containers are truthy even when empty.
    if value is None or value is False:
        return False
    if isinstance(value, (int, float)):
        return value != 0 and value == value
    if isinstance(value, str):
        return value != ""
    return True


def _compare(value: Any, param: Any, op: Callable[[Any, Any], bool]) -> bool:
    try:
        return op(value, param)
    except TypeError:
        # Mismatched types never satisfy an ordering constraint.
        return False


# ---------------------------------------------------------------------------
# Field operators: (store, field_value, param) → bool
# ---------------------------------------------------------------------------


def _exists(store: Store, value: Any, param: Any) -> bool:
    return _is_truthy(value) == bool(param)


def _in(store: Store, value: Any, param: Any) -> bool:
    return any(objects_are_equal(value, p) for p in param or [])


def _nin(store: Store, value: Any, param: Any) -> bool:
    return not _in(store, value, param)


def _eq(store: Store, value: Any, param: Any) -> bool:
    return objects_are_equal(value, param)


def _ne(store: Store, value: Any, param: Any) -> bool:
    return not objects_are_equal(value, param)


def _lt(store: Store, value: Any, param: Any) -> bool:
    return _compare(value, param, lambda a, b: a < b)


def _lte(store: Store, value: Any, param: Any) -> bool:
    return _compare(value, param, lambda a, b: a <= b)


def _gt(store: Store, value: Any, param: Any) -> bool:
    return _compare(value, param, lambda a, b: a > b)


def _gte(store: Store, value: Any, param: Any) -> bool:
    return _compare(value, param, lambda a, b: a >= b)


def _regex(store: Store, value: Any, param: Any, options: str = "") -> bool:
    if not isinstance(value, str) or not isinstance(param, str):
        return False
    flags = 0
    for letter in options if isinstance(options, str) else "":
        flags |= _REGEX_FLAGS.get(letter, 0)
    pattern = QUOTE_RE.sub("", param)
    try:
        return re.search(pattern, value, flags) is not None
    except re.error as exc:
        raise InvalidQueryError(f"Invalid $regex {param!r}: {exc}") from exc


def _options(store: Store, value: Any, param: Any) -> bool:
    # Consumed together with $regex.
    return True


def _select(store: Store, value: Any, param: Any) -> bool:
    query = param.get("query", {})
    key = param.get("key")
    matches = match(store, query.get("className"), query.get("where"))
    count = sum(1 for m in matches if objects_are_equal(m.get(key), value))
    return count > 0


def _dont_select(store: Store, value: Any, param: Any) -> bool:
    return not _select(store, value, param)


def _in_query(store: Store, value: Any, param: Any) -> bool:
    if value is None:
        return False
    matches = match(store, param.get("className"), param.get("where"))
    return any(objects_are_equal(value, m) for m in matches)


def _not_in_query(store: Store, value: Any, param: Any) -> bool:
    return not _in_query(store, value, param)


def _all(store: Store, value: Any, param: Any) -> bool:
    items = value if isinstance(value, list) else []
    return all(any(objects_are_equal(p, item) for item in items) for p in param or [])


QUERY_OPERATORS: dict[str, Callable[[Store, Any, Any], bool]] = {
    "$exists": _exists,
    "$in": _in,
    "$nin": _nin,
    "$eq": _eq,
    "$ne": _ne,
    "$lt": _lt,
    "$lte": _lte,
    "$gt": _gt,
    "$gte": _gte,
    "$regex": _regex,
    "$options": _options,
    "$select": _select,
    "$dontSelect": _dont_select,
    "$inQuery": _in_query,
    "$notInQuery": _not_in_query,
    "$all": _all,
}


# ---------------------------------------------------------------------------
# Record operators: (store, class_name, record, param) → bool
# ---------------------------------------------------------------------------


def _related_to(store: Store, class_name: str, record: dict[str, Any], param: Any) -> bool:
    """Membership of `record` in the relation `param.key` of the owner `param.object`."""
    owner = param.get("object") or {}
    if not owner.get("className"):
        return False
    stored = store.get(owner["className"], owner.get("objectId"))
    if stored is None:
        return False
    relation = stored.get(param.get("key")) or []
    return any(
        is_pointer(pointer)
        and pointer.get("className") == class_name
        and pointer.get("objectId") == record.get("objectId")
        for pointer in relation
    )


def _and(store: Store, class_name: str, record: dict[str, Any], param: Any) -> bool:
    return all(matches_where(store, class_name, record, sub) for sub in param or [])


RECORD_OPERATORS: dict[str, Callable[[Store, str, dict[str, Any], Any], bool]] = {
    "$relatedTo": _related_to,
    "$and": _and,
}


# ---------------------------------------------------------------------------
# Clause evaluation
# ---------------------------------------------------------------------------


def _descend(record: dict[str, Any], key: str) -> tuple[dict[str, Any] | None, str]:
    """Walk every dotted segment but the last. None container means a missing segment."""
    *parents, leaf = key.split(".")
    container: Any = record
    for segment in parents:
        container = container.get(segment) if isinstance(container, dict) else None
        if container is None:
            return None, leaf
    if not isinstance(container, dict):
        return None, leaf
    return container, leaf


def _evaluate_constraints(store: Store, value: Any, constraints: dict[str, Any]) -> bool:
    value = deserialize(value)
    for constraint, raw in constraints.items():
        param = deserialize(raw)
        if constraint == "$regex":
            matched = _regex(store, value, param, constraints.get("$options", ""))
        elif constraint in QUERY_OPERATORS:
            matched = QUERY_OPERATORS[constraint](store, value, param)
        else:
            # {"cool": {"awesome": True}} compares cool.awesome
            sub_value = value.get(constraint) if isinstance(value, dict) else None
            matched = objects_are_equal(sub_value, param)
        if not matched:
            return False
    return True


def _evaluate_key(store: Store, class_name: str, record: dict[str, Any], key: str, param: Any) -> bool:
    if key in RECORD_OPERATORS:
        return RECORD_OPERATORS[key](store, class_name, record, param)

    container, leaf = _descend(record, key)
    if container is None:
        return False
    value = container.get(leaf)

    if is_pointer(param) or is_date(param):
        return objects_are_equal(value, param)
    if isinstance(param, dict):
        return _evaluate_constraints(store, value, param)
    return objects_are_equal(value, param)


def matches_where(store: Store, class_name: str, record: dict[str, Any], where: dict[str, Any] | None) -> bool:
    """True when `record` satisfies every top-level key of `where`."""
    if not where:
        return True
    if "$or" in where:
        return any(matches_where(store, class_name, record, sub) for sub in where["$or"] or [])
    return all(_evaluate_key(store, class_name, record, key, param) for key, param in where.items())


def match(store: Store, class_name: str, where: dict[str, Any] | None = None) -> list[dict[str, Any]]:
    """
    Return copies of every record in `class_name` matching `where`.
    Callers can mutate the result freely; stored records are never exposed.
    """
    if not class_name:
        # Subquery with no className
        return []
    logger.debug("match %s where=%s", class_name, where)
    matches = [r for r in store.records(class_name) if matches_where(store, class_name, r, where)]
    logger.debug("match %s → %d record(s)", class_name, len(matches))
    return copy.deepcopy(matches)


# ---------------------------------------------------------------------------
# Ordering
# ---------------------------------------------------------------------------


def _sort_key(value: Any) -> tuple[int, int, Any]:
    value = deserialize(value)
    if value is None:
        return (0, 0, 0)
    if isinstance(value, bool):
        return (1, 0, value)
    if isinstance(value, (int, float)):
        return (1, 1, value)
    if isinstance(value, str):
        return (1, 2, value)
    if isinstance(value, datetime):
        return (1, 3, value)
    return (1, 4, repr(value))


def apply_order(records: list[dict[str, Any]], order: str | None) -> list[dict[str, Any]]:
    """
    Sort by a comma-separated key list, "-" prefix for descending.
    No order keeps natural creation order. Missing values sort first.
    """
    if not order:
        return records
    ordered = list(records)
    for key in reversed([k.strip() for k in order.split(",") if k.strip()]):
        descending = key.startswith("-")
        name = key.lstrip("-")
        ordered.sort(key=lambda r: _sort_key(r.get(name)), reverse=descending)
    return ordered
