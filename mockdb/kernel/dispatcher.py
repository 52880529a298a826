"""
MockDB Kernel — Dispatcher

The one seam into the engine:

    await db.dispatch(Operation.READ, "Item", None, {"where": {"price": 30}})
    → DispatchResult(status=200, body={"results": [...]})

Composes store, matcher, mutator, includer and hooks. The only suspension
point inside an operation is an async hook. Update and delete re-check the
stored record after their hook resumes, so a write that landed meanwhile is
never overwritten or resurrected.
"""

from __future__ import annotations

import copy
import logging
from collections.abc import Awaitable, Callable
from typing import Any

from mockdb.config import settings
from mockdb.kernel.hooks import HookFn, HookRegistry
from mockdb.kernel.includer import expand
from mockdb.kernel.matcher import apply_order, match
from mockdb.kernel.mutator import apply_ops, extract_ops, record_relation_fields
from mockdb.kernel.store import Store
from mockdb.kernel.types import (
    IDENTITY_FIELDS,
    DispatchResult,
    HookKind,
    Operation,
    encode_timestamps,
    is_pointer,
    not_found,
    now_utc,
)

logger = logging.getLogger(__name__)


class MockDB:
    """
    One in-memory backend: store, field masks and hook registry.
    Construct a fresh one per test run, or use the module default.
    """

    def __init__(
        self,
        default_limit: int | None = None,
        hard_limit: int | None = None,
        max_skip: int | None = None,
    ) -> None:
        self.store = Store()
        self.hooks = HookRegistry()
        self.default_limit = default_limit or settings.MOCKDB_DEFAULT_LIMIT
        self.hard_limit = hard_limit or settings.MOCKDB_HARD_LIMIT
        self.max_skip = max_skip or settings.MOCKDB_MAX_SKIP

    # -- lifecycle --

    def clean_up(self) -> None:
        """Drop every record, field mask and hook."""
        self.store.clear()
        self.hooks.clear()

    def register_hook(self, class_name: str, kind: HookKind | str, fn: HookFn) -> None:
        self.hooks.register(class_name, kind, fn)

    def unregister_hook(self, class_name: str, kind: HookKind | str) -> None:
        self.hooks.unregister(class_name, kind)

    # -- dispatch --

    async def dispatch(
        self,
        operation: Operation | str,
        class_name: str,
        object_id: str | None = None,
        payload: dict[str, Any] | None = None,
    ) -> DispatchResult:
        """Run one create/read/update/delete. Hook exceptions propagate unchanged."""
        operation = Operation(operation)
        logger.debug("dispatch %s %s id=%s", operation.value, class_name, object_id)
        handler = _HANDLERS[operation]
        return await handler(self, class_name, object_id, payload or {})

    # -- helpers --

    def window(self, params: dict[str, Any]) -> tuple[int, int]:
        """(skip, limit) clamped to the configured maximums."""
        limit = int(params.get("limit") or 0)
        if limit <= 0:
            limit = self.default_limit
        skip = max(int(params.get("skip") or 0), 0)
        return min(skip, self.max_skip), min(limit, self.hard_limit)

    def present(self, class_name: str, record: dict[str, Any]) -> dict[str, Any]:
        """Response form: masked fields removed, timestamps as ISO strings."""
        return encode_timestamps(self.store.strip_masked(class_name, record))


# ---------------------------------------------------------------------------
# Handlers
# ---------------------------------------------------------------------------


async def _handle_create(db: MockDB, class_name: str, object_id: str | None, payload: dict[str, Any]) -> DispatchResult:
    data = await db.hooks.run(class_name, HookKind.BEFORE_SAVE, copy.deepcopy(payload))

    ops = extract_ops(data)
    now = now_utc()
    record = {
        **data,
        "objectId": db.store.new_object_id(class_name),
        "createdAt": now,
        "updatedAt": now,
    }
    relation_fields = apply_ops(record, ops)

    db.store.put(class_name, record)
    record_relation_fields(db.store, class_name, relation_fields)

    response = copy.deepcopy(record)
    del response["updatedAt"]
    return DispatchResult(status=201, body=db.present(class_name, response))


def _redirect_class_name(db: MockDB, class_name: str, where: dict[str, Any], key: str) -> str:
    """
    Class of the objects held in the relation `key` of the $relatedTo owner.
    Falls back to the queried class when the relation is empty or unknown.
    """
    owner = (where.get("$relatedTo") or {}).get("object") or {}
    stored = db.store.get(owner.get("className", class_name), owner.get("objectId"))
    for pointer in (stored or {}).get(key) or []:
        if is_pointer(pointer):
            return pointer["className"]
    return class_name


async def _handle_read(db: MockDB, class_name: str, object_id: str | None, params: dict[str, Any]) -> DispatchResult:
    include = params.get("include")

    if object_id is not None:
        stored = db.store.get(class_name, object_id)
        if stored is None:
            return not_found()
        (fetched,) = expand(db.store, [copy.deepcopy(stored)], include)
        return DispatchResult(status=200, body=db.present(class_name, fetched))

    where = params.get("where") or {}
    target = class_name
    redirect_key = params.get("redirectClassNameForKey")
    if redirect_key:
        target = _redirect_class_name(db, class_name, where, redirect_key)

    matches = match(db.store, target, where)
    if params.get("count"):
        return DispatchResult(status=200, body={"count": len(matches)})

    matches = apply_order(matches, params.get("order"))
    matches = expand(db.store, matches, include)
    skip, limit = db.window(params)

    body: dict[str, Any] = {"results": [db.present(target, m) for m in matches[skip : skip + limit]]}
    if redirect_key:
        body["className"] = target
    return DispatchResult(status=200, body=body)


async def _handle_update(db: MockDB, class_name: str, object_id: str | None, payload: dict[str, Any]) -> DispatchResult:
    data = copy.deepcopy(payload)
    ops = extract_ops(data)

    # A write that lands while the hook is suspended invalidates the draft;
    # rebuild from the fresh record and run the hook again.
    while True:
        stored = db.store.get(class_name, object_id)
        if stored is None:
            return not_found()

        updated_at = max(now_utc(), stored["updatedAt"])
        draft = {**copy.deepcopy(stored), **copy.deepcopy(data), "updatedAt": updated_at}
        relation_fields = apply_ops(draft, ops)

        result = await db.hooks.run(class_name, HookKind.BEFORE_SAVE, draft, original=stored)
        if db.store.get(class_name, object_id) is stored:
            break
        logger.debug("update %s %s: record changed during hook, retrying", class_name, object_id)

    result["objectId"] = stored["objectId"]
    result["createdAt"] = stored["createdAt"]
    result["updatedAt"] = updated_at

    db.store.put(class_name, result)
    record_relation_fields(db.store, class_name, relation_fields)

    response = {k: v for k, v in copy.deepcopy(result).items() if k not in IDENTITY_FIELDS}
    return DispatchResult(status=200, body=db.present(class_name, response))


async def _handle_delete(db: MockDB, class_name: str, object_id: str | None, payload: dict[str, Any]) -> DispatchResult:
    stored = db.store.get(class_name, object_id)
    if stored is None:
        return not_found()

    await db.hooks.run(class_name, HookKind.BEFORE_DELETE, copy.deepcopy(stored))
    if db.store.get(class_name, object_id) is None:
        # Deleted by another call while the hook was suspended
        return not_found()
    db.store.remove(class_name, stored["objectId"])
    return DispatchResult(status=200, body={})


_HANDLERS: dict[Operation, Callable[[MockDB, str, str | None, dict[str, Any]], Awaitable[DispatchResult]]] = {
    Operation.CREATE: _handle_create,
    Operation.READ: _handle_read,
    Operation.UPDATE: _handle_update,
    Operation.DELETE: _handle_delete,
}
