"""
MockDB Kernel — Hook Runner

Synchronous interception points before a save and before a delete:

    async def before_save(request: HookRequest):
        if request.object.get("error"):
            raise HookRejected("whoah")
        request.object.set("cool", True)
        return request.object

A hook may return a HookObject or dict (adopted in place of the draft),
return None (the draft proceeds unchanged), or raise (the enclosing
operation fails with that exception and nothing is persisted).
Hooks may be plain functions or coroutines.
"""

from __future__ import annotations

import copy
import inspect
import logging
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from mockdb.kernel.types import HookKind

logger = logging.getLogger(__name__)


class HookObject:
    """The record handed to a hook, hydrated with its class name."""

    def __init__(self, class_name: str, attributes: dict[str, Any]) -> None:
        self.class_name = class_name
        self.attributes = attributes

    @property
    def id(self) -> str | None:
        return self.attributes.get("objectId")

    def get(self, key: str, default: Any = None) -> Any:
        return self.attributes.get(key, default)

    def has(self, key: str) -> bool:
        return self.attributes.get(key) is not None

    def set(self, key: str, value: Any) -> HookObject:
        self.attributes[key] = value
        return self

    def unset(self, key: str) -> HookObject:
        self.attributes.pop(key, None)
        return self

    def to_dict(self) -> dict[str, Any]:
        return copy.deepcopy(self.attributes)

    def __repr__(self) -> str:  # pragma: no cover
        return f"HookObject({self.class_name!r}, id={self.id!r})"


@dataclass
class HookRequest:
    """What a hook receives. `original` is the stored record for updates."""

    kind: HookKind
    object: HookObject
    original: HookObject | None = None


HookFn = Callable[[HookRequest], Any]


class HookRegistry:
    """At most one hook per (class, kind). Registering again replaces."""

    def __init__(self) -> None:
        self._hooks: dict[tuple[str, HookKind], HookFn] = {}

    def register(self, class_name: str, kind: HookKind | str, fn: HookFn) -> None:
        self._hooks[(class_name, HookKind(kind))] = fn

    def unregister(self, class_name: str, kind: HookKind | str) -> None:
        self._hooks.pop((class_name, HookKind(kind)), None)

    def get(self, class_name: str, kind: HookKind | str) -> HookFn | None:
        return self._hooks.get((class_name, HookKind(kind)))

    def clear(self) -> None:
        self._hooks = {}

    async def run(
        self,
        class_name: str,
        kind: HookKind | str,
        data: dict[str, Any],
        original: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        """
        Run the hook registered for (class_name, kind) over `data`.
        Returns the record to persist. Exceptions raised by the hook propagate.
        """
        hook = self.get(class_name, kind)
        if hook is None:
            return data

        request = HookRequest(
            kind=HookKind(kind),
            object=HookObject(class_name, copy.deepcopy(data)),
            original=HookObject(class_name, copy.deepcopy(original)) if original is not None else None,
        )
        result = hook(request)
        if inspect.isawaitable(result):
            result = await result
        logger.debug("hook %s.%s returned %r", class_name, HookKind(kind).value, result)

        if result is None:
            return data
        if isinstance(result, HookObject):
            return result.to_dict()
        if isinstance(result, dict):
            return copy.deepcopy(result)
        raise TypeError(f"{HookKind(kind).value} hook for {class_name} returned {type(result).__name__}")
