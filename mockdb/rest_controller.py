"""
MockDB — REST Controller

Stands in for the HTTP controller. Turns (method, path, body) into dispatcher
calls against a MockDB:

    POST   classes/Item        → create
    GET    classes/Item        → query
    GET    classes/Item/<id>   → fetch
    PUT    classes/Item/<id>   → update
    DELETE classes/Item/<id>   → delete
    POST   batch               → {"requests": [{method, path, body}, ...]}

`users` and `roles` address the _User and _Role classes.
Batch sub-request paths carry the API version ("/1/classes/Item").
"""

from __future__ import annotations

import json
import logging
from typing import Any

from mockdb.config import settings
from mockdb.core_manager import RESTController
from mockdb.kernel.dispatcher import MockDB
from mockdb.kernel.types import DispatchResult, Operation

logger = logging.getLogger(__name__)

_METHODS: dict[str, Operation] = {
    "POST": Operation.CREATE,
    "GET": Operation.READ,
    "PUT": Operation.UPDATE,
    "DELETE": Operation.DELETE,
}

_SPECIAL_CLASSES: dict[str, str] = {
    "users": "_User",
    "roles": "_Role",
    "installations": "_Installation",
    "sessions": "_Session",
}


class RoutingError(Exception):
    """Method or path the mock does not serve."""

    def __init__(self, method: str, path: str):
        self.method = method
        self.path = path
        super().__init__(f"No route for {method} {path}")


def debug_print(prefix: str, obj: Any) -> None:
    if settings.DEBUG_DB:
        logger.info("[%s] %s", prefix, json.dumps(obj, indent=4, default=str))


def normalize_path(path: str) -> str:
    """'/1/classes/Item' → 'classes/Item'"""
    path = path.strip("/")
    if path.startswith("1/"):
        path = path[2:]
    return path


def parse_path(method: str, path: str) -> tuple[str, str | None]:
    """Return (class_name, object_id) for a class or special-class path."""
    segments = [s for s in normalize_path(path).split("/") if s]
    if len(segments) in (2, 3) and segments[0] == "classes":
        return segments[1], segments[2] if len(segments) == 3 else None
    if len(segments) in (1, 2) and segments[0] in _SPECIAL_CLASSES:
        return _SPECIAL_CLASSES[segments[0]], segments[1] if len(segments) == 2 else None
    raise RoutingError(method, path)


class MockRESTController(RESTController):
    """In-memory controller bound to one MockDB."""

    def __init__(self, db: MockDB) -> None:
        self.db = db

    async def request(
        self,
        method: str,
        path: str,
        data: dict[str, Any] | None = None,
        options: dict[str, Any] | None = None,
    ) -> tuple[Any, int]:
        if normalize_path(path) == "batch":
            debug_print("BATCH", {"method": method, "path": path, "data": data, "options": options})
            body, status = await self._handle_batch(data or {})
        else:
            debug_print("REQUEST", {"method": method, "path": path, "data": data, "options": options})
            result = await self._handle_request(method, path, data)
            body, status = result.body, result.status

        # Store state after handling the request
        debug_print("DB", self.db.store.collections)
        debug_print("MASKS", {k: sorted(v) for k, v in self.db.store.masks.items()})
        debug_print("RESPONSE", body)
        return body, status

    async def _handle_request(self, method: str, path: str, data: dict[str, Any] | None) -> DispatchResult:
        operation = _METHODS.get(method.upper())
        if operation is None:
            raise RoutingError(method, path)
        class_name, object_id = parse_path(method, path)
        return await self.db.dispatch(operation, class_name, object_id, data)

    async def _handle_batch(self, data: dict[str, Any]) -> tuple[list[dict[str, Any]], int]:
        """Run sub-requests in order. Each gets its own success or error entry."""
        results: list[dict[str, Any]] = []
        for sub in data.get("requests", []):
            result = await self._handle_request(sub["method"], sub["path"], sub.get("body"))
            results.append({"success": result.body} if result.ok else {"error": result.body})
        return results, 200
