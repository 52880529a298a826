"""
MockDB Kernel — Shared Types

Constants, wire-value helpers, result types and exceptions used across the
store, matcher, mutator, includer, hooks and dispatcher.
These are the contracts that bind the kernel together.

Wire values follow the Parse REST encoding:
- Pointer: {"__type": "Pointer", "className": "Item", "objectId": "abc123"}
- Date:    {"__type": "Date", "iso": "2024-01-01T00:00:00.000Z"}
- Object:  {"__type": "Object", "className": "Item", ...fields}  (included pointer)
- Op:      {"__op": "Increment", "amount": 1}  (atomic update operator)
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum
from typing import Any

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

IDENTITY_FIELDS: tuple[str, ...] = ("objectId", "createdAt")

OBJECT_ID_LENGTH = 10

# Parse error codes used in response bodies
OBJECT_NOT_FOUND = 101
INVALID_QUERY = 102
INCORRECT_TYPE = 111
SCRIPT_FAILED = 141


class Operation(str, Enum):
    """The four request kinds the dispatcher understands."""

    CREATE = "create"
    READ = "read"
    UPDATE = "update"
    DELETE = "delete"


class HookKind(str, Enum):
    BEFORE_SAVE = "beforeSave"
    BEFORE_DELETE = "beforeDelete"


# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------


class MockDBError(Exception):
    """Base class for fatal engine errors."""

    code = INCORRECT_TYPE


class UnknownOperatorError(MockDBError):
    """An atomic update operator this engine does not implement."""

    def __init__(self, key: str, operator: Any):
        self.key = key
        self.operator = operator
        super().__init__(f"Unknown update operator {operator!r} on key '{key}'")


class MalformedArrayOpError(MockDBError):
    """An array operator targets a field that already holds a non-list value."""

    def __init__(self, key: str):
        self.key = key
        super().__init__(f"Can't perform array operation on non-array field '{key}'")


class InvalidQueryError(MockDBError):
    """A where clause the matcher cannot evaluate, such as a bad regex."""

    code = INVALID_QUERY


class HookRejected(Exception):
    """Raised by a hook to reject the operation it intercepts."""

    code = SCRIPT_FAILED

    def __init__(self, reason: Any):
        self.reason = reason
        super().__init__(reason)


# ---------------------------------------------------------------------------
# Data classes
# ---------------------------------------------------------------------------


@dataclass
class DispatchResult:
    """
    What the dispatcher hands back to the router.
    Not-found is a 404 result, never an exception.
    """

    status: int
    body: Any = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return self.status < 400


def not_found() -> DispatchResult:
    return DispatchResult(status=404, body={"code": OBJECT_NOT_FOUND, "error": "Object not found."})


# ---------------------------------------------------------------------------
# Wire-value helpers
# ---------------------------------------------------------------------------


def is_op(value: Any) -> bool:
    return isinstance(value, dict) and "__op" in value


def is_pointer(value: Any) -> bool:
    return isinstance(value, dict) and value.get("__type") == "Pointer"


def is_date(value: Any) -> bool:
    return isinstance(value, dict) and value.get("__type") == "Date"


def is_included_object(value: Any) -> bool:
    return isinstance(value, dict) and value.get("__type") == "Object"


def make_pointer(class_name: str, object_id: str) -> dict[str, Any]:
    return {"__type": "Pointer", "className": class_name, "objectId": object_id}


def now_utc() -> datetime:
    """Current UTC time truncated to the millisecond precision of the wire format."""
    now = datetime.now(UTC)
    return now.replace(microsecond=(now.microsecond // 1000) * 1000)


def to_iso(value: datetime) -> str:
    """2024-01-01T00:00:00.000Z, the only timestamp format the SDK parses."""
    return value.astimezone(UTC).strftime("%Y-%m-%dT%H:%M:%S.") + f"{value.microsecond // 1000:03d}Z"


def parse_iso(value: str) -> datetime:
    parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=UTC)
    return parsed


def encode_timestamps(value: Any) -> Any:
    """Recursively replace internal datetime values with their ISO strings."""
    if isinstance(value, datetime):
        return to_iso(value)
    if isinstance(value, dict):
        return {k: encode_timestamps(v) for k, v in value.items()}
    if isinstance(value, list):
        return [encode_timestamps(v) for v in value]
    return value
