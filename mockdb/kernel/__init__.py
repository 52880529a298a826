"""
MockDB Kernel — the in-memory document engine.

Six components:
  store       — class-keyed collections and per-class field masks
  matcher     — where-clause evaluation and the query operator table
  mutator     — atomic update operators (Increment, Add, AddRelation, ...)
  includer    — pointer dereferencing along include paths
  hooks       — beforeSave / beforeDelete interception
  dispatcher  — (operation, class, id, payload) → DispatchResult
"""

from mockdb.kernel.dispatcher import MockDB
from mockdb.kernel.hooks import HookObject, HookRegistry, HookRequest
from mockdb.kernel.includer import expand
from mockdb.kernel.matcher import apply_order, match, objects_are_equal
from mockdb.kernel.mutator import apply_ops, extract_ops
from mockdb.kernel.store import Store
from mockdb.kernel.types import (
    DispatchResult,
    HookKind,
    HookRejected,
    InvalidQueryError,
    MalformedArrayOpError,
    MockDBError,
    Operation,
    UnknownOperatorError,
    make_pointer,
)

__all__ = [
    "MockDB",
    "Store",
    "match",
    "apply_order",
    "objects_are_equal",
    "extract_ops",
    "apply_ops",
    "expand",
    "HookRegistry",
    "HookRequest",
    "HookObject",
    "DispatchResult",
    "HookKind",
    "Operation",
    "HookRejected",
    "InvalidQueryError",
    "MockDBError",
    "UnknownOperatorError",
    "MalformedArrayOpError",
    "make_pointer",
]
