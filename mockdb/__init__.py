"""
MockDB — an in-memory Parse backend for tests.

    import mockdb

    mockdb.mock_db()                  # route requests to the in-memory store
    mockdb.register_hook("Brand", "beforeSave", before_save)
    ...
    mockdb.clean_up()                 # empty store, masks and hooks
    mockdb.un_mock_db()               # restore the HTTP controller

Components:
  kernel            — the document engine (see mockdb.kernel)
  rest_controller   — path routing and batch requests over a MockDB
  core_manager      — the installed controller seam
  http_controller   — the real-server controller
"""

from __future__ import annotations

from mockdb import core_manager
from mockdb.core_manager import RESTController
from mockdb.kernel import HookKind, HookObject, HookRejected, HookRequest, MockDB, Operation
from mockdb.kernel.hooks import HookFn
from mockdb.rest_controller import MockRESTController

_default_db = MockDB()
_default_controller: RESTController | None = None
_mocked = False


def get_default_db() -> MockDB:
    """The process-wide MockDB the module-level helpers operate on."""
    return _default_db


def mock_db() -> MockRESTController:
    """Install the in-memory controller. Idempotent."""
    global _default_controller, _mocked
    if not _mocked:
        _default_controller = core_manager.get_rest_controller()
        core_manager.set_rest_controller(MockRESTController(_default_db))
        _mocked = True
    return core_manager.get_rest_controller()


def un_mock_db() -> None:
    """Restore the controller that was installed before mock_db()."""
    global _default_controller, _mocked
    if _mocked:
        core_manager.set_rest_controller(_default_controller)
        _default_controller = None
        _mocked = False


def clean_up() -> None:
    """Clear the default MockDB and any registered hooks."""
    _default_db.clean_up()


def register_hook(class_name: str, kind: HookKind | str, fn: HookFn) -> None:
    """Register a beforeSave or beforeDelete hook on the default MockDB."""
    _default_db.register_hook(class_name, kind, fn)


def unregister_hook(class_name: str, kind: HookKind | str) -> None:
    _default_db.unregister_hook(class_name, kind)


__all__ = [
    "MockDB",
    "MockRESTController",
    "HookKind",
    "HookObject",
    "HookRequest",
    "HookRejected",
    "Operation",
    "get_default_db",
    "mock_db",
    "un_mock_db",
    "clean_up",
    "register_hook",
    "unregister_hook",
]
