"""
The active REST controller.

Client code sends every request through whatever controller is installed
here. By default that is the HTTP controller talking to a real Parse server;
mockdb.mock_db() swaps in the in-memory MockRESTController.
"""

from __future__ import annotations

from typing import Any


class RESTController:
    """
    Abstract controller interface.
    Implement with HTTP for production, or in-memory for tests.
    """

    async def request(
        self,
        method: str,
        path: str,
        data: dict[str, Any] | None = None,
        options: dict[str, Any] | None = None,
    ) -> tuple[Any, int]:
        """Send one request. Returns (response body, HTTP status)."""
        raise NotImplementedError


_controller: RESTController | None = None


def get_rest_controller() -> RESTController:
    """The installed controller, creating the HTTP default on first use."""
    global _controller
    if _controller is None:
        from mockdb.http_controller import HttpRESTController

        _controller = HttpRESTController()
    return _controller


def set_rest_controller(controller: RESTController) -> None:
    global _controller
    if not callable(getattr(controller, "request", None)):
        raise TypeError("REST controller must implement request()")
    _controller = controller


async def request(
    method: str,
    path: str,
    data: dict[str, Any] | None = None,
    options: dict[str, Any] | None = None,
) -> tuple[Any, int]:
    """Send a request through the installed controller."""
    return await get_rest_controller().request(method, path, data, options)
