"""HTTP controller for a real Parse server."""
from __future__ import annotations

import json
from typing import Any

import httpx

from mockdb.config import settings
from mockdb.core_manager import RESTController


class HttpRESTController(RESTController):
    """Sends Parse REST requests over HTTP. The controller un_mock_db() restores."""

    def __init__(
        self,
        server_url: str | None = None,
        application_id: str | None = None,
        rest_api_key: str | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.server_url = (server_url or settings.PARSE_SERVER_URL).rstrip("/")
        self.application_id = application_id if application_id is not None else settings.PARSE_APPLICATION_ID
        self.rest_api_key = rest_api_key if rest_api_key is not None else settings.PARSE_REST_API_KEY
        self._transport = transport
        self.client: httpx.AsyncClient | None = None

    def _headers(self, options: dict[str, Any] | None) -> dict:
        """Build request headers."""
        headers = {"Content-Type": "application/json", "X-Parse-Application-Id": self.application_id}
        if self.rest_api_key:
            headers["X-Parse-REST-API-Key"] = self.rest_api_key
        if options and options.get("sessionToken"):
            headers["X-Parse-Session-Token"] = options["sessionToken"]
        return headers

    def _client(self) -> httpx.AsyncClient:
        if self.client is None:
            self.client = httpx.AsyncClient(timeout=settings.PARSE_TIMEOUT_SECONDS, transport=self._transport)
        return self.client

    async def request(
        self,
        method: str,
        path: str,
        data: dict[str, Any] | None = None,
        options: dict[str, Any] | None = None,
    ) -> tuple[Any, int]:
        """
        Make a request. Error statuses are returned, not raised, so callers
        see the same (body, status) pair the mock produces.
        """
        url = f"{self.server_url}/{path.lstrip('/')}"
        method = method.upper()
        if method == "GET":
            # where/include values travel JSON-encoded in the query string
            params = {k: json.dumps(v) if isinstance(v, (dict, list)) else v for k, v in (data or {}).items()}
            res = await self._client().request(method, url, params=params, headers=self._headers(options))
        else:
            res = await self._client().request(method, url, json=data, headers=self._headers(options))
        return res.json(), res.status_code

    async def close(self):
        """Close client."""
        if self.client:
            await self.client.aclose()
            self.client = None
