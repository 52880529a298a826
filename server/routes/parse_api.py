"""Parse REST routes for classes, users, roles and batch, served from memory."""

from __future__ import annotations

import json
from typing import Any

from fastapi import APIRouter, Depends, HTTPException, Request, status
from fastapi.responses import JSONResponse

import mockdb
from mockdb.rest_controller import MockRESTController, normalize_path
from server.models.requests import SDK_ENVELOPE_KEYS, BatchRequest, FindParams

router = APIRouter(prefix="/1", tags=["parse"])


def get_controller() -> MockRESTController:
    """Controller over the process-wide MockDB. Tests override this dependency."""
    return MockRESTController(mockdb.get_default_db())


async def _read_json(request: Request) -> dict[str, Any]:
    raw = await request.body()
    if not raw:
        return {}
    data = json.loads(raw)
    if not isinstance(data, dict):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Request body must be a JSON object.")
    return data


@router.api_route("/{path:path}", methods=["GET", "POST", "PUT", "DELETE"])
async def parse_api(
    path: str,
    request: Request,
    controller: MockRESTController = Depends(get_controller),
) -> JSONResponse:
    """
    Forward one Parse REST call to the mock controller.

    The JS SDK sends queries as POST with `_method: "GET"` and folds its
    credentials into the body; both are unwrapped here.
    """
    method = request.method
    if method == "GET":
        data = FindParams.model_validate(dict(request.query_params)).to_payload()
    else:
        data = await _read_json(request)
        override = data.get("_method")
        data = {k: v for k, v in data.items() if k not in SDK_ENVELOPE_KEYS}
        if override:
            method = str(override).upper()
            if method == "GET":
                data = FindParams.model_validate(data).to_payload()

    if normalize_path(path) == "batch":
        data = BatchRequest.model_validate(data).model_dump()

    body, status_code = await controller.request(method, path, data)
    return JSONResponse(status_code=status_code, content=body)
