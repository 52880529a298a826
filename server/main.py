"""
MockDB FastAPI application.

Serves the in-memory store over the Parse REST wire so clients in any
language can point their SDK at it.

    uvicorn server.main:app --port 1337
"""

from __future__ import annotations

import json
import logging
from typing import Any

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from pydantic import ValidationError

import mockdb
from mockdb.kernel.types import HookRejected, MockDBError
from mockdb.rest_controller import RoutingError
from server.routes import parse_api

logger = logging.getLogger(__name__)

INVALID_JSON = 107

app = FastAPI(
    title="MockDB",
    docs_url=None,
    redoc_url=None,
)

# Register routes
app.include_router(parse_api.router)


@app.get("/health")
async def health():
    """Health check endpoint."""
    return {"status": "ok"}


@app.post("/_mockdb/reset")
async def reset():
    """Drop every record, field mask and hook in the process-wide MockDB."""
    mockdb.clean_up()
    return {"status": "ok"}


def _jsonable(value: Any) -> Any:
    try:
        json.dumps(value)
    except TypeError:
        return str(value)
    return value


@app.exception_handler(HookRejected)
async def hook_rejected_handler(request: Request, exc: HookRejected) -> JSONResponse:
    logger.info("hook rejected %s %s: %r", request.method, request.url.path, exc.reason)
    return JSONResponse(status_code=400, content={"code": exc.code, "error": _jsonable(exc.reason)})


@app.exception_handler(MockDBError)
async def mockdb_error_handler(request: Request, exc: MockDBError) -> JSONResponse:
    logger.warning("rejected %s %s: %s", request.method, request.url.path, exc)
    return JSONResponse(status_code=400, content={"code": exc.code, "error": str(exc)})


@app.exception_handler(RoutingError)
async def routing_error_handler(request: Request, exc: RoutingError) -> JSONResponse:
    return JSONResponse(status_code=404, content={"error": str(exc)})


@app.exception_handler(ValidationError)
async def validation_error_handler(request: Request, exc: ValidationError) -> JSONResponse:
    return JSONResponse(status_code=400, content={"code": INVALID_JSON, "error": "invalid request parameters"})


@app.exception_handler(json.JSONDecodeError)
async def json_error_handler(request: Request, exc: json.JSONDecodeError) -> JSONResponse:
    return JSONResponse(status_code=400, content={"code": INVALID_JSON, "error": "invalid JSON"})
