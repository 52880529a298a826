"""Request shapes for the Parse REST surface."""

from __future__ import annotations

import json
from typing import Any

from pydantic import BaseModel, Field, field_validator

# Envelope keys the JS SDK folds into POST bodies instead of headers
SDK_ENVELOPE_KEYS: frozenset[str] = frozenset(
    {
        "_method",
        "_ApplicationId",
        "_JavaScriptKey",
        "_ClientVersion",
        "_InstallationId",
        "_SessionToken",
        "_MasterKey",
        "_RevocableSession",
        "_ContentType",
    }
)


class FindParams(BaseModel):
    """Query parameters, from a GET query string or a POST with _method=GET."""

    model_config = {"extra": "ignore"}

    where: dict[str, Any] = Field(default_factory=dict)
    include: str | None = None
    order: str | None = None
    count: int | None = None
    limit: int | None = None
    skip: int | None = None
    redirectClassNameForKey: str | None = None

    @field_validator("where", mode="before")
    @classmethod
    def decode_where(cls, value: Any) -> Any:
        # Query strings carry the where clause JSON-encoded
        if isinstance(value, str):
            return json.loads(value) if value else {}
        return value

    def to_payload(self) -> dict[str, Any]:
        return self.model_dump(exclude_none=True)


class BatchRequestItem(BaseModel):
    """One sub-request of a batch."""

    method: str
    path: str
    body: dict[str, Any] | None = None


class BatchRequest(BaseModel):
    """What the client sends to POST /1/batch."""

    requests: list[BatchRequestItem] = Field(default_factory=list)
